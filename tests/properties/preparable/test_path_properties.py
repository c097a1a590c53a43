from pathlib import Path

from hypothesis import given, strategies as st

from procprep.preparable import (
    BundlePreparable,
    BundleWorkload,
    SourcePreparable,
    SourceWorkload,
    normalize_dir,
)

workload_names = st.from_regex(r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,20}", fullmatch=True)
segments = st.from_regex(r"[a-z0-9_-]{1,8}", fullmatch=True)
sys_folders = st.lists(segments, max_size=4).map(lambda parts: "/" + "/".join(parts))
trailing = st.integers(min_value=0, max_value=3).map(lambda n: "/" * n)


@given(value=st.text())
def test_normalize_dir_is_idempotent(value: str) -> None:
    once = normalize_dir(value)
    assert normalize_dir(once) == once
    assert once == "/" or not once.endswith("/")


@given(name=workload_names, sys_folder=sys_folders, slashes=trailing)
def test_source_layout_ignores_trailing_slashes(
    name: str, sys_folder: str, slashes: str
) -> None:
    plain = SourcePreparable(
        SourceWorkload(name=name, sys_folder=sys_folder, source_path="/src")
    )
    slashed = SourcePreparable(
        SourceWorkload(name=name, sys_folder=sys_folder + slashes, source_path="/src")
    )

    root = Path(sys_folder) / name
    for preparable in (plain, slashed):
        assert preparable.path == root
        assert preparable.bin_path == root / name
        assert preparable.pid_path == root / f"{name}.pid"
        assert preparable.out_path == root / f"{name}.out"
        assert preparable.err_path == root / f"{name}.err"


@given(name=workload_names, sys_folder=sys_folders, slashes=trailing)
def test_bundle_layout_ignores_trailing_slashes(
    name: str, sys_folder: str, slashes: str
) -> None:
    plain = BundlePreparable(
        BundleWorkload(name=name, sys_folder=sys_folder, bundle_data="")
    )
    slashed = BundlePreparable(
        BundleWorkload(name=name, sys_folder=sys_folder + slashes, bundle_data="")
    )

    root = Path(sys_folder) / name
    for preparable in (plain, slashed):
        assert preparable.path == root
        assert preparable.bin_path == root / "runtime" / "bootstrap"
        assert preparable.pid_path == root / f"{name}.pid"
        assert preparable.out_path == root / f"{name}.out"
        assert preparable.err_path == root / f"{name}.err"
        assert preparable.environment()["LAMBDA_TASK_ROOT"] == str(root / "runtime")


@given(name=workload_names, source=st.lists(segments, min_size=1, max_size=4))
def test_source_path_trailing_slash_does_not_change_build(
    name: str, source: list[str]
) -> None:
    source_path = "/" + "/".join(source)
    commands = {
        SourcePreparable(
            SourceWorkload(name=name, sys_folder="/srv", source_path=path)
        ).build_command()
        for path in (source_path, source_path + "/", source_path + "//")
    }
    assert len(commands) == 1
