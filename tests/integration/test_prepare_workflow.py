"""End-to-end preparation: build or unpack, then launch through Proc."""

from pathlib import Path

import pytest

from procprep.config import PrepareSettings, load_settings
from procprep.exceptions import ToolchainError
from procprep.preparable import (
    BundleWorkload,
    Proc,
    ProcState,
    SourceWorkload,
    create_preparable,
)
from procprep.registry import WorkloadRegistry, cleanup_workload_dir
from tests.conftest import BOOTSTRAP_SCRIPT


def _started_proc(container: object) -> Proc:
    assert isinstance(container, Proc)
    return container


class TestBundleWorkflow:
    def test_unpack_and_launch(
        self, settings: PrepareSettings, bootstrap_bundle: str, sys_folder: Path
    ) -> None:
        preparable = create_preparable(
            BundleWorkload(name="fn", bundle_data=bootstrap_bundle),
            settings=settings,
        )

        assert preparable.prepare_bin() == b""
        runtime = sys_folder / "fn" / "runtime"
        assert preparable.command == runtime / "bootstrap"

        proc = _started_proc(preparable.start())
        assert proc.status.state is ProcState.RUNNING
        assert proc.wait(timeout=10) == 0

        workload_dir = sys_folder / "fn"
        out = (workload_dir / "fn.out").read_text()
        assert out == f"bootstrapped {runtime}\n"
        assert (workload_dir / "fn.pid").read_text() == str(proc.pid)
        assert (workload_dir / "fn.err").read_text() == ""

    def test_setup_proc_after_restart(
        self, settings: PrepareSettings, bootstrap_bundle: str
    ) -> None:
        descriptor = BundleWorkload(name="fn", bundle_data=bootstrap_bundle)
        first = create_preparable(descriptor, settings=settings)
        _ = first.prepare_bin()

        running = _started_proc(first.start())

        # A fresh supervisor adopts the unpacked runtime without spawning
        second = create_preparable(descriptor, settings=settings)
        _ = second.adopt()
        container = second.setup_proc()

        assert container.pid is None
        assert container.spec == first.setup_proc().spec
        assert running.wait(timeout=10) == 0
        assert first.bin_path.read_bytes() == BOOTSTRAP_SCRIPT


class TestSourceWorkflow:
    def test_build_and_launch(
        self, settings: PrepareSettings, app_source: Path, sys_folder: Path
    ) -> None:
        preparable = create_preparable(
            SourceWorkload(
                name="app",
                source_path=f"{app_source}/",
                language="copy",
                args=("--flag",),
            ),
            settings=settings,
        )

        assert preparable.prepare_bin() == b""
        proc = _started_proc(preparable.start())
        assert proc.wait(timeout=10) == 0

        workload_dir = sys_folder / "app"
        assert preparable.command == workload_dir / "app"
        assert (workload_dir / "app.out").read_text() == "hello from app --flag\n"
        assert (workload_dir / "app.err").read_text() == "oops\n"
        assert (workload_dir / "app.pid").read_text() == str(proc.pid)

    def test_failed_build_keeps_deterministic_command(
        self, settings: PrepareSettings, sys_folder: Path
    ) -> None:
        preparable = create_preparable(
            SourceWorkload(name="app", source_path="/src/app/", language="fail"),
            settings=settings,
        )

        with pytest.raises(ToolchainError) as exc_info:
            _ = preparable.prepare_bin()

        assert b"undefined: x" in exc_info.value.output
        assert preparable.command == sys_folder / "app" / "app"

    def test_hanging_build_times_out(
        self, settings: PrepareSettings, sys_folder: Path
    ) -> None:
        preparable = create_preparable(
            SourceWorkload(name="app", source_path="/src/app", language="hang"),
            settings=settings.model_copy(update={"build_timeout_ms": 500}),
        )

        with pytest.raises(ToolchainError) as exc_info:
            _ = preparable.prepare_bin()

        assert exc_info.value.timed_out is True


class TestRegistryWorkflow:
    def test_register_prepare_and_clean_up(
        self,
        tmp_path: Path,
        app_source: Path,
        sys_folder: Path,
        settings: PrepareSettings,
    ) -> None:
        config = tmp_path / "procprep.toml"
        _ = config.write_text(
            f'[procprep]\nsys_folder = "{sys_folder}"\n\n'
            "[procprep.toolchains]\n"
            'copy = ["cp", "{source}/app.sh", "{output}"]\n'
        )
        loaded = load_settings(config, environ={})
        registry = WorkloadRegistry(tmp_path / "registry.toml", settings=loaded)
        registry.add(
            SourceWorkload(name="app", source_path=str(app_source), language="copy")
        )

        preparable = create_preparable(registry.get("app"), settings=loaded)
        _ = preparable.prepare_bin()
        proc = _started_proc(preparable.start())
        assert proc.wait(timeout=10) == 0
        assert proc.status.exit_code == 0

        removed = registry.remove("app")
        assert cleanup_workload_dir(removed, loaded) is True
        assert not (sys_folder / "app").exists()
        assert registry.names() == []
        assert settings.sys_folder == loaded.sys_folder
