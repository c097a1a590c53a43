"""Shared test fixtures for procprep tests."""

import base64
import io
import zipfile
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from procprep.config import PrepareSettings
from procprep.preparable import ProcessSpec, ProcState, ProcStatus

BOOTSTRAP_SCRIPT = b"#!/bin/sh\necho bootstrapped \"$LAMBDA_TASK_ROOT\"\n"

# Entry value: content, or (content, unix mode)
type ZipEntries = Mapping[str, bytes | tuple[bytes, int]]
MakeZip = Callable[[ZipEntries], bytes]
MakeBundle = Callable[[ZipEntries], str]


def build_zip(entries: ZipEntries) -> bytes:
    """Build an in-memory zip archive.

    Names ending in ``/`` become directory entries.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, value in entries.items():
            content, mode = value if isinstance(value, tuple) else (value, 0o644)
            info = zipfile.ZipInfo(name)
            if name.endswith("/"):
                info.external_attr = (0o040000 | (mode or 0o755)) << 16
                archive.writestr(info, b"")
            else:
                info.external_attr = (0o100000 | mode) << 16
                info.compress_type = zipfile.ZIP_DEFLATED
                archive.writestr(info, content)
    return buffer.getvalue()


@pytest.fixture
def make_zip() -> MakeZip:
    """Return a builder for in-memory zip archives."""
    return build_zip


@pytest.fixture
def make_bundle() -> MakeBundle:
    """Return a builder for base64-encoded zip bundles."""

    def _make(entries: ZipEntries) -> str:
        return base64.b64encode(build_zip(entries)).decode("ascii")

    return _make


@pytest.fixture
def bootstrap_bundle(make_bundle: MakeBundle) -> str:
    """A bundle with an executable bootstrap and a nested library file."""
    return make_bundle(
        {
            "bootstrap": (BOOTSTRAP_SCRIPT, 0o755),
            "lib/": b"",
            "lib/handler.txt": b"handler",
        }
    )


@pytest.fixture
def sys_folder(tmp_path: Path) -> Path:
    """Root directory for workload directories."""
    folder = tmp_path / "procs"
    folder.mkdir()
    return folder


@pytest.fixture
def settings(sys_folder: Path) -> PrepareSettings:
    """Settings with fake toolchains that need no compiler.

    - copy: copies ``<source>/app.sh`` to the output path
    - fail: prints a compile error and exits 2
    - hang: sleeps far longer than the build timeout
    """
    return PrepareSettings(
        sys_folder=str(sys_folder),
        build_timeout_ms=5000,
        bundle_path="/usr/bin:/bin",
        toolchains={
            "copy": ("cp", "{source}/app.sh", "{output}"),
            "fail": (
                "sh",
                "-c",
                "echo compiling; echo 'main.go:3: undefined: x' >&2; exit 2",
                "{output}",
            ),
            "hang": ("sh", "-c", "exec sleep 30", "{output}"),
        },
    )


@pytest.fixture
def app_source(tmp_path: Path) -> Path:
    """A source directory holding an executable ``app.sh``."""
    source = tmp_path / "src"
    source.mkdir()
    app = source / "app.sh"
    _ = app.write_text("#!/bin/sh\necho hello from app \"$@\"\necho oops >&2\n")
    app.chmod(0o755)
    return source


class RecordingContainer:
    """Container stand-in that records the spec instead of spawning."""

    instances: "list[RecordingContainer]" = []  # noqa: RUF012

    def __init__(self, spec: ProcessSpec) -> None:
        self._spec = spec
        self._status = ProcStatus()
        self.start_calls = 0
        RecordingContainer.instances.append(self)

    @property
    def spec(self) -> ProcessSpec:
        return self._spec

    @property
    def pid(self) -> int | None:
        return self._status.pid

    @property
    def status(self) -> ProcStatus:
        return self._status

    def start(self) -> None:
        self.start_calls += 1
        self._status.state = ProcState.RUNNING
        self._status.pid = 4242


@pytest.fixture
def recording_factory() -> type[RecordingContainer]:
    """Container factory that never spawns processes."""
    RecordingContainer.instances.clear()
    return RecordingContainer
