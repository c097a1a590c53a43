"""Tests for the default Proc container."""

import os
import signal
from pathlib import Path

import pendulum
import pytest

from procprep.exceptions import LaunchError
from procprep.preparable import Proc, ProcContainer, ProcessSpec, ProcState


@pytest.fixture
def workload_dir(tmp_path: Path) -> Path:
    return tmp_path / "procs" / "echo"


def _spec(workload_dir: Path, command: Path, **overrides: object) -> ProcessSpec:
    fields: dict[str, object] = {
        "name": "echo",
        "command": command,
        "args": ("first", "second"),
        "env": {"PROCPREP_TEST_GREETING": "hi"},
        "working_dir": workload_dir,
        "path": workload_dir,
        "pid_file": workload_dir / "echo.pid",
        "out_file": workload_dir / "echo.out",
        "err_file": workload_dir / "echo.err",
    }
    fields.update(overrides)
    return ProcessSpec(**fields)  # pyright: ignore[reportArgumentType]


@pytest.fixture
def script(tmp_path: Path) -> Path:
    path = tmp_path / "echo.sh"
    _ = path.write_text(
        "#!/bin/sh\n"
        'echo "$PROCPREP_TEST_GREETING $@"\n'
        "pwd\n"
        "echo warning >&2\n"
    )
    path.chmod(0o755)
    return path


class TestProc:
    def test_satisfies_container_protocol(
        self, workload_dir: Path, script: Path
    ) -> None:
        assert isinstance(Proc(_spec(workload_dir, script)), ProcContainer)

    def test_initial_status(self, workload_dir: Path, script: Path) -> None:
        proc = Proc(_spec(workload_dir, script))
        assert proc.name == "echo"
        assert proc.pid is None
        assert proc.status.state is ProcState.STOPPED

    def test_start_spawns_and_records(self, workload_dir: Path, script: Path) -> None:
        proc = Proc(_spec(workload_dir, script))

        proc.start()
        exit_code = proc.wait(timeout=10)

        assert exit_code == 0
        assert proc.pid is not None
        assert (workload_dir / "echo.pid").read_text() == str(proc.pid)
        out_lines = (workload_dir / "echo.out").read_text().splitlines()
        assert out_lines[0] == "hi first second"
        assert Path(out_lines[1]).resolve() == workload_dir.resolve()
        assert (workload_dir / "echo.err").read_text() == "warning\n"
        assert proc.status.state is ProcState.STOPPED
        assert proc.status.exit_code == 0
        assert proc.status.started_at is not None
        _ = pendulum.parse(proc.status.started_at)

    def test_output_is_appended(self, workload_dir: Path, script: Path) -> None:
        workload_dir.mkdir(parents=True)
        _ = (workload_dir / "echo.out").write_text("previous run\n")
        proc = Proc(_spec(workload_dir, script))

        proc.start()
        _ = proc.wait(timeout=10)

        content = (workload_dir / "echo.out").read_text()
        assert content.startswith("previous run\nhi first second\n")

    def test_start_twice_while_running(
        self, workload_dir: Path, tmp_path: Path
    ) -> None:
        sleeper = tmp_path / "sleeper.sh"
        _ = sleeper.write_text("#!/bin/sh\nexec sleep 30\n")
        sleeper.chmod(0o755)
        proc = Proc(_spec(workload_dir, sleeper, args=()))
        proc.start()
        try:
            with pytest.raises(LaunchError, match="already running"):
                proc.start()
        finally:
            assert proc.pid is not None
            os.kill(proc.pid, signal.SIGKILL)
            _ = proc.wait(timeout=10)

    def test_missing_command(self, workload_dir: Path, tmp_path: Path) -> None:
        spec = _spec(workload_dir, tmp_path / "missing")
        proc = Proc(spec)

        with pytest.raises(LaunchError) as exc_info:
            proc.start()

        assert exc_info.value.spec is spec
        assert proc.status.state is ProcState.STOPPED
        assert not (workload_dir / "echo.pid").exists()

    def test_wait_before_start(self, workload_dir: Path, script: Path) -> None:
        with pytest.raises(LaunchError, match="never started"):
            _ = Proc(_spec(workload_dir, script)).wait()
