"""Default handoff container for prepared workloads.

``Proc`` spawns a process from a ProcessSpec with its output appended to the
workload's out/err files and its pid recorded in the pid file. It does not
monitor or restart; that belongs to the lifecycle container that adopts it.
"""

import os
import subprocess
from typing import final

import pendulum

from procprep.exceptions import LaunchError
from procprep.utils import get_file, write_file

from ._models import ProcessSpec, ProcState, ProcStatus


def _get_timestamp() -> str:
    """Get current timestamp in ISO 8601 format."""
    return pendulum.now("UTC").to_iso8601_string()


@final
class Proc:
    """A process specification plus the bookkeeping of its one spawn.

    Attributes:
        spec: Immutable specification for this process.
        status: Mutable runtime status.
    """

    __slots__ = ("_process", "spec", "status")

    def __init__(self, spec: ProcessSpec) -> None:
        """Initialize an unspawned container.

        Args:
            spec: Specification of the process to run.
        """
        self.spec = spec
        self.status = ProcStatus()
        self._process: subprocess.Popen[bytes] | None = None

    @property
    def name(self) -> str:
        """Return the workload name."""
        return self.spec.name

    @property
    def pid(self) -> int | None:
        """Return the process ID if spawned, None otherwise."""
        return self.status.pid

    def start(self) -> None:
        """Spawn the process and record its pid.

        Raises:
            LaunchError: If the process is already running or cannot be
                spawned.
        """
        spec = self.spec
        if self.status.state is ProcState.RUNNING:
            msg = f"Process {spec.name} is already running with pid {self.pid}"
            raise LaunchError(msg, spec=spec)

        try:
            spec.path.mkdir(parents=True, exist_ok=True)
            with get_file(spec.out_file) as out, get_file(spec.err_file) as err:
                process = subprocess.Popen(  # noqa: S603
                    [str(spec.command), *spec.args],
                    cwd=spec.working_dir,
                    env={**os.environ, **spec.env},
                    stdin=subprocess.DEVNULL,
                    stdout=out,
                    stderr=err,
                    start_new_session=True,
                )
        except OSError as e:
            msg = f"Failed to start {spec.name}: {e}"
            raise LaunchError(msg, spec=spec) from e

        self._process = process
        self.status.state = ProcState.RUNNING
        self.status.pid = process.pid
        self.status.started_at = _get_timestamp()
        self.status.exit_code = None
        write_file(spec.pid_file, str(process.pid).encode())

    def wait(self, timeout: float | None = None) -> int:
        """Wait for the spawned process to exit.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            The process exit code.

        Raises:
            LaunchError: If the process was never spawned.
            subprocess.TimeoutExpired: If the timeout elapses first.
        """
        if self._process is None:
            msg = f"Process {self.spec.name} was never started"
            raise LaunchError(msg, spec=self.spec)
        exit_code = self._process.wait(timeout=timeout)
        self.status.state = ProcState.STOPPED
        self.status.exit_code = exit_code
        return exit_code
