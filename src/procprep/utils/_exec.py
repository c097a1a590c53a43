"""Execution utilities for external toolchain commands.

This module runs a command with a deadline and an optional cancellation
event, capturing stdout and stderr. The child process is killed when either
the deadline passes or the event is set.
"""

import os
import signal
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from threading import Event  # noqa: TC003 - Used in runtime type annotations

# Default timeout in milliseconds
DEFAULT_TIMEOUT_MS: int = 300000  # 5 minutes

# Maximum output size in bytes for log summaries
MAX_OUTPUT_BYTES: int = 102400  # 100KB

# How often the cancellation event is checked while the child runs
POLL_INTERVAL_S: float = 0.1


@dataclass(frozen=True, slots=True)
class CommandConfig:
    """Configuration for command execution.

    Attributes:
        argv: Command and arguments to execute.
        cwd: Working directory for execution.
        env: Additional environment variables to set.
        timeout_ms: Execution timeout in milliseconds, or None for no limit.
        cancel: Optional event that aborts the command when set.
    """

    argv: tuple[str, ...]
    cwd: str | Path | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout_ms: int | None = DEFAULT_TIMEOUT_MS
    cancel: Event | None = None


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result from command execution.

    Attributes:
        success: Whether the command ran to completion with exit code 0.
        exit_code: Process exit code, or None if it never completed.
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        error: Error message if execution failed.
        timed_out: Whether the command timed out.
        cancelled: Whether the command was cancelled.
        command_not_found: Whether the command was not found.
    """

    success: bool
    exit_code: int | None = None
    stdout: bytes = b""
    stderr: bytes = b""
    error: str | None = None
    timed_out: bool = False
    cancelled: bool = False
    command_not_found: bool = False

    @property
    def output(self) -> bytes:
        """Return stdout followed by stderr."""
        return self.stdout + self.stderr


def truncate_output(output: str, max_bytes: int = MAX_OUTPUT_BYTES) -> str:
    """Truncate output to max bytes, preserving valid UTF-8.

    Args:
        output: The string to truncate.
        max_bytes: Maximum size in bytes.

    Returns:
        Truncated string with indicator if truncated.
    """
    if not output:
        return output

    encoded = output.encode("utf-8")
    if len(encoded) <= max_bytes:
        return output

    # Drop incomplete multi-byte sequences at the cut
    truncated = encoded[:max_bytes].decode("utf-8", errors="ignore")

    return truncated + "\n... [output truncated]"


def _kill(process: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
    # The child leads its own process group; take any grandchildren with it
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        process.kill()
    stdout, stderr = process.communicate()
    return stdout or b"", stderr or b""


def run_command(config: CommandConfig) -> CommandResult:
    """Execute a command, honouring its timeout and cancellation event.

    Args:
        config: Command configuration specifying argv, env, cwd, timeout, etc.

    Returns:
        CommandResult with execution outcome. Output captured before a kill
        is preserved.
    """
    if not config.argv:
        return CommandResult(success=False, error="No command specified")

    env = {**os.environ, **config.env}
    cwd = str(config.cwd) if config.cwd else None
    deadline = (
        time.monotonic() + config.timeout_ms / 1000.0
        if config.timeout_ms is not None
        else None
    )

    if config.cancel is not None and config.cancel.is_set():
        return CommandResult(success=False, error="Command cancelled", cancelled=True)

    try:
        process = subprocess.Popen(  # noqa: S603
            config.argv,
            env=env,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except FileNotFoundError as e:
        return CommandResult(success=False, error=str(e), command_not_found=True)
    except OSError as e:
        return CommandResult(success=False, error=str(e))

    while True:
        wait = POLL_INTERVAL_S
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                stdout, stderr = _kill(process)
                return CommandResult(
                    success=False,
                    stdout=stdout,
                    stderr=stderr,
                    error=f"Command timed out after {config.timeout_ms / 1000.0}s",
                    timed_out=True,
                )
            wait = min(wait, remaining)

        try:
            stdout, stderr = process.communicate(timeout=wait)
        except subprocess.TimeoutExpired:
            if config.cancel is not None and config.cancel.is_set():
                stdout, stderr = _kill(process)
                return CommandResult(
                    success=False,
                    stdout=stdout,
                    stderr=stderr,
                    error="Command cancelled",
                    cancelled=True,
                )
            continue

        return CommandResult(
            success=process.returncode == 0,
            exit_code=process.returncode,
            stdout=stdout or b"",
            stderr=stderr or b"",
            error=None
            if process.returncode == 0
            else f"Command exited with code {process.returncode}",
        )
