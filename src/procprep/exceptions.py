"""procprep exceptions."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from procprep.preparable._models import ProcessSpec


class ProcPrepError(Exception):
    """Base exception for procprep errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(ProcPrepError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a TOML document cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: "Path | None" = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: "Path | None" = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when a TOML document fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Preparation Exceptions
# =============================================================================


class PrepareError(ProcPrepError):
    """Base exception for workload preparation errors.

    Attributes:
        workload: Name of the workload being prepared.
    """

    def __init__(self, message: str, *, workload: str | None = None) -> None:
        """Initialize with error message and workload context."""
        super().__init__(message)
        self.workload: str | None = workload


class ToolchainError(PrepareError):
    """Raised when the build toolchain fails or cannot be run.

    Attributes:
        output: Captured stdout followed by stderr of the toolchain.
        exit_code: Toolchain exit code, or None if it never ran to completion.
        timed_out: Whether the build exceeded its deadline.
        cancelled: Whether the build was cancelled by the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        workload: str | None = None,
        output: bytes = b"",
        exit_code: int | None = None,
        timed_out: bool = False,
        cancelled: bool = False,
    ) -> None:
        """Initialize with error message and toolchain outcome."""
        super().__init__(message, workload=workload)
        self.output: bytes = output
        self.exit_code: int | None = exit_code
        self.timed_out: bool = timed_out
        self.cancelled: bool = cancelled


class ArchiveError(PrepareError):
    """Raised when a bundle cannot be decoded, staged or extracted."""


class UnsafeArchiveEntryError(ArchiveError):
    """Raised when an archive entry would land outside the destination root.

    Attributes:
        entry: The offending entry name as stored in the archive.
    """

    def __init__(
        self,
        message: str,
        *,
        entry: str,
        workload: str | None = None,
    ) -> None:
        """Initialize with error message and the rejected entry name."""
        super().__init__(message, workload=workload)
        self.entry: str = entry


class NotPreparedError(PrepareError):
    """Raised when a process is requested before prepare_bin() succeeded."""


class PrepareCancelledError(PrepareError):
    """Raised when preparation is cancelled between stages."""


# =============================================================================
# Launch Exceptions
# =============================================================================


class LaunchError(ProcPrepError):
    """Raised when the lifecycle container fails to spawn a process.

    Attributes:
        spec: The process specification that failed to launch.
    """

    def __init__(self, message: str, *, spec: "ProcessSpec | None" = None) -> None:
        """Initialize with error message and the failed specification."""
        super().__init__(message)
        self.spec: "ProcessSpec | None" = spec


# =============================================================================
# Registry Exceptions
# =============================================================================


class RegistryError(ProcPrepError):
    """Base exception for workload registry errors."""


class DuplicateWorkloadError(RegistryError):
    """Raised when a workload name or directory is already registered.

    Attributes:
        name: The conflicting workload name.
    """

    def __init__(self, message: str, *, name: str) -> None:
        """Initialize with error message and workload name."""
        super().__init__(message)
        self.name: str = name


class WorkloadNotFoundError(RegistryError, KeyError):
    """Raised when a workload is not present in the registry.

    Attributes:
        name: The workload name that was not found.
    """

    def __init__(self, message: str, *, name: str) -> None:
        """Initialize with error message and workload name."""
        super().__init__(message)
        self.name: str = name

    def __str__(self) -> str:
        """Return the message without KeyError's repr quoting."""
        return str(self.args[0]) if self.args else ""
