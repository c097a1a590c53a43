"""Shared path derivation and process assembly for preparable variants.

Subclasses implement the Template Method hooks for their artifact layout
(``bin_path``, ``pid_path``, ...) and for ``prepare_bin()``. This base turns
the resolved command into a ProcessSpec and hands it to the container.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from threading import Event  # noqa: TC003 - Used in runtime type annotations
from typing import TYPE_CHECKING

from procprep.config import PrepareSettings
from procprep.exceptions import NotPreparedError, PrepareCancelledError, PrepareError
from procprep.utils import null_logger

from ._models import BundleWorkload, ProcessSpec, SourceWorkload
from ._proc import Proc

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._protocol import ContainerFactory, ProcContainer


def normalize_dir(value: str) -> str:
    """Strip trailing separators from a directory path, keeping a bare root."""
    return value.rstrip("/") or "/"


def resolve_sys_folder(
    descriptor: SourceWorkload | BundleWorkload,
    settings: PrepareSettings | None = None,
) -> str:
    """Return the absolute, normalized root of a workload's directory.

    The descriptor's ``sys_folder`` wins over the settings default. Relative
    values are anchored at the current directory, so the paths handed to the
    container stay valid whatever working directory it spawns in.

    Args:
        descriptor: The workload descriptor.
        settings: Supplies the default sys_folder when the descriptor has none.

    Returns:
        The sys_folder as an absolute path without trailing separators.

    Raises:
        PrepareError: If neither the descriptor nor the settings name one.
    """
    sys_folder = descriptor.sys_folder or (settings.sys_folder if settings else "")
    if not sys_folder:
        msg = f"No sys_folder configured for workload {descriptor.name}"
        raise PrepareError(msg, workload=descriptor.name)
    return str(Path(normalize_dir(sys_folder)).absolute())


class BasePreparable[D: SourceWorkload | BundleWorkload](ABC):
    """Abstract base class for preparable workloads.

    Type Parameters:
        D: The descriptor type this variant consumes.

    Attributes:
        descriptor: The workload descriptor.
        settings: Settings for toolchains, timeouts and bundle environment.
    """

    __slots__ = (
        "_command",
        "_container_factory",
        "_logger",
        "_prepared",
        "_sys_folder",
        "descriptor",
        "settings",
    )

    def __init__(
        self,
        descriptor: D,
        *,
        settings: PrepareSettings | None = None,
        container_factory: "ContainerFactory | None" = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the preparable.

        Args:
            descriptor: The workload to prepare.
            settings: Preparation settings. Defaults are used when omitted.
            container_factory: Builds the lifecycle container for a spec.
                Defaults to Proc.
            logger: Logger for preparation events. Events are dropped when
                omitted.

        Raises:
            PrepareError: If neither the descriptor nor the settings name a
                sys_folder.
        """
        self.descriptor: D = descriptor
        self.settings = settings if settings is not None else PrepareSettings()
        self._container_factory: "ContainerFactory" = (
            container_factory if container_factory is not None else Proc
        )
        base_logger = logger if logger is not None else null_logger()
        self._logger = base_logger.bind(workload=descriptor.name)

        self._sys_folder = resolve_sys_folder(descriptor, self.settings)
        self._command: Path | None = None
        self._prepared = False

    # =========================================================================
    # Abstract Methods (Template Method hooks)
    # =========================================================================

    @property
    @abstractmethod
    def bin_path(self) -> Path:
        """Return the path of the executable the process runs."""

    @property
    @abstractmethod
    def pid_path(self) -> Path:
        """Return the pid file path."""

    @property
    @abstractmethod
    def out_path(self) -> Path:
        """Return the stdout log path."""

    @property
    @abstractmethod
    def err_path(self) -> Path:
        """Return the stderr log path."""

    @abstractmethod
    def prepare_bin(self, *, cancel: Event | None = None) -> bytes:
        """Build or unpack the executable and resolve the command."""

    def environment(self) -> dict[str, str]:
        """Return the environment overlay for the process."""
        return dict(self.descriptor.envs)

    # =========================================================================
    # Shared behaviour
    # =========================================================================

    @property
    def name(self) -> str:
        """Return the workload name."""
        return self.descriptor.name

    @property
    def sys_folder(self) -> str:
        """Return the normalized root of all workload directories."""
        return self._sys_folder

    @property
    def path(self) -> Path:
        """Return the workload directory ``sys_folder/name``."""
        return Path(self._sys_folder) / self.name

    @property
    def command(self) -> Path | None:
        """Return the resolved command, or None before preparation."""
        return self._command

    @property
    def prepared(self) -> bool:
        """Return whether prepare_bin() has completed successfully."""
        return self._prepared

    @property
    def working_dir(self) -> Path:
        """Return the descriptor's working directory, or the workload directory."""
        if self.descriptor.working_dir:
            return Path(self.descriptor.working_dir)
        return self.path

    def identifier(self) -> str:
        """Return the workload name used as the registry key."""
        return self.name

    def build_spec(self) -> ProcessSpec:
        """Assemble the process specification from the resolved command.

        Returns:
            The specification handed to the lifecycle container.

        Raises:
            NotPreparedError: If prepare_bin() has not succeeded.
        """
        if not self._prepared or self._command is None:
            msg = (
                f"Workload {self.name} has no resolved command; "
                "call prepare_bin() or adopt() first"
            )
            raise NotPreparedError(msg, workload=self.name)

        return ProcessSpec(
            name=self.name,
            command=self._command,
            args=tuple(self.descriptor.args),
            env=self.environment(),
            working_dir=self.working_dir,
            path=self.path,
            pid_file=self.pid_path,
            out_file=self.out_path,
            err_file=self.err_path,
            keep_alive=self.descriptor.keep_alive,
        )

    def start(self) -> "ProcContainer":  # noqa: UP037
        """Assemble the process specification and launch it.

        Returns:
            The container owning the spawned process.

        Raises:
            NotPreparedError: If prepare_bin() has not succeeded.
            LaunchError: If the container fails to spawn the process.
        """
        container = self._container_factory(self.build_spec())
        container.start()
        self._logger.info("process_started", pid=container.pid)
        return container

    def adopt(self) -> Path:
        """Resolve the command from an artifact left by an earlier preparation.

        Nothing is rebuilt or re-extracted, so a process still running from
        the artifact keeps its files. Used to restore bookkeeping after a
        supervisor restart.

        Returns:
            The resolved command.

        Raises:
            NotPreparedError: If no artifact exists at ``bin_path``.
        """
        self._prepared = False
        self._command = None
        if not self.bin_path.is_file():
            msg = f"Workload {self.name} has no artifact at {self.bin_path}"
            raise NotPreparedError(msg, workload=self.name)

        self._command = self.bin_path
        self._prepared = True
        self._logger.info("artifact_adopted", command=str(self._command))
        return self._command

    def setup_proc(self) -> "ProcContainer":  # noqa: UP037
        """Assemble the process specification without launching it.

        Returns:
            An unspawned container, e.g. to restore bookkeeping after a
            supervisor restart.

        Raises:
            NotPreparedError: If neither prepare_bin() nor adopt() has
                succeeded.
        """
        return self._container_factory(self.build_spec())

    def _check_cancel(self, cancel: Event | None, stage: str) -> None:
        if cancel is not None and cancel.is_set():
            self._logger.warning("prepare_cancelled", stage=stage)
            msg = f"Preparation of {self.name} cancelled before {stage}"
            raise PrepareCancelledError(msg, workload=self.name)
