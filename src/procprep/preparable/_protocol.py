"""Protocol definitions for workload preparation.

This module defines the interfaces between the preparation core and the
external lifecycle container:
- ProcContainer: Protocol for the container that owns a spawned process
- ContainerFactory: Builds a container from a ProcessSpec
- Preparable: Protocol implemented by every workload variant
"""

from collections.abc import Callable
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from threading import Event  # noqa: TC003 - Used in runtime type annotations
from typing import Protocol, runtime_checkable

from ._models import ProcessSpec, ProcStatus  # noqa: TC001 - Used at runtime


@runtime_checkable
class ProcContainer(Protocol):
    """Protocol for the lifecycle container a process specification is handed to.

    The container owns everything after spawn: signal handling, restarts and
    status reporting. The preparation core only constructs it and, for
    ``Preparable.start()``, asks it to spawn once.
    """

    @property
    def spec(self) -> ProcessSpec:
        """Return the specification this container was built from."""
        ...

    @property
    def pid(self) -> int | None:
        """Return the process ID if spawned, None otherwise."""
        ...

    @property
    def status(self) -> ProcStatus:
        """Return the runtime status of the process."""
        ...

    def start(self) -> None:
        """Spawn the process described by ``spec``.

        Raises:
            LaunchError: If the process cannot be spawned.
        """
        ...


type ContainerFactory = Callable[[ProcessSpec], ProcContainer]


@runtime_checkable
class Preparable(Protocol):
    """Protocol for turning a workload descriptor into a launchable process.

    ``prepare_bin()``, or ``adopt()`` for an artifact that already exists,
    must succeed before ``start()`` or ``setup_proc()``. Instances hold no
    locks; a single workload must be driven from one thread at a time.
    """

    @property
    def path(self) -> Path:
        """Return the workload directory ``sys_folder/name``."""
        ...

    @property
    def bin_path(self) -> Path:
        """Return the path of the executable the process runs."""
        ...

    @property
    def pid_path(self) -> Path:
        """Return the pid file path."""
        ...

    @property
    def out_path(self) -> Path:
        """Return the stdout log path."""
        ...

    @property
    def err_path(self) -> Path:
        """Return the stderr log path."""
        ...

    @property
    def command(self) -> Path | None:
        """Return the resolved command, or None before preparation."""
        ...

    def prepare_bin(self, *, cancel: Event | None = None) -> bytes:
        """Build or unpack the executable and resolve the command.

        Args:
            cancel: Optional event that aborts preparation when set.

        Returns:
            Toolchain output for source builds, empty bytes for bundles.

        Raises:
            PrepareError: If the artifact cannot be produced.
        """
        ...

    def start(self) -> ProcContainer:
        """Assemble the process specification and launch it.

        Raises:
            NotPreparedError: If prepare_bin() has not succeeded.
            LaunchError: If the container fails to spawn the process.
        """
        ...

    def adopt(self) -> Path:
        """Resolve the command from an existing artifact without rebuilding it.

        Raises:
            NotPreparedError: If no artifact exists at ``bin_path``.
        """
        ...

    def setup_proc(self) -> ProcContainer:
        """Assemble the process specification without launching it.

        Raises:
            NotPreparedError: If prepare_bin() has not succeeded.
        """
        ...

    def identifier(self) -> str:
        """Return the workload name used as the registry key."""
        ...
