# pyright: reportAny=false, reportExplicitAny=false
"""TOML-backed registry of workload descriptors.

Every access goes through the locked TOML utilities, so concurrent
supervisor operations never observe or produce a torn registry. Mutations
hold the lock across their whole read-modify-write.
"""

import shutil
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, final

from pydantic import ValidationError

from procprep.exceptions import (
    ConfigValidationError,
    DuplicateWorkloadError,
    WorkloadNotFoundError,
)
from procprep.preparable import BundleWorkload, SourceWorkload, resolve_sys_folder
from procprep.utils import (
    edit_toml_file,
    null_logger,
    safe_read_toml_file,
    safe_write_toml_file,
)

from ._models import RegistryDocument

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from procprep.config import PrepareSettings

type Descriptor = SourceWorkload | BundleWorkload


def workload_dir(
    descriptor: Descriptor,
    settings: "PrepareSettings | None" = None,
) -> Path:
    """Return the directory ``sys_folder/name`` a descriptor resolves to.

    Args:
        descriptor: The workload descriptor.
        settings: Supplies the default sys_folder when the descriptor has none.

    Returns:
        The absolute workload directory.

    Raises:
        PrepareError: If neither the descriptor nor the settings name a
            sys_folder.
    """
    return Path(resolve_sys_folder(descriptor, settings)) / descriptor.name


def _document_from(data: dict[str, Any], path: Path) -> RegistryDocument:
    try:
        return RegistryDocument.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        msg = f"Invalid workload registry {path}: {first['msg']} at {key}"
        raise ConfigValidationError(
            msg,
            key=key,
            value=first.get("input"),
            expected=first["msg"],
            source=str(path),
        ) from e


@final
class WorkloadRegistry:
    """Persisted set of workload descriptors keyed by name.

    Attributes:
        path: The TOML registry file.
        settings: Settings used to resolve default workload directories.
    """

    __slots__ = ("_logger", "path", "settings")

    def __init__(
        self,
        path: str | Path,
        *,
        settings: "PrepareSettings | None" = None,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the registry.

        Args:
            path: The TOML registry file. It is created on first write.
            settings: Settings used to resolve default workload directories.
            logger: Logger for registry events.
        """
        self.path = Path(path)
        self.settings = settings
        self._logger = (logger if logger is not None else null_logger()).bind(
            registry=str(self.path)
        )

    def load(self) -> dict[str, Descriptor]:
        """Read every registered descriptor.

        Returns:
            Descriptors keyed by name. A missing registry file reads as empty.

        Raises:
            ConfigLoadError: If the registry is not valid TOML.
            ConfigValidationError: If an entry is not a valid descriptor.
        """
        if not self.path.exists():
            return {}
        document = safe_read_toml_file(self.path, RegistryDocument)
        return dict(document.workloads)

    def save(self, descriptors: Iterable[Descriptor]) -> None:
        """Replace the registry contents.

        Args:
            descriptors: The complete set of workloads to persist.

        Raises:
            DuplicateWorkloadError: If two descriptors share a name or a
                workload directory.
        """
        workloads: dict[str, Descriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in workloads:
                msg = f"Workload {descriptor.name} is listed more than once"
                raise DuplicateWorkloadError(msg, name=descriptor.name)
            workloads[descriptor.name] = descriptor
        self._check_dirs(workloads.values())
        safe_write_toml_file(RegistryDocument(workloads=workloads), self.path)
        self._logger.info("registry_saved", workloads=len(workloads))

    def get(self, name: str) -> Descriptor:
        """Return one descriptor by name.

        Raises:
            WorkloadNotFoundError: If no workload has that name.
        """
        workloads = self.load()
        try:
            return workloads[name]
        except KeyError:
            msg = f"Workload {name} is not registered"
            raise WorkloadNotFoundError(msg, name=name) from None

    def names(self) -> list[str]:
        """Return the registered workload names in sorted order."""
        return sorted(self.load())

    @contextmanager
    def update(self) -> Iterator[dict[str, Descriptor]]:
        """Modify the registry under a single lock span.

        The yielded mapping is written back when the block exits normally.
        If the block raises, the registry is left unchanged.

        Yields:
            Descriptors keyed by name, to be mutated in place.

        Raises:
            DuplicateWorkloadError: If the result maps two workloads to one
                directory.
        """
        with edit_toml_file(self.path) as data:
            workloads = dict(_document_from(data, self.path).workloads)
            yield workloads
            self._check_dirs(workloads.values())
            document = RegistryDocument(workloads=workloads)
            data.clear()
            data.update(document.model_dump(mode="json", exclude_none=True))

    def add(self, descriptor: Descriptor) -> None:
        """Register a new workload.

        Raises:
            DuplicateWorkloadError: If the name or directory is already taken.
            PrepareError: If the workload has no sys_folder.
        """
        with self.update() as workloads:
            if descriptor.name in workloads:
                msg = f"Workload {descriptor.name} is already registered"
                raise DuplicateWorkloadError(msg, name=descriptor.name)
            workloads[descriptor.name] = descriptor
        self._logger.info(
            "workload_registered",
            workload=descriptor.name,
            kind=descriptor.kind,
        )

    def replace(self, descriptor: Descriptor) -> None:
        """Register a workload, overwriting any entry with the same name."""
        with self.update() as workloads:
            workloads[descriptor.name] = descriptor
        self._logger.info("workload_replaced", workload=descriptor.name)

    def remove(self, name: str) -> Descriptor:
        """Deregister a workload. Its directory is left on disk.

        Returns:
            The removed descriptor.

        Raises:
            WorkloadNotFoundError: If no workload has that name.
        """
        with self.update() as workloads:
            if name not in workloads:
                msg = f"Workload {name} is not registered"
                raise WorkloadNotFoundError(msg, name=name)
            removed = workloads.pop(name)
        self._logger.info("workload_deregistered", workload=name)
        return removed

    def _check_dirs(self, descriptors: Iterable[Descriptor]) -> None:
        seen: dict[Path, str] = {}
        for descriptor in descriptors:
            directory = workload_dir(descriptor, self.settings).resolve()
            other = seen.get(directory)
            if other is not None:
                msg = (
                    f"Workloads {other} and {descriptor.name} "
                    f"share the directory {directory}"
                )
                raise DuplicateWorkloadError(msg, name=descriptor.name)
            seen[directory] = descriptor.name


def cleanup_workload_dir(
    descriptor: Descriptor,
    settings: "PrepareSettings | None" = None,
) -> bool:
    """Remove a workload's directory and everything in it.

    Args:
        descriptor: The workload whose directory is removed.
        settings: Supplies the default sys_folder when the descriptor has none.

    Returns:
        True if a directory was removed, False if none existed.
    """
    directory = workload_dir(descriptor, settings)
    if not directory.exists():
        return False
    shutil.rmtree(directory)
    return True
