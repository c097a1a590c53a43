"""procprep: artifact staging for a process supervisor.

procprep turns a workload descriptor into a launchable executable and a
deterministic runtime layout under ``sys_folder/name``, then hands a process
specification to a lifecycle container.

Example:
    >>> from procprep import BundleWorkload, create_preparable
    >>> workload = BundleWorkload(name="fn", bundle_data=payload)  # doctest: +SKIP
    >>> preparable = create_preparable(workload, settings=settings)  # doctest: +SKIP
    >>> preparable.prepare_bin()  # doctest: +SKIP
    >>> proc = preparable.start()  # doctest: +SKIP
"""

from procprep.config import PrepareSettings, load_settings
from procprep.exceptions import (
    ArchiveError,
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    DuplicateWorkloadError,
    LaunchError,
    NotPreparedError,
    PrepareCancelledError,
    PrepareError,
    ProcPrepError,
    RegistryError,
    ToolchainError,
    UnsafeArchiveEntryError,
    WorkloadNotFoundError,
)
from procprep.preparable import (
    BundlePreparable,
    BundleWorkload,
    Preparable,
    Proc,
    ProcContainer,
    ProcessSpec,
    SourcePreparable,
    SourceWorkload,
    WorkloadKind,
    create_preparable,
    parse_descriptor,
    prepare_bin_async,
)
from procprep.registry import WorkloadRegistry, cleanup_workload_dir

__all__ = [
    "ArchiveError",
    "BundlePreparable",
    "BundleWorkload",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DuplicateWorkloadError",
    "LaunchError",
    "NotPreparedError",
    "PrepareCancelledError",
    "PrepareError",
    "PrepareSettings",
    "Preparable",
    "Proc",
    "ProcContainer",
    "ProcPrepError",
    "ProcessSpec",
    "RegistryError",
    "SourcePreparable",
    "SourceWorkload",
    "ToolchainError",
    "UnsafeArchiveEntryError",
    "WorkloadKind",
    "WorkloadNotFoundError",
    "WorkloadRegistry",
    "cleanup_workload_dir",
    "create_preparable",
    "load_settings",
    "parse_descriptor",
    "prepare_bin_async",
]
