"""Preparable workloads.

A preparable turns a workload descriptor into a launchable process:
``prepare_bin()`` builds or unpacks the executable, then ``start()`` hands a
ProcessSpec to the lifecycle container, or ``setup_proc()`` builds the
container without spawning.

Key Components:
    - SourceWorkload / BundleWorkload: Workload descriptors
    - ProcessSpec: Handoff value for the lifecycle container
    - Preparable: Protocol shared by both variants
    - SourcePreparable: Builds a source tree with a language toolchain
    - BundlePreparable: Unpacks a base64 zip bundle with a bootstrap
    - Proc: Default container that spawns once and records the pid
    - create_preparable: Variant selection by descriptor kind

Example:
    >>> from procprep.preparable import SourceWorkload, create_preparable
    >>> workload = SourceWorkload(name="api", sys_folder="/srv", source_path="src/")
    >>> preparable = create_preparable(workload)
    >>> str(preparable.pid_path)
    '/srv/api/api.pid'
"""

from ._async import prepare_bin_async
from ._base import BasePreparable, normalize_dir, resolve_sys_folder
from ._bundle import (
    BOOTSTRAP,
    PATH_ENV,
    RUNTIME_DIR,
    STAGED_ARCHIVE,
    TASK_ROOT_ENV,
    BundlePreparable,
)
from ._factory import create_preparable
from ._models import (
    BundleWorkload,
    ProcessSpec,
    ProcState,
    ProcStatus,
    SourceWorkload,
    WorkloadDescriptor,
    WorkloadKind,
    parse_descriptor,
    validate_workload_name,
)
from ._proc import Proc
from ._protocol import ContainerFactory, Preparable, ProcContainer
from ._source import SourcePreparable

__all__ = [
    "BOOTSTRAP",
    "PATH_ENV",
    "RUNTIME_DIR",
    "STAGED_ARCHIVE",
    "TASK_ROOT_ENV",
    "BasePreparable",
    "BundlePreparable",
    "BundleWorkload",
    "ContainerFactory",
    "Preparable",
    "ProcContainer",
    "ProcState",
    "ProcStatus",
    "Proc",
    "ProcessSpec",
    "SourcePreparable",
    "SourceWorkload",
    "WorkloadDescriptor",
    "WorkloadKind",
    "create_preparable",
    "normalize_dir",
    "parse_descriptor",
    "prepare_bin_async",
    "resolve_sys_folder",
    "validate_workload_name",
]
