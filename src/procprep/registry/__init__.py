"""Persisted workload registry.

Example:
    >>> from procprep.registry import WorkloadRegistry
    >>> registry = WorkloadRegistry("/var/lib/procs/registry.toml")
    >>> registry.names()  # doctest: +SKIP
    ['api', 'worker']
"""

from ._models import RegistryDocument
from ._registry import Descriptor, WorkloadRegistry, cleanup_workload_dir, workload_dir

__all__ = [
    "Descriptor",
    "RegistryDocument",
    "WorkloadRegistry",
    "cleanup_workload_dir",
    "workload_dir",
]
