"""Advisory file locking keyed by file path.

Locks combine a per-path ``threading.Lock`` for callers inside one process
with an ``fcntl.flock`` on a sidecar ``<file>.lock`` for callers in other
processes. Targets are replaced by rename on every write, so the flock is
taken on the sidecar, whose inode stays put.
"""

import fcntl
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

LOCK_SUFFIX: str = ".lock"

_registry_guard = threading.Lock()
_path_locks: dict[str, threading.Lock] = {}


def lock_path_for(path: str | Path) -> Path:
    """Return the sidecar lock file path for a target file.

    Args:
        path: The file being protected.

    Returns:
        Path of the sidecar lock file next to the target.
    """
    target = Path(path)
    return target.with_name(target.name + LOCK_SUFFIX)


def _thread_lock_for(path: Path) -> threading.Lock:
    key = os.path.realpath(path)
    with _registry_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _path_locks[key] = lock
        return lock


@contextmanager
def file_lock(path: str | Path) -> Iterator[None]:
    """Hold an exclusive lock on a file path for the duration of the block.

    Blocks until the lock is available. The lock is released when the block
    exits, whether it returns or raises.

    Args:
        path: The file to lock. It does not need to exist yet; its parent
            directory is created so the sidecar lock file can be opened.

    Yields:
        None once the lock is held.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    sidecar = lock_path_for(target)

    with _thread_lock_for(target), sidecar.open("a+b") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
