"""Unguarded file helpers for files owned by a single writer.

These are used for process stdout/stderr logs and pid files, which belong to
exactly one workload. Shared structured state goes through ``_toml`` instead.
"""

import os
from pathlib import Path
from typing import BinaryIO

# Permission bits for files written by write_file
FILE_MODE: int = 0o660


def write_file(path: str | Path, data: bytes) -> None:
    """Write bytes to a file, replacing any existing content.

    New files are created with mode 0o660.

    Args:
        path: Destination file.
        data: Content to write.
    """
    target = Path(path)
    fd = _open_fd(target, truncate=True)
    with open(fd, "wb") as f:
        _ = f.write(data)


def append_file(path: str | Path, data: bytes) -> None:
    """Append bytes to a file, creating it if needed."""
    target = Path(path)
    fd = _open_fd(target, truncate=False)
    with open(fd, "ab") as f:
        _ = f.write(data)


def get_file(path: str | Path) -> BinaryIO:
    """Open a file for reading and appending, creating it if needed.

    The caller owns the returned handle and must close it.

    Args:
        path: File to open.

    Returns:
        A binary file handle positioned for appending.
    """
    return Path(path).open("a+b")


def delete_file(path: str | Path) -> None:
    """Delete a file permanently.

    Args:
        path: File to delete.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    Path(path).unlink()


def _open_fd(path: Path, *, truncate: bool) -> int:
    flags = os.O_WRONLY | os.O_CREAT
    flags |= os.O_TRUNC if truncate else os.O_APPEND
    return os.open(path, flags, FILE_MODE)
