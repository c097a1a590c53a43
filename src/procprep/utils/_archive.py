"""Zip archive extraction confined to a destination root."""

import shutil
import stat
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from procprep.exceptions import ArchiveError, UnsafeArchiveEntryError

DEFAULT_DIR_MODE: int = 0o755
DEFAULT_FILE_MODE: int = 0o644


def _entry_mode(info: zipfile.ZipInfo) -> int:
    """Return the Unix mode stored in a zip entry, or 0 if none was recorded."""
    return (info.external_attr >> 16) & 0xFFFF


def resolve_entry_path(dest_root: Path, name: str) -> Path:
    """Map an archive entry name to a path inside ``dest_root``.

    Args:
        dest_root: Resolved destination directory.
        name: Entry name as stored in the archive.

    Returns:
        The resolved destination path of the entry.

    Raises:
        UnsafeArchiveEntryError: If the name is absolute, empty, or resolves
            outside ``dest_root``.
    """
    posix_name = PurePosixPath(name.replace("\\", "/"))
    if not name or posix_name.is_absolute() or (
        posix_name.parts and posix_name.parts[0].endswith(":")
    ):
        msg = f"Archive entry has an absolute or empty path: {name!r}"
        raise UnsafeArchiveEntryError(msg, entry=name)

    target = (dest_root / posix_name).resolve()
    if target == dest_root or not target.is_relative_to(dest_root):
        msg = f"Archive entry escapes the destination directory: {name!r}"
        raise UnsafeArchiveEntryError(msg, entry=name)
    return target


def _check_entries(archive: zipfile.ZipFile, dest_root: Path) -> list[Path]:
    targets: list[Path] = []
    for info in archive.infolist():
        if stat.S_ISLNK(_entry_mode(info)):
            msg = f"Archive entry is a symbolic link: {info.filename!r}"
            raise UnsafeArchiveEntryError(msg, entry=info.filename)
        targets.append(resolve_entry_path(dest_root, info.filename))
    return targets


def unzip(src: str | Path, dest: str | Path) -> list[Path]:
    """Extract a zip archive into a destination directory.

    Every entry is checked before anything is written: absolute names,
    ``..`` escapes and symbolic links are rejected. Directory entries are
    created with the mode recorded in the archive; file entries get their
    parent directories created and their recorded mode applied, so
    executables stay executable.

    Args:
        src: Path to the zip archive.
        dest: Destination root. Created if missing.

    Returns:
        Paths of the extracted files, in archive order.

    Raises:
        UnsafeArchiveEntryError: If any entry would escape ``dest``.
        ArchiveError: If the archive is corrupt or an entry cannot be read.
        OSError: If a directory or file cannot be written.
    """
    dest_root = Path(dest)
    dest_root.mkdir(parents=True, exist_ok=True)
    dest_root = dest_root.resolve()

    try:
        archive = zipfile.ZipFile(src)
    except zipfile.BadZipFile as e:
        msg = f"Not a valid zip archive: {src}"
        raise ArchiveError(msg) from e

    extracted: list[Path] = []
    with archive:
        targets = _check_entries(archive, dest_root)
        for info, target in zip(archive.infolist(), targets, strict=True):
            mode = _entry_mode(info) & 0o777
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                target.chmod((mode or DEFAULT_DIR_MODE) | stat.S_IRWXU)
                continue

            target.parent.mkdir(parents=True, exist_ok=True, mode=DEFAULT_DIR_MODE)
            try:
                with archive.open(info) as source, target.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
            except (zipfile.BadZipFile, EOFError, zlib.error) as e:
                msg = f"Corrupt archive entry {info.filename!r}: {e}"
                raise ArchiveError(msg) from e
            target.chmod(mode or DEFAULT_FILE_MODE)
            extracted.append(target)

    return extracted
