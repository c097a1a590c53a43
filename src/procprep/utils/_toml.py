# pyright: reportAny=false, reportExplicitAny=false
"""Lock-guarded TOML persistence.

Reads and writes of a shared TOML document are serialized through
``file_lock`` so that no reader observes a partially written file. Writes go
to a temporary file in the same directory which is then renamed over the
target, so a crash mid-write leaves the previous document intact.
"""

import os
import tempfile
import tomllib
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any, overload

import tomli_w
from pydantic import BaseModel, ValidationError

from procprep.exceptions import ConfigLoadError, ConfigValidationError

from ._lock import file_lock


def read_toml_file(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file without locking.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def dump_toml(value: BaseModel | Mapping[str, Any]) -> str:
    """Serialize a model or mapping to a TOML string.

    Pydantic models are dumped in JSON mode with ``None`` fields dropped,
    since TOML has no null.

    Args:
        value: The value to encode.

    Returns:
        TOML document text.
    """
    if isinstance(value, BaseModel):
        data = value.model_dump(mode="json", exclude_none=True)
    else:
        data = dict(value)
    return tomli_w.dumps(data)


@overload
def safe_read_toml_file(path: str | Path) -> dict[str, Any]: ...


@overload
def safe_read_toml_file[M: BaseModel](path: str | Path, model: type[M]) -> M: ...


def safe_read_toml_file[M: BaseModel](
    path: str | Path,
    model: type[M] | None = None,
) -> M | dict[str, Any]:
    """Read a TOML file while holding its lock.

    Args:
        path: Path to the TOML file.
        model: Optional pydantic model to validate the document into.

    Returns:
        The validated model instance, or the raw dictionary when no model
        is given.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
        ConfigValidationError: If the document does not fit ``model``.
    """
    target = Path(path)
    with file_lock(target):
        data = read_toml_file(target)

    if model is None:
        return data

    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        key = ".".join(str(part) for part in first.get("loc", ()))
        msg = f"Invalid document in {target}: {e}"
        raise ConfigValidationError(
            msg,
            key=key,
            value=first.get("input"),
            expected=str(first.get("msg", model.__name__)),
            source=str(target),
        ) from e


def safe_write_toml_file(
    value: BaseModel | Mapping[str, Any],
    path: str | Path,
) -> None:
    """Write a TOML file atomically while holding its lock.

    Args:
        value: Model or mapping to encode.
        path: Destination file. Parent directories are created if needed.

    Raises:
        OSError: If the temporary file cannot be written or renamed.
    """
    target = Path(path)
    content = dump_toml(value)
    with file_lock(target):
        _atomic_write_text(target, content)


def _atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            _ = f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


@contextmanager
def edit_toml_file(path: str | Path) -> Iterator[dict[str, Any]]:
    """Read, modify and rewrite a TOML file under a single lock span.

    The yielded dictionary is written back atomically when the block exits
    normally. If the block raises, the file is left untouched.

    Args:
        path: Path to the TOML file. A missing file reads as empty.

    Yields:
        The parsed document, to be mutated in place.
    """
    target = Path(path)
    with file_lock(target):
        data = read_toml_file(target) if target.exists() else {}
        yield data
        _atomic_write_text(target, tomli_w.dumps(data))
