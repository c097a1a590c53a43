# pyright: reportAny=false, reportExplicitAny=false
"""Layering of settings sources onto the PrepareSettings schema.

Environment variables are matched against the model's fields instead of being
type-guessed. ``PROCPREP_LOGGING__LEVEL`` addresses ``logging.level`` and a
name that matches no field is skipped. Table and list fields are decoded from
JSON; every other value stays a string for pydantic to coerce.
"""

import json
import os
from collections.abc import Mapping
from typing import Any, get_args, get_origin

from pydantic import BaseModel

from procprep.config._models import PrepareSettings
from procprep.exceptions import ConfigValidationError

ENV_PREFIX: str = "PROCPREP_"

# Source reported for values that fail to decode
ENV_SOURCE: str = "environment"

_JSON_ORIGINS = (dict, list, tuple)


def merge_tables(
    base: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    """Return a copy of ``base`` with ``override`` layered on top.

    Tables present on both sides are merged key by key. Any other value,
    arrays included, replaces what ``base`` holds. Neither input is modified.
    """
    merged = {key: _copied(value) for key, value in base.items()}
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = merge_tables(current, value)
        else:
            merged[key] = _copied(value)
    return merged


def _copied(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copied(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_copied(item) for item in value]
    return value


def _is_model(annotation: Any) -> bool:
    return (
        get_origin(annotation) is None
        and isinstance(annotation, type)
        and issubclass(annotation, BaseModel)
    )


def field_annotation(model: type[BaseModel], parts: list[str]) -> Any | None:
    """Return the annotation of the setting a key path addresses.

    Nested models are walked by field name. The final part may also name an
    entry of a table field, e.g. ``toolchains.rust``.

    Args:
        model: The settings model to resolve against.
        parts: Lowercase key path, e.g. ``["logging", "level"]``.

    Returns:
        The field's annotation, or None if the path names no setting.
    """
    annotation: Any = model
    last = len(parts) - 1
    for index, part in enumerate(parts):
        if _is_model(annotation):
            field = annotation.model_fields.get(part)
            if field is None:
                return None
            annotation = field.annotation
        elif get_origin(annotation) is dict and index == last:
            annotation = get_args(annotation)[1]
        else:
            return None
    return annotation


def _decode(annotation: Any, raw: str, key: str) -> Any:
    if get_origin(annotation) not in _JSON_ORIGINS and not _is_model(annotation):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Invalid setting {key}: expected a JSON value ({e.msg})"
        raise ConfigValidationError(
            msg,
            key=key,
            value=raw,
            expected="JSON value",
            source=ENV_SOURCE,
        ) from e


def env_overrides(
    environ: Mapping[str, str] | None = None,
    *,
    prefix: str = ENV_PREFIX,
    model: type[BaseModel] = PrepareSettings,
) -> dict[str, Any]:
    """Collect settings from prefixed environment variables.

    ``__`` separates nesting levels and names are matched case-insensitively,
    so ``PROCPREP_TOOLCHAINS__RUST='["cargo", "build", "{output}"]'`` sets
    the ``rust`` toolchain. Variables naming no setting, such as
    ``PROCPREP_CONFIG`` or ``PROCPREP_DEBUG``, are ignored.

    Args:
        environ: Environment to read (default: os.environ).
        prefix: Variable prefix.
        model: Settings model the names are resolved against.

    Returns:
        Nested settings values, ready to merge over the file values.

    Raises:
        ConfigValidationError: If a table or list setting is not valid JSON.
    """
    source = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    # Sorted so a whole table is applied before its individual keys
    for name in sorted(source):
        if not name.startswith(prefix):
            continue
        parts = name[len(prefix) :].lower().split("__")
        if not all(parts):
            continue
        annotation = field_annotation(model, parts)
        if annotation is None:
            continue

        table = values
        for part in parts[:-1]:
            nested = table.get(part)
            if not isinstance(nested, dict):
                nested = table[part] = {}
            table = nested
        table[parts[-1]] = _decode(annotation, source[name], ".".join(parts))

    return values
