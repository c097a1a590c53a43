# pyright: reportAny=false, reportExplicitAny=false
"""Settings loading from defaults, a TOML file and the environment."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from procprep.config._defaults import DEFAULT_CONFIG
from procprep.config._loader import env_overrides, merge_tables
from procprep.config._models import PrepareSettings
from procprep.exceptions import ConfigValidationError
from procprep.utils import read_toml_file

# Table holding procprep settings inside a shared TOML document
SETTINGS_TABLE: str = "procprep"

CONFIG_ENV_VAR: str = "PROCPREP_CONFIG"


def _file_values(path: Path) -> dict[str, Any]:
    data = read_toml_file(path)
    section = data.get(SETTINGS_TABLE, data)
    return section if isinstance(section, dict) else {}


def load_settings(
    config_path: str | Path | None = None,
    *,
    include_env: bool = True,
    environ: Mapping[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> PrepareSettings:
    """Load settings with precedence overrides > env > file > defaults.

    The file is read from ``config_path`` or, if not given, from the path in
    PROCPREP_CONFIG. Values come from its ``[procprep]`` table when present,
    otherwise from the document root.

    Args:
        config_path: Explicit settings file. Must exist if given.
        include_env: Whether to apply PROCPREP_* environment variables.
        environ: Environment to read instead of os.environ.
        overrides: Highest precedence values, e.g. from a caller's CLI.

    Returns:
        Validated settings.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ConfigLoadError: If the settings file is not valid TOML.
        ConfigValidationError: If the merged values are invalid.
    """
    env = os.environ if environ is None else environ
    merged = merge_tables(DEFAULT_CONFIG, {})
    source = "default"

    path_value = config_path if config_path is not None else env.get(CONFIG_ENV_VAR)
    if path_value:
        merged = merge_tables(merged, _file_values(Path(path_value)))
        source = str(path_value)

    if include_env:
        env_values = env_overrides(env)
        if env_values:
            merged = merge_tables(merged, env_values)

    if overrides:
        merged = merge_tables(merged, overrides)

    try:
        return PrepareSettings.model_validate(merged)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        msg = f"Invalid setting {key}: {first['msg']}"
        raise ConfigValidationError(
            msg,
            key=key,
            value=first.get("input"),
            expected=first["msg"],
            source=source,
        ) from e
