"""procprep configuration.

This module provides the settings model shared by every preparable and the
loader that layers defaults, a TOML file and PROCPREP_* environment
variables.

Example:
    >>> from procprep.config import load_settings
    >>> settings = load_settings(include_env=False)
    >>> settings.build_timeout_ms
    300000
"""

from procprep.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG, DEFAULT_TOOLCHAINS
from ._load import CONFIG_ENV_VAR, SETTINGS_TABLE, load_settings
from ._loader import ENV_PREFIX, env_overrides, field_annotation, merge_tables
from ._models import LogFormat, LoggingConfig, LogLevel, PrepareSettings

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "DEFAULT_TOOLCHAINS",
    "ENV_PREFIX",
    "SETTINGS_TABLE",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PrepareSettings",
    "env_overrides",
    "field_annotation",
    "load_settings",
    "merge_tables",
]
