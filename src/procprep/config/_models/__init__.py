"""Configuration models."""

from procprep.config._models._common import LogFormat, LogLevel
from procprep.config._models._logging import LoggingConfig
from procprep.config._models._settings import PrepareSettings

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "PrepareSettings",
]
