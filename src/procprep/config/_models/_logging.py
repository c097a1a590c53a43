"""Logging configuration model.

This module provides the LoggingConfig Pydantic model for logging settings.
"""

from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from procprep.config._models._common import LogFormat, LogLevel
from procprep.utils import create_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
        max_bytes: Rotate the log file once it reaches this size. Needs
            backup_count as well.
        backup_count: Number of rotated files kept beside the log file.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: int | None = Field(default=None, gt=0)
    backup_count: int | None = Field(default=None, ge=0)

    def create_logger(
        self, **bindings: object
    ) -> "FilteringBoundLogger":  # noqa: UP037
        """Build a structlog logger from this section."""
        return create_logger(
            level=self.level.value,
            log_format="json" if self.format is LogFormat.JSON else "text",
            log_file=self.file,
            max_bytes=self.max_bytes,
            backup_count=self.backup_count,
            **bindings,
        )
