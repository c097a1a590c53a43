"""Top-level settings model for workload preparation."""

import re
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from procprep.config._defaults import DEFAULT_TOOLCHAINS
from procprep.config._models._logging import LoggingConfig

_PLACEHOLDER = re.compile(r"\{(output|source)\}")


class PrepareSettings(BaseModel):
    """Settings shared by every preparable.

    Attributes:
        sys_folder: Default root for workload directories when a descriptor
            does not name one.
        build_timeout_ms: Deadline for a source build in milliseconds.
            Zero disables the deadline.
        bundle_path: Value of PATH injected into bundle workloads.
        toolchains: Build command templates keyed by language. Each template
            is an argv list where ``{output}`` and ``{source}`` are replaced
            with the binary path and the normalized source path.
        logging: Logging section.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    sys_folder: str = ""
    build_timeout_ms: int = Field(default=300000, ge=0)
    bundle_path: str = "/usr/local/bin:/usr/bin:/bin"
    toolchains: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: {k: tuple(v) for k, v in DEFAULT_TOOLCHAINS.items()}
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("toolchains")
    @classmethod
    def _check_templates(
        cls, value: dict[str, tuple[str, ...]]
    ) -> dict[str, tuple[str, ...]]:
        for language, template in value.items():
            if not template:
                msg = f"toolchain for {language!r} is empty"
                raise ValueError(msg)
            if not any("{output}" in part for part in template):
                msg = f"toolchain for {language!r} has no {{output}} placeholder"
                raise ValueError(msg)
        return value

    @property
    def build_timeout(self) -> int | None:
        """Return the build deadline in milliseconds, or None for no limit."""
        return self.build_timeout_ms or None

    def toolchain_argv(
        self,
        language: str,
        *,
        output: str,
        source: str,
    ) -> tuple[str, ...] | None:
        """Render the build command for a language.

        Args:
            language: Workload language key.
            output: Binary path the toolchain must produce.
            source: Normalized source directory.

        Returns:
            The argv tuple, or None if no toolchain is configured for
            ``language``.
        """
        template = self.toolchains.get(language)
        if template is None:
            return None
        values = {"output": output, "source": source}
        return tuple(
            _PLACEHOLDER.sub(lambda m: values[m.group(1)], part) for part in template
        )
