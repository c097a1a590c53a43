"""Preparable that compiles a source tree into the workload binary."""

from pathlib import Path
from threading import Event  # noqa: TC003 - Used in runtime type annotations
from typing import final

from procprep.exceptions import ToolchainError
from procprep.utils import CommandConfig, run_command, truncate_output

from ._base import BasePreparable, normalize_dir
from ._models import SourceWorkload


@final
class SourcePreparable(BasePreparable[SourceWorkload]):
    """Builds ``source_path`` into ``sys_folder/name/name``.

    Runtime files sit next to the binary: ``<bin>.pid``, ``<bin>.out`` and
    ``<bin>.err``.
    """

    __slots__ = ()

    @property
    def source_path(self) -> str:
        """Return the source directory without trailing separators."""
        return normalize_dir(self.descriptor.source_path)

    @property
    def bin_path(self) -> Path:
        """Return the compiler output path ``sys_folder/name/name``."""
        return self.path / self.name

    @property
    def pid_path(self) -> Path:
        """Return ``<bin>.pid``."""
        return Path(f"{self.bin_path}.pid")

    @property
    def out_path(self) -> Path:
        """Return ``<bin>.out``."""
        return Path(f"{self.bin_path}.out")

    @property
    def err_path(self) -> Path:
        """Return ``<bin>.err``."""
        return Path(f"{self.bin_path}.err")

    def build_command(self) -> tuple[str, ...]:
        """Render the toolchain invocation for this workload.

        Returns:
            The argv of the build command.

        Raises:
            ToolchainError: If no toolchain is configured for the language.
        """
        argv = self.settings.toolchain_argv(
            self.descriptor.language,
            output=str(self.bin_path),
            source=self.source_path,
        )
        if argv is None:
            language = self.descriptor.language
            msg = f"No build toolchain configured for language {language!r}"
            raise ToolchainError(msg, workload=self.name)
        return argv

    def prepare_bin(self, *, cancel: Event | None = None) -> bytes:
        """Compile the source tree and resolve the command to the binary.

        The command is resolved to ``bin_path`` before the build runs, so it
        is known even when the build fails; the workload only counts as
        prepared once the toolchain exits successfully.

        Args:
            cancel: Optional event that kills the toolchain when set.

        Returns:
            The toolchain's stdout followed by its stderr.

        Raises:
            ToolchainError: If the toolchain is missing, fails, times out or
                is cancelled. The captured output is attached.
            OSError: If the workload directory cannot be created.
        """
        self._prepared = False
        self._command = self.bin_path
        argv = self.build_command()

        self._check_cancel(cancel, "build")
        self.path.mkdir(parents=True, exist_ok=True)

        self._logger.info("build_started", argv=list(argv))
        result = run_command(
            CommandConfig(
                argv=argv,
                timeout_ms=self.settings.build_timeout,
                cancel=cancel,
            )
        )

        if not result.success:
            self._logger.warning(
                "build_failed",
                exit_code=result.exit_code,
                timed_out=result.timed_out,
                cancelled=result.cancelled,
                output=truncate_output(
                    result.output.decode("utf-8", errors="replace")
                ),
            )
            raise ToolchainError(
                result.error or "Build failed",
                workload=self.name,
                output=result.output,
                exit_code=result.exit_code,
                timed_out=result.timed_out,
                cancelled=result.cancelled,
            )

        self._prepared = True
        self._logger.info("build_succeeded", bin_path=str(self.bin_path))
        return result.output
