"""Preparable that unpacks a base64 zip bundle into a runtime directory.

The layout mimics a serverless function package: the bundle is extracted to
``sys_folder/name/runtime`` and started through ``runtime/bootstrap``.
"""

import base64
import binascii
import shutil
from pathlib import Path
from threading import Event  # noqa: TC003 - Used in runtime type annotations
from typing import Final, final

from procprep.exceptions import ArchiveError
from procprep.utils import unzip

from ._base import BasePreparable
from ._models import BundleWorkload

RUNTIME_DIR: Final = "runtime"
BOOTSTRAP: Final = "bootstrap"
STAGED_ARCHIVE: Final = "function.zip"

# Environment keys read by bootstrap entry points
TASK_ROOT_ENV: Final = "LAMBDA_TASK_ROOT"
PATH_ENV: Final = "PATH"

_DIR_MODE: Final = 0o755


@final
class BundlePreparable(BasePreparable[BundleWorkload]):
    """Unpacks ``bundle_data`` and runs ``runtime/bootstrap``.

    Runtime files live in the workload directory as ``<name>.pid``,
    ``<name>.out`` and ``<name>.err``.
    """

    __slots__ = ()

    @property
    def runtime_path(self) -> Path:
        """Return the extraction directory ``sys_folder/name/runtime``."""
        return self.path / RUNTIME_DIR

    @property
    def zip_path(self) -> Path:
        """Return the staged archive path ``sys_folder/name/function.zip``."""
        return self.path / STAGED_ARCHIVE

    @property
    def bin_path(self) -> Path:
        """Return the bootstrap entry point inside the runtime directory."""
        return self.runtime_path / BOOTSTRAP

    @property
    def pid_path(self) -> Path:
        """Return ``sys_folder/name/name.pid``."""
        return self.path / f"{self.name}.pid"

    @property
    def out_path(self) -> Path:
        """Return ``sys_folder/name/name.out``."""
        return self.path / f"{self.name}.out"

    @property
    def err_path(self) -> Path:
        """Return ``sys_folder/name/name.err``."""
        return self.path / f"{self.name}.err"

    def environment(self) -> dict[str, str]:
        """Return descriptor envs plus the task root and PATH overrides."""
        return {
            **self.descriptor.envs,
            TASK_ROOT_ENV: str(self.runtime_path),
            PATH_ENV: self.settings.bundle_path,
        }

    def decode_bundle(self) -> bytes:
        """Decode the base64 bundle payload.

        Raises:
            ArchiveError: If the payload is not valid base64.
        """
        try:
            payload = "".join(self.descriptor.bundle_data.split())
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            msg = f"Bundle for {self.name} is not valid base64: {e}"
            raise ArchiveError(msg, workload=self.name) from e

    def prepare_bin(self, *, cancel: Event | None = None) -> bytes:
        """Decode, stage and extract the bundle, then resolve the command.

        The decoded archive is kept at ``function.zip`` so a failed unpack can
        be replayed. Any previous runtime directory is replaced. On failure
        the command stays unresolved.

        Args:
            cancel: Optional event checked between stages.

        Returns:
            Empty bytes.

        Raises:
            ArchiveError: If the payload is not base64, the archive is
                corrupt, an entry escapes the runtime directory, or the
                bundle has no bootstrap file.
            PrepareCancelledError: If ``cancel`` is set between stages.
            OSError: If a directory or file cannot be written.
        """
        self._prepared = False
        self._command = None

        self._check_cancel(cancel, "decode")
        decoded = self.decode_bundle()

        self.path.mkdir(parents=True, exist_ok=True, mode=_DIR_MODE)
        _ = self.zip_path.write_bytes(decoded)
        self._logger.debug(
            "bundle_staged", zip_path=str(self.zip_path), size=len(decoded)
        )

        self._check_cancel(cancel, "extract")
        if self.runtime_path.exists():
            shutil.rmtree(self.runtime_path)
        self.runtime_path.mkdir(parents=True, exist_ok=True, mode=_DIR_MODE)

        try:
            extracted = unzip(self.zip_path, self.runtime_path)
        except ArchiveError as e:
            e.workload = self.name
            self._logger.error(
                "bundle_extract_failed",
                error=str(e),
                runtime_path=str(self.runtime_path),
            )
            raise

        if not self.bin_path.is_file():
            msg = f"Bundle for {self.name} has no {BOOTSTRAP} entry point at its root"
            self._logger.error(
                "bundle_missing_bootstrap", runtime_path=str(self.runtime_path)
            )
            raise ArchiveError(msg, workload=self.name)

        self._command = self.bin_path
        self._prepared = True
        self._logger.info(
            "bundle_extracted", files=len(extracted), command=str(self._command)
        )
        return b""
