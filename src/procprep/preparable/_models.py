"""Data models for workload preparation.

This module defines the core data types:
- WorkloadKind: Which preparable variant a descriptor selects
- SourceWorkload / BundleWorkload: Workload descriptors
- ProcessSpec: Immutable handoff value for the lifecycle container
- ProcState / ProcStatus: Runtime bookkeeping of a handed-off process
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class WorkloadKind(StrEnum):
    """Preparable variants.

    - SOURCE: Build a source tree with a language toolchain
    - BUNDLE: Unpack a base64-encoded zip bundle with a bootstrap entry point
    """

    SOURCE = "source"
    BUNDLE = "bundle"


def validate_workload_name(name: str) -> str:
    """Check that a workload name is usable as a single path component.

    Args:
        name: Candidate workload name.

    Returns:
        The unchanged name.

    Raises:
        ValueError: If the name is empty, ``.``/``..``, or contains a path
            separator or NUL.
    """
    if not name:
        msg = "workload name must not be empty"
        raise ValueError(msg)
    if name in {".", ".."}:
        msg = f"workload name {name!r} is reserved"
        raise ValueError(msg)
    if any(ch in name for ch in ("/", "\\", "\0")):
        msg = f"workload name {name!r} must not contain path separators or NUL"
        raise ValueError(msg)
    return name


class _WorkloadBase(BaseModel):
    """Fields shared by every workload descriptor.

    Attributes:
        name: Unique workload identifier; names the workload directory.
        sys_folder: Root under which ``sys_folder/name`` is created. Empty
            means the settings default is used.
        working_dir: Working directory for the process. Empty means the
            workload directory.
        language: Language key selecting the build toolchain.
        keep_alive: Whether the lifecycle container should restart the
            process when it exits.
        args: Arguments passed to the command.
        envs: Environment variables layered over the supervisor's own.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    name: str
    sys_folder: str = ""
    working_dir: str = ""
    language: str = "go"
    keep_alive: bool = True
    args: tuple[str, ...] = ()
    envs: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return validate_workload_name(value)


class SourceWorkload(_WorkloadBase):
    """Descriptor for a workload built from a source tree."""

    kind: Literal["source"] = "source"
    source_path: str

    @field_validator("source_path")
    @classmethod
    def _check_source_path(cls, value: str) -> str:
        if not value:
            msg = "source_path must not be empty"
            raise ValueError(msg)
        return value


class BundleWorkload(_WorkloadBase):
    """Descriptor for a workload shipped as a base64-encoded zip bundle."""

    kind: Literal["bundle"] = "bundle"
    bundle_data: str


WorkloadDescriptor = Annotated[
    SourceWorkload | BundleWorkload,
    Field(discriminator="kind"),
]

_descriptor_adapter: TypeAdapter[SourceWorkload | BundleWorkload] = TypeAdapter(
    WorkloadDescriptor
)


def parse_descriptor(
    data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> SourceWorkload | BundleWorkload:
    """Validate a mapping into the descriptor variant named by its ``kind``.

    Args:
        data: Descriptor fields, including ``kind``.

    Returns:
        A SourceWorkload or BundleWorkload.

    Raises:
        pydantic.ValidationError: If the mapping is not a valid descriptor.
    """
    return _descriptor_adapter.validate_python(data)


@dataclass(frozen=True, slots=True)
class ProcessSpec:
    """Everything the lifecycle container needs to spawn a workload.

    Attributes:
        name: Workload name.
        command: Absolute path of the executable.
        args: Arguments passed to the command.
        env: Environment overlay for the process.
        working_dir: Working directory for the process.
        path: Workload directory holding all runtime files.
        pid_file: Where the container records the process id.
        out_file: Where stdout is appended.
        err_file: Where stderr is appended.
        keep_alive: Whether the container restarts the process on exit.
    """

    name: str
    command: Path
    args: tuple[str, ...]
    env: dict[str, str]
    working_dir: Path
    path: Path
    pid_file: Path
    out_file: Path
    err_file: Path
    keep_alive: bool = True


class ProcState(StrEnum):
    """Lifecycle states as seen by the handoff container.

    - STOPPED: Process has not been spawned, or has exited
    - RUNNING: Process has been spawned
    """

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(slots=True)
class ProcStatus:
    """Mutable runtime status of a handed-off process.

    Attributes:
        state: Current process state.
        pid: Process ID, if spawned.
        started_at: ISO 8601 timestamp of the spawn.
        exit_code: Exit code once the process has been reaped.
    """

    state: ProcState = ProcState.STOPPED
    pid: int | None = None
    started_at: str | None = None
    exit_code: int | None = None
