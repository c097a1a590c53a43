"""Document model for the persisted workload registry."""

from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from procprep.preparable import WorkloadDescriptor


class RegistryDocument(BaseModel):
    """The TOML registry document.

    Each workload is stored as a ``[workloads.<name>]`` table whose ``name``
    field must match its key.

    Attributes:
        workloads: Descriptors keyed by workload name.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    workloads: dict[str, WorkloadDescriptor] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_keys(self) -> Self:
        for key, descriptor in self.workloads.items():
            if key != descriptor.name:
                msg = (
                    f"registry key {key!r} does not match "
                    f"workload name {descriptor.name!r}"
                )
                raise ValueError(msg)
        return self
