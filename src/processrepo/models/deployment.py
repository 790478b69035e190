"""Deployment, resource and process definition models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, Field, PrivateAttr, field_validator

NO_TENANT_ID = ""

_A = TypeVar("_A", bound=BaseModel)


class SuspensionState(StrEnum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Resource(BaseModel):
    """A named blob inside a deployment.

    ``generated`` marks artifacts produced by the engine itself (derived
    diagrams and the like); they are skipped by duplicate comparison.
    """

    model_config = {"frozen": True}

    name: str
    content: bytes
    generated: bool = False


class ProcessDefinition(BaseModel):
    """An executable definition compiled from a deployment resource."""

    id: str
    key: str
    name: str | None = None
    version: int
    deployment_id: str
    resource_name: str
    tenant_id: str = NO_TENANT_ID
    suspension_state: SuspensionState = SuspensionState.ACTIVE

    @property
    def is_suspended(self) -> bool:
        return self.suspension_state is SuspensionState.SUSPENDED


class Deployment(BaseModel):
    """A named, versioned bundle of process resources."""

    id: str | None = None
    name: str | None = None
    tenant_id: str = NO_TENANT_ID
    resources: dict[str, Resource] | None = Field(default_factory=dict)
    version: int | None = None
    project_release_version: str | None = None
    deployment_time: datetime | None = None
    is_new: bool = False

    # Derived artifacts attached by deployers; never persisted with the row.
    _artifacts: list[BaseModel] = PrivateAttr(default_factory=list)

    @field_validator("tenant_id", mode="before")
    @classmethod
    def _normalise_tenant(cls, value: str | None) -> str:
        return NO_TENANT_ID if value is None else value

    @property
    def has_tenant(self) -> bool:
        return self.tenant_id != NO_TENANT_ID

    @property
    def resource_names(self) -> frozenset[str]:
        return frozenset(self.resources or {})

    def add_deployed_artifact(self, artifact: BaseModel) -> None:
        self._artifacts.append(artifact)

    def deployed_artifacts(self, artifact_type: type[_A]) -> list[_A]:
        """Return attached artifacts of the given type, in attachment order."""
        return [a for a in self._artifacts if isinstance(a, artifact_type)]

    def clear_deployed_artifacts(self) -> None:
        self._artifacts.clear()
