"""Pydantic domain models for the process repository."""

from processrepo.models.deployment import (
    NO_TENANT_ID,
    Deployment,
    ProcessDefinition,
    Resource,
    SuspensionState,
)
from processrepo.models.jobs import JobKind, TimerJob
from processrepo.models.manifest import ReleaseManifest

__all__ = [
    "NO_TENANT_ID",
    "Deployment",
    "JobKind",
    "ProcessDefinition",
    "ReleaseManifest",
    "Resource",
    "SuspensionState",
    "TimerJob",
]
