"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from processrepo.models.deployment import Deployment, ProcessDefinition
from processrepo.models.jobs import TimerJob
from processrepo.models.manifest import ReleaseManifest


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""


# ---------------------------------------------------------------------------
# Deployment schemas
# ---------------------------------------------------------------------------


class ResourceUpload(BaseModel):
    """A resource in a deployment upload."""

    name: str
    content: str
    encoding: Literal["utf-8", "base64"] = "utf-8"


class DeploymentCreateRequest(BaseModel):
    """Request body for POST /deployments."""

    name: str
    tenant_id: str | None = None
    resources: list[ResourceUpload] = Field(default_factory=list)
    enable_duplicate_filtering: bool = False
    enforced_app_version: int | None = Field(default=None, ge=1)
    project_manifest: ReleaseManifest | None = None
    project_manifest_yaml: str | None = Field(
        default=None, description="Release manifest as YAML or JSON text"
    )
    activation_date: datetime | None = None
    bpmn20_xsd_validation_enabled: bool = True
    process_validation_enabled: bool = True


class ResourceInfo(BaseModel):
    name: str
    generated: bool
    size: int


class ProcessDefinitionResponse(BaseModel):
    """A deployed process definition."""

    id: str
    key: str
    name: str | None = None
    version: int
    deployment_id: str
    resource_name: str
    tenant_id: str
    suspended: bool

    @classmethod
    def from_definition(cls, definition: ProcessDefinition) -> ProcessDefinitionResponse:
        return cls(
            id=definition.id,
            key=definition.key,
            name=definition.name,
            version=definition.version,
            deployment_id=definition.deployment_id,
            resource_name=definition.resource_name,
            tenant_id=definition.tenant_id,
            suspended=definition.is_suspended,
        )


class DeploymentResponse(BaseModel):
    """A deployment with its resources and definitions."""

    id: str
    name: str | None = None
    tenant_id: str
    version: int | None = None
    project_release_version: str | None = None
    deployment_time: datetime | None = None
    resources: list[ResourceInfo] = []
    process_definitions: list[ProcessDefinitionResponse] = []

    @classmethod
    def from_deployment(
        cls, deployment: Deployment, definitions: list[ProcessDefinition]
    ) -> DeploymentResponse:
        return cls(
            id=deployment.id or "",
            name=deployment.name,
            tenant_id=deployment.tenant_id,
            version=deployment.version,
            project_release_version=deployment.project_release_version,
            deployment_time=deployment.deployment_time,
            resources=[
                ResourceInfo(name=r.name, generated=r.generated, size=len(r.content))
                for r in (deployment.resources or {}).values()
            ],
            process_definitions=[ProcessDefinitionResponse.from_definition(d) for d in definitions],
        )


class DeploymentListResponse(BaseModel):
    """Response for GET /deployments."""

    deployments: list[DeploymentResponse]


class ProcessDefinitionListResponse(BaseModel):
    """Response for GET /process-definitions."""

    process_definitions: list[ProcessDefinitionResponse]


class SuspensionStateRequest(BaseModel):
    """Request body for suspending or activating a process definition.

    Without ``effective_date`` the change is applied immediately; otherwise a
    timer job is scheduled for that moment.
    """

    effective_date: datetime | None = None


class TimerJobResponse(BaseModel):
    id: str
    kind: str
    process_definition_id: str
    tenant_id: str
    due_date: datetime

    @classmethod
    def from_job(cls, job: TimerJob) -> TimerJobResponse:
        return cls(
            id=job.id or "",
            kind=job.kind,
            process_definition_id=job.process_definition_id,
            tenant_id=job.tenant_id,
            due_date=job.due_date,
        )


class JobListResponse(BaseModel):
    """Response for GET /jobs."""

    jobs: list[TimerJobResponse]


class JobExecutionResponse(BaseModel):
    """Response for POST /jobs/execute-due."""

    executed: int
