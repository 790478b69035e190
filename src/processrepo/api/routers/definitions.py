"""Process definition and timer job endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from processrepo.api.deps import get_repository_service
from processrepo.api.schemas import (
    JobExecutionResponse,
    JobListResponse,
    ProcessDefinitionListResponse,
    ProcessDefinitionResponse,
    SuspensionStateRequest,
    TimerJobResponse,
)
from processrepo.models.errors import ProcessDefinitionNotFoundError, SuspensionStateError
from processrepo.service.repository import RepositoryService

definitions_router = APIRouter()
jobs_router = APIRouter()


@definitions_router.get("", response_model=ProcessDefinitionListResponse)
async def list_process_definitions(
    deployment_id: str | None = None,
    key: str | None = None,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> ProcessDefinitionListResponse:
    """List process definitions, optionally by deployment or key."""
    definitions = svc.list_process_definitions(deployment_id=deployment_id, key=key)
    return ProcessDefinitionListResponse(
        process_definitions=[ProcessDefinitionResponse.from_definition(d) for d in definitions]
    )


@definitions_router.get("/{definition_id}", response_model=ProcessDefinitionResponse)
async def get_process_definition(
    definition_id: str,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> ProcessDefinitionResponse:
    """Get a single process definition."""
    try:
        definition = svc.get_process_definition(definition_id)
    except ProcessDefinitionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    return ProcessDefinitionResponse.from_definition(definition)


@definitions_router.post("/{definition_id}/suspend", response_model=ProcessDefinitionResponse)
async def suspend_process_definition(
    definition_id: str,
    body: SuspensionStateRequest | None = None,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> ProcessDefinitionResponse:
    """Suspend a process definition, now or at ``effective_date``."""
    effective_date = body.effective_date if body is not None else None
    try:
        definition = svc.suspend_process_definition(definition_id, effective_date)
    except ProcessDefinitionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except SuspensionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None
    return ProcessDefinitionResponse.from_definition(definition)


@definitions_router.post("/{definition_id}/activate", response_model=ProcessDefinitionResponse)
async def activate_process_definition(
    definition_id: str,
    body: SuspensionStateRequest | None = None,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> ProcessDefinitionResponse:
    """Activate a process definition, now or at ``effective_date``."""
    effective_date = body.effective_date if body is not None else None
    try:
        definition = svc.activate_process_definition(definition_id, effective_date)
    except ProcessDefinitionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    except SuspensionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from None
    return ProcessDefinitionResponse.from_definition(definition)


@jobs_router.get("", response_model=JobListResponse)
async def list_jobs(
    process_definition_id: str | None = None,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> JobListResponse:
    """List pending timer jobs."""
    jobs = svc.list_jobs(process_definition_id=process_definition_id)
    return JobListResponse(jobs=[TimerJobResponse.from_job(j) for j in jobs])


@jobs_router.post("/execute-due", response_model=JobExecutionResponse)
async def execute_due_jobs(
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> JobExecutionResponse:
    """Apply every timer job that is due now."""
    return JobExecutionResponse(executed=svc.execute_due_jobs())
