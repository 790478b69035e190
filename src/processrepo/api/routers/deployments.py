"""Deployment endpoints: admit bundles, inspect and delete deployments."""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException, Response

from processrepo.api.deps import get_repository_service
from processrepo.api.schemas import (
    DeploymentCreateRequest,
    DeploymentListResponse,
    DeploymentResponse,
)
from processrepo.models.deployment import Deployment
from processrepo.models.errors import (
    DeploymentCompilationError,
    DeploymentNotFoundError,
    ManifestError,
)
from processrepo.service.builder import DeploymentBuilder
from processrepo.service.repository import RepositoryService

router = APIRouter()


# -- helpers -----------------------------------------------------------------


def _decode(content: str, encoding: str, resource_name: str) -> bytes:
    if encoding == "base64":
        try:
            return base64.b64decode(content, validate=True)
        except binascii.Error:
            raise HTTPException(
                status_code=422, detail=f"Resource '{resource_name}' is not valid base64"
            ) from None
    return content.encode("utf-8")


def _builder_from_request(body: DeploymentCreateRequest, svc: RepositoryService) -> DeploymentBuilder:
    builder = svc.create_deployment().name(body.name).tenant_id(body.tenant_id)
    try:
        for resource in body.resources:
            builder.add_bytes(resource.name, _decode(resource.content, resource.encoding, resource.name))
        if body.enable_duplicate_filtering:
            builder.enable_duplicate_filtering()
        if body.enforced_app_version is not None:
            builder.set_enforced_app_version(body.enforced_app_version)
        if body.project_manifest is not None:
            builder.set_project_manifest(body.project_manifest)
        elif body.project_manifest_yaml is not None:
            builder.set_project_manifest_yaml(body.project_manifest_yaml)
    except (ManifestError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    if body.activation_date is not None:
        builder.activate_process_definitions_on(body.activation_date)
    if not body.bpmn20_xsd_validation_enabled:
        builder.disable_schema_validation()
    if not body.process_validation_enabled:
        builder.disable_process_validation()
    return builder


def _response(deployment: Deployment, svc: RepositoryService) -> DeploymentResponse:
    definitions = svc.list_process_definitions(deployment_id=deployment.id)
    return DeploymentResponse.from_deployment(deployment, definitions)


# -- endpoints ---------------------------------------------------------------


@router.post("", response_model=DeploymentResponse, status_code=201)
async def create_deployment(
    body: DeploymentCreateRequest,
    response: Response,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> DeploymentResponse:
    """Admit a bundle. Returns 200 with the existing deployment for a duplicate."""
    builder = _builder_from_request(body, svc)
    try:
        deployment = builder.deploy()
    except DeploymentCompilationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "resource": exc.resource_name},
        ) from None
    if not deployment.is_new:
        response.status_code = 200
    return _response(deployment, svc)


@router.get("", response_model=DeploymentListResponse)
async def list_deployments(
    name: str | None = None,
    tenant_id: str | None = None,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> DeploymentListResponse:
    """List deployments, optionally filtered by name and tenant."""
    deployments = svc.list_deployments(name=name, tenant_id=tenant_id)
    return DeploymentListResponse(deployments=[_response(d, svc) for d in deployments])


@router.get("/{deployment_id}", response_model=DeploymentResponse)
async def get_deployment(
    deployment_id: str,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> DeploymentResponse:
    """Get a single deployment."""
    try:
        deployment = svc.get_deployment(deployment_id)
    except DeploymentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
    return _response(deployment, svc)


@router.delete("/{deployment_id}", status_code=204)
async def delete_deployment(
    deployment_id: str,
    svc: RepositoryService = Depends(get_repository_service),  # noqa: B008
) -> None:
    """Delete a deployment together with its process definitions."""
    try:
        svc.delete_deployment(deployment_id)
    except DeploymentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from None
