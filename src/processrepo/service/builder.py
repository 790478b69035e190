"""Fluent builder for deployment requests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from processrepo.admission.request import DeploymentRequest
from processrepo.models.deployment import NO_TENANT_ID, Deployment, Resource
from processrepo.models.manifest import ReleaseManifest
from processrepo.parser.manifest import ManifestLoader

if TYPE_CHECKING:
    from processrepo.service.repository import RepositoryService


class DeploymentBuilder:
    """Collects resources and admission options, then deploys them.

    Obtain one from :meth:`RepositoryService.create_deployment`.
    """

    def __init__(self, service: RepositoryService | None = None) -> None:
        self._service = service
        self._name: str | None = None
        self._tenant_id = NO_TENANT_ID
        self._resources: dict[str, Resource] = {}
        self._duplicate_filter_enabled = False
        self._enforced_app_version: int | None = None
        self._project_manifest: ReleaseManifest | None = None
        self._bpmn20_xsd_validation_enabled = True
        self._process_validation_enabled = True
        self._activation_date: datetime | None = None

    # -- bundle ----------------------------------------------------------------

    def name(self, name: str) -> DeploymentBuilder:
        self._name = name
        return self

    def tenant_id(self, tenant_id: str | None) -> DeploymentBuilder:
        self._tenant_id = tenant_id or NO_TENANT_ID
        return self

    def add_bytes(self, resource_name: str, content: bytes) -> DeploymentBuilder:
        if resource_name in self._resources:
            raise ValueError(f"Resource '{resource_name}' added twice")
        self._resources[resource_name] = Resource(name=resource_name, content=content)
        return self

    def add_string(self, resource_name: str, text: str) -> DeploymentBuilder:
        return self.add_bytes(resource_name, text.encode("utf-8"))

    # -- admission options ---------------------------------------------------

    def enable_duplicate_filtering(self) -> DeploymentBuilder:
        self._duplicate_filter_enabled = True
        return self

    def disable_schema_validation(self) -> DeploymentBuilder:
        self._bpmn20_xsd_validation_enabled = False
        return self

    def disable_process_validation(self) -> DeploymentBuilder:
        self._process_validation_enabled = False
        return self

    def disable_bpmn_validation(self) -> DeploymentBuilder:
        """Skip both the schema check and the process check."""
        self._bpmn20_xsd_validation_enabled = False
        self._process_validation_enabled = False
        return self

    def activate_process_definitions_on(self, date: datetime) -> DeploymentBuilder:
        """Keep new definitions suspended until ``date`` (naive dates are UTC)."""
        self._activation_date = date if date.tzinfo is not None else date.replace(tzinfo=UTC)
        return self

    def set_enforced_app_version(self, version: int) -> DeploymentBuilder:
        if version < 1:
            raise ValueError(f"Enforced version must be >= 1, got {version}")
        self._enforced_app_version = version
        return self

    def set_project_manifest(self, manifest: ReleaseManifest) -> DeploymentBuilder:
        self._project_manifest = manifest
        return self

    def set_project_manifest_yaml(self, text: str) -> DeploymentBuilder:
        """Parse and attach a release manifest given as YAML or JSON text."""
        return self.set_project_manifest(ManifestLoader().load_string(text))

    # -- terminal --------------------------------------------------------------

    def build(self) -> DeploymentRequest:
        deployment = Deployment(
            name=self._name,
            tenant_id=self._tenant_id,
            resources=dict(self._resources),
        )
        return DeploymentRequest(
            deployment=deployment,
            duplicate_filter_enabled=self._duplicate_filter_enabled,
            enforced_app_version=self._enforced_app_version,
            project_manifest=self._project_manifest,
            bpmn20_xsd_validation_enabled=self._bpmn20_xsd_validation_enabled,
            process_validation_enabled=self._process_validation_enabled,
            process_definitions_activation_date=self._activation_date,
        )

    def deploy(self) -> Deployment:
        if self._service is None:
            raise RuntimeError("DeploymentBuilder is not bound to a RepositoryService")
        return self._service.deploy(self.build())
