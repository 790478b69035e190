"""Repository service, the entry point for deploying and querying definitions."""

from __future__ import annotations

import logging
from datetime import datetime

from processrepo.admission.activation import ActivationScheduler
from processrepo.admission.controller import AdmissionController
from processrepo.admission.request import DeploymentRequest
from processrepo.models.deployment import Deployment, ProcessDefinition, Resource
from processrepo.models.errors import DeploymentNotFoundError
from processrepo.models.jobs import TimerJob
from processrepo.service.builder import DeploymentBuilder
from processrepo.service.clock import Clock, SystemClock
from processrepo.service.commands import (
    ActivateProcessDefinition,
    AdministrativeCommandChannel,
    SuspendProcessDefinition,
)
from processrepo.service.deployer import DeploymentManager, ProcessDefinitionCache
from processrepo.service.events import ListenerEventDispatcher
from processrepo.settings import Settings
from processrepo.storage.memory import InMemoryStorage
from processrepo.storage.repository import Storage

logger = logging.getLogger("processrepo.repository")


class RepositoryService:
    """Deploys bundles and exposes what has been deployed.

    Every admission runs in its own storage transaction: a failure anywhere
    in admission leaves no deployment, definition or job behind.
    """

    def __init__(
        self,
        storage: Storage,
        clock: Clock,
        events: ListenerEventDispatcher,
        deployment_manager: DeploymentManager,
        commands: AdministrativeCommandChannel,
    ) -> None:
        self.storage = storage
        self.clock = clock
        self.events = events
        self.deployment_manager = deployment_manager
        self.commands = commands
        self._admission = AdmissionController(
            clock=clock,
            deployments=storage.deployments,
            events=events,
            deployment_manager=deployment_manager,
            activation=ActivationScheduler(commands),
        )

    # -- deployments -----------------------------------------------------------

    def create_deployment(self) -> DeploymentBuilder:
        return DeploymentBuilder(self)

    def deploy(self, request: DeploymentRequest | DeploymentBuilder) -> Deployment:
        if isinstance(request, DeploymentBuilder):
            request = request.build()
        try:
            with self.storage.transaction():
                return self._admission.admit(request)
        except Exception:
            # Definitions compiled before the failure were rolled back with
            # the transaction; drop them from the cache as well.
            deployment = request.deployment
            self.deployment_manager.evict_deployment(
                [d.id for d in deployment.deployed_artifacts(ProcessDefinition)]
            )
            deployment.clear_deployed_artifacts()
            logger.warning("Deployment '%s' was not admitted", deployment.name)
            raise

    def get_deployment(self, deployment_id: str) -> Deployment:
        deployment = self.storage.deployments.get(deployment_id)
        if deployment is None:
            raise DeploymentNotFoundError(deployment_id)
        return deployment

    def list_deployments(
        self, name: str | None = None, tenant_id: str | None = None
    ) -> list[Deployment]:
        return self.storage.deployments.list(name=name, tenant_id=tenant_id)

    def get_resource(self, deployment_id: str, resource_name: str) -> Resource:
        resource = self.storage.deployments.find_resource(deployment_id, resource_name)
        if resource is None:
            raise KeyError(f"Resource '{resource_name}' not found in deployment '{deployment_id}'")
        return resource

    def delete_deployment(self, deployment_id: str) -> None:
        """Remove a deployment with its definitions and their pending jobs."""
        with self.storage.transaction():
            if self.storage.deployments.get(deployment_id) is None:
                raise DeploymentNotFoundError(deployment_id)
            removed = self.storage.process_definitions.delete_by_deployment(deployment_id)
            for definition_id in removed:
                for job in self.storage.jobs.list(process_definition_id=definition_id):
                    self.storage.jobs.delete(job.id)
            self.storage.deployments.delete(deployment_id)
        self.deployment_manager.evict_deployment(removed)
        logger.info("Deleted deployment %s (%d definition(s))", deployment_id, len(removed))

    # -- process definitions ---------------------------------------------------

    def get_process_definition(self, definition_id: str) -> ProcessDefinition:
        """Look a definition up through the cache, redeploying on a miss."""
        definition = self.deployment_manager.find_deployed_process_definition(definition_id)
        return definition.model_copy()

    def list_process_definitions(
        self, deployment_id: str | None = None, key: str | None = None
    ) -> list[ProcessDefinition]:
        return self.storage.process_definitions.list(deployment_id=deployment_id, key=key)

    def suspend_process_definition(
        self, definition_id: str, effective_date: datetime | None = None
    ) -> ProcessDefinition:
        """Suspend a definition now, or schedule it for ``effective_date``."""
        with self.storage.transaction():
            definition = self.get_process_definition(definition_id)
            self.commands.execute(
                SuspendProcessDefinition(definition.id, definition.tenant_id, effective_date)
            )
        return self.get_process_definition(definition_id)

    def activate_process_definition(
        self, definition_id: str, effective_date: datetime | None = None
    ) -> ProcessDefinition:
        with self.storage.transaction():
            definition = self.get_process_definition(definition_id)
            self.commands.execute(
                ActivateProcessDefinition(definition.id, definition.tenant_id, effective_date)
            )
        return self.get_process_definition(definition_id)

    # -- timer jobs ------------------------------------------------------------

    def list_jobs(self, process_definition_id: str | None = None) -> list[TimerJob]:
        return self.storage.jobs.list(process_definition_id=process_definition_id)

    def execute_due_jobs(self) -> int:
        return self.commands.execute_due_jobs()


def create_repository_service(
    settings: Settings | None = None,
    clock: Clock | None = None,
    storage: Storage | None = None,
) -> RepositoryService:
    """Wire a repository service over in-memory storage by default."""
    if settings is None:
        settings = Settings()
    clock = clock or SystemClock()
    storage = storage or InMemoryStorage()
    cache = ProcessDefinitionCache(limit=settings.process_definition_cache_limit)
    return RepositoryService(
        storage=storage,
        clock=clock,
        events=ListenerEventDispatcher(enabled=settings.event_dispatcher_enabled),
        deployment_manager=DeploymentManager(storage, cache),
        commands=AdministrativeCommandChannel(storage, clock, cache),
    )
