"""Abstract repository interfaces for persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from processrepo.models.deployment import Deployment, ProcessDefinition, Resource
from processrepo.models.jobs import TimerJob


class DeploymentRepository(ABC):
    @abstractmethod
    def find_latest_by_name(self, name: str | None) -> Deployment | None:
        """Most recently created deployment with this name and no tenant."""

    @abstractmethod
    def find_by_name_and_tenant(self, name: str | None, tenant_id: str) -> list[Deployment]:
        """Deployments with this name and tenant, newest identifier first."""

    @abstractmethod
    def insert(self, deployment: Deployment) -> Deployment: ...

    @abstractmethod
    def get(self, deployment_id: str) -> Deployment | None: ...

    @abstractmethod
    def list(self, name: str | None = None, tenant_id: str | None = None) -> list[Deployment]: ...

    @abstractmethod
    def find_resource(self, deployment_id: str, resource_name: str) -> Resource | None: ...

    @abstractmethod
    def delete(self, deployment_id: str) -> None: ...


class ProcessDefinitionRepository(ABC):
    @abstractmethod
    def insert(self, definition: ProcessDefinition) -> ProcessDefinition: ...

    @abstractmethod
    def get(self, definition_id: str) -> ProcessDefinition | None: ...

    @abstractmethod
    def find_latest_by_key(self, key: str, tenant_id: str) -> ProcessDefinition | None: ...

    @abstractmethod
    def list(
        self, deployment_id: str | None = None, key: str | None = None
    ) -> list[ProcessDefinition]: ...

    @abstractmethod
    def update(self, definition: ProcessDefinition) -> ProcessDefinition: ...

    @abstractmethod
    def delete_by_deployment(self, deployment_id: str) -> list[str]:
        """Delete a deployment's definitions and return their IDs."""


class TimerJobRepository(ABC):
    @abstractmethod
    def insert(self, job: TimerJob) -> TimerJob: ...

    @abstractmethod
    def list(self, process_definition_id: str | None = None) -> list[TimerJob]: ...

    @abstractmethod
    def find_due(self, now: datetime) -> list[TimerJob]:
        """Jobs whose due date is at or before ``now``, oldest first."""

    @abstractmethod
    def delete(self, job_id: str) -> None: ...


class Storage(ABC):
    """Bundles the repositories that share one transaction boundary."""

    deployments: DeploymentRepository
    process_definitions: ProcessDefinitionRepository
    jobs: TimerJobRepository

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Run the enclosed writes atomically; roll back if the block raises."""
