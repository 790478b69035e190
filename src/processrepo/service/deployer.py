"""Artifact compilation: turns deployment resources into process definitions."""

from __future__ import annotations

import logging
import threading
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any

from processrepo.models.deployment import Deployment, ProcessDefinition, Resource
from processrepo.models.errors import (
    DeploymentCompilationError,
    DeploymentNotFoundError,
    ProcessDefinitionNotFoundError,
)
from processrepo.storage.repository import Storage

logger = logging.getLogger("processrepo.deployer")

BPMN20_XSD_VALIDATION_ENABLED = "bpmn20XsdValidationEnabled"
PROCESS_VALIDATION_ENABLED = "processValidationEnabled"

BPMN_NAMESPACE = "http://www.omg.org/spec/BPMN/20100524/MODEL"
BPMN_RESOURCE_SUFFIXES = (".bpmn20.xml", ".bpmn")

DeploymentSettings = dict[str, Any]


class Deployer(ABC):
    """Compiles one family of resources for a deployment."""

    @abstractmethod
    def deploy(self, deployment: Deployment, settings: DeploymentSettings) -> None: ...


class ProcessDefinitionCache:
    """LRU cache of compiled process definitions, keyed by definition ID."""

    def __init__(self, limit: int = 1000) -> None:
        self._limit = limit
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, ProcessDefinition] = OrderedDict()

    def get(self, definition_id: str) -> ProcessDefinition | None:
        with self._lock:
            definition = self._entries.get(definition_id)
            if definition is not None:
                self._entries.move_to_end(definition_id)
            return definition

    def add(self, definition: ProcessDefinition) -> None:
        with self._lock:
            self._entries[definition.id] = definition
            self._entries.move_to_end(definition.id)
            while len(self._entries) > self._limit:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted process definition %s from cache", evicted)

    def remove(self, definition_id: str) -> None:
        with self._lock:
            self._entries.pop(definition_id, None)

    def __contains__(self, definition_id: object) -> bool:
        with self._lock:
            return definition_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class BpmnDeployer(Deployer):
    """Extracts ``<process>`` elements from BPMN 2.0 resources.

    New deployments get freshly versioned definitions (latest version of the
    key within the tenant, plus one). Deployments rehydrated from storage
    only reload their existing definitions into the cache.
    """

    def __init__(self, storage: Storage, cache: ProcessDefinitionCache) -> None:
        self._storage = storage
        self._cache = cache

    def deploy(self, deployment: Deployment, settings: DeploymentSettings) -> None:
        if not deployment.is_new:
            for definition in self._storage.process_definitions.list(
                deployment_id=deployment.id
            ):
                self._cache.add(definition)
                deployment.add_deployed_artifact(definition)
            return

        for resource in (deployment.resources or {}).values():
            if resource.generated or not resource.name.endswith(BPMN_RESOURCE_SUFFIXES):
                continue
            for key, name in self._parse_processes(resource, settings):
                definition = self._new_definition(deployment, resource, key, name)
                self._storage.process_definitions.insert(definition)
                self._cache.add(definition)
                deployment.add_deployed_artifact(definition)
                logger.info(
                    "Deployed process definition %s from %s", definition.id, resource.name
                )

    def _new_definition(
        self, deployment: Deployment, resource: Resource, key: str, name: str | None
    ) -> ProcessDefinition:
        latest = self._storage.process_definitions.find_latest_by_key(key, deployment.tenant_id)
        version = latest.version + 1 if latest is not None else 1
        return ProcessDefinition(
            id=f"{key}:{version}:{deployment.id}",
            key=key,
            name=name,
            version=version,
            deployment_id=deployment.id,
            resource_name=resource.name,
            tenant_id=deployment.tenant_id,
        )

    @staticmethod
    def _parse_processes(
        resource: Resource, settings: DeploymentSettings
    ) -> list[tuple[str, str | None]]:
        """Return ``(key, name)`` for each executable process in the resource."""
        try:
            root = ET.fromstring(resource.content)
        except ET.ParseError as exc:
            raise DeploymentCompilationError(resource.name, f"malformed XML ({exc})") from exc

        if settings.get(BPMN20_XSD_VALIDATION_ENABLED, True) and (
            root.tag != f"{{{BPMN_NAMESPACE}}}definitions"
        ):
            raise DeploymentCompilationError(
                resource.name, "root element is not a BPMN 2.0 'definitions' element"
            )

        processes: list[tuple[str, str | None]] = []
        for element in root.iter(f"{{{BPMN_NAMESPACE}}}process"):
            key = element.get("id")
            if not key:
                if settings.get(PROCESS_VALIDATION_ENABLED, True):
                    raise DeploymentCompilationError(resource.name, "process without an id")
                continue
            if element.get("isExecutable", "true").lower() == "false":
                logger.warning(
                    "Skipping non-executable process %s in %s", key, resource.name
                )
                continue
            processes.append((key, element.get("name")))
        return processes


class DeploymentManager:
    """Runs the registered deployers and owns the definition cache."""

    def __init__(
        self,
        storage: Storage,
        cache: ProcessDefinitionCache,
        deployers: list[Deployer] | None = None,
    ) -> None:
        self._storage = storage
        self.cache = cache
        self._deployers = deployers if deployers is not None else [BpmnDeployer(storage, cache)]

    def deploy(self, deployment: Deployment, settings: DeploymentSettings | None = None) -> None:
        for deployer in self._deployers:
            deployer.deploy(deployment, settings or {})

    def find_deployed_process_definition(self, definition_id: str) -> ProcessDefinition:
        """Return a definition, recompiling its deployment on a cache miss."""
        cached = self.cache.get(definition_id)
        if cached is not None:
            return cached
        definition = self._storage.process_definitions.get(definition_id)
        if definition is None:
            raise ProcessDefinitionNotFoundError(definition_id)
        deployment = self._storage.deployments.get(definition.deployment_id)
        if deployment is None:
            raise DeploymentNotFoundError(definition.deployment_id)
        self.deploy(deployment)
        return self.cache.get(definition_id) or definition

    def evict_deployment(self, definition_ids: list[str]) -> None:
        for definition_id in definition_ids:
            self.cache.remove(definition_id)
