"""In-memory storage implementation for development/testing."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from processrepo.models.deployment import Deployment, ProcessDefinition, Resource
from processrepo.models.errors import StorageError
from processrepo.models.jobs import TimerJob
from processrepo.storage.repository import (
    DeploymentRepository,
    ProcessDefinitionRepository,
    Storage,
    TimerJobRepository,
)

logger = logging.getLogger("processrepo.storage")


def _id_order(entity_id: str | None) -> tuple[int, str]:
    # Generated IDs are decimal strings; order them numerically.
    value = entity_id or ""
    return len(value), value


def _time_order(moment: datetime | None) -> float:
    return moment.timestamp() if moment is not None else float("-inf")


class _IdGenerator:
    """Thread-safe monotonically increasing identifier source."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            return str(next(self._counter))


class InMemoryDeploymentRepository(DeploymentRepository):
    """In-memory deployment repository.

    Rows are stored and returned as copies; returned copies are flagged as
    not new since they are rehydrated from storage.
    """

    def __init__(self, ids: _IdGenerator) -> None:
        self._ids = ids
        self._store: dict[str, Deployment] = {}

    @staticmethod
    def _rehydrate(deployment: Deployment) -> Deployment:
        copy = deployment.model_copy(deep=True, update={"is_new": False})
        copy.clear_deployed_artifacts()
        return copy

    def find_latest_by_name(self, name: str | None) -> Deployment | None:
        matches = [d for d in self._store.values() if d.name == name and not d.has_tenant]
        if not matches:
            return None
        latest = max(
            matches,
            key=lambda d: (_time_order(d.deployment_time), _id_order(d.id)),
        )
        return self._rehydrate(latest)

    def find_by_name_and_tenant(self, name: str | None, tenant_id: str) -> list[Deployment]:
        matches = [
            d for d in self._store.values() if d.name == name and d.tenant_id == tenant_id
        ]
        matches.sort(key=lambda d: _id_order(d.id), reverse=True)
        return [self._rehydrate(d) for d in matches]

    def insert(self, deployment: Deployment) -> Deployment:
        if deployment.id is None:
            deployment.id = self._ids.next_id()
        elif deployment.id in self._store:
            raise StorageError(f"Deployment '{deployment.id}' already exists")
        self._store[deployment.id] = self._rehydrate(deployment)
        return deployment

    def get(self, deployment_id: str) -> Deployment | None:
        deployment = self._store.get(deployment_id)
        return self._rehydrate(deployment) if deployment is not None else None

    def list(self, name: str | None = None, tenant_id: str | None = None) -> list[Deployment]:
        deployments = sorted(self._store.values(), key=lambda d: _id_order(d.id))
        if name is not None:
            deployments = [d for d in deployments if d.name == name]
        if tenant_id is not None:
            deployments = [d for d in deployments if d.tenant_id == tenant_id]
        return [self._rehydrate(d) for d in deployments]

    def find_resource(self, deployment_id: str, resource_name: str) -> Resource | None:
        deployment = self._store.get(deployment_id)
        if deployment is None or deployment.resources is None:
            return None
        return deployment.resources.get(resource_name)

    def delete(self, deployment_id: str) -> None:
        self._store.pop(deployment_id, None)


class InMemoryProcessDefinitionRepository(ProcessDefinitionRepository):
    """In-memory process definition repository."""

    def __init__(self) -> None:
        self._store: dict[str, ProcessDefinition] = {}

    def insert(self, definition: ProcessDefinition) -> ProcessDefinition:
        if definition.id in self._store:
            raise StorageError(f"Process definition '{definition.id}' already exists")
        self._store[definition.id] = definition.model_copy()
        return definition

    def get(self, definition_id: str) -> ProcessDefinition | None:
        definition = self._store.get(definition_id)
        return definition.model_copy() if definition is not None else None

    def find_latest_by_key(self, key: str, tenant_id: str) -> ProcessDefinition | None:
        matches = [
            d for d in self._store.values() if d.key == key and d.tenant_id == tenant_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda d: d.version).model_copy()

    def list(
        self, deployment_id: str | None = None, key: str | None = None
    ) -> list[ProcessDefinition]:
        definitions = list(self._store.values())
        if deployment_id is not None:
            definitions = [d for d in definitions if d.deployment_id == deployment_id]
        if key is not None:
            definitions = [d for d in definitions if d.key == key]
        definitions.sort(key=lambda d: (d.key, d.version))
        return [d.model_copy() for d in definitions]

    def update(self, definition: ProcessDefinition) -> ProcessDefinition:
        if definition.id not in self._store:
            raise StorageError(f"Process definition '{definition.id}' does not exist")
        self._store[definition.id] = definition.model_copy()
        return definition

    def delete_by_deployment(self, deployment_id: str) -> list[str]:
        removed = [d.id for d in self._store.values() if d.deployment_id == deployment_id]
        for definition_id in removed:
            del self._store[definition_id]
        return removed


class InMemoryTimerJobRepository(TimerJobRepository):
    """In-memory timer job repository."""

    def __init__(self, ids: _IdGenerator) -> None:
        self._ids = ids
        self._store: dict[str, TimerJob] = {}

    def insert(self, job: TimerJob) -> TimerJob:
        if job.id is None:
            job.id = self._ids.next_id()
        self._store[job.id] = job.model_copy()
        return job

    def list(self, process_definition_id: str | None = None) -> list[TimerJob]:
        jobs = sorted(self._store.values(), key=lambda j: _id_order(j.id))
        if process_definition_id is not None:
            jobs = [j for j in jobs if j.process_definition_id == process_definition_id]
        return [j.model_copy() for j in jobs]

    def find_due(self, now: datetime) -> list[TimerJob]:
        due = [j for j in self._store.values() if j.due_date <= now]
        due.sort(key=lambda j: (j.due_date, _id_order(j.id)))
        return [j.model_copy() for j in due]

    def delete(self, job_id: str) -> None:
        self._store.pop(job_id, None)


class InMemoryStorage(Storage):
    """All repositories behind a single re-entrant lock.

    ``transaction()`` holds the lock for the whole block, so concurrent
    admissions against the same lineage are serialised here rather than in
    the admission code. On error the repositories are restored from the
    snapshot taken on entry. Nested transactions join the outer one.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        ids = _IdGenerator()
        self.deployments = InMemoryDeploymentRepository(ids)
        self.process_definitions = InMemoryProcessDefinitionRepository()
        self.jobs = InMemoryTimerJobRepository(ids)

    def _snapshot(self) -> tuple[dict, dict, dict]:
        return (
            dict(self.deployments._store),  # noqa: SLF001
            dict(self.process_definitions._store),  # noqa: SLF001
            dict(self.jobs._store),  # noqa: SLF001
        )

    def _restore(self, snapshot: tuple[dict, dict, dict]) -> None:
        deployments, definitions, jobs = snapshot
        self.deployments._store = deployments  # noqa: SLF001
        self.process_definitions._store = definitions  # noqa: SLF001
        self.jobs._store = jobs  # noqa: SLF001

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            snapshot = self._snapshot()
            self._depth = 1
            try:
                yield
            except BaseException:
                self._restore(snapshot)
                logger.debug("Transaction rolled back")
                raise
            finally:
                self._depth = 0
