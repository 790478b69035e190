"""Administrative commands that change a process definition's suspension state.

A command without an effective date is applied at once. A command with an
effective date is recorded as a :class:`TimerJob` and applied by
:meth:`AdministrativeCommandChannel.execute_due_jobs` once the clock passes
that date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from processrepo.models.deployment import NO_TENANT_ID, SuspensionState
from processrepo.models.errors import ProcessDefinitionNotFoundError, SuspensionStateError
from processrepo.models.jobs import JobKind, TimerJob
from processrepo.service.clock import Clock
from processrepo.service.deployer import ProcessDefinitionCache
from processrepo.storage.repository import Storage

logger = logging.getLogger("processrepo.commands")


@dataclass(frozen=True)
class SuspendProcessDefinition:
    """Suspend a definition (non-cascading)."""

    process_definition_id: str
    tenant_id: str = NO_TENANT_ID
    effective_date: datetime | None = None


@dataclass(frozen=True)
class ActivateProcessDefinition:
    """Activate a definition (non-cascading)."""

    process_definition_id: str
    tenant_id: str = NO_TENANT_ID
    effective_date: datetime | None = None


AdministrativeCommand = SuspendProcessDefinition | ActivateProcessDefinition


class CommandChannel(Protocol):
    def execute(self, command: AdministrativeCommand) -> None: ...


class AdministrativeCommandChannel:
    """Executes administrative commands against storage."""

    def __init__(
        self, storage: Storage, clock: Clock, cache: ProcessDefinitionCache | None = None
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._cache = cache

    def execute(self, command: AdministrativeCommand) -> None:
        match command:
            case SuspendProcessDefinition(effective_date=None):
                self._apply(command.process_definition_id, SuspensionState.SUSPENDED)
            case ActivateProcessDefinition(effective_date=None):
                self._apply(command.process_definition_id, SuspensionState.ACTIVE)
            case SuspendProcessDefinition(effective_date=due):
                self._schedule(command, JobKind.SUSPEND_PROCESS_DEFINITION, due)
            case ActivateProcessDefinition(effective_date=due):
                self._schedule(command, JobKind.ACTIVATE_PROCESS_DEFINITION, due)

    def execute_due_jobs(self) -> int:
        """Apply every timer job due at the clock's current time.

        Returns the number of jobs executed.
        """
        now = self._clock.now()
        executed = 0
        with self._storage.transaction():
            for job in self._storage.jobs.find_due(now):
                target = (
                    SuspensionState.ACTIVE
                    if job.kind is JobKind.ACTIVATE_PROCESS_DEFINITION
                    else SuspensionState.SUSPENDED
                )
                self._apply(job.process_definition_id, target, strict=False)
                self._storage.jobs.delete(job.id)
                executed += 1
        if executed:
            logger.info("Executed %d due timer job(s)", executed)
        return executed

    # -- internal ------------------------------------------------------------

    def _apply(self, definition_id: str, state: SuspensionState, strict: bool = True) -> None:
        definition = self._storage.process_definitions.get(definition_id)
        if definition is None:
            raise ProcessDefinitionNotFoundError(definition_id)
        if definition.suspension_state is state:
            if strict:
                raise SuspensionStateError(
                    f"Process definition '{definition_id}' is already {state}"
                )
            return
        definition.suspension_state = state
        self._storage.process_definitions.update(definition)
        if self._cache is not None and definition.id in self._cache:
            self._cache.add(definition)
        logger.info("Process definition %s is now %s", definition_id, state)

    def _schedule(self, command: AdministrativeCommand, kind: JobKind, due: datetime) -> None:
        if self._storage.process_definitions.get(command.process_definition_id) is None:
            raise ProcessDefinitionNotFoundError(command.process_definition_id)
        job = self._storage.jobs.insert(
            TimerJob(
                kind=kind,
                process_definition_id=command.process_definition_id,
                tenant_id=command.tenant_id,
                due_date=due,
            )
        )
        logger.info(
            "Scheduled %s for %s at %s (job %s)",
            kind, command.process_definition_id, due.isoformat(), job.id,
        )
