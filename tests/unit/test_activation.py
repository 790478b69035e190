"""Unit tests for ActivationScheduler and the administrative command channel."""

from __future__ import annotations

from datetime import timedelta

import pytest

from processrepo.admission.activation import ActivationScheduler
from processrepo.models.deployment import Deployment, ProcessDefinition, SuspensionState
from processrepo.models.errors import ProcessDefinitionNotFoundError, SuspensionStateError
from processrepo.models.jobs import JobKind
from processrepo.service.clock import FixedClock
from processrepo.service.commands import (
    ActivateProcessDefinition,
    AdministrativeCommand,
    AdministrativeCommandChannel,
    SuspendProcessDefinition,
)
from processrepo.service.deployer import ProcessDefinitionCache
from processrepo.storage.memory import InMemoryStorage
from tests.conftest import START


def _definition(key: str, deployment_id: str = "1", tenant_id: str = "") -> ProcessDefinition:
    return ProcessDefinition(
        id=f"{key}:1:{deployment_id}",
        key=key,
        version=1,
        deployment_id=deployment_id,
        resource_name=f"{key}.bpmn",
        tenant_id=tenant_id,
    )


@pytest.fixture
def channel(storage: InMemoryStorage, clock: FixedClock) -> AdministrativeCommandChannel:
    return AdministrativeCommandChannel(storage, clock)


class _Recorder:
    def __init__(self) -> None:
        self.commands: list[AdministrativeCommand] = []

    def execute(self, command: AdministrativeCommand) -> None:
        self.commands.append(command)


class TestActivationScheduler:
    def test_suspend_precedes_activation_per_definition(self) -> None:
        recorder = _Recorder()
        deployment = Deployment(id="1", name="orders", tenant_id="acme")
        deployment.add_deployed_artifact(_definition("a", tenant_id="acme"))
        deployment.add_deployed_artifact(_definition("b", tenant_id="acme"))
        when = START + timedelta(days=3)

        ActivationScheduler(recorder).schedule(deployment, when)

        assert recorder.commands == [
            SuspendProcessDefinition("a:1:1", tenant_id="acme"),
            ActivateProcessDefinition("a:1:1", tenant_id="acme", effective_date=when),
            SuspendProcessDefinition("b:1:1", tenant_id="acme"),
            ActivateProcessDefinition("b:1:1", tenant_id="acme", effective_date=when),
        ]

    def test_no_definitions_no_commands(self) -> None:
        recorder = _Recorder()
        ActivationScheduler(recorder).schedule(Deployment(id="1"), START)
        assert recorder.commands == []

    def test_against_real_channel(
        self, storage: InMemoryStorage, channel: AdministrativeCommandChannel
    ) -> None:
        definition = storage.process_definitions.insert(_definition("a"))
        deployment = Deployment(id="1", name="orders")
        deployment.add_deployed_artifact(definition)
        when = START + timedelta(days=1)

        ActivationScheduler(channel).schedule(deployment, when)

        stored = storage.process_definitions.get(definition.id)
        assert stored is not None and stored.is_suspended
        (job,) = storage.jobs.list()
        assert job.kind is JobKind.ACTIVATE_PROCESS_DEFINITION
        assert job.due_date == when


class TestCommandChannel:
    def test_immediate_suspend_and_activate(
        self, storage: InMemoryStorage, channel: AdministrativeCommandChannel
    ) -> None:
        storage.process_definitions.insert(_definition("a"))
        channel.execute(SuspendProcessDefinition("a:1:1"))
        assert storage.process_definitions.get("a:1:1").suspension_state is SuspensionState.SUSPENDED
        channel.execute(ActivateProcessDefinition("a:1:1"))
        assert storage.process_definitions.get("a:1:1").suspension_state is SuspensionState.ACTIVE

    def test_suspend_twice_raises(
        self, storage: InMemoryStorage, channel: AdministrativeCommandChannel
    ) -> None:
        storage.process_definitions.insert(_definition("a"))
        channel.execute(SuspendProcessDefinition("a:1:1"))
        with pytest.raises(SuspensionStateError, match="already suspended"):
            channel.execute(SuspendProcessDefinition("a:1:1"))

    def test_unknown_definition_raises(self, channel: AdministrativeCommandChannel) -> None:
        with pytest.raises(ProcessDefinitionNotFoundError):
            channel.execute(SuspendProcessDefinition("missing:1:1"))
        with pytest.raises(ProcessDefinitionNotFoundError):
            channel.execute(ActivateProcessDefinition("missing:1:1", effective_date=START))

    def test_due_jobs_fire_only_after_date(
        self,
        storage: InMemoryStorage,
        clock: FixedClock,
        channel: AdministrativeCommandChannel,
    ) -> None:
        storage.process_definitions.insert(_definition("a"))
        channel.execute(SuspendProcessDefinition("a:1:1"))
        channel.execute(ActivateProcessDefinition("a:1:1", effective_date=START + timedelta(hours=2)))

        clock.advance(timedelta(hours=1))
        assert channel.execute_due_jobs() == 0
        assert storage.process_definitions.get("a:1:1").is_suspended

        clock.advance(timedelta(hours=1))
        assert channel.execute_due_jobs() == 1
        assert not storage.process_definitions.get("a:1:1").is_suspended
        assert storage.jobs.list() == []

    def test_due_job_on_already_active_definition_is_consumed(
        self,
        storage: InMemoryStorage,
        channel: AdministrativeCommandChannel,
    ) -> None:
        storage.process_definitions.insert(_definition("a"))
        channel.execute(ActivateProcessDefinition("a:1:1", effective_date=START))
        assert channel.execute_due_jobs() == 1
        assert storage.jobs.list() == []

    def test_cached_definition_refreshed(
        self, storage: InMemoryStorage, clock: FixedClock
    ) -> None:
        cache = ProcessDefinitionCache()
        definition = storage.process_definitions.insert(_definition("a"))
        cache.add(definition)
        AdministrativeCommandChannel(storage, clock, cache).execute(
            SuspendProcessDefinition("a:1:1")
        )
        cached = cache.get("a:1:1")
        assert cached is not None and cached.is_suspended
