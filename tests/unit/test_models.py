"""Tests for Pydantic domain models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pydantic
import pytest

from processrepo.admission.request import DeploymentRequest
from processrepo.admission.signals import EnforcedVersion, ManifestVersion, NoVersionSignal
from processrepo.models.deployment import (
    NO_TENANT_ID,
    Deployment,
    ProcessDefinition,
    Resource,
    SuspensionState,
)
from processrepo.models.jobs import JobKind, TimerJob
from processrepo.models.manifest import ReleaseManifest


class TestDeployment:
    def test_none_tenant_normalised(self) -> None:
        deployment = Deployment(name="a", tenant_id=None)
        assert deployment.tenant_id == NO_TENANT_ID
        assert deployment.has_tenant is False

    def test_tenant(self) -> None:
        assert Deployment(name="a", tenant_id="acme").has_tenant is True

    def test_resource_names(self) -> None:
        deployment = Deployment(
            name="a",
            resources={"x": Resource(name="x", content=b"1"), "y": Resource(name="y", content=b"2")},
        )
        assert deployment.resource_names == frozenset({"x", "y"})
        assert Deployment(name="a", resources=None).resource_names == frozenset()

    def test_deployed_artifacts_by_type(self) -> None:
        deployment = Deployment(name="a")
        definition = ProcessDefinition(
            id="p:1:1", key="p", version=1, deployment_id="1", resource_name="r"
        )
        deployment.add_deployed_artifact(definition)
        deployment.add_deployed_artifact(ReleaseManifest(version="1.0"))
        assert deployment.deployed_artifacts(ProcessDefinition) == [definition]
        deployment.clear_deployed_artifacts()
        assert deployment.deployed_artifacts(ProcessDefinition) == []

    def test_artifacts_excluded_from_dump(self) -> None:
        deployment = Deployment(name="a")
        deployment.add_deployed_artifact(ReleaseManifest(version="1.0"))
        assert "_artifacts" not in deployment.model_dump()


class TestResource:
    def test_frozen(self) -> None:
        resource = Resource(name="x", content=b"1")
        with pytest.raises(pydantic.ValidationError):
            resource.content = b"2"  # type: ignore[misc]

    def test_generated_default(self) -> None:
        assert Resource(name="x", content=b"").generated is False


class TestProcessDefinition:
    def test_suspension_state(self) -> None:
        definition = ProcessDefinition(
            id="p:1:1", key="p", version=1, deployment_id="1", resource_name="r"
        )
        assert definition.suspension_state is SuspensionState.ACTIVE
        assert definition.is_suspended is False


class TestReleaseManifest:
    def test_aliases_and_field_names(self) -> None:
        by_alias = ReleaseManifest.model_validate({"version": "1", "createdBy": "alice"})
        by_name = ReleaseManifest(version="1", created_by="alice")
        assert by_alias.created_by == by_name.created_by == "alice"


class TestVersionSignal:
    def test_enforced_version_wins(self) -> None:
        request = DeploymentRequest(
            Deployment(name="a"),
            enforced_app_version=4,
            project_manifest=ReleaseManifest(version="1.0.0"),
        )
        assert request.version_signal == EnforcedVersion(4)

    def test_manifest_version(self) -> None:
        request = DeploymentRequest(
            Deployment(name="a"), project_manifest=ReleaseManifest(version="1.0.0")
        )
        assert request.version_signal == ManifestVersion("1.0.0")

    def test_no_signal(self) -> None:
        assert DeploymentRequest(Deployment(name="a")).version_signal == NoVersionSignal()

    @pytest.mark.parametrize("version", [0, -2])
    def test_enforced_version_must_be_positive(self, version: int) -> None:
        with pytest.raises(ValueError, match=">= 1"):
            DeploymentRequest(Deployment(name="a"), enforced_app_version=version)


class TestTimerJob:
    def test_naive_due_date_treated_as_utc(self) -> None:
        job = TimerJob(
            kind=JobKind.ACTIVATE_PROCESS_DEFINITION,
            process_definition_id="p:1:1",
            due_date=datetime(2024, 3, 5, 12, 0),
        )
        assert job.due_date == datetime(2024, 3, 5, 12, 0, tzinfo=UTC)

    def test_aware_due_date_kept(self) -> None:
        due = datetime(2024, 3, 5, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        job = TimerJob(
            kind=JobKind.SUSPEND_PROCESS_DEFINITION, process_definition_id="p:1:1", due_date=due
        )
        assert job.due_date == due
        assert job.due_date.utcoffset() == timedelta(hours=2)
