"""Decides whether a candidate deployment repeats the latest stored one."""

from __future__ import annotations

import logging
from enum import StrEnum

from processrepo.admission.request import DeploymentRequest
from processrepo.admission.signals import EnforcedVersion, ManifestVersion, NoVersionSignal
from processrepo.models.deployment import Deployment
from processrepo.storage.repository import DeploymentRepository

logger = logging.getLogger("processrepo.admission")


class Comparison(StrEnum):
    IDENTICAL = "identical"
    DIFFERS = "differs"


class DuplicateResolver:
    """Finds the previous deployment of a lineage and compares against it.

    A lineage is the (name, tenant) pair. Comparison is driven by the
    request's version signal; missing data on either side counts as a
    difference, never as an error.
    """

    def __init__(self, deployments: DeploymentRepository) -> None:
        self._deployments = deployments

    def find_existing(self, deployment: Deployment) -> Deployment | None:
        """Return the most recent deployment in the candidate's lineage."""
        if not deployment.has_tenant:
            return self._deployments.find_latest_by_name(deployment.name)
        matches = self._deployments.find_by_name_and_tenant(deployment.name, deployment.tenant_id)
        return matches[0] if matches else None

    def resolve(self, request: DeploymentRequest, existing: Deployment | None) -> Comparison:
        if existing is None:
            return Comparison.DIFFERS

        match request.version_signal:
            case EnforcedVersion(version=version):
                differs = version != existing.version
            case ManifestVersion(release_version=release):
                differs = release != existing.project_release_version
            case NoVersionSignal():
                differs = self._resources_differ(request.deployment, existing)

        comparison = Comparison.DIFFERS if differs else Comparison.IDENTICAL
        logger.debug(
            "Deployment '%s' compared with %s (%s): %s",
            request.deployment.name, existing.id, type(request.version_signal).__name__, comparison,
        )
        return comparison

    @staticmethod
    def _resources_differ(candidate: Deployment, existing: Deployment) -> bool:
        """Candidate-driven byte comparison; generated resources are exempt."""
        if not candidate.resources or not existing.resources:
            return True
        for name, resource in candidate.resources.items():
            saved = existing.resources.get(name)
            if saved is None:
                return True
            if not saved.generated and saved.content != resource.content:
                return True
        return False
