"""Version assignment for admitted deployments."""

from __future__ import annotations

from processrepo.admission.duplicates import Comparison
from processrepo.admission.request import DeploymentRequest
from processrepo.admission.signals import EnforcedVersion, ManifestVersion, NoVersionSignal
from processrepo.models.deployment import Deployment

INITIAL_VERSION = 1


class VersionAssigner:
    """Stamps the version number on a candidate deployment."""

    def assign(
        self,
        request: DeploymentRequest,
        existing: Deployment | None,
        comparison: Comparison,
    ) -> Deployment:
        """Return the deployment admission should continue with.

        For an identical pair that is ``existing`` itself, untouched.
        Otherwise the candidate with its version set.
        """
        candidate = request.deployment
        if existing is None:
            candidate.version = INITIAL_VERSION
            return candidate
        if comparison is Comparison.IDENTICAL:
            return existing

        match request.version_signal:
            case EnforcedVersion(version=version):
                candidate.version = version
            case ManifestVersion():
                candidate.version = (existing.version or 0) + 1
            case NoVersionSignal():
                # Without a lineage signal a changed bundle starts over at 1.
                candidate.version = INITIAL_VERSION
        return candidate
