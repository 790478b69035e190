"""A deployment submitted for admission, with its admission options."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from processrepo.admission.signals import (
    EnforcedVersion,
    ManifestVersion,
    NoVersionSignal,
    VersionSignal,
)
from processrepo.models.deployment import Deployment
from processrepo.models.manifest import ReleaseManifest


@dataclass
class DeploymentRequest:
    """Candidate deployment plus the options that steer its admission."""

    deployment: Deployment
    duplicate_filter_enabled: bool = False
    enforced_app_version: int | None = None
    project_manifest: ReleaseManifest | None = None
    bpmn20_xsd_validation_enabled: bool = True
    process_validation_enabled: bool = True
    process_definitions_activation_date: datetime | None = None

    def __post_init__(self) -> None:
        if self.enforced_app_version is not None and self.enforced_app_version < 1:
            raise ValueError(
                f"Enforced application version must be >= 1, got {self.enforced_app_version}"
            )

    @property
    def version_signal(self) -> VersionSignal:
        if self.enforced_app_version is not None:
            return EnforcedVersion(self.enforced_app_version)
        if self.project_manifest is not None:
            return ManifestVersion(self.project_manifest.version)
        return NoVersionSignal()
