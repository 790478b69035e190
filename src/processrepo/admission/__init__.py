"""Deployment admission: decides new / duplicate / upgrade and applies it."""

from processrepo.admission.activation import ActivationScheduler
from processrepo.admission.controller import AdmissionController
from processrepo.admission.duplicates import Comparison, DuplicateResolver
from processrepo.admission.request import DeploymentRequest
from processrepo.admission.signals import (
    EnforcedVersion,
    ManifestVersion,
    NoVersionSignal,
    VersionSignal,
)
from processrepo.admission.versioning import VersionAssigner

__all__ = [
    "ActivationScheduler",
    "AdmissionController",
    "Comparison",
    "DeploymentRequest",
    "DuplicateResolver",
    "EnforcedVersion",
    "ManifestVersion",
    "NoVersionSignal",
    "VersionAssigner",
    "VersionSignal",
]
