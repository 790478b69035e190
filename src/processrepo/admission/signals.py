"""Version-lineage signals a deployment request can carry.

Exactly one applies to a request, in precedence order: an enforced version,
then a release-manifest version, then nothing.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EnforcedVersion:
    """Caller-authoritative deployment version."""

    version: int


@dataclass(frozen=True)
class ManifestVersion:
    """Semantic release taken from the bundle's release manifest."""

    release_version: str


@dataclass(frozen=True)
class NoVersionSignal:
    """Neither an enforced version nor a manifest was supplied."""


VersionSignal = EnforcedVersion | ManifestVersion | NoVersionSignal
