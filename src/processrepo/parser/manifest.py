"""Release manifest loader (YAML, and therefore JSON) with safety limits."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from processrepo.models.errors import ManifestError
from processrepo.models.manifest import ReleaseManifest

# ---------------------------------------------------------------------------
# Safety limits
# ---------------------------------------------------------------------------

_MAX_DOCUMENT_SIZE = 256_000
_MAX_NODE_COUNT = 2_000
_MAX_DEPTH = 10

_ANCHOR_RE = re.compile(r"(?:^|[\s\-:])&(\w+)", re.MULTILINE)


class ManifestLoader:
    """Parses release manifests into :class:`ReleaseManifest`.

    Manifests are small documents, so anchors/aliases are rejected outright
    and the node count is capped after parsing.
    """

    def __init__(self) -> None:
        self._yaml = YAML(typ="safe")
        self._yaml.max_depth = _MAX_DEPTH

    # -- safety checks -------------------------------------------------------

    @staticmethod
    def _check_safety(content: str) -> None:
        if len(content) > _MAX_DOCUMENT_SIZE:
            raise ManifestError(
                f"Manifest exceeds maximum size "
                f"({len(content):,} chars > {_MAX_DOCUMENT_SIZE:,} limit)"
            )
        if _ANCHOR_RE.search(content):
            raise ManifestError("YAML anchors/aliases are not supported in manifests")

    @staticmethod
    def _check_node_count(data: Any, limit: int = _MAX_NODE_COUNT) -> None:
        count = 0
        stack: list[Any] = [data]
        while stack:
            node = stack.pop()
            count += 1
            if count > limit:
                raise ManifestError(f"Manifest exceeds maximum node count ({limit:,})")
            if isinstance(node, dict):
                stack.extend(node.values())
            elif isinstance(node, list):
                stack.extend(node)

    # -- public loading API --------------------------------------------------

    def load(self, path: Path) -> ReleaseManifest:
        """Load a manifest file."""
        with path.open("r", encoding="utf-8") as handle:
            content = handle.read()
        return self.load_string(content)

    def load_string(self, content: str) -> ReleaseManifest:
        """Parse manifest text. Raises :class:`ManifestError` on any problem."""
        self._check_safety(content)
        try:
            data = self._yaml.load(content)
        except YAMLError as exc:
            raise ManifestError(f"Manifest could not be parsed: {exc}") from exc
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a mapping")
        self._check_node_count(data)

        # Unquoted ``1.10`` would load as the float 1.1 and compare equal to
        # release "1.1"; only the literal text is a usable release version.
        version = data.get("version")
        if version is not None and not isinstance(version, str):
            raise ManifestError(
                f"Manifest version must be a string; quote it (got {version!r})"
            )

        try:
            return ReleaseManifest.model_validate(data)
        except ValidationError as exc:
            raise ManifestError(f"Manifest is invalid: {exc}") from exc
