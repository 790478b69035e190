"""Parsing of deployment metadata files."""

from processrepo.parser.manifest import ManifestLoader

__all__ = ["ManifestLoader"]
