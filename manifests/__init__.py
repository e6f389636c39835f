"""Manifest sources for the canary agent."""

from manifests.errors import ManifestError
from manifests.provider import fetch_manifest, resolve_source

__all__ = ["ManifestError", "fetch_manifest", "resolve_source"]
