"""Manifest provider: picks a transport from the source identifier's prefix."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from manifests.errors import ManifestError
from manifests.http_source import HttpManifestSource
from manifests.zabbix_source import ZabbixManifestSource
from models.records import Manifest
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


class ManifestSource(Protocol):
    def fetch(self) -> Manifest:
        ...


def resolve_source(source: str, settings: Optional[Settings] = None) -> ManifestSource:
    if source.startswith("http"):
        return HttpManifestSource(source)
    if source.startswith("zbx"):
        resolved = settings or get_settings()
        return ZabbixManifestSource(source, host=resolved.hostname)
    raise ManifestError(f"Unsupported manifest source {source!r}.")


def fetch_manifest(source: str, settings: Optional[Settings] = None) -> Manifest:
    """Fetch the manifest at ``source``; every failure surfaces as ManifestError."""
    manifest = resolve_source(source, settings).fetch()
    logger.info("Fetched manifest", extra={"url": source, "sensor_count": len(manifest.targets)})
    return manifest
