from __future__ import annotations

from typing import Any, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from manifests.errors import ManifestError
from manifests.schemas import LegacyTargetPayload, ManifestPayload
from models.records import Manifest, Target

_LEGACY_LIST = TypeAdapter(List[LegacyTargetPayload])


class HttpManifestSource:
    """Fetches a JSON manifest with a GET request."""

    def __init__(self, url: str, client: Optional[httpx.Client] = None) -> None:
        self.url = url
        self._client = client

    def fetch(self) -> Manifest:
        try:
            if self._client is not None:
                response = self._client.get(self.url)
            else:
                with httpx.Client(follow_redirects=True, timeout=30.0) as client:
                    response = client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise ManifestError(f"Fetching manifest from {self.url} failed: {exc}") from exc
        except ValueError as exc:
            raise ManifestError(f"Manifest at {self.url} is not valid JSON.") from exc
        return Manifest(targets=parse_targets(payload))


def parse_targets(payload: Any) -> List[Target]:
    """Build targets from either the legacy list form or the ``targets`` object form."""
    try:
        if isinstance(payload, list):
            return [entry.to_target() for entry in _LEGACY_LIST.validate_python(payload)]
        if isinstance(payload, dict):
            manifest = ManifestPayload.model_validate(payload)
            return [entry.to_target() for entry in manifest.targets]
    except ValidationError as exc:
        raise ManifestError(f"Manifest payload is invalid: {exc}") from exc
    raise ManifestError("Manifest payload must be a JSON list or object.")
