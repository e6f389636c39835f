from __future__ import annotations

import re
from datetime import timedelta
from typing import Dict, List, Optional

from manifests.errors import ManifestError
from models.records import Manifest, Target
from transport.zabbix import ZabbixActiveClient, ZabbixError

ZABBIX_TARGET_TYPE = "http.healthcheck"

# healthcheck[<http://url/>][<timeout in ms>][<healthcheck name>]
_HEALTHCHECK_KEY = re.compile(r"healthcheck\[(http://[^\]]+)\]\[(\d+)\]\[(.*)\]")


class ZabbixManifestSource:
    """Builds a manifest from the active checks a Zabbix server assigns to a host."""

    def __init__(
        self,
        address: str,
        host: str,
        client: Optional[ZabbixActiveClient] = None,
    ) -> None:
        self.address = address
        self.host = host
        self._client = client

    def fetch(self) -> Manifest:
        try:
            client = self._client or ZabbixActiveClient(self.address)
            checks = client.fetch_active_checks(self.host)
        except ZabbixError as exc:
            raise ManifestError(f"Fetching manifest from {self.address} failed: {exc}") from exc
        return Manifest(targets=targets_from_checks(checks))


def targets_from_checks(checks: Dict[str, timedelta]) -> List[Target]:
    targets: List[Target] = []
    for key in sorted(checks):
        match = _HEALTHCHECK_KEY.search(key)
        if match is None:
            continue
        url, timeout_ms, name = match.groups()
        targets.append(
            Target(
                url=url,
                name=name,
                key=key,
                type=ZABBIX_TARGET_TYPE,
                interval=checks[key],
                timeout=timedelta(milliseconds=int(timeout_ms)),
            )
        )
    return targets
