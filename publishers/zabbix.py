from __future__ import annotations

from typing import Optional

from models.records import Measurement
from publishers.base import PublisherConfigError
from settings import Settings
from transport.zabbix import ZabbixActiveClient, ZabbixError


class ZabbixPublisher:
    """Pushes each measurement's status as a trapper value for ``host``."""

    def __init__(self, address: str, host: str, client: Optional[ZabbixActiveClient] = None) -> None:
        self.host = host
        self._client = client or ZabbixActiveClient(address)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ZabbixPublisher":
        if not settings.zabbix_push_addr:
            raise PublisherConfigError("ZABBIX_PUSH_ADDR not set in ENV")
        try:
            return cls(settings.zabbix_push_addr, host=settings.hostname)
        except ZabbixError as exc:
            raise PublisherConfigError(str(exc)) from exc

    def publish(self, measurement: Measurement) -> None:
        self._client.send(
            [
                {
                    "host": self.host,
                    "key": measurement.target.key,
                    "value": str(measurement.status_code),
                    "clock": int(measurement.sample.t2.timestamp()),
                }
            ]
        )
