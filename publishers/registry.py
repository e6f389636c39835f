"""Maps configured publisher identifiers to publisher instances."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List

from publishers.base import Publisher
from publishers.stdout import OpenTSDBStdoutPublisher, StdoutPublisher, ZabbixStdoutPublisher
from publishers.zabbix import ZabbixPublisher
from settings import Settings

logger = logging.getLogger(__name__)

PublisherFactory = Callable[[Settings], Publisher]

# librato is not provided; it is reported as an unknown publisher.
PUBLISHER_FACTORIES: Dict[str, PublisherFactory] = {
    "stdout": lambda _settings: StdoutPublisher(),
    "opentsdbstdout": lambda _settings: OpenTSDBStdoutPublisher(),
    "zabbixstdout": lambda _settings: ZabbixStdoutPublisher(),
    "zabbix": ZabbixPublisher.from_settings,
}


def build_publishers(names: Iterable[str], settings: Settings) -> List[Publisher]:
    """Instantiate publishers in configuration order.

    Unknown identifiers are logged and skipped. A factory raising
    ``PublisherConfigError`` aborts startup, so the error propagates.
    """
    publishers: List[Publisher] = []
    for name in names:
        factory = PUBLISHER_FACTORIES.get(name)
        if factory is None:
            logger.warning("Unknown publisher: %s", name, extra={"publisher": name})
            continue
        publishers.append(factory(settings))
        logger.info("Publisher enabled", extra={"publisher": name})
    return publishers
