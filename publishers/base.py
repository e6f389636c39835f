from __future__ import annotations

from typing import Protocol

from models.records import Measurement


class PublisherConfigError(Exception):
    """Raised when a publisher cannot be built from the current configuration."""


class Publisher(Protocol):
    def publish(self, measurement: Measurement) -> None:
        """Deliver one measurement; raise on failure."""
        ...
