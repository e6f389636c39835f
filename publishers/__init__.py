"""Measurement sinks."""

from publishers.base import Publisher, PublisherConfigError
from publishers.registry import PUBLISHER_FACTORIES, build_publishers

__all__ = ["PUBLISHER_FACTORIES", "Publisher", "PublisherConfigError", "build_publishers"]
