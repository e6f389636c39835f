"""Line-oriented publishers that write each measurement to a text stream."""

from __future__ import annotations

import sys
from datetime import timezone
from threading import Lock
from typing import Optional, TextIO

from models.records import Measurement


class _StreamPublisher:

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self._lock = Lock()

    def publish(self, measurement: Measurement) -> None:
        line = self.format(measurement)
        stream = self._stream or sys.stdout
        with self._lock:
            stream.write(line + "\n")
            stream.flush()

    def format(self, measurement: Measurement) -> str:
        raise NotImplementedError


class StdoutPublisher(_StreamPublisher):
    """``<t2> <url> <status> <duration ms> <ok>``"""

    def format(self, measurement: Measurement) -> str:
        t2 = measurement.sample.t2.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        ok = "true" if measurement.ok else "false"
        return (
            f"{t2} {measurement.target.url} {measurement.status_code} "
            f"{measurement.sample.duration_ms:f} {ok}"
        )


class OpenTSDBStdoutPublisher(_StreamPublisher):
    """``<type> <unix t2> <duration ms> status=<status> check=<name>``"""

    def format(self, measurement: Measurement) -> str:
        return (
            f"{measurement.target.type} {int(measurement.sample.t2.timestamp())} "
            f"{measurement.sample.duration_ms:f} status={measurement.status_code} "
            f"check={measurement.target.name}"
        )


class ZabbixStdoutPublisher(_StreamPublisher):
    """``<key> = <status>``"""

    def format(self, measurement: Measurement) -> str:
        return f"{measurement.target.key} = {measurement.status_code}"
