"""Minimal Zabbix active-agent protocol client.

Frames are ``ZBXD\\x01`` followed by the little-endian 64-bit payload length
and a JSON body. Only the two requests the agent needs are implemented:
``active checks`` (fetch the item list for a host) and ``agent data`` (push
values, without waiting for the server's reply).
"""

from __future__ import annotations

import json
import socket
import struct
import time
from datetime import timedelta
from typing import Any, Dict, Iterable, Mapping, Tuple

DEFAULT_PORT = 10051
HEADER = b"ZBXD\x01"
_LENGTH = struct.Struct("<Q")
_DELAY_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


class ZabbixError(Exception):
    """Raised for connection, framing, or server-side failures."""


def parse_address(address: str) -> Tuple[str, int]:
    candidate = address.strip()
    if "://" in candidate:
        candidate = candidate.split("://", 1)[1]
    candidate = candidate.rstrip("/")
    if not candidate:
        raise ZabbixError(f"Invalid Zabbix address {address!r}.")

    host, sep, port = candidate.rpartition(":")
    if not sep:
        return candidate, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError as exc:
        raise ZabbixError(f"Invalid port in Zabbix address {address!r}.") from exc


def encode_frame(payload: Mapping[str, Any]) -> bytes:
    body = json.dumps(payload).encode("utf-8")
    return HEADER + _LENGTH.pack(len(body)) + body


def decode_frame(frame: bytes) -> Dict[str, Any]:
    if not frame.startswith(b"ZBXD"):
        raise ZabbixError("Response is missing the ZBXD header.")
    header_size = len(HEADER) + _LENGTH.size
    if len(frame) < header_size:
        raise ZabbixError("Truncated response header.")
    (length,) = _LENGTH.unpack(frame[len(HEADER):header_size])
    body = frame[header_size:header_size + length]
    if len(body) != length:
        raise ZabbixError("Truncated response body.")
    try:
        return json.loads(body.decode("utf-8"))
    except ValueError as exc:
        raise ZabbixError("Response body is not valid JSON.") from exc


def parse_delay(value: Any) -> timedelta:
    """Parse an item delay as seconds, with an optional unit suffix."""
    if isinstance(value, (int, float)):
        if value < 0:
            raise ZabbixError(f"Negative item delay {value!r}.")
        return timedelta(seconds=value)
    text = str(value).strip()
    if not text:
        raise ZabbixError("Empty item delay.")
    multiplier = _DELAY_UNITS.get(text[-1].lower())
    if multiplier is not None:
        text = text[:-1]
    try:
        seconds = int(text) * (multiplier or 1)
    except ValueError as exc:
        raise ZabbixError(f"Invalid item delay {value!r}.") from exc
    if seconds < 0:
        raise ZabbixError(f"Negative item delay {value!r}.")
    return timedelta(seconds=seconds)


class ZabbixActiveClient:

    def __init__(self, address: str, timeout: timedelta = timedelta(seconds=5)) -> None:
        self.host, self.port = parse_address(address)
        self._timeout = timeout.total_seconds()

    def fetch_active_checks(self, host: str) -> Dict[str, timedelta]:
        """Return the active item keys configured for ``host`` with their delays."""
        response = self._exchange({"request": "active checks", "host": host})
        if response.get("response") != "success":
            info = response.get("info") or "no detail provided"
            raise ZabbixError(f"Active checks request for {host!r} failed: {info}")

        checks: Dict[str, timedelta] = {}
        for item in response.get("data") or []:
            key = item.get("key")
            if not key:
                continue
            checks[key] = parse_delay(item.get("delay", 0))
        return checks

    def send(self, metrics: Iterable[Mapping[str, Any]]) -> None:
        payload = {"request": "agent data", "data": list(metrics), "clock": int(time.time())}
        try:
            with self._connect() as conn:
                conn.sendall(encode_frame(payload))
        except OSError as exc:
            raise ZabbixError(f"Sending to {self.host}:{self.port} failed: {exc}") from exc

    def _connect(self) -> socket.socket:
        return socket.create_connection((self.host, self.port), timeout=self._timeout)

    def _exchange(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            with self._connect() as conn:
                conn.sendall(encode_frame(payload))
                chunks = []
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
        except OSError as exc:
            raise ZabbixError(f"Request to {self.host}:{self.port} failed: {exc}") from exc
        return decode_frame(b"".join(chunks))
