from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Optional, Tuple


_MANIFEST_URL_ENV = "MANIFEST_URL"
_PUBLISHERS_ENV = "PUBLISHERS"
_SAMPLE_INTERVAL_ENV = "DEFAULT_SAMPLE_INTERVAL"
_RELOAD_INTERVAL_ENV = "RELOAD_INTERVAL"
_RAMPUP_ENV = "RAMPUP_SENSORS"
_PPID_ENV = "CANARY_PPID"
_PARENT_CHECK_ENV = "PARENT_CHECK_INTERVAL"
_BUFFER_SIZE_ENV = "MEASUREMENT_BUFFER_SIZE"
_ZABBIX_PUSH_ADDR_ENV = "ZABBIX_PUSH_ADDR"
_HOSTNAME_ENV = "HOSTNAME"
_CONTROL_HOST_ENV = "CONTROL_HOST"
_CONTROL_PORT_ENV = "CONTROL_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    manifest_url: Optional[str]
    publishers: Tuple[str, ...]
    default_sample_interval: timedelta
    reload_interval: timedelta
    rampup_sensors: bool
    ppid: int
    parent_check_interval: timedelta
    buffer_size: int
    zabbix_push_addr: Optional[str]
    hostname: str
    control_host: str
    control_port: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_int_env(name: str, default: int, minimum: int = 0) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _read_millis_env(name: str, default_ms: int, minimum: int = 0) -> timedelta:
    return timedelta(milliseconds=_read_int_env(name, default_ms, minimum))


def _read_publishers(default: str) -> Tuple[str, ...]:
    raw = _read_str_env(_PUBLISHERS_ENV, default)
    names = tuple(name.strip() for name in raw.split(",") if name.strip())
    return names or (default,)


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        manifest_url=_read_optional_env(_MANIFEST_URL_ENV, None),
        publishers=_read_publishers("stdout"),
        default_sample_interval=_read_millis_env(_SAMPLE_INTERVAL_ENV, 1000, minimum=1),
        reload_interval=_read_millis_env(_RELOAD_INTERVAL_ENV, 0),
        rampup_sensors=_read_str_env(_RAMPUP_ENV, "no").lower() == "yes",
        ppid=_read_int_env(_PPID_ENV, 0),
        parent_check_interval=_read_millis_env(_PARENT_CHECK_ENV, 60_000, minimum=1),
        buffer_size=_read_int_env(_BUFFER_SIZE_ENV, 64, minimum=1),
        zabbix_push_addr=_read_optional_env(_ZABBIX_PUSH_ADDR_ENV, None),
        hostname=_read_str_env(_HOSTNAME_ENV, socket.gethostname()),
        control_host=_read_str_env(_CONTROL_HOST_ENV, "127.0.0.1"),
        control_port=_read_int_env(_CONTROL_PORT_ENV, 0),
        log_level=_read_log_level("INFO"),
    )
