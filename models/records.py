"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

FAILED_STATUS_CODE = -1
DEFAULT_TIMEOUT = timedelta(seconds=10)
DEFAULT_TARGET_TYPE = "http_check"


@dataclass(frozen=True, slots=True)
class Target:
    """A remote endpoint sampled periodically.

    ``interval`` of zero means the agent's default sample interval applies.
    """

    url: str
    name: str
    key: str = ""
    type: str = DEFAULT_TARGET_TYPE
    interval: timedelta = timedelta(0)
    timeout: timedelta = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.key:
            object.__setattr__(self, "key", self.name)


@dataclass(frozen=True, slots=True)
class Sample:
    """Timestamped result of one probe execution."""

    t1: datetime
    t2: datetime
    status_code: int

    def __post_init__(self) -> None:
        if self.t2 < self.t1:
            raise ValueError("Sample t2 must not precede t1.")

    @property
    def duration_ms(self) -> float:
        return (self.t2 - self.t1).total_seconds() * 1000


@dataclass(frozen=True, slots=True)
class Measurement:
    """A sample plus its target and the probe error, if any."""

    target: Target
    sample: Sample
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return FAILED_STATUS_CODE if self.error is not None else self.sample.status_code


@dataclass(frozen=True)
class Manifest:
    """The current target set plus the start delay of each target's sensor."""

    targets: Tuple[Target, ...] = ()
    start_delays: Tuple[timedelta, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "targets", tuple(self.targets))
        delays = tuple(self.start_delays)
        if not delays:
            delays = tuple(timedelta(0) for _ in self.targets)
        if len(delays) != len(self.targets):
            raise ValueError(
                f"Manifest has {len(self.targets)} targets but {len(delays)} start delays."
            )
        object.__setattr__(self, "start_delays", delays)

    def with_start_delays(self, delays: Iterable[timedelta]) -> "Manifest":
        return replace(self, start_delays=tuple(delays))
