"""Per-target sampling loop with cooperative, acknowledged stop."""

from __future__ import annotations

import logging
import queue
import time
from datetime import datetime, timedelta, timezone
from threading import Event, Thread
from typing import Optional

from models.records import FAILED_STATUS_CODE, Measurement, Sample, Target
from services.sampler import Sampler

logger = logging.getLogger(__name__)


class Sensor:
    """Runs one target's probes on its own thread at a fixed cadence.

    Stop requests are honoured at tick boundaries only. A probe already in
    flight completes and its measurement is still delivered; the stop
    acknowledgment is raised after that final delivery.
    """

    def __init__(
        self,
        target: Target,
        output: "queue.Queue[Optional[Measurement]]",
        sampler: Sampler,
        generation: int = 0,
    ) -> None:
        self.target = target
        self.generation = generation
        self._output = output
        self._sampler = sampler
        self._stop_requested = Event()
        self._stopped = Event()
        self._thread: Optional[Thread] = None
        self._interval: Optional[timedelta] = None
        self._start_delay: Optional[timedelta] = None

    @property
    def interval(self) -> Optional[timedelta]:
        return self._interval

    @property
    def start_delay(self) -> Optional[timedelta]:
        return self._start_delay

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def start(self, interval: timedelta, start_delay: timedelta = timedelta(0)) -> None:
        if interval <= timedelta(0):
            raise ValueError("Sensor interval must be positive.")
        if self._thread is not None:
            raise RuntimeError(f"Sensor for {self.target.name!r} already started.")

        self._interval = interval
        self._start_delay = max(start_delay, timedelta(0))
        self._thread = Thread(
            target=self._run,
            args=(interval.total_seconds(), self._start_delay.total_seconds()),
            name=f"sensor-{self.target.name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_requested.set()

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

    def sample(self) -> Measurement:
        """Execute one probe and wrap the outcome, success or failure."""
        t1 = datetime.now(timezone.utc)
        try:
            sample = self._sampler.execute(self.target)
        except Exception as exc:  # noqa: BLE001 - probe failures never halt the loop
            t2 = max(datetime.now(timezone.utc), t1)
            logger.warning(
                "Probe failed: %s",
                exc,
                extra={"target": self.target.name, "url": self.target.url},
            )
            return Measurement(
                target=self.target,
                sample=Sample(t1=t1, t2=t2, status_code=FAILED_STATUS_CODE),
                error=exc,
            )
        return Measurement(target=self.target, sample=sample)

    def _run(self, period: float, delay: float) -> None:
        try:
            if self._stop_requested.wait(delay):
                return
            tick = time.monotonic()
            while True:
                self._output.put(self.sample())
                tick = _next_tick(tick, period, time.monotonic())
                if self._stop_requested.wait(max(0.0, tick - time.monotonic())):
                    return
        finally:
            self._stopped.set()
            logger.debug(
                "Sensor stopped",
                extra={"target": self.target.name, "generation": self.generation},
            )


def _next_tick(last: float, period: float, now: float) -> float:
    """Next grid point after ``last``; an overrun collapses missed ticks into one."""
    missed = int((now - last) // period)
    return last + max(missed, 1) * period
