"""Sensor population lifecycle: start, reload, shutdown and parent liveness."""

from __future__ import annotations

import logging
import os
import queue
import signal
from datetime import timedelta
from enum import Enum
from threading import Event, Lock, Thread
from typing import Callable, List, Optional, Sequence, Tuple

from manifests import fetch_manifest as default_fetch_manifest
from models.records import Manifest, Measurement
from publishers.base import Publisher
from services.rampup import apply_rampup
from services.sampler import HttpSampler, Sampler
from services.sensor import Sensor
from settings import Settings

logger = logging.getLogger(__name__)

ManifestFetcher = Callable[[str], Manifest]
FatalHandler = Callable[[str], None]

_RELOAD = "reload"
_CLOSE = "close"


class OrchestratorState(str, Enum):
    stopped = "stopped"
    running = "running"


def terminate(message: str) -> None:
    """Log ``message`` and exit the whole process with a failure status."""
    logger.critical(message)
    logging.shutdown()
    os._exit(1)


class Orchestrator:
    """Owns the live sensor roster and the loops that drive it.

    Only the control thread writes the roster. Everything else (signal
    handlers, timers, the control API) asks for a reload through
    :meth:`reload`, which feeds a single queue the control thread consumes
    one request at a time.
    """

    def __init__(
        self,
        manifest: Manifest,
        publishers: Sequence[Publisher],
        sampler: Sampler,
        *,
        manifest_url: str,
        default_interval: timedelta,
        reload_interval: timedelta = timedelta(0),
        rampup: bool = False,
        ppid: int = 0,
        parent_check_interval: timedelta = timedelta(seconds=60),
        buffer_size: int = 64,
        fetch_manifest: ManifestFetcher = default_fetch_manifest,
        getppid: Callable[[], int] = os.getppid,
        on_fatal: FatalHandler = terminate,
    ) -> None:
        self.manifest = manifest
        self.publishers = list(publishers)
        self.sampler = sampler
        self.manifest_url = manifest_url
        self.default_interval = default_interval
        self.reload_interval = reload_interval
        self.rampup = rampup
        self.ppid = ppid
        self.parent_check_interval = parent_check_interval
        self.output: "queue.Queue[Optional[Measurement]]" = queue.Queue(maxsize=max(buffer_size, 1))
        self._fetch_manifest = fetch_manifest
        self._getppid = getppid
        self._on_fatal = on_fatal
        self._requests: "queue.Queue[str]" = queue.Queue()
        self._signals: "queue.SimpleQueue[int]" = queue.SimpleQueue()
        self._closed = Event()
        self._lock = Lock()
        self._sensors: List[Sensor] = []
        self._threads: List[Thread] = []
        self._generation = 0
        self._started = False
        self.state = OrchestratorState.stopped

    @property
    def sensors(self) -> Tuple[Sensor, ...]:
        with self._lock:
            return tuple(self._sensors)

    @property
    def generation(self) -> int:
        return self._generation

    def run(self) -> None:
        """Launch every loop and return immediately."""
        if self._started:
            raise RuntimeError("Orchestrator is already running.")
        self._started = True

        self._spawn(self._publish_measurements, "canary-publisher")
        self._spawn(self._control_loop, "canary-control")
        if self.reload_interval > timedelta(0):
            self._spawn(self._reload_timer, "canary-reload-timer")
        if self.ppid:
            self._spawn(self._watch_parent, "canary-parent-watch")

    def reload(self) -> None:
        """Ask the control thread to replace the sensor population."""
        self._requests.put(_RELOAD)

    def shutdown(self) -> None:
        """Ask every live sensor to stop without waiting for acknowledgment."""
        for sensor in self.sensors:
            sensor.stop()
        self.state = OrchestratorState.stopped
        logger.info("Shutdown requested", extra={"sensor_count": len(self.sensors)})

    def handle_signals(self) -> None:
        """Block in the main thread translating SIGHUP to reload and SIGINT to exit."""
        watched = [signal.SIGINT]
        if hasattr(signal, "SIGHUP"):
            watched.append(signal.SIGHUP)
        previous = {sig: signal.signal(sig, self._enqueue_signal) for sig in watched}
        try:
            while self._dispatch_signal(self._signals.get()):
                pass
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        raise SystemExit(0)

    def close(self, timeout: float = 5.0) -> None:
        """Stop sensors and loops in order, waiting up to ``timeout`` for each."""
        self._closed.set()
        self._requests.put(_CLOSE)
        for sensor in self.sensors:
            sensor.stop()
        for sensor in self.sensors:
            sensor.wait_stopped(timeout)
        self.state = OrchestratorState.stopped
        self.output.put(None)
        for thread in self._threads:
            thread.join(timeout)

    def _spawn(self, target: Callable[[], None], name: str) -> None:
        thread = Thread(target=target, name=name, daemon=True)
        self._threads.append(thread)
        thread.start()

    def _enqueue_signal(self, signum: int, _frame: object) -> None:
        self._signals.put(signum)

    def _dispatch_signal(self, signum: int) -> bool:
        if signum == signal.SIGINT:
            logger.info("Interrupt received, stopping sensors")
            self.shutdown()
            return False
        logger.info("Hangup received, reloading manifest")
        self.reload()
        return True

    def _control_loop(self) -> None:
        if not self._start_sensors(self.manifest):
            return
        while True:
            request = self._requests.get()
            if request == _CLOSE or self._closed.is_set():
                return
            if not self._reload_sensors():
                return

    def _start_sensors(self, manifest: Manifest) -> bool:
        intervals = [target.interval or self.default_interval for target in manifest.targets]
        invalid = [
            target.name
            for target, interval in zip(manifest.targets, intervals)
            if interval <= timedelta(0)
        ]
        if invalid:
            self._on_fatal(
                f"Manifest from {self.manifest_url} has non-positive intervals for: "
                f"{', '.join(invalid)}"
            )
            return False

        failure: Optional[Exception] = None
        with self._lock:
            if self._closed.is_set():
                return True
            self._generation += 1
            sensors: List[Sensor] = []
            try:
                for target, interval, delay in zip(manifest.targets, intervals, manifest.start_delays):
                    sensor = Sensor(target, self.output, self.sampler, generation=self._generation)
                    sensor.start(interval, delay)
                    sensors.append(sensor)
            except Exception as exc:  # noqa: BLE001
                failure = exc
                for sensor in sensors:
                    sensor.stop()
            self._sensors = sensors
            if failure is None:
                self.manifest = manifest
                self.state = OrchestratorState.running

        if failure is not None:
            logger.error(
                "Starting sensors failed: %s",
                failure,
                extra={"generation": self._generation, "sensor_count": len(sensors)},
            )
            self._on_fatal(f"Starting sensors failed: {failure}")
            return False
        logger.info(
            "Sensors started",
            extra={"generation": self._generation, "sensor_count": len(sensors)},
        )
        return True

    def _reload_sensors(self) -> bool:
        sensors = self.sensors
        for sensor in sensors:
            sensor.stop()
        for sensor in sensors:
            sensor.wait_stopped()
        self.state = OrchestratorState.stopped
        logger.info(
            "Sensors stopped for reload",
            extra={"generation": self._generation, "sensor_count": len(sensors)},
        )

        try:
            manifest = self._fetch_manifest(self.manifest_url)
            if self.rampup:
                manifest = apply_rampup(manifest, self.default_interval)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Manifest reload failed", extra={"url": self.manifest_url})
            self._on_fatal(f"Manifest reload from {self.manifest_url} failed: {exc}")
            return False

        return self._start_sensors(manifest)

    def _publish_measurements(self) -> None:
        while True:
            measurement = self.output.get()
            if measurement is None:
                return
            for publisher in self.publishers:
                try:
                    publisher.publish(measurement)
                except Exception:  # noqa: BLE001 - one failing sink must not starve the others
                    logger.exception(
                        "Publisher failed",
                        extra={
                            "publisher": type(publisher).__name__,
                            "target": measurement.target.name,
                        },
                    )

    def _reload_timer(self) -> None:
        while not self._closed.wait(self.reload_interval.total_seconds()):
            self.reload()

    def _watch_parent(self) -> None:
        while not self._closed.wait(self.parent_check_interval.total_seconds()):
            current = self._getppid()
            if current != self.ppid:
                self._on_fatal(
                    f"Parent PID changed from {self.ppid} to {current}, stopping."
                )
                return


def build_orchestrator(
    settings: Settings,
    manifest: Manifest,
    publishers: Sequence[Publisher],
    sampler: Optional[Sampler] = None,
) -> Orchestrator:
    """Factory that wires the orchestrator from resolved settings."""
    if not settings.manifest_url:
        raise ValueError("MANIFEST_URL not defined in ENV")
    return Orchestrator(
        manifest,
        publishers,
        sampler or HttpSampler(),
        manifest_url=settings.manifest_url,
        default_interval=settings.default_sample_interval,
        reload_interval=settings.reload_interval,
        rampup=settings.rampup_sensors,
        ppid=settings.ppid,
        parent_check_interval=settings.parent_check_interval,
        buffer_size=settings.buffer_size,
        fetch_manifest=lambda url: default_fetch_manifest(url, settings),
    )
