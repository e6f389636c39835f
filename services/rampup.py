"""Start-delay distribution that spreads sensor phases across one interval."""

from __future__ import annotations

from datetime import timedelta
from typing import List

from models.records import Manifest


def rampup_delays(count: int, interval: timedelta) -> List[timedelta]:
    """Return ``count`` strictly increasing delays inside ``(0, interval]``.

    The chunk is ``interval // count``, floored to whole microseconds, so the
    last delay equals ``interval`` whenever it divides evenly and falls short
    by the remainder otherwise.
    """
    if count < 0:
        raise ValueError("Target count must not be negative.")
    if count == 0:
        return []
    if interval <= timedelta(0):
        raise ValueError("Rampup interval must be positive.")

    chunk = interval // count
    if chunk <= timedelta(0):
        raise ValueError(f"Rampup interval {interval} is too short for {count} targets.")
    return [chunk * (index + 1) for index in range(count)]


def apply_rampup(manifest: Manifest, interval: timedelta) -> Manifest:
    """Recompute start delays for the manifest's current target count."""
    return manifest.with_start_delays(rampup_delays(len(manifest.targets), interval))
