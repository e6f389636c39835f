"""Unit tests for start-delay distribution."""

from __future__ import annotations

from datetime import timedelta

import pytest

from models.records import Manifest, Target
from services.rampup import apply_rampup, rampup_delays


def _targets(count: int) -> list[Target]:
    return [Target(url=f"http://example.com/{i}", name=f"target-{i}") for i in range(count)]


def test_three_targets_over_900_seconds() -> None:
    delays = rampup_delays(3, timedelta(seconds=900))

    assert delays == [timedelta(seconds=300), timedelta(seconds=600), timedelta(seconds=900)]


def test_zero_targets_yields_empty_list() -> None:
    assert rampup_delays(0, timedelta(seconds=10)) == []
    assert rampup_delays(0, timedelta(0)) == []


@pytest.mark.parametrize("count", [1, 2, 7, 64, 1000])
@pytest.mark.parametrize("interval", [timedelta(seconds=1), timedelta(milliseconds=999), timedelta(minutes=15)])
def test_delays_strictly_increase_within_interval(count: int, interval: timedelta) -> None:
    delays = rampup_delays(count, interval)

    assert len(delays) == count
    assert all(timedelta(0) < delay <= interval for delay in delays)
    assert all(earlier < later for earlier, later in zip(delays, delays[1:]))


def test_last_delay_is_floored_to_whole_microseconds() -> None:
    interval = timedelta(seconds=1)

    delays = rampup_delays(3, interval)

    assert delays[-1] == timedelta(microseconds=999_999)
    assert interval - delays[-1] < timedelta(microseconds=3)


def test_non_positive_interval_is_rejected() -> None:
    with pytest.raises(ValueError):
        rampup_delays(2, timedelta(0))


def test_interval_shorter_than_target_count_is_rejected() -> None:
    with pytest.raises(ValueError, match="too short"):
        rampup_delays(3, timedelta(microseconds=2))


def test_apply_rampup_keeps_targets_and_replaces_delays() -> None:
    targets = _targets(4)
    targets[1] = Target(url="http://example.com/own", name="own", interval=timedelta(seconds=5))
    manifest = Manifest(targets=targets)

    ramped = apply_rampup(manifest, timedelta(seconds=8))

    assert ramped.targets == manifest.targets
    assert ramped.start_delays == tuple(timedelta(seconds=s) for s in (2, 4, 6, 8))
    assert manifest.start_delays == (timedelta(0),) * 4
