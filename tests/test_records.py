from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.records import FAILED_STATUS_CODE, Manifest, Measurement, Sample, Target


def test_target_key_defaults_to_name() -> None:
    target = Target(url="http://example.com", name="example")

    assert target.key == "example"
    assert target.interval == timedelta(0)
    assert target.timeout == timedelta(seconds=10)


def test_sample_rejects_t2_before_t1() -> None:
    t1 = datetime(2024, 1, 1, tzinfo=timezone.utc)

    with pytest.raises(ValueError):
        Sample(t1=t1, t2=t1 - timedelta(seconds=1), status_code=200)


def test_measurement_status_uses_sentinel_on_error() -> None:
    t1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
    sample = Sample(t1=t1, t2=t1 + timedelta(milliseconds=250), status_code=503)
    target = Target(url="http://example.com", name="example")

    failed = Measurement(target=target, sample=sample, error=RuntimeError("boom"))
    succeeded = Measurement(target=target, sample=sample)

    assert failed.status_code == FAILED_STATUS_CODE
    assert failed.ok is False
    assert succeeded.status_code == 503
    assert sample.duration_ms == 250.0


def test_manifest_defaults_start_delays_to_zero() -> None:
    targets = [Target(url="http://a", name="a"), Target(url="http://b", name="b")]

    manifest = Manifest(targets=targets)

    assert manifest.start_delays == (timedelta(0), timedelta(0))


def test_manifest_rejects_misaligned_delays() -> None:
    with pytest.raises(ValueError):
        Manifest(targets=[Target(url="http://a", name="a")], start_delays=[timedelta(1), timedelta(2)])
