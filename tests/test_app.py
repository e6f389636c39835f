import time
from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from models.records import Manifest, Sample, Target
from services.orchestrator import Orchestrator


class InstantSampler:
    def execute(self, target: Target) -> Sample:
        now = datetime.now(timezone.utc)
        return Sample(t1=now, t2=now, status_code=200)


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def orchestrator() -> Iterator[Orchestrator]:
    manifest = Manifest(
        targets=[
            Target(url="http://a.test/", name="a"),
            Target(url="http://b.test/", name="b", key="site.b", interval=timedelta(seconds=2)),
        ],
        start_delays=[timedelta(milliseconds=500), timedelta(seconds=1)],
    )
    fetched = Manifest(targets=[Target(url="http://c.test/", name="c")])
    instance = Orchestrator(
        manifest,
        [],
        InstantSampler(),
        manifest_url="http://manifest.test/targets.json",
        default_interval=timedelta(seconds=1),
        fetch_manifest=lambda url: fetched,
        on_fatal=lambda message: None,
    )
    instance.run()
    assert _wait_for(lambda: instance.generation == 1)
    yield instance
    instance.close()


@pytest.fixture
def api_client(orchestrator: Orchestrator) -> Iterator[TestClient]:
    with TestClient(create_app(orchestrator)) as client:
        yield client


def test_health(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_status_lists_live_sensors(api_client: TestClient) -> None:
    response = api_client.get("/status")

    assert response.status_code == 200
    payload = response.json()
    assert payload["state"] == "running"
    assert payload["generation"] == 1
    assert payload["sensors"] == [
        {
            "name": "a",
            "key": "a",
            "url": "http://a.test/",
            "type": "http_check",
            "interval_ms": 1000,
            "start_delay_ms": 500,
            "stopped": False,
        },
        {
            "name": "b",
            "key": "site.b",
            "url": "http://b.test/",
            "type": "http_check",
            "interval_ms": 2000,
            "start_delay_ms": 1000,
            "stopped": False,
        },
    ]


def test_reload_replaces_sensor_generation(api_client: TestClient, orchestrator: Orchestrator) -> None:
    response = api_client.post("/reload")

    assert response.status_code == 202
    assert response.json() == {"status": "reload requested"}
    assert _wait_for(lambda: orchestrator.generation == 2)

    payload = api_client.get("/status").json()
    assert [sensor["name"] for sensor in payload["sensors"]] == ["c"]
