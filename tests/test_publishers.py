from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

import pytest

from models.records import Measurement, Sample, Target
from publishers import PUBLISHER_FACTORIES, PublisherConfigError, build_publishers
from publishers.stdout import OpenTSDBStdoutPublisher, StdoutPublisher, ZabbixStdoutPublisher
from publishers.zabbix import ZabbixPublisher
from settings import Settings

T1 = datetime(2014, 12, 28, tzinfo=timezone.utc)
T2 = datetime(2014, 12, 28, 0, 0, 1, tzinfo=timezone.utc)


def _measurement(error: Exception | None = None, status_code: int = 200) -> Measurement:
    target = Target(
        url="http://www.canary.io",
        name="canary-home",
        key="healthcheck[http://www.canary.io][500][canary-home]",
        type="http.healthcheck",
    )
    return Measurement(
        target=target,
        sample=Sample(t1=T1, t2=T2, status_code=status_code),
        error=error,
    )


def _settings(**overrides) -> Settings:
    values = dict(
        manifest_url="http://manifest.test/",
        publishers=("stdout",),
        default_sample_interval=timedelta(seconds=1),
        reload_interval=timedelta(0),
        rampup_sensors=False,
        ppid=0,
        parent_check_interval=timedelta(seconds=60),
        buffer_size=8,
        zabbix_push_addr=None,
        hostname="agent-host",
        control_host="127.0.0.1",
        control_port=0,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def test_stdout_publisher_format() -> None:
    stream = io.StringIO()

    StdoutPublisher(stream).publish(_measurement())

    assert stream.getvalue() == "2014-12-28T00:00:01Z http://www.canary.io 200 1000.000000 true\n"


def test_stdout_publisher_marks_failures() -> None:
    stream = io.StringIO()

    StdoutPublisher(stream).publish(_measurement(error=TimeoutError("timed out"), status_code=-1))

    assert stream.getvalue() == "2014-12-28T00:00:01Z http://www.canary.io -1 1000.000000 false\n"


def test_opentsdb_stdout_publisher_format() -> None:
    stream = io.StringIO()

    OpenTSDBStdoutPublisher(stream).publish(_measurement())

    assert stream.getvalue() == (
        "http.healthcheck 1419724801 1000.000000 status=200 check=canary-home\n"
    )


def test_zabbix_stdout_publisher_uses_sentinel_for_errors() -> None:
    stream = io.StringIO()
    publisher = ZabbixStdoutPublisher(stream)

    publisher.publish(_measurement())
    publisher.publish(_measurement(error=RuntimeError("boom"), status_code=503))

    assert stream.getvalue().splitlines() == [
        "healthcheck[http://www.canary.io][500][canary-home] = 200",
        "healthcheck[http://www.canary.io][500][canary-home] = -1",
    ]


class RecordingZabbixClient:
    def __init__(self) -> None:
        self.sent: list[list[dict]] = []

    def send(self, metrics) -> None:
        self.sent.append(list(metrics))


def test_zabbix_publisher_sends_status_as_trapper_value() -> None:
    client = RecordingZabbixClient()
    publisher = ZabbixPublisher("zbx://zabbix.test", host="agent-host", client=client)

    publisher.publish(_measurement(error=RuntimeError("down")))

    assert client.sent == [
        [
            {
                "host": "agent-host",
                "key": "healthcheck[http://www.canary.io][500][canary-home]",
                "value": "-1",
                "clock": 1419724801,
            }
        ]
    ]


def test_zabbix_publisher_requires_push_address() -> None:
    with pytest.raises(PublisherConfigError, match="ZABBIX_PUSH_ADDR"):
        ZabbixPublisher.from_settings(_settings())


def test_zabbix_publisher_from_settings() -> None:
    publisher = ZabbixPublisher.from_settings(_settings(zabbix_push_addr="zabbix.test:10052"))

    assert publisher.host == "agent-host"


def test_build_publishers_preserves_configured_order() -> None:
    publishers = build_publishers(["zabbixstdout", "stdout", "opentsdbstdout"], _settings())

    assert [type(p) for p in publishers] == [
        ZabbixStdoutPublisher,
        StdoutPublisher,
        OpenTSDBStdoutPublisher,
    ]


def test_build_publishers_propagates_configuration_errors() -> None:
    with pytest.raises(PublisherConfigError):
        build_publishers(["stdout", "zabbix"], _settings())


def test_registry_lists_known_identifiers() -> None:
    assert set(PUBLISHER_FACTORIES) == {"stdout", "opentsdbstdout", "zabbixstdout", "zabbix"}
