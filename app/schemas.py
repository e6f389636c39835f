"""Pydantic schemas for the control API."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from services.orchestrator import Orchestrator, OrchestratorState
from services.sensor import Sensor


def _millis(value: Optional[timedelta]) -> Optional[int]:
    if value is None:
        return None
    return int(value.total_seconds() * 1000)


class SensorStatus(BaseModel):
    """One live sensor and the target it samples."""

    name: str
    key: str
    url: str
    type: str
    interval_ms: Optional[int] = Field(default=None, ge=0)
    start_delay_ms: Optional[int] = Field(default=None, ge=0)
    stopped: bool

    @classmethod
    def from_sensor(cls, sensor: Sensor) -> "SensorStatus":
        target = sensor.target
        return cls(
            name=target.name,
            key=target.key,
            url=target.url,
            type=target.type,
            interval_ms=_millis(sensor.interval),
            start_delay_ms=_millis(sensor.start_delay),
            stopped=sensor.is_stopped,
        )


class AgentStatus(BaseModel):
    """Orchestrator state and its current sensor generation."""

    state: OrchestratorState
    generation: int = Field(..., ge=0)
    sensors: List[SensorStatus] = Field(default_factory=list)

    @classmethod
    def from_orchestrator(cls, orchestrator: Orchestrator) -> "AgentStatus":
        return cls(
            state=orchestrator.state,
            generation=orchestrator.generation,
            sensors=[SensorStatus.from_sensor(sensor) for sensor in orchestrator.sensors],
        )


class ReloadResponse(BaseModel):
    status: str = "reload requested"
