"""Pydantic schemas for manifest payloads served over HTTP."""

from __future__ import annotations

from datetime import timedelta
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from models.records import DEFAULT_TARGET_TYPE, Target

LEGACY_INTERVAL = timedelta(seconds=10)
LEGACY_TIMEOUT = timedelta(seconds=10)


class LegacyTargetPayload(BaseModel):
    """Bare ``{url, name}`` entry of a manifest served as a JSON list."""

    url: str = Field(..., validation_alias=AliasChoices("url", "URL"))
    name: str = Field(..., validation_alias=AliasChoices("name", "Name"))

    def to_target(self) -> Target:
        return Target(
            url=self.url,
            name=self.name,
            key=self.name,
            type=DEFAULT_TARGET_TYPE,
            interval=LEGACY_INTERVAL,
            timeout=LEGACY_TIMEOUT,
        )


class TargetPayload(BaseModel):
    """Fully specified target; ``interval`` and ``timeout`` are milliseconds."""

    url: str = Field(..., validation_alias=AliasChoices("url", "URL"))
    name: str = Field(..., validation_alias=AliasChoices("name", "Name"))
    key: Optional[str] = Field(default=None, validation_alias=AliasChoices("key", "Key"))
    type: str = Field(
        default=DEFAULT_TARGET_TYPE, validation_alias=AliasChoices("type", "Type")
    )
    interval: int = Field(
        default=0, ge=0, validation_alias=AliasChoices("interval", "Interval")
    )
    timeout: int = Field(
        default=int(LEGACY_TIMEOUT.total_seconds() * 1000),
        ge=0,
        validation_alias=AliasChoices("timeout", "Timeout"),
    )

    def to_target(self) -> Target:
        return Target(
            url=self.url,
            name=self.name,
            key=self.key or self.name,
            type=self.type,
            interval=timedelta(milliseconds=self.interval),
            timeout=timedelta(milliseconds=self.timeout),
        )


class ManifestPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    targets: List[TargetPayload] = Field(
        default_factory=list, validation_alias=AliasChoices("targets", "Targets")
    )
