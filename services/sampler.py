"""Probe execution for a single target."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from models.records import DEFAULT_TIMEOUT, Sample, Target

USER_AGENT = "canary/0.1.0"


class SampleError(Exception):
    """Raised when a probe cannot produce a successful sample."""


class StatusCodeError(SampleError):
    """Raised when the target answered with a non-success status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Unexpected status code {status_code}")
        self.status_code = status_code


class Sampler(Protocol):
    def execute(self, target: Target) -> Sample:
        ...


class HttpSampler:
    """Samples targets with a GET request over a shared connection pool."""

    def __init__(self, client: Optional[httpx.Client] = None) -> None:
        self._client = client or httpx.Client(
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def close(self) -> None:
        self._client.close()

    def execute(self, target: Target) -> Sample:
        timeout = (target.timeout or DEFAULT_TIMEOUT).total_seconds()
        t1 = datetime.now(timezone.utc)
        try:
            response = self._client.get(target.url, timeout=timeout)
        except httpx.HTTPError as exc:
            raise SampleError(f"Request to {target.url} failed: {exc}") from exc
        t2 = datetime.now(timezone.utc)

        if not response.is_success:
            raise StatusCodeError(response.status_code)
        return Sample(t1=t1, t2=t2, status_code=response.status_code)
