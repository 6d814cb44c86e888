"""Shared test helpers: an in-memory measurement backend and stats builder."""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from mirrorpick.backends.base import MeasurementBackend
from mirrorpick.models import METRIC_LATENCY, METRIC_TTR, EndpointStats, MetricStats, Timing

# A scripted outcome is a Timing, an exception to raise, or a latency in ms.
Outcome = Union[Timing, BaseException, float]


class FakeBackend(MeasurementBackend):
    """Backend that replays scripted outcomes per endpoint and tracks concurrency."""

    def __init__(
        self,
        script: dict[str, list[Outcome]],
        delay: float = 0.0,
        two_metric: bool = False,
    ) -> None:
        self.script = {k: list(v) for k, v in script.items()}
        self.delay = delay
        self.two_metric = two_metric
        self.active = 0
        self.max_active = 0
        self.calls: list[tuple[str, float]] = []
        self.started = False
        self.closed = False

    @property
    def name(self) -> str:
        return "Fake"

    @property
    def slug(self) -> str:
        return "fake"

    @property
    def metrics(self) -> tuple[str, ...]:
        return (METRIC_LATENCY, METRIC_TTR) if self.two_metric else (METRIC_LATENCY,)

    async def start(self) -> None:
        self.started = True

    async def close(self) -> None:
        self.closed = True

    async def measure(self, url: str, timeout: float) -> Timing:
        self.calls.append((url, timeout))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.script[url].pop(0)
        finally:
            self.active -= 1

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, Timing):
            return outcome
        return Timing(latency_ms=float(outcome))


def make_stats(
    endpoint: str,
    latency: Optional[float] = None,
    ttr: Optional[float] = None,
    success: int = 1,
    failure: int = 0,
) -> EndpointStats:
    """Build an EndpointStats with the given averages (min = max = avg)."""
    stats = EndpointStats(endpoint=endpoint, success_count=success, failure_count=failure)
    for metric, value in ((METRIC_LATENCY, latency), (METRIC_TTR, ttr)):
        if value is not None:
            stats.metrics[metric] = MetricStats(
                count=success, total=value * success, min=value, max=value, avg=value,
            )
    return stats
