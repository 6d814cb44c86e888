"""Data models for mirrorpick."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from mirrorpick.errors import ProbeFailure

METRIC_LATENCY = "latency"
METRIC_TTR = "ttr"


@dataclass(frozen=True)
class Timing:
    """Per-metric timing for a single successful probe."""

    latency_ms: float
    ttr_ms: Optional[float] = None  # Only set by render-capable backends

    def value(self, metric: str) -> Optional[float]:
        if metric == METRIC_LATENCY:
            return self.latency_ms
        if metric == METRIC_TTR:
            return self.ttr_ms
        raise KeyError(f"Unknown metric: {metric!r}")


@dataclass(frozen=True)
class Sample:
    """Outcome of probing one endpoint in one run.

    Exactly one of ``timing`` and ``failure`` is set.
    """

    endpoint: str
    run_index: int
    timing: Optional[Timing] = None
    failure: Optional[ProbeFailure] = None

    def __post_init__(self) -> None:
        if (self.timing is None) == (self.failure is None):
            raise ValueError("A sample carries either a timing or a failure")

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def error(self) -> Optional[str]:
        return self.failure.detail if self.failure else None


@dataclass
class RunBatch:
    """All samples collected by one fan-out pass. Order is completion order."""

    run_index: int
    samples: list[Sample] = field(default_factory=list)


@dataclass
class MetricStats:
    """Aggregated values of one metric for one endpoint."""

    count: int = 0
    total: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    avg: Optional[float] = None  # Set once folding is finished

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        if self.min is None or value < self.min:
            self.min = value
        if self.max is None or value > self.max:
            self.max = value


@dataclass
class EndpointStats:
    """Aggregate over every run for one endpoint."""

    endpoint: str
    metrics: dict[str, MetricStats] = field(default_factory=dict)
    success_count: int = 0
    failure_count: int = 0

    @property
    def total_runs(self) -> int:
        return self.success_count + self.failure_count

    def avg(self, metric: str) -> Optional[float]:
        stats = self.metrics.get(metric)
        return stats.avg if stats else None


@dataclass(frozen=True)
class RankedEndpoint:
    """EndpointStats decorated with per-metric and combined ranks."""

    stats: EndpointStats
    ranks: dict[str, int]
    combined_rank: float

    @property
    def endpoint(self) -> str:
        return self.stats.endpoint

    def rank(self, metric: str) -> int:
        return self.ranks[metric]


@dataclass
class MeasurementConfig:
    """Configuration for a measurement invocation."""

    endpoints: list[str] = field(default_factory=list)
    runs: int = 3
    concurrency: Optional[int] = None  # None = one slot per endpoint
    pace_s: float = 3.0
    timeout: float = 45.0
    threshold_percent: float = 2.0
    backend: str = "http"
    seed: Optional[int] = None
    verbose: bool = False
    quiet: bool = False
    json_output: bool = False
    csv_output: bool = False
    output_file: Optional[str] = None

    @property
    def concurrency_limit(self) -> int:
        return self.concurrency if self.concurrency is not None else len(self.endpoints)


@dataclass
class FullResult:
    """Complete results of one invocation."""

    config: Optional[MeasurementConfig] = None
    metrics: tuple[str, ...] = ()
    batches: list[RunBatch] = field(default_factory=list)
    stats: dict[str, EndpointStats] = field(default_factory=dict)
    ranked: list[RankedEndpoint] = field(default_factory=list)
    selected: Optional[str] = None
    timestamp: Optional[str] = None
