"""Statistical aggregation of samples across runs."""

from __future__ import annotations

from typing import Sequence

from mirrorpick.models import METRIC_LATENCY, METRIC_TTR, EndpointStats, MetricStats, RunBatch

TRACKED_METRICS = (METRIC_LATENCY, METRIC_TTR)


def aggregate(batches: Sequence[RunBatch]) -> dict[str, EndpointStats]:
    """Fold every batch into one :class:`EndpointStats` per endpoint.

    Metric values are summed while folding and divided by the number of
    successful samples once at the end.  ``avg`` stays ``None`` for an
    endpoint with no successes.

    The failure count is ``len(batches) - success_count``: an endpoint
    missing from a batch counts as failed for that run, so success plus
    failure always equals the number of runs.  Endpoints that appear in no
    batch at all are not reported.
    """
    stats: dict[str, EndpointStats] = {}

    for batch in batches:
        for sample in batch.samples:
            s = stats.get(sample.endpoint)
            if s is None:
                s = stats[sample.endpoint] = EndpointStats(endpoint=sample.endpoint)

            if not sample.ok:
                continue
            assert sample.timing is not None

            s.success_count += 1
            for metric in TRACKED_METRICS:
                value = sample.timing.value(metric)
                if value is None:
                    continue
                s.metrics.setdefault(metric, MetricStats()).add(value)

    total_runs = len(batches)
    for s in stats.values():
        s.failure_count = total_runs - s.success_count
        if s.success_count > 0:
            for metric_stats in s.metrics.values():
                metric_stats.avg = metric_stats.total / metric_stats.count

    return stats
