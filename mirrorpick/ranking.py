"""Multi-metric ranking of aggregated endpoint statistics."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

from mirrorpick.models import EndpointStats, RankedEndpoint
from mirrorpick.stats import TRACKED_METRICS


def competition_ranks(values: Sequence[float]) -> list[int]:
    """Rank pre-sorted *values*, ties sharing the rank of the first tied entry.

    The rank otherwise equals the 1-based position, so ``[1, 1, 2]``
    ranks as ``[1, 1, 3]``.
    """
    ranks: list[int] = []
    rank = 1
    for i, value in enumerate(values):
        if i > 0 and value != values[i - 1]:
            rank = i + 1
        ranks.append(rank)
    return ranks


def rankable_metrics(stats: Sequence[EndpointStats]) -> tuple[str, ...]:
    """Return the tracked metrics that every given endpoint has an average for."""
    if not stats:
        return ()
    return tuple(m for m in TRACKED_METRICS if all(s.avg(m) is not None for s in stats))


def rank_endpoints(
    stats: Mapping[str, EndpointStats],
    metrics: Optional[Sequence[str]] = None,
) -> list[RankedEndpoint]:
    """Rank every endpoint with at least one success.

    Each metric is sorted ascending by average, ties broken by the other
    metrics and then by endpoint identifier.  The combined rank is the
    mean of the per-metric ranks; the result is ordered by combined rank,
    then endpoint identifier.  Endpoints without successes are left out,
    so the result may be empty.

    Parameters
    ----------
    stats:
        Output of :func:`mirrorpick.stats.aggregate`.
    metrics:
        Metrics to rank by.  Defaults to every tracked metric that all
        eligible endpoints have measured.
    """
    eligible = [s for s in stats.values() if s.success_count > 0]
    if not eligible:
        return []

    if metrics is None:
        metrics = rankable_metrics(eligible)
    if not metrics:
        raise ValueError("No metric is available for every endpoint")
    for metric in metrics:
        missing = [s.endpoint for s in eligible if s.avg(metric) is None]
        if missing:
            raise ValueError(f"No {metric} average for: {', '.join(sorted(missing))}")

    ranks: dict[str, dict[str, int]] = {s.endpoint: {} for s in eligible}
    for metric in metrics:
        others = [m for m in metrics if m != metric]
        ordered = sorted(
            eligible,
            key=lambda s: (s.avg(metric), *(s.avg(o) for o in others), s.endpoint),
        )
        values = [s.avg(metric) for s in ordered]
        for s, rank in zip(ordered, competition_ranks(values)):
            ranks[s.endpoint][metric] = rank

    ranked = [
        RankedEndpoint(
            stats=s,
            ranks=ranks[s.endpoint],
            combined_rank=sum(ranks[s.endpoint].values()) / len(metrics),
        )
        for s in eligible
    ]
    ranked.sort(key=lambda r: (r.combined_rank, r.endpoint))
    return ranked


def order_by_metric(ranked: Sequence[RankedEndpoint], metric: str) -> list[RankedEndpoint]:
    """Reorder ranked endpoints by a single metric's rank (for reporting)."""
    return sorted(ranked, key=lambda r: (r.rank(metric), r.stats.avg(metric), r.endpoint))
