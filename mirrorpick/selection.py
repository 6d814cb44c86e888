"""Hedged selection of a single endpoint from a ranking."""

from __future__ import annotations

import logging
import random
from typing import Optional, Protocol, Sequence

from mirrorpick.config import HEDGE_PROBABILITY
from mirrorpick.errors import ConfigurationError, NoCandidates
from mirrorpick.models import RankedEndpoint

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...


def gap_percent(first: RankedEndpoint, second: RankedEndpoint) -> float:
    """Combined-rank gap from *first* to *second*, as a percentage of *first*."""
    return (second.combined_rank - first.combined_rank) / first.combined_rank * 100


def select_endpoint(
    ranked: Sequence[RankedEndpoint],
    threshold_percent: float,
    rng: Optional[RandomSource] = None,
) -> str:
    """Pick the endpoint to use from a ranking ordered best first.

    When the runner-up is within *threshold_percent* of the leader, the
    leader wins with probability :data:`HEDGE_PROBABILITY` and the
    runner-up otherwise; outside the threshold the leader always wins.
    Pass a seeded ``random.Random`` as *rng* for reproducible picks.

    Raises
    ------
    NoCandidates
        If *ranked* is empty.
    ConfigurationError
        If *threshold_percent* is negative.
    """
    if threshold_percent < 0:
        raise ConfigurationError(f"Threshold must not be negative, got {threshold_percent}")
    if not ranked:
        raise NoCandidates()
    if len(ranked) < 2:
        return ranked[0].endpoint

    first, second = ranked[0], ranked[1]
    gap = gap_percent(first, second)
    if gap > threshold_percent:
        return first.endpoint

    draw = (rng or random.Random()).random()
    chosen = first if draw < HEDGE_PROBABILITY else second
    logger.info(
        "Top two within %.2f%% (gap %.2f%%), hedged pick: %s",
        threshold_percent, gap, chosen.endpoint,
    )
    return chosen.endpoint
