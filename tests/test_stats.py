"""Tests for aggregation across runs."""

import pytest

from mirrorpick.errors import ProbeFailure
from mirrorpick.models import RunBatch, Sample, Timing
from mirrorpick.stats import aggregate

X = "https://x.example"
Y = "https://y.example"
Z = "https://z.example"


def ok(endpoint, run, latency, ttr=None):
    return Sample(endpoint=endpoint, run_index=run, timing=Timing(latency_ms=latency, ttr_ms=ttr))


def failed(endpoint, run):
    return Sample(endpoint=endpoint, run_index=run, failure=ProbeFailure(endpoint, TimeoutError()))


class TestAggregate:
    """Tests for aggregate function."""

    def test_empty_input(self):
        assert aggregate([]) == {}

    def test_two_runs_three_endpoints(self):
        batches = [
            RunBatch(0, [ok(X, 0, 100.0), ok(Y, 0, 500.0), failed(Z, 0)]),
            RunBatch(1, [failed(Z, 1), ok(Y, 1, 520.0), ok(X, 1, 120.0)]),
        ]

        stats = aggregate(batches)

        assert stats[X].avg("latency") == pytest.approx(110.0)
        assert stats[X].metrics["latency"].min == 100.0
        assert stats[X].metrics["latency"].max == 120.0
        assert stats[Y].avg("latency") == pytest.approx(510.0)
        assert stats[Z].success_count == 0
        assert stats[Z].failure_count == 2
        assert stats[Z].avg("latency") is None

    def test_min_le_mean_le_max(self):
        values = {X: [250.0, 80.0, 133.3, 97.1], Y: [10.0, 10.0, 10.0, 10.0]}
        batches = [
            RunBatch(i, [ok(e, i, v[i], ttr=v[i] * 3) for e, v in values.items()])
            for i in range(4)
        ]

        for s in aggregate(batches).values():
            for metric in ("latency", "ttr"):
                m = s.metrics[metric]
                assert m.min <= m.avg <= m.max

    def test_success_plus_failure_equals_runs(self):
        batches = [
            RunBatch(0, [ok(X, 0, 1.0), failed(Y, 0)]),
            RunBatch(1, [failed(X, 1), failed(Y, 1)]),
            RunBatch(2, [ok(X, 2, 1.0), ok(Y, 2, 2.0)]),
        ]

        for s in aggregate(batches).values():
            assert s.success_count + s.failure_count == 3
            assert s.total_runs == 3

    def test_endpoint_missing_from_a_batch_counts_as_failed(self):
        batches = [
            RunBatch(0, [ok(X, 0, 1.0), ok(Y, 0, 2.0)]),
            RunBatch(1, [ok(X, 1, 1.0)]),
        ]

        stats = aggregate(batches)

        assert stats[Y].success_count == 1
        assert stats[Y].failure_count == 1

    def test_endpoint_never_present_is_absent(self):
        stats = aggregate([RunBatch(0, [ok(X, 0, 1.0)])])

        assert set(stats) == {X}

    def test_single_metric_samples_track_only_latency(self):
        stats = aggregate([RunBatch(0, [ok(X, 0, 50.0)])])

        assert set(stats[X].metrics) == {"latency"}
        assert stats[X].avg("ttr") is None

    def test_two_metrics_averaged_independently(self):
        batches = [
            RunBatch(0, [ok(X, 0, 100.0, ttr=1000.0)]),
            RunBatch(1, [ok(X, 1, 200.0, ttr=3000.0)]),
        ]

        stats = aggregate(batches)

        assert stats[X].avg("latency") == pytest.approx(150.0)
        assert stats[X].avg("ttr") == pytest.approx(2000.0)
        assert stats[X].metrics["ttr"].min == 1000.0
        assert stats[X].metrics["ttr"].max == 3000.0
