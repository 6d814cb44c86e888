"""Tests for data models and error types."""

import pytest

from mirrorpick.errors import ConfigurationError, MirrorPickError, NoCandidates, ProbeFailure
from mirrorpick.models import EndpointStats, MeasurementConfig, MetricStats, Sample, Timing


class TestTiming:
    def test_value_lookup(self):
        timing = Timing(latency_ms=12.5, ttr_ms=800.0)

        assert timing.value("latency") == 12.5
        assert timing.value("ttr") == 800.0

    def test_unknown_metric(self):
        with pytest.raises(KeyError):
            Timing(latency_ms=1.0).value("dns")


class TestSample:
    def test_success(self):
        sample = Sample("https://a.example", 0, timing=Timing(5.0))

        assert sample.ok
        assert sample.error is None

    def test_failure(self):
        sample = Sample("https://a.example", 1, failure=ProbeFailure("https://a.example", OSError("reset")))

        assert not sample.ok
        assert sample.error == "reset"

    def test_requires_exactly_one_outcome(self):
        with pytest.raises(ValueError):
            Sample("https://a.example", 0)
        with pytest.raises(ValueError):
            Sample("https://a.example", 0, timing=Timing(1.0), failure=ProbeFailure("https://a.example"))


class TestMetricStats:
    def test_add_tracks_min_max_total(self):
        stats = MetricStats()
        for value in (30.0, 10.0, 20.0):
            stats.add(value)

        assert (stats.count, stats.total, stats.min, stats.max) == (3, 60.0, 10.0, 30.0)
        assert stats.avg is None


class TestEndpointStats:
    def test_avg_of_unmeasured_metric_is_none(self):
        assert EndpointStats(endpoint="https://a.example").avg("latency") is None


class TestMeasurementConfig:
    def test_concurrency_defaults_to_endpoint_count(self):
        assert MeasurementConfig(endpoints=["a", "b", "c"]).concurrency_limit == 3
        assert MeasurementConfig(endpoints=["a", "b"], concurrency=1).concurrency_limit == 1


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(ConfigurationError, MirrorPickError)
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(NoCandidates, MirrorPickError)

    def test_probe_failure_message(self):
        failure = ProbeFailure("https://a.example", TimeoutError())

        assert failure.detail == "TimeoutError"
        assert str(failure) == "https://a.example: TimeoutError"

    def test_no_candidates_default_message(self):
        assert str(NoCandidates()) == "No successful measurements were made."
