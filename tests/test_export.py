"""Tests for JSON and CSV export."""

import csv
import io
import json

from mirrorpick.errors import ProbeFailure
from mirrorpick.export import export_csv, export_json
from mirrorpick.models import FullResult, MeasurementConfig, RunBatch, Sample, Timing
from mirrorpick.ranking import rank_endpoints
from mirrorpick.stats import aggregate

X = "https://x.example"
Y = "https://y.example"
Z = "https://z.example"


def _result() -> FullResult:
    batches = [
        RunBatch(0, [
            Sample(X, 0, timing=Timing(100.0, 1200.0)),
            Sample(Y, 0, timing=Timing(200.0, 900.0)),
            Sample(Z, 0, failure=ProbeFailure(Z, ConnectionError("refused"))),
        ]),
    ]
    stats = aggregate(batches)
    ranked = rank_endpoints(stats)
    return FullResult(
        config=MeasurementConfig(endpoints=[X, Y, Z], runs=1, backend="render", seed=3),
        metrics=("latency", "ttr"),
        batches=batches,
        stats=stats,
        ranked=ranked,
        selected=X,
        timestamp="2026-01-01T00:00:00+00:00",
    )


class TestExportJson:
    """Tests for export_json."""

    def test_structure(self):
        data = json.loads(export_json(_result()))

        assert data["timestamp"] == "2026-01-01T00:00:00+00:00"
        assert data["config"]["concurrency"] == 3
        assert data["config"]["backend"] == "render"
        assert data["metrics"] == ["latency", "ttr"]
        assert data["selected"] == X
        assert [r["endpoint"] for r in data["ranking"]] == [X, Y]
        assert data["ranking"][0]["ranks"] == {"latency": 1, "ttr": 2}
        assert data["stats"][Z] == {"success_count": 0, "failure_count": 1, "metrics": {}}

    def test_failed_samples_carry_error(self):
        data = json.loads(export_json(_result()))

        samples = {s["endpoint"]: s for s in data["runs"][0]["samples"]}
        assert data["runs"][0]["run"] == 1
        assert samples[Z] == {"endpoint": Z, "latency_ms": None, "ttr_ms": None, "error": "refused"}
        assert samples[X]["ttr_ms"] == 1200.0


class TestExportCsv:
    """Tests for export_csv."""

    def test_one_row_per_ranked_endpoint(self):
        rows = list(csv.DictReader(io.StringIO(export_csv(_result()))))

        assert [r["endpoint"] for r in rows] == [X, Y]
        assert rows[0]["latency_rank"] == "1"
        assert rows[0]["ttr_rank"] == "2"
        assert rows[0]["combined_rank"] == "1.5"
        assert rows[0]["selected"] == "True"
        assert rows[1]["selected"] == "False"
