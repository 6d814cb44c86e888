"""JSON and CSV export for measurement results."""

from __future__ import annotations

import csv
import io
import json

from mirrorpick.models import EndpointStats, FullResult, RunBatch


def export_json(result: FullResult, indent: int = 2) -> str:
    """Export full results as JSON string."""
    data = _build_export_dict(result)
    return json.dumps(data, indent=indent, default=str)


def export_csv(result: FullResult) -> str:
    """Export results as CSV string (one row per ranked endpoint)."""
    output = io.StringIO()
    writer = csv.writer(output)

    header = ["timestamp", "position", "endpoint", "combined_rank"]
    for metric in result.metrics:
        header.extend([f"{metric}_rank", f"{metric}_avg", f"{metric}_min", f"{metric}_max"])
    header.extend(["success_count", "failure_count", "selected"])
    writer.writerow(header)

    for pos, r in enumerate(result.ranked, 1):
        row = [result.timestamp or "", pos, r.endpoint, r.combined_rank]
        for metric in result.metrics:
            ms = r.stats.metrics.get(metric)
            row.append(r.rank(metric))
            if ms:
                row.extend([ms.avg, ms.min, ms.max])
            else:
                row.extend([""] * 3)
        row.extend([
            r.stats.success_count,
            r.stats.failure_count,
            r.endpoint == result.selected,
        ])
        writer.writerow(row)

    return output.getvalue()


def write_to_file(content: str, filepath: str) -> None:
    """Write export content to a file."""
    with open(filepath, "w") as f:
        f.write(content)


def _build_export_dict(result: FullResult) -> dict:
    """Build a serializable dictionary from FullResult."""
    data: dict = {}

    if result.timestamp:
        data["timestamp"] = result.timestamp

    if result.config:
        data["config"] = {
            "endpoints": result.config.endpoints,
            "runs": result.config.runs,
            "concurrency": result.config.concurrency_limit,
            "pace_s": result.config.pace_s,
            "timeout": result.config.timeout,
            "threshold_percent": result.config.threshold_percent,
            "backend": result.config.backend,
            "seed": result.config.seed,
        }

    data["metrics"] = list(result.metrics)
    data["selected"] = result.selected
    data["ranking"] = [
        {
            "endpoint": r.endpoint,
            "ranks": dict(r.ranks),
            "combined_rank": r.combined_rank,
        }
        for r in result.ranked
    ]
    data["stats"] = {e: _stats_to_dict(s) for e, s in sorted(result.stats.items())}
    data["runs"] = [_batch_to_dict(b) for b in result.batches]

    return data


def _stats_to_dict(stats: EndpointStats) -> dict:
    """Convert an EndpointStats to a serializable dict."""
    return {
        "success_count": stats.success_count,
        "failure_count": stats.failure_count,
        "metrics": {
            metric: {"avg": ms.avg, "min": ms.min, "max": ms.max}
            for metric, ms in stats.metrics.items()
        },
    }


def _batch_to_dict(batch: RunBatch) -> dict:
    """Convert a RunBatch to a serializable dict, samples sorted by endpoint."""
    samples = []
    for s in sorted(batch.samples, key=lambda s: s.endpoint):
        samples.append({
            "endpoint": s.endpoint,
            "latency_ms": s.timing.latency_ms if s.timing else None,
            "ttr_ms": s.timing.ttr_ms if s.timing else None,
            "error": s.error,
        })
    return {"run": batch.run_index + 1, "samples": samples}
