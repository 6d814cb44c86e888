"""Core measurement engine for mirrorpick.

Three layers, each built on the one below:
  probe_endpoint -> run_batch -> iter_runs / run_all

A probe measures one endpoint once and always returns a Sample; failures
are recorded on the sample, never raised.  A batch fans probes out over
all endpoints with a concurrency cap and collects their samples through a
queue.  Runs execute strictly one after another with an optional pause in
between.

Public API:
    validate_plan   -- reject an invalid run plan before probing
    probe_endpoint  -- measure one endpoint once
    run_batch       -- one bounded fan-out pass over every endpoint
    iter_runs       -- yield each RunBatch as soon as it completes
    run_all         -- run every pass and return all batches
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Callable, Optional, Sequence

from mirrorpick.backends.base import MeasurementBackend
from mirrorpick.config import DEFAULT_TIMEOUT, PROBE_TIMEOUT_GRACE_S
from mirrorpick.errors import ConfigurationError, ProbeFailure
from mirrorpick.models import RunBatch, Sample

logger = logging.getLogger(__name__)

# Invoked once per completed probe, from the event loop thread.
SampleCallback = Callable[[Sample], None]


# ---------------------------------------------------------------------------
# Plan validation
# ---------------------------------------------------------------------------

def validate_plan(
    endpoints: Sequence[str],
    runs: int = 1,
    concurrency_limit: Optional[int] = None,
) -> None:
    """Raise :class:`ConfigurationError` if the plan cannot be executed."""
    if not endpoints:
        raise ConfigurationError("At least one endpoint is required")
    seen: set[str] = set()
    duplicates: set[str] = set()
    for endpoint in endpoints:
        if endpoint in seen:
            duplicates.add(endpoint)
        seen.add(endpoint)
    if duplicates:
        raise ConfigurationError(f"Duplicate endpoints: {', '.join(sorted(duplicates))}")
    if runs <= 0:
        raise ConfigurationError(f"Run count must be positive, got {runs}")
    if concurrency_limit is not None and concurrency_limit <= 0:
        raise ConfigurationError(
            f"Concurrency limit must be positive, got {concurrency_limit}"
        )


# ---------------------------------------------------------------------------
# Probe executor
# ---------------------------------------------------------------------------

async def probe_endpoint(
    backend: MeasurementBackend,
    endpoint: str,
    run_index: int = 0,
    timeout: float = DEFAULT_TIMEOUT,
) -> Sample:
    """Measure *endpoint* once.

    The backend receives *timeout* and is additionally cut off after
    ``timeout + PROBE_TIMEOUT_GRACE_S`` in case it does not honour it.
    Any exception becomes a failed sample.
    """
    try:
        timing = await asyncio.wait_for(
            backend.measure(endpoint, timeout),
            timeout=timeout + PROBE_TIMEOUT_GRACE_S,
        )
    except asyncio.TimeoutError as exc:
        logger.debug("Probe of %s timed out after %.1fs", endpoint, timeout)
        return Sample(endpoint=endpoint, run_index=run_index, failure=ProbeFailure(endpoint, exc))
    except Exception as exc:
        logger.debug("Probe of %s failed: %s", endpoint, exc)
        return Sample(endpoint=endpoint, run_index=run_index, failure=ProbeFailure(endpoint, exc))

    return Sample(endpoint=endpoint, run_index=run_index, timing=timing)


# ---------------------------------------------------------------------------
# Bounded fan-out
# ---------------------------------------------------------------------------

async def run_batch(
    endpoints: Sequence[str],
    backend: MeasurementBackend,
    concurrency_limit: Optional[int] = None,
    *,
    run_index: int = 0,
    timeout: float = DEFAULT_TIMEOUT,
    on_sample: SampleCallback | None = None,
) -> RunBatch:
    """Probe every endpoint once with at most *concurrency_limit* in flight.

    Each probe task sends its sample to a single queue; the batch is
    complete once exactly ``len(endpoints)`` samples have been received.
    Sample order is completion order and carries no meaning.
    """
    validate_plan(endpoints, 1, concurrency_limit)
    limit = concurrency_limit if concurrency_limit is not None else len(endpoints)

    semaphore = asyncio.Semaphore(min(limit, len(endpoints)))
    results: asyncio.Queue[Sample] = asyncio.Queue()

    async def _probe_unit(endpoint: str) -> None:
        # Every unit sends exactly one sample, even when cancelled.
        try:
            async with semaphore:
                sample = await probe_endpoint(backend, endpoint, run_index, timeout)
        except BaseException as exc:
            results.put_nowait(
                Sample(endpoint=endpoint, run_index=run_index, failure=ProbeFailure(endpoint, exc))
            )
            raise
        results.put_nowait(sample)

    tasks = [asyncio.create_task(_probe_unit(e)) for e in endpoints]

    batch = RunBatch(run_index=run_index)
    try:
        for _ in range(len(tasks)):
            sample = await results.get()
            batch.samples.append(sample)
            if on_sample is not None:
                on_sample(sample)
        await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()

    return batch


# ---------------------------------------------------------------------------
# Run orchestration
# ---------------------------------------------------------------------------

def _log_batch(batch: RunBatch, runs: int) -> None:
    logger.info("Results for run %d of %d:", batch.run_index + 1, runs)
    for sample in batch.samples:
        if sample.ok:
            assert sample.timing is not None
            if sample.timing.ttr_ms is not None:
                logger.info(
                    "%s: latency %.1fms, TTR %.1fms",
                    sample.endpoint, sample.timing.latency_ms, sample.timing.ttr_ms,
                )
            else:
                logger.info("%s: latency %.1fms", sample.endpoint, sample.timing.latency_ms)
        else:
            logger.info("%s: error: %s", sample.endpoint, sample.error)


async def iter_runs(
    endpoints: Sequence[str],
    backend: MeasurementBackend,
    runs: int,
    concurrency_limit: Optional[int] = None,
    *,
    pace_s: float = 0.0,
    timeout: float = DEFAULT_TIMEOUT,
    on_sample: SampleCallback | None = None,
) -> AsyncIterator[RunBatch]:
    """Yield one :class:`RunBatch` per run, as each run finishes.

    Runs never overlap.  After every run but the last the generator sleeps
    *pace_s* seconds before starting the next one.
    """
    validate_plan(endpoints, runs, concurrency_limit)

    for i in range(runs):
        logger.info("Starting run %d of %d", i + 1, runs)
        batch = await run_batch(
            endpoints,
            backend,
            concurrency_limit,
            run_index=i,
            timeout=timeout,
            on_sample=on_sample,
        )
        _log_batch(batch, runs)
        yield batch

        if i < runs - 1 and pace_s > 0:
            await asyncio.sleep(pace_s)


async def run_all(
    endpoints: Sequence[str],
    backend: MeasurementBackend,
    runs: int,
    concurrency_limit: Optional[int] = None,
    *,
    pace_s: float = 0.0,
    timeout: float = DEFAULT_TIMEOUT,
    on_sample: SampleCallback | None = None,
) -> list[RunBatch]:
    """Execute *runs* sequential batches and return all of them in run order.

    Raises
    ------
    ConfigurationError
        If the plan is invalid; nothing is probed in that case.
    """
    validate_plan(endpoints, runs, concurrency_limit)
    logger.info(
        "Measuring %d endpoints over %d runs (concurrency limit %s)",
        len(endpoints), runs, concurrency_limit or len(endpoints),
    )
    return [
        batch
        async for batch in iter_runs(
            endpoints,
            backend,
            runs,
            concurrency_limit,
            pace_s=pace_s,
            timeout=timeout,
            on_sample=on_sample,
        )
    ]
