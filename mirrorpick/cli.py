"""CLI entry point and orchestration for mirrorpick."""

from __future__ import annotations

import asyncio
import logging
import random
import sys
from datetime import datetime, timezone
from typing import Optional

import click
from rich.logging import RichHandler

from mirrorpick import __version__
from mirrorpick.config import (
    DEFAULT_BACKEND,
    DEFAULT_ENDPOINTS,
    DEFAULT_PACE_S,
    DEFAULT_RUNS,
    DEFAULT_THRESHOLD_PERCENT,
    DEFAULT_TIMEOUT,
)
from mirrorpick.errors import ConfigurationError, NoCandidates
from mirrorpick.models import FullResult, MeasurementConfig

EXIT_NO_CANDIDATES = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


@click.command()
@click.option("-e", "--endpoint", "endpoints", multiple=True, help="Endpoint URL (repeatable, comma-separated ok)")
@click.option(
    "-f", "--endpoints-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="File with one endpoint per line ('#' starts a comment)",
)
@click.option("-n", "--runs", default=DEFAULT_RUNS, help="Number of runs", show_default=True)
@click.option("-c", "--concurrency", type=int, default=None, help="Max concurrent probes per run [default: all]")
@click.option("-d", "--delay", default=DEFAULT_PACE_S, help="Pause between runs in seconds", show_default=True)
@click.option("-t", "--timeout", default=DEFAULT_TIMEOUT, help="Per-probe timeout in seconds", show_default=True)
@click.option(
    "--threshold", default=DEFAULT_THRESHOLD_PERCENT,
    help="Hedge when the top two are within this percent", show_default=True,
)
@click.option(
    "-b", "--backend",
    type=click.Choice(["http", "render"]),
    default=DEFAULT_BACKEND,
    help="Measurement backend",
    show_default=True,
)
@click.option("--seed", type=int, default=None, help="Seed the selection's random source")
@click.option("--json", "json_output", is_flag=True, help="Output JSON to stdout")
@click.option("--csv", "csv_output", is_flag=True, help="Output CSV to stdout")
@click.option("-o", "--output", default=None, help="Write results to file")
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress, show only results")
@click.option("-v", "--verbose", is_flag=True, help="Log per-run results and show per-metric rankings")
@click.version_option(version=__version__)
def main(
    endpoints: tuple[str, ...],
    endpoints_file: str | None,
    runs: int,
    concurrency: int | None,
    delay: float,
    timeout: float,
    threshold: float,
    backend: str,
    seed: int | None,
    json_output: bool,
    csv_output: bool,
    output: str | None,
    quiet: bool,
    verbose: bool,
) -> None:
    """mirrorpick: pick the fastest of several near-duplicate mirrors.

    Probes every endpoint over several runs, ranks them by average latency
    (and time-to-render with the render backend) and selects one, hedging
    between the top two when they are too close to call.
    """
    silent = quiet or json_output or csv_output
    _configure_logging(verbose=verbose, silent=silent)

    from mirrorpick.display import render_error

    config = MeasurementConfig(
        endpoints=_collect_endpoints(endpoints, endpoints_file) or list(DEFAULT_ENDPOINTS),
        runs=runs,
        concurrency=concurrency,
        pace_s=delay,
        timeout=timeout,
        threshold_percent=threshold,
        backend=backend,
        seed=seed,
        verbose=verbose,
        quiet=quiet,
        json_output=json_output,
        csv_output=csv_output,
        output_file=output,
    )

    try:
        _validate_config(config)
    except ConfigurationError as exc:
        render_error(str(exc))
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        result = asyncio.run(_run(config))
    except KeyboardInterrupt:
        if not silent:
            from mirrorpick.display import console
            console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(EXIT_INTERRUPTED)
    except NoCandidates as exc:
        render_error(str(exc))
        sys.exit(EXIT_NO_CANDIDATES)

    _handle_output(result, config)


def _configure_logging(verbose: bool, silent: bool) -> None:
    """Route library logging through rich on stderr."""
    from mirrorpick.display import err_console

    level = logging.INFO if verbose else logging.WARNING
    if silent:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _collect_endpoints(endpoints: tuple[str, ...], endpoints_file: Optional[str]) -> list[str]:
    """Merge ``-e`` values and the endpoints file, keeping first-seen order."""
    collected: list[str] = []
    for value in endpoints:
        collected.extend(e.strip() for e in value.split(",") if e.strip())

    if endpoints_file:
        with open(endpoints_file) as f:
            for line in f:
                line = line.split("#", 1)[0].strip()
                if line:
                    collected.append(line)

    return collected


def _validate_config(config: MeasurementConfig) -> None:
    """Reject an unusable configuration before anything is probed."""
    from mirrorpick.engine import validate_plan

    validate_plan(config.endpoints, config.runs, config.concurrency)
    if config.timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {config.timeout}")
    if config.pace_s < 0:
        raise ConfigurationError(f"Delay must not be negative, got {config.pace_s}")
    if config.threshold_percent < 0:
        raise ConfigurationError(f"Threshold must not be negative, got {config.threshold_percent}")


async def _run(config: MeasurementConfig) -> FullResult:
    """Main async orchestration."""
    from mirrorpick.backends import get_backend
    from mirrorpick.display import ProgressTracker, console
    from mirrorpick.engine import run_all
    from mirrorpick.ranking import rank_endpoints
    from mirrorpick.selection import select_endpoint
    from mirrorpick.stats import aggregate

    backend = get_backend(config.backend)

    progress = None
    if not config.quiet and not config.json_output and not config.csv_output:
        progress = ProgressTracker(config.endpoints, config.runs)
        console.print(
            f"[bold]Measuring {len(config.endpoints)} endpoints with {backend.name}, "
            f"{config.runs} runs, concurrency {config.concurrency_limit}...[/bold]\n"
        )
        progress.start()

    try:
        async with backend:
            batches = await run_all(
                config.endpoints,
                backend,
                config.runs,
                config.concurrency,
                pace_s=config.pace_s,
                timeout=config.timeout,
                on_sample=progress.update if progress else None,
            )
    finally:
        if progress:
            progress.finish()

    stats = aggregate(batches)
    ranked = rank_endpoints(stats)
    if not ranked:
        raise NoCandidates()

    selected = select_endpoint(ranked, config.threshold_percent, random.Random(config.seed))

    return FullResult(
        config=config,
        metrics=tuple(ranked[0].ranks),
        batches=batches,
        stats=stats,
        ranked=ranked,
        selected=selected,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def _handle_output(result: FullResult, config: MeasurementConfig) -> None:
    """Handle output rendering and export."""
    from mirrorpick.display import console, render_full
    from mirrorpick.export import export_csv, export_json, write_to_file

    # JSON output
    if config.json_output:
        json_str = export_json(result)
        if config.output_file:
            write_to_file(json_str, config.output_file)
            if not config.quiet:
                console.print(f"[dim]Results written to {config.output_file}[/dim]")
        else:
            click.echo(json_str)
        return

    # CSV output
    if config.csv_output:
        csv_str = export_csv(result)
        if config.output_file:
            write_to_file(csv_str, config.output_file)
            if not config.quiet:
                console.print(f"[dim]Results written to {config.output_file}[/dim]")
        else:
            click.echo(csv_str)
        return

    # Rich terminal output
    render_full(result, verbose=config.verbose)

    # Also write to file if -o specified (non-json/csv mode writes JSON)
    if config.output_file:
        write_to_file(export_json(result), config.output_file)
        console.print(f"\n[dim]Results written to {config.output_file}[/dim]")


if __name__ == "__main__":
    main()
