"""Rich terminal output for mirrorpick."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from mirrorpick.config import METRIC_LABELS, METRIC_THRESHOLDS
from mirrorpick.models import FullResult, RankedEndpoint, Sample
from mirrorpick.ranking import order_by_metric
from mirrorpick.selection import gap_percent

console = Console()
err_console = Console(stderr=True)

DASH = "—"


def _color_for_ms(value: float, metric: str = "latency") -> str:
    """Return a Rich color name based on a metric value and its thresholds."""
    thresholds = METRIC_THRESHOLDS.get(metric, METRIC_THRESHOLDS["latency"])
    if value <= thresholds["fast"]:
        return "green"
    elif value <= thresholds["medium"]:
        return "yellow"
    return "red"


def _fmt_ms(value: Optional[float], metric: str = "latency", colorize: bool = True) -> Text:
    """Format a millisecond value with optional color."""
    if value is None:
        return Text(DASH, style="dim")
    text = f"{value:.1f}ms"
    if colorize:
        return Text(text, style=_color_for_ms(value, metric))
    return Text(text)


def _label(metric: str) -> str:
    return METRIC_LABELS.get(metric, metric.upper())


# ── Progress tracking ─────────────────────────────────────────────────


class ProgressTracker:
    """Live progress display: runs completed per endpoint."""

    def __init__(self, endpoints: list[str], total_runs: int):
        self.endpoints = endpoints
        self.total_runs = total_runs
        self.completed: dict[str, int] = {e: 0 for e in endpoints}
        self.failures: dict[str, int] = {e: 0 for e in endpoints}
        self.live: Optional[Live] = None

    def _build_table(self) -> Table:
        table = Table(show_header=True, expand=False, border_style="dim")
        table.add_column("Endpoint", style="bold")
        table.add_column("Progress", min_width=20)
        table.add_column("Status")

        for endpoint in self.endpoints:
            completed = self.completed[endpoint]
            failures = self.failures[endpoint]
            bar_width = 15
            filled = int((completed / self.total_runs) * bar_width) if self.total_runs > 0 else 0
            bar = "[green]" + "█" * filled + "[/green]" + "[dim]░[/dim]" * (bar_width - filled)
            progress_text = f"{bar} {completed}/{self.total_runs}"

            if completed >= self.total_runs:
                status = "done" if failures < completed else "failed"
            else:
                status = "probing"
            style = {"done": "green", "failed": "red"}.get(status, "yellow")
            status_text = f"[{style}]{status}[/{style}]"
            if failures:
                status_text += f" [dim]({failures} err)[/dim]"

            table.add_row(endpoint, progress_text, status_text)

        return table

    def start(self) -> None:
        self.live = Live(self._build_table(), console=console, refresh_per_second=4)
        self.live.start()

    def update(self, sample: Sample) -> None:
        self.completed[sample.endpoint] = self.completed.get(sample.endpoint, 0) + 1
        if not sample.ok:
            self.failures[sample.endpoint] = self.failures.get(sample.endpoint, 0) + 1
        if self.live:
            self.live.update(self._build_table())

    def finish(self) -> None:
        if self.live:
            self.live.stop()


# ── Ranking tables ────────────────────────────────────────────────────


def _build_metric_table(ranked: Sequence[RankedEndpoint], metric: str) -> Table:
    """Build the ranking table for one metric."""
    table = Table(
        show_header=True,
        border_style="bright_black",
        expand=False,
        header_style="bold",
        title=f"[bold]Rankings by {_label(metric)}[/bold]",
        title_style="",
    )
    table.add_column("#", justify="right", width=3, style="dim")
    table.add_column("Endpoint", style="bold", min_width=24)
    table.add_column(f"Avg {_label(metric)}", justify="right")
    table.add_column("Rank", justify="right")

    for pos, r in enumerate(order_by_metric(ranked, metric), 1):
        table.add_row(str(pos), r.endpoint, _fmt_ms(r.stats.avg(metric), metric), str(r.rank(metric)))

    return table


def _build_summary_table(ranked: Sequence[RankedEndpoint], metrics: Sequence[str]) -> Table:
    """Build the per-endpoint summary sorted by combined rank."""
    table = Table(
        show_header=True,
        border_style="bright_black",
        expand=False,
        pad_edge=True,
        header_style="bold",
        title="[bold]Summary[/bold] [dim](sorted by combined rank)[/dim]",
        title_style="",
    )
    table.add_column("#", justify="right", width=3, style="dim")
    table.add_column("Endpoint", style="bold", min_width=24)
    for metric in metrics:
        label = _label(metric)
        table.add_column(f"{label} avg", justify="right")
        table.add_column(f"{label} min", justify="right")
        table.add_column(f"{label} max", justify="right")
        table.add_column(f"{label} rank", justify="right")
    table.add_column("Combined", justify="right")
    table.add_column("OK/Fail", justify="right")
    table.add_column("Gap to next", justify="right")

    for i, r in enumerate(ranked):
        row: list = [str(i + 1), r.endpoint]
        for metric in metrics:
            ms = r.stats.metrics.get(metric)
            row.extend([
                _fmt_ms(ms.avg if ms else None, metric),
                _fmt_ms(ms.min if ms else None, metric, colorize=False),
                _fmt_ms(ms.max if ms else None, metric, colorize=False),
                str(r.rank(metric)),
            ])
        row.append(f"{r.combined_rank:.2f}")
        row.append(f"{r.stats.success_count}/{r.stats.failure_count}")
        if i < len(ranked) - 1:
            nxt = ranked[i + 1]
            row.append(f"{nxt.combined_rank - r.combined_rank:.2f} ({gap_percent(r, nxt):.2f}%)")
        else:
            row.append(Text(DASH, style="dim"))
        table.add_row(*row)

    return table


def render_leader_gap(ranked: Sequence[RankedEndpoint]) -> None:
    """Print the gap between the 1st and 2nd ranked endpoints."""
    if len(ranked) < 2:
        return
    first, second = ranked[0], ranked[1]
    console.print("[bold]Gap between 1st and 2nd ranked endpoints:[/bold]")
    console.print(f"  1st: {first.endpoint} (combined rank {first.combined_rank:.2f})")
    console.print(f"  2nd: {second.endpoint} (combined rank {second.combined_rank:.2f})")
    console.print(
        f"  Absolute gap: {second.combined_rank - first.combined_rank:.2f}, "
        f"percentage difference: {gap_percent(first, second):.2f}%"
    )


def render_overall(ranked: Sequence[RankedEndpoint]) -> None:
    """Print the spread of combined ranks from fastest to slowest."""
    if len(ranked) < 2:
        return
    fastest, slowest = ranked[0], ranked[-1]
    total_gap = slowest.combined_rank - fastest.combined_rank
    console.print("[bold]Overall statistics:[/bold]")
    console.print(f"  Combined rank range: {total_gap:.2f}")
    console.print(f"  Average gap between endpoints: {total_gap / (len(ranked) - 1):.2f}")
    console.print(f"  Fastest vs slowest: {gap_percent(fastest, slowest):.2f}%")


def render_unreachable(result: FullResult) -> None:
    """List endpoints that never succeeded."""
    dead = sorted(e for e, s in result.stats.items() if s.success_count == 0)
    if dead:
        console.print(f"[red]No successful samples:[/red] {', '.join(dead)}")


# ── Full result rendering ─────────────────────────────────────────────


def render_full(result: FullResult, verbose: bool = False) -> None:
    """Render rankings, summary, gap analysis and the selected endpoint."""
    if not result.ranked:
        console.print("[dim]No results to rank.[/dim]")
        return

    if verbose:
        for metric in result.metrics:
            console.print()
            console.print(_build_metric_table(result.ranked, metric))

    console.print()
    console.print(_build_summary_table(result.ranked, result.metrics))
    render_unreachable(result)
    console.print()
    render_leader_gap(result.ranked)
    render_overall(result.ranked)

    if result.selected:
        console.print()
        console.print(f"[bold green]Selected endpoint:[/bold green] {result.selected}")


def render_error(message: str) -> None:
    """Display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")
