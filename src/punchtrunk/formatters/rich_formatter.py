"""Rich terminal summaries of a run."""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..hotspots.ranker import HotspotCandidate

_STATUS_STYLE = {
    "succeeded": "green",
    "failed": "red",
    "timed_out": "red",
    "degraded": "yellow",
    "skipped": "dim",
}


class RichFormatter:
    """Render stage outcomes and top hotspots as tables."""

    def __init__(self, console: Console):
        self.console = console

    def render_outcome(self, outcome) -> None:
        table = Table(title="PunchTrunk run", show_lines=False)
        table.add_column("Stage", style="bold")
        table.add_column("Status")
        table.add_column("Duration", justify="right")
        table.add_column("Detail", overflow="fold")

        for stage in outcome.stages:
            style = _STATUS_STYLE.get(stage.status.value, "")
            table.add_row(
                stage.phase.value,
                f"[{style}]{stage.status.value}[/{style}]" if style else stage.status.value,
                f"{stage.duration_seconds:.1f}s",
                Text(stage.detail or ""),
            )
        self.console.print(table)

        verdict = "[green]success[/green]" if outcome.succeeded else "[red]failure[/red]"
        self.console.print(f"Result: {verdict} (exit {outcome.exit_code})")

    def render_hotspots(self, candidates: Sequence[HotspotCandidate], limit: int = 10) -> None:
        if not candidates:
            self.console.print("[dim]No hotspot candidates.[/dim]")
            return

        table = Table(title=f"Top {min(limit, len(candidates))} hotspots")
        table.add_column("#", justify="right", style="dim")
        table.add_column("File", style="cyan")
        table.add_column("Churn", justify="right")
        table.add_column("Complexity", justify="right")
        table.add_column("Score", justify="right", style="bold")
        table.add_column("Changed", justify="center")

        for rank, c in enumerate(candidates[:limit], 1):
            table.add_row(
                str(rank),
                Text(c.path),
                str(c.churn),
                f"{c.complexity:.2f}",
                f"{c.score:.2f}",
                "yes" if c.changed else "",
            )
        self.console.print(table)
