"""Tests for the rich run summary."""

from rich.console import Console

from punchtrunk.config import Phase
from punchtrunk.formatters import RichFormatter
from punchtrunk.hotspots import rank_hotspots
from punchtrunk.orchestrator import RunOutcome, StageOutcome, StageStatus


def _console() -> Console:
    return Console(record=True, width=160)


class TestRichFormatter:
    def test_outcome_table(self):
        console = _console()
        outcome = RunOutcome(
            stages=[
                StageOutcome(Phase.FORMAT, StageStatus.SUCCEEDED, 1.25),
                StageOutcome(Phase.HOTSPOTS, StageStatus.DEGRADED, 0.5, "skipped: shallow clone"),
            ]
        )
        RichFormatter(console).render_outcome(outcome)
        text = console.export_text()
        assert "degraded" in text
        assert "skipped: shallow clone" in text
        assert "1.2s" in text or "1.3s" in text
        assert "exit 0" in text

    def test_top_hotspots_limited(self):
        console = _console()
        candidates = rank_hotspots({f"f{i}.py": i + 1 for i in range(20)}, {})
        RichFormatter(console).render_hotspots(candidates, limit=3)
        text = console.export_text()
        assert "Top 3 hotspots" in text
        assert "f19.py" in text
        assert "f0.py" not in text

    def test_no_hotspots(self):
        console = _console()
        RichFormatter(console).render_hotspots([])
        assert "No hotspot candidates" in console.export_text()

    def test_brackets_in_values_are_not_markup(self):
        console = _console()
        outcome = RunOutcome(
            stages=[StageOutcome(Phase.HOTSPOTS, StageStatus.DEGRADED, 0.1, "skipped: /x/[bold]y")]
        )
        formatter = RichFormatter(console)
        formatter.render_outcome(outcome)
        formatter.render_hotspots(rank_hotspots({"app/[id]/page.tsx": 3}, {}))
        text = console.export_text()
        assert "/x/[bold]y" in text
        assert "app/[id]/page.tsx" in text
