"""Main command: runs the selected stages through RunOrchestrator."""

from pathlib import Path
from typing import Optional

import click
import typer

from ..config import AUTOFIX_ALIASES
from ..diagnostics import build_dry_run_plan
from ..formatters import RichFormatter
from ..logging_config import setup_logging
from ..orchestrator import RunOrchestrator
from . import app
from ._common import console, resolve_config


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        help="Comma-separated stages: fmt, lint, hotspots (default: all three)",
    ),
    autofix: Optional[str] = typer.Option(
        None,
        "--autofix",
        help="Autofix policy for trunk check",
        click_type=click.Choice(sorted(AUTOFIX_ALIASES), case_sensitive=False),
    ),
    base_branch: Optional[str] = typer.Option(
        None,
        "--base-branch",
        help="Reference the changed set is computed against (default: origin/main)",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Overall deadline in seconds, shared by every stage (0 disables)",
        min=0,
    ),
    sarif_out: Optional[str] = typer.Option(
        None,
        "--sarif-out",
        help="Findings document path (default: reports/hotspots.sarif)",
    ),
    max_results: Optional[int] = typer.Option(
        None,
        "--max-results",
        help="Maximum hotspot results kept after ranking",
        min=1,
        hidden=True,
    ),
    tmp_dir: Optional[str] = typer.Option(
        None,
        "--tmp-dir",
        help="Base directory for fallback output",
    ),
    trunk_binary: Optional[str] = typer.Option(
        None,
        "--trunk-binary",
        help="Path to the trunk executable",
    ),
    trunk_config_dir: Optional[str] = typer.Option(
        None,
        "--trunk-config-dir",
        help="Directory holding trunk.yaml (exported as TRUNK_CONFIG_DIR)",
    ),
    trunk_arg: Optional[list[str]] = typer.Option(
        None,
        "--trunk-arg",
        help="Extra argument forwarded to trunk (repeatable)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the planned commands without executing them",
    ),
    json_logs: Optional[bool] = typer.Option(
        None,
        "--json-logs",
        help="Emit JSON log lines on stderr",
        show_default=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging and top hotspots in the summary",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors and skip the summary",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Run trunk fmt, trunk check and hotspot ranking under one deadline.

    Stages run in the order given by --mode. A missing or shallow git history
    skips hotspots with a warning and does not fail the run.

    [bold cyan]Examples:[/bold cyan]

      punchtrunk

      punchtrunk --mode hotspots --sarif-out reports/hotspots.sarif

      punchtrunk --mode fmt,lint --autofix none --timeout 300

      punchtrunk --dry-run
    """
    ctx.ensure_object(dict)
    ctx.obj["path"] = path
    ctx.obj["config"] = config
    ctx.obj["trunk_binary"] = trunk_binary
    ctx.obj["sarif_out"] = sarif_out
    ctx.obj["tmp_dir"] = tmp_dir

    if ctx.invoked_subcommand is not None:
        return

    from .. import __version__

    if version:
        console.print(f"[bold cyan]PunchTrunk[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    settings = resolve_config(
        path=path,
        config=config,
        phases=mode,
        autofix=autofix,
        base_ref=base_branch,
        timeout_seconds=timeout,
        sarif_out=sarif_out,
        max_results=max_results,
        tmp_dir=tmp_dir,
        trunk_binary=trunk_binary,
        trunk_config_dir=trunk_config_dir,
        trunk_args=tuple(trunk_arg) if trunk_arg else None,
        json_logs=json_logs,
        verbose=verbose or None,
        quiet=quiet or None,
    )
    logger = setup_logging(verbose=settings.verbose, quiet=settings.quiet, json_logs=settings.json_logs)

    if dry_run:
        build_dry_run_plan(settings).print(console)
        raise typer.Exit(0)

    try:
        outcome = RunOrchestrator(settings).run()
    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        console.print("\n[yellow]Run interrupted[/yellow]")
        raise typer.Exit(130)

    if not settings.quiet:
        formatter = RichFormatter(console)
        formatter.render_outcome(outcome)
        hotspots = outcome.hotspots
        if hotspots is not None:
            if hotspots.write.fell_back:
                console.print(
                    f"[yellow]Findings written to fallback path:[/yellow] {hotspots.write.path}",
                    highlight=False,
                )
            if settings.verbose:
                formatter.render_hotspots(hotspots.candidates)

    raise typer.Exit(outcome.exit_code)
