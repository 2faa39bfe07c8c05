"""Offline-readiness diagnostics."""

import json
from pathlib import Path
from typing import Optional

import typer

from ..diagnostics import diagnose as run_diagnose
from . import app
from ._common import console, resolve_config


@app.command()
def diagnose(
    ctx: typer.Context,
    trunk_binary: Optional[str] = typer.Option(
        None,
        "--trunk-binary",
        help="Path to the trunk executable",
    ),
    sarif_out: Optional[str] = typer.Option(
        None,
        "--sarif-out",
        help="Findings document path to probe for write access",
    ),
):
    """
    Report whether PunchTrunk can run without network access.

    Prints a JSON report and exits 1 when any check is an error.
    """
    obj = ctx.obj or {}
    config: Optional[Path] = obj.get("config")
    settings = resolve_config(
        path=obj.get("path"),
        config=config,
        trunk_binary=trunk_binary or obj.get("trunk_binary"),
        sarif_out=sarif_out or obj.get("sarif_out"),
        tmp_dir=obj.get("tmp_dir"),
    )

    report = run_diagnose(settings)
    console.print_json(json.dumps(report.to_dict()))
    if report.has_errors:
        raise typer.Exit(1)
