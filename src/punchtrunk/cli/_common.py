"""Shared CLI helpers."""

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from ..config import RunConfiguration, load_config
from ..exceptions import ConfigurationError

console = Console()
err_console = Console(stderr=True)

# Exit status for invalid configuration or usage
EXIT_USAGE = 2


def resolve_config(
    path: Optional[Path] = None,
    config: Optional[Path] = None,
    **overrides: Any,
) -> RunConfiguration:
    """Build the run configuration from CLI options, exiting 2 when invalid."""
    if path is not None:
        overrides["repo_root"] = str(path)
    try:
        return load_config(config_file=config, **overrides)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}", highlight=False)
        raise typer.Exit(EXIT_USAGE)
