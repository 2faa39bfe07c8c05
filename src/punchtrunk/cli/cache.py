"""Churn cache management commands."""

import typer

from . import app
from ._common import console, resolve_config


def _open_cache(ctx: typer.Context):
    from ..cache import ChurnCache

    obj = ctx.obj or {}
    settings = resolve_config(path=obj.get("path"), config=obj.get("config"), tmp_dir=obj.get("tmp_dir"))
    return settings, ChurnCache(
        str(settings.resolve_cache_dir()),
        ttl_hours=settings.cache_ttl_hours,
        enabled=settings.cache_enabled,
    )


@app.command()
def cache_info(ctx: typer.Context):
    """Show churn cache information and statistics."""
    _, cache = _open_cache(ctx)
    try:
        stats = cache.stats()
    finally:
        cache.close()

    console.print("[bold cyan]PunchTrunk Cache Info[/bold cyan]")
    console.print()

    if stats.get("enabled"):
        console.print("Status: [green]Enabled[/green]")
        console.print(f"Directory: [blue]{stats.get('directory', 'N/A')}[/blue]")
        console.print(f"Entries: [yellow]{stats.get('size', 0)}[/yellow]")
        console.print(f"Size: [yellow]{stats.get('volume', 0)} bytes[/yellow]")
    else:
        console.print("Status: [red]Disabled[/red] (set cache_enabled or PUNCHTRUNK_CACHE_ENABLED)")


@app.command()
def cache_clear(ctx: typer.Context):
    """Clear the churn cache."""
    settings, cache = _open_cache(ctx)

    if not settings.cache_enabled:
        console.print("[yellow]Cache is disabled[/yellow]")
        raise typer.Exit(0)

    try:
        cache.clear()
    finally:
        cache.close()
    console.print("[green]Cache cleared successfully[/green]")
