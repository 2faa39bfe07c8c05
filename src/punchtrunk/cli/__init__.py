"""CLI entry point; registers all subcommands."""

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="punchtrunk",
    help="PunchTrunk - Trunk orchestration and hotspot ranking",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .run import main as _main_callback  # noqa: F401, E402
from .diagnose import diagnose as _diagnose  # noqa: F401, E402
from .cache import cache_info as _cache_info, cache_clear as _cache_clear  # noqa: F401, E402
