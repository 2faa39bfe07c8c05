"""Trunk CLI discovery, configuration and invocation."""

from .binary import TrunkResolution, airgap_mode, resolve_trunk, validate_trunk_binary
from .commands import (
    CompetingToolNotifier,
    detect_competing_tools,
    trunk_check_args,
    trunk_env,
    trunk_fmt_args,
)
from .runner import TrunkRunner
from .trunk_config import (
    TrunkConfig,
    discover_trunk_config,
    find_trunk_config_dir,
    load_trunk_config,
    normalize_trunk_version,
    trunk_version_matches,
)

__all__ = [
    "CompetingToolNotifier",
    "TrunkConfig",
    "TrunkResolution",
    "TrunkRunner",
    "airgap_mode",
    "detect_competing_tools",
    "discover_trunk_config",
    "find_trunk_config_dir",
    "load_trunk_config",
    "normalize_trunk_version",
    "resolve_trunk",
    "trunk_check_args",
    "trunk_env",
    "trunk_fmt_args",
    "trunk_version_matches",
    "validate_trunk_binary",
]
