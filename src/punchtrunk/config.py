"""Configuration loading and management for PunchTrunk.

This module provides configuration discovery and validation. Configuration
sources are merged in priority order:
    1. Defaults (defined in RunConfiguration)
    2. Global config (~/.punchtrunk.toml)
    3. Project config (<repo>/punchtrunk.toml)
    4. Explicit config file
    5. Environment variables (PUNCHTRUNK_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(phases="fmt,hotspots", timeout_seconds=60)
    >>> config.phases
    (<Phase.FORMAT: 'format'>, <Phase.HOTSPOTS: 'hotspots'>)
"""

from __future__ import annotations

import os
import tempfile
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from .exceptions import ConfigurationError, InvalidConfigError
from .logging_config import get_logger

logger = get_logger(__name__)


class Phase(str, Enum):
    """Stages a run can execute. They run in the order the user lists them."""

    FORMAT = "format"
    CHECK = "check"
    HOTSPOTS = "hotspots"


class AutofixPolicy(str, Enum):
    """How much the check stage is allowed to rewrite."""

    NONE = "none"
    FORMAT_ONLY = "format-only"
    ALL = "all"


# Names accepted on the command line in addition to the canonical values
PHASE_ALIASES = {
    "fmt": Phase.FORMAT,
    "format": Phase.FORMAT,
    "lint": Phase.CHECK,
    "check": Phase.CHECK,
    "hotspots": Phase.HOTSPOTS,
}

AUTOFIX_ALIASES = {
    "none": AutofixPolicy.NONE,
    "fmt": AutofixPolicy.FORMAT_ONLY,
    "format": AutofixPolicy.FORMAT_ONLY,
    "format-only": AutofixPolicy.FORMAT_ONLY,
    "lint": AutofixPolicy.ALL,
    "all": AutofixPolicy.ALL,
}

DEFAULT_PHASES = (Phase.FORMAT, Phase.CHECK, Phase.HOTSPOTS)
DEFAULT_SARIF_OUT = "reports/hotspots.sarif"


def parse_phases(value: Union[str, Iterable[Union[str, Phase]], None]) -> tuple[Phase, ...]:
    """Parse a comma-separated (or iterable) phase selection.

    Unknown names raise ``InvalidConfigError``; duplicates are dropped. The
    result keeps the order the user gave, which is the execution order.
    """
    if value is None:
        return DEFAULT_PHASES
    if isinstance(value, str):
        raw_items: list = value.split(",")
    else:
        raw_items = list(value)

    phases: list[Phase] = []
    for raw in raw_items:
        if isinstance(raw, Phase):
            phase = raw
        else:
            name = str(raw).strip().lower()
            if not name:
                continue
            phase = PHASE_ALIASES.get(name)
            if phase is None:
                raise InvalidConfigError(
                    "phases", raw, f"expected one of {', '.join(sorted(PHASE_ALIASES))}"
                )
        if phase not in phases:
            phases.append(phase)

    return tuple(phases) if phases else DEFAULT_PHASES


def parse_autofix(value: Union[str, AutofixPolicy]) -> AutofixPolicy:
    """Parse an autofix policy name, accepting the legacy aliases."""
    if isinstance(value, AutofixPolicy):
        return value
    policy = AUTOFIX_ALIASES.get(str(value).strip().lower())
    if policy is None:
        raise InvalidConfigError(
            "autofix", value, f"expected one of {', '.join(sorted(AUTOFIX_ALIASES))}"
        )
    return policy


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable per-invocation settings.

    Attributes:
        Stage selection:
            phases: Ordered subset of format/check/hotspots
            autofix: Autofix policy for the check stage
            trunk_args: Extra arguments forwarded to every trunk invocation

        Hotspots:
            base_ref: Reference the changed set is computed against
            churn_window_days: History window for churn collection
            max_results: Result cap applied after ranking
            sarif_out: Requested findings document path

        Execution:
            repo_root: Repository being analyzed
            timeout_seconds: Shared deadline for the whole run (0 disables)
            tmp_dir: Base directory for fallbacks (None = system temp dir)
            trunk_binary: Explicit trunk executable
            trunk_config_dir: Explicit directory holding trunk.yaml

        Scanning:
            exclude_dirs: Directory names never descended into
            max_file_size_kb: Files larger than this are not scanned

        Caching:
            cache_enabled: Reuse churn reports keyed by repository state
            cache_dir: Directory for the cache (None = under tmp dir)
            cache_ttl_hours: Cache time-to-live in hours

        Output control:
            verbose / quiet / json_logs: Logging mode
    """

    phases: tuple[Phase, ...] = DEFAULT_PHASES
    autofix: AutofixPolicy = AutofixPolicy.FORMAT_ONLY
    trunk_args: tuple[str, ...] = ()

    base_ref: str = "origin/main"
    churn_window_days: int = 90
    max_results: int = 500
    sarif_out: str = DEFAULT_SARIF_OUT

    repo_root: str = "."
    timeout_seconds: float = 900
    tmp_dir: Optional[str] = None
    trunk_binary: Optional[str] = None
    trunk_config_dir: Optional[str] = None

    exclude_dirs: tuple[str, ...] = field(
        default_factory=lambda: (
            ".git",
            ".hg",
            ".svn",
            ".trunk",
            "node_modules",
            "vendor",
            "dist",
            "build",
            "venv",
            ".venv",
            "__pycache__",
            ".tox",
            ".mypy_cache",
            ".pytest_cache",
            ".ruff_cache",
        )
    )
    max_file_size_kb: int = 1024

    cache_enabled: bool = False
    cache_dir: Optional[str] = None
    cache_ttl_hours: int = 24

    verbose: bool = False
    quiet: bool = False
    json_logs: bool = False

    def __post_init__(self) -> None:
        """Normalize enum-ish fields and validate ranges."""
        object.__setattr__(self, "phases", parse_phases(self.phases))
        object.__setattr__(self, "autofix", parse_autofix(self.autofix))
        object.__setattr__(self, "trunk_args", tuple(self.trunk_args))
        object.__setattr__(self, "exclude_dirs", tuple(self.exclude_dirs))

        if self.churn_window_days < 1:
            raise ValueError("churn_window_days must be at least 1")
        if self.max_results < 1:
            raise ValueError("max_results must be at least 1")
        if self.timeout_seconds < 0:
            raise ValueError("timeout_seconds must be non-negative")
        if self.max_file_size_kb <= 0:
            raise ValueError("max_file_size_kb must be positive")
        if self.cache_ttl_hours < 0:
            raise ValueError("cache_ttl_hours must be non-negative")
        if not self.base_ref.strip():
            raise ValueError("base_ref must not be empty")

    @property
    def root_path(self) -> Path:
        """Absolute repository root."""
        return Path(self.repo_root).resolve()

    @property
    def deadline_seconds(self) -> Optional[float]:
        """Deadline length, or None when the deadline is disabled."""
        return self.timeout_seconds if self.timeout_seconds > 0 else None

    @property
    def max_file_size_bytes(self) -> int:
        """Get max scanned file size in bytes."""
        return self.max_file_size_kb * 1024

    @property
    def cache_ttl_seconds(self) -> int:
        """Get cache TTL in seconds."""
        return self.cache_ttl_hours * 3600

    def resolve_sarif_out(self) -> Path:
        """Findings path, anchored at the repository root when relative."""
        path = Path(self.sarif_out)
        if not path.is_absolute():
            path = self.root_path / path
        return path

    def resolve_tmp_dir(self) -> Path:
        """Resolve and create the temp base directory.

        An unusable ``tmp_dir`` falls back to the system temp directory with a
        warning rather than failing the run.
        """
        system_tmp = Path(tempfile.gettempdir())
        if not self.tmp_dir or not self.tmp_dir.strip():
            return system_tmp

        base = Path(self.tmp_dir.strip())
        if not base.is_absolute():
            base = Path.cwd() / base
        try:
            base.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("tmp-dir %s unusable (%s); using %s", base, e, system_tmp)
            return system_tmp
        return base

    def resolve_cache_dir(self) -> Path:
        """Cache directory (kept out of the working tree by default)."""
        if self.cache_dir:
            return Path(self.cache_dir)
        return self.resolve_tmp_dir() / "punchtrunk" / "cache"


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> RunConfiguration:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower-priority values.

    Returns:
        Validated RunConfiguration instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or a
            value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".punchtrunk.toml"
    if global_config.exists():
        merged.update(_load_toml_section(global_config))

    repo_root = overrides.get("repo_root") or "."
    project_config = Path(repo_root) / "punchtrunk.toml"
    if project_config.exists():
        merged.update(_load_toml_section(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_section(config_file))

    merged.update(_load_env_vars())
    merged.update({key: value for key, value in overrides.items() if value is not None})

    unknown = sorted(set(merged) - set(RunConfiguration.__dataclass_fields__))
    if unknown:
        raise ConfigurationError(
            f"Invalid configuration: unknown option(s) {', '.join(unknown)}"
        )

    try:
        return RunConfiguration(**merged)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


# Env var name -> (field name, parser)
_ENV_FIELDS: dict[str, tuple[str, Any]] = {
    "PUNCHTRUNK_PHASES": ("phases", str),
    "PUNCHTRUNK_AUTOFIX": ("autofix", str),
    "PUNCHTRUNK_BASE_REF": ("base_ref", str),
    "PUNCHTRUNK_TIMEOUT_SECONDS": ("timeout_seconds", float),
    "PUNCHTRUNK_SARIF_OUT": ("sarif_out", str),
    "PUNCHTRUNK_MAX_RESULTS": ("max_results", int),
    "PUNCHTRUNK_CHURN_WINDOW_DAYS": ("churn_window_days", int),
    "PUNCHTRUNK_TMP_DIR": ("tmp_dir", str),
    "PUNCHTRUNK_TRUNK_BINARY": ("trunk_binary", str),
    "PUNCHTRUNK_TRUNK_CONFIG_DIR": ("trunk_config_dir", str),
    "PUNCHTRUNK_CACHE_ENABLED": ("cache_enabled", bool),
    "PUNCHTRUNK_CACHE_DIR": ("cache_dir", str),
    "PUNCHTRUNK_JSON_LOGS": ("json_logs", bool),
}


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from PUNCHTRUNK_* environment variables.

    Blank values are treated as unset.

    Returns:
        Dict of field_name -> parsed_value for any PUNCHTRUNK_* vars found.
    """
    result: dict[str, Any] = {}

    for env_key, (field_name, parser) in _ENV_FIELDS.items():
        raw = os.environ.get(env_key)
        if raw is None or not raw.strip():
            continue
        try:
            result[field_name] = _parse_env_value(raw.strip(), parser)
        except ValueError as e:
            raise InvalidConfigError(env_key, raw, str(e)) from e

    return result


def _parse_env_value(value: str, parser: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    if parser is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    return parser(value)


def _load_toml_section(path: Path) -> dict[str, Any]:
    """Load a TOML config file.

    Settings live at the top level of ``punchtrunk.toml``; a ``[punchtrunk]``
    table is accepted too so the options can share a file with other tools.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}") from e

    section = data.get("punchtrunk", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid config file '{path}': [punchtrunk] must be a table")

    # TOML arrays arrive as lists; the dataclass stores tuples
    return {
        key: tuple(value) if isinstance(value, list) else value
        for key, value in section.items()
    }
