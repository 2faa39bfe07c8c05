"""Discover and read ``.trunk/trunk.yaml``."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import ConfigurationError
from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TrunkConfig:
    """The parts of trunk.yaml PunchTrunk looks at."""

    directory: Path
    cli_version: str = ""

    @classmethod
    def from_dict(cls, directory: Path, data: dict[str, Any]) -> TrunkConfig:
        def section(name: str) -> dict:
            value = data.get(name) or {}
            return value if isinstance(value, dict) else {}

        return cls(
            directory=directory,
            cli_version=str(section("cli").get("version") or "").strip(),
        )


def find_trunk_config_dir(start: Path) -> Optional[Path]:
    """Nearest ``.trunk`` directory holding trunk.yaml, walking upward."""
    current = Path(start).resolve()
    for directory in (current, *current.parents):
        candidate = directory / ".trunk" / "trunk.yaml"
        if candidate.is_file():
            return candidate.parent
    return None


def load_trunk_config(directory: Path) -> TrunkConfig:
    """Parse ``<directory>/trunk.yaml``.

    Raises:
        ConfigurationError: If the file is missing or not valid YAML
    """
    path = Path(directory) / "trunk.yaml"
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Cannot parse {path}: top level must be a mapping")
    return TrunkConfig.from_dict(Path(directory), data)


def discover_trunk_config(repo_root: Path, explicit_dir: Optional[str] = None) -> Optional[TrunkConfig]:
    """Explicit directory first, then upward discovery. Parse errors are warnings."""
    directory: Optional[Path] = None
    if explicit_dir:
        directory = Path(explicit_dir).expanduser().resolve()
        if not (directory / "trunk.yaml").is_file():
            logger.warning("trunk-config-dir %s does not contain trunk.yaml; trunk will rely on discovery", directory)
            return None
    else:
        directory = find_trunk_config_dir(repo_root)
        if directory is None:
            return None
        logger.debug("Detected Trunk config at %s", directory)

    try:
        return load_trunk_config(directory)
    except ConfigurationError as e:
        logger.warning("%s", e)
        return None


def normalize_trunk_version(version: str) -> str:
    version = version.strip()
    for prefix in ("trunk version ", "trunk "):
        if version.startswith(prefix):
            version = version[len(prefix):]
    return version.strip()


def trunk_version_matches(expected: str, actual: str) -> bool:
    """Loose comparison of trunk.yaml's ``cli.version`` against ``trunk --version``."""
    expected = expected.strip()
    if not expected or not actual.strip():
        return True
    normalized = normalize_trunk_version(actual)
    return normalized == expected or expected in actual or expected in normalized.split()
