"""Locate the trunk executable.

Resolution order: explicit ``--trunk-binary``, ``PUNCHTRUNK_TRUNK_BINARY``,
``PATH``, then ``~/.trunk/bin``. Nothing is downloaded.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import InvalidPathError


def trunk_executable_name() -> str:
    return "trunk.exe" if os.name == "nt" else "trunk"


def airgap_mode() -> bool:
    value = os.environ.get("PUNCHTRUNK_AIRGAPPED", "").strip().lower()
    return value in ("1", "true", "yes")


def validate_trunk_binary(path: str | Path) -> Path:
    """Absolute path of an existing, executable, non-directory file.

    Raises:
        InvalidPathError: If the candidate is unusable
    """
    if not str(path).strip():
        raise InvalidPathError(Path(str(path)), "trunk binary path is empty")
    candidate = Path(path).expanduser().absolute()
    if not candidate.exists():
        raise InvalidPathError(candidate, "does not exist")
    if candidate.is_dir():
        raise InvalidPathError(candidate, "is a directory, expected executable")
    if os.name != "nt" and not os.access(candidate, os.X_OK):
        raise InvalidPathError(candidate, "is not executable")
    return candidate


@dataclass
class TrunkResolution:
    """Outcome of trunk discovery."""

    path: Optional[Path] = None
    source: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.path is not None

    def summary(self, version: str = "") -> str:
        if self.path is not None:
            extras = [f"source: {self.source}"] if self.source else []
            if version.strip():
                extras.append(f"version: {version.strip()}")
            return f"{self.path} ({', '.join(extras)})" if extras else str(self.path)
        if airgap_mode():
            return "not detected; provide --trunk-binary or PUNCHTRUNK_TRUNK_BINARY when running offline"
        return "not detected; install trunk or pass --trunk-binary"


def resolve_trunk(explicit: Optional[str] = None) -> TrunkResolution:
    """Try each source in order; invalid explicit paths become warnings."""
    resolution = TrunkResolution()
    seen: set[str] = set()

    def attempt(raw: Optional[str], source: str) -> bool:
        if not raw or not raw.strip() or raw in seen:
            return False
        seen.add(raw)
        try:
            resolution.path = validate_trunk_binary(raw)
        except InvalidPathError as e:
            resolution.warnings.append(f"{source} {raw} is invalid: {e.reason}")
            return False
        resolution.source = source
        return True

    if attempt(explicit, "--trunk-binary"):
        return resolution
    if attempt(os.environ.get("PUNCHTRUNK_TRUNK_BINARY", "").strip(), "PUNCHTRUNK_TRUNK_BINARY"):
        return resolution
    if attempt(shutil.which(trunk_executable_name()), "PATH"):
        return resolution
    attempt(str(Path.home() / ".trunk" / "bin" / trunk_executable_name()), "~/.trunk/bin")
    return resolution
