"""Hotspot-pipeline conditions that are recovered locally.

None of these affect the run's exit status: the orchestrator degrades, the
writer falls back to a temp path, and scanners skip the offending file.
"""

from pathlib import Path
from typing import Optional

from .base import PunchTrunkError


class HotspotError(PunchTrunkError):
    """Base class for hotspot pipeline conditions."""

    pass


class HistoryUnavailable(HotspotError):
    """Raised when git history cannot cover the churn window."""

    def __init__(self, reason: str, repo_root: Optional[Path] = None):
        details = {"reason": reason}
        if repo_root is not None:
            details["repo_root"] = str(repo_root)
        super().__init__("Version-control history unavailable", details=details)
        self.reason = reason
        self.repo_root = repo_root


class OutputUnwritable(HotspotError):
    """Raised when the findings directory cannot be created or written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Cannot write findings to {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class MalformedInput(HotspotError):
    """Raised when a file cannot be read as text during scanning."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot read file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason
