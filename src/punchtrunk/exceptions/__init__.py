"""Exception hierarchy for PunchTrunk."""

from .base import PunchTrunkError
from .config import ConfigurationError, InvalidConfigError, InvalidPathError
from .execution import ExecutionError, StageTimeout, ToolFailure, ToolNotFound
from .history import HistoryUnavailable, HotspotError, MalformedInput, OutputUnwritable

__all__ = [
    "PunchTrunkError",
    "ConfigurationError",
    "InvalidConfigError",
    "InvalidPathError",
    "ExecutionError",
    "ToolFailure",
    "ToolNotFound",
    "StageTimeout",
    "HotspotError",
    "HistoryUnavailable",
    "OutputUnwritable",
    "MalformedInput",
]
