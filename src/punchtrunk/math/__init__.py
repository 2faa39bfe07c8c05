"""Mathematical utilities for hotspot scoring."""

from .statistics import Statistics

__all__ = ["Statistics"]
