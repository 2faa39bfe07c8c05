"""Hotspot ranking and the end-to-end hotspot pipeline."""

from .pipeline import HotspotPipeline, HotspotResult
from .ranker import CHANGED_MULTIPLIER, HotspotCandidate, composite_score, rank_hotspots

__all__ = [
    "CHANGED_MULTIPLIER",
    "HotspotCandidate",
    "HotspotPipeline",
    "HotspotResult",
    "composite_score",
    "rank_hotspots",
]
