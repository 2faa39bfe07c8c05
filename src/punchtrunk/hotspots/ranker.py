"""Hotspot ranking.

Merges churn and complexity into one composite score per file:

    score = ln(1 + churn) * (1 + complexity_z)

then boosts files under review, sorts, and truncates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Optional

from ..math import Statistics

CHANGED_MULTIPLIER = 1.15
DEFAULT_MAX_RESULTS = 500


@dataclass(frozen=True)
class HotspotCandidate:
    """A churned file with its ranking inputs and composite score."""

    path: str
    churn: int
    complexity: float
    complexity_z: float
    score: float
    changed: bool = False


def composite_score(churn: int, complexity_z: float, changed: bool = False) -> float:
    """``ln(1 + churn) * (1 + z)``, times 1.15 for files in the changed set."""
    score = math.log1p(churn) * (1.0 + complexity_z)
    if changed:
        score *= CHANGED_MULTIPLIER
    return score


def rank_hotspots(
    churn: Mapping[str, int],
    complexity: Mapping[str, float],
    changed: Optional[set[str]] = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[HotspotCandidate]:
    """Rank churned files by composite score.

    Only files with churn > 0 are candidates; a file missing from
    ``complexity`` counts as complexity 0. Complexity is z-scored over the
    candidate set (zero when it has fewer than two members or no variance).
    Ordering is descending score, ties by ascending path, and the cap is
    applied after sorting.
    """
    changed = changed or set()
    # Sorted so the statistics see values in the same order on every run
    paths = sorted(path for path, count in churn.items() if count > 0)
    if not paths:
        return []

    raw = [float(complexity.get(path, 0.0)) for path in paths]
    z_scores = Statistics.z_scores(raw)

    candidates = []
    for path, value, z in zip(paths, raw, z_scores):
        is_changed = path in changed
        candidates.append(
            HotspotCandidate(
                path=path,
                churn=int(churn[path]),
                complexity=value,
                complexity_z=z,
                score=composite_score(int(churn[path]), z, is_changed),
                changed=is_changed,
            )
        )

    candidates.sort(key=lambda c: (-c.score, c.path))
    return candidates[:max_results]
