"""Descriptive statistics for score normalization."""

from typing import Sequence

import numpy as np


class Statistics:
    """Statistical helpers used by the hotspot ranker."""

    @staticmethod
    def mean(values: Sequence[float]) -> float:
        """Compute arithmetic mean."""
        if len(values) == 0:
            return 0.0
        return float(np.mean(np.asarray(values, dtype=np.float64)))

    @staticmethod
    def pstdev(values: Sequence[float]) -> float:
        """Compute population standard deviation (ddof=0)."""
        if len(values) < 2:
            return 0.0
        return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))

    @staticmethod
    def z_score(x: float, mean: float, std: float) -> float:
        """Compute single z-score: z = (x - mu) / sigma."""
        if std == 0:
            return 0.0
        return (x - mean) / std

    @staticmethod
    def z_scores(values: Sequence[float]) -> list[float]:
        """
        Compute population z-scores.

        Fewer than two values, or zero variance, gives all zeros.

        Args:
            values: List of values

        Returns:
            List of z-scores in input order
        """
        if len(values) < 2:
            return [0.0] * len(values)

        mean_val = Statistics.mean(values)
        stdev_val = Statistics.pstdev(values)

        # identical floats can leave a rounding residue instead of an exact 0
        if stdev_val < 1e-12:
            return [0.0] * len(values)

        return [(x - mean_val) / stdev_val for x in values]
