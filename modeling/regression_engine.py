"""
regression_engine.py
--------------------
Least-squares line and Pearson r for the scatter view.

Degenerate inputs (fewer than two points, zero variance) never raise and never
produce NaN: slope falls back to 0 and r to 0.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    correlation: float
    n: int

    def predict(self, x: float) -> float:
        return self.intercept + self.slope * x


class RegressionEngine:

    @staticmethod
    def least_squares(x: Sequence[float], y: Sequence[float]):
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        n = min(len(x), len(y))
        if n == 0:
            return 0.0, 0.0
        x, y = x[:n], y[:n]
        x_mean, y_mean = x.mean(), y.mean()
        den = np.sum((x - x_mean) ** 2)
        slope = 0.0 if den == 0 else float(np.sum((x - x_mean) * (y - y_mean)) / den)
        return slope, float(y_mean - slope * x_mean)

    @staticmethod
    def correlation(x: Sequence[float], y: Sequence[float]) -> float:
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        n = min(len(x), len(y))
        if n == 0:
            return 0.0
        dx = x[:n] - x[:n].mean()
        dy = y[:n] - y[:n].mean()
        den = np.sqrt(np.sum(dx * dx) * np.sum(dy * dy))
        if den == 0 or not np.isfinite(den):
            return 0.0
        return float(np.sum(dx * dy) / den)

    @classmethod
    def fit(cls, x: Sequence[float], y: Sequence[float]) -> RegressionResult:
        slope, intercept = cls.least_squares(x, y)
        return RegressionResult(
            slope=slope,
            intercept=intercept,
            correlation=cls.correlation(x, y),
            n=min(len(x), len(y)),
        )
