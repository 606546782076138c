"""
cluster_engine.py
-----------------
Cluster ids for coloring the scatter plot and the PCP.

ClusterAssigner — percentile-rank heuristic used by the views:
  per field: rank-percentile inside the filtered data (first index in the
  ascending sort / n) → average the two fields → × k → floor → clamp to [0, k-1].
  No iteration, no seed: the same rows, fields and k always give the same ids.
  It groups points roughly along the joint "size" of both fields; it is NOT a
  distance-minimising clustering.

ElbowEngine — real k-means (scikit-learn) MSE curve for k = 1..MAX_K, used by
the batch pipeline to report how the served elbow curve compares.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import rankdata
from sklearn.cluster import KMeans
from sklearn.preprocessing import StandardScaler

from config import MAX_K
from processing.models import NUMERIC_FIELDS
from processing.repository import ClusteringProfile

logger = logging.getLogger(__name__)


# ── HEURISTIC ─────────────────────────────────────────────────────────────────

class ClusterAssigner:

    @staticmethod
    def percentile_ranks(values: Sequence[float]) -> np.ndarray:
        """Fraction of values strictly below each value; ties share the lowest rank."""
        arr = np.asarray(values, dtype=float)
        if arr.size == 0:
            return np.empty(0, dtype=float)
        return (rankdata(arr, method="min") - 1) / arr.size

    @classmethod
    def assign(cls, first: Sequence[float], second: Sequence[float], k: int) -> np.ndarray:
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        first = np.asarray(first, dtype=float)
        second = np.asarray(second, dtype=float)
        if first.shape != second.shape:
            raise ValueError(f"Field lengths differ: {first.shape} vs {second.shape}")
        if first.size == 0:
            return np.empty(0, dtype=int)

        mean_pct = (cls.percentile_ranks(first) + cls.percentile_ranks(second)) / 2
        ids = np.floor(mean_pct * k).astype(int)
        return np.clip(ids, 0, k - 1)

    @classmethod
    def assign_frame(cls, df: pd.DataFrame, fields: Tuple[str, str], k: int) -> pd.Series:
        """Cluster id per row of `df`, using columns `fields[0]` and `fields[1]`."""
        a, b = fields
        ids = cls.assign(df[a].to_numpy(), df[b].to_numpy(), k)
        return pd.Series(ids, index=df.index, name="cluster")


# ── ELBOW CURVE ───────────────────────────────────────────────────────────────

class ElbowEngine:
    """
    Fits k-means for k = 1..max_k on standardised log10 indicators.

    Why log10?
      GDP, population and CO2 span 5-7 orders of magnitude; on raw values the
      US and China alone would define every centroid.
    """

    def __init__(self, max_k: int = MAX_K, random_state: int = 42):
        self.max_k = max_k
        self.random_state = random_state
        self.scaler = StandardScaler()
        self.fitted = False

    def prepare(self, df: pd.DataFrame, fields: Sequence[str] = NUMERIC_FIELDS) -> np.ndarray:
        values = df[list(fields)].apply(pd.to_numeric, errors="coerce")
        clean = values[(values > 0).all(axis=1)].dropna()
        dropped = len(values) - len(clean)
        if dropped:
            logger.warning(f"Dropped {dropped} countries with missing/non-positive indicators")
        return self.scaler.fit_transform(np.log10(clean.to_numpy(dtype=float)))

    def mse_curve(self, X: np.ndarray) -> List[float]:
        n = len(X)
        if n == 0:
            raise ValueError("No valid rows to cluster")
        mse = []
        for k in range(1, min(self.max_k, n) + 1):
            model = KMeans(n_clusters=k, n_init=10, random_state=self.random_state)
            model.fit(X)
            mse.append(float(model.inertia_ / n))
        return mse

    @staticmethod
    def elbow(mse: Sequence[float]) -> int:
        """k whose point lies furthest below the chord from the first to the last point."""
        if len(mse) < 3:
            return len(mse)
        y = np.asarray(mse, dtype=float)
        x = np.arange(1, len(y) + 1, dtype=float)
        x0, y0, x1, y1 = x[0], y[0], x[-1], y[-1]
        chord = np.hypot(x1 - x0, y1 - y0)
        if chord == 0:
            return 1
        distance = np.abs((y1 - y0) * x - (x1 - x0) * y + x1 * y0 - y1 * x0) / chord
        return int(x[np.argmax(distance)])

    def fit(self, df: pd.DataFrame) -> ClusteringProfile:
        X = self.prepare(df)
        logger.info(f"Fitting k-means elbow curve on {len(X)} countries × {X.shape[1]} indicators")
        mse = self.mse_curve(X)
        optimal_k = self.elbow(mse)
        self.fitted = True
        logger.info(f"Elbow curve: {[round(v, 3) for v in mse]} → optimal k = {optimal_k}")
        return ClusteringProfile(mse_values=tuple(mse), optimal_k=optimal_k, source="kmeans")
