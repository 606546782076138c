"""Tests for modeling/cluster_engine.py: percentile heuristic and elbow curve."""

import numpy as np
import pandas as pd
import pytest

from modeling.cluster_engine import ClusterAssigner, ElbowEngine


class TestClusterAssigner:
    @pytest.mark.parametrize("k", range(1, 11))
    def test_ids_within_range(self, k):
        rng = np.random.default_rng(0)
        first, second = rng.lognormal(size=200), rng.lognormal(size=200)
        ids = ClusterAssigner.assign(first, second, k)
        assert ids.min() >= 0
        assert ids.max() <= k - 1

    def test_deterministic(self):
        first, second = [5, 1, 3, 2], [10, 40, 20, 30]
        a = ClusterAssigner.assign(first, second, 3)
        b = ClusterAssigner.assign(first, second, 3)
        assert a.tolist() == b.tolist()

    def test_percentile_ranks_share_lowest_rank_on_ties(self):
        assert ClusterAssigner.percentile_ranks([10, 20, 20, 30]).tolist() == [0.0, 0.25, 0.25, 0.75]

    def test_known_assignment(self):
        # both fields rank identically: percentiles 0, .25, .5, .75
        ids = ClusterAssigner.assign([1, 2, 3, 4], [1, 2, 3, 4], 2)
        assert ids.tolist() == [0, 0, 1, 1]

    def test_k_one_is_single_cluster(self):
        assert ClusterAssigner.assign([3, 1, 2], [1, 2, 3], 1).tolist() == [0, 0, 0]

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            ClusterAssigner.assign([1], [1], 0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            ClusterAssigner.assign([1, 2], [1], 2)

    def test_empty_input(self):
        assert ClusterAssigner.assign([], [], 3).size == 0

    def test_assign_frame(self):
        df = pd.DataFrame({"x": [1, 2, 3, 4], "y": [4, 3, 2, 1]}, index=[10, 11, 12, 13])
        clusters = ClusterAssigner.assign_frame(df, ("x", "y"), 4)
        assert clusters.name == "cluster"
        assert list(clusters.index) == [10, 11, 12, 13]


class TestElbowEngine:
    def test_elbow_of_sharp_knee(self):
        assert ElbowEngine.elbow([100, 20, 15, 12, 10, 9]) == 2

    def test_elbow_short_curves(self):
        assert ElbowEngine.elbow([5.0]) == 1
        assert ElbowEngine.elbow([5.0, 1.0]) == 2

    def test_fit_returns_profile(self):
        rng = np.random.default_rng(1)
        n = 60
        df = pd.DataFrame({
            "country": [f"C{i}" for i in range(n)],
            "co2_emissions": rng.lognormal(5, 2, n),
            "gdp": rng.lognormal(10, 2, n),
            "population": rng.lognormal(15, 1, n),
            "life_expectancy": rng.uniform(50, 85, n),
        })
        profile = ElbowEngine(max_k=5).fit(df)
        assert profile.source == "kmeans"
        assert len(profile.mse_values) == 5
        assert 1 <= profile.optimal_k <= 5
        assert profile.mse_values[0] > profile.mse_values[-1]

    def test_no_valid_rows(self):
        df = pd.DataFrame({"co2_emissions": [0.0], "gdp": [1.0], "population": [1.0], "life_expectancy": [1.0]})
        with pytest.raises(ValueError):
            ElbowEngine().fit(df)
