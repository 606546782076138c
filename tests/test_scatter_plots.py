"""Tests for visualization/scatter_plots.py."""

import pytest

from dashboard.view_state import ViewState
from visualization.layout import cluster_color
from visualization.primitives import Circle, Polyline, Text
from visualization.scatter_plots import NO_DATA_MESSAGE, ScatterRenderer, scatter_display_set


def texts(scene):
    return [t.text for t in scene.of_type(Text)]


def points(scene):
    return [c for c in scene.of_type(Circle) if c.key is not None]


@pytest.fixture
def scatter(loaded_repository, store):
    return ScatterRenderer(loaded_repository, store)


class TestDisplaySet:
    def test_defaults_to_first_records(self, loaded_repository):
        valid = loaded_repository.get_valid_data_for_scatter("GDP", "Population")
        rows = scatter_display_set(valid, loaded_repository.dataset, ViewState(), limit=2)
        assert rows["country"].tolist() == ["Alpha", "Beta"]

    def test_selection_wins(self, loaded_repository):
        valid = loaded_repository.get_valid_data_for_scatter("GDP", "Population")
        state = ViewState(selected_countries=("Delta", "Beta"))
        rows = scatter_display_set(valid, loaded_repository.dataset, state)
        assert rows["country"].tolist() == ["Beta", "Delta"]


class TestScene:
    def test_points_and_counts(self, scatter):
        scene = scatter.render()
        assert [c.key for c in points(scene)] == ["Alpha", "Beta", "Gamma"]
        assert "3 pts • k=4" in texts(scene)

    def test_point_radius(self, scatter):
        scene = scatter.render()
        assert points(scene)[0].r == max(2.0, scatter.dimensions.height * 0.01)

    def test_cluster_colors(self, scatter):
        fills = [c.fill for c in points(scatter.render())]
        assert fills == [cluster_color(0), cluster_color(1), cluster_color(2)]

    def test_correlation_and_trend_line(self, scatter):
        scene = scatter.render()
        assert "r=1.000" in texts(scene)
        trend = scene.of_type(Polyline)
        assert len(trend) == 1
        assert trend[0].dash == "dash"

    def test_cluster_legend_follows_k(self, scatter, store):
        store.set_k(6)
        labels = texts(scatter.render())
        assert [f"C{i}" for i in range(6)] == [t for t in labels if t.startswith("C") and t[1:].isdigit()]
        assert "3 pts • k=6" in labels

    def test_selection_filters_points(self, scatter, store):
        store.set_selected_countries(["Gamma", "Delta"])
        assert [c.key for c in points(scatter.render())] == ["Gamma"]

    def test_no_valid_points(self, scatter, store):
        store.set_selected_countries(["Delta"])
        scene = scatter.render()
        assert scene.message == NO_DATA_MESSAGE
        assert not points(scene)

    def test_life_expectancy_axis_excludes_nan(self, scatter, store):
        store.set_x_var("GDP")
        store.set_y_var("Life expectancy")
        assert [c.key for c in points(scatter.render())] == ["Alpha", "Gamma", "Delta"]
