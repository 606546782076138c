"""Tests for visualization/bar_plots.py: the elbow chart."""

from dashboard.view_state import ViewState
from processing.repository import ClusteringProfile
from visualization.bar_plots import HistogramRenderer, build_histogram_scene
from visualization.layout import PRIMARY_BLUE, PRIMARY_ORANGE, Dimensions
from visualization.primitives import Line, Rect, Text

PROFILE = ClusteringProfile(mse_values=(400.0, 250.0, 180.0, 150.0, 140.0), optimal_k=3)


def bars(scene):
    return scene.of_type(Rect)


class TestScene:
    def test_one_bar_per_k(self):
        scene = build_histogram_scene(PROFILE, ViewState(k=2), Dimensions.for_bar())
        assert [b.key for b in bars(scene)] == ["1", "2", "3", "4", "5"]

    def test_current_k_is_highlighted(self):
        scene = build_histogram_scene(PROFILE, ViewState(k=2), Dimensions.for_bar())
        fills = [b.fill for b in bars(scene)]
        assert fills[1] == PRIMARY_ORANGE
        assert fills.count(PRIMARY_BLUE) == 4

    def test_bars_scale_with_mse(self):
        heights = [b.height for b in bars(build_histogram_scene(PROFILE, ViewState(), Dimensions.for_bar()))]
        assert heights == sorted(heights, reverse=True)

    def test_value_labels(self):
        labels = [t.text for t in build_histogram_scene(PROFILE, ViewState(), Dimensions.for_bar()).of_type(Text)]
        assert {"400", "250", "180", "150", "140"} <= set(labels)
        assert "Optimal" in labels

    def test_optimal_marker_is_dashed(self):
        scene = build_histogram_scene(PROFILE, ViewState(), Dimensions.for_bar())
        assert any(line.dash == "dash" for line in scene.of_type(Line))

    def test_curve_is_capped_at_ten(self):
        profile = ClusteringProfile(mse_values=tuple(range(20, 0, -1)), optimal_k=4)
        assert len(bars(build_histogram_scene(profile, ViewState(), Dimensions.for_bar()))) == 10

    def test_empty_curve(self):
        scene = build_histogram_scene(ClusteringProfile((), 4), ViewState(), Dimensions.for_bar())
        assert scene.message


class TestRenderer:
    def test_click_sets_k(self, loaded_repository, store):
        view = HistogramRenderer(loaded_repository, store, profile=PROFILE)
        view.handle_click(4)
        assert store.state.k == 5

    def test_profile_loaded_from_repository(self, loaded_repository, store):
        view = HistogramRenderer(loaded_repository, store)
        profile = view.load_profile()
        assert profile.mse_values == (100.0, 60.0, 30.5)
        assert [b.key for b in bars(view.render())] == ["1", "2", "3"]

    def test_waits_for_data(self, repository, store):
        assert HistogramRenderer(repository, store, profile=PROFILE).render().message
