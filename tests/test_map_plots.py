"""Tests for visualization/map_plots.py: choropleth scene, selection and zoom."""

import pytest

from processing.models import Feature
from visualization.layout import DARK_GRAY, NEUTRAL_FILL, PRIMARY_ORANGE
from visualization.map_plots import MapRenderer
from visualization.primitives import GradientLegend, Group, Path

LOW_RGB = "rgb(239, 246, 255)"
HIGH_RGB = "rgb(234, 88, 12)"


def paths_by_key(scene):
    return {p.key: p for p in scene.of_type(Path)}


@pytest.fixture
def map_view(loaded_repository, store):
    return MapRenderer(loaded_repository, store)


class TestGating:
    def test_placeholder_until_loaded(self, repository, store):
        scene = MapRenderer(repository, store).render()
        assert scene.message == "Loading map data..."
        assert not scene.of_type(Path)

    def test_error_is_shown(self, map_view, store):
        store.set_error("backend down")
        assert map_view.render().message == "Error: backend down"


class TestScene:
    def test_one_path_per_feature(self, map_view):
        paths = paths_by_key(map_view.render())
        assert set(paths) == {"Alpha", "Beta", "Gamma", "Delta", "Atlantis"}

    def test_missing_data_is_neutral(self, map_view):
        paths = paths_by_key(map_view.render())
        assert paths["Atlantis"].fill == NEUTRAL_FILL
        assert paths["Delta"].fill == NEUTRAL_FILL   # co2 = 0
        assert "No data" in paths["Atlantis"].hover

    def test_color_domain_is_clamped(self, map_view):
        paths = paths_by_key(map_view.render())
        assert paths["Alpha"].fill == LOW_RGB
        assert paths["Gamma"].fill == HIGH_RGB

    def test_life_expectancy_uses_extent(self, map_view, store):
        store.set_map_feature(Feature.LIFE_EXPECTANCY)
        paths = paths_by_key(map_view.render())
        assert paths["Delta"].fill == LOW_RGB      # 60, the minimum
        assert paths["Gamma"].fill == HIGH_RGB     # 80, the maximum
        assert paths["Beta"].fill == NEUTRAL_FILL  # NaN

    def test_selected_outline(self, map_view, store):
        store.set_selected_countries(["Alpha"])
        paths = paths_by_key(map_view.render())
        width = map_view.dimensions.width
        assert paths["Alpha"].stroke == PRIMARY_ORANGE
        assert paths["Alpha"].stroke_width == max(1.0, width * 0.002)
        assert paths["Gamma"].stroke == DARK_GRAY
        assert paths["Gamma"].stroke_width == max(0.3, width * 0.0005)

    def test_legend(self, map_view, store):
        store.set_map_feature("GDP")
        legend = map_view.render().of_type(GradientLegend)[0]
        dims = map_view.dimensions
        assert legend.title == "GDP"
        assert len(legend.stops) == 11
        assert len(legend.ticks) == 5
        assert legend.width == min(300, dims.width * 0.4)
        assert legend.x == pytest.approx((dims.width - legend.width) / 2)

    def test_render_is_memoised_until_state_changes(self, map_view, store):
        first = map_view.render()
        assert map_view.render() is first
        store.set_k(2)
        assert map_view.render() is not first


class TestInteraction:
    def test_click_twice_restores_selection(self, map_view, store):
        store.set_selected_countries(["Gamma"])
        assert map_view.handle_click("Alpha")
        assert store.state.selected_countries == ("Gamma", "Alpha")
        map_view.handle_click("Alpha")
        assert store.state.selected_countries == ("Gamma",)

    def test_click_without_record_is_ignored(self, map_view, store):
        assert not map_view.handle_click("Atlantis")
        assert not map_view.handle_click(None)
        assert store.state.selected_countries == ()

    def test_zoom_applies_to_map_layer(self, map_view):
        map_view.zoom(2)
        group = [p for p in map_view.render().primitives if isinstance(p, Group)][0]
        assert group.transform.k == 2

    def test_zoom_survives_feature_change(self, map_view, store):
        map_view.zoom(2)
        store.set_map_feature("Population")
        assert map_view.transform.k == 2

    def test_resize_resets_zoom(self, map_view):
        map_view.zoom(3)
        assert map_view.resize(640, 400)
        assert map_view.transform.is_identity
        assert not map_view.resize(640, 400)

    def test_reset_zoom(self, map_view):
        map_view.pan(10, 10)
        assert map_view.reset_zoom().is_identity
