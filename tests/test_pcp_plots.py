"""Tests for visualization/pcp_plots.py."""

import pytest

from dashboard.view_state import Axis
from processing.models import Feature
from processing.repository import DataRepository
from visualization.layout import cluster_color
from visualization.pcp_plots import NO_SELECTION_DATA, NO_VALID_DATA, PCPRenderer, pcp_display_set
from visualization.primitives import Line, Polyline, Text

from conftest import FakeClient


@pytest.fixture
def pcp(loaded_repository, store):
    return PCPRenderer(loaded_repository, store)


class TestScene:
    def test_record_with_nan_is_dropped(self, pcp):
        lines = pcp.render().of_type(Polyline)
        assert [line.key for line in lines] == ["Alpha", "Gamma"]

    def test_each_line_crosses_four_axes(self, pcp):
        for line in pcp.render().of_type(Polyline):
            assert len(line.points) == 4

    def test_axis_ticks(self, pcp):
        scene = pcp.render()
        # 4 axis lines + 5 tick marks each
        assert len(scene.of_type(Line)) == 4 + 4 * 5

    def test_count_text(self, pcp):
        assert "2 countries • k=4 clusters" in [t.text for t in pcp.render().of_type(Text)]

    def test_lines_colored_by_cluster_of_first_two_axes(self, pcp):
        # Alpha ranks lowest on both CO2 and GDP, Gamma sits at the 50th percentile
        lines = pcp.render().of_type(Polyline)
        assert [line.stroke for line in lines] == [cluster_color(0), cluster_color(2)]

    def test_selection_without_valid_rows(self, pcp, store):
        store.set_selected_countries(["Beta"])
        assert pcp.render().message == NO_SELECTION_DATA

    def test_no_valid_rows_at_all(self, tmp_path, store):
        client = FakeClient(countries=[{"country": "Alpha", "gdp": 5}])
        repo = DataRepository(client=client, csv_path=tmp_path / "a.csv", geojson_path=tmp_path / "a.geojson")
        repo.load_all_sync()
        assert PCPRenderer(repo, store).render().message == NO_VALID_DATA

    def test_display_limit(self, loaded_repository, store):
        valid = loaded_repository.get_valid_data_for_pcp(PCPRenderer.axes)
        assert len(pcp_display_set(valid, store.state, limit=1)) == 1


class TestAxisClick:
    def test_alternates_between_scatter_axes(self, pcp, store):
        pcp.handle_axis_click(Feature.GDP)
        assert store.state.x_var is Feature.GDP
        assert store.state.current_axis is Axis.Y

        pcp.handle_axis_click("Life expectancy")
        assert store.state.y_var is Feature.LIFE_EXPECTANCY
        assert store.state.current_axis is Axis.X
        assert store.state.x_var is Feature.GDP
