"""
pcp_plots.py
------------
Parallel coordinates over the four indicators.

Each country is one polyline across the CO2, GDP, Population and Life
expectancy axes, colored by the percentile-heuristic cluster of its first two
axes. Clicking an axis title sends that indicator to the scatter plot's X or Y
axis, alternating between them.
"""

import logging
from typing import Union

import pandas as pd

from config import PCP_DEFAULT_LIMIT
from dashboard.view_state import Axis, ViewState
from modeling.cluster_engine import ClusterAssigner
from processing.models import PCP_COLUMNS, Feature
from processing.repository import Dataset
from visualization.layout import DARK_GRAY, MID_GRAY, PRIMARY_ORANGE, TEXT_DARK, Dimensions, cluster_color
from visualization.primitives import Circle, Line, Polyline, Scene, Text
from visualization.renderer import Renderer
from visualization.scales import axis_formatter, feature_scale

logger = logging.getLogger(__name__)

NO_SELECTION_DATA = "No data for selected countries"
NO_VALID_DATA = "No valid data available"
AXIS_TICKS = 5


def pcp_display_set(valid: pd.DataFrame, state: ViewState,
                    limit: int = PCP_DEFAULT_LIMIT) -> pd.DataFrame:
    """Selected countries among the valid rows, else the first `limit` valid rows."""
    if state.selected_countries:
        rows = valid[valid["country"].isin(set(state.selected_countries))]
    else:
        rows = valid.head(limit)
    return rows.reset_index(drop=True)


def build_pcp_scene(rows: pd.DataFrame, state: ViewState, dims: Dimensions,
                    axes=PCP_COLUMNS) -> Scene:
    """`rows` has a country column plus one column per axis (display names)."""
    title = "Parallel Coordinates"
    if rows.empty:
        message = NO_SELECTION_DATA if state.selected_countries else NO_VALID_DATA
        return Scene.placeholder(dims.width, dims.height, message, title=title)

    m = dims.margin
    top, bottom = m.top, m.top + dims.inner_height
    step = dims.inner_width / max(1, len(axes) - 1)
    positions = [m.left + i * step for i in range(len(axes))]
    scales = {f: feature_scale(f, rows[f.value].to_numpy(dtype=float), (bottom, top)) for f in axes}

    k = state.k
    clusters = ClusterAssigner.assign_frame(rows, (axes[0].value, axes[1].value), k)

    scene = Scene(width=dims.width, height=dims.height, title=title)

    for (_, row), cluster in zip(rows.iterrows(), clusters):
        points = tuple((x, scales[f](row[f.value])) for x, f in zip(positions, axes))
        hover = "<br>".join([row["country"], *(f"{f.value}: {axis_formatter(f)(row[f.value])}" for f in axes)])
        scene.add(Polyline(points, stroke=cluster_color(int(cluster)), stroke_width=1.5,
                           opacity=0.6, key=row["country"], hover=hover))

    highlighted = {state.x_var: "X", state.y_var: "Y"}
    for x, feature in zip(positions, axes):
        scale = scales[feature]
        fmt = axis_formatter(feature)
        scene.add(Line(x, top, x, bottom, stroke=DARK_GRAY, stroke_width=1.5))
        for value in scale.even_ticks(AXIS_TICKS):
            y = scale(value)
            scene.add(Line(x - 4, y, x, y, stroke=DARK_GRAY))
            scene.add(Text(x - 6, y + 3, fmt(value), size=9, color=MID_GRAY, anchor="end"))

        label = feature.value
        if feature in highlighted:
            label = f"{label} ({highlighted[feature]})"
        scene.add(Text(x, top - 12, label, size=11, weight="bold",
                       color=PRIMARY_ORANGE if feature in highlighted else TEXT_DARK))

    legend_x = m.left
    for i in range(k):
        x = legend_x + i * 40
        scene.add(Circle(x, bottom + 30, 5, fill=cluster_color(i), stroke=cluster_color(i)))
        scene.add(Text(x + 9, bottom + 34, f"C{i}", size=10, color=MID_GRAY, anchor="start"))

    scene.add(Text(dims.width - m.right, bottom + 34, f"{len(rows)} countries • k={k} clusters",
                   size=10, color=MID_GRAY, anchor="end"))
    return scene


class PCPRenderer(Renderer):
    name = "pcp"
    axes = PCP_COLUMNS

    @classmethod
    def make_dimensions(cls, width=None, height=None) -> Dimensions:
        if width is None or height is None:
            return Dimensions.for_pcp()
        return Dimensions.for_pcp(width, height)

    def build(self, dataset: Dataset, state: ViewState, dims: Dimensions) -> Scene:
        valid = self.repository.get_valid_data_for_pcp(self.axes)
        rows = pcp_display_set(valid, state)
        logger.debug(f"PCP: {len(rows)} of {len(valid)} complete rows displayed")
        return build_pcp_scene(rows, state, dims, self.axes)

    def handle_axis_click(self, feature: Union[Feature, str]) -> ViewState:
        """Send `feature` to the scatter axis named by current_axis, then flip it."""
        feature = Feature.coerce(feature)
        if self.store.state.current_axis is Axis.X:
            self.store.set_x_var(feature)
            return self.store.set_current_axis(Axis.Y)
        self.store.set_y_var(feature)
        return self.store.set_current_axis(Axis.X)
