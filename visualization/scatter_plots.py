"""
scatter_plots.py
----------------
X/Y scatter of two indicators with a least-squares trend line, Pearson r and
percentile-heuristic cluster colors.
"""

import logging

import pandas as pd

from config import SCATTER_DEFAULT_LIMIT
from dashboard.view_state import ViewState
from modeling.cluster_engine import ClusterAssigner
from modeling.regression_engine import RegressionEngine
from processing.repository import Dataset
from visualization.layout import DARK_GRAY, MID_GRAY, PRIMARY_ORANGE, TEXT_DARK, Dimensions, cluster_color
from visualization.primitives import Circle, Polyline, Scene, Text
from visualization.renderer import Renderer, axis_bottom, axis_left
from visualization.scales import axis_formatter, clamp_for_scale, feature_scale

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No valid data for the selected variables"


def scatter_display_set(valid: pd.DataFrame, dataset: Dataset, state: ViewState,
                        limit: int = SCATTER_DEFAULT_LIMIT) -> pd.DataFrame:
    """Selected countries, else the first `limit` records in load order; valid rows only."""
    if state.selected_countries:
        names = set(state.selected_countries)
    else:
        names = set(dataset.names[:limit])
    return valid[valid["country"].isin(names)].reset_index(drop=True)


def build_scatter_scene(points: pd.DataFrame, state: ViewState, dims: Dimensions) -> Scene:
    """`points` has columns country, x, y and holds only valid rows."""
    x_var, y_var, k = state.x_var, state.y_var, state.k
    title = f"{x_var.value} vs {y_var.value}"
    if points.empty:
        return Scene.placeholder(dims.width, dims.height, NO_DATA_MESSAGE, title=title)

    m = dims.margin
    left, right = m.left, m.left + dims.inner_width
    top, bottom = m.top, m.top + dims.inner_height

    xs = points["x"].to_numpy(dtype=float)
    ys = points["y"].to_numpy(dtype=float)
    x_scale = feature_scale(x_var, xs, (left, right))
    y_scale = feature_scale(y_var, ys, (bottom, top))
    clusters = ClusterAssigner.assign(xs, ys, k)

    scene = Scene(width=dims.width, height=dims.height, title=title)

    scene.add(*axis_bottom(x_scale, x_scale.ticks(5), axis_formatter(x_var), bottom))
    scene.add(*axis_left(y_scale, y_scale.ticks(5), axis_formatter(y_var), left))
    scene.add(Text((left + right) / 2, dims.height - 4, x_var.value, size=11, color=TEXT_DARK))
    scene.add(Text(14, (top + bottom) / 2, y_var.value, size=11, color=TEXT_DARK, rotate=-90))

    radius = max(2.0, dims.height * 0.01)
    selected = set(state.selected_countries)
    fmt_x, fmt_y = axis_formatter(x_var), axis_formatter(y_var)
    for country, x, y, cluster in zip(points["country"], xs, ys, clusters):
        scene.add(Circle(
            cx=x_scale(clamp_for_scale(x_var, x)),
            cy=y_scale(clamp_for_scale(y_var, y)),
            r=radius,
            fill=cluster_color(int(cluster)),
            stroke=PRIMARY_ORANGE if country in selected else "#FFFFFF",
            stroke_width=1.0,
            opacity=0.75,
            key=country,
            hover=f"{country}<br>{x_var.value}: {fmt_x(x)}<br>{y_var.value}: {fmt_y(y)}<br>Cluster C{cluster}",
        ))

    fit = RegressionEngine.fit(xs, ys)
    if fit.n >= 2:
        x0, x1 = max(float(xs.min()), 1.0), float(xs.max())
        line = tuple(
            (x_scale(clamp_for_scale(x_var, xv)), y_scale(clamp_for_scale(y_var, fit.predict(xv))))
            for xv in (x0, x1)
        )
        scene.add(Polyline(line, stroke=DARK_GRAY, stroke_width=1.5, opacity=0.8, dash="dash"))
    scene.add(Text(right - 4, top + 12, f"r={fit.correlation:.3f}", size=11,
                   color=TEXT_DARK, anchor="end", weight="bold"))

    # cluster legend in the right margin
    legend_x = right + 12
    for i in range(k):
        y = top + 8 + i * 16
        scene.add(Circle(legend_x, y, 5, fill=cluster_color(i), stroke=cluster_color(i)))
        scene.add(Text(legend_x + 10, y + 4, f"C{i}", size=10, color=MID_GRAY, anchor="start"))

    scene.add(Text(left + 4, top + 12, f"{len(points)} pts • k={k}", size=10,
                   color=MID_GRAY, anchor="start"))
    return scene


class ScatterRenderer(Renderer):
    name = "scatter"

    @classmethod
    def make_dimensions(cls, width=None, height=None) -> Dimensions:
        if width is None or height is None:
            return Dimensions.for_scatter()
        return Dimensions.for_scatter(width, height)

    def build(self, dataset: Dataset, state: ViewState, dims: Dimensions) -> Scene:
        valid = self.repository.get_valid_data_for_scatter(state.x_var, state.y_var)
        points = scatter_display_set(valid, dataset, state)
        logger.debug(f"Scatter: {len(points)} of {len(valid)} valid points displayed")
        return build_scatter_scene(points, state, dims)

