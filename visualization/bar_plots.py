"""
bar_plots.py
------------
Elbow-curve bar chart: mean squared error per cluster count k.

The bar for the current k is orange, the optimal k is marked with a dashed line,
and clicking a bar sets k for the scatter and PCP coloring.
"""

import logging
from typing import Optional

from config import MAX_K
from dashboard.view_state import ViewState
from processing.repository import ClusteringProfile, Dataset, FALLBACK_PROFILE
from visualization.layout import DARK_GRAY, MID_GRAY, PRIMARY_BLUE, PRIMARY_ORANGE, TEXT_DARK, Dimensions
from visualization.primitives import Line, Rect, Scene, Text
from visualization.renderer import Renderer, axis_left
from visualization.scales import BandScale, LinearScale, format_fixed

logger = logging.getLogger(__name__)


def build_histogram_scene(profile: ClusteringProfile, state: ViewState, dims: Dimensions) -> Scene:
    title = "Elbow Method: MSE by Number of Clusters"
    mse = list(profile.mse_values[:MAX_K])
    if not mse:
        return Scene.placeholder(dims.width, dims.height, "No clustering data available", title=title)

    m = dims.margin
    left, right = m.left, m.left + dims.inner_width
    top, bottom = m.top, m.top + dims.inner_height
    ks = list(range(1, len(mse) + 1))

    x_scale = BandScale(ks, (left, right), padding=0.1)
    y_scale = LinearScale((0, max(mse)), (bottom, top)).nice()

    scene = Scene(width=dims.width, height=dims.height, title=title)
    scene.add(*axis_left(y_scale, y_scale.ticks(5), lambda v: format_fixed(v, 0), left))

    for k, value in zip(ks, mse):
        x, y = x_scale(k), y_scale(value)
        active = k == state.k
        scene.add(Rect(
            x=x, y=y, width=x_scale.bandwidth, height=max(0.0, bottom - y),
            fill=PRIMARY_ORANGE if active else PRIMARY_BLUE,
            opacity=1.0 if active else 0.85,
            key=str(k),
            hover=f"k={k}<br>MSE: {value:.2f}",
        ))
        scene.add(Text(x + x_scale.bandwidth / 2, y - 4, format_fixed(value, 0), size=9, color=TEXT_DARK))

    # category axis: one label per bar, no numeric ticks
    scene.add(Line(left, bottom, right, bottom, stroke=DARK_GRAY))
    for k in ks:
        scene.add(Text(x_scale.center(k), bottom + 16, str(k), size=10, color=MID_GRAY))
    scene.add(Text((left + right) / 2, bottom + 40, "Number of clusters (k)", size=11, color=TEXT_DARK))
    scene.add(Text(14, (top + bottom) / 2, "Mean squared error", size=11, color=TEXT_DARK, rotate=-90))

    optimal_x = x_scale.center(profile.optimal_k)
    if optimal_x is not None:
        scene.add(Line(optimal_x, top, optimal_x, bottom, stroke=PRIMARY_ORANGE, stroke_width=2, dash="dash"))
        scene.add(Text(optimal_x + 4, top + 12, "Optimal", size=10, color=PRIMARY_ORANGE,
                       anchor="start", weight="bold"))
    return scene


class HistogramRenderer(Renderer):
    name = "histogram"

    def __init__(self, repository, store, dimensions: Optional[Dimensions] = None,
                 profile: Optional[ClusteringProfile] = None):
        super().__init__(repository, store, dimensions)
        self.profile = profile

    @classmethod
    def make_dimensions(cls, width=None, height=None) -> Dimensions:
        if width is None or height is None:
            return Dimensions.for_bar()
        return Dimensions.for_bar(width, height)

    def load_profile(self) -> ClusteringProfile:
        """Fetch the MSE curve once; the repository falls back to a fixed curve on failure."""
        if self.profile is None:
            self.profile = self.repository.load_clustering_profile_sync()
            logger.info(f"Clustering profile: {len(self.profile.mse_values)} values, "
                        f"optimal k = {self.profile.optimal_k} ({self.profile.source})")
        return self.profile

    def cache_key(self):
        return (self.profile,)

    def build(self, dataset: Dataset, state: ViewState, dims: Dimensions) -> Scene:
        return build_histogram_scene(self.profile or FALLBACK_PROFILE, state, dims)

    def handle_click(self, index: int) -> ViewState:
        """`index` is the zero-based bar position, so k = index + 1."""
        return self.store.set_k(int(index) + 1)
