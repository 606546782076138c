"""
map_plots.py
------------
Choropleth world map of one indicator.

  - Natural Earth projection fitted to the container on every render
  - sequential blue → orange ramp; countries without a usable value are grey
  - selected countries get an orange outline; clicking toggles selection
  - pan/zoom is view-local and survives data/feature redraws, but a resize
    resets it
"""

import logging
from typing import List, Optional, Sequence

from dashboard.view_state import ViewState, toggle_country
from processing.models import Feature, is_valid_value
from processing.repository import Dataset
from visualization.layout import (
    DARK_GRAY,
    MAP_HIGH,
    MAP_LOW,
    MAP_MID,
    NEUTRAL_FILL,
    PRIMARY_ORANGE,
    Dimensions,
)
from visualization.primitives import GradientLegend, Group, Path, Scene
from visualization.projection import IDENTITY, NaturalEarthProjection, ZoomTransform, project_geometry
from visualization.renderer import Renderer
from visualization.scales import (
    SequentialColorScale,
    extent,
    legend_formatter,
    quantile_domain,
    two_stop_interpolator,
)

logger = logging.getLogger(__name__)

LEGEND_STOPS = 11
LEGEND_TICKS = 5
MAP_OPACITY = 0.8


def map_color_scale(feature: Feature, values: Sequence[float]) -> SequentialColorScale:
    """Life expectancy spans its full range; skewed indicators use p5..p95, clamped."""
    interpolator = two_stop_interpolator(MAP_LOW, MAP_MID, MAP_HIGH)
    if feature.is_linear:
        return SequentialColorScale(extent(values), interpolator)
    return SequentialColorScale(quantile_domain(values, 0.05, 0.95), interpolator, clamp=True)


def _legend(feature: Feature, color: SequentialColorScale, dims: Dimensions) -> GradientLegend:
    width = min(300.0, dims.width * 0.4)
    height = max(12.0, dims.height * 0.025)
    d0, d1 = color.domain
    fmt = legend_formatter(feature)

    stops = tuple(
        (i / (LEGEND_STOPS - 1), color(d0 + (d1 - d0) * i / (LEGEND_STOPS - 1)))
        for i in range(LEGEND_STOPS)
    )
    ticks = []
    for i in range(LEGEND_TICKS):
        t = i / (LEGEND_TICKS - 1)
        ticks.append((t * width, fmt(d0 + (d1 - d0) * t)))

    return GradientLegend(
        x=(dims.width - width) / 2,
        y=dims.height - dims.margin.bottom + 20,
        width=width,
        height=height,
        stops=stops,
        ticks=tuple(ticks),
        title=feature.value,
    )


def build_map_scene(dataset: Dataset, state: ViewState, dims: Dimensions,
                    transform: ZoomTransform = IDENTITY,
                    values: Optional[Sequence[float]] = None) -> Scene:
    feature = state.map_feature
    if not dataset.features:
        return Scene.placeholder(dims.width, dims.height, "No map data available", title="World Map")

    if values is None:
        values = [r.value(feature) for r in dataset.records if is_valid_value(r.value(feature))]
    color = map_color_scale(feature, values)
    fmt = legend_formatter(feature)
    projection = NaturalEarthProjection.fit(dims.width, dims.height)
    selected = set(state.selected_countries)

    default_width = max(0.3, dims.width * 0.0005)
    selected_width = max(1.0, dims.width * 0.002)

    paths: List[Path] = []
    for geo in dataset.features:
        rings = project_geometry(geo.geometry, projection)
        if not rings:
            continue
        record = dataset.records_by_name.get(geo.name) if geo.name else None
        value = record.value(feature) if record else None

        if record is None or not is_valid_value(value):
            fill = NEUTRAL_FILL
            hover = f"{geo.name or 'Unknown'}<br>No data"
        else:
            fill = color(value)
            hover = f"{geo.name}<br>{feature.value}: {fmt(value)}"

        is_selected = geo.name in selected
        paths.append(Path(
            rings=rings,
            fill=fill,
            stroke=PRIMARY_ORANGE if is_selected else DARK_GRAY,
            stroke_width=selected_width if is_selected else default_width,
            opacity=MAP_OPACITY,
            key=geo.name,
            hover=hover,
        ))

    scene = Scene(width=dims.width, height=dims.height, title=f"World Map: {feature.value}")
    scene.add(Group(children=tuple(paths), transform=transform.as_transform(), name="countries"))
    if values:
        scene.add(_legend(feature, color, dims))
    return scene


class MapRenderer(Renderer):
    name = "map"
    loading_message = "Loading map data..."

    def __init__(self, repository, store, dimensions: Optional[Dimensions] = None):
        super().__init__(repository, store, dimensions)
        self.transform = IDENTITY

    @classmethod
    def make_dimensions(cls, width=None, height=None) -> Dimensions:
        if width is None or height is None:
            return Dimensions.for_map()
        return Dimensions.for_map(width, height)

    def on_resize(self) -> None:
        self.transform = IDENTITY

    def cache_key(self):
        return (self.transform,)

    def build(self, dataset: Dataset, state: ViewState, dims: Dimensions) -> Scene:
        values = self.repository.get_numeric_values(state.map_feature)
        return build_map_scene(dataset, state, dims, self.transform, values)

    # ── interaction ──

    def handle_click(self, name: Optional[str]) -> bool:
        """Toggle a country in the shared selection; False if it has no record."""
        if not name or self.repository.get_country(name) is None:
            logger.debug(f"Ignoring map click on {name!r}: no country record")
            return False
        selected = toggle_country(self.store.state.selected_countries, name)
        self.store.set_selected_countries(selected)
        return True

    def zoom(self, factor: float, center=None) -> ZoomTransform:
        if center is None:
            center = (self.dimensions.width / 2, self.dimensions.height / 2)
        self.transform = self.transform.zoom(factor, center)
        return self.transform

    def pan(self, dx: float, dy: float) -> ZoomTransform:
        self.transform = self.transform.pan(dx, dy)
        return self.transform

    def reset_zoom(self) -> ZoomTransform:
        self.transform = IDENTITY
        return self.transform
