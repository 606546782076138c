"""
renderer.py
-----------
Shared plumbing for the four views.

A renderer owns only view-local UI state (container size, map zoom). Data comes
from the DataRepository, configuration and selection from the ViewStateStore;
`build()` is a pure function of (dataset, state, dimensions) and `render()`
gates it on the repository being fully loaded.
"""

import logging
from typing import Any, List, Optional, Tuple

from dashboard.view_state import ViewState, ViewStateStore
from processing.repository import DataRepository, Dataset
from visualization.layout import DARK_GRAY, MID_GRAY, Dimensions
from visualization.primitives import Line, Scene, Text

logger = logging.getLogger(__name__)


class Renderer:
    name = "view"
    loading_message = "Loading data..."

    def __init__(self, repository: DataRepository, store: ViewStateStore,
                 dimensions: Optional[Dimensions] = None):
        self.repository = repository
        self.store = store
        self.dimensions = dimensions or self.make_dimensions()
        self._last_key: Optional[Tuple[Any, ...]] = None
        self._last_scene: Optional[Scene] = None

    @classmethod
    def make_dimensions(cls, width: Optional[float] = None, height: Optional[float] = None) -> Dimensions:
        raise NotImplementedError

    def resize(self, width: float, height: float) -> bool:
        """Recompute dimensions from the container size; True if they changed."""
        dims = self.make_dimensions(width, height)
        if dims == self.dimensions:
            return False
        self.dimensions = dims
        self.on_resize()
        return True

    def on_resize(self) -> None:
        pass

    def cache_key(self) -> Tuple[Any, ...]:
        return ()

    def render(self) -> Scene:
        dims = self.dimensions
        state = self.store.state
        if state.error:
            return Scene.placeholder(dims.width, dims.height, f"Error: {state.error}")
        if not self.repository.cache_status().ready:
            return Scene.placeholder(dims.width, dims.height, self.loading_message)

        dataset = self.repository.dataset
        key = (id(dataset), state, dims, *self.cache_key())
        if key == self._last_key and self._last_scene is not None:
            return self._last_scene

        scene = self.build(dataset, state, dims)
        self._last_key, self._last_scene = key, scene
        logger.debug(f"{self.name}: rendered {len(scene.primitives)} primitives")
        return scene

    def build(self, dataset: Dataset, state: ViewState, dims: Dimensions) -> Scene:
        raise NotImplementedError


# ── AXES ──────────────────────────────────────────────────────────────────────

def axis_bottom(scale, ticks, fmt, y: float, tick_size: float = 5.0,
                font_size: float = 10.0) -> List[object]:
    """Domain line along `y` plus one tick mark and label per tick value."""
    r0, r1 = scale.range
    items: List[object] = [Line(r0, y, r1, y, stroke=DARK_GRAY)]
    for value in ticks:
        x = scale(value)
        items.append(Line(x, y, x, y + tick_size, stroke=DARK_GRAY))
        items.append(Text(x, y + tick_size + font_size + 2, fmt(value), size=font_size, color=MID_GRAY))
    return items


def axis_left(scale, ticks, fmt, x: float, tick_size: float = 5.0,
              font_size: float = 10.0) -> List[object]:
    r0, r1 = scale.range
    items: List[object] = [Line(x, r0, x, r1, stroke=DARK_GRAY)]
    for value in ticks:
        y = scale(value)
        items.append(Line(x - tick_size, y, x, y, stroke=DARK_GRAY))
        items.append(Text(x - tick_size - 3, y + font_size / 3, fmt(value), size=font_size,
                          color=MID_GRAY, anchor="end"))
    return items
