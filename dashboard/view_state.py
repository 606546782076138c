"""
view_state.py
-------------
Shared cross-view configuration and selection.

ViewState is an immutable snapshot; ViewStateStore holds the current snapshot
and swaps it for a new one on every setter call, then notifies subscribers.
Renderers read `store.state` once per draw and never mutate it.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple, Union

from config import DEFAULT_K
from processing.models import Feature

logger = logging.getLogger(__name__)


class Axis(str, Enum):
    X = "X"
    Y = "Y"


@dataclass(frozen=True)
class ViewState:
    selected_countries: Tuple[str, ...] = ()
    map_feature: Feature = Feature.CO2_EMISSIONS
    x_var: Feature = Feature.CO2_EMISSIONS
    y_var: Feature = Feature.POPULATION
    k: int = DEFAULT_K
    current_axis: Axis = Axis.X
    is_loading: bool = False
    error: Optional[str] = None


Listener = Callable[[ViewState], None]


class ViewStateStore:
    """Single source of truth for selection, feature choice and k."""

    def __init__(self, initial: Optional[ViewState] = None):
        self._state = initial or ViewState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> ViewState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _replace(self, **changes) -> ViewState:
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return self._state
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return new_state

    # ── setters ──

    def set_selected_countries(self, countries: Iterable[str]) -> ViewState:
        if isinstance(countries, str):
            raise TypeError("set_selected_countries expects an iterable of names, not a string")
        return self._replace(selected_countries=tuple(str(c) for c in countries))

    def set_map_feature(self, feature: Union[Feature, str]) -> ViewState:
        return self._replace(map_feature=Feature.coerce(feature))

    def set_x_var(self, feature: Union[Feature, str]) -> ViewState:
        return self._replace(x_var=Feature.coerce(feature))

    def set_y_var(self, feature: Union[Feature, str]) -> ViewState:
        return self._replace(y_var=Feature.coerce(feature))

    def set_k(self, k: int) -> ViewState:
        if isinstance(k, bool) or not isinstance(k, int):
            raise TypeError(f"k must be an int, got {type(k).__name__}")
        return self._replace(k=k)

    def set_current_axis(self, axis: Union[Axis, str]) -> ViewState:
        return self._replace(current_axis=Axis(axis))

    def set_is_loading(self, loading: bool) -> ViewState:
        return self._replace(is_loading=bool(loading))

    def set_error(self, error: Optional[str]) -> ViewState:
        return self._replace(error=None if error is None else str(error))

    def clear_data(self) -> ViewState:
        """Back to defaults; the loading flag is left as is."""
        logger.info("View state reset to defaults")
        defaults = ViewState()
        return self._replace(
            selected_countries=defaults.selected_countries,
            map_feature=defaults.map_feature,
            x_var=defaults.x_var,
            y_var=defaults.y_var,
            k=defaults.k,
            current_axis=defaults.current_axis,
            error=None,
        )


def toggle_country(selected: Tuple[str, ...], name: str) -> Tuple[str, ...]:
    """Remove `name` if selected, append it otherwise."""
    if name in selected:
        return tuple(c for c in selected if c != name)
    return (*selected, name)
