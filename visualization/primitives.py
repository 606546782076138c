"""
primitives.py
-------------
Host-agnostic draw primitives.

Every renderer is a pure function (dataset, view state, dimensions) → Scene.
A Scene holds pixel-space primitives (origin top-left, y grows downwards) and
knows nothing about plotly, SVG or Streamlit; visualization/plotly_backend.py
turns it into a figure.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Point = Tuple[float, float]


@dataclass(frozen=True)
class Path:
    """Filled polygon; `rings` are closed point lists (outer ring first, holes after)."""
    rings: Tuple[Tuple[Point, ...], ...]
    fill: str
    stroke: str = "#374151"
    stroke_width: float = 0.5
    opacity: float = 1.0
    key: Optional[str] = None
    hover: Optional[str] = None


@dataclass(frozen=True)
class Polyline:
    points: Tuple[Point, ...]
    stroke: str
    stroke_width: float = 1.0
    opacity: float = 1.0
    dash: Optional[str] = None
    key: Optional[str] = None
    hover: Optional[str] = None


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str = "#374151"
    stroke_width: float = 1.0
    dash: Optional[str] = None


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    fill: str
    stroke: str = "#374151"
    stroke_width: float = 0.5
    opacity: float = 1.0
    key: Optional[str] = None
    hover: Optional[str] = None


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: str
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    opacity: float = 1.0
    key: Optional[str] = None
    hover: Optional[str] = None


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    size: float = 11.0
    color: str = "#1F2937"
    anchor: str = "middle"   # start | middle | end
    weight: str = "normal"
    rotate: float = 0.0


@dataclass(frozen=True)
class GradientLegend:
    x: float
    y: float
    width: float
    height: float
    stops: Tuple[Tuple[float, str], ...]      # (offset 0..1, color)
    ticks: Tuple[Tuple[float, str], ...]      # (x offset in px, label)
    title: str = ""


@dataclass(frozen=True)
class Transform:
    """Translate + uniform scale applied to a layer: p' = (x + k·px, y + k·py)."""
    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, point: Point) -> Point:
        return (self.x + self.k * point[0], self.y + self.k * point[1])


@dataclass(frozen=True)
class Group:
    children: Tuple[object, ...]
    transform: Transform = Transform()
    name: str = ""


@dataclass
class Scene:
    width: float
    height: float
    primitives: List[object] = field(default_factory=list)
    message: Optional[str] = None
    title: str = ""

    @classmethod
    def placeholder(cls, width: float, height: float, message: str, title: str = "") -> "Scene":
        """Scene with a single centred message instead of a chart."""
        return cls(
            width=width,
            height=height,
            primitives=[Text(width / 2, height / 2, message, size=14, color="#666666")],
            message=message,
            title=title,
        )

    def add(self, *primitives) -> "Scene":
        self.primitives.extend(primitives)
        return self

    def iter_flat(self):
        """Yield (primitive, transform) with groups expanded."""
        yield from _walk(self.primitives, Transform())

    def of_type(self, kind) -> List[object]:
        return [p for p, _ in self.iter_flat() if isinstance(p, kind)]


def _walk(items: Sequence[object], transform: Transform):
    for item in items:
        if isinstance(item, Group):
            t = item.transform
            combined = Transform(
                k=transform.k * t.k,
                x=transform.x + transform.k * t.x,
                y=transform.y + transform.k * t.y,
            )
            yield from _walk(item.children, combined)
        else:
            yield item, transform
