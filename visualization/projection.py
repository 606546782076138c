"""
projection.py
-------------
Natural Earth world projection, GeoJSON → screen rings, and the map's
pan/zoom transform.

The projection is pseudo-cylindrical and close to equal-area; it is rebuilt from
the container size on every render so the map follows resizes.
"""

import math
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from visualization.primitives import Point, Transform

MAP_SCALE_FACTOR = 0.15
ZOOM_EXTENT = (0.5, 8.0)


# ── PROJECTION ────────────────────────────────────────────────────────────────

def natural_earth_raw(lon_rad: np.ndarray, lat_rad: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Unit Natural Earth coordinates (y grows northwards)."""
    phi2 = lat_rad * lat_rad
    phi4 = phi2 * phi2
    x = lon_rad * (0.8707 - 0.131979 * phi2 + phi4 * (-0.013791 + phi4 * (0.003971 * phi2 - 0.001529 * phi4)))
    y = lat_rad * (1.007226 + phi2 * (0.015085 + phi4 * (-0.044475 + 0.028874 * phi2 - 0.005916 * phi4)))
    return x, y


@dataclass(frozen=True)
class NaturalEarthProjection:
    scale: float
    translate: Tuple[float, float]

    @classmethod
    def fit(cls, width: float, height: float, factor: float = MAP_SCALE_FACTOR) -> "NaturalEarthProjection":
        """Scale to the smaller container side, centred in the container."""
        return cls(scale=min(width, height) * factor, translate=(width / 2, height / 2))

    def project(self, coords: Sequence[Sequence[float]]) -> np.ndarray:
        """(lon, lat) degrees → (x, y) pixels, shape (n, 2)."""
        if len(coords) == 0:
            return np.empty((0, 2))
        arr = np.asarray([c[:2] for c in coords], dtype=float)
        lon = np.radians(arr[:, 0])
        lat = np.radians(arr[:, 1])
        x, y = natural_earth_raw(lon, lat)
        tx, ty = self.translate
        return np.column_stack((tx + self.scale * x, ty - self.scale * y))

    def __call__(self, lon: float, lat: float) -> Point:
        x, y = self.project([(lon, lat)])[0]
        return (float(x), float(y))


def geometry_rings(geometry: Optional[Mapping[str, Any]]) -> List[List[Sequence[float]]]:
    """All linear rings of a Polygon / MultiPolygon (empty for anything else)."""
    if not geometry:
        return []
    kind = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if kind == "Polygon":
        return [ring for ring in coords if ring]
    if kind == "MultiPolygon":
        return [ring for polygon in coords for ring in polygon if ring]
    if kind == "GeometryCollection":
        rings = []
        for part in geometry.get("geometries") or []:
            rings.extend(geometry_rings(part))
        return rings
    return []


def project_geometry(geometry: Optional[Mapping[str, Any]],
                     projection: NaturalEarthProjection) -> Tuple[Tuple[Point, ...], ...]:
    rings = []
    for ring in geometry_rings(geometry):
        projected = projection.project(ring)
        if len(projected) >= 3:
            rings.append(tuple((float(x), float(y)) for x, y in projected))
    return tuple(rings)


def ring_centroid(rings: Iterable[Sequence[Point]]) -> Optional[Point]:
    """Mean vertex of the largest ring; used to anchor hover/click targets."""
    best, best_area = None, -1.0
    for ring in rings:
        pts = np.asarray(ring, dtype=float)
        if len(pts) < 3:
            continue
        x, y = pts[:, 0], pts[:, 1]
        area = 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
        if area > best_area:
            best, best_area = pts, area
    if best is None:
        return None
    return (float(best[:, 0].mean()), float(best[:, 1].mean()))


# ── ZOOM ──────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ZoomTransform:
    """Pan/zoom state of the map layer; scale is kept inside ZOOM_EXTENT."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    @staticmethod
    def _clamp(k: float) -> float:
        lo, hi = ZOOM_EXTENT
        return min(hi, max(lo, k))

    def zoom(self, factor: float, center: Point) -> "ZoomTransform":
        """Scale by `factor` keeping the screen point `center` fixed."""
        k = self._clamp(self.k * factor)
        cx, cy = center
        # invert the current transform to find the layer point under the cursor
        px, py = (cx - self.x) / self.k, (cy - self.y) / self.k
        return ZoomTransform(k=k, x=cx - k * px, y=cy - k * py)

    def pan(self, dx: float, dy: float) -> "ZoomTransform":
        return replace(self, x=self.x + dx, y=self.y + dy)

    def as_transform(self) -> Transform:
        return Transform(k=self.k, x=self.x, y=self.y)

    @property
    def is_identity(self) -> bool:
        return math.isclose(self.k, 1.0) and self.x == 0 and self.y == 0


IDENTITY = ZoomTransform()
