"""
scales.py
---------
Scales, ticks, color ramps and number formats shared by the four views.

  LinearScale / LogScale  domain → pixel range, with `nice()` and tick helpers
  BandScale               categorical bars (k = 1..n)
  SequentialColorScale    value → color through a two-stop interpolator
  format_si / format_fixed  axis + legend labels
"""

import math
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from plotly.colors import find_intermediate_color, hex_to_rgb

from processing.models import Feature

E10 = math.sqrt(50)
E5 = math.sqrt(10)
E2 = math.sqrt(2)


# ── TICKS ─────────────────────────────────────────────────────────────────────

def tick_increment(start: float, stop: float, count: int) -> float:
    """Step for ~count ticks; negative values mean 1/step (for steps below 1)."""
    step = (stop - start) / max(0, count)
    power = math.floor(math.log10(step))
    error = step / 10 ** power
    if error >= E10:
        factor = 10
    elif error >= E5:
        factor = 5
    elif error >= E2:
        factor = 2
    else:
        factor = 1
    if power >= 0:
        return factor * 10 ** power
    return -(10 ** -power) / factor


def linear_ticks(start: float, stop: float, count: int = 10) -> List[float]:
    """Round-number ticks covering [start, stop]."""
    if count <= 0 or not (math.isfinite(start) and math.isfinite(stop)):
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    inc = tick_increment(start, stop, count)
    if inc == 0 or not math.isfinite(inc):
        return []
    if inc > 0:
        r0, r1 = math.ceil(start / inc), math.floor(stop / inc)
        ticks = [(r0 + i) * inc for i in range(int(r1 - r0) + 1)]
    else:
        inc = -inc
        r0, r1 = math.ceil(start * inc), math.floor(stop * inc)
        ticks = [(r0 + i) / inc for i in range(int(r1 - r0) + 1)]
    return ticks[::-1] if reverse else ticks


def nice_linear(start: float, stop: float, count: int = 10) -> Tuple[float, float]:
    """Extend [start, stop] outward to round tick boundaries."""
    if start == stop or not (math.isfinite(start) and math.isfinite(stop)):
        return start, stop
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    prestep = None
    for _ in range(10):
        step = tick_increment(start, stop, count)
        if step == prestep:
            break
        if step > 0:
            start = math.floor(start / step) * step
            stop = math.ceil(stop / step) * step
        elif step < 0:
            start = math.ceil(start * step) / step
            stop = math.floor(stop * step) / step
        else:
            break
        prestep = step
    return (stop, start) if reverse else (start, stop)


def even_ticks(start: float, stop: float, count: int = 5) -> List[float]:
    """`count` evenly spaced values from start to stop inclusive."""
    if count <= 1 or start == stop:
        return [start]
    step = (stop - start) / (count - 1)
    return [start + i * step for i in range(count)]


# ── CONTINUOUS SCALES ─────────────────────────────────────────────────────────

class LinearScale:
    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def nice(self, count: int = 10) -> "LinearScale":
        self.domain = nice_linear(self.domain[0], self.domain[1], count)
        return self

    def _normalize(self, value: float) -> float:
        d0, d1 = self.domain
        if d1 == d0:
            return 0.5
        return (value - d0) / (d1 - d0)

    def __call__(self, value: float) -> float:
        r0, r1 = self.range
        return r0 + self._normalize(float(value)) * (r1 - r0)

    def ticks(self, count: int = 10) -> List[float]:
        return linear_ticks(self.domain[0], self.domain[1], count)

    def even_ticks(self, count: int = 5) -> List[float]:
        return even_ticks(self.domain[0], self.domain[1], count)


class LogScale(LinearScale):
    """Base-10 log scale; the domain must be strictly positive."""

    def __init__(self, domain: Tuple[float, float], range_: Tuple[float, float]):
        if domain[0] <= 0 or domain[1] <= 0:
            raise ValueError(f"Log scale domain must be positive, got {domain}")
        super().__init__(domain, range_)

    def nice(self, count: int = 10) -> "LogScale":
        d0, d1 = self.domain
        reverse = d1 < d0
        lo, hi = (d1, d0) if reverse else (d0, d1)
        lo = 10 ** math.floor(math.log10(lo))
        hi = 10 ** math.ceil(math.log10(hi))
        self.domain = (hi, lo) if reverse else (lo, hi)
        return self

    def _normalize(self, value: float) -> float:
        d0, d1 = (math.log10(d) for d in self.domain)
        if d1 == d0:
            return 0.5
        if value <= 0:
            return float("-inf") if d1 > d0 else float("inf")
        return (math.log10(value) - d0) / (d1 - d0)

    def ticks(self, count: int = 10) -> List[float]:
        """Powers of ten inside the domain, thinned to roughly `count`."""
        lo, hi = sorted(self.domain)
        e0, e1 = math.ceil(math.log10(lo) - 1e-12), math.floor(math.log10(hi) + 1e-12)
        powers = [10.0 ** e for e in range(e0, e1 + 1)]
        if count > 0 and len(powers) > count:
            stride = math.ceil(len(powers) / count)
            powers = powers[::stride]
        return powers

    def even_ticks(self, count: int = 5) -> List[float]:
        """Evenly spaced in log10 space, so they look evenly spaced on screen."""
        l0, l1 = (math.log10(d) for d in self.domain)
        return [10 ** v for v in even_ticks(l0, l1, count)]


def feature_scale(feature: Feature, values: Sequence[float],
                  range_: Tuple[float, float]) -> LinearScale:
    """Linear scale for life expectancy, log scale (domain floor ≥ 1) for the rest; niced."""
    arr = np.asarray(values, dtype=float)
    lo, hi = (float(arr.min()), float(arr.max())) if arr.size else (1.0, 1.0)
    if feature.is_linear:
        return LinearScale((lo, hi), range_).nice()
    lo = max(lo, 1.0)
    hi = max(hi, lo)
    return LogScale((lo, hi), range_).nice()


def clamp_for_scale(feature: Feature, value: float) -> float:
    """Keep log-scale inputs ≥ 1 and linear inputs ≥ 0 before mapping."""
    return max(value, 0.0 if feature.is_linear else 1.0)


# ── BAND SCALE ────────────────────────────────────────────────────────────────

class BandScale:
    def __init__(self, domain: Sequence, range_: Tuple[float, float], padding: float = 0.1):
        self.domain = list(domain)
        self.range = range_
        self.padding = padding
        n = len(self.domain)
        r0, r1 = range_
        # inner and outer padding are equal; bands are centred in the range
        self.step = (r1 - r0) / max(1.0, n - padding + padding * 2)
        self.bandwidth = self.step * (1 - padding)
        self._start = r0 + (r1 - r0 - self.step * (n - padding)) * 0.5

    def __call__(self, value) -> Optional[float]:
        try:
            i = self.domain.index(value)
        except ValueError:
            return None
        return self._start + i * self.step

    def center(self, value) -> Optional[float]:
        x = self(value)
        return None if x is None else x + self.bandwidth / 2


# ── COLOR ─────────────────────────────────────────────────────────────────────

def _rgb(color: str) -> Tuple[float, float, float]:
    return tuple(float(c) for c in hex_to_rgb(color))


def rgb_string(rgb: Sequence[float]) -> str:
    r, g, b = (int(round(min(255.0, max(0.0, c)))) for c in rgb)
    return f"rgb({r}, {g}, {b})"


def interpolate_rgb(start: str, end: str) -> Callable[[float], str]:
    a, b = _rgb(start), _rgb(end)

    def interpolate(t: float) -> str:
        t = min(1.0, max(0.0, t))
        return rgb_string(find_intermediate_color(a, b, t, colortype="tuple"))

    return interpolate


def two_stop_interpolator(low: str, mid: str, high: str) -> Callable[[float], str]:
    """low → mid over t ∈ [0, .5], mid → high over [.5, 1]."""
    first = interpolate_rgb(low, mid)
    second = interpolate_rgb(mid, high)

    def interpolate(t: float) -> str:
        if t < 0.5:
            return first(t * 2)
        return second((t - 0.5) * 2)

    return interpolate


class SequentialColorScale:
    def __init__(self, domain: Tuple[float, float], interpolator: Callable[[float], str],
                 clamp: bool = False):
        self.domain = (float(domain[0]), float(domain[1]))
        self.interpolator = interpolator
        self.clamp = clamp

    def t(self, value: float) -> float:
        d0, d1 = self.domain
        t = 0.5 if d1 == d0 else (float(value) - d0) / (d1 - d0)
        if self.clamp:
            t = min(1.0, max(0.0, t))
        return t

    def __call__(self, value: float) -> str:
        return self.interpolator(self.t(value))


def quantile_domain(values: Sequence[float], low: float = 0.05, high: float = 0.95) -> Tuple[float, float]:
    """[low, high] quantiles with linear interpolation between order statistics."""
    arr = np.sort(np.asarray(values, dtype=float))
    if arr.size == 0:
        return (0.0, 1.0)
    lo = float(np.quantile(arr, low)) or float(arr[0])
    hi = float(np.quantile(arr, high)) or float(arr[-1])
    return (lo, hi)


def extent(values: Sequence[float]) -> Tuple[float, float]:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return (0.0, 1.0)
    return (float(arr.min()), float(arr.max()))


# ── NUMBER FORMATS ────────────────────────────────────────────────────────────

SI_PREFIXES = ["y", "z", "a", "f", "p", "n", "µ", "m", "", "k", "M", "G", "T", "P", "E", "Z", "Y"]


def format_si(value: float, digits: int = 1) -> str:
    """`digits` significant digits with an SI prefix: 1234567 → '1M', 0.5 → '500m'."""
    if value is None or not math.isfinite(value):
        return "NaN"
    if value == 0:
        return "0"
    digits = max(1, min(21, digits))
    mantissa, exponent = f"{abs(value):.{digits - 1}e}".split("e")
    exponent = int(exponent)
    group = max(-8, min(8, math.floor(exponent / 3)))
    shift = exponent - group * 3
    scaled = float(mantissa) * 10 ** shift
    decimals = max(0, digits - 1 - shift)
    sign = "-" if value < 0 else ""
    return f"{sign}{scaled:.{decimals}f}{SI_PREFIXES[group + 8]}"


def format_fixed(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}"


def legend_formatter(feature: Feature) -> Callable[[float], str]:
    if feature is Feature.LIFE_EXPECTANCY:
        return lambda v: format_fixed(v, 0)
    return lambda v: format_si(v, 1)


def axis_formatter(feature: Feature) -> Callable[[float], str]:
    if feature is Feature.LIFE_EXPECTANCY:
        return lambda v: format_fixed(v, 1)
    return lambda v: format_si(v, 1)
