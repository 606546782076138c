"""
layout.py
---------
Container dimensions per view and the shared palette.

Margins are proportional to the container so every view stays legible from a
phone-sized column up to a full-width panel.
"""

from dataclasses import dataclass

# ── PALETTE ───────────────────────────────────────────────────────────────────

PRIMARY_BLUE = "#1E3A8A"
PRIMARY_ORANGE = "#EA580C"
LIGHT_BLUE = "#EFF6FF"
DARK_GRAY = "#374151"
MID_GRAY = "#6B7280"
TEXT_DARK = "#1F2937"
NEUTRAL_FILL = "#E5E7EB"   # countries without usable data

MAP_LOW, MAP_MID, MAP_HIGH = LIGHT_BLUE, PRIMARY_BLUE, PRIMARY_ORANGE

CLUSTER_COLORS = [
    "#1E3A8A",
    "#EA580C",
    "#3B82F6",
    "#FB923C",
    "#0891B2",
    "#F97316",
    "#374151",
    "#6B7280",
    "#E5E7EB",
    "#F8FAFC",
]


def cluster_color(cluster_id: int) -> str:
    return CLUSTER_COLORS[cluster_id % len(CLUSTER_COLORS)]


# ── DIMENSIONS ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Margin:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float
    margin: Margin

    @property
    def inner_width(self) -> float:
        return max(0.0, self.width - self.margin.left - self.margin.right)

    @property
    def inner_height(self) -> float:
        return max(0.0, self.height - self.margin.top - self.margin.bottom)

    @classmethod
    def for_map(cls, width: float = 1000, height: float = 500) -> "Dimensions":
        w, h = max(width, 300), max(height, 250)
        return cls(w, h, Margin(top=round(h * 0.02), right=round(w * 0.02),
                                bottom=round(h * 0.15), left=round(w * 0.02)))

    @classmethod
    def for_scatter(cls, width: float = 480, height: float = 300) -> "Dimensions":
        w, h = max(width, 250), max(height, 200)
        return cls(w, h, Margin(top=round(h * 0.05), right=round(w * 0.12),
                                bottom=round(h * 0.12), left=round(w * 0.08)))

    @classmethod
    def for_pcp(cls, width: float = 900, height: float = 400) -> "Dimensions":
        w, h = max(width, 400), max(height, 250)
        return cls(w, h, Margin(top=round(h * 0.15), right=round(w * 0.08),
                                bottom=round(h * 0.15), left=round(w * 0.08)))

    @classmethod
    def for_bar(cls, width: float = 400, height: float = 300) -> "Dimensions":
        w, h = max(width, 250), max(height, 300)
        return cls(w, h, Margin(top=round(h * 0.05), right=round(w * 0.05),
                                bottom=max(100, round(h * 0.35)), left=round(w * 0.15)))
