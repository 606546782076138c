"""
plotly_backend.py
-----------------
Scene → plotly Figure.

The figure's axes are pinned to the scene's pixel box (x right, y down) and
hidden, so every primitive lands exactly where the renderer put it. Keyed
primitives (countries, points, bars, PCP lines) carry their key in
`customdata`; Streamlit selection events hand it back through
`keys_from_selection`.
"""

import logging
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional

import plotly.graph_objects as go

from visualization.primitives import (
    Circle,
    GradientLegend,
    Line,
    Path,
    Polyline,
    Rect,
    Scene,
    Text,
    Transform,
)
from visualization.projection import ring_centroid

logger = logging.getLogger(__name__)

FONT_FAMILY = "DM Sans, sans-serif"
TEXT_ANCHOR = {"start": "left", "middle": "center", "end": "right"}
TARGET_SIZE = 10


def _ring_xy(rings, transform: Transform):
    xs, ys = [], []
    for ring in rings:
        pts = [transform.apply(p) for p in ring]
        if pts and pts[0] != pts[-1]:
            pts.append(pts[0])
        xs.extend(p[0] for p in pts)
        ys.extend(p[1] for p in pts)
        # None breaks the line between rings
        xs.append(None)
        ys.append(None)
    return xs, ys


def _rect_ring(rect: Rect):
    x0, y0 = rect.x, rect.y
    x1, y1 = rect.x + rect.width, rect.y + rect.height
    return ((x0, y0), (x1, y0), (x1, y1), (x0, y1))


def _rect_anchors(rect: Rect, transform: Transform):
    """Target points down the middle of a bar, one every TARGET_SIZE pixels."""
    x0, y0 = transform.apply((rect.x, rect.y))
    x1, y1 = transform.apply((rect.x + rect.width, rect.y + rect.height))
    height = abs(y1 - y0)
    n = max(1, int(height // TARGET_SIZE))
    cx = (x0 + x1) / 2
    top = min(y0, y1)
    return [(cx, top + height * (i + 0.5) / n) for i in range(n)]


def _label(text: Text) -> str:
    return f"<b>{text.text}</b>" if text.weight == "bold" else text.text


def scene_to_figure(scene: Scene) -> go.Figure:
    fig = go.Figure()
    shapes: List[dict] = []
    annotations: List[dict] = []
    circles: List[tuple] = []
    targets: List[tuple] = []   # (x, y, key, hover) click anchors for filled shapes

    for prim, t in scene.iter_flat():
        if isinstance(prim, (Path, Rect)):
            rings = prim.rings if isinstance(prim, Path) else (_rect_ring(prim),)
            xs, ys = _ring_xy(rings, t)
            fig.add_trace(go.Scatter(
                x=xs, y=ys,
                mode="lines",
                fill="toself",
                fillcolor=prim.fill,
                line=dict(color=prim.stroke or prim.fill, width=prim.stroke_width),
                opacity=prim.opacity,
                hoverinfo="text" if prim.hover else "skip",
                hoveron="fills",
                text=prim.hover,
                name=prim.key or "",
                showlegend=False,
            ))
            if prim.key is not None:
                if isinstance(prim, Rect):
                    anchors = _rect_anchors(prim, t)
                else:
                    anchor = ring_centroid([[t.apply(p) for p in ring] for ring in rings])
                    anchors = [anchor] if anchor is not None else []
                targets.extend((x, y, prim.key, prim.hover) for x, y in anchors)

        elif isinstance(prim, Polyline):
            pts = [t.apply(p) for p in prim.points]
            fig.add_trace(go.Scatter(
                x=[p[0] for p in pts], y=[p[1] for p in pts],
                mode="lines",
                line=dict(color=prim.stroke, width=prim.stroke_width, dash=prim.dash or "solid"),
                opacity=prim.opacity,
                hoverinfo="text" if prim.hover else "skip",
                text=prim.hover,
                customdata=[prim.key] * len(pts) if prim.key is not None else None,
                name=prim.key or "",
                showlegend=False,
            ))

        elif isinstance(prim, Circle):
            cx, cy = t.apply((prim.cx, prim.cy))
            circles.append((cx, cy, prim, prim.r * t.k))

        elif isinstance(prim, Line):
            x1, y1 = t.apply((prim.x1, prim.y1))
            x2, y2 = t.apply((prim.x2, prim.y2))
            shapes.append(dict(
                type="line", xref="x", yref="y", x0=x1, y0=y1, x1=x2, y1=y2,
                line=dict(color=prim.stroke, width=prim.stroke_width, dash=prim.dash or "solid"),
            ))

        elif isinstance(prim, Text):
            x, y = t.apply((prim.x, prim.y))
            annotations.append(dict(
                x=x, y=y, xref="x", yref="y",
                text=_label(prim),
                showarrow=False,
                xanchor=TEXT_ANCHOR.get(prim.anchor, "center"),
                yanchor="bottom",
                textangle=prim.rotate,
                font=dict(size=prim.size, color=prim.color, family=FONT_FAMILY),
            ))

        elif isinstance(prim, GradientLegend):
            shapes.extend(_legend_shapes(prim))
            annotations.extend(_legend_annotations(prim))

        else:
            logger.warning(f"Skipping unsupported primitive {type(prim).__name__}")

    if circles:
        fig.add_trace(go.Scatter(
            x=[c[0] for c in circles],
            y=[c[1] for c in circles],
            mode="markers",
            marker=dict(
                size=[2 * c[3] for c in circles],
                color=[c[2].fill for c in circles],
                opacity=[c[2].opacity for c in circles],
                line=dict(color=[c[2].stroke for c in circles],
                          width=[c[2].stroke_width for c in circles]),
            ),
            hoverinfo="text",
            text=[c[2].hover or "" for c in circles],
            customdata=[c[2].key for c in circles],
            name="points",
            showlegend=False,
        ))

    if targets:
        fig.add_trace(go.Scatter(
            x=[t[0] for t in targets],
            y=[t[1] for t in targets],
            mode="markers",
            marker=dict(size=TARGET_SIZE, opacity=0),
            hoverinfo="text",
            text=[t[3] or t[2] for t in targets],
            customdata=[t[2] for t in targets],
            name="targets",
            showlegend=False,
        ))

    fig.update_layout(
        width=scene.width,
        height=scene.height,
        shapes=shapes,
        annotations=annotations,
        xaxis=dict(range=[0, scene.width], visible=False, fixedrange=True),
        yaxis=dict(range=[scene.height, 0], visible=False, fixedrange=True),
        margin=dict(l=0, r=0, t=0, b=0),
        clickmode="event+select",
        dragmode=False,
    )
    return fig


def _legend_shapes(legend: GradientLegend) -> List[dict]:
    shapes = []
    for (o0, color), (o1, _) in zip(legend.stops, legend.stops[1:]):
        shapes.append(dict(
            type="rect", xref="x", yref="y",
            x0=legend.x + o0 * legend.width, x1=legend.x + o1 * legend.width,
            y0=legend.y, y1=legend.y + legend.height,
            fillcolor=color, line=dict(width=0),
        ))
    shapes.append(dict(
        type="rect", xref="x", yref="y",
        x0=legend.x, x1=legend.x + legend.width, y0=legend.y, y1=legend.y + legend.height,
        line=dict(color="#CBD5E0", width=1),
    ))
    return shapes


def _legend_annotations(legend: GradientLegend) -> List[dict]:
    font = dict(size=10, color="#607D8B", family=FONT_FAMILY)
    items = [
        dict(x=legend.x + dx, y=legend.y + legend.height + 4, xref="x", yref="y",
             text=label, showarrow=False, xanchor="center", yanchor="top", font=font)
        for dx, label in legend.ticks
    ]
    if legend.title:
        items.append(dict(
            x=legend.x + legend.width / 2, y=legend.y - 4, xref="x", yref="y",
            text=f"<b>{legend.title}</b>", showarrow=False, xanchor="center", yanchor="bottom",
            font=dict(size=11, color="#1A2E3B", family=FONT_FAMILY),
        ))
    return items


def dashboard_plotly_layout(fig: go.Figure, title: Optional[str] = None) -> go.Figure:
    """
    Apply the dashboard's light theme to a scene figure.
    Sizing and axes are left alone; they belong to the scene.
    """
    fig.update_layout(
        paper_bgcolor="#FFFFFF",
        plot_bgcolor="#FFFFFF",
        font=dict(family=FONT_FAMILY, color="#1A2E3B", size=12),
        hoverlabel=dict(
            bgcolor="#FFFFFF",
            bordercolor="#E1E8ED",
            font=dict(size=11, color="#1A2E3B", family=FONT_FAMILY),
        ),
    )
    if title:
        fig.update_layout(
            title=dict(text=title, font=dict(color="#002A47", size=14, family=FONT_FAMILY),
                       x=0.0, xanchor="left", pad=dict(l=2, b=10)),
            margin=dict(l=0, r=0, t=40, b=0),
            height=(fig.layout.height or 0) + 40,
        )
    return fig


def render_figure(scene: Scene, with_title: bool = True) -> go.Figure:
    fig = scene_to_figure(scene)
    return dashboard_plotly_layout(fig, scene.title if with_title else None)


def keys_from_selection(event: Any) -> List[str]:
    """Keys of the points picked in a Streamlit plotly selection event, in order, de-duplicated."""
    if not event:
        return []
    selection = event.get("selection") if isinstance(event, Mapping) else getattr(event, "selection", None)
    if not selection:
        return []
    points: Iterable[Mapping] = selection.get("points", []) if isinstance(selection, Mapping) else []
    keys: List[str] = []
    for point in points:
        data = point.get("customdata")
        if isinstance(data, (list, tuple)):
            data = data[0] if data else None
        if data is not None and str(data) not in keys:
            keys.append(str(data))
    return keys


def fresh_selection_keys(handled: MutableMapping[str, List[str]], chart_key: str, event: Any) -> List[str]:
    """
    Keys of `event` that were not already handled for `chart_key`.

    Streamlit replays the last selection on every rerun, so the same keys twice
    in a row count once. An empty event forgets the previous keys; clicking the
    same point after it has been cleared counts as a new click.
    """
    keys = keys_from_selection(event)
    previous = handled.get(chart_key)
    handled[chart_key] = keys
    if not keys or keys == previous:
        return []
    return keys
