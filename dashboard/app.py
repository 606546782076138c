"""
dashboard/app.py
----------------
Streamlit dashboard — Country Indicators Explorer
Four coordinated views over one country table:
  - World map (choropleth, click to select countries, zoom/pan)
  - Scatter plot (two indicators, trend line, Pearson r, cluster colors)
  - Elbow chart (MSE per k, click a bar to set k)
  - Parallel coordinates (all four indicators, click an axis to feed the scatter)

All views share one ViewStateStore and one DataRepository kept in
st.session_state, so a selection made on the map shows up everywhere.

Run from PROJECT ROOT:
  streamlit run dashboard/app.py
"""

import sys
import os
import logging
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
os.chdir(PROJECT_ROOT)

import streamlit as st

from config import DEFAULT_FOCUS_COUNTRIES
from dashboard.view_state import Axis, ViewStateStore
from processing.models import PCP_COLUMNS, Feature
from processing.repository import DataRepository
from visualization.bar_plots import HistogramRenderer
from visualization.map_plots import MapRenderer
from visualization.pcp_plots import PCPRenderer
from visualization.plotly_backend import fresh_selection_keys, render_figure
from visualization.scatter_plots import ScatterRenderer

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

FEATURES = list(Feature)
ZOOM_STEP = 1.5
PAN_STEP = 60

VIEW_SIZES = {
    "map":       (1100, 520),
    "scatter":   (560, 380),
    "histogram": (520, 380),
    "pcp":       (1100, 420),
}

# ── PAGE CONFIG ───────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Country Indicators Explorer",
    page_icon="🌍",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
  :root {
    --tl-navy:   #1E3A8A;
    --tl-orange: #EA580C;
    --tl-bg:     #F8FAFC;
    --tl-border: #E5E7EB;
    --tl-text:   #1F2937;
    --tl-muted:  #6B7280;
  }
  .stApp, [data-testid="stAppViewContainer"] { background-color: var(--tl-bg) !important; }
  .block-container { padding-top: 1.5rem !important; max-width: 1280px !important; }

  .hero-title {
    font-size: 2.4rem;
    font-weight: 800;
    color: var(--tl-navy);
    margin-bottom: 0.2rem;
    letter-spacing: -1px;
  }
  .hero-subtitle { color: var(--tl-muted); font-size: 1rem; margin-bottom: 1.5rem; }

  .stat-card {
    background: #FFFFFF;
    border: 1px solid var(--tl-border);
    border-radius: 10px;
    padding: 14px 18px;
    text-align: center;
  }
  .stat-number { font-size: 1.6rem; font-weight: 700; color: var(--tl-navy); }
  .stat-label  { font-size: 0.75rem; color: var(--tl-muted); text-transform: uppercase; letter-spacing: 0.5px; }

  .chip {
    display: inline-block;
    background: #FFF7ED;
    color: var(--tl-orange);
    border: 1px solid #FDBA74;
    border-radius: 999px;
    padding: 2px 10px;
    margin: 2px 4px 2px 0;
    font-size: 0.8rem;
  }
</style>
""", unsafe_allow_html=True)


# ── SESSION ───────────────────────────────────────────────────────────────────

def get_session():
    """One repository, store and renderer set per browser session."""
    if "store" not in st.session_state:
        repository = DataRepository()
        store = ViewStateStore()
        store.subscribe(lambda s: logger.info(
            f"View state: k={s.k}, map={s.map_feature.value}, x={s.x_var.value}, "
            f"y={s.y_var.value}, selected={len(s.selected_countries)}"
        ))
        renderers = {
            "map":       MapRenderer(repository, store),
            "scatter":   ScatterRenderer(repository, store),
            "histogram": HistogramRenderer(repository, store),
            "pcp":       PCPRenderer(repository, store),
        }
        for name, renderer in renderers.items():
            renderer.resize(*VIEW_SIZES[name])

        st.session_state.repository = repository
        st.session_state.store = store
        st.session_state.renderers = renderers
        st.session_state.handled_events = {}
        st.session_state.chart_versions = {}
        st.session_state.seeded = False
    return st.session_state.repository, st.session_state.store, st.session_state.renderers


def ensure_loaded(repository: DataRepository, store: ViewStateStore) -> bool:
    if repository.is_loaded:
        return True

    store.set_is_loading(True)
    try:
        with st.spinner("Loading country data…"):
            dataset = repository.load_all_sync()
        store.set_error(None)
    except Exception as e:
        logger.error(f"Data load failed: {e}")
        store.set_error(str(e))
        return False
    finally:
        store.set_is_loading(False)

    if not st.session_state.seeded:
        focus = [name for name in DEFAULT_FOCUS_COUNTRIES if name in dataset.records_by_name]
        store.set_selected_countries(focus)
        st.session_state.seeded = True
    return True


def new_selection_keys(chart: str, event) -> list:
    """Keys of a selection event that has not been handled on an earlier rerun."""
    return fresh_selection_keys(st.session_state.handled_events, chart, event)


def chart_key(chart: str) -> str:
    return f"{chart}_chart_{st.session_state.chart_versions.get(chart, 0)}"


def consume_selection(chart: str):
    """Drop the widget holding a handled selection so the next click starts clean."""
    versions = st.session_state.chart_versions
    versions[chart] = versions.get(chart, 0) + 1
    st.session_state.handled_events.pop(chart, None)


def stat_card(column, value, label):
    with column:
        st.markdown(f"""
        <div class="stat-card">
            <div class="stat-number">{value}</div>
            <div class="stat-label">{label}</div>
        </div>
        """, unsafe_allow_html=True)


repository, store, renderers = get_session()
map_view = renderers["map"]
pcp_view = renderers["pcp"]
hist_view = renderers["histogram"]


# ── SIDEBAR ───────────────────────────────────────────────────────────────────
with st.sidebar:
    st.markdown("### Map")
    state = store.state
    map_feature = st.radio("Map indicator", FEATURES, index=FEATURES.index(state.map_feature),
                           format_func=lambda f: f.value)
    store.set_map_feature(map_feature)

    z1, z2, z3 = st.columns(3)
    if z1.button("＋", help="Zoom in"):
        map_view.zoom(ZOOM_STEP)
    if z2.button("－", help="Zoom out"):
        map_view.zoom(1 / ZOOM_STEP)
    if z3.button("⟲", help="Reset zoom"):
        map_view.reset_zoom()

    p1, p2, p3, p4 = st.columns(4)
    if p1.button("←"):
        map_view.pan(PAN_STEP, 0)
    if p2.button("→"):
        map_view.pan(-PAN_STEP, 0)
    if p3.button("↑"):
        map_view.pan(0, PAN_STEP)
    if p4.button("↓"):
        map_view.pan(0, -PAN_STEP)

    st.markdown("---")
    st.markdown("### Scatter")
    state = store.state
    x_var = st.selectbox("X axis", FEATURES, index=FEATURES.index(state.x_var), format_func=lambda f: f.value)
    y_var = st.selectbox("Y axis", FEATURES, index=FEATURES.index(state.y_var), format_func=lambda f: f.value)
    store.set_x_var(x_var)
    store.set_y_var(y_var)

    st.markdown("---")
    if st.button("Reset view", help="Clear the selection and restore default indicators and k"):
        store.clear_data()
        map_view.reset_zoom()
        st.session_state.handled_events = {}
        st.rerun()


# ── HEADER ────────────────────────────────────────────────────────────────────
st.markdown('<h1 class="hero-title">Country Indicators Explorer</h1>', unsafe_allow_html=True)
st.markdown('<p class="hero-subtitle">CO₂ emissions, GDP, population and life expectancy across the world</p>',
            unsafe_allow_html=True)

if not ensure_loaded(repository, store):
    st.error(f"❌ Could not load country data: {store.state.error}")
    if st.button("Retry"):
        store.set_error(None)
        st.rerun()
    st.stop()

hist_view.load_profile()
dataset = repository.dataset
state = store.state

c1, c2, c3, c4 = st.columns(4)
stat_card(c1, len(dataset.records), "Countries")
stat_card(c2, len(state.selected_countries), "Selected")
stat_card(c3, state.k, "Clusters (k)")
stat_card(c4, dataset.source.upper(), "Data source")
st.markdown("<br>", unsafe_allow_html=True)

if state.selected_countries:
    chips = "".join(f'<span class="chip">{name}</span>' for name in state.selected_countries)
    st.markdown(chips, unsafe_allow_html=True)


# ══════════════════════════════════════════════════════════════════════════════
# MAP
# ══════════════════════════════════════════════════════════════════════════════
st.markdown("#### World Map")
st.markdown(
    "<p style='color:#6B7280;font-size:0.85rem;margin-top:-8px;'>"
    "Click near the middle of a country to add it to the selection; click it again to remove it."
    "</p>",
    unsafe_allow_html=True,
)
event = st.plotly_chart(
    render_figure(map_view.render(), with_title=False),
    key=chart_key("map"),
    on_select="rerun",
    selection_mode="points",
    config={'displayModeBar': False},
)
clicked = new_selection_keys("map", event)
if clicked:
    for name in clicked:
        map_view.handle_click(name)
    consume_selection("map")
    st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# SCATTER + ELBOW
# ══════════════════════════════════════════════════════════════════════════════
left, right = st.columns(2)

with left:
    st.markdown(f"#### {store.state.x_var.value} vs {store.state.y_var.value}")
    st.plotly_chart(
        render_figure(renderers["scatter"].render(), with_title=False),
        key="scatter_chart",
        config={'displayModeBar': False},
    )

with right:
    st.markdown("#### Elbow Method")
    event = st.plotly_chart(
        render_figure(hist_view.render(), with_title=False),
        key=chart_key("histogram"),
        on_select="rerun",
        selection_mode="points",
        config={'displayModeBar': False},
    )
    clicked = new_selection_keys("histogram", event)
    if clicked:
        hist_view.handle_click(int(clicked[-1]) - 1)
        consume_selection("histogram")
        st.rerun()


# ══════════════════════════════════════════════════════════════════════════════
# PARALLEL COORDINATES
# ══════════════════════════════════════════════════════════════════════════════
st.markdown("#### Parallel Coordinates")
next_axis = "X" if store.state.current_axis is Axis.X else "Y"
st.markdown(
    "<p style='color:#6B7280;font-size:0.85rem;margin-top:-8px;'>"
    f"Click an indicator to use it as the scatter plot's <b>{next_axis}</b> axis."
    "</p>",
    unsafe_allow_html=True,
)
axis_columns = st.columns(len(PCP_COLUMNS))
for column, feature in zip(axis_columns, PCP_COLUMNS):
    if column.button(feature.value, key=f"pcp_axis_{feature.name}"):
        pcp_view.handle_axis_click(feature)
        st.rerun()

st.plotly_chart(
    render_figure(pcp_view.render(), with_title=False),
    key="pcp_chart",
    config={'displayModeBar': False},
)
