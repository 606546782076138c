#!/usr/bin/env python3
"""
Country Indicators Explorer - Batch Pipeline
Loads the country table + world geometry, renders the four views with the
default view state and writes them to reports/ as standalone HTML.
Run: python main.py
"""
import logging

from config import DEFAULT_FOCUS_COUNTRIES
from dashboard.view_state import ViewStateStore
from modeling.cluster_engine import ElbowEngine
from processing.repository import DataRepository
from utils.io_utils import save_figure_html
from visualization.bar_plots import HistogramRenderer
from visualization.map_plots import MapRenderer
from visualization.pcp_plots import PCPRenderer
from visualization.plotly_backend import render_figure
from visualization.scatter_plots import ScatterRenderer

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    logger.info(" Starting Country Indicators Pipeline")

    # 1. Load (API, falling back to the bundled files)
    logger.info(" Step 1: Data Loading")
    repository = DataRepository()
    try:
        dataset = repository.load_all_sync()
    except Exception as e:
        logger.error(f"Could not load country data from API or fallback files: {e}")
        return
    logger.info(f"Loaded {len(dataset.records)} countries / {len(dataset.features)} shapes "
                f"from {dataset.source}")

    store = ViewStateStore()
    focus = [name for name in DEFAULT_FOCUS_COUNTRIES if name in dataset.records_by_name]
    store.set_selected_countries(focus)

    # 2. Clustering profile (served curve vs. local k-means)
    logger.info(" Step 2: Clustering Profile")
    histogram = HistogramRenderer(repository, store)
    profile = histogram.load_profile()
    try:
        local = ElbowEngine().fit(dataset.frame())
        logger.info(f"Served optimal k = {profile.optimal_k} ({profile.source}), "
                    f"local k-means elbow = {local.optimal_k}")
    except ValueError as e:
        logger.warning(f"Skipping local elbow curve: {e}")

    # 3. Views
    logger.info(" Step 3: Rendering Views")
    views = {
        "world_map": MapRenderer(repository, store),
        "scatter": ScatterRenderer(repository, store),
        "elbow": histogram,
        "parallel_coordinates": PCPRenderer(repository, store),
    }
    for name, renderer in views.items():
        scene = renderer.render()
        if scene.message:
            logger.warning(f"{name}: {scene.message}")
        save_figure_html(render_figure(scene), name)

    logger.info(" Pipeline COMPLETE! Check reports/ for HTML views")
    logger.info("Run: streamlit run dashboard/app.py")


if __name__ == "__main__":
    main()
