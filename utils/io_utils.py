import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from config import REPORTS_DIR

logger = logging.getLogger(__name__)


def load_country_table(path: Path) -> List[Dict[str, Any]]:
    """Load the bundled country CSV as raw string rows (cleaned later by normalize)."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")


def load_geojson(path: Path) -> Any:
    """Load the bundled geometry file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_figure_html(fig, name: str, out_dir: Path = REPORTS_DIR) -> Path:
    """Save a plotly figure as a standalone HTML report."""
    out_dir.mkdir(parents=True, exist_ok=True)
    fname = out_dir / f"{name}.html"
    fig.write_html(str(fname), include_plotlyjs="cdn")
    logger.info(f"Saved {fname}")
    return fname
