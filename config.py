import os
from pathlib import Path

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("TRADELENS_DATA_DIR", BASE_DIR / "data"))
REPORTS_DIR = BASE_DIR / "reports"

FALLBACK_CSV_PATH = DATA_DIR / "world-data-2023.csv"
FALLBACK_GEOJSON_PATH = DATA_DIR / "worldWithData.geojson"

# Backend API Config
API_BASE_URL = os.getenv("TRADELENS_API_URL", "http://localhost:5000")
REQUEST_TIMEOUT = float(os.getenv("TRADELENS_REQUEST_TIMEOUT", "30"))
MAX_RETRIES = int(os.getenv("TRADELENS_MAX_RETRIES", "3"))

# Clustering
DEFAULT_K = 4
MAX_K = 10
FALLBACK_OPTIMAL_K = 4
FALLBACK_MSE = [
    4192.208285950465, 2957.257034033883, 2482.2866645417175,
    2092.231873076597, 1978.7127033802503, 1773.1183702411172,
    1683.8174884991984, 1587.8448375236683, 1411.0062960787684,
    1272.6786662918385,
]

# Views
SCATTER_DEFAULT_LIMIT = 50   # countries shown when nothing is selected
PCP_DEFAULT_LIMIT = 20
DEFAULT_FOCUS_COUNTRIES = [
    "United States", "China", "India", "Germany", "Japan", "United Kingdom", "France",
]
