"""
Backend API client for the TradeLens dashboard
FETCHES WHAT THE VIEWS CONSUME:
- /api/countries          -> country table (snake_case fields)
- /api/map/geojson        -> FeatureCollection or bare feature array
- /api/clustering/mse     -> [{k_value, mse_value}, ...]
- /api/clustering/optimal-k -> {optimalK}
"""

import logging
import time
from typing import Any, Dict, List, Optional, Union

import requests

from config import API_BASE_URL, MAX_RETRIES, REQUEST_TIMEOUT

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when an endpoint keeps failing after all retries."""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"GET {url} failed: {cause}")
        self.url = url
        self.cause = cause


class CountryApiClient:
    def __init__(self, base_url: str = API_BASE_URL, timeout: float = REQUEST_TIMEOUT,
                 retries: int = MAX_RETRIES, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.countries_url = f"{self.base_url}/api/countries"
        self.geojson_url = f"{self.base_url}/api/map/geojson"
        self.mse_url = f"{self.base_url}/api/clustering/mse"
        self.optimal_k_url = f"{self.base_url}/api/clustering/optimal-k"

        self.timeout = timeout
        self.retries = max(1, retries)
        self.session = session or requests.Session()

        # Headers
        self.headers = {
            "Accept": "application/json",
        }

        # Progress tracking
        self.total_requests = 0

    def _get(self, url: str, params: Optional[Dict] = None) -> Any:
        last_error: Optional[Exception] = None

        for attempt in range(self.retries):
            self.total_requests += 1
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=self.headers,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as e:
                last_error = e
                if attempt < self.retries - 1:
                    logger.warning(f"Request to {url} failed ({e}), retry {attempt + 1}/{self.retries - 1}")
                    time.sleep(2 ** attempt)

        logger.error(f"Request failed: {url} - {last_error}")
        raise FetchError(url, last_error)

    def fetch_countries(self) -> List[Dict]:
        """Fetch the full country table."""
        data = self._get(self.countries_url)
        if not isinstance(data, list):
            raise FetchError(self.countries_url, ValueError("expected a JSON array of countries"))
        logger.info(f"Fetched {len(data)} country rows")
        return data

    def fetch_geojson(self) -> Union[Dict, List]:
        """Fetch map geometry; may be a FeatureCollection or a bare feature list."""
        data = self._get(self.geojson_url)
        if not isinstance(data, (dict, list)):
            raise FetchError(self.geojson_url, ValueError("expected GeoJSON object or array"))
        return data

    def fetch_clustering_mse(self) -> List[Dict]:
        data = self._get(self.mse_url)
        if not isinstance(data, list):
            raise FetchError(self.mse_url, ValueError("expected a JSON array of MSE rows"))
        return data

    def fetch_optimal_k(self) -> Dict:
        data = self._get(self.optimal_k_url)
        if not isinstance(data, dict):
            raise FetchError(self.optimal_k_url, ValueError("expected a JSON object"))
        return data
