"""
Shared pytest fixtures for the dashboard tests.

A fake API client stands in for the REST backend (no network), and the static
fallback files are written to tmp_path so every test gets its own copy.
"""

import json
import sys
import time
from collections import Counter
from pathlib import Path

# Ensure project root is on sys.path so imports work from tests/
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from dashboard.view_state import ViewStateStore
from fetching.api_client import FetchError
from processing.repository import DataRepository


def square(lon, lat, size=10):
    return {
        "type": "Polygon",
        "coordinates": [[
            [lon, lat], [lon + size, lat], [lon + size, lat + size], [lon, lat + size], [lon, lat],
        ]],
    }


COUNTRY_ROWS = [
    {"country": "Alpha", "co2_emissions": 100, "gdp": 1000, "population": 10, "life_expectancy": 70},
    {"country": "Beta", "co2_emissions": 200, "gdp": 2000, "population": 20, "life_expectancy": float("nan")},
    {"country": "Gamma", "co2_emissions": 300, "gdp": 3000, "population": 30, "life_expectancy": 80},
    {"country": "Delta", "co2_emissions": 0, "gdp": 4000, "population": 40, "life_expectancy": 60},
]

GEOJSON = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {"NAME": "Alpha"}, "geometry": square(-60, 0)},
        {"type": "Feature", "properties": {"NAME": "Beta"}, "geometry": square(-20, 10)},
        {"type": "Feature", "properties": {"Country": "Gamma"}, "geometry": square(20, -10)},
        {"type": "Feature", "properties": {"name": "Delta"}, "geometry": {
            "type": "MultiPolygon",
            "coordinates": [square(60, 20)["coordinates"], square(80, 20, 5)["coordinates"]],
        }},
        {"type": "Feature", "properties": {"NAME": "Atlantis"}, "geometry": square(-30, -40)},
    ],
}

MSE_ROWS = [
    {"k_value": 3, "mse_value": "30.5"},
    {"k_value": 1, "mse_value": 100},
    {"k_value": 2, "mse_value": 60},
]


class FakeClient:
    """Stand-in for CountryApiClient that counts calls and can fail or lag."""

    base_url = "http://fake-backend"

    def __init__(self, countries=None, geojson=None, fail=False, delay=0.0,
                 mse=None, optimal=None, fail_clustering=False):
        self.countries = COUNTRY_ROWS if countries is None else countries
        self.geojson = GEOJSON if geojson is None else geojson
        self.fail = fail
        self.delay = delay
        self.mse = MSE_ROWS if mse is None else mse
        self.optimal = {"optimalK": 2} if optimal is None else optimal
        self.fail_clustering = fail_clustering
        self.calls = Counter()

    def _hit(self, name, url, payload, fail):
        self.calls[name] += 1
        if self.delay:
            time.sleep(self.delay)
        if fail:
            raise FetchError(f"{self.base_url}{url}", ConnectionError("backend down"))
        return payload

    def fetch_countries(self):
        return self._hit("countries", "/api/countries", self.countries, self.fail)

    def fetch_geojson(self):
        return self._hit("geojson", "/api/map/geojson", self.geojson, self.fail)

    def fetch_clustering_mse(self):
        return self._hit("mse", "/api/clustering/mse", self.mse, self.fail_clustering)

    def fetch_optimal_k(self):
        return self._hit("optimal_k", "/api/clustering/optimal-k", self.optimal, self.fail_clustering)


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def fallback_files(tmp_path):
    """Static CSV + GeoJSON in the bundled-file format (display-name columns, formatted numbers)."""
    csv_path = tmp_path / "world-data-2023.csv"
    csv_path.write_text(
        "Country,Co2-Emissions,GDP,Population,Life expectancy\n"
        'Alpha,"1,000","$2,500,000","12,000",71.5\n'
        'Gamma,300,"$9,000","5,000",\n'
        ',5,5,5,5\n',
        encoding="utf-8",
    )
    geojson_path = tmp_path / "worldWithData.geojson"
    # bare feature array, as some exports ship it
    geojson_path.write_text(json.dumps(GEOJSON["features"][:3]), encoding="utf-8")
    return csv_path, geojson_path


@pytest.fixture
def repository(fake_client, tmp_path):
    return DataRepository(
        client=fake_client,
        csv_path=tmp_path / "missing.csv",
        geojson_path=tmp_path / "missing.geojson",
    )


@pytest.fixture
def loaded_repository(repository):
    repository.load_all_sync()
    return repository


@pytest.fixture
def store():
    return ViewStateStore()
