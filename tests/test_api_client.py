"""Tests for fetching/api_client.py: endpoints, retries and payload checks."""

import pytest
import requests

from fetching import api_client
from fetching.api_client import CountryApiClient, FetchError


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.urls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.urls.append(url)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(api_client.time, "sleep", lambda s: None)


class TestEndpoints:
    def test_urls(self):
        client = CountryApiClient(base_url="http://api.test/", session=FakeSession([]))
        assert client.countries_url == "http://api.test/api/countries"
        assert client.geojson_url == "http://api.test/api/map/geojson"
        assert client.mse_url == "http://api.test/api/clustering/mse"
        assert client.optimal_k_url == "http://api.test/api/clustering/optimal-k"

    def test_fetch_countries(self):
        session = FakeSession([FakeResponse([{"country": "A"}])])
        client = CountryApiClient(base_url="http://api.test", session=session)
        assert client.fetch_countries() == [{"country": "A"}]
        assert session.urls == ["http://api.test/api/countries"]

    def test_geojson_accepts_object_or_array(self):
        session = FakeSession([FakeResponse({"type": "FeatureCollection"}), FakeResponse([])])
        client = CountryApiClient(session=session)
        assert client.fetch_geojson() == {"type": "FeatureCollection"}
        assert client.fetch_geojson() == []

    def test_wrong_payload_shape(self):
        client = CountryApiClient(session=FakeSession([FakeResponse({"not": "a list"})]))
        with pytest.raises(FetchError):
            client.fetch_countries()


class TestRetries:
    def test_recovers_after_transient_error(self):
        session = FakeSession([requests.ConnectionError("down"), FakeResponse({"optimalK": 4})])
        client = CountryApiClient(retries=3, session=session)
        assert client.fetch_optimal_k() == {"optimalK": 4}
        assert client.total_requests == 2

    def test_gives_up_after_retries(self):
        session = FakeSession([FakeResponse(None, status=500)] * 3)
        client = CountryApiClient(retries=3, session=session)
        with pytest.raises(FetchError) as excinfo:
            client.fetch_clustering_mse()
        assert isinstance(excinfo.value.cause, requests.HTTPError)
        assert excinfo.value.url.endswith("/api/clustering/mse")
        assert client.total_requests == 3
