"""
repository.py
-------------
DataRepository: loads the country table and the world geometry once per
session and serves filtered views of it to the renderers.

Load flow:
  REST API (geojson + countries, fetched concurrently)
      └─ on failure → bundled static files (CSV + GeoJSON)
            └─ on failure → the API error is raised to the caller

Every successful load publishes a new immutable Dataset; readers either see the
previous snapshot or the complete new one, never a half-built cache.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from config import (
    FALLBACK_CSV_PATH,
    FALLBACK_GEOJSON_PATH,
    FALLBACK_MSE,
    FALLBACK_OPTIMAL_K,
    MAX_K,
)
from fetching.api_client import CountryApiClient
from processing.models import CountryRecord, Feature, GeoFeature, resolve_field
from processing.normalize import (
    normalise_country_rows,
    normalise_feature_collection,
    parse_numeric_value,
    records_to_frame,
    to_geo_features,
)
from utils.io_utils import load_country_table, load_geojson

logger = logging.getLogger(__name__)


# ── SNAPSHOTS ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CacheStatus:
    country_records: bool = False
    geometry: bool = False
    geometry_index: bool = False

    @property
    def ready(self) -> bool:
        return self.country_records and self.geometry and self.geometry_index


@dataclass(frozen=True)
class Dataset:
    """One fully-formed load result. Never mutated after construction."""

    records: Tuple[CountryRecord, ...]
    features: Tuple[GeoFeature, ...]
    source: str = "api"
    records_by_name: Mapping[str, CountryRecord] = field(init=False, repr=False, compare=False)
    features_by_name: Mapping[str, GeoFeature] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "records", tuple(self.records))
        object.__setattr__(self, "features", tuple(self.features))
        object.__setattr__(self, "records_by_name",
                           MappingProxyType({r.name: r for r in self.records}))
        object.__setattr__(self, "features_by_name",
                           MappingProxyType({f.name: f for f in self.features if f.name}))
        object.__setattr__(self, "_frame", records_to_frame(self.records))

    def frame(self) -> pd.DataFrame:
        """Country table as a DataFrame (a copy; callers may modify it)."""
        return self._frame.copy()

    @property
    def names(self) -> List[str]:
        return [r.name for r in self.records]


@dataclass(frozen=True)
class ClusteringProfile:
    mse_values: Tuple[float, ...]
    optimal_k: int
    source: str = "api"


FALLBACK_PROFILE = ClusteringProfile(
    mse_values=tuple(FALLBACK_MSE),
    optimal_k=FALLBACK_OPTIMAL_K,
    source="fallback",
)


# ── REPOSITORY ────────────────────────────────────────────────────────────────

class DataRepository:
    """
    Load-once data access for all four views.

    Construct one per session and hand the same instance to every renderer.
    `load_all()` is safe to call from any number of coroutines at once: they all
    await the same in-flight task, so the backend sees exactly one pair of
    requests.
    """

    def __init__(self, client: Optional[CountryApiClient] = None,
                 csv_path: Path = FALLBACK_CSV_PATH,
                 geojson_path: Path = FALLBACK_GEOJSON_PATH):
        self.client = client if client is not None else CountryApiClient()
        self.csv_path = Path(csv_path)
        self.geojson_path = Path(geojson_path)

        self._dataset: Optional[Dataset] = None
        self._load_task: Optional[asyncio.Future] = None

    # ── loading ──

    async def load_all(self) -> Dataset:
        if self._dataset is not None:
            return self._dataset

        task = self._load_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._load())
            self._load_task = task

        try:
            # shield: one caller going away must not cancel the shared load
            return await asyncio.shield(task)
        finally:
            if task.done() and self._load_task is task:
                self._load_task = None

    def load_all_sync(self) -> Dataset:
        """Blocking entry point for Streamlit reruns and the batch pipeline."""
        if self._dataset is not None:
            return self._dataset
        return asyncio.run(self.load_all())

    async def _load(self) -> Dataset:
        logger.info(f"Loading data from API {getattr(self.client, 'base_url', '')} ...")
        try:
            geo_raw, country_rows = await asyncio.gather(
                asyncio.to_thread(self.client.fetch_geojson),
                asyncio.to_thread(self.client.fetch_countries),
            )
            dataset = self._build_dataset(geo_raw, country_rows, source="api")
        except Exception as primary_error:
            logger.warning(f"API unavailable ({primary_error}), falling back to local files...")
            try:
                dataset = await self._load_fallback()
            except Exception as fallback_error:
                logger.error(f"Failed to load fallback data: {fallback_error}")
                raise primary_error from fallback_error

        if self._load_task is not asyncio.current_task():
            logger.info("Discarding loaded data: cache was cleared while loading")
            return dataset
        self._dataset = dataset
        logger.info(f"Data loaded from {dataset.source}: {len(dataset.records)} countries, "
                    f"{len(dataset.features)} geographic features")
        return dataset

    async def _load_fallback(self) -> Dataset:
        geo_raw, country_rows = await asyncio.gather(
            asyncio.to_thread(load_geojson, self.geojson_path),
            asyncio.to_thread(load_country_table, self.csv_path),
        )
        return self._build_dataset(geo_raw, country_rows, source="fallback")

    @staticmethod
    def _build_dataset(geo_raw: Any, country_rows: Sequence[Mapping[str, Any]], source: str) -> Dataset:
        records = normalise_country_rows(country_rows)
        if not records:
            raise ValueError(f"No country records in {source} data")

        features = to_geo_features(normalise_feature_collection(geo_raw))
        if not features:
            raise ValueError(f"No geographic features in {source} data")

        return Dataset(records=tuple(records), features=tuple(features), source=source)

    # ── state ──

    @property
    def dataset(self) -> Optional[Dataset]:
        return self._dataset

    @property
    def is_loaded(self) -> bool:
        return self.cache_status().ready

    @property
    def is_loading(self) -> bool:
        return self._load_task is not None and not self._load_task.done()

    def cache_status(self) -> CacheStatus:
        ds = self._dataset
        if ds is None:
            return CacheStatus()
        return CacheStatus(
            country_records=len(ds.records) > 0,
            geometry=len(ds.features) > 0,
            geometry_index=len(ds.features_by_name) > 0,
        )

    def clear_cache(self) -> None:
        self._dataset = None
        self._load_task = None

    # ── derived views ──

    def get_country(self, name: str) -> Optional[CountryRecord]:
        if self._dataset is None:
            return None
        return self._dataset.records_by_name.get(name)

    def get_numeric_values(self, feature: Union[Feature, str]) -> List[float]:
        """All positive, non-NaN values of one indicator, in load order."""
        if self._dataset is None:
            return []
        frame = self._dataset.frame()
        field_name = resolve_field(feature)
        if field_name not in frame.columns:
            return []
        column = frame[field_name]
        return column[_valid_mask(column)].astype(float).tolist()

    def get_valid_data_for_scatter(self, x_var: Union[Feature, str],
                                   y_var: Union[Feature, str]) -> pd.DataFrame:
        """Columns: country, x, y. Rows with a non-positive or NaN coordinate are dropped."""
        if self._dataset is None:
            return pd.DataFrame(columns=["country", "x", "y"])

        df = self._dataset.frame()
        projected = pd.DataFrame({
            "country": df["country"],
            "x": df[resolve_field(x_var)].astype(float),
            "y": df[resolve_field(y_var)].astype(float),
        })
        mask = _valid_mask(projected["x"]) & _valid_mask(projected["y"])
        return projected[mask].reset_index(drop=True)

    def get_valid_data_for_pcp(self, columns: Sequence[Union[Feature, str]]) -> pd.DataFrame:
        """Columns: country + one column per requested feature (display name). All must be valid."""
        labels = [Feature.coerce(c).value if _is_feature_like(c) else str(c) for c in columns]
        if self._dataset is None:
            return pd.DataFrame(columns=["country", *labels])

        df = self._dataset.frame()
        projected = pd.DataFrame({"country": df["country"]})
        mask = pd.Series(True, index=df.index)
        for label, column in zip(labels, columns):
            values = df[resolve_field(column)].astype(float)
            projected[label] = values
            mask &= _valid_mask(values)
        return projected[mask].reset_index(drop=True)

    # ── clustering helper ──

    async def load_clustering_profile(self) -> ClusteringProfile:
        """MSE curve + optimal k from the backend; the fixed fallback curve on any failure."""
        try:
            mse_rows, optimal = await asyncio.gather(
                asyncio.to_thread(self.client.fetch_clustering_mse),
                asyncio.to_thread(self.client.fetch_optimal_k),
            )
        except Exception as e:
            logger.warning(f"Clustering endpoints unavailable ({e}), using fallback MSE curve")
            return FALLBACK_PROFILE

        rows = sorted(
            (r for r in mse_rows if isinstance(r, Mapping)),
            key=lambda r: parse_numeric_value(r.get("k_value")),
        )
        mse_values = tuple(parse_numeric_value(r.get("mse_value")) for r in rows)[:MAX_K]
        if not mse_values:
            logger.warning("Clustering endpoint returned no MSE rows, using fallback curve")
            return FALLBACK_PROFILE

        optimal_k = int(parse_numeric_value(optimal.get("optimalK"))) or FALLBACK_OPTIMAL_K
        return ClusteringProfile(mse_values=mse_values, optimal_k=optimal_k, source="api")

    def load_clustering_profile_sync(self) -> ClusteringProfile:
        return asyncio.run(self.load_clustering_profile())


def _valid_mask(values: pd.Series) -> pd.Series:
    numeric = pd.to_numeric(values, errors="coerce").astype(float)
    return pd.Series(np.isfinite(numeric) & (numeric > 0), index=values.index)


def _is_feature_like(value: Union[Feature, str]) -> bool:
    try:
        Feature.coerce(value)
        return True
    except ValueError:
        return False
