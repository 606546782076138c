"""
normalize.py
------------
Field normalization for country tables and map geometry.

Both data sources (REST API and the bundled static files) go through the same
functions here so the repository only ever sees one record shape:

  raw row (snake_case API or display-name CSV) → CountryRecord
  FeatureCollection | bare feature array       → FeatureCollection dict → GeoFeature
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from processing.models import FIELD_MAP, NUMERIC_FIELDS, CountryRecord, GeoFeature

logger = logging.getLogger(__name__)

COUNTRY_NAME_KEYS = ("country", "Country", "NAME")
FEATURE_NAME_KEYS = ("NAME", "Country", "name")

_STRIP_CHARS = re.compile(r"[,$%]")
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


# ── NUMBERS ───────────────────────────────────────────────────────────────────

def parse_numeric_value(value: Any) -> float:
    """
    Turn a raw cell into a float.

    None / empty / unparseable → 0.0. Strings lose thousands separators, `$` and
    `%` and are read up to the first non-numeric character ("12.5 years" → 12.5).
    Numbers pass through unchanged, NaN included.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)

    try:
        # numpy scalars, Decimal, ...
        if not isinstance(value, str):
            return float(value)
    except (TypeError, ValueError):
        return 0.0

    cleaned = _STRIP_CHARS.sub("", value)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    parsed = float(match.group(0))
    return parsed if parsed else 0.0


def _first_present(row: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        candidate = row.get(key)
        if candidate not in (None, ""):
            return candidate
    return None


# ── COUNTRY TABLE ─────────────────────────────────────────────────────────────

def normalise_country_row(row: Mapping[str, Any]) -> Optional[CountryRecord]:
    """
    Build a CountryRecord from an API row or a CSV row.

    The API uses snake_case (`co2_emissions`), the CSV uses display names
    (`Co2-Emissions`); whichever is present wins, API name first.
    """
    name = _first_present(row, COUNTRY_NAME_KEYS)
    if name is None:
        return None

    values = {}
    for display_name, field_name in FIELD_MAP.items():
        raw = _first_present(row, (field_name, display_name))
        values[field_name] = parse_numeric_value(raw)

    return CountryRecord(name=str(name).strip(), **values)


def normalise_country_rows(rows: Iterable[Mapping[str, Any]]) -> List[CountryRecord]:
    """Normalise all rows, keyed by country name; a repeated name replaces the earlier one in place."""
    records: Dict[str, CountryRecord] = {}
    skipped = 0
    for row in rows:
        record = normalise_country_row(row)
        if record is None:
            skipped += 1
            continue
        records[record.name] = record

    if skipped:
        logger.warning(f"Skipped {skipped} rows without a country name")
    return list(records.values())


def records_to_frame(records: Sequence[CountryRecord]) -> pd.DataFrame:
    """One row per record, load order preserved."""
    return pd.DataFrame(
        [r.to_dict() for r in records],
        columns=["country", *NUMERIC_FIELDS],
    )


# ── GEOMETRY ──────────────────────────────────────────────────────────────────

def normalise_feature_collection(data: Union[Mapping[str, Any], List[Any], None]) -> Dict[str, Any]:
    """Accept a FeatureCollection, a bare feature array or a single Feature."""
    if isinstance(data, list):
        return {"type": "FeatureCollection", "features": list(data)}

    if isinstance(data, Mapping):
        if "features" in data:
            return {
                "type": data.get("type") or "FeatureCollection",
                "features": list(data.get("features") or []),
            }
        if data.get("type") == "Feature":
            return {"type": "FeatureCollection", "features": [dict(data)]}

    raise ValueError(f"Unrecognised geometry payload: {type(data).__name__}")


def feature_name(properties: Optional[Mapping[str, Any]]) -> Optional[str]:
    name = _first_present(properties or {}, FEATURE_NAME_KEYS)
    return str(name) if name is not None else None


def to_geo_features(collection: Mapping[str, Any]) -> List[GeoFeature]:
    features = []
    for raw in collection.get("features", []):
        if not isinstance(raw, Mapping):
            continue
        properties = raw.get("properties") or {}
        features.append(GeoFeature(
            name=feature_name(properties),
            geometry=raw.get("geometry") or {},
            properties=dict(properties),
        ))
    return features
