"""
models.py
---------
Core record types shared by the repository, the store and the renderers.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union


class Feature(str, Enum):
    """Selectable indicator; the value is the display name used in the UI."""

    GDP = "GDP"
    POPULATION = "Population"
    LIFE_EXPECTANCY = "Life expectancy"
    CO2_EMISSIONS = "Co2-Emissions"

    @property
    def field(self) -> str:
        return FIELD_MAP[self.value]

    @property
    def is_linear(self) -> bool:
        # every other indicator spans several orders of magnitude
        return self is Feature.LIFE_EXPECTANCY

    @classmethod
    def coerce(cls, value: Union["Feature", str]) -> "Feature":
        """Accept an enum member, a display name or an internal/API field name."""
        if isinstance(value, cls):
            return value
        if value in FIELD_TO_FEATURE:
            return cls(FIELD_TO_FEATURE[value])
        return cls(value)


# display name -> internal (API snake_case) field
FIELD_MAP: Dict[str, str] = {
    "Co2-Emissions": "co2_emissions",
    "GDP": "gdp",
    "Population": "population",
    "Life expectancy": "life_expectancy",
}
FIELD_TO_FEATURE: Dict[str, str] = {v: k for k, v in FIELD_MAP.items()}

NUMERIC_FIELDS = ("co2_emissions", "gdp", "population", "life_expectancy")

# fixed PCP axis order
PCP_COLUMNS = (
    Feature.CO2_EMISSIONS,
    Feature.GDP,
    Feature.POPULATION,
    Feature.LIFE_EXPECTANCY,
)


def resolve_field(feature: Union[Feature, str]) -> str:
    """Map a request feature name to its internal field, passing unknown names through."""
    if isinstance(feature, Feature):
        return feature.field
    return FIELD_MAP.get(feature, feature)


def is_valid_value(value: Optional[float]) -> bool:
    """Positivity rule shared by every log-scale-safe filter."""
    if value is None:
        return False
    try:
        value = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and value > 0


@dataclass(frozen=True)
class CountryRecord:
    name: str
    co2_emissions: float = 0.0
    gdp: float = 0.0
    population: float = 0.0
    life_expectancy: float = 0.0

    def value(self, feature: Union[Feature, str]) -> float:
        return getattr(self, resolve_field(feature))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country": self.name,
            "co2_emissions": self.co2_emissions,
            "gdp": self.gdp,
            "population": self.population,
            "life_expectancy": self.life_expectancy,
        }


@dataclass(frozen=True)
class GeoFeature:
    name: Optional[str]
    geometry: Mapping[str, Any]
    properties: Mapping[str, Any] = field(default_factory=dict)
