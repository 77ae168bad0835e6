"""Generation inputs and scored outfit candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from models.clothing_item import ClothingItem
from models.taxonomy import (
    ClothingCategory,
    Occasion,
    SEASON_ALIASES,
    Season,
    normalize_color,
)

WEATHER_CONDITIONS = ("clear", "cloudy", "rainy", "snowy", "windy")


def season_for_temperature(temperature: float) -> Season:
    """Map a temperature in Celsius to the season band it implies."""

    if temperature < 10:
        return Season.WINTER
    if temperature < 18:
        return Season.FALL
    if temperature < 24:
        return Season.SPRING
    return Season.SUMMER


@dataclass
class WeatherData:
    """Current conditions used to bias weather suitability.

    ``precipitation`` and ``humidity`` are fractions in [0, 1] and
    ``wind_speed`` is in km/h.
    """

    temperature: float
    condition: str = "clear"
    precipitation: float = 0.0
    humidity: float = 0.5
    wind_speed: float = 0.0

    def __post_init__(self) -> None:
        self.temperature = float(self.temperature)
        self.condition = (self.condition or "clear").strip().lower()
        self.precipitation = min(1.0, max(0.0, float(self.precipitation or 0.0)))
        self.humidity = min(1.0, max(0.0, float(self.humidity or 0.0)))
        self.wind_speed = max(0.0, float(self.wind_speed or 0.0))

    @property
    def implied_season(self) -> Season:
        return season_for_temperature(self.temperature)


class StylePreference(BaseModel):
    """Desired formality and boldness, each on a 0..1 scale."""

    formality: float = Field(default=0.5, ge=0.0, le=1.0)
    boldness: float = Field(default=0.5, ge=0.0, le=1.0)


class GenerationOptions(BaseModel):
    """Options for one recommendation pass."""

    max_results: int = Field(default=15, ge=1)
    min_score: float = Field(default=0.0, ge=0.0, le=1.0)
    season: Optional[Season] = None
    occasion: Optional[Occasion] = None
    weather: Optional[WeatherData] = None
    use_all_items: bool = False
    excluded_items: List[str] = Field(default_factory=list)
    force_include_items: List[str] = Field(default_factory=list)
    preferred_colors: List[str] = Field(default_factory=list)
    style_preference: Optional[StylePreference] = None

    @field_validator("season", mode="before")
    @classmethod
    def _normalise_season(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return SEASON_ALIASES.get(key, key)
        return value

    @field_validator("occasion", mode="before")
    @classmethod
    def _normalise_occasion(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("preferred_colors")
    @classmethod
    def _normalise_colors(cls, values: List[str]) -> List[str]:
        return [normalize_color(value) for value in values if normalize_color(value)]

    def target_season(self) -> Optional[Season]:
        """Explicit season first, then the season implied by the weather."""

        if self.season is not None:
            return self.season
        if self.weather is not None:
            return self.weather.implied_season
        return None


SCORE_FIELDS = (
    "color_harmony",
    "style_matching",
    "occasion_suitability",
    "season_suitability",
    "weather_suitability",
    "user_preference",
    "variety",
)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, float(value)))


@dataclass(frozen=True)
class ScoreBreakdown:
    color_harmony: float
    style_matching: float
    occasion_suitability: float
    season_suitability: float
    weather_suitability: float
    user_preference: float
    variety: float
    total: float

    @classmethod
    def combine(cls, components: Mapping[str, float], weights: Mapping[str, float]) -> "ScoreBreakdown":
        """Clamp every component to [0, 1] and apply the weighted sum."""

        clamped = {name: _clamp(components.get(name, 0.0)) for name in SCORE_FIELDS}
        total = sum(clamped[name] * weights.get(name, 0.0) for name in SCORE_FIELDS)
        return cls(total=_clamp(total), **clamped)

    def as_dict(self) -> Dict[str, float]:
        payload = {name: getattr(self, name) for name in SCORE_FIELDS}
        payload["total"] = self.total
        return payload


@dataclass
class GeneratedOutfit:
    """An unsaved, scored combination of items."""

    items: List[ClothingItem]
    score: ScoreBreakdown
    harmony: Optional[str] = None
    reasoning: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        ids = [item.item_id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Outfit contains duplicate items: {ids}")

    @property
    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.items]

    @property
    def key(self) -> Tuple[str, ...]:
        """Order-independent identity used for duplicate checks."""

        return tuple(sorted(self.item_ids))

    @property
    def categories(self) -> List[ClothingCategory]:
        return [item.category for item in self.items]

    @property
    def freshness(self) -> float:
        """Creation timestamp of the most recently added item."""

        return max((item.created_timestamp for item in self.items), default=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "score": self.score.as_dict(),
            "harmony": self.harmony,
            "reasoning": list(self.reasoning),
        }


__all__ = [
    "WEATHER_CONDITIONS",
    "season_for_temperature",
    "WeatherData",
    "StylePreference",
    "GenerationOptions",
    "SCORE_FIELDS",
    "ScoreBreakdown",
    "GeneratedOutfit",
]
