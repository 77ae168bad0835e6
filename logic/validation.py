"""Pydantic schemas and helpers for validating engine requests."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.generation import GenerationOptions
from models.taxonomy import Occasion, SEASON_ALIASES, Season


class WeatherPayload(BaseModel):
    """Weather as supplied by a UI layer or provider."""

    temperature: float = Field(ge=-60, le=60)
    condition: str = "clear"
    precipitation: float = Field(default=0.0, ge=0.0, le=1.0)
    humidity: float = Field(default=0.5, ge=0.0, le=1.0)
    wind_speed: float = Field(default=0.0, ge=0.0)


class StylePreferencePayload(BaseModel):
    formality: float = Field(default=0.5, ge=0.0, le=1.0)
    boldness: float = Field(default=0.5, ge=0.0, le=1.0)


class RecommendationRequest(BaseModel):
    """Loose recommendation options; omitted fields keep the engine defaults."""

    occasion: Optional[Occasion] = None
    season: Optional[Season] = None
    weather: Optional[WeatherPayload] = None
    max_results: Optional[int] = Field(default=None, ge=1, le=200)
    min_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    use_all_items: Optional[bool] = None
    excluded_items: List[str] = Field(default_factory=list)
    force_include_items: List[str] = Field(default_factory=list)
    preferred_colors: List[str] = Field(default_factory=list)
    style_preference: Optional[StylePreferencePayload] = None

    @field_validator("season", mode="before")
    @classmethod
    def _season_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return SEASON_ALIASES.get(key, key)
        return value

    @field_validator("occasion", mode="before")
    @classmethod
    def _lower_occasion(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    def to_options(self) -> GenerationOptions:
        """Build options that only mark supplied fields as explicitly set."""

        payload = self.model_dump(exclude_none=True)
        for key in ("excluded_items", "force_include_items", "preferred_colors"):
            if not payload.get(key):
                payload.pop(key, None)
        return GenerationOptions(**payload)


class SaveOutfitRequest(BaseModel):
    """Name supplied when saving the current suggestion."""

    name: Optional[str] = Field(default=None, max_length=80)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        stripped = value.strip()
        return stripped or None


class ValidationResult(BaseModel):
    """Wrapper returned to callers when validation fails."""

    status: Literal["needs_review"] = "needs_review"
    message: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a consistent review payload."""

    return ValidationResult(message=message, details=exc.errors(include_url=False)).model_dump()


__all__ = [
    "WeatherPayload",
    "StylePreferencePayload",
    "RecommendationRequest",
    "SaveOutfitRequest",
    "ValidationResult",
    "validation_failure",
]
