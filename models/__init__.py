"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.clothing_item import ClothingItem, from_raw_metadata, parse_raw_metadata
from models.generation import GeneratedOutfit, GenerationOptions, ScoreBreakdown, WeatherData
from models.outfit import Outfit, SimilarityResult
from models.parse_result import ParseResult, ParseStatus

__all__ = [
    "ClothingItem",
    "from_raw_metadata",
    "parse_raw_metadata",
    "GeneratedOutfit",
    "GenerationOptions",
    "ScoreBreakdown",
    "WeatherData",
    "Outfit",
    "SimilarityResult",
    "ParseResult",
    "ParseStatus",
]
