"""Deterministic scoring for candidate outfits."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field, replace
from itertools import combinations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from engine_app.config import DEFAULT_SCORE_WEIGHTS
from models.clothing_item import ClothingItem
from models.color_theory import (
    ColorHarmony,
    are_colors_close,
    color_distance,
    determine_color_harmony,
    hex_to_hsl,
)
from models.generation import (
    GeneratedOutfit,
    GenerationOptions,
    ScoreBreakdown,
    StylePreference,
    WeatherData,
)
from models.taxonomy import ClothingCategory, Occasion, STYLE_TAGS, Season

NEUTRAL_SCORE = 1.0
SECONDS_PER_DAY = 24 * 60 * 60
VARIETY_SIMILARITY_THRESHOLD = 0.8
MAX_RECENCY_PENALTY = 0.5

HARMONY_SCORES = {
    ColorHarmony.MONOCHROMATIC: 0.95,
    ColorHarmony.ANALOGOUS: 0.9,
    ColorHarmony.COMPLEMENTARY: 0.85,
    ColorHarmony.TRIADIC: 0.8,
    ColorHarmony.NEUTRAL: 0.75,
}

# Baseline (formality, boldness) per category before occasion and tag adjustments.
CATEGORY_STYLE_VALUES: Dict[ClothingCategory, Tuple[float, float]] = {
    ClothingCategory.TOPS: (0.5, 0.5),
    ClothingCategory.BOTTOMS: (0.5, 0.4),
    ClothingCategory.DRESSES: (0.7, 0.6),
    ClothingCategory.OUTERWEAR: (0.6, 0.5),
    ClothingCategory.SHOES: (0.5, 0.4),
    ClothingCategory.ACCESSORIES: (0.5, 0.7),
    ClothingCategory.JEWELRY: (0.6, 0.8),
    ClothingCategory.BAGS: (0.5, 0.5),
    ClothingCategory.BELTS: (0.5, 0.5),
    ClothingCategory.HATS: (0.4, 0.7),
    ClothingCategory.SCARVES: (0.6, 0.6),
    ClothingCategory.UNDERWEAR: (0.3, 0.5),
    ClothingCategory.ACTIVEWEAR: (0.2, 0.6),
    ClothingCategory.SLEEPWEAR: (0.1, 0.4),
    ClothingCategory.SWIMWEAR: (0.3, 0.7),
}
OCCASION_FORMALITY = {
    Occasion.FORMAL: 0.3,
    Occasion.WORK: 0.2,
    Occasion.CASUAL: -0.2,
    Occasion.SPORT: -0.3,
}
BOLD_TAGS = ("bright", "pattern", "print", "colorful", "vibrant")
CONSERVATIVE_TAGS = ("plain", "simple", "basic", "classic")
WATERPROOF_TAGS = ("waterproof", "water-resistant", "rain")
WINDPROOF_TAGS = ("windproof", "wind-resistant")
LONG_SLEEVE_TAGS = ("long sleeve", "long-sleeve")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _has_tag(item: ClothingItem, fragments: Iterable[str]) -> bool:
    return any(fragment in tag for tag in item.tags for fragment in fragments)


def outfit_key(items: Sequence[ClothingItem]) -> Tuple[str, ...]:
    return tuple(sorted(item.item_id for item in items))


def key_similarity(first: Sequence[str], second: Sequence[str]) -> float:
    """Jaccard similarity of two item-id keys."""

    left, right = set(first), set(second)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


@dataclass
class GenerationHistory:
    """Recently generated outfit keys with the time they were produced.

    Owned by the orchestrator and handed to the scorer so variety scoring
    has no hidden state.
    """

    expiry_days: float = 7.0
    entries: Dict[Tuple[str, ...], float] = field(default_factory=dict)

    def record(self, keys: Iterable[Tuple[str, ...]], at: float) -> None:
        for key in keys:
            self.entries[tuple(key)] = at

    def prune(self, now: float) -> int:
        """Drop entries older than the expiry window, returning how many went."""

        cutoff = now - self.expiry_days * SECONDS_PER_DAY
        stale = [key for key, generated_at in self.entries.items() if generated_at < cutoff]
        for key in stale:
            del self.entries[key]
        return len(stale)

    def last_generated(self, key: Tuple[str, ...]) -> Optional[float]:
        return self.entries.get(tuple(key))

    def clear(self) -> None:
        self.entries.clear()


@dataclass(frozen=True)
class ScoringContext:
    options: GenerationOptions = field(default_factory=GenerationOptions)
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_SCORE_WEIGHTS))
    history: Optional[GenerationHistory] = None
    now: float = field(default_factory=time.time)


def color_harmony_score(items: Sequence[ClothingItem]) -> Tuple[float, ColorHarmony]:
    """Score the palette, returning the harmony it was classified as."""

    if len(items) <= 1:
        return 1.0, ColorHarmony.MONOCHROMATIC
    palette = [hex_to_hsl(item.color) for item in items]
    harmony = determine_color_harmony(palette)
    if harmony in HARMONY_SCORES:
        return HARMONY_SCORES[harmony], harmony

    distances = [color_distance(first, second) for first, second in combinations(palette, 2)]
    average = sum(distances) / len(distances)
    # Moderate contrast peaks at half of the normalised distance range.
    normalised = min(1.0, average / 150)
    return _clamp(1 - abs(normalised - 0.5) * 2), harmony


def estimate_item_style(item: ClothingItem) -> Tuple[float, float]:
    """Estimate (formality, boldness) for one item."""

    formality, boldness = CATEGORY_STYLE_VALUES.get(item.category, (0.5, 0.5))
    for occasion in item.occasions:
        formality += OCCASION_FORMALITY.get(occasion, 0.0)
    for tag in item.tags:
        if any(fragment in tag for fragment in BOLD_TAGS):
            boldness += 0.1
        if any(fragment in tag for fragment in CONSERVATIVE_TAGS):
            boldness -= 0.1
    return _clamp(formality), _clamp(boldness)


def _preference_distance_score(items: Sequence[ClothingItem], preference: StylePreference) -> float:
    estimates = [estimate_item_style(item) for item in items]
    formality = sum(value for value, _ in estimates) / len(estimates)
    boldness = sum(value for _, value in estimates) / len(estimates)
    return _clamp(((1 - abs(formality - preference.formality)) + (1 - abs(boldness - preference.boldness))) / 2)


def style_matching_score(
    items: Sequence[ClothingItem], style_preference: Optional[StylePreference] = None
) -> float:
    """Share of style-tagged items carrying the outfit's dominant style tag."""

    if not items:
        return 0.0
    tagged = [[tag for tag in item.tags if tag in STYLE_TAGS] for item in items]
    tagged = [tags for tags in tagged if tags]
    if len(tagged) < 2:
        tag_score = NEUTRAL_SCORE
    else:
        counts = Counter(tag for tags in tagged for tag in set(tags))
        tag_score = counts.most_common(1)[0][1] / len(tagged)

    if style_preference is None:
        return _clamp(tag_score)
    return _clamp((tag_score + _preference_distance_score(items, style_preference)) / 2)


def _majority_fraction(items: Sequence[ClothingItem], attribute: str, target: object) -> float:
    if not items:
        return 0.0
    if target is not None:
        return sum(1 for item in items if target in getattr(item, attribute)) / len(items)
    counts = Counter(value for item in items for value in getattr(item, attribute))
    if not counts:
        return NEUTRAL_SCORE
    majority, _ = counts.most_common(1)[0]
    return sum(1 for item in items if majority in getattr(item, attribute)) / len(items)


def occasion_suitability_score(items: Sequence[ClothingItem], occasion: Optional[Occasion] = None) -> float:
    return _clamp(_majority_fraction(items, "occasions", occasion))


def season_suitability_score(items: Sequence[ClothingItem], season: Optional[Season] = None) -> float:
    return _clamp(_majority_fraction(items, "seasons", season))


def layering_score(items: Sequence[ClothingItem], weather: WeatherData) -> float:
    """Temperature layering, precipitation and wind protection."""

    has_outerwear = any(item.category == ClothingCategory.OUTERWEAR for item in items)
    has_long_sleeves = any(_has_tag(item, LONG_SLEEVE_TAGS) for item in items)

    temperature = weather.temperature
    if temperature < 10:
        temperature_score = 1.0 if has_outerwear else 0.3
    elif temperature < 18:
        temperature_score = 1.0 if has_outerwear or has_long_sleeves else 0.6
    elif temperature < 24:
        temperature_score = 1.0
    elif temperature < 30:
        temperature_score = 0.5 if has_outerwear else 1.0
    else:
        temperature_score = 0.2 if has_outerwear else 0.6 if has_long_sleeves else 1.0

    precipitation_score = 1.0
    if weather.precipitation > 0.5 or weather.condition in {"rainy", "snowy"}:
        protected = any(_has_tag(item, WATERPROOF_TAGS) for item in items)
        precipitation_score = 1.0 if protected else 0.5

    wind_score = 1.0
    if weather.wind_speed > 20 or weather.condition == "windy":
        protected = any(
            _has_tag(item, WINDPROOF_TAGS) or item.category == ClothingCategory.OUTERWEAR for item in items
        )
        wind_score = 1.0 if protected else 0.7

    return _clamp(temperature_score * 0.6 + precipitation_score * 0.3 + wind_score * 0.1)


def weather_suitability_score(items: Sequence[ClothingItem], weather: Optional[WeatherData] = None) -> float:
    """Blend season-band consistency with layering; neutral without weather."""

    if weather is None:
        return NEUTRAL_SCORE
    band = weather.implied_season
    seasonal = [item for item in items if item.seasons]
    if seasonal:
        band_score = sum(1 for item in seasonal if band in item.seasons) / len(seasonal)
    else:
        band_score = NEUTRAL_SCORE
    return _clamp(0.5 * band_score + 0.5 * layering_score(items, weather))


def user_preference_score(items: Sequence[ClothingItem], preferred_colors: Sequence[str] = ()) -> float:
    """Favorites and wear history, blended with preferred colors when given."""

    if not items:
        return 0.0
    affinity = sum(
        0.25 + (0.35 if item.is_favorite else 0.0) + 0.4 * min(1.0, item.times_worn / 10) for item in items
    ) / len(items)
    if not preferred_colors:
        return _clamp(affinity)
    matching = sum(
        1
        for item in items
        if any(item.color == color or are_colors_close(item.color, color) for color in preferred_colors)
    )
    return _clamp((affinity + matching / len(items)) / 2)


def variety_score(
    items: Sequence[ClothingItem], history: Optional[GenerationHistory], now: float
) -> float:
    """Penalise combinations that closely repeat recent suggestions."""

    if history is None or not history.entries:
        return 1.0
    key = outfit_key(items)
    score = 1.0
    for previous, generated_at in history.entries.items():
        similarity = key_similarity(key, previous)
        if similarity <= VARIETY_SIMILARITY_THRESHOLD:
            continue
        days = max(0.0, (now - generated_at) / SECONDS_PER_DAY)
        decay = max(0.0, 1 - days / history.expiry_days)
        score = min(score, 1 - similarity * decay)
    return _clamp(score)


def _recency_penalty(items: Sequence[ClothingItem], history: Optional[GenerationHistory], now: float) -> float:
    if history is None:
        return 0.0
    generated_at = history.last_generated(outfit_key(items))
    if generated_at is None:
        return 0.0
    days = max(0.0, (now - generated_at) / SECONDS_PER_DAY)
    return max(0.0, MAX_RECENCY_PENALTY * (1 - days / history.expiry_days))


def score_outfit(items: Sequence[ClothingItem], context: ScoringContext) -> ScoreBreakdown:
    """Compute the seven components and their weighted total.

    An exact repeat of a recent suggestion has its total reduced on top of
    the variety component.
    """

    options = context.options
    harmony, _ = color_harmony_score(items)
    components = {
        "color_harmony": harmony,
        "style_matching": style_matching_score(items, options.style_preference),
        "occasion_suitability": occasion_suitability_score(items, options.occasion),
        "season_suitability": season_suitability_score(items, options.target_season()),
        "weather_suitability": weather_suitability_score(items, options.weather),
        "user_preference": user_preference_score(items, options.preferred_colors),
        "variety": variety_score(items, context.history, context.now),
    }
    breakdown = ScoreBreakdown.combine(components, context.weights)
    penalty = _recency_penalty(items, context.history, context.now)
    if penalty:
        breakdown = replace(breakdown, total=_clamp(breakdown.total * (1 - penalty)))
    return breakdown


def evaluate_outfit(items: Sequence[ClothingItem], context: ScoringContext) -> GeneratedOutfit:
    """Score a candidate and wrap it with its harmony label and reasoning."""

    score = score_outfit(items, context)
    _, harmony = color_harmony_score(items)
    reasoning = [f"{harmony.value} palette ({score.color_harmony:.2f})"]
    if context.options.occasion is not None:
        reasoning.append(f"{context.options.occasion.value} fit {score.occasion_suitability:.2f}")
    if context.options.weather is not None:
        reasoning.append(f"weather fit {score.weather_suitability:.2f}")
    if score.variety < 1.0:
        reasoning.append(f"recently suggested (variety {score.variety:.2f})")
    return GeneratedOutfit(items=list(items), score=score, harmony=harmony.value, reasoning=reasoning)


def rank_outfits(outfits: Iterable[GeneratedOutfit]) -> List[GeneratedOutfit]:
    """Total descending, then freshest item, then original order."""

    return sorted(outfits, key=lambda outfit: (-outfit.score.total, -outfit.freshness))


__all__ = [
    "NEUTRAL_SCORE",
    "GenerationHistory",
    "ScoringContext",
    "outfit_key",
    "key_similarity",
    "color_harmony_score",
    "estimate_item_style",
    "style_matching_score",
    "occasion_suitability_score",
    "season_suitability_score",
    "layering_score",
    "weather_suitability_score",
    "user_preference_score",
    "variety_score",
    "score_outfit",
    "evaluate_outfit",
    "rank_outfits",
]
