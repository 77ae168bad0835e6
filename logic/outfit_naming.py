"""Deterministic, content-seeded outfit names.

Names are derived from a hash of the outfit's items so the same outfit
always proposes the same first name. Uniqueness is checked against a
caller-supplied set of names already in use, which is never mutated: the
updated set is returned alongside the chosen name.
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass
from typing import AbstractSet, Callable, Dict, FrozenSet, List, Optional, Sequence, TypeVar

from engine_app.config import NamingProbabilities
from models.clothing_item import ClothingItem
from models.color_theory import color_family

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NAME = "Mystery Look"
ROMAN_SUFFIXES = ("II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X")
MAX_NUMERIC_SUFFIX = 99

NAME_TEMPLATES: Dict[str, List[str]] = {
    "casual": [
        "Weekend Vibes", "Chill Mode", "Easy Breeze", "Laid Back", "Sunday Stroll", "Coffee Run",
        "Comfort Zone", "Relax & Roll", "Casual Cool", "Everyday Style", "Simple Chic", "Effortless Look",
    ],
    "work": [
        "Boss Mode", "Power Play", "Office Chic", "Meeting Ready", "Pro Status", "Work Flow",
        "Business Edge", "Sharp Focus", "Executive Style", "Corporate Chic", "Professional Power",
        "Boardroom Ready",
    ],
    "formal": [
        "Elegance", "Refined", "Sophisticated", "Classic Grace", "Timeless", "Polished",
        "Distinguished", "Luxe Appeal", "Formal Finesse", "Evening Elegance", "Black Tie Ready",
        "Gala Glamour",
    ],
    "party": [
        "Night Out", "Party Ready", "Celebration", "Dance Floor", "Show Stopper", "Glamour",
        "Statement", "Sparkle", "Party Perfect", "Night Magic", "Festive Fun", "Club Ready",
    ],
    "sport": [
        "Active Mode", "Workout Ready", "Sporty Edge", "Fitness Focus", "Athletic", "Power Move",
        "Dynamic", "Energy Boost", "Gym Ready", "Sports Star", "Active Lifestyle", "Fitness First",
    ],
    "travel": [
        "Wanderlust", "Journey Ready", "Explorer", "Adventure", "On the Go", "Traveler",
        "Discovery", "Roam Free", "Vacation Vibes", "Travel Style", "Adventure Ready", "Jet Set",
    ],
    "date": [
        "Date Night", "Romance", "Sweet Spot", "Charming", "Flirty", "Enchanting",
        "Dreamy", "Heart Skip", "Love Story", "Romantic Rendezvous", "Sweet Romance", "Date Perfect",
    ],
    "special": [
        "Special Moment", "Occasion", "Memorable", "Milestone", "Celebration", "Unforgettable",
        "Unique", "Distinctive", "Once in a Lifetime", "Grand Occasion", "Special Event",
        "Milestone Magic",
    ],
}

SEASON_MODIFIERS: Dict[str, List[str]] = {
    "spring": ["Fresh", "Bloom", "Renewal", "Garden", "Awakening", "Breezy", "Flourishing", "Vibrant"],
    "summer": ["Sunny", "Bright", "Tropical", "Radiant", "Golden", "Vibrant", "Warm", "Luminous"],
    "fall": ["Cozy", "Warm", "Autumn", "Rustic", "Harvest", "Earthy", "Crisp", "Rich"],
    "winter": ["Crisp", "Cool", "Frost", "Snow", "Arctic", "Ice", "Chilly", "Frosty"],
}

COLOR_ADJECTIVES: Dict[str, List[str]] = {
    "black": ["Midnight", "Shadow", "Obsidian", "Onyx", "Noir", "Eclipse", "Charcoal", "Raven"],
    "white": ["Pure", "Snow", "Pearl", "Cloud", "Ivory", "Crystal", "Pristine", "Angelic"],
    "gray": ["Storm", "Steel", "Ash", "Slate", "Fog", "Stone", "Silver", "Misty"],
    "red": ["Fire", "Cherry", "Crimson", "Rose", "Ruby", "Flame", "Scarlet", "Burgundy"],
    "blue": ["Ocean", "Sky", "Sapphire", "Navy", "Azure", "Denim", "Cobalt", "Royal"],
    "green": ["Forest", "Emerald", "Mint", "Sage", "Olive", "Jade", "Moss", "Pine"],
    "yellow": ["Sunshine", "Gold", "Lemon", "Honey", "Amber", "Citrus", "Butter", "Canary"],
    "orange": ["Sunset", "Tangerine", "Copper", "Coral", "Peach", "Flame", "Papaya", "Ginger"],
    "pink": ["Blush", "Rose", "Petal", "Soft", "Candy", "Ballet", "Blossom", "Rosy"],
    "purple": ["Lavender", "Plum", "Violet", "Amethyst", "Mauve", "Grape", "Orchid", "Lilac"],
    "brown": ["Chocolate", "Caramel", "Coffee", "Mocha", "Toffee", "Espresso", "Cocoa", "Mahogany"],
}

STYLE_DESCRIPTORS = [
    "Chic", "Sleek", "Modern", "Classic", "Edgy", "Soft", "Bold", "Minimal",
    "Statement", "Effortless", "Polished", "Trendy", "Sophisticated", "Playful", "Elegant", "Sharp",
]

STYLED_MODIFIERS: Dict[str, List[str]] = {
    "modern": ["Sleek", "Contemporary", "Fresh", "Current"],
    "classic": ["Timeless", "Traditional", "Elegant", "Refined"],
    "edgy": ["Bold", "Fierce", "Statement", "Dramatic"],
    "minimal": ["Clean", "Simple", "Pure", "Essential"],
    "bold": ["Striking", "Vibrant", "Dynamic", "Powerful"],
}
STYLED_MODIFIER_PROBABILITY = 0.5


@dataclass(frozen=True)
class NamingResult:
    name: str
    used_names: FrozenSet[str]


def hash_string(value: str) -> int:
    """Polynomial string hash wrapped to signed 32 bits, returned as its absolute value."""

    result = 0
    for char in value:
        result = (result << 5) - result + ord(char)
        result = (result + 2**31) % 2**32 - 2**31
    return abs(result)


def seeded_random(seed: int) -> float:
    """Deterministic float in [0, 1) from an integer seed."""

    x = math.sin(seed) * 10000
    return x - math.floor(x)


def seeded_choice(options: Sequence[T], seed: int) -> T:
    return options[int(seeded_random(seed) * len(options))]


def _most_frequent(values: Sequence[str]) -> Optional[str]:
    """Most frequent value; on a tie the value seen later wins."""

    if not values:
        return None
    counts = Counter(values)
    best = None
    for value in counts:
        if best is None or counts[value] >= counts[best]:
            best = value
    return best


def outfit_signature(items: Sequence[ClothingItem]) -> str:
    return "|".join(sorted(f"{item.item_id}-{item.category.value}-{item.color}" for item in items))


def ensure_unique_name(
    base_name: str, used_names: AbstractSet[str], clock: Callable[[], float] = time.time
) -> str:
    """Return ``base_name`` or the first free suffixed variant of it."""

    if base_name not in used_names:
        return base_name
    for numeral in ROMAN_SUFFIXES:
        candidate = f"{base_name} {numeral}"
        if candidate not in used_names:
            return candidate
    for counter in range(2, MAX_NUMERIC_SUFFIX + 1):
        candidate = f"{base_name} {counter}"
        if candidate not in used_names:
            return candidate
    stamp = int(clock() * 1000) % 10000
    while f"{base_name} {stamp}" in used_names:
        stamp += 1
    fallback = f"{base_name} {stamp}"
    logger.warning("Exhausted name suffixes for %r, using %r", base_name, fallback)
    return fallback


def compose_name(items: Sequence[ClothingItem], probabilities: Optional[NamingProbabilities] = None) -> str:
    """Pick the deterministic candidate name for an outfit before uniqueness checks."""

    if not items:
        return DEFAULT_NAME
    odds = probabilities or NamingProbabilities()
    base_seed = hash_string(outfit_signature(items))

    primary_occasion = _most_frequent([occasion.value for item in items for occasion in item.occasions])
    primary_season = _most_frequent([season.value for item in items for season in item.seasons])
    dominant_color = _most_frequent([item.color for item in items if item.color])

    base_name = seeded_choice(NAME_TEMPLATES.get(primary_occasion or "casual", NAME_TEMPLATES["casual"]), base_seed)

    modifier_seed = base_seed + 1
    color_seed = base_seed + 2
    style_seed = base_seed + 3
    order_seed = base_seed + 4

    modifier = ""
    if primary_season and seeded_random(modifier_seed) < odds.season_modifier:
        modifier = seeded_choice(SEASON_MODIFIERS[primary_season], modifier_seed)
    if not modifier and dominant_color and seeded_random(color_seed) < odds.color_modifier:
        adjectives = COLOR_ADJECTIVES.get(color_family(dominant_color))
        if adjectives:
            modifier = seeded_choice(adjectives, color_seed)
    if not modifier and seeded_random(style_seed) < odds.style_modifier:
        modifier = seeded_choice(STYLE_DESCRIPTORS, style_seed)

    if modifier and seeded_random(order_seed) < odds.keep_modifier:
        if seeded_random(order_seed + 1) < odds.modifier_first:
            return f"{modifier} {base_name}"
        return f"{base_name} {modifier}"
    return base_name


def generate_outfit_name(
    items: Sequence[ClothingItem],
    used_names: AbstractSet[str] = frozenset(),
    probabilities: Optional[NamingProbabilities] = None,
    clock: Callable[[], float] = time.time,
) -> NamingResult:
    """Name an outfit, avoiding every name in ``used_names``."""

    name = ensure_unique_name(compose_name(items, probabilities), used_names, clock)
    return NamingResult(name=name, used_names=frozenset(used_names) | {name})


def generate_styled_outfit_name(
    items: Sequence[ClothingItem],
    style: str = "modern",
    used_names: AbstractSet[str] = frozenset(),
    probabilities: Optional[NamingProbabilities] = None,
    clock: Callable[[], float] = time.time,
) -> NamingResult:
    """Like :func:`generate_outfit_name`, sometimes prefixed with a style word."""

    if style not in STYLED_MODIFIERS:
        raise ValueError(f"Unsupported naming style '{style}'. Allowed: {sorted(STYLED_MODIFIERS)}")
    base = generate_outfit_name(items, used_names, probabilities, clock)
    signature = "|".join(sorted(f"{item.item_id}-{item.category.value}" for item in items))
    seed = hash_string(signature + style)
    if seeded_random(seed) >= STYLED_MODIFIER_PROBABILITY:
        return base
    styled = ensure_unique_name(f"{seeded_choice(STYLED_MODIFIERS[style], seed)} {base.name}", used_names, clock)
    return NamingResult(name=styled, used_names=frozenset(used_names) | {styled})


__all__ = [
    "NamingResult",
    "hash_string",
    "seeded_random",
    "seeded_choice",
    "outfit_signature",
    "ensure_unique_name",
    "compose_name",
    "generate_outfit_name",
    "generate_styled_outfit_name",
]
