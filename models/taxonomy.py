"""Canonical taxonomy definitions for clothing items.

This module centralises the canonical labels for categories, seasons,
occasions and commonly used style tags. Helper functions keep validation
logic consistent across the generator, scorer, namer and storage layers.
"""

from enum import Enum
from typing import Dict, Iterable, List, Type, TypeVar

E = TypeVar("E", bound=Enum)


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_").replace("-", "_")


class ClothingCategory(str, Enum):
    TOPS = "tops"
    BOTTOMS = "bottoms"
    DRESSES = "dresses"
    OUTERWEAR = "outerwear"
    SHOES = "shoes"
    ACCESSORIES = "accessories"
    JEWELRY = "jewelry"
    BAGS = "bags"
    BELTS = "belts"
    HATS = "hats"
    SCARVES = "scarves"
    UNDERWEAR = "underwear"
    ACTIVEWEAR = "activewear"
    SLEEPWEAR = "sleepwear"
    SWIMWEAR = "swimwear"


class Season(str, Enum):
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"
    WINTER = "winter"


class Occasion(str, Enum):
    CASUAL = "casual"
    WORK = "work"
    FORMAL = "formal"
    PARTY = "party"
    SPORT = "sport"
    TRAVEL = "travel"
    DATE = "date"
    SPECIAL = "special"


# Garments that can anchor an outfit on their own or as a top + bottom pair.
TOP_LEVEL_CATEGORIES = (ClothingCategory.TOPS, ClothingCategory.BOTTOMS, ClothingCategory.DRESSES)
STANDALONE_CATEGORIES = (ClothingCategory.DRESSES,)
ACCESSORY_CATEGORIES = (
    ClothingCategory.ACCESSORIES,
    ClothingCategory.JEWELRY,
    ClothingCategory.BAGS,
    ClothingCategory.BELTS,
    ClothingCategory.HATS,
    ClothingCategory.SCARVES,
)
MULTI_ITEM_CATEGORIES = (ClothingCategory.ACCESSORIES, ClothingCategory.JEWELRY, ClothingCategory.SCARVES)
MAX_ITEMS_PER_MULTI_CATEGORY = 3

STYLE_TAGS = ["casual", "formal", "business", "sporty", "vintage", "trendy", "classic", "bohemian"]

CATEGORY_ALIASES: Dict[str, ClothingCategory] = {
    "top": ClothingCategory.TOPS,
    "shirt": ClothingCategory.TOPS,
    "bottom": ClothingCategory.BOTTOMS,
    "pants": ClothingCategory.BOTTOMS,
    "dress": ClothingCategory.DRESSES,
    "shoe": ClothingCategory.SHOES,
    "accessory": ClothingCategory.ACCESSORIES,
    "jewellery": ClothingCategory.JEWELRY,
    "bag": ClothingCategory.BAGS,
    "belt": ClothingCategory.BELTS,
    "hat": ClothingCategory.HATS,
    "scarf": ClothingCategory.SCARVES,
}

SEASON_ALIASES: Dict[str, Season] = {"autumn": Season.FALL}

NAMED_COLORS: Dict[str, str] = {
    "black": "#000000",
    "white": "#ffffff",
    "off white": "#f5f5f5",
    "gray": "#808080",
    "grey": "#808080",
    "navy": "#000080",
    "navy blue": "#000080",
    "blue": "#0000ff",
    "light blue": "#add8e6",
    "red": "#ff0000",
    "burgundy": "#800020",
    "green": "#008000",
    "olive": "#808000",
    "yellow": "#ffff00",
    "orange": "#ffa500",
    "pink": "#ffc0cb",
    "purple": "#800080",
    "brown": "#a52a2a",
    "tan": "#d2b48c",
    "beige": "#f5f5dc",
    "cream": "#fffdd0",
}


def validate_category(value: str | ClothingCategory) -> ClothingCategory:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    if isinstance(value, ClothingCategory):
        return value
    key = _normalize_key(str(value))
    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]
    try:
        return ClothingCategory(key)
    except ValueError:
        allowed = sorted(category.value for category in ClothingCategory)
        raise ValueError(f"Unsupported category '{value}'. Allowed: {allowed}") from None


def normalize_color(raw_value: str | None) -> str:
    """Map a color name or hex string to a lower-case hex string.

    Unknown names are returned stripped so the color model can degrade them
    to its zero value instead of failing.
    """

    if not raw_value:
        return ""
    key = str(raw_value).strip().lower()
    if key in NAMED_COLORS:
        return NAMED_COLORS[key]
    return key


def normalise_enum_values(values: Iterable[object], enum_type: Type[E], aliases: Dict[str, E] | None = None) -> List[E]:
    """Normalise and deduplicate values against an enum, dropping unknown ones."""

    normalised: List[E] = []
    seen = set()
    for value in values or []:
        if isinstance(value, enum_type):
            member = value
        else:
            key = _normalize_key(str(value))
            member = (aliases or {}).get(key)
            if member is None:
                try:
                    member = enum_type(key)
                except ValueError:
                    continue
        if member not in seen:
            normalised.append(member)
            seen.add(member)
    return normalised


def normalise_tags(values: Iterable[str]) -> List[str]:
    """Lower-case and deduplicate free-form tags, keeping their order."""

    normalised = []
    seen = set()
    for value in values or []:
        key = str(value).strip().lower()
        if key and key not in seen:
            normalised.append(key)
            seen.add(key)
    return normalised


__all__ = [
    "ClothingCategory",
    "Season",
    "Occasion",
    "TOP_LEVEL_CATEGORIES",
    "STANDALONE_CATEGORIES",
    "ACCESSORY_CATEGORIES",
    "MULTI_ITEM_CATEGORIES",
    "MAX_ITEMS_PER_MULTI_CATEGORY",
    "STYLE_TAGS",
    "NAMED_COLORS",
    "validate_category",
    "normalize_color",
    "normalise_enum_values",
    "normalise_tags",
]
