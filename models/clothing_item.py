"""Clothing item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.parse_result import ParseResult
from models.taxonomy import (
    ClothingCategory,
    Occasion,
    SEASON_ALIASES,
    Season,
    normalise_enum_values,
    normalise_tags,
    normalize_color,
    validate_category,
)


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass
class ClothingItem:
    """A single garment or accessory in the user's wardrobe.

    The engine treats items as read-only for the duration of a
    recommendation pass; only the wardrobe store mutates them.
    """

    item_id: str
    name: str
    category: ClothingCategory
    color: str = ""
    seasons: List[Season] = field(default_factory=list)
    occasions: List[Occasion] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    subcategory: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = None
    is_favorite: bool = False
    times_worn: int = 0
    last_worn: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.item_id = str(self.item_id)
        self.category = validate_category(self.category)
        self.color = normalize_color(self.color)
        self.seasons = normalise_enum_values(self.seasons, Season, SEASON_ALIASES)
        self.occasions = normalise_enum_values(self.occasions, Occasion)
        self.tags = normalise_tags(self.tags)
        self.times_worn = max(0, int(self.times_worn or 0))
        if self.price is not None:
            self.price = float(self.price)
        self.last_worn = _parse_timestamp(self.last_worn)
        self.created_at = _parse_timestamp(self.created_at)

    @property
    def created_timestamp(self) -> float:
        """Creation time as a POSIX timestamp, 0 when unknown."""

        return self.created_at.timestamp() if self.created_at else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "category": self.category.value,
            "color": self.color,
            "seasons": [season.value for season in self.seasons],
            "occasions": [occasion.value for occasion in self.occasions],
            "tags": list(self.tags),
            "subcategory": self.subcategory,
            "brand": self.brand,
            "price": self.price,
            "is_favorite": self.is_favorite,
            "times_worn": self.times_worn,
            "last_worn": self.last_worn.isoformat() if self.last_worn else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def parse_raw_metadata(metadata: Dict[str, Any]) -> ParseResult[ClothingItem]:
    """Build an item from loose metadata, reporting which fields were defaulted.

    ``item_id`` and ``category`` are required; a missing name falls back to
    the category label and numeric fields fall back to zero.
    """

    required_fields = ["item_id", "category"]
    missing = [name for name in required_fields if not metadata.get(name)]
    if missing:
        raise ValueError(f"Missing required fields for ClothingItem: {missing}")

    defaulted: List[str] = []
    category = validate_category(str(metadata["category"]))
    name = metadata.get("name")
    if not name:
        name = category.value.rstrip("s").replace("_", " ").title()
        defaulted.append("name")

    times_worn_raw = metadata.get("times_worn", 0)
    try:
        times_worn = int(times_worn_raw or 0)
    except (TypeError, ValueError):
        times_worn = 0
        defaulted.append("times_worn")

    price_raw = metadata.get("price")
    try:
        price = float(price_raw) if price_raw not in (None, "") else None
    except (TypeError, ValueError):
        price = None
        defaulted.append("price")

    item = ClothingItem(
        item_id=str(metadata["item_id"]),
        name=str(name),
        category=category,
        color=metadata.get("color") or "",
        seasons=_ensure_list(metadata.get("seasons")),
        occasions=_ensure_list(metadata.get("occasions")),
        tags=_ensure_list(metadata.get("tags")),
        subcategory=metadata.get("subcategory"),
        brand=metadata.get("brand"),
        price=price,
        is_favorite=bool(metadata.get("is_favorite", False)),
        times_worn=times_worn,
        last_worn=metadata.get("last_worn"),
        created_at=metadata.get("created_at"),
    )
    if defaulted:
        return ParseResult.recovered(item, f"defaulted fields: {', '.join(defaulted)}")
    return ParseResult.parsed(item)


def from_raw_metadata(metadata: Dict[str, Any]) -> ClothingItem:
    """Factory to build a :class:`ClothingItem` from loose metadata."""

    return parse_raw_metadata(metadata).value


__all__ = ["ClothingItem", "from_raw_metadata", "parse_raw_metadata"]
