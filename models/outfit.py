"""Persisted outfit records and similarity results."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from models.clothing_item import ClothingItem
from models.taxonomy import Occasion, SEASON_ALIASES, Season, normalise_enum_values, normalise_tags

MAX_OUTFIT_TAGS = 5
VERY_SIMILAR_THRESHOLD = 0.6


def _common_values(items: Sequence[ClothingItem], attribute: str) -> list:
    """Values present on every item, in the order the first item lists them."""

    if not items:
        return []
    common = list(getattr(items[0], attribute))
    for item in items[1:]:
        values = set(getattr(item, attribute))
        common = [value for value in common if value in values]
    return common


@dataclass
class Outfit:
    """A saved outfit owned by the persistence layer."""

    outfit_id: str
    name: str
    items: List[ClothingItem] = field(default_factory=list)
    is_favorite: bool = False
    times_worn: int = 0
    last_worn: Optional[datetime] = None
    seasons: List[Season] = field(default_factory=list)
    occasions: List[Occasion] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    source: str = "manual"
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.seasons = normalise_enum_values(self.seasons, Season, SEASON_ALIASES)
        self.occasions = normalise_enum_values(self.occasions, Occasion)
        self.tags = normalise_tags(self.tags)[:MAX_OUTFIT_TAGS]
        self.times_worn = max(0, int(self.times_worn or 0))

    @property
    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.items]

    @classmethod
    def from_generated(cls, items: Sequence[ClothingItem], name: str) -> "Outfit":
        """Create a new manual outfit from a generated combination."""

        tags: List[str] = []
        for item in items:
            for tag in item.tags:
                if tag not in tags:
                    tags.append(tag)
        now = datetime.now()
        return cls(
            outfit_id=str(uuid.uuid4()),
            name=name,
            items=list(items),
            seasons=_common_values(items, "seasons"),
            occasions=_common_values(items, "occasions"),
            tags=tags[:MAX_OUTFIT_TAGS],
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outfit_id": self.outfit_id,
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
            "is_favorite": self.is_favorite,
            "times_worn": self.times_worn,
            "last_worn": self.last_worn.isoformat() if self.last_worn else None,
            "seasons": [season.value for season in self.seasons],
            "occasions": [occasion.value for occasion in self.occasions],
            "tags": list(self.tags),
            "source": self.source,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class SimilarityBreakdown:
    item_match: float
    color_match: float
    category_match: float
    style_match: float


@dataclass(frozen=True)
class SimilarityResult:
    similarity: float
    breakdown: SimilarityBreakdown
    threshold: float = VERY_SIMILAR_THRESHOLD

    @property
    def is_very_similar(self) -> bool:
        return self.similarity > self.threshold


__all__ = [
    "MAX_OUTFIT_TAGS",
    "VERY_SIMILAR_THRESHOLD",
    "Outfit",
    "SimilarityBreakdown",
    "SimilarityResult",
]
