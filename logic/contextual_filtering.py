"""Deterministic filtering of the item pool before candidates are built."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from models.clothing_item import ClothingItem
from models.generation import GenerationOptions
from models.taxonomy import Occasion, Season

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilteringResult:
    """Captures the outcome of a single filtering step."""

    items: List[ClothingItem]
    removed: Dict[str, str]
    debug: Dict[str, object]


def filter_excluded(items: List[ClothingItem], excluded_ids: Iterable[str]) -> FilteringResult:
    """Drop items the caller has explicitly excluded."""

    excluded = {str(item_id) for item_id in excluded_ids or []}
    removed: Dict[str, str] = {}
    kept: List[ClothingItem] = []
    for item in items:
        if item.item_id in excluded:
            removed[item.item_id] = "excluded by request"
        else:
            kept.append(item)
    debug = {
        "input_count": len(items),
        "kept_count": len(kept),
        "removed_count": len(removed),
    }
    return FilteringResult(items=kept, removed=removed, debug=debug)


def filter_by_season(items: List[ClothingItem], season: Optional[Season]) -> FilteringResult:
    """Keep items tagged for the target season."""

    removed: Dict[str, str] = {}
    kept: List[ClothingItem] = []
    for item in items:
        if season is not None and season not in item.seasons:
            removed[item.item_id] = f"not suitable for {season.value}"
        else:
            kept.append(item)
    debug = {
        "input_count": len(items),
        "kept_count": len(kept),
        "removed_count": len(removed),
        "season": season.value if season else None,
    }
    return FilteringResult(items=kept, removed=removed, debug=debug)


def filter_by_occasion(items: List[ClothingItem], occasion: Optional[Occasion]) -> FilteringResult:
    """Keep items tagged for the target occasion."""

    removed: Dict[str, str] = {}
    kept: List[ClothingItem] = []
    for item in items:
        if occasion is not None and occasion not in item.occasions:
            removed[item.item_id] = f"not suitable for {occasion.value}"
        else:
            kept.append(item)
    debug = {
        "input_count": len(items),
        "kept_count": len(kept),
        "removed_count": len(removed),
        "occasion": occasion.value if occasion else None,
    }
    return FilteringResult(items=kept, removed=removed, debug=debug)


def apply_contextual_filters(items: List[ClothingItem], options: GenerationOptions) -> FilteringResult:
    """Run exclusion, season and occasion filters in order.

    The season filter uses the explicit target season, falling back to the
    season implied by the weather.
    """

    removed: Dict[str, str] = {}
    steps: Dict[str, object] = {}

    excluded = filter_excluded(items, options.excluded_items)
    removed.update(excluded.removed)
    steps["excluded"] = excluded.debug

    seasonal = filter_by_season(excluded.items, options.target_season())
    removed.update(seasonal.removed)
    steps["season"] = seasonal.debug

    occasional = filter_by_occasion(seasonal.items, options.occasion)
    removed.update(occasional.removed)
    steps["occasion"] = occasional.debug

    logger.info(
        "Contextual filters kept %s of %s items",
        len(occasional.items),
        len(items),
    )
    return FilteringResult(items=occasional.items, removed=removed, debug=steps)


__all__ = [
    "FilteringResult",
    "filter_excluded",
    "filter_by_season",
    "filter_by_occasion",
    "apply_contextual_filters",
]
