"""Pairwise outfit comparison used for duplicate suppression and favorite matching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple, TypeVar, Union

from models.clothing_item import ClothingItem
from models.color_theory import are_colors_close
from models.generation import GeneratedOutfit
from models.outfit import Outfit, SimilarityBreakdown, SimilarityResult, VERY_SIMILAR_THRESHOLD
from models.taxonomy import STYLE_TAGS

logger = logging.getLogger(__name__)

ITEM_WEIGHT = 0.4
COLOR_WEIGHT = 0.25
CATEGORY_WEIGHT = 0.2
STYLE_WEIGHT = 0.15

# Black and white pair with everything, so they say little about similarity.
IGNORED_COLORS = {"#000000", "#ffffff"}

OutfitLike = Union[Sequence[ClothingItem], GeneratedOutfit, Outfit]
T = TypeVar("T", GeneratedOutfit, Outfit)


def _items_of(outfit: OutfitLike) -> List[ClothingItem]:
    if isinstance(outfit, (GeneratedOutfit, Outfit)):
        return list(outfit.items)
    return list(outfit)


def _jaccard(first: Set[object], second: Set[object]) -> float:
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def _primary_colors(items: Sequence[ClothingItem]) -> List[str]:
    colors: List[str] = []
    for item in items:
        if item.color and item.color not in IGNORED_COLORS and item.color not in colors:
            colors.append(item.color)
    return colors


def _style_tags(items: Sequence[ClothingItem]) -> Set[str]:
    return {tag for item in items for tag in item.tags if tag in STYLE_TAGS}


def color_match(first: Sequence[str], second: Sequence[str]) -> float:
    """Share of colors on either side that have a close partner on the other.

    Two palettes with no comparable colors count as a full match; a palette
    compared with an empty one scores zero.
    """

    if not first and not second:
        return 1.0
    if not first or not second:
        return 0.0
    matched_first = sum(1 for color in first if any(are_colors_close(color, other) for other in second))
    matched_second = sum(1 for color in second if any(are_colors_close(color, other) for other in first))
    return (matched_first + matched_second) / (len(first) + len(second))


def _style_match(first: Set[str], second: Set[str]) -> float:
    if not first and not second:
        return 1.0
    return _jaccard(first, second)


def compare_outfits(
    first: OutfitLike, second: OutfitLike, threshold: float = VERY_SIMILAR_THRESHOLD
) -> SimilarityResult:
    """Weighted blend of item, color, category and style-tag overlap."""

    items_a = _items_of(first)
    items_b = _items_of(second)
    if not items_a or not items_b:
        return SimilarityResult(
            similarity=0.0,
            breakdown=SimilarityBreakdown(item_match=0.0, color_match=0.0, category_match=0.0, style_match=0.0),
            threshold=threshold,
        )

    breakdown = SimilarityBreakdown(
        item_match=_jaccard({item.item_id for item in items_a}, {item.item_id for item in items_b}),
        color_match=color_match(_primary_colors(items_a), _primary_colors(items_b)),
        category_match=_jaccard({item.category for item in items_a}, {item.category for item in items_b}),
        style_match=_style_match(_style_tags(items_a), _style_tags(items_b)),
    )
    similarity = (
        breakdown.item_match * ITEM_WEIGHT
        + breakdown.color_match * COLOR_WEIGHT
        + breakdown.category_match * CATEGORY_WEIGHT
        + breakdown.style_match * STYLE_WEIGHT
    )
    return SimilarityResult(similarity=max(0.0, min(1.0, similarity)), breakdown=breakdown, threshold=threshold)


@dataclass(frozen=True)
class SimilarMatch:
    index: int
    result: SimilarityResult


def find_similar_outfits(
    new_outfit: OutfitLike, existing: Sequence[OutfitLike], threshold: float = VERY_SIMILAR_THRESHOLD
) -> List[SimilarMatch]:
    """Very similar matches among ``existing``, most similar first."""

    matches = [
        SimilarMatch(index=index, result=compare_outfits(new_outfit, outfit, threshold))
        for index, outfit in enumerate(existing)
    ]
    matches = [match for match in matches if match.result.is_very_similar]
    return sorted(matches, key=lambda match: -match.result.similarity)


def suppress_near_duplicates(
    ranked: Iterable[T], threshold: float = VERY_SIMILAR_THRESHOLD
) -> Tuple[List[T], List[T]]:
    """Keep the first outfit of every near-duplicate group, in ranked order.

    Returns ``(kept, suppressed)``.
    """

    kept: List[T] = []
    suppressed: List[T] = []
    for outfit in ranked:
        if any(compare_outfits(outfit, chosen, threshold).is_very_similar for chosen in kept):
            suppressed.append(outfit)
        else:
            kept.append(outfit)
    if suppressed:
        logger.debug("Suppressed %s near-duplicate outfits", len(suppressed))
    return kept, suppressed


def exclude_similar_to(
    candidates: Iterable[T], references: Sequence[OutfitLike], threshold: float = VERY_SIMILAR_THRESHOLD
) -> List[T]:
    """Drop candidates that are very similar to any reference outfit."""

    if not references:
        return list(candidates)
    return [
        candidate
        for candidate in candidates
        if not find_similar_outfits(candidate, references, threshold)
    ]


def outfit_fingerprint(outfit: OutfitLike) -> str:
    """Stable ``categories|colors|tags`` string for an outfit's composition."""

    items = _items_of(outfit)
    categories = sorted(item.category.value for item in items)
    colors = sorted(item.color for item in items if item.color)
    tags = sorted(tag for item in items for tag in item.tags)
    return f"{','.join(categories)}|{','.join(colors)}|{','.join(tags)}"


__all__ = [
    "SimilarMatch",
    "color_match",
    "compare_outfits",
    "find_similar_outfits",
    "suppress_near_duplicates",
    "exclude_similar_to",
    "outfit_fingerprint",
]
