"""Deterministic outfit assembly with transparent diagnostics.

Candidates are built from the filtered item pool, scored, ranked and
de-duplicated. Two strategies exist: the standard one enumerates every
structural base (top + bottom, or a dress) and completes it, while the
coverage strategy builds outfits around every item so the batch as a whole
uses as much of the wardrobe as possible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from logic.contextual_filtering import apply_contextual_filters
from logic.errors import GenerationFailure, InsufficientItemsError
from logic.outfit_scoring import (
    ScoringContext,
    color_harmony_score,
    evaluate_outfit,
    outfit_key,
    rank_outfits,
)
from logic.outfit_similarity import OutfitLike, exclude_similar_to, suppress_near_duplicates
from models.clothing_item import ClothingItem
from models.color_theory import are_colors_close, hex_to_hsl, hue_distance
from models.generation import GeneratedOutfit
from models.outfit import VERY_SIMILAR_THRESHOLD
from models.taxonomy import (
    ACCESSORY_CATEGORIES,
    ClothingCategory,
    MAX_ITEMS_PER_MULTI_CATEGORY,
    MULTI_ITEM_CATEGORIES,
    Occasion,
)

logger = logging.getLogger(__name__)

MIN_ITEMS = 2
DEFAULT_MAX_CANDIDATES = 1000
MAX_COORDINATING_EXTRAS = 2
COORDINATION_THRESHOLD = 0.4
OPTIONAL_ITEM_THRESHOLD = 0.1
RELAXED_MIN_SCORE = 0.05
CHALLENGE_TOPS = 3
CHALLENGE_BOTTOMS = 2
STAR_PARTNER_LIMIT = 3

STAR_OPTIONAL = (ClothingCategory.SHOES, ClothingCategory.ACCESSORIES, ClothingCategory.OUTERWEAR)
CHALLENGE_OPTIONAL = (ClothingCategory.SHOES, ClothingCategory.ACCESSORIES)

ACCESSORY_FALLBACK_ORDER = (
    ClothingCategory.ACCESSORIES,
    ClothingCategory.JEWELRY,
    ClothingCategory.BAGS,
    ClothingCategory.BELTS,
    ClothingCategory.HATS,
    ClothingCategory.SCARVES,
)
NEUTRAL_ACCESSORY_COLORS = ("black", "white", "brown", "tan", "gold", "silver")
NEUTRAL_ACCESSORY_HEX = {"#000000", "#ffffff", "#a52a2a", "#d2b48c", "#ffd700", "#c0c0c0"}

# Coordinating categories in the order each outfit style reaches for them.
ACCESSORY_PRIORITIES: Dict[str, Tuple[ClothingCategory, ...]] = {
    "formal": (
        ClothingCategory.JEWELRY,
        ClothingCategory.BAGS,
        ClothingCategory.BELTS,
        ClothingCategory.SCARVES,
        ClothingCategory.ACCESSORIES,
        ClothingCategory.HATS,
        ClothingCategory.OUTERWEAR,
    ),
    "business": (
        ClothingCategory.BELTS,
        ClothingCategory.BAGS,
        ClothingCategory.JEWELRY,
        ClothingCategory.ACCESSORIES,
        ClothingCategory.SCARVES,
        ClothingCategory.OUTERWEAR,
        ClothingCategory.HATS,
    ),
    "party": (
        ClothingCategory.JEWELRY,
        ClothingCategory.ACCESSORIES,
        ClothingCategory.BAGS,
        ClothingCategory.SCARVES,
        ClothingCategory.BELTS,
        ClothingCategory.HATS,
        ClothingCategory.OUTERWEAR,
    ),
    "athletic": (
        ClothingCategory.ACCESSORIES,
        ClothingCategory.BAGS,
        ClothingCategory.HATS,
        ClothingCategory.OUTERWEAR,
        ClothingCategory.BELTS,
        ClothingCategory.JEWELRY,
        ClothingCategory.SCARVES,
    ),
    "casual": (
        ClothingCategory.ACCESSORIES,
        ClothingCategory.BAGS,
        ClothingCategory.JEWELRY,
        ClothingCategory.HATS,
        ClothingCategory.BELTS,
        ClothingCategory.SCARVES,
        ClothingCategory.OUTERWEAR,
    ),
}
STYLE_MATCH_TAGS: Dict[str, Tuple[Set[str], Optional[Occasion]]] = {
    "formal": ({"formal", "elegant"}, Occasion.FORMAL),
    "business": ({"business", "professional"}, Occasion.WORK),
    "party": ({"party", "fun"}, Occasion.PARTY),
    "athletic": ({"athletic", "sport"}, Occasion.SPORT),
    "casual": ({"casual"}, Occasion.CASUAL),
}


@dataclass(frozen=True)
class Candidate:
    """An unscored item combination; relaxed ones face a lower minimum score."""

    items: List[ClothingItem]
    relaxed: bool = False


@dataclass(frozen=True)
class GenerationResult:
    outfits: List[GeneratedOutfit]
    diagnostics: Dict[str, object] = field(default_factory=dict)


def group_by_category(items: Iterable[ClothingItem]) -> Dict[ClothingCategory, List[ClothingItem]]:
    grouped: Dict[ClothingCategory, List[ClothingItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return grouped


def is_item_compatible(item: ClothingItem, outfit: Sequence[ClothingItem]) -> bool:
    """No repeated item or category, except multi-item categories up to their limit."""

    if any(existing.item_id == item.item_id for existing in outfit):
        return False
    same_category = sum(1 for existing in outfit if existing.category == item.category)
    if item.category in MULTI_ITEM_CATEGORIES:
        return same_category < MAX_ITEMS_PER_MULTI_CATEGORY
    return same_category == 0


def _overlap_score(item_values: Sequence[object], outfit_values: Set[object]) -> float:
    if not outfit_values:
        return 1.0
    return sum(1 for value in item_values if value in outfit_values) / len(outfit_values)


def item_compatibility_score(item: ClothingItem, outfit: Sequence[ClothingItem]) -> float:
    """How well ``item`` joins ``outfit``: palette, shared seasons and shared occasions."""

    if not outfit:
        return 1.0
    harmony, _ = color_harmony_score([*outfit, item])
    seasons = {season for existing in outfit for season in existing.seasons}
    occasions = {occasion for existing in outfit for occasion in existing.occasions}
    return (
        harmony * 0.4
        + _overlap_score(item.seasons, seasons) * 0.3
        + _overlap_score(item.occasions, occasions) * 0.3
    )


def determine_outfit_style(items: Sequence[ClothingItem]) -> str:
    tags = {tag for item in items for tag in item.tags}
    occasions = {occasion for item in items for occasion in item.occasions}
    if Occasion.FORMAL in occasions or "formal" in tags:
        return "formal"
    if Occasion.WORK in occasions or "business" in tags:
        return "business"
    if Occasion.PARTY in occasions or "party" in tags:
        return "party"
    if Occasion.SPORT in occasions or "athletic" in tags:
        return "athletic"
    return "casual"


def accessory_color_score(item: ClothingItem, outfit_colors: Sequence[str]) -> float:
    """Close colors score best, then complementary, then analogous, then neutrals."""

    if any(are_colors_close(item.color, color) for color in outfit_colors):
        return 1.0
    item_hsl = hex_to_hsl(item.color)
    for color in outfit_colors:
        difference = hue_distance(item_hsl.h, hex_to_hsl(color).h)
        if abs(difference - 180) < 30:
            return 0.9
        if difference < 60:
            return 0.8
    if item.color in NEUTRAL_ACCESSORY_HEX or any(name in item.color for name in NEUTRAL_ACCESSORY_COLORS):
        return 0.7
    return 0.3


def accessory_style_score(item: ClothingItem, outfit_style: str) -> float:
    tags, occasion = STYLE_MATCH_TAGS.get(outfit_style, STYLE_MATCH_TAGS["casual"])
    if tags.intersection(item.tags) or (occasion is not None and occasion in item.occasions):
        return 1.0
    if {"versatile", "classic"}.intersection(item.tags):
        return 0.7
    return 0.4


def find_best_item(candidates: Sequence[ClothingItem], outfit: Sequence[ClothingItem]) -> Optional[ClothingItem]:
    """Most compatible candidate that can legally join ``outfit``; first wins ties."""

    best: Optional[ClothingItem] = None
    best_score = -1.0
    for item in candidates:
        if not is_item_compatible(item, outfit):
            continue
        score = item_compatibility_score(item, outfit)
        if score > best_score:
            best, best_score = item, score
    return best


def add_coordinating_extras(
    outfit: List[ClothingItem],
    grouped: Dict[ClothingCategory, List[ClothingItem]],
    max_extras: int = MAX_COORDINATING_EXTRAS,
) -> List[ClothingItem]:
    """Add up to ``max_extras`` pieces whose coordination score clears the threshold."""

    result = list(outfit)
    outfit_colors = list(dict.fromkeys(item.color for item in result if item.color))
    style = determine_outfit_style(result)
    added = 0
    for category in ACCESSORY_PRIORITIES[style]:
        if added >= max_extras:
            break
        if any(item.category == category for item in result):
            continue
        best: Optional[ClothingItem] = None
        best_score = -1.0
        for item in grouped.get(category, []):
            if not is_item_compatible(item, result):
                continue
            score = (
                accessory_color_score(item, outfit_colors) * 0.4
                + accessory_style_score(item, style) * 0.3
                + item_compatibility_score(item, result) * 0.3
            )
            if score > best_score:
                best, best_score = item, score
        if best is not None and best_score > COORDINATION_THRESHOLD:
            result.append(best)
            added += 1
            logger.debug("Added coordinating %s %s (score %.2f)", category.value, best.item_id, best_score)
    return result


def complete_outfit(
    base: Sequence[ClothingItem], grouped: Dict[ClothingCategory, List[ClothingItem]]
) -> List[ClothingItem]:
    """Add shoes and one accessory when available, then coordinating extras."""

    outfit = list(base)
    if not any(item.category == ClothingCategory.SHOES for item in outfit):
        shoes = find_best_item(grouped.get(ClothingCategory.SHOES, []), outfit)
        if shoes is not None:
            outfit.append(shoes)
    if not any(item.category in ACCESSORY_CATEGORIES for item in outfit):
        for category in ACCESSORY_FALLBACK_ORDER:
            accessory = find_best_item(grouped.get(category, []), outfit)
            if accessory is not None:
                outfit.append(accessory)
                break
    return add_coordinating_extras(outfit, grouped)


def _with_forced(forced: Sequence[ClothingItem], additions: Sequence[ClothingItem]) -> Optional[List[ClothingItem]]:
    combination = list(forced)
    for item in additions:
        if any(existing.item_id == item.item_id for existing in combination):
            continue
        if not is_item_compatible(item, combination):
            return None
        combination.append(item)
    return combination


def build_base_combinations(
    grouped: Dict[ClothingCategory, List[ClothingItem]], forced: Sequence[ClothingItem] = ()
) -> List[List[ClothingItem]]:
    """Every top + bottom pairing and every dress, honouring forced items."""

    forced_categories = {item.category for item in forced}
    if ClothingCategory.DRESSES in forced_categories or {
        ClothingCategory.TOPS,
        ClothingCategory.BOTTOMS,
    } <= forced_categories:
        return [list(forced)]

    bases: List[List[ClothingItem]] = []
    if not forced_categories & {ClothingCategory.TOPS, ClothingCategory.BOTTOMS}:
        for dress in grouped.get(ClothingCategory.DRESSES, []):
            combination = _with_forced(forced, [dress])
            if combination is not None:
                bases.append(combination)

    tops = [item for item in forced if item.category == ClothingCategory.TOPS] or grouped.get(
        ClothingCategory.TOPS, []
    )
    bottoms = [item for item in forced if item.category == ClothingCategory.BOTTOMS] or grouped.get(
        ClothingCategory.BOTTOMS, []
    )
    for top in tops:
        for bottom in bottoms:
            combination = _with_forced(forced, [top, bottom])
            if combination is not None:
                bases.append(combination)
    return bases


def _unique(candidates: Iterable[Candidate], limit: int) -> List[Candidate]:
    seen: Set[Tuple[str, ...]] = set()
    unique: List[Candidate] = []
    for candidate in candidates:
        key = outfit_key(candidate.items)
        if key in seen or not candidate.items:
            continue
        seen.add(key)
        unique.append(candidate)
        if len(unique) >= limit:
            logger.info("Candidate limit of %s reached", limit)
            break
    return unique


def build_candidates(
    items: Sequence[ClothingItem],
    force_include: Sequence[str] = (),
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> List[Candidate]:
    """Standard strategy: complete every structural base."""

    grouped = group_by_category(items)
    forced_ids = set(force_include)
    forced = [item for item in items if item.item_id in forced_ids]
    bases = build_base_combinations(grouped, forced)
    return _unique((Candidate(items=complete_outfit(base, grouped)) for base in bases), max_candidates)


def _add_best_optional(
    outfit: List[ClothingItem],
    grouped: Dict[ClothingCategory, List[ClothingItem]],
    categories: Sequence[ClothingCategory],
) -> List[ClothingItem]:
    result = list(outfit)
    for category in categories:
        if any(item.category == category for item in result):
            continue
        best = find_best_item(grouped.get(category, []), result)
        if best is not None and item_compatibility_score(best, result) > OPTIONAL_ITEM_THRESHOLD:
            result.append(best)
    return result


def _star_requirements(star: ClothingItem) -> List[List[ClothingCategory]]:
    if star.category == ClothingCategory.DRESSES:
        return [[]]
    if star.category == ClothingCategory.TOPS:
        return [[ClothingCategory.BOTTOMS]]
    if star.category == ClothingCategory.BOTTOMS:
        return [[ClothingCategory.TOPS]]
    return [[ClothingCategory.TOPS, ClothingCategory.BOTTOMS], [ClothingCategory.DRESSES]]


def best_partners(
    candidates: Sequence[ClothingItem], outfit: Sequence[ClothingItem], limit: int = STAR_PARTNER_LIMIT
) -> List[ClothingItem]:
    """The ``limit`` most compatible candidates for ``outfit``, earlier items winning ties."""

    compatible = [item for item in candidates if is_item_compatible(item, outfit)]
    compatible.sort(key=lambda item: item_compatibility_score(item, outfit), reverse=True)
    return compatible[:limit]


def _expand(
    outfit: List[ClothingItem],
    remaining: Sequence[ClothingCategory],
    grouped: Dict[ClothingCategory, List[ClothingItem]],
) -> List[List[ClothingItem]]:
    if not remaining:
        return [outfit]
    combinations: List[List[ClothingItem]] = []
    for item in best_partners(grouped.get(remaining[0], []), outfit):
        combinations.extend(_expand([*outfit, item], remaining[1:], grouped))
    return combinations


def star_candidates(star: ClothingItem, items: Sequence[ClothingItem]) -> List[Candidate]:
    """Outfits built around ``star`` from its best structural partners."""

    grouped = group_by_category(item for item in items if item.item_id != star.item_id)
    candidates: List[Candidate] = []
    for requirement in _star_requirements(star):
        for combination in _expand([star], requirement, grouped):
            candidates.append(Candidate(items=_add_best_optional(combination, grouped, STAR_OPTIONAL)))
    return candidates


def relaxed_candidate(star: ClothingItem, items: Sequence[ClothingItem]) -> Optional[Candidate]:
    """Smaller combination for an item whose structural partners are missing."""

    grouped = group_by_category(item for item in items if item.item_id != star.item_id)
    outfit = [star]
    for category in (ClothingCategory.TOPS, ClothingCategory.BOTTOMS, ClothingCategory.SHOES):
        has_dress = any(item.category == ClothingCategory.DRESSES for item in outfit)
        if has_dress and category != ClothingCategory.SHOES:
            continue
        best = find_best_item(grouped.get(category, []), outfit)
        if best is not None:
            outfit.append(best)
    if not any(item.category in ACCESSORY_CATEGORIES for item in outfit):
        for category in ACCESSORY_FALLBACK_ORDER:
            best = find_best_item(grouped.get(category, []), outfit)
            if best is not None:
                outfit.append(best)
                break
    if len(outfit) < MIN_ITEMS:
        others = [item for item in items if item.item_id != star.item_id]
        best = find_best_item(others, outfit)
        if best is not None:
            outfit.append(best)
    if len(outfit) < MIN_ITEMS:
        return None
    return Candidate(items=outfit, relaxed=True)


def challenge_candidates(items: Sequence[ClothingItem]) -> List[Candidate]:
    """A few top and bottom pairings regardless of how well they match."""

    grouped = group_by_category(items)
    candidates: List[Candidate] = []
    for top in grouped.get(ClothingCategory.TOPS, [])[:CHALLENGE_TOPS]:
        for bottom in grouped.get(ClothingCategory.BOTTOMS, [])[:CHALLENGE_BOTTOMS]:
            candidates.append(Candidate(items=_add_best_optional([top, bottom], grouped, CHALLENGE_OPTIONAL)))
    return candidates


def build_coverage_candidates(
    items: Sequence[ClothingItem], max_candidates: int = DEFAULT_MAX_CANDIDATES
) -> List[Candidate]:
    """Coverage strategy: star outfits, relaxed outfits for leftovers, challenge pairings.

    Star outfits are interleaved across stars, so when the cap is reached
    every star has already contributed its best outfit. Relaxed outfits for
    items the capped star batch missed go first in the final batch.
    """

    per_star = [star_candidates(star, items) for star in items]
    interleaved = (
        per_star[index][depth]
        for depth in range(max((len(built) for built in per_star), default=0))
        for index in range(len(per_star))
        if depth < len(per_star[index])
    )
    stars = _unique(interleaved, max_candidates)
    covered = {item.item_id for candidate in stars for item in candidate.items}

    leftovers = [item for item in items if item.item_id not in covered]
    if leftovers:
        logger.info("Building relaxed outfits for %s uncovered items", len(leftovers))
    relaxed = [candidate for candidate in (relaxed_candidate(star, items) for star in leftovers) if candidate]

    return _unique([*relaxed, *stars, *challenge_candidates(items)], max_candidates)


def select_for_coverage(ranked: Sequence[GeneratedOutfit], max_results: int) -> List[GeneratedOutfit]:
    """Prefer outfits that contribute unseen items, then fill by rank."""

    selected: List[GeneratedOutfit] = []
    chosen: Set[int] = set()
    covered: Set[str] = set()
    while len(selected) < max_results:
        pick = next(
            (
                index
                for index, outfit in enumerate(ranked)
                if index not in chosen and not covered.issuperset(outfit.item_ids)
            ),
            None,
        )
        if pick is None:
            break
        chosen.add(pick)
        selected.append(ranked[pick])
        covered.update(ranked[pick].item_ids)
    for index, outfit in enumerate(ranked):
        if len(selected) >= max_results:
            break
        if index not in chosen:
            chosen.add(index)
            selected.append(outfit)
    return rank_outfits(selected)


def generate_outfits(
    items: Sequence[ClothingItem],
    context: ScoringContext,
    favorites: Sequence[OutfitLike] = (),
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
    similarity_threshold: float = VERY_SIMILAR_THRESHOLD,
) -> GenerationResult:
    """Filter, build, score, rank and de-duplicate outfits for one pass.

    Raises :class:`InsufficientItemsError` when fewer than two items are
    supplied. If the contextual filters leave fewer than two items the pass
    returns no outfits instead.
    """

    if len(items) < MIN_ITEMS:
        raise InsufficientItemsError(available=len(items), required=MIN_ITEMS)

    options = context.options
    filtered = apply_contextual_filters(list(items), options)
    diagnostics: Dict[str, object] = {
        "input_count": len(items),
        "filters": filtered.debug,
        "strategy": "coverage" if options.use_all_items else "standard",
    }
    pool = filtered.items
    if len(pool) < MIN_ITEMS:
        logger.warning("Only %s items left after filtering; nothing to generate", len(pool))
        diagnostics["reason"] = "filtered_below_minimum"
        return GenerationResult(outfits=[], diagnostics=diagnostics)

    if options.use_all_items:
        candidates = build_coverage_candidates(pool, max_candidates)
    else:
        candidates = build_candidates(pool, options.force_include_items, max_candidates)
    diagnostics["candidate_count"] = len(candidates)

    scored: List[GeneratedOutfit] = []
    for candidate in candidates:
        try:
            outfit = evaluate_outfit(candidate.items, context)
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise GenerationFailure(f"could not score outfit {outfit_key(candidate.items)}") from exc
        threshold = min(options.min_score, RELAXED_MIN_SCORE) if candidate.relaxed else options.min_score
        if outfit.score.total >= threshold:
            scored.append(outfit)
    diagnostics["qualifying_count"] = len(scored)
    if scored:
        totals = [outfit.score.total for outfit in scored]
        logger.info("Scored %s candidates, range %.2f-%.2f", len(scored), min(totals), max(totals))

    ranked = exclude_similar_to(rank_outfits(scored), favorites, similarity_threshold)
    diagnostics["after_favorite_exclusion"] = len(ranked)

    if options.use_all_items:
        final = select_for_coverage(ranked, options.max_results)
    else:
        diverse, suppressed = suppress_near_duplicates(ranked, similarity_threshold)
        diagnostics["suppressed_count"] = len(suppressed)
        final = diverse[: options.max_results]

    used = {item_id for outfit in final for item_id in outfit.item_ids}
    diagnostics["result_count"] = len(final)
    diagnostics["items_used"] = len(used)
    logger.info(
        "Generated %s outfits using %s of %s items (%s strategy)",
        len(final),
        len(used),
        len(pool),
        diagnostics["strategy"],
    )
    return GenerationResult(outfits=final, diagnostics=diagnostics)


__all__ = [
    "Candidate",
    "GenerationResult",
    "group_by_category",
    "is_item_compatible",
    "item_compatibility_score",
    "determine_outfit_style",
    "accessory_color_score",
    "accessory_style_score",
    "find_best_item",
    "best_partners",
    "add_coordinating_extras",
    "complete_outfit",
    "build_base_combinations",
    "build_candidates",
    "star_candidates",
    "relaxed_candidate",
    "challenge_candidates",
    "build_coverage_candidates",
    "select_for_coverage",
    "generate_outfits",
]
