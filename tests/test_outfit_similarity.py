"""Similarity detection between generated and saved outfits."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.outfit_similarity import (  # noqa: E402
    color_match,
    compare_outfits,
    exclude_similar_to,
    find_similar_outfits,
    outfit_fingerprint,
    suppress_near_duplicates,
)
from models.clothing_item import ClothingItem  # noqa: E402
from models.outfit import Outfit  # noqa: E402


def _item(item_id, category, color="", tags=()):
    return ClothingItem(item_id=item_id, name=item_id, category=category, color=color, tags=list(tags))


SHIRT = _item("shirt", "tops", "#1e3a8a", ["classic"])
JEANS = _item("jeans", "bottoms", "#00008b", ["casual"])
SNEAKERS = _item("sneakers", "shoes", "#ffffff", ["casual"])
DRESS = _item("dress", "dresses", "#ff0000", ["trendy"])
HEELS = _item("heels", "shoes", "#ff1493", ["trendy"])


def test_reordered_items_count_as_full_item_match() -> None:
    result = compare_outfits([SHIRT, JEANS, SNEAKERS], [SNEAKERS, SHIRT, JEANS])

    assert result.breakdown.item_match == 1.0
    assert result.similarity == pytest.approx(1.0)


def test_outfit_is_fully_similar_to_itself() -> None:
    for outfit in ([SHIRT, JEANS], [DRESS, HEELS], [SNEAKERS]):
        assert compare_outfits(outfit, outfit).similarity == pytest.approx(1.0)


def test_comparison_is_symmetric() -> None:
    pairs = [
        ([SHIRT, JEANS, SNEAKERS], [DRESS, HEELS]),
        ([SHIRT, JEANS], [SHIRT, JEANS, SNEAKERS]),
        ([DRESS, SNEAKERS], [SHIRT, HEELS]),
    ]
    for first, second in pairs:
        forward = compare_outfits(first, second)
        backward = compare_outfits(second, first)
        assert forward.similarity == pytest.approx(backward.similarity)
        assert forward.breakdown == backward.breakdown


def test_empty_outfit_has_zero_similarity() -> None:
    result = compare_outfits([], [SHIRT, JEANS])

    assert result.similarity == 0.0
    assert not result.is_very_similar


def test_color_match_edge_cases() -> None:
    assert color_match([], []) == 1.0
    assert color_match(["#ff0000"], []) == 0.0
    assert color_match(["#0000ff"], ["#0000fa"]) == 1.0


def test_saved_outfits_compare_like_item_lists() -> None:
    saved = Outfit.from_generated([SHIRT, JEANS, SNEAKERS], "Friday")

    assert compare_outfits(saved, [JEANS, SHIRT, SNEAKERS]).is_very_similar


def test_find_similar_returns_matches_most_similar_first() -> None:
    target = [SHIRT, JEANS, SNEAKERS]
    existing = [
        [DRESS, HEELS],
        [SHIRT, JEANS],
        [SHIRT, JEANS, SNEAKERS],
    ]

    matches = find_similar_outfits(target, existing)

    assert [match.index for match in matches] == [2, 1]
    assert matches[0].result.similarity >= matches[1].result.similarity


def test_suppress_near_duplicates_keeps_first_of_each_group() -> None:
    ranked = [[SHIRT, JEANS, SNEAKERS], [SHIRT, JEANS], [DRESS, HEELS]]

    kept, suppressed = suppress_near_duplicates(ranked)

    assert kept == [[SHIRT, JEANS, SNEAKERS], [DRESS, HEELS]]
    assert suppressed == [[SHIRT, JEANS]]


def test_exclude_similar_to_without_references_keeps_everything() -> None:
    candidates = [[SHIRT, JEANS], [DRESS, HEELS]]

    assert exclude_similar_to(candidates, []) == candidates
    assert exclude_similar_to(candidates, [[DRESS, HEELS]]) == [[SHIRT, JEANS]]


def test_fingerprint_ignores_item_order() -> None:
    assert outfit_fingerprint([SHIRT, JEANS]) == outfit_fingerprint([JEANS, SHIRT])
