"""Recommendation orchestrator lifecycle, persistence actions and regeneration."""

import asyncio
import sys
from pathlib import Path
from typing import List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from agents.recommendation_agent import (  # noqa: E402
    NO_OUTFIT_SELECTED,
    RecommendationOrchestrator,
    default_scope,
    occasion_scope,
    resolve_options,
    weather_scope,
)
from engine_app.config import EngineConfig  # noqa: E402
from logic.errors import (  # noqa: E402
    GENERATION_CANCELLED_MESSAGE,
    GENERATION_FAILED_MESSAGE,
    NOT_ENOUGH_ITEMS_MESSAGE,
)
from logic.generation_state import GenerationStatus  # noqa: E402
from models.clothing_item import ClothingItem  # noqa: E402
from models.generation import GenerationOptions, WeatherData  # noqa: E402
from models.outfit import Outfit  # noqa: E402
from models.taxonomy import Occasion, Season  # noqa: E402
from tools.inventory_provider import InventoryProvider, MockInventoryProvider  # noqa: E402
from tools.outfit_store import InMemoryOutfitStore  # noqa: E402
from tools.weather_provider import MockWeatherProvider  # noqa: E402

ANY_SCORE = GenerationOptions(min_score=0)


def _wardrobe() -> List[ClothingItem]:
    return [
        ClothingItem(item_id="top-1", name="Navy Shirt", category="tops", color="#1e3a8a",
                     seasons=["fall", "winter"], occasions=["work"]),
        ClothingItem(item_id="top-2", name="White Tee", category="tops", color="#ffffff",
                     seasons=["summer", "spring"], occasions=["casual"]),
        ClothingItem(item_id="bottom-1", name="Charcoal Trousers", category="bottoms", color="#36454f",
                     seasons=["fall", "winter"], occasions=["work"]),
        ClothingItem(item_id="bottom-2", name="Denim Shorts", category="bottoms", color="#4682b4",
                     seasons=["summer"], occasions=["casual"]),
        ClothingItem(item_id="shoes-1", name="Oxfords", category="shoes", color="#8b4513",
                     seasons=["fall", "winter"], occasions=["work"]),
        ClothingItem(item_id="shoes-2", name="Sneakers", category="shoes", color="#ffffff",
                     seasons=["summer", "spring"], occasions=["casual"]),
        ClothingItem(item_id="coat-1", name="Wool Coat", category="outerwear", color="#000000",
                     seasons=["winter"], occasions=["work", "casual"]),
    ]


def _orchestrator(items=None, store=None, **kwargs) -> RecommendationOrchestrator:
    return RecommendationOrchestrator(
        inventory=MockInventoryProvider(_wardrobe() if items is None else items),
        persistence=store or InMemoryOutfitStore(),
        config=kwargs.pop("config", EngineConfig(regeneration_debounce_seconds=0.01)),
        **kwargs,
    )


class BlockingInventory(InventoryProvider):
    def __init__(self, items: List[ClothingItem]) -> None:
        self.items = items
        self.release = asyncio.Event()
        self.calls = 0

    async def list_items(self) -> List[ClothingItem]:
        self.calls += 1
        await self.release.wait()
        return list(self.items)


class BrokenInventory(InventoryProvider):
    async def list_items(self) -> List[ClothingItem]:
        raise RuntimeError("inventory offline")


def test_scope_defaults_scale_with_wardrobe_size() -> None:
    assert default_scope(4) == {"use_all_items": True, "max_results": 15, "min_score": 0.45}
    assert default_scope(100)["max_results"] == 75

    weather = WeatherData(temperature=2, condition="snowy")
    scoped = weather_scope(weather)(50)
    assert scoped["season"] is Season.WINTER
    assert scoped["weather"] is weather
    assert scoped["max_results"] == 30
    assert scoped["min_score"] == 0.4

    occasion = occasion_scope(Occasion.WORK)(3)
    assert occasion["occasion"] is Occasion.WORK
    assert occasion["max_results"] == 6
    assert occasion["min_score"] == 0.5


def test_explicit_options_win_over_scope_defaults() -> None:
    resolved = resolve_options(GenerationOptions(min_score=0.1), default_scope(10))

    assert resolved.min_score == 0.1
    assert resolved.use_all_items is True
    assert resolved.max_results == 15
    assert resolve_options(None, default_scope(10)).min_score == 0.45


@pytest.mark.asyncio
async def test_generation_populates_ready_state() -> None:
    orchestrator = _orchestrator()

    outfits = await orchestrator.generate_recommendations(ANY_SCORE)

    assert outfits
    assert orchestrator.state.status is GenerationStatus.READY
    assert orchestrator.state.progress == 1.0
    assert list(orchestrator.outfits) == outfits
    assert orchestrator.current_outfit is outfits[0]


@pytest.mark.asyncio
async def test_second_pass_while_generating_is_ignored() -> None:
    inventory = BlockingInventory(_wardrobe())
    orchestrator = RecommendationOrchestrator(inventory=inventory, persistence=InMemoryOutfitStore())

    first = asyncio.create_task(orchestrator.generate_recommendations(ANY_SCORE))
    await asyncio.sleep(0)
    assert orchestrator.state.is_generating

    assert await orchestrator.generate_recommendations(ANY_SCORE) == []
    assert await orchestrator.clear_and_regenerate() == []

    inventory.release.set()
    outfits = await first

    assert outfits
    assert inventory.calls == 1
    assert orchestrator.state.status is GenerationStatus.READY


@pytest.mark.asyncio
async def test_cancelled_pass_does_not_block_later_passes() -> None:
    inventory = BlockingInventory(_wardrobe())
    orchestrator = RecommendationOrchestrator(inventory=inventory, persistence=InMemoryOutfitStore())

    pending = asyncio.create_task(orchestrator.generate_recommendations(ANY_SCORE))
    await asyncio.sleep(0)
    assert orchestrator.state.is_generating

    pending.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert orchestrator.state.status is GenerationStatus.ERROR
    assert orchestrator.state.error == GENERATION_CANCELLED_MESSAGE

    inventory.release.set()
    outfits = await orchestrator.generate_recommendations(ANY_SCORE)

    assert outfits
    assert inventory.calls == 2
    assert orchestrator.state.status is GenerationStatus.READY


@pytest.mark.asyncio
async def test_progress_listener_sees_each_stage() -> None:
    orchestrator = _orchestrator()
    seen: List[float] = []
    orchestrator.add_progress_listener(seen.append)

    await orchestrator.generate_recommendations(ANY_SCORE)

    assert seen == [0.2, 0.5, 0.8, 1.0]

    orchestrator.remove_progress_listener(seen.append)
    await orchestrator.generate_recommendations(ANY_SCORE)
    assert len(seen) == 4


@pytest.mark.asyncio
async def test_single_item_wardrobe_reports_not_enough_items() -> None:
    orchestrator = _orchestrator(items=_wardrobe()[:1])

    outfits = await orchestrator.generate_recommendations(ANY_SCORE)

    assert outfits == []
    assert orchestrator.state.status is GenerationStatus.ERROR
    assert orchestrator.state.error == NOT_ENOUGH_ITEMS_MESSAGE
    assert orchestrator.state.progress == 0.0
    assert orchestrator.outfits == ()


@pytest.mark.asyncio
async def test_unexpected_failure_reports_generic_error() -> None:
    orchestrator = RecommendationOrchestrator(inventory=BrokenInventory(), persistence=InMemoryOutfitStore())

    outfits = await orchestrator.generate_recommendations(ANY_SCORE)

    assert outfits == []
    assert orchestrator.state.status is GenerationStatus.ERROR
    assert orchestrator.state.error == GENERATION_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_navigation_wraps_around() -> None:
    orchestrator = _orchestrator()
    outfits = await orchestrator.generate_recommendations(ANY_SCORE)
    count = len(outfits)

    assert orchestrator.previous_outfit() == count - 1
    assert orchestrator.next_outfit() == 0
    assert orchestrator.select_outfit(count + 1) == 1 % count


@pytest.mark.asyncio
async def test_save_without_name_generates_unique_name() -> None:
    store = InMemoryOutfitStore()
    orchestrator = _orchestrator(store=store)
    await orchestrator.generate_recommendations(ANY_SCORE)

    first = await orchestrator.save_current_outfit()
    orchestrator.next_outfit()
    second = await orchestrator.save_current_outfit()

    assert first.ok and second.ok
    names = [outfit.name for outfit in orchestrator.manual_outfits]
    assert len(names) == 2
    assert len(set(names)) == 2
    assert set(names) <= orchestrator.used_names
    assert orchestrator.has_manual_outfits
    assert len(await store.load_manual_outfits()) == 2


@pytest.mark.asyncio
async def test_save_uses_given_name() -> None:
    orchestrator = _orchestrator()
    await orchestrator.generate_recommendations(ANY_SCORE)

    result = await orchestrator.save_current_outfit("  Monday Meeting ")

    assert result.ok
    assert orchestrator.manual_outfits[0].name == "Monday Meeting"
    assert orchestrator.manual_outfits[0].outfit_id == result.outfit_id


@pytest.mark.asyncio
async def test_failed_save_leaves_state_untouched() -> None:
    orchestrator = _orchestrator(store=InMemoryOutfitStore(fail_writes=True))
    await orchestrator.generate_recommendations(ANY_SCORE)
    before = orchestrator.state

    result = await orchestrator.save_current_outfit()

    assert not result.ok
    assert "unavailable" in result.error
    assert orchestrator.manual_outfits == ()
    assert orchestrator.used_names == frozenset()
    assert orchestrator.state is before


@pytest.mark.asyncio
async def test_save_without_selection_returns_error() -> None:
    orchestrator = _orchestrator()

    result = await orchestrator.save_current_outfit()

    assert result.error == NO_OUTFIT_SELECTED


@pytest.mark.asyncio
async def test_favorite_items_are_withheld_after_regeneration() -> None:
    orchestrator = _orchestrator()
    await orchestrator.generate_recommendations(ANY_SCORE)
    saved = await orchestrator.save_current_outfit("Keeper")
    reserved = set(orchestrator.manual_outfits[0].item_ids)

    toggled = await orchestrator.toggle_outfit_favorite(saved.outfit_id)

    assert toggled.ok and toggled.is_favorite
    assert orchestrator.has_pending_regeneration
    assert orchestrator.reserved_item_ids() == reserved

    await orchestrator.flush_pending_regeneration()

    assert not orchestrator.has_pending_regeneration
    for outfit in orchestrator.outfits:
        assert not reserved & set(outfit.item_ids)


@pytest.mark.asyncio
async def test_debounced_regeneration_runs_once() -> None:
    store = InMemoryOutfitStore()
    inventory = MockInventoryProvider(_wardrobe())
    orchestrator = RecommendationOrchestrator(
        inventory=inventory,
        persistence=store,
        config=EngineConfig(regeneration_debounce_seconds=0.01),
    )
    await orchestrator.generate_recommendations(ANY_SCORE)
    saved = await orchestrator.save_current_outfit("Twice")

    await orchestrator.toggle_outfit_favorite(saved.outfit_id)
    await orchestrator.toggle_outfit_favorite(saved.outfit_id)
    await asyncio.sleep(0.1)

    assert inventory.calls == 2
    assert not orchestrator.has_pending_regeneration
    assert orchestrator.favorite_outfits() == []
    await orchestrator.aclose()


@pytest.mark.asyncio
async def test_toggle_unknown_outfit_reports_error() -> None:
    orchestrator = _orchestrator()

    result = await orchestrator.toggle_outfit_favorite("missing")

    assert not result.ok
    assert "not found" in result.error
    assert not orchestrator.has_pending_regeneration


@pytest.mark.asyncio
async def test_start_session_loads_saved_outfits() -> None:
    items = _wardrobe()
    saved = Outfit.from_generated(items[:3], "Office Classic")
    orchestrator = _orchestrator(store=InMemoryOutfitStore([saved]))

    assert await orchestrator.start_session() is True

    assert [outfit.name for outfit in orchestrator.manual_outfits] == ["Office Classic"]
    assert "Office Classic" in orchestrator.used_names


@pytest.mark.asyncio
async def test_start_session_without_saved_outfits() -> None:
    orchestrator = _orchestrator()

    assert await orchestrator.start_session() is False
    assert orchestrator.manual_outfits == ()


@pytest.mark.asyncio
async def test_weather_pass_uses_provider_conditions() -> None:
    provider = MockWeatherProvider(WeatherData(temperature=3, condition="snowy"))
    orchestrator = _orchestrator(weather_provider=provider)

    outfits = await orchestrator.weather_based_recommendations(location="Oslo")

    assert provider.requests == ["Oslo"]
    assert orchestrator.state.status is GenerationStatus.READY
    for outfit in outfits:
        assert all(Season.WINTER in item.seasons for item in outfit.items)


@pytest.mark.asyncio
async def test_weather_pass_requires_a_source() -> None:
    orchestrator = _orchestrator()

    with pytest.raises(ValueError):
        await orchestrator.weather_based_recommendations()

    with_provider = _orchestrator(weather_provider=MockWeatherProvider())
    with pytest.raises(ValueError):
        await with_provider.weather_based_recommendations()


@pytest.mark.asyncio
async def test_occasion_pass_only_uses_matching_items() -> None:
    orchestrator = _orchestrator()

    await orchestrator.occasion_based_recommendations("work")

    assert orchestrator.state.status is GenerationStatus.READY
    for outfit in orchestrator.outfits:
        assert all(Occasion.WORK in item.occasions for item in outfit.items)
