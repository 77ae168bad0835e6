"""Recommendation orchestrator owning the generation lifecycle."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set, Tuple

from engine_app.config import EngineConfig
from engine_app.logging_config import get_logger, log_event, operation_context
from logic.candidate_generator import generate_outfits
from logic.errors import (
    GENERATION_CANCELLED_MESSAGE,
    GENERATION_FAILED_MESSAGE,
    NOT_ENOUGH_ITEMS_MESSAGE,
    InsufficientItemsError,
    PersistenceError,
)
from logic.generation_state import (
    GenerationState,
    begin_generation,
    clear_outfits,
    complete_generation,
    current_outfit,
    fail_generation,
    next_index,
    previous_index,
    report_progress,
    select_index,
)
from logic.outfit_naming import generate_outfit_name
from logic.outfit_scoring import GenerationHistory, ScoringContext
from models.generation import GeneratedOutfit, GenerationOptions, WeatherData
from models.outfit import Outfit
from models.taxonomy import Occasion
from tools.inventory_provider import InventoryProvider
from tools.outfit_store import FavoriteToggleResult, OutfitPersistence, SaveResult
from tools.weather_provider import WeatherProvider

LOGGER = get_logger(__name__)

ProgressListener = Callable[[float], None]
ScopeDefaults = Callable[[int], Dict[str, Any]]

LOADED_PROGRESS = 0.2
PREPARED_PROGRESS = 0.5
SCORED_PROGRESS = 0.8
NO_OUTFIT_SELECTED = "No outfit selected"


def default_scope(item_count: int) -> Dict[str, Any]:
    """Coverage pass sized to the wardrobe."""

    return {
        "use_all_items": True,
        "max_results": min(75, max(15, int(item_count * 1.5))),
        "min_score": 0.45,
    }


def weather_scope(weather: WeatherData) -> ScopeDefaults:
    def defaults(item_count: int) -> Dict[str, Any]:
        scoped = default_scope(item_count)
        scoped.update(
            season=weather.implied_season,
            weather=weather,
            max_results=min(30, max(8, item_count)),
            min_score=0.4,
        )
        return scoped

    return defaults


def occasion_scope(occasion: Occasion) -> ScopeDefaults:
    def defaults(item_count: int) -> Dict[str, Any]:
        scoped = default_scope(item_count)
        scoped.update(occasion=occasion, max_results=min(20, max(6, item_count)), min_score=0.5)
        return scoped

    return defaults


def resolve_options(options: Optional[GenerationOptions], defaults: Dict[str, Any]) -> GenerationOptions:
    """Apply scope defaults to every field the caller did not set explicitly."""

    if options is None:
        return GenerationOptions(**defaults)
    missing = {key: value for key, value in defaults.items() if key not in options.model_fields_set}
    return options.model_copy(update=missing)


class RecommendationOrchestrator:
    """Generates ephemeral outfit suggestions and manages saved outfits.

    Suggestions only live in :attr:`state`; nothing generated is persisted
    until :meth:`save_current_outfit` is called. Items belonging to favorite
    saved outfits are withheld from every pass.
    """

    def __init__(
        self,
        inventory: InventoryProvider,
        persistence: OutfitPersistence,
        weather_provider: WeatherProvider | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.inventory = inventory
        self.persistence = persistence
        self.weather_provider = weather_provider
        self.config = config or EngineConfig()
        self.clock = clock
        self.history = GenerationHistory(expiry_days=self.config.recent_outfit_expiry_days)
        self.has_manual_outfits = False
        self._state = GenerationState()
        self._manual_outfits: List[Outfit] = []
        self._used_names: FrozenSet[str] = frozenset()
        self._listeners: List[ProgressListener] = []
        self._last_options: Optional[GenerationOptions] = None
        self._last_scope: ScopeDefaults = default_scope
        self._pending_regeneration: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def outfits(self) -> Tuple[GeneratedOutfit, ...]:
        return self._state.outfits

    @property
    def manual_outfits(self) -> Tuple[Outfit, ...]:
        return tuple(self._manual_outfits)

    @property
    def used_names(self) -> FrozenSet[str]:
        return self._used_names

    @property
    def current_outfit(self) -> Optional[GeneratedOutfit]:
        return current_outfit(self._state)

    @property
    def has_pending_regeneration(self) -> bool:
        return self._pending_regeneration is not None and not self._pending_regeneration.done()

    def favorite_outfits(self) -> List[Outfit]:
        return [outfit for outfit in self._manual_outfits if outfit.is_favorite]

    def reserved_item_ids(self) -> Set[str]:
        """Ids of items committed to favorite saved outfits."""

        return {item_id for outfit in self.favorite_outfits() for item_id in outfit.item_ids}

    def add_progress_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_progress_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _report(self, progress: float) -> None:
        self._state = report_progress(self._state, progress)
        for listener in list(self._listeners):
            listener(self._state.progress)

    # ------------------------------------------------------------------
    # Manual outfits
    # ------------------------------------------------------------------
    async def start_session(self) -> bool:
        """Check for saved outfits and load them when present."""

        with operation_context("agent:recommendations.start_session") as correlation_id:
            try:
                self.has_manual_outfits = await self.persistence.has_manual_outfits()
            except PersistenceError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "manual_outfit_check_failed",
                    correlation_id=correlation_id,
                    error=str(exc),
                )
                return False
            if self.has_manual_outfits:
                await self.refresh_manual_outfits()
            log_event(
                LOGGER,
                logging.INFO,
                "session_started",
                correlation_id=correlation_id,
                manual_outfits=len(self._manual_outfits),
            )
            return self.has_manual_outfits

    async def refresh_manual_outfits(self) -> List[Outfit]:
        """Reload saved outfits; on failure the previously loaded ones are kept."""

        try:
            outfits = await self.persistence.load_manual_outfits()
        except PersistenceError as exc:
            log_event(LOGGER, logging.WARNING, "manual_outfit_load_failed", error=str(exc))
            return list(self._manual_outfits)
        self._manual_outfits = list(outfits)
        self.has_manual_outfits = bool(outfits)
        self._used_names = self._used_names | {outfit.name for outfit in outfits}
        return list(self._manual_outfits)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    async def _run_pass(
        self, options: Optional[GenerationOptions], scope: ScopeDefaults, operation: str
    ) -> List[GeneratedOutfit]:
        if self._state.is_generating:
            LOGGER.info("Generation already in progress, skipping %s", operation)
            return []

        self._state = begin_generation(self._state)
        self._last_options = options
        self._last_scope = scope
        with operation_context(f"agent:recommendations.{operation}") as correlation_id:
            log_event(LOGGER, logging.INFO, "generation_started", operation=operation, correlation_id=correlation_id)
            try:
                items = await self.inventory.list_items()
                self._report(LOADED_PROGRESS)

                reserved = self.reserved_item_ids()
                pool = [item for item in items if item.item_id not in reserved]
                resolved = resolve_options(options, scope(len(pool)))
                now = self.clock()
                self.history.prune(now)
                context = ScoringContext(
                    options=resolved,
                    weights=self.config.score_weights(),
                    history=self.history,
                    now=now,
                )
                self._report(PREPARED_PROGRESS)

                result = generate_outfits(
                    pool,
                    context,
                    favorites=self.favorite_outfits(),
                    max_candidates=self.config.max_candidates,
                    similarity_threshold=self.config.very_similar_threshold,
                )
                self._report(SCORED_PROGRESS)
            except asyncio.CancelledError:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "generation_cancelled",
                    correlation_id=correlation_id,
                    operation=operation,
                )
                self._state = fail_generation(self._state, GENERATION_CANCELLED_MESSAGE)
                raise
            except InsufficientItemsError as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "generation_insufficient_items",
                    correlation_id=correlation_id,
                    available=exc.available,
                    required=exc.required,
                )
                self._state = fail_generation(self._state, NOT_ENOUGH_ITEMS_MESSAGE)
                return []
            except Exception:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "generation_failed",
                    correlation_id=correlation_id,
                    operation=operation,
                    exc_info=True,
                )
                self._state = fail_generation(self._state, GENERATION_FAILED_MESSAGE)
                return []

            self.history.record((outfit.key for outfit in result.outfits), now)
            self._state = complete_generation(self._state, result.outfits)
            for listener in list(self._listeners):
                listener(self._state.progress)
            log_event(
                LOGGER,
                logging.INFO,
                "generation_completed",
                correlation_id=correlation_id,
                operation=operation,
                reserved_items=len(reserved),
                diagnostics=result.diagnostics,
            )
            return list(result.outfits)

    async def generate_recommendations(self, options: GenerationOptions | None = None) -> List[GeneratedOutfit]:
        """Run one pass; returns ``[]`` without side effects while another is in flight."""

        return await self._run_pass(options, default_scope, "generate")

    async def clear_and_regenerate(self) -> List[GeneratedOutfit]:
        """Discard the current suggestions and repeat the last pass."""

        if self._state.is_generating:
            return []
        self._state = clear_outfits(self._state)
        return await self._run_pass(self._last_options, self._last_scope, "regenerate")

    async def weather_based_recommendations(
        self, weather: WeatherData | None = None, location: str | None = None
    ) -> List[GeneratedOutfit]:
        """Generate for given conditions, or for the provider's current weather."""

        if weather is None:
            if self.weather_provider is None:
                raise ValueError("weather data or a weather provider is required")
            place = location or self.config.default_location
            if not place:
                raise ValueError("location is required to look up the weather")
            lookup = await asyncio.to_thread(self.weather_provider.get_current_weather, place)
            if lookup.is_degraded:
                LOGGER.warning("Generating with degraded weather", extra={"reason": lookup.reason})
            weather = lookup.value
        return await self._run_pass(None, weather_scope(weather), "weather")

    async def occasion_based_recommendations(self, occasion: Occasion | str) -> List[GeneratedOutfit]:
        return await self._run_pass(None, occasion_scope(Occasion(occasion)), "occasion")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def select_outfit(self, index: int) -> int:
        self._state = select_index(self._state, index)
        return self._state.current_index

    def next_outfit(self) -> int:
        self._state = next_index(self._state)
        return self._state.current_index

    def previous_outfit(self) -> int:
        self._state = previous_index(self._state)
        return self._state.current_index

    # ------------------------------------------------------------------
    # Persistence actions
    # ------------------------------------------------------------------
    async def save_current_outfit(self, name: str | None = None) -> SaveResult:
        """Persist the selected suggestion, naming it when no name is given."""

        selected = self.current_outfit
        if selected is None:
            return SaveResult(error=NO_OUTFIT_SELECTED)

        used_names = self._used_names | {outfit.name for outfit in self._manual_outfits}
        if name and name.strip():
            outfit_name = name.strip()
        else:
            outfit_name = generate_outfit_name(
                selected.items, used_names, self.config.naming, self.clock
            ).name

        outfit = Outfit.from_generated(selected.items, outfit_name)
        with operation_context("agent:recommendations.save_current_outfit") as correlation_id:
            result = await self.persistence.save_outfit(outfit)
            if not result.ok:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "outfit_save_failed",
                    correlation_id=correlation_id,
                    error=result.error,
                )
                return result
            self._manual_outfits.append(outfit)
            self.has_manual_outfits = True
            self._used_names = used_names | {outfit_name}
            log_event(
                LOGGER,
                logging.INFO,
                "outfit_saved",
                correlation_id=correlation_id,
                outfit_id=result.outfit_id,
                item_count=len(outfit.items),
            )
            return result

    async def toggle_outfit_favorite(self, outfit_id: str) -> FavoriteToggleResult:
        """Flip a saved outfit's favorite flag and schedule a fresh pass."""

        result = await self.persistence.toggle_favorite(outfit_id)
        if not result.ok:
            log_event(LOGGER, logging.WARNING, "favorite_toggle_failed", outfit_id=outfit_id, error=result.error)
            return result

        self._manual_outfits = [
            replace(outfit, is_favorite=result.is_favorite) if outfit.outfit_id == outfit_id else outfit
            for outfit in self._manual_outfits
        ]
        log_event(
            LOGGER,
            logging.INFO,
            "favorite_toggled",
            outfit_id=outfit_id,
            is_favorite=result.is_favorite,
            reserved_items=len(self.reserved_item_ids()),
        )
        self._schedule_regeneration()
        return result

    def _schedule_regeneration(self) -> None:
        if self.has_pending_regeneration:
            self._pending_regeneration.cancel()
        self._pending_regeneration = asyncio.create_task(self._debounced_regeneration())

    async def _debounced_regeneration(self) -> None:
        await asyncio.sleep(self.config.regeneration_debounce_seconds)
        if self._pending_regeneration is asyncio.current_task():
            self._pending_regeneration = None
        await self.clear_and_regenerate()

    async def flush_pending_regeneration(self) -> List[GeneratedOutfit]:
        """Run a scheduled regeneration now instead of waiting for its timer."""

        if not self.has_pending_regeneration:
            return []
        self._pending_regeneration.cancel()
        self._pending_regeneration = None
        return await self.clear_and_regenerate()

    async def aclose(self) -> None:
        if self.has_pending_regeneration:
            self._pending_regeneration.cancel()
        self._pending_regeneration = None


__all__ = [
    "RecommendationOrchestrator",
    "default_scope",
    "weather_scope",
    "occasion_scope",
    "resolve_options",
]
