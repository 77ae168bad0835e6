"""Application bootstrap wiring stores, providers and the orchestrator."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from agents.recommendation_agent import RecommendationOrchestrator
from engine_app.config import EngineConfig
from engine_app.logging_config import configure_logging, get_logger, log_event, operation_context
from logic.generation_state import GenerationStatus
from logic.validation import RecommendationRequest, SaveOutfitRequest, validation_failure
from models.generation import GeneratedOutfit
from tools.inventory_provider import InventoryProvider, WardrobeInventory
from tools.observability import instrument_call
from tools.outfit_store import OutfitPersistence, SQLiteOutfitStore
from tools.wardrobe_store import SQLiteWardrobeStore
from tools.weather_provider import OpenWeatherProvider, WeatherProvider


LOGGER = get_logger(__name__)


def _invalid_recommendation_request(exc: ValidationError) -> Dict[str, Any]:
    return validation_failure("Invalid recommendation request", exc)


class OutfitEngineApp:
    """Wires the recommendation engine for one user.

    Collaborators may be injected; otherwise SQLite stores and the
    OpenWeather provider are built from :class:`EngineConfig`.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        user_id: str = "default",
        inventory: InventoryProvider | None = None,
        persistence: OutfitPersistence | None = None,
        weather_provider: WeatherProvider | None = None,
    ) -> None:
        self.config = config or EngineConfig.from_env()
        configure_logging(self.config.log_level)
        self.user_id = user_id

        if inventory is None:
            self.wardrobe_store = SQLiteWardrobeStore(self.config.wardrobe_db_path or "data/wardrobe.db")
            inventory = WardrobeInventory(self.wardrobe_store, user_id=user_id)
        if persistence is None:
            persistence = SQLiteOutfitStore(self.config.outfit_db_path or "data/outfits.db", user_id=user_id)
        if weather_provider is None and self.config.weather_api_key:
            weather_provider = OpenWeatherProvider(api_key=self.config.weather_api_key)

        self.orchestrator = RecommendationOrchestrator(
            inventory=inventory,
            persistence=persistence,
            weather_provider=weather_provider,
            config=self.config,
        )

    async def start_session(self) -> Dict[str, Any]:
        has_manual = await self.orchestrator.start_session()
        return {
            "status": "ok",
            "has_manual_outfits": has_manual,
            "manual_outfits": [outfit.to_dict() for outfit in self.orchestrator.manual_outfits],
        }

    def _response(self, outfits: List[GeneratedOutfit]) -> Dict[str, Any]:
        state = self.orchestrator.state
        if state.status is GenerationStatus.ERROR:
            return {"status": "error", "message": state.error, "outfits": []}
        return {
            "status": "ok",
            "outfits": [outfit.to_dict() for outfit in outfits],
            "selected_index": state.current_index,
            "progress": state.progress,
        }

    @instrument_call(
        "app.recommend",
        input_model=RecommendationRequest,
        on_validation_error=_invalid_recommendation_request,
    )
    async def recommend(self, **payload: Any) -> Dict[str, Any]:
        """Validate a loose options payload and run a recommendation pass."""

        options = RecommendationRequest.model_validate(payload).to_options()
        with operation_context("app:recommend") as correlation_id:
            outfits = await self.orchestrator.generate_recommendations(options)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_completed",
                method="recommend",
                correlation_id=correlation_id,
                outfit_count=len(outfits),
            )
            return self._response(outfits)

    async def recommend_for_weather(self, location: Optional[str] = None) -> Dict[str, Any]:
        outfits = await self.orchestrator.weather_based_recommendations(location=location)
        return self._response(outfits)

    async def recommend_for_occasion(self, occasion: str) -> Dict[str, Any]:
        outfits = await self.orchestrator.occasion_based_recommendations(occasion)
        return self._response(outfits)

    async def save_current(self, name: Optional[str] = None) -> Dict[str, Any]:
        try:
            request = SaveOutfitRequest.model_validate({"name": name})
        except ValidationError as exc:
            log_event(
                LOGGER,
                level=logging.WARNING,
                event="app_request_invalid",
                method="save_current",
                details=str(exc),
            )
            return validation_failure("Invalid outfit name", exc)

        result = await self.orchestrator.save_current_outfit(request.name)
        if not result.ok:
            return {"status": "error", "message": result.error}
        return {"status": "ok", "outfit_id": result.outfit_id}

    async def toggle_favorite(self, outfit_id: str) -> Dict[str, Any]:
        result = await self.orchestrator.toggle_outfit_favorite(outfit_id)
        if not result.ok:
            return {"status": "error", "message": result.error}
        return {"status": "ok", "outfit_id": outfit_id, "is_favorite": result.is_favorite}

    async def shutdown(self) -> None:
        await self.orchestrator.aclose()


__all__ = ["OutfitEngineApp"]
