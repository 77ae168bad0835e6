"""Configuration loading, request validation, instrumentation and app wiring."""

import sys
from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

sys.path.append(str(Path(__file__).resolve().parents[1]))

from engine_app.app import OutfitEngineApp  # noqa: E402
from engine_app.config import DEFAULT_SCORE_WEIGHTS, EngineConfig  # noqa: E402
from engine_app.logging_config import redact_for_log  # noqa: E402
from logic.validation import RecommendationRequest, SaveOutfitRequest  # noqa: E402
from models.clothing_item import ClothingItem, parse_raw_metadata  # noqa: E402
from models.parse_result import ParseStatus  # noqa: E402
from models.taxonomy import Occasion, Season  # noqa: E402
from tools.inventory_provider import MockInventoryProvider  # noqa: E402
from tools.observability import instrument_call  # noqa: E402
from tools.outfit_store import InMemoryOutfitStore  # noqa: E402
from tools.weather_provider import MockWeatherProvider  # noqa: E402

CONFIG_ENV_KEYS = (
    "APP_ENV",
    "APP_CONFIG_PATH",
    "MAX_CANDIDATES",
    "VERY_SIMILAR_THRESHOLD",
    "SCORE_WEIGHT_VARIETY",
    "DEFAULT_LOCATION",
    "OPENWEATHER_API_KEY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_from_env_reads_yaml_and_env_overrides(tmp_path, clean_env) -> None:
    config_file = tmp_path / "dev.yaml"
    config_file.write_text(
        "# local settings\n"
        "very_similar_threshold: 0.7\n"
        "max_candidates: 200\n"
        'default_location: "Paris"\n'
    )
    clean_env.setenv("APP_CONFIG_PATH", str(config_file))
    clean_env.setenv("MAX_CANDIDATES", "50")

    config = EngineConfig.from_env()

    assert config.very_similar_threshold == 0.7
    assert config.max_candidates == 50
    assert config.default_location == "Paris"
    assert config.weights == DEFAULT_SCORE_WEIGHTS


def test_from_env_uses_environment_directory(tmp_path, clean_env) -> None:
    (tmp_path / "staging.yaml").write_text("score_weight_variety: 0.5\n")
    clean_env.setenv("APP_ENV", "staging")
    clean_env.setenv("ENGINE_CONFIG_DIR", str(tmp_path))

    config = EngineConfig.from_env()

    assert config.environment == "staging"
    assert config.weights["variety"] == 0.5


def test_from_env_rejects_non_numeric_values(clean_env) -> None:
    clean_env.setenv("MAX_CANDIDATES", "lots")

    with pytest.raises(ValueError, match="max_candidates"):
        EngineConfig.from_env()


def test_score_weights_are_normalised() -> None:
    config = EngineConfig(weights={"color_harmony": 2.0, "variety": 2.0, "style_matching": -1.0})

    weights = config.score_weights()

    assert weights["color_harmony"] == pytest.approx(0.5)
    assert weights["variety"] == pytest.approx(0.5)
    assert weights["style_matching"] == 0.0
    assert sum(weights.values()) == pytest.approx(1.0)
    assert EngineConfig(weights={}).score_weights() == DEFAULT_SCORE_WEIGHTS


def test_request_only_marks_supplied_fields() -> None:
    options = RecommendationRequest(min_score=0.2, season="Autumn", occasion=" Work ").to_options()

    assert options.model_fields_set == {"min_score", "season", "occasion"}
    assert options.season is Season.FALL
    assert options.occasion is Occasion.WORK


def test_request_weather_payload_becomes_weather_data() -> None:
    options = RecommendationRequest(weather={"temperature": 4, "condition": "rainy"}).to_options()

    assert options.weather.condition == "rainy"
    assert options.target_season() is Season.WINTER


def test_request_rejects_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        RecommendationRequest(min_score=1.5)
    with pytest.raises(ValidationError):
        RecommendationRequest(occasion="gala")


def test_save_request_strips_blank_names() -> None:
    assert SaveOutfitRequest(name="  Date Night  ").name == "Date Night"
    assert SaveOutfitRequest(name="   ").name is None
    with pytest.raises(ValidationError):
        SaveOutfitRequest(name="x" * 81)


def test_raw_metadata_defaults_are_reported() -> None:
    result = parse_raw_metadata({"item_id": 7, "category": "shirt", "times_worn": "often", "color": "Navy"})

    assert result.status is ParseStatus.RECOVERED
    assert "name" in result.reason and "times_worn" in result.reason
    assert result.value.name == "Top"
    assert result.value.item_id == "7"
    assert result.value.color == "#000080"

    clean = parse_raw_metadata({"item_id": "a", "category": "tops", "name": "Tee"})
    assert clean.status is ParseStatus.PARSED

    with pytest.raises(ValueError):
        parse_raw_metadata({"item_id": "a"})


def test_redaction_masks_sensitive_keys() -> None:
    scrubbed = redact_for_log({"location": "Berlin", "contact": "me@example.com", "count": 3})

    assert scrubbed == {"location": "[redacted]", "contact": "[redacted-email]", "count": 3}


class _Payload(BaseModel):
    size: int


def test_instrument_call_validates_sync_kwargs() -> None:
    @instrument_call("test.sync", input_model=_Payload)
    def handler(**kwargs):
        return kwargs

    assert handler(size="3") == {"size": 3}
    with pytest.raises(ValidationError):
        handler(size="large")


@pytest.mark.asyncio
async def test_instrument_call_routes_validation_errors() -> None:
    @instrument_call("test.async", input_model=_Payload, on_validation_error=lambda exc: {"status": "invalid"})
    async def handler(**kwargs):
        return kwargs

    assert await handler(size=2) == {"size": 2}
    assert await handler(size="large") == {"status": "invalid"}


@pytest.mark.asyncio
async def test_instrument_call_reraises_failures() -> None:
    @instrument_call("test.failure")
    async def handler():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await handler()


WARDROBE = [
    ClothingItem(item_id="tee", name="White Tee", category="tops", color="#ffffff",
                 seasons=["spring", "summer"], occasions=["casual"]),
    ClothingItem(item_id="jeans", name="Jeans", category="bottoms", color="#1e3a8a",
                 seasons=["spring", "fall"], occasions=["casual"]),
    ClothingItem(item_id="sneakers", name="Sneakers", category="shoes", color="#808080",
                 seasons=["spring", "summer"], occasions=["casual"]),
    ClothingItem(item_id="blazer", name="Blazer", category="outerwear", color="#000080",
                 seasons=["fall"], occasions=["work"]),
]


def _app(items=None, weather_provider=None) -> OutfitEngineApp:
    return OutfitEngineApp(
        config=EngineConfig(regeneration_debounce_seconds=0.01, default_location="Oslo"),
        inventory=MockInventoryProvider(list(WARDROBE) if items is None else items),
        persistence=InMemoryOutfitStore(),
        weather_provider=weather_provider,
    )


@pytest.mark.asyncio
async def test_app_recommend_and_save() -> None:
    app = _app()

    session = await app.start_session()
    response = await app.recommend(min_score=0)
    saved = await app.save_current("  Friday ")

    assert session == {"status": "ok", "has_manual_outfits": False, "manual_outfits": []}
    assert response["status"] == "ok"
    assert response["outfits"]
    assert response["progress"] == 1.0
    assert saved["status"] == "ok"
    assert app.orchestrator.manual_outfits[0].name == "Friday"

    toggled = await app.toggle_favorite(saved["outfit_id"])
    assert toggled == {"status": "ok", "outfit_id": saved["outfit_id"], "is_favorite": True}
    await app.shutdown()


@pytest.mark.asyncio
async def test_app_reports_invalid_requests_and_errors() -> None:
    app = _app(items=[])

    invalid = await app.recommend(min_score=3)
    failed = await app.recommend(min_score=0)
    unsaved = await app.save_current()
    long_name = await app.save_current("x" * 100)

    assert invalid["status"] == "needs_review"
    assert invalid["details"]
    assert failed["status"] == "error"
    assert failed["outfits"] == []
    assert unsaved == {"status": "error", "message": "No outfit selected"}
    assert long_name["status"] == "needs_review"


@pytest.mark.asyncio
async def test_app_weather_uses_default_location() -> None:
    provider = MockWeatherProvider()
    app = _app(weather_provider=provider)

    response = await app.recommend_for_weather()
    occasion = await app.recommend_for_occasion("casual")

    assert provider.requests == ["Oslo"]
    assert response["status"] == "ok"
    assert occasion["status"] == "ok"
