"""Configuration helpers for the outfit recommendation engine."""

from dataclasses import dataclass, field
from pathlib import Path
import os
from typing import Dict, Optional

from models.generation import SCORE_FIELDS as SCORE_COMPONENTS

DEFAULT_SCORE_WEIGHTS: Dict[str, float] = {
    "color_harmony": 0.2,
    "style_matching": 0.2,
    "occasion_suitability": 0.2,
    "season_suitability": 0.15,
    "weather_suitability": 0.15,
    "user_preference": 0.05,
    "variety": 0.05,
}


@dataclass
class NamingProbabilities:
    """Chances used by the outfit namer's decision tree."""

    season_modifier: float = 0.4
    color_modifier: float = 0.3
    style_modifier: float = 0.2
    keep_modifier: float = 0.7
    modifier_first: float = 0.7


@dataclass
class EngineConfig:
    """Configuration values for the recommendation engine.

    Scoring weights and naming probabilities are tunable rather than fixed
    law; they only need to stay non-negative so totals remain bounded.
    """

    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_SCORE_WEIGHTS))
    naming: NamingProbabilities = field(default_factory=NamingProbabilities)
    very_similar_threshold: float = 0.6
    max_candidates: int = 1000
    regeneration_debounce_seconds: float = 0.5
    recent_outfit_expiry_days: float = 7.0
    wardrobe_db_path: Optional[str] = None
    outfit_db_path: Optional[str] = None
    weather_api_key: Optional[str] = None
    default_location: Optional[str] = None
    log_level: str = "INFO"
    environment: str | None = None

    def score_weights(self) -> Dict[str, float]:
        """Return non-negative weights for every component, normalised to sum to 1."""

        cleaned = {name: max(0.0, float(self.weights.get(name, 0.0))) for name in SCORE_COMPONENTS}
        total = sum(cleaned.values())
        if total <= 0:
            return dict(DEFAULT_SCORE_WEIGHTS)
        return {name: value / total for name, value in cleaned.items()}

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is overridden key by key by upper-cased environment
        variables.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("ENGINE_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        def get_float(key: str, default: float) -> float:
            raw = get_value(key)
            if raw is None or raw == "":
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ValueError(f"Config value '{key}' must be numeric, got {raw!r}") from exc

        weights = {
            name: get_float(f"score_weight_{name}", DEFAULT_SCORE_WEIGHTS[name]) for name in SCORE_COMPONENTS
        }
        defaults = NamingProbabilities()
        naming = NamingProbabilities(
            season_modifier=get_float("naming_season_probability", defaults.season_modifier),
            color_modifier=get_float("naming_color_probability", defaults.color_modifier),
            style_modifier=get_float("naming_style_probability", defaults.style_modifier),
            keep_modifier=get_float("naming_keep_modifier_probability", defaults.keep_modifier),
            modifier_first=get_float("naming_modifier_first_probability", defaults.modifier_first),
        )

        return cls(
            weights=weights,
            naming=naming,
            very_similar_threshold=get_float("very_similar_threshold", 0.6),
            max_candidates=int(get_float("max_candidates", 1000)),
            regeneration_debounce_seconds=get_float("regeneration_debounce_seconds", 0.5),
            recent_outfit_expiry_days=get_float("recent_outfit_expiry_days", 7.0),
            wardrobe_db_path=get_value("wardrobe_db_path"),
            outfit_db_path=get_value("outfit_db_path"),
            weather_api_key=get_value("openweather_api_key"),
            default_location=get_value("default_location"),
            log_level=str(get_value("log_level", "INFO") or "INFO"),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
