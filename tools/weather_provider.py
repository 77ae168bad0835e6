"""Weather provider abstractions and implementations."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

import requests
from pydantic import BaseModel, Field, ValidationError

from models.generation import WeatherData
from models.parse_result import ParseResult

LOGGER = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 10 * 60
WINDY_THRESHOLD_KMH = 40.0
# mm/h of rain or snow treated as fully wet
HEAVY_PRECIPITATION_MM = 5.0

_CONDITION_MAP = {
    "clear": "clear",
    "clouds": "cloudy",
    "mist": "cloudy",
    "fog": "cloudy",
    "haze": "cloudy",
    "smoke": "cloudy",
    "rain": "rainy",
    "drizzle": "rainy",
    "thunderstorm": "rainy",
    "snow": "snowy",
    "squall": "windy",
    "tornado": "windy",
}


class _WeatherCondition(BaseModel):
    main: str = "Clear"
    description: str = "unknown"


class _Main(BaseModel):
    temp: float
    humidity: float = 50.0


class _Wind(BaseModel):
    speed: float = 0.0


class _Precipitation(BaseModel):
    one_hour: float = Field(default=0.0, alias="1h")


class _CurrentWeatherResponse(BaseModel):
    main: _Main
    weather: List[_WeatherCondition] = []
    wind: _Wind = _Wind()
    rain: Optional[_Precipitation] = None
    snow: Optional[_Precipitation] = None


class WeatherProvider(ABC):
    """Abstract weather provider interface."""

    @abstractmethod
    def get_current_weather(self, location: str) -> ParseResult[WeatherData]:
        """Return current conditions, degraded to a fallback when unavailable."""


class OpenWeatherProvider(WeatherProvider):
    """OpenWeather provider with schema validation, caching and graceful fallbacks."""

    base_url = "https://api.openweathermap.org/data/2.5/weather"

    def __init__(
        self,
        api_key: str | None = None,
        timeout_seconds: float = 5.0,
        units: str = "metric",
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.units = units
        self.cache_ttl_seconds = cache_ttl_seconds
        self.clock = clock
        self._cache: Dict[str, Tuple[float, WeatherData]] = {}

    def _fallback_weather(self, reason: str) -> ParseResult[WeatherData]:
        LOGGER.warning("Using fallback weather", extra={"reason": reason})
        return ParseResult.fallback(WeatherData(temperature=15.0, condition="clear"), reason)

    @staticmethod
    def _condition(parsed: _CurrentWeatherResponse, wind_kmh: float) -> str:
        main = parsed.weather[0].main.strip().lower() if parsed.weather else "clear"
        condition = _CONDITION_MAP.get(main, "cloudy")
        if condition in ("clear", "cloudy") and wind_kmh >= WINDY_THRESHOLD_KMH:
            return "windy"
        return condition

    def _to_weather(self, parsed: _CurrentWeatherResponse) -> WeatherData:
        wind_kmh = parsed.wind.speed * 3.6
        millimetres = 0.0
        if parsed.rain is not None:
            millimetres = parsed.rain.one_hour
        elif parsed.snow is not None:
            millimetres = parsed.snow.one_hour
        return WeatherData(
            temperature=round(parsed.main.temp),
            condition=self._condition(parsed, wind_kmh),
            precipitation=min(1.0, millimetres / HEAVY_PRECIPITATION_MM),
            humidity=parsed.main.humidity / 100.0,
            wind_speed=round(wind_kmh, 1),
        )

    def get_current_weather(self, location: str) -> ParseResult[WeatherData]:
        if not location:
            raise ValueError("location is required for weather lookups")

        cache_key = location.strip().lower()
        cached = self._cache.get(cache_key)
        if cached and cached[0] > self.clock():
            return ParseResult.parsed(cached[1])

        if not self.api_key:
            return self._fallback_weather("missing_api_key")

        LOGGER.info("Fetching current weather", extra={"location": location})
        params = {"q": location, "appid": self.api_key, "units": self.units}

        try:
            response = requests.get(self.base_url, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            parsed = _CurrentWeatherResponse.model_validate(response.json())
        except (requests.Timeout, requests.RequestException) as exc:
            LOGGER.error("Weather API unreachable", exc_info=exc)
            return self._fallback_weather("request_error")
        except ValidationError as exc:
            LOGGER.error("Weather payload schema validation failed", exc_info=exc)
            return self._fallback_weather("schema_validation")
        except ValueError as exc:
            LOGGER.error("Weather payload is not JSON", exc_info=exc)
            return self._fallback_weather("invalid_json")

        weather = self._to_weather(parsed)
        self._cache[cache_key] = (self.clock() + self.cache_ttl_seconds, weather)
        return ParseResult.parsed(weather)

    def clear_cache(self) -> None:
        self._cache.clear()


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for tests."""

    def __init__(self, weather: WeatherData | None = None) -> None:
        self.weather = weather or WeatherData(temperature=20.0, condition="clear")
        self.requests: List[str] = []

    def get_current_weather(self, location: str) -> ParseResult[WeatherData]:
        LOGGER.info("Returning mock weather", extra={"location": location})
        self.requests.append(location)
        return ParseResult.parsed(self.weather)


__all__ = ["CACHE_TTL_SECONDS", "WeatherProvider", "OpenWeatherProvider", "MockWeatherProvider"]
