"""
Weather providers for the sky model.

Provides a pluggable interface for weather data sources.
The StubWeatherProvider returns configurable hardcoded values for
development and testing; NWSWeatherProvider reads the National Weather
Service gridpoint forecast (US locations only).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from config import NWS_API_URL, NWS_TIMEOUT_S, NWS_USER_AGENT
from data.presets import get_default_weather
from models.weather_state import WeatherState, require_range

logger = logging.getLogger(__name__)


class WeatherFetchError(RuntimeError):
    """The weather service could not be reached or returned unusable data."""


@dataclass(frozen=True)
class Location:
    """A point on the globe in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self):
        object.__setattr__(self, "latitude", require_range("latitude", self.latitude, -90.0, 90.0))
        object.__setattr__(
            self, "longitude", require_range("longitude", self.longitude, -180.0, 180.0)
        )


class WeatherProvider(ABC):
    """Abstract base class for weather data sources."""

    @abstractmethod
    def fetch(self, location: Location) -> WeatherState:
        """Return a fully resolved weather snapshot for *location*.

        Raises:
            WeatherFetchError: If the data cannot be obtained.
        """
        ...


class StubWeatherProvider(WeatherProvider):
    """Configurable stub that returns the same snapshot for every location.

    Args:
        weather: Snapshot to return. Defaults to the default weather.
    """

    def __init__(self, weather: Optional[WeatherState] = None):
        self.weather = weather if weather is not None else get_default_weather()

    def fetch(self, location: Location) -> WeatherState:
        return self.weather


def _clip(value: float, low: float, high: Optional[float] = None) -> float:
    value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


def _met_to_drift_direction(met_deg: float) -> float:
    """Meteorological direction (wind comes FROM, clockwise from north) to the
    screen drift angle used by the cloud field (toward, from +x to +y with +y down)."""
    return (met_deg + 90.0) % 360.0


class NWSWeatherProvider(WeatherProvider):
    """National Weather Service gridpoint forecast.

    Looks up the forecast grid for a point, then reads the first (current)
    value of each layer. Missing layers fall back to the default snapshot.
    The sun angle is not part of the forecast and keeps its default.

    Args:
        session: Optional ``requests.Session`` (reused across fetches).
        base_url: API root.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = NWS_API_URL,
        timeout: float = NWS_TIMEOUT_S,
        user_agent: str = NWS_USER_AGENT,
    ):
        self.session = session if session is not None else requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent

    def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = self.session.get(
                url,
                headers={"User-Agent": self.user_agent, "Accept": "application/geo+json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise WeatherFetchError(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise WeatherFetchError(f"Response from {url} is not valid JSON") from exc

    def fetch(self, location: Location) -> WeatherState:
        points_url = f"{self.base_url}/points/{location.latitude:.4f},{location.longitude:.4f}"
        logger.info("Fetching weather for %s", location)
        points = self._get_json(points_url)
        try:
            grid_url = points["properties"]["forecastGridData"]
        except (KeyError, TypeError) as exc:
            raise WeatherFetchError(f"No forecast grid in response from {points_url}") from exc

        grid = self._get_json(grid_url)
        try:
            properties = grid["properties"]
        except (KeyError, TypeError) as exc:
            raise WeatherFetchError(f"Malformed gridpoint response from {grid_url}") from exc
        return parse_gridpoint_properties(properties)


def _first_value(properties: Dict[str, Any], layer: str):
    """Return (value, unit) of the first entry of a gridpoint layer, or (None, None)."""
    data = properties.get(layer)
    if not isinstance(data, dict):
        return None, None
    unit = data.get("uom", "")
    if "values" in data:
        values = data.get("values") or []
        if not values or not isinstance(values[0], dict):
            return None, unit
        value = values[0].get("value")
    else:
        value = data.get("value")
    if value is None:
        return None, unit
    try:
        return float(value), unit
    except (TypeError, ValueError):
        return None, unit


def parse_gridpoint_properties(properties: Dict[str, Any]) -> WeatherState:
    """Convert NWS gridpoint ``properties`` into a WeatherState.

    Units are converted from the reported ``uom`` (percent, degC, km/h) and
    every field is clipped into the valid domain.
    """
    default = get_default_weather()
    fields = default.as_dict()

    humidity, _ = _first_value(properties, "relativeHumidity")
    if humidity is not None:
        fields["humidity"] = _clip(humidity / 100.0, 0.0, 1.0)

    visibility, _ = _first_value(properties, "visibility")
    if visibility is not None:
        fields["visibility"] = _clip(visibility, 0.0)

    sky_cover, _ = _first_value(properties, "skyCover")
    if sky_cover is not None:
        fields["cloud_cover"] = _clip(sky_cover / 100.0, 0.0, 1.0)

    temperature, unit = _first_value(properties, "temperature")
    if temperature is not None:
        if unit.endswith("degF"):
            temperature = (temperature - 32.0) * 5.0 / 9.0 + 273.15
        elif not unit.endswith("K"):
            temperature = temperature + 273.15
        if temperature > 0:
            fields["temperature"] = temperature

    wind_speed, unit = _first_value(properties, "windSpeed")
    if wind_speed is not None:
        if "km_h" in unit:
            wind_speed = wind_speed / 3.6
        fields["wind_speed"] = _clip(wind_speed, 0.0)

    wind_direction, _ = _first_value(properties, "windDirection")
    if wind_direction is not None:
        fields["wind_direction"] = _met_to_drift_direction(wind_direction)

    elevation, _ = _first_value(properties, "elevation")
    if elevation is not None:
        fields["altitude"] = _clip(elevation, 0.0)

    weather = WeatherState(**fields)
    logger.debug("Parsed gridpoint weather: %s", weather)
    return weather
