"""
Default weather snapshot and predefined locations for the control panel.
"""

from typing import Dict, List

from config import (
    DEFAULT_ALTITUDE_M,
    DEFAULT_CLOUD_COVER,
    DEFAULT_HUMIDITY,
    DEFAULT_SUN_ANGLE,
    DEFAULT_TEMPERATURE_K,
    DEFAULT_VISIBILITY_M,
    DEFAULT_WIND_DIRECTION,
    DEFAULT_WIND_SPEED,
)
from models.weather_state import WeatherState


def get_default_weather() -> WeatherState:
    """Snapshot used until a fetched baseline is available."""
    return WeatherState(
        humidity=DEFAULT_HUMIDITY,
        visibility=DEFAULT_VISIBILITY_M,
        cloud_cover=DEFAULT_CLOUD_COVER,
        temperature=DEFAULT_TEMPERATURE_K,
        wind_speed=DEFAULT_WIND_SPEED,
        wind_direction=DEFAULT_WIND_DIRECTION,
        altitude=DEFAULT_ALTITUDE_M,
        sun_angle=DEFAULT_SUN_ANGLE,
    )


def get_preset_locations() -> List[Dict]:
    """Named locations covered by the National Weather Service API."""
    return [
        {"name": "New York", "latitude": 40.7128, "longitude": -74.0060},
        {"name": "Los Angeles", "latitude": 34.0522, "longitude": -118.2437},
        {"name": "Houston", "latitude": 29.7604, "longitude": -95.3698},
        {"name": "Denver", "latitude": 39.7392, "longitude": -104.9903},
    ]


# Control-panel slider ranges per field: (min, max, step)
FIELD_RANGES = {
    "humidity": (0.0, 1.0, 0.01),
    "visibility": (0.0, 20000.0, 100.0),
    "cloud_cover": (0.0, 1.0, 0.01),
    "temperature": (200.0, 330.0, 1.0),
    "wind_speed": (0.0, 50.0, 1.0),
    "wind_direction": (0.0, 359.0, 1.0),
    "altitude": (0.0, 10000.0, 10.0),
    "sun_angle": (5.0, 90.0, 1.0),
}
