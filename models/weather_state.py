"""
Value types shared by the scattering model and the cloud field.

WeatherState is the fully resolved snapshot every core call receives.
It validates itself on construction, so a WeatherState that exists is
always inside the documented domain.
"""

import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional, Tuple

import numpy as np

from config import SUN_ANGLE_MAX_DEG, SUN_ANGLE_MIN_DEG
from models.errors import InvalidParameterError


def require_finite(name: str, value: float) -> float:
    """Return *value* as float, raising InvalidParameterError if it is NaN or infinite."""
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value}")
    return value


def require_range(
    name: str,
    value: float,
    low: Optional[float] = None,
    high: Optional[float] = None,
    high_inclusive: bool = True,
) -> float:
    """Check that *value* is finite and lies in [low, high] (or [low, high))."""
    value = require_finite(name, value)
    if low is not None and value < low:
        raise InvalidParameterError(f"{name} must be >= {low}, got {value}")
    if high is not None:
        if high_inclusive and value > high:
            raise InvalidParameterError(f"{name} must be <= {high}, got {value}")
        if not high_inclusive and value >= high:
            raise InvalidParameterError(f"{name} must be < {high}, got {value}")
    return value


def validate_sun_angle(sun_angle: float) -> float:
    return require_range("sun_angle", sun_angle, SUN_ANGLE_MIN_DEG, SUN_ANGLE_MAX_DEG)


@dataclass(frozen=True)
class WeatherState:
    """Atmospheric snapshot driving the sky model.

    Args:
        humidity: Relative humidity, 0-1.
        visibility: Horizontal visibility (meters).
        cloud_cover: Sky cover fraction, 0-1.
        temperature: Air temperature (Kelvin).
        wind_speed: Wind speed (m/s).
        wind_direction: Direction the cloud layer drifts toward (degrees, 0-360).
        altitude: Observer altitude (meters above sea level).
        sun_angle: Solar elevation above the horizon (degrees, 5-90).
    """

    humidity: float
    visibility: float
    cloud_cover: float
    temperature: float
    wind_speed: float
    wind_direction: float
    altitude: float
    sun_angle: float

    def __post_init__(self):
        checked = {
            "humidity": require_range("humidity", self.humidity, 0.0, 1.0),
            "visibility": require_range("visibility", self.visibility, 0.0),
            "cloud_cover": require_range("cloud_cover", self.cloud_cover, 0.0, 1.0),
            "temperature": require_finite("temperature", self.temperature),
            "wind_speed": require_range("wind_speed", self.wind_speed, 0.0),
            "wind_direction": require_range(
                "wind_direction", self.wind_direction, 0.0, 360.0, high_inclusive=False
            ),
            "altitude": require_range("altitude", self.altitude, 0.0),
            "sun_angle": validate_sun_angle(self.sun_angle),
        }
        if checked["temperature"] <= 0:
            raise InvalidParameterError(
                f"temperature must be > 0 K, got {checked['temperature']}"
            )
        # Store plain floats so equal snapshots hash and compare equal.
        for name, value in checked.items():
            object.__setattr__(self, name, value)

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)

    @property
    def wind(self) -> "Wind":
        return Wind(speed=self.wind_speed, direction=self.wind_direction)


@dataclass(frozen=True)
class Wind:
    """Horizontal wind advecting the cloud layer.

    Args:
        speed: Wind speed (m/s, or field units per unit time).
        direction: Direction of travel in degrees, measured from +x toward +y.
    """

    speed: float
    direction: float

    def __post_init__(self):
        object.__setattr__(self, "speed", require_range("wind speed", self.speed, 0.0))
        object.__setattr__(self, "direction", require_finite("wind direction", self.direction))

    def offset(self, t: float) -> Tuple[float, float]:
        """Displacement of the cloud layer after logical time *t*."""
        rad = math.radians(self.direction)
        distance = self.speed * t
        return distance * math.cos(rad), distance * math.sin(rad)


CALM = Wind(speed=0.0, direction=0.0)


@dataclass(frozen=True)
class Color:
    """Displayable 8-bit RGB colour."""

    r: int
    g: int
    b: int

    def __post_init__(self):
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if isinstance(value, bool):
                raise InvalidParameterError(f"Color.{name} must be an integer, got {value!r}")
            value = require_finite(f"Color.{name}", value)
            if int(value) != value:
                raise InvalidParameterError(f"Color.{name} must be an integer, got {value!r}")
            value = int(value)
            if not 0 <= value <= 255:
                raise InvalidParameterError(f"Color.{name} must be in [0, 255], got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_tuple(cls, rgb) -> "Color":
        r, g, b = rgb
        return cls(r, g, b)

    def as_tuple(self) -> Tuple[int, int, int]:
        return self.r, self.g, self.b

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.g, self.b], dtype=float)

    def as_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def as_rgb_string(self, alpha: Optional[float] = None) -> str:
        if alpha is None:
            return f"rgb({self.r}, {self.g}, {self.b})"
        return f"rgba({self.r}, {self.g}, {self.b}, {alpha})"
