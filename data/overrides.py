"""
Two-layer weather value: a fetched baseline plus manual per-field overrides.

The resolved snapshot handed to the sky model is always

    merge_weather(baseline or default, overrides)

where each overridden field wins over the baseline. Changing location is
an explicit transition that clears the overrides, so edits made for one
place never leak into another.
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

from data.presets import get_default_weather
from data.weather import Location
from models.errors import InvalidParameterError
from models.weather_state import WeatherState

logger = logging.getLogger(__name__)


def merge_weather(base: WeatherState, overrides: Mapping[str, float]) -> WeatherState:
    """Return *base* with every field in *overrides* replaced; overrides win.

    Raises:
        InvalidParameterError: On unknown fields or out-of-domain values.
    """
    unknown = set(overrides) - set(WeatherState.field_names())
    if unknown:
        raise InvalidParameterError(f"Unknown weather fields: {sorted(unknown)}")
    return replace(base, **overrides)


@dataclass(frozen=True)
class WeatherLayers:
    """Immutable (location, baseline, overrides) triple.

    Args:
        location: Location the baseline belongs to.
        base: Fetched baseline, or None until a fetch succeeds.
        overrides: Manual per-field edits.
    """

    location: Location
    base: Optional[WeatherState] = None
    overrides: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        overrides = dict(self.overrides)
        # Validates names and values eagerly so a bad edit fails where it is made.
        merge_weather(get_default_weather(), overrides)
        object.__setattr__(self, "overrides", MappingProxyType(overrides))

    def resolved(self) -> WeatherState:
        """Snapshot with overrides applied over the baseline (or the default)."""
        base = self.base if self.base is not None else get_default_weather()
        return merge_weather(base, self.overrides)

    def with_overrides(self, **fields: float) -> "WeatherLayers":
        """Accumulate manual edits; later edits to the same field replace earlier ones."""
        merged = dict(self.overrides)
        merged.update(fields)
        return replace(self, overrides=merged)

    def without_overrides(self) -> "WeatherLayers":
        return replace(self, overrides={})

    def with_base(self, base: Optional[WeatherState]) -> "WeatherLayers":
        """Install a freshly fetched baseline; overrides are kept."""
        return replace(self, base=base)

    def with_location(self, location: Location) -> "WeatherLayers":
        """Move to *location*.

        Overrides are always cleared. The baseline is dropped too unless the
        location is unchanged, since it describes the old place.
        """
        if location == self.location:
            return self.without_overrides()
        logger.info("Location changed %s -> %s; clearing overrides", self.location, location)
        return WeatherLayers(location=location)

    @property
    def has_overrides(self) -> bool:
        return bool(self.overrides)
