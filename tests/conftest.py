"""Shared fixtures for the SkySim test suite."""

import sys
import os
import pytest
import numpy as np

# Ensure project root is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.weather_state import WeatherState, Wind


@pytest.fixture
def default_weather():
    """The example scenario: mild humidity, sun at 45 degrees, sea level."""
    return WeatherState(
        humidity=0.5,
        visibility=10000.0,
        cloud_cover=0.2,
        temperature=288.0,
        wind_speed=0.0,
        wind_direction=0.0,
        altitude=0.0,
        sun_angle=45.0,
    )


@pytest.fixture
def make_weather(default_weather):
    """Factory returning the example scenario with some fields replaced."""
    from dataclasses import replace

    def _make(**fields):
        return replace(default_weather, **fields)

    return _make


@pytest.fixture
def sample_points():
    """A small scatter of sample coordinates, including negatives and lattice points."""
    xs = np.array([0.0, 1.0, 17.3, -42.5, 125.0, 399.0, 1234.5])
    ys = np.array([0.0, 3.0, -8.1, 250.0, 64.0, 499.0, -987.6])
    return xs, ys


@pytest.fixture
def breezy_wind():
    """Moderate wind drifting along +x."""
    return Wind(speed=5.0, direction=0.0)
