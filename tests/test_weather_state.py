"""Tests for the weather snapshot and value types."""

import sys
import os
import math
import pytest
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.errors import InvalidParameterError, NumericDegenerateError
from models.weather_state import CALM, Color, WeatherState, Wind


class TestWeatherState:
    def test_fields_stored_as_float(self, make_weather):
        weather = make_weather(sun_angle=30)
        assert isinstance(weather.sun_angle, float)

    def test_field_names(self):
        assert WeatherState.field_names() == (
            "humidity", "visibility", "cloud_cover", "temperature",
            "wind_speed", "wind_direction", "altitude", "sun_angle",
        )

    def test_as_dict_round_trips(self, default_weather):
        assert WeatherState(**default_weather.as_dict()) == default_weather

    def test_hashable(self, default_weather, make_weather):
        assert hash(default_weather) == hash(make_weather())

    def test_wind_property(self, make_weather):
        assert make_weather(wind_speed=3.0, wind_direction=180.0).wind == Wind(3.0, 180.0)

    def test_frozen(self, default_weather):
        with pytest.raises(AttributeError):
            default_weather.humidity = 0.9

    @pytest.mark.parametrize(
        "field, value",
        [
            ("humidity", -0.01),
            ("humidity", 1.01),
            ("visibility", -1.0),
            ("cloud_cover", 1.2),
            ("temperature", 0.0),
            ("temperature", -5.0),
            ("wind_speed", -0.5),
            ("wind_direction", 360.0),
            ("wind_direction", -1.0),
            ("altitude", -10.0),
            ("sun_angle", 4.0),
            ("sun_angle", 91.0),
            ("humidity", float("nan")),
            ("sun_angle", float("inf")),
        ],
    )
    def test_out_of_domain_raises(self, make_weather, field, value):
        with pytest.raises(InvalidParameterError, match=field):
            make_weather(**{field: value})

    def test_error_is_value_error(self, make_weather):
        with pytest.raises(ValueError):
            make_weather(humidity=2.0)

    def test_non_numeric_raises(self, make_weather):
        with pytest.raises(InvalidParameterError, match="number"):
            make_weather(humidity="wet")

    def test_domain_edges_accepted(self, make_weather):
        weather = make_weather(humidity=0.0, cloud_cover=1.0, sun_angle=5.0, wind_direction=359.9)
        assert weather.sun_angle == 5.0


class TestWind:
    def test_calm_has_no_offset(self):
        assert CALM.offset(1000.0) == (0.0, 0.0)

    def test_offset_along_x(self):
        assert Wind(2.0, 0.0).offset(3.0) == pytest.approx((6.0, 0.0))

    def test_offset_diagonal(self):
        dx, dy = Wind(math.sqrt(2.0), 45.0).offset(1.0)
        assert dx == pytest.approx(1.0)
        assert dy == pytest.approx(1.0)


class TestColor:
    def test_conversions(self):
        color = Color(100, 160, 255)
        assert color.as_tuple() == (100, 160, 255)
        assert color.as_hex() == "#64a0ff"
        assert color.as_rgb_string() == "rgb(100, 160, 255)"
        assert color.as_rgb_string(0.5) == "rgba(100, 160, 255, 0.5)"
        np.testing.assert_array_equal(color.as_array(), [100.0, 160.0, 255.0])

    def test_from_tuple(self):
        assert Color.from_tuple((1, 2, 3)) == Color(1, 2, 3)

    @pytest.mark.parametrize("rgb", [(256, 0, 0), (0, -1, 0), (0, 0, 1.5), (True, 0, 0)])
    def test_invalid_channels_raise(self, rgb):
        with pytest.raises(InvalidParameterError, match="Color"):
            Color(*rgb)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "red"])
    def test_non_finite_channels_raise(self, value):
        with pytest.raises(InvalidParameterError, match="Color.g"):
            Color(0, value, 0)
        with pytest.raises(InvalidParameterError, match="Color.b"):
            Color.from_tuple((0, 0, value))


class TestErrors:
    def test_degenerate_error_carries_intensities(self):
        err = NumericDegenerateError([0, 0, 0])
        assert err.intensities == (0.0, 0.0, 0.0)
        assert isinstance(err, ArithmeticError)
