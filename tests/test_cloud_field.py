"""Tests for the procedural cloud field and its evaluation backends."""

import sys
import os
import pytest
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.cloud_field import (
    BACKENDS,
    CloudBackend,
    CloudFieldParams,
    CompiledCloudBackend,
    VectorizedCloudBackend,
    cloud_field_for_weather,
    get_backend,
    render_cloud_grid,
    sample_cloud_field,
)
from models.errors import InvalidParameterError
from models.weather_state import CALM, Wind


@pytest.fixture
def wide_grid():
    """Coordinates spanning many noise cells so some cloud is always present."""
    coords = np.arange(0.0, 5000.0, 50.0)
    return np.meshgrid(coords, coords)


class TestCloudFieldParams:
    def test_defaults(self):
        params = CloudFieldParams()
        assert params.time == 0.0
        assert params.wind == CALM
        assert params.octaves == 5

    def test_from_weather(self, make_weather):
        weather = make_weather(wind_speed=4.0, wind_direction=90.0, cloud_cover=0.7)
        params = CloudFieldParams.from_weather(weather, time=12.0)
        assert params.time == 12.0
        assert params.wind == Wind(4.0, 90.0)
        assert params.cloud_cover == 0.7

    def test_advection_offset(self):
        params = CloudFieldParams(time=10.0, wind=Wind(3.0, 90.0))
        dx, dy = params.advection
        assert dx == pytest.approx(0.0, abs=1e-12)
        assert dy == pytest.approx(30.0)

    def test_with_octaves(self):
        assert CloudFieldParams().with_octaves(3).octaves == 3

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"cloud_cover": 1.5}, "cloud_cover"),
            ({"cloud_cover": -0.1}, "cloud_cover"),
            ({"octaves": 0}, "octaves"),
            ({"octaves": 2.5}, "octaves"),
            ({"time": float("nan")}, "time"),
            ({"time": float("inf")}, "time"),
            ({"wind": (1.0, 0.0)}, "wind"),
        ],
    )
    def test_invalid_params_raise(self, kwargs, match):
        with pytest.raises(InvalidParameterError, match=match):
            CloudFieldParams(**kwargs)

    def test_negative_wind_speed_raises(self):
        with pytest.raises(InvalidParameterError, match="speed"):
            Wind(-1.0, 0.0)

    @pytest.mark.parametrize("direction", [0.0, 90.0, 225.0])
    def test_overflowing_advection_raises(self, direction):
        with pytest.raises(InvalidParameterError, match="advection"):
            CloudFieldParams(time=1e300, wind=Wind(1e10, direction))

    def test_overflowing_noise_time_raises(self):
        with pytest.raises(InvalidParameterError, match="noise time"):
            CloudFieldParams(time=1e300, time_rate=1e10)


class TestVectorizedBackend:
    def test_bounded(self, wide_grid):
        backend = VectorizedCloudBackend()
        for cover in (0.0, 0.2, 1.0):
            params = CloudFieldParams(time=5.0, wind=Wind(2.0, 45.0), cloud_cover=cover)
            opacity = backend.evaluate(*wide_grid, params)
            assert np.all(opacity >= 0.0)
            assert np.all(opacity <= 1.0)

    def test_zero_wind_at_time_zero(self, wide_grid):
        opacity = VectorizedCloudBackend().evaluate(*wide_grid, CloudFieldParams(cloud_cover=1.0))
        assert np.all((opacity >= 0.0) & (opacity <= 1.0))
        assert opacity.max() > 0.0

    def test_no_cover_is_clear(self, wide_grid):
        opacity = VectorizedCloudBackend().evaluate(*wide_grid, CloudFieldParams(cloud_cover=0.0))
        assert np.all(opacity == 0.0)

    def test_more_cover_never_thinner(self, wide_grid):
        backend = VectorizedCloudBackend()
        thin = backend.evaluate(*wide_grid, CloudFieldParams(cloud_cover=0.3))
        thick = backend.evaluate(*wide_grid, CloudFieldParams(cloud_cover=0.9))
        assert np.all(thick >= thin)

    def test_wind_shifts_field(self, sample_points, breezy_wind):
        xs, ys = sample_points
        t = 7.5
        backend = VectorizedCloudBackend()
        windy = backend.evaluate(xs, ys, CloudFieldParams(time=t, wind=breezy_wind, cloud_cover=1.0))
        calm = backend.evaluate(
            xs + breezy_wind.speed * t, ys, CloudFieldParams(time=t, wind=CALM, cloud_cover=1.0)
        )
        np.testing.assert_array_equal(windy, calm)

    def test_field_evolves_with_time(self, wide_grid):
        backend = VectorizedCloudBackend()
        before = backend.evaluate(*wide_grid, CloudFieldParams(time=0.0, cloud_cover=1.0))
        after = backend.evaluate(*wide_grid, CloudFieldParams(time=50.0, cloud_cover=1.0))
        assert not np.array_equal(before, after)

    def test_preserves_shape(self):
        xs = np.zeros((4, 6))
        ys = np.ones((4, 6))
        assert VectorizedCloudBackend().evaluate(xs, ys, CloudFieldParams()).shape == (4, 6)

    def test_non_finite_coordinates_raise(self):
        with pytest.raises(InvalidParameterError, match="finite"):
            VectorizedCloudBackend().evaluate(np.array([0.0, np.nan]), np.zeros(2), CloudFieldParams())

    def test_advected_coordinate_overflow_raises(self):
        # Offset and position are finite, their sum is not
        params = CloudFieldParams(time=1e298, wind=Wind(1e10, 0.0))
        with pytest.raises(InvalidParameterError, match="overflow"):
            VectorizedCloudBackend().evaluate(np.array([0.0, 1e308]), np.zeros(2), params)

    def test_octave_scaled_overflow_raises(self):
        params = CloudFieldParams(base_frequency=1e10)
        with pytest.raises(InvalidParameterError, match="overflow"):
            VectorizedCloudBackend().evaluate(np.array([1e300]), np.zeros(1), params)


class TestCompiledBackend:
    def test_parity_with_vectorized(self, wide_grid):
        params = CloudFieldParams(time=42.0, wind=Wind(3.5, 30.0), cloud_cover=0.8)
        expected = VectorizedCloudBackend().evaluate(*wide_grid, params)
        actual = CompiledCloudBackend().evaluate(*wide_grid, params)
        np.testing.assert_allclose(actual, expected, atol=1e-12)

    def test_parity_at_rest(self, sample_points):
        params = CloudFieldParams(cloud_cover=1.0, octaves=3)
        expected = VectorizedCloudBackend().evaluate(*sample_points, params)
        actual = CompiledCloudBackend().evaluate(*sample_points, params)
        np.testing.assert_allclose(actual, expected, atol=1e-12)

    def test_preserves_shape(self):
        xs, ys = np.meshgrid(np.arange(5.0), np.arange(3.0))
        assert CompiledCloudBackend().evaluate(xs, ys, CloudFieldParams()).shape == (3, 5)

    def test_non_finite_coordinates_raise(self):
        with pytest.raises(InvalidParameterError):
            CompiledCloudBackend().evaluate(np.array([np.inf]), np.zeros(1), CloudFieldParams())

    def test_advected_coordinate_overflow_raises(self):
        params = CloudFieldParams(time=1e298, wind=Wind(1e10, 90.0))
        with pytest.raises(InvalidParameterError, match="overflow"):
            CompiledCloudBackend().evaluate(np.zeros(2), np.array([-5.0, 1e308]), params)


class TestBackendRegistry:
    def test_known_backends(self):
        assert set(BACKENDS) == {"vectorized", "compiled"}
        for name in BACKENDS:
            backend = get_backend(name)
            assert isinstance(backend, CloudBackend)
            assert backend.name == name

    def test_unknown_backend_raises(self):
        with pytest.raises(ValueError, match="Unknown cloud backend"):
            get_backend("gpu")


class TestSampleCloudField:
    def test_returns_float_in_range(self, breezy_wind):
        value = sample_cloud_field(10.0, 20.0, 3.0, breezy_wind, 0.5)
        assert isinstance(value, float)
        assert 0.0 <= value <= 1.0

    def test_wind_shift(self, breezy_wind):
        x, y, t = 123.0, 45.0, 4.0
        assert sample_cloud_field(x, y, t, breezy_wind, 1.0) == sample_cloud_field(
            x + breezy_wind.speed * t, y, t, CALM, 1.0
        )

    def test_deterministic(self, breezy_wind):
        assert sample_cloud_field(1.0, 2.0, 3.0, breezy_wind, 0.6) == sample_cloud_field(
            1.0, 2.0, 3.0, breezy_wind, 0.6
        )

    @pytest.mark.parametrize("x", [float("nan"), float("inf")])
    def test_non_finite_position_raises(self, x):
        with pytest.raises(InvalidParameterError):
            sample_cloud_field(x, 0.0, 0.0, CALM, 0.5)

    def test_overflowing_position_raises(self):
        with pytest.raises(InvalidParameterError, match="overflow"):
            sample_cloud_field(1e308, 0.0, 1e298, Wind(1e10, 0.0), 0.5)

    def test_overflowing_wind_drift_raises(self):
        with pytest.raises(InvalidParameterError, match="advection"):
            sample_cloud_field(0.0, 0.0, 1e300, Wind(1e10, 45.0), 0.5)

    def test_invalid_cover_raises(self):
        with pytest.raises(InvalidParameterError, match="cloud_cover"):
            sample_cloud_field(0.0, 0.0, 0.0, CALM, 2.0)


class TestRenderCloudGrid:
    def test_full_resolution_shape(self):
        assert render_cloud_grid(30, 20, CloudFieldParams()).shape == (20, 30)

    def test_coarse_shape_crops_to_raster(self):
        grid = render_cloud_grid(23, 17, CloudFieldParams(cloud_cover=1.0), step=5)
        assert grid.shape == (17, 23)
        assert np.all((grid >= 0.0) & (grid <= 1.0))

    def test_coarse_blocks_hold_sample_value(self):
        params = CloudFieldParams(cloud_cover=1.0, time=3.0)
        grid = render_cloud_grid(20, 20, params, step=5)
        backend = VectorizedCloudBackend()
        for row, col in ((0, 0), (5, 10), (15, 15)):
            expected = backend.evaluate(float(col), float(row), params)
            np.testing.assert_allclose(grid[row:row + 5, col:col + 5], expected)

    def test_step_one_matches_direct_evaluation(self):
        params = CloudFieldParams(cloud_cover=1.0, time=1.0, wind=Wind(2.0, 0.0))
        grid = render_cloud_grid(8, 6, params)
        xs, ys = np.meshgrid(np.arange(8.0), np.arange(6.0))
        np.testing.assert_array_equal(grid, VectorizedCloudBackend().evaluate(xs, ys, params))

    def test_backends_render_same_grid(self):
        params = CloudFieldParams(cloud_cover=0.9, time=9.0, wind=Wind(1.0, 200.0))
        np.testing.assert_allclose(
            render_cloud_grid(40, 30, params, step=5, backend=CompiledCloudBackend()),
            render_cloud_grid(40, 30, params, step=5, backend=VectorizedCloudBackend()),
            atol=1e-12,
        )

    @pytest.mark.parametrize("width, height, step", [(0, 10, 1), (10, 0, 1), (10, 10, 0)])
    def test_invalid_raster_raises(self, width, height, step):
        with pytest.raises(InvalidParameterError):
            render_cloud_grid(width, height, CloudFieldParams(), step=step)


class TestCloudFieldForWeather:
    @pytest.mark.parametrize("quality", ["realtime", "coarse"])
    def test_presets(self, make_weather, quality):
        weather = make_weather(cloud_cover=0.8, wind_speed=3.0)
        field = cloud_field_for_weather(weather, 10.0, 40, 30, quality=quality)
        assert field.shape == (30, 40)
        assert np.all((field >= 0.0) & (field <= 1.0))

    def test_unknown_quality_raises(self, default_weather):
        with pytest.raises(ValueError, match="Unknown cloud quality"):
            cloud_field_for_weather(default_weather, 0.0, 10, 10, quality="ultra")
