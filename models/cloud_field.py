"""
Procedural cloud density field.

Opacity at a point is a thresholded fractal sum (fBm) of coherent value
noise, advected by the wind and evolving slowly with logical time:

    (x', y') = (x, y) + speed · t · (cos dir, sin dir)
    n        = Σ_k 0.5^(k+1) · noise(x'·f·2^k, y'·f·2^k, t·rate)
    opacity  = clip((n - threshold) · (1 - |n|) · cover · gain, 0, 1)

The (1 - |n|) term softens cloud edges. Every sample is independent of every
other, so a field can be evaluated in any order or in parallel.

Backends:
  - VectorizedCloudBackend: NumPy array evaluation.
  - CompiledCloudBackend: Numba kernel, one sample per parallel iteration.
Both implement the formula above; they differ only in how it is executed.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Optional

import numba as nb
import numpy as np
from scipy import ndimage

from config import (
    CLOUD_BASE_FREQUENCY,
    CLOUD_COARSE_OCTAVES,
    CLOUD_COARSE_STEP_PX,
    CLOUD_INTENSITY_GAIN,
    CLOUD_OCTAVES,
    CLOUD_THRESHOLD,
    CLOUD_TIME_RATE,
    DEFAULT_CLOUD_COVER,
)
from models.errors import InvalidParameterError
from models.noise import DEFAULT_NOISE, ValueNoise, value_noise3_scalar
from models.weather_state import CALM, WeatherState, Wind, require_finite, require_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CloudFieldParams:
    """Everything one cloud-field evaluation needs, passed explicitly per call.

    Args:
        time: Logical time (seconds).
        wind: Wind advecting the cloud layer.
        cloud_cover: Sky cover fraction, 0-1.
        octaves: Number of fBm octaves (>= 1).
        base_frequency: Noise frequency of the first octave (cycles per unit).
        threshold: fBm level below which the sky stays clear.
        gain: Opacity gain.
        time_rate: Advance of the noise z-coordinate per unit time.
    """

    time: float = 0.0
    wind: Wind = CALM
    cloud_cover: float = DEFAULT_CLOUD_COVER
    octaves: int = CLOUD_OCTAVES
    base_frequency: float = CLOUD_BASE_FREQUENCY
    threshold: float = CLOUD_THRESHOLD
    gain: float = CLOUD_INTENSITY_GAIN
    time_rate: float = CLOUD_TIME_RATE

    def __post_init__(self):
        object.__setattr__(self, "time", require_finite("time", self.time))
        object.__setattr__(
            self, "cloud_cover", require_range("cloud_cover", self.cloud_cover, 0.0, 1.0)
        )
        if not isinstance(self.wind, Wind):
            raise InvalidParameterError(f"wind must be a Wind, got {self.wind!r}")
        if int(self.octaves) != self.octaves or self.octaves < 1:
            raise InvalidParameterError(f"octaves must be a positive integer, got {self.octaves}")
        object.__setattr__(self, "octaves", int(self.octaves))
        for name in ("base_frequency", "threshold", "gain", "time_rate"):
            object.__setattr__(self, name, require_finite(name, getattr(self, name)))
        dx, dy = self.advection
        require_finite("wind advection x-offset", dx)
        require_finite("wind advection y-offset", dy)
        require_finite("noise time coordinate", self.noise_z)

    @classmethod
    def from_weather(cls, weather: WeatherState, time: float, **overrides) -> "CloudFieldParams":
        """Parameters for a weather snapshot at logical *time*."""
        return cls(time=time, wind=weather.wind, cloud_cover=weather.cloud_cover, **overrides)

    def with_octaves(self, octaves: int) -> "CloudFieldParams":
        return replace(self, octaves=octaves)

    @property
    def advection(self):
        return self.wind.offset(self.time)

    @property
    def noise_z(self) -> float:
        return self.time * self.time_rate


def _require_finite_coords(xs: np.ndarray, ys: np.ndarray, params: CloudFieldParams) -> None:
    """Reject samples whose advected, octave-scaled coordinates leave the float range."""
    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(ys))):
        raise InvalidParameterError("sample coordinates must be finite")
    dx, dy = params.advection
    top_frequency = params.base_frequency * 2.0 ** (params.octaves - 1)
    with np.errstate(over="ignore", invalid="ignore"):
        finite = (
            np.all(np.isfinite((xs + dx) * top_frequency))
            and np.all(np.isfinite((ys + dy) * top_frequency))
        )
    if not finite:
        raise InvalidParameterError("advected sample coordinates overflow")


class CloudBackend(ABC):
    """Evaluates the cloud opacity field over arrays of sample coordinates."""

    name = "abstract"

    def __init__(self, noise: Optional[ValueNoise] = None):
        self.noise = noise if noise is not None else DEFAULT_NOISE

    @abstractmethod
    def evaluate(self, xs, ys, params: CloudFieldParams) -> np.ndarray:
        """Return opacity in [0, 1] with the broadcast shape of *xs* and *ys*."""
        ...


class VectorizedCloudBackend(CloudBackend):
    """NumPy evaluation of the whole coordinate array per octave."""

    name = "vectorized"

    def evaluate(self, xs, ys, params: CloudFieldParams) -> np.ndarray:
        xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))
        _require_finite_coords(xs, ys, params)
        dx, dy = params.advection
        ax = xs + dx
        ay = ys + dy
        z = params.noise_z

        n = np.zeros(ax.shape, dtype=float)
        frequency = params.base_frequency
        amplitude = 0.5
        for _ in range(params.octaves):
            n = n + amplitude * self.noise(ax * frequency, ay * frequency, z)
            frequency *= 2.0
            amplitude *= 0.5

        softness = 1.0 - np.abs(n)
        opacity = (n - params.threshold) * softness * params.cloud_cover * params.gain
        return np.clip(opacity, 0.0, 1.0)


@nb.njit(parallel=True, cache=True)
def _cloud_kernel(xs, ys, dx, dy, z, octaves, base_frequency, threshold, gain, cover, perm, values, out):
    for idx in nb.prange(xs.size):
        ax = xs[idx] + dx
        ay = ys[idx] + dy
        n = 0.0
        frequency = base_frequency
        amplitude = 0.5
        for _ in range(octaves):
            n = n + amplitude * value_noise3_scalar(perm, values, ax * frequency, ay * frequency, z)
            frequency *= 2.0
            amplitude *= 0.5
        softness = 1.0 - abs(n)
        opacity = (n - threshold) * softness * cover * gain
        out[idx] = min(max(opacity, 0.0), 1.0)


class CompiledCloudBackend(CloudBackend):
    """Numba-compiled per-sample kernel, parallel over samples.

    The first call triggers JIT compilation (cached on disk afterwards).
    """

    name = "compiled"

    def evaluate(self, xs, ys, params: CloudFieldParams) -> np.ndarray:
        xs, ys = np.broadcast_arrays(np.asarray(xs, dtype=float), np.asarray(ys, dtype=float))
        _require_finite_coords(xs, ys, params)
        shape = xs.shape
        flat_x = np.ascontiguousarray(xs).ravel()
        flat_y = np.ascontiguousarray(ys).ravel()
        out = np.empty(flat_x.size, dtype=float)
        dx, dy = params.advection
        _cloud_kernel(
            flat_x, flat_y, float(dx), float(dy), float(params.noise_z),
            params.octaves, params.base_frequency, params.threshold, params.gain,
            params.cloud_cover, self.noise.perm, self.noise.values, out,
        )
        return out.reshape(shape)


BACKENDS: Dict[str, type] = {
    VectorizedCloudBackend.name: VectorizedCloudBackend,
    CompiledCloudBackend.name: CompiledCloudBackend,
}


def get_backend(name: str, noise: Optional[ValueNoise] = None) -> CloudBackend:
    """Instantiate a backend by name ('vectorized' or 'compiled')."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown cloud backend '{name}'. Use one of {sorted(BACKENDS)}.") from None
    return backend_cls(noise)


def sample_cloud_field(
    x: float,
    y: float,
    t: float,
    wind: Wind,
    cloud_cover: float,
    noise: Optional[ValueNoise] = None,
    octaves: int = CLOUD_OCTAVES,
) -> float:
    """
    Cloud opacity at a single point and time.

    Args:
        x, y: Sample position (field units, e.g. pixels).
        t: Logical time.
        wind: Wind advecting the field.
        cloud_cover: Sky cover fraction, 0-1.
        noise: Noise tables; defaults to the shared seeded instance.
        octaves: fBm octave count.

    Returns:
        Opacity in [0, 1].
    """
    x = require_finite("x", x)
    y = require_finite("y", y)
    params = CloudFieldParams(time=t, wind=wind, cloud_cover=cloud_cover, octaves=octaves)
    return float(VectorizedCloudBackend(noise).evaluate(x, y, params))


# Sampling presets: (pixel step, octaves). They share the formula above.
REALTIME_QUALITY = (1, CLOUD_OCTAVES)
COARSE_QUALITY = (CLOUD_COARSE_STEP_PX, CLOUD_COARSE_OCTAVES)
QUALITY_PRESETS = {"realtime": REALTIME_QUALITY, "coarse": COARSE_QUALITY}


def render_cloud_grid(
    width: int,
    height: int,
    params: CloudFieldParams,
    step: int = 1,
    backend: Optional[CloudBackend] = None,
) -> np.ndarray:
    """
    Evaluate the field on a pixel raster.

    With ``step > 1`` the field is sampled every *step* pixels and each
    sample fills its step x step block, like drawing coarse tiles.

    Returns:
        (height, width) float array of opacity in [0, 1].
    """
    if width < 1 or height < 1:
        raise InvalidParameterError(f"raster must be at least 1x1, got {width}x{height}")
    if step < 1:
        raise InvalidParameterError(f"step must be >= 1, got {step}")
    backend = backend if backend is not None else VectorizedCloudBackend()

    xs = np.arange(0, width, step, dtype=float)
    ys = np.arange(0, height, step, dtype=float)
    grid_x, grid_y = np.meshgrid(xs, ys)
    coarse = backend.evaluate(grid_x, grid_y, params)
    logger.debug(
        "Cloud grid %dx%d (step %d, %d octaves, %s backend)",
        width, height, step, params.octaves, backend.name,
    )
    if step == 1:
        return coarse

    full = ndimage.zoom(coarse, step, order=0, mode="nearest", grid_mode=True)
    return np.clip(full[:height, :width], 0.0, 1.0)


def cloud_field_for_weather(
    weather: WeatherState,
    time: float,
    width: int,
    height: int,
    quality: str = "realtime",
    backend: Optional[CloudBackend] = None,
) -> np.ndarray:
    """Cloud opacity raster for a weather snapshot using a named quality preset."""
    try:
        step, octaves = QUALITY_PRESETS[quality]
    except KeyError:
        raise ValueError(f"Unknown cloud quality '{quality}'. Use one of {sorted(QUALITY_PRESETS)}.") from None
    params = CloudFieldParams.from_weather(weather, time, octaves=octaves)
    return render_cloud_grid(width, height, params, step=step, backend=backend)
