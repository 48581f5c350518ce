"""
Seeded 3-D value noise over continuous coordinates.

Random values live on the integer lattice; between lattice points they are
blended with a smoothstep-weighted trilinear interpolation. The result is
coherent (continuous) and bounded to [-1, 1].

The same formula is available twice:
  - ``value_noise3``: NumPy, evaluates whole coordinate arrays at once.
  - ``value_noise3_scalar``: Numba-compiled, one point per call, for use
    inside compiled per-pixel kernels.
Both perform the same floating-point operations in the same order.
"""

import math

import numba as nb
import numpy as np

from config import CLOUD_NOISE_SEED

TABLE_SIZE = 256
MASK = TABLE_SIZE - 1


class ValueNoise:
    """Lattice tables for value noise, derived deterministically from *seed*.

    The tables are read-only, so one instance can be shared between any
    number of concurrent evaluations.
    """

    def __init__(self, seed: int = CLOUD_NOISE_SEED):
        rng = np.random.default_rng(seed)
        perm = rng.permutation(TABLE_SIZE).astype(np.int64)
        values = rng.uniform(-1.0, 1.0, TABLE_SIZE)
        perm.setflags(write=False)
        values.setflags(write=False)
        self.seed = seed
        self.perm = perm
        self.values = values

    def __call__(self, x, y, z):
        """Evaluate noise at (x, y, z); scalars or broadcastable arrays."""
        result = value_noise3(self.perm, self.values, x, y, z)
        if result.ndim == 0:
            return float(result)
        return result

    def __repr__(self) -> str:
        return f"ValueNoise(seed={self.seed})"


def _fade(t):
    return t * t * (3.0 - 2.0 * t)


def _lerp(a, b, t):
    return a + t * (b - a)


def value_noise3(perm: np.ndarray, values: np.ndarray, x, y, z) -> np.ndarray:
    """Vectorized value noise. Returns an array shaped like broadcast(x, y, z)."""
    x, y, z = np.broadcast_arrays(
        np.asarray(x, dtype=float), np.asarray(y, dtype=float), np.asarray(z, dtype=float)
    )
    x0 = np.floor(x)
    y0 = np.floor(y)
    z0 = np.floor(z)
    tx = _fade(x - x0)
    ty = _fade(y - y0)
    tz = _fade(z - z0)

    i0 = x0.astype(np.int64) & MASK
    j0 = y0.astype(np.int64) & MASK
    k0 = z0.astype(np.int64) & MASK
    i1 = (i0 + 1) & MASK
    j1 = (j0 + 1) & MASK
    k1 = (k0 + 1) & MASK

    def corner(i, j, k):
        return values[perm[(perm[(perm[i] + j) & MASK] + k) & MASK]]

    x00 = _lerp(corner(i0, j0, k0), corner(i1, j0, k0), tx)
    x10 = _lerp(corner(i0, j1, k0), corner(i1, j1, k0), tx)
    x01 = _lerp(corner(i0, j0, k1), corner(i1, j0, k1), tx)
    x11 = _lerp(corner(i0, j1, k1), corner(i1, j1, k1), tx)
    y0_ = _lerp(x00, x10, ty)
    y1_ = _lerp(x01, x11, ty)
    return _lerp(y0_, y1_, tz)


@nb.njit(cache=True)
def _corner(perm, values, i, j, k):
    return values[perm[(perm[(perm[i] + j) & MASK] + k) & MASK]]


@nb.njit(cache=True)
def value_noise3_scalar(perm, values, x, y, z):
    """Compiled single-point value noise; same formula as value_noise3."""
    x0 = math.floor(x)
    y0 = math.floor(y)
    z0 = math.floor(z)
    tx = x - x0
    ty = y - y0
    tz = z - z0
    tx = tx * tx * (3.0 - 2.0 * tx)
    ty = ty * ty * (3.0 - 2.0 * ty)
    tz = tz * tz * (3.0 - 2.0 * tz)

    i0 = np.int64(x0) & MASK
    j0 = np.int64(y0) & MASK
    k0 = np.int64(z0) & MASK
    i1 = (i0 + 1) & MASK
    j1 = (j0 + 1) & MASK
    k1 = (k0 + 1) & MASK

    a = _corner(perm, values, i0, j0, k0)
    b = _corner(perm, values, i1, j0, k0)
    x00 = a + tx * (b - a)
    a = _corner(perm, values, i0, j1, k0)
    b = _corner(perm, values, i1, j1, k0)
    x10 = a + tx * (b - a)
    a = _corner(perm, values, i0, j0, k1)
    b = _corner(perm, values, i1, j0, k1)
    x01 = a + tx * (b - a)
    a = _corner(perm, values, i0, j1, k1)
    b = _corner(perm, values, i1, j1, k1)
    x11 = a + tx * (b - a)

    y0_ = x00 + ty * (x10 - x00)
    y1_ = x01 + ty * (x11 - x01)
    return y0_ + tz * (y1_ - y0_)


DEFAULT_NOISE = ValueNoise()
