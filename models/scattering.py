"""
Scattering coefficients, phase functions and optical path geometry.

Rayleigh extinction follows the molecular cross-section

    β_R(λ) = 8π³(n-1)² / (3 N λ⁴)

while the Mie term drops the wavelength dependence (large particles scatter
all visible wavelengths roughly equally). The Mie phase uses Schlick's
closed-form approximation instead of the Henyey-Greenstein series.
"""

import math
from dataclasses import dataclass

import numpy as np

from config import (
    ALTITUDE_SCALE_HEIGHT_M,
    MAX_PATH_LENGTH_M,
    MIE_ASYMMETRY_G,
    MIN_COS_ZENITH,
    MOLECULAR_NUMBER_DENSITY,
    SCALE_HEIGHT_M,
)
from models.errors import InvalidParameterError
from models.spectrum import EXTINCTION_WAVELENGTHS, WavelengthSet
from models.weather_state import require_range, validate_sun_angle


@dataclass(frozen=True, eq=False)
class ScatteringCoefficients:
    """Per-channel Rayleigh coefficients and one shared Mie coefficient (1/m)."""

    rayleigh: np.ndarray
    mie: float

    def __post_init__(self):
        rayleigh = np.array(self.rayleigh, dtype=float)
        if rayleigh.shape != (3,):
            raise InvalidParameterError("rayleigh must hold exactly three channels")
        if not np.all(np.isfinite(rayleigh)) or np.any(rayleigh <= 0):
            raise InvalidParameterError(f"rayleigh coefficients must be > 0, got {rayleigh}")
        if not math.isfinite(self.mie) or self.mie <= 0:
            raise InvalidParameterError(f"mie coefficient must be > 0, got {self.mie}")
        rayleigh.setflags(write=False)
        object.__setattr__(self, "rayleigh", rayleigh)
        object.__setattr__(self, "mie", float(self.mie))


def _polarizability_term(n: float) -> float:
    """8π³(n-1)² / 3N, the factor shared by both coefficients."""
    if n <= 1.0:
        raise InvalidParameterError(f"refractive index must be > 1, got {n}")
    return 8.0 * math.pi ** 3 * (n - 1.0) ** 2 / (3.0 * MOLECULAR_NUMBER_DENSITY)


def rayleigh_coefficient(wavelength_nm, n: float, scale: float = 1.0) -> np.ndarray:
    """
    Rayleigh scattering coefficient at the given wavelength(s).

    Args:
        wavelength_nm: Wavelength(s) in nanometres.
        n: Refractive index of air.
        scale: Visual-tuning multiplier.

    Returns:
        β_R in 1/m, same shape as wavelength_nm.
    """
    lam = np.asarray(wavelength_nm, dtype=float) * 1e-9
    return _polarizability_term(n) / lam ** 4 * scale


def mie_coefficient(n: float, scale: float = 1.0) -> float:
    """Wavelength-independent Mie scattering coefficient."""
    return _polarizability_term(n) * scale


def scattering_coefficients(
    n: float,
    wavelengths: WavelengthSet = EXTINCTION_WAVELENGTHS,
    scale: float = 1.0,
) -> ScatteringCoefficients:
    return ScatteringCoefficients(
        rayleigh=rayleigh_coefficient(wavelengths.as_array(), n, scale),
        mie=mie_coefficient(n, scale),
    )


def rayleigh_phase(cos_theta: float) -> float:
    """Rayleigh phase function: 3/(16π) (1 + cos²θ)."""
    return 3.0 / (16.0 * math.pi) * (1.0 + cos_theta ** 2)


def mie_phase(cos_theta: float, g: float = MIE_ASYMMETRY_G) -> float:
    """
    Schlick-style Mie phase function with asymmetry factor *g*.

        P_M = (1 - g²) / (4π (1 + g cosθ)²)
    """
    if not -1.0 < g < 1.0:
        raise InvalidParameterError(f"asymmetry factor g must be in (-1, 1), got {g}")
    return (1.0 - g ** 2) / (4.0 * math.pi * (1.0 + g * cos_theta) ** 2)


def zenith_angle(sun_angle: float) -> float:
    """Solar zenith angle in radians for an elevation in degrees."""
    return math.radians(90.0 - validate_sun_angle(sun_angle))


def optical_path_length(
    sun_angle: float,
    scale_height: float = SCALE_HEIGHT_M,
    max_length: float = MAX_PATH_LENGTH_M,
    min_cos_zenith: float = MIN_COS_ZENITH,
) -> float:
    """
    Slant path of sunlight through a flat, uniform atmosphere.

        L = min(H / max(cos θ_z, floor), L_max)

    The cosine floor removes the horizon singularity and the cap keeps the
    exponential transmittance terms away from underflow.

    Returns:
        Path length in meters.
    """
    cos_zenith = max(math.cos(zenith_angle(sun_angle)), min_cos_zenith)
    return min(scale_height / cos_zenith, max_length)


def altitude_attenuation(altitude: float, scale_height: float = ALTITUDE_SCALE_HEIGHT_M) -> float:
    """Relative air density at the observer: exp(-altitude / scale_height)."""
    altitude = require_range("altitude", altitude, 0.0)
    return math.exp(-altitude / scale_height)
