"""
Wavelength and refractive-index utilities, and blackbody spectral irradiance.

All spectral quantities are sampled at three channel wavelengths (R, G, B).
"""

from typing import NamedTuple

import numpy as np

from config import (
    BOLTZMANN_CONSTANT,
    EXTINCTION_WAVELENGTHS_NM,
    IRRADIANCE_DISPLAY_SCALE,
    IRRADIANCE_WAVELENGTHS_NM,
    PLANCK_CONSTANT,
    REFRACTIVE_INDEX_DRY,
    REFRACTIVE_INDEX_HUMIDITY_COEFF,
    SOURCE_TEMPERATURE_K,
    SPEED_OF_LIGHT,
)
from models.errors import InvalidParameterError
from models.weather_state import require_range


class WavelengthSet(NamedTuple):
    """One sampling wavelength per colour channel, in nanometres."""

    red: float
    green: float
    blue: float

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=float)

    def in_meters(self) -> np.ndarray:
        return self.as_array() * 1e-9


EXTINCTION_WAVELENGTHS = WavelengthSet(*EXTINCTION_WAVELENGTHS_NM)
IRRADIANCE_WAVELENGTHS = WavelengthSet(*IRRADIANCE_WAVELENGTHS_NM)


def refractive_index(
    humidity: float,
    n_dry: float = REFRACTIVE_INDEX_DRY,
    humidity_coeff: float = REFRACTIVE_INDEX_HUMIDITY_COEFF,
) -> float:
    """
    Refractive index of air adjusted for water vapour.

        n = n_dry + humidity_coeff * humidity

    Args:
        humidity: Relative humidity, 0-1.

    Returns:
        Refractive index (dimensionless, slightly above 1).
    """
    humidity = require_range("humidity", humidity, 0.0, 1.0)
    return n_dry + humidity_coeff * humidity


def planck_radiance(wavelength_m: np.ndarray, temperature: float) -> np.ndarray:
    """
    Planck's law for blackbody spectral radiance.

        B(λ, T) = 2hc² / (λ⁵ (exp(hc / λkT) - 1))

    Args:
        wavelength_m: Wavelength(s) in meters.
        temperature: Blackbody temperature in Kelvin.

    Returns:
        Spectral radiance in W·sr⁻¹·m⁻³, same shape as wavelength_m.
    """
    if temperature <= 0:
        raise InvalidParameterError(f"temperature must be > 0 K, got {temperature}")
    lam = np.asarray(wavelength_m, dtype=float)
    h, c, k = PLANCK_CONSTANT, SPEED_OF_LIGHT, BOLTZMANN_CONSTANT
    numerator = 2.0 * h * c ** 2
    # expm1 keeps the small-exponent (long wavelength / hot source) limit accurate
    denominator = lam ** 5 * np.expm1((h * c) / (lam * k * temperature))
    return numerator / denominator


def spectral_irradiance(
    wavelengths: WavelengthSet = IRRADIANCE_WAVELENGTHS,
    temperature: float = SOURCE_TEMPERATURE_K,
    display_scale: float = IRRADIANCE_DISPLAY_SCALE,
) -> np.ndarray:
    """Blackbody irradiance of the light source per channel, scaled for display."""
    return planck_radiance(wavelengths.in_meters(), temperature) * display_scale
