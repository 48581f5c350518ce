"""
Colour compositor: sky and sun colour from a weather snapshot.

Combines source irradiance, scattering coefficients, phase functions,
path length and altitude attenuation into three channel intensities,
then normalizes them to displayable 8-bit values.

Two colours are produced:
  - Sky: single-scattered light (Rayleigh + Mie) reaching the observer.
  - Sun: direct light after extinction along the slant path, dimmed
    toward the horizon.
"""

import logging
import math
from typing import Optional, Sequence

import numpy as np

from config import (
    EXTINCTION_SCALE,
    GREEN_PATH_MULTIPLIER,
    MIE_ASYMMETRY_G,
    SOURCE_TEMPERATURE_K,
    SUN_BRIGHTNESS_BASE,
    SUN_BRIGHTNESS_SLOPE,
    SUN_EXTINCTION_SCALE,
    SUN_GREEN_IRRADIANCE_FACTOR,
    SUN_SIZE_DIVISOR,
)
from models.errors import NumericDegenerateError
from models.scattering import (
    altitude_attenuation,
    mie_phase,
    optical_path_length,
    rayleigh_phase,
    scattering_coefficients,
    zenith_angle,
)
from models.spectrum import (
    EXTINCTION_WAVELENGTHS,
    IRRADIANCE_WAVELENGTHS,
    refractive_index,
    spectral_irradiance,
)
from models.weather_state import Color, WeatherState, require_range, validate_sun_angle

logger = logging.getLogger(__name__)

GREEN = 1


def _channel_path_lengths(path_length: float, green_multiplier: float) -> np.ndarray:
    lengths = np.full(3, path_length, dtype=float)
    lengths[GREEN] *= green_multiplier
    return lengths


def normalize_intensity(intensity: Sequence[float], brightness: float = 1.0) -> Color:
    """
    Scale channel intensities so the brightest channel maps to 255.

    Each channel becomes round(I / max(I) * 255 * brightness), rounded half
    up and clamped to [0, 255].

    Args:
        intensity: Three raw channel intensities.
        brightness: Multiplier applied after normalization (sun dimming).

    Raises:
        NumericDegenerateError: if any channel is non-finite or the peak
            channel is not strictly positive.
    """
    values = np.asarray(intensity, dtype=float)
    if values.shape != (3,):
        raise ValueError(f"expected three channel intensities, got shape {values.shape}")
    peak = float(np.max(values))
    if not np.all(np.isfinite(values)) or not math.isfinite(peak) or peak <= 0.0:
        raise NumericDegenerateError(values)

    scaled = values / peak * 255.0 * max(0.0, brightness)
    channels = np.clip(np.floor(scaled + 0.5), 0, 255).astype(int)
    return Color(*(int(c) for c in channels))


def _normalize_or_fallback(intensity, brightness, fallback: Optional[Color], label: str) -> Color:
    try:
        return normalize_intensity(intensity, brightness)
    except NumericDegenerateError as exc:
        if fallback is None:
            raise
        logger.warning("%s colour degenerate (%s); using fallback %s", label, exc.intensities, fallback)
        return fallback


def sea_level_sky_radiance(
    weather: WeatherState,
    extinction_scale: float = EXTINCTION_SCALE,
    green_path_multiplier: float = GREEN_PATH_MULTIPLIER,
    g: float = MIE_ASYMMETRY_G,
    source_temperature: float = SOURCE_TEMPERATURE_K,
) -> np.ndarray:
    """
    Unnormalized single-scattered sky intensity per channel at sea level.

        I_c = E_c · [exp(-β_R,c · L_c) · β_R,c · P_R + exp(-β_M · L) · β_M · P_M]

    where E is the source irradiance and L_c the path length (lengthened for
    green only on the Rayleigh term).

    Returns:
        (3,) array of R, G, B intensities in arbitrary display units.
    """
    n = refractive_index(weather.humidity)
    coeffs = scattering_coefficients(n, EXTINCTION_WAVELENGTHS, extinction_scale)
    irradiance = spectral_irradiance(IRRADIANCE_WAVELENGTHS, source_temperature)

    path_length = optical_path_length(weather.sun_angle)
    rayleigh_paths = _channel_path_lengths(path_length, green_path_multiplier)

    cos_theta = math.cos(zenith_angle(weather.sun_angle))

    beta_r = coeffs.rayleigh
    beta_m = coeffs.mie
    rayleigh = irradiance * np.exp(-beta_r * rayleigh_paths) * beta_r * rayleigh_phase(cos_theta)
    mie = irradiance * math.exp(-beta_m * path_length) * beta_m * mie_phase(cos_theta, g)
    return rayleigh + mie


def _observer_altitude(weather: WeatherState, altitude: Optional[float]) -> float:
    if altitude is None:
        altitude = weather.altitude
    return require_range("altitude", altitude, 0.0)


def compute_sky_radiance(
    weather: WeatherState,
    altitude: Optional[float] = None,
    **kwargs,
) -> np.ndarray:
    """
    Sky intensity per channel seen by an observer at *altitude*.

    The sea-level intensity scaled by the altitude attenuation
    exp(-altitude / 8500). Keyword arguments go to sea_level_sky_radiance.

    Args:
        weather: Resolved weather snapshot.
        altitude: Observer altitude override in meters. Defaults to
            ``weather.altitude``.
    """
    altitude = _observer_altitude(weather, altitude)
    return sea_level_sky_radiance(weather, **kwargs) * altitude_attenuation(altitude)


def compute_sky_color(
    weather: WeatherState,
    altitude: Optional[float] = None,
    fallback: Optional[Color] = None,
) -> Color:
    """
    Sky colour seen by an observer at *altitude*.

    Args:
        weather: Resolved weather snapshot.
        altitude: Observer altitude override (meters); ``None`` uses
            ``weather.altitude``.
        fallback: Colour returned (with a warning) if the intensities cannot
            be normalized. When ``None`` the NumericDegenerateError propagates.
    """
    _observer_altitude(weather, altitude)
    # Attenuation is uniform across channels and cancels in normalization,
    # so the colour is taken from the sea-level intensities.
    intensity = sea_level_sky_radiance(weather)
    color = _normalize_or_fallback(intensity, 1.0, fallback, "Sky")
    logger.debug("Sky colour %s for %s", color.as_tuple(), weather)
    return color


def sun_transmittance(
    weather: WeatherState,
    extinction_scale: float = SUN_EXTINCTION_SCALE,
    green_path_multiplier: float = GREEN_PATH_MULTIPLIER,
    green_irradiance_factor: float = SUN_GREEN_IRRADIANCE_FACTOR,
    source_temperature: float = SOURCE_TEMPERATURE_K,
) -> np.ndarray:
    """
    Direct solar intensity per channel after Rayleigh and Mie extinction.

    No phase function applies: this is the light travelling straight from
    the disc to the observer.
    """
    n = refractive_index(weather.humidity)
    coeffs = scattering_coefficients(n, EXTINCTION_WAVELENGTHS, extinction_scale)
    irradiance = spectral_irradiance(IRRADIANCE_WAVELENGTHS, source_temperature)
    irradiance[GREEN] *= green_irradiance_factor

    paths = _channel_path_lengths(optical_path_length(weather.sun_angle), green_path_multiplier)
    return irradiance * np.exp(-coeffs.rayleigh * paths) * np.exp(-coeffs.mie * paths)


def sun_brightness(sun_angle: float) -> float:
    """Disc brightness factor max(0, 0.9 + 0.1·cos θ_z); dims near the horizon."""
    cos_theta = math.cos(zenith_angle(sun_angle))
    return max(0.0, SUN_BRIGHTNESS_BASE + SUN_BRIGHTNESS_SLOPE * cos_theta)


def compute_sun_color(weather: WeatherState, fallback: Optional[Color] = None) -> Color:
    """Colour of the sun disc; see compute_sky_color for *fallback*."""
    intensity = sun_transmittance(weather)
    color = _normalize_or_fallback(intensity, sun_brightness(weather.sun_angle), fallback, "Sun")
    logger.debug("Sun colour %s for %s", color.as_tuple(), weather)
    return color


def sun_size_factor(sun_angle: float, divisor: float = SUN_SIZE_DIVISOR) -> float:
    """Scale of the sun disc and halo: 1 + (90 - sun_angle) / divisor."""
    return 1.0 + (90.0 - validate_sun_angle(sun_angle)) / divisor
