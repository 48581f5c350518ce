"""
SkySim: Physically-Inspired Sky Colour Simulator, Streamlit Interface.

Run with:  streamlit run main.py
"""

import sys
import os

# Ensure the project root is on the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import logging

import numpy as np
import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

from config import (
    APP_TITLE,
    CANVAS_HEIGHT_PX,
    CANVAS_WIDTH_PX,
    CLOUD_CACHE_MAX_ENTRIES,
    FALLBACK_SKY_COLOR,
    FALLBACK_SUN_COLOR,
    MAX_LOGICAL_TIME_S,
    WEATHER_CACHE_TTL_S,
)
from data.overrides import WeatherLayers
from data.presets import FIELD_RANGES, get_preset_locations
from data.weather import Location, NWSWeatherProvider, WeatherFetchError
from logging_config import setup_logging
from models.cloud_field import BACKENDS, QUALITY_PRESETS, cloud_field_for_weather, get_backend
from models.scattering import optical_path_length
from models.sky_color import compute_sky_color, compute_sun_color, sun_size_factor
from models.weather_state import Color, WeatherState
from visualization.compass_widget import compass_html
from visualization.plots import (
    compose_sky_image,
    create_cloud_figure,
    create_radiance_figure,
    create_sky_figure,
    create_sun_angle_sweep_figure,
)

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "humidity": "Humidity (fraction)",
    "visibility": "Visibility (m)",
    "cloud_cover": "Cloud Cover (fraction)",
    "temperature": "Temperature (K)",
    "wind_speed": "Wind Speed (m/s)",
    "wind_direction": "Cloud Drift Direction (degrees, 0 = right, 90 = down)",
    "altitude": "Observer Altitude (m)",
    "sun_angle": "Sun Angle (degrees above horizon)",
}


@st.cache_resource
def _init_logging() -> bool:
    setup_logging(logging.INFO)
    return True


@st.cache_data(ttl=WEATHER_CACHE_TTL_S, show_spinner=False)
def fetch_baseline(latitude: float, longitude: float) -> WeatherState:
    """Fetched weather for a location, cached for WEATHER_CACHE_TTL_S seconds."""
    return NWSWeatherProvider().fetch(Location(latitude, longitude))


@st.cache_data(max_entries=CLOUD_CACHE_MAX_ENTRIES)
def cached_cloud_field(
    weather_key: tuple,
    time: float,
    width: int,
    height: int,
    quality: str,
    backend_name: str,
) -> np.ndarray:
    """Cached wrapper around cloud_field_for_weather keyed on a hashable snapshot."""
    weather = WeatherState(**dict(weather_key))
    return cloud_field_for_weather(
        weather, time, width, height, quality=quality, backend=get_backend(backend_name)
    )


def _slider_key(field: str) -> str:
    return f"weather_{field}"


def _clear_slider_state() -> None:
    for field in WeatherState.field_names():
        st.session_state.pop(_slider_key(field), None)


def _on_field_change(field: str) -> None:
    value = float(st.session_state[_slider_key(field)])
    st.session_state.layers = st.session_state.layers.with_overrides(**{field: value})


def _on_reset_overrides() -> None:
    st.session_state.layers = st.session_state.layers.without_overrides()
    _clear_slider_state()


# ── Page Config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title=APP_TITLE,
    page_icon="🌅",
    layout="wide",
)

_init_logging()

st.title(APP_TITLE)
st.markdown(
    "Estimates the colour of the sky and the sun from weather conditions using "
    "Rayleigh and Mie scattering, and overlays a procedural, wind-driven cloud layer."
)

# ── Location & Weather Baseline ──────────────────────────────────────────────

st.sidebar.header("Location")

locations = get_preset_locations()
location_names = [loc["name"] for loc in locations]
selected_name = st.sidebar.selectbox("Preset Location", location_names)
selected = next(loc for loc in locations if loc["name"] == selected_name)
location = Location(selected["latitude"], selected["longitude"])

if "layers" not in st.session_state:
    st.session_state.layers = WeatherLayers(location=location)
elif st.session_state.layers.location != location:
    st.session_state.layers = st.session_state.layers.with_location(location)
    _clear_slider_state()

use_live_weather = st.sidebar.checkbox(
    "Use live weather (National Weather Service)",
    value=True,
    help="Fetch current conditions for the selected location. "
         "Manual slider edits override individual fields.",
)

if use_live_weather:
    try:
        with st.spinner(f"Fetching weather for {selected_name}..."):
            baseline = fetch_baseline(location.latitude, location.longitude)
    except WeatherFetchError as exc:
        logger.warning("Weather fetch failed for %s: %s", selected_name, exc)
        st.sidebar.warning(f"Could not fetch weather: {exc}. Using default conditions.")
        baseline = None
else:
    baseline = None

if st.session_state.layers.base != baseline:
    st.session_state.layers = st.session_state.layers.with_base(baseline)

layers = st.session_state.layers
resolved = layers.resolved()

# ── Weather Controls ─────────────────────────────────────────────────────────

st.sidebar.markdown("---")
st.sidebar.header("Weather Conditions")

# Non-overridden sliders follow the baseline
for field, value in resolved.as_dict().items():
    if field not in layers.overrides:
        low, high, _ = FIELD_RANGES[field]
        st.session_state[_slider_key(field)] = float(min(max(value, low), high))

for field in WeatherState.field_names():
    low, high, step = FIELD_RANGES[field]
    label = FIELD_LABELS[field]
    if field in layers.overrides:
        label += " ✎"
    st.sidebar.slider(
        label,
        min_value=float(low),
        max_value=float(high),
        step=float(step),
        key=_slider_key(field),
        on_change=_on_field_change,
        args=(field,),
    )

st.sidebar.button(
    "Reset overrides",
    on_click=_on_reset_overrides,
    disabled=not layers.has_overrides,
)

components.html(compass_html(resolved.wind_direction, resolved.wind_speed), height=200)

# ── Cloud Settings ──────────────────────────────────────────────────────────

st.sidebar.markdown("---")
st.sidebar.header("Clouds")

logical_time = st.sidebar.slider(
    "Logical Time (s)",
    min_value=0.0,
    max_value=float(MAX_LOGICAL_TIME_S),
    value=0.0,
    step=1.0,
    help="Clouds drift with the wind and slowly evolve as time advances.",
)

quality = st.sidebar.radio(
    "Cloud Quality",
    list(QUALITY_PRESETS),
    format_func=lambda q: {"realtime": "Real-time (per pixel)", "coarse": "Coarse grid"}[q],
)

backend_name = st.sidebar.radio(
    "Evaluation Backend",
    list(BACKENDS),
    format_func=lambda b: {"vectorized": "NumPy (vectorized)", "compiled": "Numba (compiled)"}[b],
    help="Both backends evaluate the same formula; the compiled backend "
         "is faster after its first run.",
)

# ── Computation ─────────────────────────────────────────────────────────────

weather = resolved

with st.spinner("Computing sky and cloud field..."):
    sky_color = compute_sky_color(weather, fallback=Color.from_tuple(FALLBACK_SKY_COLOR))
    sun_color = compute_sun_color(weather, fallback=Color.from_tuple(FALLBACK_SUN_COLOR))
    cloud_opacity = cached_cloud_field(
        weather_key=tuple(weather.as_dict().items()),
        time=float(logical_time),
        width=CANVAS_WIDTH_PX,
        height=CANVAS_HEIGHT_PX,
        quality=quality,
        backend_name=backend_name,
    )
    image = compose_sky_image(
        sky_color,
        sun_color,
        weather.sun_angle,
        CANVAS_WIDTH_PX,
        CANVAS_HEIGHT_PX,
        cloud_opacity=cloud_opacity,
    )

# ── Summary Metrics ─────────────────────────────────────────────────────────

m1, m2, m3, m4, m5 = st.columns(5)
m1.metric("Sky Colour", sky_color.as_hex())
m2.metric("Sun Colour", sun_color.as_hex())
m3.metric("Path Length", f"{optical_path_length(weather.sun_angle) / 1000:.1f} km")
m4.metric("Sun Size", f"×{sun_size_factor(weather.sun_angle):.2f}")
m5.metric("Cloud Coverage", f"{float(np.mean(cloud_opacity > 0)):.0%}")

# ── Main Panels ─────────────────────────────────────────────────────────────

col_sky, col_info = st.columns([1, 1])

with col_sky:
    st.subheader("Sky View")
    st.plotly_chart(create_sky_figure(image), use_container_width=False)

with col_info:
    st.subheader("Channel Intensities")
    st.plotly_chart(create_radiance_figure(weather), use_container_width=True)

    st.subheader("Weather Layers")
    table = pd.DataFrame(
        {
            "Baseline": pd.Series(layers.base.as_dict() if layers.base else {}, dtype=float),
            "Override": pd.Series(dict(layers.overrides), dtype=float),
            "Resolved": pd.Series(weather.as_dict(), dtype=float),
        },
        index=list(WeatherState.field_names()),
    )
    st.dataframe(table.round(2), use_container_width=True)
    if layers.base is None:
        st.caption("No fetched baseline: unedited fields use default conditions.")

st.plotly_chart(create_sun_angle_sweep_figure(weather), use_container_width=True)

with st.expander("Cloud Opacity Field"):
    st.plotly_chart(create_cloud_figure(cloud_opacity), use_container_width=True)

# ── Model Description ───────────────────────────────────────────────────────

with st.expander("How the model works"):
    st.markdown(
        """
        **Source spectrum** — Planck black-body radiance at 5800 K sampled at
        three representative wavelengths (red, green, blue).

        **Scattering** — Rayleigh coefficients scale with λ⁻⁴ and depend on the
        humidity-adjusted refractive index; Mie scattering is wavelength
        independent. The Rayleigh and Schlick Mie phase
        functions weight light scattered toward the observer.

        **Path length** — A plane-parallel slant path through an 8 km scale
        height, capped at 400 km near the horizon. Sky radiance decays with
        observer altitude through an 8.5 km density scale height.

        **Colour** — Channel intensities are normalized so the brightest
        channel reaches 255; the sun is dimmed slightly toward the horizon.

        **Clouds** — Fractal value noise, thresholded and scaled by cloud
        cover, drifting with the wind and evolving slowly with time.

        ---
        *Weather data comes from the National Weather Service (US locations).
        Manual edits override individual fields and are cleared when the
        location changes.*
        """
    )
