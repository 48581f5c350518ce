"""
Visualization module for SkySim.

Composites sky colour, sun disc, halo, horizon reflection and the cloud
overlay into an RGB raster, and provides Plotly figures for the
Streamlit interface.
"""

from dataclasses import replace
from typing import Optional, Sequence

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from config import (
    CLOUD_RGB,
    HALO_ALPHA,
    HALO_INNER_FRACTION,
    HALO_OUTER_FRACTION,
    REFLECTION_HEIGHT_PX,
    SUN_ANGLE_MAX_DEG,
    SUN_ANGLE_MIN_DEG,
    SUN_INNER_FRACTION,
    SUN_OUTER_FRACTION,
)
from models.sky_color import (
    compute_sky_color,
    compute_sky_radiance,
    compute_sun_color,
    sun_size_factor,
    sun_transmittance,
)
from models.weather_state import Color, WeatherState

CHANNEL_LABELS = ("Red", "Green", "Blue")
CHANNEL_COLORS = ("#e74c3c", "#2ecc71", "#3498db")


# ── Raster compositing ──────────────────────────────────────────────────────

def _over(canvas: np.ndarray, color: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """Source-over blend of a flat colour with per-pixel alpha onto *canvas*."""
    a = np.clip(alpha, 0.0, 1.0)[..., None]
    return canvas * (1.0 - a) + color[None, None, :] * a


def _radial_distance(width: int, height: int, cx: float, cy: float) -> np.ndarray:
    yy, xx = np.mgrid[0:height, 0:width].astype(float)
    # Pixel centres
    return np.hypot(xx + 0.5 - cx, yy + 0.5 - cy)


def _radial_alpha(
    distance: np.ndarray,
    inner: float,
    outer: float,
    stops: Sequence[float],
    alphas: Sequence[float],
) -> np.ndarray:
    """Alpha of a two-circle radial gradient, zero outside the outer circle."""
    t = np.clip((distance - inner) / max(outer - inner, 1e-9), 0.0, 1.0)
    alpha = np.interp(t, stops, alphas)
    return np.where(distance <= outer, alpha, 0.0)


def sun_position(sun_angle: float, width: int, height: int):
    """Centre of the sun disc: horizontally centred, lower as the angle drops."""
    return width / 2.0, height * (1.0 - sun_angle / SUN_ANGLE_MAX_DEG)


def compose_sky_image(
    sky: Color,
    sun: Color,
    sun_angle: float,
    width: int,
    height: int,
    cloud_opacity: Optional[np.ndarray] = None,
    reflection_height: int = REFLECTION_HEIGHT_PX,
) -> np.ndarray:
    """
    Paint the sky scene into an RGB raster.

    Layers, bottom to top:
      1. Vertical gradient from the sky colour (top) to (2·sun + sky)/3 (horizon).
      2. Sun halo: radial gradient, alpha 0.4 -> 0 between 0.1w and 0.3w.
      3. Sun disc: radial gradient, alpha 1 -> 0.5 -> 0 between 0.05w and 0.1w.
      4. Cloud overlay in CLOUD_RGB with per-pixel opacity.
      5. Horizon reflection band below the sky, fading to a dim sun/sky mix.

    Halo and disc radii scale with sun_size_factor(sun_angle).

    Args:
        cloud_opacity: Optional (height, width) array in [0, 1].

    Returns:
        (height + reflection_height, width, 3) uint8 array.
    """
    sky_rgb = sky.as_array()
    sun_rgb = sun.as_array()
    size = sun_size_factor(sun_angle)

    f = np.linspace(0.0, 1.0, height)[:, None, None]
    horizon_rgb = (sun_rgb * 2.0 + sky_rgb) / 3.0
    canvas = sky_rgb * (1.0 - f) + horizon_rgb * f
    canvas = np.broadcast_to(canvas, (height, width, 3)).copy()

    cx, cy = sun_position(sun_angle, width, height)
    distance = _radial_distance(width, height, cx, cy)

    halo = _radial_alpha(
        distance,
        width * HALO_INNER_FRACTION * size,
        width * HALO_OUTER_FRACTION * size,
        stops=(0.0, 1.0),
        alphas=(HALO_ALPHA, 0.0),
    )
    canvas = _over(canvas, sun_rgb, halo)

    disc = _radial_alpha(
        distance,
        width * SUN_INNER_FRACTION * size,
        width * SUN_OUTER_FRACTION * size,
        stops=(0.0, 0.2, 1.0),
        alphas=(1.0, 0.5, 0.0),
    )
    canvas = _over(canvas, sun_rgb, disc)

    if cloud_opacity is not None:
        cloud_opacity = np.asarray(cloud_opacity, dtype=float)
        if cloud_opacity.shape != (height, width):
            raise ValueError(
                f"cloud_opacity shape {cloud_opacity.shape} does not match ({height}, {width})"
            )
        canvas = _over(canvas, np.array(CLOUD_RGB, dtype=float), cloud_opacity)

    if reflection_height > 0:
        g = np.linspace(0.0, 1.0, reflection_height)[:, None, None]
        reflection_rgb = sky_rgb * (1.0 - g) + ((sun_rgb + sky_rgb) / 2.0) * g
        reflection_alpha = 0.5 * (1.0 - g) + 0.2 * g
        band = np.broadcast_to(reflection_rgb * reflection_alpha, (reflection_height, width, 3))
        canvas = np.concatenate([canvas, band], axis=0)

    return np.clip(np.rint(canvas), 0, 255).astype(np.uint8)


# ── Figures ─────────────────────────────────────────────────────────────────

def create_sky_figure(image: np.ndarray, title: Optional[str] = None) -> go.Figure:
    """Show a composited sky raster without axes."""
    fig = go.Figure(go.Image(z=image, hoverinfo="skip"))
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(
        title=title,
        template="plotly_dark",
        height=image.shape[0] + 60,
        width=image.shape[1] + 40,
        margin=dict(l=20, r=20, t=40 if title else 20, b=20),
    )
    return fig


def create_cloud_figure(opacity: np.ndarray) -> go.Figure:
    """Heatmap of the cloud opacity field."""
    fig = go.Figure(
        go.Heatmap(
            z=opacity,
            colorscale="Greys_r",
            zmin=0,
            zmax=1,
            colorbar=dict(title="Opacity"),
            hovertemplate="x: %{x}px<br>y: %{y}px<br>opacity: %{z:.3f}<extra></extra>",
        )
    )
    fig.update_yaxes(autorange="reversed", scaleanchor="x", title_text="y (px)")
    fig.update_xaxes(title_text="x (px)")
    fig.update_layout(title="Cloud Opacity", template="plotly_dark", height=450)
    return fig


def create_radiance_figure(weather: WeatherState, altitude: Optional[float] = None) -> go.Figure:
    """Bar charts of raw sky radiance and direct sun intensity per channel."""
    sky = compute_sky_radiance(weather, altitude)
    sun = sun_transmittance(weather)

    fig = make_subplots(
        rows=1, cols=2,
        subplot_titles=("Sky radiance (scattered)", "Sun intensity (transmitted)"),
    )
    for col, values in ((1, sky), (2, sun)):
        fig.add_trace(
            go.Bar(
                x=list(CHANNEL_LABELS),
                y=values,
                marker_color=list(CHANNEL_COLORS),
                showlegend=False,
                hovertemplate="%{x}: %{y:.3e}<extra></extra>",
            ),
            row=1, col=col,
        )
    fig.update_layout(template="plotly_dark", height=300, margin=dict(l=40, r=20, t=40, b=40))
    return fig


def create_sun_angle_sweep_figure(weather: WeatherState, num_angles: int = 18) -> go.Figure:
    """Sky and sun colour swatches across the full sun-angle range."""
    angles = np.linspace(SUN_ANGLE_MIN_DEG, SUN_ANGLE_MAX_DEG, num_angles)
    sky_colors, sun_colors = [], []
    for angle in angles:
        state = replace(weather, sun_angle=float(angle))
        sky_colors.append(compute_sky_color(state).as_rgb_string())
        sun_colors.append(compute_sun_color(state).as_rgb_string())

    fig = go.Figure()
    for y, colors, label in ((1, sky_colors, "Sky"), (0, sun_colors, "Sun")):
        fig.add_trace(
            go.Scatter(
                x=angles,
                y=[y] * len(angles),
                mode="markers",
                marker=dict(size=22, color=colors, symbol="square",
                            line=dict(width=1, color="white")),
                name=label,
                text=colors,
                hovertemplate=label + " @ %{x:.0f}°<br>%{text}<extra></extra>",
            )
        )
    fig.update_yaxes(tickvals=[0, 1], ticktext=["Sun", "Sky"], range=[-0.7, 1.7])
    fig.update_xaxes(title_text="Sun angle (degrees)")
    fig.update_layout(
        title="Colour vs Sun Angle",
        template="plotly_dark",
        height=260,
        showlegend=False,
        margin=dict(l=60, r=20, t=40, b=40),
    )
    return fig
