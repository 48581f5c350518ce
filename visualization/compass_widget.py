"""
Compass widget: sidebar SVG compass showing cloud drift direction and speed.

Rendered via st.components.v1.html(); display-only (sliders remain the input).
"""

import math


def drift_to_bearing(drift_direction_deg: float) -> float:
    """Screen drift angle (0 = +x, clockwise with +y down) to a compass bearing."""
    return (drift_direction_deg + 90.0) % 360.0


def _polar(cx: float, cy: float, radius: float, bearing_rad: float):
    return cx + radius * math.sin(bearing_rad), cy - radius * math.cos(bearing_rad)


def compass_html(drift_direction_deg: float, wind_speed: float, size: int = 180) -> str:
    """
    Return an HTML string containing an SVG compass.

    The arrow points where the clouds drift on screen, the same angle the
    cloud field advects along.

    Args:
        drift_direction_deg: Drift direction in degrees (0 = right, 90 = down).
        wind_speed: Wind speed in m/s.
        size: Pixel width/height of the compass.

    Returns:
        HTML string with embedded SVG.
    """
    cx = cy = size / 2
    r = size / 2 - 12
    bearing = drift_to_bearing(drift_direction_deg)

    ticks_svg = []
    for deg in range(0, 360, 15):
        rad = math.radians(deg)
        major = deg % 90 == 0
        x1, y1 = _polar(cx, cy, r - (12 if major else 5), rad)
        x2, y2 = _polar(cx, cy, r, rad)
        stroke = "#ffffff" if major else "rgba(255,255,255,0.35)"
        ticks_svg.append(
            f'<line x1="{x1:.1f}" y1="{y1:.1f}" x2="{x2:.1f}" y2="{y2:.1f}" '
            f'stroke="{stroke}" stroke-width="{2 if major else 1}"/>'
        )

    labels_svg = []
    for label, deg in (("N", 0), ("E", 90), ("S", 180), ("W", 270)):
        lx, ly = _polar(cx, cy, r - 22, math.radians(deg))
        labels_svg.append(
            f'<text x="{lx:.1f}" y="{ly:.1f}" text-anchor="middle" '
            f'dominant-baseline="central" fill="#ffffff" font-size="13" '
            f'font-weight="bold" font-family="sans-serif">{label}</text>'
        )

    # ── Drift arrow ──
    arrow_svg = ""
    if wind_speed > 0:
        rad = math.radians(bearing)
        tip_x, tip_y = _polar(cx, cy, r - 30, rad)
        tail_x, tail_y = _polar(cx, cy, -12, rad)
        base_x, base_y = _polar(tip_x, tip_y, -16, rad)
        w1x, w1y = _polar(base_x, base_y, 10, rad + math.pi / 2)
        w2x, w2y = _polar(base_x, base_y, -10, rad + math.pi / 2)
        arrow_svg = (
            f'<line x1="{tail_x:.1f}" y1="{tail_y:.1f}" x2="{tip_x:.1f}" y2="{tip_y:.1f}" '
            f'stroke="#f5f5f5" stroke-width="3" stroke-linecap="round"/>'
            f'<polygon points="{tip_x:.1f},{tip_y:.1f} {w1x:.1f},{w1y:.1f} {w2x:.1f},{w2y:.1f}" '
            f'fill="#f5f5f5"/>'
        )

    center_svg = (
        f'<circle cx="{cx}" cy="{cy}" r="18" fill="#1a1a2e" stroke="#aab7c4" stroke-width="1.5"/>'
        f'<text x="{cx}" y="{cy - 3}" text-anchor="middle" dominant-baseline="central" '
        f'fill="#f5f5f5" font-size="11" font-weight="bold" font-family="sans-serif">'
        f'{wind_speed:.1f}</text>'
        f'<text x="{cx}" y="{cy + 10}" text-anchor="middle" dominant-baseline="central" '
        f'fill="rgba(255,255,255,0.6)" font-size="8" font-family="sans-serif">m/s</text>'
    )

    caption = "Calm" if wind_speed <= 0 else f"Clouds drift toward {bearing:.0f}°"
    caption_svg = (
        f'<text x="{cx}" y="{size - 1}" text-anchor="middle" '
        f'fill="rgba(255,255,255,0.5)" font-size="10" font-family="sans-serif">{caption}</text>'
    )

    svg = (
        f'<svg width="{size}" height="{size}" xmlns="http://www.w3.org/2000/svg">'
        f'<rect width="{size}" height="{size}" rx="8" fill="#0e1117"/>'
        f'<circle cx="{cx}" cy="{cy}" r="{r:.1f}" fill="none" stroke="rgba(255,255,255,0.3)" stroke-width="1.5"/>'
        f'{"".join(ticks_svg)}'
        f'{"".join(labels_svg)}'
        f'{arrow_svg}'
        f'{center_svg}'
        f'{caption_svg}'
        f'</svg>'
    )
    return f'<div style="display:flex;justify-content:center;">{svg}</div>'
