"""
Procedural lung-sound spectrogram.

Not a real signal analysis: intensities follow a simple rule per sound type
(normal, wheezes, crackles) plus random noise, drawn as an SVG heat map.
"""
from __future__ import annotations

import base64
import math
import random
from dataclasses import dataclass

WIDTH = 1024
HEIGHT = 768
PADDING = 80
PLOT_WIDTH = WIDTH - 2 * PADDING
PLOT_HEIGHT = HEIGHT - 2 * PADDING

TIME_STEPS = 100
FREQ_BINS = 80
MAX_FREQ_HZ = 2000
TICKS = 10
MIN_VISIBLE = 0.1

SOUND_TYPES = ("normal", "wheezes", "crackles")


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    intensity: float


def _num(v: float) -> str:
    return f"{v:.2f}".rstrip("0").rstrip(".")


def intensity_at(sound_type: str, freq: float, t: float, rng: random.Random) -> float:
    intensity = 0.0
    if sound_type == "wheezes":
        if 400 < freq < 1000:
            intensity = 0.7 + 0.3 * math.sin(t * 8 + freq * 0.01)
        elif 100 < freq < 400:
            intensity = 0.3 + 0.2 * math.sin(t * 4)
    elif sound_type == "crackles":
        # short bursts above 500 Hz
        if rng.random() < 0.1 and freq > 500:
            intensity = 0.8 + 0.2 * rng.random()
        elif freq < 300:
            intensity = 0.4 + 0.3 * math.sin(t * 6)
    else:
        if freq < 200:
            intensity = 0.5 + 0.3 * math.sin(t * 2 + freq * 0.02)
        elif freq < 500:
            intensity = 0.2 + 0.1 * math.sin(t * 3)

    intensity += 0.1 * rng.random()
    return max(0.0, min(1.0, intensity))


def spectrogram_points(sound_type: str, duration: float, rng: random.Random) -> list[Point]:
    points = []
    for ti in range(TIME_STEPS):
        for fi in range(FREQ_BINS):
            freq = fi / FREQ_BINS * MAX_FREQ_HZ
            t = ti / TIME_STEPS * duration
            value = intensity_at(sound_type, freq, t, rng)
            if value > MIN_VISIBLE:
                points.append(
                    Point(
                        x=PADDING + ti / TIME_STEPS * PLOT_WIDTH,
                        y=PADDING + PLOT_HEIGHT - fi / FREQ_BINS * PLOT_HEIGHT,
                        intensity=value,
                    )
                )
    return points


def point_color(intensity: float) -> str:
    r = math.floor(255 * intensity)
    g = math.floor(255 * (1 - intensity * 0.5))
    b = math.floor(255 * (1 - intensity))
    return f"rgba({r}, {g}, {b}, {_num(intensity)})"


def render_svg(sound_type: str = "normal", duration: float = 5, rng: random.Random | None = None) -> str:
    if duration <= 0:
        raise ValueError("Duration must be positive.")
    rng = rng or random.Random()

    parts = [
        f'<svg width="{WIDTH}" height="{HEIGHT}" xmlns="http://www.w3.org/2000/svg">',
        f'<rect width="{WIDTH}" height="{HEIGHT}" fill="#1a1a2e"/>',
        f'<text x="{WIDTH // 2}" y="30" font-family="Arial, sans-serif" font-size="24" font-weight="bold" '
        'fill="#ffffff" text-anchor="middle">Lung Sound Spectrogram</text>',
        f'<text x="20" y="{HEIGHT // 2}" font-family="Arial, sans-serif" font-size="16" fill="#ffffff" '
        f'text-anchor="middle" transform="rotate(-90 20 {HEIGHT // 2})">Frequency (Hz)</text>',
        f'<text x="{WIDTH // 2}" y="{HEIGHT - 20}" font-family="Arial, sans-serif" font-size="16" '
        'fill="#ffffff" text-anchor="middle">Time (seconds)</text>',
        f'<rect x="{PADDING}" y="{PADDING}" width="{PLOT_WIDTH}" height="{PLOT_HEIGHT}" fill="#0f0f1a" '
        'stroke="#333" stroke-width="2"/>',
    ]

    for p in spectrogram_points(sound_type, duration, rng):
        parts.append(f'<rect x="{_num(p.x)}" y="{_num(p.y)}" width="3" height="3" fill="{point_color(p.intensity)}"/>')

    base_y = PADDING + PLOT_HEIGHT
    for i in range(TICKS + 1):
        freq = i / TICKS * MAX_FREQ_HZ
        y = base_y - i / TICKS * PLOT_HEIGHT
        parts.append(f'<line x1="{PADDING - 5}" y1="{_num(y)}" x2="{PADDING}" y2="{_num(y)}" stroke="#666" stroke-width="1"/>')
        parts.append(
            f'<text x="{PADDING - 10}" y="{_num(y + 5)}" font-family="Arial, sans-serif" font-size="12" '
            f'fill="#ccc" text-anchor="end">{freq:.0f}</text>'
        )
    for i in range(TICKS + 1):
        t = i / TICKS * duration
        x = PADDING + i / TICKS * PLOT_WIDTH
        parts.append(f'<line x1="{_num(x)}" y1="{base_y}" x2="{_num(x)}" y2="{base_y + 5}" stroke="#666" stroke-width="1"/>')
        parts.append(
            f'<text x="{_num(x)}" y="{base_y + 20}" font-family="Arial, sans-serif" font-size="12" '
            f'fill="#ccc" text-anchor="middle">{t:.1f}</text>'
        )

    parts.append("</svg>")
    return "".join(parts)


def render_spectrogram(sound_type: str = "normal", duration: float = 5, rng: random.Random | None = None) -> str:
    """SVG spectrogram as a data:image/svg+xml;base64 URL."""
    svg = render_svg(sound_type, duration, rng)
    return "data:image/svg+xml;base64," + base64.b64encode(svg.encode("utf-8")).decode("ascii")
