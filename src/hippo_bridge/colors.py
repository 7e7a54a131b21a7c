"""
RGB <-> HSV conversion on the scales used at both edges of the bridge.

The daemon stores lamp colour as 8-bit RGB channels. Alexa talks about hue in
degrees and saturation/brightness as percentages (or fractions on the wire), so
every brightness or colour directive is resolved by moving through HSV.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass


@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class HSV:
    h: float  # degrees, [0, 360)
    s: float  # percent, [0, 100]
    v: float  # percent, [0, 100]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_channel(value: float) -> int:
    # Half-up; round() would bank 127.5 and 128.5 in opposite directions.
    return int(_clamp(value, 0.0, 255.0) + 0.5)


def rgb_to_hsv(r: int, g: int, b: int) -> HSV:
    h, s, v = colorsys.rgb_to_hsv(
        _clamp(r, 0, 255) / 255.0,
        _clamp(g, 0, 255) / 255.0,
        _clamp(b, 0, 255) / 255.0,
    )
    return HSV(h=(h * 360.0) % 360.0, s=s * 100.0, v=v * 100.0)


def hsv_to_rgb(h: float, s: float, v: float) -> RGB:
    r, g, b = colorsys.hsv_to_rgb(
        (h % 360.0) / 360.0,
        _clamp(s, 0.0, 100.0) / 100.0,
        _clamp(v, 0.0, 100.0) / 100.0,
    )
    return RGB(r=_round_channel(r * 255.0), g=_round_channel(g * 255.0), b=_round_channel(b * 255.0))


def with_brightness(rgb: RGB, brightness: float) -> RGB:
    """Rescale ``rgb`` to a new HSV value, keeping hue and saturation."""
    hsv = rgb_to_hsv(rgb.r, rgb.g, rgb.b)
    return hsv_to_rgb(hsv.h, hsv.s, brightness)
