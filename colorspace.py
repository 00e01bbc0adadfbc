#!/usr/bin/env python3
"""
Color conversion utilities: hex <-> RGB <-> HSL, plus RGB distance.

Colors cross module boundaries as lowercase '#rrggbb' strings. HSL values are
hue in degrees [0, 360) and saturation/lightness in percent [0, 100].
"""

import math
import re


HEX_PATTERN = re.compile(r'^#[0-9a-fA-F]{6}$')

# sqrt(255^2 * 3): distance between black and white
MAX_RGB_DISTANCE = math.sqrt(3 * 255 ** 2)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def is_hex_color(value) -> bool:
    """Check whether value is a '#rrggbb' string."""
    return isinstance(value, str) and HEX_PATTERN.match(value) is not None


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert '#rrggbb' (any case) to an (r, g, b) tuple of ints."""
    if not is_hex_color(hex_color):
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return (
        int(hex_color[1:3], 16),
        int(hex_color[3:5], 16),
        int(hex_color[5:7], 16),
    )


def rgb_to_hex(rgb) -> str:
    """Convert an (r, g, b) sequence (0-255) to a lowercase '#rrggbb' string."""
    r, g, b = (max(0, min(255, int(c))) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def color_distance(c1: str, c2: str) -> float:
    """Euclidean distance between two hex colors in RGB space (0 to ~441.67)."""
    r1, g1, b1 = hex_to_rgb(c1)
    r2, g2, b2 = hex_to_rgb(c2)
    return math.sqrt((r1 - r2) ** 2 + (g1 - g2) ** 2 + (b1 - b2) ** 2)


def rgb_to_hsl(r: int, g: int, b: int) -> tuple:
    """
    Convert RGB (0-255) to HSL.

    Returns:
        (h, s, l) rounded to integers: hue in degrees, saturation and
        lightness in percent. Grays (max == min) have h = s = 0.
    """
    r, g, b = r / 255, g / 255, b / 255

    high = max(r, g, b)
    low = min(r, g, b)
    l = (high + low) / 2

    if high == low:
        h = s = 0.0
    else:
        d = high - low
        s = d / (2 - high - low) if l > 0.5 else d / (high + low)

        if high == r:
            h = ((g - b) / d + (6 if g < b else 0)) / 6
        elif high == g:
            h = ((b - r) / d + 2) / 6
        else:
            h = ((r - g) / d + 4) / 6

    return (
        round_half_up(h * 360) % 360,
        round_half_up(s * 100),
        round_half_up(l * 100),
    )


def hsl_to_rgb(h: float, s: float, l: float) -> tuple:
    """
    Convert HSL (degrees, percent, percent) to an (r, g, b) tuple of ints.

    Hue wraps around, so 360 is treated as 0.
    """
    h = h % 360
    s = s / 100
    l = l / 100

    c = (1 - abs(2 * l - 1)) * s
    x = c * (1 - abs((h / 60) % 2 - 1))
    m = l - c / 2

    # One 60 degree sector per permutation of (c, x, 0)
    if h < 60:
        r, g, b = c, x, 0
    elif h < 120:
        r, g, b = x, c, 0
    elif h < 180:
        r, g, b = 0, c, x
    elif h < 240:
        r, g, b = 0, x, c
    elif h < 300:
        r, g, b = x, 0, c
    else:
        r, g, b = c, 0, x

    return tuple(
        max(0, min(255, round_half_up((channel + m) * 255)))
        for channel in (r, g, b)
    )


def hsl_to_hex(h: float, s: float, l: float) -> str:
    """Convert HSL (degrees, percent, percent) to a '#rrggbb' string."""
    return rgb_to_hex(hsl_to_rgb(h, s, l))


def hex_to_hsl(hex_color: str) -> tuple:
    """Convert '#rrggbb' to rounded (h, s, l)."""
    return rgb_to_hsl(*hex_to_rgb(hex_color))
