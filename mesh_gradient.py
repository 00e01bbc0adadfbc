#!/usr/bin/env python3
"""
Synthesize soft "mesh" gradient backgrounds from a palette.

Layers, painted in order with source-over alpha compositing:
1. Solid fill with the first palette color
2. Linear gradients in random directions between neighbouring palette colors
3. Large radial blobs of random palette colors with a three-stop falloff
4. A faint white wash
"""

import logging
import math

import numpy as np
from PIL import Image

from colorspace import hex_to_rgb


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

RENDER_SCALE = 3  # Render at 3x the nominal size for sharper output

LINEAR_LAYERS = 3
LINEAR_ALPHA = 0.65

BLOB_COUNT = 8
BLOB_RADIUS_RANGE = (0.45, 0.95)  # Fraction of the longer canvas side
BLOB_STOPS = ((0.0, 0.55), (0.6, 0.25), (1.0, 0.0))  # (offset, alpha)

WASH_COLOR = (255, 255, 255)
WASH_ALPHA = 0.03

MIN_GRADIENT_COLORS = 2


# =============================================================================
# Compositing
# =============================================================================

def paint_over(canvas: np.ndarray, color, alpha) -> np.ndarray:
    """
    Composite color over an opaque canvas in place.

    Args:
        canvas: (H, W, 3) float array, 0-255
        color: (3,) color or (H, W, 3) per-pixel colors
        alpha: Scalar or (H, W) per-pixel alpha in [0, 1]
    """
    color = np.asarray(color, dtype=np.float64)
    alpha = np.asarray(alpha, dtype=np.float64)
    if alpha.ndim == 2:
        alpha = alpha[:, :, np.newaxis]
    canvas *= 1.0 - alpha
    canvas += color * alpha
    return canvas


def _pixel_grid(width: int, height: int) -> tuple:
    """Pixel-center coordinates as (xx, yy) arrays of shape (H, W)."""
    x = np.arange(width, dtype=np.float64) + 0.5
    y = np.arange(height, dtype=np.float64) + 0.5
    return np.meshgrid(x, y)


# =============================================================================
# Layers
# =============================================================================

def linear_gradient_layer(width: int, height: int, color1, color2,
                          angle: float, alpha: float = LINEAR_ALPHA) -> tuple:
    """
    Build a linear gradient across the canvas.

    The axis passes through the canvas center along angle, spanning
    cos(angle) * width horizontally and sin(angle) * height vertically.
    Pixels beyond either end take the end color.

    Returns:
        (colors, alpha): (H, W, 3) colors and (H, W) alpha
    """
    xx, yy = _pixel_grid(width, height)

    dx = math.cos(angle) * width
    dy = math.sin(angle) * height
    x0 = width / 2 - dx / 2
    y0 = height / 2 - dy / 2

    length_sq = dx * dx + dy * dy
    t = ((xx - x0) * dx + (yy - y0) * dy) / length_sq
    t = np.clip(t, 0.0, 1.0)[:, :, np.newaxis]

    c1 = np.asarray(color1, dtype=np.float64)
    c2 = np.asarray(color2, dtype=np.float64)
    colors = c1 * (1.0 - t) + c2 * t
    return colors, np.full((height, width), alpha)


def radial_blob_alpha(width: int, height: int, cx: float, cy: float,
                      radius: float, stops=BLOB_STOPS) -> np.ndarray:
    """
    Alpha of a radial blob at every pixel.

    Alpha is piecewise linear in distance / radius between the stops and
    holds the last stop's value beyond the outermost one.
    """
    xx, yy = _pixel_grid(width, height)
    distance = np.hypot(xx - cx, yy - cy) / radius
    offsets = [offset for offset, _ in stops]
    alphas = [a for _, a in stops]
    return np.interp(distance, offsets, alphas)


# =============================================================================
# Synthesis
# =============================================================================

def synthesize_mesh_gradient(colors: list, width: int, height: int,
                             scale: int = RENDER_SCALE, rng=None,
                             linear_layers: int = LINEAR_LAYERS,
                             blob_count: int = BLOB_COUNT) -> Image.Image:
    """
    Paint a soft blended gradient from a palette.

    Args:
        colors: Palette of '#rrggbb' strings; colors[0] is the base fill
        width: Nominal width in points
        height: Nominal height in points
        scale: Render scale; the output is (width * scale) x (height * scale)
        rng: numpy Generator; a fresh unseeded one by default

    Returns:
        RGB image of the scaled size.

    Raises:
        ValueError: If fewer than two colors or a non-positive size is given
    """
    if len(colors) < MIN_GRADIENT_COLORS:
        raise ValueError(f"Need at least {MIN_GRADIENT_COLORS} colors, got {len(colors)}")
    if width <= 0 or height <= 0 or scale <= 0:
        raise ValueError(f"Invalid canvas size {width}x{height} at scale {scale}")

    if rng is None:
        rng = np.random.default_rng()

    rgb = [hex_to_rgb(c) for c in colors]
    n = len(rgb)
    canvas_width = width * scale
    canvas_height = height * scale

    # Base fill
    canvas = np.empty((canvas_height, canvas_width, 3), dtype=np.float64)
    canvas[:, :] = rgb[0]

    # Broad color transitions
    for i in range(linear_layers):
        angle = rng.uniform(0, 2 * math.pi)
        layer, alpha = linear_gradient_layer(
            canvas_width, canvas_height, rgb[i % n], rgb[(i + 1) % n], angle
        )
        paint_over(canvas, layer, alpha)

    # Local blending
    max_dim = max(canvas_width, canvas_height)
    for _ in range(blob_count):
        color = rgb[rng.integers(n)]
        cx = rng.uniform(0, canvas_width)
        cy = rng.uniform(0, canvas_height)
        radius = rng.uniform(*BLOB_RADIUS_RANGE) * max_dim
        paint_over(canvas, color, radial_blob_alpha(canvas_width, canvas_height, cx, cy, radius))

    paint_over(canvas, WASH_COLOR, WASH_ALPHA)

    logger.debug("Synthesized %dx%d gradient from %d colors", canvas_width, canvas_height, n)
    pixels = np.clip(np.floor(canvas + 0.5), 0, 255).astype(np.uint8)
    return Image.fromarray(pixels)
