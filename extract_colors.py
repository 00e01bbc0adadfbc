#!/usr/bin/env python3
"""
Extract a small background palette from an image.

Three stages:
1. Sample: average fixed regions of a downscaled copy of the image
2. Filter: greedily drop colors too close to ones already kept
3. Enhance: boost saturation and pull lightness into a background-friendly band
"""

import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image
from scipy.ndimage import uniform_filter

from colorspace import (
    color_distance, hex_to_hsl, hsl_to_hex, rgb_to_hex, round_half_up,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SAMPLE_SIZE = 100  # Working canvas is SAMPLE_SIZE x SAMPLE_SIZE
SAMPLE_RADIUS = 2  # 5x5 averaging window

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side

# Palette filter
DISTANCE_THRESHOLD = 50.0  # RGB distance below which two colors are "the same"
MIN_PALETTE_COLORS = 3
MAX_PALETTE_COLORS = 4

# Enhancement
SATURATION_GAIN = 1.2
SATURATION_BOOST = 10
MIN_LIGHTNESS = 25
MAX_LIGHTNESS = 65


@dataclass(frozen=True)
class SamplePoint:
    """A normalized sampling location and its averaging radius in working pixels."""
    x: float
    y: float
    radius: int = SAMPLE_RADIUS

    def to_pixel(self, size: int = SAMPLE_SIZE) -> tuple:
        """Map to (column, row) on a size x size canvas."""
        return int(self.x * size), int(self.y * size)


SAMPLE_POINTS = (
    SamplePoint(0.1, 0.1),  # top left
    SamplePoint(0.9, 0.1),  # top right
    SamplePoint(0.5, 0.5),  # center
    SamplePoint(0.1, 0.9),  # bottom left
    SamplePoint(0.9, 0.9),  # bottom right
    SamplePoint(0.3, 0.5),  # middle left
    SamplePoint(0.7, 0.5),  # middle right
    SamplePoint(0.5, 0.3),  # upper middle
    SamplePoint(0.5, 0.7),  # lower middle
)


# =============================================================================
# Image Loading
# =============================================================================

def load_image(image_path: str) -> Image.Image:
    """
    Load an image from disk as RGB.

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If file is not a valid image or exceeds size limits
    """
    try:
        img = Image.open(image_path)
    except FileNotFoundError:
        raise FileNotFoundError(f"Image not found: {image_path}")
    except Exception as e:
        raise ValueError(f"Could not open image: {e}")

    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise ValueError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    return img.convert('RGB')


# =============================================================================
# Stage 1: Sampling
# =============================================================================

def sample_colors(img: Image.Image, points=SAMPLE_POINTS,
                  sample_size: int = SAMPLE_SIZE) -> list:
    """
    Sample representative colors at fixed normalized points.

    The image is squashed to sample_size x sample_size, then each point takes
    the mean of the (2r+1)x(2r+1) window around it. Window coordinates are
    clamped at the canvas edges, which is exactly scipy's 'nearest' mode.

    Args:
        img: Source image (any mode, converted to RGB)
        points: Sequence of SamplePoint
        sample_size: Side of the square working canvas

    Returns:
        List of '#rrggbb' strings, one per point, in point order.

    Raises:
        ValueError: If the image has no pixels
    """
    if img.width == 0 or img.height == 0:
        raise ValueError(f"Cannot sample an empty image ({img.width}x{img.height})")

    canvas = img.convert('RGB').resize((sample_size, sample_size), Image.BILINEAR)
    pixels = np.asarray(canvas, dtype=np.float64)

    # Cache one filtered canvas per distinct radius
    means = {}
    colors = []
    for point in points:
        if point.radius not in means:
            window = 2 * point.radius + 1
            means[point.radius] = uniform_filter(pixels, size=(window, window, 1), mode='nearest')

        x, y = point.to_pixel(sample_size)
        x = min(x, sample_size - 1)
        y = min(y, sample_size - 1)
        r, g, b = (round_half_up(c) for c in means[point.radius][y, x])
        colors.append(rgb_to_hex((r, g, b)))

    logger.debug("Sampled %d colors: %s", len(colors), colors)
    return colors


# =============================================================================
# Stage 2: Filtering
# =============================================================================

def filter_similar_colors(colors: list, threshold: float = DISTANCE_THRESHOLD) -> list:
    """
    Keep only colors that differ noticeably from every color kept so far.

    Greedy and order dependent: a candidate survives if its RGB distance to
    each kept color is at least threshold. If fewer than MIN_PALETTE_COLORS
    survive, the filtered result is discarded and the first
    MIN_PALETTE_COLORS raw colors are returned instead.

    Returns:
        Between MIN_PALETTE_COLORS and MAX_PALETTE_COLORS colors (fewer only
        if the input itself is shorter than MIN_PALETTE_COLORS).
    """
    kept = []
    for color in colors:
        if all(color_distance(color, existing) >= threshold for existing in kept):
            kept.append(color)

    if len(kept) < MIN_PALETTE_COLORS:
        logger.debug("Only %d distinct colors, falling back to first %d samples",
                     len(kept), MIN_PALETTE_COLORS)
        return list(colors[:MIN_PALETTE_COLORS])

    return kept[:MAX_PALETTE_COLORS]


def extract_palette(img: Image.Image) -> list:
    """Sample and filter an image into a raw (unenhanced) palette."""
    return filter_similar_colors(sample_colors(img))


# =============================================================================
# Stage 3: Enhancement
# =============================================================================

def enhance_color(hex_color: str) -> str:
    """Boost saturation and clamp lightness so the color works as a background."""
    h, s, l = hex_to_hsl(hex_color)
    s = min(100, s * SATURATION_GAIN + SATURATION_BOOST)
    l = max(MIN_LIGHTNESS, min(MAX_LIGHTNESS, l))
    return hsl_to_hex(h, s, l)


def enhance_colors(colors: list) -> list:
    """Enhance each color independently; length and order are preserved."""
    return [enhance_color(c) for c in colors]


# =============================================================================
# Visualization
# =============================================================================

def visualize_palette(colors: list, output_path: str) -> None:
    """
    Create a swatch image of a palette with hex labels.

    Args:
        colors: List of '#rrggbb' strings
        output_path: Path to save the output image
    """
    from PIL import ImageDraw

    swatch_size = 80
    padding = 10
    text_height = 25
    cols = max(1, min(len(colors), 6))
    rows = (len(colors) + cols - 1) // cols

    img_width = cols * (swatch_size + padding) + padding
    img_height = rows * (swatch_size + text_height + padding) + padding

    img = Image.new('RGB', (img_width, img_height), (240, 240, 240))
    draw = ImageDraw.Draw(img)

    for i, color in enumerate(colors):
        row = i // cols
        col = i % cols

        x = padding + col * (swatch_size + padding)
        y = padding + row * (swatch_size + text_height + padding)

        draw.rectangle([x, y, x + swatch_size, y + swatch_size], fill=color)

        # Center label under swatch
        bbox = draw.textbbox((0, 0), color)
        text_width = bbox[2] - bbox[0]
        text_x = x + (swatch_size - text_width) // 2
        draw.text((text_x, y + swatch_size + 4), color, fill=(0, 0, 0))

    img.save(output_path)
    logger.info("Saved palette swatch to %s", output_path)
