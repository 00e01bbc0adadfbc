#!/usr/bin/env python3
"""
Day counter widget: "<title> N 天" over a mesh gradient background.

Widget mode reads the stored title, start date and palette and renders.
Configuration mode (--title, --date, --image, --default-colors) updates the
stored preferences first, then renders a preview.
"""

import logging
import random
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from colorspace import is_hex_color
from extract_colors import enhance_colors, load_image, visualize_palette
from mesh_gradient import MIN_GRADIENT_COLORS, RENDER_SCALE
from preferences import PreferenceStore, choose_default_palette, parse_iso_date
from render_surface import (
    POLL_TIMEOUT, RenderSurface, create_mesh_gradient_background, extract_real_colors,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

SUBTITLE = "天"

MIN_START_DATE = date(2000, 1, 1)

TEXT_COLOR = (255, 255, 255)
SHADOW_ALPHA = 0.5

WIDGET_CONFIGS = {
    'small': {
        'width': 155, 'height': 155,
        'title_font': 11, 'number_font': 32, 'subtitle_font': 10,
        'padding': 12, 'spacing': 4,
    },
    'medium': {
        'width': 329, 'height': 155,
        'title_font': 14, 'number_font': 48, 'subtitle_font': 12,
        'padding': 16, 'spacing': 6,
    },
    'large': {
        'width': 329, 'height': 345,
        'title_font': 16, 'number_font': 64, 'subtitle_font': 14,
        'padding': 20, 'spacing': 8,
    },
}
DEFAULT_FAMILY = 'medium'


@dataclass(frozen=True)
class TextStyle:
    """How one piece of widget text is drawn."""
    opacity: float = 1.0
    shadow_radius: float = 2.0
    min_scale: float = 1.0  # Smallest allowed fraction of the nominal size when shrinking to fit


TITLE_STYLE = TextStyle(opacity=0.95, shadow_radius=2.0, min_scale=0.7)
NUMBER_STYLE = TextStyle(opacity=1.0, shadow_radius=3.0, min_scale=0.5)
UNIT_STYLE = TextStyle(opacity=0.9, shadow_radius=2.0)


@dataclass
class WidgetRender:
    """A rendered widget and the values it was built from."""
    image: Image.Image
    family: str
    title: str
    start_date: date
    day_count: int
    colors: list
    has_gradient: bool


# =============================================================================
# Day Counting
# =============================================================================

def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def calculate_days_between(start, end) -> int:
    """Whole calendar days between two dates or datetimes, ignoring order."""
    return abs((_as_date(end) - _as_date(start)).days)


def format_number(num: int) -> str:
    """Format with comma thousands separators: 1234567 -> '1,234,567'."""
    return f"{num:,}"


def get_widget_config(family: Optional[str]) -> dict:
    """Layout config for a widget family; unknown families get the medium layout."""
    return dict(WIDGET_CONFIGS.get(family, WIDGET_CONFIGS[DEFAULT_FAMILY]))


# =============================================================================
# Configuration
# =============================================================================

def configure_start_date(store: PreferenceStore, start: date,
                         today: Optional[date] = None) -> date:
    """
    Save a start date.

    Raises:
        ValueError: If the date is before MIN_START_DATE or in the future
    """
    today = today or date.today()
    start = _as_date(start)
    if start < MIN_START_DATE or start > today:
        raise ValueError(
            f"Start date {start.isoformat()} must be between "
            f"{MIN_START_DATE.isoformat()} and {today.isoformat()}"
        )
    store.write_start_date(start)
    return start


def configure_colors(store: PreferenceStore, image: Optional[Image.Image] = None,
                     surface: Optional[RenderSurface] = None,
                     timeout: float = POLL_TIMEOUT,
                     rng: Optional[random.Random] = None) -> list:
    """
    Derive and save a background palette.

    With an image, colors are extracted and enhanced. Without one, or when
    extraction yields nothing usable, a random default palette is used.
    """
    if image is not None:
        extracted = extract_real_colors(image, surface, timeout=timeout)
        if (extracted and len(extracted) >= MIN_GRADIENT_COLORS
                and all(is_hex_color(c) for c in extracted)):
            colors = enhance_colors(extracted)
            store.write_colors(colors)
            logger.debug("Extracted palette %s", colors)
            return colors
        logger.warning("Color extraction gave no usable palette, using a default one")

    colors = choose_default_palette(rng)
    store.write_colors(colors)
    return colors


# =============================================================================
# Rendering
# =============================================================================

def resolve_background(colors: list, config: dict,
                       surface: Optional[RenderSurface] = None,
                       scale: int = RENDER_SCALE,
                       timeout: float = POLL_TIMEOUT) -> tuple:
    """
    Build the background image, falling back to a solid fill of colors[0].

    Returns:
        (image, has_gradient)
    """
    width, height = config['width'], config['height']
    background = create_mesh_gradient_background(
        colors, width, height, surface, scale=scale, timeout=timeout
    )
    if background is not None:
        return background, True

    logger.warning("Gradient background unavailable, using solid %s", colors[0])
    return Image.new('RGB', (width * scale, height * scale), colors[0]), False


def _load_font(size: int, font_path: Optional[str] = None):
    if font_path:
        return ImageFont.truetype(font_path, size)
    return ImageFont.load_default(size=size)


def _fit_font(draw: ImageDraw.ImageDraw, text: str, size: int, max_width: float,
              min_scale: float, font_path: Optional[str] = None):
    """Largest font between size * min_scale and size that fits max_width."""
    min_size = max(1, int(size * min_scale))
    font = _load_font(size, font_path)
    while size > min_size and draw.textlength(text, font=font) > max_width:
        size -= 1
        font = _load_font(size, font_path)
    return font


def _draw_text(canvas: Image.Image, xy: tuple, text: str, font, style: TextStyle,
               scale: int) -> None:
    """Draw white text with a soft black drop shadow onto an RGBA canvas."""
    shadow = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).text(xy, text, font=font, fill=(0, 0, 0, int(255 * SHADOW_ALPHA)))
    if style.shadow_radius > 0:
        shadow = shadow.filter(ImageFilter.GaussianBlur(style.shadow_radius * scale / 2))
    canvas.alpha_composite(shadow)

    layer = Image.new('RGBA', canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(layer).text(xy, text, font=font, fill=(*TEXT_COLOR, int(255 * style.opacity)))
    canvas.alpha_composite(layer)


def layout_widget(background: Image.Image, title: str, day_count: int, config: dict,
                  scale: int = RENDER_SCALE, font_path: Optional[str] = None) -> Image.Image:
    """
    Lay out the title and day count over a background.

    The title sits in the top-left corner inside the padding. The count and
    unit form one row, centered horizontally and vertically in the space
    below the title. All metrics are multiplied by scale.
    """
    canvas = background.convert('RGBA')
    width, height = canvas.size
    padding = config['padding'] * scale
    spacing = config['spacing'] * scale
    inner_width = width - 2 * padding
    measure = ImageDraw.Draw(canvas)

    # Title
    title_font = _fit_font(measure, title, config['title_font'] * scale, inner_width,
                           TITLE_STYLE.min_scale, font_path)
    title_box = measure.textbbox((padding, padding), title, font=title_font)
    _draw_text(canvas, (padding, padding), title, title_font, TITLE_STYLE, scale)

    # Count and unit
    number = format_number(day_count)
    unit_font = _load_font(config['subtitle_font'] * scale, font_path)
    unit_box = measure.textbbox((0, 0), SUBTITLE, font=unit_font)
    unit_width = unit_box[2] - unit_box[0]
    unit_height = unit_box[3] - unit_box[1]

    number_font = _fit_font(measure, number, config['number_font'] * scale,
                            inner_width - spacing - unit_width,
                            NUMBER_STYLE.min_scale, font_path)
    number_box = measure.textbbox((0, 0), number, font=number_font)
    number_width = number_box[2] - number_box[0]
    number_height = number_box[3] - number_box[1]

    row_x = (width - (number_width + spacing + unit_width)) / 2
    row_center = (title_box[3] + height - padding) / 2

    _draw_text(canvas, (row_x - number_box[0], row_center - number_height / 2 - number_box[1]),
               number, number_font, NUMBER_STYLE, scale)
    _draw_text(canvas, (row_x + number_width + spacing - unit_box[0],
                        row_center - unit_height / 2 - unit_box[1]),
               SUBTITLE, unit_font, UNIT_STYLE, scale)

    return canvas.convert('RGB')


def render_widget(family: Optional[str] = DEFAULT_FAMILY,
                  store: Optional[PreferenceStore] = None,
                  surface: Optional[RenderSurface] = None,
                  today: Optional[date] = None,
                  font_path: Optional[str] = None,
                  scale: int = RENDER_SCALE,
                  timeout: float = POLL_TIMEOUT,
                  rng: Optional[random.Random] = None) -> WidgetRender:
    """Render the widget from stored preferences."""
    store = store or PreferenceStore()
    today = today or date.today()
    family = family if family in WIDGET_CONFIGS else DEFAULT_FAMILY
    config = get_widget_config(family)

    title = store.read_title()
    start_date = store.read_start_date(today)
    day_count = calculate_days_between(start_date, today)
    colors = store.resolve_colors(rng)

    background, has_gradient = resolve_background(colors, config, surface,
                                                  scale=scale, timeout=timeout)
    image = layout_widget(background, title, day_count, config, scale=scale,
                          font_path=font_path)

    return WidgetRender(
        image=image,
        family=family,
        title=title,
        start_date=start_date,
        day_count=day_count,
        colors=colors,
        has_gradient=has_gradient,
    )


# =============================================================================
# CLI
# =============================================================================

def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(
        description='Render the day counter widget, optionally updating its settings first.'
    )
    parser.add_argument(
        '--family', '-f',
        choices=sorted(WIDGET_CONFIGS),
        default=DEFAULT_FAMILY,
        help='Widget size (default: medium)'
    )
    parser.add_argument(
        '--output', '-o',
        help='PNG path for the rendered widget (default: widget-<family>.png)'
    )
    parser.add_argument(
        '--documents-dir',
        help='Directory holding the widget preferences (default: ~/Documents)'
    )
    parser.add_argument(
        '--title',
        help='Set the title; an empty string restores the default'
    )
    parser.add_argument(
        '--date',
        help='Set the start date (ISO-8601, e.g. 2024-02-14)'
    )
    colors_group = parser.add_mutually_exclusive_group()
    colors_group.add_argument(
        '--image', '-i',
        help='Extract the background palette from this image'
    )
    colors_group.add_argument(
        '--default-colors',
        action='store_true',
        help='Use a random built-in palette'
    )
    parser.add_argument(
        '--swatch',
        help='Also write a swatch image of the palette to this path'
    )
    parser.add_argument(
        '--font',
        help='TrueType/OpenType font for widget text (needs CJK glyphs for the default title)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log pipeline details'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    store = PreferenceStore(Path(args.documents_dir) if args.documents_dir else None)

    try:
        if args.title is not None:
            store.write_title(args.title)
        if args.date is not None:
            configure_start_date(store, parse_iso_date(args.date))
        if args.image:
            configure_colors(store, load_image(args.image))
        elif args.default_colors:
            configure_colors(store)

        result = render_widget(args.family, store, font_path=args.font)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, OSError) as e:
        print(f"Error rendering widget: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"{result.title} {format_number(result.day_count)} {SUBTITLE}")
    print(f"Since: {result.start_date.isoformat()}")
    print(f"Palette: {', '.join(result.colors)}")
    if not result.has_gradient:
        print("Background: solid fallback")

    output_path = Path(args.output) if args.output else Path(f"widget-{result.family}.png")
    try:
        result.image.save(output_path)
        print(f"\nWrote: {output_path}")
        if args.swatch:
            visualize_palette(result.colors, args.swatch)
            print(f"Wrote: {args.swatch}")
    except (OSError, ValueError) as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
