#!/usr/bin/env python3
"""
Off-thread rendering surface for color extraction and gradient synthesis.

A surface accepts a program, runs it away from the caller's thread and is
polled until it hands back a result string: a JSON color array for color
extraction, or a PNG data URI for gradients. Callers wait a bounded time and
treat a missing result as "no result" rather than an error.
"""

import base64
import io
import json
import logging
import re
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from PIL import Image

from extract_colors import extract_palette
from mesh_gradient import MIN_GRADIENT_COLORS, RENDER_SCALE, synthesize_mesh_gradient


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

POLL_TIMEOUT = 3.0  # Seconds to wait for a result
POLL_INTERVAL = 0.1  # Seconds between polls

PNG_DATA_URI_PREFIX = 'data:image/png;base64,'
_DATA_URI_PREFIX_PATTERN = re.compile(r'^data:image/png;base64,')


class RenderFailed(Exception):
    """The program running on a surface raised instead of producing a result."""


# =============================================================================
# PNG Codec
# =============================================================================

def encode_png_base64(img: Image.Image) -> str:
    """Encode an image as base64 PNG text."""
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return base64.b64encode(buffer.getvalue()).decode('ascii')


def decode_png_base64(data: str) -> Image.Image:
    """Decode base64 PNG text into a loaded image."""
    img = Image.open(io.BytesIO(base64.b64decode(data, validate=True)))
    img.load()
    return img


def encode_png_data_uri(img: Image.Image) -> str:
    """Encode an image as a 'data:image/png;base64,...' URI."""
    return PNG_DATA_URI_PREFIX + encode_png_base64(img)


def decode_png_data_uri(uri: str) -> Image.Image:
    """Decode a PNG data URI; a bare base64 payload is accepted too."""
    return decode_png_base64(_DATA_URI_PREFIX_PATTERN.sub('', uri))


# =============================================================================
# Programs
# =============================================================================

class ColorExtractionProgram:
    """Sample and filter colors from an embedded base64 PNG."""

    def __init__(self, image_base64: str):
        self.image_base64 = image_base64

    def run(self) -> str:
        img = decode_png_base64(self.image_base64)
        return json.dumps(extract_palette(img))


class MeshGradientProgram:
    """Paint a mesh gradient and export it as a PNG data URI."""

    def __init__(self, colors: list, width: int, height: int, scale: int = RENDER_SCALE):
        self.colors = list(colors)
        self.width = width
        self.height = height
        self.scale = scale

    def run(self) -> str:
        img = synthesize_mesh_gradient(self.colors, self.width, self.height, scale=self.scale)
        return encode_png_data_uri(img)


# =============================================================================
# Surfaces
# =============================================================================

class RenderSurface:
    """
    Interface for a rendering surface.

    load() starts a program; evaluate() returns None until the result string
    is ready, then the result. evaluate() raises RenderFailed if the program
    itself failed.
    """

    def load(self, program) -> None:
        raise NotImplementedError

    def evaluate(self) -> Optional[str]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class LocalRenderSurface(RenderSurface):
    """Runs programs in-process on a single background thread."""

    def __init__(self):
        self.executor: ThreadPoolExecutor = ThreadPoolExecutor(max_workers=1)
        self.future: Optional[Future] = None

    def load(self, program) -> None:
        if self.future is not None and not self.future.done():
            self.future.cancel()
        self.future = self.executor.submit(program.run)

    def evaluate(self) -> Optional[str]:
        if self.future is None or not self.future.done():
            return None
        error = self.future.exception()
        if error is not None:
            raise RenderFailed(f"{type(error).__name__}: {error}") from error
        return self.future.result()

    def close(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)


def wait_for_result(surface: RenderSurface, timeout: float = POLL_TIMEOUT,
                    interval: float = POLL_INTERVAL) -> Optional[str]:
    """
    Poll a surface until it produces a result or the timeout elapses.

    Returns:
        The result string, or None on timeout or program failure.
    """
    attempts = max(1, int(round(timeout / interval)))
    for _ in range(attempts):
        time.sleep(interval)
        try:
            result = surface.evaluate()
        except RenderFailed as e:
            logger.warning("Render program failed: %s", e)
            return None
        if result:
            return result

    logger.warning("No render result after %.1fs", timeout)
    return None


def rasterize(program, surface: Optional[RenderSurface] = None,
              timeout: float = POLL_TIMEOUT,
              interval: float = POLL_INTERVAL) -> Optional[str]:
    """
    Run a program on a surface and wait for its result string.

    A fresh LocalRenderSurface is used (and closed) when none is given.
    """
    owned = surface is None
    if owned:
        surface = LocalRenderSurface()
    try:
        surface.load(program)
        return wait_for_result(surface, timeout=timeout, interval=interval)
    finally:
        if owned:
            surface.close()


# =============================================================================
# Call Sites
# =============================================================================

def extract_real_colors(img: Image.Image, surface: Optional[RenderSurface] = None,
                        timeout: float = POLL_TIMEOUT,
                        interval: float = POLL_INTERVAL) -> Optional[list]:
    """
    Extract a filtered (unenhanced) palette from an image via a surface.

    Returns:
        List of '#rrggbb' strings, or None if no usable result arrived.
    """
    program = ColorExtractionProgram(encode_png_base64(img))
    result = rasterize(program, surface, timeout=timeout, interval=interval)
    if result is None:
        return None

    try:
        colors = json.loads(result)
    except json.JSONDecodeError as e:
        logger.warning("Could not parse extracted colors: %s", e)
        return None

    if not isinstance(colors, list):
        logger.warning("Extracted colors are not a list: %r", colors)
        return None
    return colors


def create_mesh_gradient_background(colors: list, width: int, height: int,
                                    surface: Optional[RenderSurface] = None,
                                    scale: int = RENDER_SCALE,
                                    timeout: float = POLL_TIMEOUT,
                                    interval: float = POLL_INTERVAL) -> Optional[Image.Image]:
    """
    Render a mesh gradient background via a surface.

    Returns:
        RGB image of (width * scale) x (height * scale), or None if no
        usable result arrived.

    Raises:
        ValueError: If fewer than two colors are given
    """
    if len(colors) < MIN_GRADIENT_COLORS:
        raise ValueError(f"Need at least {MIN_GRADIENT_COLORS} colors, got {len(colors)}")

    program = MeshGradientProgram(colors, width, height, scale=scale)
    result = rasterize(program, surface, timeout=timeout, interval=interval)
    if result is None:
        return None

    try:
        img = decode_png_data_uri(result)
    except (ValueError, OSError) as e:
        logger.warning("Could not decode gradient image: %s", e)
        return None
    return img.convert('RGB')
