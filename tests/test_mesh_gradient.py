"""Tests for mesh gradient synthesis and its compositing primitives."""

import math

import numpy as np
import pytest

from colorspace import hex_to_rgb
from mesh_gradient import (
    LINEAR_ALPHA, WASH_ALPHA, linear_gradient_layer, paint_over,
    radial_blob_alpha, synthesize_mesh_gradient,
)


PALETTE = ['#EE7B94', '#7BC2EE']


def test_paint_over_blends_with_alpha():
    canvas = np.zeros((2, 2, 3))
    paint_over(canvas, (255, 255, 255), 0.5)
    assert np.allclose(canvas, 127.5)


def test_paint_over_per_pixel_alpha():
    canvas = np.full((1, 2, 3), 100.0)
    paint_over(canvas, (200, 200, 200), np.array([[0.0, 1.0]]))
    assert np.allclose(canvas[0, 0], 100)
    assert np.allclose(canvas[0, 1], 200)


def test_linear_gradient_runs_along_angle():
    colors, alpha = linear_gradient_layer(10, 1, (0, 0, 0), (200, 100, 0), angle=0.0)
    assert colors.shape == (1, 10, 3)
    assert np.allclose(alpha, LINEAR_ALPHA)
    # Pixel centers sit at t = 0.05, 0.15, ..., 0.95
    assert np.allclose(colors[0, 0], (10, 5, 0))
    assert np.allclose(colors[0, -1], (190, 95, 0))
    assert np.all(np.diff(colors[0, :, 0]) > 0)


def test_linear_gradient_reversed_direction():
    colors, _ = linear_gradient_layer(10, 1, (0, 0, 0), (200, 100, 0), angle=math.pi)
    assert np.all(np.diff(colors[0, :, 0]) < 0)


def test_radial_blob_three_stop_falloff():
    alpha = radial_blob_alpha(201, 1, cx=100.5, cy=0.5, radius=100)
    assert alpha[0, 100] == pytest.approx(0.55)
    assert alpha[0, 130] == pytest.approx(0.40)
    assert alpha[0, 160] == pytest.approx(0.25)
    assert alpha[0, 200] == pytest.approx(0.0)
    assert alpha[0, 0] == pytest.approx(0.0, abs=0.01)


def test_radial_blob_is_transparent_outside_radius():
    alpha = radial_blob_alpha(50, 50, cx=0, cy=0, radius=10)
    assert np.all(alpha[20:, 20:] == 0)


def test_output_is_rendered_at_scale():
    img = synthesize_mesh_gradient(PALETTE, 155, 155, rng=np.random.default_rng(0))
    assert img.size == (465, 465)
    assert img.mode == 'RGB'


def test_output_size_for_rectangular_widget():
    img = synthesize_mesh_gradient(PALETTE, 40, 20, scale=2, rng=np.random.default_rng(1))
    assert img.size == (80, 40)


def test_base_fill_under_white_wash():
    img = synthesize_mesh_gradient(PALETTE, 8, 8, scale=1, linear_layers=0, blob_count=0)
    pixels = np.asarray(img)
    # 0.97 * (238, 123, 148) + 0.03 * 255
    assert np.all(pixels == (239, 127, 151))


def test_pixels_are_blends_of_palette():
    img = synthesize_mesh_gradient(PALETTE, 155, 155, rng=np.random.default_rng(42))
    pixels = np.asarray(img).reshape(-1, 3).astype(float)

    a = np.array(hex_to_rgb(PALETTE[0]), dtype=float)
    b = np.array(hex_to_rgb(PALETTE[1]), dtype=float)
    low = np.minimum(a, b) * (1 - WASH_ALPHA) + 255 * WASH_ALPHA
    high = np.maximum(a, b) * (1 - WASH_ALPHA) + 255 * WASH_ALPHA
    assert np.all(pixels >= np.floor(low) - 1)
    assert np.all(pixels <= np.ceil(high) + 1)
    assert pixels.std(axis=0).max() > 1


def test_last_linear_layer_spans_both_colors():
    img = synthesize_mesh_gradient(PALETTE, 60, 60, blob_count=0, rng=np.random.default_rng(3))
    pixels = np.asarray(img).reshape(-1, 3).astype(float)

    a = np.array(hex_to_rgb(PALETTE[0]), dtype=float)
    b = np.array(hex_to_rgb(PALETTE[1]), dtype=float)
    unwashed = (pixels - 255 * WASH_ALPHA) / (1 - WASH_ALPHA)
    # Weight of the first color in each pixel's mix
    weight = (unwashed - b) @ (a - b) / np.dot(a - b, a - b)
    assert weight.max() > 0.6
    assert weight.min() < 0.4


def test_each_invocation_differs():
    first = np.asarray(synthesize_mesh_gradient(PALETTE, 20, 20, scale=1))
    second = np.asarray(synthesize_mesh_gradient(PALETTE, 20, 20, scale=1))
    assert not np.array_equal(first, second)


def test_rejects_single_color():
    with pytest.raises(ValueError):
        synthesize_mesh_gradient(['#ffffff'], 10, 10)


def test_rejects_empty_canvas():
    with pytest.raises(ValueError):
        synthesize_mesh_gradient(PALETTE, 0, 10)
