"""Tests for hex/RGB/HSL conversions and color distance."""

import pytest

from colorspace import (
    color_distance, hex_to_hsl, hex_to_rgb, hsl_to_hex, hsl_to_rgb,
    is_hex_color, rgb_to_hex, rgb_to_hsl, round_half_up,
)


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


def test_hex_parsing_accepts_any_case():
    assert hex_to_rgb('#EE7B94') == (238, 123, 148)
    assert hex_to_rgb('#ee7b94') == (238, 123, 148)


@pytest.mark.parametrize('value', ['EE7B94', '#EE7B9', '#GG0000', '', None, 123])
def test_invalid_hex_rejected(value):
    assert not is_hex_color(value)
    with pytest.raises(ValueError):
        hex_to_rgb(value)


def test_rgb_to_hex_is_lowercase_and_padded():
    assert rgb_to_hex((1, 2, 3)) == '#010203'
    assert rgb_to_hex((255, 171, 0)) == '#ffab00'


def test_color_distance_extremes():
    assert color_distance('#000000', '#ffffff') == pytest.approx(441.67, abs=0.01)
    assert color_distance('#7bc2ee', '#7BC2EE') == 0


def test_rgb_to_hsl_primaries():
    assert rgb_to_hsl(255, 0, 0) == (0, 100, 50)
    assert rgb_to_hsl(0, 255, 0) == (120, 100, 50)
    assert rgb_to_hsl(0, 0, 255) == (240, 100, 50)


def test_rgb_to_hsl_gray_has_no_hue_or_saturation():
    h, s, l = rgb_to_hsl(128, 128, 128)
    assert (h, s) == (0, 0)
    assert l == 50


def test_rgb_to_hsl_hue_wraps_at_360():
    # Hue of 359.76 degrees rounds to 360, which is 0
    assert rgb_to_hsl(255, 0, 1)[0] == 0


@pytest.mark.parametrize('hsl,expected', [
    ((0, 100, 50), '#ff0000'),
    ((30, 100, 50), '#ff8000'),
    ((60, 100, 50), '#ffff00'),
    ((120, 100, 50), '#00ff00'),
    ((180, 100, 50), '#00ffff'),
    ((210, 100, 50), '#0080ff'),
    ((240, 100, 50), '#0000ff'),
    ((300, 100, 50), '#ff00ff'),
    ((0, 0, 100), '#ffffff'),
    ((0, 0, 0), '#000000'),
])
def test_hsl_to_hex_sectors(hsl, expected):
    assert hsl_to_hex(*hsl) == expected


def test_hsl_to_rgb_wraps_hue():
    assert hsl_to_rgb(360, 100, 50) == (255, 0, 0)
    assert hsl_to_rgb(420, 100, 50) == hsl_to_rgb(60, 100, 50)


def test_gray_round_trip_within_one():
    for v in range(256):
        hex_color = rgb_to_hex((v, v, v))
        back = hex_to_rgb(hsl_to_hex(*hex_to_hsl(hex_color)))
        assert all(abs(a - v) <= 1 for a in back), (hex_color, back)


@pytest.mark.parametrize('hex_color', [
    '#ff0000', '#00ff00', '#0000ff', '#ffff00', '#00ffff', '#ff00ff', '#ffffff', '#000000',
])
def test_saturated_round_trip_is_exact(hex_color):
    assert hsl_to_hex(*hex_to_hsl(hex_color)) == hex_color
