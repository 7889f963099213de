# tests/test_color_metric.py
import pytest

from ccolors import color_metric
from ccolors.color_metric import BLACK, WHITE, Color, PixelFormat
from ccolors.errors import InvalidFormat, UnsupportedPixelFormat

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)
GRAY = Color(128, 128, 128)


def test_brightness_uses_luma_weights():
    assert color_metric.brightness(BLACK) == 0.0
    assert color_metric.brightness(WHITE) == pytest.approx(255.0)
    assert color_metric.brightness(Color(10, 20, 30)) == pytest.approx((2990 + 11740 + 3420) / 1000)


def test_contrast_is_symmetric():
    pairs = [(RED, BLUE), (GRAY, WHITE), (Color(1, 2, 3), Color(200, 100, 50))]
    for c1, c2 in pairs:
        assert color_metric.contrast(c1, c2) == color_metric.contrast(c2, c1)
    assert color_metric.contrast(BLACK, WHITE) == pytest.approx(255.0)


def test_distance_to_self_is_zero():
    for color in (BLACK, WHITE, RED, GRAY, Color(12, 34, 56)):
        assert color_metric.distance(color, color) == 0.0


def test_distance_matches_weighted_formula():
    # dr2=900, dg2=1600, db2=3600, mean red 25
    expected = 2 * 900 + 4 * 1600 + 3 * 3600 + 25 * (900 - 3600) / 256
    assert color_metric.distance(Color(10, 20, 30), Color(40, 60, 90)) == pytest.approx(expected)
    assert expected == pytest.approx(18736.328125)


def test_distance_weights_channels_differently():
    red_gap = color_metric.distance(Color(255, 0, 0), BLACK)
    blue_gap = color_metric.distance(Color(0, 0, 255), BLACK)
    assert red_gap == pytest.approx(162435.498046875)
    assert blue_gap == pytest.approx(195075.0)
    assert red_gap != blue_gap


def test_max_distance_is_black_to_white():
    assert color_metric.distance(BLACK, WHITE) == color_metric.MAX_DISTANCE == 585225.0


def test_best_contrast_picks_max_and_keeps_first_tie():
    assert color_metric.best_contrast(WHITE, [BLACK, WHITE]) == BLACK
    assert color_metric.best_contrast(Color(20, 20, 20), [BLACK, WHITE]) == WHITE
    # same brightness, first one wins
    twin_a, twin_b = Color(0, 0, 0), Color(0, 0, 0)
    assert color_metric.best_contrast(WHITE, [twin_a, twin_b, GRAY]) is twin_a


def test_best_contrast_needs_two_candidates():
    with pytest.raises(ValueError):
        color_metric.best_contrast(WHITE, [BLACK])
    with pytest.raises(ValueError):
        color_metric.best_contrast(WHITE, [])


@pytest.mark.parametrize("raw, pixel_format", [
    (bytes([1, 2, 3]), PixelFormat.RGB),
    (bytes([1, 2, 3, 255]), PixelFormat.RGBA),
    (bytes([255, 1, 2, 3]), PixelFormat.ARGB),
    (bytes([3, 2, 1]), PixelFormat.BGR),
    (bytes([3, 2, 1, 255]), PixelFormat.BGRA),
])
def test_decode_follows_channel_order(raw, pixel_format):
    assert color_metric.decode(raw, pixel_format) == Color(1, 2, 3)


def test_decode_rejects_wrong_stride():
    with pytest.raises(UnsupportedPixelFormat):
        color_metric.decode(bytes([1, 2, 3]), PixelFormat.RGBA)


def test_hex_and_rgb_strings():
    assert color_metric.to_hex(Color(255, 10, 0)) == "#FF0A00"
    assert color_metric.to_rgb_string(Color(255, 10, 0)) == "RGB(255,10,0)"


def test_from_hex_round_trip():
    for color in (BLACK, WHITE, RED, Color(1, 128, 254), Color(171, 205, 239)):
        assert color_metric.from_hex(color_metric.to_hex(color)) == color


def test_from_hex_is_case_insensitive_and_trims():
    assert color_metric.from_hex("#abcdef") == Color(0xAB, 0xCD, 0xEF)
    assert color_metric.from_hex("  #ABCDEF\n") == Color(0xAB, 0xCD, 0xEF)


@pytest.mark.parametrize("bad", ["#GGGGGG", "#FFF", "FFFFFF", "", "#FFFFFFF", "#FF FF F", None, 0xFFFFFF])
def test_from_hex_rejects_bad_input(bad):
    with pytest.raises(InvalidFormat):
        color_metric.from_hex(bad)


def test_color_of_checks_channels():
    assert Color.of(1, 2, 3) == Color(1, 2, 3)
    with pytest.raises(InvalidFormat):
        Color.of(256, 0, 0)
    with pytest.raises(InvalidFormat):
        Color.of(-1, 0, 0)


def test_pixel_format_strides():
    assert PixelFormat.RGB.stride == PixelFormat.BGR.stride == 3
    assert PixelFormat.RGBA.stride == PixelFormat.ARGB.stride == PixelFormat.BGRA.stride == 4
