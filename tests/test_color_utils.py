"""Dominant color extraction, color naming and harmony rules."""

from __future__ import annotations

import colorsys

import pytest
from PIL import Image

from models.color_theory import (
    BOTH_NEUTRAL_SCORE,
    CLASHING_SCORE,
    COMPLEMENTARY_SCORE,
    MATCHING_SCORE,
    NEUTRAL_ANCHOR_SCORE,
    TRIADIC_SCORE,
    Color,
    circular_hue_distance,
    color_harmony,
    hue_harmony,
)
from models.taxonomy import ACHROMATIC_COLOR_NAMES, Role, is_neutral_color, role_for_category
from tools.color_extraction import LOW_SATURATION_THRESHOLD, classify_color_name, extract_dominant_color


def test_solid_image_returns_bucket_center() -> None:
    image = Image.new("RGB", (40, 40), (200, 30, 30))

    color = extract_dominant_color(image)

    assert color == Color(200, 24, 24)
    assert classify_color_name(color) == "Red"


def test_saturated_garment_beats_larger_pale_background() -> None:
    image = Image.new("RGB", (100, 100), (255, 255, 255))
    image.paste((255, 0, 0), (0, 0, 30, 100))

    color = extract_dominant_color(image)

    assert color is not None
    assert classify_color_name(color) == "Red"


def test_transparent_and_black_images_have_no_dominant_color() -> None:
    assert extract_dominant_color(Image.new("RGBA", (20, 20), (255, 0, 0, 0))) is None
    assert extract_dominant_color(Image.new("RGB", (20, 20), (0, 0, 0))) is None


@pytest.mark.parametrize(
    ("rgb", "expected"),
    [
        ((10, 10, 10), "Black"),
        ((250, 250, 250), "White"),
        ((200, 200, 200), "Light Gray"),
        ((60, 60, 60), "Dark Gray"),
        ((128, 128, 128), "Gray"),
        ((220, 20, 20), "Red"),
        ((255, 140, 0), "Orange"),
        ((140, 70, 20), "Brown"),
        ((240, 220, 20), "Yellow"),
        ((120, 120, 20), "Olive"),
        ((30, 160, 60), "Green"),
        ((20, 160, 160), "Teal"),
        ((30, 60, 200), "Blue"),
        ((120, 40, 200), "Purple"),
        ((220, 30, 160), "Magenta"),
    ],
)
def test_classify_color_name_cascade(rgb, expected) -> None:
    assert classify_color_name(Color(*rgb)) == expected


def test_low_saturation_never_yields_chromatic_name() -> None:
    checked = 0
    for hue in range(0, 360, 15):
        for saturation in (0.0, 0.05, 0.1, 0.14):
            for brightness in (0.1, 0.3, 0.5, 0.75, 0.95):
                red, green, blue = colorsys.hsv_to_rgb(hue / 360, saturation, brightness)
                color = Color(round(red * 255), round(green * 255), round(blue * 255))
                if color.hsb()[1] >= LOW_SATURATION_THRESHOLD:
                    continue
                checked += 1
                assert classify_color_name(color) in ACHROMATIC_COLOR_NAMES
    assert checked > 0


def test_hex_round_trip_and_malformed_values() -> None:
    assert Color(30, 60, 200).to_hex() == "#1E3CC8"
    assert Color.from_hex("#1e3cc8") == Color(30, 60, 200)
    assert Color.from_hex("nope") is None
    assert Color.from_hex("#12345G") is None


def test_circular_hue_distance_wraps_around() -> None:
    assert circular_hue_distance(350, 10) == pytest.approx(20 / 180)
    assert circular_hue_distance(0, 180) == pytest.approx(1.0)


def test_hue_harmony_buckets() -> None:
    assert hue_harmony(0, 10) == MATCHING_SCORE
    assert hue_harmony(355, 5) == MATCHING_SCORE
    assert hue_harmony(0, 120) == TRIADIC_SCORE
    assert hue_harmony(30, 210) == COMPLEMENTARY_SCORE
    assert hue_harmony(0, 60) == CLASHING_SCORE


def test_color_harmony_neutral_rules() -> None:
    navy = Color(30, 60, 200)
    red = Color(220, 20, 20)

    assert color_harmony("Black", Color(10, 10, 10), "White", Color(250, 250, 250)) == BOTH_NEUTRAL_SCORE
    assert color_harmony("Black", Color(10, 10, 10), "Blue", navy) == NEUTRAL_ANCHOR_SCORE
    assert color_harmony("Unknown Color", None, "Red", red) == NEUTRAL_ANCHOR_SCORE
    assert color_harmony("Blue", navy, "Blue", navy) == MATCHING_SCORE


def test_neutral_names_and_roles() -> None:
    assert is_neutral_color("Light Gray")
    assert is_neutral_color("beige")
    assert not is_neutral_color("Blue")

    assert role_for_category("Black T-shirt") is Role.TOP
    assert role_for_category("Blue Jeans") is Role.BOTTOM
    assert role_for_category("White Sneakers") is Role.SHOES
    assert role_for_category("Denim Shirt Jacket") is Role.OUTERWEAR
    assert role_for_category("Wool Scarf") is Role.UNKNOWN
    assert role_for_category("") is Role.UNKNOWN
