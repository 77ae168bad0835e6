"""Color model conversions, closeness and harmony classification."""

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from models.color_theory import (  # noqa: E402
    ZERO_HSL,
    ColorHarmony,
    are_colors_close,
    color_family,
    complementary_color,
    determine_color_harmony,
    hex_to_hsl,
    hsl_to_hex,
    hue_distance,
    is_neutral_color,
    parse_hex_color,
)
from models.parse_result import ParseStatus  # noqa: E402


def test_near_identical_blues_are_close() -> None:
    assert are_colors_close("#0000FF", "#0000FA") is True


def test_blue_and_red_are_not_close() -> None:
    assert are_colors_close("#0000FF", "#FF0000") is False


def test_pure_blue_converts_to_expected_hsl() -> None:
    hsl = hex_to_hsl("#0000ff")

    assert hsl.h == pytest.approx(240.0)
    assert hsl.s == pytest.approx(1.0)
    assert hsl.l == pytest.approx(0.5)


@pytest.mark.parametrize("raw", ["", None, "blue", "#12345", "#GGGGGG", "0000ff"])
def test_malformed_hex_degrades_to_zero_value(raw) -> None:
    result = parse_hex_color(raw)

    assert result.status is ParseStatus.FALLBACK
    assert result.value == ZERO_HSL
    assert result.reason
    assert hex_to_hsl(raw) == ZERO_HSL


def test_hsl_to_hex_produces_lower_case_hex() -> None:
    assert hsl_to_hex(0, 1, 0.5) == "#ff0000"
    assert hsl_to_hex(0, 0, 1) == "#ffffff"


def test_complementary_of_red_is_cyan() -> None:
    assert complementary_color("#ff0000") == "#00ffff"


def test_hue_distance_wraps_around_the_wheel() -> None:
    assert hue_distance(350, 10) == pytest.approx(20)
    assert hue_distance(0, 180) == pytest.approx(180)


def test_neutral_detection() -> None:
    assert is_neutral_color("#000000")
    assert is_neutral_color("#7f7f7f")
    assert not is_neutral_color("#ff0000")


def test_harmony_classification() -> None:
    red = hex_to_hsl("#ff0000")
    cyan = hex_to_hsl("#00ffff")
    green = hex_to_hsl("#00ff00")
    blue = hex_to_hsl("#0000ff")
    black = hex_to_hsl("#000000")
    white = hex_to_hsl("#ffffff")

    assert determine_color_harmony([]) is ColorHarmony.MONOCHROMATIC
    assert determine_color_harmony([red]) is ColorHarmony.MONOCHROMATIC
    assert determine_color_harmony([black, white]) is ColorHarmony.NEUTRAL
    assert determine_color_harmony([red, cyan]) is ColorHarmony.COMPLEMENTARY
    assert determine_color_harmony([red, green, blue]) is ColorHarmony.TRIADIC


def test_accent_colors_decide_harmony_among_neutrals() -> None:
    palette = [hex_to_hsl("#000000"), hex_to_hsl("#ffffff"), hex_to_hsl("#0000ff")]

    assert determine_color_harmony(palette) is ColorHarmony.MONOCHROMATIC


def test_color_family_names() -> None:
    assert color_family("#0000ff") == "blue"
    assert color_family("#ff0000") == "red"
    assert color_family("#000000") == "black"
    assert color_family("#ffffff") == "white"
    assert color_family("not-a-color") == ""
