"""Perceptual color helpers built on hue/saturation/lightness."""
from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from models.parse_result import ParseResult

logger = logging.getLogger(__name__)

HUE_CLOSE = 30.0
SATURATION_CLOSE = 0.3
LIGHTNESS_CLOSE = 0.3
NEUTRAL_SATURATION = 0.15

NEUTRAL_SWATCHES: List[str] = [
    "#000000",
    "#ffffff",
    "#808080",
    "#a9a9a9",
    "#d3d3d3",
    "#f5f5f5",
    "#a52a2a",
    "#d2b48c",
    "#f5f5dc",
    "#708090",
    "#000080",
]


@dataclass(frozen=True)
class HSL:
    """Hue in degrees [0, 360), saturation and lightness in [0, 1]."""

    h: float
    s: float
    l: float  # noqa: E741


ZERO_HSL = HSL(0.0, 0.0, 0.0)


class ColorHarmony(str, Enum):
    MONOCHROMATIC = "monochromatic"
    ANALOGOUS = "analogous"
    COMPLEMENTARY = "complementary"
    TRIADIC = "triadic"
    NEUTRAL = "neutral"
    CUSTOM = "custom"


def parse_hex_color(hex_color: Optional[str]) -> ParseResult[HSL]:
    """Convert ``#rrggbb`` into HSL, reporting malformed input instead of raising."""

    if not hex_color or not isinstance(hex_color, str):
        return ParseResult.fallback(ZERO_HSL, "empty color")
    value = hex_color.strip()
    if not value.startswith("#"):
        return ParseResult.fallback(ZERO_HSL, "missing '#' prefix")
    digits = value[1:]
    if len(digits) != 6:
        return ParseResult.fallback(ZERO_HSL, f"expected 6 hex digits, got {len(digits)}")
    if any(char not in string.hexdigits for char in digits):
        return ParseResult.fallback(ZERO_HSL, "non-hex digits")

    r = int(digits[0:2], 16) / 255
    g = int(digits[2:4], 16) / 255
    b = int(digits[4:6], 16) / 255
    maximum = max(r, g, b)
    minimum = min(r, g, b)
    h = 0.0
    s = 0.0
    lightness = (maximum + minimum) / 2

    if maximum != minimum:
        delta = maximum - minimum
        s = delta / (2 - maximum - minimum) if lightness > 0.5 else delta / (maximum + minimum)
        if maximum == r:
            h = (g - b) / delta + (6 if g < b else 0)
        elif maximum == g:
            h = (b - r) / delta + 2
        else:
            h = (r - g) / delta + 4
        h /= 6

    return ParseResult.parsed(HSL(h * 360, s, lightness))


def hex_to_hsl(hex_color: Optional[str]) -> HSL:
    """Return the HSL form of a hex color, or :data:`ZERO_HSL` when malformed."""

    result = parse_hex_color(hex_color)
    if result.is_degraded:
        logger.debug("Color %r degraded to zero value: %s", hex_color, result.reason)
    return result.value


def hsl_to_hex(h: float, s: float, l: float) -> str:  # noqa: E741
    """Convert HSL back to a lower-case ``#rrggbb`` string."""

    hue = (h % 360) / 360

    def channel(p: float, q: float, t: float) -> float:
        if t < 0:
            t += 1
        if t > 1:
            t -= 1
        if t < 1 / 6:
            return p + (q - p) * 6 * t
        if t < 1 / 2:
            return q
        if t < 2 / 3:
            return p + (q - p) * (2 / 3 - t) * 6
        return p

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = channel(p, q, hue + 1 / 3)
        g = channel(p, q, hue)
        b = channel(p, q, hue - 1 / 3)
    return "#" + "".join(f"{round(max(0.0, min(1.0, c)) * 255):02x}" for c in (r, g, b))


def hue_distance(h1: float, h2: float) -> float:
    """Circular distance between two hues in degrees."""

    direct = abs(h1 - h2)
    return min(direct, 360 - direct)


def are_colors_close(color1: Optional[str], color2: Optional[str]) -> bool:
    """Return True when hue, saturation and lightness are all within tolerance."""

    hsl1 = hex_to_hsl(color1)
    hsl2 = hex_to_hsl(color2)
    return (
        hue_distance(hsl1.h, hsl2.h) < HUE_CLOSE
        and abs(hsl1.s - hsl2.s) < SATURATION_CLOSE
        and abs(hsl1.l - hsl2.l) < LIGHTNESS_CLOSE
    )


def color_distance(color1: HSL, color2: HSL) -> float:
    """Weighted distance where hue dominates saturation and lightness."""

    return (
        hue_distance(color1.h, color2.h) * 0.6
        + abs(color1.s - color2.s) * 0.2
        + abs(color1.l - color2.l) * 0.2
    )


def is_neutral_color(hex_color: Optional[str]) -> bool:
    if any(are_colors_close(hex_color, neutral) for neutral in NEUTRAL_SWATCHES):
        return True
    return hex_to_hsl(hex_color).s < NEUTRAL_SATURATION


def complementary_color(hex_color: Optional[str]) -> str:
    hsl = hex_to_hsl(hex_color)
    return hsl_to_hex((hsl.h + 180) % 360, hsl.s, hsl.l)


def determine_color_harmony(colors: Sequence[HSL]) -> ColorHarmony:
    """Classify a palette on a simple color wheel.

    When every color but one is neutral the accent colors decide the
    harmony; an all-neutral palette is its own category.
    """

    if len(colors) <= 1:
        return ColorHarmony.MONOCHROMATIC

    neutrals = [color for color in colors if color.s < NEUTRAL_SATURATION]
    if len(neutrals) == len(colors):
        return ColorHarmony.NEUTRAL
    if len(neutrals) >= len(colors) - 1 and len(colors) > 2:
        accents = [color for color in colors if color.s >= NEUTRAL_SATURATION]
        if accents:
            return determine_color_harmony(accents)

    hues = [color.h for color in colors]
    hue_range = max(hues) - min(hues)
    if hue_range <= 15 or hue_range >= 345:
        return ColorHarmony.MONOCHROMATIC
    if hue_range <= 60 or hue_range >= 300:
        return ColorHarmony.ANALOGOUS
    if len(colors) == 2 and abs(abs(hues[0] - hues[1]) - 180) <= 30:
        return ColorHarmony.COMPLEMENTARY
    if len(colors) == 3:
        ordered = sorted(hues)
        first_gap = ordered[1] - ordered[0]
        second_gap = ordered[2] - ordered[1]
        if abs(first_gap - 120) <= 30 and abs(second_gap - 120) <= 30:
            return ColorHarmony.TRIADIC
    return ColorHarmony.CUSTOM


def color_family(hex_color: Optional[str]) -> str:
    """Map a hex color to a coarse color name such as ``navy`` -> ``blue``.

    Returns an empty string for malformed input.
    """

    result = parse_hex_color(hex_color)
    if result.is_degraded:
        return ""
    hsl = result.value
    if hsl.l < 0.15:
        return "black"
    if hsl.l > 0.9:
        return "white"
    if hsl.s < NEUTRAL_SATURATION:
        return "gray"
    hue = hsl.h
    if hue < 15 or hue >= 345:
        return "red"
    if hue < 45:
        return "brown" if hsl.l < 0.4 else "orange"
    if hue < 70:
        return "yellow"
    if hue < 170:
        return "green"
    if hue < 260:
        return "blue"
    if hue < 290:
        return "purple"
    return "pink"


__all__ = [
    "HSL",
    "ZERO_HSL",
    "ColorHarmony",
    "parse_hex_color",
    "hex_to_hsl",
    "hsl_to_hex",
    "hue_distance",
    "are_colors_close",
    "color_distance",
    "is_neutral_color",
    "complementary_color",
    "determine_color_harmony",
    "color_family",
]
