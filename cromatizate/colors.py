"""
Color Analysis
Hex parsing, RGB/HSL conversion, WCAG contrast and the confusable-color
heuristics used to flag colors per color-vision category.
"""

import re
from typing import Iterable, List, Tuple

from .models import HSL, RGB, ColorAccessibility, ColorAnalysis
from .models import ColorBlindnessCategory as Category

RGBTuple = Tuple[int, int, int]

WHITE: RGBTuple = (255, 255, 255)

_HEX_RE = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

RED_GREEN_CATEGORIES = (
    Category.PROTANOPIA,
    Category.DEUTERANOPIA,
    Category.PROTANOMALY,
    Category.DEUTERANOMALY,
)
BLUE_YELLOW_CATEGORIES = (Category.TRITANOPIA, Category.TRITANOMALY)


def hex_to_rgb(hex_color: str) -> RGBTuple:
    """Parse #RRGGBB. Anything else parses as black."""
    match = _HEX_RE.match(hex_color) if isinstance(hex_color, str) else None
    if not match:
        return (0, 0, 0)
    return tuple(int(part, 16) for part in match.groups())  # type: ignore[return-value]


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Hue in degrees, saturation and lightness in [0, 1]"""
    r_, g_, b_ = r / 255.0, g / 255.0, b / 255.0
    high = max(r_, g_, b_)
    low = min(r_, g_, b_)
    lightness = (high + low) / 2

    if high == low:
        return 0.0, 0.0, lightness

    d = high - low
    saturation = d / (2 - high - low) if lightness > 0.5 else d / (high + low)
    if high == r_:
        hue = ((g_ - b_) / d + (6 if g_ < b_ else 0)) / 6
    elif high == g_:
        hue = ((b_ - r_) / d + 2) / 6
    else:
        hue = ((r_ - g_) / d + 4) / 6

    return hue * 360, saturation, lightness


def relative_luminance(rgb: RGBTuple) -> float:
    """WCAG relative luminance"""

    def linearize(c: float) -> float:
        c = c / 255.0
        if c <= 0.03928:
            return c / 12.92
        return ((c + 0.055) / 1.055) ** 2.4

    r, g, b = (linearize(c) for c in rgb)
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def contrast_ratio(color1: RGBTuple, color2: RGBTuple = WHITE) -> float:
    lum1 = relative_luminance(color1)
    lum2 = relative_luminance(color2)
    lighter, darker = max(lum1, lum2), min(lum1, lum2)
    return (lighter + 0.05) / (darker + 0.05)


def is_red_green_confusable(rgb: RGBTuple) -> bool:
    r, g, _ = rgb
    return abs(r - g) < 50 and (r + g) / 2 > 100


def is_blue_yellow_confusable(rgb: RGBTuple) -> bool:
    # Only fires for near-white input. Kept as-is; see DESIGN.md.
    r, g, b = rgb
    return r > 150 and g > 150 and b > 150


def problematic_for(rgb: RGBTuple) -> List[Category]:
    categories: List[Category] = []
    if is_red_green_confusable(rgb):
        categories.extend(RED_GREEN_CATEGORIES)
    if is_blue_yellow_confusable(rgb):
        categories.extend(BLUE_YELLOW_CATEGORIES)
    return categories


def analyze_color(hex_color: str) -> ColorAnalysis:
    rgb = hex_to_rgb(hex_color)
    h, s, l = rgb_to_hsl(*rgb)  # noqa: E741
    return ColorAnalysis(
        hex=hex_color if isinstance(hex_color, str) else str(hex_color),
        rgb=RGB(r=rgb[0], g=rgb[1], b=rgb[2]),
        hsl=HSL(h=h, s=s, l=l),
        accessibility=ColorAccessibility(
            contrast=contrast_ratio(rgb, WHITE),
            problematic_for=problematic_for(rgb),
        ),
    )


def analyze(hex_colors: Iterable[str]) -> List[ColorAnalysis]:
    return [analyze_color(c) for c in hex_colors or ()]
