import pytest

from cromatizate.colors import (
    analyze,
    contrast_ratio,
    hex_to_rgb,
    is_blue_yellow_confusable,
    is_red_green_confusable,
    rgb_to_hsl,
)
from cromatizate.models import ColorBlindnessCategory as Category


def test_pure_red():
    (red,) = analyze(["#FF0000"])
    assert (red.rgb.r, red.rgb.g, red.rgb.b) == (255, 0, 0)
    assert red.hsl.h == pytest.approx(0)
    assert red.hsl.s == pytest.approx(1)
    assert red.hsl.l == pytest.approx(0.5)
    assert red.accessibility.problematic_for == []
    assert red.accessibility.contrast == pytest.approx(3.998, abs=1e-3)


def test_red_green_boundary():
    # mean of R and G must be strictly above 100
    assert not is_red_green_confusable(hex_to_rgb("#646400"))
    assert is_red_green_confusable(hex_to_rgb("#656500"))
    assert not is_red_green_confusable(hex_to_rgb("#A06E00"))  # |R-G| = 50


def test_near_equal_red_green_flagged_for_red_green_categories():
    (olive,) = analyze(["#787800"])
    assert olive.accessibility.problematic_for == [
        Category.PROTANOPIA,
        Category.DEUTERANOPIA,
        Category.PROTANOMALY,
        Category.DEUTERANOMALY,
    ]


def test_blue_yellow_heuristic_only_fires_for_bright_colors():
    assert is_blue_yellow_confusable((200, 200, 200))
    assert not is_blue_yellow_confusable((255, 255, 0))
    (white,) = analyze(["#FFFFFF"])
    assert Category.TRITANOPIA in white.accessibility.problematic_for
    assert Category.TRITANOMALY in white.accessibility.problematic_for


@pytest.mark.parametrize("value", ["red", "#FFF", "#GG0000", "", "#FF00001"])
def test_malformed_hex_parses_as_black(value):
    assert hex_to_rgb(value) == (0, 0, 0)


def test_hash_is_optional_and_case_insensitive():
    assert hex_to_rgb("00ff7f") == (0, 255, 127)
    assert hex_to_rgb("#00FF7F") == (0, 255, 127)


def test_hsl_of_achromatic_color():
    h, s, l = rgb_to_hsl(128, 128, 128)  # noqa: E741
    assert (h, s) == (0.0, 0.0)
    assert l == pytest.approx(128 / 255)


def test_hsl_hue_in_degrees():
    h, _, _ = rgb_to_hsl(0, 0, 255)
    assert h == pytest.approx(240)
    h, _, _ = rgb_to_hsl(0, 255, 0)
    assert h == pytest.approx(120)


def test_contrast_extremes():
    assert contrast_ratio((0, 0, 0)) == pytest.approx(21)
    assert contrast_ratio((255, 255, 255)) == pytest.approx(1)


def test_analyze_empty():
    assert analyze([]) == []
