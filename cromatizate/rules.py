"""
Adaptation Rule Tables
Static per-category parameters: display adaptation (palette, contrast and
saturation factors) and profile recommendations (percent settings).
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from .models import ColorBlindnessCategory as Category

HexColor = str


@dataclass(frozen=True)
class AdaptationRule:
    category: Category
    palette: Tuple[HexColor, ...]
    contrast_factor: float
    saturation_factor: float
    description: str
    filter_hints: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProfileRule:
    recommended_contrast: int
    recommended_saturation: int
    recommended_intensity: int
    high_contrast: bool
    enhanced_text: bool
    color_transformations: bool


_WARM_COOL = ("#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8")
_ANOMALY_SOFT = ("#FF8C8C", "#5ED5C8", "#55C7E1", "#FFB88A", "#A8E8D8")

ADAPTATION_RULES: Dict[Category, AdaptationRule] = {
    Category.PROTANOPIA: AdaptationRule(
        category=Category.PROTANOPIA,
        palette=_WARM_COOL,
        contrast_factor=1.2,
        saturation_factor=0.8,
        description="Adapted for protanopia: blue and green tones are emphasized, reds are avoided",
        filter_hints=("hue-rotate(40deg)",),
    ),
    Category.DEUTERANOPIA: AdaptationRule(
        category=Category.DEUTERANOPIA,
        palette=_WARM_COOL,
        contrast_factor=1.2,
        saturation_factor=0.8,
        description="Adapted for deuteranopia: blue and red tones are emphasized, greens are avoided",
        filter_hints=("hue-rotate(-40deg)",),
    ),
    Category.TRITANOPIA: AdaptationRule(
        category=Category.TRITANOPIA,
        palette=("#FF6B6B", "#FFD93D", "#6BCF7F", "#4D96FF", "#9B59B6"),
        contrast_factor=1.3,
        saturation_factor=0.9,
        description="Adapted for tritanopia: red and green tones are emphasized, blues are avoided",
        filter_hints=("hue-rotate(180deg)",),
    ),
    Category.PROTANOMALY: AdaptationRule(
        category=Category.PROTANOMALY,
        palette=_ANOMALY_SOFT,
        contrast_factor=1.1,
        saturation_factor=0.85,
        description="Adapted for protanomaly: slight shift towards blue and green tones",
        filter_hints=("hue-rotate(20deg)",),
    ),
    Category.DEUTERANOMALY: AdaptationRule(
        category=Category.DEUTERANOMALY,
        palette=_ANOMALY_SOFT,
        contrast_factor=1.1,
        saturation_factor=0.85,
        description="Adapted for deuteranomaly: slight shift towards blue and red tones",
        filter_hints=("hue-rotate(-20deg)",),
    ),
    Category.TRITANOMALY: AdaptationRule(
        category=Category.TRITANOMALY,
        palette=("#FF8C8C", "#FFE04D", "#7BCF8F", "#5DA6FF", "#AB69C6"),
        contrast_factor=1.15,
        saturation_factor=0.9,
        description="Adapted for tritanomaly: slight shift towards red and green tones",
        filter_hints=("hue-rotate(90deg)",),
    ),
    Category.ACHROMATOPSIA: AdaptationRule(
        category=Category.ACHROMATOPSIA,
        palette=("#000000", "#404040", "#808080", "#C0C0C0", "#FFFFFF"),
        contrast_factor=1.5,
        saturation_factor=0.0,
        description="Adapted for achromatopsia: high-contrast grayscale",
        filter_hints=("grayscale(100%)",),
    ),
    Category.NORMAL: AdaptationRule(
        category=Category.NORMAL,
        palette=_WARM_COOL,
        contrast_factor=1.0,
        saturation_factor=1.0,
        description="No adaptation required",
    ),
}

PROFILE_RULES: Dict[Category, ProfileRule] = {
    Category.NORMAL: ProfileRule(100, 100, 70, False, False, False),
    Category.PROTANOPIA: ProfileRule(120, 130, 80, True, True, True),
    Category.DEUTERANOPIA: ProfileRule(120, 130, 80, True, True, True),
    Category.TRITANOPIA: ProfileRule(110, 120, 75, True, True, True),
    # no saturation for monochromatic vision
    Category.ACHROMATOPSIA: ProfileRule(150, 0, 90, True, True, True),
    Category.PROTANOMALY: ProfileRule(110, 115, 75, True, True, True),
    Category.DEUTERANOMALY: ProfileRule(110, 115, 75, True, True, True),
    Category.TRITANOMALY: ProfileRule(105, 110, 72, False, True, True),
}


def get_rule(category: Category) -> AdaptationRule:
    return ADAPTATION_RULES[category]


def get_profile_rule(category: Category) -> ProfileRule:
    return PROFILE_RULES[category]
