"""
Preference Normalization
Turns whatever a client or an old row sends into canonical UserPreferences.
Invalid input is corrected, never rejected; each correction is reported so
callers can tell clean input from repaired input.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import ColorBlindnessCategory as Category
from .models import UserPreferences
from .rules import get_profile_rule

DEFAULTS: Dict[str, Any] = {
    "type": Category.NORMAL.value,
    "intensity": 70,
    "contrast": 100,
    "saturation": 100,
    "textDescriptions": False,
}

RANGES: Dict[str, Tuple[int, int]] = {
    "intensity": (0, 100),
    "contrast": (0, 200),
    "saturation": (0, 150),
}

# record key -> accepted input spellings, first match wins
_INPUT_KEYS: Dict[str, Tuple[str, ...]] = {
    "type": ("type", "category"),
    "intensity": ("intensity",),
    "contrast": ("contrast",),
    "saturation": ("saturation",),
    "textDescriptions": ("textDescriptions", "text_descriptions_enabled", "textDescriptionsEnabled"),
}

_MISSING = object()


@dataclass(frozen=True)
class Correction:
    field: str
    original: Any
    applied: Any
    reason: str


@dataclass(frozen=True)
class NormalizationResult:
    preferences: UserPreferences
    corrections: Tuple[Correction, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.corrections


def coerce_category(value: Any) -> Category:
    """Map any value onto the closed category set; unknown values become normal"""
    if isinstance(value, Category):
        return value
    if isinstance(value, str):
        try:
            return Category(value.lower())
        except ValueError:
            return Category.NORMAL
    return Category.NORMAL


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def _pick(raw: Mapping[str, Any], key: str) -> Any:
    for name in _INPUT_KEYS[key]:
        if name in raw:
            return raw[name]
    return _MISSING


def canonical_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Project a raw mapping onto record keys, dropping absent fields"""
    record = {}
    for key in _INPUT_KEYS:
        value = _pick(raw, key)
        if value is not _MISSING:
            record[key] = value
    return record


def normalize(raw: Any) -> NormalizationResult:
    """Canonicalize raw preference fields. Total: never raises."""
    corrections: List[Correction] = []

    if isinstance(raw, UserPreferences):
        return NormalizationResult(preferences=raw)
    if not isinstance(raw, Mapping):
        if raw is not None:
            corrections.append(Correction("*", raw, {}, "not a mapping"))
        raw = {}

    record = canonical_record(raw)
    values: Dict[str, Any] = {}

    category_in = record.get("type", _MISSING)
    if category_in is _MISSING:
        values["type"] = Category.NORMAL
    else:
        category = coerce_category(category_in)
        values["type"] = category
        if category_in != category.value:
            reason = "lower-cased" if (
                isinstance(category_in, str) and category_in.lower() == category.value
            ) else "unknown category"
            corrections.append(Correction("type", category_in, category.value, reason))

    for key, (low, high) in RANGES.items():
        value = record.get(key, _MISSING)
        if value is _MISSING:
            values[key] = DEFAULTS[key]
            continue
        if not _is_number(value):
            values[key] = DEFAULTS[key]
            corrections.append(Correction(key, value, DEFAULTS[key], "not a number"))
            continue
        clamped = max(low, min(high, value))
        applied = int(round(clamped))
        values[key] = applied
        if applied != value or not isinstance(value, int):
            reason = "out of range" if clamped != value else "rounded"
            corrections.append(Correction(key, value, applied, reason))

    flag = record.get("textDescriptions", _MISSING)
    if flag is _MISSING:
        values["textDescriptions"] = False
    elif isinstance(flag, bool):
        values["textDescriptions"] = flag
    else:
        values["textDescriptions"] = False
        corrections.append(Correction("textDescriptions", flag, False, "not a boolean"))

    return NormalizationResult(
        preferences=UserPreferences(**values),
        corrections=tuple(corrections),
    )


def normalize_preferences(raw: Any) -> UserPreferences:
    return normalize(raw).preferences


def merge_preferences(
    existing: Optional[Mapping[str, Any]], incoming: Mapping[str, Any]
) -> NormalizationResult:
    """Overlay incoming fields on stored ones, then normalize the result"""
    if isinstance(existing, UserPreferences):
        base = existing.to_record()
    elif isinstance(existing, Mapping):
        base = {**DEFAULTS, **canonical_record(existing)}
    else:
        base = dict(DEFAULTS)
    if isinstance(incoming, UserPreferences):
        incoming = incoming.to_record()
    merged = {**base, **canonical_record(incoming or {})}
    return normalize(merged)


def profile_adaptation(preferences: UserPreferences) -> Dict[str, Any]:
    """Recommended display settings for a visitor, personalized by their own values"""
    rule = get_profile_rule(preferences.category)
    adaptation = {
        "recommendedContrast": rule.recommended_contrast,
        "recommendedSaturation": rule.recommended_saturation,
        "recommendedIntensity": rule.recommended_intensity,
        "highContrast": rule.high_contrast,
        "enhancedText": rule.enhanced_text,
        "colorTransformations": rule.color_transformations,
    }
    if preferences.category is Category.NORMAL:
        return adaptation

    adaptation["recommendedContrast"] = max(rule.recommended_contrast, preferences.contrast)
    adaptation["recommendedSaturation"] = preferences.saturation
    adaptation["recommendedIntensity"] = preferences.intensity
    return adaptation


def profile_hints(preferences: UserPreferences) -> List[str]:
    """Plain-language hints shown next to the profile settings"""
    rule = get_profile_rule(preferences.category)
    hints = []

    if rule.high_contrast:
        hints.append("Use high contrast to improve readability")
    if rule.enhanced_text:
        hints.append("Enable textual descriptions for better comprehension")
    if rule.color_transformations:
        hints.append("Color transformations will be applied to improve perception")

    if preferences.contrast < rule.recommended_contrast:
        hints.append(
            f"Raise contrast to {rule.recommended_contrast}% for better visibility"
        )
    if preferences.saturation < rule.recommended_saturation:
        hints.append(
            f"Raise saturation to {rule.recommended_saturation}% to tell colors apart more easily"
        )

    return hints
