import math

import pytest

from cromatizate.models import ColorBlindnessCategory as Category
from cromatizate.models import UserPreferences
from cromatizate.preferences import (
    DEFAULTS,
    RANGES,
    coerce_category,
    merge_preferences,
    normalize,
    normalize_preferences,
    profile_adaptation,
    profile_hints,
)


def test_empty_input_yields_defaults_without_corrections():
    result = normalize({})
    assert result.clean
    assert result.preferences.to_record() == DEFAULTS


def test_clean_input_is_reported_clean():
    raw = {"type": "tritanopia", "intensity": 40, "contrast": 150, "saturation": 90, "textDescriptions": True}
    result = normalize(raw)
    assert result.clean
    assert result.preferences.to_record() == raw


def test_out_of_range_values_are_clamped():
    result = normalize({"intensity": 250, "contrast": -5, "saturation": 151})
    prefs = result.preferences
    assert (prefs.intensity, prefs.contrast, prefs.saturation) == (100, 0, 150)
    assert {c.field for c in result.corrections} == {"intensity", "contrast", "saturation"}
    assert all(c.reason == "out of range" for c in result.corrections)


@pytest.mark.parametrize("bad", ["high", None, True, [], float("nan")])
def test_non_numeric_values_fall_back_to_default(bad):
    result = normalize({"contrast": bad})
    assert result.preferences.contrast == DEFAULTS["contrast"]
    assert [c.field for c in result.corrections] == ["contrast"]


def test_floats_are_rounded():
    result = normalize({"intensity": 42.6})
    assert result.preferences.intensity == 43
    assert result.corrections[0].reason == "rounded"


def test_unknown_category_becomes_normal():
    result = normalize({"type": "infrared"})
    assert result.preferences.category is Category.NORMAL
    assert result.corrections[0].reason == "unknown category"


def test_category_is_lower_cased():
    result = normalize({"type": "DeuterAnopia"})
    assert result.preferences.category is Category.DEUTERANOPIA
    assert result.corrections[0].reason == "lower-cased"


def test_field_names_accepted_as_input_keys():
    prefs = normalize_preferences({"category": "protanopia", "text_descriptions_enabled": True})
    assert prefs.category is Category.PROTANOPIA
    assert prefs.text_descriptions_enabled is True


def test_non_boolean_flag_becomes_false():
    result = normalize({"textDescriptions": "yes"})
    assert result.preferences.text_descriptions_enabled is False
    assert result.corrections[0].field == "textDescriptions"


def test_non_mapping_input_is_treated_as_empty():
    result = normalize(["not", "a", "mapping"])
    assert result.preferences == UserPreferences()
    assert result.corrections[0].field == "*"


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {"type": "ACHROMATOPSIA", "intensity": 1e9, "contrast": "x", "saturation": 12.5},
        {"type": 7, "textDescriptions": 1, "contrast": -1},
        "garbage",
    ],
)
def test_normalize_is_idempotent_and_in_range(raw):
    once = normalize(raw).preferences
    twice = normalize(once.to_record())
    assert twice.preferences == once
    assert twice.clean
    for key, (low, high) in RANGES.items():
        value = getattr(once, key)
        assert low <= value <= high
        assert not math.isnan(value)


def test_coerce_category_accepts_enum_and_rejects_non_strings():
    assert coerce_category(Category.TRITANOMALY) is Category.TRITANOMALY
    assert coerce_category(None) is Category.NORMAL
    assert coerce_category(3) is Category.NORMAL


def test_merge_preferences_incoming_wins():
    existing = {"type": "protanopia", "contrast": 130, "intensity": 20}
    result = merge_preferences(existing, {"contrast": 90})
    prefs = result.preferences
    assert prefs.category is Category.PROTANOPIA
    assert prefs.contrast == 90
    assert prefs.intensity == 20


def test_merge_preferences_without_existing_starts_from_defaults():
    prefs = merge_preferences(None, {"saturation": 10}).preferences
    assert prefs.saturation == 10
    assert prefs.contrast == DEFAULTS["contrast"]


def test_profile_adaptation_for_normal_is_unpersonalized():
    adaptation = profile_adaptation(UserPreferences(contrast=180))
    assert adaptation["recommendedContrast"] == 100
    assert adaptation["highContrast"] is False


def test_profile_adaptation_uses_visitor_values():
    prefs = UserPreferences(category=Category.PROTANOPIA, contrast=90, saturation=60, intensity=55)
    adaptation = profile_adaptation(prefs)
    assert adaptation["recommendedContrast"] == 120
    assert adaptation["recommendedSaturation"] == 60
    assert adaptation["recommendedIntensity"] == 55
    assert adaptation["colorTransformations"] is True


def test_profile_hints_mention_low_contrast_and_saturation():
    hints = profile_hints(UserPreferences(category=Category.DEUTERANOPIA, contrast=100, saturation=100))
    assert any("contrast to 120%" in h for h in hints)
    assert any("saturation to 130%" in h for h in hints)


def test_profile_hints_empty_for_default_normal():
    assert profile_hints(UserPreferences()) == []
