import unittest

import pytest

from cromatizate.interactions import aggregate
from cromatizate.models import InteractionEvent


def test_empty_history_defaults():
    summary = aggregate([])
    assert summary.preferred_contrast == 1.0
    assert summary.preferred_saturation == 1.0
    assert summary.preferred_palette == []
    assert summary.contrast_samples == 0


def test_mean_of_ten_contrast_events():
    events = [
        InteractionEvent(kind="contrast_adjustment", payload={"value": 1.0 + i / 10})
        for i in range(10)
    ]
    summary = aggregate(events)
    assert summary.preferred_contrast == pytest.approx(1.45)
    assert summary.contrast_samples == 10
    assert summary.preferred_saturation == 1.0


def test_missing_or_non_numeric_values_count_as_one():
    events = [
        {"type": "saturation_adjustment", "payload": {"value": 0.5}},
        {"type": "saturation_adjustment", "payload": {"value": "bright"}},
        {"type": "saturation_adjustment", "payload": {}},
        {"type": "saturation_adjustment", "payload": None},
    ]
    assert aggregate(events).preferred_saturation == pytest.approx((0.5 + 1 + 1 + 1) / 4)


def test_palette_deduplicated_in_first_seen_order():
    events = [
        {"kind": "palette_selection", "payload": {"palette": ["#111111", "#222222"]}},
        {"kind": "palette_selection", "payload": {"palette": ["#222222", "#333333"]}},
        {"kind": "palette_selection", "payload": {"palette": "not-a-list"}},
    ]
    assert aggregate(events).preferred_palette == ["#111111", "#222222", "#333333"]


def test_unknown_kinds_and_junk_are_ignored():
    events = [
        {"type": "page_view", "payload": {"value": 99}},
        "junk",
        42,
        InteractionEvent(kind="recommendation_feedback", payload={"accepted": True}),
    ]
    summary = aggregate(events)
    assert summary.preferred_contrast == 1.0
    assert summary.preferred_palette == []


class TestSummaryDict(unittest.TestCase):
    def test_to_dict_keys(self):
        d = aggregate([]).to_dict()
        self.assertEqual(set(d), {"preferredContrast", "preferredSaturation", "preferredPalette"})


if __name__ == "__main__":
    unittest.main()
