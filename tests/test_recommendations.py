import pytest

from cromatizate.models import ColorBlindnessCategory as Category
from cromatizate.models import (
    InteractionEvent,
    Recommendation,
    RecommendationKind,
    RecommendationSource,
)
from cromatizate.recommendations import merge_recommendations, novel_recommendations, recommend
from cromatizate.rules import ADAPTATION_RULES, get_rule


def kinds(recs):
    return [r.kind for r in recs]


@pytest.mark.parametrize("category", ["normal", None, "not-a-category", Category.NORMAL])
def test_normal_or_unknown_category_yields_nothing(category):
    events = [InteractionEvent(kind="contrast_adjustment", payload={"value": 0.2})]
    assert recommend(category, events, {"contrast": 0, "saturation": 0}) == []


@pytest.mark.parametrize("category", [c for c in Category if c is not Category.NORMAL])
def test_preferences_at_rule_values_give_palette_and_textual(category):
    rule = get_rule(category)
    recs = recommend(
        category, [], {"contrast": rule.contrast_factor, "saturation": rule.saturation_factor}
    )
    assert kinds(recs) == [RecommendationKind.PALETTE, RecommendationKind.TEXTUAL]


def test_without_inputs_rule_values_suppress_adjustments():
    recs = recommend("tritanopia")
    assert kinds(recs) == [RecommendationKind.PALETTE, RecommendationKind.TEXTUAL]


def test_palette_and_textual_content():
    palette, textual = recommend("protanopia")
    rule = ADAPTATION_RULES[Category.PROTANOPIA]
    assert palette.content["suggestedPalette"] == list(rule.palette)
    assert palette.content["reason"] == rule.description
    assert palette.confidence == 0.9
    assert palette.source is RecommendationSource.ONTOLOGY
    assert textual.content["description"] == rule.description
    assert "protanopia" in textual.content["alternativeText"]
    assert textual.confidence == 0.85


def test_low_contrast_preference_triggers_contrast_recommendation():
    recs = recommend("deuteranopia", [], {"contrast": 1.0, "saturation": 0.8})
    assert kinds(recs) == [
        RecommendationKind.PALETTE,
        RecommendationKind.CONTRAST,
        RecommendationKind.TEXTUAL,
    ]
    contrast = recs[1]
    assert contrast.content["suggestedContrast"] == 1.2
    assert contrast.content["currentContrast"] == 1.0
    assert contrast.confidence == 0.8
    assert contrast.source is RecommendationSource.INTERACTION


def test_achromatopsia_with_full_saturation_suggests_zero():
    recs = recommend("achromatopsia", [], {"contrast": 100, "saturation": 100})
    saturation = [r for r in recs if r.kind is RecommendationKind.SATURATION]
    assert len(saturation) == 1
    assert saturation[0].content["suggestedSaturation"] == 0
    assert saturation[0].content["currentSaturation"] == 100
    assert saturation[0].confidence == 0.75


def test_zero_preference_is_a_real_value():
    recs = recommend("protanopia", [], {"contrast": 0, "saturation": 0.8})
    assert RecommendationKind.CONTRAST in kinds(recs)


def test_interactions_used_when_preferences_absent():
    events = [
        InteractionEvent(kind="contrast_adjustment", payload={"value": 1.0}),
        InteractionEvent(kind="saturation_adjustment", payload={"value": 0.3}),
    ]
    recs = recommend("tritanopia", events)
    assert kinds(recs) == [
        RecommendationKind.PALETTE,
        RecommendationKind.CONTRAST,
        RecommendationKind.SATURATION,
        RecommendationKind.TEXTUAL,
    ]
    assert recs[1].content["currentContrast"] == pytest.approx(1.0)
    assert recs[2].content["currentSaturation"] == pytest.approx(0.3)


def test_saturation_tolerance_is_exclusive():
    recs = recommend("deuteranopia", [], {"contrast": 2, "saturation": 0.85})
    assert RecommendationKind.SATURATION not in kinds(recs)


def _rec(kind, confidence, marker):
    return Recommendation(
        kind=kind,
        content={"confidence": confidence, "marker": marker},
        source=RecommendationSource.ONTOLOGY,
    )


def test_merge_keeps_highest_confidence_per_kind():
    merged = merge_recommendations(
        [_rec(RecommendationKind.PALETTE, 0.5, "old")],
        [_rec(RecommendationKind.PALETTE, 0.9, "new"), _rec(RecommendationKind.TEXTUAL, 0.1, "t")],
    )
    assert [r.content["marker"] for r in merged] == ["new", "t"]


def test_merge_ties_keep_first_seen():
    merged = merge_recommendations(
        [_rec(RecommendationKind.CONTRAST, 0.8, "first")],
        [_rec(RecommendationKind.CONTRAST, 0.8, "second")],
    )
    assert [r.content["marker"] for r in merged] == ["first"]


def test_novel_recommendations_skip_stored_duplicates():
    fresh = recommend("protanopia")
    stored = [fresh[0]]
    novel = novel_recommendations(fresh, stored)
    assert kinds(novel) == [RecommendationKind.TEXTUAL]
