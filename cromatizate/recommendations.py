"""
Recommendation Generation
Derives palette, contrast, saturation and textual suggestions for a
category from the rule table, the visitor's preferences and their recent
interactions.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .interactions import EventLike, aggregate
from .models import ColorBlindnessCategory as Category
from .models import (
    Recommendation,
    RecommendationKind,
    RecommendationSource,
    UserPreferences,
)
from .preferences import coerce_category
from .rules import get_rule

PALETTE_CONFIDENCE = 0.9
CONTRAST_CONFIDENCE = 0.8
SATURATION_CONFIDENCE = 0.75
TEXTUAL_CONFIDENCE = 0.85

SATURATION_TOLERANCE = 0.1

PreferencesLike = Union[UserPreferences, Mapping[str, Any], None]


def _preference_value(preferences: PreferencesLike, key: str) -> Optional[float]:
    if isinstance(preferences, UserPreferences):
        value = getattr(preferences, key)
    elif isinstance(preferences, Mapping):
        value = preferences.get(key)
    else:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def recommend(
    category: Union[Category, str, None],
    interactions: Iterable[EventLike] = (),
    preferences: PreferencesLike = None,
) -> List[Recommendation]:
    """Suggestions for a category, in display order.

    The effective contrast/saturation is the preference value when one is
    given, else the interaction average when matching events exist, else the
    rule value itself (which suppresses that suggestion).
    """
    category = coerce_category(category)
    if category is Category.NORMAL:
        return []

    rule = get_rule(category)
    summary = aggregate(interactions or ())
    name = category.value

    contrast = _preference_value(preferences, "contrast")
    if contrast is None:
        contrast = summary.preferred_contrast if summary.contrast_samples else rule.contrast_factor
    saturation = _preference_value(preferences, "saturation")
    if saturation is None:
        saturation = (
            summary.preferred_saturation if summary.saturation_samples else rule.saturation_factor
        )

    recommendations = [
        Recommendation(
            kind=RecommendationKind.PALETTE,
            content={
                "suggestedPalette": list(rule.palette),
                "reason": rule.description,
                "confidence": PALETTE_CONFIDENCE,
            },
            source=RecommendationSource.ONTOLOGY,
        )
    ]

    if contrast < rule.contrast_factor:
        recommendations.append(
            Recommendation(
                kind=RecommendationKind.CONTRAST,
                content={
                    "suggestedContrast": rule.contrast_factor,
                    "currentContrast": contrast,
                    "reason": f"For {name}, a minimum contrast of {rule.contrast_factor} is recommended",
                    "confidence": CONTRAST_CONFIDENCE,
                },
                source=RecommendationSource.INTERACTION,
            )
        )

    if abs(saturation - rule.saturation_factor) > SATURATION_TOLERANCE:
        recommendations.append(
            Recommendation(
                kind=RecommendationKind.SATURATION,
                content={
                    "suggestedSaturation": rule.saturation_factor,
                    "currentSaturation": saturation,
                    "reason": f"Optimal saturation for {name}",
                    "confidence": SATURATION_CONFIDENCE,
                },
                source=RecommendationSource.INTERACTION,
            )
        )

    recommendations.append(
        Recommendation(
            kind=RecommendationKind.TEXTUAL,
            content={
                "description": rule.description,
                "alternativeText": f"Image adapted for users with {name}",
                "confidence": TEXTUAL_CONFIDENCE,
            },
            source=RecommendationSource.ONTOLOGY,
        )
    )

    return recommendations


def _fingerprint(rec: Recommendation) -> str:
    return f"{rec.kind.value}-{json.dumps(rec.content, sort_keys=True, default=str)}"


def novel_recommendations(
    fresh: Iterable[Recommendation], existing: Iterable[Recommendation]
) -> List[Recommendation]:
    """Fresh recommendations whose kind and content are not stored yet"""
    seen = {_fingerprint(rec) for rec in existing}
    return [rec for rec in fresh if _fingerprint(rec) not in seen]


def merge_recommendations(*groups: Iterable[Recommendation]) -> List[Recommendation]:
    """Keep one recommendation per kind: highest confidence, first seen on ties"""
    best: Dict[RecommendationKind, Recommendation] = {}
    for group in groups:
        for rec in group:
            current = best.get(rec.kind)
            if current is None or rec.confidence > current.confidence:
                best[rec.kind] = rec
    return list(best.values())
