"""
JSON-LD Ontology Documents
Fixed-shape documents describing adaptation rules and visual content.
``dateModified`` is the only field that varies between calls.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .colors import analyze
from .models import ColorBlindnessCategory as Category
from .models import VisualContent
from .preferences import coerce_category
from .rules import get_rule
from .semantic import infer_descriptions

JSONLD_MEDIA_TYPE = "application/ld+json"

VOCAB = "https://cromatizate.example.org/vocab#"

CONTEXT: Dict[str, str] = {
    "@vocab": "https://schema.org/",
    "cromatizate": VOCAB,
    "accessibility": "https://www.w3.org/TR/wai-aria/#",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def color_blindness_document(category: Category) -> Dict[str, Any]:
    rule = get_rule(category)
    return {
        "@context": dict(CONTEXT),
        "@type": "cromatizate:ColorBlindnessAdaptation",
        "cromatizate:colorBlindnessType": category.value,
        "cromatizate:palette": list(rule.palette),
        "cromatizate:contrast": rule.contrast_factor,
        "cromatizate:saturation": rule.saturation_factor,
        "cromatizate:textualDescription": rule.description,
        "cromatizate:filters": list(rule.filter_hints),
        "accessibility:accessibilityFeature": [
            "colorAdaptation",
            f"{category.value}Simulation",
        ],
        "accessibility:accessibilityHazard": "none",
        "dateModified": _now(),
    }


def visual_content_document(
    content: VisualContent, category: Optional[Category] = None
) -> Dict[str, Any]:
    analyses = analyze(content.colors)
    descriptions = infer_descriptions(content, category)

    document: Dict[str, Any] = {
        "@context": dict(CONTEXT),
        "@type": "cromatizate:VisualContent",
        "cromatizate:contentType": content.type,
        "cromatizate:source": content.source or "unknown",
        "dateModified": _now(),
    }

    if analyses:
        document["cromatizate:colors"] = [
            {
                "@type": "cromatizate:Color",
                "cromatizate:hexValue": a.hex,
                "cromatizate:rgbValue": f"rgb({a.rgb.r}, {a.rgb.g}, {a.rgb.b})",
                "cromatizate:accessibilityRating": a.accessibility.contrast,
                "cromatizate:problematicFor": [c.value for c in a.accessibility.problematic_for],
            }
            for a in analyses
        ]

    if content.objects:
        document["cromatizate:objects"] = [
            {
                "@type": "cromatizate:Object",
                "cromatizate:name": name,
                "cromatizate:semanticRole": "content",
            }
            for name in content.objects
        ]

    if descriptions:
        document["cromatizate:textualDescriptions"] = [
            {
                "@type": "cromatizate:TextualDescription",
                "cromatizate:description": d.description,
                "cromatizate:alternativeText": d.alternative_text,
                "cromatizate:colorBlindnessAdaptations": d.color_blindness_adaptations,
            }
            for d in descriptions
        ]

    features: List[str] = []
    if descriptions:
        features.append("textualDescription")
    if category and category is not Category.NORMAL:
        features.append("colorAdaptation")
        document["cromatizate:adaptedFor"] = category.value
    document["accessibility:accessibilityFeature"] = features

    return document


def visual_content_ontology() -> Dict[str, Any]:
    """Schema document for the concepts used in visual-content documents"""

    def concept(name: str, *properties: str) -> Dict[str, Any]:
        return {
            "@type": f"cromatizate:{name}",
            "cromatizate:hasProperty": [f"cromatizate:{p}" for p in properties],
        }

    return {
        "@context": {**CONTEXT, "dcterms": "http://purl.org/dc/terms/"},
        "@type": "cromatizate:VisualContentOntology",
        "cromatizate:defines": [
            concept("Image", "hasColor", "hasObject", "hasTextualDescription", "hasColorAttribute"),
            concept("Color", "hexValue", "rgbValue", "accessibilityRating", "problematicFor"),
            concept("Object", "name", "colorAttributes", "semanticRole"),
            concept("ColorAttribute", "color", "meaning", "importance"),
            concept("TextualDescription", "description", "alternativeText", "colorBlindnessAdaptations"),
        ],
        "dateModified": _now(),
    }


def emit(subject: Any, category: Optional[Category] = None) -> Dict[str, Any]:
    """Document for either a category or a piece of visual content"""
    if isinstance(subject, VisualContent):
        return visual_content_document(subject, category)
    return color_blindness_document(coerce_category(subject))


def with_suggestions(document: Dict[str, Any], suggestions: Iterable[Any]) -> Dict[str, Any]:
    """Attach suggestions to a document, keeping @context first"""
    envelope = {"@context": document.get("@context", dict(CONTEXT))}
    envelope.update(document)
    envelope["cromatizate:suggestions"] = [
        s.model_dump(mode="json") if hasattr(s, "model_dump") else s for s in suggestions
    ]
    return envelope
