"""
Semantic Agent
Infers textual descriptions for visual content, proposes adaptation
suggestions from color analysis, and applies the fixed per-category color
substitution tables.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .colors import analyze
from .models import ColorAnalysis, SemanticDescription, VisualContent
from .models import ColorBlindnessCategory as Category
from .preferences import coerce_category
from .rules import get_rule

FALLBACK_GRAY = "#808080"

_HEX6 = re.compile(r"^#[0-9A-Fa-f]{6}$")
_HEX3 = re.compile(r"^#[0-9A-Fa-f]{3}$")

COLOR_TRANSFORMATIONS: Dict[Category, Dict[str, str]] = {
    Category.PROTANOPIA: {
        "#FF0000": "#8B4513",  # red -> saddle brown
        "#00FF00": "#FFD700",  # green -> gold
        "#0000FF": "#0000FF",
        "#FFFF00": "#FFD700",
        "#FF00FF": "#8B008B",
        "#00FFFF": "#00CED1",
    },
    Category.DEUTERANOPIA: {
        "#FF0000": "#FF6347",  # red -> tomato
        "#00FF00": "#FFD700",
        "#0000FF": "#0000FF",
        "#FFFF00": "#FFD700",
        "#FF00FF": "#9370DB",
        "#00FFFF": "#20B2AA",
    },
    Category.TRITANOPIA: {
        "#FF0000": "#FF0000",
        "#00FF00": "#00FF00",
        "#0000FF": "#8B008B",  # blue -> dark magenta
        "#FFFF00": "#FFA500",
        "#FF00FF": "#FF1493",
        "#00FFFF": "#FFD700",
    },
    Category.ACHROMATOPSIA: {
        hex_: FALLBACK_GRAY
        for hex_ in ("#FF0000", "#00FF00", "#0000FF", "#FFFF00", "#FF00FF", "#00FFFF")
    },
}

COLOR_NAMES: Dict[str, str] = {
    "#FF0000": "intense red",
    "#00FF00": "bright green",
    "#0000FF": "deep blue",
    "#FFFF00": "vibrant yellow",
    "#FF00FF": "magenta",
    "#00FFFF": "cyan",
    "#FFA500": "orange",
    "#800080": "purple",
    "#FFC0CB": "pink",
    "#000000": "black",
    "#FFFFFF": "white",
    "#808080": "gray",
}

VISION_NAMES: Dict[Category, str] = {
    Category.ACHROMATOPSIA: "monochromatic vision",
}


@dataclass
class TransformResult:
    description: str
    adapted_colors: List[str]
    raw_input: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "adaptedColors": self.adapted_colors,
            "rawInput": self.raw_input,
        }


def normalize_hex(color: Any) -> str:
    """Upper-case #RRGGBB; 3-digit shorthand expanded; anything else is gray"""
    if not isinstance(color, str):
        return FALLBACK_GRAY
    if _HEX6.match(color):
        return color.upper()
    if _HEX3.match(color):
        r, g, b = color[1], color[2], color[3]
        return f"#{r}{r}{g}{g}{b}{b}".upper()
    return FALLBACK_GRAY


def _describe_palette(colors: List[Any], category: Category) -> str:
    if not colors:
        return "No colors detected"

    names = list(dict.fromkeys(
        COLOR_NAMES.get(normalize_hex(c), "unknown color") for c in colors
    ))
    color_list = ", ".join(names) if names else "assorted colors"

    if category is Category.NORMAL:
        return f"Visual content with colors: {color_list}"

    vision = VISION_NAMES.get(category, category.value)
    return (
        f"Visual content adapted for {vision}. Original colors: {color_list}. "
        "Colors have been transformed to improve perception."
    )


def transform_colors(colors: List[Any], vision: Union[Category, str, None]) -> TransformResult:
    """Substitute hard-to-perceive colors for a vision type and describe the result"""
    category = coerce_category(vision or Category.NORMAL.value)
    mapping = COLOR_TRANSFORMATIONS.get(category, {})

    adapted = []
    for color in colors:
        normalized = normalize_hex(color)
        adapted.append(mapping.get(normalized, normalized))

    return TransformResult(
        description=_describe_palette(colors, category),
        adapted_colors=adapted,
        raw_input={
            "colors": list(colors),
            "vision": vision.value if isinstance(vision, Category) else vision,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def transform_metadata(metadata: Mapping[str, Any], vision: Union[Category, str, None]) -> TransformResult:
    """Collect colors from content metadata and transform them"""
    colors: List[Any] = []
    for key in ("colors", "palette", "colorHints"):
        value = metadata.get(key)
        if isinstance(value, list):
            colors.extend(value)

    if not colors:
        return TransformResult(
            description=f"Visual content without specific color information. Vision type: {vision}",
            adapted_colors=[],
            raw_input=dict(metadata),
        )

    return transform_colors(colors, vision)


def _is_problematic(analysis: ColorAnalysis, category: Category) -> bool:
    return category in analysis.accessibility.problematic_for


def infer_descriptions(
    content: VisualContent, category: Optional[Category] = None
) -> List[SemanticDescription]:
    """Textual descriptions for image or color content"""
    descriptions: List[SemanticDescription] = []

    if content.type == "image" and content.colors and content.objects:
        analyses = analyze(content.colors)
        # without a category, warn about the most common deficiency
        target = category or Category.DEUTERANOPIA
        problematic = [a for a in analyses if _is_problematic(a, target)]

        description = f"Image containing {len(content.objects)} main object(s)"
        description += f" with a palette of {len(content.colors)} colors"
        if problematic and category:
            description += (
                f". Some colors may be hard to tell apart for users with {category.value}"
            )

        alternative_text = ", ".join(content.objects)
        alternative_text += f". Main colors: {', '.join(content.colors[:3])}"

        adaptations: Dict[str, str] = {}
        if category:
            adaptations[category.value] = get_rule(category).description

        descriptions.append(
            SemanticDescription(
                type="image",
                description=description,
                alternative_text=alternative_text,
                color_blindness_adaptations=adaptations,
            )
        )

    if content.type == "color" and content.colors:
        for analysis in analyze(content.colors):
            alternative_text = f"Hex color {analysis.hex}"
            affected = analysis.accessibility.problematic_for
            if affected:
                alternative_text += (
                    f". May be problematic for: {', '.join(c.value for c in affected)}"
                )
            descriptions.append(
                SemanticDescription(
                    type="color",
                    description=f"Color {analysis.hex}",
                    alternative_text=alternative_text,
                )
            )

    return descriptions


def adaptation_suggestions(
    category: Category, analyses: Iterable[ColorAnalysis]
) -> List[Dict[str, Any]]:
    """Suggestions derived from analyzed colors rather than from stored preferences"""
    analyses = list(analyses)
    rule = get_rule(category)
    name = category.value
    suggestions: List[Dict[str, Any]] = []

    problematic = [a.hex for a in analyses if _is_problematic(a, category)]
    if problematic:
        suggestions.append({
            "type": "color_replacement",
            "content": {
                "problematicColors": problematic,
                "suggestedPalette": list(rule.palette),
                "reason": (
                    f"Some colors may be hard to tell apart for {name}. "
                    "Using the adapted palette is suggested."
                ),
                "confidence": 0.85,
            },
            "source": "semantic_analysis",
        })

    if analyses:
        avg_contrast = sum(a.accessibility.contrast for a in analyses) / len(analyses)
        avg_saturation = sum(a.hsl.s for a in analyses) / len(analyses)
    else:
        avg_contrast = 1.0
        avg_saturation = 0.5

    if avg_contrast < rule.contrast_factor:
        suggestions.append({
            "type": "contrast_enhancement",
            "content": {
                "currentContrast": avg_contrast,
                "suggestedContrast": rule.contrast_factor,
                "reason": (
                    f"Average contrast ({avg_contrast:.2f}) is below the recommended "
                    f"value for {name} ({rule.contrast_factor})"
                ),
                "confidence": 0.8,
            },
            "source": "semantic_analysis",
        })

    if abs(avg_saturation - rule.saturation_factor) > 0.1:
        suggestions.append({
            "type": "saturation_adjustment",
            "content": {
                "currentSaturation": avg_saturation,
                "suggestedSaturation": rule.saturation_factor,
                "reason": (
                    f"Adjust saturation to {rule.saturation_factor} to improve perception for {name}"
                ),
                "confidence": 0.75,
            },
            "source": "semantic_analysis",
        })

    return suggestions
