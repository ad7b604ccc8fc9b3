from cromatizate.colors import analyze
from cromatizate.models import ColorBlindnessCategory as Category
from cromatizate.models import VisualContent
from cromatizate.semantic import (
    FALLBACK_GRAY,
    adaptation_suggestions,
    infer_descriptions,
    normalize_hex,
    transform_colors,
    transform_metadata,
)


def test_normalize_hex():
    assert normalize_hex("#ff0000") == "#FF0000"
    assert normalize_hex("#abc") == "#AABBCC"
    assert normalize_hex("red") == FALLBACK_GRAY
    assert normalize_hex(None) == FALLBACK_GRAY


def test_transform_colors_for_protanopia():
    result = transform_colors(["#ff0000", "#00FF00", "#123456"], "protanopia")
    assert result.adapted_colors == ["#8B4513", "#FFD700", "#123456"]
    assert "protanopia" in result.description
    assert result.raw_input["colors"] == ["#ff0000", "#00FF00", "#123456"]


def test_transform_colors_achromatopsia_goes_gray():
    result = transform_colors(["#FF0000", "#0000FF"], Category.ACHROMATOPSIA)
    assert result.adapted_colors == [FALLBACK_GRAY, FALLBACK_GRAY]
    assert "monochromatic vision" in result.description


def test_transform_colors_normal_passes_through():
    result = transform_colors(["#f00"], "normal")
    assert result.adapted_colors == ["#FF0000"]
    assert result.description == "Visual content with colors: intense red"


def test_transform_colors_empty():
    assert transform_colors([], "tritanopia").description == "No colors detected"


def test_transform_metadata_gathers_color_lists():
    result = transform_metadata({"palette": ["#0000FF"], "colorHints": ["#FFFF00"]}, "tritanopia")
    assert result.adapted_colors == ["#8B008B", "#FFA500"]


def test_transform_metadata_without_colors():
    result = transform_metadata({"title": "sunset"}, "deuteranopia")
    assert result.adapted_colors == []
    assert "without specific color information" in result.description
    assert result.to_dict()["rawInput"] == {"title": "sunset"}


def test_infer_descriptions_for_image():
    content = VisualContent(type="image", colors=["#787800", "#FFFFFF", "#000000", "#00FF00"], objects=["tree", "sky"])
    (desc,) = infer_descriptions(content, Category.DEUTERANOPIA)
    assert desc.description.startswith("Image containing 2 main object(s) with a palette of 4 colors")
    assert "deuteranopia" in desc.description
    assert desc.alternative_text == "tree, sky. Main colors: #787800, #FFFFFF, #000000"
    assert "deuteranopia" in desc.color_blindness_adaptations


def test_infer_descriptions_for_image_without_objects():
    assert infer_descriptions(VisualContent(type="image", colors=["#FF0000"])) == []


def test_infer_descriptions_for_colors():
    descs = infer_descriptions(VisualContent(type="color", colors=["#FF0000", "#787800"]))
    assert [d.description for d in descs] == ["Color #FF0000", "Color #787800"]
    assert "problematic" not in descs[0].alternative_text
    assert "protanopia" in descs[1].alternative_text


def test_adaptation_suggestions_flag_confusable_colors():
    suggestions = adaptation_suggestions(Category.PROTANOPIA, analyze(["#787800", "#0000FF"]))
    types = [s["type"] for s in suggestions]
    assert types[0] == "color_replacement"
    assert suggestions[0]["content"]["problematicColors"] == ["#787800"]
    assert all(s["source"] == "semantic_analysis" for s in suggestions)


def test_adaptation_suggestions_without_colors():
    suggestions = adaptation_suggestions(Category.ACHROMATOPSIA, [])
    types = [s["type"] for s in suggestions]
    # mean contrast 1.0 < 1.5 and |0.5 - 0.0| > 0.1
    assert types == ["contrast_enhancement", "saturation_adjustment"]
