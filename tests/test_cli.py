import json

from cromatizate.cli import main


def _run(capsys, *argv):
    assert main(list(argv)) == 0
    return json.loads(capsys.readouterr().out)


def test_ontology_command(capsys):
    doc = _run(capsys, "ontology", "--category", "tritanopia")
    assert doc["cromatizate:colorBlindnessType"] == "tritanopia"


def test_analyze_command(capsys):
    out = _run(capsys, "analyze", "#FF0000", "#787800")
    assert out[0]["rgb"] == {"r": 255, "g": 0, "b": 0}
    assert "protanopia" in out[1]["accessibility"]["problematic_for"]


def test_recommend_command(capsys):
    out = _run(capsys, "recommend", "--category", "achromatopsia", "--saturation", "100")
    assert [r["kind"] for r in out] == ["palette", "saturation", "textual"]


def test_recommend_normal_is_empty(capsys):
    assert _run(capsys, "recommend", "--category", "normal") == []


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out
