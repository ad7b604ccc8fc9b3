#!/usr/bin/env python3
"""
Command-line access to the rule engine without running the server.

    python -m cromatizate.cli ontology --category deuteranopia
    python -m cromatizate.cli analyze "#FF0000" "#646400"
    python -m cromatizate.cli recommend --category achromatopsia --saturation 100
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from .colors import analyze
from .ontology import color_blindness_document
from .preferences import coerce_category
from .recommendations import recommend


def _ontology(args) -> Any:
    return color_blindness_document(coerce_category(args.category))


def _analyze(args) -> Any:
    return [a.model_dump(mode="json") for a in analyze(args.colors)]


def _recommend(args) -> Any:
    preferences: Dict[str, Any] = {}
    if args.contrast is not None:
        preferences["contrast"] = args.contrast
    if args.saturation is not None:
        preferences["saturation"] = args.saturation
    return [
        rec.model_dump(mode="json", exclude={"created_at"})
        for rec in recommend(args.category, preferences=preferences or None)
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cromatizate", description="Color-vision adaptation rule engine"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ontology_parser = subparsers.add_parser("ontology", help="Print the JSON-LD document for a category")
    ontology_parser.add_argument("--category", default="normal", help="Color-blindness category")
    ontology_parser.set_defaults(handler=_ontology)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze hex colors")
    analyze_parser.add_argument("colors", nargs="+", help="Colors as #RRGGBB")
    analyze_parser.set_defaults(handler=_analyze)

    recommend_parser = subparsers.add_parser("recommend", help="Recommendations for a category")
    recommend_parser.add_argument("--category", required=True, help="Color-blindness category")
    recommend_parser.add_argument("--contrast", type=float, help="Current contrast value")
    recommend_parser.add_argument("--saturation", type=float, help="Current saturation value")
    recommend_parser.set_defaults(handler=_recommend)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    json.dump(args.handler(args), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
