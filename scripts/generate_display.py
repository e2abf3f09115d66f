#!/usr/bin/env python3
"""
Design a retail display stand from its requirements.

Usage:
    python scripts/generate_display.py --stand-type "Floor Stand" \
        --width 60 --height 160 --depth 40 --shelves 4 --material metal \
        --product 7.5 18 6 --front-faces 6 --back-to-back 4

    # From a JSON request (snake_case or camelCase keys)
    python scripts/generate_display.py --request request.json

All lengths are in cm. Run artifacts are written to --runs-dir.
"""
import sys
import json
import argparse
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from display import DisplayRequest
from pipeline import PipelineConfig, run_design_pipeline
from template_selector import TemplateSelectionError


def build_request(args) -> DisplayRequest:
    if args.request:
        with open(args.request, "r", encoding="utf-8") as f:
            return DisplayRequest.from_dict(json.load(f))

    missing = [
        flag for flag, value in (
            ("--width", args.width), ("--height", args.height),
            ("--depth", args.depth), ("--product", args.product),
        ) if value is None
    ]
    if missing:
        raise ValueError(f"Missing {', '.join(missing)} (or pass --request)")

    pw, ph, pd = args.product
    return DisplayRequest(
        stand_type=args.stand_type,
        stand_width=args.width,
        stand_height=args.height,
        stand_depth=args.depth,
        shelf_count=args.shelves,
        materials=args.material,
        product_width=pw,
        product_height=ph,
        product_depth=pd,
        front_face_count=args.front_faces,
        back_to_back_count=args.back_to_back,
        shelf_width=args.shelf_width,
        shelf_depth=args.shelf_depth,
        brand_color=args.color,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Design a manufacturable retail display stand"
    )
    parser.add_argument("--request", type=str, default=None, help="Path to a JSON request")
    parser.add_argument("--stand-type", type=str, default="Floor Stand",
                        help="Display type label (default: Floor Stand)")
    parser.add_argument("--width", type=float, help="Stand width in cm")
    parser.add_argument("--height", type=float, help="Stand height in cm")
    parser.add_argument("--depth", type=float, help="Stand depth in cm")
    parser.add_argument("--shelves", type=int, default=4, help="Shelf count (default: 4)")
    parser.add_argument("--material", type=str, action="append", default=None,
                        help="Preferred material, repeatable (default: cardboard)")
    parser.add_argument("--product", type=float, nargs=3, metavar=("W", "H", "D"),
                        help="Product width, height and depth in cm")
    parser.add_argument("--front-faces", type=int, default=4,
                        help="Products facing front (default: 4)")
    parser.add_argument("--back-to-back", type=int, default=2,
                        help="Products behind each facing (default: 2)")
    parser.add_argument("--shelf-width", type=float, default=None, help="Shelf width in cm")
    parser.add_argument("--shelf-depth", type=float, default=None, help="Shelf depth in cm")
    parser.add_argument("--color", type=str, default=None, help="Base color")
    parser.add_argument("--runs-dir", type=str, default="runs",
                        help="Where run folders are written (default: runs)")
    parser.add_argument("--no-artifacts", action="store_true", help="Skip writing the run folder")
    parser.add_argument("--no-smart-positioning", action="store_true",
                        help="Skip the automatic positioning pass")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.material is None:
        args.material = ["cardboard"]

    try:
        request = build_request(args)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}")
        sys.exit(2)

    config = PipelineConfig(
        runs_dir=args.runs_dir,
        write_artifacts=not args.no_artifacts,
        smart_positioning=not args.no_smart_positioning,
    )
    outcome = run_design_pipeline(request, config)

    if isinstance(outcome, TemplateSelectionError):
        print(f"\nNo design: {outcome.error}")
        for suggestion in outcome.suggestions:
            print(f"  - {suggestion}")
        sys.exit(1)

    metrics = outcome.metrics()
    print(f"\n{'=' * 60}")
    print(f"Template:      {outcome.template.name} ({outcome.template.id})")
    print(f"Match score:   {metrics['match_score']:.1f}")
    print(f"DFM score:     {metrics['dfm_score']:.0f}")
    print(f"Cost / lead:   ${metrics['estimated_cost']:.2f} / {metrics['lead_time_days']} days")
    print(f"Products:      {metrics['total_products']} on {metrics['shelves']} shelves")
    print(f"Manufacturing: {metrics['manufacturing_score']} ({metrics['manufacturing_grade']})")
    for hint in outcome.selection.adjustments:
        print(f"  - {hint}")
    if outcome.run_dir:
        print(f"Run folder:    {outcome.run_dir}")
    print(f"{'=' * 60}")


if __name__ == "__main__":
    main()
