"""
Command-line interface for rendering furigana images.

Usage patterns:
    python -m furiganarender.cli.commands render "青と赤" -o out.png
    python -m furiganarender.cli.commands render --pairs pairs.json -o out.png
    python -m furiganarender.cli.commands render "<ruby>漢字<rt>かんじ</rt></ruby>" --markup -o out.png
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from furiganarender.config import get_config
from furiganarender.errors import FuriganaRenderError
from furiganarender.render.image_renderer import draw_page, layout
from furiganarender.render.options import merge_options
from furiganarender.render.surface import PillowSurface

SUPPORTED_FORMATS = {"png", "jpeg", "webp", "bmp"}

# CLI flag dest -> RenderOptions field
_OPTION_FLAGS = {
    "max_width": "max_width_in_pixels",
    "min_width": "min_width_in_pixels",
    "max_height": "max_height_in_pixels",
    "min_height": "min_height_in_pixels",
    "padding_between_lines": "padding_between_lines",
    "padding_between_annotation": "padding_between_annotation_and_base",
    "background_color": "background_color",
    "text_color": "text_color",
}


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "render":
        _render(args)
    else:  # pragma: no cover - argparse ensures command is valid
        parser.error(f"Unknown command: {args.command}")


def _render(args: argparse.Namespace) -> None:
    config = get_config()
    text = _load_input(args)
    base_font = args.base_font or config.base_font
    annotation_font = args.annotation_font or config.annotation_font
    image_format = (args.format or config.image_format).upper()

    overrides = {
        name: getattr(args, flag)
        for flag, name in _OPTION_FLAGS.items()
        if getattr(args, flag) is not None
    }

    try:
        options = merge_options(config.options, overrides)
        provider = (
            config.annotation_provider(markup=args.markup)
            if isinstance(text, str)
            else None
        )
        surface = PillowSurface()
        page = layout(
            text,
            base_font,
            annotation_font,
            options,
            annotation_provider=provider,
            surface=surface,
        )
        payload = draw_page(
            page, surface, base_font, annotation_font, options, image_format=image_format
        )
    except FuriganaRenderError as exc:
        raise SystemExit(f"{exc.error_code}: {exc.message}") from exc

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(payload)
    print(f"Wrote {output} ({page.width}x{page.height})")


def _load_input(args: argparse.Namespace) -> str | list[Any]:
    if args.pairs and args.text:
        raise SystemExit("Provide either text or --pairs, not both")
    if args.pairs:
        path = Path(args.pairs)
        if not path.exists():
            raise SystemExit(f"Pairs file {path} not found")
        try:
            pairs = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SystemExit(f"Pairs file {path} is not valid JSON: {exc}") from exc
        if not isinstance(pairs, list):
            raise SystemExit(f"Pairs file {path} must contain a JSON list")
        return pairs
    if not args.text:
        raise SystemExit("No text provided. Pass text or --pairs <file>.")
    if args.no_auto_annotate:
        return [{"base": args.text}]
    return args.text


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="furiganarender-cli", description="Render Japanese text with furigana to an image"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render_cmd = subparsers.add_parser("render", help="Render text to an image file")
    render_cmd.add_argument("text", nargs="?", help="Text to render")
    render_cmd.add_argument(
        "--pairs", help="JSON file holding a list of {base, annotation} pairs"
    )
    render_cmd.add_argument(
        "--markup",
        action="store_true",
        help="Treat the text as HTML ruby markup instead of detecting readings",
    )
    render_cmd.add_argument(
        "--no-auto-annotate",
        action="store_true",
        help="Render the text without detecting readings",
    )
    render_cmd.add_argument("-o", "--output", required=True, help="Output image path")
    render_cmd.add_argument("--base-font", help="Base text font, e.g. '40px IPAMincho'")
    render_cmd.add_argument("--annotation-font", help="Annotation font, e.g. '20px IPAMincho'")
    render_cmd.add_argument(
        "--format",
        type=str.lower,
        choices=sorted(SUPPORTED_FORMATS),
        help="Output image format",
    )
    render_cmd.add_argument("--max-width", type=int, help="Maximum page width in pixels")
    render_cmd.add_argument("--min-width", type=int, help="Minimum page width in pixels")
    render_cmd.add_argument("--max-height", type=int, help="Maximum page height in pixels")
    render_cmd.add_argument("--min-height", type=int, help="Minimum page height in pixels")
    render_cmd.add_argument(
        "--padding-between-lines", type=int, help="Vertical padding between lines"
    )
    render_cmd.add_argument(
        "--padding-between-annotation",
        type=int,
        help="Vertical padding between annotations and base text",
    )
    render_cmd.add_argument("--background-color", help="Background color")
    render_cmd.add_argument("--text-color", help="Text color")

    return parser
