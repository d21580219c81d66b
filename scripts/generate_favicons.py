#!/usr/bin/env python3
"""Generate favicon files from an image, an SVG or a single letter.

Writes one favicon-NxN.png per configured size plus a multi-resolution
favicon.ico into the output directory.

Usage:
    python scripts/generate_favicons.py logo.svg static/
    python scripts/generate_favicons.py --letter W --background "#8B5CF6" static/
"""

import argparse
import asyncio
import sys
from pathlib import Path

from favicon_studio.config import get_settings
from favicon_studio.services.generator import FaviconService, FaviconSet


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Generate favicons from an image or a letter.")
    parser.add_argument("source", nargs="?", type=Path, help="Source image (PNG, JPEG, SVG, ...)")
    parser.add_argument("output_dir", type=Path, help="Directory to write favicons into")
    parser.add_argument("--letter", help="Render a letter icon instead of an image")
    parser.add_argument("--background", default=settings.default_background_color)
    parser.add_argument("--text-color", default=settings.default_text_color)
    parser.add_argument("--border-radius", type=int, default=settings.default_border_radius)
    parser.add_argument(
        "--sizes",
        type=lambda value: [int(s) for s in value.split(",")],
        help="Comma-separated sizes, e.g. 16,32,48",
    )

    args = parser.parse_args(argv)
    if args.source is None and not args.letter:
        parser.error("either a source image or --letter is required")
    return args


async def generate(args: argparse.Namespace) -> FaviconSet:
    service = FaviconService(sizes=args.sizes)
    if args.letter:
        return await service.generate_from_letter(
            args.letter, args.background, args.text_color, args.border_radius
        )
    return await service.generate_from_image(args.source.read_bytes(), args.border_radius)


def write_favicons(favicon_set: FaviconSet, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    print("PNG files:")
    for favicon in favicon_set.favicons:
        (output_dir / favicon.filename).write_bytes(favicon.data)
        print(f"  Created: {favicon.filename} ({favicon.size}x{favicon.size})")

    print()
    print("ICO file:")
    (output_dir / favicon_set.ico_filename).write_bytes(favicon_set.ico)
    print(f"  Created: {favicon_set.ico_filename} ({len(favicon_set.ico):,} bytes)")


def main(argv: list[str] | None = None) -> int:
    """Generate all favicon formats from the command line."""
    args = parse_args(argv)

    if args.source is not None and not args.letter and not args.source.exists():
        print(f"Error: source image not found at {args.source}")
        return 1

    try:
        favicon_set = asyncio.run(generate(args))
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    write_favicons(favicon_set, args.output_dir)
    print()
    print("Done! All favicon files generated successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
