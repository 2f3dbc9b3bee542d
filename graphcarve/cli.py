"""
Command-line seam carving.

Usage:
    graphcarve photo.jpg carved.png --seams 100
    graphcarve photo.jpg carved.png --seams 50 --direction auto --seed 7
    graphcarve photo.jpg carved.png --seams 20 --heatmap energy.png
    graphcarve photo.jpg carved.png --vertical 40 --horizontal 10
"""

import argparse
import logging
from typing import List, Optional

import torch

from .carving import SeamCarver
from .config import DIRECTIONS
from .errors import CarvingError
from .imageio import load_image, save_image
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='graphcarve',
        description="Content-aware image resizing by seam removal"
    )
    parser.add_argument('input', type=str, help='Input image path')
    parser.add_argument('output', type=str, help='Output image path')
    parser.add_argument(
        '--seams', type=int, default=1,
        help='Number of seams to remove (default: 1)'
    )
    parser.add_argument(
        '--direction', choices=DIRECTIONS + ('auto',), default='vertical',
        help="Seam orientation; 'auto' picks by aspect ratio each step (default: vertical)"
    )
    parser.add_argument(
        '--vertical', type=int, default=None, metavar='N',
        help='Remove N vertical seams, then any --horizontal ones (overrides --seams)'
    )
    parser.add_argument(
        '--horizontal', type=int, default=None, metavar='M',
        help='Remove M horizontal seams after any --vertical ones (overrides --seams)'
    )
    parser.add_argument(
        '--heatmap', type=str, default=None,
        help='Also save the energy heatmap of the carved image to this path'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help="Random seed for --direction auto"
    )
    parser.add_argument(
        '--no-verify', action='store_true',
        help='Skip the link invariant check after each removal'
    )
    parser.add_argument(
        '--log-level', default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: INFO)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    if args.vertical is not None or args.horizontal is not None:
        plan = [('vertical', args.vertical or 0), ('horizontal', args.horizontal or 0)]
    else:
        plan = [(args.direction, args.seams)]
    if any(count < 0 for _, count in plan):
        logger.error("Seam counts must be non-negative, got %s", plan)
        return 2

    generator = None
    if args.seed is not None:
        generator = torch.Generator().manual_seed(args.seed)

    try:
        colors = load_image(args.input)
        carver = SeamCarver(colors, strict=not args.no_verify, highlight=False)
        logger.info("Loaded %s (%dx%d)", args.input, *carver.shape)

        removed = 0
        for direction, count in plan:
            removed += carver.carve(count, direction=direction, generator=generator)
        H, W = carver.shape
        logger.info("Removed %d seams, result is %dx%d", removed, H, W)
        if H == 0 or W == 0:
            logger.error("Nothing left to save after removing %d seams", removed)
            return 1

        save_image(carver.render_colors('original'), args.output)
        logger.info("Saved: %s", args.output)
        if args.heatmap:
            save_image(carver.render_colors('energy'), args.heatmap)
            logger.info("Saved: %s", args.heatmap)
    except (OSError, CarvingError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
