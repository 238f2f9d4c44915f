"""Command line front-end for the symmetry pipeline.

Usage:
    python -m refract.cli preview <image> -o <dir>  [--midpoint 0.5 0.5] [--rotation 0] [--zoom 1.0] [--high-res]
    python -m refract.cli export  <image> --quadrant bottom-left -o <dir>  [--midpoint X Y] [--rotation R] [--zoom Z]
    python -m refract.cli prep    <image> -o <file>  [--zoom-slider 50] [--pan-x 50] [--pan-y 50] [--crop L R T B]

Subcommands:
  preview: write the four symmetry patterns plus a 2x2 contact sheet
  export:  write one pattern at full resolution under its suggested name
  prep:    bake pan/zoom/crop (and optionally a two-fold mirror) into a new image
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from .config import QualityTier, QuadrantIndex
from .contact_sheet import render_preview_grid
from .exporter import RefractError, export
from .prep import CropInsets, MirrorAxis, MirrorSide, PrepSettings, bake, mirror_halves
from .raster import Midpoint, RasterBuffer, load_image
from .symmetry import RenderParams, render_preview

logger = logging.getLogger("refract")

HANDLED_ERRORS = (RefractError, ValueError, OSError)


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@dataclass
class RunConfig:
    """Settings shared by the preview and export subcommands."""

    image_path: Path
    output_dir: Path
    midpoint: Midpoint
    rotation: float
    zoom: float

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        return cls(
            image_path=Path(args.image),
            output_dir=Path(args.output),
            midpoint=Midpoint(*args.midpoint),
            rotation=args.rotation,
            zoom=args.zoom,
        )


def _parse_quadrant(text: str) -> Union[int, QuadrantIndex]:
    """Accept ``0``-``3`` or a label such as ``top-right``.

    Numbers are passed through untouched so the exporter rejects bad indices.
    """
    text = text.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return QuadrantIndex.from_label(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _save(buffer: RasterBuffer, path: Path) -> Optional[Path]:
    if buffer.is_empty:
        logger.warning("Skipping %s: nothing to render", path.name)
        return None
    buffer.to_image().save(path)
    logger.info("Wrote %s (%dx%d)", path, buffer.width, buffer.height)
    return path


# ---- Subcommand: preview ----

def cmd_preview(args):
    try:
        cfg = RunConfig.from_args(args)
        image = load_image(cfg.image_path)
        params = RenderParams(
            midpoint=cfg.midpoint,
            rotation_deg=cfg.rotation,
            zoom=cfg.zoom,
            tier=QualityTier.HIGH_RES if args.high_res else QualityTier.PREVIEW,
        )
        result = render_preview(image, params)
    except HANDLED_ERRORS as exc:
        logger.error("Preview failed: %s", exc)
        return 1

    if not len(result):
        logger.error("No patterns generated for %s", cfg.image_path)
        return 1

    cfg.output_dir.mkdir(parents=True, exist_ok=True)
    stem = cfg.image_path.stem
    for quadrant in QuadrantIndex:
        _save(result[quadrant], cfg.output_dir / f"{stem}_{quadrant.label}.png")

    if args.grid:
        grid = render_preview_grid(result.patterns, active=args.active)
        _save(grid, cfg.output_dir / f"{stem}_grid.png")
    return 0


# ---- Subcommand: export ----

def cmd_export(args):
    try:
        cfg = RunConfig.from_args(args)
        image = load_image(cfg.image_path)
        exported = export(image, cfg.midpoint, cfg.rotation, cfg.zoom, args.quadrant)
    except HANDLED_ERRORS as exc:
        logger.error("Export failed: %s", exc)
        return 1

    cfg.output_dir.mkdir(parents=True, exist_ok=True)
    path = cfg.output_dir / exported.filename
    path.write_bytes(exported.data)
    logger.info("Saved %s (%dx%d)", path, exported.width, exported.height)
    return 0


# ---- Subcommand: prep ----

def cmd_prep(args):
    try:
        settings = PrepSettings(
            zoom_slider=args.zoom_slider,
            pan_x_slider=args.pan_x,
            pan_y_slider=args.pan_y,
            crop=CropInsets(*args.crop),
        )
        image = load_image(Path(args.image))
        baked = bake(image, settings)
        if args.mirror_axis:
            baked = mirror_halves(baked, args.mirror_axis, args.mirror_keep)
    except HANDLED_ERRORS as exc:
        logger.error("Prep failed: %s", exc)
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    if _save(baked, output) is None:
        return 1
    return 0


# ---- Argument parser ----

def _add_render_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("image", help="Source image file")
    parser.add_argument("-o", "--output", default="output",
                        help="Output directory (default: ./output)")
    parser.add_argument("--midpoint", nargs=2, type=float, default=(0.5, 0.5),
                        metavar=("X", "Y"),
                        help="Normalized midpoint, each in [0, 1] (default: 0.5 0.5)")
    parser.add_argument("--rotation", type=float, default=0.0,
                        help="Clockwise rotation in degrees (default: 0)")
    parser.add_argument("--zoom", type=float, default=1.0,
                        help="Zoom factor, >1 crops in (default: 1.0)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="refract",
        description="Four-fold mirror symmetry patterns from a single image.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # -- preview --
    p_preview = sub.add_parser("preview", help="Render the four symmetry previews")
    _add_render_args(p_preview)
    p_preview.add_argument("--high-res", action="store_true",
                           help="Render at native resolution instead of the 1024px preview cap")
    p_preview.add_argument("--grid", action="store_true", default=True,
                           help="Also write a 2x2 contact sheet (default)")
    p_preview.add_argument("--no-grid", action="store_false", dest="grid")
    p_preview.add_argument("--active", type=_parse_quadrant, default=None,
                           help="Quadrant to highlight on the contact sheet")
    p_preview.set_defaults(func=cmd_preview)

    # -- export --
    p_export = sub.add_parser("export", help="Export one pattern at full resolution")
    _add_render_args(p_export)
    p_export.add_argument("-q", "--quadrant", type=_parse_quadrant, required=True,
                          help="0-3 or top-left/top-right/bottom-left/bottom-right")
    p_export.set_defaults(func=cmd_export)

    # -- prep --
    p_prep = sub.add_parser("prep", help="Bake pan/zoom/crop into a new source image")
    p_prep.add_argument("image", help="Source image file")
    p_prep.add_argument("-o", "--output", required=True, help="Output image path")
    p_prep.add_argument("--zoom-slider", type=float, default=50.0,
                        help="Zoom slider 0-100 (0.8x-1.2x, default: 50)")
    p_prep.add_argument("--pan-x", type=float, default=50.0,
                        help="Horizontal pan slider 0-100 (-15%%..+15%%, default: 50)")
    p_prep.add_argument("--pan-y", type=float, default=50.0,
                        help="Vertical pan slider 0-100 (-15%%..+15%%, default: 50)")
    p_prep.add_argument("--crop", nargs=4, type=float, default=(0.0, 0.0, 0.0, 0.0),
                        metavar=("LEFT", "RIGHT", "TOP", "BOTTOM"),
                        help="Crop insets in percent")
    p_prep.add_argument("--mirror-axis", choices=[a.value for a in MirrorAxis], default=None,
                        help="Also apply a two-fold mirror along this axis")
    p_prep.add_argument("--mirror-keep", choices=[s.value for s in MirrorSide],
                        default=MirrorSide.FIRST.value,
                        help="Half to keep when mirroring (first = left/top)")
    p_prep.set_defaults(func=cmd_prep)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
