"""Kiss-Cut Sticker Sheet: command-line entry point.

Lays out repeated copies of one sticker on a fixed-size sheet and writes
the composited sheet image, the JSON manifest and the cut-line SVG.
"""

import argparse
import logging
import pathlib
import sys

from controller import SheetController, make_compositor
from errors import LayoutError
from models import (
    DPI, DEFAULT_CELL_GAP_INCHES, DEFAULT_CELL_SIZE_INCHES, DEFAULT_GUTTER_INCHES,
    DEFAULT_OUTER_MARGIN_INCHES, MAX_STICKER_SIZE_INCHES, MIN_STICKER_SIZE_INCHES,
    DynamicSettings, SheetParameters, SheetSize, sheet_spec,
)

log = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Kiss-Cut Sticker Sheet")
    parser.add_argument("image", help="Sticker artwork (PNG with transparency preferred)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    layout_group = parser.add_argument_group("Layout")
    layout_group.add_argument("-s", "--sheet-size", default=SheetSize.MEDIUM.value,
                              help="Sheet size: " + ", ".join(s.value for s in SheetSize))
    layout_group.add_argument("--mode", choices=("dynamic", "fixed"), default="dynamic",
                              help="Aspect-aware options or a fixed uniform grid")
    layout_group.add_argument("-n", "--count", type=int, default=None,
                              help="Copies per sheet (dynamic mode; default: recommended)")
    layout_group.add_argument("--list-options", action="store_true",
                              help="Print the dynamic option menu and exit")

    geometry_group = parser.add_argument_group("Geometry (inches)")
    geometry_group.add_argument("--cell-size", type=float, default=DEFAULT_CELL_SIZE_INCHES)
    geometry_group.add_argument("--margin", type=float, default=DEFAULT_OUTER_MARGIN_INCHES)
    geometry_group.add_argument("--gap", type=float, default=DEFAULT_CELL_GAP_INCHES,
                                help="Gap between cells in fixed mode")
    geometry_group.add_argument("--gutter", type=float, default=DEFAULT_GUTTER_INCHES,
                                help="Gap between copies in dynamic mode")
    geometry_group.add_argument("--min-size", type=float, default=MIN_STICKER_SIZE_INCHES)
    geometry_group.add_argument("--max-size", type=float, default=MAX_STICKER_SIZE_INCHES)
    geometry_group.add_argument("--bleed", type=float, default=0.0)
    geometry_group.add_argument("--white-border", type=float, default=0.0)
    geometry_group.add_argument("--dpi", type=int, default=DPI)

    output_group = parser.add_argument_group("Output")
    output_group.add_argument("-o", "--output", default=None, help="Sheet PNG path")
    output_group.add_argument("-m", "--manifest", default=None, help="Manifest JSON path")
    output_group.add_argument("--svg", default=None, help="Cut-line SVG path")
    output_group.add_argument("--backend", choices=("pillow", "qt"), default="pillow")
    output_group.add_argument("--cutline-overlay", action="store_true",
                              help="Draw magenta cut lines onto the sheet image")
    return parser.parse_args(argv)


def build_controller(args: argparse.Namespace) -> SheetController:
    params = SheetParameters(
        cell_size_inches=args.cell_size,
        outer_margin_inches=args.margin,
        cell_gap_inches=args.gap,
        bleed_inches=args.bleed,
        white_border_inches=args.white_border,
        dpi=args.dpi,
    )
    settings = DynamicSettings(
        outer_margin_inches=args.margin,
        gutter_inches=args.gutter,
        min_sticker_inches=args.min_size,
        max_sticker_inches=args.max_size,
        bleed_inches=args.bleed,
        white_border_inches=args.white_border,
        dpi=args.dpi,
    )
    return SheetController(params, settings, make_compositor(args.backend))


def print_options(menu) -> None:
    spec = sheet_spec(menu.sheet_size)
    print(f"Sheet {spec.display_name} at {menu.dpi} DPI")
    for option in menu.options:
        marker = "*" if option == menu.recommended_option else " "
        print(f" {marker} {option.count:>3}  {option.display_name:<14} {option.description}"
              f"  [{option.sticker_width_px}x{option.sticker_height_px} px,"
              f" {option.efficiency:.0%} fill]")


def run(args: argparse.Namespace) -> int:
    controller = build_controller(args)
    source, dims, info = controller.read_sticker(args.image)

    if args.list_options:
        print_options(controller.dynamic_options(args.sheet_size, dims))
        return 0

    if args.mode == "fixed":
        sheet = controller.fixed_sheet(args.sheet_size)
    else:
        sheet = controller.plan(args.sheet_size, dims, args.count)

    image = pathlib.Path(args.image)
    output = pathlib.Path(args.output or image.with_name(f"{image.stem}_sheet.png"))
    manifest_path = pathlib.Path(args.manifest or f"{output}.json")
    svg_path = pathlib.Path(args.svg or output.with_name(f"{output.stem}_cutlines.svg"))
    controller.export(source, sheet, info, output, manifest_path, svg_path,
                      cutline_overlay=args.cutline_overlay)

    print(f"Sheet {sheet.sheet_name}: {sheet.cols}x{sheet.rows} = {sheet.total_minis} stickers "
          f"({sheet.cell_px[0]}x{sheet.cell_px[1]} px at {sheet.dpi} DPI)")
    print(f"Sheet image: {output}")
    print(f"Manifest: {manifest_path}")
    print(f"Cut lines: {svg_path}")
    return 0


# === Entry Point ===

def main(argv=None):
    args = parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    try:
        code = run(args)
    except LayoutError as e:
        log.debug("Layout failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
