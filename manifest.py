"""Manifest and cut-line SVG output.

The manifest is the only thing serialized to the fulfillment boundary. Keys
follow the vendor-facing camelCase names; every length carries its unit.
"""

import json
import logging
import pathlib

from errors import DegenerateGeometry
from models import CUTLINE_COLOR, SheetLayout, SheetManifest, SourceImageInfo

log = logging.getLogger(__name__)


def build_manifest(sheets, source_image_info: SourceImageInfo | None = None,
                   dpi: int | None = None) -> SheetManifest:
    """Bundle one or more laid-out sheets under a single explicit DPI."""
    sheets = tuple(sheets)
    if not sheets:
        raise DegenerateGeometry("A manifest needs at least one sheet")
    if dpi is None:
        dpi = sheets[0].dpi
    mismatched = sorted({s.dpi for s in sheets if s.dpi != dpi})
    if mismatched:
        raise DegenerateGeometry("All sheets in a manifest must share one DPI",
                                 {"dpi": dpi, "sheet_dpis": mismatched})
    return SheetManifest(
        dpi=dpi,
        sheets=sheets,
        source_image_info=source_image_info or SourceImageInfo(),
    )


def _placement_dict(p) -> dict:
    return {
        "row": p.row,
        "col": p.col,
        "cellX": p.cell_x,
        "cellY": p.cell_y,
        "cellW": p.cell_w,
        "cellH": p.cell_h,
        "artBboxPx": list(p.art_bbox_px),
        "cutlinePathSvg": p.cutline_path_svg,
    }


def _sheet_dict(sheet: SheetLayout) -> dict:
    cell_w, cell_h = sheet.cell_px
    d = {
        "sheetName": sheet.sheet_name,
        "sheetInches": list(sheet.sheet_inches),
        "sheetPixels": list(sheet.sheet_pixels),
        "paramsIn": dict(sheet.params_in),
        "layoutMode": sheet.mode,
        "grid": [sheet.cols, sheet.rows],
    }
    if sheet.mode == "fixed":
        d["cellsPerSide"] = sheet.cells_per_side
    d["totalMinis"] = sheet.total_minis
    if cell_w == cell_h:
        d["cellPixels"] = cell_w
    d["cellWidthPx"] = cell_w
    d["cellHeightPx"] = cell_h
    d["gapPixels"] = sheet.gap_px
    d["outerMarginPx"] = sheet.outer_margin_px
    d["placements"] = [_placement_dict(p) for p in sheet.placements]
    return d


def manifest_to_dict(manifest: SheetManifest) -> dict:
    info = manifest.source_image_info
    return {
        "dpi": manifest.dpi,
        "units": manifest.units,
        "sheets": [_sheet_dict(s) for s in manifest.sheets],
        "sourceImageInfo": {
            "originalW": info.original_w,
            "originalH": info.original_h,
            "backgroundRemoved": info.background_removed,
        },
    }


def manifest_to_json(manifest: SheetManifest) -> str:
    return json.dumps(manifest_to_dict(manifest), indent=2, ensure_ascii=False)


def cutlines_svg(sheet: SheetLayout) -> str:
    """One SVG document holding every cut path on *sheet*."""
    width, height = sheet.sheet_pixels
    svg = '<?xml version="1.0" encoding="UTF-8"?>\n'
    svg += (f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">\n')
    svg += f'  <g id="cutlines" fill="none" stroke="{CUTLINE_COLOR}" stroke-width="1">\n'
    for placement in sheet.placements:
        svg += f'    <path d="{placement.cutline_path_svg}" />\n'
    svg += '  </g>\n'
    svg += '</svg>'
    return svg


def write_manifest(path, manifest: SheetManifest) -> pathlib.Path:
    path = pathlib.Path(path)
    path.write_text(manifest_to_json(manifest) + "\n", encoding="utf-8")
    log.debug("Manifest written: %s", path)
    return path


def write_cutlines(path, sheet: SheetLayout) -> pathlib.Path:
    path = pathlib.Path(path)
    path.write_text(cutlines_svg(sheet) + "\n", encoding="utf-8")
    log.debug("Cut lines written: %s", path)
    return path
