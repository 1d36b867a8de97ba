"""Placement and kiss-cut line generation.

Cut lines are rounded rectangles emitted as SVG path strings. The command
sequence (M, four L/Q pairs, Z) and the corner radius formula are what the
print vendor's magenta overlay expects, so both are kept exactly.
"""

import logging
import re

from errors import DegenerateGeometry
from models import CORNER_RADIUS_RATIO, Placement

log = logging.getLogger(__name__)

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:e[-+]?\d+)?")


def _fmt(value) -> str:
    """Format a coordinate the way a JS template literal would."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def cutline_path(x: float, y: float, width: float, height: float,
                 offset: float, corner_ratio: float = CORNER_RADIUS_RATIO) -> str:
    """Rounded-rectangle cut path around the cell, pushed out by *offset* px."""
    r = min(width, height) * corner_ratio
    x1 = x - offset
    y1 = y - offset
    w = width + 2 * offset
    h = height + 2 * offset
    f = _fmt
    return (
        f"M {f(x1 + r)} {f(y1)} "
        f"L {f(x1 + w - r)} {f(y1)} "
        f"Q {f(x1 + w)} {f(y1)} {f(x1 + w)} {f(y1 + r)} "
        f"L {f(x1 + w)} {f(y1 + h - r)} "
        f"Q {f(x1 + w)} {f(y1 + h)} {f(x1 + w - r)} {f(y1 + h)} "
        f"L {f(x1 + r)} {f(y1 + h)} "
        f"Q {f(x1)} {f(y1 + h)} {f(x1)} {f(y1 + h - r)} "
        f"L {f(x1)} {f(y1 + r)} "
        f"Q {f(x1)} {f(y1)} {f(x1 + r)} {f(y1)} Z"
    )


def parse_path(path: str) -> list[tuple[str, list[float]]]:
    """Split a cut path into ``[(command, [numbers...]), ...]``."""
    commands = []
    for token in path.split():
        if token.isalpha():
            commands.append((token, []))
        elif commands and _NUMBER.fullmatch(token):
            commands[-1][1].append(float(token))
        else:
            raise ValueError(f"Unexpected token {token!r} in cut path")
    return commands


def path_bounds(path: str) -> tuple[float, float, float, float]:
    """Bounding box ``(x0, y0, x1, y1)`` of every point in the path."""
    xs, ys = [], []
    for _cmd, nums in parse_path(path):
        xs.extend(nums[0::2])
        ys.extend(nums[1::2])
    return (min(xs), min(ys), max(xs), max(ys))


def flatten_path(path: str, steps: int = 8) -> list[tuple[float, float]]:
    """Polyline through the path's points, with each Q curve sampled *steps* times."""
    points = []
    start = None
    for cmd, nums in parse_path(path):
        if cmd == "M":
            start = (nums[0], nums[1])
            points.append(start)
        elif cmd == "L":
            points.append((nums[0], nums[1]))
        elif cmd == "Q":
            (x0, y0), (cx, cy), (x1, y1) = points[-1], nums[0:2], nums[2:4]
            for i in range(1, steps + 1):
                t = i / steps
                u = 1 - t
                points.append((u * u * x0 + 2 * u * t * cx + t * t * x1,
                               u * u * y0 + 2 * u * t * cy + t * t * y1))
        elif cmd == "Z":
            if start is not None and points[-1] != start:
                points.append(start)
        else:
            raise ValueError(f"Unsupported cut path command {cmd!r}")
    return points


def centered_origin(sheet_px: tuple[int, int], margin_px: int, cols: int, rows: int,
                    cell_w: int, cell_h: int, gap_px: int) -> tuple[int, int]:
    """Top-left corner that centers the grid in the usable area (never inside the margin)."""
    grid_w = cols * cell_w + (cols - 1) * gap_px
    grid_h = rows * cell_h + (rows - 1) * gap_px
    usable_w = sheet_px[0] - 2 * margin_px
    usable_h = sheet_px[1] - 2 * margin_px
    return (margin_px + max(0, (usable_w - grid_w) // 2),
            margin_px + max(0, (usable_h - grid_h) // 2))


def uniform_spans(count: int, start: int, size: int, gap_px: int) -> tuple[tuple[int, int], ...]:
    return tuple((start + i * (size + gap_px), size) for i in range(count))


def span_placements(col_spans, row_spans, white_border_px: int = 0,
                    cutline_offset_px: int = 0,
                    corner_ratio: float = CORNER_RADIUS_RATIO) -> tuple[Placement, ...]:
    """Row-major placements from per-column and per-row ``(start, size)`` spans."""
    placements = []
    for row, (cell_y, cell_h) in enumerate(row_spans):
        for col, (cell_x, cell_w) in enumerate(col_spans):
            art_w = cell_w - 2 * white_border_px
            art_h = cell_h - 2 * white_border_px
            if art_w <= 0 or art_h <= 0:
                raise DegenerateGeometry("White border leaves no room for artwork", {
                    "cell_px": (cell_w, cell_h), "white_border_px": white_border_px,
                })
            placements.append(Placement(
                row=row,
                col=col,
                cell_x=cell_x,
                cell_y=cell_y,
                cell_w=cell_w,
                cell_h=cell_h,
                art_bbox_px=(cell_x + white_border_px, cell_y + white_border_px, art_w, art_h),
                cutline_path_svg=cutline_path(cell_x, cell_y, cell_w, cell_h,
                                              cutline_offset_px, corner_ratio),
            ))
    return tuple(placements)


def generate_placements(cols: int, rows: int, cell_w: int, cell_h: int, gap_px: int,
                        origin: tuple[int, int], white_border_px: int = 0,
                        cutline_offset_px: int = 0,
                        corner_ratio: float = CORNER_RADIUS_RATIO) -> tuple[Placement, ...]:
    """Row-major placements for a ``cols x rows`` grid of equal cells starting at *origin*."""
    ox, oy = origin
    placements = span_placements(
        uniform_spans(cols, ox, cell_w, gap_px),
        uniform_spans(rows, oy, cell_h, gap_px),
        white_border_px, cutline_offset_px, corner_ratio,
    )
    log.debug("Placed %dx%d grid of %dx%d px cells at %s", cols, rows, cell_w, cell_h, origin)
    return placements
