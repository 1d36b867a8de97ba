"""Fixed-grid layout: an N x N grid of uniform square cells.

N is the largest whole number of cells that fits the usable side:
N cells need only N - 1 internal gaps, hence

    cells_per_side = floor((usable + gap) / (cell + gap))

Every cell edge is placed in inches and rounded to pixels exactly once, so
rounding never accumulates along a row: a cell may come out one pixel
wider or narrower than its neighbours, and the far edge lands at most one
pixel past ``sheet_pixels - outer_margin_px``.
"""

import logging
import math

from cutlines import span_placements
from errors import DegenerateGeometry
from models import SheetParameters, SheetConfig, SheetLayout, SheetSize, sheet_spec
from units import to_pixels, usable_length_inches

log = logging.getLogger(__name__)

# Far-edge allowance from rounding margin and edges independently
EDGE_TOLERANCE_PX = 1


class GridLayout:
    """Fixed-grid calculator for a given set of :class:`SheetParameters`."""

    def __init__(self, params: SheetParameters | None = None):
        self.params = params or SheetParameters()

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    def compute(self, sheet_size) -> SheetConfig:
        """Grid dimensions and pixel metrics for *sheet_size*."""
        p = self.params
        p.validate()
        spec = sheet_spec(sheet_size)
        width_in, height_in = spec.inches

        # Square grid: the shorter side is the limiting axis
        side_in = min(width_in, height_in)
        usable = usable_length_inches(side_in, p.outer_margin_inches)
        if usable <= 0:
            raise DegenerateGeometry("Outer margins leave no usable area", {
                "sheet_inches": spec.inches,
                "outer_margin_inches": p.outer_margin_inches,
            })

        cells_per_side = math.floor(
            (usable + p.cell_gap_inches) / (p.cell_size_inches + p.cell_gap_inches))
        if cells_per_side <= 0:
            raise DegenerateGeometry("Cell size does not fit the usable area", {
                "sheet_inches": spec.inches,
                "cell_size_inches": p.cell_size_inches,
                "cell_gap_inches": p.cell_gap_inches,
                "outer_margin_inches": p.outer_margin_inches,
            })

        spans = self._spans(cells_per_side)
        self._check_spans(spans, to_pixels(side_in, p.dpi), spec)

        config = SheetConfig(
            sheet_inches=spec.inches,
            sheet_pixels=(to_pixels(width_in, p.dpi), to_pixels(height_in, p.dpi)),
            cells_per_side=cells_per_side,
            total_minis=cells_per_side * cells_per_side,
            cell_pixels=p.cell_px,
            gap_pixels=p.gap_px,
            outer_margin_px=p.margin_px,
            cell_spans=spans,
        )
        log.debug("Fixed grid for %s: %d per side, %d px cells", sheet_size,
                  cells_per_side, config.cell_pixels)
        return config

    def layout(self, sheet_size) -> SheetLayout:
        """Compute the grid and place every cell (left/top aligned)."""
        p = self.params
        config = self.compute(sheet_size)
        n = config.cells_per_side
        placements = span_placements(
            config.cell_spans, config.cell_spans,
            white_border_px=p.white_border_px,
            cutline_offset_px=p.cutline_offset_px,
        )
        return SheetLayout(
            sheet_name=SheetSize.parse(sheet_size).value,
            sheet_inches=config.sheet_inches,
            sheet_pixels=config.sheet_pixels,
            dpi=p.dpi,
            mode="fixed",
            cols=n,
            rows=n,
            cell_px=(config.cell_pixels, config.cell_pixels),
            gap_px=config.gap_pixels,
            outer_margin_px=config.outer_margin_px,
            params_in=p.params_in(),
            placements=placements,
        )

    # ------------------------------------------------------------------ #
    #  Pixel snapping                                                     #
    # ------------------------------------------------------------------ #

    def _spans(self, n):
        """``(start, size)`` per cell, each edge rounded once from inches."""
        p = self.params
        pitch = p.cell_size_inches + p.cell_gap_inches
        spans = []
        prev_end = 0
        for i in range(n):
            left = p.outer_margin_inches + i * pitch
            # a float tie at a shared edge must not overlap the previous cell
            start = max(to_pixels(left, p.dpi), prev_end)
            prev_end = to_pixels(left + p.cell_size_inches, p.dpi)
            spans.append((start, prev_end - start))
        return tuple(spans)

    def _check_spans(self, spans, side_px, spec):
        p = self.params
        details = {
            "sheet_inches": spec.inches,
            "cell_size_inches": p.cell_size_inches,
            "cell_gap_inches": p.cell_gap_inches,
            "outer_margin_inches": p.outer_margin_inches,
            "dpi": p.dpi,
        }
        if min(size for _start, size in spans) < 1:
            raise DegenerateGeometry("Cell size is below one pixel at this DPI", details)
        start, size = spans[-1]
        limit = side_px - p.margin_px
        if start + size > limit + EDGE_TOLERANCE_PX:
            raise DegenerateGeometry("Grid overflows the usable area", {
                **details, "far_edge_px": start + size, "usable_edge_px": limit,
            })
