"""Aspect-aware ("dynamic") layout engine.

Builds a short menu of copy counts for a sticker of known aspect ratio.
Each option independently picks the grid factorization and the largest
aspect-preserving copy size that fits the usable area, then one option is
recommended by a deterministic score.

Factorization key for a count (highest wins):
  1. copy area
  2. closeness of the grid block's shape to the usable area's shape
  3. squarer grid
  4. more columns (landscape)

Recommendation key (highest wins):
  1. score = 0.5 * size_band + 0.35 * efficiency + 0.15 * round_count
  2. larger count
  3. squarer grid
  4. more columns
"""

import logging
import math

from cutlines import centered_origin, generate_placements
from errors import DegenerateGeometry, NoViableOption, UnknownStickerDimensions
from models import (
    DynamicSettings, DynamicSheetLayout, LayoutOption, SheetLayout, SheetSize,
    StickerDimensions, sheet_spec,
)
from units import to_pixels, usable_area_inches

log = logging.getLogger(__name__)

# Mean sticker side (inches) that reads well on a small sheet
COMFORTABLE_BAND_INCHES = (0.75, 1.25)
EFFICIENCY_STEP = 0.05

SIZE_NAMES = [
    (0.5, "Micro"),
    (0.7, "Mini"),
    (0.9, "Small"),
    (1.2, "Medium"),
]


def size_name(mean_side_inches: float) -> str:
    for limit, name in SIZE_NAMES:
        if mean_side_inches < limit:
            return name
    return "Large"


def factor_pairs(count: int) -> list[tuple[int, int]]:
    """All ``(cols, rows)`` with ``cols * rows == count``."""
    return [(c, count // c) for c in range(1, count + 1) if count % c == 0]


def round_count_score(count: int) -> float:
    if math.isqrt(count) ** 2 == count or count % 5 == 0:
        return 1.0
    if count % 2 == 0:
        return 0.5
    return 0.0


def size_band_score(mean_side_inches: float) -> float:
    lo, hi = COMFORTABLE_BAND_INCHES
    if lo <= mean_side_inches <= hi:
        return 1.0
    if mean_side_inches < lo:
        return max(0.0, 1.0 - (lo - mean_side_inches) / lo)
    return max(0.0, 1.0 - (mean_side_inches - hi) / hi)


class DynamicLayout:
    """Aspect-aware calculator for a given set of :class:`DynamicSettings`."""

    def __init__(self, settings: DynamicSettings | None = None):
        self.settings = settings or DynamicSettings()

    # ------------------------------------------------------------------ #
    #  Public API                                                         #
    # ------------------------------------------------------------------ #

    def compute(self, sheet_size, sticker_dimensions: StickerDimensions | None) -> DynamicSheetLayout:
        """Generate the option menu and recommendation for *sheet_size*."""
        if sticker_dimensions is None:
            raise UnknownStickerDimensions(
                "Aspect-aware layout needs the sticker size; "
                "use the fixed grid explicitly if it is unknown")
        aspect = sticker_dimensions.aspect_ratio
        if aspect is None or not math.isfinite(aspect) or aspect <= 0:
            raise UnknownStickerDimensions(f"Invalid sticker aspect ratio {aspect!r}")

        s = self.settings
        s.validate()
        size = SheetSize.parse(sheet_size)
        spec = sheet_spec(size)
        usable_w, usable_h = usable_area_inches(spec.width_inches, spec.height_inches,
                                                s.outer_margin_inches)
        if usable_w <= 0 or usable_h <= 0:
            raise DegenerateGeometry("Outer margins leave no usable area", {
                "sheet_inches": spec.inches,
                "outer_margin_inches": s.outer_margin_inches,
            })

        options = []
        for count in sorted(set(s.candidate_counts)):
            if count < 1:
                continue
            grid = self._best_grid(count, aspect, usable_w, usable_h)
            if grid is None:
                continue
            options.append(self._make_option(count, grid, aspect, spec, usable_w, usable_h))

        if not options:
            raise NoViableOption(size, s.bounds, f"aspect ratio {aspect:.3f}")

        menu = self._trim_menu(options)
        recommended = max(menu, key=self._recommend_key)
        log.debug("Dynamic layout %s: %d options, recommending %s",
                  size, len(menu), recommended.display_name)

        return DynamicSheetLayout(
            sheet_size=size,
            sheet_inches=spec.inches,
            sheet_pixels=(to_pixels(spec.width_inches, s.dpi),
                          to_pixels(spec.height_inches, s.dpi)),
            dpi=s.dpi,
            sticker_dimensions=sticker_dimensions,
            options=tuple(menu),
            recommended_option=recommended,
        )

    def option_for_count(self, layout: DynamicSheetLayout, count: int) -> LayoutOption:
        for option in layout.options:
            if option.count == count:
                return option
        available = ", ".join(str(o.count) for o in layout.options)
        raise NoViableOption(layout.sheet_size, self.settings.bounds,
                             f"count {count} is not on the menu ({available})")

    def layout(self, dynamic: DynamicSheetLayout, option: LayoutOption | None = None) -> SheetLayout:
        """Place the chosen option, centered in the usable area."""
        s = self.settings
        option = option or dynamic.recommended_option
        if option not in dynamic.options:
            raise NoViableOption(dynamic.sheet_size, s.bounds,
                                 f"{option.display_name} is not an option for this sheet")

        cols, rows = option.grid
        gap_px = to_pixels(s.gutter_inches, s.dpi)
        margin_px = to_pixels(s.outer_margin_inches, s.dpi)
        cell_w, cell_h = option.sticker_width_px, option.sticker_height_px
        origin = centered_origin(dynamic.sheet_pixels, margin_px, cols, rows,
                                 cell_w, cell_h, gap_px)
        placements = generate_placements(
            cols, rows, cell_w, cell_h, gap_px, origin,
            white_border_px=to_pixels(s.white_border_inches, s.dpi),
            cutline_offset_px=to_pixels(s.white_border_inches + s.bleed_inches, s.dpi),
        )
        return SheetLayout(
            sheet_name=dynamic.sheet_size.value,
            sheet_inches=dynamic.sheet_inches,
            sheet_pixels=dynamic.sheet_pixels,
            dpi=s.dpi,
            mode="dynamic",
            cols=cols,
            rows=rows,
            cell_px=(cell_w, cell_h),
            gap_px=gap_px,
            outer_margin_px=margin_px,
            params_in=s.params_in(),
            placements=placements,
        )

    # ------------------------------------------------------------------ #
    #  Grid search                                                        #
    # ------------------------------------------------------------------ #

    def _copy_size(self, cols, rows, aspect, usable_w, usable_h):
        """Largest aspect-preserving copy size for a grid, or None."""
        g = self.settings.gutter_inches
        avail_w = (usable_w - (cols - 1) * g) / cols
        avail_h = (usable_h - (rows - 1) * g) / rows
        if avail_w <= 0 or avail_h <= 0:
            return None
        w = min(avail_w, avail_h * aspect)
        return w, w / aspect

    def _within_bounds(self, w, h):
        lo, hi = self.settings.bounds
        return lo <= w <= hi and lo <= h <= hi

    def _best_grid(self, count, aspect, usable_w, usable_h):
        """Pick the factorization of *count* by the module-level key."""
        g = self.settings.gutter_inches
        target_shape = math.log(usable_w / usable_h)
        best = None
        best_key = None
        for cols, rows in factor_pairs(count):
            size = self._copy_size(cols, rows, aspect, usable_w, usable_h)
            if size is None or not self._within_bounds(*size):
                continue
            w, h = size
            block_w = cols * w + (cols - 1) * g
            block_h = rows * h + (rows - 1) * g
            key = (
                round(w * h, 9),
                -round(abs(math.log(block_w / block_h) - target_shape), 9),
                -abs(math.log(cols / rows)),
                cols,
            )
            if best_key is None or key > best_key:
                best, best_key = (cols, rows, w, h), key
        return best

    def _pixel_size(self, cols, rows, aspect, sheet_px):
        """Copy size in whole pixels, solved in pixel space so the grid always fits."""
        s = self.settings
        margin_px = to_pixels(s.outer_margin_inches, s.dpi)
        gap_px = to_pixels(s.gutter_inches, s.dpi)
        avail_w = (sheet_px[0] - 2 * margin_px - (cols - 1) * gap_px) / cols
        avail_h = (sheet_px[1] - 2 * margin_px - (rows - 1) * gap_px) / rows
        w = min(avail_w, avail_h * aspect)
        return max(1, math.floor(w)), max(1, math.floor(w / aspect))

    # ------------------------------------------------------------------ #
    #  Scoring & selection                                                #
    # ------------------------------------------------------------------ #

    def _make_option(self, count, grid, aspect, spec, usable_w, usable_h):
        s = self.settings
        cols, rows, w, h = grid
        efficiency = count * w * h / (usable_w * usable_h)
        mean_side = (w + h) / 2
        score = (0.5 * size_band_score(mean_side)
                 + 0.35 * efficiency
                 + 0.15 * round_count_score(count))
        sheet_px = (to_pixels(spec.width_inches, s.dpi), to_pixels(spec.height_inches, s.dpi))
        w_px, h_px = self._pixel_size(cols, rows, aspect, sheet_px)
        return LayoutOption(
            count=count,
            grid=(cols, rows),
            sticker_width_inches=w,
            sticker_height_inches=h,
            sticker_width_px=w_px,
            sticker_height_px=h_px,
            display_name=f"{size_name(mean_side)} ({count})",
            description=f'{cols}×{rows} grid • ~{w:.2f}"×{h:.2f}"',
            efficiency=efficiency,
            score=round(score, 9),
        )

    def _trim_menu(self, options):
        """Keep the most efficient options (bucketed), then order by count."""
        ranked = sorted(
            options,
            key=lambda o: (math.floor(o.efficiency / EFFICIENCY_STEP + 1e-9), o.count),
            reverse=True,
        )
        kept = ranked[:self.settings.max_options]
        return sorted(kept, key=lambda o: o.count)

    @staticmethod
    def _recommend_key(option):
        cols, rows = option.grid
        return (option.score, option.count, -abs(cols - rows), cols)
