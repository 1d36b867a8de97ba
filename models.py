"""Data model classes and constants for the kiss-cut sheet layout engine.

Physical sizes are in inches; all placement geometry is in pixels at an
explicit DPI (300 unless the caller says otherwise).
"""

import enum
import math
from dataclasses import dataclass, field

from errors import InvalidSheetSize, DegenerateGeometry, UnknownStickerDimensions
from units import to_pixels


# === Constants ===
DPI = 300

# Fixed-grid defaults
DEFAULT_CELL_SIZE_INCHES = 0.25
DEFAULT_OUTER_MARGIN_INCHES = 0.125
DEFAULT_CELL_GAP_INCHES = 0.25

# Aspect-aware defaults
DEFAULT_GUTTER_INCHES = 0.08
MIN_STICKER_SIZE_INCHES = 0.35
MAX_STICKER_SIZE_INCHES = 2.5
MAX_MENU_OPTIONS = 8
CANDIDATE_COUNTS = (1, 2, 3, 4, 6, 8, 9, 10, 12, 15, 16, 20, 24, 25, 30,
                    36, 42, 48, 49, 56, 64)

CORNER_RADIUS_RATIO = 0.1     # cut-line corner radius / min(cell w, h)
CUTLINE_COLOR = "#FF00FF"
SHEET_BACKGROUND = "#f8f9fa"  # margin area outside the usable region


class SheetSize(str, enum.Enum):
    """Supported physical sheet sizes."""
    SMALL = "3x3"
    MEDIUM = "4x4"
    LARGE = "5.5x5.5"

    @classmethod
    def parse(cls, value) -> "SheetSize":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSheetSize(value, [s.value for s in cls]) from None

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class SheetSpec:
    """One row of the sheet size table."""
    width_inches: float
    height_inches: float
    display_name: str

    @property
    def inches(self) -> tuple[float, float]:
        return (self.width_inches, self.height_inches)


# Single table of sheet sizes, keyed by SheetSize
SHEET_SIZES = {
    SheetSize.SMALL: SheetSpec(3.0, 3.0, '3" × 3"'),
    SheetSize.MEDIUM: SheetSpec(4.0, 4.0, '4" × 4"'),
    SheetSize.LARGE: SheetSpec(5.5, 5.5, '5.5" × 5.5"'),
}


def sheet_spec(sheet_size) -> SheetSpec:
    return SHEET_SIZES[SheetSize.parse(sheet_size)]


# === Input parameters ===

def _check_lengths(**lengths):
    for name, value in lengths.items():
        if value is None or not math.isfinite(value) or value < 0:
            raise DegenerateGeometry("Length must be a finite non-negative number",
                                     {name: value})


@dataclass(frozen=True)
class SheetParameters:
    """Fixed-grid layout parameters, in inches plus the print DPI."""
    cell_size_inches: float = DEFAULT_CELL_SIZE_INCHES
    outer_margin_inches: float = DEFAULT_OUTER_MARGIN_INCHES
    cell_gap_inches: float = DEFAULT_CELL_GAP_INCHES
    bleed_inches: float = 0.0
    white_border_inches: float = 0.0
    dpi: int = DPI

    def validate(self):
        _check_lengths(
            cell_size_inches=self.cell_size_inches,
            outer_margin_inches=self.outer_margin_inches,
            cell_gap_inches=self.cell_gap_inches,
            bleed_inches=self.bleed_inches,
            white_border_inches=self.white_border_inches,
        )
        if self.cell_size_inches <= 0:
            raise DegenerateGeometry("Cell size must be positive",
                                     {"cell_size_inches": self.cell_size_inches})
        # to_pixels validates dpi
        to_pixels(0, self.dpi)

    @property
    def cell_px(self) -> int:
        return to_pixels(self.cell_size_inches, self.dpi)

    @property
    def gap_px(self) -> int:
        return to_pixels(self.cell_gap_inches, self.dpi)

    @property
    def margin_px(self) -> int:
        return to_pixels(self.outer_margin_inches, self.dpi)

    @property
    def white_border_px(self) -> int:
        return to_pixels(self.white_border_inches, self.dpi)

    @property
    def cutline_offset_px(self) -> int:
        return to_pixels(self.white_border_inches + self.bleed_inches, self.dpi)

    def params_in(self) -> dict:
        """Parameters as recorded in the manifest (inches)."""
        return {
            "outerMarginIn": self.outer_margin_inches,
            "cellGapIn": self.cell_gap_inches,
            "desiredCellSizeIn": self.cell_size_inches,
            "bleedIn": self.bleed_inches,
            "whiteBorderIn": self.white_border_inches,
        }


@dataclass(frozen=True)
class DynamicSettings:
    """Aspect-aware layout settings."""
    outer_margin_inches: float = DEFAULT_OUTER_MARGIN_INCHES
    gutter_inches: float = DEFAULT_GUTTER_INCHES
    min_sticker_inches: float = MIN_STICKER_SIZE_INCHES
    max_sticker_inches: float = MAX_STICKER_SIZE_INCHES
    bleed_inches: float = 0.0
    white_border_inches: float = 0.0
    dpi: int = DPI
    max_options: int = MAX_MENU_OPTIONS
    candidate_counts: tuple[int, ...] = CANDIDATE_COUNTS

    def validate(self):
        _check_lengths(
            outer_margin_inches=self.outer_margin_inches,
            gutter_inches=self.gutter_inches,
            min_sticker_inches=self.min_sticker_inches,
            max_sticker_inches=self.max_sticker_inches,
            bleed_inches=self.bleed_inches,
            white_border_inches=self.white_border_inches,
        )
        if self.min_sticker_inches > self.max_sticker_inches:
            raise DegenerateGeometry("Minimum sticker size exceeds maximum", {
                "min_sticker_inches": self.min_sticker_inches,
                "max_sticker_inches": self.max_sticker_inches,
            })
        if self.max_options < 1:
            raise DegenerateGeometry("max_options must be at least 1",
                                     {"max_options": self.max_options})
        to_pixels(0, self.dpi)

    @property
    def bounds(self) -> tuple[float, float]:
        return (self.min_sticker_inches, self.max_sticker_inches)

    def params_in(self) -> dict:
        return {
            "outerMarginIn": self.outer_margin_inches,
            "cellGapIn": self.gutter_inches,
            "minStickerIn": self.min_sticker_inches,
            "maxStickerIn": self.max_sticker_inches,
            "bleedIn": self.bleed_inches,
            "whiteBorderIn": self.white_border_inches,
        }


# === Computed geometry ===

@dataclass(frozen=True)
class StickerDimensions:
    """Pixel size of the source artwork and its aspect ratio (w / h)."""
    width_px: int | None
    height_px: int | None
    aspect_ratio: float

    @classmethod
    def from_pixels(cls, width_px: int, height_px: int) -> "StickerDimensions":
        if not width_px or not height_px or width_px <= 0 or height_px <= 0:
            raise UnknownStickerDimensions(
                f"Sticker size must be positive, got {width_px}x{height_px}")
        return cls(int(width_px), int(height_px), width_px / height_px)

    @classmethod
    def from_aspect_ratio(cls, aspect_ratio: float) -> "StickerDimensions":
        if aspect_ratio is None or not math.isfinite(aspect_ratio) or aspect_ratio <= 0:
            raise UnknownStickerDimensions(
                f"Aspect ratio must be a positive number, got {aspect_ratio!r}")
        return cls(None, None, float(aspect_ratio))


@dataclass(frozen=True)
class SheetConfig:
    """Fixed-grid result: an N x N grid of uniform square cells."""
    sheet_inches: tuple[float, float]
    sheet_pixels: tuple[int, int]
    cells_per_side: int
    total_minis: int
    cell_pixels: int
    gap_pixels: int
    outer_margin_px: int
    # (start, size) per row/column, each edge rounded once from inches
    cell_spans: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class LayoutOption:
    """One count/size candidate on the aspect-aware menu."""
    count: int
    grid: tuple[int, int]  # (cols, rows)
    sticker_width_inches: float
    sticker_height_inches: float
    sticker_width_px: int
    sticker_height_px: int
    display_name: str
    description: str
    efficiency: float      # copy area / usable area
    score: float = 0.0     # recommendation score


@dataclass(frozen=True)
class DynamicSheetLayout:
    """Menu of aspect-preserving options for one sheet size."""
    sheet_size: SheetSize
    sheet_inches: tuple[float, float]
    sheet_pixels: tuple[int, int]
    dpi: int
    sticker_dimensions: StickerDimensions
    options: tuple[LayoutOption, ...]
    recommended_option: LayoutOption


@dataclass(frozen=True)
class Placement:
    """One physical cell on the sheet (pixel coords at sheet DPI)."""
    row: int
    col: int
    cell_x: int
    cell_y: int
    cell_w: int
    cell_h: int
    art_bbox_px: tuple[int, int, int, int]  # (x, y, w, h)
    cutline_path_svg: str


@dataclass(frozen=True)
class SheetLayout:
    """A fully placed sheet, ready for the manifest and a compositor."""
    sheet_name: str
    sheet_inches: tuple[float, float]
    sheet_pixels: tuple[int, int]
    dpi: int
    mode: str               # "fixed" or "dynamic"
    cols: int
    rows: int
    cell_px: tuple[int, int]
    gap_px: int
    outer_margin_px: int
    params_in: dict = field(default_factory=dict)
    placements: tuple[Placement, ...] = ()

    @property
    def total_minis(self) -> int:
        return len(self.placements)

    @property
    def cells_per_side(self) -> int | None:
        return self.cols if self.cols == self.rows else None


@dataclass(frozen=True)
class SourceImageInfo:
    """Provenance of the source artwork."""
    original_w: int = 0
    original_h: int = 0
    background_removed: bool = False


@dataclass(frozen=True)
class SheetManifest:
    """Serializable bundle handed to fulfillment."""
    dpi: int
    sheets: tuple[SheetLayout, ...]
    source_image_info: SourceImageInfo = field(default_factory=SourceImageInfo)
    units: str = "px"
