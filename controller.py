"""Controller layer: ties sticker input, layout engines, manifest and compositor.

Orchestrates the model, grid calculators and rendering backends.
"""

import logging
import pathlib

from PIL import Image, UnidentifiedImageError

from compositor import BACKENDS, Compositor, PillowCompositor
from dynamic_layout import DynamicLayout
from errors import UnknownStickerDimensions
from grid_layout import GridLayout
from manifest import build_manifest, write_cutlines, write_manifest
from models import (
    DynamicSettings, DynamicSheetLayout, SheetLayout, SheetManifest, SheetParameters,
    SourceImageInfo, StickerDimensions,
)

log = logging.getLogger(__name__)


def has_transparency(img: Image.Image) -> bool:
    """True if the image carries alpha with at least one non-opaque pixel."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        alpha = img.convert("RGBA").getchannel("A")
        lo, _hi = alpha.getextrema()
        return lo < 255
    return False


class SheetController:
    """Turns one sticker image into a laid-out sheet, manifest and raster."""

    def __init__(self, params: SheetParameters | None = None,
                 settings: DynamicSettings | None = None,
                 compositor: Compositor | None = None):
        self.params = params or SheetParameters()
        self.settings = settings or DynamicSettings(
            outer_margin_inches=self.params.outer_margin_inches,
            bleed_inches=self.params.bleed_inches,
            white_border_inches=self.params.white_border_inches,
            dpi=self.params.dpi,
        )
        self.grid = GridLayout(self.params)
        self.dynamic = DynamicLayout(self.settings)
        self.compositor = compositor or PillowCompositor()

    # --- Input ---

    @staticmethod
    def read_sticker(path) -> tuple[Image.Image, StickerDimensions, SourceImageInfo]:
        """Load the artwork and derive its dimensions and provenance."""
        try:
            img = Image.open(path)
            img.load()
        except (FileNotFoundError, UnidentifiedImageError) as e:
            raise UnknownStickerDimensions(f"Cannot read sticker image {path}: {e}") from e
        dims = StickerDimensions.from_pixels(img.width, img.height)
        info = SourceImageInfo(
            original_w=img.width,
            original_h=img.height,
            background_removed=has_transparency(img),
        )
        log.debug("Sticker %s: %dx%d (aspect %.3f, background removed: %s)",
                  path, img.width, img.height, dims.aspect_ratio, info.background_removed)
        return img, dims, info

    # --- Layout ---

    def fixed_sheet(self, sheet_size) -> SheetLayout:
        return self.grid.layout(sheet_size)

    def dynamic_options(self, sheet_size, dims: StickerDimensions | None) -> DynamicSheetLayout:
        return self.dynamic.compute(sheet_size, dims)

    def dynamic_sheet(self, sheet_size, dims: StickerDimensions | None,
                      count: int | None = None) -> SheetLayout:
        menu = self.dynamic.compute(sheet_size, dims)
        option = menu.recommended_option
        if count is not None:
            option = self.dynamic.option_for_count(menu, count)
        return self.dynamic.layout(menu, option)

    def plan(self, sheet_size, dims: StickerDimensions | None, count: int | None = None,
             fallback_to_fixed: bool = False) -> SheetLayout:
        """Aspect-aware layout; the fixed grid only when the caller opts in."""
        try:
            return self.dynamic_sheet(sheet_size, dims, count)
        except UnknownStickerDimensions:
            if not fallback_to_fixed:
                raise
            log.info("Sticker size unknown; using fixed grid as requested")
            return self.fixed_sheet(sheet_size)

    def manifest(self, sheet: SheetLayout, info: SourceImageInfo | None = None) -> SheetManifest:
        return build_manifest([sheet], info, sheet.dpi)

    # --- Output ---

    def export(self, source, sheet: SheetLayout, info: SourceImageInfo | None,
               output=None, manifest_path=None, svg_path=None,
               cutline_overlay: bool = False) -> SheetManifest:
        """Write whichever of raster, manifest and cut-line SVG were requested."""
        manifest = self.manifest(sheet, info)
        if manifest_path:
            write_manifest(manifest_path, manifest)
        if svg_path:
            write_cutlines(svg_path, sheet)
        if output:
            image = self.compositor.compose(source, sheet, cutline_overlay)
            self.compositor.save(image, pathlib.Path(output), sheet.dpi)
            log.debug("Sheet image written: %s", output)
        return manifest


def make_compositor(name: str) -> Compositor:
    try:
        return BACKENDS[name]()
    except KeyError:
        raise ValueError(f"Unknown compositor backend {name!r}") from None
