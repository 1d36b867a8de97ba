"""Raster compositing of a laid-out sheet.

A compositor takes a source image and a :class:`SheetLayout` and draws one
copy of the source into every placement's artwork box. Layout math never
lives here; backends only consume placements.
"""

import abc
import io
import logging
import pathlib

from PIL import Image, ImageDraw

from cutlines import flatten_path, parse_path
from models import CUTLINE_COLOR, SHEET_BACKGROUND, SheetLayout

log = logging.getLogger(__name__)

METERS_PER_INCH = 0.0254


def fit_rect(box: tuple[int, int, int, int], src_w: float, src_h: float) -> tuple[int, int, int, int]:
    """Return the largest rect with src aspect ratio that fits inside box, centered."""
    x, y, w, h = box
    if src_w <= 0 or src_h <= 0:
        return box
    src_aspect = src_w / src_h
    box_aspect = w / h if h > 0 else 1
    if src_aspect > box_aspect:
        # Source is wider than box -- fit to width
        fw = w
        fh = max(1, round(w / src_aspect))
    else:
        fh = h
        fw = max(1, round(h * src_aspect))
    return (x + (w - fw) // 2, y + (h - fh) // 2, fw, fh)


class Compositor(abc.ABC):
    """Backend-neutral contract: source image + placements -> raster sheet."""

    @abc.abstractmethod
    def compose(self, source, sheet: SheetLayout, cutline_overlay: bool = False):
        """Return a raster image of *sheet* with *source* drawn in every cell."""

    @abc.abstractmethod
    def save(self, image, path, dpi: int) -> pathlib.Path:
        """Write *image* to *path* as PNG tagged with *dpi*."""


# === Pillow backend ===

class PillowCompositor(Compositor):
    """Composite with Pillow; source is a ``PIL.Image.Image``."""

    def __init__(self, background: str = SHEET_BACKGROUND):
        self.background = background

    def compose(self, source, sheet, cutline_overlay=False):
        width, height = sheet.sheet_pixels
        canvas = Image.new("RGBA", (width, height), self.background)
        draw = ImageDraw.Draw(canvas)
        m = sheet.outer_margin_px
        if width > 2 * m and height > 2 * m:
            draw.rectangle([m, m, width - m - 1, height - m - 1], fill="white")

        src = source.convert("RGBA")
        resized = {}
        for p in sheet.placements:
            x, y, w, h = fit_rect(p.art_bbox_px, src.width, src.height)
            if (w, h) not in resized:
                resized[(w, h)] = src.resize((w, h), Image.Resampling.LANCZOS)
            canvas.alpha_composite(resized[(w, h)], (x, y))

        if cutline_overlay:
            draw = ImageDraw.Draw(canvas)
            for p in sheet.placements:
                draw.line(flatten_path(p.cutline_path_svg), fill=CUTLINE_COLOR, width=1)
        log.debug("Composited %d copies onto %dx%d sheet", len(sheet.placements), width, height)
        return canvas

    def save(self, image, path, dpi):
        path = pathlib.Path(path)
        image.save(path, format="PNG", dpi=(dpi, dpi))
        return path


# === Qt backend ===

class QtCompositor(Compositor):
    """Composite with QPainter onto a QImage; source is a ``QImage`` or a Pillow image.

    Needs a QGuiApplication (offscreen is fine) when drawing cut lines.
    """

    def __init__(self, background: str = SHEET_BACKGROUND):
        self.background = background

    @staticmethod
    def to_qimage(source):
        """Accept a QImage as-is; convert Pillow images via PNG bytes."""
        from PySide6.QtGui import QImage

        if isinstance(source, QImage):
            return source
        buf = io.BytesIO()
        source.convert("RGBA").save(buf, format="PNG")
        qimg = QImage()
        if not qimg.loadFromData(buf.getvalue()):
            raise ValueError("Could not convert source image for Qt")
        return qimg

    @staticmethod
    def cutline_painter_path(path: str):
        """Replay an SVG cut path (M/L/Q/Z only) as a QPainterPath."""
        from PySide6.QtGui import QPainterPath

        qpath = QPainterPath()
        for cmd, nums in parse_path(path):
            if cmd == "M":
                qpath.moveTo(nums[0], nums[1])
            elif cmd == "L":
                qpath.lineTo(nums[0], nums[1])
            elif cmd == "Q":
                qpath.quadTo(nums[0], nums[1], nums[2], nums[3])
            elif cmd == "Z":
                qpath.closeSubpath()
            else:
                raise ValueError(f"Unsupported cut path command {cmd!r}")
        return qpath

    def compose(self, source, sheet, cutline_overlay=False):
        from PySide6.QtCore import Qt, QRectF
        from PySide6.QtGui import QColor, QImage, QPainter, QPen

        source = self.to_qimage(source)
        width, height = sheet.sheet_pixels
        image = QImage(width, height, QImage.Format.Format_ARGB32)
        image.fill(QColor(self.background))
        dots_per_meter = round(sheet.dpi / METERS_PER_INCH)
        image.setDotsPerMeterX(dots_per_meter)
        image.setDotsPerMeterY(dots_per_meter)

        painter = QPainter()
        if not painter.begin(image):
            raise RuntimeError("Could not begin painting on sheet image")
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
            m = sheet.outer_margin_px
            painter.fillRect(QRectF(m, m, width - 2 * m, height - 2 * m), QColor("white"))

            for p in sheet.placements:
                x, y, w, h = fit_rect(p.art_bbox_px, source.width(), source.height())
                painter.drawImage(QRectF(x, y, w, h), source)

            if cutline_overlay:
                pen = QPen(QColor(CUTLINE_COLOR))
                pen.setWidth(1)
                painter.setPen(pen)
                painter.setBrush(Qt.BrushStyle.NoBrush)
                for p in sheet.placements:
                    painter.drawPath(self.cutline_painter_path(p.cutline_path_svg))
        finally:
            painter.end()
        return image

    def save(self, image, path, dpi):
        path = pathlib.Path(path)
        dots_per_meter = round(dpi / METERS_PER_INCH)
        image.setDotsPerMeterX(dots_per_meter)
        image.setDotsPerMeterY(dots_per_meter)
        if not image.save(str(path), "PNG"):
            raise OSError(f"Could not write {path}")
        return path


BACKENDS = {
    "pillow": PillowCompositor,
    "qt": QtCompositor,
}
