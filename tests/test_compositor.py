"""Tests for the raster compositing backends."""
import dataclasses

import pytest
from PIL import Image

from compositor import PillowCompositor, QtCompositor, fit_rect
from cutlines import path_bounds, span_placements, uniform_spans
from grid_layout import GridLayout
from models import SheetParameters

BLUE = (0, 0, 255, 255)
MAGENTA = (255, 0, 255, 255)


@pytest.fixture
def sheet():
    """3x3 sheet, 4x4 grid of 150 px cells starting at 38 px."""
    return GridLayout(SheetParameters(cell_size_inches=0.5)).layout('3x3')


class TestFitRect:

    def test_square_in_square(self):
        assert fit_rect((10, 10, 100, 100), 300, 300) == (10, 10, 100, 100)

    def test_wide_source_centered_vertically(self):
        assert fit_rect((0, 0, 100, 100), 200, 100) == (0, 25, 100, 50)

    def test_tall_source_centered_horizontally(self):
        assert fit_rect((0, 0, 100, 100), 100, 200) == (25, 0, 50, 100)

    def test_degenerate_source(self):
        assert fit_rect((1, 2, 3, 4), 0, 10) == (1, 2, 3, 4)


class TestPillowCompositor:

    def test_sheet_size_and_copies(self, sheet, solid_source):
        image = PillowCompositor().compose(solid_source, sheet)
        assert image.size == (900, 900)
        for p in sheet.placements:
            center = (p.cell_x + p.cell_w // 2, p.cell_y + p.cell_h // 2)
            assert image.getpixel(center) == BLUE

    def test_margin_and_usable_background(self, sheet, solid_source):
        image = PillowCompositor().compose(solid_source, sheet)
        assert image.getpixel((5, 5)) == (248, 249, 250, 255)
        gap_x = sheet.placements[0].cell_x + sheet.placements[0].cell_w + 10
        assert image.getpixel((gap_x, 100)) == (255, 255, 255, 255)

    def test_cutline_overlay(self, sheet, solid_source):
        image = PillowCompositor().compose(solid_source, sheet, cutline_overlay=True)
        p = sheet.placements[0]
        x0, y0, _x1, _y1 = path_bounds(p.cutline_path_svg)
        assert image.getpixel((p.cell_x + p.cell_w // 2, int(y0))) == MAGENTA

    def test_overlay_follows_cut_path_corner_ratio(self, sheet, solid_source):
        rounder = dataclasses.replace(sheet, placements=span_placements(
            uniform_spans(4, 38, 150, 75), uniform_spans(4, 38, 150, 75), corner_ratio=0.25))
        image = PillowCompositor().compose(solid_source, rounder, cutline_overlay=True)
        # 37.5 px corners: the square corner stays art, the straight edge is cut line
        assert image.getpixel((38, 38)) == BLUE
        assert image.getpixel((38, 113)) == MAGENTA
        assert image.getpixel((113, 38)) == MAGENTA

    def test_transparent_source_keeps_background(self, sheet):
        source = Image.new('RGBA', (50, 50), (0, 0, 0, 0))
        image = PillowCompositor().compose(source, sheet)
        p = sheet.placements[0]
        assert image.getpixel((p.cell_x + 5, p.cell_y + 5)) == (255, 255, 255, 255)

    def test_save_records_dpi(self, sheet, solid_source, tmp_path):
        compositor = PillowCompositor()
        path = compositor.save(compositor.compose(solid_source, sheet), tmp_path / 'sheet.png', 300)
        with Image.open(path) as reloaded:
            assert reloaded.size == (900, 900)
            assert reloaded.info['dpi'] == pytest.approx((300, 300), abs=0.01)


class TestQtCompositor:

    def test_compose_from_pillow_source(self, qapp, sheet, solid_source):
        image = QtCompositor().compose(solid_source, sheet)
        assert (image.width(), image.height()) == (900, 900)
        p = sheet.placements[5]
        color = image.pixelColor(p.cell_x + p.cell_w // 2, p.cell_y + p.cell_h // 2)
        assert (color.red(), color.green(), color.blue()) == (0, 0, 255)
        corner = image.pixelColor(5, 5)
        assert (corner.red(), corner.green(), corner.blue()) == (248, 249, 250)

    def test_dots_per_meter_follow_dpi(self, qapp, sheet, solid_source):
        image = QtCompositor().compose(solid_source, sheet, cutline_overlay=True)
        assert image.dotsPerMeterX() == 11811
        assert image.dotsPerMeterY() == 11811

    def test_painter_path_matches_svg_bounds(self, qapp, sheet):
        p = sheet.placements[0]
        qpath = QtCompositor.cutline_painter_path(p.cutline_path_svg)
        rect = qpath.controlPointRect()
        x0, y0, x1, y1 = path_bounds(p.cutline_path_svg)
        assert (rect.left(), rect.top(), rect.right(), rect.bottom()) == (x0, y0, x1, y1)

    def test_save_png(self, qapp, sheet, solid_source, tmp_path):
        compositor = QtCompositor()
        path = compositor.save(compositor.compose(solid_source, sheet), tmp_path / 'qt.png', 300)
        with Image.open(path) as reloaded:
            assert reloaded.size == (900, 900)
