"""Integration tests for the controller and the command-line entry point."""
import json

import pytest
from PIL import Image

from controller import SheetController, has_transparency, make_compositor
from errors import UnknownStickerDimensions
from models import SheetParameters, StickerDimensions
from sticker_app import main


class TestReadSticker:

    def test_transparent_sticker(self, sticker_file):
        _img, dims, info = SheetController.read_sticker(sticker_file(400, 200))
        assert (dims.width_px, dims.height_px) == (400, 200)
        assert dims.aspect_ratio == pytest.approx(2.0)
        assert (info.original_w, info.original_h) == (400, 200)
        assert info.background_removed is True

    def test_opaque_sticker(self, sticker_file):
        _img, _dims, info = SheetController.read_sticker(sticker_file(transparent=False))
        assert info.background_removed is False

    def test_unreadable_file(self, tmp_path):
        bad = tmp_path / 'bad.png'
        bad.write_bytes(b'not an image')
        with pytest.raises(UnknownStickerDimensions):
            SheetController.read_sticker(bad)

    def test_fully_opaque_alpha_is_not_removed(self):
        assert has_transparency(Image.new('RGBA', (10, 10), (1, 2, 3, 255))) is False


class TestPlan:

    def test_unknown_dimensions_fail_without_opt_in(self):
        with pytest.raises(UnknownStickerDimensions):
            SheetController().plan('4x4', None)

    def test_explicit_fallback_uses_fixed_grid(self):
        sheet = SheetController().plan('4x4', None, fallback_to_fixed=True)
        assert sheet.mode == 'fixed'
        assert sheet.total_minis == 64

    def test_dynamic_by_default(self):
        sheet = SheetController().plan('3x3', StickerDimensions.from_pixels(500, 500))
        assert sheet.mode == 'dynamic'
        assert sheet.total_minis == 9

    def test_requested_count(self):
        sheet = SheetController().plan('3x3', StickerDimensions.from_pixels(500, 500), count=16)
        assert (sheet.cols, sheet.rows) == (4, 4)

    def test_settings_inherit_fixed_parameters(self):
        controller = SheetController(SheetParameters(dpi=600, bleed_inches=0.01))
        assert controller.settings.dpi == 600
        assert controller.settings.bleed_inches == 0.01

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            make_compositor('cairo')


class TestExport:

    def test_writes_all_outputs(self, sticker_file, tmp_path):
        controller = SheetController()
        source, dims, info = controller.read_sticker(sticker_file())
        sheet = controller.plan('4x4', dims)
        manifest = controller.export(source, sheet, info,
                                     output=tmp_path / 'out.png',
                                     manifest_path=tmp_path / 'out.json',
                                     svg_path=tmp_path / 'out.svg')
        assert manifest.sheets == (sheet,)
        with Image.open(tmp_path / 'out.png') as img:
            assert img.size == (1200, 1200)
        data = json.loads((tmp_path / 'out.json').read_text())
        assert data['sourceImageInfo']['backgroundRemoved'] is True
        assert data['sheets'][0]['totalMinis'] == sheet.total_minis
        assert (tmp_path / 'out.svg').read_text().count('<path ') == sheet.total_minis


class TestCommandLine:

    def test_dynamic_run(self, sticker_file, tmp_path, capsys):
        image = sticker_file()
        out = tmp_path / 'sheet.png'
        with pytest.raises(SystemExit) as exc:
            main([str(image), '-s', '3x3', '-o', str(out), '--cutline-overlay'])
        assert exc.value.code == 0
        assert out.exists()
        assert (tmp_path / 'sheet.png.json').exists()
        assert (tmp_path / 'sheet_cutlines.svg').exists()
        assert 'Sheet 3x3' in capsys.readouterr().out

    def test_fixed_run(self, sticker_file, tmp_path):
        manifest = tmp_path / 'm.json'
        with pytest.raises(SystemExit) as exc:
            main([str(sticker_file()), '--mode', 'fixed', '-o', str(tmp_path / 'f.png'),
                  '-m', str(manifest)])
        assert exc.value.code == 0
        sheet = json.loads(manifest.read_text())['sheets'][0]
        assert sheet['cellsPerSide'] == 8
        assert sheet['totalMinis'] == 64

    def test_list_options(self, sticker_file, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(sticker_file(500, 500)), '-s', '3x3', '--list-options'])
        assert exc.value.code == 0
        out = capsys.readouterr().out
        assert '* ' in out
        assert 'Small (9)' in out

    def test_invalid_sheet_size(self, sticker_file, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(sticker_file()), '-s', '9x9', '--list-options'])
        assert exc.value.code == 2
        assert 'Unsupported sheet size' in capsys.readouterr().err

    def test_degenerate_margin(self, sticker_file, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main([str(sticker_file()), '--mode', 'fixed', '--margin', '2.0',
                  '-o', str(tmp_path / 'x.png')])
        assert exc.value.code == 2
        assert 'usable area' in capsys.readouterr().err
        assert not (tmp_path / 'x.png').exists()

    def test_unreadable_sticker_exits_cleanly(self, tmp_path, capsys):
        bad = tmp_path / 'bad.png'
        bad.write_bytes(b'not an image')
        with pytest.raises(SystemExit) as exc:
            main([str(bad), '-o', str(tmp_path / 'out.png')])
        assert exc.value.code == 2
        assert 'Cannot read sticker image' in capsys.readouterr().err
        assert not (tmp_path / 'out.png').exists()

    def test_fixed_fallback_is_not_a_command_line_option(self, sticker_file):
        with pytest.raises(SystemExit) as exc:
            main([str(sticker_file()), '--fallback-fixed'])
        assert exc.value.code == 2

    def test_default_names_ignore_dots_in_directories(self, sticker_file, tmp_path):
        image = tmp_path / 'v1.2' / 'sticker'
        image.parent.mkdir()
        sticker_file().rename(image)
        with pytest.raises(SystemExit) as exc:
            main([str(image), '-s', '3x3'])
        assert exc.value.code == 0
        assert (image.parent / 'sticker_sheet.png').exists()
        assert (image.parent / 'sticker_sheet.png.json').exists()
        assert (image.parent / 'sticker_sheet_cutlines.svg').exists()
