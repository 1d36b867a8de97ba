"""Shared pytest fixtures for Sticker Sheet tests."""
import os

os.environ['QT_QPA_PLATFORM'] = 'offscreen'  # must be set before QGuiApplication import

import pytest
from PIL import Image, ImageDraw


@pytest.fixture(scope='session')
def qapp():
    """Create a single QGuiApplication for all tests."""
    from PySide6.QtGui import QGuiApplication
    app = QGuiApplication.instance() or QGuiApplication([])
    yield app


@pytest.fixture
def sticker_file(tmp_path):
    """Factory fixture: a sticker PNG on disk, optionally with a transparent background."""
    def _make(width=400, height=200, transparent=True, name='sticker.png'):
        if transparent:
            img = Image.new('RGBA', (width, height), (0, 0, 0, 0))
        else:
            img = Image.new('RGB', (width, height), 'white')
        draw = ImageDraw.Draw(img)
        draw.ellipse([width // 10, height // 10, width - width // 10, height - height // 10],
                     fill='red', outline='black')
        path = tmp_path / name
        img.save(path, format='PNG')
        return path
    return _make


@pytest.fixture
def solid_source():
    """A solid blue source image for compositing tests."""
    return Image.new('RGBA', (300, 300), (0, 0, 255, 255))
