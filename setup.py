"""setuptools build configuration for Kiss-Cut Sticker Sheet.

Usage:
    pip install -e .[test]

Provides: the ``sticker-sheet`` command.
"""
from setuptools import setup

MODULES = [
    'compositor',
    'controller',
    'cutlines',
    'dynamic_layout',
    'errors',
    'grid_layout',
    'manifest',
    'models',
    'sticker_app',
    'units',
]

setup(
    name='kiss-cut-sticker-sheet',
    version='1.0.0',
    description='Print-ready kiss-cut sticker sheet layout engine',
    python_requires='>=3.10',
    py_modules=MODULES,
    install_requires=['Pillow', 'PySide6'],
    extras_require={'test': ['pytest']},
    entry_points={
        'console_scripts': ['sticker-sheet = sticker_app:main'],
    },
)
