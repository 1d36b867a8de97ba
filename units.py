"""Inch/pixel conversion at an explicit print DPI.

No function here assumes a screen DPI; callers always pass one.
"""

import math

from errors import DegenerateGeometry


def _check_dpi(dpi):
    if not dpi or dpi <= 0 or not math.isfinite(dpi):
        raise DegenerateGeometry("DPI must be a positive number", {"dpi": dpi})


def to_pixels(value_inches: float, dpi: float) -> int:
    """Inches -> whole pixels, rounding halves up like ``Math.round``."""
    _check_dpi(dpi)
    return int(math.floor(value_inches * dpi + 0.5))


def to_inches(value_px: float, dpi: float) -> float:
    _check_dpi(dpi)
    return value_px / dpi


def usable_length_inches(sheet_length_inches: float, outer_margin_inches: float) -> float:
    """Sheet length left after both outer margins, never negative."""
    return max(0.0, sheet_length_inches - 2 * outer_margin_inches)


def usable_area_inches(width_inches: float, height_inches: float,
                       outer_margin_inches: float) -> tuple[float, float]:
    return (usable_length_inches(width_inches, outer_margin_inches),
            usable_length_inches(height_inches, outer_margin_inches))
