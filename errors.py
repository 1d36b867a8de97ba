"""Error taxonomy for the sheet layout engine.

Every error is deterministic and input-dependent; the engine raises and
never retries.
"""


class LayoutError(ValueError):
    """Base class for all layout failures surfaced to the caller."""


class InvalidSheetSize(LayoutError):
    """Requested sheet size is not in the supported table."""

    def __init__(self, value, supported):
        self.value = value
        self.supported = tuple(supported)
        super().__init__(
            f"Unsupported sheet size {value!r}; expected one of: {', '.join(self.supported)}")


class DegenerateGeometry(LayoutError):
    """Margins, gap, cell size or DPI leave no room for a single cell."""

    def __init__(self, message: str, parameters: dict | None = None):
        self.parameters = dict(parameters or {})
        if self.parameters:
            detail = ", ".join(f"{k}={v!r}" for k, v in self.parameters.items())
            message = f"{message} ({detail})"
        super().__init__(message)


class NoViableOption(LayoutError):
    """The aspect-aware search found no count within the size bounds."""

    def __init__(self, sheet_size, bounds: tuple[float, float], detail: str = ""):
        self.sheet_size = sheet_size
        self.bounds = bounds
        lo, hi = bounds
        message = (f"No viable layout on sheet {sheet_size} with stickers between "
                   f"{lo:g} and {hi:g} in")
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class UnknownStickerDimensions(LayoutError):
    """Aspect-aware layout requested without a resolved sticker size."""
