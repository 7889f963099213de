class CopyColorsError(Exception):
    """Base class for every error raised by the ccolors package."""


class InvalidFormat(CopyColorsError, ValueError):
    """A color given as text (e.g. a hex code) could not be parsed."""


class UnsupportedPixelFormat(CopyColorsError):
    """Decoded pixels use a layout we cannot turn into colors."""


# --- Decoding ---
class DecodeError(CopyColorsError):
    pass


class DecodeNotFound(DecodeError):
    pass


class DecodeUnsupported(DecodeError):
    pass


class QuantizeError(CopyColorsError):
    pass


# --- Extraction ---
class ExtractionError(CopyColorsError):
    pass


class UnsupportedFormat(ExtractionError):
    pass


class NoData(ExtractionError):
    """Nothing left to quantize (empty image or every pixel excluded)."""


# --- Directory scanning ---
class ScanError(CopyColorsError):
    pass


class ScanNotFound(ScanError):
    pass


class ScanPermissionDenied(ScanError):
    pass


class InvalidPattern(ScanError):
    pass
