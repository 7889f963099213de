import logging
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ccolors import settings
from ccolors.color_metric import Color, PixelFormat, contrast
from ccolors.decode import decode_image
from ccolors.errors import ExtractionError, NoData, QuantizeError, UnsupportedFormat, UnsupportedPixelFormat
from ccolors.pixel_filter import filter_pixels
from ccolors.quantize import quantize

log = logging.getLogger(__name__)

Palette = Tuple[Color, ...]
Quantizer = Callable[[bytes, PixelFormat, int, int], Sequence[Color]]


def check_excluded(excluded: Sequence[Color]) -> Tuple[Color, ...]:
    excluded = tuple(excluded)
    if len(excluded) > settings.MAX_EXCLUDED:
        raise ValueError(f"You can exclude up to {settings.MAX_EXCLUDED} colors, got {len(excluded)}")
    return excluded


def dedupe(colors: Sequence[Color]) -> List[Color]:
    """Drop repeated colors, keeping the first occurrence of each."""
    unique: List[Color] = []
    for color in colors:
        if color not in unique:
            unique.append(color)
    return unique


def sort_by_contrast(colors: Sequence[Color], reference: Color) -> List[Color]:
    """Order colors from the best contrasting with `reference` to the least (stable)."""
    return sorted(colors, key=lambda c: contrast(c, reference), reverse=True)


def quantizer_for(method: str) -> Quantizer:
    return partial(quantize, method=method)


def extract(
    pixels: bytes,
    pixel_format: PixelFormat,
    excluded: Sequence[Color] = (),
    count: int = settings.DEFAULT_COLORS,
    reference: Optional[Color] = None,
    quantizer: Quantizer = quantize,
    threshold: Optional[float] = None,
) -> Palette:
    """
    Extract the dominant colors of a decoded image.

    Args:
        pixels (bytes): Raw pixel buffer.
        pixel_format (PixelFormat): Layout of `pixels`.
        excluded (Sequence[Color]): Up to 5 colors whose near matches are
            removed before quantization.
        count (int): Number of colors to extract (2-10).
        reference (Color, optional): When given, the palette is ordered from
            the best contrasting color with it to the least.
        quantizer (callable): (pixels, format, quality, count) -> colors.
        threshold (float, optional): Exclusion threshold override.

    Returns:
        Palette: Distinct colors, at most `count` of them.

    Raises:
        ValueError: `count` out of range or too many excluded colors.
        UnsupportedFormat: the pixel buffer cannot be read as `pixel_format`.
        NoData: nothing left to quantize.
        ExtractionError: the quantizer failed.
    """
    settings.check_count(count)
    excluded = check_excluded(excluded)

    if excluded:
        try:
            pixels = filter_pixels(pixels, pixel_format, excluded, threshold)
        except UnsupportedPixelFormat as e:
            raise UnsupportedFormat(str(e)) from e
        pixel_format = PixelFormat.RGB

    if not pixels:
        raise NoData("No pixels left to extract colors from.")

    try:
        candidates = quantizer(pixels, pixel_format, settings.QUALITY, count)
    except UnsupportedPixelFormat as e:
        raise UnsupportedFormat(str(e)) from e
    except QuantizeError as e:
        raise ExtractionError(str(e)) from e

    colors = dedupe(candidates)[:count]
    if reference is not None:
        colors = sort_by_contrast(colors, reference)
    return tuple(colors)


def extract_file(
    path: Union[str, Path],
    excluded: Sequence[Color] = (),
    count: int = settings.DEFAULT_COLORS,
    reference: Optional[Color] = None,
    quantizer: Quantizer = quantize,
    threshold: Optional[float] = None,
    decoder: Callable = decode_image,
) -> Palette:
    """Decode `path` and extract its palette. Decode errors propagate as is."""
    image = decoder(path)
    log.debug("Decoded %s: %dx%d %s", path, image.width, image.height, image.pixel_format.name)
    return extract(image.pixels, image.pixel_format, excluded, count, reference, quantizer, threshold)
