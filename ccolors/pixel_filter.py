import logging
from typing import Optional, Sequence

import numpy as np

from ccolors import settings
from ccolors.color_metric import MAX_DISTANCE, Color, PixelFormat
from ccolors.errors import UnsupportedPixelFormat

log = logging.getLogger(__name__)


def pixels_to_rgb_array(pixels: bytes, pixel_format: PixelFormat) -> np.ndarray:
    """
    View a raw pixel buffer as an (N, 3) uint8 RGB array.

    Args:
        pixels (bytes): Raw buffer, `pixel_format.stride` bytes per pixel.
        pixel_format (PixelFormat): Channel layout of the buffer.

    Returns:
        np.ndarray: Array of shape (N, 3), channels in r, g, b order.
    """
    stride = pixel_format.stride
    if len(pixels) % stride != 0:
        raise UnsupportedPixelFormat(
            f"Buffer of {len(pixels)} bytes is not a whole number of {pixel_format.name} pixels ({stride} bytes each)"
        )
    flat = np.frombuffer(bytes(pixels), dtype=np.uint8).reshape(-1, stride)
    return flat[:, list(pixel_format.offsets)]


def distances_to(rgb: np.ndarray, color: Color) -> np.ndarray:
    """Vectorised color_metric.distance(pixel, color) for every row of `rgb`."""
    pix = rgb.astype(np.float64)
    ref = np.array(color, dtype=np.float64)
    dr2 = (pix[:, 0] - ref[0]) ** 2
    dg2 = (pix[:, 1] - ref[1]) ** 2
    db2 = (pix[:, 2] - ref[2]) ** 2
    mean_r = (pix[:, 0] + ref[0]) / 2.0
    return 2.0 * dr2 + 4.0 * dg2 + 3.0 * db2 + mean_r * (dr2 - db2) / 256.0


def filter_pixels(
    pixels: bytes,
    pixel_format: PixelFormat,
    excluded: Sequence[Color],
    threshold: Optional[float] = None,
) -> bytes:
    """
    Drop every pixel that is too close to one of the excluded colors.

    With no excluded colors the buffer is returned as is, in its own format.
    Otherwise the kept pixels come back as packed RGB triples.

    Args:
        pixels (bytes): Raw image buffer.
        pixel_format (PixelFormat): Layout of `pixels`.
        excluded (Sequence[Color]): Colors to remove.
        threshold (float, optional): Minimum distance, as a fraction of
            MAX_DISTANCE, a pixel must keep from every excluded color.
            Defaults to settings.exclude_threshold().

    Returns:
        bytes: The filtered buffer.
    """
    if not excluded:
        return pixels

    threshold = settings.exclude_threshold(threshold)
    rgb = pixels_to_rgb_array(pixels, pixel_format)

    keep = np.ones(len(rgb), dtype=bool)
    for ex_color in excluded:
        keep &= (distances_to(rgb, ex_color) / MAX_DISTANCE) >= threshold

    kept = rgb[keep]
    log.debug("Exclusion filter kept %d of %d pixels (threshold %.3f)", len(kept), len(rgb), threshold)
    return np.ascontiguousarray(kept, dtype=np.uint8).tobytes()
