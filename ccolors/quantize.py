import logging
from typing import List

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans

from ccolors.color_metric import Color, PixelFormat
from ccolors.errors import QuantizeError
from ccolors.pixel_filter import pixels_to_rgb_array

log = logging.getLogger(__name__)

METHODS = ("mediancut", "kmeans")

# Sampled pixels more transparent than this, or whiter than WHITE_CUTOFF on
# every channel, are left out of the reduction when anything else remains.
MIN_ALPHA = 125
WHITE_CUTOFF = 250

ALPHA_OFFSETS = {
    PixelFormat.RGBA: 3,
    PixelFormat.BGRA: 3,
    PixelFormat.ARGB: 0,
}


def sample_pixels(pixels: bytes, pixel_format: PixelFormat, quality: int) -> np.ndarray:
    """
    Take every `quality`-th pixel as an (N, 3) RGB array, skipping
    transparent and near-white ones unless that would leave nothing.
    """
    if quality < 1:
        raise QuantizeError(f"Quality must be at least 1, got {quality}")
    rgb = pixels_to_rgb_array(pixels, pixel_format)[::quality]

    mask = ~np.all(rgb > WHITE_CUTOFF, axis=1)
    alpha_offset = ALPHA_OFFSETS.get(pixel_format)
    if alpha_offset is not None:
        raw = np.frombuffer(bytes(pixels), dtype=np.uint8).reshape(-1, pixel_format.stride)[::quality]
        mask &= raw[:, alpha_offset] >= MIN_ALPHA

    if mask.any():
        return rgb[mask]
    return rgb


def median_cut(samples: np.ndarray, count: int) -> List[Color]:
    """Reduce samples with Pillow's median cut, most populated colors first."""
    image = Image.fromarray(np.ascontiguousarray(samples.reshape(-1, 1, 3), dtype=np.uint8))
    reduced = image.quantize(colors=count, method=Image.Quantize.MEDIANCUT)
    palette = reduced.getpalette() or []
    used = reduced.getcolors(maxcolors=256) or []
    # (pixel count, palette index); biggest clusters first, ties by index
    used.sort(key=lambda entry: (-entry[0], entry[1]))
    return [Color(*palette[3 * idx:3 * idx + 3]) for _, idx in used[:count]]


def kmeans(samples: np.ndarray, count: int) -> List[Color]:
    """Reduce samples with KMeans; centers ordered by cluster size."""
    n_clusters = min(count, len(np.unique(samples, axis=0)))
    km = KMeans(n_clusters=n_clusters, random_state=42, n_init="auto")
    labels = km.fit_predict(samples)
    centers = np.clip(np.rint(km.cluster_centers_), 0, 255).astype(np.uint8)
    sizes = np.bincount(labels, minlength=n_clusters)
    order = sorted(range(n_clusters), key=lambda i: (-sizes[i], i))
    return [Color(*(int(c) for c in centers[i])) for i in order]


def quantize(
    pixels: bytes,
    pixel_format: PixelFormat,
    quality: int,
    count: int,
    method: str = "mediancut",
) -> List[Color]:
    """
    Reduce a raw pixel buffer to at most `count` representative colors.

    Args:
        pixels (bytes): Raw image buffer.
        pixel_format (PixelFormat): Layout of `pixels`.
        quality (int): Sampling stride; 1 looks at every pixel.
        count (int): Number of colors wanted.
        method (str): "mediancut" (Pillow) or "kmeans" (scikit-learn).

    Returns:
        List[Color]: Representative colors, most represented first. May hold
        fewer than `count` entries, and may hold duplicates.
    """
    if method not in METHODS:
        raise QuantizeError(f"Unknown quantization method '{method}'. Expected one of: {', '.join(METHODS)}")
    if count < 1:
        raise QuantizeError(f"Color count must be positive, got {count}")
    samples = sample_pixels(pixels, pixel_format, quality)
    if len(samples) == 0:
        raise QuantizeError("No pixels to quantize")

    log.debug("Quantizing %d sampled pixels into %d colors with %s", len(samples), count, method)
    try:
        if method == "kmeans":
            return kmeans(samples, count)
        return median_cut(samples, count)
    except (ValueError, OSError) as e:
        raise QuantizeError(f"Error during {method} quantization: {e}") from e
