import logging
from pathlib import Path
from typing import NamedTuple, Union

from PIL import Image, UnidentifiedImageError

from ccolors.color_metric import PixelFormat
from ccolors.errors import DecodeNotFound, DecodeUnsupported, UnsupportedPixelFormat

log = logging.getLogger(__name__)

# Pillow modes we hand over untouched
NATIVE_MODES = {
    "RGB": PixelFormat.RGB,
    "RGBA": PixelFormat.RGBA,
}

# 8-bit modes Pillow can expand to RGB(A) without losing anything we care about
CONVERTIBLE_MODES = {"1", "L", "LA", "La", "P", "PA", "RGBX", "RGBa", "CMYK", "YCbCr", "LAB", "HSV"}

ALPHA_MODES = {"LA", "La", "PA", "RGBa"}


class DecodedImage(NamedTuple):
    pixels: bytes
    pixel_format: PixelFormat
    width: int
    height: int


def image_to_pixels(image: Image.Image) -> DecodedImage:
    """
    Turn an opened PIL image into a raw RGB or RGBA buffer.

    Palette, grayscale and other 8-bit modes are expanded; images that carry
    transparency become RGBA. High bit-depth and float modes are refused.
    """
    mode = image.mode
    if mode not in NATIVE_MODES:
        if mode not in CONVERTIBLE_MODES:
            raise UnsupportedPixelFormat(f"Sorry, images with {mode} color type pixels are not supported.")
        target = "RGBA" if (mode in ALPHA_MODES or "transparency" in image.info) else "RGB"
        log.debug("Converting %s image to %s", mode, target)
        image = image.convert(target)
    return DecodedImage(image.tobytes(), NATIVE_MODES[image.mode], image.width, image.height)


def decode_image(path: Union[str, Path]) -> DecodedImage:
    """
    Open and fully decode an image file.

    Args:
        path (str | Path): Image file to read.

    Returns:
        DecodedImage: pixels, their layout, and the image size.

    Raises:
        DecodeNotFound: `path` does not exist.
        DecodeUnsupported: the file is not a readable image.
        UnsupportedPixelFormat: the image decodes to a layout we cannot use.
    """
    path = Path(path)
    try:
        with Image.open(path) as image:
            image.load()
            return image_to_pixels(image)
    except FileNotFoundError:
        raise DecodeNotFound(f"File not found: {path}") from None
    except IsADirectoryError:
        raise DecodeNotFound(f"Not a file: {path}") from None
    except UnidentifiedImageError as e:
        raise DecodeUnsupported(f"Unsupported or corrupt image {path}: {e}") from e
    except Image.DecompressionBombError as e:
        raise DecodeUnsupported(f"Image too large {path}: {e}") from e
    except (OSError, ValueError, SyntaxError) as e:
        # Pillow reports truncated/garbled data as OSError or SyntaxError
        raise DecodeUnsupported(f"Error while opening {path}: {e}") from e
