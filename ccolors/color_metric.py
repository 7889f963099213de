import re
from enum import Enum
from typing import NamedTuple, Sequence, Tuple, TypeVar

from ccolors.errors import InvalidFormat, UnsupportedPixelFormat

# Largest value distance() can return for 8-bit channels
MAX_DISTANCE = 585225.0

HEX_RE = re.compile(r"^#[0-9a-f]{6}$", re.IGNORECASE)


class Color(NamedTuple):
    r: int
    g: int
    b: int

    @classmethod
    def of(cls, r, g, b) -> "Color":
        """Build a Color, checking that every channel fits in 8 bits."""
        channels = (r, g, b)
        for value in channels:
            if isinstance(value, bool) or not isinstance(value, int) or not (0 <= value <= 255):
                raise InvalidFormat(f"Color channels must be integers in 0..255, got {channels}")
        return cls(r, g, b)


BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)


class PixelFormat(Enum):
    """
    Channel layout of a raw pixel buffer.

    The value is (stride, r offset, g offset, b offset).
    """
    RGB = (3, 0, 1, 2)
    RGBA = (4, 0, 1, 2)
    ARGB = (4, 1, 2, 3)
    BGR = (3, 2, 1, 0)
    BGRA = (4, 2, 1, 0)

    @property
    def stride(self) -> int:
        return self.value[0]

    @property
    def offsets(self) -> Tuple[int, int, int]:
        return self.value[1:]


def brightness(color: Color) -> float:
    """Perceived brightness (0-255) using the 299/587/114 luma weights."""
    r, g, b = color
    return (299 * r + 587 * g + 114 * b) / 1000.0


def contrast(c1: Color, c2: Color) -> float:
    return abs(brightness(c1) - brightness(c2))


T = TypeVar("T", bound=Color)


def best_contrast(color: Color, candidates: Sequence[T]) -> T:
    """
    Pick the candidate that contrasts the most with `color`.

    Ties keep the earliest candidate. At least two candidates are required.
    """
    if len(candidates) < 2:
        raise ValueError(f"best_contrast needs at least 2 candidates, got {len(candidates)}")
    best = candidates[0]
    best_diff = contrast(color, best)
    for candidate in candidates[1:]:
        diff = contrast(color, candidate)
        if diff > best_diff:
            best, best_diff = candidate, diff
    return best


def distance(c1: Color, c2: Color) -> float:
    """
    Weighted RGB distance, tuned for perceived difference.

    Channels are not interchangeable: green weighs most, and the red/blue
    correction term is scaled by the mean red of the pair. The exclusion
    threshold is calibrated against this exact formula.
    """
    dr2 = float(c1.r - c2.r) ** 2
    dg2 = float(c1.g - c2.g) ** 2
    db2 = float(c1.b - c2.b) ** 2
    mean_r = (c1.r + c2.r) / 2.0
    return 2.0 * dr2 + 4.0 * dg2 + 3.0 * db2 + mean_r * (dr2 - db2) / 256.0


def decode(raw: bytes, pixel_format: PixelFormat) -> Color:
    """Turn one pixel (3 or 4 bytes laid out as `pixel_format`) into a Color."""
    if len(raw) != pixel_format.stride:
        raise UnsupportedPixelFormat(
            f"{pixel_format.name} pixels are {pixel_format.stride} bytes, got {len(raw)}"
        )
    ri, gi, bi = pixel_format.offsets
    return Color(raw[ri], raw[gi], raw[bi])


def to_hex(color: Color) -> str:
    return "#{:02X}{:02X}{:02X}".format(*color)


def to_rgb_string(color: Color) -> str:
    return "RGB({},{},{})".format(*color)


def from_hex(hex_code: str) -> Color:
    """
    Parse '#RRGGBB' (case-insensitive) into a Color.

    Raises:
        InvalidFormat: for anything else, including shorthand '#FFF' and a
        missing '#'.
    """
    if not isinstance(hex_code, str):
        raise InvalidFormat(f"{hex_code!r} is not a valid hexadecimal code.")
    hex_code = hex_code.strip()
    if not HEX_RE.match(hex_code):
        raise InvalidFormat(f"{hex_code!r} is not a valid hexadecimal code (expected '#RRGGBB').")
    return Color(int(hex_code[1:3], 16), int(hex_code[3:5], 16), int(hex_code[5:7], 16))
