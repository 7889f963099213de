import os
import re
from typing import Optional

# Palette size accepted by the extractor
MIN_COLORS = 2
MAX_COLORS = 10
DEFAULT_COLORS = 5

MAX_EXCLUDED = 5

# Sampling stride handed to the quantizer: every 10th pixel is looked at.
QUALITY = 10

# Fraction of MAX_DISTANCE under which a pixel counts as "the same" as an
# excluded color. Earlier builds used 0.075, current one uses 0.05.
EXCLUDE_THRESHOLD = 0.05

# Progress bar refresh rate (per second)
REFRESH_HZ = 15

IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "bmp", "ico", "tiff", "webp", "avif", "pnm", "dds", "tga")
IMAGE_NAME_RE = re.compile(r"\.(png|jpe?g|gif|bmp|ico|tiff|webp|avif|pnm|dds|tga)$", re.IGNORECASE)

THRESHOLD_ENV = "COPYCOLORS_THRESHOLD"
WORKERS_ENV = "COPYCOLORS_WORKERS"


def exclude_threshold(override: Optional[float] = None) -> float:
    """
    Resolve the exclusion threshold: explicit value, then $COPYCOLORS_THRESHOLD,
    then EXCLUDE_THRESHOLD.
    """
    if override is None:
        raw = os.environ.get(THRESHOLD_ENV)
        if raw is None or raw.strip() == "":
            return EXCLUDE_THRESHOLD
        try:
            override = float(raw)
        except ValueError:
            raise ValueError(f"{THRESHOLD_ENV} must be a number, got {raw!r}") from None
    if not (0.0 <= override <= 1.0):
        raise ValueError(f"Exclusion threshold must be between 0 and 1, got {override}")
    return float(override)


def worker_count(override: Optional[int] = None) -> int:
    """
    Resolve the worker pool size: explicit value, then $COPYCOLORS_WORKERS,
    then the number of CPUs.
    """
    if override is None:
        raw = os.environ.get(WORKERS_ENV)
        if raw is None or raw.strip() == "":
            return os.cpu_count() or 1
        try:
            override = int(raw)
        except ValueError:
            raise ValueError(f"{WORKERS_ENV} must be an integer, got {raw!r}") from None
    if override < 1:
        raise ValueError(f"Worker count must be at least 1, got {override}")
    return override


def check_count(count: int) -> int:
    if not isinstance(count, int) or isinstance(count, bool) or not (MIN_COLORS <= count <= MAX_COLORS):
        raise ValueError(f"Number of colors must be between {MIN_COLORS} and {MAX_COLORS}, got {count!r}")
    return count
