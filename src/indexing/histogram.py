"""
src/indexing/histogram.py: Coarse hue/value color fingerprint

Every pixel of the 32x32 normalized icon lands in one of 16 buckets
(4 hue x 4 value), weighted by 1 + 0.5 * saturation level. Bucket sums
are rescaled to a 0-9 digit relative to the total mass and joined into a
16-character string (``ahsv``).
"""

import string
from typing import Optional

import cv2
import numpy as np
from PIL import Image

from src.config import HIST_BUCKETS

LEVELS = 4
MAX_DIGIT = 9


def quantize(channel: np.ndarray, scale: float) -> np.ndarray:
    return np.minimum(LEVELS - 1, np.floor(channel / scale * LEVELS)).astype(np.int64)


def compute_ahsv(image: Image.Image) -> str:
    """
    Compute the 16-digit hue/value histogram string

    Args:
        image: Normalized 32x32 icon

    Returns:
        16-character string of digits 0-9
    """
    rgb_image = image.convert("RGB") if image.mode != "RGB" else image
    pixels = np.asarray(rgb_image, dtype=np.float32) / 255.0

    # Float input: H in [0, 360], S and V in [0, 1]
    hsv = cv2.cvtColor(pixels, cv2.COLOR_RGB2HSV)
    hue_bucket = quantize(hsv[:, :, 0], 360.0)
    sat_bucket = quantize(hsv[:, :, 1], 1.0)
    val_bucket = quantize(hsv[:, :, 2], 1.0)

    index = hue_bucket * LEVELS + val_bucket
    weights = 1.0 + 0.5 * sat_bucket
    bins = np.bincount(index.ravel(), weights=weights.ravel(), minlength=HIST_BUCKETS)

    total = bins.sum() or 1.0
    # Round half up to a tenth of the total mass
    scaled = np.clip(np.floor(bins / total * 10 + 0.5), 0, MAX_DIGIT).astype(np.int64)

    return "".join(str(d) for d in scaled).ljust(HIST_BUCKETS, "0")[:HIST_BUCKETS]


def _is_histogram(value: Optional[str]) -> bool:
    return (
        isinstance(value, str)
        and len(value) == HIST_BUCKETS
        and all(c in string.digits for c in value)
    )


def hist_dist16(hist1: Optional[str], hist2: Optional[str]) -> float:
    """
    Normalized L1 distance between two histogram strings

    Returns 1.0 (worst case) for missing or malformed input.
    """
    if not _is_histogram(hist1) or not _is_histogram(hist2):
        return 1.0

    total = sum(abs(int(a) - int(b)) for a, b in zip(hist1, hist2))
    return min(1.0, total / (MAX_DIGIT * HIST_BUCKETS))
