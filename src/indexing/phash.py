"""
src/indexing/phash.py: Perceptual hashing utilities
Computes the 64-hex-character icon pHash and its Hamming distance
"""

import imagehash
from PIL import Image
from typing import Optional, Union

from src.config import PHASH_HEX_LENGTH

# 16x16 low-frequency block of a 32x32 DCT grid = 256 bits = 64 hex chars
PHASH_BITS_PER_SIDE = 16
PHASH_HIGHFREQ_FACTOR = 2

MAX_HAMMING = 64


def fit_hex(value: str, length: int = PHASH_HEX_LENGTH) -> str:
    """Truncate or right-pad a hex string with zeros to exactly ``length`` characters."""
    return value[:length].ljust(length, '0')


def compute_phash(image: Union[Image.Image, str]) -> str:
    """
    Compute perceptual hash (pHash) for a normalized icon

    Args:
        image: PIL Image or path to image file

    Returns:
        Hash as a 64-character hex string
    """
    if isinstance(image, str):
        img = Image.open(image)
    else:
        img = image

    # Convert to RGB if needed
    if img.mode != 'RGB':
        img = img.convert('RGB')

    phash = imagehash.phash(
        img,
        hash_size=PHASH_BITS_PER_SIDE,
        highfreq_factor=PHASH_HIGHFREQ_FACTOR
    )

    return fit_hex(str(phash))


def hamming64(hash1: Optional[str], hash2: Optional[str]) -> int:
    """
    Compute Hamming distance between two hex hashes

    Missing, unequal-length or non-hex inputs score the worst case (64)
    instead of raising. The popcount is capped at 64.

    Args:
        hash1: First hash as hex string
        hash2: Second hash as hex string

    Returns:
        Hamming distance in [0, 64]
    """
    if not hash1 or not hash2 or len(hash1) != len(hash2):
        return MAX_HAMMING

    try:
        diff = int(hash1, 16) ^ int(hash2, 16)
    except ValueError:
        return MAX_HAMMING

    return min(MAX_HAMMING, diff.bit_count())
