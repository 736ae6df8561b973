"""
src/indexing/signature.py: Icon signature extraction
Combines the normalizer, pHash and color histogram into one fingerprint
"""

from dataclasses import dataclass
from typing import Optional

from src.indexing.image_processor import (
    CropInput,
    NormalizationOptions,
    decode_crop,
    normalize_crop
)
from src.indexing.phash import compute_phash
from src.indexing.histogram import compute_ahsv


@dataclass(frozen=True)
class Signature:
    """pHash + histogram fingerprint of one normalization attempt"""
    phash: str
    ahsv: str


def compute_signature(crop: CropInput, options: Optional[NormalizationOptions] = None) -> Signature:
    """
    Normalize a crop and extract its signature

    Args:
        crop: Encoded bytes, PIL Image or uint8 array
        options: Normalization options (defaults to square + 0.14 trim + sharpen)

    Returns:
        Signature with 64-hex-char phash and 16-digit ahsv
    """
    image = decode_crop(crop)
    normalized = normalize_crop(image, options or NormalizationOptions())
    return Signature(
        phash=compute_phash(normalized.hash_image),
        ahsv=compute_ahsv(normalized.hist_image)
    )
