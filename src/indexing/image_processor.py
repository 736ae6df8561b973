"""
src/indexing/image_processor.py: Crop decoding and pixel normalization
Reduces an icon crop to the canonical 64x64 / 32x32 forms used for hashing
"""

import io
import math
from dataclasses import dataclass
from typing import NamedTuple, Union

import numpy as np
from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from src.config import HASH_SIZE, HIST_SIZE, MIN_TRIMMED_SIDE

CropInput = Union[bytes, bytearray, Image.Image, np.ndarray]


class CropDecodeError(ValueError):
    """Raised when a crop buffer cannot be decoded as an image."""


@dataclass(frozen=True)
class NormalizationOptions:
    """Options for a single normalization attempt"""
    square: bool = True
    trim_fraction: float = 0.14
    sharpen: bool = True

    def __post_init__(self):
        if not 0.0 <= self.trim_fraction <= 0.5:
            raise ValueError(f"trim_fraction must be within [0, 0.5], got {self.trim_fraction}")


class NormalizedCrop(NamedTuple):
    hash_image: Image.Image
    hist_image: Image.Image


def decode_crop(crop: CropInput) -> Image.Image:
    """
    Decode a crop into an RGBA PIL image

    Args:
        crop: Encoded image bytes, PIL Image or HxWxC uint8 array

    Returns:
        RGBA PIL Image

    Raises:
        CropDecodeError: If the bytes are not a readable image
    """
    if isinstance(crop, Image.Image):
        img = crop
    elif isinstance(crop, np.ndarray):
        img = Image.fromarray(crop)
    elif isinstance(crop, (bytes, bytearray)):
        if not crop:
            raise CropDecodeError("Empty crop buffer")
        try:
            img = Image.open(io.BytesIO(crop))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise CropDecodeError(f"Could not decode crop buffer: {e}") from e
    else:
        raise CropDecodeError(f"Unsupported crop type: {type(crop).__name__}")

    if img.mode != 'RGBA':
        img = img.convert('RGBA')

    return img


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def crop_box(width: int, height: int, options: NormalizationOptions):
    """
    Compute the (left, top, right, bottom) working rectangle for a crop

    Squaring takes the largest centered square. Trimming removes
    trim_fraction of the shorter side from every edge, and is skipped
    entirely when the remainder would not exceed MIN_TRIMMED_SIDE.
    """
    left, top, w, h = 0, 0, width, height

    if options.square and width > 0 and height > 0:
        side = min(width, height)
        left = max(0, (width - side) // 2)
        top = max(0, (height - side) // 2)
        w = h = side

    if options.trim_fraction > 0 and w > 0 and h > 0:
        min_side = min(w, h)
        pad = min(max(0, round_half_up(min_side * options.trim_fraction)), min_side // 2)
        if pad > 0 and w - 2 * pad > MIN_TRIMMED_SIDE and h - 2 * pad > MIN_TRIMMED_SIDE:
            left += pad
            top += pad
            w -= 2 * pad
            h -= 2 * pad

    return left, top, left + max(1, w), top + max(1, h)


def enhance(img: Image.Image) -> Image.Image:
    """Edge sharpening followed by luminance contrast stretch."""
    img = img.filter(ImageFilter.UnsharpMask(radius=1, percent=100, threshold=0))
    return ImageOps.autocontrast(img, cutoff=1, preserve_tone=True)


def normalize_crop(image: Image.Image, options: NormalizationOptions = NormalizationOptions()) -> NormalizedCrop:
    """
    Normalize a decoded crop to its canonical hashing forms

    Args:
        image: Decoded crop (any mode)
        options: Square/trim/sharpen settings for this attempt

    Returns:
        NormalizedCrop with a 64x64 image for pHash and a 32x32 image for the histogram
    """
    box = crop_box(image.width, image.height, options)
    region = image.crop(box).convert('RGB')

    if options.sharpen:
        region = enhance(region)

    hash_image = ImageOps.fit(region, (HASH_SIZE, HASH_SIZE), Image.Resampling.LANCZOS)
    hist_image = hash_image.resize((HIST_SIZE, HIST_SIZE), Image.Resampling.LANCZOS)

    return NormalizedCrop(hash_image, hist_image)
