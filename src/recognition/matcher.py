"""
src/recognition/matcher.py: Icon matching cascade

1. Input: icon crop (bytes / PIL Image / array), item type, optional slot hint
2. Fetch the atlas for the item type once
3. For each trim variant: normalize, compute pHash + histogram signature
4. Score every eligible (item, hash variant) pair: confidence from Hamming
   distance and histogram delta
5. Keep the best candidate across all variants
6. Below the hard floor: vision fallback or "Unknown"
   Below the soft floor: prefer the vision fallback, keep hash provenance
   Otherwise: trust the hash match
"""

import logging
import math
import re
from dataclasses import replace
from typing import Callable, List, Optional

from PIL import Image

from src.config import ACCESSORY_BUMP, HARD_FLOOR, SOFT_FLOOR
from src.database.atlas import AtlasItem, AtlasRepository
from src.database.schema import SessionLocal
from src.indexing.histogram import hist_dist16
from src.indexing.image_processor import CropInput, NormalizationOptions, decode_crop
from src.indexing.phash import hamming64
from src.indexing.signature import Signature, compute_signature
from src.recognition.fallback import FallbackLike, as_vision_fallback
from src.recognition.models import MatchCandidate, MatchResult

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
VISION_FALLBACK_VARIANT = "vision-fallback"

# Order only breaks ties; scoring picks the winner
TRIM_VARIANTS = (
    ("trim12", NormalizationOptions(trim_fraction=0.12, sharpen=True)),
    ("trim06", NormalizationOptions(trim_fraction=0.06, sharpen=True)),
    ("trim20", NormalizationOptions(trim_fraction=0.20, sharpen=True)),
    ("noTrim", NormalizationOptions(trim_fraction=0.0, sharpen=True)),
)

ACCESSORY_SLOT = re.compile(r"^acc", re.IGNORECASE)


def compute_confidence(dist: int, hist_delta: float, slot_hint: Optional[str] = None) -> int:
    """
    Blend Hamming distance and histogram delta into a 0-100 confidence

    confidence = round(100 - (dist * 1.2 + hist_delta * 25) + bump), where
    bump is 2 for accessory slot hints. Rounds half up.

    Args:
        dist: Hamming distance (0-64)
        hist_delta: Histogram distance (0.0-1.0)
        slot_hint: Equipment slot hint

    Returns:
        Integer confidence clamped to [0, 100]
    """
    bump = ACCESSORY_BUMP if slot_hint and ACCESSORY_SLOT.match(slot_hint) else 0
    raw = 100 - (dist * 1.2 + (hist_delta or 0) * 25) + bump
    return max(0, min(100, int(math.floor(raw + 0.5))))


def slot_allows(item: AtlasItem, slot_hint: Optional[str]) -> bool:
    """Items tagged with a different slot than the hint are ineligible."""
    return not slot_hint or not item.item_slot or item.item_slot == slot_hint


def evaluate_variant(
    signature: Signature,
    atlas: List[AtlasItem],
    slot_hint: Optional[str]
) -> Optional[MatchCandidate]:
    """
    Score one query signature against every eligible atlas hash

    Returns:
        Best MatchCandidate, or None if nothing was eligible
    """
    best = None

    for item in atlas:
        if not slot_allows(item, slot_hint):
            continue
        for variant in item.hashes:
            dist = hamming64(signature.phash, variant.phash)
            hist_delta = hist_dist16(signature.ahsv, variant.ahsv) if variant.ahsv is not None else 0.0
            candidate = MatchCandidate(
                canonical_name=item.canonical_name,
                confidence=compute_confidence(dist, hist_delta, slot_hint),
                dist=dist,
                hist_delta=hist_delta,
                item_slot=item.item_slot,
                source=variant.source,
                phash=signature.phash,
                ahsv=signature.ahsv
            )
            if best is None or candidate.rank_key() < best.rank_key():
                best = candidate

    return best


class IconMatcher:
    """Identifies item icons by perceptual hash, escalating to a vision fallback."""

    def __init__(
        self,
        atlas: Optional[AtlasRepository] = None,
        vision_fallback: FallbackLike = None,
        decoder: Callable[[CropInput], Image.Image] = decode_crop,
        hard_floor: int = HARD_FLOOR,
        soft_floor: int = SOFT_FLOOR
    ):
        """
        Initialize icon matcher

        Args:
            atlas: Atlas repository (defaults to the configured database)
            vision_fallback: VisionFallback or fn(crop, item_type, slot_hint)
            decoder: Turns the raw crop into a PIL Image; must raise on bad input
            hard_floor: Confidence below which the hash match is discarded
            soft_floor: Confidence from which the hash match is trusted outright
        """
        self.atlas = atlas if atlas is not None else AtlasRepository(SessionLocal)
        self.vision_fallback = as_vision_fallback(vision_fallback)
        self.decoder = decoder
        self.hard_floor = hard_floor
        self.soft_floor = soft_floor

    def set_vision_fallback(self, fallback: FallbackLike):
        """Replace the vision fallback strategy."""
        self.vision_fallback = as_vision_fallback(fallback)

    def best_candidate(self, image: Image.Image, atlas: List[AtlasItem], slot_hint: Optional[str]):
        """
        Run every trim variant and keep the globally best candidate

        Returns:
            Tuple of (MatchCandidate or None, winning variant name or None)
        """
        best = None
        chosen = None

        for name, options in TRIM_VARIANTS:
            signature = compute_signature(image, options)
            candidate = evaluate_variant(signature, atlas, slot_hint)
            if candidate is None:
                continue
            logger.debug(
                f"  {name}: {candidate.canonical_name} confidence={candidate.confidence} "
                f"dist={candidate.dist} hist={candidate.hist_delta:.3f}"
            )
            if best is None or candidate.rank_key() < best.rank_key():
                best = candidate
                chosen = name

        return best, chosen

    def match_crop(
        self,
        crop: CropInput,
        item_type: str,
        slot_hint: Optional[str] = None,
        allow_fallback: bool = True
    ) -> MatchResult:
        """
        Identify the item depicted by an icon crop

        Args:
            crop: Encoded bytes, PIL Image or uint8 array
            item_type: Top-level category to search ('gear', 'relic')
            slot_hint: Equipment slot of the crop, if known
            allow_fallback: Whether the vision fallback may be consulted

        Returns:
            MatchResult; canonical_name is "Unknown" when nothing could be identified

        Raises:
            CropDecodeError: If the crop cannot be decoded
        """
        image = self.decoder(crop)
        atlas = self.atlas.fetch_atlas(item_type)

        best, chosen = self.best_candidate(image, atlas, slot_hint)

        if best is None or best.confidence < self.hard_floor:
            if best is None:
                logger.info(f"No eligible {item_type} candidates (slot={slot_hint})")
            else:
                logger.info(
                    f"Hash match {best.canonical_name} below hard floor "
                    f"({best.confidence} < {self.hard_floor})"
                )
            if allow_fallback:
                vision = self.vision_fallback.classify(crop, item_type, slot_hint)
                if vision is not None:
                    logger.info(f"Vision fallback identified {vision.canonical_name}")
                    return replace(
                        vision,
                        dist=None,
                        phash=None,
                        ahsv=None,
                        variant=VISION_FALLBACK_VARIANT
                    )
            return MatchResult(canonical_name=UNKNOWN_NAME, confidence=0, variant=chosen)

        if best.confidence < self.soft_floor and allow_fallback:
            logger.info(
                f"Hash match {best.canonical_name} inconclusive "
                f"({best.confidence} < {self.soft_floor}), consulting vision fallback"
            )
            vision = self.vision_fallback.classify(crop, item_type, slot_hint)
            if vision is not None:
                logger.info(f"Vision fallback identified {vision.canonical_name}")
                return replace(
                    vision,
                    dist=best.dist,
                    phash=best.phash,
                    ahsv=best.ahsv,
                    variant=VISION_FALLBACK_VARIANT
                )

        logger.info(f"Matched {best.canonical_name} (confidence={best.confidence}, variant={chosen})")
        return MatchResult(
            canonical_name=best.canonical_name,
            confidence=best.confidence,
            dist=best.dist,
            phash=best.phash,
            ahsv=best.ahsv,
            variant=chosen,
            source=best.source
        )

    match_crop_to_item = match_crop
