"""
Vision fallback interface.

Defines the strategy the matcher consults when a hash match is not
trustworthy enough on its own. Implementations typically wrap a call to
an external vision-capable model; timeouts and retries are theirs to
impose.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Union

from src.indexing.image_processor import CropInput
from src.recognition.models import MatchResult


class VisionFallback(ABC):
    """
    Abstract base class for vision fallbacks.

    Example usage:
        class ModelFallback(VisionFallback):
            def classify(self, crop, item_type, slot_hint):
                name = ask_model(crop, item_type, slot_hint)
                return MatchResult(canonical_name=name, confidence=75) if name else None

        matcher.set_vision_fallback(ModelFallback())
    """

    @abstractmethod
    def classify(
        self,
        crop: CropInput,
        item_type: str,
        slot_hint: Optional[str]
    ) -> Optional[MatchResult]:
        """
        Identify a crop the hash cascade could not settle.

        Args:
            crop: The crop exactly as passed to match_crop
            item_type: Top-level item category
            slot_hint: Equipment slot hint, if any

        Returns:
            MatchResult, or None when the crop could not be identified.
            Exceptions propagate to the match_crop caller.
        """
        pass


class NullVisionFallback(VisionFallback):
    """Fallback that never identifies anything."""

    def classify(self, crop, item_type, slot_hint):
        return None


class CallableVisionFallback(VisionFallback):
    """Adapts a plain function ``fn(crop, item_type, slot_hint)`` to the interface."""

    def __init__(self, fn: Callable[..., Any]):
        self.fn = fn

    def classify(self, crop, item_type, slot_hint):
        result = self.fn(crop, item_type, slot_hint)
        if result is None or isinstance(result, MatchResult):
            return result
        if isinstance(result, Mapping):
            return MatchResult.from_mapping(result)
        raise TypeError(f"Vision fallback returned unsupported type: {type(result).__name__}")


FallbackLike = Union[VisionFallback, Callable[..., Any], None]


def as_vision_fallback(fallback: FallbackLike) -> VisionFallback:
    """Coerce None, a VisionFallback or a plain function into a VisionFallback."""
    if fallback is None:
        return NullVisionFallback()
    if isinstance(fallback, VisionFallback):
        return fallback
    if callable(fallback):
        return CallableVisionFallback(fallback)
    raise TypeError(f"Vision fallback must be callable, got {type(fallback).__name__}")
