"""
Recognition package for item icon identification.

This package provides:
- IconMatcher: Multi-variant hash cascade with confidence-gated fallback
- MatchResult / MatchCandidate: Match records
- VisionFallback: Strategy interface for the external classifier
"""

from src.recognition.models import MatchCandidate, MatchResult
from src.recognition.fallback import (
    VisionFallback,
    NullVisionFallback,
    CallableVisionFallback,
    as_vision_fallback,
)
from src.recognition.matcher import IconMatcher, compute_confidence

__all__ = [
    'IconMatcher',
    'compute_confidence',
    'MatchCandidate',
    'MatchResult',
    'VisionFallback',
    'NullVisionFallback',
    'CallableVisionFallback',
    'as_vision_fallback',
]
