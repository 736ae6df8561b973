"""
src/recognition/models.py: Match records returned by the icon matcher
"""

import json
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class MatchCandidate:
    """Scored (atlas item, hash variant) pair for one query signature"""
    canonical_name: str
    confidence: int
    dist: int
    hist_delta: float
    item_slot: Optional[str]
    source: str

    # Query signature that produced this score (not the atlas entry's)
    phash: str
    ahsv: str

    def rank_key(self):
        """Sort key: confidence desc, then dist asc, then hist_delta asc."""
        return (-self.confidence, self.dist, self.hist_delta)


@dataclass(frozen=True)
class MatchResult:
    """Public outcome of a match_crop call"""
    canonical_name: str
    confidence: int
    dist: Optional[int] = None
    phash: Optional[str] = None
    ahsv: Optional[str] = None
    variant: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MatchResult":
        """Build a result from a plain mapping, ignoring unknown keys."""
        missing = [name for name in ('canonical_name', 'confidence') if name not in data]
        if missing:
            raise TypeError(f"Match mapping is missing required fields: {', '.join(missing)}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    def to_json(self) -> str:
        """Convert to JSON string"""
        return json.dumps(self.to_dict(), indent=2)
