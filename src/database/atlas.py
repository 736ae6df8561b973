"""
src/database/atlas.py: Read path over the catalogue of known icons

fetch_atlas() returns every item of a type with its base hash plus the
auxiliary variants from item_icon_hashes. Older schemas without the
auxiliary table fall back to base hashes only.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.database.schema import IconItem, IconHash

logger = logging.getLogger(__name__)

SOURCE_BASE = "base"
SOURCE_ATLAS = "atlas"
SOURCE_LEGACY = "legacy"


@dataclass(frozen=True)
class HashVariant:
    """One stored reference fingerprint. ahsv is None for histogram-less variants."""
    phash: str
    ahsv: Optional[str]
    source: str


@dataclass
class AtlasItem:
    """Catalogued reference item with its hash variants"""
    id: Any
    canonical_name: str
    item_type: Optional[str] = None
    item_slot: Optional[str] = None
    hashes: List[HashVariant] = field(default_factory=list)

    def has_phash(self, phash: str) -> bool:
        return any(h.phash == phash for h in self.hashes)


def hydrate_atlas(rows: Iterable[Dict[str, Any]]) -> List[AtlasItem]:
    """
    Group joined item/hash rows into AtlasItems

    Each row carries id, canonical_name, item_type, item_slot, base_phash,
    extra_phash and extra_ahsv. The base hash is added once per item; each
    distinct extra phash is appended once, first occurrence wins. Items
    that end up with no hashes are dropped.

    Args:
        rows: Row mappings in query order

    Returns:
        List of AtlasItem in first-seen order
    """
    by_id: Dict[Any, AtlasItem] = {}

    for row in rows:
        item = by_id.get(row["id"])
        if item is None:
            item = AtlasItem(
                id=row["id"],
                canonical_name=row["canonical_name"],
                item_type=row.get("item_type"),
                item_slot=row.get("item_slot")
            )
            by_id[row["id"]] = item
            base_phash = row.get("base_phash")
            if base_phash:
                item.hashes.append(HashVariant(base_phash, None, SOURCE_BASE))

        extra_phash = row.get("extra_phash")
        if extra_phash and not item.has_phash(extra_phash):
            item.hashes.append(HashVariant(extra_phash, row.get("extra_ahsv") or None, SOURCE_ATLAS))

    return [item for item in by_id.values() if item.hashes]


class AtlasRepository:
    """Catalogue lookups backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        """
        Args:
            session_factory: Callable returning a new Session, or None when
                no store is configured (every fetch then returns [])
        """
        self.session_factory = session_factory
        self._legacy_warned = False
        self._warn_lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self.session_factory is not None

    def _warn_legacy_once(self, error: Exception):
        with self._warn_lock:
            if self._legacy_warned:
                return
            self._legacy_warned = True
        logger.warning(f"Multi-hash lookup failed, falling back to legacy hashes: {error}")

    def fetch_atlas(self, item_type: str) -> List[AtlasItem]:
        """
        Fetch all known items of ``item_type`` with their hash variants

        Never raises for store problems: a failing primary query falls back
        to base hashes only, and a failing fallback yields [].
        """
        if not self.is_configured:
            return []

        try:
            return hydrate_atlas(self._query_multi_hash(item_type))
        except SQLAlchemyError as e:
            self._warn_legacy_once(e)

        try:
            return self._query_legacy(item_type)
        except SQLAlchemyError as e:
            logger.error(f"Legacy icon lookup failed: {e}")
            return []

    def _query_multi_hash(self, item_type: str) -> List[Dict[str, Any]]:
        stmt = (
            select(
                IconItem.id,
                IconItem.canonical_name,
                IconItem.item_type,
                IconItem.item_slot,
                IconItem.phash.label("base_phash"),
                IconHash.phash.label("extra_phash"),
                IconHash.ahsv.label("extra_ahsv")
            )
            .outerjoin(IconHash, IconHash.item_id == IconItem.id)
            .where(IconItem.item_type == item_type)
            .order_by(IconItem.id, IconHash.id)
        )
        db = self.session_factory()
        try:
            return [dict(row) for row in db.execute(stmt).mappings()]
        finally:
            db.close()

    def _query_legacy(self, item_type: str) -> List[AtlasItem]:
        stmt = (
            select(IconItem.id, IconItem.canonical_name, IconItem.item_type, IconItem.item_slot, IconItem.phash)
            .where(IconItem.item_type == item_type)
            .order_by(IconItem.id)
        )
        db = self.session_factory()
        try:
            rows = db.execute(stmt).all()
        finally:
            db.close()

        return [
            AtlasItem(
                id=row.id,
                canonical_name=row.canonical_name,
                item_type=row.item_type,
                item_slot=row.item_slot,
                hashes=[HashVariant(row.phash, None, SOURCE_LEGACY)]
            )
            for row in rows
            if row.phash
        ]
