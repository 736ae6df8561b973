"""
src/database/db.py: Icon atlas database operations
Provides helper functions for common database operations
"""

from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import Optional
from contextlib import contextmanager

from src.database.schema import IconItem, IconHash


def get_item_by_name(db: Session, canonical_name: str, item_type: str) -> Optional[IconItem]:
    """Get item by canonical name within a type"""
    return db.query(IconItem).filter(
        and_(IconItem.canonical_name == canonical_name, IconItem.item_type == item_type)
    ).first()


def create_item(
    db: Session,
    canonical_name: str,
    item_type: str,
    item_slot: Optional[str] = None,
    phash: Optional[str] = None,
    commit: bool = True
) -> IconItem:
    """
    Create a new catalogue item

    Args:
        canonical_name: Display name
        item_type: Top-level category ('gear', 'relic')
        item_slot: Optional equipment slot tag
        phash: Base registration hash
        commit: If False, don't commit immediately (for batch operations)
    """
    item = IconItem(
        canonical_name=canonical_name,
        item_type=item_type,
        item_slot=item_slot,
        phash=phash
    )
    db.add(item)
    if commit:
        db.commit()
        db.refresh(item)
    else:
        db.flush()
    return item


def hash_exists(db: Session, item_id: int, phash: str) -> bool:
    return db.query(IconHash.id).filter(
        and_(IconHash.item_id == item_id, IconHash.phash == phash)
    ).first() is not None


def add_icon_hash(
    db: Session,
    item_id: int,
    phash: str,
    ahsv: Optional[str],
    commit: bool = True
) -> bool:
    """
    Store an auxiliary hash variant for an item

    Duplicate (item_id, phash) pairs are ignored.

    Returns:
        True if a row was inserted, False if it already existed
    """
    if hash_exists(db, item_id, phash):
        return False

    db.add(IconHash(item_id=item_id, phash=phash, ahsv=ahsv))
    if commit:
        db.commit()
    else:
        db.flush()
    return True


@contextmanager
def transaction(db: Session):
    """
    Context manager for database transactions
    Automatically commits on success, rolls back on exception

    Usage:
        with transaction(db):
            db.add(some_object)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
