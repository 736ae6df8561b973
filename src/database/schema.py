"""
src/database/schema.py: Database schema definitions using SQLAlchemy
"""

from sqlalchemy import create_engine, Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base, sessionmaker, relationship
from datetime import datetime

from src.config import DATABASE_URL

Base = declarative_base()


class IconItem(Base):
    """Catalogued game item with its base icon hash."""
    __tablename__ = "item_icons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    canonical_name = Column(String(255), nullable=False, index=True)
    item_type = Column(String(50), nullable=False, index=True)  # 'gear', 'relic'
    item_slot = Column(String(50), nullable=True, index=True)  # 'weapon', 'acc1', ...
    phash = Column(String(64), nullable=True)  # base registration hash
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    hashes = relationship("IconHash", back_populates="item", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<IconItem(id={self.id}, name='{self.canonical_name}', type='{self.item_type}', slot='{self.item_slot}')>"


class IconHash(Base):
    """Auxiliary hash variants harvested from additional reference images."""
    __tablename__ = "item_icon_hashes"
    __table_args__ = (UniqueConstraint("item_id", "phash", name="uq_item_icon_hash"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("item_icons.id", ondelete="CASCADE"), nullable=False, index=True)
    phash = Column(String(64), nullable=False)
    ahsv = Column(String(16), nullable=True)  # NULL for histogram-less variants
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationship
    item = relationship("IconItem", back_populates="hashes")

    def __repr__(self):
        return f"<IconHash(item_id={self.item_id}, phash={self.phash}, ahsv={self.ahsv})>"


# Database engine and session factory (None when no store is configured)
if DATABASE_URL:
    engine = create_engine(DATABASE_URL, echo=False)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
else:
    engine = None
    SessionLocal = None


def init_db(bind=None):
    """Initialize database - create all tables."""
    target = bind if bind is not None else engine
    if target is None:
        raise RuntimeError("No database configured (DATABASE_URL is empty)")
    Base.metadata.create_all(bind=target)
