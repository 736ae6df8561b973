"""
src/tests/conftest.py: Pytest configuration and shared fixtures

Provides:
- Synthetic icon images
- Temporary atlas database setup/teardown
- Stub atlas and recording vision fallback
"""

import io
import pytest
import tempfile
import shutil
from pathlib import Path
import logging

from PIL import Image, ImageDraw

from src.recognition.fallback import VisionFallback

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def draw_icon(color='steelblue', shape='sword', size=96):
    """Draw a simple item icon on a dark frame."""
    img = Image.new('RGBA', (size, size), (30, 30, 40, 255))
    draw = ImageDraw.Draw(img)

    # Frame
    draw.rectangle([2, 2, size - 3, size - 3], outline=(200, 170, 60, 255), width=4)

    if shape == 'sword':
        draw.polygon([(size * 0.25, size * 0.75), (size * 0.7, size * 0.2), (size * 0.8, size * 0.3), (size * 0.3, size * 0.8)], fill=color)
        draw.rectangle([size * 0.2, size * 0.65, size * 0.4, size * 0.7], fill='sienna')
    elif shape == 'shield':
        draw.ellipse([size * 0.25, size * 0.2, size * 0.75, size * 0.8], fill=color)
        draw.line([size * 0.5, size * 0.25, size * 0.5, size * 0.75], fill='white', width=5)
    elif shape == 'ring':
        draw.ellipse([size * 0.3, size * 0.3, size * 0.7, size * 0.7], outline=color, width=8)
        draw.ellipse([size * 0.45, size * 0.2, size * 0.55, size * 0.3], fill='red')
    else:
        draw.rectangle([size * 0.3, size * 0.3, size * 0.7, size * 0.7], fill=color)

    return img


def to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def bits_hex(count: int) -> str:
    """64-char hex string with ``count`` low bits set."""
    return format((1 << count) - 1, '064x')


@pytest.fixture
def temp_dir():
    """
    Function-scoped temporary directory

    Yields:
        Path to temporary directory (cleaned up after test)
    """
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path

    # Cleanup
    if temp_path.exists():
        shutil.rmtree(temp_path)


@pytest.fixture
def sword_icon():
    return draw_icon('steelblue', 'sword')


@pytest.fixture
def sword_icon_bytes(sword_icon):
    return to_png_bytes(sword_icon)


# Database fixtures

@pytest.fixture
def test_engine(temp_dir):
    """
    Create temporary test database engine with all tables

    Yields:
        SQLAlchemy engine
    """
    from sqlalchemy import create_engine
    from src.database.schema import Base

    db_path = temp_dir / 'test.db'
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    from sqlalchemy.orm import sessionmaker

    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def test_db(test_session_factory):
    """
    SQLAlchemy session for the test database

    Yields:
        Session (closed after test)
    """
    session = test_session_factory()
    yield session
    session.close()


# Matcher collaborators

class StaticAtlas:
    """Atlas repository stub returning a fixed item list."""

    def __init__(self, items):
        self.items = items
        self.calls = []

    def fetch_atlas(self, item_type):
        self.calls.append(item_type)
        return list(self.items)


class RecordingFallback(VisionFallback):
    """Vision fallback stub that records calls and returns a canned result."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def classify(self, crop, item_type, slot_hint):
        self.calls.append((crop, item_type, slot_hint))
        if self.error is not None:
            raise self.error
        return self.result

