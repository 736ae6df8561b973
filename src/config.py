"""Configuration for the icon identification engine."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent

# Paths
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", "data/icon_atlas.db"))
DATABASE_PATH = BASE_DIR / DATABASE_PATH if not DATABASE_PATH.is_absolute() else DATABASE_PATH

# Empty string means "no store configured": the atlas is always empty
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATABASE_PATH}")

ICONS_DIR = Path(os.getenv("ICONS_DIR", "icons"))
ICONS_DIR = BASE_DIR / ICONS_DIR if not ICONS_DIR.is_absolute() else ICONS_DIR

# Canonical sizes (pixels per side)
HASH_SIZE = 64
HIST_SIZE = 32

# Signature format
PHASH_HEX_LENGTH = 64
HIST_BUCKETS = 16

# Trim bounds: remaining region must stay larger than this on each axis
MIN_TRIMMED_SIDE = 4

# Recognition
HARD_FLOOR = int(os.getenv("MATCH_HARD_FLOOR", "40"))
SOFT_FLOOR = int(os.getenv("MATCH_SOFT_FLOOR", "70"))
ACCESSORY_BUMP = 2

# Seeding
SEED_TRIM = 0.12
SEED_ITEM_TYPES = ("gear", "relic")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Create directories
if DATABASE_URL.startswith("sqlite:///"):
    DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
