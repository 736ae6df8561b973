"""
src/indexing/seeder.py: Offline atlas seeding

- Registers catalogue items with a base hash from a reference image
- Bulk-registers items from <type>_<slot>_<name>.png files in the icons root
- Walks the icons directory for extra reference images per item
- Stores each image's signature (trim 0.12 + sharpen) as an atlas variant

Recognized layouts under the icons root:
    <type>/<Item Name>/*.png          one directory per item
    <type>/<type>_<slot>_<name>.png   flat files inside the type folder
    <type>_<slot>_<name>.png          flat files at the root
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tqdm import tqdm

from src.config import ICONS_DIR, SEED_ITEM_TYPES, SEED_TRIM
from src.database import db as db_ops
from src.database.schema import IconItem
from src.indexing.image_processor import CropDecodeError, NormalizationOptions
from src.indexing.signature import Signature, compute_signature

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg'}
# Base hash uses the default normalization, variants the seeding trim
BASE_OPTIONS = NormalizationOptions()
SEED_OPTIONS = NormalizationOptions(trim_fraction=SEED_TRIM, sharpen=True)


class IconFile(NamedTuple):
    item_type: str
    item_slot: str
    name: str


def make_slug(value: Optional[str]) -> str:
    """Lowercase, collapse non-alphanumerics to '-', strip edge dashes."""
    slug = re.sub(r'[^a-z0-9]+', '-', str(value or '').strip().lower())
    return slug.strip('-')


def make_key(item_type: str, slug: str) -> str:
    return f"{item_type.lower()}|{slug}"


def parse_flat_file(item_type: str, file_name: str) -> Optional[str]:
    """
    Extract the item name from a flat file name

    'gear_weapon_Iron_Sword.png' -> 'Iron_Sword'; 'gear_Iron_Sword.png' -> 'Iron_Sword'
    (two-part names keep everything after the type).

    Returns:
        Item name, or None if the file does not belong to ``item_type``
    """
    stem = re.sub(r'\.(png|jpe?g)$', '', file_name, flags=re.IGNORECASE)
    parts = stem.split('_')
    if parts[0].lower() != item_type.lower():
        return None
    if len(parts) < 3:
        return '_'.join(parts[1:])
    return '_'.join(parts[2:])


def parse_icon_file(file_name: str, item_types: Iterable[str] = SEED_ITEM_TYPES) -> Optional[IconFile]:
    """
    Parse a root-level '<type>_<slot>_<name>.<ext>' reference file

    The slot is the shortest word after the type; underscores in the
    name become spaces ('gear_weapon_Iron_Sword.png' -> gear, weapon, 'Iron Sword').

    Returns:
        IconFile, or None if the name does not follow the pattern
    """
    types = '|'.join(re.escape(t) for t in item_types)
    m = re.match(rf'^({types})_(\w+?)_(.+?)\.(png|jpe?g)$', file_name, flags=re.IGNORECASE)
    if not m:
        return None
    item_type, item_slot, name = m.group(1), m.group(2), m.group(3)
    return IconFile(item_type.lower(), item_slot, name.replace('_', ' '))


def is_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


def register_item(
    db: Session,
    canonical_name: str,
    item_type: str,
    image_path: Path,
    item_slot: Optional[str] = None
) -> Tuple[IconItem, Signature]:
    """
    Register a catalogue item with its base hash and first atlas variant

    An existing item gets its base hash refreshed, and its slot replaced
    when ``item_slot`` is given.

    Args:
        db: Database session
        canonical_name: Display name
        item_type: Top-level category
        image_path: Reference icon image
        item_slot: Optional equipment slot

    Returns:
        Tuple of (IconItem, atlas variant Signature of the reference image)
    """
    data = Path(image_path).read_bytes()
    base = compute_signature(data, BASE_OPTIONS)
    signature = compute_signature(data, SEED_OPTIONS)

    with db_ops.transaction(db):
        item = db_ops.get_item_by_name(db, canonical_name, item_type)
        if item is None:
            item = db_ops.create_item(
                db,
                canonical_name=canonical_name,
                item_type=item_type,
                item_slot=item_slot,
                phash=base.phash,
                commit=False
            )
        else:
            item.phash = base.phash
            if item_slot:
                item.item_slot = item_slot
        db_ops.add_icon_hash(db, item.id, signature.phash, signature.ahsv, commit=False)

    logger.info(f"Registered {item_type} {canonical_name} (id={item.id})")
    return item, signature


def seed_base_items(
    db: Session,
    icons_dir: Path = ICONS_DIR,
    item_types: Iterable[str] = SEED_ITEM_TYPES,
    show_progress: bool = False
) -> int:
    """
    Register every '<type>_<slot>_<name>' image in the icons root

    Files that do not follow the pattern, or fail to decode, are skipped.

    Returns:
        Number of items registered or refreshed
    """
    icons_dir = Path(icons_dir)
    if not icons_dir.is_dir():
        logger.info(f"No icons directory at {icons_dir}, nothing to seed")
        return 0

    item_types = tuple(t.lower() for t in item_types)
    files = [f for f in sorted(icons_dir.iterdir()) if f.is_file() and is_image(f)]
    registered = 0

    for path in tqdm(files, desc="Registering items", disable=not show_progress):
        parsed = parse_icon_file(path.name, item_types)
        if parsed is None:
            logger.info(f"Skipping {path.name}: not a <type>_<slot>_<name> file")
            continue
        try:
            register_item(db, parsed.name, parsed.item_type, path, parsed.item_slot)
        except (CropDecodeError, OSError, SQLAlchemyError) as e:
            logger.warning(f"Failed to register {path.name}: {e}")
            continue
        registered += 1

    logger.info(f"Registered {registered} items from {icons_dir}")
    return registered


class AtlasSeeder:
    """Seeds auxiliary hash variants from a directory of reference icons."""

    def __init__(
        self,
        db: Session,
        icons_dir: Path = ICONS_DIR,
        item_types: Iterable[str] = SEED_ITEM_TYPES
    ):
        self.db = db
        self.icons_dir = Path(icons_dir)
        self.item_types = tuple(t.lower() for t in item_types)
        self.lookup: Dict[str, IconItem] = {}
        self.seeded = 0
        self.skipped = 0

    def build_lookup(self):
        """Index every registered item by (type, slug)."""
        self.lookup = {}
        for item in self.db.query(IconItem).all():
            self.lookup[make_key(item.item_type, make_slug(item.canonical_name))] = item
        logger.debug(f"Lookup holds {len(self.lookup)} items")

    def resolve_item(self, item_type: str, raw_name: str) -> Optional[IconItem]:
        attempts = [
            make_slug(raw_name),
            make_slug(raw_name.replace('_', ' ')),
            make_slug(raw_name.replace('-', ' ')),
        ]
        for slug in attempts:
            item = self.lookup.get(make_key(item_type, slug))
            if item is not None:
                return item
        return None

    def find_variant_files(self) -> List[Tuple[IconItem, Path]]:
        """
        Collect (item, image path) pairs from every supported layout

        Unknown directories and files are logged and skipped.
        """
        pairs = []

        for item_type in self.item_types:
            type_dir = self.icons_dir / item_type
            if not type_dir.is_dir():
                continue
            for entry in sorted(type_dir.iterdir()):
                if entry.is_dir():
                    item = self.resolve_item(item_type, entry.name)
                    if item is None:
                        logger.warning(f"Unknown {item_type} directory \"{entry.name}\", skipping")
                        continue
                    pairs.extend((item, f) for f in sorted(entry.iterdir()) if f.is_file() and is_image(f))
                elif entry.is_file() and is_image(entry):
                    pairs.extend(self._resolve_flat(item_type, entry))

        for entry in sorted(self.icons_dir.iterdir()):
            if not entry.is_file() or not is_image(entry):
                continue
            prefix = entry.name.split('_', 1)[0].lower()
            if prefix in self.item_types:
                pairs.extend(self._resolve_flat(prefix, entry))

        return pairs

    def _resolve_flat(self, item_type: str, path: Path) -> List[Tuple[IconItem, Path]]:
        name = parse_flat_file(item_type, path.name)
        if not name:
            return []
        item = self.resolve_item(item_type, name)
        if item is None:
            logger.warning(f"No DB item for {item_type} \"{name}\", skipping {path.name}")
            self.skipped += 1
            return []
        return [(item, path)]

    def seed_file(self, item: IconItem, path: Path) -> bool:
        """
        Hash one reference image and store it for ``item``

        Returns:
            True if a new variant was stored
        """
        try:
            signature = compute_signature(path.read_bytes(), SEED_OPTIONS)
            inserted = db_ops.add_icon_hash(self.db, item.id, signature.phash, signature.ahsv)
        except (CropDecodeError, OSError, SQLAlchemyError) as e:
            self.db.rollback()
            logger.warning(f"Failed to seed {path}: {e}")
            self.skipped += 1
            return False

        if inserted:
            self.seeded += 1
            logger.info(f"Seeded {item.item_type} {item.canonical_name} <- {path.relative_to(self.icons_dir)}")
        return inserted

    def run(self, show_progress: bool = False) -> int:
        """
        Seed every recognized reference image

        Returns:
            Number of new hash variants stored
        """
        if not self.icons_dir.is_dir():
            logger.info(f"No icons directory at {self.icons_dir}, nothing to seed")
            return 0

        self.build_lookup()
        pairs = self.find_variant_files()

        for item, path in tqdm(pairs, desc="Seeding icons", disable=not show_progress):
            self.seed_file(item, path)

        logger.info(f"Seeded {self.seeded} hash variants ({self.skipped} skipped)")
        return self.seeded
