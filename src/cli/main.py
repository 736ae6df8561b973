"""
src/cli/main.py: CLI entry point using Click

Commands:
- init-db - Create the atlas tables
- register --name "Iron Sword" --type gear --slot weapon icon.png - Add a catalogue item
- seed-items --icons ./icons - Register items from <type>_<slot>_<name>.png files
- generate-variants --icons ./icons - Write brightness/contrast variants per item
- seed --icons ./icons - Store extra hash variants from reference images
- match --type gear --slot weapon crop.png - Identify an icon crop
"""

import click
from pathlib import Path
import logging

from src.config import LOG_LEVEL, ICONS_DIR

# Setup logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def open_session():
    from src.database.schema import SessionLocal

    if SessionLocal is None:
        raise click.ClickException("No database configured (DATABASE_URL is empty)")
    return SessionLocal()


@click.group()
def cli():
    """Icon identification engine CLI"""
    pass


@cli.command('init-db')
def init_db_command():
    """Create the item and hash tables."""
    from src.database.schema import init_db

    try:
        init_db()
    except RuntimeError as e:
        raise click.ClickException(str(e))
    click.echo("Database initialized")


@cli.command()
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.option('--name', 'canonical_name', required=True, help='Canonical item name')
@click.option('--type', 'item_type', required=True, help='Item type (e.g., gear, relic)')
@click.option('--slot', 'item_slot', default=None, help='Equipment slot (e.g., weapon, acc1)')
def register(image, canonical_name, item_type, item_slot):
    """Register an item with its reference icon IMAGE."""
    from src.indexing.seeder import register_item

    db = open_session()
    try:
        item, signature = register_item(db, canonical_name, item_type.lower(), Path(image), item_slot)
        click.echo(f"{item.id}\t{item.canonical_name}\t{signature.phash}\t{signature.ahsv}")
    finally:
        db.close()


@cli.command('seed-items')
@click.option('--icons', 'icons_dir', type=click.Path(file_okay=False), default=str(ICONS_DIR),
              help='Icons root directory')
@click.option('--type', 'item_types', multiple=True, help='Item types to register (default: gear, relic)')
def seed_items(icons_dir, item_types):
    """Register items from <type>_<slot>_<name>.png files in the icons root."""
    from src.indexing.seeder import seed_base_items
    from src.config import SEED_ITEM_TYPES

    db = open_session()
    try:
        registered = seed_base_items(db, Path(icons_dir), item_types or SEED_ITEM_TYPES, show_progress=True)
    finally:
        db.close()

    click.echo(f"Registered {registered} items")


@cli.command('generate-variants')
@click.option('--icons', 'icons_dir', type=click.Path(file_okay=False), default=str(ICONS_DIR),
              help='Icons root directory')
def generate_variants(icons_dir):
    """Write brightness and contrast variants of each root icon for seeding."""
    from src.indexing.variants import generate_icon_variants

    try:
        written = generate_icon_variants(Path(icons_dir))
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    click.echo(f"Wrote {len(written)} variant files")


@cli.command()
@click.option('--icons', 'icons_dir', type=click.Path(file_okay=False), default=str(ICONS_DIR),
              help='Icons root directory')
@click.option('--type', 'item_types', multiple=True, help='Item types to seed (default: gear, relic)')
def seed(icons_dir, item_types):
    """Seed atlas hash variants from reference icons."""
    from src.indexing.seeder import AtlasSeeder
    from src.config import SEED_ITEM_TYPES

    db = open_session()
    try:
        seeder = AtlasSeeder(db, Path(icons_dir), item_types or SEED_ITEM_TYPES)
        seeded = seeder.run(show_progress=True)
    finally:
        db.close()

    click.echo(f"Seeded {seeded} hash variants")


@cli.command()
@click.argument('crop', type=click.Path(exists=True, dir_okay=False))
@click.option('--type', 'item_type', required=True, help='Item type (e.g., gear, relic)')
@click.option('--slot', 'slot_hint', default=None, help='Slot hint (e.g., weapon, acc1)')
@click.option('--debug', is_flag=True, help='Log per-variant scores')
def match(crop, item_type, slot_hint, debug):
    """Identify the item shown in icon CROP."""
    from src.indexing.image_processor import CropDecodeError
    from src.recognition.matcher import IconMatcher

    if debug:
        logging.getLogger('src').setLevel(logging.DEBUG)

    matcher = IconMatcher()
    try:
        result = matcher.match_crop(Path(crop).read_bytes(), item_type.lower(), slot_hint, allow_fallback=False)
    except CropDecodeError as e:
        raise click.ClickException(str(e))

    click.echo(result.to_json())


if __name__ == '__main__':
    cli()
