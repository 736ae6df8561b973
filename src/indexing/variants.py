"""
src/indexing/variants.py: Synthetic reference variants

For each '<type>_<slot>_<name>.png' file in the icons root, writes
    <type>/<slug>/base.png
    <type>/<slug>/<slot>-bright.png     brightness 1.1, saturation 1.05
    <type>/<slug>/<slot>-contrast.png   brightness 0.95, contrast 1.2
so the atlas seeder picks them up as extra hash variants. Existing files
are left untouched.
"""

import logging
import shutil
from pathlib import Path
from typing import Iterable, List

from PIL import Image, ImageEnhance, ImageOps

from src.config import ICONS_DIR, SEED_ITEM_TYPES
from src.indexing.seeder import is_image, make_slug, parse_icon_file

logger = logging.getLogger(__name__)

VARIANT_SIZE = 128


def enhance_variant(
    image: Image.Image,
    brightness: float = 1.0,
    saturation: float = 1.0,
    contrast: float = 1.0
) -> Image.Image:
    """Cover-resize to VARIANT_SIZE and adjust color, keeping alpha."""
    image = ImageOps.fit(image.convert('RGBA'), (VARIANT_SIZE, VARIANT_SIZE), Image.Resampling.LANCZOS)
    alpha = image.getchannel('A')
    rgb = image.convert('RGB')

    rgb = ImageEnhance.Brightness(rgb).enhance(brightness)
    rgb = ImageEnhance.Color(rgb).enhance(saturation)
    rgb = ImageEnhance.Contrast(rgb).enhance(contrast)

    rgb.putalpha(alpha)
    return rgb


def generate_icon_variants(
    icons_dir: Path = ICONS_DIR,
    item_types: Iterable[str] = SEED_ITEM_TYPES
) -> List[Path]:
    """
    Write missing variant images for every root-level reference icon

    Returns:
        Paths of the files written
    """
    icons_dir = Path(icons_dir)
    if not icons_dir.is_dir():
        raise FileNotFoundError(f"Icons directory not found: {icons_dir}")

    item_types = tuple(item_types)
    written = []

    for source in sorted(icons_dir.iterdir()):
        if not source.is_file() or not is_image(source):
            continue
        parsed = parse_icon_file(source.name, item_types)
        if parsed is None:
            continue

        target_dir = icons_dir / parsed.item_type / make_slug(parsed.name)
        target_dir.mkdir(parents=True, exist_ok=True)
        slot = parsed.item_slot.lower()

        base = target_dir / 'base.png'
        if not base.exists():
            shutil.copyfile(source, base)
            written.append(base)

        targets = [
            (target_dir / f'{slot}-bright.png', dict(brightness=1.1, saturation=1.05)),
            (target_dir / f'{slot}-contrast.png', dict(brightness=0.95, contrast=1.2)),
        ]
        pending = [(path, params) for path, params in targets if not path.exists()]
        if not pending:
            continue

        try:
            with Image.open(source) as img:
                for path, params in pending:
                    enhance_variant(img, **params).save(path, format='PNG')
                    written.append(path)
        except OSError as e:
            logger.warning(f"Failed to read {source.name}: {e}")

    for path in written:
        logger.info(f"Wrote {path.relative_to(icons_dir)}")
    logger.info(f"Variants ensured ({len(written)} written)")
    return written
