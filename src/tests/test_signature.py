"""
src/tests/test_signature.py: Signature extraction tests
"""

from src.indexing.image_processor import NormalizationOptions
from src.indexing.signature import Signature, compute_signature
from src.tests.conftest import draw_icon, to_png_bytes


def test_signature_format(sword_icon_bytes):
    sig = compute_signature(sword_icon_bytes)
    assert isinstance(sig, Signature)
    assert len(sig.phash) == 64
    int(sig.phash, 16)
    assert len(sig.ahsv) == 16
    assert sig.ahsv.isdigit()


def test_signature_is_deterministic(sword_icon_bytes):
    opts = NormalizationOptions(trim_fraction=0.12, sharpen=True)
    runs = {compute_signature(sword_icon_bytes, opts) for _ in range(3)}
    assert len(runs) == 1


def test_bytes_and_image_inputs_agree(sword_icon, sword_icon_bytes):
    opts = NormalizationOptions(trim_fraction=0.06)
    assert compute_signature(sword_icon, opts) == compute_signature(sword_icon_bytes, opts)


def test_different_icons_have_different_signatures(sword_icon_bytes):
    other = to_png_bytes(draw_icon('peru', 'shield'))
    assert compute_signature(sword_icon_bytes) != compute_signature(other)
