"""
src/tests/test_phash.py: Unit tests for pHash utilities

Tests:
- Hash format (64 hex characters)
- Identical images should have Hamming distance 0
- Hamming distance symmetry, bounds and worst-case inputs
"""

import pytest
from PIL import ImageDraw

from src.indexing.phash import compute_phash, fit_hex, hamming64
from src.tests.conftest import bits_hex, draw_icon


class TestPHashBasics:
    """Test basic pHash functionality"""

    def test_compute_phash_returns_64_hex_chars(self):
        phash = compute_phash(draw_icon().resize((64, 64)))
        assert isinstance(phash, str)
        assert len(phash) == 64
        int(phash, 16)

    def test_accepts_path(self, temp_dir):
        path = temp_dir / 'icon.png'
        draw_icon().save(path)
        assert len(compute_phash(str(path))) == 64

    def test_identical_images_have_zero_distance(self):
        img1 = draw_icon('steelblue', 'sword')
        img2 = draw_icon('steelblue', 'sword')
        assert hamming64(compute_phash(img1), compute_phash(img2)) == 0

    def test_similar_images_closer_than_different(self):
        base = draw_icon('steelblue', 'sword')
        similar = base.copy()
        ImageDraw.Draw(similar).rectangle([60, 60, 63, 63], fill='white')
        different = draw_icon('peru', 'shield')

        d_similar = hamming64(compute_phash(base), compute_phash(similar))
        d_different = hamming64(compute_phash(base), compute_phash(different))
        assert d_similar < d_different


class TestFitHex:
    """Test the 64-character compatibility guarantee"""

    def test_pads_on_the_right(self):
        assert fit_hex('abc') == 'abc' + '0' * 61

    def test_truncates(self):
        assert fit_hex('f' * 80) == 'f' * 64

    def test_exact_length_unchanged(self):
        value = '0123456789abcdef' * 4
        assert fit_hex(value) == value


class TestHamming64:
    """Test Hamming distance metric"""

    def test_self_distance_is_zero(self):
        h = '0123456789abcdef' * 4
        assert hamming64(h, h) == 0

    def test_counts_differing_bits(self):
        assert hamming64('0' * 64, bits_hex(5)) == 5
        assert hamming64(bits_hex(3), bits_hex(10)) == 7

    def test_symmetric(self):
        a = '0123456789abcdef' * 4
        b = 'fedcba9876543210' * 4
        assert hamming64(a, b) == hamming64(b, a)

    def test_capped_at_64(self):
        assert hamming64('0' * 64, 'f' * 64) == 64

    @pytest.mark.parametrize('a,b', [
        (None, '0' * 64),
        ('0' * 64, None),
        ('', '0' * 64),
        ('0' * 64, '0' * 63),
        ('zz' * 32, '0' * 64),
    ])
    def test_invalid_inputs_are_worst_case(self, a, b):
        assert hamming64(a, b) == 64

    def test_bounds_for_real_hashes(self):
        hashes = [compute_phash(draw_icon(c, s)) for c, s in [
            ('steelblue', 'sword'), ('peru', 'shield'), ('gold', 'ring'), ('green', 'box')
        ]]
        for a in hashes:
            for b in hashes:
                assert 0 <= hamming64(a, b) <= 64
