"""
Tests for template loading and region cropping.
"""

import numpy as np
import pytest
from PIL import Image

from screen.errors import RegionOutOfBoundsError, TemplateDecodeError, TemplateMissingError
from screen.image import SearchRegion, crop_region, image_size, load_template

from conftest import solid_image


class TestSearchRegion:
    """Tests for SearchRegion."""

    def test_rect(self):
        """Rect is (left, top, right, bottom)."""
        region = SearchRegion(x=10, y=20, width=30, height=40)

        assert region.rect == (10, 20, 40, 60)

    def test_fits(self):
        """A region touching the screen edge still fits."""
        region = SearchRegion(x=70, y=50, width=30, height=50)

        assert region.fits(100, 100)
        assert not region.fits(99, 100)
        assert not region.fits(100, 99)

    def test_negative_origin_does_not_fit(self):
        """A region starting left of the screen is out of bounds."""
        assert not SearchRegion(x=-1, y=0, width=10, height=10).fits(100, 100)

    def test_empty_region_rejected(self):
        """Zero-sized regions are invalid."""
        with pytest.raises(ValueError):
            SearchRegion(x=0, y=0, width=0, height=10)


class TestCropRegion:
    """Tests for crop_region."""

    def test_copies_all_channels(self):
        """The crop is a pixel-for-pixel copy including alpha."""
        rng = np.random.default_rng(3)
        screen = rng.integers(0, 256, size=(60, 80, 4), dtype=np.uint8)
        region = SearchRegion(x=15, y=5, width=20, height=10)

        crop = crop_region(screen, region)

        assert image_size(crop) == (20, 10)
        assert np.array_equal(crop, screen[5:15, 15:35])

    def test_crop_is_independent(self):
        """Writing to the crop leaves the screen untouched."""
        screen = solid_image(50, 50, (1, 2, 3))
        crop = crop_region(screen, SearchRegion(x=0, y=0, width=10, height=10))

        crop[:] = 0

        assert screen[0, 0, 0] == 1

    def test_out_of_bounds(self):
        """A region past the screen edge raises."""
        screen = solid_image(100, 80, (0, 0, 0))
        region = SearchRegion(x=90, y=0, width=20, height=10)

        with pytest.raises(RegionOutOfBoundsError) as exc_info:
            crop_region(screen, region)

        assert exc_info.value.screen_size == (100, 80)
        assert exc_info.value.region == region


class TestLoadTemplate:
    """Tests for load_template."""

    def test_loads_png_as_rgba(self, tmp_path):
        """An RGB file is returned as a read-only RGBA array."""
        path = tmp_path / "template.png"
        Image.new("RGB", (12, 7), (10, 20, 30)).save(path)

        template = load_template(path)

        assert template.shape == (7, 12, 4)
        assert tuple(template[0, 0]) == (10, 20, 30, 255)
        assert not template.flags.writeable

    def test_missing_file(self, tmp_path):
        """A missing template is reported as such."""
        with pytest.raises(TemplateMissingError) as exc_info:
            load_template(tmp_path / "nope.png")

        assert exc_info.value.is_fatal()

    def test_undecodable_file(self, tmp_path):
        """Bytes that are not an image raise TemplateDecodeError."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"definitely not a png")

        with pytest.raises(TemplateDecodeError) as exc_info:
            load_template(path)

        assert exc_info.value.source is not None
