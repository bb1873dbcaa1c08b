"""Tests for the raster buffer, normalizer and pixel diff engine."""

import pytest
from PIL import Image

from tests.helpers import make_image, png_bytes
from webcompare.errors import DimensionMismatchError, ImageIOError
from webcompare.imaging.normalizer import extend_canvas, normalize
from webcompare.imaging.pixel_diff import diff, diff_percentage
from webcompare.imaging.raster import RasterImage, decode_png, encode_png

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
RED = (255, 0, 0, 255)


def raster(width, height, color=WHITE, blocks=()):
    return RasterImage.from_pil(make_image(width, height, color, blocks))


def count_marked(image: RasterImage) -> int:
    return sum(
        1 for y in range(image.height) for x in range(image.width)
        if image.pixel(x, y) == RED
    )


# ============================================================================
# RasterImage
# ============================================================================


class TestRasterImage:
    """Tests for the typed RGBA buffer."""

    def test_blank_is_filled(self):
        img = RasterImage.blank(3, 2, (1, 2, 3, 4))
        assert img.size == (3, 2)
        assert len(img.data) == 3 * 2 * 4
        assert all(img.pixel(x, y) == (1, 2, 3, 4) for x in range(3) for y in range(2))

    def test_rejects_wrong_buffer_length(self):
        with pytest.raises(ValueError, match="expected 16"):
            RasterImage(2, 2, bytearray(15))

    def test_pixel_access_is_bounds_checked(self):
        img = RasterImage.blank(2, 2)
        with pytest.raises(IndexError):
            img.pixel(2, 0)
        with pytest.raises(IndexError):
            img.pixel(0, -1)
        with pytest.raises(IndexError):
            img.set_pixel(0, 2, BLACK)

    def test_set_pixel_is_row_major(self):
        img = RasterImage.blank(3, 2)
        img.set_pixel(1, 1, BLACK)
        offset = (1 * 3 + 1) * 4
        assert bytes(img.data[offset:offset + 4]) == bytes(BLACK)

    def test_from_pil_converts_rgb_to_rgba(self):
        img = RasterImage.from_pil(Image.new("RGB", (2, 1), (10, 20, 30)))
        assert img.pixel(0, 0) == (10, 20, 30, 255)

    def test_png_roundtrip_preserves_pixels(self):
        src = raster(5, 4, blocks=[((1, 1, 2, 2), BLACK)])
        assert decode_png(encode_png(src)) == src

    def test_decode_rejects_garbage(self):
        with pytest.raises(ImageIOError):
            decode_png(b"definitely not a png", ref="bad.png")

    def test_decode_rejects_empty(self):
        with pytest.raises(ImageIOError, match="empty"):
            decode_png(b"")

    def test_decode_rejects_truncated_body(self):
        data = png_bytes(make_image(64, 40))
        with pytest.raises(ImageIOError, match="half.png"):
            decode_png(data[: len(data) // 2], ref="half.png")


# ============================================================================
# Normalizer
# ============================================================================


class TestNormalize:
    """Tests for canvas extension to the pairwise-maximum size."""

    def test_output_dimensions_are_pairwise_max(self):
        a = raster(10, 4)
        b = raster(6, 9)
        na, nb = normalize(a, b)
        assert na.size == nb.size == (10, 9)

    def test_source_region_is_copied_exactly(self):
        a = raster(4, 3, color=(12, 34, 56, 78), blocks=[((0, 0, 1, 0), BLACK)])
        b = raster(7, 5)
        na, _ = normalize(a, b)
        for y in range(a.height):
            for x in range(a.width):
                assert na.pixel(x, y) == a.pixel(x, y)

    def test_padding_is_opaque_white(self):
        a = raster(2, 2, color=BLACK)
        b = raster(4, 3, color=BLACK)
        na, nb = normalize(a, b)
        for y in range(3):
            for x in range(4):
                if x >= 2 or y >= 2:
                    assert na.pixel(x, y) == WHITE
        assert nb == b

    def test_same_size_is_a_copy(self):
        a = raster(3, 3, color=BLACK)
        b = raster(3, 3)
        na, nb = normalize(a, b)
        assert na == a and nb == b
        assert na.data is not a.data

    def test_extend_canvas_rejects_shrinking(self):
        with pytest.raises(ValueError):
            extend_canvas(raster(5, 5), 4, 5)

    def test_padded_baseline_scenario(self):
        """A 1280x800 baseline is padded to match a taller 1280x950 capture."""
        baseline = raster(1280, 800)
        current = raster(1280, 950)
        nb, nc = normalize(baseline, current)
        assert nb.size == nc.size == (1280, 950)
        assert nb.pixel(0, 949) == WHITE


# ============================================================================
# Pixel diff
# ============================================================================


class TestDiff:
    """Tests for the YIQ pixel diff engine."""

    @pytest.mark.parametrize("tolerance", [0.0, 0.1, 0.5, 1.0])
    def test_identical_images_have_no_difference(self, tolerance):
        a = raster(8, 6, blocks=[((2, 2, 4, 4), (40, 90, 200, 255))])
        result = diff(a, a.copy(), tolerance)
        assert result.differing_pixels == 0
        assert result.diff_percentage == 0
        assert count_marked(result.diff_image) == 0

    def test_counts_changed_block(self):
        a = raster(10, 10)
        b = raster(10, 10, blocks=[((0, 0, 4, 1), BLACK)])  # 5x2 block
        result = diff(a, b, 0.1)
        assert result.differing_pixels == 10
        assert result.diff_percentage == pytest.approx(10.0)

    def test_diff_image_marks_exactly_the_counted_pixels(self):
        a = raster(10, 10)
        b = raster(10, 10, blocks=[((3, 3, 5, 7), BLACK)])
        result = diff(a, b, 0.1)
        assert count_marked(result.diff_image) == result.differing_pixels == 15
        assert result.diff_image.pixel(3, 3) == RED
        assert result.diff_image.pixel(0, 0) != RED

    def test_count_is_symmetric(self):
        a = raster(12, 8, blocks=[((0, 0, 5, 5), (200, 10, 10, 255))])
        b = raster(12, 8, blocks=[((3, 2, 9, 7), (10, 10, 200, 128))])
        assert diff(a, b, 0.1).differing_pixels == diff(b, a, 0.1).differing_pixels

    def test_small_change_is_below_tolerance(self):
        a = raster(4, 4)
        b = raster(4, 4, color=(250, 250, 250, 255))
        assert diff(a, b, 0.1).differing_pixels == 0
        assert diff(a, b, 0.0).differing_pixels == 16

    def test_full_tolerance_ignores_even_black_on_white(self):
        a = raster(3, 3)
        b = raster(3, 3, color=BLACK)
        assert diff(a, b, 0.0).differing_pixels == 9
        # black vs white sits just under the maximum delta
        assert diff(a, b, 1.0).differing_pixels == 0

    def test_fully_transparent_pixels_blend_to_white(self):
        a = raster(2, 2, color=(0, 0, 0, 0))
        b = raster(2, 2)
        assert diff(a, b, 0.1).differing_pixels == 0

    def test_is_deterministic(self):
        a = raster(16, 16, blocks=[((1, 1, 9, 3), (100, 150, 200, 255))])
        b = raster(16, 16, blocks=[((4, 0, 12, 8), (0, 50, 0, 200))])
        first = diff(a, b, 0.1)
        second = diff(a, b, 0.1)
        assert first.diff_image.data == second.diff_image.data
        assert first.differing_pixels == second.differing_pixels

    def test_rejects_unnormalized_inputs(self):
        with pytest.raises(DimensionMismatchError):
            diff(raster(2, 2), raster(2, 3), 0.1)

    def test_rejects_negative_tolerance(self):
        with pytest.raises(ValueError):
            diff(raster(2, 2), raster(2, 2), -0.1)

    def test_percentage_formula(self):
        assert diff_percentage(0, 10, 10) == 0.0
        assert diff_percentage(100, 10, 10) == 100.0
        assert diff_percentage(1, 3, 1) == pytest.approx(100 / 3)
        assert diff_percentage(0, 0, 0) == 0.0

    def test_black_on_white_exceeds_high_tolerance(self):
        a = raster(1, 1)
        b = raster(1, 1, color=BLACK)
        # black vs white is about 93% of the largest possible YIQ distance
        assert diff(a, b, 0.95).differing_pixels == 1
