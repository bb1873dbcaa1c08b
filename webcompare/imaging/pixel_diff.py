"""Pixel diff engine — perceptual per-pixel comparison of two equal-size images.

Pixels are compared with pixelmatch: colors are blended onto white by
their alpha and measured in YIQ space, and a pixel counts as differing
when its distance exceeds ``tolerance`` as a fraction of the largest
possible distance (0 = exact match only). Anti-aliased pixels are
detected and left out of the count.

The output image paints differing pixels red, anti-aliased pixels yellow,
and fades every other pixel to a light grayscale copy of the first image.
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image
from pixelmatch.contrib.PIL import pixelmatch

from webcompare.errors import DimensionMismatchError
from webcompare.imaging.raster import RasterImage

DEFAULT_TOLERANCE = 0.1


@dataclass(frozen=True)
class PixelDiffResult:
    diff_image: RasterImage
    differing_pixels: int
    diff_percentage: float


def diff_percentage(differing_pixels: int, width: int, height: int) -> float:
    total = width * height
    if total == 0:
        return 0.0
    return differing_pixels / total * 100


def diff(a: RasterImage, b: RasterImage, tolerance: float = DEFAULT_TOLERANCE) -> PixelDiffResult:
    """Compare two normalized images pixel by pixel.

    Raises:
        DimensionMismatchError: If the images were not normalized first.
        ValueError: If ``tolerance`` is negative.
    """
    if a.size != b.size:
        raise DimensionMismatchError(a.size, b.size)
    if tolerance < 0:
        raise ValueError(f"tolerance must be >= 0, got {tolerance}")
    if a.pixel_count == 0:
        return PixelDiffResult(diff_image=a.copy(), differing_pixels=0, diff_percentage=0.0)

    output = Image.new("RGBA", a.size)
    count = pixelmatch(a.to_pil(), b.to_pil(), output, threshold=tolerance)
    return PixelDiffResult(
        diff_image=RasterImage.from_pil(output),
        differing_pixels=count,
        diff_percentage=diff_percentage(count, a.width, a.height),
    )
