"""Image normalizer — pads two images onto a common white canvas."""

from __future__ import annotations

from webcompare.imaging.raster import CHANNELS, WHITE, RasterImage


def extend_canvas(image: RasterImage, width: int, height: int) -> RasterImage:
    """Copy ``image`` unscaled into the top-left of a white ``width`` x ``height`` canvas."""
    if width < image.width or height < image.height:
        raise ValueError(
            f"Canvas {width}x{height} is smaller than image {image.width}x{image.height}"
        )
    canvas = RasterImage.blank(width, height, WHITE)
    src_stride = image.width * CHANNELS
    dst_stride = width * CHANNELS
    for y in range(image.height):
        src_start = y * src_stride
        dst_start = y * dst_stride
        canvas.data[dst_start:dst_start + src_stride] = image.data[src_start:src_start + src_stride]
    return canvas


def normalize(a: RasterImage, b: RasterImage) -> tuple[RasterImage, RasterImage]:
    """Return copies of ``a`` and ``b`` on a canvas of their pairwise-maximum size.

    Full-page captures grow and shrink with content, so the extra area is
    padded with opaque white instead of being cropped or stretched.
    """
    width = max(a.width, b.width)
    height = max(a.height, b.height)
    return extend_canvas(a, width, height), extend_canvas(b, width, height)
