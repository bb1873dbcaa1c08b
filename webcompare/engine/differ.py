"""Screenshot differ — normalize, diff and store the diff image for two stored captures."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from webcompare.imaging.normalizer import normalize
from webcompare.imaging.pixel_diff import diff
from webcompare.imaging.raster import decode_png, encode_png
from webcompare.storage.content_store import ContentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenshotDiff:
    diff_ref: str
    diff_percentage: float
    differing_pixels: int
    width: int
    height: int


def _diff_encoded(
    baseline_bytes: bytes, current_bytes: bytes, tolerance: float,
    baseline_ref: str, current_ref: str,
) -> tuple[bytes, int, float, tuple[int, int]]:
    baseline = decode_png(baseline_bytes, ref=baseline_ref)
    current = decode_png(current_bytes, ref=current_ref)
    if baseline.size != current.size:
        logger.debug("Normalizing %dx%d and %dx%d", *baseline.size, *current.size)
    norm_baseline, norm_current = normalize(baseline, current)
    result = diff(norm_baseline, norm_current, tolerance)
    return (
        encode_png(result.diff_image),
        result.differing_pixels,
        result.diff_percentage,
        norm_baseline.size,
    )


async def compare_screenshots(
    store: ContentStore, baseline_ref: str, current_ref: str, tolerance: float,
) -> ScreenshotDiff:
    """Diff two stored images and store the resulting diff image.

    Raises:
        ImageIOError: If either image is missing or undecodable, or the
            diff image cannot be written.
    """
    baseline_bytes = store.read(baseline_ref)
    current_bytes = store.read(current_ref)
    png, count, percentage, (width, height) = await asyncio.to_thread(
        _diff_encoded, baseline_bytes, current_bytes, tolerance, baseline_ref, current_ref,
    )
    diff_ref = store.write(png)
    logger.info(
        "Diff %s vs %s: %d/%d pixels differ (%.3f%%)",
        baseline_ref[:12], current_ref[:12], count, width * height, percentage,
    )
    return ScreenshotDiff(
        diff_ref=diff_ref,
        diff_percentage=percentage,
        differing_pixels=count,
        width=width,
        height=height,
    )
