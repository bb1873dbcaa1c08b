"""Comparison orchestrator — capture a page and diff it against its baseline."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone

from webcompare.capture.screenshot import ScreenshotCapture
from webcompare.engine.baseline_registry import BaselineRegistry
from webcompare.engine.differ import compare_screenshots
from webcompare.engine.locks import PageLocks
from webcompare.errors import ImageIOError
from webcompare.imaging.raster import decode_png
from webcompare.models.comparison import Comparison, ComparisonOutcome, ComparisonStatus
from webcompare.models.config import EngineConfig
from webcompare.models.notification import ComparisonFailure
from webcompare.models.site import Page, Website
from webcompare.notifications.notifier import Notifier, build_notifier, send_safely
from webcompare.storage.comparison_store import ComparisonStore
from webcompare.storage.content_store import ContentStore
from webcompare.storage.site_catalog import SiteCatalog

logger = logging.getLogger(__name__)


class ComparisonEngine:
    """Runs one capture-and-diff comparison per call.

    Runs for the same page are serialized through ``locks`` so two
    comparisons never read and refresh the same baseline at once.
    """

    def __init__(
        self,
        config: EngineConfig,
        catalog: SiteCatalog,
        comparisons: ComparisonStore,
        content_store: ContentStore,
        capture: ScreenshotCapture,
        notifier: Notifier,
        locks: PageLocks | None = None,
    ):
        self.config = config
        self.catalog = catalog
        self.comparisons = comparisons
        self.content_store = content_store
        self.capture = capture
        self.notifier = notifier
        self.locks = locks or PageLocks()

    @classmethod
    def from_config(cls, config: EngineConfig) -> "ComparisonEngine":
        comparisons = ComparisonStore(config.comparisons_path)
        content_store = ContentStore(config.screenshots_dir)
        return cls(
            config=config,
            catalog=SiteCatalog(config.catalog_path, comparison_store=comparisons),
            comparisons=comparisons,
            content_store=content_store,
            capture=ScreenshotCapture(config, content_store),
            notifier=build_notifier(config.notifications),
        )

    def baseline_registry(self) -> BaselineRegistry:
        """A baseline registry sharing this engine's stores and page locks."""
        return BaselineRegistry(self.config, self.comparisons, self.content_store, locks=self.locks)

    async def run_comparison(self, page_id: str) -> ComparisonOutcome:
        """Capture ``page_id`` and compare it with the page's current baseline.

        The first comparison of a page becomes its baseline. Any failure
        after the comparison row exists marks it ``failed``, sends a
        failure notification, and is re-raised to the caller.
        """
        page, website, url = self.catalog.resolve(page_id)
        async with self.locks.for_page(page_id):
            comparison = self.comparisons.create(page_id)
            logger.info("Comparison %s started for %s (%s)", comparison.comparison_id, page.name, url)
            start = time.time()
            try:
                outcome = await self._run(comparison, url)
            except Exception as e:
                logger.error("Comparison %s failed: %s", comparison.comparison_id, e)
                self._mark_failed(comparison, e)
                await self._notify_failure(page, website, url, e)
                raise
            logger.info(
                "Comparison %s completed in %.1fs (%s)",
                comparison.comparison_id, time.time() - start,
                "first capture" if outcome.is_first_comparison
                else f"{outcome.diff_percentage:.3f}% different",
            )
            return outcome

    async def _run(self, comparison: Comparison, url: str) -> ComparisonOutcome:
        cid = comparison.comparison_id
        current_ref = await self.capture.capture(url)

        prior = self.comparisons.latest_with_baseline(comparison.page_id, exclude_id=cid)
        if prior is None:
            logger.info("No baseline for page %s, using %s as baseline", comparison.page_id, current_ref)
            self.comparisons.update(
                cid,
                baseline_image=current_ref,
                current_image=current_ref,
                status=ComparisonStatus.COMPLETED,
            )
            return ComparisonOutcome(
                comparison_id=cid,
                status=ComparisonStatus.COMPLETED,
                is_first_comparison=True,
            )

        baseline_ref = await self._usable_baseline(prior, url, current_ref)
        result = await compare_screenshots(
            self.content_store, baseline_ref, current_ref, self.config.diff_tolerance,
        )
        self.comparisons.update(
            cid,
            baseline_image=baseline_ref,
            current_image=current_ref,
            diff_image=result.diff_ref,
            diff_percentage=result.diff_percentage,
            status=ComparisonStatus.COMPLETED,
        )
        return ComparisonOutcome(
            comparison_id=cid,
            status=ComparisonStatus.COMPLETED,
            diff_percentage=result.diff_percentage,
            is_first_comparison=False,
        )

    async def _usable_baseline(self, prior: Comparison, url: str, current_ref: str) -> str:
        """Return the prior baseline, re-capturing it if it is unreadable or legacy-sized.

        A refreshed baseline is written back to ``prior`` so later runs
        reuse it.
        """
        ref = prior.baseline_image
        expected = (self.config.viewport.width, self.config.viewport.height)
        try:
            data = self.content_store.read(ref)
            size = (await asyncio.to_thread(decode_png, data, ref)).size
        except ImageIOError as e:
            logger.warning("Baseline %s is unreadable (%s), re-capturing", ref, e)
        else:
            if not self.config.refresh_legacy_baselines or size == expected:
                return ref
            logger.warning(
                "Baseline %s has legacy dimensions %dx%d (expected %dx%d), re-capturing",
                ref, size[0], size[1], expected[0], expected[1],
            )
            if ref != current_ref:
                self.content_store.delete(ref)

        refreshed = await self.capture.capture(url)
        self.comparisons.update(prior.comparison_id, baseline_image=refreshed)
        logger.info("Refreshed baseline of comparison %s: %s", prior.comparison_id, refreshed)
        return refreshed

    def _mark_failed(self, comparison: Comparison, error: Exception) -> None:
        try:
            self.comparisons.update(
                comparison.comparison_id,
                status=ComparisonStatus.FAILED,
                error_message=str(error) or type(error).__name__,
            )
        except Exception as update_error:
            logger.error(
                "Could not mark comparison %s as failed: %s",
                comparison.comparison_id, update_error,
            )

    async def _notify_failure(self, page: Page, website: Website, url: str, error: Exception) -> None:
        failure = ComparisonFailure(
            page_name=page.name,
            page_path=page.path,
            page_url=url,
            website_name=website.name,
            website_url=website.url,
            error_message=str(error) or "Unknown error",
            timestamp=datetime.now(timezone.utc),
        )
        await send_safely(
            self.notifier.notify_failure, self.catalog.recipients_for(website), failure,
        )
