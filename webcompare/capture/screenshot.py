"""Screenshot capture — renders a URL into a full-page PNG in the content store."""

from __future__ import annotations

import asyncio
import logging
import time

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from webcompare.capture.browser import SETTLE_STYLE, create_capture_context, launch_browser
from webcompare.errors import RenderError
from webcompare.models.config import EngineConfig
from webcompare.storage.content_store import ContentStore

logger = logging.getLogger(__name__)


class ScreenshotCapture:
    """Captures full-page screenshots at the canonical viewport.

    Every call launches its own browser and closes it before returning,
    including when navigation or the screenshot fails. The whole capture
    is bounded by ``config.capture_timeout_seconds``.
    """

    def __init__(self, config: EngineConfig, content_store: ContentStore):
        self.config = config
        self.content_store = content_store

    async def capture(self, url: str) -> str:
        """Render ``url`` and return the stored image reference.

        Raises:
            RenderError: On navigation failure, network/DNS errors, or timeout.
        """
        timeout = self.config.capture_timeout_seconds
        logger.info("Capturing %s", url)
        start = time.time()
        try:
            data = await asyncio.wait_for(self._render(url), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RenderError(f"Capture of {url} timed out after {timeout:g}s", url=url) from e
        except PlaywrightError as e:
            raise RenderError(f"Failed to capture {url}: {e.message}", url=url) from e

        ref = self.content_store.write(data)
        logger.info("Captured %s as %s (%.1fs)", url, ref, time.time() - start)
        return ref

    async def _render(self, url: str) -> bytes:
        viewport = {"width": self.config.viewport.width, "height": self.config.viewport.height}
        async with async_playwright() as p:
            logger.debug("Launching Chromium for %s", url)
            browser = await launch_browser(p, headless=self.config.headless)
            try:
                context = await create_capture_context(
                    browser, viewport=viewport, user_agent=self.config.user_agent,
                )
                page = await context.new_page()
                response = await page.goto(
                    url,
                    wait_until=self.config.wait_until,
                    timeout=self.config.capture_timeout_seconds * 1000,
                )
                if response is not None and response.status >= 400:
                    logger.warning("%s responded with HTTP %d", url, response.status)
                await page.add_style_tag(content=SETTLE_STYLE)
                return await page.screenshot(full_page=True, type="png")
            finally:
                await browser.close()
