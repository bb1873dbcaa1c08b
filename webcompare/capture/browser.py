"""Browser launch helpers for screenshot capture."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

# Freeze CSS animations and the caret so repeated captures render identically.
SETTLE_STYLE = """
*, *::before, *::after {
    animation-play-state: paused !important;
    transition: none !important;
    caret-color: transparent !important;
}
"""


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch a fresh headless Chromium for one capture."""
    return await playwright.chromium.launch(
        headless=headless,
        args=[
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--hide-scrollbars",
        ],
    )


async def create_capture_context(
    browser: Browser,
    viewport: dict,
    user_agent: Optional[str] = None,
) -> BrowserContext:
    """Create a browser context pinned to the capture viewport."""
    return await browser.new_context(
        viewport=viewport,
        device_scale_factor=1,
        user_agent=user_agent or DEFAULT_USER_AGENT,
        locale="en-US",
        timezone_id="UTC",
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
