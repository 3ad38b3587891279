"""
scrapers/browser.py

PLAYWRIGHT LAUNCH SCOPE
=======================

One Chromium instance per scrape session, acquired and released inside an
``async with`` block. Nothing here is shared between sessions.

Usage by PageSessionDriver:
    async with launcher.launch(slow_mo_ms=25) as browser:
        context = await browser.new_context(...)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import Browser, async_playwright

from config.settings import scrape_config

LOG = logging.getLogger("browser")

__all__ = ["BrowserLauncher", "LAUNCH_ARGS", "STEALTH_INIT_SCRIPT"]

# Sandboxing flags for containerized environments.
LAUNCH_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
]

STEALTH_INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined,
    });
    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5],
    });
    Object.defineProperty(navigator, 'languages', {
        get: () => ['en-US', 'en'],
    });
"""


class BrowserLauncher:
    """Starts Playwright + Chromium for exactly one session."""

    stealth_script: str = STEALTH_INIT_SCRIPT

    def __init__(self, headless: Optional[bool] = None) -> None:
        self.headless = scrape_config.headless if headless is None else headless

    @asynccontextmanager
    async def launch(self, slow_mo_ms: int = 0) -> AsyncIterator[Browser]:
        """Yield a fresh browser; it is closed on every exit path."""
        playwright = await async_playwright().start()
        browser: Optional[Browser] = None
        try:
            browser = await playwright.chromium.launch(
                headless=self.headless,
                args=LAUNCH_ARGS,
                slow_mo=slow_mo_ms,
            )
            LOG.info("Chromium launched | headless=%s | slow_mo=%dms", self.headless, slow_mo_ms)
            yield browser
        finally:
            if browser is not None:
                try:
                    await browser.close()
                    LOG.info("Chromium closed")
                except Exception as e:  # noqa: BLE001
                    LOG.warning("Error closing browser: %s", e)
            await playwright.stop()
