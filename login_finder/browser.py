# login_finder/browser.py
"""
Playwright browser session used in dynamic mode.

One Chromium instance is shared by the run; every detection task gets its own
page from ``open_page`` and is responsible for closing it.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from playwright.async_api import Browser, Page, Playwright, async_playwright

log = logging.getLogger(__name__)


class BrowserSession:
    """
    Config keys consumed:
      - headless: bool
      - user_agent: str
      - load_timeout: float (seconds), also used as the navigation timeout
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserSession":
        log.info("Starting headless browser session...")
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=bool(self.config.get("headless", True))
            )
        except Exception:
            await self._playwright.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Tears down the browser cleanly."""
        log.info("Closing headless browser session...")
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            if self._playwright is not None:
                await self._playwright.stop()
        log.info("Browser session closed.")

    async def open_page(self, url: str) -> Page:
        """
        Open a new page and start navigating to ``url``.

        Only the navigation commit is awaited; waiting for the load event is
        left to the caller. The page is closed again if navigation fails.
        """
        if self._browser is None:
            raise RuntimeError("browser session is not started")
        page = await self._browser.new_page(user_agent=self.config.get("user_agent"))
        timeout_ms = int(float(self.config.get("load_timeout", 30.0)) * 1000)
        try:
            await page.goto(url, wait_until="commit", timeout=timeout_ms)
        except (Exception, asyncio.CancelledError):
            await page.close()
            raise
        return page
