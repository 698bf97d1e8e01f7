"""goaldriver Browser Session -- Playwright lifecycle around one live page.

One session owns one Chromium browser, one context, and one page.  Goals
run sequentially against that page; nothing resets between goals.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from playwright.sync_api import Error as PlaywrightError

from goaldriver.models import LOAD_STATE_TIMEOUT_MS

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("goaldriver.engine.session")


class BrowserSession:
    """Launches a browser and hands out its single page.

    Usage::

        with BrowserSession(headless=True) as session:
            page = session.open("https://example.com/")
            ...
            session.screenshot(Path("automation-final.png"))
    """

    def __init__(self, headless: bool = True) -> None:
        self.headless = headless
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Page | None = None

    # -- Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Launch Chromium and create the context and page. Call once."""
        from playwright.sync_api import sync_playwright

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self.headless)
        self._context = self._browser.new_context()
        self._page = self._context.new_page()
        logger.info("Browser started (headless=%s)", self.headless)

    def close(self) -> None:
        """Close the page's context, the browser, and Playwright. Idempotent."""
        for name, resource, closer in (
            ("context", self._context, "close"),
            ("browser", self._browser, "close"),
            ("playwright", self._playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                getattr(resource, closer)()
            except Exception as exc:
                logger.debug("Closing %s failed: %s", name, exc)
        self._context = None
        self._browser = None
        self._playwright = None
        self._page = None

    def __enter__(self) -> BrowserSession:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Page ----------------------------------------------------------------

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("BrowserSession not started")
        return self._page

    def open(self, url: str) -> Page:
        """Navigate the session page to *url* and wait for the DOM to load."""
        page = self.page
        page.goto(url, wait_until="domcontentloaded", timeout=LOAD_STATE_TIMEOUT_MS)
        logger.info("Opened %s", url)
        return page

    def screenshot(self, path: Path) -> Path | None:
        """Save a full-page screenshot. Returns the path, or None if capture failed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self.page.screenshot(path=str(path), full_page=True)
        except PlaywrightError as exc:
            logger.warning("Screenshot failed: %s", exc)
            return None
        logger.info("Saved screenshot %s", path)
        return path
