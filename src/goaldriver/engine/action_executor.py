"""goaldriver Action Executor -- Runs one planner decision against a Playwright page.

The decision is validated into a typed action (:mod:`goaldriver.engine.actions`)
before anything touches the browser, then dispatched through a handler
table keyed by action variant.  Selectors are opaque strings handed to
``page.locator``; the first match is used.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from playwright.sync_api import Error as PlaywrightError

from goaldriver.engine.actions import (
    ACTION_TYPES,
    Click,
    Done,
    DriverError,
    ElementNotFoundError,
    Extract,
    Fill,
    Goto,
    Press,
    Wait,
    parse_action,
)
from goaldriver.engine.protocols import ActionDecision, ExtractionResult
from goaldriver.models import WAIT_ACTION_MS

if TYPE_CHECKING:
    from playwright.sync_api import Locator, Page

logger = logging.getLogger("goaldriver.engine.action_executor")

_READ_ELEMENT_JS = """(el, mode) => {
    if (mode === 'href') return el.getAttribute('href') || el.href || '';
    return (el.textContent || '').replace(/\\s+/g, ' ').trim();
}"""


class ActionExecutor:
    """Translates ActionDecision objects into Playwright page interactions."""

    def __init__(self, page: Page, wait_ms: int = WAIT_ACTION_MS) -> None:
        self._page = page
        self._wait_ms = wait_ms
        self._handlers: dict[type, Callable[[Any, int], ExtractionResult | None]] = {
            Goto: self._do_goto,
            Fill: self._do_fill,
            Click: self._do_click,
            Press: self._do_press,
            Wait: self._do_wait,
            Extract: self._do_extract,
            Done: self._do_done,
        }
        missing = set(ACTION_TYPES.values()) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for action types: {sorted(t.__name__ for t in missing)}")

    def execute(self, decision: ActionDecision, step: int = 0) -> ExtractionResult | None:
        """Execute one decision.

        Returns an ExtractionResult for ``extract`` actions, else None.

        Raises:
            UnsupportedActionError, ActionValidationError: before the driver is called.
            ElementNotFoundError: the selector matched nothing.
            DriverError: Playwright failed while performing the action.
        """
        action = parse_action(decision)
        start = time.monotonic()
        try:
            result = self._handlers[type(action)](action, step)
        except PlaywrightError as exc:
            raise DriverError(f"{decision.action} failed: {exc}") from exc
        logger.debug(
            "Executed %s in %.0fms", decision.action, (time.monotonic() - start) * 1000,
        )
        return result

    # -- Helpers -------------------------------------------------------------

    def _first_match(self, selector: str) -> Locator:
        """Return the first element matching *selector*, or raise ElementNotFoundError."""
        locator = self._page.locator(selector)
        if locator.count() == 0:
            raise ElementNotFoundError(selector)
        return locator.first

    # -- Handlers ------------------------------------------------------------

    def _do_goto(self, action: Goto, step: int) -> None:
        self._page.goto(action.url, wait_until="domcontentloaded")

    def _do_fill(self, action: Fill, step: int) -> None:
        self._first_match(action.selector).fill(action.text)

    def _do_click(self, action: Click, step: int) -> None:
        self._first_match(action.selector).click()

    def _do_press(self, action: Press, step: int) -> None:
        if action.selector:
            self._first_match(action.selector).press(action.key)
        else:
            self._page.keyboard.press(action.key)

    def _do_wait(self, action: Wait, step: int) -> None:
        self._page.wait_for_timeout(self._wait_ms)

    def _do_extract(self, action: Extract, step: int) -> ExtractionResult:
        if action.mode == "currentUrl":
            return ExtractionResult(step=step, mode=action.mode, selector=None, value=self._page.url)
        # Ambiguous selectors resolve to the first match.
        element = self._first_match(action.selector)
        value = element.evaluate(_READ_ELEMENT_JS, action.mode)
        return ExtractionResult(
            step=step,
            mode=action.mode,
            selector=action.selector,
            value=value if isinstance(value, str) else str(value or ""),
        )

    def _do_done(self, action: Done, step: int) -> None:
        return None
