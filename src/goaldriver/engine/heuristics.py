"""Pre-step heuristics -- cheap, deterministic probes run before each planning call.

Each heuristic is opted in per goal by a keyword pattern matched against the
task text, so it cannot mask relevant page elements in unrelated flows.
Heuristics never raise: a probe that errors simply did not fire.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from goaldriver.engine.protocols import HEURISTIC_COOKIE_CLICK
from goaldriver.models import HEURISTIC_CLICK_TIMEOUT_MS, HEURISTIC_SETTLE_MS

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("goaldriver.engine.heuristics")


@runtime_checkable
class Heuristic(Protocol):
    """A pluggable pre-step probe.

    ``label`` becomes the history entry's action; ``reason`` its reason.
    """

    name: str
    label: str
    reason: str

    def applies_to(self, task: str) -> bool: ...

    def attempt(self, page: Page) -> bool: ...


@dataclasses.dataclass(frozen=True)
class HeuristicHit:
    """A heuristic that fired this step."""

    name: str
    label: str
    reason: str


class SelectorClickHeuristic:
    """Click the first candidate selector that has exactly one visible match."""

    def __init__(
        self,
        name: str,
        label: str,
        reason: str,
        task_pattern: str,
        selectors: list[str],
        click_timeout_ms: int = HEURISTIC_CLICK_TIMEOUT_MS,
        settle_ms: int = HEURISTIC_SETTLE_MS,
    ) -> None:
        self.name = name
        self.label = label
        self.reason = reason
        self._task_re = re.compile(task_pattern, re.IGNORECASE)
        self._selectors = list(selectors)
        self._click_timeout_ms = click_timeout_ms
        self._settle_ms = settle_ms

    def applies_to(self, task: str) -> bool:
        return bool(self._task_re.search(task))

    def attempt(self, page: Page) -> bool:
        for selector in self._selectors:
            try:
                candidates = page.locator(f"{selector} >> visible=true")
                if candidates.count() != 1:
                    continue
                candidates.first.click(timeout=self._click_timeout_ms)
                page.wait_for_timeout(self._settle_ms)
                logger.info("Heuristic %s clicked %s", self.name, selector)
                return True
            except Exception as exc:
                logger.debug("Heuristic %s probe %s failed: %s", self.name, selector, exc)
                continue
        return False


class CookieConsentHeuristic(SelectorClickHeuristic):
    """Dismiss cookie/consent overlays when the task mentions them."""

    SELECTORS = [
        'button:text-matches("accept all|i agree|agree to all|allow all|accept cookies", "i")',
        'button:has-text("Accept all")',
        'button:has-text("I agree")',
        'form [type="submit"]:has-text("Accept")',
        '[aria-label*="Accept" i]',
        "#onetrust-accept-btn-handler",
    ]

    def __init__(self) -> None:
        super().__init__(
            name="cookie-consent",
            label=HEURISTIC_COOKIE_CLICK,
            reason="Clicked visible consent button before planner step.",
            task_pattern=r"cookie|consent",
            selectors=self.SELECTORS,
        )


DEFAULT_HEURISTICS: tuple[Heuristic, ...] = (CookieConsentHeuristic(),)


def enabled_heuristics(heuristics: tuple[Heuristic, ...] | list[Heuristic], task: str) -> list[Heuristic]:
    """Heuristics opted in by the task text, in order."""
    return [h for h in heuristics if h.applies_to(task)]


def run_heuristics(page: Page, heuristics: list[Heuristic]) -> HeuristicHit | None:
    """Try each heuristic in order; stop at the first that fires."""
    for heuristic in heuristics:
        try:
            fired = heuristic.attempt(page)
        except Exception as exc:
            logger.debug("Heuristic %s raised: %s", heuristic.name, exc)
            continue
        if fired:
            return HeuristicHit(name=heuristic.name, label=heuristic.label, reason=heuristic.reason)
    return None
