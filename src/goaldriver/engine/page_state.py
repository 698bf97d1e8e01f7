"""Page-state snapshotter -- bounded, structured summary of the live document.

The summary is what the planner sees each step: title, URL, and capped lists
of input fields, buttons, and links in document order.  Caps bound the
oracle prompt size; they are not a completeness guarantee.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from goaldriver.engine.protocols import ButtonInfo, InputField, LinkInfo, PageState
from goaldriver.models import MAX_BUTTONS, MAX_INPUTS, MAX_LINK_TEXT, MAX_LINKS

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("goaldriver.engine.page_state")

# Read-only: runs inside the page, touches nothing.
_SNAPSHOT_JS = """(caps) => {
    const normalize = (value) => (value || '').replace(/\\s+/g, ' ').trim();
    const inputs = Array.from(document.querySelectorAll('input,textarea'))
        .slice(0, caps.inputs)
        .map((el) => ({
            type: el.tagName.toLowerCase(),
            id: el.id || null,
            name: el.getAttribute('name') || null,
            placeholder: el.getAttribute('placeholder') || null,
            ariaLabel: el.getAttribute('aria-label') || null,
        }));
    const buttons = Array.from(document.querySelectorAll('button,input[type="submit"],a[role="button"]'))
        .slice(0, caps.buttons)
        .map((el) => ({
            text: normalize(el.textContent) || el.getAttribute('value') || null,
            id: el.id || null,
            ariaLabel: el.getAttribute('aria-label') || null,
        }));
    const links = Array.from(document.querySelectorAll('a[href]'))
        .slice(0, caps.links)
        .map((el) => ({
            text: normalize(el.textContent).slice(0, caps.linkText),
            href: el.getAttribute('href'),
        }));
    return { title: document.title, url: window.location.href, inputs, buttons, links };
}"""


def capture_page_state(page: Page) -> PageState:
    """Snapshot the current document.

    Never raises: if the page is mid-navigation (execution context destroyed,
    target closed), returns an empty summary for the page's current URL and
    lets the next step retry.
    """
    caps = {
        "inputs": MAX_INPUTS,
        "buttons": MAX_BUTTONS,
        "links": MAX_LINKS,
        "linkText": MAX_LINK_TEXT,
    }
    try:
        raw = page.evaluate(_SNAPSHOT_JS, caps)
    except Exception as exc:
        logger.warning("Page state capture failed, using empty snapshot: %s", exc)
        return PageState(title="", url=_safe_url(page))
    return page_state_from_raw(raw or {})


def page_state_from_raw(raw: dict[str, Any]) -> PageState:
    """Convert the evaluated JS object into a PageState, re-applying caps."""
    inputs = tuple(
        InputField(
            type=str(item.get("type") or "input"),
            id=item.get("id"),
            name=item.get("name"),
            placeholder=item.get("placeholder"),
            aria_label=item.get("ariaLabel"),
        )
        for item in (raw.get("inputs") or [])[:MAX_INPUTS]
    )
    buttons = tuple(
        ButtonInfo(
            text=_normalize(item.get("text")) or None,
            id=item.get("id"),
            aria_label=item.get("ariaLabel"),
        )
        for item in (raw.get("buttons") or [])[:MAX_BUTTONS]
    )
    links = tuple(
        LinkInfo(text=_normalize(item.get("text"))[:MAX_LINK_TEXT], href=item.get("href"))
        for item in (raw.get("links") or [])[:MAX_LINKS]
    )
    return PageState(
        title=str(raw.get("title") or ""),
        url=str(raw.get("url") or ""),
        inputs=inputs,
        buttons=buttons,
        links=links,
    )


def _normalize(value: Any) -> str:
    """Collapse whitespace runs and trim."""
    if value is None:
        return ""
    return " ".join(str(value).split())


def _safe_url(page: Page) -> str:
    try:
        return page.url
    except Exception:
        return ""
