"""Unit tests for goaldriver.engine.actions -- decision validation into typed actions."""

from __future__ import annotations

import pytest

from goaldriver.engine.actions import (
    ACTION_TYPES,
    ActionValidationError,
    Click,
    Done,
    Extract,
    Fill,
    Goto,
    Press,
    UnsupportedActionError,
    Wait,
    parse_action,
)
from goaldriver.engine.protocols import ActionDecision


# ---------------------------------------------------------------------------
# 1. Schema
# ---------------------------------------------------------------------------

class TestActionSchema:

    def test_exactly_seven_actions(self):
        assert set(ACTION_TYPES) == {"goto", "fill", "click", "press", "wait", "extract", "done"}

    def test_unknown_action(self):
        with pytest.raises(UnsupportedActionError, match="Unsupported action: scroll"):
            parse_action(ActionDecision(action="scroll"))


# ---------------------------------------------------------------------------
# 2. Per-variant validation
# ---------------------------------------------------------------------------

class TestParseAction:

    def test_goto(self):
        assert parse_action(ActionDecision(action="goto", url="https://a/")) == Goto(url="https://a/")

    def test_goto_requires_url(self):
        with pytest.raises(ActionValidationError, match="goto action requires url"):
            parse_action(ActionDecision(action="goto"))

    def test_fill(self):
        assert parse_action(ActionDecision(action="fill", selector="#q", text="iPhone 17")) == Fill("#q", "iPhone 17")

    @pytest.mark.parametrize("selector,text", [(None, "x"), ("#q", 17), ("#q", None)])
    def test_fill_requires_selector_and_string_text(self, selector, text):
        with pytest.raises(ActionValidationError, match="fill action requires selector and text"):
            parse_action(ActionDecision(action="fill", selector=selector, text=text))

    def test_click_requires_selector(self):
        with pytest.raises(ActionValidationError, match="click action requires selector"):
            parse_action(ActionDecision(action="click"))
        assert parse_action(ActionDecision(action="click", selector="button")) == Click("button")

    def test_press_defaults_to_enter(self):
        assert parse_action(ActionDecision(action="press")) == Press(key="Enter", selector=None)

    def test_press_with_key_and_selector(self):
        assert parse_action(ActionDecision(action="press", selector="#q", text="Tab")) == Press("Tab", "#q")

    def test_wait_and_done(self):
        assert parse_action(ActionDecision(action="wait")) == Wait()
        assert parse_action(ActionDecision(action="done")) == Done()


class TestParseExtract:

    def test_defaults_to_text_mode(self):
        assert parse_action(ActionDecision(action="extract", selector="h1")) == Extract(mode="text", selector="h1")

    def test_current_url_needs_no_selector(self):
        assert parse_action(ActionDecision(action="extract", text="currentUrl")) == Extract(mode="currentUrl")

    def test_href_requires_selector(self):
        with pytest.raises(ActionValidationError, match="extract action requires selector"):
            parse_action(ActionDecision(action="extract", text="href"))

    def test_unknown_mode(self):
        with pytest.raises(UnsupportedActionError, match="Unsupported extract mode: html"):
            parse_action(ActionDecision(action="extract", selector="h1", text="html"))
