"""The closed set of browser actions and their field validation.

A planner :class:`ActionDecision` is loosely typed; :func:`parse_action`
turns it into exactly one of the variants below, each carrying only the
fields it needs.  All validation happens here, before the browser driver
is touched.
"""

from __future__ import annotations

import dataclasses

from goaldriver.engine.protocols import EXTRACT_MODES, ActionDecision


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ActionExecutionError(Exception):
    """Base class for per-step action failures. Recoverable by the goal runner."""

    pass


class UnsupportedActionError(ActionExecutionError):
    """The decided action is outside the supported set."""

    pass


class ActionValidationError(ActionExecutionError):
    """A required field is missing or has the wrong type."""

    pass


class ElementNotFoundError(ActionExecutionError):
    """The selector matched zero elements."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"No element matches selector: {selector}")


class DriverError(ActionExecutionError):
    """The browser driver failed while performing the action."""

    pass


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Goto:
    url: str

    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Goto:
        if not decision.url:
            raise ActionValidationError("goto action requires url")
        return cls(url=decision.url)


@dataclasses.dataclass(frozen=True)
class Fill:
    selector: str
    text: str

    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Fill:
        if not decision.selector or not isinstance(decision.text, str):
            raise ActionValidationError("fill action requires selector and text")
        return cls(selector=decision.selector, text=decision.text)


@dataclasses.dataclass(frozen=True)
class Click:
    selector: str

    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Click:
        if not decision.selector:
            raise ActionValidationError("click action requires selector")
        return cls(selector=decision.selector)


@dataclasses.dataclass(frozen=True)
class Press:
    key: str = "Enter"
    selector: str | None = None

    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Press:
        key = decision.text if isinstance(decision.text, str) and decision.text else "Enter"
        return cls(key=key, selector=decision.selector or None)


@dataclasses.dataclass(frozen=True)
class Wait:
    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Wait:
        return cls()


@dataclasses.dataclass(frozen=True)
class Extract:
    mode: str  # href | text | currentUrl
    selector: str | None = None

    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Extract:
        mode = decision.text if isinstance(decision.text, str) and decision.text else "text"
        if mode not in EXTRACT_MODES:
            raise UnsupportedActionError(
                f"Unsupported extract mode: {mode} (expected one of {', '.join(EXTRACT_MODES)})"
            )
        if mode == "currentUrl":
            return cls(mode=mode)
        if not decision.selector:
            raise ActionValidationError('extract action requires selector unless using text="currentUrl"')
        return cls(mode=mode, selector=decision.selector)


@dataclasses.dataclass(frozen=True)
class Done:
    @classmethod
    def from_decision(cls, decision: ActionDecision) -> Done:
        return cls()


Action = Goto | Fill | Click | Press | Wait | Extract | Done

# Action name -> variant. The keys are the complete action schema.
ACTION_TYPES: dict[str, type[Action]] = {
    "goto": Goto,
    "fill": Fill,
    "click": Click,
    "press": Press,
    "wait": Wait,
    "extract": Extract,
    "done": Done,
}


def parse_action(decision: ActionDecision) -> Action:
    """Validate a planner decision and return its typed variant.

    Raises:
        UnsupportedActionError: action (or extract mode) outside the supported set.
        ActionValidationError: a required field is missing or ill-typed.
    """
    variant = ACTION_TYPES.get(decision.action)
    if variant is None:
        raise UnsupportedActionError(f"Unsupported action: {decision.action}")
    return variant.from_decision(decision)
