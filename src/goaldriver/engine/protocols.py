"""Records exchanged between the goal runner, the oracle, and the executor.

Every record has a ``to_dict()`` that returns the JSON-ready wire shape sent
to the oracle and printed by the reporter (camelCase keys where the wire
shape uses them).
"""

from __future__ import annotations

import dataclasses
from typing import Any


# ---------------------------------------------------------------------------
# Goal specification
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class GoalSpec:
    """A user task rewritten into a precise browser objective."""

    objective: str
    must_do: tuple[str, ...] = ()
    must_extract: tuple[str, ...] = ()
    done_criteria: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], task: str) -> GoalSpec:
        """Build from an oracle reply; omitted or ill-typed fields fall back."""
        objective = data.get("objective")
        return cls(
            objective=objective if isinstance(objective, str) and objective.strip() else task,
            must_do=_str_tuple(data.get("mustDo")),
            must_extract=_str_tuple(data.get("mustExtract")),
            done_criteria=_str_tuple(data.get("doneCriteria")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "objective": self.objective,
            "mustDo": list(self.must_do),
            "mustExtract": list(self.must_extract),
            "doneCriteria": list(self.done_criteria),
        }


# ---------------------------------------------------------------------------
# Page state
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class InputField:
    type: str
    id: str | None = None
    name: str | None = None
    placeholder: str | None = None
    aria_label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "name": self.name,
            "placeholder": self.placeholder,
            "ariaLabel": self.aria_label,
        }


@dataclasses.dataclass(frozen=True)
class ButtonInfo:
    text: str | None = None
    id: str | None = None
    aria_label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "id": self.id, "ariaLabel": self.aria_label}


@dataclasses.dataclass(frozen=True)
class LinkInfo:
    text: str
    href: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "href": self.href}


@dataclasses.dataclass(frozen=True)
class PageState:
    """Bounded summary of the live document, recomputed every step."""

    title: str
    url: str
    inputs: tuple[InputField, ...] = ()
    buttons: tuple[ButtonInfo, ...] = ()
    links: tuple[LinkInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "inputs": [i.to_dict() for i in self.inputs],
            "buttons": [b.to_dict() for b in self.buttons],
            "links": [link.to_dict() for link in self.links],
        }


# ---------------------------------------------------------------------------
# Planner decision
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class ActionDecision:
    """One planner reply, as returned by the oracle.

    ``text`` is kept as sent (it may not be a string); validation happens
    when the decision is turned into an action.
    """

    action: str
    selector: str | None = None
    text: Any = None
    url: str | None = None
    done: bool = False
    reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ActionDecision:
        return cls(
            action=_opt_str(data.get("action")) or "",
            selector=_opt_str(data.get("selector")),
            text=data.get("text"),
            url=_opt_str(data.get("url")),
            done=_coerce_bool(data.get("done")),
            reason=_opt_str(data.get("reason")),
        )

    @property
    def is_done(self) -> bool:
        return self.done or self.action == "done"

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "selector": self.selector,
            "text": self.text,
            "url": self.url,
            "done": self.done,
            "reason": self.reason,
        }


# ---------------------------------------------------------------------------
# History and extraction
# ---------------------------------------------------------------------------

HEURISTIC_COOKIE_CLICK = "heuristic-cookie-click"


@dataclasses.dataclass(frozen=True)
class HistoryEntry:
    """One line of the append-only goal history.

    Three shapes share this record: a planner decision, a failed execution
    (``error`` set), and a pre-step heuristic hit (``heuristic`` set).
    """

    step: int
    action: str | None = None
    selector: str | None = None
    text: Any = None
    reason: str | None = None
    error: str | None = None
    heuristic: bool = False

    @classmethod
    def for_decision(cls, step: int, decision: ActionDecision) -> HistoryEntry:
        return cls(
            step=step,
            action=decision.action,
            selector=decision.selector or None,
            text=decision.text if decision.text not in ("", None) else None,
            reason=decision.reason or None,
        )

    @classmethod
    def for_error(cls, step: int, message: str) -> HistoryEntry:
        return cls(step=step, error=message)

    @classmethod
    def for_heuristic(cls, step: int, label: str, reason: str) -> HistoryEntry:
        return cls(step=step, action=label, reason=reason, heuristic=True)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"step": self.step, "error": self.error}
        if self.heuristic:
            return {"step": self.step, "action": self.action, "reason": self.reason}
        return {
            "step": self.step,
            "action": self.action,
            "selector": self.selector,
            "text": self.text,
            "reason": self.reason,
        }


EXTRACT_MODES = ("href", "text", "currentUrl")


@dataclasses.dataclass(frozen=True)
class ExtractionResult:
    """Value read by a successful ``extract`` action."""

    step: int
    mode: str  # href | text | currentUrl
    selector: str | None
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"step": self.step, "mode": self.mode, "selector": self.selector, "value": self.value}


# ---------------------------------------------------------------------------
# Verification and goal result
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class Verification:
    """Independent verdict on whether the goal was achieved."""

    completed: bool
    explanation: str = ""
    missing: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Verification:
        explanation = data.get("explanation")
        return cls(
            completed=_coerce_bool(data.get("completed")),
            explanation=explanation if isinstance(explanation, str) else "",
            missing=_str_tuple(data.get("missing")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"completed": self.completed, "explanation": self.explanation, "missing": list(self.missing)}


@dataclasses.dataclass
class GoalResult:
    """Output of one goal execution; owned by the caller."""

    history: list[HistoryEntry]
    extracted_data: list[ExtractionResult]
    final_state: PageState
    goal_spec: GoalSpec
    verification: Verification

    def to_dict(self) -> dict[str, Any]:
        return {
            "history": [h.to_dict() for h in self.history],
            "extractedData": [e.to_dict() for e in self.extracted_data],
            "finalState": self.final_state.to_dict(),
            "goalSpec": self.goal_spec.to_dict(),
            "verification": self.verification.to_dict(),
        }


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _opt_str(val: Any) -> str | None:
    if val is None:
        return None
    if isinstance(val, str):
        return val
    return str(val)


def _coerce_bool(val: Any) -> bool:
    if isinstance(val, str):
        return val.strip().lower() == "true"
    return bool(val)


def _str_tuple(val: Any) -> tuple[str, ...]:
    if not isinstance(val, list):
        return ()
    return tuple(str(v) for v in val)
