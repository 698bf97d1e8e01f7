"""Oracle call sites: goal rewrite, next-action planning, verification, summary.

Each call site is an :class:`OracleSchema` (prompt + reply format + parser)
plus a thin function that builds its context and runs it through
:meth:`OracleClient.ask`.
"""

from __future__ import annotations

import logging
from typing import Any

from goaldriver.engine.oracle import OracleClient, OracleSchema, ResponseFormat
from goaldriver.engine.protocols import (
    ActionDecision,
    ExtractionResult,
    GoalResult,
    GoalSpec,
    HistoryEntry,
    PageState,
    Verification,
)
from goaldriver.models import SUMMARY_HISTORY_LIMIT

logger = logging.getLogger("goaldriver.engine.planner")


class PlanningError(Exception):
    """Raised when the planner reply carries no action. Fatal to the goal."""

    pass


# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------

GOAL_REWRITE_PROMPT = (
    "Rewrite user request into a precise browser objective. "
    "Return JSON: {objective, mustDo, mustExtract, doneCriteria}. "
    "objective is a string; mustDo, mustExtract and doneCriteria are arrays of strings."
)

PLANNER_PROMPT = "\n".join([
    "You are a robust web automation planner for Playwright.",
    "Return strict JSON: {action, selector, text, url, done, reason}.",
    "Allowed actions: goto, fill, click, press, wait, extract, done.",
    "Pick exactly one action per reply.",
    "Prefer robust selectors: ids, names, aria-labels, placeholders and visible text over positional CSS.",
    "Critical behavior: if an input is filled but search not submitted, next step should click submit or press Enter.",
    "Avoid vague queries; use exact subject names from objective.",
    "Do not mark done until doneCriteria are satisfied and mustExtract items are captured when possible.",
    "For extract use text as href|text|currentUrl and provide selector unless currentUrl.",
])

VERIFIER_PROMPT = (
    "You are a strict verifier. Return JSON {completed:boolean, explanation:string, missing:string[]} "
    "based on goalSpec, finalState, extractedData."
)

SUMMARY_PROMPT = "\n".join([
    "You are an assistant summarizing a browser automation result for end users.",
    "Use 2-5 bullets. Include extracted links/text clearly.",
    "Explicitly say if completed or not using verifier result, and suggest one next prompt if incomplete.",
])


# ---------------------------------------------------------------------------
# Reply parsers
# ---------------------------------------------------------------------------

def _parse_goal_spec(reply: dict[str, Any], task: str) -> GoalSpec:
    return GoalSpec.from_dict(reply, task)


def _parse_decision(reply: dict[str, Any], context: Any) -> ActionDecision:
    action = reply.get("action")
    if not action or not isinstance(action, str):
        raise PlanningError(f"Planner did not provide an action (reply keys: {sorted(reply)})")
    return ActionDecision.from_dict(reply)


def _parse_verification(reply: dict[str, Any], context: Any) -> Verification:
    return Verification.from_dict(reply)


def _parse_summary(reply: str, context: Any) -> str:
    return reply


GOAL_REWRITE = OracleSchema(
    name="goal_rewrite",
    system_prompt=GOAL_REWRITE_PROMPT,
    response_format=ResponseFormat.STRUCTURED,
    model_tier="planner",
    parse=_parse_goal_spec,
)

NEXT_ACTION = OracleSchema(
    name="planning",
    system_prompt=PLANNER_PROMPT,
    response_format=ResponseFormat.STRUCTURED,
    model_tier="planner",
    parse=_parse_decision,
)

VERIFICATION = OracleSchema(
    name="verification",
    system_prompt=VERIFIER_PROMPT,
    response_format=ResponseFormat.STRUCTURED,
    model_tier="verifier",
    parse=_parse_verification,
)

USER_SUMMARY = OracleSchema(
    name="summary",
    system_prompt=SUMMARY_PROMPT,
    response_format=ResponseFormat.FREE_TEXT,
    model_tier="summary",
    parse=_parse_summary,
)


# ---------------------------------------------------------------------------
# Call sites
# ---------------------------------------------------------------------------

def rewrite_goal(oracle: OracleClient, task: str) -> GoalSpec:
    """Turn raw task text into a GoalSpec (once per goal)."""
    return oracle.ask(GOAL_REWRITE, task)


def plan_next_action(
    oracle: OracleClient,
    goal_spec: GoalSpec,
    step: int,
    max_steps: int,
    state: PageState,
    history: list[HistoryEntry],
    extracted_data: list[ExtractionResult],
) -> ActionDecision:
    """Ask for exactly one next action. Raises PlanningError if none is given."""
    context = {
        "goalSpec": goal_spec.to_dict(),
        "step": step,
        "maxSteps": max_steps,
        "currentPage": state.to_dict(),
        "history": [h.to_dict() for h in history],
        "extractedData": [e.to_dict() for e in extracted_data],
    }
    return oracle.ask(NEXT_ACTION, context)


def verify_completion(
    oracle: OracleClient,
    goal_spec: GoalSpec,
    final_state: PageState,
    extracted_data: list[ExtractionResult],
) -> Verification:
    """Judge completion from the final artifacts only, never the planner's narrative."""
    context = {
        "goalSpec": goal_spec.to_dict(),
        "finalState": final_state.to_dict(),
        "extractedData": [e.to_dict() for e in extracted_data],
    }
    return oracle.ask(VERIFICATION, context)


def summarize_for_user(oracle: OracleClient, user_goal: str, result: GoalResult) -> str:
    """Write a short bullet summary of a GoalResult for the chat user."""
    context = {
        "userGoal": user_goal,
        "goalSpec": result.goal_spec.to_dict(),
        "finalState": result.final_state.to_dict(),
        "extractedData": [e.to_dict() for e in result.extracted_data],
        "verification": result.verification.to_dict(),
        "recentHistory": [h.to_dict() for h in result.history[-SUMMARY_HISTORY_LIMIT:]],
    }
    return oracle.ask(USER_SUMMARY, context)
