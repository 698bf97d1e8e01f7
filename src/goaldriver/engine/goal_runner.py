"""goaldriver Goal Runner -- the step-bounded plan/act/verify loop.

One call to :meth:`GoalRunner.execute_goal` moves through
``Rewriting -> Stepping(1..max_steps) -> Verifying -> Done``:

    Rewriting:  the raw task is rewritten into a GoalSpec by the oracle.
    Stepping:   heuristics -> page snapshot -> planner decision -> execute
                -> wait for domcontentloaded.  Stops early on ``done``.
    Verifying:  a separate oracle call judges the final page and extracted
                data, independently of the planner's own claims.

Action-level failures are recorded in the history and the loop moves on.
Oracle-level failures (rewrite, planning, verification) propagate.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from playwright.sync_api import Error as PlaywrightError

from goaldriver.engine.action_executor import ActionExecutor
from goaldriver.engine.actions import ActionExecutionError
from goaldriver.engine.heuristics import DEFAULT_HEURISTICS, Heuristic, enabled_heuristics, run_heuristics
from goaldriver.engine.oracle import OracleClient
from goaldriver.engine.page_state import capture_page_state
from goaldriver.engine.planner import plan_next_action, rewrite_goal, verify_completion
from goaldriver.engine.protocols import ExtractionResult, GoalResult, HistoryEntry
from goaldriver.models import LOAD_STATE_TIMEOUT_MS, WAIT_ACTION_MS

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("goaldriver.engine.goal_runner")


class GoalRunner:
    """Drives one live page toward a goal, one oracle-chosen action per step.

    Usage::

        runner = GoalRunner(oracle)
        result = runner.execute_goal(page, "find the newest post", max_steps=12)

    The runner holds no state between goals; the same page may be reused
    for the next goal immediately.
    """

    def __init__(
        self,
        oracle: OracleClient,
        heuristics: tuple[Heuristic, ...] | list[Heuristic] = DEFAULT_HEURISTICS,
        wait_ms: int = WAIT_ACTION_MS,
        on_history: Callable[[HistoryEntry], None] | None = None,
    ) -> None:
        """
        Args:
            oracle: Client used for goal rewrite, planning, and verification.
            heuristics: Ordered pre-step probes; each is enabled per goal by
                its own task pattern.
            wait_ms: Interval for the ``wait`` action.
            on_history: Optional ``(entry) -> None`` invoked for every
                history entry as it is appended (live progress output).
        """
        self._oracle = oracle
        self._heuristics = tuple(heuristics)
        self._wait_ms = wait_ms
        self._on_history = on_history

    # -- Public API ----------------------------------------------------------

    def execute_goal(self, page: Page, task: str, max_steps: int) -> GoalResult:
        """Run one goal to completion or budget exhaustion, then verify.

        ``max_steps`` must be a positive integer; validating it is the
        caller's job.

        Raises:
            OracleError, PlanningError, BudgetExceededError, ConfigurationError:
                the goal cannot proceed.
        """
        history: list[HistoryEntry] = []
        extracted_data: list[ExtractionResult] = []

        # -- Rewriting -------------------------------------------------------
        goal_spec = rewrite_goal(self._oracle, task)
        logger.info("[goal] %s", json.dumps(goal_spec.to_dict(), ensure_ascii=False))

        heuristics = enabled_heuristics(self._heuristics, task)
        executor = ActionExecutor(page, wait_ms=self._wait_ms)

        def record(entry: HistoryEntry) -> None:
            history.append(entry)
            if self._on_history is not None:
                try:
                    self._on_history(entry)
                except Exception as exc:
                    logger.warning("on_history callback failed: %s", exc)

        # -- Stepping --------------------------------------------------------
        for step in range(1, max_steps + 1):
            if heuristics:
                hit = run_heuristics(page, heuristics)
                if hit is not None:
                    record(HistoryEntry.for_heuristic(step, hit.label, hit.reason))

            state = capture_page_state(page)
            decision = plan_next_action(
                self._oracle,
                goal_spec=goal_spec,
                step=step,
                max_steps=max_steps,
                state=state,
                history=history,
                extracted_data=extracted_data,
            )
            record(HistoryEntry.for_decision(step, decision))
            logger.info("[step %d] %s", step, json.dumps(decision.to_dict(), ensure_ascii=False))

            if decision.is_done:
                logger.info("Planner declared done at step %d/%d", step, max_steps)
                break

            try:
                extraction = executor.execute(decision, step=step)
            except ActionExecutionError as exc:
                logger.warning("Step %d %s failed: %s", step, decision.action, exc)
                record(HistoryEntry.for_error(step, str(exc)))
                continue

            if extraction is not None:
                extracted_data.append(extraction)
                logger.info("[extract %d] %s", step, json.dumps(extraction.to_dict(), ensure_ascii=False))

            try:
                page.wait_for_load_state("domcontentloaded", timeout=LOAD_STATE_TIMEOUT_MS)
            except PlaywrightError as exc:
                logger.warning("Step %d load wait failed: %s", step, exc)
                record(HistoryEntry.for_error(step, f"load wait failed: {exc}"))
        else:
            logger.info("Step budget of %d exhausted without done", max_steps)

        # -- Verifying -------------------------------------------------------
        final_state = capture_page_state(page)
        verification = verify_completion(self._oracle, goal_spec, final_state, extracted_data)
        logger.info(
            "Verification: completed=%s missing=%d explanation=%s",
            verification.completed, len(verification.missing), verification.explanation[:120],
        )

        return GoalResult(
            history=history,
            extracted_data=extracted_data,
            final_state=final_state,
            goal_spec=goal_spec,
            verification=verification,
        )
