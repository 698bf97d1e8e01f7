"""goaldriver engine -- the goal-execution core.

Provides the plan/act/verify engine:
- GoalRunner: step-bounded loop that rewrites, plans, acts, and verifies a goal
- OracleClient: one parametrized request function over the Anthropic API
- ActionExecutor: runs one validated browser action against a Playwright page
- capture_page_state: compact, bounded snapshot of the current page
- Heuristics: opt-in pre-step probes (cookie-consent dismissal)
- BrowserSession: Playwright lifecycle for one Chromium page
- ResultReporter: rich/JSON rendering of goal results
- CostTracker: oracle token cost tracking and budget enforcement
"""

from goaldriver.engine.action_executor import ActionExecutor
from goaldriver.engine.actions import (
    ActionExecutionError,
    ActionValidationError,
    DriverError,
    ElementNotFoundError,
    UnsupportedActionError,
    parse_action,
)
from goaldriver.engine.cost_tracker import BudgetExceededError, CostTracker
from goaldriver.engine.goal_runner import GoalRunner
from goaldriver.engine.heuristics import DEFAULT_HEURISTICS, CookieConsentHeuristic, Heuristic
from goaldriver.engine.oracle import (
    EmptyResponseError,
    MalformedResponseError,
    OracleClient,
    OracleError,
    UpstreamError,
)
from goaldriver.engine.page_state import capture_page_state
from goaldriver.engine.planner import PlanningError, summarize_for_user
from goaldriver.engine.protocols import (
    ActionDecision,
    ExtractionResult,
    GoalResult,
    GoalSpec,
    HistoryEntry,
    PageState,
    Verification,
)
from goaldriver.engine.report import ResultReporter, screenshot_path_for
from goaldriver.engine.session import BrowserSession

__all__ = [
    "ActionDecision",
    "ActionExecutionError",
    "ActionExecutor",
    "ActionValidationError",
    "BrowserSession",
    "BudgetExceededError",
    "CookieConsentHeuristic",
    "CostTracker",
    "DEFAULT_HEURISTICS",
    "DriverError",
    "ElementNotFoundError",
    "EmptyResponseError",
    "ExtractionResult",
    "GoalResult",
    "GoalRunner",
    "GoalSpec",
    "Heuristic",
    "HistoryEntry",
    "MalformedResponseError",
    "OracleClient",
    "OracleError",
    "PageState",
    "PlanningError",
    "ResultReporter",
    "UnsupportedActionError",
    "UpstreamError",
    "Verification",
    "capture_page_state",
    "parse_action",
    "screenshot_path_for",
    "summarize_for_user",
]
