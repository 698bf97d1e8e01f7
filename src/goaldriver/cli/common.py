"""Helpers shared by the ``run`` and ``chat`` commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer

from goaldriver.config import ConfigurationError, GoalDriverConfig, find_project_dir, load_config
from goaldriver.credentials import resolve_api_key
from goaldriver.engine.cost_tracker import BudgetExceededError, CostTracker
from goaldriver.engine.goal_runner import GoalRunner
from goaldriver.engine.oracle import OracleClient, OracleError
from goaldriver.engine.planner import PlanningError
from goaldriver.engine.report import ResultReporter

logger = logging.getLogger("goaldriver.cli.common")

# Errors that end the current goal. Action-level failures never get here.
GOAL_FATAL_ERRORS = (OracleError, PlanningError, BudgetExceededError, ConfigurationError)


def error_category(exc: BaseException) -> str:
    """Human-readable category for a goal-fatal error."""
    if isinstance(exc, ConfigurationError):
        return "Config Error"
    if isinstance(exc, BudgetExceededError):
        return "Budget Error"
    if isinstance(exc, PlanningError):
        return "Planning Error"
    if isinstance(exc, OracleError):
        return "Oracle Error"
    return "Error"


def build_config(reporter: ResultReporter, project_dir: Path | None = None, **overrides: Any) -> GoalDriverConfig:
    """Load config (file, env, CLI overrides) and attach the API key.

    Exits with code 2 on any configuration problem, before a browser opens.
    """
    project_dir = project_dir or find_project_dir()
    try:
        config = load_config(project_dir).with_overrides(**overrides)
    except ConfigurationError as exc:
        reporter.print_error(str(exc), "Config Error")
        raise typer.Exit(code=2)

    try:
        api_key = resolve_api_key(project_dir)
    except ConfigurationError as exc:
        reporter.print_error(str(exc), "API Key Error")
        raise typer.Exit(code=2)

    return config.with_overrides(api_key=api_key)


def build_runner(config: GoalDriverConfig, reporter: ResultReporter) -> tuple[OracleClient, GoalRunner]:
    """Create the oracle client (with a per-run cost tracker) and the goal runner."""
    oracle = OracleClient(config, cost_tracker=CostTracker(per_run_usd=config.budget_usd))
    runner = GoalRunner(oracle, wait_ms=config.wait_action_ms, on_history=reporter.print_history_entry)
    return oracle, runner
