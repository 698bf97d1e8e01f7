"""goaldriver configuration management."""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from goaldriver.models import (
    DEFAULT_BUDGET_USD,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_STEPS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_START_URL,
    DEFAULT_TASK,
    DEFAULT_TEMPERATURE,
    MODELS,
    SCREENSHOT_COMPLETED,
    SCREENSHOT_PARTIAL,
    WAIT_ACTION_MS,
)

logger = logging.getLogger("goaldriver.config")

PROJECT_DIR_NAME = ".goaldriver"

# Environment variables read by with_env()
ENV_TASK = "AUTOMATION_TASK"
ENV_START_URL = "AUTOMATION_START_URL"
ENV_MAX_STEPS = "AUTOMATION_MAX_STEPS"
ENV_MODEL = "GOALDRIVER_MODEL"
ENV_BUDGET = "GOALDRIVER_BUDGET"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or the oracle credential is missing."""

    pass


@dataclass(frozen=True)
class GoalDriverConfig:
    """Process-wide settings, loaded once and passed explicitly."""

    # Oracle
    # repr=False keeps the key out of logs and tracebacks that print the config.
    api_key: str = field(default="", repr=False)
    model_planner: str = MODELS["planner"]
    model_verifier: str = MODELS["verifier"]
    model_summary: str = MODELS["summary"]
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    budget_usd: float = DEFAULT_BUDGET_USD

    # Goal
    task: str = DEFAULT_TASK
    start_url: str = DEFAULT_START_URL
    max_steps: int = DEFAULT_MAX_STEPS
    wait_action_ms: int = WAIT_ACTION_MS

    # Browser / artifacts
    headless: bool = True
    save_screenshot: bool = True
    screenshot_completed: str = SCREENSHOT_COMPLETED
    screenshot_partial: str = SCREENSHOT_PARTIAL

    project_dir: Path = field(default_factory=lambda: Path(PROJECT_DIR_NAME))

    @classmethod
    def from_file(cls, config_path: Path) -> GoalDriverConfig:
        """Load config from a YAML file."""
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {config_path}")
        return cls._from_dict(data, config_path.parent)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], project_dir: Path) -> GoalDriverConfig:
        """Create config from a dictionary of YAML keys."""
        kwargs: dict[str, Any] = {"project_dir": project_dir}

        models = data.get("models")
        if isinstance(models, dict):
            for tier in ("planner", "verifier", "summary"):
                if tier in models:
                    kwargs[f"model_{tier}"] = str(models[tier])

        try:
            if "max_tokens" in data:
                kwargs["max_tokens"] = int(data["max_tokens"])
            if "temperature" in data:
                kwargs["temperature"] = float(data["temperature"])
            if "request_timeout" in data:
                kwargs["request_timeout"] = float(data["request_timeout"])
            if "max_retries" in data:
                kwargs["max_retries"] = int(data["max_retries"])
            if "budget" in data:
                kwargs["budget_usd"] = float(data["budget"])
            if "max_steps" in data:
                kwargs["max_steps"] = int(data["max_steps"])
            if "wait_ms" in data:
                kwargs["wait_action_ms"] = int(data["wait_ms"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric value in config: {exc}") from exc

        if "task" in data:
            kwargs["task"] = str(data["task"])
        if "start_url" in data:
            kwargs["start_url"] = str(data["start_url"])
        if "headless" in data:
            kwargs["headless"] = bool(data["headless"])

        screenshots = data.get("screenshots")
        if isinstance(screenshots, dict):
            if "enabled" in screenshots:
                kwargs["save_screenshot"] = bool(screenshots["enabled"])
            if "completed" in screenshots:
                kwargs["screenshot_completed"] = str(screenshots["completed"])
            if "partial" in screenshots:
                kwargs["screenshot_partial"] = str(screenshots["partial"])

        return cls(**kwargs)

    def with_env(self, environ: dict[str, str] | None = None) -> GoalDriverConfig:
        """Return a copy with environment-variable overrides applied."""
        env = os.environ if environ is None else environ
        changes: dict[str, Any] = {}

        if task := env.get(ENV_TASK):
            changes["task"] = task
        if url := env.get(ENV_START_URL):
            changes["start_url"] = url
        if model := env.get(ENV_MODEL):
            changes["model_planner"] = model
            changes["model_verifier"] = model

        raw_steps = env.get(ENV_MAX_STEPS)
        if raw_steps is not None:
            try:
                changes["max_steps"] = int(raw_steps)
            except ValueError:
                logger.warning("Ignoring invalid %s value: %r", ENV_MAX_STEPS, raw_steps)

        raw_budget = env.get(ENV_BUDGET)
        if raw_budget is not None:
            try:
                changes["budget_usd"] = float(raw_budget)
            except ValueError:
                logger.warning("Ignoring invalid %s value: %r", ENV_BUDGET, raw_budget)

        return dataclasses.replace(self, **changes)

    def with_overrides(self, **overrides: Any) -> GoalDriverConfig:
        """Return a copy with non-None keyword overrides applied (CLI options)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


def find_project_dir(start: Path | None = None) -> Path:
    """Find the .goaldriver/ project directory, searching upward from *start*."""
    current = start or Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / PROJECT_DIR_NAME
        if candidate.is_dir():
            return candidate
    return current / PROJECT_DIR_NAME


def load_config(project_dir: Path | None = None, environ: dict[str, str] | None = None) -> GoalDriverConfig:
    """Load config.yaml from the project dir (if any), then apply the environment."""
    project_dir = project_dir or find_project_dir()
    config_path = project_dir / "config.yaml"
    if config_path.is_file():
        config = GoalDriverConfig.from_file(config_path)
    else:
        config = GoalDriverConfig(project_dir=project_dir)
    return config.with_env(environ)
