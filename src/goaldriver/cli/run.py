"""goaldriver run -- Drive the browser toward one goal and report the outcome.

Launches Chromium, opens the start URL, runs the plan/act/verify loop for
the task, saves a screenshot named by the verification outcome, and prints
the result.

Exit codes:
    0  verification completed
    1  verification not completed (or interrupted)
    2  configuration error (nothing launched)
    3  the goal could not proceed (oracle, planning, budget, or browser failure)
"""

from __future__ import annotations

import logging

import typer
from playwright.sync_api import Error as PlaywrightError
from rich.console import Console

from goaldriver.cli.common import GOAL_FATAL_ERRORS, build_config, build_runner, error_category
from goaldriver.credentials import mask_key
from goaldriver.engine.report import ResultReporter, screenshot_path_for
from goaldriver.engine.session import BrowserSession

console = Console(stderr=True)
output_console = Console()  # stdout for machine-readable output

logger = logging.getLogger("goaldriver.cli.run")


def run(
    task: str | None = typer.Option(
        None,
        "--task",
        "-t",
        help="Natural-language goal. Falls back to AUTOMATION_TASK, then the config file.",
    ),
    url: str | None = typer.Option(
        None,
        "--url",
        "-u",
        help="Start URL. Falls back to AUTOMATION_START_URL, then the config file.",
    ),
    max_steps: int | None = typer.Option(
        None,
        "--max-steps",
        "-n",
        min=1,
        help="Step budget (positive integer). Falls back to AUTOMATION_MAX_STEPS.  [default: 12]",
    ),
    headless: bool | None = typer.Option(
        None,
        "--headless/--headed",
        help="Run the browser headless (default) or visible.",
    ),
    screenshot: bool | None = typer.Option(
        None,
        "--screenshot/--no-screenshot",
        help="Save a full-page screenshot when the goal ends.  [default: on]",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the resolved configuration and exit without launching a browser.",
    ),
    output_format: str = typer.Option(
        "text",
        "--output",
        "-o",
        help="Output format: text or json.  [default: text]",
    ),
) -> None:
    """Run one goal against a live browser page.

    \b
    Examples:
      goaldriver run --task "Open example.com and extract the main heading text" --url https://example.com/
      goaldriver run -t "search for iPhone 17" --headed
      goaldriver run -t "find the docs link" --output json | jq '.verification'
    """
    reporter = ResultReporter(console=console, output_console=output_console, output_format=output_format)

    if output_format not in ("text", "json"):
        reporter.print_error(f"Invalid output format: {output_format!r}\n\nValid formats: text, json", "Config Error")
        raise typer.Exit(code=2)

    config = build_config(
        reporter,
        task=task,
        start_url=url,
        max_steps=max_steps,
        headless=headless,
        save_screenshot=screenshot,
    )
    if config.max_steps < 1:
        reporter.print_error(f"Invalid max steps: {config.max_steps} (must be a positive integer)", "Config Error")
        raise typer.Exit(code=2)

    reporter.print_header("one-shot", config, mask_key(config.api_key))

    if dry_run:
        if not reporter.is_json:
            console.print("[dim]Dry run mode; no browser session launched.[/dim]")
        return

    oracle, runner = build_runner(config, reporter)

    try:
        with BrowserSession(headless=config.headless) as session:
            page = session.open(config.start_url)
            result = runner.execute_goal(page, config.task, config.max_steps)
            if config.save_screenshot:
                saved = session.screenshot(screenshot_path_for(result.verification, config))
                if saved is not None:
                    reporter.print_screenshot(saved)
    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user.[/yellow]")
        raise typer.Exit(code=1)
    except GOAL_FATAL_ERRORS as exc:
        logger.debug("Goal aborted", exc_info=True)
        reporter.print_error(str(exc), error_category(exc))
        raise typer.Exit(code=3)
    except PlaywrightError as exc:
        logger.error("Browser failure", exc_info=True)
        reporter.print_error(
            f"{exc}\n\nIs Chromium installed? Try: playwright install chromium",
            "Browser Error",
        )
        raise typer.Exit(code=3)

    reporter.print_result(result, cost=oracle.cost_tracker.get_summary())

    if not result.verification.completed:
        raise typer.Exit(code=1)
