"""goaldriver chat -- Interactive goals against one persistent browser page.

Each line read from stdin is a goal. The page carries over from goal to
goal; nothing is reset between them. Type ``exit`` (or send EOF) to stop.
"""

from __future__ import annotations

import logging

import typer
from playwright.sync_api import Error as PlaywrightError
from rich.console import Console
from rich.markup import escape

from goaldriver.cli.common import GOAL_FATAL_ERRORS, build_config, build_runner, error_category
from goaldriver.credentials import mask_key
from goaldriver.engine.planner import summarize_for_user
from goaldriver.engine.report import ResultReporter, screenshot_path_for
from goaldriver.engine.session import BrowserSession

console = Console(stderr=True)

logger = logging.getLogger("goaldriver.cli.chat")

EXIT_WORD = "exit"


def chat(
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
        help="Step budget per goal (positive integer).  [default: 12]",
    ),
    headless: bool | None = typer.Option(
        None,
        "--headless/--headed",
        help="Run the browser headless (default) or visible.",
    ),
    screenshot: bool | None = typer.Option(
        None,
        "--screenshot/--no-screenshot",
        help="Refresh a full-page screenshot after every goal.  [default: on]",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the resolved configuration and exit without launching a browser.",
    ),
) -> None:
    """Chat with the browser: type goals, get summaries.

    \b
    Examples:
      goaldriver chat --url https://www.youtube.com/ --headed
      echo "find the newest post" | goaldriver chat --url https://example.com/
    """
    reporter = ResultReporter(console=console)

    config = build_config(
        reporter,
        start_url=url,
        max_steps=max_steps,
        headless=headless,
        save_screenshot=screenshot,
    )
    if config.max_steps < 1:
        reporter.print_error(f"Invalid max steps: {config.max_steps} (must be a positive integer)", "Config Error")
        raise typer.Exit(code=2)

    reporter.print_header("chat", config, mask_key(config.api_key))

    if dry_run:
        console.print("[dim]Dry run mode; no browser session launched.[/dim]")
        return

    oracle, runner = build_runner(config, reporter)

    try:
        with BrowserSession(headless=config.headless) as session:
            page = session.open(config.start_url)
            console.print("AI browser chat is ready. Type goals like:")
            console.print("  [dim]go to youtube, find the newest cdawgva video, open it, and screenshot it[/dim]")
            console.print(f'Type "{EXIT_WORD}" to stop.')

            while True:
                try:
                    user_goal = console.input("\n[bold]You>[/bold] ").strip()
                except EOFError:
                    break
                if not user_goal:
                    continue
                if user_goal.lower() == EXIT_WORD:
                    break

                try:
                    result = runner.execute_goal(page, user_goal, config.max_steps)
                    summary = summarize_for_user(oracle, user_goal, result)
                except GOAL_FATAL_ERRORS as exc:
                    logger.debug("Goal aborted", exc_info=True)
                    console.print(f"[bold red]AI> {error_category(exc)}:[/bold red] {escape(str(exc))}")
                    continue

                reporter.print_chat_reply(summary, result)

                if config.save_screenshot:
                    saved = session.screenshot(screenshot_path_for(result.verification, config))
                    if saved is not None:
                        console.print(f"[bold magenta]AI>[/bold magenta] Updated screenshot: {saved}")
    except KeyboardInterrupt:
        console.print("\n[yellow]Chat interrupted by user.[/yellow]")
        raise typer.Exit(code=1)
    except PlaywrightError as exc:
        logger.error("Browser failure", exc_info=True)
        reporter.print_error(
            f"{exc}\n\nIs Chromium installed? Try: playwright install chromium",
            "Browser Error",
        )
        raise typer.Exit(code=3)

    console.print("[dim]Session closed.[/dim]")
