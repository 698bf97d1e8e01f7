"""goaldriver Result Reporter -- Renders goal results for the terminal.

Human output goes to stderr through ``rich``; ``--output json`` writes the
machine-readable GoalResult dict to stdout so it can be piped.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from goaldriver.engine.protocols import GoalResult, HistoryEntry, Verification

if TYPE_CHECKING:
    from goaldriver.config import GoalDriverConfig
    from goaldriver.engine.cost_tracker import CostSummary


def screenshot_path_for(verification: Verification, config: GoalDriverConfig) -> Path:
    """Screenshot file for a goal outcome: the completed name or the partial one."""
    name = config.screenshot_completed if verification.completed else config.screenshot_partial
    return Path(name)


def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


class ResultReporter:
    """Prints run headers, live step lines, and final results.

    Args:
        console: Console for human-readable output (stderr by default).
        output_console: Console for machine-readable output (stdout).
        output_format: ``"text"`` or ``"json"``.
    """

    def __init__(
        self,
        console: Console | None = None,
        output_console: Console | None = None,
        output_format: str = "text",
    ) -> None:
        self.console = console or Console(stderr=True)
        self.output_console = output_console or Console()
        self.output_format = output_format

    @property
    def is_json(self) -> bool:
        return self.output_format == "json"

    # -- Header --------------------------------------------------------------

    def print_header(self, mode: str, config: GoalDriverConfig, api_key_display: str) -> None:
        """Print the resolved run settings."""
        if self.is_json:
            return
        lines = [
            f"[bold]Mode:[/bold]        {mode}",
        ]
        if mode == "one-shot":
            lines.append(f"[bold]Task:[/bold]        {escape(config.task)}")
        lines.extend([
            f"[bold]Start URL:[/bold]   {config.start_url}",
            f"[bold]Max steps:[/bold]   {config.max_steps}",
            f"[bold]Headless:[/bold]    {config.headless}",
            f"[bold]Screenshot:[/bold]  {config.save_screenshot}",
            f"[bold]Planner:[/bold]     {config.model_planner}",
            f"[bold]Budget:[/bold]      {'none' if config.budget_usd <= 0 else f'${config.budget_usd:.2f}'}",
            f"[bold]API Key:[/bold]     {api_key_display}",
        ])
        self.console.print()
        self.console.print(Panel("\n".join(lines), title="[bold cyan]goaldriver[/bold cyan]", border_style="cyan"))
        self.console.print()

    # -- Live progress -------------------------------------------------------

    def print_history_entry(self, entry: HistoryEntry) -> None:
        """One line per history entry as the loop appends it."""
        if self.is_json:
            return
        if entry.is_error:
            self.console.print(f"  [bold red]✗[/bold red] step {entry.step}  [dim red]{escape(entry.error)}[/dim red]")
            return
        target = entry.selector or ""
        if entry.text not in (None, ""):
            target = f"{target} {entry.text!r}".strip()
        line = f"  [bold green]→[/bold green] step {entry.step}  [cyan]{entry.action}[/cyan]"
        if target:
            line += f"  {escape(target)}"
        if entry.reason:
            line += f"  [dim]{escape(entry.reason)}[/dim]"
        self.console.print(line)

    def print_error(self, message: str, title: str = "Error") -> None:
        self.console.print(Panel(f"[red]{escape(message)}[/red]", title=f"[red]{title}[/red]", border_style="red"))

    def print_screenshot(self, path: Path) -> None:
        if not self.is_json:
            self.console.print(f"[dim]Saved screenshot to {path}[/dim]")

    # -- Results -------------------------------------------------------------

    def print_result(self, result: GoalResult, cost: CostSummary | None = None) -> None:
        """One-shot output: extracted data, verification, final URL, oracle spend."""
        if self.is_json:
            payload = result.to_dict()
            if cost is not None:
                payload["cost"] = cost.to_dict()
            self.output_console.print_json(_dumps(payload))
            return

        verification = result.verification
        if result.extracted_data:
            table = Table(title="Extracted data", border_style="cyan")
            table.add_column("Step", justify="right")
            table.add_column("Mode")
            table.add_column("Selector")
            table.add_column("Value", overflow="fold")
            for item in result.extracted_data:
                table.add_row(str(item.step), item.mode, item.selector or "", item.value)
            self.console.print(table)

        if verification.completed:
            border, verdict = "green", "[bold green]COMPLETED[/bold green]"
        else:
            border, verdict = "red", "[bold red]NOT COMPLETED[/bold red]"
        lines = [
            verdict,
            "",
            f"  Explanation:  {escape(verification.explanation) or '-'}",
        ]
        if verification.missing:
            lines.append(f"  Missing:      {escape(', '.join(verification.missing))}")
        lines.append(f"  Steps:        {len({h.step for h in result.history})}")
        lines.append(f"  Final URL:    {result.final_state.url}")
        if cost is not None:
            by_purpose = ", ".join(f"{purpose} {count}" for purpose, count in cost.calls_by_purpose.items())
            lines.append(f"  Cost:         ${cost.total_cost_usd:.4f}")
            lines.append(f"  Oracle calls: {cost.call_count} ({by_purpose or 'none'})")
        self.console.print()
        self.console.print(Panel("\n".join(lines), border_style=border))
        self.console.print()

    def print_chat_reply(self, summary: str, result: GoalResult) -> None:
        """Chat output: summary, current page, verification line, extracted data."""
        verification = result.verification
        status = "completed" if verification.completed else "not completed"
        self.console.print()
        self.console.print(f"[bold magenta]AI>[/bold magenta] {escape(summary)}")
        self.console.print(f"[bold magenta]AI>[/bold magenta] Current page: {result.final_state.url}")
        self.console.print(
            f"[bold magenta]AI>[/bold magenta] Verification: {status} - {escape(verification.explanation)}"
        )
        if result.extracted_data:
            extracted = _dumps([e.to_dict() for e in result.extracted_data])
            self.console.print(f"[bold magenta]AI>[/bold magenta] Extracted: {escape(extracted)}")
