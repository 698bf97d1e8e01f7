"""goaldriver CLI -- Main Typer entry point.

Registers the subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from goaldriver import __version__

TAGLINE = "Tell the browser what you want; it works out the clicks."

console = Console()

# ── Version callback ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print("goaldriver", style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        console.print(f"  v{__version__}\n", style="bold")
        raise typer.Exit()


# ── Main app ──────────────────────────────────────────────────────────────

app = typer.Typer(
    name="goaldriver",
    help=f"goaldriver -- {TAGLINE}",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show goaldriver version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging (oracle calls, step decisions, costs).",
    ),
) -> None:
    """goaldriver -- LLM-planned browser automation toward a natural-language goal."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from goaldriver.cli.chat import chat  # noqa: E402
from goaldriver.cli.run import run  # noqa: E402

app.command(name="run", help="Run one goal and report whether it was achieved.")(run)
app.command(name="chat", help="Interactive goals against one persistent page.")(chat)
