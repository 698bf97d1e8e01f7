"""goaldriver CLI -- Typer-based command-line interface."""
