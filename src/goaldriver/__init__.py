"""goaldriver -- drive a browser toward a natural-language goal with an LLM planner."""

__version__ = "0.1.0"
