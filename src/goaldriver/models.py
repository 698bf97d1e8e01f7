"""Centralized model configuration, pricing, and engine defaults."""

# Model IDs per oracle call site
MODELS = {
    "planner": "claude-sonnet-4-20250514",
    "verifier": "claude-sonnet-4-20250514",
    "summary": "claude-haiku-4-5-20251001",
}

# Pricing per million tokens (USD)
PRICING = {
    "claude-haiku-4-5-20251001": {"input": 0.80, "output": 4.00},
    "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
}

# Oracle request shape
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.1
DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 2

# Caller-facing defaults
DEFAULT_TASK = "Open Amazon and search for iPhone 17."
DEFAULT_START_URL = "https://www.amazon.com/"
DEFAULT_MAX_STEPS = 12

# 0 disables the per-run budget
DEFAULT_BUDGET_USD = 0.0

# Page-state caps (bound the oracle prompt size)
MAX_INPUTS = 14
MAX_BUTTONS = 14
MAX_LINKS = 16
MAX_LINK_TEXT = 100

# Timings (milliseconds)
WAIT_ACTION_MS = 1200
HEURISTIC_CLICK_TIMEOUT_MS = 2000
HEURISTIC_SETTLE_MS = 800
LOAD_STATE_TIMEOUT_MS = 30_000

# History entries forwarded to the user summary call
SUMMARY_HISTORY_LIMIT = 8

# Screenshot naming by verification outcome
SCREENSHOT_COMPLETED = "automation-final.png"
SCREENSHOT_PARTIAL = "automation-partial.png"
