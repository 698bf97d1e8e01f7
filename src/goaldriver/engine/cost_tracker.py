"""goaldriver Cost Tracker -- Tracks oracle token costs and enforces a run budget.

Records model, tokens in/out, and USD for every oracle call, grouped by
purpose (goal rewrite, planning, verification, summary).  A per-run cap of
``0`` disables enforcement.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import Any

from goaldriver.models import PRICING

logger = logging.getLogger("goaldriver.engine.cost_tracker")


def _build_model_pricing() -> dict[str, tuple[float, float]]:
    """Convert PRICING dict to (input, output) tuple lookup."""
    return {model_id: (prices["input"], prices["output"]) for model_id, prices in PRICING.items()}


MODEL_PRICING: dict[str, tuple[float, float]] = _build_model_pricing()

# Pricing assumed for model IDs missing from PRICING
_FALLBACK_PRICING = (3.00, 15.00)


@dataclasses.dataclass
class APICall:
    """Record of a single oracle call."""

    timestamp: str
    model: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    purpose: str  # goal_rewrite, planning, verification, summary


@dataclasses.dataclass
class CostSummary:
    """Aggregated cost summary for a run."""

    total_cost_usd: float
    total_input_tokens: int
    total_output_tokens: int
    calls_by_purpose: dict[str, int]
    cost_by_model: dict[str, float]
    budget_limit_usd: float
    budget_exceeded: bool
    call_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalUsd": self.total_cost_usd,
            "inputTokens": self.total_input_tokens,
            "outputTokens": self.total_output_tokens,
            "callsByPurpose": dict(self.calls_by_purpose),
            "costByModel": dict(self.cost_by_model),
            "budgetUsd": self.budget_limit_usd,
            "budgetExceeded": self.budget_exceeded,
            "callCount": self.call_count,
        }


class CostTracker:
    """Tracks oracle token costs for a single run and enforces its budget."""

    def __init__(self, per_run_usd: float = 0.0, warn_at_pct: int = 80) -> None:
        self._per_run_usd = per_run_usd
        self._warn_at_pct = warn_at_pct
        self._calls: list[APICall] = []
        self._total_cost: float = 0.0
        self._total_input_tokens: int = 0
        self._total_output_tokens: int = 0
        self._warning_issued: bool = False
        self._budget_exceeded: bool = False

    def record_call(
        self,
        model: str,
        input_tokens: int,
        output_tokens: int,
        purpose: str = "",
    ) -> APICall:
        """Record an oracle call and return the call record.

        Raises BudgetExceededError if the per-run cap is exceeded.
        """
        cost = self._calculate_cost(model, input_tokens, output_tokens)
        call = APICall(
            timestamp=dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=round(cost, 6),
            purpose=purpose,
        )
        self._calls.append(call)
        self._total_cost += cost
        self._total_input_tokens += input_tokens
        self._total_output_tokens += output_tokens

        if self._per_run_usd <= 0:
            return call

        if not self._warning_issued:
            pct_used = (self._total_cost / self._per_run_usd) * 100
            if pct_used >= self._warn_at_pct:
                self._warning_issued = True
                logger.warning(
                    "Oracle spend at %.0f%% of budget ($%.4f of $%.2f)",
                    pct_used, self._total_cost, self._per_run_usd,
                )

        if self._total_cost > self._per_run_usd:
            self._budget_exceeded = True
            raise BudgetExceededError(f"Run budget exceeded: ${self._total_cost:.4f} > ${self._per_run_usd:.2f} limit")

        return call

    def get_summary(self) -> CostSummary:
        """Return aggregated cost summary."""
        calls_by_purpose: dict[str, int] = {}
        cost_by_model: dict[str, float] = {}
        for call in self._calls:
            calls_by_purpose[call.purpose] = calls_by_purpose.get(call.purpose, 0) + 1
            cost_by_model[call.model] = cost_by_model.get(call.model, 0.0) + call.cost_usd
        cost_by_model = {k: round(v, 6) for k, v in cost_by_model.items()}

        return CostSummary(
            total_cost_usd=round(self._total_cost, 6),
            total_input_tokens=self._total_input_tokens,
            total_output_tokens=self._total_output_tokens,
            calls_by_purpose=calls_by_purpose,
            cost_by_model=cost_by_model,
            budget_limit_usd=self._per_run_usd,
            budget_exceeded=self._budget_exceeded,
            call_count=len(self._calls),
        )

    @staticmethod
    def _calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
        """Calculate USD cost for a single oracle call."""
        input_price, output_price = MODEL_PRICING.get(model, _FALLBACK_PRICING)
        return (input_tokens / 1_000_000) * input_price + (output_tokens / 1_000_000) * output_price


class BudgetExceededError(Exception):
    """Raised when a run exceeds its per-run oracle budget."""

    pass
