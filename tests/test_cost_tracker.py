"""Unit tests for goaldriver.engine.cost_tracker -- CostTracker and cost accounting."""

from __future__ import annotations

import logging

import pytest

from goaldriver.engine.cost_tracker import (
    _FALLBACK_PRICING,
    MODEL_PRICING,
    APICall,
    BudgetExceededError,
    CostTracker,
)
from goaldriver.models import PRICING

HAIKU = "claude-haiku-4-5-20251001"
SONNET = "claude-sonnet-4-20250514"


# ---------------------------------------------------------------------------
# 1. Initialization
# ---------------------------------------------------------------------------

class TestCostTrackerInit:

    def test_default_initialization(self):
        ct = CostTracker()
        assert ct.get_summary().total_cost_usd == 0.0
        summary = ct.get_summary()
        assert summary.call_count == 0
        assert summary.budget_exceeded is False

    def test_pricing_table_mirrors_models(self):
        for model_id, prices in PRICING.items():
            assert MODEL_PRICING[model_id] == (prices["input"], prices["output"])


# ---------------------------------------------------------------------------
# 2. record_call()
# ---------------------------------------------------------------------------

class TestRecordCall:

    def test_returns_api_call(self):
        ct = CostTracker()
        call = ct.record_call(SONNET, 1000, 500, purpose="planning")
        assert isinstance(call, APICall)
        assert call.model == SONNET
        assert call.purpose == "planning"
        assert call.cost_usd == pytest.approx(0.003 + 0.0075)

    def test_accumulates(self):
        ct = CostTracker()
        ct.record_call(HAIKU, 1_000_000, 0, purpose="summary")
        ct.record_call(HAIKU, 0, 1_000_000, purpose="summary")
        assert ct.get_summary().total_cost_usd == pytest.approx(4.80)
        assert ct.get_summary().call_count == 2

    def test_unknown_model_uses_fallback_pricing(self):
        ct = CostTracker()
        call = ct.record_call("some-future-model", 1_000_000, 0)
        assert call.cost_usd == pytest.approx(_FALLBACK_PRICING[0])


# ---------------------------------------------------------------------------
# 3. Budget enforcement
# ---------------------------------------------------------------------------

class TestBudget:

    def test_zero_budget_never_raises(self, caplog: pytest.LogCaptureFixture):
        ct = CostTracker(per_run_usd=0.0)
        with caplog.at_level(logging.WARNING, logger="goaldriver.engine.cost_tracker"):
            ct.record_call(SONNET, 10_000_000, 10_000_000)
        assert ct.get_summary().budget_exceeded is False
        assert caplog.records == []

    def test_warning_at_threshold_logged_once(self, caplog: pytest.LogCaptureFixture):
        ct = CostTracker(per_run_usd=1.0, warn_at_pct=50)
        with caplog.at_level(logging.WARNING, logger="goaldriver.engine.cost_tracker"):
            ct.record_call(HAIKU, 1_000_000, 0)  # $0.80
            ct.record_call(HAIKU, 10_000, 0)
        assert [r.getMessage() for r in caplog.records] == ["Oracle spend at 80% of budget ($0.8000 of $1.00)"]
        assert ct.get_summary().budget_exceeded is False

    def test_exceeding_raises(self):
        ct = CostTracker(per_run_usd=1.0)
        with pytest.raises(BudgetExceededError, match="budget exceeded"):
            ct.record_call(SONNET, 1_000_000, 0)  # $3.00
        assert ct.get_summary().budget_exceeded is True
        # The call is still recorded
        assert ct.get_summary().call_count == 1


# ---------------------------------------------------------------------------
# 4. get_summary()
# ---------------------------------------------------------------------------

class TestSummary:

    def test_groups_by_purpose_and_model(self):
        ct = CostTracker(per_run_usd=10.0)
        ct.record_call(SONNET, 1000, 100, purpose="planning")
        ct.record_call(SONNET, 1000, 100, purpose="planning")
        ct.record_call(HAIKU, 1000, 100, purpose="summary")
        summary = ct.get_summary()
        assert summary.call_count == 3
        assert summary.calls_by_purpose == {"planning": 2, "summary": 1}
        assert set(summary.cost_by_model) == {SONNET, HAIKU}
        assert summary.total_input_tokens == 3000
        assert summary.total_output_tokens == 300
        assert summary.budget_limit_usd == 10.0

    def test_to_dict_is_wire_shape(self):
        ct = CostTracker(per_run_usd=2.5)
        ct.record_call(SONNET, 1000, 500, purpose="planning")
        data = ct.get_summary().to_dict()
        assert data["callsByPurpose"] == {"planning": 1}
        assert data["totalUsd"] == pytest.approx(0.0105)
        assert data["budgetUsd"] == 2.5
        assert data["budgetExceeded"] is False
