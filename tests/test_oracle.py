"""Unit tests for goaldriver.engine.oracle -- request, error mapping, JSON decoding."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from conftest import make_message, scripted_client

from goaldriver.config import ConfigurationError, GoalDriverConfig
from goaldriver.engine.cost_tracker import BudgetExceededError, CostTracker
from goaldriver.engine.oracle import (
    EmptyResponseError,
    MalformedResponseError,
    OracleClient,
    OracleSchema,
    ResponseFormat,
    UpstreamError,
    parse_json_object,
)

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


# ---------------------------------------------------------------------------
# 1. request() -- wire shape
# ---------------------------------------------------------------------------

class TestRequest:

    def test_sends_system_prompt_and_json_context(self, config: GoalDriverConfig):
        client = scripted_client([{"ok": True}])
        oracle = OracleClient(config, client=client)

        reply = oracle.request("be strict", {"step": 1}, model="m-1", purpose="planning")

        assert reply == {"ok": True}
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "be strict"
        assert kwargs["model"] == "m-1"
        assert kwargs["messages"] == [{"role": "user", "content": '{"step": 1}'}]
        assert kwargs["temperature"] == config.temperature
        assert kwargs["max_tokens"] == config.max_tokens

    def test_string_context_sent_verbatim(self, config: GoalDriverConfig):
        client = scripted_client([{"objective": "x"}])
        OracleClient(config, client=client).request("p", "Open example.com")
        assert client.messages.create.call_args.kwargs["messages"][0]["content"] == "Open example.com"

    def test_free_text_returned_stripped(self, config: GoalDriverConfig):
        client = scripted_client(["  - done\n"])
        reply = OracleClient(config, client=client).request("p", {}, ResponseFormat.FREE_TEXT)
        assert reply == "- done"

    def test_records_usage(self, config: GoalDriverConfig):
        client = MagicMock()
        client.messages.create.return_value = make_message("{}", input_tokens=1000, output_tokens=10)
        tracker = CostTracker()
        OracleClient(config, cost_tracker=tracker, client=client).request("p", {}, purpose="verification")
        assert tracker.get_summary().total_input_tokens == 1000
        assert tracker.get_summary().calls_by_purpose == {"verification": 1}

    def test_budget_overrun_raises(self, config: GoalDriverConfig):
        client = MagicMock()
        client.messages.create.return_value = make_message("{}", input_tokens=1_000_000, output_tokens=0)
        oracle = OracleClient(config, cost_tracker=CostTracker(per_run_usd=0.01), client=client)
        with pytest.raises(BudgetExceededError):
            oracle.request("p", {})

    def test_missing_credential_fails_at_construction(self):
        client = MagicMock()
        with pytest.raises(ConfigurationError):
            OracleClient(GoalDriverConfig(api_key=""), client=client)
        client.messages.create.assert_not_called()


# ---------------------------------------------------------------------------
# 2. request() -- failures
# ---------------------------------------------------------------------------

class TestRequestErrors:

    def test_status_error_becomes_upstream_error(self, config: GoalDriverConfig):
        client = MagicMock()
        response = httpx.Response(529, text='{"error": "overloaded"}', request=_REQUEST)
        client.messages.create.side_effect = anthropic.APIStatusError(
            "overloaded", response=response, body=None,
        )
        with pytest.raises(UpstreamError) as exc_info:
            OracleClient(config, client=client).request("p", {})
        assert exc_info.value.status_code == 529
        assert "overloaded" in exc_info.value.body
        assert "(529)" in str(exc_info.value)

    def test_connection_error_has_no_status(self, config: GoalDriverConfig):
        client = MagicMock()
        client.messages.create.side_effect = anthropic.APIConnectionError(request=_REQUEST)
        with pytest.raises(UpstreamError) as exc_info:
            OracleClient(config, client=client).request("p", {})
        assert exc_info.value.status_code is None

    def test_blank_content_is_empty_response(self, config: GoalDriverConfig):
        client = scripted_client(["   "])
        with pytest.raises(EmptyResponseError):
            OracleClient(config, client=client).request("p", {})

    def test_no_content_blocks_is_empty_response(self, config: GoalDriverConfig):
        client = MagicMock()
        client.messages.create.return_value = SimpleNamespace(content=[], usage=None)
        with pytest.raises(EmptyResponseError):
            OracleClient(config, client=client).request("p", {})

    def test_non_json_structured_reply(self, config: GoalDriverConfig):
        client = scripted_client(["I think you should click the button."])
        with pytest.raises(MalformedResponseError):
            OracleClient(config, client=client).request("p", {})


# ---------------------------------------------------------------------------
# 3. ask() -- schema descriptors
# ---------------------------------------------------------------------------

class TestAsk:

    def test_uses_tier_model_and_parser(self, config: GoalDriverConfig):
        client = scripted_client(["summary text"])
        schema = OracleSchema(
            name="summary",
            system_prompt="summarize",
            response_format=ResponseFormat.FREE_TEXT,
            model_tier="summary",
            parse=lambda reply, context: (reply, context),
        )
        result = OracleClient(config, client=client).ask(schema, {"k": 1})
        assert result == ("summary text", {"k": 1})
        assert client.messages.create.call_args.kwargs["model"] == config.model_summary


# ---------------------------------------------------------------------------
# 4. parse_json_object()
# ---------------------------------------------------------------------------

class TestParseJsonObject:

    def test_plain_object(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}

    def test_fenced_object(self):
        assert parse_json_object('```json\n{"action": "wait"}\n```') == {"action": "wait"}

    def test_object_inside_prose(self):
        assert parse_json_object('Sure! {"completed": true} Hope that helps.') == {"completed": True}

    def test_array_rejected(self):
        with pytest.raises(MalformedResponseError, match="JSON object"):
            parse_json_object("[1, 2]")

    def test_raw_text_kept(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_json_object("nope")
        assert exc_info.value.raw_text == "nope"
