"""goaldriver Oracle Client -- the single request function for the LLM oracle.

Every oracle call site (goal rewrite, next-action planning, completion
verification, user summary) goes through :meth:`OracleClient.ask` with an
:class:`OracleSchema` descriptor naming its system prompt, reply format,
model tier, and reply parser.  The client owns transport, error mapping,
JSON parsing, and cost accounting; it keeps no conversation state.
"""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
import re
from collections.abc import Callable
from typing import Any

import anthropic

from goaldriver.config import ConfigurationError, GoalDriverConfig
from goaldriver.engine.cost_tracker import CostTracker

logger = logging.getLogger("goaldriver.engine.oracle")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class OracleError(Exception):
    """Base class for oracle failures. Fatal to the current goal."""

    pass


class UpstreamError(OracleError):
    """The remote call did not succeed."""

    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        super().__init__(f"Oracle call failed ({status}): {body}")


class EmptyResponseError(OracleError):
    """The oracle replied with blank content."""

    pass


class MalformedResponseError(OracleError):
    """A structured reply did not parse as a JSON object."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        self.raw_text = raw_text
        super().__init__(message)


# ---------------------------------------------------------------------------
# Schema descriptors
# ---------------------------------------------------------------------------

class ResponseFormat(enum.Enum):
    STRUCTURED = "structured"
    FREE_TEXT = "free-text"


@dataclasses.dataclass(frozen=True)
class OracleSchema:
    """Describes one oracle call site.

    ``parse`` receives the decoded reply (a dict for structured replies, a
    string for free text) and the context that was sent, and returns the
    typed result for the caller.
    """

    name: str  # also the cost-tracking purpose
    system_prompt: str
    response_format: ResponseFormat
    model_tier: str  # planner | verifier | summary
    parse: Callable[[Any, Any], Any]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class OracleClient:
    """Sends a system prompt plus JSON context to the oracle and decodes the reply."""

    def __init__(
        self,
        config: GoalDriverConfig,
        cost_tracker: CostTracker | None = None,
        client: Any | None = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError("No oracle credential configured (ANTHROPIC_API_KEY is empty).")
        self._config = config
        self._cost_tracker = cost_tracker or CostTracker(per_run_usd=config.budget_usd)
        self._client = client  # Lazy-initialised Anthropic client unless injected

    @property
    def cost_tracker(self) -> CostTracker:
        return self._cost_tracker

    def _get_client(self) -> Any:
        """Return the cached Anthropic client, creating it lazily on first use."""
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self._config.api_key,
                max_retries=self._config.max_retries,
                timeout=self._config.request_timeout,
            )
        return self._client

    def _model_for(self, tier: str) -> str:
        models = {
            "planner": self._config.model_planner,
            "verifier": self._config.model_verifier,
            "summary": self._config.model_summary,
        }
        return models.get(tier, self._config.model_planner)

    # -- Public API ----------------------------------------------------------

    def ask(self, schema: OracleSchema, context: Any) -> Any:
        """Run one call site: request with the schema's prompt, then parse."""
        reply = self.request(
            schema.system_prompt,
            context,
            schema.response_format,
            model=self._model_for(schema.model_tier),
            purpose=schema.name,
        )
        return schema.parse(reply, context)

    def request(
        self,
        system_prompt: str,
        context: Any,
        response_format: ResponseFormat = ResponseFormat.STRUCTURED,
        model: str | None = None,
        purpose: str = "",
    ) -> dict[str, Any] | str:
        """Send one request and return the decoded reply.

        Structured replies are returned as a dict, free-text replies as a
        stripped string.

        Raises:
            ConfigurationError: no credential configured.
            UpstreamError: the remote call failed.
            EmptyResponseError: the reply content was blank.
            MalformedResponseError: a structured reply was not a JSON object.
            BudgetExceededError: the call pushed the run over its budget.
        """
        client = self._get_client()
        model = model or self._config.model_planner
        user_content = context if isinstance(context, str) else json.dumps(context, ensure_ascii=False)

        try:
            response = client.messages.create(
                model=model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_content}],
            )
        except anthropic.APIStatusError as exc:
            logger.error("Oracle call (%s) failed with status %s", purpose or "request", exc.status_code)
            raise UpstreamError(exc.status_code, _status_error_body(exc)) from exc
        except anthropic.APIError as exc:
            logger.error("Oracle call (%s) failed: %s", purpose or "request", exc)
            raise UpstreamError(None, str(exc)) from exc

        usage = getattr(response, "usage", None)
        if usage is not None:
            self._cost_tracker.record_call(
                model=model,
                input_tokens=getattr(usage, "input_tokens", 0) or 0,
                output_tokens=getattr(usage, "output_tokens", 0) or 0,
                purpose=purpose,
            )

        text = "".join(getattr(block, "text", "") for block in (response.content or [])).strip()
        if not text:
            raise EmptyResponseError(f"Oracle response was empty ({purpose or 'request'}).")

        if response_format is ResponseFormat.FREE_TEXT:
            return text
        return parse_json_object(text)


# ---------------------------------------------------------------------------
# Reply decoding
# ---------------------------------------------------------------------------

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse an oracle reply as a JSON object.

    Tolerates markdown code fences and prose around a single object.
    """
    text = raw_text.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise MalformedResponseError(f"Oracle reply is not JSON: {exc}", raw_text) from exc
        try:
            data = json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            raise MalformedResponseError(f"Oracle reply is not JSON: {exc}", raw_text) from exc
        logger.info("Extracted JSON object from prose reply")

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Oracle reply must be a JSON object, got {type(data).__name__}", raw_text,
        )
    return data


def _status_error_body(exc: anthropic.APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:
        return str(exc.body if exc.body is not None else exc)
