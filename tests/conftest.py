"""Shared fixtures for goaldriver unit tests.

No test touches the network or a real browser: the Anthropic client and
Playwright page objects are MagicMocks.
"""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
import yaml

from goaldriver.config import GoalDriverConfig
from goaldriver.engine.oracle import OracleClient

TEST_API_KEY = "sk-ant-test-key-0123456789"


# ---------------------------------------------------------------------------
# Oracle helpers
# ---------------------------------------------------------------------------

def make_message(text: str, input_tokens: int = 100, output_tokens: int = 50) -> SimpleNamespace:
    """Shape of an anthropic Messages API response, as far as the client reads it."""
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


def scripted_client(replies: list[Any]) -> MagicMock:
    """Anthropic client mock returning *replies* in order (dicts are JSON-encoded)."""
    client = MagicMock()
    client.messages.create.side_effect = [
        make_message(r if isinstance(r, str) else json.dumps(r)) for r in replies
    ]
    return client


def system_prompts(client: MagicMock) -> list[str]:
    """System prompt of every call made on a scripted client, in order."""
    return [c.kwargs["system"] for c in client.messages.create.call_args_list]


def sent_context(client: MagicMock, index: int) -> Any:
    """Decoded user content of the *index*-th call."""
    content = client.messages.create.call_args_list[index].kwargs["messages"][0]["content"]
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return content


# ---------------------------------------------------------------------------
# Fixture: configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def config() -> GoalDriverConfig:
    """A config with a credential and default everything else."""
    return GoalDriverConfig(api_key=TEST_API_KEY)


@pytest.fixture
def make_oracle(config: GoalDriverConfig):
    """Factory: ``make_oracle(replies) -> (OracleClient, client_mock)``."""

    def _make(replies: list[Any]) -> tuple[OracleClient, MagicMock]:
        client = scripted_client(replies)
        return OracleClient(config, client=client), client

    return _make


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """A temporary .goaldriver/ project directory with a minimal config."""
    project_dir = tmp_path / ".goaldriver"
    project_dir.mkdir()
    config_data = {
        "max_steps": 8,
        "headless": False,
        "budget": 2.5,
        "start_url": "https://example.com/",
    }
    (project_dir / "config.yaml").write_text(
        yaml.dump(config_data, default_flow_style=False), encoding="utf-8"
    )
    return project_dir


# ---------------------------------------------------------------------------
# Fixture: Playwright page
# ---------------------------------------------------------------------------

EXAMPLE_SNAPSHOT = {
    "title": "Example Domain",
    "url": "https://example.com/",
    "inputs": [],
    "buttons": [],
    "links": [{"text": "More information...", "href": "https://www.iana.org/domains/example"}],
}


@pytest.fixture
def fake_locator() -> MagicMock:
    """Locator matching exactly one element whose text is the example.com heading."""
    locator = MagicMock()
    locator.count.return_value = 1
    locator.first.evaluate.return_value = "Example Domain"
    return locator


@pytest.fixture
def fake_page(fake_locator: MagicMock) -> MagicMock:
    """Page sitting on example.com; every selector resolves to ``fake_locator``."""
    page = MagicMock()
    page.url = "https://example.com/"
    page.evaluate.return_value = dict(EXAMPLE_SNAPSHOT)
    page.locator.return_value = fake_locator
    return page
