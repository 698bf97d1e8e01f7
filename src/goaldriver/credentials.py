"""Oracle credential resolution for goaldriver."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from goaldriver.config import ConfigurationError

logger = logging.getLogger("goaldriver.credentials")

API_KEY_ENV = "ANTHROPIC_API_KEY"


def resolve_api_key(project_dir: Path | None = None) -> str:
    """Resolve the Anthropic API key from multiple sources.

    Resolution order (highest priority first):
    1. ANTHROPIC_API_KEY environment variable
    2. .env file in current directory
    3. Project config (.goaldriver/config.yaml)
    4. Global config (~/.goaldriver/config.yaml)
    """
    # 1. Environment variable
    if key := os.environ.get(API_KEY_ENV):
        return key

    # 2. .env file
    env_path = Path(".env")
    if env_path.exists():
        key = _parse_env_file(env_path, API_KEY_ENV)
        if key:
            return key

    # 3. Project config
    if project_dir:
        config_path = project_dir / "config.yaml"
        if config_path.exists():
            key = _parse_yaml_key(config_path)
            if key:
                return key

    # 4. Global config
    global_config = Path.home() / ".goaldriver" / "config.yaml"
    if global_config.exists():
        key = _parse_yaml_key(global_config)
        if key:
            return key

    raise ConfigurationError(
        f"{API_KEY_ENV} not set\n\n"
        "goaldriver needs an Anthropic API key to plan and verify browser goals.\n\n"
        "To fix:\n"
        f"  export {API_KEY_ENV}=sk-ant-your-key-here\n"
        f"  or add {API_KEY_ENV}=... to a .env file in the current directory"
    )


def mask_key(key: str) -> str:
    """Mask an API key for display. Shows first 7 and last 3 chars."""
    if len(key) <= 10:
        return "***"
    return f"{key[:7]}...{key[-3:]}"


def _parse_env_file(path: Path, key_name: str) -> str | None:
    """Parse a .env file for a specific key.

    Blank lines and ``#`` comments are skipped; a value wrapped in matching
    single or double quotes is unquoted.
    """
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, _, v = line.partition("=")
                if k.strip() != key_name:
                    continue
                v = v.strip()
                if len(v) >= 2 and v[0] == v[-1] and v[0] in ("'", '"'):
                    v = v[1:-1]
                return v or None
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
    return None


def _parse_yaml_key(path: Path) -> str | None:
    """Parse a YAML config file for an API key."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        return None
    return data.get("anthropic_api_key") or data.get("api_key")
