"""
Process-wide configuration for llm-brain.

Values are read once from the environment (and a ``.env`` file, if present)
by :func:`load_config`. The resulting :class:`BrainConfig` is passed by
reference to the model client, the orchestrator and the confirmation gate.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from dotenv import load_dotenv

from llm_brain.errors import ConfigError

__all__ = [
    "Provider",
    "ProviderConfig",
    "BrainConfig",
    "load_config",
    "DEFAULT_TOOL_PROVIDER",
]

DEFAULT_TOOL_PROVIDER = "koala-news"
DEFAULT_TOOL_SERVER_URL = "http://localhost:3000/sse"
DEFAULT_REQUEST_TIMEOUT = 300.0


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


_ENV_VARS: dict[str, str] = {
    "base_url": "BRAIN_BASE_URL",
    "api_key": "BRAIN_API_KEY",
    "model": "BRAIN_MODEL",
    "kind": "BRAIN_PROVIDER",
    "default_tool_provider": "BRAIN_TOOL_PROVIDER",
    "max_chat_completions": "BRAIN_MAX_CHAT_COMPLETIONS",
    "confirmation_timeout": "BRAIN_CONFIRMATION_TIMEOUT",
    "request_timeout": "BRAIN_REQUEST_TIMEOUT",
    "tool_server_url": "BRAIN_TOOL_SERVER_URL",
}


@dataclass(frozen=True)
class ProviderConfig:
    """Model endpoint settings. Empty strings are allowed and not validated."""

    base_url: str = ""
    api_key: str = ""
    model: str = ""
    kind: Provider = Provider.OPENAI


@dataclass(frozen=True)
class BrainConfig:
    """
    Settings shared by every run.

    Attributes:
        provider: Model endpoint used for tool-use runs and sampling.
        default_tool_provider: Name of the tool-provider used when a run
            does not name one.
        max_chat_completions: Completion rounds allowed per run. Some
            OpenAI-compatible providers keep re-requesting the same tool,
            so the default stops after a single round.
        confirmation_timeout: Seconds to wait for an operator decision;
            ``None`` waits forever.
        request_timeout: Transport timeout for model requests, in seconds.
        tool_server_url: SSE endpoint of the tool-provider.
    """

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    default_tool_provider: str = DEFAULT_TOOL_PROVIDER
    max_chat_completions: int = 1
    confirmation_timeout: Optional[float] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    tool_server_url: str = DEFAULT_TOOL_SERVER_URL


def _parse_number(name: str, raw: str, cast: type) -> int | float:
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


def load_config(env: Mapping[str, str] | None = None) -> BrainConfig:
    """
    Build a :class:`BrainConfig` from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ``. When omitted a
            ``.env`` file is loaded first.

    Raises:
        ConfigError: If a numeric or enum value cannot be parsed.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    def get(key: str) -> str:
        return env.get(_ENV_VARS[key]) or ""

    kind_raw = get("kind") or Provider.OPENAI.value
    try:
        kind = Provider(kind_raw.lower())
    except ValueError as exc:
        raise ConfigError(f"Unsupported provider: {kind_raw}") from exc

    provider = ProviderConfig(
        base_url=get("base_url"),
        api_key=get("api_key"),
        model=get("model"),
        kind=kind,
    )

    max_completions = 1
    if get("max_chat_completions"):
        max_completions = int(
            _parse_number(_ENV_VARS["max_chat_completions"], get("max_chat_completions"), int)
        )
        if max_completions < 1:
            raise ConfigError(f"{_ENV_VARS['max_chat_completions']} must be >= 1")

    confirmation_timeout = None
    if get("confirmation_timeout"):
        confirmation_timeout = float(
            _parse_number(_ENV_VARS["confirmation_timeout"], get("confirmation_timeout"), float)
        )

    request_timeout = DEFAULT_REQUEST_TIMEOUT
    if get("request_timeout"):
        request_timeout = float(
            _parse_number(_ENV_VARS["request_timeout"], get("request_timeout"), float)
        )

    return BrainConfig(
        provider=provider,
        default_tool_provider=get("default_tool_provider") or DEFAULT_TOOL_PROVIDER,
        max_chat_completions=max_completions,
        confirmation_timeout=confirmation_timeout,
        request_timeout=request_timeout,
        tool_server_url=get("tool_server_url") or DEFAULT_TOOL_SERVER_URL,
    )
