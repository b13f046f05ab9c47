"""
Exception hierarchy for llm-brain.

Model SDK failures are translated into :class:`ModelClientError` by
:func:`classify_error`, preserving the original exception for full
tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

from anthropic import APIConnectionError as AnthropicAPIConnectionError
from anthropic import APIError as AnthropicAPIError
from anthropic import RateLimitError as AnthropicRateLimitError
from openai import APIConnectionError as OpenAIAPIConnectionError
from openai import APIError as OpenAIAPIError
from openai import RateLimitError as OpenAIRateLimitError

__all__: tuple[str, ...] = (
    "BrainError",
    "ConfigError",
    "ModelClientError",
    "ConfirmationError",
    "ConfirmationRejectedError",
    "ConfirmationTimeoutError",
    "SessionError",
    "UnknownSessionError",
    "SessionClosedError",
    "ToolProviderError",
    "UnknownToolProviderError",
    "classify_error",
)


class BrainError(RuntimeError):
    """Root of every error raised by llm-brain."""


class ConfigError(BrainError, ValueError):
    """Raised when a configuration value cannot be parsed."""


class ModelClientError(BrainError):
    """Public model-client exception.

    Attributes:
        original_exc: The underlying provider exception.
    """

    original_exc: Exception

    def __init__(self, message: str, original_exc: Exception) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.__cause__ = original_exc


class ConfirmationError(BrainError):
    """An operator did not approve a pending action."""

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ConfirmationRejectedError(ConfirmationError):
    pass


class ConfirmationTimeoutError(ConfirmationError):
    pass


class SessionError(BrainError):
    pass


class UnknownSessionError(SessionError, KeyError):
    pass


class SessionClosedError(SessionError):
    """Raised when a terminated session is appended to or closed again."""


class ToolProviderError(BrainError):
    pass


class UnknownToolProviderError(ToolProviderError, KeyError):
    pass


API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAIAPIError,
    AnthropicAPIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAIAPIConnectionError,
    AnthropicAPIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    OpenAIRateLimitError,
    AnthropicRateLimitError,
)


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> ModelClientError:
    """Wrap an SDK exception in ModelClientError with a friendly, concise message."""
    log = logger or logging.getLogger("llm_brain.errors")

    if isinstance(exc, RATE_LIMIT_ERRORS):
        msg = "Rate-limit exceeded"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem, unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        status = getattr(exc, "status_code", "unknown")
        msg = f"API error ({status})"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception: %s", exc)
    return ModelClientError(f"{msg}: {exc}", exc)
