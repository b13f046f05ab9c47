"""
Model clients with a unified async ``chat()`` method.

Every client is built from the process-wide :class:`ProviderConfig` and is
safe to share between concurrent runs: each ``chat()`` call is an
independent request on the underlying SDK client.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Protocol, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from llm_brain.adapters import (
    AnthropicRequestAdapter,
    GeminiRequestAdapter,
    OpenAIRequestAdapter,
)
from llm_brain.config import DEFAULT_REQUEST_TIMEOUT, Provider, ProviderConfig
from llm_brain.errors import classify_error
from llm_brain.params import normalize_params
from llm_brain.response import ChatResponse
from llm_brain.types import ChatMessage, ToolCallResult, ToolDescriptor

_DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class RequestAdapter(Protocol):
    """Protocol for adapting between generic chat format and provider-specific format."""

    def tool_spec(self, tool: ToolDescriptor) -> dict[str, Any]:
        """Describe a tool in the form passed as ``params["tools"]``."""
        ...

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and normalized params to provider-specific request format."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...

    def assistant_message_from(self, raw: Any) -> ChatMessage:
        """Convert a provider response to a provider-specific assistant ChatMessage."""
        ...

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert a ToolCallResult to a provider-specific ChatMessage."""
        ...


class BaseAsyncLLM(ABC):
    """
    Abstract base class for async-first model clients.
    """

    def __init__(
        self,
        model: str,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> Any:
        """
        Send one completion request and return the raw provider response.

        Args:
            messages: The conversation so far.
            params: Normalized request parameters.
        """
        ...

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """
        Send a chat request and return a single response.

        Failures are not raised; they come back as a ChatResponse with
        ``error`` set. Call ``raise_for_error()`` to surface them.
        """
        normalized_params = normalize_params(params)
        try:
            raw = await self._chat_impl(messages, normalized_params)
        except Exception as exc:
            return ChatResponse(content="", error=classify_error(exc, self.logger))
        return self.adapter.from_provider(raw)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients. Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI-compatible model client.

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    _adapter_cls: type[OpenAIRequestAdapter] = OpenAIRequestAdapter

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = 0,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name)
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._adapter = self._adapter_cls()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build a client around an already-configured ``AsyncOpenAI`` instance.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"{cls.__name__}.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = cls._adapter_cls()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> ChatCompletion:
        args = {"model": self.model, **self._adapter.to_provider(messages, params)}
        self._log(f"Sending request to model {self.model} ({len(messages)} messages)", logging.DEBUG)
        return await self._client.chat.completions.create(**args)


class GeminiLLM(OpenAILLM):
    """
    Gemini model client via the OpenAI-compatible endpoint.
    """

    _adapter_cls = GeminiRequestAdapter

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = 0,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(
            model,
            api_key=api_key,
            base_url=base_url or _DEFAULT_GEMINI_BASE_URL,
            timeout=timeout,
            max_retries=max_retries,
            logger=logger,
            name=name,
        )


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic model client.

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = 0,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, logger=logger, name=name)
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: str,
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model=model, logger=logger, name=name)
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> RequestAdapter:
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[ChatMessage],
        params: dict[str, Any],
    ) -> Message:
        args = {"model": self.model, **self._adapter.to_provider(messages, params)}
        self._log(f"Sending request to model {self.model} ({len(messages)} messages)", logging.DEBUG)
        return await self._client.messages.create(**args)


# Factory for creating model clients

_LLM_REGISTRY: dict[Provider, type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GEMINI: GeminiLLM,
}


def create_llm(
    provider: ProviderConfig,
    *,
    client: AsyncOpenAI | AsyncAnthropic | None = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    logger: logging.Logger | None = None,
) -> BaseAsyncLLM:
    """
    Factory for creating the model client described by ``provider``.

    Args:
        provider: Endpoint settings (kind, base URL, API key, model).
        client: Optional pre-configured SDK client to wrap instead of
            building one from ``provider``.
        timeout: Transport timeout in seconds.
        logger: Optional custom logger.
    """
    try:
        llm_cls = _LLM_REGISTRY[provider.kind]
    except KeyError as exc:
        raise ValueError(f"Unsupported provider: {provider.kind}") from exc

    if client is not None:  # use caller-supplied client verbatim
        return llm_cls.from_client(provider.model, client, logger=logger)

    return llm_cls(
        provider.model,
        api_key=provider.api_key,
        base_url=provider.base_url or None,
        timeout=timeout,
        logger=logger,
    )
