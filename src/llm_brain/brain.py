"""
Tool-use orchestrator.

``Brain.use_prompt`` is the user-initiated entry point: fetch tools and a
prompt template from a tool-provider, open a chat session, run the model
loop and close the session with the outcome. ``Brain.handle_sampling``
serves provider-initiated sampling requests in a background session.

Each call owns its own session; concurrent runs share only the model
client and the tool-providers.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from llm_brain.client import BaseAsyncLLM
from llm_brain.config import BrainConfig
from llm_brain.confirm import ConfirmationGate, ConfirmationKind
from llm_brain.errors import UnknownToolProviderError
from llm_brain.provider import ToolProvider
from llm_brain.runner import MessageHook, RunPolicy, RunResult, ToolRunner
from llm_brain.sessions import ChatSessionTracker, Initiator, SessionState
from llm_brain.tools import ToolRegistry
from llm_brain.transform import transform_messages
from llm_brain.types import ChatMessage, SamplingRequest, SamplingResult, ToolDescriptor

__all__ = ["Brain"]

SAMPLING_SUMMARY = "Sampling data"


class Brain:
    def __init__(
        self,
        *,
        llm: BaseAsyncLLM,
        providers: Mapping[str, ToolProvider],
        gate: ConfirmationGate,
        tracker: ChatSessionTracker,
        config: Optional[BrainConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.llm = llm
        self.providers = dict(providers)
        self.gate = gate
        self.tracker = tracker
        self.config = config or BrainConfig()
        self.policy = RunPolicy(max_chat_completions=self.config.max_chat_completions)
        self.logger = logger or logging.getLogger(__name__)

    def provider(self, name: Optional[str] = None) -> ToolProvider:
        name = name or self.config.default_tool_provider
        try:
            return self.providers[name]
        except KeyError:
            raise UnknownToolProviderError(f"No tool-provider named {name!r}") from None

    async def use_prompt(
        self,
        name: str,
        arguments: Optional[dict[str, str]] = None,
        *,
        provider: Optional[str] = None,
    ) -> Optional[RunResult]:
        """
        Run the prompt template ``name`` with the provider's tools.

        Fetch failures propagate before any session is opened. Failures
        during the run close the session with ``error``, are logged, and
        resolve to ``None``.
        """
        client = self.provider(provider)
        tools = await client.list_tools()
        prompt = await client.get_prompt(name, arguments)

        session_id = self.tracker.create_session(
            Initiator.USER, f"Using prompt template '{name}'"
        )
        try:
            result = await self.run_tools(
                prompt.messages,
                tools,
                provider=provider,
                on_message=lambda m: self.tracker.append_message(session_id, m),
            )
        except Exception:
            self.logger.exception("Run of prompt %r failed", name)
            self.tracker.close_session(session_id, SessionState.ERROR)
            return None
        else:
            self.tracker.close_session(session_id, SessionState.SUCCESS)
            return result

    async def run_tools(
        self,
        messages: Sequence[Any],
        tools: Sequence[ToolDescriptor],
        *,
        provider: Optional[str] = None,
        on_message: Optional[MessageHook] = None,
    ) -> RunResult:
        """
        Normalize ``messages`` and drive the model loop with ``tools``.

        The normalized prompt messages are reported through ``on_message``
        first, followed by every message the loop produces.
        """
        chat_messages = transform_messages(messages)
        if on_message is not None:
            for message in chat_messages:
                on_message(message)

        registry = ToolRegistry(tools, self.provider(provider), self.gate)
        runner = ToolRunner(self.llm, registry, policy=self.policy, on_message=on_message)
        return await runner.run(chat_messages)

    async def handle_sampling(self, request: SamplingRequest) -> SamplingResult:
        """
        Answer a provider-initiated sampling request with one plain completion.

        The request and the completion are each confirmed by the operator.
        On any failure the background session is closed with ``error`` and
        the exception is re-raised to the provider connection.
        """
        session_id = self.tracker.create_session(Initiator.BACKGROUND, SAMPLING_SUMMARY)
        try:
            result = await self._sample(session_id, request)
        except Exception:
            self.logger.exception("Sampling request failed")
            self.tracker.close_session(session_id, SessionState.ERROR)
            raise
        self.tracker.close_session(session_id, SessionState.SUCCESS)
        return result

    async def _sample(self, session_id: str, request: SamplingRequest) -> SamplingResult:
        full_messages: list[ChatMessage] = transform_messages(request.messages)
        if request.system_prompt:
            full_messages.insert(0, {"role": "system", "content": request.system_prompt})

        for message in full_messages:
            self.tracker.append_message(session_id, message)

        await self.gate.require(ConfirmationKind.SAMPLING_REQUEST, {"messages": full_messages})

        response = await self.llm.chat(full_messages, params={"max_tokens": request.max_tokens})
        response.raise_for_error()

        await self.gate.require(ConfirmationKind.SAMPLING_RESULT, {"result": response.content})

        self.tracker.append_message(session_id, self.llm.adapter.assistant_message_from(response.raw))
        return SamplingResult(content=response.content, model=self.llm.model)
