"""
The model tool-use loop.

A run submits the conversation and tool descriptions to the model, executes
any requested tools through the registry, feeds the results back and
repeats until the model answers without calling a tool or the completion
cap is reached. Every message the loop produces (assistant turns and tool
results) is reported through ``on_message`` in the order it is produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from llm_brain.client import BaseAsyncLLM
from llm_brain.tools import ToolRegistry
from llm_brain.types import ChatMessage, ToolCallRequest, ToolCallResult

logger = logging.getLogger(__name__)

MessageHook = Callable[[ChatMessage], None]


@dataclass(frozen=True)
class RunPolicy:
    """
    Limits applied to one run.

    ``max_chat_completions`` caps the model rounds. A cap of 1 executes the
    tools requested by the first completion without asking the model again;
    it guards against providers that re-request the same tool forever.
    """

    max_chat_completions: int = 1

    def __post_init__(self) -> None:
        if self.max_chat_completions < 1:
            raise ValueError("max_chat_completions must be >= 1")


@dataclass
class RunResult:
    content: str = ""
    final_tool_result: Any = None
    completions: int = 0
    tool_calls: list[ToolCallResult] = field(default_factory=list)
    exhausted: bool = False


class ToolRunner:
    """Drives one model conversation with tools."""

    def __init__(
        self,
        llm: BaseAsyncLLM,
        tools: ToolRegistry,
        *,
        policy: Optional[RunPolicy] = None,
        on_message: Optional[MessageHook] = None,
    ) -> None:
        self.llm = llm
        self.tools = tools
        self.policy = policy or RunPolicy()
        self.on_message = on_message
        self.messages: list[ChatMessage] = []

    def _emit(self, message: ChatMessage) -> None:
        if self.on_message is not None:
            self.on_message(message)

    async def run(self, messages: Sequence[ChatMessage]) -> RunResult:
        """
        Run the loop over ``messages``. The input messages are not emitted.

        Raises:
            ModelClientError: The model request failed.
            ConfirmationTimeoutError: An operator decision timed out.
            Exception: A tool-provider call failed.
        """
        adapter = self.llm.adapter
        specs = self.tools.specs(adapter)
        self.messages = list(messages)
        result = RunResult()

        while result.completions < self.policy.max_chat_completions:
            response = await self.llm.chat(self.messages, params={"tools": specs})
            response.raise_for_error()
            result.completions += 1
            result.content = response.content

            assistant = adapter.assistant_message_from(response.raw)
            self.messages.append(assistant)
            self._emit(assistant)

            if not response.tool_calls:
                return result

            for call in response.tool_calls:
                tool_result = await self._call_tool(call)
                self.messages.append(adapter.tool_result_message(tool_result))
                result.tool_calls.append(tool_result)
                result.final_tool_result = tool_result.content

        logger.info(
            "Stopped after %d completion(s); the model still requested tools",
            result.completions,
        )
        result.exhausted = True
        return result

    async def _call_tool(self, call: ToolCallRequest) -> ToolCallResult:
        adapter = self.llm.adapter

        def record(tool_result: ToolCallResult) -> None:
            self._emit(adapter.tool_result_message(tool_result))

        tool = self.tools.get(call.name)
        if tool is None:
            logger.warning("Model requested unknown tool %r", call.name)
            unknown = ToolCallResult(
                id=call.id, name=call.name, content={"error": f"Unknown tool: {call.name}"}
            )
            record(unknown)
            return unknown
        return await tool(call, on_result=record)
