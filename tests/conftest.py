"""Shared fakes: a scripted model client, a tool-provider and recording surfaces."""

from __future__ import annotations

import copy
import json
from typing import Any, Sequence

import pytest
from mcp import types
from openai.types.chat import ChatCompletion

from llm_brain.adapters import OpenAIRequestAdapter
from llm_brain.client import BaseAsyncLLM
from llm_brain.confirm import ConfirmationGate, ConfirmationKind, ConfirmationOutcome
from llm_brain.sessions import ChatSessionTracker
from llm_brain.types import ToolDescriptor


def make_completion(
    content: str | None = None,
    tool_calls: Sequence[tuple[str, str, dict[str, Any] | str]] = (),
) -> ChatCompletion:
    """Build a ChatCompletion; tool_calls are (id, name, arguments) triples."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": call_id,
                "type": "function",
                "function": {
                    "name": name,
                    "arguments": args if isinstance(args, str) else json.dumps(args),
                },
            }
            for call_id, name, args in tool_calls
        ]
    return ChatCompletion.model_validate(
        {
            "id": "cmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "tool_calls" if tool_calls else "stop",
                    "message": message,
                }
            ],
        }
    )


def make_prompt(*texts: str) -> types.GetPromptResult:
    return types.GetPromptResult(
        messages=[
            types.PromptMessage(role="user", content=types.TextContent(type="text", text=t))
            for t in texts
        ]
    )


class FakeLLM(BaseAsyncLLM):
    """Replays scripted completions (or raises scripted exceptions) in order."""

    def __init__(self, *replies: ChatCompletion | Exception, model: str = "test-model") -> None:
        super().__init__(model=model)
        self.replies = list(replies)
        self.requests: list[tuple[list[dict[str, Any]], dict[str, Any]]] = []
        self._adapter = OpenAIRequestAdapter()

    @property
    def adapter(self) -> OpenAIRequestAdapter:
        return self._adapter

    async def _chat_impl(self, messages, params):
        self.requests.append((copy.deepcopy(list(messages)), params))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeToolProvider:
    def __init__(
        self,
        events: list,
        *,
        tools: Sequence[ToolDescriptor] = (),
        prompt: types.GetPromptResult | None = None,
        content: Any = "ok",
        error: Exception | None = None,
    ) -> None:
        self.events = events
        self.tools = list(tools)
        self.prompt = prompt or make_prompt("Summarize today's news")
        self.content = content
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.list_error: Exception | None = None

    async def list_tools(self) -> list[ToolDescriptor]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.tools)

    async def get_prompt(self, name, arguments=None):
        return self.prompt

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        self.events.append(("call_tool", name))
        if self.error is not None:
            raise self.error
        return self.content


class RecordingSurface:
    """Answers confirmations from a per-kind table (default: approve)."""

    def __init__(self, events: list, decisions: dict[ConfirmationKind, Any] | None = None) -> None:
        self.events = events
        self.decisions = decisions or {}
        self.requests = []

    async def confirm(self, request):
        self.requests.append(request)
        self.events.append(("confirm", request.type))
        return self.decisions.get(request.type, ConfirmationOutcome.APPROVED)


class RecordingChannel:
    def __init__(self, events: list) -> None:
        self.events = events
        self.sent = []

    def send(self, event) -> None:
        self.sent.append(event)
        self.events.append((event.event, event))

    def of(self, name: str) -> list:
        return [e for e in self.sent if e.event == name]


WEATHER_TOOL = ToolDescriptor(
    name="get_weather",
    description="Get the current weather in a given location",
    input_schema={
        "type": "object",
        "properties": {"location": {"type": "string"}},
        "required": ["location"],
    },
)


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def channel(events) -> RecordingChannel:
    return RecordingChannel(events)


@pytest.fixture
def tracker(channel) -> ChatSessionTracker:
    return ChatSessionTracker(channel)


@pytest.fixture
def surface(events) -> RecordingSurface:
    return RecordingSurface(events)


@pytest.fixture
def gate(surface) -> ConfirmationGate:
    return ConfirmationGate(surface)
