"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

import json
from typing import Any, Sequence

from openai.types.chat import ChatCompletion

from llm_brain.response import ChatResponse
from llm_brain.types import ChatMessage, ToolCallRequest, ToolCallResult, ToolDescriptor

_PASSTHROUGH_KEYS = ("role", "content", "tool_calls", "tool_call_id", "name")


def dump_content(content: Any) -> str:
    """Serialize tool result content into the string form chat APIs expect."""
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)


class OpenAIRequestAdapter:
    """Adapter for converting between generic format and OpenAI format."""

    def tool_spec(self, tool: ToolDescriptor) -> dict[str, Any]:
        """Describe a tool in OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description or "",
                "parameters": tool.input_schema,
            },
        }

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and normalized params to an OpenAI request."""
        openai_messages: list[dict[str, Any]] = []
        for msg in messages:
            openai_msg = {k: msg[k] for k in _PASSTHROUGH_KEYS if msg.get(k) is not None}
            if "content" not in openai_msg and not openai_msg.get("tool_calls"):
                openai_msg["content"] = ""
            elif openai_msg.get("tool_calls"):
                # content must be null when tool_calls is present and empty
                openai_msg.setdefault("content", None)
            openai_messages.append(openai_msg)

        base_params = dict(params)
        extras = base_params.pop("extra", {})
        if not base_params.get("tools"):
            base_params.pop("tools", None)
            base_params.pop("tool_choice", None)
        for k, v in extras.items():
            base_params.setdefault(k, v)

        return {"messages": openai_messages, **base_params}

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert OpenAI response to unified ChatResponse."""
        content = ""
        tool_calls = None

        if raw.choices and raw.choices[0].message:
            message = raw.choices[0].message
            content = message.content or ""

            if message.tool_calls:
                tool_calls = []
                for tc in message.tool_calls:
                    if getattr(tc, "function", None) is None:
                        continue  # custom tool calls are not supported
                    raw_args = tc.function.arguments
                    arguments: dict[str, Any] = {}
                    if isinstance(raw_args, str) and raw_args.strip():
                        try:
                            parsed = json.loads(raw_args)
                        except json.JSONDecodeError:
                            parsed = {}
                        if isinstance(parsed, dict):
                            arguments = parsed
                    tool_calls.append(
                        ToolCallRequest(id=tc.id, name=tc.function.name, arguments=arguments)
                    )

        return ChatResponse(content=content, tool_calls=tool_calls, raw=raw)

    def assistant_message_from(self, raw: ChatCompletion) -> ChatMessage:
        """Convert OpenAI response to assistant ChatMessage."""
        if not raw.choices or not raw.choices[0].message:
            return {"role": "assistant", "content": ""}

        message = raw.choices[0].message
        chat_message: ChatMessage = {"role": "assistant", "content": message.content}

        if message.tool_calls:
            chat_message["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": tc.type,
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments,
                    },
                }
                for tc in message.tool_calls
                if getattr(tc, "function", None) is not None
            ]
        elif chat_message["content"] is None:
            chat_message["content"] = ""

        return chat_message

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert ToolCallResult to OpenAI ChatMessage."""
        return {
            "role": "tool",
            "tool_call_id": result.id,
            "content": dump_content(result.content),
        }
