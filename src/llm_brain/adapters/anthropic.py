"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

from typing import Any, Sequence

from anthropic.types import Message

from llm_brain.adapters.openai import dump_content
from llm_brain.response import ChatResponse
from llm_brain.types import ChatMessage, ToolCallRequest, ToolCallResult, ToolDescriptor

DEFAULT_MAX_TOKENS = 4096


def _is_tool_result_turn(msg: dict[str, Any]) -> bool:
    content = msg.get("content")
    return (
        msg.get("role") == "user"
        and isinstance(content, list)
        and bool(content)
        and all(isinstance(b, dict) and b.get("type") == "tool_result" for b in content)
    )


class AnthropicRequestAdapter:
    """Adapter for converting between generic format and Anthropic format."""

    def tool_spec(self, tool: ToolDescriptor) -> dict[str, Any]:
        # Same shape as OpenAI; to_provider converts it when building the request.
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
        """Convert generic messages and params to Anthropic request format."""
        anthropic_messages: list[dict[str, Any]] = []
        system_prompt: Any = ""

        for msg in messages:
            if msg["role"] == "system":
                content = msg.get("content", "")
                system_prompt = content if isinstance(content, (str, list)) else str(content)
                continue

            if msg.get("tool_call_id"):
                anthropic_msg: dict[str, Any] = {
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": msg["tool_call_id"],
                            "content": dump_content(msg.get("content", "")),
                        }
                    ],
                }
            else:
                content = msg.get("content")
                anthropic_msg = {
                    "role": msg["role"],
                    "content": list(content) if isinstance(content, list) else (
                        content if isinstance(content, str) else str(content or "")
                    ),
                }

            # Results answering one assistant turn must share a single user message
            if (
                anthropic_messages
                and _is_tool_result_turn(anthropic_msg)
                and _is_tool_result_turn(anthropic_messages[-1])
            ):
                anthropic_messages[-1]["content"].extend(anthropic_msg["content"])
                continue
            anthropic_messages.append(anthropic_msg)

        base_params = dict(params)
        extras = base_params.pop("extra", {})
        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        tools = base_params.pop("tools", None)
        if tools:
            anthropic_tools = []
            for tool in tools:
                if tool.get("type") == "function":
                    func = tool["function"]
                    anthropic_tools.append(
                        {
                            "name": func["name"],
                            "description": func.get("description", ""),
                            "input_schema": func.get("parameters") or {"type": "object"},
                        }
                    )
                else:
                    anthropic_tools.append(tool)
            base_params["tools"] = anthropic_tools
        else:
            base_params.pop("tool_choice", None)

        for k, v in extras.items():
            base_params.setdefault(k, v)

        request: dict[str, Any] = {"messages": anthropic_messages, **base_params}
        if system_prompt:
            request["system"] = system_prompt
        return request

    def from_provider(self, raw: Message) -> ChatResponse:
        """Convert Anthropic response to unified ChatResponse."""
        text_parts = []
        tool_calls = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(
                        id=block.id,
                        name=block.name,
                        arguments=dict(block.input) if hasattr(block.input, "items") else {},
                    )
                )

        return ChatResponse(
            content="".join(text_parts), tool_calls=tool_calls or None, raw=raw
        )

    def assistant_message_from(self, raw: Message) -> ChatMessage:
        """Convert Anthropic response to assistant ChatMessage."""
        text_parts = []
        tool_use_blocks = []

        for block in raw.content or []:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_use_blocks.append(
                    {
                        "type": "tool_use",
                        "id": block.id,
                        "name": block.name,
                        "input": dict(block.input) if hasattr(block.input, "items") else {},
                    }
                )

        if not tool_use_blocks:
            return {"role": "assistant", "content": "".join(text_parts)}

        content_list: list[dict[str, Any]] = []
        if text_parts:
            content_list.append({"type": "text", "text": "".join(text_parts)})
        content_list.extend(tool_use_blocks)
        return {"role": "assistant", "content": content_list}

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert ToolCallResult to Anthropic ChatMessage."""
        return {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": result.id,
                    "content": dump_content(result.content),
                }
            ],
        }
