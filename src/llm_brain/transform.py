"""
Conversion of provider-agnostic prompt messages into chat messages.

Prompt messages come from a tool-provider (MCP ``PromptMessage`` or
``SamplingMessage`` objects, or plain dicts with the same shape). Each one
keeps its role and order; its content is wrapped into a single content part.
"""

from __future__ import annotations

from typing import Any, Iterable

from llm_brain.types import ChatMessage

__all__ = ["transform_messages", "transform_message"]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def transform_message(message: Any) -> ChatMessage:
    """
    Convert one prompt message.

    Content without a ``text`` field (images, embedded resources) yields a
    part whose ``text`` is ``None``; it is passed through, not rejected.
    """
    content = _field(message, "content")
    return {
        "role": _field(message, "role"),
        "content": [
            {
                "type": _field(content, "type"),
                "text": _field(content, "text"),
            }
        ],
    }


def transform_messages(messages: Iterable[Any]) -> list[ChatMessage]:
    """Convert prompt messages to the chat format, preserving order. Pure."""
    return [transform_message(m) for m in messages]
