"""
Provider-neutral dataclasses shared by the model client, the tool adapter
and the orchestrator.

They are intentionally minimal: everything provider-specific lives in adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

__all__ = [
    "ChatMessage",
    "ToolDescriptor",
    "ToolCallRequest",
    "ToolCallResult",
    "SamplingRequest",
    "SamplingResult",
]


# Type alias for chat messages
ChatMessage = dict[str, Any]


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """A tool as listed by a tool-provider. Read-only for the length of a run."""

    name: str
    description: Optional[str] = None
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ToolCallRequest:
    """A model-agnostic request emitted by the LLM to call a tool."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""

    id: str  # must match the request id
    name: str
    content: Any


@dataclass(slots=True)
class SamplingRequest:
    """A provider-initiated request for the model to generate text."""

    messages: Sequence[Any]
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None


@dataclass(slots=True)
class SamplingResult:
    content: str
    model: str
    role: str = "assistant"
