from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from llm_brain.errors import ModelClientError
from llm_brain.types import ToolCallRequest


@dataclass
class ChatResponse:
    """Unified response object for all model back-ends."""

    content: str
    tool_calls: list[ToolCallRequest] | None = None
    raw: Any = None
    error: Optional[ModelClientError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
