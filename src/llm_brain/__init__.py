"""
llm-brain - human-in-the-loop tool-use orchestration for LLMs.
"""

from .brain import Brain
from .client import (
    BaseAsyncLLM,
    OpenAILLM,
    AnthropicLLM,
    GeminiLLM,
    create_llm,
)
from .config import BrainConfig, Provider, ProviderConfig, load_config
from .confirm import (
    AutoApproveSurface,
    CallbackConfirmationSurface,
    ConfirmationGate,
    ConfirmationKind,
    ConfirmationOutcome,
    ConfirmationRequest,
    QueueConfirmationSurface,
)
from .errors import BrainError, ModelClientError
from .provider import MCPToolProvider, ToolProvider
from .response import ChatResponse
from .runner import RunPolicy, RunResult, ToolRunner
from .sessions import (
    ChatSessionTracker,
    Initiator,
    LoggingEventChannel,
    QueueEventChannel,
    SessionState,
)
from .tools import ToolRegistry
from .transform import transform_messages
from .types import (
    ChatMessage,
    SamplingRequest,
    SamplingResult,
    ToolCallRequest,
    ToolCallResult,
    ToolDescriptor,
)

__version__ = "0.1.0"

__all__ = [
    "Brain",
    "BaseAsyncLLM",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
    "create_llm",
    "BrainConfig",
    "Provider",
    "ProviderConfig",
    "load_config",
    "AutoApproveSurface",
    "CallbackConfirmationSurface",
    "ConfirmationGate",
    "ConfirmationKind",
    "ConfirmationOutcome",
    "ConfirmationRequest",
    "QueueConfirmationSurface",
    "BrainError",
    "ModelClientError",
    "MCPToolProvider",
    "ToolProvider",
    "ChatResponse",
    "RunPolicy",
    "RunResult",
    "ToolRunner",
    "ChatSessionTracker",
    "Initiator",
    "LoggingEventChannel",
    "QueueEventChannel",
    "SessionState",
    "ToolRegistry",
    "transform_messages",
    "ChatMessage",
    "SamplingRequest",
    "SamplingResult",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolDescriptor",
]
