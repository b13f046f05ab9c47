"""Pure transformation adapters for the supported model back-ends."""

from .openai import OpenAIRequestAdapter
from .anthropic import AnthropicRequestAdapter

# Gemini is reached through its OpenAI-compatible endpoint
GeminiRequestAdapter = OpenAIRequestAdapter

__all__ = [
    "OpenAIRequestAdapter",
    "AnthropicRequestAdapter",
    "GeminiRequestAdapter",
]
