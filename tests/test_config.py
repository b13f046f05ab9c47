"""Tests for configuration loading and the model-client factory."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import AsyncOpenAI

from conftest import make_completion
from llm_brain.client import AnthropicLLM, GeminiLLM, OpenAILLM, create_llm
from llm_brain.config import (
    DEFAULT_TOOL_PROVIDER,
    BrainConfig,
    Provider,
    ProviderConfig,
    load_config,
)
from llm_brain.errors import ConfigError


class TestLoadConfig:
    def test_defaults(self):
        config = load_config({})

        assert config.provider == ProviderConfig(base_url="", api_key="", model="")
        assert config.provider.kind is Provider.OPENAI
        assert config.default_tool_provider == DEFAULT_TOOL_PROVIDER
        assert config.max_chat_completions == 1
        assert config.confirmation_timeout is None
        assert config.request_timeout == 300.0
        assert config.tool_server_url == "http://localhost:3000/sse"

    def test_reads_values(self):
        config = load_config(
            {
                "BRAIN_BASE_URL": "https://llm.example.com/v1",
                "BRAIN_API_KEY": "sk-test",
                "BRAIN_MODEL": "qwen-plus",
                "BRAIN_PROVIDER": "Anthropic",
                "BRAIN_TOOL_PROVIDER": "weather",
                "BRAIN_MAX_CHAT_COMPLETIONS": "5",
                "BRAIN_CONFIRMATION_TIMEOUT": "2.5",
                "BRAIN_REQUEST_TIMEOUT": "60",
            }
        )

        assert config.provider.base_url == "https://llm.example.com/v1"
        assert config.provider.api_key == "sk-test"
        assert config.provider.model == "qwen-plus"
        assert config.provider.kind is Provider.ANTHROPIC
        assert config.default_tool_provider == "weather"
        assert config.max_chat_completions == 5
        assert config.confirmation_timeout == 2.5
        assert config.request_timeout == 60.0

    @pytest.mark.parametrize(
        "env",
        [
            {"BRAIN_PROVIDER": "mistral"},
            {"BRAIN_MAX_CHAT_COMPLETIONS": "many"},
            {"BRAIN_MAX_CHAT_COMPLETIONS": "0"},
            {"BRAIN_REQUEST_TIMEOUT": "soon"},
        ],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigError):
            load_config(env)

    def test_config_is_immutable(self):
        config = BrainConfig()
        with pytest.raises(AttributeError):
            config.max_chat_completions = 3


class TestCreateLLM:
    @pytest.mark.parametrize(
        "kind, cls",
        [
            (Provider.OPENAI, OpenAILLM),
            (Provider.ANTHROPIC, AnthropicLLM),
            (Provider.GEMINI, GeminiLLM),
        ],
    )
    def test_builds_client_for_kind(self, kind, cls):
        llm = create_llm(ProviderConfig(api_key="sk-test", model="m", kind=kind))

        assert type(llm) is cls
        assert llm.model == "m"

    def test_wraps_existing_client(self):
        client = AsyncOpenAI(api_key="sk-test")
        llm = create_llm(ProviderConfig(model="gpt-test"), client=client)

        assert isinstance(llm, OpenAILLM)
        assert llm._client is client


class TestOpenAILLM:
    @pytest.mark.asyncio
    async def test_extra_params_are_forwarded_as_request_arguments(self):
        llm = OpenAILLM.from_client("gpt-test", AsyncOpenAI(api_key="sk-test"))
        llm._client = MagicMock()
        llm._client.chat.completions.create = AsyncMock(return_value=make_completion("hi"))

        response = await llm.chat(
            [{"role": "user", "content": "Hello"}],
            params={"max_tokens": 50, "reasoning_effort": "low"},
        )

        assert response.content == "hi"
        kwargs = llm._client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 50
        assert kwargs["reasoning_effort"] == "low"
        assert "extra_body" not in kwargs
