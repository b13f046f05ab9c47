"""Tests for provider-initiated sampling requests."""

import pytest
from mcp import types

from conftest import FakeLLM, FakeToolProvider, RecordingSurface, make_completion
from llm_brain.brain import Brain
from llm_brain.confirm import ConfirmationGate, ConfirmationKind
from llm_brain.errors import ConfirmationRejectedError, ModelClientError
from llm_brain.sessions import Initiator, SessionState
from llm_brain.types import SamplingRequest

MESSAGES = [
    types.SamplingMessage(role="user", content=types.TextContent(type="text", text="Pick a headline"))
]


def make_brain(llm, events, gate, tracker):
    return Brain(llm=llm, providers={"koala-news": FakeToolProvider(events)}, gate=gate, tracker=tracker)


@pytest.mark.asyncio
async def test_without_system_prompt(events, gate, tracker, channel, surface):
    llm = FakeLLM(make_completion("Koalas sleep 20 hours a day"))
    brain = make_brain(llm, events, gate, tracker)

    result = await brain.handle_sampling(SamplingRequest(messages=MESSAGES, max_tokens=64))

    assert result.content == "Koalas sleep 20 hours a day"
    assert result.model == "test-model"
    assert result.role == "assistant"

    sent, params = llm.requests[0]
    assert sent == [{"role": "user", "content": [{"type": "text", "text": "Pick a headline"}]}]
    assert params["max_tokens"] == 64
    assert "tools" not in params

    (created,) = channel.of("createChat")
    assert created.initiator is Initiator.BACKGROUND
    assert [e.message["role"] for e in channel.of("addMessage")] == ["user", "assistant"]
    (finished,) = channel.of("finishChat")
    assert finished.state is SessionState.SUCCESS
    assert [r.type for r in surface.requests] == [
        ConfirmationKind.SAMPLING_REQUEST,
        ConfirmationKind.SAMPLING_RESULT,
    ]
    assert surface.requests[1].payload == {"result": "Koalas sleep 20 hours a day"}


@pytest.mark.asyncio
async def test_system_prompt_comes_first(events, gate, tracker, channel, surface):
    llm = FakeLLM(make_completion("ok"))
    brain = make_brain(llm, events, gate, tracker)

    await brain.handle_sampling(SamplingRequest(messages=MESSAGES, system_prompt="Be terse."))

    sent, params = llm.requests[0]
    assert sent[0] == {"role": "system", "content": "Be terse."}
    assert sent[1]["role"] == "user"
    assert "max_tokens" not in params
    added = [e.message for e in channel.of("addMessage")]
    assert added[:2] == sent
    assert surface.requests[0].payload == {"messages": sent}


@pytest.mark.asyncio
async def test_rejected_request_closes_error(events, tracker, channel):
    surface = RecordingSurface(events, {ConfirmationKind.SAMPLING_REQUEST: False})
    llm = FakeLLM()
    brain = make_brain(llm, events, ConfirmationGate(surface), tracker)

    with pytest.raises(ConfirmationRejectedError):
        await brain.handle_sampling(SamplingRequest(messages=MESSAGES))

    assert llm.requests == []
    (finished,) = channel.of("finishChat")
    assert finished.state is SessionState.ERROR


@pytest.mark.asyncio
async def test_model_failure_closes_error_once(events, gate, tracker, channel, surface):
    brain = make_brain(FakeLLM(RuntimeError("down")), events, gate, tracker)

    with pytest.raises(ModelClientError):
        await brain.handle_sampling(SamplingRequest(messages=MESSAGES))

    assert [e.state for e in channel.of("finishChat")] == [SessionState.ERROR]
    assert [r.type for r in surface.requests] == [ConfirmationKind.SAMPLING_REQUEST]
