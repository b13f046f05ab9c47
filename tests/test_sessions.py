"""Tests for the chat session tracker and event channels."""

import asyncio
import logging

import pytest

from llm_brain.errors import SessionClosedError, UnknownSessionError
from llm_brain.sessions import (
    AddMessage,
    ChatSessionTracker,
    CreateChat,
    FinishChat,
    Initiator,
    QueueEventChannel,
    SessionState,
)


def test_create_session_emits_create_chat(tracker, channel):
    session_id = tracker.create_session("user", "Using prompt template 'news'")

    (event,) = channel.sent
    assert isinstance(event, CreateChat)
    assert event.chat_id == session_id
    assert event.initiator is Initiator.USER
    assert event.summary == "Using prompt template 'news'"
    assert tracker.get(session_id).state is SessionState.OPEN


def test_append_keeps_call_order(tracker, channel):
    session_id = tracker.create_session(Initiator.BACKGROUND, "Sampling data")

    for i in range(3):
        tracker.append_message(session_id, {"role": "user", "content": str(i)})

    added = channel.of("addMessage")
    assert [e.message["content"] for e in added] == ["0", "1", "2"]
    assert all(isinstance(e, AddMessage) and e.chat_id == session_id for e in added)
    assert tracker.get(session_id).messages == [e.message for e in added]


def test_close_sets_terminal_state_once(tracker, channel):
    session_id = tracker.create_session("user", "s")

    tracker.close_session(session_id, "success")

    (finish,) = channel.of("finishChat")
    assert isinstance(finish, FinishChat)
    assert finish.state is SessionState.SUCCESS
    with pytest.raises(SessionClosedError):
        tracker.close_session(session_id, SessionState.ERROR)
    assert tracker.get(session_id).state is SessionState.SUCCESS
    assert len(channel.of("finishChat")) == 1


def test_append_after_close_is_refused(tracker):
    session_id = tracker.create_session("user", "s")
    tracker.close_session(session_id, SessionState.ERROR)

    with pytest.raises(SessionClosedError):
        tracker.append_message(session_id, {"role": "user", "content": "late"})


def test_close_with_open_state_is_invalid(tracker):
    session_id = tracker.create_session("user", "s")

    with pytest.raises(ValueError):
        tracker.close_session(session_id, SessionState.OPEN)


def test_unknown_session(tracker):
    with pytest.raises(UnknownSessionError):
        tracker.append_message("missing", {})


def test_sessions_are_independent(tracker):
    first = tracker.create_session("user", "a")
    second = tracker.create_session("background", "b")

    tracker.append_message(first, "one")
    tracker.close_session(second, "error")

    assert first != second
    assert tracker.get(first).messages == ["one"]
    assert tracker.get(first).is_open
    assert tracker.get(second).state is SessionState.ERROR


def test_channel_failure_does_not_break_tracking(caplog):
    class Broken:
        def send(self, event):
            raise RuntimeError("window closed")

    tracker = ChatSessionTracker(Broken())

    with caplog.at_level(logging.ERROR):
        session_id = tracker.create_session("user", "s")
        tracker.append_message(session_id, "m")

    assert tracker.get(session_id).messages == ["m"]
    assert "createChat" in caplog.text


@pytest.mark.asyncio
async def test_queue_event_channel_buffers_events():
    channel = QueueEventChannel()
    tracker = ChatSessionTracker(channel)

    session_id = tracker.create_session("user", "s")
    tracker.close_session(session_id, "success")

    first = await asyncio.wait_for(channel.queue.get(), 1)
    second = await asyncio.wait_for(channel.queue.get(), 1)
    assert (first.event, second.event) == ("createChat", "finishChat")
