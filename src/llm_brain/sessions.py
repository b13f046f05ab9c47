"""
Chat session tracking and display events.

A session is the visible transcript of one run. The tracker owns the
in-memory record and mirrors every change to an :class:`EventChannel` as a
one-way notification: ``createChat``, ``addMessage`` and ``finishChat``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Protocol, Union

from llm_brain.errors import SessionClosedError, UnknownSessionError

__all__ = [
    "Initiator",
    "SessionState",
    "Session",
    "CreateChat",
    "AddMessage",
    "FinishChat",
    "ChatEvent",
    "EventChannel",
    "NullEventChannel",
    "LoggingEventChannel",
    "QueueEventChannel",
    "ChatSessionTracker",
]


class Initiator(str, Enum):
    USER = "user"
    BACKGROUND = "background"


class SessionState(str, Enum):
    OPEN = "open"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Session:
    id: str
    initiator: Initiator
    summary: str
    state: SessionState = SessionState.OPEN
    messages: list[Any] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN


@dataclass(frozen=True)
class CreateChat:
    event: ClassVar[str] = "createChat"
    chat_id: str
    initiator: Initiator
    summary: str


@dataclass(frozen=True)
class AddMessage:
    event: ClassVar[str] = "addMessage"
    chat_id: str
    message: Any


@dataclass(frozen=True)
class FinishChat:
    event: ClassVar[str] = "finishChat"
    chat_id: str
    state: SessionState


ChatEvent = Union[CreateChat, AddMessage, FinishChat]


class EventChannel(Protocol):
    """Outbound, fire-and-forget channel to the display surface."""

    def send(self, event: ChatEvent) -> None: ...


class NullEventChannel:
    def send(self, event: ChatEvent) -> None:
        pass


class LoggingEventChannel:
    """Writes every event to a logger; useful when no display is attached."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def send(self, event: ChatEvent) -> None:
        self.logger.info("%s %s", event.event, event)


class QueueEventChannel:
    """Buffers events on an unbounded ``asyncio.Queue`` for a consumer task."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue[ChatEvent] = asyncio.Queue()

    def send(self, event: ChatEvent) -> None:
        self.queue.put_nowait(event)


class ChatSessionTracker:
    """
    Opens, appends to, and closes sessions.

    Appends are recorded in call order; callers are responsible for calling
    in the right sequence. A session is closed exactly once: closing or
    appending to a terminated session raises :class:`SessionClosedError`.
    """

    def __init__(
        self,
        channel: Optional[EventChannel] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.channel = channel or NullEventChannel()
        self.logger = logger or logging.getLogger(__name__)
        self._sessions: dict[str, Session] = {}

    def _emit(self, event: ChatEvent) -> None:
        # Display delivery is best effort and never affects the run
        try:
            self.channel.send(event)
        except Exception:
            self.logger.exception("Failed to deliver %s event", event.event)

    def get(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise UnknownSessionError(session_id) from None

    def create_session(self, initiator: Initiator | str, summary: str) -> str:
        session = Session(id=str(uuid.uuid4()), initiator=Initiator(initiator), summary=summary)
        self._sessions[session.id] = session
        self.logger.debug("Opened %s session %s: %s", session.initiator.value, session.id, summary)
        self._emit(CreateChat(chat_id=session.id, initiator=session.initiator, summary=summary))
        return session.id

    def append_message(self, session_id: str, message: Any) -> None:
        session = self.get(session_id)
        if not session.is_open:
            raise SessionClosedError(f"Session {session_id} is already {session.state.value}")
        session.messages.append(message)
        self._emit(AddMessage(chat_id=session_id, message=message))

    def close_session(self, session_id: str, outcome: SessionState | str) -> None:
        state = SessionState(outcome)
        if state is SessionState.OPEN:
            raise ValueError("A session can only be closed with success or error")
        session = self.get(session_id)
        if not session.is_open:
            raise SessionClosedError(f"Session {session_id} is already {session.state.value}")
        session.state = state
        self.logger.debug("Closed session %s: %s", session_id, state.value)
        self._emit(FinishChat(chat_id=session_id, state=state))
