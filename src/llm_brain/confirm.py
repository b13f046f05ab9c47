"""
Human-in-the-loop confirmation gate.

The gate suspends the calling coroutine until an operator decides on a
pending action. Decisions are delivered by a confirmation surface, the
collaborator that shows the request to a human. Three outcomes exist:
approved, rejected, and timed out (no decision within the gate's timeout).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from llm_brain.errors import ConfirmationRejectedError, ConfirmationTimeoutError

__all__ = [
    "ConfirmationKind",
    "ConfirmationOutcome",
    "ConfirmationRequest",
    "ConfirmationSurface",
    "ConfirmationGate",
    "AutoApproveSurface",
    "CallbackConfirmationSurface",
    "QueueConfirmationSurface",
]


class ConfirmationKind(str, Enum):
    TOOL_CALL = "confirm-tool-call"
    TOOL_RESULT = "confirm-tool-result"
    SAMPLING_REQUEST = "confirm-sampling-request"
    SAMPLING_RESULT = "confirm-sampling-result"


class ConfirmationOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class ConfirmationRequest:
    """A typed request shown to the operator."""

    type: ConfirmationKind
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


Decision = Union[bool, ConfirmationOutcome]


class ConfirmationSurface(Protocol):
    """Shows a confirmation request to a human and returns their decision."""

    async def confirm(self, request: ConfirmationRequest) -> Decision: ...


def _as_outcome(decision: Decision) -> ConfirmationOutcome:
    if isinstance(decision, ConfirmationOutcome):
        return decision
    return ConfirmationOutcome.APPROVED if decision else ConfirmationOutcome.REJECTED


class ConfirmationGate:
    """
    Suspend point guarding tool calls, tool results and sampling.

    ``request_confirmation`` reports the outcome; ``require`` turns anything
    but approval into an exception.
    """

    def __init__(
        self,
        surface: ConfirmationSurface,
        *,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.surface = surface
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    async def request_confirmation(
        self, kind: ConfirmationKind, payload: dict[str, Any]
    ) -> ConfirmationOutcome:
        request = ConfirmationRequest(type=kind, payload=payload)
        self.logger.debug("Awaiting %s (%s)", kind.value, request.id)
        try:
            decision = await asyncio.wait_for(self.surface.confirm(request), self.timeout)
        except asyncio.TimeoutError:
            self.logger.warning("No decision for %s within %ss", kind.value, self.timeout)
            return ConfirmationOutcome.TIMED_OUT

        outcome = _as_outcome(decision)
        self.logger.info("%s -> %s", kind.value, outcome.value)
        return outcome

    async def require(self, kind: ConfirmationKind, payload: dict[str, Any]) -> None:
        """
        Wait for approval.

        Raises:
            ConfirmationRejectedError: The operator declined.
            ConfirmationTimeoutError: No decision arrived in time.
        """
        outcome = await self.request_confirmation(kind, payload)
        if outcome is ConfirmationOutcome.REJECTED:
            raise ConfirmationRejectedError(kind.value, f"Operator rejected {kind.value}")
        if outcome is ConfirmationOutcome.TIMED_OUT:
            raise ConfirmationTimeoutError(
                kind.value, f"No decision for {kind.value} within {self.timeout}s"
            )


class AutoApproveSurface:
    """Approves everything. For headless runs and tests."""

    def __init__(self) -> None:
        self.requests: list[ConfirmationRequest] = []

    async def confirm(self, request: ConfirmationRequest) -> Decision:
        self.requests.append(request)
        return ConfirmationOutcome.APPROVED


class CallbackConfirmationSurface:
    """Adapts a plain (sync or async) callable into a confirmation surface."""

    def __init__(
        self, callback: Callable[[ConfirmationRequest], Union[Decision, Awaitable[Decision]]]
    ) -> None:
        self.callback = callback

    async def confirm(self, request: ConfirmationRequest) -> Decision:
        decision = self.callback(request)
        if inspect.isawaitable(decision):
            decision = await decision
        return decision


class QueueConfirmationSurface:
    """
    Publishes requests on an ``asyncio.Queue`` for an operator front-end.

    The front-end takes requests from ``pending`` and answers each one with
    ``resolve(request.id, approved)``.
    """

    def __init__(self) -> None:
        self.pending: asyncio.Queue[ConfirmationRequest] = asyncio.Queue()
        self._waiters: dict[str, asyncio.Future[Decision]] = {}

    async def confirm(self, request: ConfirmationRequest) -> Decision:
        future: asyncio.Future[Decision] = asyncio.get_running_loop().create_future()
        self._waiters[request.id] = future
        self.pending.put_nowait(request)
        try:
            return await future
        finally:
            self._waiters.pop(request.id, None)

    def resolve(self, request_id: str, approved: Decision) -> None:
        """Deliver the operator's decision for ``request_id``."""
        future = self._waiters.get(request_id)
        if future is None:
            raise KeyError(f"No pending confirmation {request_id}")
        if not future.done():
            future.set_result(approved)
