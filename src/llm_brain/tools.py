"""
Wraps a tool-provider's tool descriptors into callables for the model loop.

Each invocation goes through the confirmation gate twice: once before the
provider executes the call, once before its result is handed back to the
model.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional

from llm_brain.confirm import ConfirmationGate, ConfirmationKind, ConfirmationOutcome
from llm_brain.errors import ConfirmationTimeoutError
from llm_brain.types import ToolCallRequest, ToolCallResult, ToolDescriptor

if TYPE_CHECKING:
    from llm_brain.client import RequestAdapter
    from llm_brain.provider import ToolProvider

logger = logging.getLogger(__name__)

REJECTED_CALL = {"error": "User rejected this action."}
REJECTED_RESULT = {"error": "User rejected this tool result."}

ResultHook = Callable[[ToolCallResult], None]


class RegisteredTool:
    """A single provider tool, callable by the model loop."""

    def __init__(
        self,
        descriptor: ToolDescriptor,
        provider: "ToolProvider",
        gate: ConfirmationGate,
    ) -> None:
        self.descriptor = descriptor
        self.provider = provider
        self.gate = gate

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.description or ""

    @property
    def parameters(self) -> dict[str, Any]:
        # Passed through as-is; validation is left to the model client
        return self.descriptor.input_schema

    async def __call__(
        self,
        request: ToolCallRequest,
        on_result: Optional[ResultHook] = None,
    ) -> ToolCallResult:
        """
        Confirm, execute and confirm again.

        ``on_result`` receives the provider's result as soon as it arrives,
        before the result confirmation is requested, and again receives the
        rejection notice if that confirmation is declined. The returned
        result is what the model should see: the provider's content, or a
        rejection notice when the operator declined either step.

        Raises:
            ConfirmationTimeoutError: The operator did not decide in time.
            Exception: Whatever the provider raised; it is not caught here.
        """
        outcome = await self.gate.request_confirmation(
            ConfirmationKind.TOOL_CALL,
            {"toolName": self.name, "input": request.arguments},
        )
        self._check_timeout(outcome, ConfirmationKind.TOOL_CALL)
        if outcome is ConfirmationOutcome.REJECTED:
            logger.info("Skipping rejected call to %s", self.name)
            rejected = ToolCallResult(id=request.id, name=self.name, content=REJECTED_CALL)
            if on_result is not None:
                on_result(rejected)
            return rejected

        content = await self.provider.call_tool(self.name, request.arguments)
        result = ToolCallResult(id=request.id, name=self.name, content=content)
        if on_result is not None:
            on_result(result)

        outcome = await self.gate.request_confirmation(
            ConfirmationKind.TOOL_RESULT,
            {"toolName": self.name, "result": content},
        )
        self._check_timeout(outcome, ConfirmationKind.TOOL_RESULT)
        if outcome is ConfirmationOutcome.REJECTED:
            logger.info("Withholding rejected result of %s", self.name)
            withheld = ToolCallResult(id=request.id, name=self.name, content=REJECTED_RESULT)
            if on_result is not None:
                on_result(withheld)
            return withheld
        return result

    def _check_timeout(self, outcome: ConfirmationOutcome, kind: ConfirmationKind) -> None:
        if outcome is ConfirmationOutcome.TIMED_OUT:
            raise ConfirmationTimeoutError(
                kind.value, f"No decision for {kind.value} on {self.name}"
            )


class ToolRegistry:
    """Tools listed by one provider for one run, keyed by name."""

    def __init__(
        self,
        descriptors: Iterable[ToolDescriptor],
        provider: "ToolProvider",
        gate: ConfirmationGate,
    ) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        for descriptor in descriptors:
            if descriptor.name in self._tools:
                logger.warning("Duplicate tool %r ignored", descriptor.name)
                continue
            self._tools[descriptor.name] = RegisteredTool(descriptor, provider, gate)

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[RegisteredTool]:
        return self._tools.get(name)

    def specs(self, adapter: "RequestAdapter") -> list[dict[str, Any]]:
        """Tool descriptions in the model client's format."""
        return [adapter.tool_spec(tool.descriptor) for tool in self]
