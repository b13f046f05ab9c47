"""
Tool-provider capability and its MCP implementation.

The orchestrator only relies on :class:`ToolProvider`: list tools, render a
prompt template, call a tool. :class:`MCPToolProvider` implements it on top
of an ``mcp.ClientSession`` and also routes the provider's own requests
(sampling, log notifications) back into the process.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Protocol

from mcp import ClientSession, types
from mcp.client.sse import sse_client

from llm_brain.config import DEFAULT_TOOL_PROVIDER
from llm_brain.errors import ConfirmationRejectedError, ToolProviderError
from llm_brain.types import SamplingRequest, SamplingResult, ToolDescriptor

__all__ = ["ToolProvider", "SamplingHandler", "MCPToolProvider"]

SamplingHandler = Callable[[SamplingRequest], Awaitable[SamplingResult]]

# MCP error code for a sampling request declined by the user
USER_REJECTED = -1

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


class ToolProvider(Protocol):
    """What the orchestrator needs from a tool-provider."""

    async def list_tools(self) -> list[ToolDescriptor]: ...

    async def get_prompt(self, name: str, arguments: Optional[dict[str, str]] = None) -> Any:
        """Render a prompt template; the result exposes ``.messages``."""
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Execute a tool and return its content."""
        ...


class MCPToolProvider:
    """
    A tool-provider reached through an MCP client session.

    Use :meth:`connect` to open an SSE connection, or pass an already
    initialized ``ClientSession``. Set ``sampling_handler`` (normally
    ``Brain.handle_sampling``) to serve the server's sampling requests.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        name: str = DEFAULT_TOOL_PROVIDER,
        sampling_handler: Optional[SamplingHandler] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._session = session
        self.name = name
        self.sampling_handler = sampling_handler
        self.logger = logger or logging.getLogger(__name__)

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise ToolProviderError(f"Tool-provider {self.name!r} is not connected")
        return self._session

    @classmethod
    @asynccontextmanager
    async def connect(
        cls,
        url: str,
        *,
        name: str = DEFAULT_TOOL_PROVIDER,
        sampling_handler: Optional[SamplingHandler] = None,
        logger: Optional[logging.Logger] = None,
    ) -> AsyncIterator["MCPToolProvider"]:
        """Open an SSE connection to ``url`` and yield a ready provider."""
        provider = cls(name=name, sampling_handler=sampling_handler, logger=logger)
        async with sse_client(url) as (read_stream, write_stream):
            async with ClientSession(
                read_stream,
                write_stream,
                sampling_callback=provider.handle_sampling_request,
                logging_callback=provider.handle_log_message,
            ) as session:
                await session.initialize()
                provider._session = session
                provider.logger.info("Connected to tool-provider %r at %s", name, url)
                try:
                    yield provider
                finally:
                    provider._session = None

    # --- ToolProvider ------------------------------------------------------
    async def list_tools(self) -> list[ToolDescriptor]:
        result = await self.session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                input_schema=dict(tool.inputSchema or {}),
            )
            for tool in result.tools
        ]

    async def get_prompt(
        self, name: str, arguments: Optional[dict[str, str]] = None
    ) -> types.GetPromptResult:
        return await self.session.get_prompt(name, arguments=arguments)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> list[dict[str, Any]]:
        result = await self.session.call_tool(name, arguments)
        if result.isError:
            self.logger.warning("Tool %r reported an error result", name)
        return [block.model_dump(mode="json", exclude_none=True) for block in result.content]

    # --- server-initiated traffic -----------------------------------------
    async def handle_sampling_request(
        self,
        context: Any,
        params: types.CreateMessageRequestParams,
    ) -> types.CreateMessageResult | types.ErrorData:
        if self.sampling_handler is None:
            return types.ErrorData(
                code=types.INVALID_REQUEST, message="Sampling is not available"
            )

        request = SamplingRequest(
            messages=params.messages,
            system_prompt=params.systemPrompt,
            max_tokens=params.maxTokens,
        )
        try:
            result = await self.sampling_handler(request)
        except ConfirmationRejectedError as exc:
            return types.ErrorData(code=USER_REJECTED, message=str(exc))
        except Exception as exc:
            self.logger.exception("Sampling request failed")
            return types.ErrorData(code=types.INTERNAL_ERROR, message=str(exc))

        return types.CreateMessageResult(
            role="assistant",
            content=types.TextContent(type="text", text=result.content),
            model=result.model,
        )

    async def handle_log_message(self, params: types.LoggingMessageNotificationParams) -> None:
        level = _LOG_LEVELS.get(params.level, logging.INFO)
        source = f"{self.name}:{params.logger}" if params.logger else self.name
        self.logger.log(level, "[%s] %s", source, params.data)
