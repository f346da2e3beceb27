"""MCP method dispatch."""

import json
import logging
from typing import Any, Awaitable, Callable, Dict

from pydantic import ValidationError

from .errors import InternalError, MethodNotFoundError
from .models import (
    PROTOCOL_VERSION, CallToolRequest, CallToolResult, InitializeResult,
    ListToolsResult, ServerInfo
)
from .registry import ToolRegistry
from .schema import ArgumentValidationError


class Dispatcher:
    """Resolves MCP methods and runs tools from a ``ToolRegistry``.

    Tool failures (unknown tool, bad arguments, executor errors) come back as
    an error-flagged ``CallToolResult``. Only protocol problems raise
    ``RPCError``.
    """

    def __init__(self, registry: ToolRegistry, server_info: ServerInfo,
                 protocol_version: str = PROTOCOL_VERSION):
        self.registry = registry
        self.server_info = server_info
        self.protocol_version = protocol_version
        self.logger = logging.getLogger("dispatcher")
        self._methods: Dict[str, Callable[[Any], Awaitable[Any]]] = {
            "initialize": self._handle_initialize,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "ping": self._handle_empty,
            "notifications/initialized": self._handle_empty,
        }

    async def handle(self, method: str, params: Any = None) -> Any:
        """Run ``method`` and return its JSON-serializable result.

        Raises:
            MethodNotFoundError: method is not one of the supported MCP methods
            InternalError: ``tools/call`` params are malformed
        """
        handler = self._methods.get(method)
        if handler is None:
            self.logger.warning(f"Unknown method requested: {method}")
            raise MethodNotFoundError(method)
        return await handler(params)

    async def _handle_initialize(self, params: Any) -> Dict[str, Any]:
        result = InitializeResult(
            protocolVersion=self.protocol_version,
            capabilities={
                "tools": {}
            },
            serverInfo=self.server_info
        )
        return result.model_dump()

    async def _handle_list_tools(self, params: Any) -> Dict[str, Any]:
        result = ListToolsResult(tools=[tool.definition() for tool in self.registry])
        return result.model_dump()

    async def _handle_empty(self, params: Any) -> Dict[str, Any]:
        return {}

    async def _handle_call_tool(self, params: Any) -> Dict[str, Any]:
        if params is None:
            raise InternalError("Missing params for tools/call")
        try:
            tool_request = CallToolRequest.model_validate(params)
        except ValidationError as e:
            raise InternalError(f"Invalid params for tools/call: {e.errors()[0]['msg']}") from e

        result = await self.call_tool(tool_request.name, tool_request.arguments or {})
        return result.model_dump()

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> CallToolResult:
        """Validate ``arguments`` and run tool ``name``; never raises for tool failures."""
        tool = self.registry.get(name)
        if tool is None:
            self.logger.warning(f"Unknown tool requested: {name}")
            return CallToolResult.from_error(f"Unknown tool: {name}")

        try:
            validated = tool.validator.validate(arguments)
        except ArgumentValidationError as e:
            self.logger.info(f"Rejected arguments for {name}: {e}")
            return CallToolResult.from_error(f"Invalid arguments: {e}")

        self.logger.info(f"Calling tool: {name}")
        self.logger.debug(f"Tool arguments: {json.dumps(validated, ensure_ascii=False)}")
        try:
            result = await tool.execute(validated)
            text = json.dumps(result, indent=2, ensure_ascii=False)
        except Exception as e:
            self.logger.error(f"Tool {name} failed: {e}")
            return CallToolResult.from_error(f"Error: {e}")

        return CallToolResult.from_text(text)
