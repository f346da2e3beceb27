"""MCP protocol models."""

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel


JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


class MCPRequest(BaseModel):
    """MCP request model."""
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[Union[str, int]] = None
    method: str
    params: Optional[Any] = None


class MCPError(BaseModel):
    """MCP error model."""
    code: int
    message: str
    data: Optional[Any] = None


class MCPResponse(BaseModel):
    """MCP response model."""
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[Union[str, int]] = None
    result: Optional[Any] = None
    error: Optional[MCPError] = None

    def to_wire(self) -> Dict[str, Any]:
        """Dump the envelope with exactly one of ``result`` or ``error``."""
        data: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


class ServerInfo(BaseModel):
    """Server information model."""
    name: str
    version: str


class InitializeResult(BaseModel):
    """Initialize method result."""
    protocolVersion: str
    capabilities: Dict[str, Any]
    serverInfo: ServerInfo


class Tool(BaseModel):
    """Tool definition model."""
    name: str
    description: str
    inputSchema: Dict[str, Any]


class ListToolsResult(BaseModel):
    """List tools result."""
    tools: List[Tool]


class CallToolRequest(BaseModel):
    """Call tool request."""
    name: str
    arguments: Optional[Dict[str, Any]] = None


class TextContent(BaseModel):
    """Single text item of a tool result."""
    type: Literal["text"] = "text"
    text: str


class CallToolResult(BaseModel):
    """Call tool result."""
    content: List[TextContent]
    isError: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "CallToolResult":
        return cls(content=[TextContent(text=text)], isError=is_error)

    @classmethod
    def from_error(cls, message: str) -> "CallToolResult":
        return cls.from_text(message, is_error=True)
