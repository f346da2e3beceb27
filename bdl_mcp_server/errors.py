"""JSON-RPC protocol errors."""

from typing import Any, Optional

from .models import MCPError


PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603


class RPCError(Exception):
    """Error surfaced to the caller as a JSON-RPC ``error`` object."""

    code = INTERNAL_ERROR
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_model(self) -> MCPError:
        return MCPError(code=self.code, message=self.message, data=self.data)


class ParseError(RPCError):
    """Request body could not be decoded as JSON."""
    code = PARSE_ERROR
    default_message = "Parse error"


class InvalidRequestError(RPCError):
    """Envelope is not a structurally valid JSON-RPC request."""
    code = INVALID_REQUEST
    default_message = "Invalid Request"


class InternalError(RPCError):
    code = INTERNAL_ERROR
    default_message = "Internal error"


class MethodNotFoundError(InternalError):
    """Method name is not served by the dispatcher."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unknown method: {method}")
