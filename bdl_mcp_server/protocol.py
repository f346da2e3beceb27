"""JSON-RPC envelope handling for single and batched requests."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .dispatcher import Dispatcher
from .errors import InternalError, InvalidRequestError, ParseError, RPCError
from .models import JSONRPC_VERSION, MCPRequest, MCPResponse


logger = logging.getLogger("protocol")

Payload = Union[Dict[str, Any], List[Any]]
Reply = Union[Dict[str, Any], List[Dict[str, Any]]]


def decode_payload(raw: Union[bytes, str]) -> Any:
    """Decode a request body.

    Raises:
        ParseError: body is not valid JSON
    """
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ParseError(f"Parse error: {e}") from e


def is_valid_envelope(message: Any) -> bool:
    """True when ``message`` has the shape of a JSON-RPC 2.0 request."""
    if not isinstance(message, dict):
        return False
    if message.get("jsonrpc") != JSONRPC_VERSION or not isinstance(message.get("method"), str):
        return False
    return "id" not in message or _is_identifier(message["id"])


def _is_identifier(value: Any) -> bool:
    return isinstance(value, str) or (isinstance(value, int) and not isinstance(value, bool))


def _extract_id(message: Any) -> Optional[Union[str, int]]:
    if isinstance(message, dict) and _is_identifier(message.get("id")):
        return message["id"]
    return None


def error_response(request_id: Optional[Union[str, int]], error: RPCError) -> Dict[str, Any]:
    return MCPResponse(id=request_id, error=error.to_model()).to_wire()


def parse_error_response(error: Optional[ParseError] = None) -> Dict[str, Any]:
    return error_response(None, error or ParseError())


class ProtocolHandler:
    """Turns decoded JSON-RPC payloads into response envelopes.

    Every failure coming out of the dispatcher is converted here, so callers
    always get a well-formed envelope (or a list of them for a batch).
    """

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    async def handle_payload(self, payload: Payload) -> Reply:
        """Handle a single envelope or a batch; batch replies keep request order."""
        if isinstance(payload, list):
            logger.debug(f"Handling batch of {len(payload)} requests")
            responses = await asyncio.gather(*(self.handle_message(message) for message in payload))
            return list(responses)
        return await self.handle_message(payload)

    async def handle_message(self, message: Any) -> Dict[str, Any]:
        request_id = _extract_id(message)
        if not is_valid_envelope(message):
            logger.warning(f"Invalid request envelope (id={request_id})")
            return error_response(request_id, InvalidRequestError())

        try:
            request = MCPRequest.model_validate(message)
        except ValidationError:
            return error_response(request_id, InvalidRequestError())

        try:
            result = await self.dispatcher.handle(request.method, request.params)
        except RPCError as e:
            return error_response(request.id, e)
        except Exception as e:
            logger.exception(f"Unhandled error in {request.method}")
            return error_response(request.id, InternalError(str(e) or e.__class__.__name__))

        return MCPResponse(id=request.id, result=result).to_wire()
