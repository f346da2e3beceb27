"""MCP server exposing BDL tools over HTTP and SSE."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from . import __version__
from .bdl_client import BDLClient
from .config import load_config
from .dispatcher import Dispatcher
from .errors import INVALID_REQUEST, ParseError
from .logging_config import setup_bdl_logging
from .models import ServerInfo
from .protocol import ProtocolHandler, decode_payload, parse_error_response
from .registry import ToolRegistry
from .sessions import SessionManager
from .tools import build_registry


SERVER_NAME = "bdl-mcp-server"
MCP_ENDPOINT = "/mcp"
SSE_ENDPOINT = "/sse"
SESSION_HEADER = "Mcp-Session-Id"


class MCPServer:
    """BDL MCP server."""

    def __init__(self, config_path: Optional[str] = None,
                 client: Optional[BDLClient] = None,
                 registry: Optional[ToolRegistry] = None,
                 sessions: Optional[SessionManager] = None):
        self.config = load_config(config_path)

        setup_bdl_logging(self.config.to_dict())
        self.logger = logging.getLogger("mcp_server")

        self.server_info = ServerInfo(name=SERVER_NAME, version=__version__)
        self.client = client if client is not None else BDLClient(self.config.bdl)
        self.registry = registry if registry is not None else build_registry(self.client)
        self.dispatcher = Dispatcher(self.registry, self.server_info)
        self.protocol = ProtocolHandler(self.dispatcher)
        self.sessions = sessions if sessions is not None else SessionManager(MCP_ENDPOINT)

        self.app = FastAPI(title="BDL MCP Server", version=__version__, lifespan=self._lifespan)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.server.cors_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", SESSION_HEADER],
            expose_headers=[SESSION_HEADER],
        )
        self.setup_routes()
        self.logger.info(f"MCP Server initialized with {len(self.registry)} tools")
        self.logger.debug(f"Registered tools: {', '.join(self.registry.names())}")

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        self.sessions.close_all()
        await self.client.close()
        self.logger.info("MCP Server shut down")

    def setup_routes(self):
        """Setup FastAPI routes."""

        @self.app.get("/")
        @self.app.get("/health")
        async def health():
            return {
                "status": "ok",
                "server": self.server_info.model_dump(),
                "endpoints": {
                    "mcp": f"{MCP_ENDPOINT} (POST)",
                    "sse": f"{SSE_ENDPOINT} (GET)",
                },
                "sessions": len(self.sessions),
                "note": f"Send JSON-RPC 2.0 requests to {MCP_ENDPOINT}, or open {SSE_ENDPOINT} to receive responses as events",
            }

        @self.app.get(SSE_ENDPOINT)
        async def open_event_stream():
            """Open an SSE channel; the first event names the endpoint to POST to."""
            session = self.sessions.open()
            return StreamingResponse(
                self.sessions.event_stream(session),
                media_type="text/event-stream",
                headers={
                    "Cache-Control": "no-cache",
                    "X-Accel-Buffering": "no",
                    SESSION_HEADER: session.token,
                },
            )

        @self.app.post(MCP_ENDPOINT)
        async def handle_mcp_request(request: Request):
            """Handle MCP JSON-RPC requests, single or batched."""
            token = request.query_params.get("sessionId") or request.headers.get(SESSION_HEADER)

            try:
                payload = decode_payload(await request.body())
            except ParseError as e:
                self.logger.warning(f"Rejected undecodable request body: {e}")
                return JSONResponse(content=parse_error_response(e), status_code=400)

            reply = await self.protocol.handle_payload(payload)
            self.sessions.push(token, reply)

            status_code = 400 if isinstance(reply, dict) and reply.get("error", {}).get("code") == INVALID_REQUEST else 200
            return JSONResponse(content=reply, status_code=status_code)

        @self.app.exception_handler(404)
        async def not_found(request: Request, exc):
            return JSONResponse(content={"error": "Not found"}, status_code=404)


def create_app(config_path: Optional[str] = None) -> FastAPI:
    """Create and return the FastAPI app."""
    server = MCPServer(config_path)
    return server.app
