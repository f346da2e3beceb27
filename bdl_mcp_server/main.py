"""Command line entry point for BDL MCP Server."""

import argparse
import os

import uvicorn

from .config import CONFIG_ENV_VAR, load_config
from .server import create_app


APP_FACTORY = "bdl_mcp_server.server:create_app"


def main():
    """Parse arguments and run the server with uvicorn."""
    parser = argparse.ArgumentParser(description="BDL MCP Server")
    parser.add_argument("--host", default=None, help="Host to bind to (default: from config)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: from config)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument("--config", default=None, help="Path to config.json")
    args = parser.parse_args()

    config = load_config(args.config)
    host = args.host or config.server.host
    port = args.port if args.port is not None else config.server.port

    if args.reload:
        # The reloader imports the app in a fresh process and needs an import string
        if args.config:
            os.environ[CONFIG_ENV_VAR] = args.config
        uvicorn.run(APP_FACTORY, factory=True, host=host, port=port, reload=True)
        return

    uvicorn.run(create_app(args.config), host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
