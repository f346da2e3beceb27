"""Pytest configuration and shared fixtures."""

import asyncio
import json

import pytest

from bdl_mcp_server.bdl_client import BDLAPIError
from bdl_mcp_server.registry import ToolRegistry, ToolSpec
from bdl_mcp_server.schema import EnumField, NumberField, ObjectField, StringField


async def _get_year(args):
    return {"id": args["id"], "lang": args.get("lang")}


async def _unavailable(args):
    raise BDLAPIError("BDL API Error (503): Service Unavailable", status_code=503)


async def _sleep(args):
    await asyncio.sleep(args["delay"] / 1000)
    return {"slept": args["delay"]}


@pytest.fixture
def fake_registry():
    """Small registry with predictable executors."""
    return ToolRegistry([
        ToolSpec(
            name="get_year",
            description="Get details of a specific year.",
            input_schema=ObjectField(properties={
                "id": NumberField(integer=True, description="Year (e.g., 2023)"),
                "lang": EnumField(values=("pl", "en"), description="Response language", optional=True),
            }),
            execute=_get_year,
        ),
        ToolSpec(
            name="get_unavailable",
            description="Always fails like an unreachable data source.",
            input_schema=ObjectField(properties={
                "name": StringField(description="Anything", optional=True),
            }),
            execute=_unavailable,
        ),
        ToolSpec(
            name="sleep",
            description="Sleep for a number of milliseconds.",
            input_schema=ObjectField(properties={
                "delay": NumberField(integer=True, minimum=0),
            }),
            execute=_sleep,
        ),
    ])


@pytest.fixture
def config_file(tmp_path):
    """Config file that keeps log output out of the working tree."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "bdl": {"base_url": "http://bdl.test/api/v1", "max_retries": 0},
        "server": {"log_level": "DEBUG", "log_file": None, "api_log_file": None},
    }))
    return str(path)


@pytest.fixture
def sample_mcp_request():
    """Sample MCP request for testing."""
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {}
    }


@pytest.fixture
def sample_tool_call_request():
    """Sample tool call request for testing."""
    return {
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {
            "name": "get_year",
            "arguments": {"id": 2023}
        }
    }
