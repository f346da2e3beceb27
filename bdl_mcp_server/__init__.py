"""MCP server for the BDL (Bank Danych Lokalnych) statistical data API."""

__version__ = "1.0.0"
