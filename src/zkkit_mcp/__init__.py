"""MCP server for the ZK-Kit multi-language package ecosystem."""

__version__ = "0.1.0"
