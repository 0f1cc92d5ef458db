"""Common base for Google Workspace service adapters."""

from collections.abc import Awaitable, Callable
from typing import Any

from mcp.types import Tool

from gws_tools.client import GoogleApiClient

ToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class BaseService:
    """A group of MCP tools backed by one Google API.

    Subclasses declare their tool schemas in :meth:`tools` and map tool
    names to ``async def _tool(self, arguments) -> dict`` methods in
    :meth:`handlers`.

    Attributes:
        name: Short service name shown by ``gws-tools tools``.
        client: Shared authenticated HTTP client.
    """

    name = ""

    def __init__(self, client: GoogleApiClient) -> None:
        self.client = client

    def tools(self) -> list[Tool]:
        """Return the MCP tool definitions of this service."""
        raise NotImplementedError

    def handlers(self) -> dict[str, ToolHandler]:
        """Return a mapping of tool name to handler coroutine."""
        raise NotImplementedError
