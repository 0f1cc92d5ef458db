"""MCP server exposing Google Workspace tools over stdio.

Tools from every service are registered on one MCP ``Server``. Each call
returns a single JSON text block: the tool result, or an error envelope
``{"error": message, "code": code}``.
"""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gws_tools.auth import CredentialManager, TokenStorage
from gws_tools.client import GoogleApiClient
from gws_tools.config import SERVICE_NAME, Settings, configure_logging
from gws_tools.errors import WorkspaceToolError
from gws_tools.services import BaseService, ToolHandler, default_services

logger = logging.getLogger(__name__)


def error_envelope(error: Exception) -> dict[str, str]:
    """Translate an exception into the error payload returned to the caller."""
    if isinstance(error, WorkspaceToolError):
        return error.to_dict()
    if isinstance(error, KeyError):
        return {"error": f"Missing required argument: {error.args[0]}", "code": "INVALID_ARGUMENT"}
    if isinstance(error, ValueError):
        return {"error": str(error), "code": "INVALID_ARGUMENT"}
    return {"error": str(error), "code": "UNKNOWN_ERROR"}


class WorkspaceServer:
    """MCP server for Drive, Gmail, Calendar and Sheets.

    Attributes:
        settings: Runtime settings.
        server: MCP Server instance.
        credentials: Supplies OAuth access tokens.
        client: Shared Google API client.
        services: Registered tool groups.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        services: list[BaseService] | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.server = Server(SERVICE_NAME)
        self.credentials = CredentialManager(storage=TokenStorage(self.settings.token_path))
        self.client = GoogleApiClient(self.credentials, timeout=self.settings.http_timeout)
        self.services = services if services is not None else default_services(self.client)

        self._tools: list[Tool] = []
        self._handlers: dict[str, ToolHandler] = {}
        for service in self.services:
            for tool in service.tools():
                if tool.name in self._handlers:
                    raise ValueError(f"Duplicate tool name: {tool.name}")
                self._tools.append(tool)
            self._handlers.update(service.handlers())

        self._setup_handlers()

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools)

    def _setup_handlers(self) -> None:
        """Register MCP tool handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """List available tools."""
            return self.tools

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls."""
            result = await self.call(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

    async def call(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Run a tool and return its result or an error envelope."""
        try:
            return await self._dispatch_tool(name, arguments or {})
        except WorkspaceToolError as e:
            logger.warning("Tool %s failed: %s (%s)", name, e, e.code)
            return error_envelope(e)
        except Exception as e:
            logger.exception(f"Error calling tool {name}")
            return error_envelope(e)

    async def _dispatch_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Dispatch tool call to appropriate handler.

        Args:
            name: Tool name.
            arguments: Tool arguments.

        Returns:
            Tool result as dictionary.

        Raises:
            ValueError: If tool name is not recognized.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ValueError(f"Unknown tool: {name}")
        return await handler(arguments)

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        await self.client.close()

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def main() -> None:
    """Entry point for the gws-tools MCP server."""
    settings = Settings.from_env()
    configure_logging(settings)
    server = WorkspaceServer(settings)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
