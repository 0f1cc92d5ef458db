"""MCP server for Google Workspace.

Tool groups:

- Drive: file search and management, folder path resolution, folder trees
  and recursive listings
- Gmail: messages, threads, attachments, labels and filters
- Calendar: events, calendars and free/busy
- Sheets: ranges, sheets and row lookups

Transport: stdio
"""

from gws_tools.config import Settings
from gws_tools.server.workspace_server import WorkspaceServer, error_envelope, main


def create_server(settings: Settings | None = None) -> WorkspaceServer:
    """Create a server with the built-in services.

    Example:
        >>> server = create_server()
        >>> asyncio.run(server.run())
    """
    return WorkspaceServer(settings)


__all__ = ["create_server", "error_envelope", "main", "WorkspaceServer"]
