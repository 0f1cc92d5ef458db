"""Integration tests for the gws-tools MCP server.

Calls go through WorkspaceServer.call(), the path used by the MCP
``call_tool`` handler, with Google API calls mocked via httpx.AsyncClient
patching.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from conftest import create_mock_response
from mcp.types import CallToolRequest, CallToolRequestParams, ListToolsRequest

from gws_tools.auth.credentials import ACCESS_TOKEN_VARS, REFRESH_TOKEN_VARS
from gws_tools.config import Settings
from gws_tools.drive.backend import FOLDER_MIME_TYPE
from gws_tools.server import WorkspaceServer, create_server, error_envelope
from gws_tools.services import DriveService


@pytest.fixture
def server(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> WorkspaceServer:
    """Create a server authenticated through an environment access token."""
    monkeypatch.setenv("ACCESS_TOKEN", "mock_access_token_12345")
    return create_server(Settings(token_path=tmp_path / "tokens.json"))


def mock_http(handler):
    """Patch httpx.AsyncClient so requests are answered by ``handler(method, url, kwargs)``."""
    calls = []

    async def mock_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        return handler(method, url, kwargs)

    patcher = patch("httpx.AsyncClient")
    mock_client_class = patcher.start()
    mock_client = AsyncMock()
    mock_client.request = mock_request
    mock_client_class.return_value = mock_client
    return patcher, calls


@pytest.mark.integration
class TestToolRegistry:
    """Tool registration and dispatch."""

    def test_should_register_all_tools(self, server: WorkspaceServer) -> None:
        names = {tool.name for tool in server.tools}

        assert len(names) == 93
        assert {"get_folder_id_for_path", "get_folder_tree", "list_folder_recursive"} <= names
        assert {"gmail_send_message", "calendar_list_events", "sheets_upsert_row"} <= names

    def test_should_reject_duplicate_tool_names(self, mock_client, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Duplicate tool name"):
            WorkspaceServer(
                Settings(token_path=tmp_path / "t.json"),
                services=[DriveService(mock_client), DriveService(mock_client)],
            )

    @pytest.mark.asyncio
    async def test_unknown_tool_returns_error_envelope(self, server: WorkspaceServer) -> None:
        result = await server.call("no_such_tool", {})

        assert result == {"error": "Unknown tool: no_such_tool", "code": "INVALID_ARGUMENT"}

    @pytest.mark.asyncio
    async def test_missing_argument_returns_error_envelope(self, server: WorkspaceServer) -> None:
        result = await server.call("get_folder_id_for_path", {})

        assert result == {"error": "Missing required argument: path", "code": "INVALID_ARGUMENT"}

    @pytest.mark.asyncio
    async def test_mcp_handlers_are_registered(self, server: WorkspaceServer) -> None:
        list_handler = server.server.request_handlers[ListToolsRequest]
        listed = await list_handler(ListToolsRequest(method="tools/list"))
        assert len(listed.root.tools) == 93

        call_handler = server.server.request_handlers[CallToolRequest]
        response = await call_handler(
            CallToolRequest(
                method="tools/call",
                params=CallToolRequestParams(name="no_such_tool", arguments={}),
            )
        )
        payload = json.loads(response.root.content[0].text)
        assert payload["code"] == "INVALID_ARGUMENT"


@pytest.mark.integration
class TestDriveTraversalTools:
    """Folder path, tree and recursive listing through the server."""

    @pytest.mark.asyncio
    async def test_get_folder_id_for_path(self, server: WorkspaceServer) -> None:
        folders = {"root": ("Projects", "p1"), "p1": ("2024", "p2")}

        def handler(method, url, kwargs):
            query = kwargs["params"]["q"]
            for parent, (name, folder_id) in folders.items():
                if f"'{parent}' in parents" in query and f"name = '{name}'" in query:
                    return create_mock_response(
                        {"files": [{"id": folder_id, "name": name, "mimeType": FOLDER_MIME_TYPE}]}
                    )
            return create_mock_response({"files": []})

        patcher, calls = mock_http(handler)
        try:
            result = await server.call("get_folder_id_for_path", {"path": "/Projects//2024/"})
        finally:
            patcher.stop()
            await server.close()

        assert result == {"path": "/Projects//2024/", "folder_id": "p2"}
        assert len(calls) == 2
        assert calls[0][2]["headers"]["Authorization"] == "Bearer mock_access_token_12345"

    @pytest.mark.asyncio
    async def test_missing_folder_returns_not_found(self, server: WorkspaceServer) -> None:
        patcher, _ = mock_http(lambda method, url, kwargs: create_mock_response({"files": []}))
        try:
            result = await server.call("get_folder_id_for_path", {"path": "Nope/Deeper"})
        finally:
            patcher.stop()
            await server.close()

        assert result == {"error": "Folder not found: Nope in path Nope/Deeper", "code": "NOT_FOUND"}

    @pytest.mark.asyncio
    async def test_list_folder_recursive(self, server: WorkspaceServer) -> None:
        listings = {
            "root": [{"id": "A", "name": "A", "mimeType": FOLDER_MIME_TYPE, "parents": ["root"]}],
            "A": [
                {"id": "x", "name": "x.txt", "mimeType": "text/plain", "size": "5", "parents": ["A"]},
                {"id": "B", "name": "B", "mimeType": FOLDER_MIME_TYPE, "parents": ["A"]},
            ],
        }

        def handler(method, url, kwargs):
            query = kwargs["params"]["q"]
            parent = query.split("'")[1]
            return create_mock_response({"files": listings.get(parent, [])})

        patcher, _ = mock_http(handler)
        try:
            result = await server.call("list_folder_recursive", {"max_depth": 1})
        finally:
            patcher.stop()
            await server.close()

        assert [(i["path"], i["depth"]) for i in result["items"]] == [
            ("A", 0),
            ("A/x.txt", 1),
            ("A/B", 1),
        ]
        assert result["items"][1]["size"] == 5
        assert result["count"] == 3

    @pytest.mark.asyncio
    async def test_folder_tree_propagates_api_errors(self, server: WorkspaceServer) -> None:
        patcher, _ = mock_http(
            lambda method, url, kwargs: create_mock_response(
                {"error": {"code": 403, "message": "The user does not have access."}}, 403
            )
        )
        try:
            result = await server.call("get_folder_tree", {"folder_id": "secret"})
        finally:
            patcher.stop()
            await server.close()

        assert result == {"error": "The user does not have access.", "code": "PERMISSION_DENIED"}


@pytest.mark.integration
class TestCredentialErrors:
    """Credential failures surface as AUTH_FAILED envelopes."""

    @pytest.mark.asyncio
    async def test_no_token_returns_auth_failed(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        for name in ACCESS_TOKEN_VARS + REFRESH_TOKEN_VARS:
            monkeypatch.delenv(name, raising=False)
        server = WorkspaceServer(Settings(token_path=tmp_path / "tokens.json"))

        result = await server.call("gmail_get_profile", {})

        assert result["code"] == "AUTH_FAILED"


@pytest.mark.unit
def test_error_envelope_for_unexpected_errors() -> None:
    assert error_envelope(RuntimeError("boom")) == {"error": "boom", "code": "UNKNOWN_ERROR"}
