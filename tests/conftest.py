"""Shared pytest fixtures for gws-tools tests.

This module provides reusable fixtures for token storage, the Google API
client and an in-memory Drive backend for the traversal tests.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from gws_tools.auth.models import OAuthToken, StoredToken, TokenMetadata
from gws_tools.drive.backend import FOLDER_MIME_TYPE, Entry
from gws_tools.errors import GoogleApiError

# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=[
            "https://www.googleapis.com/auth/calendar",
            "https://www.googleapis.com/auth/gmail.modify",
            "https://www.googleapis.com/auth/drive",
            "https://www.googleapis.com/auth/spreadsheets",
        ],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def token_metadata() -> TokenMetadata:
    """Create token metadata for testing."""
    return TokenMetadata(
        service_name="gws-tools",
        provider="google",
        created_at=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest.fixture
def stored_token(valid_token: OAuthToken, token_metadata: TokenMetadata) -> StoredToken:
    """Create a complete stored token for testing."""
    return StoredToken(version=1, metadata=token_metadata, token=valid_token)


# =============================================================================
# Token Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_path(tmp_path: Path) -> Path:
    """Get the path for a temporary tokens.json file."""
    return tmp_path / ".gws-tools" / "tokens.json"


@pytest.fixture
def token_storage(temp_token_path: Path):
    """Create a TokenStorage instance with temporary storage."""
    from gws_tools.auth.token_storage import TokenStorage

    return TokenStorage(token_path=temp_token_path)


# =============================================================================
# Google API Client Fixtures
# =============================================================================


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a GoogleApiClient stand-in with async request methods."""
    client = MagicMock()
    client.request = AsyncMock(return_value={})
    client.delete = AsyncMock(return_value=None)
    client.raw_request = AsyncMock()
    return client


def create_mock_response(
    json_data: Any = None, status_code: int = 200, content: bytes = b""
) -> httpx.Response:
    """Create a real httpx Response bound to a dummy request."""
    request = httpx.Request("GET", "https://example.test/")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, content=content, request=request)


# =============================================================================
# In-memory Drive Backend
# =============================================================================


def folder(id: str, name: str, parent: str) -> Entry:
    return Entry(id=id, name=name, mime_type=FOLDER_MIME_TYPE, parent_ids={parent})


def file(id: str, name: str, parent: str, mime_type: str = "text/plain", size: int = 10) -> Entry:
    return Entry(id=id, name=name, mime_type=mime_type, size=size, parent_ids={parent})


class FakeDriveBackend:
    """Drive backend over an in-memory parent -> children map.

    Children are returned in insertion order, or sorted by name when
    ``order_by="name"``. Listing a folder in ``failing`` raises
    :class:`GoogleApiError`.
    """

    def __init__(self, entries: list[Entry] | None = None) -> None:
        self.entries: dict[str, Entry] = {}
        self.children: dict[str, list[str]] = {}
        self.failing: set[str] = set()
        self.list_calls: list[str] = []
        self.created: list[tuple[str, str]] = []
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: Entry, parent: str | None = None) -> None:
        """Add an entry under its parents, or under ``parent`` only."""
        self.entries[entry.id] = entry
        for parent_id in [parent] if parent else sorted(entry.parent_ids):
            self.children.setdefault(parent_id, []).append(entry.id)

    async def list_children(
        self,
        parent_id: str,
        *,
        folders_only: bool = False,
        name: str | None = None,
        leaf_mime_type: str | None = None,
        order_by: str | None = None,
        page_size: int = 100,
        max_results: int | None = None,
    ) -> list[Entry]:
        self.list_calls.append(parent_id)
        if parent_id in self.failing:
            raise GoogleApiError("Backend unavailable", status_code=500)

        result = []
        for child_id in self.children.get(parent_id, []):
            entry = self.entries[child_id]
            if name is not None and entry.name != name:
                continue
            if folders_only and not entry.is_folder:
                continue
            if leaf_mime_type and not entry.is_folder and entry.mime_type != leaf_mime_type:
                continue
            result.append(entry)

        if order_by == "name":
            result.sort(key=lambda e: e.name)
        if max_results is not None:
            result = result[:max_results]
        return result

    async def get_metadata(self, file_id: str) -> Entry:
        if file_id not in self.entries:
            raise GoogleApiError("File not found", status_code=404, code="NOT_FOUND")
        return self.entries[file_id]

    async def create_folder(self, name: str, parent_id: str) -> str:
        new_id = f"new-{len(self.created) + 1}"
        self.created.append((name, parent_id))
        self.add(folder(new_id, name, parent_id))
        return new_id


@pytest.fixture
def drive_backend() -> FakeDriveBackend:
    """Fixture tree: root -> A -> {x.txt, B (empty)}."""
    return FakeDriveBackend(
        [
            folder("A", "A", "root"),
            file("x", "x.txt", "A"),
            folder("B", "B", "A"),
        ]
    )


@pytest.fixture
def empty_backend() -> FakeDriveBackend:
    return FakeDriveBackend()


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
