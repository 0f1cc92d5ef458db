"""Unit tests for the Drive REST backend and query helpers."""

import pytest

from gws_tools.drive.backend import (
    FOLDER_MIME_TYPE,
    DriveApiBackend,
    Entry,
    build_query,
    escape_query_value,
)


@pytest.mark.unit
class TestQueryHelpers:
    """Tests for escape_query_value() and build_query()."""

    def test_should_escape_quotes_and_backslashes(self) -> None:
        assert escape_query_value("Bob's \\ files") == "Bob\\'s \\\\ files"

    def test_should_exclude_trashed_by_default(self) -> None:
        assert build_query("'root' in parents") == "'root' in parents and trashed = false"

    def test_should_skip_empty_clauses(self) -> None:
        assert build_query("", "a", include_trashed=True) == "a"


@pytest.mark.unit
class TestEntry:
    """Tests for Entry conversion."""

    def test_should_parse_api_resource(self) -> None:
        entry = Entry.from_api(
            {
                "id": "f1",
                "name": "Reports",
                "mimeType": FOLDER_MIME_TYPE,
                "parents": ["root"],
                "modifiedTime": "2024-01-01T00:00:00Z",
            }
        )

        assert entry.is_folder
        assert entry.size is None
        assert entry.parent_ids == {"root"}

    def test_should_convert_size_to_int(self) -> None:
        entry = Entry.from_api({"id": "f2", "name": "a.txt", "mimeType": "text/plain", "size": "42"})

        assert entry.size == 42
        assert not entry.is_folder
        assert entry.to_dict() == {
            "id": "f2",
            "name": "a.txt",
            "mimeType": "text/plain",
            "size": 42,
            "parents": [],
        }


@pytest.mark.unit
class TestDriveApiBackend:
    """Tests for DriveApiBackend against a mocked client."""

    @pytest.mark.asyncio
    async def test_should_follow_page_tokens(self, mock_client) -> None:
        mock_client.request.side_effect = [
            {"files": [{"id": "1", "name": "one"}], "nextPageToken": "p2"},
            {"files": [{"id": "2", "name": "two"}]},
        ]
        backend = DriveApiBackend(mock_client)

        entries = await backend.list_children("root")

        assert [e.id for e in entries] == ["1", "2"]
        assert mock_client.request.await_count == 2
        second_params = mock_client.request.await_args_list[1].kwargs["params"]
        assert second_params["pageToken"] == "p2"

    @pytest.mark.asyncio
    async def test_should_stop_at_max_results(self, mock_client) -> None:
        mock_client.request.return_value = {
            "files": [{"id": "1", "name": "a"}, {"id": "2", "name": "a"}],
            "nextPageToken": "more",
        }
        backend = DriveApiBackend(mock_client)

        entries = await backend.list_children("root", name="a", page_size=1, max_results=1)

        assert [e.id for e in entries] == ["1"]
        assert mock_client.request.await_count == 1

    @pytest.mark.asyncio
    async def test_should_build_folder_name_query(self, mock_client) -> None:
        mock_client.request.return_value = {"files": []}
        backend = DriveApiBackend(mock_client)

        await backend.list_children("root", folders_only=True, name="Bob's", order_by="name")

        params = mock_client.request.await_args.kwargs["params"]
        assert params["q"] == (
            "name = 'Bob\\'s' and 'root' in parents "
            f"and mimeType = '{FOLDER_MIME_TYPE}' and trashed = false"
        )
        assert params["orderBy"] == "name"

    @pytest.mark.asyncio
    async def test_should_keep_folders_with_mime_filter(self, mock_client) -> None:
        mock_client.request.return_value = {"files": []}
        backend = DriveApiBackend(mock_client)

        await backend.list_children("A", leaf_mime_type="application/pdf")

        query = mock_client.request.await_args.kwargs["params"]["q"]
        assert f"(mimeType = '{FOLDER_MIME_TYPE}' or mimeType = 'application/pdf')" in query

    @pytest.mark.asyncio
    async def test_should_create_folder_under_parent(self, mock_client) -> None:
        mock_client.request.return_value = {"id": "new-folder"}
        backend = DriveApiBackend(mock_client)

        folder_id = await backend.create_folder("Reports", "parent-1")

        assert folder_id == "new-folder"
        body = mock_client.request.await_args.kwargs["json_data"]
        assert body == {"name": "Reports", "mimeType": FOLDER_MIME_TYPE, "parents": ["parent-1"]}
