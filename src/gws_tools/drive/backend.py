"""Drive folder listing backend.

The traversal algorithms in :mod:`gws_tools.drive.traversal` only need three
capabilities: list a folder's children, fetch one entry's metadata and
create a folder. :class:`DriveBackend` describes them and
:class:`DriveApiBackend` implements them on the Drive v3 REST API.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from gws_tools.client import GoogleApiClient
from gws_tools.config import DRIVE_API_BASE

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
ROOT_FOLDER_ID = "root"
ROOT_FOLDER_NAME = "My Drive"

ENTRY_FIELDS = "id, name, mimeType, size, modifiedTime, parents"


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def build_query(*clauses: str, include_trashed: bool = False) -> str:
    """Join query clauses with ``and``, excluding trashed files by default."""
    parts = [clause for clause in clauses if clause]
    if not include_trashed:
        parts.append("trashed = false")
    return " and ".join(parts)


@dataclass
class Entry:
    """A Drive file or folder as seen by the traversal code."""

    id: str
    name: str
    mime_type: str
    size: int | None = None
    modified_time: str | None = None
    parent_ids: set[str] = field(default_factory=set)

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Entry":
        """Build an entry from a Drive v3 ``File`` resource."""
        size = data.get("size")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            mime_type=data.get("mimeType", ""),
            size=int(size) if size is not None else None,
            modified_time=data.get("modifiedTime"),
            parent_ids=set(data.get("parents", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the entry using Drive's camelCase field names."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
        }
        if self.size is not None:
            result["size"] = self.size
        if self.modified_time is not None:
            result["modifiedTime"] = self.modified_time
        result["parents"] = sorted(self.parent_ids)
        return result


class DriveBackend(Protocol):
    """Capabilities the folder traversal needs from Drive."""

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
    ) -> list[Entry]: ...

    async def get_metadata(self, file_id: str) -> Entry: ...

    async def create_folder(self, name: str, parent_id: str) -> str: ...


class DriveApiBackend:
    """:class:`DriveBackend` backed by the Drive v3 REST API."""

    def __init__(self, client: GoogleApiClient) -> None:
        self.client = client

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
        """List non-trashed children of a folder, following pagination.

        Args:
            parent_id: Folder whose children are listed.
            folders_only: Only return folders.
            name: Only return entries with exactly this name.
            leaf_mime_type: Return folders plus files of this MIME type.
            order_by: Drive ``orderBy`` expression, e.g. ``"name"``.
            page_size: Page size requested from Drive.
            max_results: Stop after this many entries.

        Returns:
            Entries in the order Drive returned them.

        Raises:
            GoogleApiError: If any page request fails.
        """
        clauses = [f"'{escape_query_value(parent_id)}' in parents"]
        if name is not None:
            clauses.insert(0, f"name = '{escape_query_value(name)}'")
        if folders_only:
            clauses.append(f"mimeType = '{FOLDER_MIME_TYPE}'")
        elif leaf_mime_type:
            clauses.append(
                f"(mimeType = '{FOLDER_MIME_TYPE}' or "
                f"mimeType = '{escape_query_value(leaf_mime_type)}')"
            )

        params: dict[str, Any] = {
            "q": build_query(*clauses),
            "fields": f"nextPageToken, files({ENTRY_FIELDS})",
            "pageSize": page_size if max_results is None else min(page_size, max_results),
        }
        if order_by:
            params["orderBy"] = order_by

        entries: list[Entry] = []
        while True:
            response = await self.client.request("GET", f"{DRIVE_API_BASE}/files", params=params)
            for item in response.get("files", []):
                entries.append(Entry.from_api(item))
                if max_results is not None and len(entries) >= max_results:
                    return entries

            page_token = response.get("nextPageToken")
            if not page_token:
                return entries
            params["pageToken"] = page_token

    async def get_metadata(self, file_id: str) -> Entry:
        """Fetch a single entry's metadata.

        Raises:
            GoogleApiError: If the entry cannot be read.
        """
        response = await self.client.request(
            "GET",
            f"{DRIVE_API_BASE}/files/{file_id}",
            params={"fields": ENTRY_FIELDS},
        )
        return Entry.from_api(response)

    async def create_folder(self, name: str, parent_id: str) -> str:
        """Create a folder and return its id."""
        response = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/files",
            params={"fields": "id"},
            json_data={"name": name, "mimeType": FOLDER_MIME_TYPE, "parents": [parent_id]},
        )
        logger.info("Created folder %r under %s", name, parent_id)
        return str(response["id"])
