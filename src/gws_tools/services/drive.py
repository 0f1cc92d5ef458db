"""Google Drive tools."""

import base64
import json
import logging
import uuid
from typing import Any

import httpx
from mcp.types import Tool

from gws_tools.client import GoogleApiClient
from gws_tools.config import DRIVE_API_BASE, DRIVE_UPLOAD_BASE
from gws_tools.drive import (
    FOLDER_MIME_TYPE,
    ROOT_FOLDER_ID,
    DriveApiBackend,
    build_tree,
    list_recursive,
    resolve_path,
)
from gws_tools.drive.backend import build_query, escape_query_value
from gws_tools.errors import GoogleApiError
from gws_tools.services.base import BaseService, ToolHandler

logger = logging.getLogger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
FORM_MIME_TYPE = "application/vnd.google-apps.form"
WORKSPACE_MIME_PREFIX = "application/vnd.google-apps."

# Short export format names -> MIME types
EXPORT_FORMATS = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "txt": "text/plain",
    "html": "text/html",
    "rtf": "application/rtf",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "csv": "text/csv",
    "tsv": "text/tab-separated-values",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "svg": "image/svg+xml",
}

LIST_FIELDS = (
    "files(id, name, mimeType, size, modifiedTime, createdTime, parents, "
    "webViewLink, webContentLink)"
)

MULTIPART_BOUNDARY = "gws_tools_boundary"


def default_export_mime_type(mime_type: str) -> str:
    """Pick a text-friendly export type for a Workspace document."""
    if "spreadsheet" in mime_type:
        return "text/csv"
    if "drawing" in mime_type:
        return "image/png"
    return "text/plain"


def resolve_export_format(export_format: str) -> str:
    """Map a short format name like ``pdf`` to its MIME type.

    Unknown names are passed through so callers can supply a MIME type.
    """
    return EXPORT_FORMATS.get(export_format.lower(), export_format)


def encode_content(data: bytes, fmt: str) -> str:
    """Render downloaded bytes as text or base64."""
    if fmt == "base64":
        return base64.b64encode(data).decode("ascii")
    return data.decode("utf-8", errors="replace")


def multipart_related_body(metadata: dict[str, Any], content: str, mime_type: str) -> bytes:
    """Build a ``multipart/related`` body for a Drive multipart upload."""
    body_parts = [
        f"--{MULTIPART_BOUNDARY}",
        "Content-Type: application/json; charset=UTF-8",
        "",
        json.dumps(metadata),
        f"--{MULTIPART_BOUNDARY}",
        f"Content-Type: {mime_type}",
        "",
        content,
        f"--{MULTIPART_BOUNDARY}--",
    ]
    return "\r\n".join(body_parts).encode("utf-8")


def name_clause(name: str, exact: bool) -> str:
    escaped = escape_query_value(name)
    return f"name = '{escaped}'" if exact else f"name contains '{escaped}'"


class DriveService(BaseService):
    """Drive file management plus folder path and tree traversal."""

    name = "drive"

    def __init__(self, client: GoogleApiClient) -> None:
        super().__init__(client)
        self.backend = DriveApiBackend(client)

    def tools(self) -> list[Tool]:
        file_id = {"type": "string", "description": "Drive file ID"}
        drive_id = {"type": "string", "description": "Shared drive ID"}
        return [
            Tool(
                name="list_files",
                description="List files in Google Drive",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Text the file name contains"},
                        "page_size": {
                            "type": "integer",
                            "description": "Number of files to return (default: 10)",
                            "default": 10,
                        },
                        "order_by": {
                            "type": "string",
                            "description": "Sort order (default: 'modifiedTime desc')",
                            "default": "modifiedTime desc",
                        },
                        "mime_type": {"type": "string", "description": "Filter by MIME type"},
                        "folder_id": {"type": "string", "description": "Only list this folder"},
                    },
                    "required": [],
                },
            ),
            Tool(
                name="get_file",
                description="Get metadata for a Drive file",
                inputSchema={
                    "type": "object",
                    "properties": {"file_id": file_id},
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="search_files",
                description="Search Drive by name and full text, with optional filters",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Search text"},
                        "mime_type": {"type": "string", "description": "Filter by MIME type"},
                        "modified_after": {
                            "type": "string",
                            "description": "RFC 3339 timestamp, only files modified later",
                        },
                        "owner": {"type": "string", "description": "Owner email address"},
                        "shared_with_me": {
                            "type": "boolean",
                            "description": "Only files shared with me",
                        },
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum results (default: 20)",
                            "default": 20,
                        },
                    },
                    "required": ["query"],
                },
            ),
            Tool(
                name="find_file",
                description="Find files by name",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "File name"},
                        "exact_match": {
                            "type": "boolean",
                            "description": "Match the name exactly (default: false)",
                            "default": False,
                        },
                        "mime_type": {"type": "string", "description": "Filter by MIME type"},
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="find_folder",
                description="Find folders by name, optionally inside a parent folder",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Folder name"},
                        "exact_match": {
                            "type": "boolean",
                            "description": "Match the name exactly (default: false)",
                            "default": False,
                        },
                        "parent_id": {"type": "string", "description": "Parent folder ID"},
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="find_spreadsheets",
                description="Find Google Sheets spreadsheets, optionally by name",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Spreadsheet name"},
                        "exact_match": {
                            "type": "boolean",
                            "description": "Match the name exactly (default: false)",
                            "default": False,
                        },
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum results (default: 20)",
                            "default": 20,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="download_file",
                description=(
                    "Download a file's content. Google Docs/Sheets/Slides are exported, "
                    "by default as plain text or CSV"
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "format": {
                            "type": "string",
                            "enum": ["text", "base64"],
                            "description": "How to return the content (default: text)",
                            "default": "text",
                        },
                        "export_format": {
                            "type": "string",
                            "description": "Export format for Workspace files (pdf, docx, xlsx, csv, ...)",
                        },
                    },
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="export_file",
                description="Export a Google Workspace file to a specific format",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "format": {
                            "type": "string",
                            "enum": sorted(EXPORT_FORMATS),
                            "description": "Export format",
                        },
                        "return_as": {
                            "type": "string",
                            "enum": ["content", "base64", "url"],
                            "description": "Return the content, base64 data or an export URL",
                            "default": "content",
                        },
                    },
                    "required": ["file_id", "format"],
                },
            ),
            Tool(
                name="create_file",
                description="Create a file in Google Drive with optional text content",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "File name"},
                        "content": {"type": "string", "description": "File content"},
                        "mime_type": {
                            "type": "string",
                            "description": "MIME type (default: text/plain)",
                            "default": "text/plain",
                        },
                        "parent_id": {"type": "string", "description": "Parent folder ID"},
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="create_folder",
                description="Create a folder in Google Drive",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Folder name"},
                        "parent_id": {"type": "string", "description": "Parent folder ID"},
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="update_file",
                description="Rename, re-parent or replace the content of a file",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "name": {"type": "string", "description": "New file name"},
                        "content": {"type": "string", "description": "New text content"},
                        "add_parents": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Folder IDs to add as parents",
                        },
                        "remove_parents": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Folder IDs to remove as parents",
                        },
                    },
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="move_file",
                description="Move a file to a different folder",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "new_parent_id": {"type": "string", "description": "Destination folder ID"},
                        "remove_from_current_parents": {
                            "type": "boolean",
                            "description": "Remove from current folders (default: true)",
                            "default": True,
                        },
                    },
                    "required": ["file_id", "new_parent_id"],
                },
            ),
            Tool(
                name="copy_file",
                description="Copy a file",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "name": {"type": "string", "description": "Name for the copy"},
                        "parent_id": {"type": "string", "description": "Folder for the copy"},
                    },
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="delete_file",
                description="Permanently delete a file or folder, bypassing the trash",
                inputSchema={
                    "type": "object",
                    "properties": {"file_id": file_id},
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="move_to_trash",
                description="Move a file or folder to the trash",
                inputSchema={
                    "type": "object",
                    "properties": {"file_id": file_id},
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="share_file",
                description="Share a file with a user, a domain or anyone with the link",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_id": file_id,
                        "type": {
                            "type": "string",
                            "enum": ["user", "group", "domain", "anyone"],
                            "description": "Grantee type (default: user)",
                            "default": "user",
                        },
                        "role": {
                            "type": "string",
                            "enum": ["reader", "commenter", "writer"],
                            "description": "Permission role (default: reader)",
                            "default": "reader",
                        },
                        "email_address": {
                            "type": "string",
                            "description": "Email address (required for user and group)",
                        },
                        "domain": {
                            "type": "string",
                            "description": "Domain (required for type domain)",
                        },
                        "send_notification": {
                            "type": "boolean",
                            "description": "Send a notification email (default: true)",
                            "default": True,
                        },
                    },
                    "required": ["file_id"],
                },
            ),
            Tool(
                name="get_storage_quota",
                description="Get Drive storage usage and limit",
                inputSchema={"type": "object", "properties": {}, "required": []},
            ),
            Tool(
                name="find_forms",
                description="List Google Forms, optionally filtered by name",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Form name to search for"},
                        "exact_match": {
                            "type": "boolean",
                            "description": "Require an exact name match (default: false)",
                            "default": False,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="create_file_from_template",
                description="Create a file by copying a template file",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "template_id": {"type": "string", "description": "Template file ID"},
                        "name": {"type": "string", "description": "Name for the new file"},
                        "parent_ids": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Parent folder IDs",
                        },
                        "placeholders": {
                            "type": "object",
                            "additionalProperties": {"type": "string"},
                            "description": "Placeholder values, echoed back for a Docs edit",
                        },
                    },
                    "required": ["template_id", "name"],
                },
            ),
            Tool(
                name="batch_download",
                description="Download several files; failures are reported per file",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_ids": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "File IDs to download",
                        },
                        "format": {
                            "type": "string",
                            "enum": ["text", "base64"],
                            "description": "Content encoding (default: text)",
                            "default": "text",
                        },
                        "export_format": {
                            "type": "string",
                            "description": "Export format for Google Workspace documents",
                        },
                    },
                    "required": ["file_ids"],
                },
            ),
            Tool(
                name="create_shared_drive",
                description="Create a shared drive",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "name": {"type": "string", "description": "Shared drive name"},
                        "hidden": {
                            "type": "boolean",
                            "description": "Hide from the default view (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["name"],
                },
            ),
            Tool(
                name="update_shared_drive",
                description="Rename, hide or restrict a shared drive",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "drive_id": drive_id,
                        "name": {"type": "string", "description": "New name"},
                        "hidden": {"type": "boolean", "description": "Hidden flag"},
                        "restrictions": {
                            "type": "object",
                            "description": (
                                "Restrictions such as adminManagedRestrictions, "
                                "copyRequiresWriterPermission, domainUsersOnly, driveMembersOnly"
                            ),
                        },
                    },
                    "required": ["drive_id"],
                },
            ),
            Tool(
                name="delete_shared_drive",
                description="Delete a shared drive; refuses a non-empty drive by default",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "drive_id": drive_id,
                        "allow_item_deletion": {
                            "type": "boolean",
                            "description": "Skip the empty-drive check (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["drive_id"],
                },
            ),
            Tool(
                name="get_shared_drive",
                description="Get one shared drive, or list shared drives when no ID is given",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "drive_id": drive_id,
                        "page_size": {
                            "type": "integer",
                            "description": "Drives to return when listing (default: 10)",
                            "default": 10,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="search_shared_drives",
                description="Search shared drives by name and hidden flag",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Text the drive name contains"},
                        "hidden": {"type": "boolean", "description": "Filter by hidden flag"},
                        "page_size": {
                            "type": "integer",
                            "description": "Number of results (default: 10)",
                            "default": 10,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="get_folder_id_for_path",
                description=(
                    "Resolve a folder path like 'Projects/2024/Reports' to a folder ID, "
                    "optionally creating missing folders"
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "path": {
                            "type": "string",
                            "description": "Slash-separated folder path from My Drive",
                        },
                        "create_if_not_exists": {
                            "type": "boolean",
                            "description": "Create missing folders (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["path"],
                },
            ),
            Tool(
                name="get_folder_tree",
                description="Get a nested folder tree, optionally including files",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "folder_id": {
                            "type": "string",
                            "description": "Root folder ID (default: 'root')",
                            "default": ROOT_FOLDER_ID,
                        },
                        "max_depth": {
                            "type": "integer",
                            "description": "Number of tree levels including the root (default: 3)",
                            "default": 3,
                            "minimum": 0,
                        },
                        "include_files": {
                            "type": "boolean",
                            "description": "Include files as leaves (default: false)",
                            "default": False,
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="list_folder_recursive",
                description="List all files and folders below a folder with their paths",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "folder_id": {
                            "type": "string",
                            "description": "Folder ID (default: 'root')",
                            "default": ROOT_FOLDER_ID,
                        },
                        "max_depth": {
                            "type": "integer",
                            "description": "Deepest folder level expanded (default: 5)",
                            "default": 5,
                            "minimum": 0,
                        },
                        "include_files": {
                            "type": "boolean",
                            "description": "Include files (default: true)",
                            "default": True,
                        },
                        "include_folders": {
                            "type": "boolean",
                            "description": "Include folders in the output (default: true)",
                            "default": True,
                        },
                        "mime_type": {
                            "type": "string",
                            "description": "Only include files of this MIME type",
                        },
                    },
                    "required": [],
                },
            ),
        ]

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "list_files": self._list_files,
            "get_file": self._get_file,
            "search_files": self._search_files,
            "find_file": self._find_file,
            "find_folder": self._find_folder,
            "find_spreadsheets": self._find_spreadsheets,
            "download_file": self._download_file,
            "export_file": self._export_file,
            "create_file": self._create_file,
            "create_folder": self._create_folder,
            "update_file": self._update_file,
            "move_file": self._move_file,
            "copy_file": self._copy_file,
            "delete_file": self._delete_file,
            "move_to_trash": self._move_to_trash,
            "share_file": self._share_file,
            "get_storage_quota": self._get_storage_quota,
            "find_forms": self._find_forms,
            "create_file_from_template": self._create_file_from_template,
            "batch_download": self._batch_download,
            "create_shared_drive": self._create_shared_drive,
            "update_shared_drive": self._update_shared_drive,
            "delete_shared_drive": self._delete_shared_drive,
            "get_shared_drive": self._get_shared_drive,
            "search_shared_drives": self._search_shared_drives,
            "get_folder_id_for_path": self._get_folder_id_for_path,
            "get_folder_tree": self._get_folder_tree,
            "list_folder_recursive": self._list_folder_recursive,
        }

    async def _list_files_query(
        self, query: str, page_size: int, order_by: str | None = None, fields: str = LIST_FIELDS
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"q": query, "pageSize": page_size, "fields": fields}
        if order_by:
            params["orderBy"] = order_by
        response = await self.client.request("GET", f"{DRIVE_API_BASE}/files", params=params)
        files: list[dict[str, Any]] = response.get("files", [])
        return files

    # =========================================================================
    # Listing and search
    # =========================================================================

    async def _list_files(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """List files, newest first by default.

        Args:
            arguments: Tool arguments with optional query, page_size, order_by,
                mime_type and folder_id.

        Returns:
            Files and count.
        """
        clauses = []
        if arguments.get("query"):
            clauses.append(name_clause(arguments["query"], exact=False))
        if arguments.get("mime_type"):
            clauses.append(f"mimeType = '{escape_query_value(arguments['mime_type'])}'")
        if arguments.get("folder_id"):
            clauses.append(f"'{escape_query_value(arguments['folder_id'])}' in parents")

        files = await self._list_files_query(
            build_query(*clauses),
            page_size=arguments.get("page_size", 10),
            order_by=arguments.get("order_by", "modifiedTime desc"),
        )
        return {"files": files, "count": len(files)}

    async def _get_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments["file_id"]
        return await self.client.request(
            "GET",
            f"{DRIVE_API_BASE}/files/{file_id}",
            params={
                "fields": (
                    "id, name, mimeType, size, createdTime, modifiedTime, parents, "
                    "owners, webViewLink, webContentLink, trashed"
                )
            },
        )

    async def _search_files(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Search by name or full text.

        Args:
            arguments: Tool arguments with query and optional mime_type,
                modified_after, owner, shared_with_me, max_results.

        Returns:
            Files, count and the Drive query that was run.
        """
        text = escape_query_value(arguments["query"])
        clauses = [f"(name contains '{text}' or fullText contains '{text}')"]
        if arguments.get("mime_type"):
            clauses.append(f"mimeType = '{escape_query_value(arguments['mime_type'])}'")
        if arguments.get("modified_after"):
            clauses.append(f"modifiedTime > '{escape_query_value(arguments['modified_after'])}'")
        if arguments.get("owner"):
            clauses.append(f"'{escape_query_value(arguments['owner'])}' in owners")
        if arguments.get("shared_with_me"):
            clauses.append("sharedWithMe = true")

        query = build_query(*clauses)
        files = await self._list_files_query(
            query,
            page_size=arguments.get("max_results", 20),
            order_by="modifiedTime desc",
            fields="files(id, name, mimeType, size, modifiedTime, owners, webViewLink)",
        )
        return {"files": files, "count": len(files), "query": query}

    async def _find_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        clauses = [name_clause(arguments["name"], arguments.get("exact_match", False))]
        if arguments.get("mime_type"):
            clauses.append(f"mimeType = '{escape_query_value(arguments['mime_type'])}'")

        files = await self._list_files_query(
            build_query(*clauses),
            page_size=20,
            fields="files(id, name, mimeType, size, modifiedTime, webViewLink)",
        )
        return {"files": files, "count": len(files)}

    async def _find_folder(self, arguments: dict[str, Any]) -> dict[str, Any]:
        clauses = [
            name_clause(arguments["name"], arguments.get("exact_match", False)),
            f"mimeType = '{FOLDER_MIME_TYPE}'",
        ]
        if arguments.get("parent_id"):
            clauses.append(f"'{escape_query_value(arguments['parent_id'])}' in parents")

        folders = await self._list_files_query(
            build_query(*clauses),
            page_size=20,
            fields="files(id, name, modifiedTime, webViewLink, parents)",
        )
        return {"folders": folders, "count": len(folders)}

    async def _find_spreadsheets(self, arguments: dict[str, Any]) -> dict[str, Any]:
        clauses = []
        if arguments.get("name"):
            clauses.append(name_clause(arguments["name"], arguments.get("exact_match", False)))
        clauses.append(f"mimeType = '{SPREADSHEET_MIME_TYPE}'")

        spreadsheets = await self._list_files_query(
            build_query(*clauses),
            page_size=arguments.get("max_results", 20),
            order_by="modifiedTime desc",
            fields="files(id, name, modifiedTime, createdTime, webViewLink)",
        )
        return {"spreadsheets": spreadsheets, "count": len(spreadsheets)}

    # =========================================================================
    # Content
    # =========================================================================

    async def _download_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Download a file's content.

        Workspace documents are exported; ``export_format`` selects the
        target type, otherwise a text-friendly default is used.

        Args:
            arguments: Tool arguments with file_id, format and export_format.

        Returns:
            File name, content, MIME type of the content, format and size.
        """
        return await self._fetch_content(
            arguments["file_id"], arguments.get("format", "text"), arguments.get("export_format")
        )

    async def _fetch_content(
        self, file_id: str, fmt: str, export_format: str | None
    ) -> dict[str, Any]:
        metadata = await self.client.request(
            "GET", f"{DRIVE_API_BASE}/files/{file_id}", params={"fields": "name, mimeType, size"}
        )
        mime_type = metadata.get("mimeType", "")

        if mime_type.startswith(WORKSPACE_MIME_PREFIX):
            if export_format:
                content_type = resolve_export_format(export_format)
            else:
                content_type = default_export_mime_type(mime_type)
            response = await self.client.raw_request(
                "GET",
                f"{DRIVE_API_BASE}/files/{file_id}/export",
                params={"mimeType": content_type},
                timeout=60.0,
            )
        else:
            content_type = mime_type
            response = await self.client.raw_request(
                "GET",
                f"{DRIVE_API_BASE}/files/{file_id}",
                params={"alt": "media"},
                timeout=60.0,
            )

        return {
            "name": metadata.get("name"),
            "content": encode_content(response.content, fmt),
            "mimeType": content_type,
            "format": fmt,
            "size": metadata.get("size"),
        }

    async def _export_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Export a Workspace file.

        Raises:
            ValueError: If the format is unknown or the file is not a
                Google Workspace document.
        """
        file_id = arguments["file_id"]
        fmt = arguments["format"].lower()
        return_as = arguments.get("return_as", "content")

        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        export_mime_type = EXPORT_FORMATS[fmt]

        metadata = await self.client.request(
            "GET", f"{DRIVE_API_BASE}/files/{file_id}", params={"fields": "name, mimeType"}
        )
        if not metadata.get("mimeType", "").startswith(WORKSPACE_MIME_PREFIX):
            raise ValueError(
                "Export is only available for Google Workspace files (Docs, Sheets, Slides, etc.)"
            )

        result: dict[str, Any] = {
            "name": metadata.get("name"),
            "format": fmt,
            "mimeType": export_mime_type,
        }
        export_url = f"{DRIVE_API_BASE}/files/{file_id}/export"

        if return_as == "url":
            result["exportUrl"] = str(httpx.URL(export_url, params={"mimeType": export_mime_type}))
            return result

        response = await self.client.raw_request(
            "GET", export_url, params={"mimeType": export_mime_type}, timeout=60.0
        )
        result["content"] = encode_content(
            response.content, "base64" if return_as == "base64" else "text"
        )
        result["returnAs"] = return_as
        return result

    # =========================================================================
    # Create and modify
    # =========================================================================

    async def _create_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        name = arguments["name"]
        content = arguments.get("content")
        mime_type = arguments.get("mime_type", "text/plain")
        parent_id = arguments.get("parent_id")

        metadata: dict[str, Any] = {"name": name, "mimeType": mime_type}
        if parent_id:
            metadata["parents"] = [parent_id]

        fields = "id, name, mimeType, webViewLink, webContentLink"
        if content is None:
            file = await self.client.request(
                "POST", f"{DRIVE_API_BASE}/files", params={"fields": fields}, json_data=metadata
            )
        else:
            response = await self.client.raw_request(
                "POST",
                f"{DRIVE_UPLOAD_BASE}/files",
                params={"uploadType": "multipart", "fields": fields},
                content=multipart_related_body(metadata, content, mime_type),
                headers={"Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}"},
                timeout=60.0,
            )
            file = response.json()

        return {"status": "created", "file": file}

    async def _create_folder(self, arguments: dict[str, Any]) -> dict[str, Any]:
        metadata: dict[str, Any] = {"name": arguments["name"], "mimeType": FOLDER_MIME_TYPE}
        if arguments.get("parent_id"):
            metadata["parents"] = [arguments["parent_id"]]

        folder = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/files",
            params={"fields": "id, name, webViewLink"},
            json_data=metadata,
        )
        return {"status": "folder_created", "folder": folder}

    async def _update_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Rename, re-parent and/or replace the text content of a file."""
        file_id = arguments["file_id"]
        params: dict[str, Any] = {"fields": "id, name, parents, modifiedTime"}
        if arguments.get("add_parents"):
            params["addParents"] = ",".join(arguments["add_parents"])
        if arguments.get("remove_parents"):
            params["removeParents"] = ",".join(arguments["remove_parents"])

        metadata: dict[str, Any] = {}
        if arguments.get("name"):
            metadata["name"] = arguments["name"]

        content = arguments.get("content")
        if content is None:
            file = await self.client.request(
                "PATCH", f"{DRIVE_API_BASE}/files/{file_id}", params=params, json_data=metadata
            )
        else:
            params["uploadType"] = "multipart"
            response = await self.client.raw_request(
                "PATCH",
                f"{DRIVE_UPLOAD_BASE}/files/{file_id}",
                params=params,
                content=multipart_related_body(metadata, content, "text/plain"),
                headers={"Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}"},
                timeout=60.0,
            )
            file = response.json()

        return {"status": "updated", "file": file}

    async def _move_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments["file_id"]
        new_parent_id = arguments["new_parent_id"]

        params: dict[str, Any] = {"addParents": new_parent_id, "fields": "id, name, parents"}
        if arguments.get("remove_from_current_parents", True):
            current = await self.client.request(
                "GET", f"{DRIVE_API_BASE}/files/{file_id}", params={"fields": "parents"}
            )
            previous = [p for p in current.get("parents", []) if p != new_parent_id]
            if previous:
                params["removeParents"] = ",".join(previous)

        file = await self.client.request(
            "PATCH", f"{DRIVE_API_BASE}/files/{file_id}", params=params, json_data={}
        )
        return {"status": "moved", "file": file}

    async def _copy_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments["file_id"]
        body: dict[str, Any] = {}
        if arguments.get("name"):
            body["name"] = arguments["name"]
        if arguments.get("parent_id"):
            body["parents"] = [arguments["parent_id"]]

        file = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/files/{file_id}/copy",
            params={"fields": "id, name, mimeType, parents, webViewLink"},
            json_data=body,
        )
        return {"status": "copied", "file": file}

    async def _delete_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments["file_id"]
        await self.client.delete(f"{DRIVE_API_BASE}/files/{file_id}")
        return {"status": "deleted", "file_id": file_id}

    async def _move_to_trash(self, arguments: dict[str, Any]) -> dict[str, Any]:
        file_id = arguments["file_id"]
        file = await self.client.request(
            "PATCH",
            f"{DRIVE_API_BASE}/files/{file_id}",
            params={"fields": "id, name, trashed"},
            json_data={"trashed": True},
        )
        return {"status": "trashed", "file": file}

    async def _share_file(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Create a permission on a file.

        Raises:
            ValueError: If the grantee details required by ``type`` are missing.
        """
        file_id = arguments["file_id"]
        perm_type = arguments.get("type", "user")
        role = arguments.get("role", "reader")
        email_address = arguments.get("email_address")
        domain = arguments.get("domain")

        if perm_type in ("user", "group") and not email_address:
            raise ValueError(f"email_address is required for type '{perm_type}'")
        if perm_type == "domain" and not domain:
            raise ValueError("domain is required for type 'domain'")

        permission: dict[str, Any] = {"type": perm_type, "role": role}
        if email_address:
            permission["emailAddress"] = email_address
        if domain:
            permission["domain"] = domain

        response = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/files/{file_id}/permissions",
            params={
                "sendNotificationEmail": str(arguments.get("send_notification", True)).lower(),
                "fields": "id, type, role, emailAddress, domain",
            },
            json_data=permission,
        )
        return {"status": "shared", "file_id": file_id, "permission": response}

    async def _get_storage_quota(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.request(
            "GET", f"{DRIVE_API_BASE}/about", params={"fields": "storageQuota, user"}
        )
        quota = response.get("storageQuota", {})
        gib = 1024**3
        usage = int(quota.get("usage", 0))
        limit = quota.get("limit")

        return {
            "user": response.get("user"),
            "storage": {
                "used": f"{usage / gib:.2f} GB",
                "limit": f"{int(limit) / gib:.2f} GB" if limit else "Unlimited",
                "usage_bytes": usage,
                "limit_bytes": int(limit) if limit else None,
                "usage_in_drive": quota.get("usageInDrive"),
                "usage_in_drive_trash": quota.get("usageInDriveTrash"),
            },
        }

    async def _find_forms(self, arguments: dict[str, Any]) -> dict[str, Any]:
        clauses = []
        if arguments.get("name"):
            clauses.append(name_clause(arguments["name"], arguments.get("exact_match", False)))
        clauses.append(f"mimeType = '{FORM_MIME_TYPE}'")

        forms = await self._list_files_query(
            build_query(*clauses),
            page_size=20,
            order_by="modifiedTime desc",
            fields="files(id, name, modifiedTime, createdTime, webViewLink)",
        )
        return {"forms": forms, "count": len(forms)}

    async def _create_file_from_template(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Copy a template file under a new name.

        Placeholders are not substituted, since that needs the Docs API;
        they are returned with the new file so a caller can apply them.
        """
        body: dict[str, Any] = {"name": arguments["name"]}
        if arguments.get("parent_ids"):
            body["parents"] = arguments["parent_ids"]

        file = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/files/{arguments['template_id']}/copy",
            params={"fields": "id, name, mimeType, webViewLink"},
            json_data=body,
        )
        result: dict[str, Any] = {"status": "created", "file": file}
        if arguments.get("placeholders"):
            result["placeholders"] = arguments["placeholders"]
        return result

    async def _batch_download(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Download files one after another.

        A Google API failure on one file is recorded under ``failed`` and
        the remaining files are still downloaded.
        """
        file_ids: list[str] = arguments["file_ids"]
        fmt = arguments.get("format", "text")
        export_format = arguments.get("export_format")

        downloaded = []
        failed = []
        for file_id in file_ids:
            try:
                content = await self._fetch_content(file_id, fmt, export_format)
            except GoogleApiError as e:
                logger.warning("Download of %s failed: %s", file_id, e)
                failed.append({"file_id": file_id, "error": str(e), "code": e.code})
                continue
            downloaded.append({"file_id": file_id, **content})

        return {
            "downloaded": downloaded,
            "failed": failed,
            "total_requested": len(file_ids),
            "success_count": len(downloaded),
            "error_count": len(failed),
        }

    # =========================================================================
    # Shared drives
    # =========================================================================

    async def _create_shared_drive(self, arguments: dict[str, Any]) -> dict[str, Any]:
        drive = await self.client.request(
            "POST",
            f"{DRIVE_API_BASE}/drives",
            params={"requestId": uuid.uuid4().hex, "fields": "id, name, hidden, colorRgb"},
            json_data={"name": arguments["name"], "hidden": arguments.get("hidden", False)},
        )
        return {"status": "created", "drive": drive}

    async def _update_shared_drive(self, arguments: dict[str, Any]) -> dict[str, Any]:
        body = {
            key: arguments[key]
            for key in ("name", "hidden", "restrictions")
            if arguments.get(key) is not None
        }
        if not body:
            raise ValueError("Nothing to update: pass name, hidden or restrictions")

        drive = await self.client.request(
            "PATCH",
            f"{DRIVE_API_BASE}/drives/{arguments['drive_id']}",
            params={"fields": "id, name, hidden, restrictions"},
            json_data=body,
        )
        return {"status": "updated", "drive": drive}

    async def _delete_shared_drive(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Delete a shared drive.

        Raises:
            ValueError: If the drive still holds items and
                ``allow_item_deletion`` is not set.
        """
        drive_id = arguments["drive_id"]
        if not arguments.get("allow_item_deletion", False):
            response = await self.client.request(
                "GET",
                f"{DRIVE_API_BASE}/files",
                params={
                    "q": "trashed = false",
                    "corpora": "drive",
                    "driveId": drive_id,
                    "includeItemsFromAllDrives": "true",
                    "supportsAllDrives": "true",
                    "pageSize": 1,
                    "fields": "files(id)",
                },
            )
            if response.get("files"):
                raise ValueError(
                    "Shared drive is not empty; set allow_item_deletion to delete it anyway"
                )

        await self.client.delete(f"{DRIVE_API_BASE}/drives/{drive_id}")
        return {"status": "deleted", "drive_id": drive_id}

    async def _get_shared_drive(self, arguments: dict[str, Any]) -> dict[str, Any]:
        drive_id = arguments.get("drive_id")
        if drive_id:
            drive = await self.client.request(
                "GET", f"{DRIVE_API_BASE}/drives/{drive_id}", params={"fields": "*"}
            )
            return {"drive": drive}
        return await self._list_shared_drives(None, arguments.get("page_size", 10))

    async def _search_shared_drives(self, arguments: dict[str, Any]) -> dict[str, Any]:
        clauses = []
        if arguments.get("query"):
            clauses.append(f"name contains '{escape_query_value(arguments['query'])}'")
        if arguments.get("hidden") is not None:
            clauses.append(f"hidden = {str(arguments['hidden']).lower()}")
        query = " and ".join(clauses) or None
        return await self._list_shared_drives(query, arguments.get("page_size", 10))

    async def _list_shared_drives(self, query: str | None, page_size: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "pageSize": page_size,
            "fields": "drives(id, name, colorRgb, hidden, createdTime)",
        }
        if query:
            params["q"] = query
        response = await self.client.request("GET", f"{DRIVE_API_BASE}/drives", params=params)
        drives = response.get("drives", [])
        return {"drives": drives, "count": len(drives)}

    # =========================================================================
    # Folder paths and traversal
    # =========================================================================

    async def _get_folder_id_for_path(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Resolve a slash-delimited folder path to a folder ID.

        Args:
            arguments: Tool arguments with path and create_if_not_exists.

        Returns:
            The requested path and the resolved folder_id.
        """
        path = arguments["path"]
        folder_id = await resolve_path(
            self.backend, path, create_if_missing=arguments.get("create_if_not_exists", False)
        )
        return {"path": path, "folder_id": folder_id}

    async def _get_folder_tree(self, arguments: dict[str, Any]) -> dict[str, Any]:
        tree = await build_tree(
            self.backend,
            root_id=arguments.get("folder_id", ROOT_FOLDER_ID),
            max_depth=arguments.get("max_depth", 3),
            include_files=arguments.get("include_files", False),
        )
        return {"root": tree.to_dict()}

    async def _list_folder_recursive(self, arguments: dict[str, Any]) -> dict[str, Any]:
        folder_id = arguments.get("folder_id", ROOT_FOLDER_ID)
        max_depth = arguments.get("max_depth", 5)

        items = await list_recursive(
            self.backend,
            root_id=folder_id,
            max_depth=max_depth,
            include_files=arguments.get("include_files", True),
            include_folders=arguments.get("include_folders", True),
            mime_type=arguments.get("mime_type"),
        )
        return {
            "items": items,
            "count": len(items),
            "folder_id": folder_id,
            "max_depth": max_depth,
        }
