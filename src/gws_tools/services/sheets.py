"""Google Sheets tools."""

import logging
import re
from typing import Any
from urllib.parse import quote

from mcp.types import Tool

from gws_tools.config import DRIVE_API_BASE, SHEETS_API_BASE
from gws_tools.errors import NotFoundError
from gws_tools.services.base import BaseService, ToolHandler

logger = logging.getLogger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
CELL_PATTERN = re.compile(r"^([A-Z]+)([0-9]+)$")


def column_to_index(column: str) -> int:
    """Convert a column letter (``A``, ``Z``, ``AB``) to a zero-based index.

    Raises:
        ValueError: If ``column`` is not made of letters A-Z.
    """
    letters = column.strip().upper()
    if not letters or not letters.isascii() or not letters.isalpha():
        raise ValueError(f"Invalid column letter: {column!r}")

    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def index_to_column(index: int) -> str:
    """Convert a zero-based column index back to its letters (0 -> ``A``)."""
    if index < 0:
        raise ValueError(f"Column index must be >= 0, got {index}")
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def parse_cell(cell: str) -> tuple[int, int]:
    """Split an A1 cell like ``B5`` into zero-based (row, column) indexes.

    Raises:
        ValueError: If ``cell`` is not letters followed by a row number >= 1.
    """
    match = CELL_PATTERN.match(cell.strip().upper())
    if not match or int(match.group(2)) < 1:
        raise ValueError(f"Invalid cell reference: {cell!r}")
    return int(match.group(2)) - 1, column_to_index(match.group(1))


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet name for A1 notation, doubling embedded quotes."""
    return "'" + sheet_name.replace("'", "''") + "'"


def a1_range(sheet_name: str | None, cell_range: str | None = None) -> str:
    """Combine an optional sheet name and cell range into A1 notation."""
    if not sheet_name:
        if not cell_range:
            raise ValueError("Either sheet_name or range is required")
        return cell_range
    if not cell_range:
        return quote_sheet_name(sheet_name)
    return f"{quote_sheet_name(sheet_name)}!{cell_range}"


def cells_equal(cell: Any, value: Any) -> bool:
    """Compare a cell with a search value as strings."""
    return str(cell) == str(value)


class SheetsService(BaseService):
    """Spreadsheet values, sheets and row-level helpers."""

    name = "sheets"

    def _values_url(self, spreadsheet_id: str, range_notation: str, suffix: str = "") -> str:
        return (
            f"{SHEETS_API_BASE}/spreadsheets/{spreadsheet_id}/values/"
            f"{quote(range_notation, safe='')}{suffix}"
        )

    async def _batch_update(self, spreadsheet_id: str, requests: list[dict[str, Any]]) -> dict:
        return await self.client.request(
            "POST",
            f"{SHEETS_API_BASE}/spreadsheets/{spreadsheet_id}:batchUpdate",
            json_data={"requests": requests},
        )

    async def _get_values(self, spreadsheet_id: str, range_notation: str) -> list[list[Any]]:
        response = await self.client.request(
            "GET",
            self._values_url(spreadsheet_id, range_notation),
            params={"valueRenderOption": "FORMATTED_VALUE"},
        )
        values: list[list[Any]] = response.get("values", [])
        return values

    async def _put_values(
        self, spreadsheet_id: str, range_notation: str, values: list[list[Any]]
    ) -> dict[str, Any]:
        return await self.client.request(
            "PUT",
            self._values_url(spreadsheet_id, range_notation),
            params={"valueInputOption": "USER_ENTERED"},
            json_data={"range": range_notation, "values": values},
        )

    async def _append_values(
        self,
        spreadsheet_id: str,
        range_notation: str,
        values: list[list[Any]],
        insert_data_option: str = "INSERT_ROWS",
    ) -> dict[str, Any]:
        response = await self.client.request(
            "POST",
            self._values_url(spreadsheet_id, range_notation, ":append"),
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": insert_data_option},
            json_data={"values": values},
        )
        updates: dict[str, Any] = response.get("updates", {})
        return updates

    def tools(self) -> list[Tool]:
        spreadsheet_id = {"type": "string", "description": "Spreadsheet ID"}
        sheet_name = {"type": "string", "description": "Sheet (tab) name"}
        cell_range = {"type": "string", "description": "Range in A1 notation, e.g. 'A1:C10'"}
        values = {
            "type": "array",
            "items": {"type": "array", "items": {}},
            "description": "Rows of cell values",
        }
        row_data = {"type": "array", "items": {}, "description": "Cell values of one row"}
        cell = {"type": "string", "description": "Cell in A1 notation, e.g. 'B5'"}
        numeric_sheet_id = {"type": "integer", "description": "Numeric sheet ID"}
        return [
            Tool(
                name="sheets_list_spreadsheets",
                description="List spreadsheets, most recently modified first",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "page_size": {"type": "integer", "default": 20, "maximum": 100},
                        "page_token": {"type": "string", "description": "Next page token"},
                    },
                    "required": [],
                },
            ),
            Tool(
                name="sheets_get_spreadsheet",
                description="Get spreadsheet title and its sheets",
                inputSchema={
                    "type": "object",
                    "properties": {"spreadsheet_id": spreadsheet_id},
                    "required": ["spreadsheet_id"],
                },
            ),
            Tool(
                name="sheets_read_range",
                description="Read values from a range",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "range": cell_range,
                    },
                    "required": ["spreadsheet_id"],
                },
            ),
            Tool(
                name="sheets_write_range",
                description="Write values to a range",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "range": cell_range,
                        "values": values,
                    },
                    "required": ["spreadsheet_id", "range", "values"],
                },
            ),
            Tool(
                name="sheets_append_data",
                description="Append rows after the last row of data",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "values": values,
                    },
                    "required": ["spreadsheet_id", "sheet_name", "values"],
                },
            ),
            Tool(
                name="sheets_clear_range",
                description="Clear values from a range",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "range": cell_range,
                    },
                    "required": ["spreadsheet_id", "range"],
                },
            ),
            Tool(
                name="sheets_create_spreadsheet",
                description="Create a spreadsheet",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "title": {"type": "string", "description": "Spreadsheet title"},
                        "sheet_titles": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Titles of the initial sheets",
                        },
                    },
                    "required": ["title"],
                },
            ),
            Tool(
                name="sheets_add_sheet",
                description="Add a sheet (tab) to a spreadsheet",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "title": {"type": "string", "description": "Sheet title"},
                        "row_count": {"type": "integer", "default": 1000},
                        "column_count": {"type": "integer", "default": 26},
                    },
                    "required": ["spreadsheet_id", "title"],
                },
            ),
            Tool(
                name="sheets_delete_sheet",
                description="Delete a sheet (tab) by its numeric sheet ID",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_id": {"type": "integer", "description": "Numeric sheet ID"},
                    },
                    "required": ["spreadsheet_id", "sheet_id"],
                },
            ),
            Tool(
                name="sheets_get_cell",
                description="Get one cell's formatted value",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "cell": {"type": "string", "description": "Cell in A1 notation, e.g. 'B5'"},
                    },
                    "required": ["spreadsheet_id", "sheet_name", "cell"],
                },
            ),
            Tool(
                name="sheets_update_cell",
                description="Set one cell's value",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "cell": {"type": "string", "description": "Cell in A1 notation, e.g. 'B5'"},
                        "value": {"description": "New value"},
                    },
                    "required": ["spreadsheet_id", "sheet_name", "cell", "value"],
                },
            ),
            Tool(
                name="sheets_add_rows",
                description="Append one or more rows to a sheet",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "rows": values,
                        "insert_data_option": {
                            "type": "string",
                            "enum": ["INSERT_ROWS", "OVERWRITE"],
                            "default": "INSERT_ROWS",
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_name", "rows"],
                },
            ),
            Tool(
                name="sheets_find_row",
                description="Find rows whose value in a column equals a search value",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "search_column": {"type": "string", "description": "Column letter, e.g. 'A'"},
                        "search_value": {"description": "Value to find (compared as text)"},
                        "return_all_matches": {
                            "type": "boolean",
                            "description": "Return every match instead of the first (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_name", "search_column", "search_value"],
                },
            ),
            Tool(
                name="sheets_update_row",
                description="Overwrite a row starting at column A",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "row_number": {"type": "integer", "description": "1-based row number"},
                        "row_data": row_data,
                    },
                    "required": ["spreadsheet_id", "sheet_name", "row_number", "row_data"],
                },
            ),
            Tool(
                name="sheets_upsert_row",
                description="Update the row whose key column matches, or append a new row",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "key_column": {"type": "string", "description": "Column letter, e.g. 'A'"},
                        "key_value": {"description": "Key to match (compared as text)"},
                        "row_data": row_data,
                    },
                    "required": [
                        "spreadsheet_id",
                        "sheet_name",
                        "key_column",
                        "key_value",
                        "row_data",
                    ],
                },
            ),
            Tool(
                name="sheets_find_replace",
                description="Find and replace text in one sheet or all sheets",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "find": {"type": "string"},
                        "replacement": {"type": "string"},
                        "sheet_id": {
                            "type": "integer",
                            "description": "Limit to this sheet (default: all sheets)",
                        },
                        "match_case": {"type": "boolean", "default": False},
                        "match_entire_cell": {"type": "boolean", "default": False},
                    },
                    "required": ["spreadsheet_id", "find", "replacement"],
                },
            ),
            Tool(
                name="sheets_update_multiple_rows",
                description="Overwrite several rows within an A1 range",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "range": {
                            "type": "string",
                            "description": "Range in A1 notation, e.g. 'Sheet1!A2:D5'",
                        },
                        "values": values,
                    },
                    "required": ["spreadsheet_id", "range", "values"],
                },
            ),
            Tool(
                name="sheets_clear_cell",
                description="Clear one cell's content",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "cell": cell,
                    },
                    "required": ["spreadsheet_id", "sheet_name", "cell"],
                },
            ),
            Tool(
                name="sheets_clear_rows",
                description="Blank the content of rows while keeping the rows",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "start_row": {"type": "integer", "description": "First row (1-based)"},
                        "end_row": {
                            "type": "integer",
                            "description": "Last row, inclusive (default: start_row)",
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_name", "start_row"],
                },
            ),
            Tool(
                name="sheets_delete_rows",
                description="Delete rows and shift the rows below up",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_id": numeric_sheet_id,
                        "start_index": {
                            "type": "integer",
                            "description": "First row to delete (0-based)",
                        },
                        "end_index": {
                            "type": "integer",
                            "description": "Row after the last one deleted (0-based, exclusive)",
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_id", "start_index", "end_index"],
                },
            ),
            Tool(
                name="sheets_create_column",
                description="Insert empty columns into a sheet",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_id": numeric_sheet_id,
                        "column_index": {
                            "type": "integer",
                            "description": "Position of the first new column (0-based)",
                        },
                        "column_count": {
                            "type": "integer",
                            "description": "Columns to insert (default: 1)",
                            "default": 1,
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_id", "column_index"],
                },
            ),
            Tool(
                name="sheets_insert_note",
                description="Attach a note to a cell",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": spreadsheet_id,
                        "sheet_name": sheet_name,
                        "cell": cell,
                        "note": {"type": "string", "description": "Note text"},
                    },
                    "required": ["spreadsheet_id", "sheet_name", "cell", "note"],
                },
            ),
            Tool(
                name="sheets_copy_worksheet",
                description="Copy a sheet (tab) into another spreadsheet",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "spreadsheet_id": {**spreadsheet_id, "description": "Source spreadsheet ID"},
                        "sheet_id": numeric_sheet_id,
                        "destination_spreadsheet_id": {
                            "type": "string",
                            "description": "Spreadsheet that receives the copy",
                        },
                    },
                    "required": ["spreadsheet_id", "sheet_id", "destination_spreadsheet_id"],
                },
            ),
        ]

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "sheets_list_spreadsheets": self._list_spreadsheets,
            "sheets_get_spreadsheet": self._get_spreadsheet,
            "sheets_read_range": self._read_range,
            "sheets_write_range": self._write_range,
            "sheets_append_data": self._append_data,
            "sheets_clear_range": self._clear_range,
            "sheets_create_spreadsheet": self._create_spreadsheet,
            "sheets_add_sheet": self._add_sheet,
            "sheets_delete_sheet": self._delete_sheet,
            "sheets_get_cell": self._get_cell,
            "sheets_update_cell": self._update_cell,
            "sheets_add_rows": self._add_rows,
            "sheets_find_row": self._find_row,
            "sheets_update_row": self._update_row,
            "sheets_upsert_row": self._upsert_row,
            "sheets_find_replace": self._find_replace,
            "sheets_update_multiple_rows": self._update_multiple_rows,
            "sheets_clear_cell": self._clear_cell,
            "sheets_clear_rows": self._clear_rows,
            "sheets_delete_rows": self._delete_rows,
            "sheets_create_column": self._create_column,
            "sheets_insert_note": self._insert_note,
            "sheets_copy_worksheet": self._copy_worksheet,
        }

    # =========================================================================
    # Spreadsheets
    # =========================================================================

    async def _list_spreadsheets(self, arguments: dict[str, Any]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "q": f"mimeType = '{SPREADSHEET_MIME_TYPE}' and trashed = false",
            "pageSize": min(arguments.get("page_size", 20), 100),
            "orderBy": "modifiedTime desc",
            "fields": "nextPageToken, files(id, name, createdTime, modifiedTime, webViewLink)",
        }
        if arguments.get("page_token"):
            params["pageToken"] = arguments["page_token"]

        response = await self.client.request("GET", f"{DRIVE_API_BASE}/files", params=params)
        spreadsheets = response.get("files", [])
        return {
            "spreadsheets": spreadsheets,
            "count": len(spreadsheets),
            "next_page_token": response.get("nextPageToken"),
        }

    async def _get_spreadsheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Get spreadsheet metadata.

        Args:
            arguments: Tool arguments with spreadsheet_id.

        Returns:
            Title, URL and the sheets with their IDs and grid sizes.
        """
        spreadsheet_id = arguments["spreadsheet_id"]
        response = await self.client.request(
            "GET",
            f"{SHEETS_API_BASE}/spreadsheets/{spreadsheet_id}",
            params={"fields": "spreadsheetId,spreadsheetUrl,properties.title,sheets.properties"},
        )

        sheets = []
        for sheet in response.get("sheets", []):
            props = sheet.get("properties", {})
            grid = props.get("gridProperties", {})
            sheets.append(
                {
                    "sheet_id": props.get("sheetId"),
                    "title": props.get("title", ""),
                    "index": props.get("index", 0),
                    "row_count": grid.get("rowCount"),
                    "column_count": grid.get("columnCount"),
                }
            )

        return {
            "spreadsheet_id": response.get("spreadsheetId", spreadsheet_id),
            "title": response.get("properties", {}).get("title", ""),
            "url": response.get("spreadsheetUrl"),
            "sheets": sheets,
            "count": len(sheets),
        }

    async def _create_spreadsheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        title = arguments["title"]
        body: dict[str, Any] = {"properties": {"title": title}}
        if arguments.get("sheet_titles"):
            body["sheets"] = [
                {"properties": {"title": name, "index": i}}
                for i, name in enumerate(arguments["sheet_titles"])
            ]

        response = await self.client.request(
            "POST", f"{SHEETS_API_BASE}/spreadsheets", json_data=body
        )
        return {
            "spreadsheet_id": response.get("spreadsheetId"),
            "title": response.get("properties", {}).get("title", title),
            "url": response.get("spreadsheetUrl"),
            "sheets": [
                {
                    "sheet_id": s.get("properties", {}).get("sheetId"),
                    "title": s.get("properties", {}).get("title"),
                }
                for s in response.get("sheets", [])
            ],
        }

    async def _add_sheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        response = await self._batch_update(
            arguments["spreadsheet_id"],
            [
                {
                    "addSheet": {
                        "properties": {
                            "title": arguments["title"],
                            "gridProperties": {
                                "rowCount": arguments.get("row_count", 1000),
                                "columnCount": arguments.get("column_count", 26),
                            },
                        }
                    }
                }
            ],
        )
        props = response["replies"][0]["addSheet"]["properties"]
        grid = props.get("gridProperties", {})
        return {
            "status": "sheet_added",
            "sheet_id": props.get("sheetId"),
            "title": props.get("title"),
            "index": props.get("index"),
            "row_count": grid.get("rowCount"),
            "column_count": grid.get("columnCount"),
        }

    async def _delete_sheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        sheet_id = arguments["sheet_id"]
        await self._batch_update(arguments["spreadsheet_id"], [{"deleteSheet": {"sheetId": sheet_id}}])
        return {"status": "sheet_deleted", "sheet_id": sheet_id}

    async def _find_replace(self, arguments: dict[str, Any]) -> dict[str, Any]:
        request: dict[str, Any] = {
            "find": arguments["find"],
            "replacement": arguments["replacement"],
            "matchCase": arguments.get("match_case", False),
            "matchEntireCell": arguments.get("match_entire_cell", False),
        }
        if arguments.get("sheet_id") is not None:
            request["sheetId"] = arguments["sheet_id"]
        else:
            request["allSheets"] = True

        response = await self._batch_update(arguments["spreadsheet_id"], [{"findReplace": request}])
        result = response.get("replies", [{}])[0].get("findReplace", {})
        return {
            "values_changed": result.get("valuesChanged", 0),
            "rows_changed": result.get("rowsChanged", 0),
            "sheets_changed": result.get("sheetsChanged", 0),
            "occurrences_changed": result.get("occurrencesChanged", 0),
        }

    async def _copy_worksheet(self, arguments: dict[str, Any]) -> dict[str, Any]:
        destination = arguments["destination_spreadsheet_id"]
        response = await self.client.request(
            "POST",
            f"{SHEETS_API_BASE}/spreadsheets/{arguments['spreadsheet_id']}"
            f"/sheets/{arguments['sheet_id']}:copyTo",
            json_data={"destinationSpreadsheetId": destination},
        )
        return {
            "status": "copied",
            "destination_spreadsheet_id": destination,
            "sheet_id": response.get("sheetId"),
            "title": response.get("title"),
            "index": response.get("index"),
        }

    async def _delete_rows(self, arguments: dict[str, Any]) -> dict[str, Any]:
        start, end = arguments["start_index"], arguments["end_index"]
        if start < 0 or end <= start:
            raise ValueError("end_index must be greater than start_index, both 0-based")

        await self._batch_update(
            arguments["spreadsheet_id"],
            [
                {
                    "deleteDimension": {
                        "range": {
                            "sheetId": arguments["sheet_id"],
                            "dimension": "ROWS",
                            "startIndex": start,
                            "endIndex": end,
                        }
                    }
                }
            ],
        )
        return {"status": "rows_deleted", "deleted_count": end - start}

    async def _create_column(self, arguments: dict[str, Any]) -> dict[str, Any]:
        start = arguments["column_index"]
        count = arguments.get("column_count", 1)
        if start < 0 or count < 1:
            raise ValueError("column_index must be >= 0 and column_count >= 1")

        await self._batch_update(
            arguments["spreadsheet_id"],
            [
                {
                    "insertDimension": {
                        "range": {
                            "sheetId": arguments["sheet_id"],
                            "dimension": "COLUMNS",
                            "startIndex": start,
                            "endIndex": start + count,
                        },
                        "inheritFromBefore": False,
                    }
                }
            ],
        )
        return {
            "status": "columns_inserted",
            "first_column": index_to_column(start),
            "inserted_count": count,
        }

    async def _sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int:
        """Look up the numeric ID of the sheet titled ``sheet_name``."""
        response = await self.client.request(
            "GET",
            f"{SHEETS_API_BASE}/spreadsheets/{spreadsheet_id}",
            params={"fields": "sheets.properties(sheetId,title)"},
        )
        for sheet in response.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == sheet_name:
                sheet_id: int = props.get("sheetId", 0)
                return sheet_id
        raise NotFoundError(f"Sheet not found: {sheet_name}")

    async def _insert_note(self, arguments: dict[str, Any]) -> dict[str, Any]:
        spreadsheet_id = arguments["spreadsheet_id"]
        row, column = parse_cell(arguments["cell"])
        sheet_id = await self._sheet_id(spreadsheet_id, arguments["sheet_name"])

        await self._batch_update(
            spreadsheet_id,
            [
                {
                    "updateCells": {
                        "range": {
                            "sheetId": sheet_id,
                            "startRowIndex": row,
                            "endRowIndex": row + 1,
                            "startColumnIndex": column,
                            "endColumnIndex": column + 1,
                        },
                        "rows": [{"values": [{"note": arguments["note"]}]}],
                        "fields": "note",
                    }
                }
            ],
        )
        return {"status": "note_added", "cell": arguments["cell"], "sheet_id": sheet_id}

    # =========================================================================
    # Values
    # =========================================================================

    async def _read_range(self, arguments: dict[str, Any]) -> dict[str, Any]:
        spreadsheet_id = arguments["spreadsheet_id"]
        range_notation = a1_range(arguments.get("sheet_name"), arguments.get("range"))
        values = await self._get_values(spreadsheet_id, range_notation)
        return {
            "spreadsheet_id": spreadsheet_id,
            "range": range_notation,
            "values": values,
            "row_count": len(values),
            "column_count": max((len(row) for row in values), default=0),
        }

    async def _write_range(self, arguments: dict[str, Any]) -> dict[str, Any]:
        spreadsheet_id = arguments["spreadsheet_id"]
        range_notation = a1_range(arguments.get("sheet_name"), arguments["range"])
        response = await self._put_values(spreadsheet_id, range_notation, arguments["values"])
        return {
            "spreadsheet_id": spreadsheet_id,
            "updated_range": response.get("updatedRange", range_notation),
            "updated_rows": response.get("updatedRows", 0),
            "updated_columns": response.get("updatedColumns", 0),
            "updated_cells": response.get("updatedCells", 0),
        }

    async def _append_data(self, arguments: dict[str, Any]) -> dict[str, Any]:
        spreadsheet_id = arguments["spreadsheet_id"]
        updates = await self._append_values(
            spreadsheet_id, quote_sheet_name(arguments["sheet_name"]), arguments["values"]
        )
        return {
            "spreadsheet_id": spreadsheet_id,
            "updated_range": updates.get("updatedRange", ""),
            "updated_rows": updates.get("updatedRows", 0),
            "updated_cells": updates.get("updatedCells", 0),
        }

    async def _clear_range(self, arguments: dict[str, Any]) -> dict[str, Any]:
        spreadsheet_id = arguments["spreadsheet_id"]
        range_notation = a1_range(arguments.get("sheet_name"), arguments["range"])
        response = await self.client.request(
            "POST", self._values_url(spreadsheet_id, range_notation, ":clear")
        )
        return {
            "spreadsheet_id": spreadsheet_id,
            "cleared_range": response.get("clearedRange", range_notation),
        }

    async def _get_cell(self, arguments: dict[str, Any]) -> dict[str, Any]:
        range_notation = a1_range(arguments["sheet_name"], arguments["cell"])
        values = await self._get_values(arguments["spreadsheet_id"], range_notation)
        value = values[0][0] if values and values[0] else None
        return {"cell": arguments["cell"], "value": value, "range": range_notation}

    async def _update_cell(self, arguments: dict[str, Any]) -> dict[str, Any]:
        range_notation = a1_range(arguments["sheet_name"], arguments["cell"])
        response = await self._put_values(
            arguments["spreadsheet_id"], range_notation, [[arguments["value"]]]
        )
        return {
            "updated_range": response.get("updatedRange", range_notation),
            "updated_cells": response.get("updatedCells", 0),
        }

    async def _clear_cell(self, arguments: dict[str, Any]) -> dict[str, Any]:
        parse_cell(arguments["cell"])
        range_notation = a1_range(arguments["sheet_name"], arguments["cell"])
        response = await self.client.request(
            "POST", self._values_url(arguments["spreadsheet_id"], range_notation, ":clear")
        )
        return {"status": "cleared", "cleared_range": response.get("clearedRange", range_notation)}

    # =========================================================================
    # Rows
    # =========================================================================

    async def _add_rows(self, arguments: dict[str, Any]) -> dict[str, Any]:
        updates = await self._append_values(
            arguments["spreadsheet_id"],
            a1_range(arguments["sheet_name"], "A:A"),
            arguments["rows"],
            insert_data_option=arguments.get("insert_data_option", "INSERT_ROWS"),
        )
        return {
            "updated_range": updates.get("updatedRange"),
            "updated_rows": updates.get("updatedRows", 0),
            "updated_cells": updates.get("updatedCells", 0),
        }

    async def _find_row(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Find rows by the value in one column.

        Args:
            arguments: Tool arguments with spreadsheet_id, sheet_name,
                search_column (letter), search_value and return_all_matches.

        Returns:
            Matches with 1-based row numbers and the row data.
        """
        column_index = column_to_index(arguments["search_column"])
        search_value = arguments["search_value"]
        return_all = arguments.get("return_all_matches", False)

        rows = await self._get_values(
            arguments["spreadsheet_id"], quote_sheet_name(arguments["sheet_name"])
        )

        matches = []
        for index, row in enumerate(rows):
            if column_index < len(row) and cells_equal(row[column_index], search_value):
                matches.append({"row_number": index + 1, "row_data": row})
                if not return_all:
                    break

        return {"matches": matches, "total_matches": len(matches)}

    async def _update_row(self, arguments: dict[str, Any]) -> dict[str, Any]:
        row_number = arguments["row_number"]
        if row_number < 1:
            raise ValueError("row_number is 1-based and must be >= 1")

        range_notation = a1_range(arguments["sheet_name"], f"A{row_number}")
        response = await self._put_values(
            arguments["spreadsheet_id"], range_notation, [arguments["row_data"]]
        )
        return {
            "updated_range": response.get("updatedRange", range_notation),
            "updated_columns": response.get("updatedColumns", 0),
            "updated_cells": response.get("updatedCells", 0),
        }

    async def _update_multiple_rows(self, arguments: dict[str, Any]) -> dict[str, Any]:
        values = arguments["values"]
        if not values:
            raise ValueError("values must contain at least one row")

        range_notation = arguments["range"]
        response = await self._put_values(arguments["spreadsheet_id"], range_notation, values)
        return {
            "updated_range": response.get("updatedRange", range_notation),
            "updated_rows": response.get("updatedRows", 0),
            "updated_cells": response.get("updatedCells", 0),
        }

    async def _clear_rows(self, arguments: dict[str, Any]) -> dict[str, Any]:
        start = arguments["start_row"]
        end = arguments.get("end_row") or start
        if start < 1 or end < start:
            raise ValueError("start_row is 1-based and end_row must not precede it")

        range_notation = a1_range(arguments["sheet_name"], f"{start}:{end}")
        response = await self.client.request(
            "POST", self._values_url(arguments["spreadsheet_id"], range_notation, ":clear")
        )
        return {
            "status": "cleared",
            "cleared_range": response.get("clearedRange", range_notation),
            "row_count": end - start + 1,
        }

    async def _upsert_row(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Update the first row whose key column matches, else append.

        Returns:
            ``action`` (``updated`` or ``inserted``), the written range and
            the number of updated cells.
        """
        spreadsheet_id = arguments["spreadsheet_id"]
        sheet_name = arguments["sheet_name"]
        key_column = index_to_column(column_to_index(arguments["key_column"]))
        key_value = arguments["key_value"]
        row_data = arguments["row_data"]

        key_cells = await self._get_values(
            spreadsheet_id, a1_range(sheet_name, f"{key_column}:{key_column}")
        )

        row_index = next(
            (i for i, row in enumerate(key_cells) if row and cells_equal(row[0], key_value)),
            None,
        )

        if row_index is not None:
            range_notation = a1_range(sheet_name, f"A{row_index + 1}")
            response = await self._put_values(spreadsheet_id, range_notation, [row_data])
            return {
                "action": "updated",
                "row_number": row_index + 1,
                "range": response.get("updatedRange", range_notation),
                "updated_cells": response.get("updatedCells", 0),
            }

        updates = await self._append_values(
            spreadsheet_id, a1_range(sheet_name, "A:A"), [row_data]
        )
        logger.debug("No row with %s=%r in %s, appended", key_column, key_value, sheet_name)
        return {
            "action": "inserted",
            "range": updates.get("updatedRange"),
            "updated_cells": updates.get("updatedCells", 0),
        }
