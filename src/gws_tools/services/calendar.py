"""Google Calendar tools."""

import logging
from typing import Any
from urllib.parse import quote

from mcp.types import Tool

from gws_tools.config import CALENDAR_API_BASE
from gws_tools.services.base import BaseService, ToolHandler

logger = logging.getLogger(__name__)

# Event fields accepted from tool arguments and copied into the request body
EVENT_FIELDS = (
    "summary",
    "description",
    "location",
    "start",
    "end",
    "attendees",
    "reminders",
    "recurrence",
)


def events_url(calendar_id: str, event_id: str | None = None) -> str:
    """Build an events URL; calendar ids such as holiday calendars contain '#'."""
    url = f"{CALENDAR_API_BASE}/calendars/{quote(calendar_id, safe='@')}/events"
    if event_id:
        url = f"{url}/{quote(event_id, safe='')}"
    return url


def event_body(arguments: dict[str, Any]) -> dict[str, Any]:
    """Pick the event fields that were supplied."""
    return {key: arguments[key] for key in EVENT_FIELDS if arguments.get(key) is not None}


class CalendarService(BaseService):
    """Calendar events, calendars and free/busy lookups."""

    name = "calendar"

    def tools(self) -> list[Tool]:
        calendar_id = {
            "type": "string",
            "description": "Calendar ID (default: 'primary')",
            "default": "primary",
        }
        event_id = {"type": "string", "description": "Event ID"}
        event_time = {
            "type": "object",
            "description": "Use dateTime (RFC 3339) or date (YYYY-MM-DD) for all-day events",
            "properties": {
                "dateTime": {"type": "string"},
                "date": {"type": "string"},
                "timeZone": {"type": "string"},
            },
        }
        event_properties = {
            "summary": {"type": "string", "description": "Event title"},
            "description": {"type": "string", "description": "Event description"},
            "location": {"type": "string", "description": "Event location"},
            "start": event_time,
            "end": event_time,
            "attendees": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "email": {"type": "string"},
                        "displayName": {"type": "string"},
                        "optional": {"type": "boolean"},
                    },
                    "required": ["email"],
                },
            },
            "reminders": {
                "type": "object",
                "properties": {
                    "useDefault": {"type": "boolean"},
                    "overrides": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "method": {"type": "string", "enum": ["email", "popup"]},
                                "minutes": {"type": "integer"},
                            },
                        },
                    },
                },
            },
            "recurrence": {
                "type": "array",
                "items": {"type": "string"},
                "description": "RRULE recurrence rules",
            },
        }
        return [
            Tool(
                name="calendar_list_events",
                description="List events, expanded into single instances and ordered by start",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "calendar_id": calendar_id,
                        "max_results": {
                            "type": "integer",
                            "description": "Maximum events (default: 10)",
                            "default": 10,
                            "minimum": 1,
                            "maximum": 2500,
                        },
                        "time_min": {"type": "string", "description": "Lower bound (RFC 3339)"},
                        "time_max": {"type": "string", "description": "Upper bound (RFC 3339)"},
                        "query": {"type": "string", "description": "Free text search"},
                        "order_by": {
                            "type": "string",
                            "enum": ["startTime", "updated"],
                            "default": "startTime",
                        },
                    },
                    "required": [],
                },
            ),
            Tool(
                name="calendar_get_event",
                description="Get one event",
                inputSchema={
                    "type": "object",
                    "properties": {"calendar_id": calendar_id, "event_id": event_id},
                    "required": ["event_id"],
                },
            ),
            Tool(
                name="calendar_create_event",
                description="Create an event",
                inputSchema={
                    "type": "object",
                    "properties": {"calendar_id": calendar_id, **event_properties},
                    "required": ["summary", "start", "end"],
                },
            ),
            Tool(
                name="calendar_update_event",
                description="Update an event; fields not given are kept",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "calendar_id": calendar_id,
                        "event_id": event_id,
                        **event_properties,
                    },
                    "required": ["event_id"],
                },
            ),
            Tool(
                name="calendar_delete_event",
                description="Delete an event",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "calendar_id": calendar_id,
                        "event_id": event_id,
                        "send_notifications": {
                            "type": "boolean",
                            "description": "Notify attendees (default: false)",
                            "default": False,
                        },
                    },
                    "required": ["event_id"],
                },
            ),
            Tool(
                name="calendar_list_calendars",
                description="List calendars in the user's calendar list",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "min_access_role": {
                            "type": "string",
                            "enum": ["freeBusyReader", "reader", "writer", "owner"],
                        },
                        "show_deleted": {"type": "boolean", "default": False},
                        "show_hidden": {"type": "boolean", "default": False},
                    },
                    "required": [],
                },
            ),
            Tool(
                name="calendar_get_calendar",
                description="Get a calendar's metadata",
                inputSchema={
                    "type": "object",
                    "properties": {"calendar_id": calendar_id},
                    "required": [],
                },
            ),
            Tool(
                name="calendar_quick_add",
                description="Create an event from text like 'Lunch with Ana tomorrow at noon'",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "calendar_id": calendar_id,
                        "text": {"type": "string", "description": "Event description"},
                    },
                    "required": ["text"],
                },
            ),
            Tool(
                name="calendar_get_free_busy",
                description="Get busy intervals for calendars in a time range",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "time_min": {"type": "string", "description": "Start (RFC 3339)"},
                        "time_max": {"type": "string", "description": "End (RFC 3339)"},
                        "calendar_ids": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Calendars to check (default: ['primary'])",
                        },
                        "time_zone": {"type": "string", "description": "Time zone of the result"},
                    },
                    "required": ["time_min", "time_max"],
                },
            ),
        ]

    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "calendar_list_events": self._list_events,
            "calendar_get_event": self._get_event,
            "calendar_create_event": self._create_event,
            "calendar_update_event": self._update_event,
            "calendar_delete_event": self._delete_event,
            "calendar_list_calendars": self._list_calendars,
            "calendar_get_calendar": self._get_calendar,
            "calendar_quick_add": self._quick_add,
            "calendar_get_free_busy": self._get_free_busy,
        }

    async def _list_events(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """List events.

        Args:
            arguments: Tool arguments with calendar_id, max_results, time_min,
                time_max, query and order_by.

        Returns:
            Events and the next page token, if any.
        """
        params: dict[str, Any] = {
            "maxResults": arguments.get("max_results", 10),
            "singleEvents": "true",
            "orderBy": arguments.get("order_by", "startTime"),
        }
        if arguments.get("time_min"):
            params["timeMin"] = arguments["time_min"]
        if arguments.get("time_max"):
            params["timeMax"] = arguments["time_max"]
        if arguments.get("query"):
            params["q"] = arguments["query"]

        response = await self.client.request(
            "GET", events_url(arguments.get("calendar_id", "primary")), params=params
        )
        events = response.get("items", [])
        return {
            "events": events,
            "count": len(events),
            "next_page_token": response.get("nextPageToken"),
            "calendar": response.get("summary"),
        }

    async def _get_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return await self.client.request(
            "GET", events_url(arguments.get("calendar_id", "primary"), arguments["event_id"])
        )

    async def _create_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        event = await self.client.request(
            "POST",
            events_url(arguments.get("calendar_id", "primary")),
            json_data=event_body(arguments),
        )
        return {"status": "created", "event": event, "html_link": event.get("htmlLink")}

    async def _update_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Fetch the event, overlay the supplied fields and PUT it back."""
        url = events_url(arguments.get("calendar_id", "primary"), arguments["event_id"])

        existing = await self.client.request("GET", url)
        updated = {**existing, **event_body(arguments)}

        event = await self.client.request("PUT", url, json_data=updated)
        return {"status": "updated", "event": event, "html_link": event.get("htmlLink")}

    async def _delete_event(self, arguments: dict[str, Any]) -> dict[str, Any]:
        event_id = arguments["event_id"]
        await self.client.delete(
            events_url(arguments.get("calendar_id", "primary"), event_id),
            params={"sendUpdates": "all" if arguments.get("send_notifications") else "none"},
        )
        return {"status": "deleted", "event_id": event_id}

    async def _list_calendars(self, arguments: dict[str, Any]) -> dict[str, Any]:
        params: dict[str, Any] = {
            "showDeleted": str(arguments.get("show_deleted", False)).lower(),
            "showHidden": str(arguments.get("show_hidden", False)).lower(),
        }
        if arguments.get("min_access_role"):
            params["minAccessRole"] = arguments["min_access_role"]

        response = await self.client.request(
            "GET", f"{CALENDAR_API_BASE}/users/me/calendarList", params=params
        )
        calendars = [
            {
                "id": cal.get("id"),
                "summary": cal.get("summary"),
                "description": cal.get("description"),
                "primary": cal.get("primary", False),
                "access_role": cal.get("accessRole"),
                "time_zone": cal.get("timeZone"),
            }
            for cal in response.get("items", [])
        ]
        return {"calendars": calendars, "count": len(calendars)}

    async def _get_calendar(self, arguments: dict[str, Any]) -> dict[str, Any]:
        calendar_id = quote(arguments.get("calendar_id", "primary"), safe="@")
        return await self.client.request("GET", f"{CALENDAR_API_BASE}/calendars/{calendar_id}")

    async def _quick_add(self, arguments: dict[str, Any]) -> dict[str, Any]:
        url = f"{events_url(arguments.get('calendar_id', 'primary'))}/quickAdd"
        event = await self.client.request("POST", url, params={"text": arguments["text"]})
        return {"status": "created", "event": event, "html_link": event.get("htmlLink")}

    async def _get_free_busy(self, arguments: dict[str, Any]) -> dict[str, Any]:
        calendar_ids = arguments.get("calendar_ids") or ["primary"]
        body: dict[str, Any] = {
            "timeMin": arguments["time_min"],
            "timeMax": arguments["time_max"],
            "items": [{"id": cal_id} for cal_id in calendar_ids],
        }
        if arguments.get("time_zone"):
            body["timeZone"] = arguments["time_zone"]

        response = await self.client.request(
            "POST", f"{CALENDAR_API_BASE}/freeBusy", json_data=body
        )
        return {
            "time_min": response.get("timeMin"),
            "time_max": response.get("timeMax"),
            "calendars": response.get("calendars", {}),
        }
