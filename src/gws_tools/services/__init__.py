"""Tool groups, one per Google API."""

from gws_tools.client import GoogleApiClient
from gws_tools.services.base import BaseService, ToolHandler
from gws_tools.services.calendar import CalendarService
from gws_tools.services.drive import DriveService
from gws_tools.services.gmail import GmailService
from gws_tools.services.sheets import SheetsService


def default_services(client: GoogleApiClient) -> list[BaseService]:
    """Create every built-in service sharing one HTTP client."""
    return [
        DriveService(client),
        GmailService(client),
        CalendarService(client),
        SheetsService(client),
    ]


__all__ = [
    "BaseService",
    "CalendarService",
    "DriveService",
    "GmailService",
    "SheetsService",
    "ToolHandler",
    "default_services",
]
