"""Runtime configuration for gws-tools.

Settings are read from environment variables once at startup:

    GWS_TOOLS_LOG_LEVEL: Logging level name (default: INFO)
    GWS_TOOLS_HTTP_TIMEOUT: Request timeout in seconds (default: 30.0)
    GWS_TOOLS_TOKEN_PATH: Token file (default: ./.gws-tools/tokens.json)

OAuth material (access/refresh tokens, client id/secret) is read separately
by the credential manager, see ``gws_tools.auth.credentials``.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# Service name for token storage
SERVICE_NAME = "gws-tools"

# Google API base URLs
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1"
DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"
SHEETS_API_BASE = "https://sheets.googleapis.com/v4"

DEFAULT_TOKEN_PATH = Path.cwd() / ".gws-tools" / "tokens.json"


class Settings(BaseModel):
    """Process-wide settings.

    Attributes:
        log_level: Name of the root logging level.
        http_timeout: Default timeout for Google API requests, in seconds.
        token_path: Location of the JSON token file.
    """

    log_level: str = Field(default="INFO", description="Logging level name")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    token_path: Path = Field(default=DEFAULT_TOKEN_PATH, description="Token storage file")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``GWS_TOOLS_*`` environment variables."""
        values: dict[str, object] = {}
        if level := os.environ.get("GWS_TOOLS_LOG_LEVEL"):
            values["log_level"] = level
        if timeout := os.environ.get("GWS_TOOLS_HTTP_TIMEOUT"):
            values["http_timeout"] = timeout
        if token_path := os.environ.get("GWS_TOOLS_TOKEN_PATH"):
            values["token_path"] = Path(token_path).expanduser()
        return cls.model_validate(values)


def configure_logging(settings: Settings) -> None:
    """Configure root logging for the process.

    Logs go to stderr; stdout is reserved for the MCP stdio transport.
    """
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
