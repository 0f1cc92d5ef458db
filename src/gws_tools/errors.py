"""Error types shared by all gws-tools services.

Every error carries a stable ``code`` so the tool dispatcher can return
``{"error": message, "code": code}`` envelopes without inspecting types.
"""

import httpx

# HTTP status -> error code for Google API failures
STATUS_CODES = {
    401: "AUTH_FAILED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    429: "RATE_LIMITED",
}

STATUS_MESSAGES = {
    401: "Authentication failed. Please reconnect your Google account.",
    403: "Permission denied. Please check your Google account permissions.",
    404: "Resource not found.",
    429: "Rate limit exceeded. Please try again later.",
}


class WorkspaceToolError(Exception):
    """Base class for errors raised by gws-tools."""

    code = "UNKNOWN_ERROR"

    def to_dict(self) -> dict[str, str]:
        """Return the error envelope sent back to the tool caller."""
        return {"error": str(self), "code": self.code}


class NotFoundError(WorkspaceToolError):
    """A requested resource does not exist."""

    code = "NOT_FOUND"


class PathNotFoundError(NotFoundError):
    """A folder path segment could not be resolved.

    Attributes:
        segment: The first path segment that was not found.
        path: The full path that was requested.
    """

    def __init__(self, segment: str, path: str) -> None:
        self.segment = segment
        self.path = path
        super().__init__(f"Folder not found: {segment} in path {path}")


class CredentialsError(WorkspaceToolError):
    """No usable OAuth token is available."""

    code = "AUTH_FAILED"


class GoogleApiError(WorkspaceToolError):
    """A Google API call failed.

    Attributes:
        status_code: HTTP status of the failed response, None for transport errors.
        code: Stable error code derived from the status.
    """

    def __init__(self, message: str, status_code: int | None = None, code: str = "API_ERROR"):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "GoogleApiError":
        """Build an error from a non-2xx Google API response.

        The message from Google's JSON error body is used when present,
        otherwise a generic message for the status.
        """
        status = response.status_code
        message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                message = error.get("message")
            elif isinstance(error, str):
                message = body.get("error_description") or error

        if not message:
            message = STATUS_MESSAGES.get(status, f"Google API request failed with status {status}")

        return cls(message, status_code=status, code=STATUS_CODES.get(status, "API_ERROR"))

    @classmethod
    def from_transport_error(cls, error: httpx.RequestError) -> "GoogleApiError":
        """Build an error from a connection or timeout failure."""
        return cls(f"Network error calling Google API: {error}", code="NETWORK_ERROR")
