"""Pydantic models for persisted OAuth tokens."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenStatus(str, Enum):
    """State of a stored token."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class OAuthToken(BaseModel):
    """OAuth2 access token with optional refresh token.

    Attributes:
        access_token: Bearer token sent to Google APIs.
        refresh_token: Long-lived token used to obtain new access tokens.
        expires_at: Absolute expiry time (timezone-aware).
        scopes: Scopes granted to the token.
        token_type: Token type, always "Bearer" for Google.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the token is expired or expires within the buffer.

        Args:
            buffer_seconds: Safety margin before the real expiry.

        Returns:
            True if the token should be treated as expired.
        """
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return _utcnow() + timedelta(seconds=buffer_seconds) >= expires_at


class TokenMetadata(BaseModel):
    """Bookkeeping stored alongside a token."""

    service_name: str
    provider: str = "google"
    created_at: datetime = Field(default_factory=_utcnow)
    last_refreshed: datetime | None = None


class StoredToken(BaseModel):
    """On-disk record combining a token and its metadata."""

    version: int = 1
    metadata: TokenMetadata
    token: OAuthToken
