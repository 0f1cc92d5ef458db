"""Access-token resolution for Google API calls.

Tokens are looked up in this order:

1. An access token in the environment (``ACCESS_TOKEN`` and aliases).
2. A refresh token in the environment, exchanged with google-auth when
   client credentials are also set.
3. The JSON token file managed by :class:`TokenStorage`, refreshed with
   google-auth when expired.

Environment Variables:
    ACCESS_TOKEN / access_token / OAUTH_ACCESS_TOKEN
    REFRESH_TOKEN / refresh_token / OAUTH_REFRESH_TOKEN
    GOOGLE_OAUTH_CLIENT_ID / CLIENT_ID / client_id / GOOGLE_CLIENT_ID
    GOOGLE_OAUTH_CLIENT_SECRET / CLIENT_SECRET / client_secret / GOOGLE_CLIENT_SECRET
"""

import asyncio
import logging
import os
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

from gws_tools.auth.models import OAuthToken, TokenStatus
from gws_tools.auth.token_storage import TokenStorage
from gws_tools.config import SERVICE_NAME
from gws_tools.errors import CredentialsError

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # nosec B105

ACCESS_TOKEN_VARS = ("ACCESS_TOKEN", "access_token", "OAUTH_ACCESS_TOKEN", "oauth_access_token")
REFRESH_TOKEN_VARS = ("REFRESH_TOKEN", "refresh_token", "OAUTH_REFRESH_TOKEN")
CLIENT_ID_VARS = ("GOOGLE_OAUTH_CLIENT_ID", "CLIENT_ID", "client_id", "GOOGLE_CLIENT_ID")
CLIENT_SECRET_VARS = (
    "GOOGLE_OAUTH_CLIENT_SECRET",
    "CLIENT_SECRET",
    "client_secret",
    "GOOGLE_CLIENT_SECRET",
)


def first_env(names: tuple[str, ...], environ: Mapping[str, str] | None = None) -> str | None:
    """Return the first non-empty value among the given variable names."""
    env = os.environ if environ is None else environ
    for name in names:
        value = env.get(name)
        if value:
            return value
    return None


class CredentialManager:
    """Supplies valid access tokens to the HTTP client.

    Attributes:
        storage: Token storage used when no environment token is set.
    """

    def __init__(
        self,
        storage: TokenStorage | None = None,
        environ: Mapping[str, str] | None = None,
        service_name: str = SERVICE_NAME,
    ) -> None:
        self.storage = storage or TokenStorage()
        self._environ = os.environ if environ is None else environ
        self._service_name = service_name
        self._cached: OAuthToken | None = None

    @property
    def client_id(self) -> str | None:
        return first_env(CLIENT_ID_VARS, self._environ)

    @property
    def client_secret(self) -> str | None:
        return first_env(CLIENT_SECRET_VARS, self._environ)

    def describe(self) -> str:
        """Return a short human-readable description of the token source."""
        if first_env(ACCESS_TOKEN_VARS, self._environ):
            return "environment access token"
        if first_env(REFRESH_TOKEN_VARS, self._environ):
            return "environment refresh token"
        status = self.storage.get_status(self._service_name)
        return f"token file {self.storage.token_path} ({status.value})"

    async def get_access_token(self) -> str:
        """Return a usable access token, refreshing it if necessary.

        Raises:
            CredentialsError: If no token is configured or refresh fails.
        """
        env_token = first_env(ACCESS_TOKEN_VARS, self._environ)
        if env_token:
            return env_token

        if self._cached is not None and not self._cached.is_expired():
            return self._cached.access_token

        env_refresh = first_env(REFRESH_TOKEN_VARS, self._environ)
        if env_refresh:
            self._cached = await self._refresh(env_refresh, scopes=[])
            return self._cached.access_token

        return await self._get_stored_token()

    async def _get_stored_token(self) -> str:
        status = self.storage.get_status(self._service_name)

        if status == TokenStatus.MISSING:
            raise CredentialsError(
                f"No OAuth token found for service '{self._service_name}'. "
                "Set ACCESS_TOKEN or store a token in "
                f"{self.storage.token_path}"
            )

        if status == TokenStatus.INVALID:
            raise CredentialsError(
                f"OAuth token for service '{self._service_name}' is invalid or corrupted"
            )

        stored = self.storage.retrieve(self._service_name)
        if stored is None:
            raise CredentialsError("Unexpected error: token retrieval failed")

        if status == TokenStatus.VALID:
            return stored.token.access_token

        logger.info("Token expired, attempting refresh...")
        if stored.token.refresh_token is None:
            raise CredentialsError("Token expired and no refresh token is available")

        token = await self._refresh(stored.token.refresh_token, scopes=stored.token.scopes)
        metadata = stored.metadata
        metadata.last_refreshed = datetime.now(timezone.utc)
        self.storage.store(self._service_name, token, metadata)
        return token.access_token

    async def _refresh(self, refresh_token: str, scopes: list[str]) -> OAuthToken:
        """Exchange a refresh token for a new access token with google-auth."""
        client_id = self.client_id
        client_secret = self.client_secret
        if not client_id or not client_secret:
            raise CredentialsError(
                "Token refresh requires GOOGLE_OAUTH_CLIENT_ID and GOOGLE_OAUTH_CLIENT_SECRET"
            )

        credentials = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=scopes or None,
        )

        # google-auth refresh is blocking
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, credentials.refresh, Request())
        except RefreshError as e:
            raise CredentialsError(f"Token refresh failed: {e}") from e

        return credentials_to_token(credentials, scopes)


def credentials_to_token(credentials: Credentials, scopes: list[str]) -> OAuthToken:
    """Convert google-auth credentials into an :class:`OAuthToken`."""
    if credentials.expiry:
        expires_at = credentials.expiry
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
    else:
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

    return OAuthToken(  # nosec B106
        access_token=credentials.token,
        refresh_token=credentials.refresh_token,
        expires_at=expires_at,
        scopes=list(credentials.scopes or scopes),
        token_type="Bearer",
    )
