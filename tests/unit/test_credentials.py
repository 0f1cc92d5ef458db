"""Unit tests for CredentialManager token resolution."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from google.auth.exceptions import RefreshError

from gws_tools.auth.credentials import CredentialManager, first_env
from gws_tools.auth.models import OAuthToken, TokenMetadata
from gws_tools.errors import CredentialsError

CLIENT_ENV = {"GOOGLE_OAUTH_CLIENT_ID": "cid", "GOOGLE_OAUTH_CLIENT_SECRET": "secret"}


@pytest.fixture
def refreshed_credentials():
    """Patch google-auth Credentials so refresh() yields a new token."""
    creds = MagicMock()
    creds.token = "refreshed_access_token"
    creds.refresh_token = "test_refresh_token"
    creds.expiry = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
    creds.scopes = None

    with (
        patch("gws_tools.auth.credentials.Credentials", return_value=creds) as creds_cls,
        patch("gws_tools.auth.credentials.Request"),
    ):
        yield creds_cls, creds


@pytest.mark.unit
class TestFirstEnv:
    """Tests for first_env()."""

    def test_should_return_first_non_empty_alias(self) -> None:
        env = {"ACCESS_TOKEN": "", "access_token": "lower", "OAUTH_ACCESS_TOKEN": "oauth"}

        assert first_env(("ACCESS_TOKEN", "access_token", "OAUTH_ACCESS_TOKEN"), env) == "lower"

    def test_should_return_none_when_unset(self) -> None:
        assert first_env(("A", "B"), {}) is None


@pytest.mark.unit
class TestCredentialManager:
    """Tests for CredentialManager.get_access_token()."""

    @pytest.mark.asyncio
    async def test_should_prefer_environment_access_token(self, token_storage) -> None:
        manager = CredentialManager(storage=token_storage, environ={"OAUTH_ACCESS_TOKEN": "env"})

        assert await manager.get_access_token() == "env"
        assert manager.describe() == "environment access token"

    @pytest.mark.asyncio
    async def test_should_return_valid_stored_token(
        self, token_storage, valid_token: OAuthToken, token_metadata: TokenMetadata
    ) -> None:
        token_storage.store("gws-tools", valid_token, token_metadata)
        manager = CredentialManager(storage=token_storage, environ={})

        assert await manager.get_access_token() == "test_access_token_abc123"

    @pytest.mark.asyncio
    async def test_should_fail_without_any_token(self, token_storage) -> None:
        manager = CredentialManager(storage=token_storage, environ={})

        with pytest.raises(CredentialsError, match="No OAuth token found") as exc_info:
            await manager.get_access_token()

        assert exc_info.value.code == "AUTH_FAILED"

    @pytest.mark.asyncio
    async def test_should_fail_on_corrupted_token(self, token_storage) -> None:
        token_storage.token_path.parent.mkdir(parents=True)
        token_storage.token_path.write_text('{"gws-tools": {"bad": "data"}}')
        manager = CredentialManager(storage=token_storage, environ={})

        with pytest.raises(CredentialsError, match="invalid or corrupted"):
            await manager.get_access_token()

    @pytest.mark.asyncio
    async def test_should_refresh_expired_stored_token(
        self,
        token_storage,
        expired_token: OAuthToken,
        token_metadata: TokenMetadata,
        refreshed_credentials,
    ) -> None:
        creds_cls, creds = refreshed_credentials
        token_storage.store("gws-tools", expired_token, token_metadata)
        manager = CredentialManager(storage=token_storage, environ=CLIENT_ENV)

        assert await manager.get_access_token() == "refreshed_access_token"

        creds.refresh.assert_called_once()
        assert creds_cls.call_args.kwargs["refresh_token"] == "test_refresh_token"
        stored = token_storage.retrieve("gws-tools")
        assert stored.token.access_token == "refreshed_access_token"
        assert stored.token.scopes == expired_token.scopes
        assert stored.metadata.last_refreshed is not None

    @pytest.mark.asyncio
    async def test_should_cache_environment_refresh(self, token_storage, refreshed_credentials) -> None:
        _, creds = refreshed_credentials
        manager = CredentialManager(
            storage=token_storage, environ={"REFRESH_TOKEN": "r1", **CLIENT_ENV}
        )

        assert await manager.get_access_token() == "refreshed_access_token"
        assert await manager.get_access_token() == "refreshed_access_token"
        creds.refresh.assert_called_once()

    @pytest.mark.asyncio
    async def test_should_require_client_credentials_for_refresh(self, token_storage) -> None:
        manager = CredentialManager(storage=token_storage, environ={"REFRESH_TOKEN": "r1"})

        with pytest.raises(CredentialsError, match="GOOGLE_OAUTH_CLIENT_ID"):
            await manager.get_access_token()

    @pytest.mark.asyncio
    async def test_should_wrap_refresh_errors(self, token_storage, refreshed_credentials) -> None:
        _, creds = refreshed_credentials
        creds.refresh.side_effect = RefreshError("invalid_grant")
        manager = CredentialManager(
            storage=token_storage, environ={"REFRESH_TOKEN": "r1", **CLIENT_ENV}
        )

        with pytest.raises(CredentialsError, match="Token refresh failed"):
            await manager.get_access_token()

    def test_describe_reports_token_file_status(self, token_storage) -> None:
        manager = CredentialManager(storage=token_storage, environ={})

        assert manager.describe() == f"token file {token_storage.token_path} (missing)"
