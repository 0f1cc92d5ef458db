"""Unit tests for TokenStorage class.

Tests cover token persistence, retrieval, deletion, and error handling.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from gws_tools.auth.models import OAuthToken, TokenMetadata, TokenStatus
from gws_tools.auth.token_storage import TokenStorage


def write_raw(storage: TokenStorage, text: str) -> None:
    storage.token_path.parent.mkdir(parents=True, exist_ok=True)
    storage.token_path.write_text(text)


@pytest.mark.unit
class TestTokenStorageInit:
    """Tests for TokenStorage initialization."""

    def test_should_use_default_path(self) -> None:
        storage = TokenStorage()
        assert storage.token_path.name == "tokens.json"
        assert storage.token_path.parent.name == ".gws-tools"

    def test_should_not_touch_disk_until_first_write(self, temp_token_path: Path) -> None:
        TokenStorage(token_path=temp_token_path)
        assert not temp_token_path.parent.exists()

    def test_should_fix_directory_permissions_on_write(
        self, tmp_path: Path, valid_token: OAuthToken, token_metadata: TokenMetadata
    ) -> None:
        creds_dir = tmp_path / "creds"
        creds_dir.mkdir(mode=0o755)
        storage = TokenStorage(token_path=creds_dir / "tokens.json")

        storage.store("gws-tools", valid_token, token_metadata)

        assert creds_dir.stat().st_mode & 0o777 == 0o700


@pytest.mark.unit
class TestTokenStorageStore:
    """Tests for TokenStorage.store() method."""

    def test_should_store_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", valid_token, token_metadata)

        with open(token_storage.token_path) as f:
            data = json.load(f)
        assert data["test-service"]["version"] == 1
        assert data["test-service"]["token"]["access_token"] == "test_access_token_abc123"

    def test_should_overwrite_existing_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", valid_token, token_metadata)

        new_token = OAuthToken(
            access_token="new_token",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=2),
            scopes=["scope1"],
        )
        token_storage.store("test-service", new_token, token_metadata)

        retrieved = token_storage.retrieve("test-service")
        assert retrieved.token.access_token == "new_token"

    def test_should_set_secure_file_permissions(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", valid_token, token_metadata)

        assert token_storage.token_path.stat().st_mode & 0o777 == 0o600
        assert token_storage.token_path.parent.stat().st_mode & 0o777 == 0o700


@pytest.mark.unit
class TestTokenStorageRetrieve:
    """Tests for TokenStorage.retrieve() method."""

    def test_should_preserve_all_token_fields(
        self,
        token_storage: TokenStorage,
        token_metadata: TokenMetadata,
    ) -> None:
        original = OAuthToken(
            access_token="access_abc",
            refresh_token="refresh_xyz",
            expires_at=datetime(2030, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
            scopes=["scope1", "scope2", "scope3"],
            token_type="Bearer",
        )

        token_storage.store("test-service", original, token_metadata)
        retrieved = token_storage.retrieve("test-service")

        assert retrieved.token == original
        assert retrieved.metadata.service_name == "gws-tools"

    def test_should_return_none_for_missing_service(self, token_storage: TokenStorage) -> None:
        assert token_storage.retrieve("nonexistent-service") is None

    def test_should_return_none_for_corrupted_token(self, token_storage: TokenStorage) -> None:
        write_raw(token_storage, '{"test-service": {"invalid": "data"}}')

        assert token_storage.retrieve("test-service") is None

    def test_should_return_none_for_invalid_json(self, token_storage: TokenStorage) -> None:
        write_raw(token_storage, "not valid json {{{")

        assert token_storage.retrieve("test-service") is None

    def test_should_handle_empty_file(self, token_storage: TokenStorage) -> None:
        write_raw(token_storage, "")

        assert token_storage.retrieve("test-service") is None

    def test_should_handle_io_error_on_load(self, token_storage: TokenStorage) -> None:
        write_raw(token_storage, "{}")

        with patch("builtins.open", side_effect=OSError("Permission denied")):
            assert token_storage.retrieve("test-service") is None


@pytest.mark.unit
class TestTokenStorageMultipleServices:
    """Tests for several records sharing one file."""

    def test_should_keep_other_services_when_storing(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        expired_token: OAuthToken,
    ) -> None:
        token_storage.store("service1", valid_token, TokenMetadata(service_name="service1"))
        token_storage.store("service2", expired_token, TokenMetadata(service_name="service2"))

        data = json.loads(token_storage.token_path.read_text())
        assert sorted(data) == ["service1", "service2"]
        assert token_storage.get_status("service1") == TokenStatus.VALID
        assert token_storage.get_status("service2") == TokenStatus.EXPIRED

    def test_should_leave_no_temporary_files(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", valid_token, token_metadata)
        token_storage.store("test-service", valid_token, token_metadata)

        assert [p.name for p in token_storage.token_path.parent.iterdir()] == ["tokens.json"]


@pytest.mark.unit
class TestTokenStorageGetStatus:
    """Tests for TokenStorage.get_status() method."""

    def test_should_return_valid_for_non_expired_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", valid_token, token_metadata)

        assert token_storage.get_status("test-service") == TokenStatus.VALID

    def test_should_return_expired_for_expired_token(
        self,
        token_storage: TokenStorage,
        expired_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store("test-service", expired_token, token_metadata)

        assert token_storage.get_status("test-service") == TokenStatus.EXPIRED

    def test_should_return_missing_for_nonexistent_token(self, token_storage: TokenStorage) -> None:
        assert token_storage.get_status("nonexistent-service") == TokenStatus.MISSING

    def test_should_return_invalid_for_corrupted_token(self, token_storage: TokenStorage) -> None:
        write_raw(token_storage, '{"test-service": {"bad": "data"}}')

        assert token_storage.get_status("test-service") == TokenStatus.INVALID
