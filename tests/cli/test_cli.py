"""CLI tests for the serve, tools and doctor commands."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gws_tools.__version__ import __version__
from gws_tools.auth.credentials import (
    ACCESS_TOKEN_VARS,
    CLIENT_ID_VARS,
    CLIENT_SECRET_VARS,
    REFRESH_TOKEN_VARS,
)
from gws_tools.auth.models import OAuthToken, TokenMetadata
from gws_tools.auth.token_storage import TokenStorage
from gws_tools.cli.main import main


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Remove OAuth variables and point the token file into tmp_path."""
    for name in ACCESS_TOKEN_VARS + REFRESH_TOKEN_VARS + CLIENT_ID_VARS + CLIENT_SECRET_VARS:
        monkeypatch.delenv(name, raising=False)
    token_path = tmp_path / "tokens.json"
    monkeypatch.setenv("GWS_TOOLS_TOKEN_PATH", str(token_path))
    return token_path


@pytest.mark.unit
class TestMainGroup:
    """Tests for the top-level command group."""

    def test_should_show_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output


@pytest.mark.unit
class TestToolsCommand:
    """Tests for the tools command."""

    def test_should_list_all_services(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["tools"])

        assert result.exit_code == 0
        assert "drive (28):" in result.output
        assert "gmail (33):" in result.output
        assert "calendar (9):" in result.output
        assert "sheets (23):" in result.output
        assert "get_folder_id_for_path" in result.output

    def test_should_filter_by_service(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(main, ["tools", "--service", "sheets"])

        assert result.exit_code == 0
        assert "sheets_find_row" in result.output
        assert "gmail" not in result.output


@pytest.mark.unit
class TestServeCommand:
    """Tests for the serve command."""

    def test_should_start_server(self, cli_runner: CliRunner) -> None:
        with patch("gws_tools.server.main") as server_main:
            result = cli_runner.invoke(main, ["serve"])

        assert result.exit_code == 0
        server_main.assert_called_once_with()

    def test_should_exit_on_server_error(self, cli_runner: CliRunner) -> None:
        with patch("gws_tools.server.main", side_effect=RuntimeError("stdio closed")):
            result = cli_runner.invoke(main, ["serve"])

        assert result.exit_code == 1
        assert "Server error: stdio closed" in result.output


@pytest.mark.unit
class TestDoctorCommand:
    """Tests for the doctor command."""

    def test_should_fail_without_credentials(self, cli_runner: CliRunner, clean_env: Path) -> None:
        result = cli_runner.invoke(main, ["doctor"])

        assert result.exit_code == 1
        assert "No token configured" in result.output

    def test_should_accept_environment_token(
        self, cli_runner: CliRunner, clean_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ACCESS_TOKEN", "env-token")

        result = cli_runner.invoke(main, ["doctor"])

        assert result.exit_code == 0
        assert "Access token set in environment" in result.output
        assert "Ready to use" in result.output

    def test_should_require_client_credentials_for_refresh(
        self, cli_runner: CliRunner, clean_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REFRESH_TOKEN", "r1")

        result = cli_runner.invoke(main, ["doctor"])

        assert result.exit_code == 1
        assert "GOOGLE_OAUTH_CLIENT_ID/SECRET missing" in result.output

    def test_should_report_stored_token(
        self,
        cli_runner: CliRunner,
        clean_env: Path,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        TokenStorage(clean_env).store("gws-tools", valid_token, token_metadata)

        result = cli_runner.invoke(main, ["doctor"])

        assert result.exit_code == 0
        assert "Stored token valid" in result.output
        assert str(clean_env) in result.output

    def test_should_reject_invalid_settings(
        self, cli_runner: CliRunner, clean_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GWS_TOOLS_HTTP_TIMEOUT", "-1")

        result = cli_runner.invoke(main, ["doctor"])

        assert result.exit_code == 1
        assert "Invalid settings" in result.output
