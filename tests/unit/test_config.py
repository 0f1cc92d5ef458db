"""Unit tests for Settings and logging configuration."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from gws_tools.config import DEFAULT_TOKEN_PATH, Settings, configure_logging


@pytest.mark.unit
class TestSettings:
    """Tests for Settings.from_env()."""

    def test_should_use_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("GWS_TOOLS_LOG_LEVEL", "GWS_TOOLS_HTTP_TIMEOUT", "GWS_TOOLS_TOKEN_PATH"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.log_level == "INFO"
        assert settings.http_timeout == 30.0
        assert settings.token_path == DEFAULT_TOKEN_PATH

    def test_should_read_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("GWS_TOOLS_LOG_LEVEL", "debug")
        monkeypatch.setenv("GWS_TOOLS_HTTP_TIMEOUT", "12.5")
        monkeypatch.setenv("GWS_TOOLS_TOKEN_PATH", str(tmp_path / "t.json"))

        settings = Settings.from_env()

        assert settings.log_level == "DEBUG"
        assert settings.http_timeout == 12.5
        assert settings.token_path == tmp_path / "t.json"

    def test_should_reject_unknown_level(self) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="CHATTY")

    def test_should_reject_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            Settings(http_timeout=0)


@pytest.mark.unit
def test_configure_logging_uses_settings_level() -> None:
    with patch("gws_tools.config.logging.basicConfig") as basic_config:
        configure_logging(Settings(log_level="warning"))

    assert basic_config.call_args.kwargs["level"] == "WARNING"
