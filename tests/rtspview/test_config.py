"""Tests for runtime configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from rtspview.config import RuntimeConfig


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run without a stray .env file or RTSPVIEW_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in [
        "RTSPVIEW_SETTINGS_PATH",
        "RTSPVIEW_PLAYER_BACKEND",
        "RTSPVIEW_LOG_LEVEL",
        "RTSPVIEW_API_PORT",
        "RTSPVIEW_API_ENABLED",
        "RTSPVIEW_BACKLIGHT_DEVICE",
    ]:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = RuntimeConfig()

    assert config.player_backend == "ffplay"
    assert config.max_reconnect_attempts == 10
    assert config.api_enabled is True
    assert config.api_host == "127.0.0.1"
    assert config.backlight_device is None
    assert config.settings_path.name == "settings.yaml"
    assert "~" not in str(config.settings_path)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    # Given: Prefixed environment variables
    monkeypatch.setenv("RTSPVIEW_LOG_LEVEL", "debug")
    monkeypatch.setenv("RTSPVIEW_API_PORT", "9000")
    monkeypatch.setenv("RTSPVIEW_API_ENABLED", "false")

    # When: Loading config
    config = RuntimeConfig()

    # Then: Values are parsed and normalized
    assert config.log_level == "DEBUG"
    assert config.api_port == 9000
    assert config.api_enabled is False


def test_dotenv_file_is_read(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("RTSPVIEW_BACKLIGHT_DEVICE=intel_backlight\n")

    assert RuntimeConfig().backlight_device == "intel_backlight"


def test_invalid_port_is_rejected() -> None:
    with pytest.raises(ValidationError):
        RuntimeConfig(api_port=70000)


def test_player_config_for_ffplay() -> None:
    config = RuntimeConfig(ffplay_path="/opt/bin/ffplay", rtsp_timeout_s=3.0, fullscreen=False)

    player_config = config.player_config()

    assert player_config["ffplay_path"] == "/opt/bin/ffplay"
    assert player_config["rtsp_timeout_s"] == 3.0
    assert player_config["fullscreen"] is False


def test_player_config_for_other_backend_is_empty() -> None:
    assert RuntimeConfig(player_backend="custom").player_config() == {}
