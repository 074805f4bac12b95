"""Tests for screen power and brightness control."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from rtspview import display as display_module
from rtspview.display import (
    MIN_BRIGHTNESS,
    SysfsBacklightDisplay,
    apply_screen_settings,
    brightness_level_for,
)
from rtspview.models.enums import BrightnessMode
from rtspview.models.settings import AppSettings
from tests.rtspview.mocks import MockDisplay


@pytest.fixture
def backlight_root(tmp_path: Path) -> Path:
    device = tmp_path / "test_backlight"
    device.mkdir()
    (device / "max_brightness").write_text("200\n")
    (device / "brightness").write_text("120\n")
    return tmp_path


def _brightness(root: Path) -> str:
    return (root / "test_backlight" / "brightness").read_text().strip()


@pytest.mark.parametrize(
    ("mode", "custom", "expected"),
    [
        (BrightnessMode.AUTO, 0.7, None),
        (BrightnessMode.MINIMUM, 0.7, MIN_BRIGHTNESS),
        (BrightnessMode.CUSTOM, 0.7, 0.7),
        (BrightnessMode.CUSTOM, 0.0, MIN_BRIGHTNESS),
    ],
)
def test_brightness_level_for(mode: BrightnessMode, custom: float, expected: float | None) -> None:
    settings = AppSettings(brightness_mode=mode, custom_brightness=custom)

    assert brightness_level_for(settings) == expected


class TestApplyScreenSettings:
    def test_keep_screen_on_with_default_brightness(self, mock_display: MockDisplay) -> None:
        apply_screen_settings(mock_display, AppSettings(allow_screen_off=False))

        assert mock_display.calls == [("keep_screen_on", None), ("set_brightness", None)]

    def test_allow_screen_off_with_minimum_brightness(self, mock_display: MockDisplay) -> None:
        settings = AppSettings(allow_screen_off=True, brightness_mode=BrightnessMode.MINIMUM)

        apply_screen_settings(mock_display, settings)

        assert mock_display.calls == [
            ("allow_screen_off", None),
            ("set_brightness", MIN_BRIGHTNESS),
        ]


class TestSysfsBacklightDisplay:
    """Tests for the sysfs backlight controller."""

    @pytest.fixture(autouse=True)
    def no_x_display(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DISPLAY", raising=False)

    def test_scales_to_max_brightness(self, backlight_root: Path) -> None:
        display = SysfsBacklightDisplay("test_backlight", root=backlight_root)

        display.set_brightness(0.5)

        assert _brightness(backlight_root) == "100"

    def test_none_restores_original(self, backlight_root: Path) -> None:
        # Given: An override is active
        display = SysfsBacklightDisplay("test_backlight", root=backlight_root)
        display.set_brightness(0.25)
        assert _brightness(backlight_root) == "50"

        # When: Clearing the override
        display.set_brightness(None)

        # Then: The brightness found on first use is back
        assert _brightness(backlight_root) == "120"

    def test_cleanup_restores_original(self, backlight_root: Path) -> None:
        display = SysfsBacklightDisplay("test_backlight", root=backlight_root)
        display.set_brightness(MIN_BRIGHTNESS)
        assert _brightness(backlight_root) == "2"

        display.cleanup()

        assert _brightness(backlight_root) == "120"

    def test_missing_device_logs_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        display = SysfsBacklightDisplay("absent", root=tmp_path)

        display.set_brightness(0.5)
        display.cleanup()

        assert "Failed to set backlight brightness" in caplog.text

    def test_screen_blanking_uses_xset(
        self, backlight_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given: An X display with xset available
        calls: list[list[str]] = []

        def _run(cmd: list[str], **kwargs: Any) -> None:
            calls.append(cmd)

        monkeypatch.setenv("DISPLAY", ":0")
        monkeypatch.setattr(display_module.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(display_module.subprocess, "run", _run)
        display = SysfsBacklightDisplay("test_backlight", root=backlight_root)

        # When: Toggling screen blanking
        display.keep_screen_on()
        display.allow_screen_off()

        # Then: xset disables then re-enables blanking
        assert calls == [
            ["/usr/bin/xset", "s", "off", "-dpms"],
            ["/usr/bin/xset", "s", "on", "+dpms"],
        ]

    def test_no_x_display_skips_xset(
        self, backlight_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[object] = []
        monkeypatch.setattr(display_module.subprocess, "run", lambda *a, **k: calls.append(a))

        SysfsBacklightDisplay("test_backlight", root=backlight_root).keep_screen_on()

        assert calls == []
