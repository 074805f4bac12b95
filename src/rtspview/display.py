"""Screen power and brightness control."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from rtspview.interfaces import DisplayController
from rtspview.models.enums import BrightnessMode
from rtspview.models.settings import AppSettings

logger = logging.getLogger(__name__)

MIN_BRIGHTNESS = 0.01
BACKLIGHT_ROOT = Path("/sys/class/backlight")


def brightness_level_for(settings: AppSettings) -> float | None:
    """Brightness override for the settings, or None for the system default."""
    match settings.brightness_mode:
        case BrightnessMode.MINIMUM:
            return MIN_BRIGHTNESS
        case BrightnessMode.CUSTOM:
            return min(1.0, max(MIN_BRIGHTNESS, settings.custom_brightness))
        case _:
            return None


def apply_screen_settings(display: DisplayController, settings: AppSettings) -> None:
    """Apply the screen power and brightness policy from a settings snapshot."""
    if settings.allow_screen_off:
        display.allow_screen_off()
    else:
        display.keep_screen_on()
    display.set_brightness(brightness_level_for(settings))


class NoopDisplay(DisplayController):
    """Display controller for hosts without controllable screens."""

    def keep_screen_on(self) -> None:
        logger.debug("keep_screen_on (no-op)")

    def allow_screen_off(self) -> None:
        logger.debug("allow_screen_off (no-op)")

    def set_brightness(self, level: float | None) -> None:
        logger.debug("set_brightness(%s) (no-op)", level)

    def cleanup(self) -> None:
        pass


class SysfsBacklightDisplay(DisplayController):
    """Linux backlight control through sysfs, with X screen blanking via xset.

    The brightness found on first use is restored when the override is
    cleared and on `cleanup()`.
    """

    def __init__(self, device: str, *, root: Path = BACKLIGHT_ROOT) -> None:
        self._device_dir = root / device
        self._original: int | None = None
        self._max: int | None = None

    @property
    def device_dir(self) -> Path:
        return self._device_dir

    def keep_screen_on(self) -> None:
        self._xset("s", "off", "-dpms")

    def allow_screen_off(self) -> None:
        self._xset("s", "on", "+dpms")

    def set_brightness(self, level: float | None) -> None:
        try:
            max_level = self._max_brightness()
            if self._original is None:
                self._original = self._read_int("brightness")
            if level is None:
                target = self._original
            else:
                clamped = min(1.0, max(MIN_BRIGHTNESS, level))
                target = max(1, round(clamped * max_level))
            self._write_int("brightness", target)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to set backlight brightness on %s: %s", self._device_dir, exc)

    def cleanup(self) -> None:
        if self._original is not None:
            try:
                self._write_int("brightness", self._original)
            except OSError as exc:
                logger.warning("Failed to restore backlight brightness: %s", exc)
        self.allow_screen_off()

    def _max_brightness(self) -> int:
        if self._max is None:
            self._max = self._read_int("max_brightness")
        return self._max

    def _read_int(self, name: str) -> int:
        return int((self._device_dir / name).read_text().strip())

    def _write_int(self, name: str, value: int) -> None:
        (self._device_dir / name).write_text(f"{value}\n")

    @staticmethod
    def _xset(*args: str) -> None:
        if not os.environ.get("DISPLAY"):
            return
        xset = shutil.which("xset")
        if xset is None:
            logger.debug("xset not available; screen blanking unchanged")
            return
        try:
            subprocess.run([xset, *args], capture_output=True, timeout=5, check=False)
        except (subprocess.TimeoutExpired, OSError, subprocess.SubprocessError) as exc:
            logger.warning("xset %s failed: %s", " ".join(args), exc)
