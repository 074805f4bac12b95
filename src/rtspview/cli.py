"""CLI entrypoint for the rtspview viewer."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]  # noqa: E402
from pydantic import ValidationError  # noqa: E402

from rtspview.app import Application  # noqa: E402
from rtspview.config import RuntimeConfig  # noqa: E402
from rtspview.errors import CameraNotFoundError, InvalidStreamUrlError, ViewerError  # noqa: E402
from rtspview.logging_setup import configure_logging  # noqa: E402
from rtspview.models.enums import BrightnessMode, VideoDisplayMode  # noqa: E402
from rtspview.models.settings import AppSettings  # noqa: E402
from rtspview.redaction import redact_rtsp_url  # noqa: E402
from rtspview.settings.editor import SettingsEditor, validate_rtsp_url  # noqa: E402
from rtspview.settings.yaml_store import YamlSettingsStore  # noqa: E402

T = TypeVar("T")

_BOOL_KEYS = {"is_muted", "allow_screen_off", "auto_reconnect"}


def _load_config(**overrides: Any) -> RuntimeConfig:
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return RuntimeConfig(**values)
    except ValidationError as e:
        print(f"✗ Invalid runtime config: {e}", file=sys.stderr)
        sys.exit(1)


def _with_editor(settings: str | None, action: Callable[[SettingsEditor], Awaitable[T]]) -> T:
    config = _load_config(settings_path=settings)

    async def _run() -> T:
        editor = SettingsEditor(YamlSettingsStore(config.settings_path))
        await editor.refresh()
        return await action(editor)

    try:
        return asyncio.run(_run())
    except (InvalidStreamUrlError, CameraNotFoundError) as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)
    except ViewerError as e:
        print(f"✗ Settings error: {e}", file=sys.stderr)
        sys.exit(1)


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"Expected a boolean, got {value!r}")


def _print_cameras(settings: AppSettings) -> None:
    if not settings.cameras:
        print("  (no cameras configured)")
        return
    for index, camera in enumerate(settings.cameras):
        marker = "*" if index == settings.current_camera_index else " "
        print(
            f"{marker} [{index}] {camera.name}  {redact_rtsp_url(camera.url) or '(no url)'}"
            f"  mode={camera.display_mode}  id={camera.id}"
        )


class RtspView:
    """rtspview CLI - single-surface RTSP camera viewer."""

    def run(
        self,
        settings: str | None = None,
        log_level: str | None = None,
        backend: str | None = None,
        api: bool | None = None,
        port: int | None = None,
    ) -> None:
        """Run the viewer until interrupted.

        Args:
            settings: Path to the settings YAML file
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            backend: Player backend name
            api: Enable or disable the HTTP control API
            port: HTTP control API port
        """
        config = _load_config(
            settings_path=settings,
            log_level=log_level,
            player_backend=backend,
            api_enabled=api,
            api_port=port,
        )
        configure_logging(log_level=config.log_level)

        app = Application(config)
        try:
            asyncio.run(app.run())
        except ViewerError as e:
            print(f"✗ {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def show(self, settings: str | None = None) -> None:
        """Print the resolved settings."""

        async def _show(editor: SettingsEditor) -> AppSettings:
            return editor.settings

        resolved = _with_editor(settings, _show)
        print("Cameras:")
        _print_cameras(resolved)
        print(f"Muted: {resolved.is_muted}")
        print(f"Allow screen off: {resolved.allow_screen_off}")
        print(f"Brightness: {resolved.brightness_mode} ({resolved.custom_brightness:.2f})")
        print(f"Default display mode: {resolved.video_display_mode}")
        print(f"Auto reconnect: {resolved.auto_reconnect}")
        print(f"Reconnect delay: {resolved.reconnect_delay_ms} ms")

    def cameras(self, settings: str | None = None) -> None:
        """List configured cameras (* marks the current one)."""

        async def _list(editor: SettingsEditor) -> AppSettings:
            return editor.settings

        _print_cameras(_with_editor(settings, _list))

    def add_camera(
        self,
        url: str = "",
        name: str | None = None,
        display_mode: str = "fit",
        settings: str | None = None,
    ) -> None:
        """Add a camera.

        Args:
            url: Stream URL (rtsp://...)
            name: Display name (default "Camera N")
            display_mode: fit, fill or crop
            settings: Path to the settings YAML file
        """
        try:
            mode = VideoDisplayMode.from_string(display_mode)
        except ValueError as e:
            print(f"✗ {e}", file=sys.stderr)
            sys.exit(1)

        async def _add(editor: SettingsEditor) -> str:
            camera = await editor.add_camera(url)
            camera = await editor.update_camera(camera.id, name=name, display_mode=mode)
            return f"✓ Added {camera.name} ({camera.id})"

        print(_with_editor(settings, _add))

    def remove_camera(self, camera_id: str, settings: str | None = None) -> None:
        """Remove a camera by id."""

        async def _remove(editor: SettingsEditor) -> AppSettings:
            await editor.remove_camera(camera_id)
            return editor.settings

        remaining = _with_editor(settings, _remove)
        print(f"✓ Removed {camera_id}")
        _print_cameras(remaining)

    def select(self, index: int, settings: str | None = None) -> None:
        """Select the current camera by position."""

        async def _select(editor: SettingsEditor) -> AppSettings:
            if not 0 <= index < len(editor.settings.cameras):
                raise CameraNotFoundError(f"index {index}")
            await editor.select_camera(index)
            return editor.settings

        _print_cameras(_with_editor(settings, _select))

    def set(self, key: str, value: Any, settings: str | None = None) -> None:
        """Set a single settings field.

        Args:
            key: One of is_muted, allow_screen_off, brightness_mode, custom_brightness,
                video_display_mode, auto_reconnect, reconnect_delay_ms
            value: New value
            settings: Path to the settings YAML file
        """
        try:
            updater = _field_updater(key, value)
        except ValueError as e:
            print(f"✗ {e}", file=sys.stderr)
            sys.exit(1)

        async def _set(editor: SettingsEditor) -> AppSettings:
            await updater(editor)
            return editor.settings

        resolved = _with_editor(settings, _set)
        print(f"✓ {key} = {getattr(resolved, key)}")

    def validate_url(self, url: str) -> None:
        """Check a stream URL the way the settings form does."""
        reason = validate_rtsp_url(url)
        if reason is not None:
            print(f"✗ {reason}", file=sys.stderr)
            sys.exit(1)
        print(f"✓ URL valid: {redact_rtsp_url(url) or '(blank)'}")


def _field_updater(key: str, value: Any) -> Callable[[SettingsEditor], Awaitable[None]]:
    if key in _BOOL_KEYS:
        flag = _parse_bool(value)
        if key == "is_muted":
            return lambda editor: editor.update_mute_state(flag)
        if key == "allow_screen_off":
            return lambda editor: editor.update_allow_screen_off(flag)
        return lambda editor: editor.update_auto_reconnect(flag)
    if key == "brightness_mode":
        mode = BrightnessMode.from_string(str(value))
        return lambda editor: editor.update_brightness_mode(mode)
    if key == "custom_brightness":
        level = float(value)
        return lambda editor: editor.update_custom_brightness(level)
    if key == "video_display_mode":
        display_mode = VideoDisplayMode.from_string(str(value))
        return lambda editor: editor.update_video_display_mode(display_mode)
    if key == "reconnect_delay_ms":
        delay = int(value)
        return lambda editor: editor.update_reconnect_delay(delay)
    raise ValueError(f"Unknown or read-only settings key: {key}")


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(RtspView)


if __name__ == "__main__":
    main()
