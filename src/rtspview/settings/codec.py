"""Preference document <-> settings snapshot conversion.

Decoding never fails: malformed values fall back to their defaults, and a
legacy single `rtsp_url` is migrated into a one-camera list when no camera
list has ever been written.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.models.settings import (
    DEFAULT_CUSTOM_BRIGHTNESS,
    DEFAULT_RECONNECT_DELAY_MS,
    AppSettings,
    CameraConfig,
)

logger = logging.getLogger(__name__)

LEGACY_CAMERA_NAME = "Camera 1"


class PreferenceKey(StrEnum):
    """Keys of the persisted preference document."""

    CAMERAS_JSON = "cameras_json"
    CURRENT_CAMERA_INDEX = "current_camera_index"
    IS_MUTED = "is_muted"
    ALLOW_SCREEN_OFF = "allow_screen_off"
    BRIGHTNESS_MODE = "brightness_mode"
    CUSTOM_BRIGHTNESS = "custom_brightness"
    VIDEO_DISPLAY_MODE = "video_display_mode"
    AUTO_RECONNECT = "auto_reconnect"
    RECONNECT_DELAY_MS = "reconnect_delay_ms"
    RTSP_URL_LEGACY = "rtsp_url"


def parse_cameras_json(raw: str) -> list[CameraConfig]:
    """Parse the camera list; any structural problem yields an empty list."""
    try:
        entries = json.loads(raw)
        if not isinstance(entries, list):
            raise ValueError(f"expected a JSON array, got {type(entries).__name__}")
        cameras = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise ValueError(f"expected a JSON object, got {type(entry).__name__}")
            cameras.append(
                CameraConfig(
                    id=str(entry.get("id") or uuid.uuid4()),
                    name=str(entry.get("name") or ""),
                    url=str(entry.get("url") or ""),
                    display_mode=entry.get("displayMode") or "",
                )
            )
        return cameras
    except (ValueError, TypeError, ValidationError) as exc:
        logger.warning("Ignoring malformed camera list: %s", exc)
        return []


def cameras_to_json(cameras: tuple[CameraConfig, ...] | list[CameraConfig]) -> str:
    payload = [camera.model_dump(mode="json", by_alias=True) for camera in cameras]
    return json.dumps(payload, separators=(",", ":"))


def with_generated_camera_ids(prefs: Mapping[str, Any]) -> dict[str, Any] | None:
    """Return `prefs` with a camera list whose generated ids are written out.

    A migrated legacy URL or a stored entry without an `id` gets a new id on
    every decode until the list is saved. Returns None when nothing was
    generated (including a malformed list, which is left untouched).
    """
    raw_cameras = prefs.get(PreferenceKey.CAMERAS_JSON)
    if raw_cameras is None:
        cameras = decode_settings(prefs).cameras
    else:
        try:
            entries = json.loads(str(raw_cameras))
        except ValueError:
            return None
        if not isinstance(entries, list) or all(
            isinstance(entry, dict) and entry.get("id") for entry in entries
        ):
            return None
        cameras = tuple(parse_cameras_json(str(raw_cameras)))
    if not cameras:
        return None
    updated = dict(prefs)
    updated[PreferenceKey.CAMERAS_JSON.value] = cameras_to_json(cameras)
    return updated


def decode_settings(prefs: Mapping[str, Any]) -> AppSettings:
    """Resolve a preference document into a settings snapshot."""
    raw_cameras = prefs.get(PreferenceKey.CAMERAS_JSON)
    if raw_cameras is not None:
        cameras = parse_cameras_json(str(raw_cameras))
    else:
        legacy_url = prefs.get(PreferenceKey.RTSP_URL_LEGACY)
        if isinstance(legacy_url, str) and legacy_url.strip():
            cameras = [CameraConfig(name=LEGACY_CAMERA_NAME, url=legacy_url)]
        else:
            cameras = []

    index = _coerce(prefs, PreferenceKey.CURRENT_CAMERA_INDEX, int, 0)
    if cameras:
        index = max(0, min(index, len(cameras) - 1))

    return AppSettings(
        cameras=tuple(cameras),
        current_camera_index=index,
        is_muted=_coerce(prefs, PreferenceKey.IS_MUTED, bool, False),
        allow_screen_off=_coerce(prefs, PreferenceKey.ALLOW_SCREEN_OFF, bool, True),
        brightness_mode=_coerce(
            prefs, PreferenceKey.BRIGHTNESS_MODE, BrightnessMode.from_string, BrightnessMode.AUTO
        ),
        custom_brightness=min(
            1.0,
            max(
                0.0,
                _coerce(prefs, PreferenceKey.CUSTOM_BRIGHTNESS, float, DEFAULT_CUSTOM_BRIGHTNESS),
            ),
        ),
        video_display_mode=_coerce(
            prefs,
            PreferenceKey.VIDEO_DISPLAY_MODE,
            VideoDisplayMode.from_string,
            VideoDisplayMode.FIT,
        ),
        auto_reconnect=_coerce(prefs, PreferenceKey.AUTO_RECONNECT, bool, True),
        reconnect_delay_ms=max(
            0,
            _coerce(prefs, PreferenceKey.RECONNECT_DELAY_MS, int, DEFAULT_RECONNECT_DELAY_MS),
        ),
    )


def encode_field(key: str, value: object) -> object:
    """Convert a typed settings value to its persisted representation."""
    key = PreferenceKey(key)
    if key is PreferenceKey.CAMERAS_JSON:
        if isinstance(value, str):
            return value
        return cameras_to_json(list(value))  # type: ignore[call-overload]
    if key in (PreferenceKey.BRIGHTNESS_MODE, PreferenceKey.VIDEO_DISPLAY_MODE):
        return str(value)
    if key is PreferenceKey.CUSTOM_BRIGHTNESS:
        return float(value)  # type: ignore[arg-type]
    if key in (PreferenceKey.CURRENT_CAMERA_INDEX, PreferenceKey.RECONNECT_DELAY_MS):
        return int(value)  # type: ignore[call-overload]
    if key is PreferenceKey.RTSP_URL_LEGACY:
        return str(value)
    return bool(value)


def encode_settings(settings: AppSettings) -> dict[str, object]:
    """Encode every field of a snapshot (legacy `rtsp_url` is not written)."""
    return {
        PreferenceKey.CAMERAS_JSON.value: cameras_to_json(settings.cameras),
        PreferenceKey.CURRENT_CAMERA_INDEX.value: settings.current_camera_index,
        PreferenceKey.IS_MUTED.value: settings.is_muted,
        PreferenceKey.ALLOW_SCREEN_OFF.value: settings.allow_screen_off,
        PreferenceKey.BRIGHTNESS_MODE.value: str(settings.brightness_mode),
        PreferenceKey.CUSTOM_BRIGHTNESS.value: settings.custom_brightness,
        PreferenceKey.VIDEO_DISPLAY_MODE.value: str(settings.video_display_mode),
        PreferenceKey.AUTO_RECONNECT.value: settings.auto_reconnect,
        PreferenceKey.RECONNECT_DELAY_MS.value: settings.reconnect_delay_ms,
    }


def _coerce(prefs: Mapping[str, Any], key: PreferenceKey, convert: Any, default: Any) -> Any:
    if key.value not in prefs or prefs[key.value] is None:
        return default
    raw = prefs[key.value]
    if convert is bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
            return raw.strip().lower() == "true"
        logger.warning("Invalid value for %s: %r; using default", key.value, raw)
        return default
    try:
        return convert(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid value for %s: %r (%s); using default", key.value, raw, exc)
        return default
