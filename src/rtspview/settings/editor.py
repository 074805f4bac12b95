"""Settings-form logic: camera editing with URL validation and field updates."""

from __future__ import annotations

import logging

from rtspview.errors import CameraNotFoundError, InvalidStreamUrlError
from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.registry import new_camera
from rtspview.settings.store import PreferencesSettingsStore

logger = logging.getLogger(__name__)

RTSP_SCHEME = "rtsp://"
MIN_URL_LENGTH = 10
MIN_RECONNECT_DELAY_MS = 1000
MAX_RECONNECT_DELAY_MS = 10000


def validate_rtsp_url(url: str) -> str | None:
    """Return a user-facing error for `url`, or None when acceptable.

    A blank URL is allowed (the camera is simply not configured yet).
    """
    if not url.strip():
        return None
    if not url.startswith(RTSP_SCHEME):
        return "URL must start with rtsp://"
    if len(url) < MIN_URL_LENGTH:
        return "URL is too short"
    return None


def require_valid_rtsp_url(url: str) -> str:
    """Return `url` unchanged or raise InvalidStreamUrlError."""
    reason = validate_rtsp_url(url)
    if reason is not None:
        raise InvalidStreamUrlError(url, reason)
    return url


class SettingsEditor:
    """Backs the settings form.

    Camera name/URL/display-mode edits are held as pending changes keyed by
    camera id until `save_cameras()`; every other field is written through
    immediately.
    """

    def __init__(self, store: PreferencesSettingsStore) -> None:
        self._store = store
        self._settings = store.current
        self._pending: dict[str, CameraConfig] = {}
        self._url_errors: dict[str, str] = {}

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def cameras(self) -> list[CameraConfig]:
        """Cameras as currently shown in the form (pending edits applied)."""
        return [self._pending.get(camera.id, camera) for camera in self._settings.cameras]

    @property
    def pending_ids(self) -> set[str]:
        return set(self._pending)

    @property
    def url_errors(self) -> dict[str, str]:
        return dict(self._url_errors)

    async def refresh(self) -> AppSettings:
        self._settings = await self._store.read_all()
        known = {camera.id for camera in self._settings.cameras}
        self._pending = {key: value for key, value in self._pending.items() if key in known}
        self._url_errors = {key: value for key, value in self._url_errors.items() if key in known}
        return self._settings

    async def add_camera(self, url: str = "") -> CameraConfig:
        require_valid_rtsp_url(url)
        camera = new_camera(len(self._settings.cameras), url=url)
        self._settings = await self._store.add_camera(camera)
        logger.info("Added camera %s", camera.name)
        return camera

    def on_camera_name_changed(self, camera_id: str, name: str) -> None:
        camera = self._editable(camera_id)
        self._pending[camera_id] = camera.model_copy(update={"name": name})

    def on_camera_url_changed(self, camera_id: str, url: str) -> None:
        camera = self._editable(camera_id)
        self._pending[camera_id] = camera.model_copy(update={"url": url})
        self._url_errors.pop(camera_id, None)

    def on_camera_display_mode_changed(self, camera_id: str, mode: VideoDisplayMode) -> None:
        camera = self._editable(camera_id)
        self._pending[camera_id] = camera.model_copy(update={"display_mode": mode})

    async def save_cameras(self) -> dict[str, str]:
        """Persist valid pending edits.

        Returns:
            Validation errors keyed by camera id; those edits stay pending.
        """
        errors: dict[str, str] = {}
        for camera_id, camera in list(self._pending.items()):
            reason = validate_rtsp_url(camera.url)
            if reason is not None:
                errors[camera_id] = reason
                continue
            self._settings = await self._store.update_camera(camera)
            del self._pending[camera_id]
        self._url_errors = errors
        return dict(errors)

    async def update_camera(
        self,
        camera_id: str,
        *,
        name: str | None = None,
        url: str | None = None,
        display_mode: VideoDisplayMode | None = None,
    ) -> CameraConfig:
        """Apply and persist an edit in one step (no pending state)."""
        camera = self._find(camera_id)
        update: dict[str, object] = {}
        if name is not None:
            update["name"] = name
        if url is not None:
            update["url"] = require_valid_rtsp_url(url)
        if display_mode is not None:
            update["display_mode"] = display_mode
        updated = camera.model_copy(update=update)
        self._settings = await self._store.update_camera(updated)
        self._pending.pop(camera_id, None)
        self._url_errors.pop(camera_id, None)
        return updated

    async def remove_camera(self, camera_id: str) -> None:
        camera = self._find(camera_id)
        self._settings = await self._store.remove_camera(camera_id)
        self._pending.pop(camera_id, None)
        self._url_errors.pop(camera_id, None)
        logger.info("Removed camera %s", camera.name)

    async def select_camera(self, index: int) -> None:
        self._settings = await self._store.update_current_camera_index(index)

    async def update_mute_state(self, muted: bool) -> None:
        self._settings = await self._store.update_mute_state(muted)

    async def update_allow_screen_off(self, allow: bool) -> None:
        self._settings = await self._store.update_allow_screen_off(allow)

    async def update_brightness_mode(self, mode: BrightnessMode) -> None:
        self._settings = await self._store.update_brightness_mode(mode)

    async def update_custom_brightness(self, brightness: float) -> None:
        self._settings = await self._store.update_custom_brightness(brightness)

    async def update_video_display_mode(self, mode: VideoDisplayMode) -> None:
        self._settings = await self._store.update_video_display_mode(mode)

    async def update_auto_reconnect(self, enabled: bool) -> None:
        self._settings = await self._store.update_auto_reconnect(enabled)

    async def update_reconnect_delay(self, delay_ms: int) -> None:
        clamped = max(MIN_RECONNECT_DELAY_MS, min(MAX_RECONNECT_DELAY_MS, delay_ms))
        self._settings = await self._store.update_reconnect_delay(clamped)

    def _find(self, camera_id: str) -> CameraConfig:
        for camera in self._settings.cameras:
            if camera.id == camera_id:
                return camera
        raise CameraNotFoundError(camera_id)

    def _editable(self, camera_id: str) -> CameraConfig:
        if camera_id in self._pending:
            return self._pending[camera_id]
        return self._find(camera_id)
