"""Key/value preference store with serialized writes and live snapshots."""

from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod
from collections.abc import AsyncIterator, Callable
from typing import Any

from rtspview.errors import SettingsStoreError
from rtspview.interfaces import SettingsStore
from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.registry import CameraRegistry
from rtspview.settings.codec import (
    PreferenceKey,
    cameras_to_json,
    decode_settings,
    encode_field,
    encode_settings,
    with_generated_camera_ids,
)
from rtspview.state_flow import StateFlow

logger = logging.getLogger(__name__)

Prefs = dict[str, Any]


class PreferencesSettingsStore(SettingsStore):
    """Base settings store over a flat preference document.

    Subclasses provide `_load()` and `_save()`. Every mutation runs under a
    single lock, so writes are applied and persisted strictly in call order
    and a snapshot is published only after its write completed.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._prefs: Prefs | None = None
        self._snapshots: StateFlow[AppSettings] = StateFlow(AppSettings())

    @abstractmethod
    async def _load(self) -> Prefs:
        """Read the persisted document. Missing storage yields {}."""
        raise NotImplementedError

    @abstractmethod
    async def _save(self, prefs: Prefs) -> None:
        raise NotImplementedError

    @property
    def current(self) -> AppSettings:
        """Last published snapshot (defaults until the first read)."""
        return self._snapshots.value

    async def read_all(self) -> AppSettings:
        async with self._lock:
            prefs = await self._loaded_prefs()
        return decode_settings(prefs)

    async def live_snapshots(self) -> AsyncIterator[AppSettings]:
        await self.read_all()
        async for settings in self._snapshots.subscribe():
            yield settings

    async def write_field(self, key: str, value: object) -> None:
        try:
            pref_key = PreferenceKey(key)
        except ValueError as exc:
            raise SettingsStoreError(key, exc) from exc
        encoded = encode_field(pref_key, value)

        def _apply(prefs: Prefs) -> None:
            prefs[pref_key.value] = encoded

        await self._mutate(pref_key.value, _apply)

    async def write_all(self, settings: AppSettings) -> None:
        encoded = encode_settings(settings)

        def _apply(prefs: Prefs) -> None:
            prefs.update(encoded)

        await self._mutate("*", _apply)

    # Repository helpers

    async def add_camera(self, camera: CameraConfig) -> AppSettings:
        return await self._mutate_registry(lambda registry: registry.add(camera))

    async def update_camera(self, camera: CameraConfig) -> AppSettings:
        return await self._mutate_registry(lambda registry: registry.update(camera))

    async def remove_camera(self, camera_id: str) -> AppSettings:
        return await self._mutate_registry(lambda registry: registry.remove(camera_id))

    async def update_cameras(self, cameras: list[CameraConfig]) -> AppSettings:
        return await self._mutate_registry(
            lambda registry: CameraRegistry(tuple(cameras), registry.current_index)
        )

    async def update_current_camera_index(self, index: int) -> AppSettings:
        return await self._mutate_registry(lambda registry: registry.select(index))

    async def update_mute_state(self, is_muted: bool) -> AppSettings:
        return await self._set(PreferenceKey.IS_MUTED, is_muted)

    async def update_allow_screen_off(self, allow: bool) -> AppSettings:
        return await self._set(PreferenceKey.ALLOW_SCREEN_OFF, allow)

    async def update_brightness_mode(self, mode: BrightnessMode) -> AppSettings:
        return await self._set(PreferenceKey.BRIGHTNESS_MODE, mode)

    async def update_custom_brightness(self, brightness: float) -> AppSettings:
        return await self._set(PreferenceKey.CUSTOM_BRIGHTNESS, min(1.0, max(0.0, brightness)))

    async def update_video_display_mode(self, mode: VideoDisplayMode) -> AppSettings:
        return await self._set(PreferenceKey.VIDEO_DISPLAY_MODE, mode)

    async def update_auto_reconnect(self, enabled: bool) -> AppSettings:
        return await self._set(PreferenceKey.AUTO_RECONNECT, enabled)

    async def update_reconnect_delay(self, delay_ms: int) -> AppSettings:
        return await self._set(PreferenceKey.RECONNECT_DELAY_MS, max(0, delay_ms))

    async def _set(self, key: PreferenceKey, value: object) -> AppSettings:
        encoded = encode_field(key, value)

        def _apply(prefs: Prefs) -> None:
            prefs[key.value] = encoded

        return await self._mutate(key.value, _apply)

    async def _mutate_registry(
        self, change: Callable[[CameraRegistry], CameraRegistry]
    ) -> AppSettings:
        def _apply(prefs: Prefs) -> None:
            # Operates on the decoded list so a legacy URL is migrated first.
            registry = change(CameraRegistry.from_settings(decode_settings(prefs)))
            prefs[PreferenceKey.CAMERAS_JSON.value] = cameras_to_json(registry.cameras)
            prefs[PreferenceKey.CURRENT_CAMERA_INDEX.value] = registry.current_index or 0

        return await self._mutate(PreferenceKey.CAMERAS_JSON.value, _apply)

    async def _mutate(self, key: str, apply: Callable[[Prefs], None]) -> AppSettings:
        async with self._lock:
            prefs = dict(await self._loaded_prefs())
            apply(prefs)
            try:
                await self._save(prefs)
            except OSError as exc:
                raise SettingsStoreError(key, exc) from exc
            self._prefs = prefs
            settings = decode_settings(prefs)
            self._snapshots.set(settings)
        logger.debug("Settings updated (key: %s)", key)
        return settings

    async def _loaded_prefs(self) -> Prefs:
        # Caller holds the lock.
        if self._prefs is None:
            prefs = await self._load()
            stabilized = with_generated_camera_ids(prefs)
            if stabilized is not None:
                prefs = stabilized
                try:
                    await self._save(prefs)
                    logger.info("Saved generated camera ids")
                except OSError as exc:
                    # Ids stay stable for this process; retried on the next write.
                    logger.warning("Could not save generated camera ids: %s", exc)
            self._prefs = prefs
            self._snapshots.set(decode_settings(prefs))
        return self._prefs
