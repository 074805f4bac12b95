"""Tests for the settings editor."""

from __future__ import annotations

import pytest

from rtspview.errors import CameraNotFoundError, InvalidStreamUrlError
from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.settings.editor import SettingsEditor, validate_rtsp_url
from rtspview.settings.memory import InMemorySettingsStore
from tests.rtspview.helpers import camera_prefs


async def _editor(store: InMemorySettingsStore) -> SettingsEditor:
    editor = SettingsEditor(store)
    await editor.refresh()
    return editor


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("", None),
        ("   ", None),
        ("rtsp://cam.local/stream", None),
        ("http://cam.local/stream", "URL must start with rtsp://"),
        ("rtsp://a", "URL is too short"),
    ],
)
def test_validate_rtsp_url(url: str, expected: str | None) -> None:
    assert validate_rtsp_url(url) == expected


class TestCameraEditing:
    """Tests for adding and editing cameras."""

    async def test_add_camera_uses_sequential_default_names(self) -> None:
        # Given: An empty store
        editor = await _editor(InMemorySettingsStore())

        # When: Adding two cameras
        first = await editor.add_camera()
        second = await editor.add_camera("rtsp://cam.local/stream")

        # Then: Names follow the count and the first is selected
        assert (first.name, second.name) == ("Camera 1", "Camera 2")
        assert [camera.id for camera in editor.settings.cameras] == [first.id, second.id]
        assert editor.settings.current_camera_index == 0

    async def test_add_camera_rejects_invalid_url(self) -> None:
        store = InMemorySettingsStore()
        editor = await _editor(store)

        with pytest.raises(InvalidStreamUrlError) as exc_info:
            await editor.add_camera("http://cam.local/stream")

        assert str(exc_info.value) == "URL must start with rtsp://"
        assert store.save_count == 0

    async def test_pending_edits_are_saved_when_valid(self) -> None:
        """Form edits stay local until saved, and invalid URLs stay pending."""
        # Given: One saved camera
        store = InMemorySettingsStore(camera_prefs("rtsp://cam1.local/stream"))
        editor = await _editor(store)

        # When: Editing name and an invalid URL, then saving
        editor.on_camera_name_changed("cam-1", "Driveway")
        editor.on_camera_url_changed("cam-1", "rtsp://x")
        assert editor.cameras[0].name == "Driveway"
        assert store.save_count == 0
        errors = await editor.save_cameras()

        # Then: Nothing is written and the error is reported per camera
        assert errors == {"cam-1": "URL is too short"}
        assert editor.url_errors == errors
        assert editor.pending_ids == {"cam-1"}
        assert store.save_count == 0

        # When: Fixing the URL and saving again
        editor.on_camera_url_changed("cam-1", "rtsp://driveway.local/stream")
        assert editor.url_errors == {}
        errors = await editor.save_cameras()

        # Then: The edit is persisted and no longer pending
        assert errors == {}
        assert editor.pending_ids == set()
        saved = (await store.read_all()).cameras[0]
        assert (saved.id, saved.name, saved.url) == (
            "cam-1",
            "Driveway",
            "rtsp://driveway.local/stream",
        )

    async def test_update_camera_in_one_step(self) -> None:
        store = InMemorySettingsStore(camera_prefs("rtsp://cam1.local/stream"))
        editor = await _editor(store)

        updated = await editor.update_camera(
            "cam-1", name="Garage", display_mode=VideoDisplayMode.CROP
        )

        assert updated.name == "Garage"
        assert updated.url == "rtsp://cam1.local/stream"
        assert (await store.read_all()).cameras[0].display_mode is VideoDisplayMode.CROP

    async def test_migrated_camera_can_be_edited_by_listed_id(self) -> None:
        # Given: A legacy single-URL document listed through the editor
        store = InMemorySettingsStore({"rtsp_url": "rtsp://legacy.local/s"})
        editor = await _editor(store)
        listed_id = editor.settings.cameras[0].id

        # When: Refreshing, then editing that id
        await editor.refresh()
        updated = await editor.update_camera(listed_id, name="Front Gate")

        # Then: The same camera was edited
        assert updated.id == listed_id
        assert [camera.name for camera in (await store.read_all()).cameras] == ["Front Gate"]

    async def test_unknown_camera_raises(self) -> None:
        editor = await _editor(InMemorySettingsStore())

        with pytest.raises(CameraNotFoundError):
            await editor.update_camera("missing", name="x")
        with pytest.raises(CameraNotFoundError):
            editor.on_camera_name_changed("missing", "x")

    async def test_refresh_drops_edits_for_removed_cameras(self) -> None:
        # Given: A pending edit
        store = InMemorySettingsStore(camera_prefs("rtsp://cam1.local/stream"))
        editor = await _editor(store)
        editor.on_camera_name_changed("cam-1", "Gone")

        # When: The camera is removed elsewhere
        await store.remove_camera("cam-1")
        await editor.refresh()

        # Then: The edit is discarded
        assert editor.pending_ids == set()
        assert editor.cameras == []

    async def test_remove_and_select(self) -> None:
        store = InMemorySettingsStore(
            camera_prefs("rtsp://cam1.local/stream", "rtsp://cam2.local/stream")
        )
        editor = await _editor(store)

        await editor.select_camera(1)
        await editor.remove_camera("cam-1")

        assert [camera.id for camera in editor.settings.cameras] == ["cam-2"]
        assert editor.settings.current_camera_index == 0


class TestFieldUpdates:
    """Tests for write-through fields."""

    @pytest.mark.parametrize(("requested", "stored"), [(50, 1000), (4000, 4000), (60000, 10000)])
    async def test_reconnect_delay_is_clamped(self, requested: int, stored: int) -> None:
        store = InMemorySettingsStore()
        editor = await _editor(store)

        await editor.update_reconnect_delay(requested)

        assert store.prefs["reconnect_delay_ms"] == stored

    async def test_screen_fields_write_through(self) -> None:
        store = InMemorySettingsStore()
        editor = await _editor(store)

        await editor.update_allow_screen_off(False)
        await editor.update_brightness_mode(BrightnessMode.CUSTOM)
        await editor.update_custom_brightness(0.25)
        await editor.update_auto_reconnect(False)
        await editor.update_mute_state(True)

        settings = await store.read_all()
        assert settings.allow_screen_off is False
        assert settings.brightness_mode is BrightnessMode.CUSTOM
        assert settings.custom_brightness == 0.25
        assert settings.auto_reconnect is False
        assert settings.is_muted is True
        assert editor.settings == settings
