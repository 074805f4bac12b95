"""Tests for preference document decoding and encoding."""

from __future__ import annotations

import json

import pytest

from rtspview.models.enums import BrightnessMode, VideoDisplayMode
from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.settings.codec import (
    LEGACY_CAMERA_NAME,
    PreferenceKey,
    cameras_to_json,
    decode_settings,
    encode_field,
    encode_settings,
    parse_cameras_json,
)


class TestLegacyMigration:
    """Tests for the single-URL to camera-list migration."""

    def test_legacy_url_becomes_first_camera(self) -> None:
        # Given: Only the legacy key is present
        prefs = {"rtsp_url": "rtsp://old.example/live"}

        # When: Decoding
        settings = decode_settings(prefs)

        # Then: One camera named "Camera 1" holds the legacy URL
        assert len(settings.cameras) == 1
        assert settings.cameras[0].name == LEGACY_CAMERA_NAME == "Camera 1"
        assert settings.cameras[0].url == "rtsp://old.example/live"
        assert settings.current_camera_index == 0
        assert settings.rtsp_url == "rtsp://old.example/live"

    def test_camera_list_wins_over_legacy_url(self) -> None:
        """An explicitly saved empty list is not replaced by the legacy URL."""
        prefs = {"cameras_json": "[]", "rtsp_url": "rtsp://old.example/live"}

        settings = decode_settings(prefs)

        assert settings.cameras == ()

    def test_blank_legacy_url_is_ignored(self) -> None:
        assert decode_settings({"rtsp_url": "  "}).cameras == ()


class TestCameraList:
    """Tests for the serialized camera list."""

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"id": "x"}', "[1, 2]", '[{"id": "a"}, "b"]'],
    )
    def test_malformed_list_yields_empty(self, raw: str) -> None:
        assert parse_cameras_json(raw) == []

    def test_missing_fields_get_defaults(self) -> None:
        # Given: An entry without id or display mode
        raw = json.dumps([{"name": "Porch", "url": "rtsp://porch.local/s"}])

        # When: Parsing
        cameras = parse_cameras_json(raw)

        # Then: An id is generated and the mode falls back to fit
        assert len(cameras) == 1
        assert cameras[0].id
        assert cameras[0].display_mode is VideoDisplayMode.FIT

    def test_unknown_display_mode_degrades_to_fit(self) -> None:
        raw = json.dumps([{"id": "a", "name": "A", "url": "", "displayMode": "stretch"}])

        assert parse_cameras_json(raw)[0].display_mode is VideoDisplayMode.FIT

    def test_json_uses_camel_case_display_mode(self) -> None:
        camera = CameraConfig(id="a", name="A", url="rtsp://a.local/s", display_mode="crop")

        payload = json.loads(cameras_to_json([camera]))

        assert payload == [
            {"id": "a", "name": "A", "url": "rtsp://a.local/s", "displayMode": "crop"}
        ]


class TestFieldCoercion:
    """Malformed scalar values fall back to defaults."""

    def test_defaults_for_empty_document(self) -> None:
        assert decode_settings({}) == AppSettings()

    def test_index_is_clamped_to_camera_list(self) -> None:
        cameras = cameras_to_json([CameraConfig(id="a"), CameraConfig(id="b")])

        assert decode_settings(
            {"cameras_json": cameras, "current_camera_index": 7}
        ).current_camera_index == 1
        assert decode_settings(
            {"cameras_json": cameras, "current_camera_index": -3}
        ).current_camera_index == 0

    def test_invalid_values_use_defaults(self, caplog: pytest.LogCaptureFixture) -> None:
        # Given: Values of the wrong type
        prefs = {
            "is_muted": "yes",
            "custom_brightness": "bright",
            "brightness_mode": "dazzling",
            "reconnect_delay_ms": "soon",
        }

        # When: Decoding
        settings = decode_settings(prefs)

        # Then: Defaults are used and each problem is logged
        assert settings.is_muted is False
        assert settings.custom_brightness == 0.5
        assert settings.brightness_mode is BrightnessMode.AUTO
        assert settings.reconnect_delay_ms == 3000
        assert caplog.text.count("using default") == 4

    def test_boolean_strings_are_accepted(self) -> None:
        settings = decode_settings({"is_muted": "true", "auto_reconnect": "False"})

        assert settings.is_muted is True
        assert settings.auto_reconnect is False

    def test_numeric_ranges_are_clamped(self) -> None:
        settings = decode_settings({"custom_brightness": 1.7, "reconnect_delay_ms": -5})

        assert settings.custom_brightness == 1.0
        assert settings.reconnect_delay_ms == 0


class TestEncoding:
    def test_enum_fields_are_stored_as_strings(self) -> None:
        assert encode_field("brightness_mode", BrightnessMode.CUSTOM) == "custom"
        assert encode_field("video_display_mode", VideoDisplayMode.CROP) == "crop"

    def test_unknown_key_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_field("volume", 3)

    def test_encode_settings_omits_legacy_url(self) -> None:
        settings = AppSettings(
            cameras=(CameraConfig(id="a", name="A", url="rtsp://a.local/s"),),
            is_muted=True,
            brightness_mode=BrightnessMode.MINIMUM,
        )

        encoded = encode_settings(settings)

        assert PreferenceKey.RTSP_URL_LEGACY.value not in encoded
        assert encoded["brightness_mode"] == "minimum"
        assert decode_settings(encoded) == settings
