"""Tests for the YAML file settings store."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from rtspview.models.settings import AppSettings, CameraConfig
from rtspview.settings.yaml_store import YamlSettingsStore


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "settings.yaml"


class TestYamlSettingsStore:
    """Tests for YamlSettingsStore persistence."""

    async def test_missing_file_reads_defaults(self, settings_path: Path) -> None:
        # Given: No settings file
        store = YamlSettingsStore(settings_path)

        # When: Reading
        settings = await store.read_all()

        # Then: Defaults, and nothing is created
        assert settings == AppSettings()
        assert not settings_path.exists()

    async def test_write_creates_file_and_parent(self, settings_path: Path) -> None:
        store = YamlSettingsStore(settings_path)

        await store.write_field("is_muted", True)

        data = yaml.safe_load(settings_path.read_text())
        assert data == {"is_muted": True}
        assert not settings_path.with_suffix(".yaml.tmp").exists()

    async def test_second_write_keeps_backup(self, settings_path: Path) -> None:
        # Given: A file written once
        store = YamlSettingsStore(settings_path)
        await store.write_field("reconnect_delay_ms", 2000)

        # When: Writing again
        await store.write_field("reconnect_delay_ms", 4000)

        # Then: The backup holds the previous document
        backup = Path(str(settings_path) + ".bak")
        assert yaml.safe_load(backup.read_text()) == {"reconnect_delay_ms": 2000}
        assert yaml.safe_load(settings_path.read_text()) == {"reconnect_delay_ms": 4000}

    async def test_settings_survive_new_instance(self, settings_path: Path) -> None:
        # Given: Cameras saved by one store
        first = YamlSettingsStore(settings_path)
        await first.add_camera(CameraConfig(id="a", name="Porch", url="rtsp://porch.local/s"))
        await first.update_mute_state(True)

        # When: Reading through a fresh store
        settings = await YamlSettingsStore(settings_path).read_all()

        # Then: Everything was persisted
        assert [camera.name for camera in settings.cameras] == ["Porch"]
        assert settings.is_muted is True

    async def test_legacy_file_is_migrated_on_read(self, settings_path: Path) -> None:
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text("rtsp_url: rtsp://old.local/live\nis_muted: true\n")

        settings = await YamlSettingsStore(settings_path).read_all()

        assert settings.rtsp_url == "rtsp://old.local/live"
        assert settings.cameras[0].name == "Camera 1"
        assert settings.is_muted is True

    @pytest.mark.parametrize(
        "content",
        ["key: [unclosed\n", "- a\n- b\n", ""],
        ids=["invalid-yaml", "not-a-mapping", "empty"],
    )
    async def test_unusable_file_reads_defaults(self, settings_path: Path, content: str) -> None:
        settings_path.parent.mkdir(parents=True)
        settings_path.write_text(content)

        settings = await YamlSettingsStore(settings_path).read_all()

        assert settings == AppSettings()

    def test_path_expands_user(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        store = YamlSettingsStore(Path("~/settings.yaml"))

        assert store.path == tmp_path / "settings.yaml"
