"""Settings persistence and editing."""

from rtspview.settings.codec import PreferenceKey, decode_settings, encode_settings
from rtspview.settings.editor import SettingsEditor, validate_rtsp_url
from rtspview.settings.memory import InMemorySettingsStore
from rtspview.settings.store import PreferencesSettingsStore
from rtspview.settings.yaml_store import YamlSettingsStore

__all__ = [
    "InMemorySettingsStore",
    "PreferenceKey",
    "PreferencesSettingsStore",
    "SettingsEditor",
    "YamlSettingsStore",
    "decode_settings",
    "encode_settings",
    "validate_rtsp_url",
]
