"""YAML file settings store."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path

import yaml

from rtspview.settings.store import Prefs, PreferencesSettingsStore

logger = logging.getLogger(__name__)


class YamlSettingsStore(PreferencesSettingsStore):
    """Persists preferences to a single YAML mapping.

    On every write the previous file is copied to {path}.bak and the new
    document replaces it atomically.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    async def _load(self) -> Prefs:
        return await asyncio.to_thread(self._read)

    def _read(self) -> Prefs:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as handle:
                raw = yaml.safe_load(handle)
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Unreadable settings file %s, using defaults: %s", self._path, exc)
            return {}
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning(
                "Settings file %s must contain a mapping, got %s; using defaults",
                self._path,
                type(raw).__name__,
            )
            return {}
        return {str(key): value for key, value in raw.items()}

    async def _save(self, prefs: Prefs) -> None:
        def _write() -> None:
            backup_path = Path(str(self._path) + ".bak")
            if self._path.exists():
                shutil.copy2(self._path, backup_path)

            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.parent.mkdir(parents=True, exist_ok=True)

            with tmp_path.open("w", encoding="utf-8") as handle:
                yaml.safe_dump(prefs, handle, sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())

            os.replace(tmp_path, self._path)

        await asyncio.to_thread(_write)
