"""In-memory settings store."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rtspview.settings.store import Prefs, PreferencesSettingsStore


class InMemorySettingsStore(PreferencesSettingsStore):
    """Keeps the preference document in process memory.

    Useful for tests and for running without a writable settings file.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._data: Prefs = dict(initial or {})
        self.save_count = 0

    @property
    def prefs(self) -> Prefs:
        """Copy of the persisted document."""
        return dict(self._data)

    async def _load(self) -> Prefs:
        return dict(self._data)

    async def _save(self, prefs: Prefs) -> None:
        self._data = dict(prefs)
        self.save_count += 1
