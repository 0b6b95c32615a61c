from __future__ import annotations

import json
import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from weatherview.core.observable import Observable
from weatherview.schemas.preferences import UserPreferences

logger = logging.getLogger(__name__)


class PreferencesStore(Protocol):
    def get(self) -> UserPreferences: ...

    def update(
        self, *, hometown: str | None = None, api_key: str | None = None
    ) -> UserPreferences: ...

    def updates(self) -> AsyncIterator[UserPreferences]: ...


class InMemoryPreferencesStore:
    def __init__(self, initial: UserPreferences | None = None) -> None:
        self._prefs: Observable[UserPreferences] = Observable(
            initial or UserPreferences(), name="preferences"
        )

    def get(self) -> UserPreferences:
        return self._prefs.value

    def update(
        self, *, hometown: str | None = None, api_key: str | None = None
    ) -> UserPreferences:
        current = self._prefs.value
        updated = UserPreferences(
            hometown=current.hometown if hometown is None else hometown,
            api_key=current.api_key if api_key is None else api_key,
        )
        self._persist(updated)
        self._prefs.set(updated)
        return updated

    def updates(self) -> AsyncIterator[UserPreferences]:
        return self._prefs.updates()

    def _persist(self, prefs: UserPreferences) -> None:
        return None


class JsonFilePreferencesStore(InMemoryPreferencesStore):
    """Preferences kept in a small JSON document (``{"hometown": ..., "api_key": ...}``)."""

    def __init__(self, path: Path, *, defaults: UserPreferences | None = None) -> None:
        self._path = Path(path)
        super().__init__(self._load(defaults or UserPreferences()))

    @property
    def path(self) -> Path:
        return self._path

    def _load(self, defaults: UserPreferences) -> UserPreferences:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return defaults
        try:
            return UserPreferences.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            logger.warning("Ignoring unreadable preferences file %s", self._path)
            return defaults

    def _persist(self, prefs: UserPreferences) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(prefs.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp, self._path)
