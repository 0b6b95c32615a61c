from __future__ import annotations

import asyncio
import contextlib
import logging

from weatherview.repositories.preferences import PreferencesStore
from weatherview.schemas.preferences import UserPreferences
from weatherview.services.coordinator import WeatherCoordinator

logger = logging.getLogger(__name__)


class HometownWatcher:
    """Refreshes weather and forecast whenever saved preferences name a hometown."""

    def __init__(self, *, store: PreferencesStore, coordinator: WeatherCoordinator) -> None:
        self._store = store
        self._coordinator = coordinator
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def apply(self, prefs: UserPreferences) -> None:
        if not prefs.hometown:
            return
        logger.debug("Hometown set to %r, refreshing", prefs.hometown)
        self._coordinator.fetch_weather(prefs.hometown, prefs.api_key)
        # Forecasts are only requested once a key is configured.
        if prefs.api_key:
            self._coordinator.fetch_forecast(prefs.hometown, prefs.api_key)

    async def run(self) -> None:
        async for prefs in self._store.updates():
            self.apply(prefs)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self.run(), name="hometown-watcher")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
