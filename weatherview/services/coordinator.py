from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from weatherview.clients.base import WeatherClient
from weatherview.core.config import OPENWEATHER_ICON_URL_TEMPLATE
from weatherview.core.errors import EmptyCredentialOrCity, FetchError, HttpStatusFailure
from weatherview.core.observable import Observable
from weatherview.models.weather import (
    CoordinatorState,
    FetchStatus,
    ForecastEntry,
    WeatherSnapshot,
)

logger = logging.getLogger(__name__)

WEATHER = "weather"
FORECAST = "forecast"


def failure_message(target: str, error: Exception) -> str:
    if isinstance(error, (HttpStatusFailure, EmptyCredentialOrCity)):
        return f"Failed to fetch {target}. Please check your API key or city name."
    detail = error.message if isinstance(error, FetchError) else "unexpected error"
    return f"An error occurred while fetching {target}: {detail}"


class WeatherCoordinator:
    """Issues weather/forecast fetches and publishes their outcome as observable state.

    Each command runs as its own task and writes only its target field(s) plus
    ``error_message``. Concurrent fetches for the same field are not ordered:
    whichever completes last wins, unless ``discard_superseded`` is set, in
    which case only the most recently issued fetch per field may write.
    """

    def __init__(
        self,
        *,
        client: WeatherClient,
        icon_url_template: str = OPENWEATHER_ICON_URL_TEMPLATE,
        discard_superseded: bool = False,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._icon_url_template = icon_url_template
        self._discard_superseded = discard_superseded
        self._owns_client = owns_client

        self.current_weather: Observable[WeatherSnapshot | None] = Observable(
            None, name="current_weather"
        )
        self.forecast: Observable[tuple[ForecastEntry, ...]] = Observable(
            (), name="forecast"
        )
        self.icon_url: Observable[str | None] = Observable(None, name="icon_url")
        self.error_message: Observable[str | None] = Observable(None, name="error_message")
        self.weather_status: Observable[FetchStatus] = Observable(
            FetchStatus.IDLE, name="weather_status"
        )
        self.forecast_status: Observable[FetchStatus] = Observable(
            FetchStatus.IDLE, name="forecast_status"
        )

        self._tasks: set[asyncio.Task[None]] = set()
        self._issued: dict[str, int] = {WEATHER: 0, FORECAST: 0}
        self._in_flight: dict[str, int] = {WEATHER: 0, FORECAST: 0}
        self._outcome: dict[str, FetchStatus] = {
            WEATHER: FetchStatus.IDLE,
            FORECAST: FetchStatus.IDLE,
        }

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState(
            current_weather=self.current_weather.value,
            forecast=self.forecast.value,
            icon_url=self.icon_url.value,
            error_message=self.error_message.value,
            weather_status=self.weather_status.value,
            forecast_status=self.forecast_status.value,
        )

    def fetch_weather(self, city: str, api_key: str) -> asyncio.Task[None]:
        return self._dispatch(WEATHER, self._run_weather, city, api_key)

    def fetch_forecast(self, city: str, api_key: str) -> asyncio.Task[None]:
        return self._dispatch(FORECAST, self._run_forecast, city, api_key)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.wait_idle()
        if self._owns_client:
            await self._client.aclose()

    async def _run_weather(self, city: str, api_key: str, generation: int) -> None:
        try:
            snapshot = await self._client.fetch_current_weather(city, api_key)
            icon_url = self._icon_url(snapshot.icon_code)
        except Exception as e:  # noqa: BLE001 - surfaced as error_message
            self._fail(WEATHER, generation, city, e)
            return

        if self._superseded(WEATHER, generation):
            self._finish(WEATHER, None)
            return
        self.current_weather.set(snapshot)
        # An empty code keeps whatever icon the previous snapshot produced.
        if icon_url is not None:
            self.icon_url.set(icon_url)
        self.error_message.set(None)
        self._finish(WEATHER, FetchStatus.LOADED)

    async def _run_forecast(self, city: str, api_key: str, generation: int) -> None:
        try:
            entries = await self._client.fetch_forecast(city, api_key)
        except Exception as e:  # noqa: BLE001 - surfaced as error_message
            self._fail(FORECAST, generation, city, e)
            return

        if self._superseded(FORECAST, generation):
            self._finish(FORECAST, None)
            return
        self.forecast.set(tuple(entries))
        self.error_message.set(None)
        self._finish(FORECAST, FetchStatus.LOADED)

    def _icon_url(self, icon_code: str) -> str | None:
        if not icon_code:
            return None
        return self._icon_url_template.format(icon_code=icon_code)

    def _fail(self, target: str, generation: int, city: str, error: Exception) -> None:
        if isinstance(error, FetchError):
            logger.info("Fetching %s for %r failed: %s", target, city, error.kind)
        else:
            logger.exception("Unexpected error fetching %s for %r", target, city)

        if self._superseded(target, generation):
            self._finish(target, None)
            return
        self.error_message.set(failure_message(target, error))
        self._finish(target, FetchStatus.ERROR)

    def _finish(self, target: str, outcome: FetchStatus | None) -> None:
        self._in_flight[target] -= 1
        if outcome is not None:
            self._outcome[target] = outcome
        if self._in_flight[target] == 0:
            self._status(target).set(self._outcome[target])

    def _superseded(self, target: str, generation: int) -> bool:
        if not self._discard_superseded:
            return False
        if generation == self._issued[target]:
            return False
        logger.debug("Dropping superseded %s result (generation %d)", target, generation)
        return True

    def _status(self, target: str) -> Observable[FetchStatus]:
        return self.weather_status if target == WEATHER else self.forecast_status

    def _dispatch(
        self,
        target: str,
        run: Callable[[str, str, int], Coroutine[Any, Any, None]],
        city: str,
        api_key: str,
    ) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        self._issued[target] += 1
        self._in_flight[target] += 1
        self._status(target).set(FetchStatus.LOADING)

        task = loop.create_task(
            run(city, api_key, self._issued[target]), name=f"fetch-{target}:{city}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task
