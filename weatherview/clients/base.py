from __future__ import annotations

from typing import Protocol

from weatherview.models.weather import ForecastEntry, WeatherSnapshot


class WeatherClient(Protocol):
    async def aclose(self) -> None: ...

    async def fetch_current_weather(self, city: str, api_key: str) -> WeatherSnapshot: ...

    async def fetch_forecast(self, city: str, api_key: str) -> list[ForecastEntry]: ...
