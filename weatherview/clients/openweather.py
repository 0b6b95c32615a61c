from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from weatherview.core.config import OPENWEATHER_BASE_URL
from weatherview.core.errors import (
    DeserializationFailure,
    EmptyCredentialOrCity,
    HttpStatusFailure,
    NetworkFailure,
)
from weatherview.models.weather import ForecastEntry, WeatherSnapshot
from weatherview.schemas.openweather import OwmCurrentWeather, OwmForecast

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class OpenWeatherClient:
    def __init__(
        self,
        *,
        timeout_seconds: float,
        base_url: str = OPENWEATHER_BASE_URL,
        units: str = "metric",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._units = units
        self._client = httpx.AsyncClient(
            base_url=base_url if base_url.endswith("/") else base_url + "/",
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_current_weather(self, city: str, api_key: str) -> WeatherSnapshot:
        body = await self._get("weather", city=city, api_key=api_key)
        payload = _validate(OwmCurrentWeather, body, endpoint="weather")
        return payload.to_snapshot()

    async def fetch_forecast(self, city: str, api_key: str) -> list[ForecastEntry]:
        body = await self._get("forecast", city=city, api_key=api_key)
        payload = _validate(OwmForecast, body, endpoint="forecast")
        return payload.to_entries()

    async def _get(self, endpoint: str, *, city: str, api_key: str) -> Any:
        if not city.strip() or not api_key.strip():
            raise EmptyCredentialOrCity("City name and API key must both be set")

        params = {"q": city, "appid": api_key, "units": self._units}
        try:
            resp = await self._client.get(endpoint, params=params)
        except httpx.TransportError as e:
            logger.warning("Error fetching %s for %r: %s", endpoint, city, e)
            raise NetworkFailure(str(e) or e.__class__.__name__) from e

        if not resp.is_success:
            logger.warning(
                "Failed to fetch %s for %r: %s %s",
                endpoint,
                city,
                resp.status_code,
                _api_message(resp),
            )
            raise HttpStatusFailure(resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            logger.warning("Malformed %s body for %r", endpoint, city)
            raise DeserializationFailure(f"Malformed {endpoint} response body") from e


def _validate(model: type[M], body: Any, *, endpoint: str) -> M:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        logger.warning("Unexpected %s response shape: %s", endpoint, e.error_count())
        raise DeserializationFailure(f"Unexpected {endpoint} response shape") from e


def _api_message(resp: httpx.Response) -> str:
    # OpenWeatherMap error bodies look like {"cod": "404", "message": "city not found"}.
    try:
        body = resp.json()
    except ValueError:
        return resp.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return resp.reason_phrase
