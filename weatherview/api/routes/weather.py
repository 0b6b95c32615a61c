from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from weatherview.api.deps import get_coordinator, get_preferences_store
from weatherview.repositories.preferences import PreferencesStore
from weatherview.schemas.weather import CoordinatorStateRead, FetchAccepted
from weatherview.services.coordinator import WeatherCoordinator

router = APIRouter(prefix="/weather")

Coordinator = Annotated[WeatherCoordinator, Depends(get_coordinator)]
Store = Annotated[PreferencesStore, Depends(get_preferences_store)]
CityQuery = Annotated[str, Query(max_length=128)]
ApiKeyQuery = Annotated[str | None, Query(max_length=128)]


def _resolve(store: PreferencesStore, city: str, api_key: str | None) -> tuple[str, str]:
    # A blank city falls back to the saved hometown; the client rejects it if that is blank too.
    prefs = store.get()
    return city.strip() or prefs.hometown, api_key if api_key is not None else prefs.api_key


@router.get("/state", response_model=CoordinatorStateRead)
async def weather_state(coordinator: Coordinator) -> CoordinatorStateRead:
    return CoordinatorStateRead.from_state(coordinator.state)


@router.post(
    "/current", response_model=FetchAccepted, status_code=status.HTTP_202_ACCEPTED
)
async def fetch_current_weather(
    coordinator: Coordinator,
    store: Store,
    city: CityQuery = "",
    api_key: ApiKeyQuery = None,
) -> FetchAccepted:
    city, api_key = _resolve(store, city, api_key)
    coordinator.fetch_weather(city, api_key)
    return FetchAccepted(target="weather", city=city, status=coordinator.weather_status.value)


@router.post(
    "/forecast", response_model=FetchAccepted, status_code=status.HTTP_202_ACCEPTED
)
async def fetch_forecast(
    coordinator: Coordinator,
    store: Store,
    city: CityQuery = "",
    api_key: ApiKeyQuery = None,
) -> FetchAccepted:
    city, api_key = _resolve(store, city, api_key)
    coordinator.fetch_forecast(city, api_key)
    return FetchAccepted(target="forecast", city=city, status=coordinator.forecast_status.value)
