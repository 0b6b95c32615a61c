from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from weatherview.models.weather import (
    CoordinatorState,
    FetchStatus,
    ForecastEntry,
    WeatherSnapshot,
)


def format_clock(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%H:%M")


class WeatherSnapshotRead(BaseModel):
    location_name: str
    country_code: str
    description: str
    temperature_c: float
    feels_like_c: float
    humidity_pct: int = Field(ge=0, le=100)
    wind_speed_ms: float
    sunrise_unix: int
    sunset_unix: int
    sunrise_time: str
    sunset_time: str
    icon_code: str

    @classmethod
    def from_snapshot(cls, snapshot: WeatherSnapshot) -> WeatherSnapshotRead:
        return cls.model_validate(
            {
                **snapshot.__dict__,
                "sunrise_time": format_clock(snapshot.sunrise_unix),
                "sunset_time": format_clock(snapshot.sunset_unix),
            }
        )


class ForecastEntryRead(BaseModel):
    timestamp_unix: int
    timestamp_text: str
    description: str
    temperature_c: float
    feels_like_c: float
    temp_min_c: float
    temp_max_c: float
    humidity_pct: int = Field(ge=0, le=100)
    wind_speed_ms: float
    icon_code: str

    @classmethod
    def from_entry(cls, entry: ForecastEntry) -> ForecastEntryRead:
        return cls.model_validate(entry.__dict__)


class CoordinatorStateRead(BaseModel):
    current_weather: WeatherSnapshotRead | None = None
    forecast: list[ForecastEntryRead] = Field(default_factory=list)
    icon_url: str | None = None
    error_message: str | None = None
    weather_status: FetchStatus = FetchStatus.IDLE
    forecast_status: FetchStatus = FetchStatus.IDLE

    @classmethod
    def from_state(cls, state: CoordinatorState) -> CoordinatorStateRead:
        current = state.current_weather
        return cls(
            current_weather=WeatherSnapshotRead.from_snapshot(current) if current else None,
            forecast=[ForecastEntryRead.from_entry(e) for e in state.forecast],
            icon_url=state.icon_url,
            error_message=state.error_message,
            weather_status=state.weather_status,
            forecast_status=state.forecast_status,
        )


class FetchAccepted(BaseModel):
    target: str
    city: str
    status: FetchStatus
