from __future__ import annotations

import enum
from dataclasses import dataclass, field


class FetchStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class WeatherSnapshot:
    location_name: str
    country_code: str
    description: str
    temperature_c: float
    feels_like_c: float
    humidity_pct: int
    wind_speed_ms: float
    sunrise_unix: int
    sunset_unix: int
    icon_code: str = ""


@dataclass(frozen=True)
class ForecastEntry:
    timestamp_unix: int
    description: str
    temperature_c: float
    feels_like_c: float
    temp_min_c: float
    temp_max_c: float
    humidity_pct: int
    wind_speed_ms: float
    icon_code: str = ""
    timestamp_text: str = ""


@dataclass(frozen=True)
class CoordinatorState:
    current_weather: WeatherSnapshot | None = None
    forecast: tuple[ForecastEntry, ...] = field(default_factory=tuple)
    icon_url: str | None = None
    error_message: str | None = None
    weather_status: FetchStatus = FetchStatus.IDLE
    forecast_status: FetchStatus = FetchStatus.IDLE
