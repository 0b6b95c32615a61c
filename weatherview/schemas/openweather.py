"""Pydantic models for the OpenWeatherMap 2.5 ``weather`` and ``forecast`` bodies.

Only the fields the application reads are declared; everything else in the
payload is ignored.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from weatherview.models.weather import ForecastEntry, WeatherSnapshot

# Latest instant datetime can represent (9999-12-31T23:59:59Z).
MAX_UNIX_TIMESTAMP = 253_402_300_799


class OwmCondition(BaseModel):
    description: str = ""
    icon: str = ""


class OwmMain(BaseModel):
    temp: float
    feels_like: float
    humidity: int = Field(ge=0, le=100)
    temp_min: float | None = None
    temp_max: float | None = None


class OwmWind(BaseModel):
    speed: float = Field(ge=0)


class OwmSys(BaseModel):
    country: str = ""
    sunrise: int = Field(default=0, ge=0, le=MAX_UNIX_TIMESTAMP)
    sunset: int = Field(default=0, ge=0, le=MAX_UNIX_TIMESTAMP)


class OwmCurrentWeather(BaseModel):
    name: str
    weather: list[OwmCondition] = Field(default_factory=list)
    main: OwmMain
    wind: OwmWind
    sys: OwmSys = Field(default_factory=OwmSys)

    def to_snapshot(self) -> WeatherSnapshot:
        condition = self.weather[0] if self.weather else OwmCondition()
        return WeatherSnapshot(
            location_name=self.name,
            country_code=self.sys.country,
            description=condition.description,
            temperature_c=self.main.temp,
            feels_like_c=self.main.feels_like,
            humidity_pct=self.main.humidity,
            wind_speed_ms=self.wind.speed,
            sunrise_unix=self.sys.sunrise,
            sunset_unix=self.sys.sunset,
            icon_code=condition.icon,
        )


class OwmForecastItem(BaseModel):
    dt: int = Field(ge=0, le=MAX_UNIX_TIMESTAMP)
    main: OwmMain
    weather: list[OwmCondition] = Field(default_factory=list)
    wind: OwmWind
    dt_txt: str = ""

    def to_entry(self) -> ForecastEntry:
        condition = self.weather[0] if self.weather else OwmCondition()
        temp = self.main.temp
        return ForecastEntry(
            timestamp_unix=self.dt,
            description=condition.description,
            temperature_c=temp,
            feels_like_c=self.main.feels_like,
            temp_min_c=self.main.temp_min if self.main.temp_min is not None else temp,
            temp_max_c=self.main.temp_max if self.main.temp_max is not None else temp,
            humidity_pct=self.main.humidity,
            wind_speed_ms=self.wind.speed,
            icon_code=condition.icon,
            timestamp_text=self.dt_txt,
        )


class OwmForecast(BaseModel):
    items: list[OwmForecastItem] = Field(alias="list")

    def to_entries(self) -> list[ForecastEntry]:
        return [item.to_entry() for item in self.items]
