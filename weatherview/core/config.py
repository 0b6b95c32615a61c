from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5/"
OPENWEATHER_ICON_URL_TEMPLATE = "https://openweathermap.org/img/wn/{icon_code}@2x.png"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WEATHERVIEW_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO", min_length=4, max_length=8)

    cors_origins: list[str] = Field(default_factory=list)
    trusted_hosts: list[str] = Field(default_factory=lambda: ["localhost", "127.0.0.1"])

    openweather_base_url: str = Field(default=OPENWEATHER_BASE_URL, min_length=8)
    openweather_units: str = Field(default="metric", pattern=r"^(standard|metric|imperial)$")
    openweather_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)
    icon_url_template: str = Field(default=OPENWEATHER_ICON_URL_TEMPLATE, min_length=10)

    preferences_path: Path | None = Field(default=None)
    default_hometown: str = Field(default="", max_length=128)
    default_api_key: str = Field(default="", max_length=128)

    discard_superseded_fetches: bool = Field(default=False)
    hometown_watch_enabled: bool = Field(default=True)

    @field_validator("icon_url_template")
    @classmethod
    def _icon_template_formats(cls, v: str) -> str:
        try:
            v.format(icon_code="01d")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError("icon_url_template may only reference {icon_code}") from e
        return v

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


def load_settings() -> Settings:
    settings = Settings()
    if not settings.cors_origins:
        settings.cors_origins = ["http://localhost:3000", "http://localhost:8000"]
    return settings
