from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from weatherview.core.config import Settings
from weatherview.factory import create_app
from weatherview.repositories.preferences import InMemoryPreferencesStore
from weatherview.schemas.preferences import UserPreferences
from tests.fakes import FakeWeatherClient


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        cors_origins=["http://localhost"],
        trusted_hosts=["testserver", "localhost"],
        openweather_timeout_seconds=1.0,
        hometown_watch_enabled=False,
    )


@pytest.fixture()
def fake_client() -> FakeWeatherClient:
    return FakeWeatherClient()


@pytest.fixture()
def preferences_store() -> InMemoryPreferencesStore:
    return InMemoryPreferencesStore(UserPreferences(hometown="Berlin", api_key="test-key-123456"))


@pytest.fixture()
def client(
    settings: Settings,
    fake_client: FakeWeatherClient,
    preferences_store: InMemoryPreferencesStore,
) -> TestClient:
    app = create_app(
        settings, weather_client=fake_client, preferences_store=preferences_store
    )
    with TestClient(app) as client:
        yield client
