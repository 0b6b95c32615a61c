from __future__ import annotations

from fastapi import Request

from weatherview.core.config import Settings
from weatherview.repositories.preferences import PreferencesStore
from weatherview.services.coordinator import WeatherCoordinator


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_coordinator(request: Request) -> WeatherCoordinator:
    return request.app.state.coordinator


def get_preferences_store(request: Request) -> PreferencesStore:
    return request.app.state.preferences_store
