from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from weatherview.api.router import api_router
from weatherview.clients.base import WeatherClient
from weatherview.clients.openweather import OpenWeatherClient
from weatherview.core.config import Settings, load_settings
from weatherview.core.logging_config import configure_logging
from weatherview.repositories.preferences import (
    InMemoryPreferencesStore,
    JsonFilePreferencesStore,
    PreferencesStore,
)
from weatherview.schemas.preferences import UserPreferences
from weatherview.services.coordinator import WeatherCoordinator
from weatherview.services.hometown import HometownWatcher

logger = logging.getLogger(__name__)


def create_preferences_store(settings: Settings) -> PreferencesStore:
    defaults = UserPreferences(
        hometown=settings.default_hometown, api_key=settings.default_api_key
    )
    if settings.preferences_path is not None:
        return JsonFilePreferencesStore(settings.preferences_path, defaults=defaults)
    return InMemoryPreferencesStore(defaults)


def create_app(
    settings: Settings | None = None,
    *,
    weather_client: WeatherClient | None = None,
    preferences_store: PreferencesStore | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = weather_client or OpenWeatherClient(
            base_url=settings.openweather_base_url,
            timeout_seconds=settings.openweather_timeout_seconds,
            units=settings.openweather_units,
        )
        coordinator = WeatherCoordinator(
            client=client,
            icon_url_template=settings.icon_url_template,
            discard_superseded=settings.discard_superseded_fetches,
            owns_client=True,
        )
        store = preferences_store or create_preferences_store(settings)
        watcher = HometownWatcher(store=store, coordinator=coordinator)

        app.state.settings = settings
        app.state.coordinator = coordinator
        app.state.preferences_store = store
        app.state.hometown_watcher = watcher

        if settings.hometown_watch_enabled:
            watcher.start()
        logger.info("weatherview started (env=%s)", settings.env)

        yield
        await watcher.stop()
        await coordinator.aclose()

    docs_enabled = settings.docs_enabled and not settings.is_production
    app = FastAPI(
        title="Weatherview API",
        version="0.1.0",
        debug=settings.debug,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    if settings.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response

    @app.get("/", tags=["meta"])
    def root():
        return {"name": "weatherview", "status": "ok"}

    app.include_router(api_router)
    return app
