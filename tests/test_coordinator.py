from __future__ import annotations

import asyncio

from weatherview.core.errors import (
    DeserializationFailure,
    EmptyCredentialOrCity,
    HttpStatusFailure,
    NetworkFailure,
)
from weatherview.models.weather import FetchStatus
from weatherview.services.coordinator import WeatherCoordinator
from tests.fakes import FakeWeatherClient, make_entry, make_snapshot

KEY = "test-key-123456"
LONDON_ICON = "https://openweathermap.org/img/wn/10d@2x.png"


def _coordinator(client: FakeWeatherClient, **kwargs) -> WeatherCoordinator:
    return WeatherCoordinator(client=client, **kwargs)


def test_fetch_weather_success_sets_snapshot_icon_and_clears_error() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        coordinator.error_message.set("stale error")
        await coordinator.fetch_weather("London", KEY)

    asyncio.run(scenario())

    state = coordinator.state
    assert state.current_weather == make_snapshot("London")
    assert state.icon_url == LONDON_ICON
    assert state.error_message is None
    assert state.weather_status is FetchStatus.LOADED
    assert client.calls == [("weather", "London", KEY)]


def test_fetch_weather_returns_before_request_completes() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        client.gates["London"] = asyncio.Event()
        task = coordinator.fetch_weather("London", KEY)
        await asyncio.sleep(0)
        assert not task.done()
        assert coordinator.weather_status.value is FetchStatus.LOADING
        assert coordinator.current_weather.value is None
        client.gates["London"].set()
        await task

    asyncio.run(scenario())
    assert coordinator.current_weather.value is not None


def test_http_failure_keeps_previous_weather_and_sets_error() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        await coordinator.fetch_weather("London", KEY)
        client.weather["Atlantis"] = HttpStatusFailure(404)
        await coordinator.fetch_weather("Atlantis", KEY)

    asyncio.run(scenario())

    state = coordinator.state
    assert state.current_weather == make_snapshot("London")
    assert state.icon_url == LONDON_ICON
    assert state.error_message == (
        "Failed to fetch weather. Please check your API key or city name."
    )
    assert state.weather_status is FetchStatus.ERROR


def test_network_failure_behaves_like_http_failure() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        await coordinator.fetch_weather("London", KEY)
        await coordinator.fetch_forecast("London", KEY)
        client.weather["London"] = NetworkFailure("timed out")
        client.forecasts["London"] = NetworkFailure("timed out")
        await coordinator.fetch_weather("London", KEY)
        await coordinator.fetch_forecast("London", KEY)

    asyncio.run(scenario())

    state = coordinator.state
    assert state.current_weather == make_snapshot("London")
    assert len(state.forecast) == 2
    assert state.error_message == "An error occurred while fetching forecast: timed out"


def test_failure_before_any_success_leaves_fields_absent() -> None:
    client = FakeWeatherClient()
    client.weather["Paris"] = DeserializationFailure("Unexpected weather response shape")
    coordinator = _coordinator(client)

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_weather("Paris", KEY)))

    state = coordinator.state
    assert state.current_weather is None
    assert state.icon_url is None
    assert state.error_message == (
        "An error occurred while fetching weather: Unexpected weather response shape"
    )


def test_empty_city_reaches_client_and_reports_error() -> None:
    client = FakeWeatherClient()
    client.weather[""] = EmptyCredentialOrCity("City name and API key must both be set")
    coordinator = _coordinator(client)

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_weather("", KEY)))

    assert client.calls == [("weather", "", KEY)]
    assert coordinator.error_message.value is not None
    assert coordinator.current_weather.value is None


def test_unexpected_exception_is_recovered() -> None:
    client = FakeWeatherClient()
    client.forecasts["Oslo"] = RuntimeError("boom")
    coordinator = _coordinator(client)

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_forecast("Oslo", KEY)))

    assert coordinator.forecast.value == ()
    assert coordinator.error_message.value == (
        "An error occurred while fetching forecast: unexpected error"
    )
    assert coordinator.forecast_status.value is FetchStatus.ERROR


def test_forecast_success_replaces_sequence_in_order() -> None:
    client = FakeWeatherClient()
    first = [make_entry(100), make_entry(200)]
    second = [make_entry(300, temp=1.0), make_entry(400, temp=2.0), make_entry(500, temp=3.0)]
    coordinator = _coordinator(client)

    async def scenario() -> None:
        client.forecasts["London"] = first
        await coordinator.fetch_forecast("London", KEY)
        client.forecasts["London"] = second
        await coordinator.fetch_forecast("London", KEY)

    asyncio.run(scenario())

    assert coordinator.forecast.value == tuple(second)
    assert [e.timestamp_unix for e in coordinator.forecast.value] == [300, 400, 500]
    assert coordinator.forecast_status.value is FetchStatus.LOADED


def test_forecast_failure_leaves_forecast_unchanged() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        await coordinator.fetch_forecast("London", KEY)
        client.forecasts["London"] = HttpStatusFailure(401)
        await coordinator.fetch_forecast("London", KEY)

    asyncio.run(scenario())

    assert len(coordinator.forecast.value) == 2
    assert coordinator.error_message.value == (
        "Failed to fetch forecast. Please check your API key or city name."
    )


def test_last_completed_fetch_wins() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        client.gates["London"] = asyncio.Event()
        london = coordinator.fetch_weather("London", KEY)
        paris = coordinator.fetch_weather("Paris", KEY)
        await paris
        assert coordinator.current_weather.value.location_name == "Paris"
        assert coordinator.weather_status.value is FetchStatus.LOADING
        client.gates["London"].set()
        await london

    asyncio.run(scenario())

    assert coordinator.current_weather.value.location_name == "London"
    assert coordinator.weather_status.value is FetchStatus.LOADED


def test_discard_superseded_keeps_latest_issued_result() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client, discard_superseded=True)

    async def scenario() -> None:
        client.gates["London"] = asyncio.Event()
        london = coordinator.fetch_weather("London", KEY)
        paris = coordinator.fetch_weather("Paris", KEY)
        await paris
        client.gates["London"].set()
        await london

    asyncio.run(scenario())

    assert coordinator.current_weather.value.location_name == "Paris"
    assert coordinator.weather_status.value is FetchStatus.LOADED


def test_repeated_identical_fetch_is_idempotent() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)

    async def scenario() -> None:
        await coordinator.fetch_weather("London", KEY)
        await coordinator.fetch_forecast("London", KEY)
        first = coordinator.state
        await coordinator.fetch_weather("London", KEY)
        await coordinator.fetch_forecast("London", KEY)
        assert coordinator.state == first

    asyncio.run(scenario())
    assert len(coordinator.forecast.value) == 2


def test_empty_icon_code_keeps_previous_icon_url() -> None:
    client = FakeWeatherClient()
    client.weather["Reykjavik"] = make_snapshot("Reykjavik", icon_code="")
    coordinator = _coordinator(client)

    async def scenario() -> None:
        await coordinator.fetch_weather("London", KEY)
        await coordinator.fetch_weather("Reykjavik", KEY)

    asyncio.run(scenario())

    assert coordinator.current_weather.value.location_name == "Reykjavik"
    assert coordinator.icon_url.value == LONDON_ICON


def test_empty_icon_code_on_first_fetch_leaves_icon_absent() -> None:
    client = FakeWeatherClient()
    client.weather["Reykjavik"] = make_snapshot("Reykjavik", icon_code="")
    coordinator = _coordinator(client)

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_weather("Reykjavik", KEY)))

    assert coordinator.icon_url.value is None


def test_custom_icon_template() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client, icon_url_template="https://cdn.example/{icon_code}.png")

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_weather("London", KEY)))

    assert coordinator.icon_url.value == "https://cdn.example/10d.png"


def test_broken_icon_template_reports_error_without_partial_update() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client, icon_url_template="https://x/{icon}.png")

    async def scenario() -> None:
        coordinator.error_message.set("old")
        await _drain(coordinator, lambda: coordinator.fetch_weather("London", KEY))

    asyncio.run(scenario())

    state = coordinator.state
    assert state.current_weather is None
    assert state.icon_url is None
    assert state.error_message == "An error occurred while fetching weather: unexpected error"
    assert state.weather_status is FetchStatus.ERROR

def test_weather_and_forecast_fetch_independently() -> None:
    client = FakeWeatherClient()
    client.forecasts["London"] = HttpStatusFailure(500)
    coordinator = _coordinator(client)

    async def scenario() -> None:
        coordinator.fetch_forecast("London", KEY)
        coordinator.fetch_weather("London", KEY)
        await coordinator.wait_idle()

    asyncio.run(scenario())

    # The weather fetch completes after the forecast failure and clears the message.
    assert coordinator.current_weather.value is not None
    assert coordinator.forecast.value == ()
    assert coordinator.error_message.value is None
    assert coordinator.weather_status.value is FetchStatus.LOADED
    assert coordinator.forecast_status.value is FetchStatus.ERROR


def test_observers_see_changes_in_applied_order() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client)
    seen: list[tuple[str, object]] = []
    for field in (coordinator.current_weather, coordinator.icon_url, coordinator.error_message):
        field.subscribe(lambda value, name=field.name: seen.append((name, value)))

    asyncio.run(_drain(coordinator, lambda: coordinator.fetch_weather("London", KEY)))

    assert [name for name, _ in seen] == ["current_weather", "icon_url", "error_message"]


def test_aclose_waits_for_in_flight_and_closes_owned_client() -> None:
    client = FakeWeatherClient()
    coordinator = _coordinator(client, owns_client=True)

    async def scenario() -> None:
        client.gates["London"] = asyncio.Event()
        coordinator.fetch_weather("London", KEY)
        asyncio.get_running_loop().call_later(0.01, client.gates["London"].set)
        await coordinator.aclose()

    asyncio.run(scenario())

    assert client.closed
    assert coordinator.current_weather.value is not None


async def _drain(coordinator: WeatherCoordinator, dispatch) -> None:
    dispatch()
    await coordinator.wait_idle()
