# -*- coding: utf-8 -*-
"""
Тесты для core/weather_sync.py
"""
from conftest import make_city, make_weather

from core.models.errors import WeatherError, WeatherErrorKind
from core.weather_sync import WeatherSync


async def test_retry_succeeds_on_third_attempt(graph):
    city = make_city()
    graph.state.set_cities([city])
    graph.source.failures[city.id] = [WeatherError.network(), WeatherError.network()]

    await graph.weather_sync.refresh_weather(city)

    assert len(graph.source.calls) == 3
    assert graph.sleep.delays == [1, 2]
    assert graph.state.weather_error is None
    assert graph.state.weather_data[city.id].city_id == city.id
    assert graph.source.cached_weather(city.id) is not None
    print("✅ test_retry_succeeds_on_third_attempt passed")


async def test_cancellation_on_first_attempt_is_silent(graph):
    city = make_city()
    graph.source.failures[city.id] = [WeatherError.cancelled()]

    await graph.weather_sync.refresh_weather(city)

    assert graph.source.calls == [city.id]
    assert graph.sleep.delays == []
    assert graph.state.weather_error is None
    assert city.id not in graph.state.weather_data


async def test_city_not_found_stops_and_surfaces(graph):
    city = make_city()
    graph.source.failures[city.id] = [WeatherError.not_found(city.name), WeatherError.network()]

    await graph.weather_sync.refresh_weather(city)

    assert len(graph.source.calls) == 1
    assert graph.state.weather_error.kind is WeatherErrorKind.CITY_NOT_FOUND


async def test_api_key_invalid_stops_and_surfaces(graph):
    city = make_city()
    graph.source.failures[city.id] = [WeatherError(WeatherErrorKind.API_KEY_INVALID)]

    await graph.weather_sync.refresh_weather(city)

    assert len(graph.source.calls) == 1
    assert graph.state.weather_error.kind is WeatherErrorKind.API_KEY_INVALID


async def test_last_error_surfaced_after_three_failures(graph):
    city = make_city()
    graph.source.failures[city.id] = [
        WeatherError.network(),
        WeatherError.network(),
        WeatherError(WeatherErrorKind.API_QUOTA_EXCEEDED),
    ]

    await graph.weather_sync.refresh_weather(city)

    assert len(graph.source.calls) == 3
    assert graph.state.weather_error.kind is WeatherErrorKind.API_QUOTA_EXCEEDED


async def test_untyped_exception_is_wrapped_and_retried(graph):
    city = make_city()
    graph.source.failures[city.id] = [RuntimeError("boom")]

    await graph.weather_sync.refresh_weather(city)

    assert len(graph.source.calls) == 2
    assert graph.state.weather_error is None


async def test_untyped_exceptions_surface_as_unknown_error(graph):
    city = make_city()
    graph.source.failures[city.id] = [RuntimeError("boom")] * 3

    await graph.weather_sync.refresh_weather(city)

    assert graph.state.weather_error.kind is WeatherErrorKind.UNKNOWN_ERROR


async def test_cache_hit_skips_network(graph):
    city = make_city()
    graph.source.weather_cache[city.id] = make_weather(city.id, temperature=3.0)

    await graph.weather_sync.refresh_weather(city)

    assert graph.source.calls == []
    assert graph.state.weather_data[city.id].temperature == 3.0


async def test_newer_request_supersedes_older_during_backoff(app_state, fake_source):
    city = make_city()
    fake_source.failures[city.id] = [WeatherError.network()]
    delays = []

    async def sleep(delay):
        delays.append(delay)
        # Пока старый запрос ждёт паузу, приходит новый
        if len(delays) == 1:
            await sync.refresh_weather(city)

    sync = WeatherSync(fake_source, app_state, sleep=sleep)
    await sync.refresh_weather(city)

    # Старый: попытка 1 (ошибка) → пауза; новый: попытка 1 (успех); старый больше не ходит в сеть
    assert len(fake_source.calls) == 2
    assert delays == [1]
    assert app_state.weather_error is None
    assert city.id in app_state.weather_data


async def test_superseded_failure_is_treated_as_cancellation(app_state, fake_source, recording_sleep):
    city = make_city()
    sync = WeatherSync(fake_source, app_state, sleep=recording_sleep)
    fake_source.failures[city.id] = [WeatherError.not_found(city.name)]

    def start_newer_request(_city):
        # Новый запрос по тому же городу стартовал, пока старый в сети
        sync._begin_request("weather", city.id)

    fake_source.on_call = start_newer_request
    await sync.refresh_weather(city)

    assert app_state.weather_error is None


async def test_refresh_all_weather_isolates_failures(graph):
    cities = [make_city("A"), make_city("B"), make_city("C")]
    graph.state.set_cities(cities)
    # Успешный ответ сбрасывает ошибку, поэтому падает последний город
    graph.source.failures[cities[2].id] = [WeatherError.not_found("C")]
    loading = []
    graph.state.add_listener(lambda field: loading.append(graph.state.is_loading) if field == "is_loading" else None)

    await graph.weather_sync.refresh_all_weather()

    assert set(graph.state.weather_data) == {cities[0].id, cities[1].id}
    assert graph.state.weather_error.kind is WeatherErrorKind.CITY_NOT_FOUND
    assert graph.state.last_refresh is not None
    assert loading == [True, False]
    assert not graph.state.is_loading


async def test_backoff_delay_sequence(app_state, fake_source):
    sync = WeatherSync(fake_source, app_state, retry_base_delay=1)
    assert [sync.backoff_delay(n) for n in (1, 2, 3)] == [0.0, 1, 2]


async def test_hourly_forecast_fetched_then_cached(graph):
    city = make_city()

    await graph.weather_sync.load_hourly_forecast(city)
    await graph.weather_sync.load_hourly_forecast(city)

    assert graph.source.forecast_calls == [f"hourly:{city.id}"]
    assert len(graph.state.hourly_forecasts[city.id]) == 3
    assert len(graph.source.hourly_cache[city.id]) == 3


async def test_daily_forecast_cancellation_is_silent(graph):
    city = make_city()

    async def cancelled(_city):
        raise WeatherError.cancelled()

    graph.source.daily_forecast = cancelled
    await graph.weather_sync.load_daily_forecast(city)

    assert graph.state.weather_error is None
    assert city.id not in graph.state.daily_forecasts


async def test_daily_forecast_error_is_surfaced(graph):
    city = make_city()

    async def failing(_city):
        raise WeatherError(WeatherErrorKind.MALFORMED_RESPONSE)

    graph.source.daily_forecast = failing
    await graph.weather_sync.load_daily_forecast(city)

    assert graph.state.weather_error.kind is WeatherErrorKind.MALFORMED_RESPONSE


def test_clear_cache_on_empty_cache_is_noop(graph):
    graph.weather_sync.clear_cache()
    graph.weather_sync.clear_cache()
    assert graph.source.weather_cache == {}


async def test_clear_all_data(graph):
    city = make_city()
    graph.source.stored.append(city)
    graph.state.set_cities([city])
    await graph.weather_sync.refresh_all_weather()

    await graph.weather_sync.clear_all_data()

    assert graph.state.is_empty
    assert graph.state.weather_data == {}
    assert graph.state.last_refresh is None
    assert graph.source.stored == []
    assert graph.source.weather_cache == {}


async def test_evict_city_purges_state_and_cache(graph):
    city = make_city()
    graph.state.set_cities([city])
    await graph.weather_sync.refresh_weather(city)
    await graph.weather_sync.load_daily_forecast(city)

    graph.weather_sync.evict_city(city.id)

    assert city.id not in graph.state.weather_data
    assert city.id not in graph.state.daily_forecasts
    assert graph.source.cached_weather(city.id) is None


async def test_evict_during_request_discards_result_and_forgets_city(app_state, fake_source, recording_sleep):
    city = make_city()
    sync = WeatherSync(fake_source, app_state, sleep=recording_sleep)
    # Город удалён, пока запрос погоды в сети
    fake_source.on_call = lambda _city: sync.evict_city(city.id)

    await sync.refresh_weather(city)

    assert city.id not in app_state.weather_data
    assert fake_source.cached_weather(city.id) is None
    assert not any(key[1] == city.id for key in sync._generations)


async def test_explicit_attempt_count_is_respected(app_state, fake_source, recording_sleep):
    city = make_city()
    fake_source.failures[city.id] = [WeatherError.network()]

    await WeatherSync(fake_source, app_state, sleep=recording_sleep, max_attempts=0).refresh_weather(city)
    assert fake_source.calls == []

    await WeatherSync(fake_source, app_state, sleep=recording_sleep, max_attempts=1).refresh_weather(city)
    assert fake_source.calls == [city.id]
    assert recording_sleep.delays == []
    assert app_state.weather_error.kind is WeatherErrorKind.NETWORK_FAILURE


async def test_retry_last_failed_operation(graph):
    city = make_city()
    graph.state.set_cities([city])

    await graph.weather_sync.retry_last_failed_operation()
    assert graph.source.calls == []

    graph.state.set_weather_error(WeatherError.network())
    await graph.weather_sync.retry_last_failed_operation()
    assert graph.source.calls == [city.id]
    assert graph.state.weather_error is None
