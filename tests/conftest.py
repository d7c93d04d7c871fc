# -*- coding: utf-8 -*-
"""
Общие фикстуры: in-memory реализации внешних сервисов и собранный граф
синхронизации (AppState + EventBus + WeatherSync + LocationSync + координатор).
"""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytest

from core.city_list_coordinator import CityListCoordinator
from core.event_bus import EventBus
from core.location_sync import LocationSync
from core.models.app_state import AppState
from core.models.city import City, Position
from core.models.errors import WeatherError
from core.models.protocols import PermissionStatus
from core.models.weather_response import DailyWeather, HourlyWeather, Weather
from core.weather_sync import WeatherSync


def make_weather(city_id: str, temperature: float = 20.0) -> Weather:
    return Weather(
        city_id=city_id,
        temperature=temperature,
        feels_like=temperature - 1,
        temperature_min=temperature - 3,
        temperature_max=temperature + 3,
        description="clear sky",
        icon_code="01d",
        humidity=50,
        pressure=1013,
        wind_speed=3.5,
        wind_direction=180,
        visibility=10000,
    )


def make_city(name: str = "Testville", lat: float = 40.0, lon: float = -74.0, current: bool = False) -> City:
    return City(name=name, country_code="US", latitude=lat, longitude=lon, is_current_location=current)


class FakeWeatherSource:
    """
    WeatherSource в памяти.

    failures: city_id → список исключений, которые отдаются по очереди
    перед успешным ответом.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.failures: Dict[str, List[BaseException]] = {}
        self.on_call: Optional[Callable[[City], None]] = None
        self.weather_cache: Dict[str, Weather] = {}
        self.hourly_cache: Dict[str, List[HourlyWeather]] = {}
        self.daily_cache: Dict[str, List[DailyWeather]] = {}
        self.stored: List[City] = []
        self.list_error: Optional[WeatherError] = None
        self.write_error: Optional[WeatherError] = None
        self.forecast_calls: List[str] = []
        self.search_results: Dict[str, List[City]] = {}
        self.search_error: Optional[BaseException] = None
        self.search_gate: Optional[asyncio.Event] = None
        self.search_calls: List[str] = []

    async def current_weather(self, city: City) -> Weather:
        self.calls.append(city.id)
        if self.on_call is not None:
            self.on_call(city)
        queue = self.failures.get(city.id)
        if queue:
            raise queue.pop(0)
        return make_weather(city.id)

    async def current_weather_at(self, latitude: float, longitude: float) -> Weather:
        return make_weather("")

    async def hourly_forecast(self, city: City) -> List[HourlyWeather]:
        self.forecast_calls.append(f"hourly:{city.id}")
        return [HourlyWeather(time=datetime(2025, 1, 1, h), temperature=10 + h, icon_code="01d", description="clear")
                for h in range(3)]

    async def daily_forecast(self, city: City) -> List[DailyWeather]:
        self.forecast_calls.append(f"daily:{city.id}")
        return [DailyWeather(date=datetime(2025, 1, d).date(), temperature_min=5, temperature_max=15,
                             icon_code="02d", description="few clouds", precipitation_chance=0.2)
                for d in range(1, 4)]

    async def search_cities(self, query: str) -> List[City]:
        self.search_calls.append(query)
        if self.search_gate is not None:
            await self.search_gate.wait()
        if self.search_error is not None:
            raise self.search_error
        return list(self.search_results.get(query, []))

    def cached_weather(self, city_id: str) -> Optional[Weather]:
        return self.weather_cache.get(city_id)

    def cached_hourly_forecast(self, city_id: str):
        return self.hourly_cache.get(city_id)

    def cached_daily_forecast(self, city_id: str):
        return self.daily_cache.get(city_id)

    def cache_weather(self, weather: Weather) -> None:
        self.weather_cache[weather.city_id] = weather

    def cache_hourly_forecast(self, city_id: str, forecast) -> None:
        self.hourly_cache[city_id] = list(forecast)

    def cache_daily_forecast(self, city_id: str, forecast) -> None:
        self.daily_cache[city_id] = list(forecast)

    def evict_city_cache(self, city_id: str) -> None:
        self.weather_cache.pop(city_id, None)
        self.hourly_cache.pop(city_id, None)
        self.daily_cache.pop(city_id, None)

    def clear_cache(self) -> None:
        self.weather_cache.clear()
        self.hourly_cache.clear()
        self.daily_cache.clear()

    async def add_city(self, city: City) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.stored.append(city)

    async def update_city(self, city: City) -> None:
        self.stored = [city if c.id == city.id else c for c in self.stored]

    async def remove_city(self, city: City) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.stored = [c for c in self.stored if c.id != city.id]

    async def list_cities(self) -> List[City]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.stored)

    async def clear_all(self) -> None:
        self.stored.clear()
        self.clear_cache()


class FakeLocationSource:
    def __init__(self, status: PermissionStatus = PermissionStatus.GRANTED, position: Position = None):
        self.status = status
        self.position = position or Position(40.0, -74.0)
        self.status_after_request = PermissionStatus.GRANTED
        self.permission_requests = 0
        self.error: Optional[BaseException] = None
        self.callback = None
        self.start_calls = 0
        self.stop_calls = 0

    def authorization_status(self) -> PermissionStatus:
        return self.status

    async def request_permission(self) -> None:
        self.permission_requests += 1
        if self.status is PermissionStatus.UNDETERMINED:
            self.status = self.status_after_request

    async def current_location(self) -> Position:
        if self.error is not None:
            raise self.error
        return self.position

    def start_monitoring(self, callback) -> None:
        self.start_calls += 1
        self.callback = callback

    def stop_monitoring(self) -> None:
        self.stop_calls += 1
        self.callback = None

    def emit(self, position: Position) -> None:
        """Имитирует обновление позиции от системы."""
        self.callback(position)


class FakeGeocoder:
    """gate: если задан, каждый запрос ждёт gate.set()."""

    def __init__(self, place=("Hoboken", "US")):
        self.place = place
        self.error: Optional[BaseException] = None
        self.gate: Optional[asyncio.Event] = None
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def reverse_geocode(self, position: Position):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.error is not None:
                raise self.error
            return self.place
        finally:
            self.in_flight -= 1


class FakeSettingsStore:
    def __init__(self, last_selected_city_index: int = 0, home_city_id: str = None):
        self.last_selected_city_index = last_selected_city_index
        self.home_city_id = home_city_id
        self.temperature_unit = "imperial"
        self.auto_refresh_enabled = True
        self.index_writes: List[int] = []

    def get_last_selected_city_index(self) -> int:
        return self.last_selected_city_index

    def set_last_selected_city_index(self, index: int) -> None:
        self.last_selected_city_index = index
        self.index_writes.append(index)

    def get_home_city_id(self):
        return self.home_city_id

    def set_home_city_id(self, city_id) -> None:
        self.home_city_id = city_id

    def get_temperature_unit(self) -> str:
        return self.temperature_unit

    def set_temperature_unit(self, unit: str) -> None:
        self.temperature_unit = unit

    def get_auto_refresh_enabled(self) -> bool:
        return self.auto_refresh_enabled

    def set_auto_refresh_enabled(self, enabled: bool) -> None:
        self.auto_refresh_enabled = enabled


class RecordingSleep:
    """Замена asyncio.sleep: запоминает паузы и не ждёт."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@dataclass
class SyncGraph:
    state: AppState
    source: FakeWeatherSource
    location: FakeLocationSource
    geocoder: FakeGeocoder
    settings: FakeSettingsStore
    sleep: RecordingSleep
    bus: EventBus
    weather_sync: WeatherSync
    location_sync: LocationSync
    coordinator: CityListCoordinator


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fake_source():
    return FakeWeatherSource()


@pytest.fixture
def app_state():
    return AppState()


@pytest.fixture
def graph(app_state, fake_source, recording_sleep):
    location = FakeLocationSource()
    geocoder = FakeGeocoder()
    settings = FakeSettingsStore()
    bus = EventBus()
    weather_sync = WeatherSync(fake_source, app_state, sleep=recording_sleep)
    location_sync = LocationSync(location, geocoder, app_state, bus, sleep=recording_sleep)
    coordinator = CityListCoordinator(fake_source, settings, app_state, weather_sync, location_sync, geocoder, bus)
    return SyncGraph(app_state, fake_source, location, geocoder, settings, recording_sleep,
                     bus, weather_sync, location_sync, coordinator)
