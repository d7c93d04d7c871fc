# -*- coding: utf-8 -*-
"""
Контракты внешних сервисов, с которыми работает слой синхронизации.

Реализации: core/weather_repository.py, core/utils/location_provider.py,
core/utils/coordinate_manager.py, core/db/settings_db.py.
"""

from enum import Enum
from typing import Callable, List, Optional, Protocol, Tuple

from core.models.city import City, Position
from core.models.weather_response import DailyWeather, HourlyWeather, Weather


class PermissionStatus(str, Enum):
    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"
    RESTRICTED = "restricted"


class WeatherSource(Protocol):
    # Сеть: ошибки — только WeatherError
    async def current_weather(self, city: City) -> Weather: ...
    async def current_weather_at(self, latitude: float, longitude: float) -> Weather: ...
    async def hourly_forecast(self, city: City) -> List[HourlyWeather]: ...
    async def daily_forecast(self, city: City) -> List[DailyWeather]: ...
    async def search_cities(self, query: str) -> List[City]: ...

    # Кэш (best effort, не бросает)
    def cached_weather(self, city_id: str) -> Optional[Weather]: ...
    def cached_hourly_forecast(self, city_id: str) -> Optional[List[HourlyWeather]]: ...
    def cached_daily_forecast(self, city_id: str) -> Optional[List[DailyWeather]]: ...
    def cache_weather(self, weather: Weather) -> None: ...
    def cache_hourly_forecast(self, city_id: str, forecast: List[HourlyWeather]) -> None: ...
    def cache_daily_forecast(self, city_id: str, forecast: List[DailyWeather]) -> None: ...
    def evict_city_cache(self, city_id: str) -> None: ...
    def clear_cache(self) -> None: ...

    # Хранилище городов: ошибки — WeatherError(persistence_failure)
    async def add_city(self, city: City) -> None: ...
    async def update_city(self, city: City) -> None: ...
    async def remove_city(self, city: City) -> None: ...
    async def list_cities(self) -> List[City]: ...
    async def clear_all(self) -> None: ...


class LocationSource(Protocol):
    def authorization_status(self) -> PermissionStatus: ...
    async def request_permission(self) -> None: ...
    async def current_location(self) -> Position: ...
    def start_monitoring(self, callback: Callable[[Position], None]) -> None: ...
    def stop_monitoring(self) -> None: ...


class Geocoder(Protocol):
    async def reverse_geocode(self, position: Position) -> Tuple[str, str]: ...


class SettingsStore(Protocol):
    def get_last_selected_city_index(self) -> int: ...
    def set_last_selected_city_index(self, index: int) -> None: ...
    def get_home_city_id(self) -> Optional[str]: ...
    def set_home_city_id(self, city_id: Optional[str]) -> None: ...
    def get_temperature_unit(self) -> str: ...
    def set_temperature_unit(self, unit: str) -> None: ...
    def get_auto_refresh_enabled(self) -> bool: ...
    def set_auto_refresh_enabled(self, enabled: bool) -> None: ...
