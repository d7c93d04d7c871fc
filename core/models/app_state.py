# -*- coding: utf-8 -*-
"""
Состояние приложения — единственный изменяемый контейнер.

Пишет в него только слой синхронизации (WeatherSync, LocationSync,
CityListCoordinator). UI читает снимки через свойства и подписывается
на изменения через add_listener(). Поля напрямую не меняются.

Инварианты:
- 0 <= selected_city_index < len(cities), если список не пуст, иначе 0
- не больше одного города с is_current_location=True
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from config import sync_config
from core.models.city import City, Position
from core.models.errors import LocationError, WeatherError
from core.models.protocols import PermissionStatus
from core.models.weather_response import DailyWeather, HourlyWeather, Weather

logger = logging.getLogger("app_state")

StateListener = Callable[[str], None]


@dataclass(frozen=True)
class AppSettings:
    temperature_unit: str = sync_config.DEFAULT_TEMPERATURE_UNIT  # "metric" | "imperial"
    refresh_interval: float = sync_config.DEFAULT_REFRESH_INTERVAL_SEC
    auto_refresh_enabled: bool = sync_config.DEFAULT_AUTO_REFRESH
    location_services_enabled: bool = True

    @property
    def temperature_symbol(self) -> str:
        return "°C" if self.temperature_unit == "metric" else "°F"


class AppState:
    def __init__(self):
        # Погода
        self._cities: List[City] = []
        self._weather: Dict[str, Weather] = {}
        self._hourly: Dict[str, Tuple[HourlyWeather, ...]] = {}
        self._daily: Dict[str, Tuple[DailyWeather, ...]] = {}
        self._is_loading = False
        self._weather_error: Optional[WeatherError] = None
        self._last_refresh: Optional[datetime] = None
        self._selected_city_index = 0

        # Геолокация
        self._current_location: Optional[Position] = None
        self._authorization_status = PermissionStatus.UNDETERMINED
        self._is_requesting_location = False
        self._location_error: Optional[LocationError] = None

        self._settings = AppSettings()
        self._listeners: List[StateListener] = []

    # === ПОДПИСКА ===
    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, field_name: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(field_name)
            except Exception as e:
                logger.error("Ошибка в подписчике состояния (%s): %s", field_name, e, exc_info=True)

    # === СНИМКИ ДЛЯ ЧТЕНИЯ ===
    @property
    def cities(self) -> Tuple[City, ...]:
        return tuple(self._cities)

    @property
    def weather_data(self) -> Mapping[str, Weather]:
        return MappingProxyType(dict(self._weather))

    @property
    def hourly_forecasts(self) -> Mapping[str, Tuple[HourlyWeather, ...]]:
        return MappingProxyType(dict(self._hourly))

    @property
    def daily_forecasts(self) -> Mapping[str, Tuple[DailyWeather, ...]]:
        return MappingProxyType(dict(self._daily))

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def weather_error(self) -> Optional[WeatherError]:
        return self._weather_error

    @property
    def last_refresh(self) -> Optional[datetime]:
        return self._last_refresh

    @property
    def selected_city_index(self) -> int:
        return self._selected_city_index

    @property
    def selected_city(self) -> Optional[City]:
        if not self._cities:
            return None
        return self._cities[self._selected_city_index]

    @property
    def current_location(self) -> Optional[Position]:
        return self._current_location

    @property
    def authorization_status(self) -> PermissionStatus:
        return self._authorization_status

    @property
    def has_location_permission(self) -> bool:
        return self._authorization_status is PermissionStatus.GRANTED

    @property
    def is_requesting_location(self) -> bool:
        return self._is_requesting_location

    @property
    def location_error(self) -> Optional[LocationError]:
        return self._location_error

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def cities_with_weather(self) -> List[Tuple[City, Optional[Weather]]]:
        return [(city, self._weather.get(city.id)) for city in self._cities]

    @property
    def is_empty(self) -> bool:
        return not self._cities

    def current_location_city(self) -> Optional[City]:
        return next((c for c in self._cities if c.is_current_location), None)

    def index_of(self, city_id: str) -> Optional[int]:
        for i, city in enumerate(self._cities):
            if city.id == city_id:
                return i
        return None

    def find_city(self, city_id: str) -> Optional[City]:
        index = self.index_of(city_id)
        return self._cities[index] if index is not None else None

    # === СПИСОК ГОРОДОВ ===
    def set_cities(self, cities: List[City]) -> None:
        self._cities = list(cities)
        self._clamp_selection()
        self._notify("cities")

    def append_city(self, city: City) -> None:
        self._cities.append(city)
        self._notify("cities")

    def replace_city(self, city: City) -> bool:
        """Подменяет город с тем же id. False — такого города нет."""
        index = self.index_of(city.id)
        if index is None:
            return False
        self._cities[index] = city
        self._notify("cities")
        return True

    def remove_city(self, city_id: str) -> Optional[int]:
        """Удаляет город и его погоду. Возвращает бывшую позицию."""
        index = self.index_of(city_id)
        if index is None:
            return None
        del self._cities[index]
        self.evict_city_data(city_id)
        self._clamp_selection()
        self._notify("cities")
        return index

    def move_city_to_front(self, city_id: str) -> None:
        index = self.index_of(city_id)
        if index is None or index == 0:
            return
        city = self._cities.pop(index)
        self._cities.insert(0, city)
        self._notify("cities")

    def clear_cities(self) -> None:
        self._cities.clear()
        self._weather.clear()
        self._hourly.clear()
        self._daily.clear()
        self._selected_city_index = 0
        self._notify("cities")

    # === ПОГОДА ===
    def set_weather(self, weather: Weather) -> None:
        self._weather[weather.city_id] = weather
        self._notify("weather_data")

    def set_hourly_forecast(self, city_id: str, forecast: List[HourlyWeather]) -> None:
        self._hourly[city_id] = tuple(forecast)
        self._notify("hourly_forecasts")

    def set_daily_forecast(self, city_id: str, forecast: List[DailyWeather]) -> None:
        self._daily[city_id] = tuple(forecast)
        self._notify("daily_forecasts")

    def evict_city_data(self, city_id: str) -> None:
        self._weather.pop(city_id, None)
        self._hourly.pop(city_id, None)
        self._daily.pop(city_id, None)
        self._notify("weather_data")

    def set_loading(self, is_loading: bool) -> None:
        self._is_loading = is_loading
        self._notify("is_loading")

    def set_weather_error(self, error: Optional[WeatherError]) -> None:
        # Отменённые запросы в состояние не попадают
        if error is not None and error.is_cancellation:
            return
        self._weather_error = error
        self._notify("weather_error")

    def set_last_refresh(self, moment: Optional[datetime]) -> None:
        self._last_refresh = moment
        self._notify("last_refresh")

    # === ВЫБОР ===
    def set_selected_city_index(self, index: int) -> bool:
        if not 0 <= index < len(self._cities):
            return False
        self._selected_city_index = index
        self._notify("selected_city_index")
        return True

    def _clamp_selection(self) -> None:
        clamped = max(0, min(self._selected_city_index, len(self._cities) - 1))
        if clamped != self._selected_city_index:
            self._selected_city_index = clamped
            self._notify("selected_city_index")

    # === ГЕОЛОКАЦИЯ ===
    def set_current_location(self, position: Optional[Position]) -> None:
        self._current_location = position
        self._notify("current_location")

    def set_authorization_status(self, status: PermissionStatus) -> None:
        self._authorization_status = PermissionStatus(status)
        self._notify("authorization_status")

    def set_requesting_location(self, flag: bool) -> None:
        self._is_requesting_location = flag
        self._notify("is_requesting_location")

    def set_location_error(self, error: Optional[LocationError]) -> None:
        self._location_error = error
        self._notify("location_error")

    # === НАСТРОЙКИ ===
    def update_settings(self, **changes) -> AppSettings:
        self._settings = replace(self._settings, **changes)
        self._notify("settings")
        return self._settings
