# -*- coding: utf-8 -*-
"""
Репозиторий погоды: API-клиент + кэш в SQLite + центральная БД городов.

Синхронные клиенты (requests, sqlite3) вызываются в пуле потоков через
run_in_executor, чтобы не блокировать цикл событий.
"""

import asyncio
import functools
import logging
from typing import Callable, List, Optional

from core.db.central_db import CentralDB
from core.db.local_db_weather import DAILY, HOURLY, WeatherCacheDB
from core.models.city import City
from core.models.weather_response import DailyWeather, HourlyWeather, Weather

logger = logging.getLogger("weather_repository")


class WeatherRepository:
    """
    Args:
        client: OpenWeatherMapClient или SimulatedWeatherClient
        cache_db: кэш погоды и прогнозов
        central_db: хранилище городов
        units: функция, возвращающая текущие единицы ("metric" / "imperial")
    """

    def __init__(self, client, cache_db: WeatherCacheDB, central_db: CentralDB, units: Callable[[], str] = None):
        self.client = client
        self.cache_db = cache_db
        self.central_db = central_db
        self._units = units or (lambda: "imperial")

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    # === СЕТЬ ===
    async def current_weather(self, city: City) -> Weather:
        return await self._run(
            self.client.get_current_weather, city.latitude, city.longitude, city_id=city.id, units=self._units()
        )

    async def current_weather_at(self, latitude: float, longitude: float) -> Weather:
        return await self._run(self.client.get_current_weather, latitude, longitude, units=self._units())

    async def hourly_forecast(self, city: City) -> List[HourlyWeather]:
        return await self._run(self.client.get_hourly_forecast, city.latitude, city.longitude, units=self._units())

    async def daily_forecast(self, city: City) -> List[DailyWeather]:
        return await self._run(self.client.get_daily_forecast, city.latitude, city.longitude, units=self._units())

    async def search_cities(self, query: str) -> List[City]:
        return await self._run(self.client.search_cities, query)

    # === КЭШ ===
    def cached_weather(self, city_id: str) -> Optional[Weather]:
        return self.cache_db.get_cached_weather(city_id)

    def cached_hourly_forecast(self, city_id: str) -> Optional[List[HourlyWeather]]:
        return self.cache_db.get_cached_forecast(city_id, HOURLY)

    def cached_daily_forecast(self, city_id: str) -> Optional[List[DailyWeather]]:
        return self.cache_db.get_cached_forecast(city_id, DAILY)

    def cache_weather(self, weather: Weather) -> None:
        self.cache_db.cache_weather(weather)

    def cache_hourly_forecast(self, city_id: str, forecast: List[HourlyWeather]) -> None:
        self.cache_db.cache_forecast(city_id, HOURLY, forecast)

    def cache_daily_forecast(self, city_id: str, forecast: List[DailyWeather]) -> None:
        self.cache_db.cache_forecast(city_id, DAILY, forecast)

    def evict_city_cache(self, city_id: str) -> None:
        self.cache_db.evict_city(city_id)

    def clear_cache(self) -> None:
        self.cache_db.clear()

    # === ГОРОДА ===
    async def add_city(self, city: City) -> None:
        await self._run(self.central_db.add_city, city)

    async def update_city(self, city: City) -> None:
        if not await self._run(self.central_db.update_city, city):
            logger.warning("⚠️ Город %s не найден в БД — сохраняем заново", city.name)
            await self._run(self.central_db.add_city, city)

    async def remove_city(self, city: City) -> None:
        await self._run(self.central_db.remove_city, city.id)
        self.cache_db.evict_city(city.id)

    async def list_cities(self) -> List[City]:
        return await self._run(self.central_db.get_all_cities)

    async def clear_all(self) -> None:
        await self._run(self.central_db.clear_all)
        self.cache_db.clear()
