# -*- coding: utf-8 -*-
"""
Синхронизация погоды: кэш → сеть с повторами → состояние.

Политика запроса погоды для города:
1. Есть запись в кэше — берём её, в сеть не ходим
2. Иначе до WEATHER_MAX_ATTEMPTS попыток; перед попыткой N (N >= 2)
   ждём base_delay * 2^(N-2) секунд (1с, 2с)
3. Отмена (запрос вытеснен более новым) — тихо выходим
4. city_not_found / api_key_invalid — выходим и показываем ошибку
5. Остальное — повторяем; после последней неудачи показываем ошибку

Вытеснение: каждый запрос по городу получает номер поколения. Если пока
мы ждали ответа или паузы пришёл более новый запрос — наш результат
выбрасывается, а ошибка считается отменой.
"""

import asyncio
import itertools
import logging
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from config import sync_config
from core.models.app_state import AppState
from core.models.city import City
from core.models.errors import WeatherError
from core.models.protocols import WeatherSource
from core.utils.error_handler import RetryDecision, as_weather_error, classify_error

logger = logging.getLogger("weather_sync")

SleepFunc = Callable[[float], Awaitable[None]]

_WEATHER = "weather"
_HOURLY = "hourly"
_DAILY = "daily"


class WeatherSync:
    def __init__(
        self,
        source: WeatherSource,
        app_state: AppState,
        sleep: SleepFunc = asyncio.sleep,
        max_attempts: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        self._source = source
        self._state = app_state
        self._sleep = sleep
        self._max_attempts = sync_config.WEATHER_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self._base_delay = sync_config.WEATHER_RETRY_BASE_DELAY_SEC if retry_base_delay is None else retry_base_delay
        self._generations: Dict[Tuple[str, str], int] = {}
        # Номера поколений не повторяются, даже после evict_city
        self._generation_counter = itertools.count(1)

    # === ВЫТЕСНЕНИЕ ЗАПРОСОВ ===
    def _begin_request(self, kind: str, city_id: str) -> int:
        generation = next(self._generation_counter)
        self._generations[(kind, city_id)] = generation
        return generation

    def _is_superseded(self, kind: str, city_id: str, generation: int) -> bool:
        return self._generations.get((kind, city_id)) != generation

    def backoff_delay(self, attempt: int) -> float:
        """Пауза перед попыткой `attempt` (1-based); первая попытка — без паузы."""
        if attempt <= 1:
            return 0.0
        return self._base_delay * 2 ** (attempt - 2)

    # === ТЕКУЩАЯ ПОГОДА ===
    async def refresh_weather(self, city: City) -> None:
        generation = self._begin_request(_WEATHER, city.id)

        cached = self._source.cached_weather(city.id)
        if cached is not None:
            logger.debug("💾 Кэш погоды найден для %s", city.name)
            self._state.set_weather(cached)
            return

        last_error: Optional[WeatherError] = None
        for attempt in range(1, self._max_attempts + 1):
            if attempt > 1:
                delay = self.backoff_delay(attempt)
                logger.info("🔄 Повтор запроса погоды для %s через %.0fс (попытка %d/%d)",
                            city.name, delay, attempt, self._max_attempts)
                await self._sleep(delay)
                if self._is_superseded(_WEATHER, city.id, generation):
                    logger.debug("Запрос погоды для %s вытеснен во время паузы", city.name)
                    return

            try:
                weather = await self._source.current_weather(city)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                error = as_weather_error(e)
                if self._is_superseded(_WEATHER, city.id, generation):
                    error = WeatherError.cancelled()

                decision = classify_error(error)
                if decision is RetryDecision.STOP_SILENT:
                    logger.debug("Запрос погоды для %s отменён — ошибку не показываем", city.name)
                    return
                if decision is RetryDecision.STOP_SURFACED:
                    logger.error("❌ Погода для %s: %s (повтор не поможет)", city.name, error.kind.value)
                    self._state.set_weather_error(error)
                    return

                last_error = error
                logger.warning("⚠️ Погода для %s: попытка %d/%d не удалась: %r",
                               city.name, attempt, self._max_attempts, error)
                continue

            if self._is_superseded(_WEATHER, city.id, generation):
                logger.debug("Ответ для %s устарел — его заменит более новый запрос", city.name)
                return

            if weather.city_id != city.id:
                weather = replace(weather, city_id=city.id)
            self._state.set_weather(weather)
            self._source.cache_weather(weather)
            self._state.set_weather_error(None)
            logger.info("✅ Погода обновлена для %s (попытка %d)", city.name, attempt)
            return

        if last_error is not None:
            logger.error("❌ Все попытки запроса погоды для %s исчерпаны: %r", city.name, last_error)
            self._state.set_weather_error(last_error)

    async def refresh_all_weather(self) -> None:
        """Параллельно обновляет погоду для всех городов и ждёт завершения."""
        self._state.set_loading(True)
        self._state.set_weather_error(None)
        cities = self._state.cities
        logger.info("🌐 Обновление погоды для %d городов", len(cities))
        try:
            results = await asyncio.gather(
                *(self.refresh_weather(city) for city in cities),
                return_exceptions=True,
            )
            for city, result in zip(cities, results):
                if isinstance(result, Exception):
                    logger.error("❌ Обновление погоды для %s упало: %r", city.name, result)
            self._state.set_last_refresh(datetime.now())
        finally:
            self._state.set_loading(False)

    # === ПРОГНОЗЫ ===
    async def load_hourly_forecast(self, city: City) -> None:
        await self._load_forecast(
            _HOURLY, city,
            read_cache=self._source.cached_hourly_forecast,
            fetch=self._source.hourly_forecast,
            write_cache=self._source.cache_hourly_forecast,
            apply=self._state.set_hourly_forecast,
        )

    async def load_daily_forecast(self, city: City) -> None:
        await self._load_forecast(
            _DAILY, city,
            read_cache=self._source.cached_daily_forecast,
            fetch=self._source.daily_forecast,
            write_cache=self._source.cache_daily_forecast,
            apply=self._state.set_daily_forecast,
        )

    async def _load_forecast(self, kind: str, city: City, read_cache, fetch, write_cache, apply) -> None:
        generation = self._begin_request(kind, city.id)

        cached = read_cache(city.id)
        if cached is not None:
            apply(city.id, cached)
            return

        try:
            forecast: List = await fetch(city)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = as_weather_error(e)
            if error.is_cancellation or self._is_superseded(kind, city.id, generation):
                logger.debug("Запрос прогноза (%s) для %s отменён", kind, city.name)
                return
            logger.error("❌ Прогноз (%s) для %s: %r", kind, city.name, error)
            self._state.set_weather_error(error)
            return

        if self._is_superseded(kind, city.id, generation):
            return
        apply(city.id, forecast)
        write_cache(city.id, forecast)
        logger.info("✅ Прогноз (%s) для %s: %d записей", kind, city.name, len(forecast))

    # === КЭШ И ДАННЫЕ ===
    def evict_city(self, city_id: str) -> None:
        """Удаляет погоду и прогнозы города из состояния и кэша."""
        self._state.evict_city_data(city_id)
        self._source.evict_city_cache(city_id)
        for kind in (_WEATHER, _HOURLY, _DAILY):
            self._generations.pop((kind, city_id), None)

    def clear_cache(self) -> None:
        self._source.clear_cache()
        logger.info("🧹 Кэш погоды очищен")

    async def clear_all_data(self) -> None:
        try:
            await self._source.clear_all()
        except WeatherError as e:
            logger.error("❌ Не удалось очистить хранилище: %r", e)
            self._state.set_weather_error(e)
            return
        self._source.clear_cache()
        self._state.clear_cities()
        self._state.set_last_refresh(None)
        logger.info("🧹 Все данные очищены")

    async def retry_last_failed_operation(self) -> None:
        if self._state.weather_error is not None:
            await self.refresh_all_weather()
