# -*- coding: utf-8 -*-
"""
Поиск городов по названию для добавления в список.

Каждый ввод запускает search_cities(query):
1. Пустой запрос — результаты очищаются, поиск не идёт
2. Иначе ждём CITY_SEARCH_DEBOUNCE_SEC; если за это время пришёл новый
   ввод — выходим, не трогая состояние
3. Ответ или ошибка устаревшего поиска выбрасываются
4. Ошибка — пустые результаты и last_error
"""

import asyncio
import itertools
import logging
from typing import Awaitable, Callable, Optional, Tuple

from config import sync_config
from core.models.city import City
from core.models.errors import WeatherError
from core.models.protocols import WeatherSource
from core.utils.error_handler import as_weather_error

logger = logging.getLogger("city_search")

SleepFunc = Callable[[float], Awaitable[None]]


class CitySearch:
    def __init__(
        self,
        source: WeatherSource,
        sleep: SleepFunc = asyncio.sleep,
        debounce: Optional[float] = None,
    ):
        self._source = source
        self._sleep = sleep
        self._debounce = sync_config.CITY_SEARCH_DEBOUNCE_SEC if debounce is None else debounce
        self._generation_counter = itertools.count(1)
        self._generation = 0

        self.results: Tuple[City, ...] = ()
        self.is_searching = False
        self.has_searched = False
        self.last_error: Optional[WeatherError] = None

    def _begin(self) -> int:
        self._generation = next(self._generation_counter)
        return self._generation

    def _is_superseded(self, generation: int) -> bool:
        return generation != self._generation

    async def search_cities(self, query: str) -> None:
        generation = self._begin()
        query = query.strip()
        if not query:
            self._reset()
            return

        self.is_searching = True
        await self._sleep(self._debounce)
        if self._is_superseded(generation):
            return

        try:
            found = await self._source.search_cities(query)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._is_superseded(generation):
                return
            error = as_weather_error(e)
            logger.warning("⚠️ Поиск '%s' не удался: %r", query, error)
            self.results = ()
            self.last_error = error
        else:
            if self._is_superseded(generation):
                logger.debug("Результаты поиска '%s' устарели", query)
                return
            self.results = tuple(found)
            self.last_error = None
            logger.info("🔎 Поиск '%s': найдено %d", query, len(self.results))

        self.is_searching = False
        self.has_searched = True

    def clear_results(self) -> None:
        """Отменяет идущий поиск и сбрасывает результаты."""
        self._begin()
        self._reset()

    def _reset(self) -> None:
        self.results = ()
        self.is_searching = False
        self.has_searched = False
        self.last_error = None
