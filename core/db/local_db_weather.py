# -*- coding: utf-8 -*-
"""
Локальная база данных для кэширования погодных данных.

Используется для:
- Хранения текущей погоды по городу (TTL 10 минут)
- Хранения часовых и дневных прогнозов (TTL 60 минут)
- Снижения нагрузки на API

Таблицы:
- weather_cache: текущая погода, ключ — city_id
- forecast_cache: прогнозы, ключ — (city_id, kind)

Кэш — best effort: ошибки чтения/записи логируются и не пробрасываются.
"""

import json
import logging
import sqlite3
from dataclasses import asdict
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Optional

from config.db_config import (
    DB_CONNECTION_TIMEOUT,
    FORECAST_CACHE_TTL_MINUTES,
    WEATHER_CACHE_DB,
    WEATHER_CACHE_TTL_MINUTES,
)
from core.models.weather_response import DailyWeather, HourlyWeather, Weather

logger = logging.getLogger("local_db_weather")

HOURLY = "hourly"
DAILY = "daily"

# === SQL ЗАПРОСЫ ===
CREATE_TABLES_SQL = """
-- Текущая погода
CREATE TABLE IF NOT EXISTS weather_cache (
    city_id TEXT PRIMARY KEY,
    data_json TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    expires_at TIMESTAMP NOT NULL
);

-- Прогнозы
CREATE TABLE IF NOT EXISTS forecast_cache (
    city_id TEXT NOT NULL,
    kind TEXT NOT NULL,
    data_json TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    expires_at TIMESTAMP NOT NULL,
    PRIMARY KEY (city_id, kind)
);

-- Индексы для очистки устаревших записей
CREATE INDEX IF NOT EXISTS idx_weather_cache_expires ON weather_cache (expires_at);
CREATE INDEX IF NOT EXISTS idx_forecast_cache_expires ON forecast_cache (expires_at);
"""


# === СЕРИАЛИЗАЦИЯ ===
def _weather_to_json(weather: Weather) -> str:
    return json.dumps(asdict(weather), ensure_ascii=False, default=str)


def _weather_from_json(data_json: str) -> Weather:
    data = json.loads(data_json)
    data["last_updated"] = datetime.fromisoformat(data["last_updated"])
    return Weather(**data)


def _hourly_from_dict(item: dict) -> HourlyWeather:
    item["time"] = datetime.fromisoformat(item["time"])
    return HourlyWeather(**item)


def _daily_from_dict(item: dict) -> DailyWeather:
    item["date"] = date.fromisoformat(item["date"])
    return DailyWeather(**item)


class WeatherCacheDB:
    def __init__(self, db_path: Path = None, weather_ttl_minutes: int = None, forecast_ttl_minutes: int = None):
        self.db_path = Path(db_path or WEATHER_CACHE_DB)
        self.weather_ttl = timedelta(minutes=weather_ttl_minutes or WEATHER_CACHE_TTL_MINUTES)
        self.forecast_ttl = timedelta(minutes=forecast_ttl_minutes or FORECAST_CACHE_TTL_MINUTES)
        self.init_db()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=DB_CONNECTION_TIMEOUT, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self):
        """Инициализирует локальную БД погоды."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._get_connection()
        try:
            conn.executescript(CREATE_TABLES_SQL)
            conn.commit()
            logger.info("Локальная БД погоды инициализирована: %s", self.db_path)
        except Exception as e:
            logger.error("Ошибка инициализации локальной БД погоды: %s", e)
            raise
        finally:
            conn.close()

    # === ТЕКУЩАЯ ПОГОДА ===
    def cache_weather(self, weather: Weather) -> None:
        conn = self._get_connection()
        try:
            expires_at = datetime.now() + self.weather_ttl
            conn.execute(
                """
                INSERT OR REPLACE INTO weather_cache (city_id, data_json, expires_at)
                VALUES (?, ?, ?)
                """,
                (weather.city_id, _weather_to_json(weather), expires_at.isoformat()),
            )
            conn.commit()
            logger.debug("💾 Погода закэширована для города %s", weather.city_id)
        except Exception as e:
            logger.error("❌ Ошибка кэширования погоды: %s", e)
        finally:
            conn.close()

    def get_cached_weather(self, city_id: str) -> Optional[Weather]:
        """
        Получает кэшированную погоду города.

        Returns:
            Optional[Weather]: Погода или None, если нет или устарела
        """
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT data_json FROM weather_cache WHERE city_id = ? AND expires_at > ?",
                (city_id, datetime.now().isoformat()),
            ).fetchone()
            return _weather_from_json(row["data_json"]) if row else None
        except Exception as e:
            logger.error("❌ Ошибка получения кэша погоды: %s", e)
            return None
        finally:
            conn.close()

    # === ПРОГНОЗЫ ===
    def cache_forecast(self, city_id: str, kind: str, items: List) -> None:
        conn = self._get_connection()
        try:
            expires_at = datetime.now() + self.forecast_ttl
            payload = json.dumps([asdict(item) for item in items], ensure_ascii=False, default=str)
            conn.execute(
                """
                INSERT OR REPLACE INTO forecast_cache (city_id, kind, data_json, expires_at)
                VALUES (?, ?, ?, ?)
                """,
                (city_id, kind, payload, expires_at.isoformat()),
            )
            conn.commit()
            logger.debug("💾 Прогноз (%s) закэширован для города %s", kind, city_id)
        except Exception as e:
            logger.error("❌ Ошибка кэширования прогноза: %s", e)
        finally:
            conn.close()

    def get_cached_forecast(self, city_id: str, kind: str) -> Optional[List]:
        conn = self._get_connection()
        try:
            row = conn.execute(
                """
                SELECT data_json FROM forecast_cache
                WHERE city_id = ? AND kind = ? AND expires_at > ?
                """,
                (city_id, kind, datetime.now().isoformat()),
            ).fetchone()
            if row is None:
                return None
            factory = _hourly_from_dict if kind == HOURLY else _daily_from_dict
            return [factory(item) for item in json.loads(row["data_json"])]
        except Exception as e:
            logger.error("❌ Ошибка получения кэша прогноза: %s", e)
            return None
        finally:
            conn.close()

    # === ОЧИСТКА ===
    def evict_city(self, city_id: str) -> int:
        """
        Очищает кэш конкретного города.

        Returns:
            int: Количество удалённых записей
        """
        conn = self._get_connection()
        try:
            deleted = conn.execute("DELETE FROM weather_cache WHERE city_id = ?", (city_id,)).rowcount
            deleted += conn.execute("DELETE FROM forecast_cache WHERE city_id = ?", (city_id,)).rowcount
            conn.commit()
            logger.debug("Очищен кэш города %s: %d записей", city_id, deleted)
            return deleted
        except Exception as e:
            logger.error("Ошибка очистки кэша города %s: %s", city_id, e)
            return 0
        finally:
            conn.close()

    def clear(self) -> int:
        conn = self._get_connection()
        try:
            deleted = conn.execute("DELETE FROM weather_cache").rowcount
            deleted += conn.execute("DELETE FROM forecast_cache").rowcount
            conn.commit()
            return deleted
        except Exception as e:
            logger.error("Ошибка очистки кэша погоды: %s", e)
            return 0
        finally:
            conn.close()

    def cleanup_expired(self) -> int:
        """
        Удаляет устаревшие записи из кэша.

        Returns:
            int: Количество удалённых записей
        """
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            deleted = conn.execute("DELETE FROM weather_cache WHERE expires_at <= ?", (now,)).rowcount
            deleted += conn.execute("DELETE FROM forecast_cache WHERE expires_at <= ?", (now,)).rowcount
            conn.commit()
            if deleted > 0:
                logger.info("Удалено %d устаревших записей из кэша погоды", deleted)
            return deleted
        except Exception as e:
            logger.error("Ошибка очистки кэша погоды: %s", e)
            return 0
        finally:
            conn.close()
