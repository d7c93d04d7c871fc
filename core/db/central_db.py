# -*- coding: utf-8 -*-
"""
Центральная база данных: сохранённые города.
Использует SQLite в синхронном режиме; асинхронный доступ — через
WeatherRepository (run_in_executor).
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List

from config.db_config import CENTRAL_DB_PATH, DB_CONNECTION_TIMEOUT
from core.models.city import City
from core.models.errors import WeatherError
from core.utils.error_handler import log_and_raise

logger = logging.getLogger("central_db")


class CentralDB:
    """
    Хранилище городов пользователя.
    Потокобезопасно за счёт отдельного подключения в каждом методе.
    Любая ошибка SQLite превращается в WeatherError(persistence_failure).
    """

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or CENTRAL_DB_PATH)
        self._init_db()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Подключение на время одной операции: commit при успехе, всегда close."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=DB_CONNECTION_TIMEOUT, check_same_thread=False)
        except sqlite3.Error as e:
            raise WeatherError.persistence(e) from e
        conn.row_factory = sqlite3.Row  # доступ по имени колонки
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            log_and_raise("❌ Ошибка центральной БД", WeatherError.persistence(e), context={"db": self.db_path.name})
        finally:
            conn.close()

    def _init_db(self):
        """Инициализирует таблицы при первом запуске."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cities (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    country_code TEXT NOT NULL DEFAULT '',
                    lat REAL NOT NULL,
                    lon REAL NOT NULL,
                    is_current_location BOOLEAN NOT NULL DEFAULT FALSE,
                    date_added TIMESTAMP NOT NULL
                )
            """)

            # Не больше одного города текущей геолокации
            conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_current_location_city
                ON cities (is_current_location)
                WHERE is_current_location = 1
            """)

    def add_city(self, city: City) -> None:
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO cities (id, name, country_code, lat, lon, is_current_location, date_added)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    country_code = excluded.country_code,
                    lat = excluded.lat,
                    lon = excluded.lon,
                    is_current_location = excluded.is_current_location
                """,
                (city.id, city.name, city.country_code, city.latitude, city.longitude,
                 city.is_current_location, city.date_added.isoformat()),
            )
        logger.debug("💾 Город сохранён: %s", city.name)

    def update_city(self, city: City) -> bool:
        """Обновляет название и координаты. False — города нет в базе."""
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE cities
                SET name = ?, country_code = ?, lat = ?, lon = ?, is_current_location = ?
                WHERE id = ?
                """,
                (city.name, city.country_code, city.latitude, city.longitude,
                 city.is_current_location, city.id),
            )
            return cursor.rowcount > 0

    def remove_city(self, city_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM cities WHERE id = ?", (city_id,))
            return cursor.rowcount > 0

    def get_all_cities(self) -> List[City]:
        """Возвращает все города в порядке добавления."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT id, name, country_code, lat, lon, is_current_location, date_added
                FROM cities
                ORDER BY date_added ASC, rowid ASC
                """
            ).fetchall()

        return [
            City(
                id=row["id"],
                name=row["name"],
                country_code=row["country_code"],
                latitude=row["lat"],
                longitude=row["lon"],
                is_current_location=bool(row["is_current_location"]),
                date_added=datetime.fromisoformat(row["date_added"]),
            )
            for row in rows
        ]

    def clear_all(self) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM cities")
            deleted = cursor.rowcount
        logger.info("🧹 Удалено городов из центральной БД: %d", deleted)
        return deleted
