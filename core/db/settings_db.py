# -*- coding: utf-8 -*-
"""
Настройки пользователя: ключ → значение в SQLite.

Хранит последний выбранный индекс города, домашний город,
единицы температуры и флаг автообновления.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from config import sync_config
from config.db_config import DB_CONNECTION_TIMEOUT, SETTINGS_DB_PATH

logger = logging.getLogger("settings_db")

# === КЛЮЧИ ===
LAST_SELECTED_CITY_INDEX = "last_selected_city_index"
HOME_CITY_ID = "home_city_id"
TEMPERATURE_UNIT = "temperature_unit"
AUTO_REFRESH_ENABLED = "auto_refresh_enabled"


class SettingsDB:
    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or SETTINGS_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=DB_CONNECTION_TIMEOUT, check_same_thread=False)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _get(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def _set(self, key: str, value: Optional[str]) -> None:
        with self._connection() as conn:
            if value is None:
                conn.execute("DELETE FROM settings WHERE key = ?", (key,))
            else:
                conn.execute(
                    """
                    INSERT INTO settings (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
        logger.debug("⚙️ %s = %s", key, value)

    # === ВЫБРАННЫЙ ГОРОД ===
    def get_last_selected_city_index(self) -> int:
        value = self._get(LAST_SELECTED_CITY_INDEX)
        try:
            return int(value) if value is not None else 0
        except ValueError:
            logger.warning("⚠️ Повреждённое значение %s: %r", LAST_SELECTED_CITY_INDEX, value)
            return 0

    def set_last_selected_city_index(self, index: int) -> None:
        self._set(LAST_SELECTED_CITY_INDEX, str(int(index)))

    # === ДОМАШНИЙ ГОРОД ===
    def get_home_city_id(self) -> Optional[str]:
        return self._get(HOME_CITY_ID) or None

    def set_home_city_id(self, city_id: Optional[str]) -> None:
        self._set(HOME_CITY_ID, city_id)

    # === ОТОБРАЖЕНИЕ ===
    def get_temperature_unit(self) -> str:
        return self._get(TEMPERATURE_UNIT) or sync_config.DEFAULT_TEMPERATURE_UNIT

    def set_temperature_unit(self, unit: str) -> None:
        self._set(TEMPERATURE_UNIT, unit)

    def get_auto_refresh_enabled(self) -> bool:
        value = self._get(AUTO_REFRESH_ENABLED)
        if value is None:
            return sync_config.DEFAULT_AUTO_REFRESH
        return value == "1"

    def set_auto_refresh_enabled(self, enabled: bool) -> None:
        self._set(AUTO_REFRESH_ENABLED, "1" if enabled else "0")
