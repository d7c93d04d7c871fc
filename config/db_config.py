# -*- coding: utf-8 -*-
"""
Конфигурация путей к базам данных проекта (sqlite3).
"""

from pathlib import Path

# === Корень проекта ===
PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# === Папка данных ===
DATA_DIR = PROJECT_ROOT / "data"

LOCAL_DB_DIR = DATA_DIR / "local_db"

# === ЦЕНТРАЛЬНАЯ БАЗА: города и настройки ===
CENTRAL_DB_PATH = DATA_DIR / "central.db"
SETTINGS_DB_PATH = DATA_DIR / "settings.db"

# === ЛОКАЛЬНЫЕ КЭШИ ===
WEATHER_CACHE_DB = LOCAL_DB_DIR / "weather_cache.db"

# === ПАРАМЕТРЫ ПОДКЛЮЧЕНИЯ ===
DB_CONNECTION_TIMEOUT = 30  # секунд

# === TTL для кэша ===
WEATHER_CACHE_TTL_MINUTES = 10
FORECAST_CACHE_TTL_MINUTES = 60
