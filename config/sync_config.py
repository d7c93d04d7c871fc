# -*- coding: utf-8 -*-
"""
Параметры синхронизации погоды и геолокации.
Модульные константы — тесты могут подменять их напрямую.
"""

# === ПОВТОРЫ ЗАПРОСОВ ПОГОДЫ ===
WEATHER_MAX_ATTEMPTS = 3
WEATHER_RETRY_BASE_DELAY_SEC = 1  # 1с, затем 2с

# === ГЕОЛОКАЦИЯ ===
SIGNIFICANT_DISTANCE_M = 1000.0  # меньше — считаем дрожанием GPS
PERMISSION_SETTLE_DELAY_SEC = 0.1  # пауза после диалога разрешения
LOCATION_TIMEOUT_SEC = 10
LOCATION_POLL_INTERVAL_SEC = 30
CURRENT_LOCATION_FALLBACK_NAME = "Current Location"

# === API ===
API_TIMEOUT = 10  # секунд
OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
OPENWEATHER_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"
HOURLY_FORECAST_LIMIT = 48
DAILY_FORECAST_LIMIT = 5

# === ПОИСК ГОРОДОВ ===
CITY_SEARCH_DEBOUNCE_SEC = 0.5  # пауза после последнего ввода
CITY_SEARCH_LIMIT = 10

# === НАСТРОЙКИ ПРИЛОЖЕНИЯ ПО УМОЛЧАНИЮ ===
DEFAULT_TEMPERATURE_UNIT = "imperial"
DEFAULT_REFRESH_INTERVAL_SEC = 600  # 10 минут
DEFAULT_AUTO_REFRESH = True

# === ВОРКЕРЫ ===
CLEANUP_INTERVAL_SEC = 10 * 60
