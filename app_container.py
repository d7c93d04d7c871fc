# app_container.py
# -*- coding: utf-8 -*-
"""
Корень композиции.
Инициализирует все сервисы один раз и предоставляет к ним доступ.
"""

import logging
from pathlib import Path
from typing import Optional

from config.app_config import AppConfig
from config.db_config import CENTRAL_DB_PATH, DATA_DIR, SETTINGS_DB_PATH, WEATHER_CACHE_DB
from config.logging_config import setup_logging
from core.city_search import CitySearch
from core.city_list_coordinator import CityListCoordinator
from core.db.central_db import CentralDB
from core.db.local_db_weather import WeatherCacheDB
from core.db.settings_db import SettingsDB
from core.event_bus import EventBus
from core.location_sync import LocationSync
from core.models.app_state import AppState
from core.utils.api_client import OpenWeatherMapClient
from core.utils.coordinate_manager import NominatimGeocoder
from core.utils.location_provider import SimulatedLocationSource
from core.utils.weather_simulator import SimulatedWeatherClient
from core.weather_repository import WeatherRepository
from core.weather_sync import WeatherSync

logger = logging.getLogger("app_container")


class AppContainer:
    """
    Единый контекст приложения. Все зависимости создаются здесь.
    """

    def __init__(self, data_dir: Path = None, config: AppConfig = None):
        self._initialized = False
        self._data_dir = data_dir
        # Конфигурация
        self.config: Optional[AppConfig] = config
        # Базы данных
        self.central_db: Optional[CentralDB] = None
        self.settings_db: Optional[SettingsDB] = None
        self.cache_db: Optional[WeatherCacheDB] = None
        # Состояние и синхронизация
        self.app_state: Optional[AppState] = None
        self.event_bus: Optional[EventBus] = None
        self.repository: Optional[WeatherRepository] = None
        self.location_source: Optional[SimulatedLocationSource] = None
        self.weather_sync: Optional[WeatherSync] = None
        self.location_sync: Optional[LocationSync] = None
        self.coordinator: Optional[CityListCoordinator] = None
        self.city_search: Optional[CitySearch] = None

    def _db_paths(self):
        if self._data_dir is None:
            return CENTRAL_DB_PATH, SETTINGS_DB_PATH, WEATHER_CACHE_DB
        data_dir = Path(self._data_dir)
        return (
            data_dir / CENTRAL_DB_PATH.relative_to(DATA_DIR),
            data_dir / SETTINGS_DB_PATH.relative_to(DATA_DIR),
            data_dir / WEATHER_CACHE_DB.relative_to(DATA_DIR),
        )

    def initialize_sync(self, configure_logging: bool = True):
        """Синхронная инициализация всех компонентов."""
        if self._initialized:
            return

        # 1. Конфигурация и логирование
        if self.config is None:
            self.config = AppConfig.load()
        if configure_logging:
            setup_logging(self.config.log_level)

        # 2. Базы данных
        central_path, settings_path, cache_path = self._db_paths()
        self.central_db = CentralDB(db_path=central_path)
        self.settings_db = SettingsDB(db_path=settings_path)
        self.cache_db = WeatherCacheDB(db_path=cache_path)

        # 3. Внешние сервисы
        self.app_state = AppState()
        if self.config.use_simulator:
            logger.info("🎲 Погода из симулятора (USE_SIMULATOR или нет OPENWEATHER_API_KEY)")
            client = SimulatedWeatherClient()
        else:
            client = OpenWeatherMapClient(self.config.openweather_api_key)
        self.repository = WeatherRepository(
            client, self.cache_db, self.central_db,
            units=lambda: self.app_state.settings.temperature_unit,
        )
        self.location_source = SimulatedLocationSource(
            status=self.config.location_permission,
            latitude=self.config.location_latitude,
            longitude=self.config.location_longitude,
        )
        geocoder = NominatimGeocoder(self.config.nominatim_user_agent)

        # 4. Синхронизация
        self.event_bus = EventBus()
        self.weather_sync = WeatherSync(self.repository, self.app_state)
        self.location_sync = LocationSync(self.location_source, geocoder, self.app_state, self.event_bus)
        self.coordinator = CityListCoordinator(
            self.repository, self.settings_db, self.app_state,
            self.weather_sync, self.location_sync, geocoder, self.event_bus,
        )
        self.city_search = CitySearch(self.repository)

        self._initialized = True
        logger.info("✅ AppContainer: initialized")

    def shutdown(self):
        """Завершение: запоминаем выбранный город и останавливаем отслеживание."""
        if not self._initialized:
            return

        self.coordinator.did_enter_background()
        self.location_sync.stop_monitoring()
        self.event_bus.clear_all_handlers()
        logger.info("🛑 AppContainer: shut down")
