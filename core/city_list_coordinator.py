# -*- coding: utf-8 -*-
"""
Координатор списка городов — единственный, кто меняет список,
выбранный индекс и домашний город.

Порядок списка после каждой мутации:
1. Город текущей геолокации — первым
2. Иначе домашний город (если он ещё в списке) — первым
3. Иначе порядок добавления

Работу с погодой делегирует WeatherSync, с геолокацией — LocationSync.
События LOCATION_UPDATED приходят по шине, которой владеет координатор.
"""

import asyncio
import logging
from typing import Optional

from config import sync_config
from core.event_bus import LOCATION_UPDATED, EventBus
from core.location_sync import LocationSync
from core.models.app_state import AppState
from core.models.city import City, Position, default_cities
from core.models.errors import (
    LocationError,
    WeatherError,
    WeatherErrorKind,
    weather_error_from_location,
)
from core.models.protocols import Geocoder, PermissionStatus, SettingsStore, WeatherSource
from core.weather_sync import WeatherSync

logger = logging.getLogger("city_coordinator")

TEMPERATURE_UNITS = ("metric", "imperial")


class CityListCoordinator:
    def __init__(
        self,
        source: WeatherSource,
        settings: SettingsStore,
        app_state: AppState,
        weather_sync: WeatherSync,
        location_sync: LocationSync,
        geocoder: Geocoder,
        event_bus: EventBus,
    ):
        self._source = source
        self._settings = settings
        self._state = app_state
        self._weather_sync = weather_sync
        self._location_sync = location_sync
        self._geocoder = geocoder
        self.event_bus = event_bus

        self.event_bus.subscribe_async(LOCATION_UPDATED, self._on_location_updated)

    # === ЗАПУСК ===
    async def load_initial_data(self) -> None:
        """Загружает сохранённые города, восстанавливает выбор и обновляет погоду."""
        self._restore_settings()

        try:
            cities = await self._source.list_cities()
        except WeatherError as e:
            logger.error("❌ Не удалось прочитать сохранённые города: %r", e)
            # Города по умолчанию только в памяти, без записи
            self._state.set_cities(default_cities())
            self._reorder()
            await self._weather_sync.refresh_all_weather()
            self._state.set_weather_error(e)
            return

        seed_error: Optional[WeatherError] = None
        if not cities:
            logger.info("🌱 Первый запуск — добавляем города по умолчанию")
            cities = default_cities()
            try:
                for city in cities:
                    await self._source.add_city(city)
            except WeatherError as e:
                logger.error("❌ Не удалось сохранить города по умолчанию: %r", e)
                seed_error = e

        self._state.set_cities(cities)
        self._reorder()
        self._restore_selection()
        logger.info("📋 Загружено городов: %d, выбран индекс %d",
                    len(self._state.cities), self._state.selected_city_index)

        await self._weather_sync.refresh_all_weather()
        # refresh_all_weather сбрасывает ошибку, поэтому ставим её после
        if seed_error is not None:
            self._state.set_weather_error(seed_error)

    def _restore_settings(self) -> None:
        unit = self._settings.get_temperature_unit()
        if unit not in TEMPERATURE_UNITS:
            unit = sync_config.DEFAULT_TEMPERATURE_UNIT
        self._state.update_settings(
            temperature_unit=unit,
            auto_refresh_enabled=self._settings.get_auto_refresh_enabled(),
        )

    def _restore_selection(self) -> None:
        saved = self._settings.get_last_selected_city_index()
        count = len(self._state.cities)
        restored = max(0, min(saved, count - 1)) if count else 0
        if count:
            self._state.set_selected_city_index(restored)
        if restored != saved:
            logger.info("🔧 Сохранённый индекс %d вне списка — исправлен на %d", saved, restored)
            self._settings.set_last_selected_city_index(restored)

    def _reorder(self) -> None:
        current = self._state.current_location_city()
        if current is not None:
            self._state.move_city_to_front(current.id)
            return
        home = self.home_city()
        if home is not None:
            self._state.move_city_to_front(home.id)

    # === ДОБАВЛЕНИЕ / УДАЛЕНИЕ ===
    async def add_city(self, city: City) -> None:
        if self._state.find_city(city.id) is not None:
            logger.debug("Город %s уже в списке — пропускаем", city.name)
            return

        if city.is_current_location:
            existing = self._state.current_location_city()
            if existing is not None:
                await self.remove_city(existing)

        try:
            await self._source.add_city(city)
        except WeatherError as e:
            logger.error("❌ Не удалось сохранить город %s: %r", city.name, e)
            self._state.set_weather_error(e)
            return

        self._state.append_city(city)
        self._reorder()
        logger.info("➕ Добавлен город %s", city.name)
        await self._weather_sync.refresh_weather(city)

    async def remove_city(self, city: City) -> None:
        index = self._state.index_of(city.id)
        if index is None:
            return

        try:
            await self._source.remove_city(city)
        except WeatherError as e:
            logger.error("❌ Не удалось удалить город %s: %r", city.name, e)
            self._state.set_weather_error(e)
            return

        selection = self._state.selected_city_index
        selected = self._state.selected_city
        self._state.remove_city(city.id)
        self._weather_sync.evict_city(city.id)
        self._reorder()

        if index < selection:
            selection -= 1
        count = len(self._state.cities)
        selection = max(0, min(selection, count - 1))
        # Выбранный город остаётся выбранным, даже если порядок сменился
        if selected is not None and selected.id != city.id:
            kept = self._state.index_of(selected.id)
            if kept is not None:
                selection = kept
        if count:
            self._state.set_selected_city_index(selection)
        self._settings.set_last_selected_city_index(selection)
        logger.info("➖ Удалён город %s", city.name)

    # === ВЫБОР И ДОМАШНИЙ ГОРОД ===
    def update_selected_city_index(self, index: int) -> None:
        if not self._state.set_selected_city_index(index):
            logger.debug("Индекс %d вне списка — игнорируем", index)
            return
        self._settings.set_last_selected_city_index(index)

    def select_city(self, city: City) -> None:
        index = self._state.index_of(city.id)
        if index is not None:
            self.update_selected_city_index(index)

    def home_city(self) -> Optional[City]:
        """Домашний город; ссылка на удалённый город считается пустой."""
        home_id = self._settings.get_home_city_id()
        if not home_id:
            return None
        return self._state.find_city(home_id)

    def mark_current_city_as_home(self) -> None:
        city = self._state.selected_city
        if city is None:
            return
        self._settings.set_home_city_id(city.id)
        logger.info("🏠 Домашний город: %s", city.name)

    def clear_home_city(self) -> None:
        self._settings.set_home_city_id(None)

    def is_home_city(self, city: City) -> bool:
        return self._settings.get_home_city_id() == city.id

    # === ТЕКУЩАЯ ГЕОЛОКАЦИЯ ===
    async def add_current_location_city(self) -> None:
        if self._state.is_requesting_location:
            logger.debug("Запрос геолокации уже идёт")
            return

        self._state.set_requesting_location(True)
        self._state.set_weather_error(None)
        self._state.set_location_error(None)
        try:
            stale = self._state.current_location_city()
            if stale is not None:
                await self.remove_city(stale)

            status = self._location_sync.refresh_authorization_status()
            if status is PermissionStatus.UNDETERMINED:
                status = await self._location_sync.request_permission()

            if status in (PermissionStatus.DENIED, PermissionStatus.RESTRICTED):
                self._state.set_weather_error(WeatherError(WeatherErrorKind.LOCATION_PERMISSION_DENIED))
                return
            if status is not PermissionStatus.GRANTED:
                logger.info("📍 Пользователь ещё не ответил на запрос разрешения")
                return

            position = await self._location_sync.get_current_location()
            name, country_code = await self._place_for(position)
            city = City(
                name=name,
                country_code=country_code,
                latitude=position.latitude,
                longitude=position.longitude,
                is_current_location=True,
            )
            await self.add_city(city)
            self.select_city(city)
            self._location_sync.start_monitoring()
        except LocationError as e:
            logger.error("❌ Не удалось добавить город по геолокации: %r", e)
            self._state.set_weather_error(weather_error_from_location(e))
        finally:
            self._state.set_requesting_location(False)

    async def _place_for(self, position: Position):
        try:
            name, country_code = await self._geocoder.reverse_geocode(position)
            if name:
                return name, country_code or ""
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("⚠️ Геокодирование не удалось: %s", e)
        return sync_config.CURRENT_LOCATION_FALLBACK_NAME, ""

    async def _on_location_updated(self, event) -> None:
        await self.handle_location_update(event["city"])

    async def handle_location_update(self, city: City) -> None:
        """Применяет новую запись города геолокации и обновляет только его погоду."""
        if not self._state.replace_city(city):
            logger.warning("⚠️ Город %s уже не в списке — обновление пропущено", city.name)
            return

        try:
            await self._source.update_city(city)
        except WeatherError as e:
            logger.error("❌ Не удалось сохранить новые координаты %s: %r", city.name, e)
            self._state.set_weather_error(e)

        self._weather_sync.evict_city(city.id)
        self._weather_sync.clear_cache()
        await asyncio.gather(
            self._weather_sync.refresh_weather(city),
            self._weather_sync.load_hourly_forecast(city),
            self._weather_sync.load_daily_forecast(city),
        )
        logger.info("📍 Город геолокации обновлён: %s", city.name)

    # === ЖИЗНЕННЫЙ ЦИКЛ ===
    def did_enter_background(self) -> None:
        self.mark_current_city_as_home()

    async def did_become_active(self) -> None:
        previous = self._state.authorization_status
        status = self._location_sync.check_permission_and_retry()
        if previous is not PermissionStatus.GRANTED and status is PermissionStatus.GRANTED:
            logger.info("📍 Разрешение получено — добавляем город геолокации")
            await self.add_current_location_city()

    # === НАСТРОЙКИ ===
    async def set_temperature_unit(self, unit: str) -> None:
        if unit not in TEMPERATURE_UNITS:
            raise ValueError(f"Неизвестная единица температуры: {unit}")
        if unit == self._state.settings.temperature_unit:
            return
        self._settings.set_temperature_unit(unit)
        self._state.update_settings(temperature_unit=unit)
        self._weather_sync.clear_cache()
        await self._weather_sync.refresh_all_weather()

    def clear_error(self) -> None:
        """Скрывает текущие ошибки погоды и геолокации."""
        self._state.set_weather_error(None)
        self._state.set_location_error(None)

    def set_auto_refresh_enabled(self, enabled: bool) -> None:
        self._settings.set_auto_refresh_enabled(enabled)
        self._state.update_settings(auto_refresh_enabled=enabled)

    # === ДАННЫЕ ===
    async def load_forecasts(self, city: City) -> None:
        await asyncio.gather(
            self._weather_sync.load_hourly_forecast(city),
            self._weather_sync.load_daily_forecast(city),
        )

    async def clear_all_data(self) -> None:
        await self._weather_sync.clear_all_data()
        if self._state.is_empty:
            self._settings.set_home_city_id(None)
            self._settings.set_last_selected_city_index(0)
