# -*- coding: utf-8 -*-
"""
Синхронизация геолокации: разрешение, разовый запрос позиции и
непрерывное отслеживание с фильтром значимых перемещений.

Разрешение: undetermined → {granted, denied, restricted}; переходы
делает только LocationSource.

Отслеживание: источник вызывает callback из любого потока, позиция
кладётся в PositionStream, единственный потребитель разбирает позиции
строго по одной (включая геокодирование). Сдвиг текущего города меньше
SIGNIFICANT_DISTANCE_M игнорируется, иначе публикуется LOCATION_UPDATED
с новой записью города (тот же id).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from config import sync_config
from core.event_bus import LOCATION_UPDATED, EventBus
from core.models.app_state import AppState
from core.models.city import City, Position
from core.models.errors import LocationError, LocationErrorKind
from core.models.protocols import Geocoder, LocationSource, PermissionStatus
from core.utils.coordinate_manager import haversine_distance_m

logger = logging.getLogger("location_sync")

SleepFunc = Callable[[float], Awaitable[None]]

_CLOSED = object()


class PositionStream:
    """
    Асинхронный поток позиций с одним потребителем.

    push() можно вызывать из любого потока; close() завершает итерацию
    после позиции, которая уже в обработке.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, position: Position) -> None:
        if self._closed:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, position)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Ждёт, пока все полученные позиции будут обработаны."""
        await self._queue.join()

    def __aiter__(self):
        return self

    async def __anext__(self) -> Position:
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            self._queue.task_done()
            # Позиции, пришедшие после close(), не обрабатываются
            while not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
            raise StopAsyncIteration
        return item


class LocationSync:
    def __init__(
        self,
        source: LocationSource,
        geocoder: Geocoder,
        app_state: AppState,
        event_bus: EventBus,
        sleep: SleepFunc = asyncio.sleep,
        settle_delay: Optional[float] = None,
        significant_distance_m: Optional[float] = None,
    ):
        self._source = source
        self._geocoder = geocoder
        self._state = app_state
        self._event_bus = event_bus
        self._sleep = sleep
        self._settle_delay = sync_config.PERMISSION_SETTLE_DELAY_SEC if settle_delay is None else settle_delay
        self._threshold_m = sync_config.SIGNIFICANT_DISTANCE_M if significant_distance_m is None else significant_distance_m
        self._stream: Optional[PositionStream] = None
        self._consumer: Optional[asyncio.Task] = None

        self._state.set_authorization_status(self._source.authorization_status())

    # === РАЗРЕШЕНИЕ ===
    def refresh_authorization_status(self) -> PermissionStatus:
        status = PermissionStatus(self._source.authorization_status())
        self._state.set_authorization_status(status)
        return status

    def has_permission(self) -> bool:
        return self.refresh_authorization_status() is PermissionStatus.GRANTED

    async def request_permission(self) -> PermissionStatus:
        """Запрашивает разрешение, только если пользователь ещё не решал."""
        status = self.refresh_authorization_status()
        if status is not PermissionStatus.UNDETERMINED:
            logger.debug("Разрешение уже определено (%s) — запрос не нужен", status.value)
            return status

        self._state.set_location_error(None)
        logger.info("📍 Запрос разрешения на геолокацию")
        await self._source.request_permission()
        # Даём системе обработать диалог разрешения
        await self._sleep(self._settle_delay)

        status = self.refresh_authorization_status()
        if status in (PermissionStatus.DENIED, PermissionStatus.RESTRICTED):
            self._state.set_location_error(LocationError(LocationErrorKind.PERMISSION_DENIED))
        logger.info("📍 Разрешение на геолокацию: %s", status.value)
        return status

    # === РАЗОВЫЙ ЗАПРОС ===
    async def get_current_location(self) -> Position:
        if not self.has_permission():
            error = LocationError(LocationErrorKind.PERMISSION_DENIED)
            self._state.set_location_error(error)
            raise error

        self._state.set_location_error(None)
        try:
            position = await self._source.current_location()
        except asyncio.CancelledError:
            raise
        except LocationError as e:
            logger.error("❌ Не удалось получить позицию: %r", e)
            self._state.set_location_error(e)
            raise
        except Exception as e:
            error = LocationError.unavailable(e)
            logger.error("❌ Не удалось получить позицию: %r", e)
            self._state.set_location_error(error)
            raise error from e

        self._state.set_current_location(position)
        logger.info("📍 Позиция: %.4f, %.4f", position.latitude, position.longitude)
        return position

    async def retry_location_request(self) -> None:
        if self._state.location_error is None:
            return
        try:
            await self.get_current_location()
        except LocationError:
            # Ошибка уже записана в состояние
            pass

    # === ОТСЛЕЖИВАНИЕ ===
    @property
    def is_monitoring(self) -> bool:
        return self._stream is not None

    def start_monitoring(self) -> None:
        if self._stream is not None:
            return
        if not self.has_permission():
            logger.debug("Отслеживание не запущено: нет разрешения")
            return

        loop = asyncio.get_running_loop()
        self._stream = PositionStream(loop)
        self._source.start_monitoring(self._stream.push)
        self._consumer = loop.create_task(self._consume(self._stream))
        logger.info("📡 Отслеживание геолокации запущено")

    def stop_monitoring(self) -> None:
        if self._stream is None:
            return
        self._source.stop_monitoring()
        self._stream.close()
        # Позиция, которая ещё геокодируется, не должна публиковаться после остановки
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
        self._stream = None
        self._consumer = None
        logger.info("🛑 Отслеживание геолокации остановлено")

    async def wait_for_pending_updates(self) -> None:
        """Ждёт обработки всех уже полученных позиций."""
        # Позиции из других потоков попадают в очередь через call_soon_threadsafe
        await asyncio.sleep(0)
        if self._stream is not None:
            await self._stream.join()

    async def _consume(self, stream: PositionStream) -> None:
        async for position in stream:
            try:
                await self.process_position_update(position)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("❌ Ошибка обработки позиции: %s", e, exc_info=True)
            finally:
                stream.task_done()

    async def process_position_update(self, position: Position) -> Optional[City]:
        """
        Разбирает одну позицию. Возвращает обновлённый город, если
        перемещение значимое и событие опубликовано, иначе None.
        """
        self._state.set_current_location(position)

        existing = self._state.current_location_city()
        if existing is None:
            logger.debug("📍 Нет города текущей геолокации — позицию только запоминаем")
            return None

        distance = haversine_distance_m(existing.latitude, existing.longitude, position.latitude, position.longitude)
        if distance < self._threshold_m:
            logger.debug("📍 Сдвиг %.0fм меньше порога — пропускаем", distance)
            return None

        logger.info("📍 Значимое перемещение (%.0fм), обновляем %s", distance, existing.name)
        name, country_code = existing.name, existing.country_code
        try:
            geocoded_name, geocoded_country = await self._geocoder.reverse_geocode(position)
            if geocoded_name:
                name, country_code = geocoded_name, geocoded_country
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("⚠️ Геокодирование не удалось, оставляем название %s: %s", existing.name, e)

        updated = existing.moved_to(position.latitude, position.longitude, name=name, country_code=country_code)
        await self._event_bus.emit_event(LOCATION_UPDATED, {"city": updated, "distance_m": distance})
        return updated

    # === ВОЗВРАТ В ПРИЛОЖЕНИЕ ===
    def check_permission_and_retry(self) -> PermissionStatus:
        """Перечитывает разрешение (например, после возврата из настроек)."""
        status = self.refresh_authorization_status()
        if status is PermissionStatus.GRANTED:
            self._state.set_location_error(None)
            self._state.set_weather_error(None)
            self.start_monitoring()
        else:
            self.stop_monitoring()
        return status
