# -*- coding: utf-8 -*-
"""
Источник геолокации для десктопа: у процесса нет GPS, поэтому позиция
задаётся конфигурацией (LOCATION_LAT / LOCATION_LON) или через move_to().

Разрешение моделируется состоянием: undetermined → запрос → grant_on_request
решает, станет ли оно granted или denied.

Отслеживание — фоновый поток, который раз в poll_interval отдаёт текущую
позицию в callback (как системный менеджер геолокации, из чужого потока).
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from config import sync_config
from core.models.city import Position
from core.models.errors import LocationError, LocationErrorKind
from core.models.protocols import PermissionStatus

logger = logging.getLogger("location_provider")


class SimulatedLocationSource:
    def __init__(
        self,
        status: PermissionStatus = PermissionStatus.UNDETERMINED,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        grant_on_request: bool = True,
        poll_interval: float = None,
        timeout: float = None,
    ):
        self._status = PermissionStatus(status)
        self._position: Optional[Position] = None
        if latitude is not None and longitude is not None:
            self._position = Position(latitude, longitude)
        self.grant_on_request = grant_on_request
        self.poll_interval = poll_interval or sync_config.LOCATION_POLL_INTERVAL_SEC
        self.timeout = timeout or sync_config.LOCATION_TIMEOUT_SEC

        self._callback: Optional[Callable[[Position], None]] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # === РАЗРЕШЕНИЕ ===
    def authorization_status(self) -> PermissionStatus:
        return self._status

    def set_authorization_status(self, status: PermissionStatus) -> None:
        """Имитирует изменение разрешения в системных настройках."""
        self._status = PermissionStatus(status)

    async def request_permission(self) -> None:
        if self._status is not PermissionStatus.UNDETERMINED:
            return
        self._status = PermissionStatus.GRANTED if self.grant_on_request else PermissionStatus.DENIED
        logger.info("📍 Пользователь ответил на запрос разрешения: %s", self._status.value)

    # === ПОЗИЦИЯ ===
    async def current_location(self) -> Position:
        if self._status is not PermissionStatus.GRANTED:
            raise LocationError(LocationErrorKind.PERMISSION_DENIED)
        try:
            return await asyncio.wait_for(self._read_position(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise LocationError(LocationErrorKind.TIMEOUT, cause=e) from e

    async def _read_position(self) -> Position:
        if self._position is None:
            raise LocationError.unavailable(RuntimeError("позиция не задана (LOCATION_LAT / LOCATION_LON)"))
        return Position(self._position.latitude, self._position.longitude)

    def move_to(self, latitude: float, longitude: float) -> None:
        """Сдвигает позицию; при активном отслеживании сразу сообщает о ней."""
        self._position = Position(latitude, longitude)
        callback = self._callback
        if callback is not None:
            callback(self._position)

    # === ОТСЛЕЖИВАНИЕ ===
    def start_monitoring(self, callback: Callable[[Position], None]) -> None:
        if self._thread is not None:
            return
        self._callback = callback
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll, name="location-monitor", daemon=True)
        self._thread.start()
        logger.debug("📡 Поток отслеживания геолокации запущен")

    def stop_monitoring(self) -> None:
        if self._thread is None:
            return
        self._callback = None
        self._stop_event.set()
        self._thread.join(timeout=1)
        self._thread = None
        logger.debug("🛑 Поток отслеживания геолокации остановлен")

    def _poll(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            callback = self._callback
            if callback is not None and self._position is not None:
                callback(Position(self._position.latitude, self._position.longitude))
