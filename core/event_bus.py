# -*- coding: utf-8 -*-
"""
Шина событий (Event Bus) для связи LocationSync → CityListCoordinator.

Архитектурный принцип:
- Шина — обычный объект, а не глобальный реестр: её создаёт и держит
  координатор, производители получают её через конструктор
- Производители (LocationSync) → публикуют события
- Потребители (CityListCoordinator) → подписываются на события

Использование:

bus = EventBus()

async def on_location_updated(event):
    await coordinator.handle_location_update(event["city"])

bus.subscribe_async(LOCATION_UPDATED, on_location_updated)
await bus.emit_event(LOCATION_UPDATED, {"city": city})
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List

logger = logging.getLogger("event_bus")

# Типы событий
LOCATION_UPDATED = "location_updated"

# Типы обработчиков
SyncHandler = Callable[[Dict[str, Any]], None]
AsyncHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class EventBus:
    def __init__(self):
        self._sync_handlers: Dict[str, List[SyncHandler]] = {}
        self._async_handlers: Dict[str, List[AsyncHandler]] = {}

    def subscribe(self, event_type: str, handler: SyncHandler) -> None:
        """
        Подписка на событие с синхронным обработчиком.

        Args:
            event_type (str): Тип события (например, "location_updated")
            handler (callable): Функция, принимающая dict с данными события
        """
        self._sync_handlers.setdefault(event_type, []).append(handler)
        logger.debug("Зарегистрирован синхронный обработчик для события: %s", event_type)

    def subscribe_async(self, event_type: str, handler: AsyncHandler) -> None:
        """
        Подписка на событие с асинхронным обработчиком.
        """
        if handler is None:
            logger.warning("⚠️ Попытка подписаться на событие %s с handler=None. Игнорируем.", event_type)
            return
        self._async_handlers.setdefault(event_type, []).append(handler)
        logger.debug("Зарегистрирован асинхронный обработчик для события: %s", event_type)

    def unsubscribe_async(self, event_type: str, handler: AsyncHandler) -> None:
        if event_type in self._async_handlers:
            try:
                self._async_handlers[event_type].remove(handler)
                logger.debug("Обработчик удалён для события: %s", event_type)
            except ValueError:
                logger.warning("Обработчик не найден для события: %s", event_type)

    async def emit_event(self, event_type: str, event_data: Dict[str, Any]) -> None:
        """
        Публикация события. Обработчики вызываются по очереди и дожидаются
        завершения; ошибки в обработчиках логируются, но не прерывают рассылку.
        """
        logger.debug("Публикация события: %s, данные: %s", event_type, event_data)

        for handler in list(self._sync_handlers.get(event_type, [])):
            try:
                handler(event_data)
            except Exception as e:
                logger.error("Ошибка в синхронном обработчике события %s: %s", event_type, e, exc_info=True)

        for handler in list(self._async_handlers.get(event_type, [])):
            try:
                await handler(event_data)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Ошибка в асинхронном обработчике события %s: %s", event_type, e, exc_info=True)

    def has_handlers(self, event_type: str) -> bool:
        return bool(self._sync_handlers.get(event_type) or self._async_handlers.get(event_type))

    def clear_all_handlers(self) -> None:
        """Очищает все зарегистрированные обработчики."""
        self._sync_handlers.clear()
        self._async_handlers.clear()
        logger.info("Все обработчики событий очищены.")
