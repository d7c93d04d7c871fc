# -*- coding: utf-8 -*-
"""
Утилита для централизованной обработки ошибок.

- classify_error: решение о повторе запроса погоды
- as_weather_error: любое исключение → WeatherError
- log_and_raise / log_exception: единообразное логирование
"""

import logging
from enum import Enum
from typing import Optional

from core.models.errors import WeatherError, WeatherErrorKind

logger = logging.getLogger("error_handler")


class RetryDecision(str, Enum):
    RETRY = "retry"
    STOP_SILENT = "stop_silent"
    STOP_SURFACED = "stop_surfaced"


# Повтор не поможет — показываем ошибку сразу
_FATAL_KINDS = {WeatherErrorKind.CITY_NOT_FOUND, WeatherErrorKind.API_KEY_INVALID}


def as_weather_error(exception: BaseException) -> WeatherError:
    """Оборачивает произвольное исключение в WeatherError(unknown_error)."""
    if isinstance(exception, WeatherError):
        return exception
    return WeatherError.unknown(exception)


def classify_error(error: BaseException) -> RetryDecision:
    """
    Классифицирует ошибку запроса погоды.

    Returns:
        RetryDecision: STOP_SILENT для отмены, STOP_SURFACED для
        city_not_found / api_key_invalid, RETRY для остального
    """
    weather_error = as_weather_error(error)
    if weather_error.is_cancellation:
        return RetryDecision.STOP_SILENT
    if weather_error.kind in _FATAL_KINDS:
        return RetryDecision.STOP_SURFACED
    return RetryDecision.RETRY


def log_and_raise(message: str, exception: Exception, context: Optional[dict] = None):
    """
    Логирует ошибку и выбрасывает её дальше.

    Args:
        message (str): Описание
        exception (Exception): Исключение, которое обрабатывается
        context (dict): Дополнительный контекст (например, city_id)
    """
    log_context = f" | Контекст: {context}" if context else ""
    logger.error(f"{message}{log_context} | Ошибка: {exception!r}", exc_info=exception)
    raise exception


def log_exception(exception: Exception, message: str = "Необработанное исключение", context: Optional[dict] = None):
    """
    Просто логирует исключение без выбрасывания.
    """
    log_context = f" | Контекст: {context}" if context else ""
    logger.error(f"{message}{log_context} | Ошибка: {exception!r}", exc_info=exception)
