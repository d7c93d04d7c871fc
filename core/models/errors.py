# -*- coding: utf-8 -*-
"""
Типизированные ошибки погоды и геолокации.

В состояние приложения попадают только эти исключения — сырые ошибки
транспорта (requests, sqlite3) оборачиваются на границе адаптеров.
"""

from enum import Enum
from typing import Optional


class WeatherErrorKind(str, Enum):
    LOCATION_PERMISSION_DENIED = "location_permission_denied"
    NETWORK_FAILURE = "network_failure"
    API_KEY_INVALID = "api_key_invalid"
    CITY_NOT_FOUND = "city_not_found"
    PERSISTENCE_FAILURE = "persistence_failure"
    API_QUOTA_EXCEEDED = "api_quota_exceeded"
    MALFORMED_RESPONSE = "malformed_response"
    CACHE_EXPIRED = "cache_expired"
    UNKNOWN_ERROR = "unknown_error"
    # Запрос вытеснен более новым — не ошибка, в состояние не попадает
    CANCELLED = "cancelled"


class LocationErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    LOCATION_UNAVAILABLE = "location_unavailable"
    TIMEOUT = "timeout"


_WEATHER_MESSAGES = {
    WeatherErrorKind.LOCATION_PERMISSION_DENIED: "Location access is required to show weather for your current location",
    WeatherErrorKind.NETWORK_FAILURE: "Unable to connect to weather service. Please check your internet connection.",
    WeatherErrorKind.API_KEY_INVALID: "Weather service configuration error. Please try again later.",
    WeatherErrorKind.PERSISTENCE_FAILURE: "Failed to save weather data locally",
    WeatherErrorKind.API_QUOTA_EXCEEDED: "Weather service temporarily unavailable. Please try again in a few minutes.",
    WeatherErrorKind.MALFORMED_RESPONSE: "Received invalid weather data. Please try again.",
    WeatherErrorKind.CACHE_EXPIRED: "Weather data is outdated. Refreshing...",
    WeatherErrorKind.CANCELLED: "Request was superseded",
}

_RECOVERY_ACTIONS = {
    WeatherErrorKind.LOCATION_PERMISSION_DENIED: "Enable location access in Settings",
    WeatherErrorKind.NETWORK_FAILURE: "Try again",
    WeatherErrorKind.API_QUOTA_EXCEEDED: "Try again",
    WeatherErrorKind.CITY_NOT_FOUND: "Remove city",
    WeatherErrorKind.CACHE_EXPIRED: "Refresh",
}


class WeatherError(Exception):
    """Ошибка погодного домена с тегом `kind`."""

    def __init__(self, kind: WeatherErrorKind, detail: Optional[str] = None, cause: Optional[BaseException] = None):
        self.kind = WeatherErrorKind(kind)
        self.detail = detail
        self.cause = cause
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.kind is WeatherErrorKind.CITY_NOT_FOUND:
            return f"Weather data not available for {self.detail or 'this city'}"
        if self.kind is WeatherErrorKind.UNKNOWN_ERROR:
            return f"An unexpected error occurred: {self.detail or self.cause}"
        return _WEATHER_MESSAGES[self.kind]

    @property
    def recovery_action(self) -> str:
        return _RECOVERY_ACTIONS.get(self.kind, "Retry")

    @property
    def is_cancellation(self) -> bool:
        return self.kind is WeatherErrorKind.CANCELLED

    def __repr__(self):
        return f"WeatherError({self.kind.value!r}, detail={self.detail!r})"

    # === КОНСТРУКТОРЫ ===
    @classmethod
    def network(cls, cause: BaseException = None) -> "WeatherError":
        return cls(WeatherErrorKind.NETWORK_FAILURE, detail=str(cause) if cause else None, cause=cause)

    @classmethod
    def persistence(cls, cause: BaseException = None) -> "WeatherError":
        return cls(WeatherErrorKind.PERSISTENCE_FAILURE, detail=str(cause) if cause else None, cause=cause)

    @classmethod
    def not_found(cls, city_name: str) -> "WeatherError":
        return cls(WeatherErrorKind.CITY_NOT_FOUND, detail=city_name)

    @classmethod
    def unknown(cls, cause: BaseException) -> "WeatherError":
        return cls(WeatherErrorKind.UNKNOWN_ERROR, detail=str(cause), cause=cause)

    @classmethod
    def cancelled(cls) -> "WeatherError":
        return cls(WeatherErrorKind.CANCELLED)


class LocationError(Exception):
    """Ошибка геолокации с тегом `kind`."""

    def __init__(self, kind: LocationErrorKind, cause: Optional[BaseException] = None):
        self.kind = LocationErrorKind(kind)
        self.cause = cause
        super().__init__(self.message)

    @property
    def message(self) -> str:
        if self.kind is LocationErrorKind.PERMISSION_DENIED:
            return "Location permission denied"
        if self.kind is LocationErrorKind.TIMEOUT:
            return "Location request timed out"
        return f"Unable to get location: {self.cause}"

    def __repr__(self):
        return f"LocationError({self.kind.value!r})"

    @classmethod
    def unavailable(cls, cause: BaseException = None) -> "LocationError":
        return cls(LocationErrorKind.LOCATION_UNAVAILABLE, cause=cause)


def weather_error_from_location(error: LocationError) -> WeatherError:
    """Переводит ошибку геолокации в погодную таксономию (для UI — одна таксономия)."""
    if error.kind is LocationErrorKind.PERMISSION_DENIED:
        return WeatherError(WeatherErrorKind.LOCATION_PERMISSION_DENIED, cause=error)
    return WeatherError(WeatherErrorKind.NETWORK_FAILURE, detail=error.message, cause=error)
