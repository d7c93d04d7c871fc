# -*- coding: utf-8 -*-
"""
Тесты для core/utils/error_handler.py и core/models/errors.py
"""
import pytest

from core.models.errors import (
    LocationError,
    LocationErrorKind,
    WeatherError,
    WeatherErrorKind,
    weather_error_from_location,
)
from core.utils.error_handler import RetryDecision, as_weather_error, classify_error, log_and_raise


@pytest.mark.parametrize("kind, decision", [
    (WeatherErrorKind.CANCELLED, RetryDecision.STOP_SILENT),
    (WeatherErrorKind.CITY_NOT_FOUND, RetryDecision.STOP_SURFACED),
    (WeatherErrorKind.API_KEY_INVALID, RetryDecision.STOP_SURFACED),
    (WeatherErrorKind.NETWORK_FAILURE, RetryDecision.RETRY),
    (WeatherErrorKind.API_QUOTA_EXCEEDED, RetryDecision.RETRY),
    (WeatherErrorKind.MALFORMED_RESPONSE, RetryDecision.RETRY),
])
def test_classify_error(kind, decision):
    assert classify_error(WeatherError(kind)) is decision


def test_untyped_exception_is_retried_as_unknown():
    error = as_weather_error(ValueError("bad"))

    assert error.kind is WeatherErrorKind.UNKNOWN_ERROR
    assert isinstance(error.cause, ValueError)
    assert classify_error(ValueError("bad")) is RetryDecision.RETRY


def test_location_errors_translate_to_weather_errors():
    denied = weather_error_from_location(LocationError(LocationErrorKind.PERMISSION_DENIED))
    timeout = weather_error_from_location(LocationError(LocationErrorKind.TIMEOUT))
    unavailable = weather_error_from_location(LocationError.unavailable(OSError("gps")))

    assert denied.kind is WeatherErrorKind.LOCATION_PERMISSION_DENIED
    assert timeout.kind is WeatherErrorKind.NETWORK_FAILURE
    assert unavailable.kind is WeatherErrorKind.NETWORK_FAILURE


def test_messages_and_recovery_actions():
    assert WeatherError(WeatherErrorKind.LOCATION_PERMISSION_DENIED).recovery_action == "Enable location access in Settings"
    assert WeatherError.not_found("Austin").message == "Weather data not available for Austin"
    assert WeatherError.not_found("Austin").recovery_action == "Remove city"
    assert WeatherError(WeatherErrorKind.MALFORMED_RESPONSE).recovery_action == "Retry"
    assert WeatherError.cancelled().is_cancellation


def test_log_and_raise_reraises(caplog):
    error = WeatherError.network()

    with pytest.raises(WeatherError):
        log_and_raise("Запрос погоды", error, context={"city_id": "x"})

    assert "city_id" in caplog.text
