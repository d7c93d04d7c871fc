# config/app_config.py
# -*- coding: utf-8 -*-
"""
Конфигурация приложения из переменных окружения (.env).
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_PERMISSION_STATES = ("undetermined", "granted", "denied", "restricted")


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} должен быть числом, получено: {value!r}")


@dataclass
class AppConfig:
    openweather_api_key: str
    log_level: str = "INFO"
    use_simulator: bool = False
    location_permission: str = "undetermined"
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    nominatim_user_agent: str = "WeatherCitySync/1.0"

    @classmethod
    def load(cls):
        permission = os.getenv("LOCATION_PERMISSION", "undetermined").strip().lower()
        if permission not in _PERMISSION_STATES:
            permission = "undetermined"
        api_key = os.getenv("OPENWEATHER_API_KEY", "")
        return cls(
            openweather_api_key=api_key,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            # Без ключа — только симулятор
            use_simulator=os.getenv("USE_SIMULATOR", "false").lower() == "true" or not api_key,
            location_permission=permission,
            location_latitude=_optional_float("LOCATION_LAT"),
            location_longitude=_optional_float("LOCATION_LON"),
            nominatim_user_agent=os.getenv("NOMINATIM_USER_AGENT", "WeatherCitySync/1.0"),
        )
