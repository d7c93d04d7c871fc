# -*- coding: utf-8 -*-
"""
Менеджер координат и геокодирования.

Функции:
- Валидация координат
- Расстояние по большому кругу (haversine), в метрах
- Обратное геокодирование через Nominatim (название места + код страны)

Использование:
>>> from core.utils.coordinate_manager import haversine_distance_m
>>> round(haversine_distance_m(55.75, 37.62, 55.76, 37.62))
1112
"""

import asyncio
import logging
from typing import Dict, Optional, Tuple

import numpy as np
import requests

from config import sync_config
from core.models.city import Position

logger = logging.getLogger("coordinate_manager")

# === КОНФИГУРАЦИЯ ===
EARTH_RADIUS_M = 6_371_000.0
REQUEST_TIMEOUT = 10  # секунд


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    Проверяет, что координаты в допустимом диапазоне.

    Args:
        lat (float): Широта (-90 .. 90)
        lon (float): Долгота (-180 .. 180)

    Returns:
        bool: True, если координаты корректны
    """
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Расстояние между двумя точками по поверхности Земли, в метрах."""
    phi1, phi2 = np.deg2rad(lat1), np.deg2rad(lat2)
    d_phi = phi2 - phi1
    d_lambda = np.deg2rad(lon2 - lon1)
    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2) ** 2
    return float(2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0))))


def extract_place(address: Dict) -> Tuple[Optional[str], str]:
    """
    Достаёт название населённого пункта и ISO-код страны из адреса Nominatim.
    """
    name = (
        address.get("city") or
        address.get("town") or
        address.get("village") or
        address.get("county") or
        address.get("state")
    )
    country_code = (address.get("country_code") or "").upper()
    return name, country_code


class NominatimGeocoder:
    """Обратное геокодирование через Nominatim (OpenStreetMap)."""

    def __init__(self, user_agent: str, url: str = None, session: requests.Session = None):
        self.url = url or sync_config.NOMINATIM_URL
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def reverse_geocode_sync(self, lat: float, lon: float) -> Tuple[str, str]:
        """
        Получает название места по координатам.

        Raises:
            ValueError: неверные координаты или в ответе нет названия
            requests.RequestException: ошибка сети
        """
        if not validate_coordinates(lat, lon):
            raise ValueError(f"Неверные координаты: lat={lat}, lon={lon}")

        params = {
            "lat": lat,
            "lon": lon,
            "format": "json",
            "addressdetails": 1,
            "accept-language": "en",
        }
        response = self.session.get(self.url, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        data = response.json()

        name, country_code = extract_place(data.get("address", {}))
        if not name:
            raise ValueError(f"Nominatim не вернул название для ({lat:.4f}, {lon:.4f})")

        logger.info("🌍 Название места: %s, %s", name, country_code)
        return name, country_code

    async def reverse_geocode(self, position: Position) -> Tuple[str, str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.reverse_geocode_sync, position.latitude, position.longitude
        )
