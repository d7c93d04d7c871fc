# core/utils/weather_simulator.py
"""
Симулятор погоды для работы без API-ключа (USE_SIMULATOR=true).

Тот же интерфейс, что у OpenWeatherMapClient. Значения правдоподобные и
стабильные для одной точки в пределах часа (seed от координат и часа).
"""
import random
from datetime import datetime, timedelta
from typing import List, Optional

import pandas as pd

from config import sync_config
from core.models.city import City
from core.models.weather_response import DailyWeather, HourlyWeather, Weather
from core.utils.api_client import daily_from_frame, hourly_from_frame

_CONDITIONS = [
    ("clear sky", "01d"),
    ("few clouds", "02d"),
    ("overcast clouds", "04d"),
    ("light rain", "10d"),
    ("thunderstorm", "11d"),
    ("snow", "13d"),
    ("mist", "50d"),
]

# Города, которые находит поиск в режиме симулятора
_KNOWN_PLACES = [
    ("London", "GB", 51.5074, -0.1278),
    ("London", "CA", 42.9849, -81.2453),
    ("Paris", "FR", 48.8566, 2.3522),
    ("Paris", "US", 33.6609, -95.5555),
    ("Berlin", "DE", 52.5200, 13.4050),
    ("Tokyo", "JP", 35.6762, 139.6503),
    ("Sydney", "AU", -33.8688, 151.2093),
    ("Moscow", "RU", 55.7558, 37.6173),
    ("New York", "US", 40.7128, -74.0060),
    ("Los Angeles", "US", 34.0522, -118.2437),
    ("San Francisco", "US", 37.7749, -122.4194),
    ("Austin", "US", 30.2672, -97.7431),
    ("Chicago", "US", 41.8781, -87.6298),
]


def _to_units(celsius: float, units: str) -> float:
    return celsius * 9 / 5 + 32 if units == "imperial" else celsius


class SimulatedWeatherClient:
    def _rng(self, lat: float, lon: float) -> random.Random:
        hour = datetime.now().strftime("%Y%m%d%H")
        return random.Random(f"{lat:.2f}:{lon:.2f}:{hour}")

    @staticmethod
    def _base_temp(lat: float, rng: random.Random) -> float:
        # Теплее у экватора
        return 30 - abs(lat) * 0.5 + rng.uniform(-5, 5)

    def get_current_weather(self, lat: float, lon: float, city_id: str = "", units: str = "imperial") -> Weather:
        rng = self._rng(lat, lon)
        temp = self._base_temp(lat, rng)
        description, icon = rng.choice(_CONDITIONS)
        return Weather(
            city_id=city_id,
            temperature=round(_to_units(temp, units), 1),
            feels_like=round(_to_units(temp + rng.uniform(-3, 2), units), 1),
            temperature_min=round(_to_units(temp - rng.uniform(1, 5), units), 1),
            temperature_max=round(_to_units(temp + rng.uniform(1, 5), units), 1),
            description=description,
            icon_code=icon,
            humidity=rng.randint(20, 95),
            pressure=rng.randint(995, 1030),
            wind_speed=round(rng.uniform(0, 12), 1),
            wind_direction=rng.randint(0, 359),
            visibility=rng.choice([10000, 8000, 5000, 2000]),
        )

    def _forecast_frame(self, lat: float, lon: float, units: str) -> pd.DataFrame:
        rng = self._rng(lat, lon)
        base = self._base_temp(lat, rng)
        start = datetime.now().replace(minute=0, second=0, microsecond=0)
        rows = []
        for slot in range(40):  # 5 дней по 3 часа
            time = start + timedelta(hours=3 * slot)
            temp = base + 6 * (1 - abs(time.hour - 14) / 12) + rng.uniform(-2, 2)
            description, icon = rng.choice(_CONDITIONS)
            rows.append({
                "time": time,
                "temp": round(_to_units(temp, units), 1),
                "temp_min": round(_to_units(temp - 1, units), 1),
                "temp_max": round(_to_units(temp + 1, units), 1),
                "pop": round(rng.random(), 2),
                "icon": icon,
                "description": description,
            })
        return pd.DataFrame(rows)

    def get_hourly_forecast(self, lat: float, lon: float, units: str = "imperial", limit: Optional[int] = None) -> List[HourlyWeather]:
        return hourly_from_frame(self._forecast_frame(lat, lon, units), limit)

    def get_daily_forecast(self, lat: float, lon: float, units: str = "imperial", limit: Optional[int] = None) -> List[DailyWeather]:
        return daily_from_frame(self._forecast_frame(lat, lon, units), limit)

    def search_cities(self, query: str, limit: Optional[int] = None) -> List[City]:
        """Названия, начинающиеся с запроса (без учёта регистра)."""
        query = query.strip().lower()
        if not query:
            return []
        limit = limit or sync_config.CITY_SEARCH_LIMIT
        return [
            City(name=name, country_code=cc, latitude=lat, longitude=lon)
            for name, cc, lat, lon in _KNOWN_PLACES
            if name.lower().startswith(query)
        ][:limit]
