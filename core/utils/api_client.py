# -*- coding: utf-8 -*-
"""
Обёртка для OpenWeatherMap API.
Поддерживает:
- Текущая погода: get_current_weather(lat, lon, city_id)
- Почасовой прогноз (шаг 3 часа): get_hourly_forecast(lat, lon)
- Дневной прогноз, агрегированный из 3-часовых слотов: get_daily_forecast(lat, lon)
- Поиск городов по названию (geocoding API): search_cities(query)

Все ошибки транспорта и HTTP переводятся в WeatherError:
401 → api_key_invalid, 404 → city_not_found, 429 → api_quota_exceeded,
битый JSON → malformed_response, сеть/таймаут → network_failure.
Методы синхронные — вызываются из WeatherRepository через run_in_executor.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd
import requests

from config import sync_config
from core.models.city import City
from core.models.errors import WeatherError, WeatherErrorKind
from core.models.weather_response import DailyWeather, HourlyWeather, Weather

logger = logging.getLogger("api_client")

_STATUS_ERRORS = {
    401: WeatherErrorKind.API_KEY_INVALID,
    404: WeatherErrorKind.CITY_NOT_FOUND,
    429: WeatherErrorKind.API_QUOTA_EXCEEDED,
}


def parse_current_weather(data: Dict, city_id: str) -> Weather:
    """Ответ /weather → Weather. KeyError/TypeError означают битый ответ."""
    main = data["main"]
    condition = data["weather"][0]
    wind = data.get("wind", {})
    return Weather(
        city_id=city_id,
        temperature=float(main["temp"]),
        feels_like=float(main["feels_like"]),
        temperature_min=float(main["temp_min"]),
        temperature_max=float(main["temp_max"]),
        description=condition["description"],
        icon_code=condition["icon"],
        humidity=int(main["humidity"]),
        pressure=int(main["pressure"]),
        wind_speed=float(wind.get("speed", 0.0)),
        wind_direction=int(wind.get("deg", 0)),
        visibility=int(data.get("visibility", 0)),
        last_updated=datetime.fromtimestamp(data["dt"]) if "dt" in data else datetime.now(),
    )


def forecast_to_frame(data: Dict) -> pd.DataFrame:
    """3-часовые слоты /forecast → DataFrame с колонками time, temp, temp_min, temp_max, pop, icon, description."""
    rows = [
        {
            "time": datetime.fromtimestamp(item["dt"]),
            "temp": float(item["main"]["temp"]),
            "temp_min": float(item["main"]["temp_min"]),
            "temp_max": float(item["main"]["temp_max"]),
            "pop": float(item.get("pop", 0.0)),
            "icon": item["weather"][0]["icon"],
            "description": item["weather"][0]["description"],
        }
        for item in data["list"]
    ]
    return pd.DataFrame(rows, columns=["time", "temp", "temp_min", "temp_max", "pop", "icon", "description"])


def hourly_from_frame(df: pd.DataFrame, limit: int = None) -> List[HourlyWeather]:
    limit = limit or sync_config.HOURLY_FORECAST_LIMIT
    return [
        HourlyWeather(
            time=row.time.to_pydatetime(),
            temperature=float(row.temp),
            icon_code=row.icon,
            description=row.description,
        )
        for row in df.head(limit).itertuples(index=False)
    ]


def daily_from_frame(df: pd.DataFrame, limit: int = None) -> List[DailyWeather]:
    """
    Агрегирует слоты по дням: минимум/максимум температуры, максимальная
    вероятность осадков, иконка и описание — ближайший к полудню слот.
    """
    limit = limit or sync_config.DAILY_FORECAST_LIMIT
    if df.empty:
        return []

    df = df.copy()
    df["date"] = df["time"].dt.date
    df["noon_distance"] = (df["time"].dt.hour - 12).abs()

    aggregated = df.groupby("date").agg(
        temperature_min=("temp_min", "min"),
        temperature_max=("temp_max", "max"),
        precipitation_chance=("pop", "max"),
    )
    midday = df.sort_values("noon_distance").groupby("date").first()[["icon", "description"]]
    daily = aggregated.join(midday).sort_index().head(limit)

    return [
        DailyWeather(
            date=day,
            temperature_min=float(row.temperature_min),
            temperature_max=float(row.temperature_max),
            icon_code=row.icon,
            description=row.description,
            precipitation_chance=float(row.precipitation_chance),
        )
        for day, row in daily.iterrows()
    ]


def parse_search_results(data: List[Dict], limit: int = None) -> List[City]:
    """
    Ответ geocoding /direct → новые City.
    Повторы (то же название без учёта регистра и та же страна) отбрасываются.
    """
    limit = limit or sync_config.CITY_SEARCH_LIMIT
    seen = set()
    cities = []
    for item in data:
        key = (item["name"].lower(), item.get("country", ""))
        if key in seen:
            continue
        seen.add(key)
        cities.append(City(
            name=item["name"],
            country_code=item.get("country", ""),
            latitude=float(item["lat"]),
            longitude=float(item["lon"]),
        ))
        if len(cities) >= limit:
            break
    return cities


class OpenWeatherMapClient:
    """Клиент для OpenWeatherMap (current weather + 5 day / 3 hour forecast + geocoding)."""

    def __init__(self, api_key: str, session: requests.Session = None, timeout: int = None):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout or sync_config.API_TIMEOUT

    def _get(self, url: str, params: Dict, context: str) -> Dict:
        params = dict(params, appid=self.api_key)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("❌ OpenWeatherMap: ошибка сети: %s", e)
            raise WeatherError.network(e) from e

        kind = _STATUS_ERRORS.get(response.status_code)
        if kind is not None:
            logger.error("❌ OpenWeatherMap: HTTP %d для %s", response.status_code, context)
            raise WeatherError(kind, detail=context)
        if not 200 <= response.status_code < 300:
            logger.error("❌ OpenWeatherMap: HTTP %d", response.status_code)
            raise WeatherError(WeatherErrorKind.NETWORK_FAILURE, detail=f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise WeatherError(WeatherErrorKind.MALFORMED_RESPONSE, cause=e) from e

    def _get_at(self, url: str, lat: float, lon: float, units: str) -> Dict:
        params = {"lat": lat, "lon": lon, "units": units}
        return self._get(url, params, f"({lat:.4f}, {lon:.4f})")

    def get_current_weather(self, lat: float, lon: float, city_id: str = "", units: str = "imperial") -> Weather:
        data = self._get_at(sync_config.OPENWEATHER_CURRENT_URL, lat, lon, units)
        try:
            weather = parse_current_weather(data, city_id)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise WeatherError(WeatherErrorKind.MALFORMED_RESPONSE, cause=e) from e
        logger.info("✅ OpenWeatherMap: погода получена для (%s, %s)", lat, lon)
        return weather

    def _get_forecast_frame(self, lat: float, lon: float, units: str) -> pd.DataFrame:
        data = self._get_at(sync_config.OPENWEATHER_FORECAST_URL, lat, lon, units)
        try:
            return forecast_to_frame(data)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise WeatherError(WeatherErrorKind.MALFORMED_RESPONSE, cause=e) from e

    def get_hourly_forecast(self, lat: float, lon: float, units: str = "imperial", limit: Optional[int] = None) -> List[HourlyWeather]:
        return hourly_from_frame(self._get_forecast_frame(lat, lon, units), limit)

    def get_daily_forecast(self, lat: float, lon: float, units: str = "imperial", limit: Optional[int] = None) -> List[DailyWeather]:
        return daily_from_frame(self._get_forecast_frame(lat, lon, units), limit)

    def search_cities(self, query: str, limit: Optional[int] = None) -> List[City]:
        query = query.strip()
        if not query:
            return []
        limit = limit or sync_config.CITY_SEARCH_LIMIT
        data = self._get(sync_config.OPENWEATHER_GEOCODING_URL, {"q": query, "limit": limit}, f"'{query}'")
        try:
            cities = parse_search_results(data, limit)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise WeatherError(WeatherErrorKind.MALFORMED_RESPONSE, cause=e) from e
        logger.info("🔎 OpenWeatherMap: по запросу '%s' найдено городов: %d", query, len(cities))
        return cities
