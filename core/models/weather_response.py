# core/models/weather_response.py
from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class Weather:
    city_id: str
    temperature: float
    feels_like: float
    temperature_min: float
    temperature_max: float
    description: str
    icon_code: str
    humidity: int
    pressure: int
    wind_speed: float
    wind_direction: int
    visibility: int
    last_updated: datetime = field(default_factory=datetime.now)

    @property
    def temperature_formatted(self) -> str:
        return f"{round(self.temperature)}°"


@dataclass(frozen=True)
class HourlyWeather:
    time: datetime
    temperature: float
    icon_code: str
    description: str


@dataclass(frozen=True)
class DailyWeather:
    date: date
    temperature_min: float
    temperature_max: float
    icon_code: str
    description: str
    precipitation_chance: float  # 0..1
