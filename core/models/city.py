# core/models/city.py
# -*- coding: utf-8 -*-
"""
Город и позиция устройства.
"""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List


def _new_city_id() -> str:
    return str(uuid.uuid4())


@dataclass(eq=False)
class City:
    name: str
    country_code: str
    latitude: float
    longitude: float
    is_current_location: bool = False
    id: str = field(default_factory=_new_city_id)
    date_added: datetime = field(default_factory=datetime.now)

    # Идентичность города — только id
    def __eq__(self, other):
        if not isinstance(other, City):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def moved_to(self, latitude: float, longitude: float, name: str = None, country_code: str = None) -> "City":
        """Копия с тем же id, новыми координатами и (опционально) названием."""
        return replace(
            self,
            latitude=latitude,
            longitude=longitude,
            name=name if name is not None else self.name,
            country_code=country_code if country_code is not None else self.country_code,
        )


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    timestamp: datetime = field(default_factory=datetime.now)


# === ГОРОДА ПО УМОЛЧАНИЮ (первый запуск) ===
_DEFAULT_CITY_ROWS = [
    ("Los Angeles", "US", 34.0522, -118.2437),
    ("San Francisco", "US", 37.7749, -122.4194),
    ("Austin", "US", 30.2672, -97.7431),
    ("New York", "US", 40.7128, -74.0060),
    ("Chicago", "US", 41.8781, -87.6298),
]


def default_cities() -> List[City]:
    """Новые экземпляры пяти городов по умолчанию (каждый вызов — новые id)."""
    return [City(name=name, country_code=cc, latitude=lat, longitude=lon) for name, cc, lat, lon in _DEFAULT_CITY_ROWS]
