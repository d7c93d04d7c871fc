# -*- coding: utf-8 -*-
"""
Тесты для core/utils/coordinate_manager.py
"""
import pytest

from core.models.city import Position
from core.utils.coordinate_manager import (
    NominatimGeocoder,
    extract_place,
    haversine_distance_m,
    validate_coordinates,
)


def test_validate_coordinates():
    assert validate_coordinates(55.75, 37.62)
    assert validate_coordinates("55.75", "37.62")
    assert not validate_coordinates(91, 0)
    assert not validate_coordinates(0, 181)
    assert not validate_coordinates("abc", 0)


def test_haversine_distance():
    assert haversine_distance_m(40.0, -74.0, 40.0, -74.0) == 0.0
    # Один градус широты ≈ 111.2 км
    assert haversine_distance_m(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)
    # Лос-Анджелес → Сан-Франциско ≈ 559 км
    assert haversine_distance_m(34.0522, -118.2437, 37.7749, -122.4194) == pytest.approx(559_000, rel=0.01)


def test_extract_place():
    assert extract_place({"town": "Hoboken", "country_code": "us"}) == ("Hoboken", "US")
    assert extract_place({"city": "Paris", "town": "x", "country_code": "fr"}) == ("Paris", "FR")
    assert extract_place({}) == (None, "")


class _Response:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class _Session:
    def __init__(self, payload):
        self.payload = payload
        self.headers = {}
        self.params = None

    def get(self, url, params=None, timeout=None):
        self.params = params
        return _Response(self.payload)


async def test_nominatim_reverse_geocode():
    session = _Session({"address": {"city": "Austin", "country_code": "us"}})
    geocoder = NominatimGeocoder("tests/1.0", session=session)

    place = await geocoder.reverse_geocode(Position(30.27, -97.74))

    assert place == ("Austin", "US")
    assert session.headers["User-Agent"] == "tests/1.0"
    assert session.params["lat"] == 30.27


def test_nominatim_without_name_raises():
    geocoder = NominatimGeocoder("tests/1.0", session=_Session({"address": {}}))

    with pytest.raises(ValueError):
        geocoder.reverse_geocode_sync(30.27, -97.74)
