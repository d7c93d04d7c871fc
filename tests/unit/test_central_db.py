# -*- coding: utf-8 -*-
"""
Тесты для core/db/central_db.py и core/db/settings_db.py
"""
import sqlite3

import pytest
from conftest import make_city

from core.db.central_db import CentralDB
from core.db.settings_db import SettingsDB
from core.models.errors import WeatherError, WeatherErrorKind


def test_central_db(tmp_path):
    db = CentralDB(db_path=tmp_path / "central.db")

    a = make_city("Austin", 30.27, -97.74)
    b = make_city("Boston", 42.36, -71.06, current=True)
    db.add_city(a)
    db.add_city(b)

    cities = db.get_all_cities()
    assert [c.name for c in cities] == ["Austin", "Boston"]
    assert cities[0] == a
    assert cities[1].is_current_location
    assert cities[0].date_added == a.date_added

    # Обновление координат
    moved = b.moved_to(42.40, -71.10, name="Cambridge")
    assert db.update_city(moved)
    assert db.get_all_cities()[1].name == "Cambridge"
    assert not db.update_city(make_city("Nowhere"))

    # Удаление
    assert db.remove_city(a.id)
    assert not db.remove_city(a.id)
    assert [c.name for c in db.get_all_cities()] == ["Cambridge"]

    assert db.clear_all() == 1
    assert db.get_all_cities() == []
    print("✅ test_central_db passed")


def test_central_db_allows_single_current_location_city(tmp_path):
    db = CentralDB(db_path=tmp_path / "central.db")
    db.add_city(make_city("Here", current=True))

    with pytest.raises(WeatherError) as exc_info:
        db.add_city(make_city("There", current=True))

    assert exc_info.value.kind is WeatherErrorKind.PERSISTENCE_FAILURE
    assert isinstance(exc_info.value.cause, sqlite3.Error)


def test_settings_db_defaults(tmp_path):
    settings = SettingsDB(db_path=tmp_path / "settings.db")

    assert settings.get_last_selected_city_index() == 0
    assert settings.get_home_city_id() is None
    assert settings.get_temperature_unit() == "imperial"
    assert settings.get_auto_refresh_enabled() is True


def test_settings_db_persists_between_instances(tmp_path):
    path = tmp_path / "settings.db"
    settings = SettingsDB(db_path=path)
    settings.set_last_selected_city_index(3)
    settings.set_home_city_id("city-1")
    settings.set_temperature_unit("metric")
    settings.set_auto_refresh_enabled(False)

    reopened = SettingsDB(db_path=path)
    assert reopened.get_last_selected_city_index() == 3
    assert reopened.get_home_city_id() == "city-1"
    assert reopened.get_temperature_unit() == "metric"
    assert reopened.get_auto_refresh_enabled() is False

    reopened.set_home_city_id(None)
    assert reopened.get_home_city_id() is None
