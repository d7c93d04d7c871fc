# app.py
# -*- coding: utf-8 -*-
"""
Точка входа: загружает города, обновляет погоду, запускает воркеры и
печатает сводку. Ctrl+C — остановка (выбранный город становится домашним).
"""
import asyncio
import logging
import sys

from app_container import AppContainer
from core.models.app_state import AppState
from workers.auto_refresh_worker import auto_refresh_worker
from workers.cleanup_worker import cleanup_worker

logger = logging.getLogger("app")


def print_summary(state: AppState):
    symbol = state.settings.temperature_symbol
    print(f"\n🌤  Города ({len(state.cities)}):")
    for index, (city, weather) in enumerate(state.cities_with_weather):
        marker = "▶" if index == state.selected_city_index else " "
        location = " 📍" if city.is_current_location else ""
        if weather is None:
            line = "нет данных"
        else:
            line = f"{weather.temperature_formatted}{symbol[-1]}  {weather.description}"
        print(f" {marker} {city.name}, {city.country_code}{location}: {line}")

    selected = state.selected_city
    if selected is not None:
        daily = state.daily_forecasts.get(selected.id, ())
        for day in daily:
            print(f"     {day.date:%a %d.%m}: {round(day.temperature_min)}…{round(day.temperature_max)}{symbol}"
                  f"  осадки {day.precipitation_chance:.0%}")

    if state.weather_error is not None:
        error = state.weather_error
        print(f"\n⚠️  {error.message} ({error.recovery_action})")


async def run(container: AppContainer):
    coordinator = container.coordinator
    state = container.app_state

    workers = []
    try:
        await coordinator.load_initial_data()
        if container.config.location_latitude is not None:
            await coordinator.add_current_location_city()
        if state.selected_city is not None:
            await coordinator.load_forecasts(state.selected_city)
        print_summary(state)

        workers = [
            asyncio.create_task(auto_refresh_worker(container.weather_sync, state)),
            asyncio.create_task(cleanup_worker(container.cache_db)),
        ]
        state.add_listener(lambda field: print_summary(state) if field == "last_refresh" else None)
        print("\nНажмите Ctrl+C для остановки.")
        await asyncio.gather(*workers)
    finally:
        for task in workers:
            task.cancel()
        container.shutdown()


def main():
    container = AppContainer()
    container.initialize_sync()
    logger.info("🚀 Запуск")

    try:
        asyncio.run(run(container))
    except KeyboardInterrupt:
        print("\n🛑 Остановка по запросу пользователя.")
    finally:
        print("✅ Работа завершена.")


if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())
    main()
