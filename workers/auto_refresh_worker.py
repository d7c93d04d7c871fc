# -*- coding: utf-8 -*-
"""
Воркер автообновления погоды.
"""

import asyncio
import logging

from core.models.app_state import AppState
from core.utils.error_handler import log_exception
from core.weather_sync import WeatherSync

logger = logging.getLogger("auto_refresh_worker")


async def auto_refresh_worker(weather_sync: WeatherSync, app_state: AppState, sleep=asyncio.sleep):
    """
    Обновляет погоду всех городов раз в settings.refresh_interval секунд,
    пока включено автообновление. Интервал перечитывается каждый цикл.
    """
    logger.info("🔄 Auto refresh worker запущен")

    while True:
        await sleep(app_state.settings.refresh_interval)

        if not app_state.settings.auto_refresh_enabled:
            logger.debug("Автообновление выключено — пропускаем цикл")
            continue
        if app_state.is_loading:
            logger.debug("Обновление уже идёт — пропускаем цикл")
            continue

        try:
            await weather_sync.refresh_all_weather()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_exception(e, "❌ Auto refresh failed")
