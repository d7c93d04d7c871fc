# -*- coding: utf-8 -*-
"""
Воркер очистки устаревших записей кэша погоды.
"""

import asyncio
import logging

from config import sync_config
from core.db.local_db_weather import WeatherCacheDB
from core.utils.error_handler import log_exception

logger = logging.getLogger("cleanup_worker")


async def cleanup_worker(cache_db: WeatherCacheDB, interval: float = None):
    """
    Удаляет просроченные записи кэша каждые 10 минут.
    """
    interval = interval or sync_config.CLEANUP_INTERVAL_SEC
    logger.info("🧹 Cleanup worker запущен")

    loop = asyncio.get_running_loop()
    while True:
        try:
            deleted = await loop.run_in_executor(None, cache_db.cleanup_expired)
            logger.debug("✅ Очистка кэша: удалено %d записей", deleted)
        except Exception as e:
            log_exception(e, "❌ Cleanup failed")

        await asyncio.sleep(interval)
