#!/usr/bin/env python3
# entrypoint_all.py
"""
Точка входа для запуска всех HTTP сервисов (trip, driver, payments) в одном процессе.
Используется для разработки или простых деплойментов.

Маршруты всех сервисов обслуживает одно приложение на порту Trip Service,
чтобы инфраструктура процесса поднималась и закрывалась одним lifespan.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from ridehail.config import settings


async def main() -> None:
    """Запуск всех сервисов одним приложением (без reload)."""
    config = uvicorn.Config(
        "ridehail.services.combined.app:app",
        host=settings.deployment.TRIP_SERVICE_HOST,
        port=settings.deployment.TRIP_SERVICE_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )
    await uvicorn.Server(config).serve()


if __name__ == "__main__":
    print("[DEV_MODE] Запуск всех сервисов (trip + driver + payments)...")
    print("Для остановки используйте Ctrl+C")

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
    finally:
        print("Все сервисы остановлены")
