#!/usr/bin/env python3
# entrypoint_driver_service.py
"""
Точка входа для Driver Service.
Порт берётся из deployment.DRIVER_SERVICE_PORT (config/config.json).
"""

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from ridehail.config import settings
from ridehail.common.logger import log_info
from ridehail.common.constants import TypeMsg


async def main() -> None:
    """Запуск Driver Service."""
    await log_info(
        f"Запуск Driver Service на порту {settings.deployment.DRIVER_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "ridehail.services.driver_service.app:app",
        host=settings.deployment.DRIVER_SERVICE_HOST,
        port=settings.deployment.DRIVER_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
