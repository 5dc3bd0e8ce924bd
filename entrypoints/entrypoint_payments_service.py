#!/usr/bin/env python3
# entrypoint_payments_service.py
"""
Точка входа для Payments Service.
Порт берётся из deployment.PAYMENTS_SERVICE_PORT (config/config.json).
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
    """Запуск Payments Service."""
    await log_info(
        f"Запуск Payments Service на порту {settings.deployment.PAYMENTS_SERVICE_PORT}",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "ridehail.services.payments.app:app",
        host=settings.deployment.PAYMENTS_SERVICE_HOST,
        port=settings.deployment.PAYMENTS_SERVICE_PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    await server.serve()


if __name__ == "__main__":
    asyncio.run(main())
