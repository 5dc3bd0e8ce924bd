# ridehail/services/common/lifespan.py
"""
Общий жизненный цикл HTTP сервисов: логирование, PostgreSQL, Redis, RabbitMQ.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Awaitable, Callable, Optional

from fastapi import FastAPI

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_info, setup_logging
from ridehail.infra.database import close_db, init_db
from ridehail.infra.event_bus import close_event_bus, init_event_bus
from ridehail.infra.redis_client import close_redis, init_redis
from ridehail.services.common.dependencies import cleanup_dependencies, init_dependencies


def service_lifespan(
    service_name: str,
    on_startup: Optional[Callable[[], Awaitable[None]]] = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    """
    Lifespan для FastAPI приложения сервиса.

    Args:
        service_name: Имя сервиса для логов
        on_startup: Дополнительный шаг после подключения инфраструктуры
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Startup
        setup_logging()
        await log_info(f"Запуск {service_name}...", type_msg=TypeMsg.INFO)

        db = await init_db()
        redis = await init_redis()
        event_bus = await init_event_bus()
        await init_dependencies(db, redis, event_bus)

        if on_startup is not None:
            await on_startup()

        yield

        # Shutdown
        await log_info(f"Остановка {service_name}...", type_msg=TypeMsg.INFO)
        await cleanup_dependencies()
        await close_event_bus()
        await close_redis()
        await close_db()

    return lifespan
