# ridehail/infra/redis_client.py
"""
Клиент Redis для эфемерного состояния рассылки уведомлений:
метки «водитель уже оповещён» и счётчики доставки.
Ключи получают префикс namespace из конфига.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import redis.asyncio as redis

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_error, log_info

if TYPE_CHECKING:
    from ridehail.config.loader import RedisSettings


class RedisClient:
    """Асинхронный клиент Redis (Singleton)."""

    _instance: RedisClient | None = None

    def __new__(cls) -> RedisClient:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._client: redis.Redis | None = None
        self._namespace = "ridehail"
        self._connect_lock = asyncio.Lock()

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis не подключён, сначала вызовите connect()")
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _make_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def connect(self, config: RedisSettings | None = None) -> None:
        """
        Подключается к Redis и проверяет соединение PING.

        Args:
            config: Секция redis (из глобальных настроек если None)
        """
        if config is None:
            from ridehail.config import settings
            config = settings.redis

        async with self._connect_lock:
            if self._client is not None:
                return
            client = redis.from_url(config.url, max_connections=config.REDIS_MAX_CONNECTIONS, decode_responses=True)
            await client.ping()
            self._client = client
            self._namespace = config.REDIS_NAMESPACE
        await log_info(f"Redis подключён: {config.REDIS_HOST}:{config.REDIS_PORT}", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    async def set_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        SET NX: атомарно ставит значение, только если ключа нет.

        Returns:
            True, если ключ был создан этим вызовом
        """
        return bool(await self.client.set(self._make_key(key), value, ex=ttl, nx=True))

    async def incr(self, key: str, amount: int = 1) -> int:
        """INCRBY; возвращает новое значение счётчика."""
        return await self.client.incrby(self._make_key(key), amount)

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


def get_redis() -> RedisClient:
    return RedisClient()


async def init_redis() -> RedisClient:
    """Подключает Redis по настройкам; при недоступности рассылка работает без меток и счётчиков."""
    client = get_redis()
    try:
        await client.connect()
    except Exception as e:
        await log_error(f"Redis недоступен: {e}")
    return client


async def close_redis() -> None:
    await get_redis().disconnect()
