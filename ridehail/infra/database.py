# ridehail/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Пул соединений asyncpg, повтор при обрыве соединения, транзакции
и применение схемы из migrations/init.sql при старте сервиса.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from typing import TYPE_CHECKING, Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_error, log_info, log_warning

if TYPE_CHECKING:
    from ridehail.config.loader import DatabaseSettings

T = TypeVar("T")

# Произвольный ключ advisory lock для применения схемы
SCHEMA_LOCK_KEY = 820_417_001

CONNECTION_ERRORS = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Повторяет вызов при ошибках подключения. Ошибки SQL пробрасываются сразу.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка между попытками (секунды), растёт линейно
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except CONNECTION_ERRORS as e:
                    if attempt >= max_attempts:
                        await log_error(f"БД недоступна после {max_attempts} попыток: {e}")
                        raise
                    await log_warning(f"Ошибка подключения к БД (попытка {attempt}/{max_attempts}): {e}")
                    await asyncio.sleep(delay * attempt)

        return wrapper  # type: ignore

    return decorator


class DatabaseManager:
    """
    Пул PostgreSQL, общий для всех репозиториев процесса (Singleton).

    Одиночные запросы (execute/fetch/fetchrow/fetchval) берут соединение
    на время вызова и повторяются при обрыве. Многошаговые записи идут
    через transaction() и не повторяются.
    """

    _instance: DatabaseManager | None = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._pool: Pool | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise RuntimeError("Пул PostgreSQL не создан, сначала вызовите connect()")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error(max_attempts=3, delay=1.0)
    async def connect(self, config: DatabaseSettings | None = None) -> None:
        """
        Создаёт пул соединений; повторный вызов ничего не делает.

        Args:
            config: Секция database (из глобальных настроек если None)
        """
        if config is None:
            from ridehail.config import settings
            config = settings.database

        async with self._connect_lock:
            if self._pool is not None:
                return
            self._pool = await asyncpg.create_pool(
                dsn=config.dsn,
                min_size=config.DB_MIN_POOL_SIZE,
                max_size=config.DB_MAX_POOL_SIZE,
                command_timeout=config.DB_COMMAND_TIMEOUT,
            )
        await log_info(
            f"PostgreSQL подключён: {config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}",
            type_msg=TypeMsg.INFO,
        )

    async def disconnect(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        await log_info("Пул PostgreSQL закрыт", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """
        Соединение внутри транзакции: commit при успехе, rollback при исключении.

        Example:
            async with db.transaction() as conn:
                await conn.fetchrow("SELECT ... FOR UPDATE", wallet_id)
                await conn.execute("INSERT INTO wallet_transactions ...")
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    @retry_on_connection_error()
    async def _run(self, method: str, query: str, *args: Any, **kwargs: Any) -> Any:
        async with self.pool.acquire() as conn:
            return await getattr(conn, method)(query, *args, **kwargs)

    async def execute(self, query: str, *args: Any) -> str:
        """Статус команды, например "UPDATE 1"."""
        return await self._run("execute", query, *args)

    async def fetch(self, query: str, *args: Any) -> list[Record]:
        return await self._run("fetch", query, *args)

    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        return await self._run("fetchrow", query, *args)

    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        return await self._run("fetchval", query, *args, column=column)

    async def health_check(self) -> bool:
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


def get_db() -> DatabaseManager:
    """Возвращает глобальный экземпляр DatabaseManager."""
    return DatabaseManager()


async def init_db() -> DatabaseManager:
    """Подключается к БД по настройкам и применяет migrations/init.sql."""
    db = get_db()
    await db.connect()
    await apply_schema(db)
    return db


async def apply_schema(db: DatabaseManager) -> None:
    """
    Применяет схему под advisory lock, чтобы несколько сервисов,
    стартующих одновременно, не выполняли DDL параллельно.
    """
    from ridehail.config.loader import get_project_root

    schema_path = get_project_root() / "migrations" / "init.sql"
    if not schema_path.exists():
        await log_error(f"Файл схемы БД не найден: {schema_path}")
        return

    schema_sql = schema_path.read_text(encoding="utf-8")

    try:
        async with db.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_KEY)
            await conn.execute(schema_sql)
    except asyncpg.DuplicateObjectError as e:
        await log_warning(f"Схема уже применена другим процессом: {e}")
        return

    await log_info("Схема БД применена", type_msg=TypeMsg.INFO)


async def close_db() -> None:
    await get_db().disconnect()
