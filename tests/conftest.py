# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")

from ridehail.common.constants import TripStatus, UserRole, VerificationStatus
from ridehail.core.drivers.models import DriverAvailability
from ridehail.core.identity import Identity
from ridehail.core.trips.models import Location, Trip
from ridehail.core.trips.store import InMemoryTripStore


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_conn() -> AsyncMock:
    """Мок соединения asyncpg внутри транзакции."""
    conn = AsyncMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="UPDATE 1")
    return conn


@pytest.fixture
def mock_db(mock_conn: AsyncMock) -> AsyncMock:
    """Мок менеджера базы данных; transaction() отдаёт mock_conn."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)

    @asynccontextmanager
    async def transaction() -> AsyncIterator[AsyncMock]:
        yield mock_conn

    db.transaction = MagicMock(side_effect=transaction)
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.is_connected = True
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.set_if_absent = AsyncMock(return_value=True)
    redis.incr = AsyncMock(return_value=1)
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=False)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=True)
    event_bus.is_connected = True
    return event_bus


@pytest.fixture
def mock_fanout() -> MagicMock:
    """
    Мок рассылки уведомлений.
    fire() закрывает переданную корутину, чтобы не было предупреждений «never awaited».
    """
    fanout = MagicMock()
    fanout.fire = MagicMock(side_effect=lambda coro: coro.close())
    fanout.notify_drivers = AsyncMock(return_value=0)
    for name in ("trip_accepted", "new_offer", "offer_accepted", "status_changed", "new_rating"):
        setattr(fanout, name, AsyncMock(return_value=True))
    return fanout


@pytest.fixture
def mock_drivers() -> AsyncMock:
    """Мок репозитория водителей."""
    drivers = AsyncMock()
    drivers.get = AsyncMock(return_value=None)
    drivers.list_dispatchable = AsyncMock(return_value=[])
    drivers.increment_total_trips = AsyncMock(return_value=None)
    return drivers


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def passenger() -> Identity:
    return Identity(user_id="passenger-1", role=UserRole.PASSENGER)


@pytest.fixture
def driver() -> Identity:
    return Identity(user_id="driver-1", role=UserRole.DRIVER)


@pytest.fixture
def other_driver() -> Identity:
    return Identity(user_id="driver-2", role=UserRole.DRIVER)


@pytest.fixture
def make_driver() -> Callable[..., DriverAvailability]:
    """Фабрика снимка водителя: по умолчанию на линии, верифицирован, в центре Боготы."""

    def factory(driver_id: str = "driver-1", **overrides: Any) -> DriverAvailability:
        data: dict[str, Any] = {
            "driver_id": driver_id,
            "full_name": "Carlos Pérez",
            "latitude": 4.7110,
            "longitude": -74.0721,
            "is_available": True,
            "verification_status": VerificationStatus.APPROVED,
            "profile_completed": True,
            "rating": 4.8,
            "vehicle_model": "Chevrolet Spark",
            "vehicle_color": "Rojo",
            "vehicle_plate": "ABC123",
        }
        data.update(overrides)
        return DriverAvailability(**data)

    return factory


@pytest.fixture
def make_trip() -> Callable[..., Trip]:
    """Фабрика поездки: запрошена пассажиром passenger-1."""

    def factory(**overrides: Any) -> Trip:
        data: dict[str, Any] = {
            "passenger_id": "passenger-1",
            "pickup": Location(latitude=4.7110, longitude=-74.0721, address="Calle 26 #68-35"),
            "dropoff": Location(latitude=4.6980, longitude=-74.0470, address="Parque de la 93"),
            "fare": 15000,
            "distance_km": 5.2,
            "status": TripStatus.REQUESTED,
        }
        data.update(overrides)
        return Trip(**data)

    return factory


@pytest.fixture
def store() -> InMemoryTripStore:
    """Хранилище поездок в памяти."""
    return InMemoryTripStore()
