# ridehail/core/drivers/repository.py
"""
Репозиторий водителей в PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from ridehail.common.constants import TypeMsg, VerificationStatus
from ridehail.common.logger import log_info
from ridehail.core.drivers.models import DriverAvailability
from ridehail.infra.database import DatabaseManager


_DRIVER_COLUMNS = """
    d.id AS driver_id, u.full_name,
    d.current_latitude AS latitude, d.current_longitude AS longitude,
    d.last_location_update, d.is_available, d.verification_status,
    d.profile_completed, d.rating, d.total_trips,
    d.vehicle_model, d.vehicle_color, d.vehicle_plate
"""


class DriverRepository:
    """Репозиторий водителей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных
        """
        self._db = db

    async def get(self, driver_id: str) -> Optional[DriverAvailability]:
        """Профиль и доступность водителя или None."""
        row = await self._db.fetchrow(
            f"""
            SELECT {_DRIVER_COLUMNS}
            FROM drivers d
            JOIN users u ON u.id = d.id
            WHERE d.id = $1
            """,
            driver_id,
        )
        return self._row_to_driver(row) if row else None

    async def list_dispatchable(self) -> list[DriverAvailability]:
        """
        Снимок водителей, которым можно предлагать поездки.
        Фильтр по расстоянию делает GeoIndex.
        """
        rows = await self._db.fetch(
            f"""
            SELECT {_DRIVER_COLUMNS}
            FROM drivers d
            JOIN users u ON u.id = d.id
            WHERE d.is_available = TRUE
              AND d.verification_status = $1
              AND d.current_latitude IS NOT NULL
              AND d.current_longitude IS NOT NULL
            """,
            VerificationStatus.APPROVED.value,
        )
        return [self._row_to_driver(row) for row in rows]

    async def update_location(self, driver_id: str, latitude: float, longitude: float) -> bool:
        """
        Сохраняет текущую позицию водителя.

        Returns:
            False если водитель не найден
        """
        result = await self._db.execute(
            """
            UPDATE drivers
            SET current_latitude = $2, current_longitude = $3, last_location_update = $4
            WHERE id = $1
            """,
            driver_id,
            latitude,
            longitude,
            datetime.now(timezone.utc),
        )
        return result.endswith(" 1")

    async def set_availability(self, driver_id: str, is_available: bool) -> bool:
        """Переключает водителя на линию / с линии."""
        result = await self._db.execute(
            "UPDATE drivers SET is_available = $2 WHERE id = $1",
            driver_id,
            is_available,
        )
        await log_info(
            f"Водитель {driver_id}: is_available={is_available}",
            type_msg=TypeMsg.DEBUG,
        )
        return result.endswith(" 1")

    async def increment_total_trips(self, driver_id: str) -> None:
        await self._db.execute(
            "UPDATE drivers SET total_trips = total_trips + 1 WHERE id = $1",
            driver_id,
        )

    @staticmethod
    def _row_to_driver(row: Any) -> DriverAvailability:
        data = dict(row)
        data["verification_status"] = VerificationStatus(data["verification_status"])
        data["full_name"] = data.get("full_name") or ""
        return DriverAvailability(**data)
