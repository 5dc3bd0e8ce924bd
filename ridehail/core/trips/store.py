# ridehail/core/trips/store.py
"""
Хранилище поездок.

Все изменения поездки выполняются как атомарный compare-and-set:
условие и запись проверяются одной операцией хранилища. Если условие не
выполнено (поездку уже принял другой водитель, статус успел измениться,
оценка уже стоит), метод возвращает None и ничего не пишет.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from ridehail.common.constants import (
    ACTIVE_DRIVER_STATUSES,
    ACTIVE_PASSENGER_STATUSES,
    RatingDirection,
    TripStatus,
    TypeMsg,
    UserRole,
)
from ridehail.common.logger import log_info
from ridehail.core.trips.models import Location, Trip, utcnow
from ridehail.infra.database import DatabaseManager


# Колонки времени, которые разрешено проставлять при переходе
TIMESTAMP_FIELDS = frozenset({"accepted_at", "started_at", "completed_at", "cancelled_at"})


def _check_timestamp_field(field: Optional[str]) -> None:
    if field is not None and field not in TIMESTAMP_FIELDS:
        raise ValueError(f"Недопустимое поле времени: {field}")


class TripStore(ABC):
    """Интерфейс хранилища поездок с атомарными условными обновлениями."""

    @abstractmethod
    async def create(self, trip: Trip) -> Trip:
        """Сохраняет новую поездку."""

    @abstractmethod
    async def get(self, trip_id: str) -> Optional[Trip]:
        """Поездка по ID или None."""

    @abstractmethod
    async def assign_driver(
        self, trip_id: str, driver_id: str, fare: Optional[int] = None
    ) -> Optional[Trip]:
        """
        Назначает водителя, только если поездка в статусе requested и без водителя.

        Args:
            trip_id: ID поездки
            driver_id: ID водителя
            fare: Новая стоимость (принятое предложение); пишется той же операцией

        Returns:
            Обновлённая поездка или None, если условие не выполнено
        """

    @abstractmethod
    async def transition(
        self,
        trip_id: str,
        expected_status: TripStatus,
        new_status: TripStatus,
        timestamp_field: Optional[str] = None,
    ) -> Optional[Trip]:
        """
        Меняет статус, только если текущий статус равен expected_status.

        Returns:
            Обновлённая поездка или None при гонке
        """

    @abstractmethod
    async def set_rating(
        self,
        trip_id: str,
        direction: RatingDirection,
        rating: int,
        comment: Optional[str] = None,
    ) -> Optional[Trip]:
        """
        Ставит оценку, только если поездка завершена и оценка в этом направлении пуста.
        """

    @abstractmethod
    async def list_requested(self, limit: int) -> list[Trip]:
        """Поездки, ожидающие водителя, новые первыми."""

    @abstractmethod
    async def find_current_for_passenger(self, passenger_id: str) -> Optional[Trip]:
        """Самая свежая незавершённая поездка пассажира."""

    @abstractmethod
    async def find_current_for_driver(self, driver_id: str) -> Optional[Trip]:
        """Самая свежая активная поездка водителя."""

    @abstractmethod
    async def list_history(self, user_id: str, role: UserRole, limit: int) -> list[Trip]:
        """История поездок пользователя в его роли, новые первыми."""

    @abstractmethod
    async def list_completed_for_driver(self, driver_id: str) -> list[Trip]:
        """Все завершённые поездки водителя."""

    @abstractmethod
    async def average_rating(self, user_id: str, direction: RatingDirection) -> Optional[float]:
        """
        Среднее по всем оценкам пользователя в направлении.

        Returns:
            Среднее или None, если оценок нет
        """


# =============================================================================
# POSTGRESQL
# =============================================================================

_TRIP_COLUMNS = """
    id, passenger_id, driver_id,
    pickup_latitude, pickup_longitude, pickup_address,
    dropoff_latitude, dropoff_longitude, dropoff_address,
    fare, distance_km, status,
    requested_at, accepted_at, started_at, completed_at, cancelled_at,
    driver_rating, driver_comment, passenger_rating, passenger_comment
"""


class PostgresTripStore(TripStore):
    """
    Поездки в PostgreSQL.

    Каждое условное обновление это один `UPDATE ... WHERE <условие> RETURNING`,
    так что из двух конкурентных запросов строку меняет ровно один.
    """

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    async def create(self, trip: Trip) -> Trip:
        row = await self._db.fetchrow(
            f"""
            INSERT INTO trips (
                id, passenger_id, driver_id,
                pickup_latitude, pickup_longitude, pickup_address,
                dropoff_latitude, dropoff_longitude, dropoff_address,
                fare, distance_km, status, requested_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
            RETURNING {_TRIP_COLUMNS}
            """,
            trip.id,
            trip.passenger_id,
            trip.driver_id,
            trip.pickup.latitude,
            trip.pickup.longitude,
            trip.pickup.address,
            trip.dropoff.latitude,
            trip.dropoff.longitude,
            trip.dropoff.address,
            trip.fare,
            trip.distance_km,
            trip.status.value,
            trip.requested_at,
        )
        await log_info(f"Поездка {trip.id} сохранена", type_msg=TypeMsg.DEBUG)
        return self._row_to_trip(row)

    async def get(self, trip_id: str) -> Optional[Trip]:
        row = await self._db.fetchrow(
            f"SELECT {_TRIP_COLUMNS} FROM trips WHERE id = $1",
            trip_id,
        )
        return self._row_to_trip(row) if row else None

    async def assign_driver(
        self, trip_id: str, driver_id: str, fare: Optional[int] = None
    ) -> Optional[Trip]:
        row = await self._db.fetchrow(
            f"""
            UPDATE trips
            SET driver_id = $2,
                status = $3,
                accepted_at = $4,
                fare = COALESCE($5, fare)
            WHERE id = $1
              AND status = $6
              AND driver_id IS NULL
            RETURNING {_TRIP_COLUMNS}
            """,
            trip_id,
            driver_id,
            TripStatus.ACCEPTED.value,
            utcnow(),
            fare,
            TripStatus.REQUESTED.value,
        )
        return self._row_to_trip(row) if row else None

    async def transition(
        self,
        trip_id: str,
        expected_status: TripStatus,
        new_status: TripStatus,
        timestamp_field: Optional[str] = None,
    ) -> Optional[Trip]:
        _check_timestamp_field(timestamp_field)
        stamp = f", {timestamp_field} = $4" if timestamp_field else ""
        args: list[Any] = [trip_id, new_status.value, expected_status.value]
        if timestamp_field:
            args.append(utcnow())

        row = await self._db.fetchrow(
            f"""
            UPDATE trips
            SET status = $2{stamp}
            WHERE id = $1 AND status = $3
            RETURNING {_TRIP_COLUMNS}
            """,
            *args,
        )
        return self._row_to_trip(row) if row else None

    async def set_rating(
        self,
        trip_id: str,
        direction: RatingDirection,
        rating: int,
        comment: Optional[str] = None,
    ) -> Optional[Trip]:
        rating_col = f"{direction.value}_rating"
        comment_col = f"{direction.value}_comment"
        row = await self._db.fetchrow(
            f"""
            UPDATE trips
            SET {rating_col} = $2, {comment_col} = $3
            WHERE id = $1
              AND status = $4
              AND {rating_col} IS NULL
            RETURNING {_TRIP_COLUMNS}
            """,
            trip_id,
            rating,
            comment,
            TripStatus.COMPLETED.value,
        )
        return self._row_to_trip(row) if row else None

    async def list_requested(self, limit: int) -> list[Trip]:
        rows = await self._db.fetch(
            f"""
            SELECT {_TRIP_COLUMNS} FROM trips
            WHERE status = $1
            ORDER BY requested_at DESC
            LIMIT $2
            """,
            TripStatus.REQUESTED.value,
            limit,
        )
        return [self._row_to_trip(row) for row in rows]

    async def find_current_for_passenger(self, passenger_id: str) -> Optional[Trip]:
        row = await self._db.fetchrow(
            f"""
            SELECT {_TRIP_COLUMNS} FROM trips
            WHERE passenger_id = $1 AND status = ANY($2::text[])
            ORDER BY requested_at DESC
            LIMIT 1
            """,
            passenger_id,
            [s.value for s in ACTIVE_PASSENGER_STATUSES],
        )
        return self._row_to_trip(row) if row else None

    async def find_current_for_driver(self, driver_id: str) -> Optional[Trip]:
        row = await self._db.fetchrow(
            f"""
            SELECT {_TRIP_COLUMNS} FROM trips
            WHERE driver_id = $1 AND status = ANY($2::text[])
            ORDER BY requested_at DESC
            LIMIT 1
            """,
            driver_id,
            [s.value for s in ACTIVE_DRIVER_STATUSES],
        )
        return self._row_to_trip(row) if row else None

    async def list_history(self, user_id: str, role: UserRole, limit: int) -> list[Trip]:
        column = "driver_id" if role == UserRole.DRIVER else "passenger_id"
        rows = await self._db.fetch(
            f"""
            SELECT {_TRIP_COLUMNS} FROM trips
            WHERE {column} = $1
            ORDER BY requested_at DESC
            LIMIT $2
            """,
            user_id,
            limit,
        )
        return [self._row_to_trip(row) for row in rows]

    async def list_completed_for_driver(self, driver_id: str) -> list[Trip]:
        rows = await self._db.fetch(
            f"""
            SELECT {_TRIP_COLUMNS} FROM trips
            WHERE driver_id = $1 AND status = $2
            ORDER BY completed_at DESC
            """,
            driver_id,
            TripStatus.COMPLETED.value,
        )
        return [self._row_to_trip(row) for row in rows]

    async def average_rating(self, user_id: str, direction: RatingDirection) -> Optional[float]:
        owner_col = "driver_id" if direction == RatingDirection.DRIVER else "passenger_id"
        rating_col = f"{direction.value}_rating"
        value = await self._db.fetchval(
            f"""
            SELECT AVG({rating_col})::float FROM trips
            WHERE {owner_col} = $1 AND {rating_col} IS NOT NULL
            """,
            user_id,
        )
        return float(value) if value is not None else None

    @staticmethod
    def _row_to_trip(row: Any) -> Trip:
        """Преобразует строку БД в модель Trip."""
        return Trip(
            id=row["id"],
            passenger_id=row["passenger_id"],
            driver_id=row["driver_id"],
            pickup=Location(
                latitude=row["pickup_latitude"],
                longitude=row["pickup_longitude"],
                address=row["pickup_address"],
            ),
            dropoff=Location(
                latitude=row["dropoff_latitude"],
                longitude=row["dropoff_longitude"],
                address=row["dropoff_address"],
            ),
            fare=row["fare"],
            distance_km=row["distance_km"],
            status=TripStatus(row["status"]),
            requested_at=row["requested_at"],
            accepted_at=row["accepted_at"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            cancelled_at=row["cancelled_at"],
            driver_rating=row["driver_rating"],
            driver_comment=row["driver_comment"],
            passenger_rating=row["passenger_rating"],
            passenger_comment=row["passenger_comment"],
        )


# =============================================================================
# IN-MEMORY
# =============================================================================

class InMemoryTripStore(TripStore):
    """
    Поездки в памяти процесса.

    Условные обновления сериализуются одним asyncio.Lock, поэтому гарантия
    «ровно один победитель» та же, что и у PostgreSQL, но в пределах процесса.
    Наружу всегда отдаются копии.
    """

    def __init__(self) -> None:
        self._trips: dict[str, Trip] = {}
        self._lock = asyncio.Lock()

    async def create(self, trip: Trip) -> Trip:
        async with self._lock:
            if trip.id in self._trips:
                raise ValueError(f"Поездка {trip.id} уже существует")
            self._trips[trip.id] = trip.model_copy(deep=True)
            return trip.model_copy(deep=True)

    async def get(self, trip_id: str) -> Optional[Trip]:
        trip = self._trips.get(trip_id)
        return trip.model_copy(deep=True) if trip else None

    async def assign_driver(
        self, trip_id: str, driver_id: str, fare: Optional[int] = None
    ) -> Optional[Trip]:
        async with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None or trip.status != TripStatus.REQUESTED or trip.driver_id is not None:
                return None
            changes: dict[str, Any] = {
                "driver_id": driver_id,
                "status": TripStatus.ACCEPTED,
                "accepted_at": utcnow(),
            }
            if fare is not None:
                changes["fare"] = fare
            return self._replace(trip, changes)

    async def transition(
        self,
        trip_id: str,
        expected_status: TripStatus,
        new_status: TripStatus,
        timestamp_field: Optional[str] = None,
    ) -> Optional[Trip]:
        _check_timestamp_field(timestamp_field)
        async with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None or trip.status != expected_status:
                return None
            changes: dict[str, Any] = {"status": new_status}
            if timestamp_field:
                changes[timestamp_field] = utcnow()
            return self._replace(trip, changes)

    async def set_rating(
        self,
        trip_id: str,
        direction: RatingDirection,
        rating: int,
        comment: Optional[str] = None,
    ) -> Optional[Trip]:
        async with self._lock:
            trip = self._trips.get(trip_id)
            if trip is None or trip.status != TripStatus.COMPLETED:
                return None
            if trip.rating_for(direction) is not None:
                return None
            return self._replace(trip, {
                f"{direction.value}_rating": rating,
                f"{direction.value}_comment": comment,
            })

    async def list_requested(self, limit: int) -> list[Trip]:
        found = [t for t in self._trips.values() if t.status == TripStatus.REQUESTED]
        return self._newest(found)[:limit]

    async def find_current_for_passenger(self, passenger_id: str) -> Optional[Trip]:
        found = [
            t for t in self._trips.values()
            if t.passenger_id == passenger_id and t.status in ACTIVE_PASSENGER_STATUSES
        ]
        newest = self._newest(found)
        return newest[0] if newest else None

    async def find_current_for_driver(self, driver_id: str) -> Optional[Trip]:
        found = [
            t for t in self._trips.values()
            if t.driver_id == driver_id and t.status in ACTIVE_DRIVER_STATUSES
        ]
        newest = self._newest(found)
        return newest[0] if newest else None

    async def list_history(self, user_id: str, role: UserRole, limit: int) -> list[Trip]:
        if role == UserRole.DRIVER:
            found = [t for t in self._trips.values() if t.driver_id == user_id]
        else:
            found = [t for t in self._trips.values() if t.passenger_id == user_id]
        return self._newest(found)[:limit]

    async def list_completed_for_driver(self, driver_id: str) -> list[Trip]:
        found = [
            t for t in self._trips.values()
            if t.driver_id == driver_id and t.status == TripStatus.COMPLETED
        ]
        return self._newest(found)

    async def average_rating(self, user_id: str, direction: RatingDirection) -> Optional[float]:
        if direction == RatingDirection.DRIVER:
            ratings = [t.driver_rating for t in self._trips.values()
                       if t.driver_id == user_id and t.driver_rating is not None]
        else:
            ratings = [t.passenger_rating for t in self._trips.values()
                       if t.passenger_id == user_id and t.passenger_rating is not None]
        if not ratings:
            return None
        return sum(ratings) / len(ratings)

    def _replace(self, trip: Trip, changes: dict[str, Any]) -> Trip:
        updated = trip.model_copy(update=changes, deep=True)
        self._trips[trip.id] = updated
        return updated.model_copy(deep=True)

    @staticmethod
    def _newest(trips: list[Trip]) -> list[Trip]:
        ordered = sorted(trips, key=lambda t: t.requested_at, reverse=True)
        return [t.model_copy(deep=True) for t in ordered]
