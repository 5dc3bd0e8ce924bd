# ridehail/core/trips/models.py
"""
Модели данных поездок.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ridehail.common.constants import RatingDirection, TripStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Location(BaseModel):
    """Точка маршрута."""

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Широта")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Долгота")
    address: Optional[str] = Field(None, description="Адрес")


class Trip(BaseModel):
    """Модель поездки."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="UUID поездки")
    passenger_id: str = Field(..., description="ID пассажира")
    driver_id: Optional[str] = Field(None, description="ID водителя")

    # Маршрут
    pickup: Location = Field(..., description="Точка подачи")
    dropoff: Location = Field(..., description="Точка назначения")
    distance_km: float = Field(0.0, ge=0.0, description="Расстояние в км")
    fare: int = Field(0, ge=0, description="Стоимость в минимальных единицах валюты")

    status: TripStatus = Field(TripStatus.REQUESTED, description="Статус поездки")

    # Временные метки
    requested_at: datetime = Field(default_factory=utcnow, description="Время создания")
    accepted_at: Optional[datetime] = Field(None, description="Время принятия")
    started_at: Optional[datetime] = Field(None, description="Время начала поездки")
    completed_at: Optional[datetime] = Field(None, description="Время завершения")
    cancelled_at: Optional[datetime] = Field(None, description="Время отмены")

    # Оценки: driver_* ставит пассажир водителю, passenger_* водитель пассажиру
    driver_rating: Optional[int] = Field(None, ge=1, le=5, description="Оценка водителя")
    driver_comment: Optional[str] = Field(None, description="Отзыв о водителе")
    passenger_rating: Optional[int] = Field(None, ge=1, le=5, description="Оценка пассажира")
    passenger_comment: Optional[str] = Field(None, description="Отзыв о пассажире")

    def is_party(self, user_id: str) -> bool:
        """Участвует ли пользователь в поездке."""
        return user_id == self.passenger_id or (
            self.driver_id is not None and user_id == self.driver_id
        )

    def rating_for(self, direction: RatingDirection) -> Optional[int]:
        if direction == RatingDirection.DRIVER:
            return self.driver_rating
        return self.passenger_rating


class TripCreateDTO(BaseModel):
    """DTO для создания поездки пассажиром."""

    pickup: Location
    dropoff: Location
    estimated_fare: int = Field(0, ge=0, description="Цена, предложенная пассажиром")
    distance_km: float = Field(0.0, ge=0.0)


class TripStatusUpdateDTO(BaseModel):
    """DTO смены статуса поездки."""

    status: TripStatus


class TripRatingDTO(BaseModel):
    """DTO оценки поездки."""

    rating: int = Field(..., description="Оценка от 1 до 5")
    comment: Optional[str] = Field(None, max_length=1000)


class AvailableTrip(BaseModel):
    """Поездка на доске водителя с расстоянием до точки подачи."""

    trip: Trip
    distance_to_pickup_km: Optional[float] = None
