# ridehail/core/drivers/models.py
"""
Модели данных водителей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ridehail.common.constants import VerificationStatus


class DriverAvailability(BaseModel):
    """Снимок состояния водителя для диспетчеризации и предложений цены."""

    driver_id: str = Field(..., description="ID водителя")
    full_name: str = Field("", description="Имя водителя")

    # Геопозиция
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0, description="Текущая широта")
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0, description="Текущая долгота")
    last_location_update: Optional[datetime] = Field(None, description="Время последнего обновления позиции")

    # Допуск к работе
    is_available: bool = Field(False, description="Водитель на линии")
    verification_status: VerificationStatus = Field(
        VerificationStatus.PENDING, description="Статус верификации"
    )
    profile_completed: bool = Field(False, description="Профиль заполнен")

    # Профиль
    rating: float = Field(5.0, ge=0.0, le=5.0, description="Средняя оценка")
    total_trips: int = Field(0, ge=0, description="Всего поездок")
    vehicle_model: Optional[str] = Field(None, description="Модель автомобиля")
    vehicle_color: Optional[str] = Field(None, description="Цвет автомобиля")
    vehicle_plate: Optional[str] = Field(None, description="Госномер")

    model_config = {"from_attributes": True}

    @property
    def has_location(self) -> bool:
        """Известна ли позиция водителя."""
        return self.latitude is not None and self.longitude is not None

    @property
    def is_approved(self) -> bool:
        return self.verification_status == VerificationStatus.APPROVED

    @property
    def is_dispatchable(self) -> bool:
        """Можно ли предлагать водителю новые поездки."""
        return self.is_available and self.is_approved and self.has_location


class DriverEarnings(BaseModel):
    """Сводка заработка водителя по завершённым поездкам."""

    driver_id: str
    completed_trips: int = 0
    total_earnings: int = 0
    today_trips: int = 0
    today_earnings: int = 0
