# ridehail/core/offers/models.py
"""
Модели предложений цены.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class Offer(BaseModel):
    """Предложение цены водителя по поездке. Одно на пару (поездка, водитель)."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="UUID предложения")
    trip_id: str = Field(..., description="ID поездки")
    driver_id: str = Field(..., description="ID водителя")
    offered_price: int = Field(..., gt=0, description="Предложенная цена")

    # Снимок профиля водителя на момент предложения
    driver_name: Optional[str] = Field(None, description="Имя водителя")
    vehicle_model: Optional[str] = Field(None, description="Модель автомобиля")
    vehicle_color: Optional[str] = Field(None, description="Цвет автомобиля")
    vehicle_plate: Optional[str] = Field(None, description="Госномер")
    driver_rating: Optional[float] = Field(None, description="Рейтинг водителя")

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"from_attributes": True}


class OfferCreateDTO(BaseModel):
    """DTO предложения цены."""

    offered_price: int


class OfferAcceptDTO(BaseModel):
    """DTO принятия предложения пассажиром."""

    driver_id: str
