# ridehail/core/notifications/models.py
"""
Модели уведомлений.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class NotificationType(str, Enum):
    """Типы уведомлений (поле data.type в push и type в таблице notifications)."""
    NEW_TRIP = "new_trip"
    TRIP_ACCEPTED = "trip_accepted"
    DRIVER_ARRIVING = "driver_arriving"
    TRIP_STARTED = "trip_started"
    TRIP_COMPLETED = "trip_completed"
    TRIP_CANCELLED = "trip_cancelled"
    PRICE_OFFER = "price_offer"
    OFFER_ACCEPTED = "offer_accepted"
    NEW_RATING = "new_rating"

    def __str__(self) -> str:
        return self.value


@dataclass
class PushMessage:
    """Сообщение для push-провайдера (формат Expo Push API)."""
    to: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    sound: Optional[str] = "default"
    priority: str = "high"

    def to_payload(self) -> dict[str, Any]:
        return {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "sound": self.sound,
            "priority": self.priority,
        }


@dataclass
class Notification:
    """Уведомление конкретному пользователю до разрешения push-токена."""
    user_id: str
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
