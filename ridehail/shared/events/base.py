# ridehail/shared/events/base.py
"""
Базовые классы доменных событий ride-hailing ядра.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field


class EventMetadata(BaseModel):
    """Идентификатор и время события; event_id служит ключом дедупликации у потребителей."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source_service: str = ""
    version: int = 1


class DomainEvent(BaseModel):
    """
    Неизменяемое доменное событие.

    Подклассы фиксируют event_type литералом (`trip.accepted`, `wallet.credited`);
    он же служит routing key в topic exchange.
    """

    model_config = {"frozen": True}

    event_type: str = ""
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    @property
    def routing_key(self) -> str:
        return self.event_type

    @property
    def event_id(self) -> str:
        return self.metadata.event_id

    @property
    def timestamp(self) -> datetime:
        return self.metadata.timestamp

    def to_json(self) -> str:
        return self.model_dump_json()
