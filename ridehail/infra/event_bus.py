# ridehail/infra/event_bus.py
"""
Шина доменных событий на базе RabbitMQ (topic exchange).
Публикация не блокирует бизнес-операцию: ошибки только логируются.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import aio_pika
from aio_pika import DeliveryMode, ExchangeType, Message
from aio_pika.abc import AbstractChannel, AbstractExchange, AbstractRobustConnection

from ridehail.common.constants import TypeMsg
from ridehail.common.logger import log_error, log_info, log_warning
from ridehail.shared.events.base import DomainEvent

if TYPE_CHECKING:
    from ridehail.config.loader import RabbitMQSettings


class EventBus:
    """
    Публикатор доменных событий.

    routing_key события совпадает с его event_type (`trip.accepted`,
    `wallet.credited`, ...), поэтому потребители подписываются по шаблонам
    вроде `trip.*`.
    """

    _instance: EventBus | None = None

    def __new__(cls) -> EventBus:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if hasattr(self, "_initialized"):
            return
        self._initialized = True
        self._connection: AbstractRobustConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchange: AbstractExchange | None = None
        self._exchange_name = "ridehail.events"
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Проверяет, активно ли соединение."""
        return self._connection is not None and not self._connection.is_closed

    async def connect(self, config: RabbitMQSettings | None = None) -> None:
        """
        Подключается к RabbitMQ и объявляет durable topic exchange.

        Args:
            config: Секция rabbitmq (из глобальных настроек если None)
        """
        if config is None:
            from ridehail.config import settings
            config = settings.rabbitmq

        async with self._connect_lock:
            if self.is_connected:
                return
            self._exchange_name = config.RABBITMQ_EXCHANGE
            self._connection = await aio_pika.connect_robust(config.url)
            self._channel = await self._connection.channel()
            self._exchange = await self._channel.declare_exchange(
                self._exchange_name,
                ExchangeType.TOPIC,
                durable=True,
            )
        await log_info(f"RabbitMQ exchange готов: {self._exchange_name}", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с RabbitMQ."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
            await log_info("Соединение с RabbitMQ закрыто", type_msg=TypeMsg.INFO)

    async def publish(self, event: DomainEvent) -> bool:
        """
        Публикует событие.

        Returns:
            True, если брокер принял сообщение
        """
        if not self.is_connected or self._exchange is None:
            await log_warning(f"Событие {event.event_type} не опубликовано: нет соединения с RabbitMQ")
            return False

        try:
            message = Message(
                body=event.to_json().encode(),
                content_type="application/json",
                message_id=event.event_id,
                timestamp=datetime.now(timezone.utc),
                delivery_mode=DeliveryMode.PERSISTENT,
            )
            await self._exchange.publish(message, routing_key=event.routing_key)
        except Exception as e:
            await log_error(f"Ошибка публикации события {event.event_type}: {e}")
            return False

        await log_info(f"Событие опубликовано: {event.event_type}", type_msg=TypeMsg.DEBUG)
        return True

    async def health_check(self) -> bool:
        return self.is_connected


def get_event_bus() -> EventBus:
    """Возвращает глобальный экземпляр EventBus."""
    return EventBus()


async def init_event_bus() -> EventBus:
    """Подключает шину по настройкам; недоступный брокер не мешает старту сервиса."""
    event_bus = get_event_bus()
    try:
        await event_bus.connect()
    except Exception as e:
        await log_error(f"RabbitMQ недоступен, события публиковаться не будут: {e}")
    return event_bus


async def close_event_bus() -> None:
    """Закрывает подключение к RabbitMQ."""
    await get_event_bus().disconnect()
