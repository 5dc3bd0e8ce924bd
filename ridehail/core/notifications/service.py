# ridehail/core/notifications/service.py
"""
Рассылка уведомлений.

Доставка каждому получателю изолирована: сбой одного push не влияет
на остальных и никогда не пробрасывается в вызывающую операцию.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable, Optional

from ridehail.common.constants import TripStatus, TypeMsg
from ridehail.common.logger import log_error, log_info, log_warning
from ridehail.core.notifications.models import Notification, NotificationType, PushMessage
from ridehail.core.notifications.repository import NotificationRepository
from ridehail.core.notifications.sink import NotificationSink
from ridehail.core.trips.models import Trip
from ridehail.infra.redis_client import RedisClient


SENT_COUNTER_KEY = "notifications:sent"
FAILED_COUNTER_KEY = "notifications:failed"

# Уведомления пассажиру при смене статуса поездки
_STATUS_TEMPLATES: dict[TripStatus, tuple[NotificationType, str, str]] = {
    TripStatus.DRIVER_ARRIVING: (
        NotificationType.DRIVER_ARRIVING,
        "Tu conductor está cerca",
        "Tu conductor está llegando al punto de recogida",
    ),
    TripStatus.IN_PROGRESS: (
        NotificationType.TRIP_STARTED,
        "Viaje iniciado",
        "¡Buen viaje! Tu conductor ha iniciado el recorrido",
    ),
    TripStatus.COMPLETED: (
        NotificationType.TRIP_COMPLETED,
        "Viaje completado",
        "Gracias por viajar con nosotros. Total: ${fare}",
    ),
    TripStatus.CANCELLED: (
        NotificationType.TRIP_CANCELLED,
        "Viaje cancelado",
        "El viaje fue cancelado",
    ),
}


def format_money(amount: int) -> str:
    """12500 -> '12.500'"""
    return f"{amount:,}".replace(",", ".")


def notified_key(trip_id: str, driver_id: str) -> str:
    return f"trip:{trip_id}:notified:{driver_id}"


class NotificationFanout:
    """
    Сервис рассылки уведомлений.

    Реализует:
    - Параллельную рассылку водителям о новой поездке с подсчётом успешных доставок
    - Одиночные уведомления участникам поездки (в ленту и push)
    - Дедупликацию повторных уведомлений водителю по одной поездке (Redis)
    - Фоновую отправку, не задерживающую ответ клиенту
    """

    def __init__(
        self,
        sink: NotificationSink,
        repository: NotificationRepository,
        redis: Optional[RedisClient] = None,
        dedup_ttl: Optional[int] = None,
    ) -> None:
        """
        Args:
            sink: Канал доставки push
            repository: Push-токены и лента уведомлений
            redis: Клиент Redis для дедупликации и счётчиков (опционально)
            dedup_ttl: Время жизни отметки «водитель уже уведомлён», секунды
        """
        if dedup_ttl is None:
            from ridehail.config import settings
            dedup_ttl = settings.redis_ttl.NOTIFIED_DRIVERS_TTL

        self._sink = sink
        self._repository = repository
        self._redis = redis
        self._dedup_ttl = dedup_ttl
        self._pending: set[asyncio.Task] = set()

    # =========================================================================
    # ДОСТАВКА
    # =========================================================================

    async def notify_user(self, notification: Notification, *, store: bool = True) -> bool:
        """
        Доставляет уведомление одному пользователю.

        Args:
            notification: Уведомление
            store: Сохранить копию в ленту уведомлений

        Returns:
            True если push принят провайдером
        """
        try:
            if store:
                await self._repository.save(notification)

            token = await self._repository.get_push_token(notification.user_id)
            if not token:
                await log_info(
                    f"Нет push-токена у пользователя {notification.user_id}",
                    type_msg=TypeMsg.DEBUG,
                )
                return False

            delivered = await self._sink.send(PushMessage(
                to=token,
                title=notification.title,
                body=notification.body,
                data={"type": notification.type.value, **notification.data},
            ))
        except Exception as e:
            await log_error(f"Ошибка уведомления пользователя {notification.user_id}: {e}")
            delivered = False

        await self._count(delivered)
        return delivered

    async def notify_drivers(self, trip: Trip, driver_ids: Iterable[str]) -> int:
        """
        Рассылает водителям уведомление о новой поездке.

        Водители, уже уведомлённые об этой поездке, пропускаются.

        Returns:
            Количество успешных доставок
        """
        targets = [d for d in dict.fromkeys(driver_ids) if await self._mark_notified(trip.id, d)]
        if not targets:
            return 0

        address = trip.pickup.address or f"{trip.pickup.latitude:.5f}, {trip.pickup.longitude:.5f}"
        results = await asyncio.gather(
            *(
                self.notify_user(
                    Notification(
                        user_id=driver_id,
                        type=NotificationType.NEW_TRIP,
                        title="¡Nuevo viaje disponible!",
                        body=f"{address} - ${format_money(trip.fare)}",
                        data={"tripId": trip.id},
                    ),
                    store=False,
                )
                for driver_id in targets
            ),
            return_exceptions=True,
        )

        delivered = sum(1 for r in results if r is True)
        await log_info(
            f"Поездка {trip.id}: уведомлено {delivered} из {len(targets)} водителей",
            type_msg=TypeMsg.INFO,
        )
        return delivered

    # =========================================================================
    # СОБЫТИЯ ПОЕЗДКИ
    # =========================================================================

    async def trip_accepted(self, trip: Trip, driver_name: str = "", vehicle: str = "") -> bool:
        """Пассажиру: водитель назначен."""
        name = driver_name or "Tu conductor"
        body = f"{name} está en camino" + (f" ({vehicle})" if vehicle else "")
        return await self.notify_user(Notification(
            user_id=trip.passenger_id,
            type=NotificationType.TRIP_ACCEPTED,
            title="¡Conductor asignado!",
            body=body,
            data={"tripId": trip.id, "driverId": trip.driver_id},
        ))

    async def new_offer(self, trip: Trip, driver_name: str, offered_price: int) -> bool:
        """Пассажиру: водитель предложил цену."""
        return await self.notify_user(Notification(
            user_id=trip.passenger_id,
            type=NotificationType.PRICE_OFFER,
            title="¡Nueva oferta de conductor!",
            body=f"{driver_name or 'Un conductor'} te ofrece el viaje por ${format_money(offered_price)}",
            data={"tripId": trip.id, "offeredPrice": offered_price},
        ))

    async def offer_accepted(self, trip: Trip) -> bool:
        """Водителю: пассажир принял его предложение."""
        if trip.driver_id is None:
            return False
        return await self.notify_user(Notification(
            user_id=trip.driver_id,
            type=NotificationType.OFFER_ACCEPTED,
            title="¡Oferta aceptada!",
            body=f"El pasajero aceptó tu oferta de ${format_money(trip.fare)}",
            data={"tripId": trip.id},
        ))

    async def status_changed(self, trip: Trip, changed_by: str) -> bool:
        """Второму участнику: статус поездки изменён."""
        template = _STATUS_TEMPLATES.get(trip.status)
        if template is None:
            return False

        recipient = trip.driver_id if changed_by == trip.passenger_id else trip.passenger_id
        if recipient is None:
            return False

        kind, title, body = template
        return await self.notify_user(Notification(
            user_id=recipient,
            type=kind,
            title=title,
            body=body.replace("{fare}", format_money(trip.fare)),
            data={"tripId": trip.id, "status": trip.status.value},
        ))

    async def new_rating(self, trip: Trip, rated_user_id: str, rating: int) -> bool:
        """Оценённому пользователю: получена оценка."""
        return await self.notify_user(Notification(
            user_id=rated_user_id,
            type=NotificationType.NEW_RATING,
            title="Nueva calificación",
            body=f"Recibiste {rating} estrellas",
            data={"tripId": trip.id, "rating": rating},
        ))

    # =========================================================================
    # ФОНОВЫЕ ЗАДАЧИ
    # =========================================================================

    def fire(self, coro: Awaitable[Any]) -> asyncio.Task:
        """
        Запускает доставку в фоне, не дожидаясь результата.
        Ссылка на задачу хранится до её завершения.
        """
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Дожидается всех фоновых доставок (остановка сервиса, тесты)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # =========================================================================
    # REDIS
    # =========================================================================

    async def _mark_notified(self, trip_id: str, driver_id: str) -> bool:
        """
        Ставит отметку «водитель уведомлён».

        Returns:
            False если отметка уже стояла; при недоступном Redis всегда True
        """
        if self._redis is None or not self._redis.is_connected:
            return True
        try:
            return await self._redis.set_if_absent(
                notified_key(trip_id, driver_id), "1", ttl=self._dedup_ttl
            )
        except Exception as e:
            await log_warning(f"Redis недоступен для дедупликации уведомлений: {e}")
            return True

    async def _count(self, delivered: bool) -> None:
        if self._redis is None or not self._redis.is_connected:
            return
        try:
            await self._redis.incr(SENT_COUNTER_KEY if delivered else FAILED_COUNTER_KEY)
        except Exception as e:
            await log_warning(f"Не удалось обновить счётчик уведомлений: {e}")
