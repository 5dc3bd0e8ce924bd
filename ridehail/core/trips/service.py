# ridehail/core/trips/service.py
"""
Сервис поездок: смена статуса и запросы участников.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ridehail.common.constants import TripStatus, TypeMsg
from ridehail.common.exceptions import AuthorizationError, ConflictError, NotFoundError
from ridehail.common.logger import log_error, log_info
from ridehail.core.drivers.repository import DriverRepository
from ridehail.core.identity import Identity
from ridehail.core.trips.models import Trip
from ridehail.core.trips.state_machine import TripStateMachine
from ridehail.core.trips.store import TripStore
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import TripStatusChanged

if TYPE_CHECKING:
    from ridehail.core.notifications.service import NotificationFanout


class TripService:
    """Сервис поездок."""

    def __init__(
        self,
        store: TripStore,
        drivers: DriverRepository,
        fanout: NotificationFanout,
        event_bus: Optional[EventBus] = None,
        history_limit: Optional[int] = None,
    ) -> None:
        """
        Args:
            store: Хранилище поездок
            drivers: Репозиторий водителей
            fanout: Рассылка уведомлений
            event_bus: Шина событий
            history_limit: Размер истории поездок (из конфига если None)
        """
        if history_limit is None:
            from ridehail.config import settings
            history_limit = settings.search.HISTORY_LIMIT

        self._store = store
        self._drivers = drivers
        self._fanout = fanout
        self._event_bus = event_bus
        self._history_limit = history_limit

    async def get_trip(self, trip_id: str, identity: Identity) -> Trip:
        """
        Поездка для её участника.

        Raises:
            NotFoundError: поездки нет
            AuthorizationError: пользователь не участник
        """
        trip = await self._store.get(trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")
        if not trip.is_party(identity.user_id):
            raise AuthorizationError("Unauthorized")
        return trip

    async def update_status(self, trip_id: str, identity: Identity, new_status: TripStatus) -> Trip:
        """
        Переводит поездку в новый статус.

        Args:
            trip_id: ID поездки
            identity: Пассажир или водитель поездки
            new_status: Целевой статус

        Returns:
            Обновлённая поездка

        Raises:
            NotFoundError: поездки нет
            AuthorizationError: пользователь не участник
            ValidationError: переход недопустим
            ConflictError: статус изменился конкурентно
        """
        trip = await self._store.get(trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")

        TripStateMachine.check(trip, identity, new_status)

        updated = await self._store.transition(
            trip_id,
            trip.status,
            new_status,
            TripStateMachine.timestamp_field(new_status),
        )
        if updated is None:
            raise ConflictError("Trip status changed, please refresh")

        await log_info(
            f"Поездка {trip_id}: {trip.status} -> {new_status} ({identity.user_id})",
            type_msg=TypeMsg.INFO,
        )

        if new_status == TripStatus.COMPLETED and updated.driver_id:
            try:
                await self._drivers.increment_total_trips(updated.driver_id)
            except Exception as e:
                await log_error(f"Не удалось обновить счётчик поездок водителя: {e}")

        self._fanout.fire(self._fanout.status_changed(updated, identity.user_id))

        if self._event_bus is not None:
            await self._event_bus.publish(TripStatusChanged(
                trip_id=trip_id,
                old_status=trip.status.value,
                new_status=new_status.value,
                changed_by=identity.user_id,
            ))
        return updated

    async def current_for_passenger(self, identity: Identity) -> Optional[Trip]:
        """Текущая незавершённая поездка пассажира."""
        if not identity.is_passenger:
            raise AuthorizationError("Only passengers have a current trip")
        return await self._store.find_current_for_passenger(identity.user_id)

    async def current_for_driver(self, identity: Identity) -> Optional[Trip]:
        """Текущая активная поездка водителя."""
        if not identity.is_driver:
            raise AuthorizationError("Only drivers have a current driver trip")
        return await self._store.find_current_for_driver(identity.user_id)

    async def history(self, identity: Identity) -> list[Trip]:
        """История поездок пользователя, новые первыми."""
        return await self._store.list_history(identity.user_id, identity.role, self._history_limit)
