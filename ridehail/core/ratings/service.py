# ridehail/core/ratings/service.py
"""
Оценки поездок и пересчёт рейтинга участников.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ridehail.common.constants import RatingDirection, TripStatus, TypeMsg
from ridehail.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ridehail.common.logger import log_error, log_info
from ridehail.core.identity import Identity
from ridehail.core.ratings.repository import RatingRepository
from ridehail.core.trips.models import Trip
from ridehail.core.trips.store import TripStore
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import TripRated

if TYPE_CHECKING:
    from ridehail.core.notifications.service import NotificationFanout


# Рейтинг пользователя, у которого ещё нет ни одной оценки
DEFAULT_RATING = 5.0


class RatingAggregator:
    """
    Оценки поездок.

    Пассажир оценивает водителя, водитель пассажира; каждое направление
    пишется один раз. После записи средний рейтинг оценённого пересчитывается
    по всем его оценкам и сохраняется в профиль.
    """

    def __init__(
        self,
        store: TripStore,
        repository: RatingRepository,
        fanout: Optional[NotificationFanout] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._store = store
        self._repository = repository
        self._fanout = fanout
        self._event_bus = event_bus

    async def rate(
        self,
        trip_id: str,
        identity: Identity,
        rating: int,
        comment: Optional[str] = None,
    ) -> Trip:
        """
        Ставит оценку второму участнику завершённой поездки.

        Args:
            trip_id: ID поездки
            identity: Пассажир или водитель поездки
            rating: Оценка от 1 до 5
            comment: Отзыв

        Returns:
            Поездка с проставленной оценкой

        Raises:
            ValidationError: оценка вне диапазона или поездка не завершена
            NotFoundError: поездки нет
            AuthorizationError: пользователь не участник
            ConflictError: оценка в этом направлении уже стоит
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        trip = await self._store.get(trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")

        if identity.user_id == trip.passenger_id:
            direction = RatingDirection.DRIVER
            rated_user_id = trip.driver_id
        elif trip.driver_id is not None and identity.user_id == trip.driver_id:
            direction = RatingDirection.PASSENGER
            rated_user_id = trip.passenger_id
        else:
            raise AuthorizationError("Unauthorized")

        if trip.status != TripStatus.COMPLETED:
            raise ValidationError("Can only rate completed trips")

        if trip.rating_for(direction) is not None:
            raise ConflictError(f"Trip already rated by {identity.role.value}")

        updated = await self._store.set_rating(trip_id, direction, rating, comment or None)
        if updated is None:
            raise ConflictError(f"Trip already rated by {identity.role.value}")

        average = await self.recompute(rated_user_id, direction)
        await log_info(
            f"Поездка {trip_id}: {direction} оценён на {rating}, средний {average}",
            type_msg=TypeMsg.INFO,
        )

        if self._fanout is not None and direction == RatingDirection.DRIVER:
            self._fanout.fire(self._fanout.new_rating(updated, rated_user_id, rating))

        if self._event_bus is not None:
            await self._event_bus.publish(TripRated(
                trip_id=trip_id,
                rated_user_id=rated_user_id,
                direction=direction.value,
                rating=rating,
                new_average=average,
            ))
        return updated

    async def recompute(self, user_id: str, direction: RatingDirection) -> float:
        """
        Пересчитывает средний рейтинг и сохраняет его в профиль.
        Ошибка сохранения не отменяет уже записанную оценку.
        """
        average = await self._store.average_rating(user_id, direction)
        average = round(average, 2) if average is not None else DEFAULT_RATING

        try:
            await self._repository.save_average(user_id, direction, average)
        except Exception as e:
            await log_error(f"Не удалось сохранить рейтинг пользователя {user_id}: {e}")
        return average
