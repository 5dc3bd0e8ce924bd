# ridehail/core/ratings/repository.py
"""
Сохранение агрегированного рейтинга в профиле пользователя.
"""

from __future__ import annotations

from ridehail.common.constants import RatingDirection
from ridehail.infra.database import DatabaseManager


class RatingRepository:
    """Профильные рейтинги: drivers.rating для водителей, users.rating для пассажиров."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save_average(self, user_id: str, direction: RatingDirection, average: float) -> None:
        if direction == RatingDirection.DRIVER:
            query = "UPDATE drivers SET rating = $2 WHERE id = $1"
        else:
            query = "UPDATE users SET rating = $2 WHERE id = $1"
        await self._db.execute(query, user_id, average)
