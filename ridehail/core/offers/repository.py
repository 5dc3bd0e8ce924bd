# ridehail/core/offers/repository.py
"""
Репозиторий предложений цены в PostgreSQL.
"""

from __future__ import annotations

from typing import Optional

from ridehail.core.offers.models import Offer
from ridehail.infra.database import DatabaseManager


_OFFER_COLUMNS = """
    id, trip_id, driver_id, offered_price,
    driver_name, vehicle_model, vehicle_color, vehicle_plate, driver_rating,
    created_at
"""


class OfferRepository:
    """Репозиторий предложений."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def upsert(self, offer: Offer) -> Offer:
        """
        Сохраняет предложение; повторное предложение того же водителя заменяет прежнее.
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO trip_offers (
                id, trip_id, driver_id, offered_price,
                driver_name, vehicle_model, vehicle_color, vehicle_plate, driver_rating,
                created_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            ON CONFLICT (trip_id, driver_id) DO UPDATE SET
                offered_price = EXCLUDED.offered_price,
                driver_name = EXCLUDED.driver_name,
                vehicle_model = EXCLUDED.vehicle_model,
                vehicle_color = EXCLUDED.vehicle_color,
                vehicle_plate = EXCLUDED.vehicle_plate,
                driver_rating = EXCLUDED.driver_rating,
                created_at = EXCLUDED.created_at
            RETURNING {_OFFER_COLUMNS}
            """,
            offer.id,
            offer.trip_id,
            offer.driver_id,
            offer.offered_price,
            offer.driver_name,
            offer.vehicle_model,
            offer.vehicle_color,
            offer.vehicle_plate,
            offer.driver_rating,
            offer.created_at,
        )
        return Offer(**dict(row))

    async def get(self, trip_id: str, driver_id: str) -> Optional[Offer]:
        row = await self._db.fetchrow(
            f"SELECT {_OFFER_COLUMNS} FROM trip_offers WHERE trip_id = $1 AND driver_id = $2",
            trip_id,
            driver_id,
        )
        return Offer(**dict(row)) if row else None

    async def list_for_trip(self, trip_id: str) -> list[Offer]:
        """Предложения по поездке, дешёвые первыми."""
        rows = await self._db.fetch(
            f"""
            SELECT {_OFFER_COLUMNS} FROM trip_offers
            WHERE trip_id = $1
            ORDER BY offered_price ASC, created_at ASC
            """,
            trip_id,
        )
        return [Offer(**dict(row)) for row in rows]
