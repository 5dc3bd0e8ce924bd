# ridehail/core/payments/repository.py
"""
Репозиторий платёжных транзакций (PostgreSQL).
Таблица: payment_transactions
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ridehail.common.constants import PaymentMethod, PaymentStatus
from ridehail.core.payments.models import PaymentTransaction
from ridehail.infra.database import DatabaseManager


_COLUMNS = """
    id, trip_id, user_id, amount, status, payment_type, provider,
    provider_transaction_id, payment_link, description, created_at, approved_at
"""


class PaymentRepository:
    """Репозиторий платежей."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def find_approved(self, trip_id: str) -> Optional[PaymentTransaction]:
        """Одобренная транзакция по поездке, если есть."""
        row = await self._db.fetchrow(
            f"""
            SELECT {_COLUMNS} FROM payment_transactions
            WHERE trip_id = $1 AND status = $2
            LIMIT 1
            """,
            trip_id,
            PaymentStatus.APPROVED.value,
        )
        return self._row_to_transaction(row) if row else None

    async def insert(self, tx: PaymentTransaction) -> PaymentTransaction:
        """
        Сохраняет транзакцию.

        Raises:
            asyncpg.UniqueViolationError: по поездке уже есть одобренная транзакция
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO payment_transactions (
                id, trip_id, user_id, amount, status, payment_type, provider,
                provider_transaction_id, payment_link, description, approved_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            RETURNING {_COLUMNS}
            """,
            tx.id,
            tx.trip_id,
            tx.user_id,
            tx.amount,
            tx.status.value,
            tx.payment_type.value,
            tx.provider,
            tx.provider_transaction_id,
            tx.payment_link,
            tx.description,
            tx.approved_at,
        )
        return self._row_to_transaction(row)

    async def update_from_provider(
        self,
        provider_transaction_id: str,
        reference: Optional[str],
        status: PaymentStatus,
        approved_at: Optional[datetime],
    ) -> Optional[PaymentTransaction]:
        """
        Обновляет статус по ID провайдера (или по нашей ссылке reference).
        Одобренная транзакция больше не меняется.

        Returns:
            Обновлённая транзакция или None, если не найдена или уже одобрена
        """
        row = await self._db.fetchrow(
            f"""
            UPDATE payment_transactions
            SET status = $3,
                provider_transaction_id = COALESCE(provider_transaction_id, $1),
                approved_at = COALESCE($4, approved_at)
            WHERE (provider_transaction_id = $1 OR id = $2)
              AND status <> 'approved'
            RETURNING {_COLUMNS}
            """,
            provider_transaction_id,
            reference,
            status.value,
            approved_at,
        )
        return self._row_to_transaction(row) if row else None

    async def get_user_email(self, user_id: str) -> Optional[str]:
        return await self._db.fetchval("SELECT email FROM users WHERE id = $1", user_id)

    @staticmethod
    def _row_to_transaction(row: Any) -> PaymentTransaction:
        data = dict(row)
        data["status"] = PaymentStatus(data["status"])
        data["payment_type"] = PaymentMethod(data["payment_type"])
        return PaymentTransaction(**data)
