# ridehail/core/wallet/repository.py
"""
Репозиторий кошельков в PostgreSQL.

Методы с аргументом conn выполняются внутри транзакции вызывающего
(`async with db.transaction() as conn`); строка кошелька блокируется
через SELECT ... FOR UPDATE, так что проводки одного кошелька идут строго
по очереди и balance_after всегда считается от актуального баланса.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import uuid4

from asyncpg import Connection

from ridehail.common.constants import TransactionCategory, TransactionType
from ridehail.core.wallet.models import CommissionConfig, DriverPayout, Wallet, WalletTransaction
from ridehail.infra.database import DatabaseManager


_WALLET_COLUMNS = """
    id, driver_id, balance, total_earned, total_withdrawn, min_withdrawal, currency, updated_at
"""

_TRANSACTION_COLUMNS = """
    id, wallet_id, driver_id, type, category, amount, balance_after,
    reference_type, reference_id, description, created_at
"""


class WalletRepository:
    """Репозиторий кошельков, проводок и заявок на вывод."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных
        """
        self._db = db

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get_wallet(self, driver_id: str) -> Optional[Wallet]:
        row = await self._db.fetchrow(
            f"SELECT {_WALLET_COLUMNS} FROM driver_wallets WHERE driver_id = $1",
            driver_id,
        )
        return Wallet(**dict(row)) if row else None

    async def recent_transactions(self, driver_id: str, limit: int) -> list[WalletTransaction]:
        """Последние проводки водителя, новые первыми."""
        rows = await self._db.fetch(
            f"""
            SELECT {_TRANSACTION_COLUMNS} FROM wallet_transactions
            WHERE driver_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            driver_id,
            limit,
        )
        return [self._row_to_transaction(row) for row in rows]

    async def get_active_commission_config(self) -> Optional[CommissionConfig]:
        """Самая свежая активная настройка комиссии или None."""
        row = await self._db.fetchrow(
            """
            SELECT platform_percentage, min_commission, max_commission
            FROM commission_config
            WHERE is_active = TRUE
            ORDER BY created_at DESC
            LIMIT 1
            """
        )
        if row is None:
            return None
        return CommissionConfig(
            percentage=row["platform_percentage"],
            min_commission=row["min_commission"],
            max_commission=row["max_commission"],
        )

    # =========================================================================
    # ВНУТРИ ТРАНЗАКЦИИ
    # =========================================================================

    async def lock_wallet(self, conn: Connection, driver_id: str) -> Optional[Wallet]:
        """Кошелёк водителя с блокировкой строки до конца транзакции."""
        row = await conn.fetchrow(
            f"SELECT {_WALLET_COLUMNS} FROM driver_wallets WHERE driver_id = $1 FOR UPDATE",
            driver_id,
        )
        return Wallet(**dict(row)) if row else None

    async def ensure_wallet(self, conn: Connection, driver_id: str, currency: str) -> Wallet:
        """
        Кошелёк водителя с блокировкой; создаётся при первом начислении.
        """
        await conn.execute(
            """
            INSERT INTO driver_wallets (id, driver_id, currency)
            VALUES ($1, $2, $3)
            ON CONFLICT (driver_id) DO NOTHING
            """,
            str(uuid4()),
            driver_id,
            currency,
        )
        wallet = await self.lock_wallet(conn, driver_id)
        if wallet is None:
            raise RuntimeError(f"Кошелёк водителя {driver_id} не создан")
        return wallet

    async def has_trip_credit(self, conn: Connection, trip_id: str) -> bool:
        """Есть ли уже начисление за поездку."""
        value = await conn.fetchval(
            """
            SELECT 1 FROM wallet_transactions
            WHERE reference_type = 'trip' AND reference_id = $1 AND category = $2
            LIMIT 1
            """,
            trip_id,
            TransactionCategory.TRIP_EARNING.value,
        )
        return value is not None

    async def insert_transaction(self, conn: Connection, tx: WalletTransaction) -> WalletTransaction:
        row = await conn.fetchrow(
            f"""
            INSERT INTO wallet_transactions (
                id, wallet_id, driver_id, type, category, amount, balance_after,
                reference_type, reference_id, description
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING {_TRANSACTION_COLUMNS}
            """,
            tx.id,
            tx.wallet_id,
            tx.driver_id,
            tx.type.value,
            tx.category.value,
            tx.amount,
            tx.balance_after,
            tx.reference_type,
            tx.reference_id,
            tx.description,
        )
        return self._row_to_transaction(row)

    async def apply_balance(
        self,
        conn: Connection,
        wallet_id: str,
        balance: int,
        earned: int = 0,
        withdrawn: int = 0,
    ) -> None:
        """Записывает новый баланс и нарастающие итоги."""
        await conn.execute(
            """
            UPDATE driver_wallets
            SET balance = $2,
                total_earned = total_earned + $3,
                total_withdrawn = total_withdrawn + $4,
                updated_at = NOW()
            WHERE id = $1
            """,
            wallet_id,
            balance,
            earned,
            withdrawn,
        )

    async def insert_payout(self, conn: Connection, payout: DriverPayout) -> DriverPayout:
        row = await conn.fetchrow(
            """
            INSERT INTO driver_payouts (
                id, driver_id, amount, commission, net_amount, status, payout_method,
                bank_account, bank_name, account_holder_name, period_start, period_end
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING *
            """,
            payout.id,
            payout.driver_id,
            payout.amount,
            payout.commission,
            payout.net_amount,
            payout.status.value,
            payout.payout_method,
            payout.bank_account,
            payout.bank_name,
            payout.account_holder_name,
            payout.period_start,
            payout.period_end,
        )
        return DriverPayout(**dict(row))

    @staticmethod
    def _row_to_transaction(row: Any) -> WalletTransaction:
        data = dict(row)
        data["type"] = TransactionType(data["type"])
        data["category"] = TransactionCategory(data["category"])
        return WalletTransaction(**data)
