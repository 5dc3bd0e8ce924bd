# ridehail/core/wallet/service.py
"""
Журнал кошелька водителя: начисления за поездки и выводы средств.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import asyncpg

from ridehail.common.constants import PayoutStatus, TransactionCategory, TransactionType, TypeMsg
from ridehail.common.exceptions import AuthorizationError, NotFoundError, ValidationError
from ridehail.common.logger import log_info, log_warning
from ridehail.core.identity import Identity
from ridehail.core.wallet.commission import split_earnings
from ridehail.core.wallet.models import (
    CommissionConfig,
    DriverPayout,
    WalletTransaction,
    WalletView,
    WithdrawalRequestDTO,
)
from ridehail.core.wallet.repository import WalletRepository
from ridehail.infra.database import DatabaseManager
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import WalletCredited, WithdrawalRequested


class WalletLedger:
    """
    Журнал кошелька.

    Каждая проводка и изменение баланса выполняются в одной транзакции
    с блокировкой строки кошелька. Начисление за поездку идемпотентно:
    повторный вызов для той же поездки ничего не пишет.
    """

    def __init__(
        self,
        db: DatabaseManager,
        repository: WalletRepository,
        event_bus: Optional[EventBus] = None,
        default_commission: Optional[CommissionConfig] = None,
        min_withdrawal: Optional[int] = None,
        recent_limit: Optional[int] = None,
        payout_period_days: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> None:
        """
        Args:
            db: Менеджер базы данных (транзакции)
            repository: Репозиторий кошельков
            event_bus: Шина событий
            default_commission: Комиссия, если в commission_config нет активной записи
            min_withdrawal: Минимум вывода, если у кошелька нет своего
            recent_limit: Число последних проводок в ответе
            payout_period_days: Длина расчётного периода заявки на вывод
            currency: Валюта новых кошельков
        """
        from ridehail.config import settings

        self._db = db
        self._repository = repository
        self._event_bus = event_bus
        self._default_commission = default_commission or CommissionConfig(
            percentage=settings.commission.PLATFORM_PERCENTAGE,
            min_commission=settings.commission.MIN_COMMISSION,
            max_commission=settings.commission.MAX_COMMISSION,
        )
        self._min_withdrawal = min_withdrawal if min_withdrawal is not None else settings.wallet.MIN_WITHDRAWAL
        self._recent_limit = recent_limit or settings.wallet.RECENT_TRANSACTIONS_LIMIT
        self._payout_period = timedelta(days=payout_period_days or settings.wallet.PAYOUT_PERIOD_DAYS)
        self._currency = currency or settings.wallet.CURRENCY

    async def commission_config(self) -> CommissionConfig:
        """Активная настройка комиссии из БД или значения по умолчанию."""
        config = await self._repository.get_active_commission_config()
        return config or self._default_commission

    # =========================================================================
    # НАЧИСЛЕНИЯ
    # =========================================================================

    async def settle_trip_payment(
        self, trip_id: str, driver_id: str, amount: int
    ) -> Optional[WalletTransaction]:
        """
        Зачисляет водителю заработок за оплаченную поездку за вычетом комиссии.

        Args:
            trip_id: ID поездки (ссылка проводки)
            driver_id: ID водителя
            amount: Оплаченная сумма

        Returns:
            Проводка начисления или None, если поездка уже была зачислена
        """
        if amount <= 0:
            await log_warning(f"Поездка {trip_id}: нулевая сумма, начисление пропущено")
            return None

        config = await self.commission_config()
        commission, net = split_earnings(amount, config)

        try:
            async with self._db.transaction() as conn:
                wallet = await self._repository.ensure_wallet(conn, driver_id, self._currency)

                if await self._repository.has_trip_credit(conn, trip_id):
                    await log_info(
                        f"Поездка {trip_id} уже зачислена, повтор пропущен",
                        type_msg=TypeMsg.DEBUG,
                    )
                    return None

                balance_after = wallet.balance + net
                tx = await self._repository.insert_transaction(conn, WalletTransaction(
                    wallet_id=wallet.id,
                    driver_id=driver_id,
                    type=TransactionType.CREDIT,
                    category=TransactionCategory.TRIP_EARNING,
                    amount=net,
                    balance_after=balance_after,
                    reference_type="trip",
                    reference_id=trip_id,
                    description=f"Ganancia por viaje (Comisión: ${commission})",
                ))
                await self._repository.apply_balance(conn, wallet.id, balance_after, earned=net)
        except asyncpg.UniqueViolationError:
            # Конкурентное начисление по той же поездке успело раньше
            await log_info(f"Поездка {trip_id} зачислена параллельно", type_msg=TypeMsg.DEBUG)
            return None

        await log_info(
            f"Водителю {driver_id} зачислено {net} (поездка {trip_id}, комиссия {commission})",
            type_msg=TypeMsg.INFO,
        )

        if self._event_bus is not None:
            await self._event_bus.publish(WalletCredited(
                driver_id=driver_id,
                trip_id=trip_id,
                gross_amount=amount,
                commission=commission,
                net_amount=net,
                balance_after=tx.balance_after,
            ))
        return tx

    # =========================================================================
    # ВЫВОД СРЕДСТВ
    # =========================================================================

    async def request_withdrawal(
        self, identity: Identity, request: WithdrawalRequestDTO
    ) -> tuple[DriverPayout, WalletTransaction]:
        """
        Создаёт заявку на вывод и списывает сумму с баланса.
        Заявка и проводка появляются вместе или не появляются вовсе.

        Raises:
            AuthorizationError: вызывающий не водитель
            NotFoundError: кошелька нет
            ValidationError: сумма меньше минимума или больше баланса
        """
        if not identity.is_driver:
            raise AuthorizationError("Only drivers can withdraw")
        if request.amount <= 0:
            raise ValidationError("Invalid amount")

        now = datetime.now(timezone.utc)

        async with self._db.transaction() as conn:
            wallet = await self._repository.lock_wallet(conn, identity.user_id)
            if wallet is None:
                raise NotFoundError("Wallet not found")

            minimum = wallet.min_withdrawal if wallet.min_withdrawal is not None else self._min_withdrawal
            if request.amount < minimum:
                raise ValidationError(f"Minimum withdrawal is ${minimum} {wallet.currency}")
            if request.amount > wallet.balance:
                raise ValidationError("Insufficient balance")

            payout = await self._repository.insert_payout(conn, DriverPayout(
                driver_id=identity.user_id,
                amount=request.amount,
                commission=0,
                net_amount=request.amount,
                status=PayoutStatus.PENDING,
                payout_method=request.payout_method,
                bank_account=request.bank_account,
                bank_name=request.bank_name,
                account_holder_name=request.account_holder_name,
                period_start=now - self._payout_period,
                period_end=now,
            ))

            balance_after = wallet.balance - request.amount
            tx = await self._repository.insert_transaction(conn, WalletTransaction(
                wallet_id=wallet.id,
                driver_id=identity.user_id,
                type=TransactionType.DEBIT,
                category=TransactionCategory.WITHDRAWAL,
                amount=request.amount,
                balance_after=balance_after,
                reference_type="payout",
                reference_id=payout.id,
                description=f"Retiro de ${request.amount} {wallet.currency}",
            ))
            await self._repository.apply_balance(conn, wallet.id, balance_after, withdrawn=request.amount)

        await log_info(
            f"Водитель {identity.user_id}: заявка на вывод {request.amount}, остаток {balance_after}",
            type_msg=TypeMsg.INFO,
        )

        if self._event_bus is not None:
            await self._event_bus.publish(WithdrawalRequested(
                payout_id=payout.id,
                driver_id=identity.user_id,
                amount=request.amount,
                balance_after=balance_after,
            ))
        return payout, tx

    async def get_wallet(self, identity: Identity) -> WalletView:
        """
        Кошелёк водителя и последние проводки.

        Raises:
            AuthorizationError: вызывающий не водитель
            NotFoundError: кошелька нет
        """
        if not identity.is_driver:
            raise AuthorizationError("Only drivers have wallets")

        wallet = await self._repository.get_wallet(identity.user_id)
        if wallet is None:
            raise NotFoundError("Wallet not found")

        transactions = await self._repository.recent_transactions(identity.user_id, self._recent_limit)
        return WalletView(wallet=wallet, recent_transactions=transactions)
