# ridehail/core/payments/service.py
"""
Оплата поездок: наличные сразу, электронные способы через провайдера.
Начисление водителю выполняет WalletLedger после одобрения платежа.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import asyncpg

from ridehail.common.constants import PaymentMethod, PaymentStatus, TripStatus, TypeMsg
from ridehail.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from ridehail.common.logger import log_error, log_info, log_warning
from ridehail.core.identity import Identity
from ridehail.core.payments.models import (
    PaymentIntent,
    PaymentOutcome,
    PaymentRequestDTO,
    PaymentTransaction,
)
from ridehail.core.payments.provider import WompiClient
from ridehail.core.payments.repository import PaymentRepository
from ridehail.core.trips.store import TripStore
from ridehail.core.wallet.service import WalletLedger
from ridehail.infra.event_bus import EventBus
from ridehail.shared.events import PaymentProcessed


PROVIDER_NAME = "wompi"
ALREADY_PAID_MESSAGE = "Trip already paid"


class PaymentService:
    """
    Сервис оплаты поездок.

    Ответственности:
    - Проверка поездки и запрет повторной оплаты
    - Наличные: одобренная транзакция и начисление сразу
    - Электронные способы: транзакция у провайдера, начисление по вебхуку
    """

    def __init__(
        self,
        store: TripStore,
        repository: PaymentRepository,
        provider: WompiClient,
        ledger: WalletLedger,
        event_bus: Optional[EventBus] = None,
        currency: Optional[str] = None,
        redirect_url: Optional[str] = None,
    ) -> None:
        if currency is None or redirect_url is None:
            from ridehail.config import settings
            currency = currency or settings.wallet.CURRENCY
            redirect_url = redirect_url or settings.payment_provider.WOMPI_REDIRECT_URL

        self._store = store
        self._repository = repository
        self._provider = provider
        self._ledger = ledger
        self._event_bus = event_bus
        self._currency = currency
        self._redirect_url = redirect_url

    # =========================================================================
    # ОПЛАТА
    # =========================================================================

    async def process(self, identity: Identity, request: PaymentRequestDTO) -> PaymentOutcome:
        """
        Оплачивает завершённую поездку.

        Args:
            identity: Пассажир поездки
            request: ID поездки и способ оплаты

        Returns:
            Транзакция и ссылка на оплату (для электронных способов)

        Raises:
            AuthorizationError: вызывающий не пассажир
            NotFoundError: поездки нет или она чужая
            ValidationError: поездка не завершена
            ConflictError: поездка уже оплачена
            UpstreamError: провайдер отклонил создание платежа
        """
        if not identity.is_passenger:
            raise AuthorizationError("Only passengers can pay for trips")

        trip = await self._store.get(request.trip_id)
        if trip is None or trip.passenger_id != identity.user_id:
            raise NotFoundError("Trip not found or unauthorized")
        if trip.status != TripStatus.COMPLETED:
            raise ValidationError("Trip must be completed before payment")
        if await self._repository.find_approved(trip.id) is not None:
            raise ConflictError(ALREADY_PAID_MESSAGE)

        if request.payment_method == PaymentMethod.CASH:
            outcome = await self._process_cash(identity, trip.id, trip.fare, trip.driver_id)
        else:
            outcome = await self._process_electronic(identity, trip.id, trip.fare, trip.driver_id, request.payment_method)

        if self._event_bus is not None:
            await self._event_bus.publish(PaymentProcessed(
                transaction_id=outcome.transaction.id,
                trip_id=trip.id,
                amount=outcome.transaction.amount,
                payment_method=request.payment_method.value,
                status=outcome.transaction.status.value,
            ))
        return outcome

    async def _process_cash(
        self, identity: Identity, trip_id: str, amount: int, driver_id: Optional[str]
    ) -> PaymentOutcome:
        now = datetime.now(timezone.utc)
        tx = await self._insert_or_conflict(PaymentTransaction(
            trip_id=trip_id,
            user_id=identity.user_id,
            amount=amount,
            status=PaymentStatus.APPROVED,
            payment_type=PaymentMethod.CASH,
            description=f"Pago en efectivo viaje {trip_id}",
            approved_at=now,
        ))
        await log_info(f"Поездка {trip_id} оплачена наличными ({amount})", type_msg=TypeMsg.INFO)

        await self._settle(trip_id, driver_id, amount)
        return PaymentOutcome(transaction=tx, message="Cash payment recorded")

    async def _process_electronic(
        self,
        identity: Identity,
        trip_id: str,
        amount: int,
        driver_id: Optional[str],
        method: PaymentMethod,
    ) -> PaymentOutcome:
        email = await self._repository.get_user_email(identity.user_id)
        reference = str(uuid4())

        result = await self._provider.create_payment(PaymentIntent(
            amount=amount,
            currency=self._currency,
            reference=reference,
            customer_email=email or "",
            payment_method=method,
            redirect_url=self._redirect_url,
        ))

        if not result.success:
            await self._repository.insert(PaymentTransaction(
                id=reference,
                trip_id=trip_id,
                user_id=identity.user_id,
                amount=amount,
                status=PaymentStatus.ERROR,
                payment_type=method,
                provider=PROVIDER_NAME,
                description=result.message,
            ))
            raise UpstreamError(result.message or "Payment creation failed")

        approved = result.status == PaymentStatus.APPROVED
        tx = await self._insert_or_conflict(PaymentTransaction(
            id=reference,
            trip_id=trip_id,
            user_id=identity.user_id,
            amount=amount,
            status=result.status,
            payment_type=method,
            provider=PROVIDER_NAME,
            provider_transaction_id=result.transaction_id,
            payment_link=result.payment_url,
            description=f"Pago {method.value} viaje {trip_id}",
            approved_at=datetime.now(timezone.utc) if approved else None,
        ))
        await log_info(
            f"Поездка {trip_id}: платёж {method} создан у провайдера ({result.status})",
            type_msg=TypeMsg.INFO,
        )

        if approved:
            await self._settle(trip_id, driver_id, amount)
        return PaymentOutcome(transaction=tx, payment_url=result.payment_url, message=result.message)

    async def _insert_or_conflict(self, tx: PaymentTransaction) -> PaymentTransaction:
        try:
            return await self._repository.insert(tx)
        except asyncpg.UniqueViolationError:
            raise ConflictError(ALREADY_PAID_MESSAGE)

    async def _settle(self, trip_id: str, driver_id: Optional[str], amount: int) -> None:
        if not driver_id:
            await log_warning(f"Поездка {trip_id} без водителя: начислять некому")
            return
        await self._ledger.settle_trip_payment(trip_id, driver_id, amount)

    # =========================================================================
    # ВЕБХУК ПРОВАЙДЕРА
    # =========================================================================

    async def handle_webhook(self, body: dict[str, Any]) -> Optional[PaymentTransaction]:
        """
        Обрабатывает событие провайдера `transaction.updated`.

        Returns:
            Обновлённая транзакция или None, если событие не относится к нам

        Raises:
            AuthorizationError: подпись события не сошлась
        """
        if not self._provider.verify_event(body):
            raise AuthorizationError("Invalid event signature")

        if body.get("event") != "transaction.updated":
            await log_info(f"Событие провайдера пропущено: {body.get('event')}", type_msg=TypeMsg.DEBUG)
            return None

        transaction = (body.get("data") or {}).get("transaction") or {}
        provider_id = transaction.get("id")
        if not provider_id:
            raise ValidationError("Missing transaction id")

        status = self._provider.map_status(transaction.get("status"))
        approved_at = datetime.now(timezone.utc) if status == PaymentStatus.APPROVED else None

        try:
            tx = await self._repository.update_from_provider(
                str(provider_id), transaction.get("reference"), status, approved_at
            )
        except asyncpg.UniqueViolationError:
            await log_error(f"Повторное одобрение оплаты: транзакция провайдера {provider_id}")
            return None

        if tx is None:
            await log_warning(f"Транзакция провайдера {provider_id} не найдена или уже одобрена")
            return None

        await log_info(f"Платёж {tx.id} по поездке {tx.trip_id}: {status}", type_msg=TypeMsg.INFO)

        if status == PaymentStatus.APPROVED:
            trip = await self._store.get(tx.trip_id)
            await self._settle(tx.trip_id, trip.driver_id if trip else None, tx.amount)
        return tx
