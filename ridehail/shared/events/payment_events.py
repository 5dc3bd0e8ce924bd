# ridehail/shared/events/payment_events.py
"""
События домена платежей и кошельков.
"""

from __future__ import annotations

from typing import Literal

from ridehail.shared.events.base import DomainEvent


class PaymentProcessed(DomainEvent):
    """Событие: по поездке создана платёжная транзакция."""

    event_type: Literal["payment.processed"] = "payment.processed"

    transaction_id: str
    trip_id: str
    amount: int
    payment_method: str
    status: str


class WalletCredited(DomainEvent):
    """Событие: заработок за поездку зачислен в кошелёк водителя."""

    event_type: Literal["wallet.credited"] = "wallet.credited"

    driver_id: str
    trip_id: str
    gross_amount: int
    commission: int
    net_amount: int
    balance_after: int


class WithdrawalRequested(DomainEvent):
    """Событие: водитель запросил вывод средств."""

    event_type: Literal["wallet.withdrawal_requested"] = "wallet.withdrawal_requested"

    payout_id: str
    driver_id: str
    amount: int
    balance_after: int
