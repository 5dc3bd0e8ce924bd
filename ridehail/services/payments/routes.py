# ridehail/services/payments/routes.py
"""
HTTP маршруты оплаты поездок и кошелька водителя.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel

from ridehail.core.identity import Identity
from ridehail.core.payments import PaymentOutcome, PaymentRequestDTO, PaymentService
from ridehail.core.wallet import DriverPayout, Wallet, WalletLedger, WalletTransaction, WithdrawalRequestDTO
from ridehail.services.common.dependencies import get_payment_service, get_wallet_ledger
from ridehail.services.common.identity import get_identity

router = APIRouter(prefix="/payments", tags=["Payments"])


# === REQUEST/RESPONSE MODELS ===

class WalletResponse(BaseModel):
    """Кошелёк и последние проводки."""
    wallet: Wallet
    transactions: list[WalletTransaction]


class WithdrawalResponse(BaseModel):
    """Созданная заявка на вывод и проводка списания."""
    payout: DriverPayout
    transaction: WalletTransaction


class WebhookResponse(BaseModel):
    received: bool = True
    transaction_id: Optional[str] = None


# === ОПЛАТА ===

@router.post("/process", response_model=PaymentOutcome, status_code=status.HTTP_201_CREATED)
async def process_payment(
    request: PaymentRequestDTO,
    identity: Identity = Depends(get_identity),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Оплатить завершённую поездку.

    Наличные одобряются сразу и зачисляются водителю; электронные способы
    возвращают ссылку на оплату, зачисление приходит с вебхуком.
    """
    return await service.process(identity, request)


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    body: dict[str, Any] = Body(...),
    service: PaymentService = Depends(get_payment_service),
):
    """Событие платёжного провайдера (transaction.updated)."""
    tx = await service.handle_webhook(body)
    return WebhookResponse(transaction_id=tx.id if tx else None)


# === КОШЕЛЁК ===

@router.get("/wallet", response_model=WalletResponse)
async def get_wallet(
    identity: Identity = Depends(get_identity),
    ledger: WalletLedger = Depends(get_wallet_ledger),
):
    view = await ledger.get_wallet(identity)
    return WalletResponse(wallet=view.wallet, transactions=view.recent_transactions)


@router.post("/wallet/withdraw", response_model=WithdrawalResponse, status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    request: WithdrawalRequestDTO,
    identity: Identity = Depends(get_identity),
    ledger: WalletLedger = Depends(get_wallet_ledger),
):
    payout, tx = await ledger.request_withdrawal(identity, request)
    return WithdrawalResponse(payout=payout, transaction=tx)
