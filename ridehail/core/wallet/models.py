# ridehail/core/wallet/models.py
"""
Модели кошелька водителя.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from ridehail.common.constants import PayoutStatus, TransactionCategory, TransactionType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Wallet(BaseModel):
    """Кошелёк водителя. balance всегда равен balance_after последней проводки."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    driver_id: str
    balance: int = Field(0, ge=0, description="Текущий баланс")
    total_earned: int = Field(0, ge=0, description="Всего начислено")
    total_withdrawn: int = Field(0, ge=0, description="Всего выведено")
    min_withdrawal: Optional[int] = Field(None, description="Индивидуальный минимум вывода")
    currency: str = "COP"
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = {"from_attributes": True}


class WalletTransaction(BaseModel):
    """Проводка в журнале кошелька. Журнал только дополняется."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    wallet_id: str
    driver_id: str
    type: TransactionType
    category: TransactionCategory
    amount: int = Field(..., ge=0)
    balance_after: int
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"from_attributes": True}


class DriverPayout(BaseModel):
    """Заявка водителя на вывод средств."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    driver_id: str
    amount: int = Field(..., gt=0)
    commission: int = 0
    net_amount: int
    status: PayoutStatus = PayoutStatus.PENDING
    payout_method: str
    bank_account: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder_name: Optional[str] = None
    period_start: datetime
    period_end: datetime
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = {"from_attributes": True}


class CommissionConfig(BaseModel):
    """Параметры комиссии платформы."""

    percentage: float = Field(..., ge=0.0, le=100.0)
    min_commission: int = Field(..., ge=0)
    max_commission: int = Field(..., ge=0)


class WithdrawalRequestDTO(BaseModel):
    """DTO заявки на вывод."""

    amount: int
    payout_method: str = Field(..., min_length=1)
    bank_account: Optional[str] = None
    bank_name: Optional[str] = None
    account_holder_name: Optional[str] = None


class WalletView(BaseModel):
    """Кошелёк с последними проводками."""

    wallet: Wallet
    recent_transactions: list[WalletTransaction] = Field(default_factory=list)
