# ridehail/core/wallet/__init__.py
"""
Домен кошелька водителя: комиссия, начисления, выводы.
"""

from ridehail.core.wallet.commission import calculate_commission, split_earnings
from ridehail.core.wallet.models import (
    CommissionConfig,
    DriverPayout,
    Wallet,
    WalletTransaction,
    WalletView,
    WithdrawalRequestDTO,
)
from ridehail.core.wallet.repository import WalletRepository
from ridehail.core.wallet.service import WalletLedger

__all__ = [
    "calculate_commission",
    "split_earnings",
    "CommissionConfig",
    "DriverPayout",
    "Wallet",
    "WalletTransaction",
    "WalletView",
    "WithdrawalRequestDTO",
    "WalletRepository",
    "WalletLedger",
]
