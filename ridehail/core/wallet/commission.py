# ridehail/core/wallet/commission.py
"""
Расчёт комиссии платформы.
"""

from __future__ import annotations

import math

from ridehail.core.wallet.models import CommissionConfig


def calculate_commission(amount: int, config: CommissionConfig) -> int:
    """
    Комиссия = round(clamp(amount * pct / 100, min, max)).

    Args:
        amount: Стоимость поездки
        config: Процент и границы комиссии
    """
    commission = amount * config.percentage / 100
    commission = max(commission, config.min_commission)
    commission = min(commission, config.max_commission)
    # Половина округляется вверх
    return math.floor(commission + 0.5)


def split_earnings(amount: int, config: CommissionConfig) -> tuple[int, int]:
    """
    Делит оплату поездки на комиссию и заработок водителя.

    Returns:
        (commission, net); net не бывает отрицательным
    """
    commission = calculate_commission(amount, config)
    return commission, max(amount - commission, 0)
