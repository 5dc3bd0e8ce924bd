# tests/core/test_commission.py
"""
Тесты расчёта комиссии платформы.
"""

from __future__ import annotations

import pytest

from ridehail.core.wallet import CommissionConfig, calculate_commission, split_earnings


@pytest.fixture
def config() -> CommissionConfig:
    return CommissionConfig(percentage=15.0, min_commission=500, max_commission=5000)


class TestCalculateCommission:
    """Комиссия = round(clamp(amount * pct / 100, min, max))."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (15000, 2250),   # 15%
            (2000, 500),     # ниже минимума
            (100000, 5000),  # выше максимума
            (3333, 500),     # 499.95 -> минимум
            (10003, 1500),   # 1500.45
            (10010, 1502),   # 1501.5 округляется вверх
        ],
    )
    def test_values(self, config: CommissionConfig, amount: int, expected: int) -> None:
        assert calculate_commission(amount, config) == expected

    def test_zero_percentage(self) -> None:
        config = CommissionConfig(percentage=0.0, min_commission=0, max_commission=5000)
        assert calculate_commission(20000, config) == 0


class TestSplitEarnings:
    def test_split(self, config: CommissionConfig) -> None:
        assert split_earnings(15000, config) == (2250, 12750)

    def test_net_never_negative(self, config: CommissionConfig) -> None:
        """Поездка дешевле минимальной комиссии не уходит в минус."""
        assert split_earnings(300, config) == (500, 0)
