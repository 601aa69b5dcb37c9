"""
Unit Tests for Spending Signals
"""

import pytest
from datetime import date

from finsight.features.spending import (
    calculate_spending,
    calculate_discretionary_trend,
    calculate_savings_rate,
    is_discretionary,
    is_spend,
)
from finsight.tests.factories import AS_OF, create_transaction


def _month_of_activity():
    return [
        create_transaction("chk", 5000.0, date(2024, 6, 1), merchant="ACME Payroll", category="INCOME"),
        create_transaction("chk", -300.0, date(2024, 6, 5), merchant="Bistro",
                           category="FOOD_AND_DRINK", detailed="FOOD_AND_DRINK_RESTAURANT"),
        create_transaction("chk", -400.0, date(2024, 6, 6), merchant="Whole Foods",
                           category="FOOD_AND_DRINK", detailed="FOOD_AND_DRINK_GROCERIES"),
        create_transaction("chk", -1500.0, date(2024, 6, 7), merchant="Landlord",
                           category="RENT_AND_UTILITIES"),
        create_transaction("chk", -1000.0, date(2024, 6, 8), merchant="Transfer to Savings",
                           category="TRANSFER_OUT"),
    ]


class TestSpendClassification:
    """Tests for outflow classification."""

    def test_transfers_are_not_spend(self):
        txn = create_transaction("chk", -1000.0, AS_OF, merchant="Online Transfer", category="TRANSFER_OUT")
        assert is_spend(txn) is False

    def test_card_payment_is_not_spend(self):
        txn = create_transaction("chk", -200.0, AS_OF, merchant="Credit Card Payment", category="LOAN_PAYMENTS")
        assert is_spend(txn) is False

    def test_groceries_are_essential(self):
        txn = create_transaction("chk", -80.0, AS_OF, category="FOOD_AND_DRINK", detailed="FOOD_AND_DRINK_GROCERIES")
        assert is_discretionary(txn) is False

    def test_entertainment_is_discretionary(self):
        txn = create_transaction("chk", -40.0, AS_OF, category="ENTERTAINMENT")
        assert is_discretionary(txn) is True


class TestSpendingSignals:
    """Tests for spend totals, discretionary share and savings rate."""

    def test_discretionary_share_and_savings_rate(self):
        """Test transfers are excluded and groceries stay essential."""
        signals = calculate_spending(_month_of_activity(), window_days=90)

        assert signals.total_spend == pytest.approx(2200.0)
        assert signals.discretionary_spend_percent == pytest.approx(300 / 2200 * 100)
        assert signals.monthly_income == pytest.approx(5000 / 3)
        assert signals.monthly_essential_spend == pytest.approx(1900 / 3)
        assert signals.savings_rate == pytest.approx(56.0)

    def test_savings_rate_zero_without_inflow(self):
        """Test divide-by-zero guard."""
        assert calculate_savings_rate(0.0, 500.0) == 0.0

    def test_negative_savings_rate_when_overspending(self):
        assert calculate_savings_rate(1000.0, 1500.0) == pytest.approx(-50.0)


class TestDiscretionaryTrend:
    """Tests for first-half vs second-half discretionary trend."""

    def _dining(self, amount, txn_date):
        return create_transaction("chk", -amount, txn_date, merchant="Bistro", category="FOOD_AND_DRINK")

    def test_increasing(self):
        txns = [self._dining(100.0, date(2024, 2, 15)), self._dining(200.0, date(2024, 5, 15))]
        assert calculate_discretionary_trend(txns, 180, AS_OF) == 'increasing'

    def test_decreasing(self):
        txns = [self._dining(200.0, date(2024, 2, 15)), self._dining(100.0, date(2024, 5, 15))]
        assert calculate_discretionary_trend(txns, 180, AS_OF) == 'decreasing'

    def test_stable_within_threshold(self):
        txns = [self._dining(100.0, date(2024, 2, 15)), self._dining(105.0, date(2024, 5, 15))]
        assert calculate_discretionary_trend(txns, 180, AS_OF) == 'stable'

    def test_no_discretionary_spend(self):
        assert calculate_discretionary_trend([], 180, AS_OF) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
