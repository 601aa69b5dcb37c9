"""
Tests for Spending Analysis

Pure functions are tested on unsaved transactions; the store-backed entry
point on an in-memory database.
"""

import pytest
from datetime import date

from finsight.config import Settings
from finsight.exceptions import InvalidInputError
from finsight.features.analysis import (
    analyze_spending, find_top_merchants, find_unusual_spending, get_spending_analysis,
    is_fixed_bill
)
from finsight.features.window_utils import months_before
from finsight.tests.factories import AS_OF, create_user, create_account, create_transaction, seed


class TestIsFixedBill:
    """Tests for bill detection."""

    @pytest.mark.parametrize("merchant,category,detailed,expected", [
        ("City Power & Light", "RENT_AND_UTILITIES", None, True),
        ("Metro Water", None, "RENT_AND_UTILITIES_WATER", True),
        ("Oak Street Landlord", "RENT_AND_UTILITIES", None, False),
        ("First Mortgage Servicing", "LOAN_PAYMENTS", None, True),
        ("Home Lender", "GENERAL_SERVICES", "MORTGAGE_PAYMENT", True),
        ("Savings Transfer", "TRANSFER_OUT", None, True),
        ("Corner Coffee", "FOOD_AND_DRINK", None, False),
        ("Gas Station", "TRANSPORTATION", None, False),
    ])
    def test_classification(self, merchant, category, detailed, expected):
        txn = create_transaction("chk", -50.0, AS_OF, merchant=merchant, category=category, detailed=detailed)

        assert is_fixed_bill(txn) is expected


class TestAnalyzeSpending:
    """Tests for totals, category breakdown and monthly trend."""

    def test_category_breakdown(self):
        """Test categories prefer the detailed label and are ordered by amount."""
        transactions = [
            create_transaction("chk", -100.0, date(2024, 6, 1), category="FOOD_AND_DRINK",
                               detailed="FOOD_AND_DRINK_RESTAURANT"),
            create_transaction("chk", -50.0, date(2024, 6, 8), category="FOOD_AND_DRINK",
                               detailed="FOOD_AND_DRINK_RESTAURANT"),
            create_transaction("chk", -50.0, date(2024, 6, 9)),
        ]

        analysis = analyze_spending(transactions, months=1, as_of=AS_OF)

        assert analysis.total_spending == pytest.approx(200.0)
        breakdown = [(c.category, c.amount, c.percentage, c.transaction_count)
                     for c in analysis.category_breakdown]
        assert breakdown == [
            ("FOOD_AND_DRINK_RESTAURANT", pytest.approx(150.0), pytest.approx(75.0), 2),
            ("GENERAL_MERCHANDISE", pytest.approx(50.0), pytest.approx(25.0), 1),
        ]

    def test_uncategorized(self):
        txn = create_transaction("chk", -20.0, date(2024, 6, 1), category=None)

        analysis = analyze_spending([txn], months=1, as_of=AS_OF)

        assert analysis.category_breakdown[0].category == "Uncategorized"

    def test_transfers_excluded_from_totals(self):
        """Test transfers and card payments count as neither spending nor income."""
        transactions = [
            create_transaction("chk", -300.0, date(2024, 6, 20), merchant="Savings Transfer",
                               category="TRANSFER_OUT"),
            create_transaction("chk", -200.0, date(2024, 6, 21), merchant="Card Payment",
                               category="LOAN_PAYMENTS"),
            create_transaction("sav", 300.0, date(2024, 6, 20), merchant="Savings Transfer",
                               category="TRANSFER_IN"),
            create_transaction("chk", -40.0, date(2024, 6, 22)),
        ]

        analysis = analyze_spending(transactions, months=1, as_of=AS_OF)

        assert analysis.total_spending == pytest.approx(40.0)
        assert analysis.total_income == 0.0
        assert [c.category for c in analysis.category_breakdown] == ["GENERAL_MERCHANDISE"]

    def test_monthly_trend(self):
        """Test income and expenses are bucketed per calendar month, oldest first."""
        transactions = [
            create_transaction("chk", 4000.0, date(2024, 6, 5), merchant="Payroll", category="INCOME"),
            create_transaction("chk", -300.0, date(2024, 6, 12)),
            create_transaction("chk", 4000.0, date(2024, 5, 5), merchant="Payroll", category="INCOME"),
            create_transaction("chk", -100.0, date(2024, 5, 12)),
            create_transaction("chk", -500.0, date(2024, 6, 15), merchant="Savings Transfer",
                               category="TRANSFER_OUT"),
        ]

        analysis = analyze_spending(transactions, months=2, as_of=AS_OF)

        trend = [(m.year, m.month, m.income, m.expenses) for m in analysis.monthly_trend]
        assert trend == [(2024, 5, 4000.0, 100.0), (2024, 6, 4000.0, 300.0)]
        assert analysis.monthly_trend[0].label == "May 2024"
        assert analysis.monthly_trend[1].net == pytest.approx(3700.0)
        assert analysis.total_income == pytest.approx(8000.0)
        assert analysis.average_monthly_spending == pytest.approx(200.0)
        assert analysis.net_cash_flow == pytest.approx(7600.0)

    def test_empty_period(self):
        analysis = analyze_spending([], months=6, as_of=AS_OF, user_id="user_001")
        data = analysis.to_dict()

        assert data["total_spending"] == 0.0
        assert data["category_breakdown"] == []
        assert data["monthly_trend"] == []
        assert data["top_merchants"] == []
        assert data["unusual_spending"] == []


class TestTopMerchants:
    """Tests for the merchant ranking."""

    def test_ranked_by_total_without_bills(self):
        expenses = [
            create_transaction("chk", -5.0, date(2024, 6, 1), merchant="Corner Coffee"),
            create_transaction("chk", -5.0, date(2024, 6, 2), merchant="Corner Coffee"),
            create_transaction("chk", -5.0, date(2024, 6, 3), merchant="Corner Coffee"),
            create_transaction("chk", -60.0, date(2024, 6, 4), merchant="Green Grocer"),
            create_transaction("chk", -60.0, date(2024, 6, 11), merchant="Green Grocer"),
            create_transaction("chk", -120.0, date(2024, 6, 10), merchant="City Power & Light",
                               category="RENT_AND_UTILITIES"),
        ]

        merchants = find_top_merchants(expenses)

        assert [(m.merchant_name, m.total, m.transaction_count) for m in merchants] == [
            ("Green Grocer", pytest.approx(120.0), 2),
            ("Corner Coffee", pytest.approx(15.0), 3),
        ]
        assert merchants[0].average_amount == pytest.approx(60.0)

    def test_limit_and_tie_break(self):
        expenses = [
            create_transaction("chk", -10.0, date(2024, 6, 1), merchant="Beta"),
            create_transaction("chk", -10.0, date(2024, 6, 1), merchant="Alpha"),
            create_transaction("chk", -5.0, date(2024, 6, 1), merchant=None),
        ]

        merchants = find_top_merchants(expenses, limit=2)

        assert [m.merchant_name for m in merchants] == ["Alpha", "Beta"]


class TestUnusualSpending:
    """Tests for outlier purchases."""

    def test_flags_only_the_outlier(self):
        """Test one $500 purchase stands out from ten $20 purchases."""
        expenses = [create_transaction("chk", -20.0, date(2024, 6, day), merchant="Corner Cafe")
                    for day in range(1, 11)]
        outlier = create_transaction("chk", -500.0, date(2024, 6, 15), merchant="Electronics Hub")
        bill = create_transaction("chk", -900.0, date(2024, 6, 16), merchant="City Power & Light",
                                  category="RENT_AND_UTILITIES")

        unusual = find_unusual_spending(expenses + [outlier, bill])

        assert [u.transaction_id for u in unusual] == [outlier.transaction_id]
        assert unusual[0].amount == pytest.approx(500.0)
        assert unusual[0].reason == (
            "Spending of $500.00 is significantly higher than your average of $63.64"
        )

    def test_uniform_spending_has_no_outliers(self):
        expenses = [create_transaction("chk", -20.0, date(2024, 6, day)) for day in range(1, 6)]

        assert find_unusual_spending(expenses) == []

    def test_no_purchases(self):
        assert find_unusual_spending([]) == []


class TestGetSpendingAnalysis:
    """Integration tests against the store."""

    def test_period_bounds(self, session, store):
        """Test the period covers the calendar months before as_of, inclusive."""
        seed(
            session,
            create_user("user_001"),
            create_account("chk", "checking", 1000.0),
            create_transaction("chk", -70.0, date(2023, 12, 29), merchant="Too Early"),
            create_transaction("chk", -30.0, date(2023, 12, 30), merchant="First Day"),
            create_transaction("chk", 3000.0, date(2024, 6, 5), merchant="Payroll", category="INCOME"),
            create_transaction("chk", -999.0, date(2024, 7, 1), merchant="Too Late"),
        )

        analysis = get_spending_analysis("user_001", store, months=6, as_of=AS_OF)

        assert analysis.total_spending == pytest.approx(30.0)
        assert analysis.total_income == pytest.approx(3000.0)
        assert analysis.average_monthly_spending == pytest.approx(5.0)
        assert analysis.average_monthly_income == pytest.approx(500.0)
        assert [m.merchant_name for m in analysis.top_merchants] == ["First Day"]

    def test_months_default_from_settings(self, session, store):
        seed(session, create_user("user_001"))

        analysis = get_spending_analysis("user_001", store, as_of=AS_OF, settings=Settings(analysis_months=3))

        assert analysis.months == 3

    @pytest.mark.parametrize("months", [0, -2])
    def test_invalid_months(self, store, months):
        with pytest.raises(InvalidInputError):
            get_spending_analysis("user_001", store, months=months, as_of=AS_OF)


class TestMonthsBefore:
    """Tests for calendar-month arithmetic."""

    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 6, 30), 6, date(2023, 12, 30)),
        (date(2024, 3, 31), 1, date(2024, 2, 29)),
        (date(2023, 3, 31), 1, date(2023, 2, 28)),
        (date(2024, 1, 15), 2, date(2023, 11, 15)),
        (date(2024, 5, 10), 0, date(2024, 5, 10)),
    ])
    def test_months_before(self, start, months, expected):
        assert months_before(start, months) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
