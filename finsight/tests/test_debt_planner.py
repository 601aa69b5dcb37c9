"""
Unit Tests for the Debt Payoff Planner

Covers avalanche vs snowball ordering, cascading payments, the shared
minimum-only baseline and divergence detection.
"""

import pytest

from finsight.debt.planner import (
    AVALANCHE, SNOWBALL,
    DebtAccount,
    calculate_available_cash_flow,
    compare_strategies,
    load_debt_accounts,
    plan_debt_payoff,
    simulate_minimum_only,
    simulate_strategy,
)
from finsight.exceptions import InvalidInputError, NoDebtsError, SimulationDivergentError
from finsight.tests.factories import (
    AS_OF, create_user, create_account, create_credit_account, create_liability,
    create_signal_bundle, seed, seed_high_utilization_user
)


def create_debt(account_id: str, balance: float, apr: float, minimum: float) -> DebtAccount:
    """Helper to create a simulation input."""
    return DebtAccount(
        liability_id=f"lib_{account_id}",
        account_id=account_id,
        balance=balance,
        apr=apr,
        minimum_payment=minimum
    )


@pytest.fixture
def two_cards():
    """$5,000 at 24% and $2,000 at 12%."""
    return [
        create_debt("card_a", 5000.0, 24.0, 150.0),
        create_debt("card_b", 2000.0, 12.0, 40.0),
    ]


class TestStrategyOrdering:
    """Tests for which debt gets the extra payment."""

    def test_avalanche_pays_highest_apr_first(self, two_cards):
        plan = simulate_strategy(two_cards, 500.0, AVALANCHE)

        assert plan.payoff_order == ["card_a", "card_b"]

    def test_snowball_pays_smallest_balance_first(self, two_cards):
        plan = simulate_strategy(two_cards, 500.0, SNOWBALL)

        assert plan.payoff_order == ["card_b", "card_a"]

    def test_payoff_months_differ(self, two_cards):
        avalanche = simulate_strategy(two_cards, 500.0, AVALANCHE)
        snowball = simulate_strategy(two_cards, 500.0, SNOWBALL)

        assert avalanche.payoff_months != snowball.payoff_months
        assert snowball.payoff_months["card_b"] < avalanche.payoff_months["card_b"]

    def test_first_month_extra_goes_to_target(self, two_cards):
        plan = simulate_strategy(two_cards, 500.0, AVALANCHE)
        first = plan.timeline[0]

        assert first.payments["card_a"] == pytest.approx(650.0)
        assert first.payments["card_b"] == pytest.approx(40.0)

    def test_apr_tie_broken_by_account_id(self):
        debts = [
            create_debt("b_card", 1000.0, 18.0, 0.0),
            create_debt("a_card", 1000.0, 18.0, 0.0),
        ]
        plan = simulate_strategy(debts, 200.0, AVALANCHE)

        assert plan.payoff_order == ["a_card", "b_card"]

    def test_freed_minimum_cascades(self, two_cards):
        """Test the month after a payoff the full budget reaches the remaining debt."""
        plan = simulate_strategy(two_cards, 500.0, SNOWBALL)
        month = plan.payoff_months["card_b"]
        following = plan.timeline[month]

        assert following.payments["card_b"] == 0.0
        assert following.payments["card_a"] == pytest.approx(690.0)


class TestSimulationInvariants:
    """Tests for properties every plan must hold."""

    @pytest.mark.parametrize("strategy", [AVALANCHE, SNOWBALL])
    def test_payments_equal_principal_plus_interest(self, two_cards, strategy):
        plan = simulate_strategy(two_cards, 500.0, strategy)

        assert plan.total_paid == pytest.approx(7000.0 + plan.total_interest)

    @pytest.mark.parametrize("strategy", [AVALANCHE, SNOWBALL])
    def test_ends_at_zero(self, two_cards, strategy):
        plan = simulate_strategy(two_cards, 500.0, strategy)
        last = plan.timeline[-1]

        assert plan.converged is True
        assert all(balance == 0.0 for balance in last.balances.values())
        assert plan.months_to_payoff == max(plan.payoff_months.values())

    def test_zero_balance_debt_paid_at_month_zero(self):
        debts = [create_debt("paid", 0.0, 20.0, 25.0), create_debt("open", 500.0, 20.0, 25.0)]
        plan = simulate_strategy(debts, 100.0, AVALANCHE)

        assert plan.payoff_months["paid"] == 0
        assert plan.payoff_order[0] == "paid"

    def test_zero_apr_accrues_no_interest(self):
        plan = simulate_strategy([create_debt("loan", 1200.0, 0.0, 100.0)], 0.0, AVALANCHE)

        assert plan.total_interest == 0.0
        assert plan.months_to_payoff == 12

    def test_minimum_capped_at_balance(self):
        plan = simulate_strategy([create_debt("small", 10.0, 0.0, 50.0)], 0.0, AVALANCHE)

        assert plan.timeline[0].payments["small"] == pytest.approx(10.0)


class TestCompareStrategies:
    """Tests for the shared baseline and interest saved."""

    def test_avalanche_saves_at_least_as_much(self, two_cards):
        comparison = compare_strategies(two_cards, 500.0)

        assert comparison.avalanche.total_interest <= comparison.snowball.total_interest
        assert comparison.avalanche.interest_saved >= comparison.snowball.interest_saved
        assert comparison.recommended_strategy == AVALANCHE

    def test_interest_saved_against_shared_baseline(self, two_cards):
        comparison = compare_strategies(two_cards, 500.0)
        baseline = comparison.baseline.total_interest

        assert comparison.avalanche.interest_saved == pytest.approx(baseline - comparison.avalanche.total_interest)
        assert comparison.snowball.interest_saved == pytest.approx(baseline - comparison.snowball.total_interest)
        assert comparison.avalanche.interest_saved > 0

    def test_to_dict(self, two_cards):
        data = compare_strategies(two_cards, 500.0).to_dict(include_timeline=False)

        assert data["recommended_strategy"] == AVALANCHE
        assert "timeline" not in data["avalanche"]
        assert data["avalanche"]["payoff_order"] == ["card_a", "card_b"]
        assert data["baseline_converged"] is True

    def test_interest_saved_unset_when_baseline_diverges(self):
        """Test minimums below monthly interest leave interest saved unreported."""
        debts = [create_debt("card_a", 5000.0, 24.0, 25.0), create_debt("card_b", 2000.0, 12.0, 25.0)]

        comparison = compare_strategies(debts, 500.0)

        assert comparison.baseline.converged is False
        assert comparison.avalanche.converged is True
        assert comparison.snowball.converged is True
        assert comparison.avalanche.interest_saved is None
        assert comparison.snowball.interest_saved is None

        data = comparison.to_dict(include_timeline=False)
        assert data["baseline_converged"] is False
        assert data["baseline_interest"] is None
        assert data["avalanche"]["interest_saved"] is None
        assert data["snowball"]["interest_saved"] is None


class TestDivergence:
    """Tests for budgets that can never clear the debt."""

    def test_budget_below_first_month_interest(self):
        debts = [create_debt("big", 10000.0, 24.0, 50.0)]

        with pytest.raises(SimulationDivergentError) as excinfo:
            simulate_strategy(debts, 100.0, AVALANCHE)
        assert excinfo.value.strategy == AVALANCHE

    def test_month_cap_reached(self, two_cards):
        with pytest.raises(SimulationDivergentError):
            simulate_strategy(two_cards, 500.0, SNOWBALL, max_months=6)

    def test_baseline_reports_not_converged(self, two_cards):
        plan = simulate_minimum_only(two_cards, max_months=12)

        assert plan.converged is False
        assert plan.months_to_payoff == 12

    def test_compare_raises_when_strategies_diverge(self):
        with pytest.raises(SimulationDivergentError):
            compare_strategies([create_debt("big", 10000.0, 24.0, 50.0)], 100.0)


class TestValidation:
    """Tests for rejected simulation input."""

    def test_negative_balance(self):
        with pytest.raises(InvalidInputError):
            simulate_strategy([create_debt("bad", -10.0, 10.0, 5.0)], 100.0, AVALANCHE)

    def test_negative_surplus(self, two_cards):
        with pytest.raises(InvalidInputError):
            simulate_strategy(two_cards, -1.0, AVALANCHE)

    def test_duplicate_accounts(self):
        debts = [create_debt("dup", 100.0, 10.0, 5.0), create_debt("dup", 200.0, 10.0, 5.0)]

        with pytest.raises(InvalidInputError):
            simulate_strategy(debts, 100.0, AVALANCHE)

    def test_unknown_strategy(self, two_cards):
        with pytest.raises(InvalidInputError):
            simulate_strategy(two_cards, 100.0, "fastest")


class TestCashFlow:
    """Tests for the derived monthly surplus."""

    def test_keeps_safety_margin(self):
        signals = create_signal_bundle(monthly_income=5000.0, monthly_spend=3000.0)
        debts = [create_debt("cc", 1000.0, 20.0, 200.0)]

        assert calculate_available_cash_flow(signals, debts) == pytest.approx(1440.0)

    def test_never_negative(self):
        signals = create_signal_bundle(monthly_income=2000.0, monthly_spend=2500.0)

        assert calculate_available_cash_flow(signals, []) == 0.0


class TestLoadDebts:
    """Tests for building simulation inputs from stored liabilities."""

    def test_credit_and_loan_debts(self, session, store):
        seed(
            session,
            create_user(),
            create_account("chk", "checking", 1000.0),
            create_credit_account("cc", balance=2500.0, limit=5000.0),
            create_liability("cc", apr=22.0, min_payment=60.0, statement_balance=2400.0),
            create_account("loan", "loan", 12000.0),
            create_liability("loan", apr=None, min_payment=150.0, type="student_loan", interest_rate=5.5),
            create_credit_account("cc_zero", balance=0.0, limit=2000.0),
            create_liability("cc_zero", apr=19.0),
        )

        debts = {d.account_id: d for d in load_debt_accounts("user_001", store)}

        assert set(debts) == {"cc", "loan"}
        assert debts["cc"].balance == 2400.0
        assert debts["cc"].apr == 22.0
        assert debts["loan"].balance == 12000.0
        assert debts["loan"].apr == 5.5
        assert debts["loan"].debt_type == "student_loan"

    def test_no_debts_raises(self, session, store):
        seed(session, create_user(), create_account("chk", "checking", 1000.0))

        with pytest.raises(NoDebtsError):
            plan_debt_payoff("user_001", store, monthly_surplus=200.0)

    def test_surplus_derived_from_cash_flow(self, session, store):
        seed_high_utilization_user(session)

        comparison = plan_debt_payoff("user_001", store, as_of=AS_OF)

        spend = 1500.0 + 15.99 + 600.0 + 45.0
        expected = (4000.0 - spend - 35.0) * 0.80
        assert comparison.avalanche.monthly_surplus == pytest.approx(expected)
        assert comparison.avalanche.converged is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
