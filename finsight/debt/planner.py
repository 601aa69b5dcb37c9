"""
Debt Payoff Planner

Month-by-month amortization of a user's open debts under two orderings:

- avalanche: highest APR first
- snowball: lowest balance first (re-evaluated every month)

Each month applies interest, pays every minimum, then sends the rest of the
budget (surplus plus freed or unused minimums) down the strategy ordering,
cascading to the next debt when one is paid off. A minimum-only baseline is
simulated once and shared to compute interest saved.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from finsight.config import Settings, settings as default_settings
from finsight.exceptions import InvalidInputError, NoDebtsError, SimulationDivergentError
from finsight.features.signals import SignalBundle, extract_signals
from finsight.ingest.schema import CREDIT_ACCOUNT_TYPES, LOAN_ACCOUNT_TYPES
from finsight.ingest.store import FinancialStore
from finsight.ingest.validation import validate_non_negative

logger = logging.getLogger(__name__)


AVALANCHE = 'avalanche'
SNOWBALL = 'snowball'
MINIMUM_ONLY = 'minimum_only'


@dataclass(frozen=True)
class DebtAccount:
    """One open debt as simulation input."""
    liability_id: str
    account_id: str
    balance: float
    apr: float
    minimum_payment: float
    label: Optional[str] = None
    debt_type: str = 'credit_card'

    def to_dict(self) -> dict:
        return {
            'liability_id': self.liability_id,
            'account_id': self.account_id,
            'balance': self.balance,
            'apr': self.apr,
            'minimum_payment': self.minimum_payment,
            'label': self.label or self.account_id,
            'debt_type': self.debt_type
        }


@dataclass
class MonthSnapshot:
    """Balances and payments at the end of one simulated month."""
    month: int
    balances: Dict[str, float]
    payments: Dict[str, float]
    interest: float

    @property
    def total_payment(self) -> float:
        return sum(self.payments.values())

    def to_dict(self) -> dict:
        return {
            'month': self.month,
            'balances': {k: round(v, 2) for k, v in self.balances.items()},
            'payments': {k: round(v, 2) for k, v in self.payments.items()},
            'total_payment': round(self.total_payment, 2),
            'interest': round(self.interest, 2)
        }


@dataclass
class PayoffPlan:
    """Outcome of simulating one strategy."""
    strategy: str
    monthly_surplus: float
    timeline: List[MonthSnapshot] = field(default_factory=list)
    total_interest: float = 0.0
    interest_saved: Optional[float] = None
    payoff_months: Dict[str, int] = field(default_factory=dict)
    converged: bool = True

    @property
    def months_to_payoff(self) -> int:
        return len(self.timeline)

    @property
    def total_paid(self) -> float:
        return sum(s.total_payment for s in self.timeline)

    @property
    def payoff_order(self) -> List[str]:
        """Account ids in the order they reached zero."""
        return sorted(self.payoff_months, key=lambda k: (self.payoff_months[k], k))

    def to_dict(self, include_timeline: bool = True) -> dict:
        data = {
            'strategy': self.strategy,
            'monthly_surplus': round(self.monthly_surplus, 2),
            'months_to_payoff': self.months_to_payoff,
            'total_interest': round(self.total_interest, 2),
            'total_paid': round(self.total_paid, 2),
            'interest_saved': round(self.interest_saved, 2) if self.interest_saved is not None else None,
            'payoff_months': dict(self.payoff_months),
            'payoff_order': self.payoff_order,
            'converged': self.converged
        }
        if include_timeline:
            data['timeline'] = [s.to_dict() for s in self.timeline]
        return data


@dataclass
class PayoffComparison:
    """Avalanche and snowball plans sharing one minimum-only baseline."""
    avalanche: PayoffPlan
    snowball: PayoffPlan
    baseline: PayoffPlan

    @property
    def recommended_strategy(self) -> str:
        """Strategy with less interest; fewer months breaks ties, then avalanche."""
        a, s = self.avalanche, self.snowball
        if (s.total_interest, s.months_to_payoff) < (a.total_interest, a.months_to_payoff):
            return SNOWBALL
        return AVALANCHE

    def to_dict(self, include_timeline: bool = True) -> dict:
        return {
            'avalanche': self.avalanche.to_dict(include_timeline),
            'snowball': self.snowball.to_dict(include_timeline),
            'baseline_interest': round(self.baseline.total_interest, 2) if self.baseline.converged else None,
            'baseline_months': self.baseline.months_to_payoff,
            'baseline_converged': self.baseline.converged,
            'recommended_strategy': self.recommended_strategy
        }


def _priority_order(strategy: str, debts: Sequence[DebtAccount], balances: Dict[str, float]) -> List[DebtAccount]:
    open_debts = [d for d in debts if balances[d.account_id] > 0]
    if strategy == AVALANCHE:
        return sorted(open_debts, key=lambda d: (-d.apr, d.account_id))
    return sorted(open_debts, key=lambda d: (balances[d.account_id], d.account_id))


def validate_debts(debts: Sequence[DebtAccount]) -> None:
    """Reject negative amounts and duplicate account ids."""
    seen = set()
    for debt in debts:
        if debt.account_id in seen:
            raise InvalidInputError('debts', f"duplicate account {debt.account_id}")
        seen.add(debt.account_id)
        validate_non_negative(f'{debt.account_id}.balance', debt.balance)
        validate_non_negative(f'{debt.account_id}.apr', debt.apr)
        validate_non_negative(f'{debt.account_id}.minimum_payment', debt.minimum_payment)


def simulate_strategy(
    debts: Sequence[DebtAccount],
    monthly_surplus: float,
    strategy: str,
    max_months: int = None
) -> PayoffPlan:
    """
    Simulate paying off debts month by month.

    Args:
        debts: Open debts
        monthly_surplus: Extra cash per month on top of the minimums
        strategy: AVALANCHE, SNOWBALL or MINIMUM_ONLY
        max_months: Month cap (defaults to configured 600)

    Returns:
        PayoffPlan. MINIMUM_ONLY reports converged=False at the cap instead of raising.

    Raises:
        SimulationDivergentError: The budget cannot cover the first month's
            interest, or balances remain at the month cap
    """
    if strategy not in (AVALANCHE, SNOWBALL, MINIMUM_ONLY):
        raise InvalidInputError('strategy', f"unknown strategy {strategy!r}")
    if max_months is None:
        max_months = default_settings.max_simulation_months
    validate_debts(debts)
    validate_non_negative('monthly_surplus', monthly_surplus)

    rolls_over = strategy != MINIMUM_ONLY
    surplus = monthly_surplus if rolls_over else 0.0
    balances = {d.account_id: float(d.balance) for d in debts}
    plan = PayoffPlan(strategy=strategy, monthly_surplus=surplus)

    if rolls_over:
        budget = surplus + sum(d.minimum_payment for d in debts)
        first_interest = sum(d.balance * d.apr / 12 / 100 for d in debts)
        if sum(balances.values()) > 0 and budget <= first_interest:
            raise SimulationDivergentError(
                strategy,
                f"monthly budget ${budget:.2f} does not cover ${first_interest:.2f} of interest"
            )

    for debt in debts:
        if balances[debt.account_id] <= 0:
            plan.payoff_months[debt.account_id] = 0

    month = 0
    while any(b > 0 for b in balances.values()) and month < max_months:
        month += 1
        payments = {d.account_id: 0.0 for d in debts}

        month_interest = 0.0
        for debt in debts:
            if balances[debt.account_id] > 0:
                interest = balances[debt.account_id] * debt.apr / 12 / 100
                balances[debt.account_id] += interest
                month_interest += interest

        pool = surplus
        for debt in debts:
            payment = min(debt.minimum_payment, balances[debt.account_id])
            balances[debt.account_id] -= payment
            payments[debt.account_id] += payment
            if rolls_over:
                pool += debt.minimum_payment - payment

        if rolls_over:
            for debt in _priority_order(strategy, debts, balances):
                if pool <= 0:
                    break
                payment = min(pool, balances[debt.account_id])
                balances[debt.account_id] -= payment
                payments[debt.account_id] += payment
                pool -= payment

        for debt in debts:
            if balances[debt.account_id] <= 0 and debt.account_id not in plan.payoff_months:
                plan.payoff_months[debt.account_id] = month

        plan.total_interest += month_interest
        plan.timeline.append(MonthSnapshot(month, dict(balances), payments, month_interest))

    if any(b > 0 for b in balances.values()):
        plan.converged = False
        if rolls_over:
            raise SimulationDivergentError(strategy, f"balances remain after {max_months} months")

    return plan


def simulate_minimum_only(debts: Sequence[DebtAccount], max_months: int = None) -> PayoffPlan:
    """Baseline: minimum payments only, nothing rolls over."""
    return simulate_strategy(debts, 0.0, MINIMUM_ONLY, max_months)


def compare_strategies(
    debts: Sequence[DebtAccount],
    monthly_surplus: float,
    max_months: int = None
) -> PayoffComparison:
    """
    Simulate avalanche and snowball against one shared minimum-only baseline.

    Returns:
        PayoffComparison with interest_saved filled in on both plans. When the
        baseline hits the month cap its interest is not a real total, so
        interest_saved stays None.
    """
    baseline = simulate_minimum_only(debts, max_months)
    avalanche = simulate_strategy(debts, monthly_surplus, AVALANCHE, max_months)
    snowball = simulate_strategy(debts, monthly_surplus, SNOWBALL, max_months)

    if baseline.converged:
        for plan in (avalanche, snowball):
            plan.interest_saved = baseline.total_interest - plan.total_interest
    else:
        logger.info(
            "Minimum-only baseline does not converge; interest saved left unset",
            extra={'debts': len(debts), 'baseline_months': baseline.months_to_payoff}
        )

    logger.debug(
        "Payoff strategies compared",
        extra={
            'debts': len(debts),
            'monthly_surplus': monthly_surplus,
            'avalanche_months': avalanche.months_to_payoff,
            'snowball_months': snowball.months_to_payoff,
        }
    )
    return PayoffComparison(avalanche=avalanche, snowball=snowball, baseline=baseline)


def load_debt_accounts(user_id: str, store: FinancialStore) -> List[DebtAccount]:
    """
    Build simulation inputs from the user's credit and loan liabilities.

    Balance is the last statement balance, falling back to the account's
    current balance. APR is apr_percentage, falling back to interest_rate.
    Only debts with a positive balance and APR are returned.
    """
    debts = []
    for account in store.list_accounts(user_id):
        if (account.type or '').lower() not in CREDIT_ACCOUNT_TYPES + LOAN_ACCOUNT_TYPES:
            continue
        liability = store.get_liability(account.account_id)
        if liability is None:
            continue

        balance = liability.last_statement_balance
        if balance is None:
            balance = account.balance_current
        apr = liability.apr_percentage or liability.interest_rate or 0.0
        if not balance or balance <= 0 or apr <= 0:
            continue

        debts.append(DebtAccount(
            liability_id=liability.liability_id,
            account_id=account.account_id,
            balance=balance,
            apr=apr,
            minimum_payment=liability.minimum_payment_amount or 0.0,
            label=account.name or account.subtype or account.account_id,
            debt_type=liability.type
        ))
    return debts


def calculate_available_cash_flow(
    signals: SignalBundle,
    debts: Sequence[DebtAccount],
    safety_ratio: float = 0.80
) -> float:
    """Monthly income minus spend and minimums, keeping a safety margin. Never negative."""
    income = signals.monthly_income or 0.0
    spend = signals.monthly_spend or 0.0
    minimums = sum(d.minimum_payment for d in debts)
    return max(0.0, (income - spend - minimums) * safety_ratio)


def plan_debt_payoff(
    user_id: str,
    store: FinancialStore,
    monthly_surplus: float = None,
    as_of=None,
    settings: Settings = None
) -> PayoffComparison:
    """
    Compare payoff strategies for a user's open debts.

    Args:
        user_id: User ID
        store: Store to read accounts and liabilities from
        monthly_surplus: Extra monthly payment; derived from cash flow when None
        as_of: Reference date for cash flow signals
        settings: Threshold overrides

    Raises:
        NoDebtsError: User has no debt with a positive balance and APR
        SimulationDivergentError: A strategy cannot converge
    """
    settings = settings or default_settings
    debts = load_debt_accounts(user_id, store)
    if not debts:
        raise NoDebtsError(user_id)

    if monthly_surplus is None:
        signals = extract_signals(user_id, store, as_of=as_of, settings=settings)
        monthly_surplus = calculate_available_cash_flow(signals, debts, settings.cash_flow_safety_ratio)

    logger.info(
        "Planning debt payoff",
        extra={'user_id': user_id, 'debts': len(debts), 'monthly_surplus': monthly_surplus}
    )
    return compare_strategies(debts, monthly_surplus, settings.max_simulation_months)
