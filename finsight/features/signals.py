"""
Signal Extraction

Main orchestrator that reads a user's records through the store and combines
credit, savings, income, subscription and spending metrics into one flat
SignalBundle. Each signal is computed independently; missing inputs leave the
signal as None instead of failing the bundle.
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from finsight.config import Settings, settings as default_settings
from finsight.exceptions import InvalidInputError
from finsight.features.credit import calculate_credit_signals
from finsight.features.income import calculate_income_stability
from finsight.features.savings import calculate_savings
from finsight.features.spending import calculate_spending
from finsight.features.subscriptions import detect_subscriptions
from finsight.features.window_utils import filter_transactions_by_window, get_date_range
from finsight.ingest.store import FinancialStore
from finsight.ingest.validation import (
    validate_window_days, validate_accounts, validate_transactions, validate_liabilities
)

logger = logging.getLogger(__name__)


@dataclass
class SignalBundle:
    """All behavioral signals for one user over one trailing window."""
    user_id: str
    window_days: int
    as_of: date
    account_count: int = 0
    transaction_count: int = 0

    # Credit
    utilization: Optional[float] = None
    is_high_utilization: Optional[bool] = None
    card_utilizations: Dict[str, float] = field(default_factory=dict)
    interest_charges: Optional[float] = None
    monthly_interest: Optional[float] = None
    minimum_payment_only: Optional[bool] = None
    is_overdue: Optional[bool] = None

    # Savings
    savings_balance: Optional[float] = None
    net_savings_inflow: Optional[float] = None
    savings_growth_rate: Optional[float] = None
    emergency_fund_coverage: Optional[float] = None
    cash_flow_buffer: Optional[float] = None

    # Spending
    monthly_income: Optional[float] = None
    monthly_spend: Optional[float] = None
    monthly_essential_spend: Optional[float] = None
    savings_rate: Optional[float] = None
    discretionary_spend_percent: Optional[float] = None
    discretionary_trend: Optional[str] = None

    # Subscriptions
    monthly_recurring_spend: Optional[float] = None
    active_subscriptions: Optional[int] = None
    subscription_share: Optional[float] = None
    recurring_merchants: List[str] = field(default_factory=list)

    # Income stability (trend window)
    median_pay_gap: Optional[float] = None
    payment_frequency: Optional[str] = None
    pay_gap_variability: Optional[float] = None
    cycle_deviation_days: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        """True when the user had no accounts and no transactions."""
        return self.account_count == 0 and self.transaction_count == 0

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data['as_of'] = self.as_of.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SignalBundle":
        """
        Rebuild a bundle from to_dict() output (unknown keys are ignored).

        Raises:
            InvalidInputError: A value has the wrong type or as_of is not an ISO date
        """
        if not isinstance(data, dict):
            raise InvalidInputError('signals', "expected an object")
        known = {f for f in cls.__dataclass_fields__}
        values = {k: v for k, v in data.items() if k in known}

        as_of = values.get('as_of')
        if isinstance(as_of, str):
            try:
                values['as_of'] = date.fromisoformat(as_of)
            except ValueError:
                raise InvalidInputError('as_of', f"not an ISO date: {as_of!r}")
        elif as_of is None:
            values['as_of'] = date.today()
        elif not isinstance(as_of, date):
            raise InvalidInputError('as_of', "must be an ISO date string")

        for name, value in values.items():
            if name != 'as_of':
                _check_signal_value(name, value)

        values.setdefault('user_id', '')
        values.setdefault('window_days', default_settings.default_window_days)
        return cls(**values)


# Expected value kind per bundle field; None is always accepted except for
# user_id and window_days
_INT_FIELDS = {'window_days', 'account_count', 'transaction_count', 'active_subscriptions'}
_BOOL_FIELDS = {'is_high_utilization', 'minimum_payment_only', 'is_overdue'}
_STR_FIELDS = {'user_id', 'payment_frequency'}
_CHOICE_FIELDS = {'discretionary_trend': ('increasing', 'stable', 'decreasing')}
_REQUIRED_FIELDS = {'user_id', 'window_days'}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _check_signal_value(name: str, value) -> None:
    if value is None:
        if name in _REQUIRED_FIELDS:
            raise InvalidInputError(name, "must not be null")
        return

    if name in _INT_FIELDS:
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise InvalidInputError(name, "must be a non-negative integer")
    elif name in _BOOL_FIELDS:
        if not isinstance(value, bool):
            raise InvalidInputError(name, "must be a boolean")
    elif name in _STR_FIELDS:
        if not isinstance(value, str):
            raise InvalidInputError(name, "must be a string")
    elif name in _CHOICE_FIELDS:
        if value not in _CHOICE_FIELDS[name]:
            raise InvalidInputError(name, f"must be one of {', '.join(_CHOICE_FIELDS[name])}")
    elif name == 'card_utilizations':
        if not isinstance(value, dict) or not all(
            isinstance(k, str) and _is_number(v) for k, v in value.items()
        ):
            raise InvalidInputError(name, "must map account ids to numbers")
    elif name == 'recurring_merchants':
        if not isinstance(value, list) or not all(isinstance(m, str) for m in value):
            raise InvalidInputError(name, "must be a list of strings")
    elif not _is_number(value):
        raise InvalidInputError(name, "must be a finite number")


def extract_signals(
    user_id: str,
    store: FinancialStore,
    window_days: int = None,
    as_of=None,
    settings: Settings = None
) -> SignalBundle:
    """
    Compute the signal bundle for a user.

    Args:
        user_id: User ID to analyze
        store: Store to read accounts, transactions and liabilities from
        window_days: Trailing window in days (defaults to configured 90)
        as_of: End of the window (defaults to today)
        settings: Threshold overrides (defaults to module settings)

    Returns:
        SignalBundle for the window
    """
    settings = settings or default_settings
    if window_days is None:
        window_days = settings.default_window_days
    validate_window_days(window_days)

    _, as_of = get_date_range(0, as_of)
    trend_days = max(window_days, settings.trend_window_days)

    accounts = store.list_accounts(user_id)
    validate_accounts(accounts)
    liabilities = store.list_liabilities(user_id)
    validate_liabilities(liabilities)

    since = as_of - timedelta(days=trend_days)
    trend_transactions = [t for t in store.list_transactions(user_id, since) if t.date <= as_of]
    validate_transactions(trend_transactions)
    transactions = filter_transactions_by_window(trend_transactions, window_days, as_of)

    bundle = SignalBundle(
        user_id=user_id,
        window_days=window_days,
        as_of=as_of,
        account_count=len(accounts),
        transaction_count=len(transactions)
    )

    credit = calculate_credit_signals(
        accounts, liabilities, transactions, window_days,
        high_threshold=settings.high_utilization_percent,
        interest_pattern=settings.interest_pattern,
        tolerance_ratio=settings.minimum_payment_tolerance_ratio,
        tolerance_floor=settings.minimum_payment_tolerance_floor
    )
    bundle.utilization = credit.utilization_percent
    bundle.is_high_utilization = credit.is_high_utilization
    bundle.card_utilizations = credit.card_utilizations
    bundle.minimum_payment_only = credit.minimum_payment_only
    bundle.is_overdue = credit.is_overdue

    monthly_spend = 0.0
    monthly_essential = 0.0
    if transactions:
        bundle.interest_charges = credit.interest_charges_total
        bundle.monthly_interest = credit.interest_monthly_average

        spending = calculate_spending(
            transactions, window_days,
            trend_transactions=trend_transactions,
            trend_window_days=trend_days,
            as_of=as_of,
            trend_threshold=settings.discretionary_trend_threshold
        )
        monthly_spend = spending.monthly_spend
        monthly_essential = spending.monthly_essential_spend
        bundle.monthly_income = spending.monthly_income
        bundle.monthly_spend = spending.monthly_spend
        bundle.monthly_essential_spend = spending.monthly_essential_spend
        bundle.savings_rate = spending.savings_rate
        bundle.discretionary_spend_percent = spending.discretionary_spend_percent
        bundle.discretionary_trend = spending.discretionary_trend

        subscriptions = detect_subscriptions(
            transactions,
            comparable_ratio=settings.comparable_amount_ratio,
            interest_pattern=settings.interest_pattern
        )
        bundle.monthly_recurring_spend = subscriptions.monthly_recurring_spend
        bundle.active_subscriptions = subscriptions.active_subscriptions
        bundle.subscription_share = subscriptions.subscription_share
        bundle.recurring_merchants = subscriptions.recurring_merchants

    savings = calculate_savings(accounts, transactions, window_days, monthly_spend, monthly_essential)
    bundle.savings_balance = savings.savings_balance
    bundle.net_savings_inflow = savings.net_savings_inflow
    bundle.savings_growth_rate = savings.savings_growth_rate
    bundle.emergency_fund_coverage = savings.emergency_fund_coverage
    bundle.cash_flow_buffer = savings.cash_flow_buffer

    income = calculate_income_stability(trend_transactions, trend_days, settings.pay_cycles_days)
    bundle.median_pay_gap = income.median_pay_gap
    bundle.payment_frequency = income.payment_frequency
    bundle.pay_gap_variability = income.pay_gap_variability
    bundle.cycle_deviation_days = income.cycle_deviation_days

    logger.debug(
        "Signals extracted",
        extra={
            'user_id': user_id,
            'window_days': window_days,
            'accounts': bundle.account_count,
            'transactions': bundle.transaction_count,
        }
    )
    return bundle
