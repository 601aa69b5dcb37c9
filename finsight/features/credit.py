"""
Credit Module

Analyzes credit card usage and payment behavior.

Features computed:
- Aggregate utilization (sum of balances / sum of limits)
- Per-card utilization
- Interest charges (total, monthly average, count)
- Minimum-payment-only detection per statement month
- Overdue status
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from finsight.features.spending import is_transfer_or_payment
from finsight.features.window_utils import month_key, window_months
from finsight.ingest.schema import Account, Liability, Transaction, CREDIT_ACCOUNT_TYPES


@dataclass
class CreditSignals:
    """Credit utilization and payment behavior signals."""
    utilization_percent: Optional[float]  # None when the user has no credit accounts
    is_high_utilization: Optional[bool]
    card_utilizations: Dict[str, float] = field(default_factory=dict)
    interest_charges_total: float = 0.0
    interest_monthly_average: float = 0.0
    interest_charge_count: int = 0
    minimum_payment_only: Optional[bool] = None
    is_overdue: Optional[bool] = None
    num_credit_cards: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'utilization_percent': self.utilization_percent,
            'is_high_utilization': self.is_high_utilization,
            'card_utilizations': self.card_utilizations,
            'interest_charges_total': self.interest_charges_total,
            'interest_monthly_average': self.interest_monthly_average,
            'interest_charge_count': self.interest_charge_count,
            'minimum_payment_only': self.minimum_payment_only,
            'is_overdue': self.is_overdue,
            'num_credit_cards': self.num_credit_cards
        }


def is_credit_account(account: Account) -> bool:
    return (account.type or '').lower() in CREDIT_ACCOUNT_TYPES


def calculate_utilization(credit_accounts: List[Account]) -> float:
    """
    Aggregate utilization across cards with a positive limit.

    Returns 0 when no card has a limit. Can exceed 100 for over-limit balances.
    """
    limited = [a for a in credit_accounts if a.credit_limit and a.credit_limit > 0]
    if not limited:
        return 0.0
    total_balance = sum(a.balance_current for a in limited)
    total_limit = sum(a.credit_limit for a in limited)
    return total_balance / total_limit * 100


def calculate_card_utilizations(credit_accounts: List[Account]) -> Dict[str, float]:
    """Per-card utilization percentages for cards with a positive limit."""
    return {
        a.account_id: a.balance_current / a.credit_limit * 100
        for a in credit_accounts
        if a.credit_limit and a.credit_limit > 0
    }


def calculate_interest_charges(
    transactions: List[Transaction],
    window_days: int,
    pattern: str = 'interest'
) -> Tuple[float, float, int]:
    """
    Sum outflows whose merchant name contains the interest pattern.

    Returns:
        Tuple of (total, monthly_average, charge_count)
    """
    pattern = pattern.lower()
    charges = [
        -t.amount for t in transactions
        if t.amount < 0 and pattern in (t.merchant_name or '').lower()
    ]
    total = sum(charges)
    return total, total / window_months(window_days), len(charges)


def detect_minimum_payment_only(
    credit_accounts: List[Account],
    liabilities: List[Liability],
    transactions: List[Transaction],
    tolerance_ratio: float = 0.05,
    tolerance_floor: float = 1.0
) -> Optional[bool]:
    """
    Detect minimum-payment-only behavior.

    Payments into each card are grouped by calendar month. The user is paying
    only the minimum when every month with payments matches that card's
    minimum within tolerance (the larger of the ratio and the floor).

    Returns:
        None without a card liability carrying a minimum, False without payments
    """
    minimums = {
        lib.account_id: lib.minimum_payment_amount
        for lib in liabilities
        if lib.minimum_payment_amount and lib.minimum_payment_amount > 0
    }
    card_ids = {a.account_id for a in credit_accounts}
    minimums = {k: v for k, v in minimums.items() if k in card_ids}
    if not minimums:
        return None

    paid = defaultdict(float)
    for txn in transactions:
        if txn.account_id in minimums and txn.amount > 0 and is_transfer_or_payment(txn):
            paid[(txn.account_id, month_key(txn.date))] += txn.amount

    if not paid:
        return False

    for (account_id, _), total in paid.items():
        minimum = minimums[account_id]
        tolerance = max(minimum * tolerance_ratio, tolerance_floor)
        if abs(total - minimum) > tolerance:
            return False
    return True


def calculate_credit_signals(
    accounts: List[Account],
    liabilities: List[Liability],
    transactions: List[Transaction],
    window_days: int,
    high_threshold: float = 50.0,
    interest_pattern: str = 'interest',
    tolerance_ratio: float = 0.05,
    tolerance_floor: float = 1.0
) -> CreditSignals:
    """
    Calculate credit utilization and payment behavior metrics.

    Args:
        accounts: All user accounts (credit accounts are picked out here)
        liabilities: Liability records for the user's accounts
        transactions: All user transactions inside the window
        window_days: Size of the window

    Returns:
        CreditSignals object with calculated metrics
    """
    credit_accounts = [a for a in accounts if is_credit_account(a)]
    total, monthly, count = calculate_interest_charges(transactions, window_days, interest_pattern)
    is_overdue = any(bool(lib.is_overdue) for lib in liabilities) if liabilities else None

    if not credit_accounts:
        return CreditSignals(
            utilization_percent=None,
            is_high_utilization=None,
            interest_charges_total=total,
            interest_monthly_average=monthly,
            interest_charge_count=count,
            is_overdue=is_overdue
        )

    utilization = calculate_utilization(credit_accounts)

    return CreditSignals(
        utilization_percent=utilization,
        is_high_utilization=utilization >= high_threshold,
        card_utilizations=calculate_card_utilizations(credit_accounts),
        interest_charges_total=total,
        interest_monthly_average=monthly,
        interest_charge_count=count,
        minimum_payment_only=detect_minimum_payment_only(
            credit_accounts, liabilities, transactions, tolerance_ratio, tolerance_floor
        ),
        is_overdue=is_overdue,
        num_credit_cards=len(credit_accounts)
    )
