"""
Spending Module

Classifies outflows and computes spend-based signals.

Features computed:
- Monthly spend (discretionary + essential)
- Discretionary share of total spend
- Discretionary trend (first half vs second half of the trend window)
- Savings rate
"""

from dataclasses import dataclass
from typing import List, Optional

from finsight.features.window_utils import get_date_range, to_date, window_months
from finsight.ingest.schema import Transaction


# Discretionary categories (matched against lowercased category_primary)
DISCRETIONARY_CATEGORIES = {
    'entertainment',
    'dining',
    'restaurants',
    'shopping',
    'food_and_drink',
    'general_merchandise',
}

# Detailed categories that look discretionary by primary but are essentials
ESSENTIAL_DETAIL_KEYWORDS = ('groceries', 'grocery', 'pharmacies')

TRANSFER_CATEGORIES = ('TRANSFER_IN', 'TRANSFER_OUT', 'LOAN_PAYMENTS')
TRANSFER_KEYWORDS = ('transfer', 'payment')

INCOME_CATEGORY = 'INCOME'


def is_transfer_or_payment(txn: Transaction) -> bool:
    """Money moving between the user's own accounts or paying down debt."""
    category = (txn.category_primary or '').upper()
    if category in TRANSFER_CATEGORIES or category.startswith('TRANSFER'):
        return True
    merchant = (txn.merchant_name or '').lower()
    return any(keyword in merchant for keyword in TRANSFER_KEYWORDS)


def is_income(txn: Transaction) -> bool:
    """INCOME-tagged inflow."""
    return txn.amount > 0 and (txn.category_primary or '').upper() == INCOME_CATEGORY


def is_spend(txn: Transaction) -> bool:
    """Outflow that counts toward spending."""
    return txn.amount < 0 and not is_transfer_or_payment(txn)


def is_discretionary(txn: Transaction) -> bool:
    category = (txn.category_primary or '').lower()
    if category not in DISCRETIONARY_CATEGORIES:
        return False
    detailed = (txn.category_detailed or '').lower()
    return not any(keyword in detailed for keyword in ESSENTIAL_DETAIL_KEYWORDS)


@dataclass
class SpendingSignals:
    """Spend, income and savings-rate signals."""
    total_spend: float
    discretionary_spend: float
    essential_spend: float
    total_income: float
    monthly_spend: float
    monthly_essential_spend: float
    monthly_income: float
    discretionary_spend_percent: float
    savings_rate: float
    discretionary_trend: Optional[str]  # 'increasing', 'stable', 'decreasing' or None
    window_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'total_spend': self.total_spend,
            'monthly_spend': self.monthly_spend,
            'monthly_essential_spend': self.monthly_essential_spend,
            'monthly_income': self.monthly_income,
            'discretionary_spend_percent': self.discretionary_spend_percent,
            'savings_rate': self.savings_rate,
            'discretionary_trend': self.discretionary_trend,
            'window_days': self.window_days
        }


def calculate_savings_rate(monthly_inflow: float, monthly_outflow: float) -> float:
    """(inflow - outflow) / inflow * 100, or 0 when there is no inflow."""
    if monthly_inflow <= 0:
        return 0.0
    return (monthly_inflow - monthly_outflow) / monthly_inflow * 100


def calculate_spending(
    transactions: List[Transaction],
    window_days: int,
    trend_transactions: List[Transaction] = None,
    trend_window_days: int = 180,
    as_of=None,
    trend_threshold: float = 0.10
) -> SpendingSignals:
    """
    Calculate spend-based signals.

    Args:
        transactions: All user transactions inside the window
        window_days: Size of the window
        trend_transactions: Transactions inside the trend window (for the discretionary trend)
        trend_window_days: Size of the trend window
        as_of: End of both windows
        trend_threshold: Relative change treated as a trend (0.10 = 10%)

    Returns:
        SpendingSignals object with calculated metrics
    """
    months = window_months(window_days)

    spend = [t for t in transactions if is_spend(t)]
    discretionary = sum(-t.amount for t in spend if is_discretionary(t))
    total_spend = sum(-t.amount for t in spend)
    essential = total_spend - discretionary
    total_income = sum(t.amount for t in transactions if is_income(t))

    monthly_spend = total_spend / months
    monthly_income = total_income / months

    discretionary_percent = (discretionary / total_spend * 100) if total_spend > 0 else 0.0

    trend = None
    if trend_transactions is not None:
        trend = calculate_discretionary_trend(
            trend_transactions, trend_window_days, as_of, trend_threshold
        )

    return SpendingSignals(
        total_spend=total_spend,
        discretionary_spend=discretionary,
        essential_spend=essential,
        total_income=total_income,
        monthly_spend=monthly_spend,
        monthly_essential_spend=essential / months,
        monthly_income=monthly_income,
        discretionary_spend_percent=discretionary_percent,
        savings_rate=calculate_savings_rate(monthly_income, monthly_spend),
        discretionary_trend=trend,
        window_days=window_days
    )


def calculate_discretionary_trend(
    transactions: List[Transaction],
    window_days: int,
    as_of=None,
    threshold: float = 0.10
) -> Optional[str]:
    """
    Compare discretionary spend in the first and second half of the window.

    Returns:
        'increasing', 'decreasing' or 'stable'; None without discretionary spend
    """
    start_date, end_date = get_date_range(window_days, as_of)
    midpoint = start_date + (end_date - start_date) / 2

    first_half = 0.0
    second_half = 0.0
    for txn in transactions:
        if not (is_spend(txn) and is_discretionary(txn)):
            continue
        if to_date(txn.date) < midpoint:
            first_half += -txn.amount
        else:
            second_half += -txn.amount

    if first_half == 0 and second_half == 0:
        return None
    if first_half == 0:
        return 'increasing'

    change = (second_half - first_half) / first_half
    if change > threshold:
        return 'increasing'
    if change < -threshold:
        return 'decreasing'
    return 'stable'
