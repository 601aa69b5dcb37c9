"""
Subscription Detection Module

Detects recurring merchants and calculates subscription-related metrics.

A merchant is recurring when it is charged in at least two consecutive
calendar months at comparable amounts (monthly totals within 10% of each
other). Interest charges and transfers are never subscriptions.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from statistics import median
from typing import Dict, List, Optional

from finsight.features.spending import is_spend
from finsight.features.window_utils import month_key, next_month
from finsight.ingest.schema import Transaction


@dataclass
class SubscriptionSignals:
    """Subscription behavior signals."""
    recurring_merchants: List[str] = field(default_factory=list)
    active_subscriptions: int = 0
    monthly_recurring_spend: float = 0.0
    subscription_share: float = 0.0  # % of total spend that is recurring
    total_spend: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'recurring_merchants': self.recurring_merchants,
            'active_subscriptions': self.active_subscriptions,
            'monthly_recurring_spend': self.monthly_recurring_spend,
            'subscription_share': self.subscription_share,
            'total_spend': self.total_spend
        }


def normalize_merchant(name: Optional[str]) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    cleaned = re.sub(r'[^a-z0-9 ]+', ' ', (name or '').lower())
    return ' '.join(cleaned.split())


def _is_comparable(a: float, b: float, ratio: float) -> bool:
    return abs(a - b) <= ratio * max(a, b)


def _has_consecutive_comparable_months(monthly_totals: Dict[tuple, float], ratio: float) -> bool:
    for key, amount in monthly_totals.items():
        following = monthly_totals.get(next_month(key))
        if following is not None and _is_comparable(amount, following, ratio):
            return True
    return False


def detect_subscriptions(
    transactions: List[Transaction],
    comparable_ratio: float = 0.10,
    interest_pattern: str = 'interest'
) -> SubscriptionSignals:
    """
    Detect subscription patterns in the window's transactions.

    Args:
        transactions: All user transactions inside the window
        comparable_ratio: Max relative difference between consecutive monthly totals
        interest_pattern: Merchant substring marking interest charges

    Returns:
        SubscriptionSignals object with calculated metrics
    """
    spend = [t for t in transactions if is_spend(t)]
    total_spend = sum(-t.amount for t in spend)

    interest_pattern = interest_pattern.lower()
    by_merchant = defaultdict(lambda: defaultdict(float))
    for txn in spend:
        merchant = normalize_merchant(txn.merchant_name)
        if not merchant or interest_pattern in merchant:
            continue
        by_merchant[merchant][month_key(txn.date)] += -txn.amount

    recurring = []
    monthly_recurring = 0.0
    recurring_total = 0.0
    for merchant in sorted(by_merchant):
        monthly_totals = by_merchant[merchant]
        if _has_consecutive_comparable_months(monthly_totals, comparable_ratio):
            recurring.append(merchant)
            monthly_recurring += median(monthly_totals.values())
            recurring_total += sum(monthly_totals.values())

    share = (recurring_total / total_spend * 100) if total_spend > 0 else 0.0

    return SubscriptionSignals(
        recurring_merchants=recurring,
        active_subscriptions=len(recurring),
        monthly_recurring_spend=monthly_recurring,
        subscription_share=share,
        total_spend=total_spend
    )
