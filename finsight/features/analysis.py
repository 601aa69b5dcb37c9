"""
Spending Analysis

Descriptive breakdown of a user's recent cash flow, independent of persona
classification:
- Spending by category
- Income vs expenses per calendar month
- Top merchants by total spend
- Unusually large purchases (more than N standard deviations above the mean)

Transfers and debt payments are never counted as spending or income. Fixed
bills (mortgage and utility payments) count as spending but are left out of the
merchant ranking and the unusual-purchase scan.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from statistics import mean, pstdev
from typing import List, Optional

from finsight.config import Settings, settings as default_settings
from finsight.features.spending import is_spend, is_transfer_or_payment
from finsight.features.window_utils import get_date_range, month_key, months_before, to_date
from finsight.ingest.schema import Transaction
from finsight.ingest.store import FinancialStore
from finsight.ingest.validation import validate_months, validate_transactions

logger = logging.getLogger(__name__)


UNCATEGORIZED = 'Uncategorized'
UNKNOWN_MERCHANT = 'Unknown'

UTILITY_KEYWORDS = ('electric', 'gas', 'water', 'sewer', 'trash', 'utility', 'power', 'energy')
MORTGAGE_KEYWORD = 'mortgage'


def is_fixed_bill(txn: Transaction) -> bool:
    """Mortgage, utility, transfer or card payment outflow."""
    if is_transfer_or_payment(txn):
        return True
    merchant = (txn.merchant_name or '').lower()
    primary = (txn.category_primary or '').upper()
    detailed = (txn.category_detailed or '').upper()

    if detailed == 'CREDIT_CARD_PAYMENT' or 'MORTGAGE' in detailed:
        return True
    if MORTGAGE_KEYWORD in merchant:
        return True
    if primary == 'RENT_AND_UTILITIES' or detailed.startswith('RENT_AND_UTILITIES'):
        return any(keyword in merchant for keyword in UTILITY_KEYWORDS)
    return False


@dataclass
class CategorySpending:
    category: str
    amount: float
    percentage: float
    transaction_count: int

    def to_dict(self) -> dict:
        return {
            'category': self.category,
            'amount': round(self.amount, 2),
            'percentage': round(self.percentage, 2),
            'transaction_count': self.transaction_count
        }


@dataclass
class MonthlySpending:
    year: int
    month: int
    income: float = 0.0
    expenses: float = 0.0

    @property
    def label(self) -> str:
        return datetime(self.year, self.month, 1).strftime('%b %Y')

    @property
    def net(self) -> float:
        return self.income - self.expenses

    def to_dict(self) -> dict:
        return {
            'year': self.year,
            'month': self.month,
            'label': self.label,
            'income': round(self.income, 2),
            'expenses': round(self.expenses, 2),
            'net': round(self.net, 2)
        }


@dataclass
class TopMerchant:
    merchant_name: str
    total: float
    transaction_count: int

    @property
    def average_amount(self) -> float:
        return self.total / self.transaction_count

    def to_dict(self) -> dict:
        return {
            'merchant_name': self.merchant_name,
            'total': round(self.total, 2),
            'transaction_count': self.transaction_count,
            'average_amount': round(self.average_amount, 2)
        }


@dataclass
class UnusualTransaction:
    transaction_id: str
    date: date
    merchant_name: Optional[str]
    amount: float
    category: Optional[str]
    reason: str

    def to_dict(self) -> dict:
        return {
            'transaction_id': self.transaction_id,
            'date': self.date.isoformat(),
            'merchant_name': self.merchant_name,
            'amount': round(self.amount, 2),
            'category': self.category,
            'reason': self.reason
        }


@dataclass
class SpendingAnalysis:
    """Cash-flow breakdown over the last `months` calendar months."""
    user_id: str
    months: int
    as_of: date
    total_spending: float = 0.0
    total_income: float = 0.0
    category_breakdown: List[CategorySpending] = field(default_factory=list)
    monthly_trend: List[MonthlySpending] = field(default_factory=list)
    top_merchants: List[TopMerchant] = field(default_factory=list)
    unusual_spending: List[UnusualTransaction] = field(default_factory=list)

    @property
    def net_cash_flow(self) -> float:
        return self.total_income - self.total_spending

    @property
    def average_monthly_spending(self) -> float:
        return self.total_spending / self.months

    @property
    def average_monthly_income(self) -> float:
        return self.total_income / self.months

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'user_id': self.user_id,
            'months': self.months,
            'as_of': self.as_of.isoformat(),
            'total_spending': round(self.total_spending, 2),
            'total_income': round(self.total_income, 2),
            'net_cash_flow': round(self.net_cash_flow, 2),
            'average_monthly_spending': round(self.average_monthly_spending, 2),
            'average_monthly_income': round(self.average_monthly_income, 2),
            'category_breakdown': [c.to_dict() for c in self.category_breakdown],
            'monthly_trend': [m.to_dict() for m in self.monthly_trend],
            'top_merchants': [m.to_dict() for m in self.top_merchants],
            'unusual_spending': [u.to_dict() for u in self.unusual_spending]
        }


def _category_of(txn: Transaction) -> Optional[str]:
    return txn.category_detailed or txn.category_primary


def calculate_category_breakdown(expenses: List[Transaction], total_spending: float) -> List[CategorySpending]:
    """Spend per category, largest first."""
    amounts = defaultdict(float)
    counts = defaultdict(int)
    for txn in expenses:
        category = _category_of(txn) or UNCATEGORIZED
        amounts[category] += -txn.amount
        counts[category] += 1

    breakdown = [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=(amount / total_spending * 100) if total_spending > 0 else 0.0,
            transaction_count=counts[category]
        )
        for category, amount in amounts.items()
    ]
    return sorted(breakdown, key=lambda c: (-c.amount, c.category))


def calculate_monthly_trend(expenses: List[Transaction], income: List[Transaction]) -> List[MonthlySpending]:
    """Income and expenses per calendar month, oldest first. Months with no activity are omitted."""
    months = {}
    for txn in expenses + income:
        key = month_key(txn.date)
        if key not in months:
            months[key] = MonthlySpending(*key)
        if txn.amount < 0:
            months[key].expenses += -txn.amount
        else:
            months[key].income += txn.amount
    return [months[key] for key in sorted(months)]


def find_top_merchants(expenses: List[Transaction], limit: int = 10) -> List[TopMerchant]:
    """Merchants with the highest total spend, fixed bills excluded."""
    totals = defaultdict(float)
    counts = defaultdict(int)
    for txn in expenses:
        if is_fixed_bill(txn):
            continue
        merchant = txn.merchant_name or UNKNOWN_MERCHANT
        totals[merchant] += -txn.amount
        counts[merchant] += 1

    merchants = [TopMerchant(name, total, counts[name]) for name, total in totals.items()]
    merchants.sort(key=lambda m: (-m.total, m.merchant_name))
    return merchants[:limit]


def find_unusual_spending(
    expenses: List[Transaction],
    sigma: float = 2.0,
    limit: int = 10
) -> List[UnusualTransaction]:
    """
    Purchases more than `sigma` population standard deviations above the
    mean purchase amount. Fixed bills are left out of both the statistics and
    the results.
    """
    purchases = [t for t in expenses if not is_fixed_bill(t)]
    if not purchases:
        return []

    amounts = [-t.amount for t in purchases]
    average = mean(amounts)
    threshold = average + sigma * pstdev(amounts)

    unusual = [
        UnusualTransaction(
            transaction_id=txn.transaction_id,
            date=to_date(txn.date),
            merchant_name=txn.merchant_name,
            amount=-txn.amount,
            category=_category_of(txn),
            reason=(
                f"Spending of ${-txn.amount:,.2f} is significantly higher than "
                f"your average of ${average:,.2f}"
            )
        )
        for txn in purchases
        if -txn.amount > threshold
    ]
    unusual.sort(key=lambda u: (-u.amount, u.transaction_id))
    return unusual[:limit]


def analyze_spending(
    transactions: List[Transaction],
    months: int,
    as_of: date,
    user_id: str = '',
    top_merchants: int = 10,
    sigma: float = 2.0,
    unusual_limit: int = 10
) -> SpendingAnalysis:
    """
    Build the spending analysis from transactions already limited to the period.

    Args:
        transactions: Transactions inside the analysis period
        months: Period length in calendar months (for monthly averages)
        as_of: End of the period
        user_id: User the transactions belong to
        top_merchants: Number of merchants to rank
        sigma: Standard deviations above the mean that mark a purchase as unusual
        unusual_limit: Maximum number of unusual purchases returned
    """
    expenses = [t for t in transactions if is_spend(t)]
    income = [t for t in transactions if t.amount > 0 and not is_transfer_or_payment(t)]

    total_spending = sum(-t.amount for t in expenses)
    total_income = sum(t.amount for t in income)

    return SpendingAnalysis(
        user_id=user_id,
        months=months,
        as_of=as_of,
        total_spending=total_spending,
        total_income=total_income,
        category_breakdown=calculate_category_breakdown(expenses, total_spending),
        monthly_trend=calculate_monthly_trend(expenses, income),
        top_merchants=find_top_merchants(expenses, top_merchants),
        unusual_spending=find_unusual_spending(expenses, sigma, unusual_limit)
    )


def get_spending_analysis(
    user_id: str,
    store: FinancialStore,
    months: int = None,
    as_of=None,
    settings: Settings = None
) -> SpendingAnalysis:
    """
    Analyze a user's spending over the last `months` calendar months.

    The period starts on the same day `months` months before as_of and ends
    on as_of, both inclusive.

    Raises:
        InvalidInputError: months < 1 or malformed transactions
    """
    settings = settings or default_settings
    if months is None:
        months = settings.analysis_months
    validate_months(months)

    _, as_of = get_date_range(0, as_of)
    since = months_before(as_of, months)
    transactions = [t for t in store.list_transactions(user_id, since) if to_date(t.date) <= as_of]
    validate_transactions(transactions)

    analysis = analyze_spending(
        transactions,
        months,
        as_of,
        user_id=user_id,
        top_merchants=settings.top_merchants_count,
        sigma=settings.unusual_spending_sigma,
        unusual_limit=settings.unusual_spending_limit
    )
    logger.info(
        "Spending analyzed",
        extra={
            'user_id': user_id,
            'months': months,
            'transactions': len(transactions),
            'unusual': len(analysis.unusual_spending)
        }
    )
    return analysis
