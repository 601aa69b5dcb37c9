"""
Income Stability Module

Analyzes the cadence of INCOME-tagged deposits.

Features computed:
- Median pay gap (days between consecutive deposit dates)
- Payment frequency (weekly, biweekly, semi-monthly, monthly, irregular)
- Pay gap variability (standard deviation of gaps)
- Deviation of the median gap from the nearest standard pay cycle
"""

from dataclasses import dataclass
from statistics import median, stdev
from typing import List, Optional, Sequence

from finsight.features.spending import is_income
from finsight.features.window_utils import to_date
from finsight.ingest.schema import Transaction


# Frequency bands on the median gap, checked in order (inclusive)
FREQUENCY_BANDS = [
    ('weekly', 6, 8),
    ('biweekly', 13, 14),
    ('semi-monthly', 14, 16),
    ('monthly', 28, 31),
]


@dataclass
class IncomeSignals:
    """Income stability signals."""
    num_income_deposits: int
    median_pay_gap: Optional[float]  # Days; None with fewer than two deposit dates
    payment_frequency: Optional[str]
    pay_gap_variability: Optional[float]  # Std dev of gaps in days
    cycle_deviation_days: Optional[float]
    window_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'num_income_deposits': self.num_income_deposits,
            'median_pay_gap': self.median_pay_gap,
            'payment_frequency': self.payment_frequency,
            'pay_gap_variability': self.pay_gap_variability,
            'cycle_deviation_days': self.cycle_deviation_days,
            'window_days': self.window_days
        }


def calculate_payment_gaps(income_transactions: List[Transaction]) -> List[int]:
    """Days between consecutive distinct deposit dates."""
    dates = sorted({to_date(t.date) for t in income_transactions})
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def determine_payment_frequency(median_gap: float) -> str:
    for label, low, high in FREQUENCY_BANDS:
        if low <= median_gap <= high:
            return label
    return 'irregular'


def cycle_deviation(median_gap: float, pay_cycles: Sequence[int]) -> float:
    """Distance in days from the median gap to the nearest standard pay cycle."""
    return min(abs(median_gap - cycle) for cycle in pay_cycles)


def calculate_income_stability(
    transactions: List[Transaction],
    window_days: int,
    pay_cycles: Sequence[int] = (7, 14, 15, 30)
) -> IncomeSignals:
    """
    Calculate income stability over the (trend) window.

    Args:
        transactions: All user transactions inside the window
        window_days: Size of the window
        pay_cycles: Standard pay cycles in days

    Returns:
        IncomeSignals object with calculated metrics
    """
    income_transactions = [t for t in transactions if is_income(t)]
    gaps = calculate_payment_gaps(income_transactions)

    if not gaps:
        return IncomeSignals(
            num_income_deposits=len(income_transactions),
            median_pay_gap=None,
            payment_frequency=None,
            pay_gap_variability=None,
            cycle_deviation_days=None,
            window_days=window_days
        )

    median_gap = float(median(gaps))
    return IncomeSignals(
        num_income_deposits=len(income_transactions),
        median_pay_gap=median_gap,
        payment_frequency=determine_payment_frequency(median_gap),
        pay_gap_variability=stdev(gaps) if len(gaps) > 1 else 0.0,
        cycle_deviation_days=cycle_deviation(median_gap, pay_cycles),
        window_days=window_days
    )
