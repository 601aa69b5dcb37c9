"""
Savings Module

Analyzes savings account behavior.

Features computed:
- Net savings inflow (monthly)
- Savings growth rate (percent per month)
- Emergency fund coverage (months of essential expenses)
- Cash flow buffer (months of total spend covered by liquid balances)
"""

from dataclasses import dataclass
from typing import List, Optional

from finsight.features.window_utils import window_months
from finsight.ingest.schema import Account, Transaction, SAVINGS_ACCOUNT_TYPES, CHECKING_ACCOUNT_TYPES


@dataclass
class SavingsSignals:
    """Savings behavior signals. None means the input account type is absent."""
    savings_balance: Optional[float]
    net_savings_inflow: Optional[float]  # Monthly
    savings_growth_rate: Optional[float]  # Percent per month
    emergency_fund_coverage: Optional[float]  # Months
    cash_flow_buffer: Optional[float]  # Months
    window_days: int

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            'savings_balance': self.savings_balance,
            'net_savings_inflow': self.net_savings_inflow,
            'savings_growth_rate': self.savings_growth_rate,
            'emergency_fund_coverage': self.emergency_fund_coverage,
            'cash_flow_buffer': self.cash_flow_buffer,
            'window_days': self.window_days
        }


def _balance(account: Account) -> float:
    if account.balance_available is not None:
        return account.balance_available
    return account.balance_current


def calculate_growth_rate(current_balance: float, net_inflow: float, window_days: int) -> float:
    """
    Percent growth per month over the window.

    The starting balance is reconstructed as current balance minus net inflow.
    Growing from nothing counts as 100% over the window.
    """
    starting_balance = current_balance - net_inflow
    if starting_balance > 0:
        total_growth = (current_balance - starting_balance) / starting_balance * 100
    elif net_inflow > 0:
        total_growth = 100.0
    else:
        total_growth = 0.0
    return total_growth / window_months(window_days)


def calculate_savings(
    accounts: List[Account],
    transactions: List[Transaction],
    window_days: int,
    monthly_spend: float,
    monthly_essential_spend: float
) -> SavingsSignals:
    """
    Calculate savings behavior metrics.

    Args:
        accounts: All user accounts
        transactions: All user transactions inside the window
        window_days: Size of the window
        monthly_spend: Average monthly spend (discretionary + essential)
        monthly_essential_spend: Average monthly essential spend

    Returns:
        SavingsSignals object with calculated metrics
    """
    savings_accounts = [a for a in accounts if (a.type or '').lower() in SAVINGS_ACCOUNT_TYPES]
    checking_accounts = [a for a in accounts if (a.type or '').lower() in CHECKING_ACCOUNT_TYPES]

    liquid_accounts = savings_accounts + checking_accounts
    cash_flow_buffer = None
    if liquid_accounts and monthly_spend > 0:
        cash_flow_buffer = sum(_balance(a) for a in liquid_accounts) / monthly_spend

    if not savings_accounts:
        return SavingsSignals(
            savings_balance=None,
            net_savings_inflow=None,
            savings_growth_rate=None,
            emergency_fund_coverage=None,
            cash_flow_buffer=cash_flow_buffer,
            window_days=window_days
        )

    savings_ids = {a.account_id for a in savings_accounts}
    savings_balance = sum(a.balance_current for a in savings_accounts)
    net_inflow = sum(t.amount for t in transactions if t.account_id in savings_ids)

    emergency_fund = None
    if monthly_essential_spend > 0:
        emergency_fund = savings_balance / monthly_essential_spend

    return SavingsSignals(
        savings_balance=savings_balance,
        net_savings_inflow=net_inflow / window_months(window_days),
        savings_growth_rate=calculate_growth_rate(savings_balance, net_inflow, window_days),
        emergency_fund_coverage=emergency_fund,
        cash_flow_buffer=cash_flow_buffer,
        window_days=window_days
    )
