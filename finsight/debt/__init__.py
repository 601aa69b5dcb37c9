"""
Debt Module

Avalanche vs snowball payoff simulation for a user's open debts.
"""

from .planner import (
    DebtAccount,
    PayoffPlan,
    PayoffComparison,
    compare_strategies,
    simulate_strategy,
    plan_debt_payoff,
)

__all__ = [
    'DebtAccount',
    'PayoffPlan',
    'PayoffComparison',
    'compare_strategies',
    'simulate_strategy',
    'plan_debt_payoff'
]
