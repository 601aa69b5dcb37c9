"""
Recommendation Templates

Anchor actions guaranteed for each persona, plus the generic list used when
a user could not be classified.
"""

from dataclasses import dataclass
from typing import Optional

from finsight.personas.criteria import (
    HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER, LIFESTYLE_CREEP
)


HIGH = 'high'
MEDIUM = 'medium'
LOW = 'low'

# Lower rank sorts first
PRIORITY_RANK = {HIGH: 0, MEDIUM: 1, LOW: 2}


@dataclass
class ActionItem:
    """One actionable recommendation."""
    title: str
    description: str
    priority: str  # high, medium, low
    persona_type: Optional[str] = None
    is_anchor: bool = False

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'description': self.description,
            'priority': self.priority,
            'persona_type': self.persona_type,
            'is_anchor': self.is_anchor
        }


PERSONA_ANCHORS = {
    HIGH_UTILIZATION: ActionItem(
        title="Reduce Credit Card Utilization",
        description=(
            "Bring each card's balance below 30% of its limit. Lower utilization "
            "improves your credit score and cuts the interest you pay."
        ),
        priority=HIGH,
        persona_type=HIGH_UTILIZATION,
        is_anchor=True
    ),
    VARIABLE_INCOME: ActionItem(
        title="Build Your Emergency Fund",
        description=(
            "Set aside a cushion that covers at least two months of expenses so "
            "slow income months don't force you onto credit."
        ),
        priority=HIGH,
        persona_type=VARIABLE_INCOME,
        is_anchor=True
    ),
    SUBSCRIPTION_HEAVY: ActionItem(
        title="Audit Your Subscriptions",
        description=(
            "List every recurring charge, cancel the ones you no longer use and "
            "downgrade the ones you use rarely."
        ),
        priority=HIGH,
        persona_type=SUBSCRIPTION_HEAVY,
        is_anchor=True
    ),
    SAVINGS_BUILDER: ActionItem(
        title="Continue Building Your Savings",
        description=(
            "Your savings are growing. Keep automatic transfers in place and "
            "raise them whenever your income goes up."
        ),
        priority=MEDIUM,
        persona_type=SAVINGS_BUILDER,
        is_anchor=True
    ),
    LIFESTYLE_CREEP: ActionItem(
        title="Align Savings with Income",
        description=(
            "Your income is strong but little of it is being saved. Pick a savings "
            "rate of at least 10% and move that amount on payday."
        ),
        priority=HIGH,
        persona_type=LIFESTYLE_CREEP,
        is_anchor=True
    ),
}


GENERIC_ITEMS = [
    ActionItem(
        title="Complete Your Profile",
        description="Link your checking, savings and credit accounts so we can tailor guidance to you.",
        priority=HIGH
    ),
    ActionItem(
        title="Optimize Your Financial Health",
        description="Review your monthly spending against your income and set one savings goal.",
        priority=MEDIUM
    ),
    ActionItem(
        title="Track Your Spending",
        description="Categorize a month of purchases to see where your money goes.",
        priority=LOW
    ),
]
