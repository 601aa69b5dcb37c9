"""
Recommendation Synthesizer

Maps a persona and its signals to an ordered list of action items.

Rules:
- The persona's anchor item is always present
- No two items share an equivalent title (case, punctuation and spacing ignored)
- Items are ordered high > medium > low, keeping generation order within a priority
- Unclassified users get the generic list
"""

import copy
import logging
import re
from typing import Callable, Dict, List, Optional, Sequence, Union

from finsight.exceptions import InvalidInputError
from finsight.features.signals import SignalBundle
from finsight.personas.criteria import (
    HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER, LIFESTYLE_CREEP
)
from finsight.recommend.templates import (
    ActionItem, GENERIC_ITEMS, PERSONA_ANCHORS, PRIORITY_RANK, HIGH, MEDIUM, LOW
)

logger = logging.getLogger(__name__)


def normalize_title(title: str) -> str:
    """Title key used to detect equivalent items."""
    cleaned = re.sub(r'[^a-z0-9 ]+', ' ', title.lower())
    return ' '.join(cleaned.split())


def _high_utilization_items(signals: SignalBundle) -> List[ActionItem]:
    items = []
    if signals.utilization is not None and signals.utilization > 0:
        items.append(ActionItem(
            title="Reduce Credit Card Utilization",
            description=(
                f"You're using {signals.utilization:.1f}% of your available credit. "
                "Aim for under 30% on every card."
            ),
            priority=HIGH,
            persona_type=HIGH_UTILIZATION,
            is_anchor=True
        ))
    if signals.is_overdue:
        items.append(ActionItem(
            title="Get Current on Overdue Payments",
            description="Bring overdue accounts current first to stop late fees and credit damage.",
            priority=HIGH,
            persona_type=HIGH_UTILIZATION
        ))
    if signals.monthly_interest:
        items.append(ActionItem(
            title="Reduce Interest Charges",
            description=(
                f"You're paying about ${signals.monthly_interest:,.2f} a month in interest. "
                "Paying above the minimum on your highest-APR card shrinks it fastest."
            ),
            priority=HIGH,
            persona_type=HIGH_UTILIZATION
        ))
    if signals.minimum_payment_only:
        items.append(ActionItem(
            title="Create a Debt Payoff Plan",
            description="Minimum payments alone stretch payoff over years. Compare avalanche and snowball plans.",
            priority=MEDIUM,
            persona_type=HIGH_UTILIZATION
        ))
    items.append(ActionItem(
        title="Monitor Your Credit Utilization",
        description="Check balances before statement dates so reported utilization stays low.",
        priority=LOW,
        persona_type=HIGH_UTILIZATION
    ))
    return items


def _variable_income_items(signals: SignalBundle) -> List[ActionItem]:
    items = [ActionItem(
        title="Budget Around Your Lowest-Income Month",
        description="Plan fixed expenses against your smallest typical month and save the excess from bigger ones.",
        priority=MEDIUM,
        persona_type=VARIABLE_INCOME
    )]
    if signals.cash_flow_buffer is not None:
        items.append(ActionItem(
            title="Grow Your Cash Buffer",
            description=(
                f"Your checking and savings cover {signals.cash_flow_buffer:.1f} months of spending. "
                "Work toward at least two."
            ),
            priority=MEDIUM,
            persona_type=VARIABLE_INCOME
        ))
    return items


def _subscription_heavy_items(signals: SignalBundle) -> List[ActionItem]:
    items = []
    if signals.active_subscriptions:
        items.append(ActionItem(
            title="Audit Your Subscriptions",
            description=(
                f"We found {signals.active_subscriptions} recurring charges totaling "
                f"${signals.monthly_recurring_spend or 0:,.2f} a month. Cancel the ones you don't use."
            ),
            priority=HIGH,
            persona_type=SUBSCRIPTION_HEAVY,
            is_anchor=True
        ))
    items.append(ActionItem(
        title="Negotiate or Downgrade Plans",
        description="Ask providers for cheaper tiers or annual pricing on the services you keep.",
        priority=LOW,
        persona_type=SUBSCRIPTION_HEAVY
    ))
    return items


def _savings_builder_items(signals: SignalBundle) -> List[ActionItem]:
    items = []
    if signals.emergency_fund_coverage is not None and signals.emergency_fund_coverage < 3:
        items.append(ActionItem(
            title="Reach Three Months of Emergency Savings",
            description=(
                f"Your savings cover {signals.emergency_fund_coverage:.1f} months of essential expenses. "
                "Three to six months is a solid target."
            ),
            priority=MEDIUM,
            persona_type=SAVINGS_BUILDER
        ))
    items.append(ActionItem(
        title="Optimize Your Savings Strategy",
        description="Move idle cash to a high-yield savings account so your balance earns more.",
        priority=LOW,
        persona_type=SAVINGS_BUILDER
    ))
    return items


def _lifestyle_creep_items(signals: SignalBundle) -> List[ActionItem]:
    items = [ActionItem(
        title="Set Limits on Discretionary Spending",
        description=(
            f"About {signals.discretionary_spend_percent or 0:.0f}% of your spending is discretionary. "
            "Give dining, entertainment and shopping a monthly cap."
        ),
        priority=MEDIUM,
        persona_type=LIFESTYLE_CREEP
    )]
    if signals.discretionary_trend == 'increasing':
        items.append(ActionItem(
            title="Watch Rising Discretionary Spending",
            description="Your discretionary spending has grown over the last six months.",
            priority=MEDIUM,
            persona_type=LIFESTYLE_CREEP
        ))
    return items


PERSONA_GENERATORS: Dict[str, Callable[[SignalBundle], List[ActionItem]]] = {
    HIGH_UTILIZATION: _high_utilization_items,
    VARIABLE_INCOME: _variable_income_items,
    SUBSCRIPTION_HEAVY: _subscription_heavy_items,
    SAVINGS_BUILDER: _savings_builder_items,
    LIFESTYLE_CREEP: _lifestyle_creep_items,
}


def _ensure_anchor(items: List[ActionItem], persona_type: str) -> List[ActionItem]:
    anchor = PERSONA_ANCHORS[persona_type]
    key = normalize_title(anchor.title)
    if any(normalize_title(item.title) == key for item in items):
        return items
    return [copy.copy(anchor)] + items


def _dedupe(items: List[ActionItem]) -> List[ActionItem]:
    seen = set()
    unique = []
    for item in items:
        key = normalize_title(item.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def synthesize_recommendations(
    persona: Optional[str],
    signals: Union[SignalBundle, dict, None] = None,
    secondary: Sequence[str] = ()
) -> List[ActionItem]:
    """
    Build the ordered action list for a persona.

    Args:
        persona: Primary persona type, or None when unclassified
        signals: SignalBundle (or its dict form) used to personalize items
        secondary: Secondary persona types; their anchors are added too

    Returns:
        Non-empty list of ActionItems sorted by priority
    """
    if isinstance(signals, dict):
        signals = SignalBundle.from_dict(signals)
    if signals is None:
        signals = SignalBundle.from_dict({})

    if persona is None:
        items = [copy.copy(item) for item in GENERIC_ITEMS]
    else:
        for persona_type in [persona, *secondary]:
            if persona_type not in PERSONA_GENERATORS:
                raise InvalidInputError('persona', f"unknown persona type {persona_type!r}")
        items = _ensure_anchor(PERSONA_GENERATORS[persona](signals), persona)
        for other in secondary:
            if other != persona:
                items.append(copy.copy(PERSONA_ANCHORS[other]))

    items = _dedupe(items)
    items = sorted(items, key=lambda item: PRIORITY_RANK[item.priority])

    logger.debug(
        "Recommendations synthesized",
        extra={'persona': persona, 'count': len(items)}
    )
    return items
