"""
Persona Criteria Evaluation

One predicate+confidence function per persona. Each takes a SignalBundle and
returns a RuleResult with the match decision, a confidence in [0, 1] derived
from the fraction of sub-criteria satisfied, and the labels of the criteria
that were met. Absent (None) signals never satisfy a criterion.
"""

from dataclasses import dataclass, field
from typing import Callable, List

from finsight.config import Settings
from finsight.features.signals import SignalBundle


HIGH_UTILIZATION = 'high_utilization'
VARIABLE_INCOME = 'variable_income'
SUBSCRIPTION_HEAVY = 'subscription_heavy'
SAVINGS_BUILDER = 'savings_builder'
LIFESTYLE_CREEP = 'lifestyle_creep'


@dataclass
class RuleResult:
    """Outcome of evaluating one persona rule-set."""
    persona_type: str
    matched: bool
    confidence: float
    criteria_met: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'persona_type': self.persona_type,
            'matched': self.matched,
            'confidence': self.confidence,
            'criteria_met': list(self.criteria_met)
        }


@dataclass(frozen=True)
class PersonaRule:
    """A persona type paired with the function that evaluates it."""
    persona_type: str
    evaluate: Callable[[SignalBundle, Settings], RuleResult]


def _fraction(met: int, total: int) -> float:
    return round(met / total, 4)


def check_high_utilization(signals: SignalBundle, settings: Settings) -> RuleResult:
    """
    High Utilization

    Criteria (any):
    - Aggregate utilization >= 50%
    - Monthly interest charges > 0
    - Minimum-payment-only detected
    - Overdue liability

    Confidence: 0.25 per criterion plus a boost when overdue, capped at 1.0.
    """
    met = []
    if signals.utilization is not None and signals.utilization >= settings.high_utilization_percent:
        met.append(f"Credit utilization at {signals.utilization:.1f}%")
    if signals.monthly_interest is not None and signals.monthly_interest > 0:
        met.append(f"Interest charges of ${signals.monthly_interest:.2f}/month")
    if signals.minimum_payment_only:
        met.append("Only making minimum payments")
    if signals.is_overdue:
        met.append("Has overdue payments")

    confidence = settings.criterion_weight * len(met)
    if signals.is_overdue:
        confidence += settings.overdue_boost

    return RuleResult(HIGH_UTILIZATION, bool(met), min(1.0, round(confidence, 4)), met)


def check_variable_income(signals: SignalBundle, settings: Settings) -> RuleResult:
    """
    Variable Income Budgeter

    Criteria:
    - Median pay gap deviates from the nearest pay cycle by more than the tolerance (required)
    - Cash flow buffer < 2 months (required)
    - Pay gap variability above 10 days (supporting)
    """
    met = []
    irregular = (
        signals.cycle_deviation_days is not None
        and signals.cycle_deviation_days > settings.pay_cycle_tolerance_days
    )
    if irregular:
        met.append(f"Irregular pay gap of {signals.median_pay_gap:.0f} days")

    low_buffer = signals.cash_flow_buffer is not None and signals.cash_flow_buffer < settings.low_buffer_months
    if low_buffer:
        met.append(f"Cash flow buffer of {signals.cash_flow_buffer:.1f} months")

    if signals.pay_gap_variability is not None and signals.pay_gap_variability > settings.pay_gap_variability_days:
        met.append(f"Pay gap variability of {signals.pay_gap_variability:.1f} days")

    return RuleResult(VARIABLE_INCOME, irregular and low_buffer, _fraction(len(met), 3), met)


def check_subscription_heavy(signals: SignalBundle, settings: Settings) -> RuleResult:
    """
    Subscription-Heavy

    Criteria (any):
    - Subscription share of spend > 10%
    - More than 5 active subscriptions
    """
    met = []
    if signals.subscription_share is not None and signals.subscription_share > settings.subscription_share_percent:
        met.append(f"Subscriptions are {signals.subscription_share:.1f}% of spend")
    if signals.active_subscriptions is not None and signals.active_subscriptions > settings.subscription_count:
        met.append(f"{signals.active_subscriptions} active subscriptions")

    return RuleResult(SUBSCRIPTION_HEAVY, bool(met), _fraction(len(met), 2), met)


def check_savings_builder(signals: SignalBundle, settings: Settings) -> RuleResult:
    """
    Savings Builder

    Criteria:
    - Savings growth >= 2%/month OR net savings inflow >= $200/month
    - AND every credit card below 30% utilization

    The utilization gate suppresses the match even when saving is strong.
    """
    met = []
    growing = (
        signals.savings_growth_rate is not None
        and signals.savings_growth_rate >= settings.savings_growth_percent_monthly
    )
    if growing:
        met.append(f"Savings growing {signals.savings_growth_rate:.1f}%/month")

    inflow = (
        signals.net_savings_inflow is not None
        and signals.net_savings_inflow >= settings.savings_inflow_monthly
    )
    if inflow:
        met.append(f"Saving ${signals.net_savings_inflow:.0f}/month")

    low_utilization = all(
        util < settings.low_card_utilization_percent
        for util in signals.card_utilizations.values()
    )
    if low_utilization:
        met.append(f"All cards below {settings.low_card_utilization_percent:.0f}% utilization")

    return RuleResult(SAVINGS_BUILDER, (growing or inflow) and low_utilization, _fraction(len(met), 3), met)


def check_lifestyle_creep(signals: SignalBundle, settings: Settings) -> RuleResult:
    """
    Lifestyle Creep

    Criteria:
    - Monthly income at or above the high-income threshold (required)
    - Savings rate < 10% (required)
    - Discretionary share of spend > 30% (required)
    - Discretionary spend rising over the trend window (supporting)
    """
    met = []
    high_income = signals.monthly_income is not None and signals.monthly_income >= settings.high_income_monthly
    if high_income:
        met.append(f"Monthly income of ${signals.monthly_income:,.0f}")

    low_savings = signals.savings_rate is not None and signals.savings_rate < settings.low_savings_rate_percent
    if low_savings:
        met.append(f"Savings rate of {signals.savings_rate:.1f}%")

    elevated = (
        signals.discretionary_spend_percent is not None
        and signals.discretionary_spend_percent > settings.elevated_discretionary_percent
    )
    if elevated:
        met.append(f"Discretionary spend at {signals.discretionary_spend_percent:.1f}%")

    if signals.discretionary_trend == 'increasing':
        met.append("Discretionary spend increasing")

    return RuleResult(LIFESTYLE_CREEP, high_income and low_savings and elevated, _fraction(len(met), 4), met)


# Fixed evaluation order; the first match becomes the primary persona
PERSONA_RULES = [
    PersonaRule(HIGH_UTILIZATION, check_high_utilization),
    PersonaRule(VARIABLE_INCOME, check_variable_income),
    PersonaRule(SUBSCRIPTION_HEAVY, check_subscription_heavy),
    PersonaRule(SAVINGS_BUILDER, check_savings_builder),
    PersonaRule(LIFESTYLE_CREEP, check_lifestyle_creep),
]
