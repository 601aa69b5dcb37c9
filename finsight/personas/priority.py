"""
Persona Priority Resolution

Evaluates every rule-set in fixed order and resolves the primary and
secondary personas.

Priority Order:
1. High Utilization (most urgent financial risk)
2. Variable Income Budgeter (cash flow instability)
3. Subscription-Heavy (actionable savings opportunity)
4. Savings Builder (positive reinforcement)
5. Lifestyle Creep (income outpacing savings)

The first matching rule-set is primary. The remaining matches are secondary,
ordered by descending confidence with ties kept in priority order. When
nothing matches the result is unclassified; no default persona is assigned.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from finsight.config import Settings, settings as default_settings
from finsight.exceptions import UnclassifiableError
from finsight.features.signals import SignalBundle
from finsight.personas.criteria import (
    PERSONA_RULES, PersonaRule, RuleResult,
    HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER, LIFESTYLE_CREEP
)

logger = logging.getLogger(__name__)


# Persona display names
PERSONA_NAMES = {
    HIGH_UTILIZATION: 'High Utilization',
    VARIABLE_INCOME: 'Variable Income Budgeter',
    SUBSCRIPTION_HEAVY: 'Subscription-Heavy',
    SAVINGS_BUILDER: 'Savings Builder',
    LIFESTYLE_CREEP: 'Lifestyle Creep',
}


@dataclass
class ClassificationResult:
    """Primary and secondary persona matches for one signal bundle."""
    primary: Optional[RuleResult]
    secondary: List[RuleResult] = field(default_factory=list)
    evaluations: List[RuleResult] = field(default_factory=list)

    @property
    def is_classified(self) -> bool:
        return self.primary is not None

    @property
    def persona_type(self) -> Optional[str]:
        return self.primary.persona_type if self.primary else None

    @property
    def secondary_types(self) -> List[str]:
        return [r.persona_type for r in self.secondary]

    def require_primary(self) -> RuleResult:
        """Primary match, or UnclassifiableError when nothing matched."""
        if self.primary is None:
            raise UnclassifiableError()
        return self.primary

    def to_dict(self) -> dict:
        return {
            'primary': self.primary.to_dict() if self.primary else None,
            'secondary': [r.to_dict() for r in self.secondary]
        }


def resolve_persona_priority(matches: Sequence[RuleResult]) -> ClassificationResult:
    """
    Resolve primary and secondary personas from matching rule results.

    Args:
        matches: Matching results in fixed evaluation order

    Returns:
        ClassificationResult; primary is None when there are no matches
    """
    if not matches:
        return ClassificationResult(primary=None)

    primary = matches[0]
    # sorted() is stable, so equal confidences keep evaluation order
    secondary = sorted(matches[1:], key=lambda r: -r.confidence)
    return ClassificationResult(primary=primary, secondary=secondary)


def classify(
    signals: SignalBundle,
    settings: Settings = None,
    rules: Sequence[PersonaRule] = None
) -> ClassificationResult:
    """
    Evaluate all persona rule-sets against a signal bundle.

    Args:
        signals: SignalBundle to classify
        settings: Threshold overrides (defaults to module settings)
        rules: Rule-sets in priority order (defaults to PERSONA_RULES)

    Returns:
        ClassificationResult with every rule's evaluation attached
    """
    settings = settings or default_settings
    rules = PERSONA_RULES if rules is None else rules

    evaluations = [rule.evaluate(signals, settings) for rule in rules]
    result = resolve_persona_priority([r for r in evaluations if r.matched])
    result.evaluations = evaluations

    logger.debug(
        "Signals classified",
        extra={
            'user_id': signals.user_id,
            'primary': result.persona_type,
            'secondary': result.secondary_types,
        }
    )
    return result
