"""
Main Persona Assignment Logic

Extracts signals, classifies them and persists at most one persona record
per run. Instead of notifying anything directly, the outcome carries the
events the run produced so callers can react to them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from finsight.config import Settings, settings as default_settings
from finsight.features.signals import SignalBundle, extract_signals
from finsight.ingest.schema import PersonaRecord
from finsight.ingest.store import FinancialStore
from finsight.personas.history import build_persona_record, get_current_persona, save_persona_history
from finsight.personas.priority import ClassificationResult, PERSONA_NAMES, classify

logger = logging.getLogger(__name__)


PERSONA_ASSIGNED = 'persona_assigned'
PERSONA_CHANGED = 'persona_changed'
UNCLASSIFIED = 'unclassified'


@dataclass
class PersonaEvent:
    """Something a caller may want to surface (e.g. a notification)."""
    event_type: str
    user_id: str
    persona_type: Optional[str] = None
    previous_persona_type: Optional[str] = None
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            'event_type': self.event_type,
            'user_id': self.user_id,
            'persona_type': self.persona_type,
            'previous_persona_type': self.previous_persona_type,
            'occurred_at': self.occurred_at.isoformat()
        }


@dataclass
class AssignmentOutcome:
    """Result of one classification run."""
    user_id: str
    result: ClassificationResult
    signals: SignalBundle
    record: Optional[PersonaRecord] = None
    events: List[PersonaEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        primary = self.result.primary
        return {
            'user_id': self.user_id,
            'primary': primary.to_dict() if primary else None,
            'primary_name': PERSONA_NAMES.get(primary.persona_type) if primary else None,
            'secondary': [r.to_dict() for r in self.result.secondary],
            'assigned_at': self.record.assigned_at.isoformat() if self.record else None,
            'events': [e.to_dict() for e in self.events]
        }


def assign_persona(
    user_id: str,
    store: FinancialStore,
    window_days: int = None,
    as_of=None,
    settings: Settings = None,
    assigned_at: datetime = None
) -> AssignmentOutcome:
    """
    Classify a user and record the assignment.

    Args:
        user_id: User ID to assign a persona for
        store: Store used for reads and the single insert
        window_days: Trailing window (defaults to configured 90)
        as_of: End of the signal window (defaults to today)
        settings: Threshold overrides
        assigned_at: Timestamp for the record (defaults to now)

    Returns:
        AssignmentOutcome; no record is written when the user is unclassified
    """
    settings = settings or default_settings
    previous = get_current_persona(user_id, store)

    signals = extract_signals(user_id, store, window_days=window_days, as_of=as_of, settings=settings)
    result = classify(signals, settings)
    outcome = AssignmentOutcome(user_id=user_id, result=result, signals=signals)

    if not result.is_classified:
        outcome.events.append(PersonaEvent(UNCLASSIFIED, user_id))
        logger.info("No persona matched", extra={'user_id': user_id})
        return outcome

    record = build_persona_record(user_id, result, signals, assigned_at)
    outcome.record = save_persona_history(record, store)

    outcome.events.append(PersonaEvent(PERSONA_ASSIGNED, user_id, record.persona_type))
    if previous is not None and previous.persona_type != record.persona_type:
        outcome.events.append(
            PersonaEvent(PERSONA_CHANGED, user_id, record.persona_type, previous.persona_type)
        )

    logger.info(
        "Persona assigned",
        extra={
            'user_id': user_id,
            'persona': record.persona_type,
            'confidence': record.confidence,
            'secondary': record.secondary_personas,
        }
    )
    return outcome
