"""
Persona History Tracking

Functions to build, save and read historical persona assignments.
Records are insert-only; the record with the latest assigned_at is current.
"""

from datetime import datetime
from typing import List, Optional

from finsight.features.signals import SignalBundle
from finsight.ingest.schema import PersonaRecord
from finsight.ingest.store import FinancialStore
from finsight.personas.priority import ClassificationResult


def build_persona_record(
    user_id: str,
    result: ClassificationResult,
    signals: SignalBundle,
    assigned_at: datetime = None
) -> PersonaRecord:
    """Turn a classified result into an unsaved PersonaRecord."""
    primary = result.require_primary()
    return PersonaRecord(
        user_id=user_id,
        persona_type=primary.persona_type,
        window_days=signals.window_days,
        confidence=primary.confidence,
        criteria_met=list(primary.criteria_met),
        secondary_personas=result.secondary_types,
        signals=signals.to_dict(),
        assigned_at=assigned_at or datetime.utcnow()
    )


def save_persona_history(record: PersonaRecord, store: FinancialStore) -> PersonaRecord:
    """Append a record to the user's persona history."""
    return store.insert_persona_assignment(record)


def get_persona_history(user_id: str, store: FinancialStore) -> List[PersonaRecord]:
    """Persona records for a user, oldest first."""
    return store.list_persona_history(user_id)


def get_current_persona(user_id: str, store: FinancialStore) -> Optional[PersonaRecord]:
    """
    Get the current persona assignment for a user.

    Returns:
        Record with the latest assigned_at, or None if no history exists
    """
    history = store.list_persona_history(user_id)
    return history[-1] if history else None


def get_persona_changes(user_id: str, store: FinancialStore) -> List[dict]:
    """
    Get persona transitions over time.

    Returns:
        List of dicts with from_persona, to_persona and changed_at, oldest first
    """
    changes = []
    prev_persona = None

    for record in store.list_persona_history(user_id):
        if prev_persona is not None and record.persona_type != prev_persona:
            changes.append({
                'from_persona': prev_persona,
                'to_persona': record.persona_type,
                'changed_at': record.assigned_at
            })
        prev_persona = record.persona_type

    return changes
