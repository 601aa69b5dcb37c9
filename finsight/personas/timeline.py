"""
Persona Timeline

Rebuilds a month-by-month persona history from stored assignments. Each
month shows the persona of the latest assignment made on or before the end
of that month. Months before the first assignment are left out.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from finsight.config import settings as default_settings
from finsight.features.window_utils import month_end, recent_months
from finsight.ingest.store import FinancialStore
from finsight.ingest.validation import validate_months
from finsight.personas.criteria import (
    HIGH_UTILIZATION, VARIABLE_INCOME, SUBSCRIPTION_HEAVY, SAVINGS_BUILDER
)
from finsight.personas.priority import PERSONA_NAMES


# (from, to) transitions worth celebrating
POSITIVE_TRANSITIONS = {
    (HIGH_UTILIZATION, SAVINGS_BUILDER),
    (VARIABLE_INCOME, SAVINGS_BUILDER),
    (SUBSCRIPTION_HEAVY, SAVINGS_BUILDER),
    (HIGH_UTILIZATION, VARIABLE_INCOME),
}


@dataclass
class TimelineEntry:
    year: int
    month: int
    persona_type: str

    @property
    def label(self) -> str:
        """Short month label, e.g. 'Mar 2024'."""
        return datetime(self.year, self.month, 1).strftime('%b %Y')

    def to_dict(self) -> dict:
        return {
            'year': self.year,
            'month': self.month,
            'label': self.label,
            'persona_type': self.persona_type,
            'persona_name': PERSONA_NAMES.get(self.persona_type, self.persona_type)
        }


@dataclass
class PersonaTimeline:
    user_id: str
    entries: List[TimelineEntry] = field(default_factory=list)
    narrative: str = ''

    def to_dict(self) -> dict:
        return {
            'user_id': self.user_id,
            'entries': [e.to_dict() for e in self.entries],
            'narrative': self.narrative
        }


def build_narrative(entries: List[TimelineEntry]) -> str:
    """Summarize the journey by comparing the first and last entries."""
    if not entries:
        return "Your financial journey is just beginning!"

    first, last = entries[0], entries[-1]
    first_name = PERSONA_NAMES.get(first.persona_type, first.persona_type)
    last_name = PERSONA_NAMES.get(last.persona_type, last.persona_type)

    if first.persona_type == last.persona_type:
        return f"You've maintained your {first_name} persona since {first.label}."

    if (first.persona_type, last.persona_type) in POSITIVE_TRANSITIONS:
        return (
            f"You started as a {first_name} in {first.label} and you've evolved "
            f"into a {last_name}! That's real progress."
        )

    return (
        f"Your financial persona has evolved from {first_name} to {last_name} "
        f"over the past {len(entries)} months."
    )


def build_persona_timeline(
    user_id: str,
    store: FinancialStore,
    months: int = None,
    as_of=None
) -> PersonaTimeline:
    """
    Build the persona timeline for the most recent calendar months.

    Args:
        user_id: User ID
        store: Store to read persona history from
        months: Number of calendar months, ending with as_of's month (default 12)
        as_of: Reference date (defaults to today)

    Returns:
        PersonaTimeline with entries oldest first and a narrative summary
    """
    if months is None:
        months = default_settings.default_timeline_months
    validate_months(months)

    history = store.list_persona_history(user_id)

    entries = []
    index = 0
    current = None
    for year, month in recent_months(months, as_of):
        cutoff = month_end(year, month)
        while index < len(history) and history[index].assigned_at <= cutoff:
            current = history[index]
            index += 1
        if current is not None:
            entries.append(TimelineEntry(year, month, current.persona_type))

    return PersonaTimeline(user_id=user_id, entries=entries, narrative=build_narrative(entries))
