"""
Persona Module

Classifies signal bundles into one of five personas and tracks assignments
over time.

Modules:
    - criteria: One predicate+confidence function per persona
    - priority: Primary/secondary resolution in fixed priority order
    - assignment: Extract, classify and persist one assignment
    - history: Persona record helpers
    - timeline: Month-by-month persona history and narrative
"""

from .assignment import assign_persona, AssignmentOutcome
from .history import get_current_persona, get_persona_history
from .priority import classify, ClassificationResult, PERSONA_NAMES
from .timeline import build_persona_timeline, PersonaTimeline

__all__ = [
    'assign_persona',
    'AssignmentOutcome',
    'classify',
    'ClassificationResult',
    'PERSONA_NAMES',
    'get_current_persona',
    'get_persona_history',
    'build_persona_timeline',
    'PersonaTimeline'
]
