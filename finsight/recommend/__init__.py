"""
Recommendation Module

Turns a persona and its signals into a prioritized list of action items.

Modules:
    - templates: ActionItem, persona anchors and the generic list
    - engine: synthesize_recommendations
"""

from .engine import synthesize_recommendations
from .templates import ActionItem

__all__ = ['synthesize_recommendations', 'ActionItem']
