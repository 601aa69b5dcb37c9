"""
FinSight

Behavioral signal extraction, persona classification, persona timelines and
debt payoff planning over a user's account and transaction history.
"""

__version__ = "1.0.0"
