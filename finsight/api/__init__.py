"""
API Module

FastAPI routes exposing signals, persona classification, persona timelines,
debt payoff plans and recommendations.
"""
