"""
Feature Engineering Module

Behavioral signal detection over a trailing window (90 days by default,
180 days for trend signals).

Modules:
    - signals: Main orchestrator producing the SignalBundle
    - credit: Utilization, interest, minimum-payment and overdue analysis
    - savings: Savings growth, emergency fund and cash flow buffer
    - income: Pay gap and payment frequency analysis
    - subscriptions: Recurring merchant detection
    - spending: Spend classification, discretionary share and savings rate
    - analysis: Category breakdown, monthly trend, top merchants and unusual purchases
    - window_utils: Date range and calendar-month utilities
"""

from .analysis import get_spending_analysis, SpendingAnalysis
from .signals import extract_signals, SignalBundle

__all__ = ['extract_signals', 'SignalBundle', 'get_spending_analysis', 'SpendingAnalysis']
