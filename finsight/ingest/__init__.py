"""
Ingest Module

Relational storage for accounts, transactions, liabilities and persona
records, plus boundary validation of incoming records.

Modules:
    - schema: SQLAlchemy models
    - database: Engine/session helpers and schema initialization
    - store: FinancialStore read/write interface used by the engine
    - validation: Input checks raising InvalidInputError
"""

from .store import FinancialStore

__all__ = ['FinancialStore']
