"""
Financial Store

Read/write access to accounts, transactions, liabilities and persona records.
Core functions receive a store explicitly instead of opening their own
connection. Every list query returns an empty list when there is no data.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from finsight.ingest.schema import User, Account, Transaction, Liability, PersonaRecord

logger = logging.getLogger(__name__)


class FinancialStore:
    """Store backed by a SQLAlchemy session (one logical transaction per request)."""

    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def list_accounts(self, user_id: str) -> List[Account]:
        return (
            self.session.query(Account)
            .filter(Account.user_id == user_id)
            .order_by(Account.account_id)
            .all()
        )

    def list_transactions(self, user_id: str, since: Optional[date] = None) -> List[Transaction]:
        """Transactions on any of the user's accounts dated on or after `since`."""
        query = (
            self.session.query(Transaction)
            .join(Account, Transaction.account_id == Account.account_id)
            .filter(Account.user_id == user_id)
        )
        if since is not None:
            query = query.filter(Transaction.date >= since)
        return query.order_by(Transaction.date, Transaction.transaction_id).all()

    def get_liability(self, account_id: str) -> Optional[Liability]:
        return (
            self.session.query(Liability)
            .filter(Liability.account_id == account_id)
            .order_by(Liability.liability_id)
            .first()
        )

    def list_liabilities(self, user_id: str) -> List[Liability]:
        """Liabilities for all of the user's accounts."""
        liabilities = []
        for account in self.list_accounts(user_id):
            liability = self.get_liability(account.account_id)
            if liability is not None:
                liabilities.append(liability)
        return liabilities

    def list_persona_history(self, user_id: str) -> List[PersonaRecord]:
        """All persona records for a user, oldest first."""
        return (
            self.session.query(PersonaRecord)
            .filter(PersonaRecord.user_id == user_id)
            .order_by(PersonaRecord.assigned_at, PersonaRecord.persona_id)
            .all()
        )

    def insert_persona_assignment(self, record: PersonaRecord) -> PersonaRecord:
        """Append a persona record in its own commit."""
        try:
            self.session.add(record)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.exception("Persona insert failed", extra={'user_id': record.user_id})
            raise
        self.session.refresh(record)
        return record
