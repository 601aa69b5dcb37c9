"""
Database schema definitions for FinSight.
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime,
    ForeignKey, Date, JSON
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# Account types
CREDIT_ACCOUNT_TYPES = ('credit', 'credit_card')
SAVINGS_ACCOUNT_TYPES = ('savings', 'money_market', 'hsa')
CHECKING_ACCOUNT_TYPES = ('checking',)
LOAN_ACCOUNT_TYPES = ('loan', 'student_loan', 'mortgage')


class User(Base):
    """User table."""
    __tablename__ = 'users'

    user_id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")
    persona_records = relationship("PersonaRecord", back_populates="user", cascade="all, delete-orphan")


class Account(Base):
    """Account table - checking, savings, credit cards, loans."""
    __tablename__ = 'accounts'

    account_id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey('users.user_id'), nullable=False)
    type = Column(String, nullable=False)  # credit, savings, checking, loan, money_market, hsa
    subtype = Column(String, nullable=True)
    name = Column(String, nullable=True)  # Display label, e.g. "Visa Rewards"
    balance_available = Column(Float, nullable=True)
    balance_current = Column(Float, nullable=False)
    credit_limit = Column(Float, nullable=True)  # For credit cards
    iso_currency_code = Column(String, default='USD', nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")
    liabilities = relationship("Liability", back_populates="account", cascade="all, delete-orphan")


class Transaction(Base):
    """Transaction table - append-only."""
    __tablename__ = 'transactions'

    transaction_id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey('accounts.account_id'), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Float, nullable=False)  # Negative = outflow, Positive = inflow
    merchant_name = Column(String, nullable=True)
    payment_channel = Column(String, nullable=True)  # online, in store, other
    category_primary = Column(String, nullable=True)  # e.g. INCOME, FOOD_AND_DRINK
    category_detailed = Column(String, nullable=True)
    pending = Column(Boolean, default=False, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")


class Liability(Base):
    """Liability table - one per credit card or loan account."""
    __tablename__ = 'liabilities'

    liability_id = Column(String, primary_key=True)
    account_id = Column(String, ForeignKey('accounts.account_id'), nullable=False)
    type = Column(String, nullable=False)  # credit_card, student_loan, mortgage
    apr_percentage = Column(Float, nullable=True)
    apr_type = Column(String, nullable=True)  # fixed, variable
    minimum_payment_amount = Column(Float, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    is_overdue = Column(Boolean, default=False, nullable=False)
    next_payment_due_date = Column(Date, nullable=True)
    last_statement_balance = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=True)  # For loans

    # Relationships
    account = relationship("Account", back_populates="liabilities")


class PersonaRecord(Base):
    """Persona assignments - insert-only, the latest assigned_at is current."""
    __tablename__ = 'personas'

    persona_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey('users.user_id'), nullable=False)
    persona_type = Column(String, nullable=False)
    window_days = Column(Integer, nullable=False)
    confidence = Column(Float, nullable=False)
    criteria_met = Column(JSON, nullable=False, default=list)
    secondary_personas = Column(JSON, nullable=False, default=list)
    signals = Column(JSON, nullable=True)  # Signal bundle used for the assignment
    assigned_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="persona_records")
