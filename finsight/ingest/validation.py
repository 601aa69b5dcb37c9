"""
Boundary validation.

Checks applied before records or parameters reach the engine. Each check
raises InvalidInputError naming the offending field.
"""

import math
from typing import Iterable, Optional

from finsight.exceptions import InvalidInputError


def validate_window_days(window_days) -> int:
    """Window must be a positive whole number of days."""
    if isinstance(window_days, bool) or not isinstance(window_days, int):
        raise InvalidInputError('window_days', f"expected an integer, got {window_days!r}")
    if window_days <= 0:
        raise InvalidInputError('window_days', f"must be positive, got {window_days}")
    return window_days


def validate_months(months) -> int:
    """Timeline lookback must be at least one month."""
    if isinstance(months, bool) or not isinstance(months, int):
        raise InvalidInputError('months', f"expected an integer, got {months!r}")
    if months < 1:
        raise InvalidInputError('months', f"must be at least 1, got {months}")
    return months


def validate_non_negative(field: str, value: Optional[float], allow_none: bool = False) -> Optional[float]:
    """Reject negative, NaN or infinite amounts."""
    if value is None:
        if allow_none:
            return None
        raise InvalidInputError(field, "is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(field, f"expected a number, got {value!r}")
    if math.isnan(value) or math.isinf(value):
        raise InvalidInputError(field, f"must be finite, got {value}")
    if value < 0:
        raise InvalidInputError(field, f"must not be negative, got {value}")
    return value


def validate_transactions(transactions: Iterable) -> None:
    """Every transaction needs a date and a finite amount."""
    for txn in transactions:
        if txn.date is None:
            raise InvalidInputError('transaction.date', f"missing on {txn.transaction_id}")
        if txn.amount is None or math.isnan(txn.amount) or math.isinf(txn.amount):
            raise InvalidInputError('transaction.amount', f"malformed on {txn.transaction_id}: {txn.amount!r}")


def validate_accounts(accounts: Iterable) -> None:
    """Balances must be present; credit limits must not be negative."""
    for account in accounts:
        if account.balance_current is None:
            raise InvalidInputError('account.balance_current', f"missing on {account.account_id}")
        validate_non_negative('account.credit_limit', account.credit_limit, allow_none=True)


def validate_liabilities(liabilities: Iterable) -> None:
    """APRs, minimums and statement balances must not be negative."""
    for liability in liabilities:
        validate_non_negative('liability.apr_percentage', liability.apr_percentage, allow_none=True)
        validate_non_negative('liability.interest_rate', liability.interest_rate, allow_none=True)
        validate_non_negative('liability.minimum_payment_amount', liability.minimum_payment_amount, allow_none=True)
        validate_non_negative('liability.last_statement_balance', liability.last_statement_balance, allow_none=True)
