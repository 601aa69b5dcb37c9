"""
Custom Exceptions for FinSight

Core functions raise these; the API layer maps them to HTTP responses.
"""


class FinSightError(Exception):
    """Base exception for all FinSight errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(FinSightError):
    """Malformed input rejected before it reaches the engine."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class UnclassifiableError(FinSightError):
    """No persona rule-set matched the user's signals."""

    def __init__(self, user_id: str = None):
        self.user_id = user_id
        target = f"user {user_id}" if user_id else "signal bundle"
        super().__init__(f"No persona matched for {target}")


class SimulationDivergentError(FinSightError):
    """Payoff simulation cannot bring balances to zero."""

    def __init__(self, strategy: str, reason: str):
        self.strategy = strategy
        self.reason = reason
        super().__init__(f"{strategy} plan does not converge: {reason}")


class UserNotFoundError(FinSightError):
    """User not found."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class NoDebtsError(FinSightError):
    """User has no open debts to plan a payoff for."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} has no open debts with a balance and APR")
