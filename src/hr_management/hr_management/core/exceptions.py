from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations.

    ``code`` is the stable identifier exposed to API callers.
    """

    code = "domain_error"

    def details(self) -> dict:
        return {}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Raised when a referenced employee, department or record does not exist."""

    code = "not_found"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"


class InvalidStateError(DomainError):
    """Raised when a transition is not legal from the current status."""

    code = "invalid_state"


class InsufficientBalanceError(DomainError):
    code = "insufficient_balance"

    def __init__(self, *, balance: int, requested: int):
        super().__init__(f"Insufficient leave balance: {balance} day(s) left, {requested} requested")
        self.balance = balance
        self.requested = requested

    def details(self) -> dict:
        return {"balance": self.balance, "requested": self.requested}


class DependencyFailure(DomainError):
    """Raised by e-mail, event or calendar adapters when the remote call fails."""

    code = "dependency_failure"
