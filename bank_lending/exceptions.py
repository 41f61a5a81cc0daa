"""Custom exception hierarchy for bank-lending."""

from decimal import Decimal


class LendingError(Exception):
    """Base exception for all bank-lending errors."""


class ValidationError(LendingError):
    """Raised when input is missing, malformed, or out of range."""


class MissingFieldError(ValidationError):
    """Raised when required request fields are absent."""

    def __init__(self, fields: list[str], required: list[str] | None = None) -> None:
        self.fields = list(fields)
        self.required = list(required) if required is not None else list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class NotFoundError(LendingError):
    """Raised when a referenced customer or loan does not exist."""


class ReferentialIntegrityError(NotFoundError):
    """Raised when a foreign key reference is violated."""


class InvalidStateError(LendingError):
    """Raised when a loan is in an invalid state for the operation."""


class OverpaymentError(LendingError):
    """Raised when a payment exceeds the outstanding balance."""

    def __init__(self, message: str, remaining_balance: Decimal) -> None:
        self.remaining_balance = remaining_balance
        super().__init__(message)


class IdentifierCollisionError(LendingError):
    """Raised when no unique identifier could be generated."""


class ConfigurationError(LendingError):
    """Raised when configuration is invalid or missing."""


class SinkError(LendingError):
    """Raised when a sink operation fails."""
