"""Domain models for bank lending."""

from bank_lending.models.base import Event
from bank_lending.models.customer import Customer
from bank_lending.models.enums import LoanStatus, PaymentType
from bank_lending.models.loan import Loan, Payment

__all__ = [
    "Customer",
    "Event",
    "Loan",
    "LoanStatus",
    "Payment",
    "PaymentType",
]
