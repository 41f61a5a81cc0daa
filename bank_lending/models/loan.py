"""Loan and payment models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from bank_lending.models.enums import LoanStatus, PaymentType


@dataclass(frozen=True)
class Payment:
    """Repayment recorded against a loan."""

    payment_id: str
    loan_id: str
    amount: Decimal
    payment_type: PaymentType
    paid_at: datetime


@dataclass
class Loan:
    """Simple-interest loan contract.

    ``principal``, ``interest_rate``, ``term_years``, ``total_interest``,
    ``total_amount`` and ``monthly_installment`` are fixed at issuance.
    Only payment application changes ``amount_paid``, ``balance``,
    ``installments_left``, ``status`` and ``payments``.
    """

    loan_id: str
    customer_id: str
    principal: Decimal
    interest_rate: Decimal  # Yearly percent (e.g., 10 for 10%)
    term_years: int
    total_interest: Decimal
    total_amount: Decimal
    monthly_installment: Decimal
    amount_paid: Decimal
    balance: Decimal
    installments_left: int
    status: LoanStatus
    created_at: datetime
    payments: list[Payment] = field(default_factory=list)
