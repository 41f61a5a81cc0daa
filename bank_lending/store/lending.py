"""Lending data store with referential integrity."""

import threading
from dataclasses import dataclass, field

from bank_lending.exceptions import IdentifierCollisionError, ReferentialIntegrityError
from bank_lending.models import Customer, Loan, Payment


@dataclass
class LendingDataStore:
    """In-memory store for customers, loans and payments.

    A loan owns its ordered ``payments`` list; ``payments`` here is an id
    index over the same objects. The store is the single owner of mutable
    lending state and is injected into the ledger and directory.
    """

    # Primary entities
    customers: dict[str, Customer] = field(default_factory=dict)
    loans: dict[str, Loan] = field(default_factory=dict)
    payments: dict[str, Payment] = field(default_factory=dict)

    # Relationship indexes
    _customer_loans: dict[str, list[str]] = field(default_factory=dict)

    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def add_customer(self, customer: Customer) -> None:
        """Add a customer to the store."""
        with self.lock:
            if customer.customer_id in self.customers:
                raise IdentifierCollisionError(f"Customer {customer.customer_id} already exists")
            self.customers[customer.customer_id] = customer
            self._customer_loans[customer.customer_id] = []

    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the store."""
        with self.lock:
            if loan.customer_id not in self.customers:
                raise ReferentialIntegrityError(f"Customer {loan.customer_id} not found")
            if loan.loan_id in self.loans:
                raise IdentifierCollisionError(f"Loan {loan.loan_id} already exists")

            self.loans[loan.loan_id] = loan
            self._customer_loans[loan.customer_id].append(loan.loan_id)

    def add_payment(self, payment: Payment) -> None:
        """Append a payment to its loan's history."""
        with self.lock:
            loan = self.loans.get(payment.loan_id)
            if loan is None:
                raise ReferentialIntegrityError(f"Loan {payment.loan_id} not found")
            if payment.payment_id in self.payments:
                raise IdentifierCollisionError(f"Payment {payment.payment_id} already exists")

            self.payments[payment.payment_id] = payment
            loan.payments.append(payment)

    # Query methods
    def get_customer(self, customer_id: str) -> Customer | None:
        return self.customers.get(customer_id)

    def get_loan(self, loan_id: str) -> Loan | None:
        return self.loans.get(loan_id)

    def has_loan(self, loan_id: str) -> bool:
        return loan_id in self.loans

    def has_payment(self, payment_id: str) -> bool:
        return payment_id in self.payments

    def get_customer_loans(self, customer_id: str) -> list[Loan]:
        """Get all loans for a customer in issuance order."""
        loan_ids = self._customer_loans.get(customer_id, [])
        return [self.loans[lid] for lid in loan_ids]

