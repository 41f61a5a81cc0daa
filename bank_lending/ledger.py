"""Loan and payment state transitions.

The ledger is the only component that mutates loans. A loan moves from
``ACTIVE`` to ``PAID_OFF`` exactly once, when its balance reaches zero;
paid-off loans accept no further payments.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from bank_lending.calculator import CENTS, MONTHS_PER_YEAR, compute_schedule, to_money
from bank_lending.exceptions import (
    IdentifierCollisionError,
    InvalidStateError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from bank_lending.ids import LOAN_PREFIX, PAYMENT_PREFIX, IdGenerator, RandomIdGenerator
from bank_lending.models import Loan, LoanStatus, Payment, PaymentType
from bank_lending.store import LendingDataStore

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HALF_CENT = CENTS / 2


@dataclass(frozen=True)
class PaymentReceipt:
    """Outcome of a successfully applied payment."""

    payment: Payment
    remaining_balance: Decimal
    installments_left: int
    status: LoanStatus


@dataclass(frozen=True)
class LedgerView:
    """Point-in-time copy of a loan and its ordered payment history."""

    loan: Loan
    payments: tuple[Payment, ...]


class LoanLedger:
    """Owns loan issuance and payment application.

    Parameters
    ----------
    store : LendingDataStore
        Backing store.
    id_generator : IdGenerator | None
        Source of loan and payment ids (random ``PREFIX_XXXXXXXX`` by default).
    clock : Callable[[], datetime] | None
        Timestamp source for ``created_at`` / ``paid_at``.
    max_id_attempts : int
        How many times a colliding id is regenerated before giving up.
    """

    def __init__(
        self,
        store: LendingDataStore,
        id_generator: IdGenerator | None = None,
        clock: Callable[[], datetime] | None = None,
        max_id_attempts: int = 5,
    ) -> None:
        self._store = store
        self._ids = id_generator or RandomIdGenerator()
        self._clock = clock or datetime.now
        self._max_id_attempts = max_id_attempts
        self._loan_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def issue(
        self,
        customer_id: str,
        principal: Decimal,
        term_years: int,
        rate: Decimal,
    ) -> Loan:
        """Create and store a new ACTIVE loan.

        Returns
        -------
        Loan
            Snapshot of the stored loan.
        """
        principal = to_money(principal)
        schedule = compute_schedule(principal, term_years, rate).rounded()
        if schedule.monthly_installment <= 0:
            raise ValidationError("Loan amount is too small for the selected period")

        with self._store.lock:
            loan = Loan(
                loan_id=self._unique_id(LOAN_PREFIX, self._store.has_loan),
                customer_id=customer_id,
                principal=principal,
                interest_rate=Decimal(rate),
                term_years=term_years,
                total_interest=schedule.total_interest,
                total_amount=schedule.total_amount,
                monthly_installment=schedule.monthly_installment,
                amount_paid=ZERO,
                balance=schedule.total_amount,
                installments_left=term_years * MONTHS_PER_YEAR,
                status=LoanStatus.ACTIVE,
                created_at=self._clock(),
            )
            self._store.add_loan(loan)

        logger.info(
            "Issued loan: principal=%s total=%s emi=%s",
            loan.principal,
            loan.total_amount,
            loan.monthly_installment,
            extra={"customer_id": customer_id, "loan_id": loan.loan_id},
        )
        return _snapshot(loan)

    def apply_payment(
        self,
        loan_id: str,
        amount: Decimal,
        payment_type: PaymentType = PaymentType.EMI,
    ) -> PaymentReceipt:
        """Apply a repayment to an ACTIVE loan.

        The loan is only touched after every check has passed, so a rejected
        payment leaves it exactly as it was.

        Raises
        ------
        NotFoundError
            Unknown loan.
        InvalidStateError
            Loan is not ACTIVE.
        ValidationError
            ``amount`` is not positive.
        OverpaymentError
            ``amount`` exceeds the outstanding balance.
        """
        loan = self._get(loan_id)

        with self._lock_for(loan_id):
            if loan.status != LoanStatus.ACTIVE:
                raise InvalidStateError(f"Loan {loan_id} is not active")

            if amount <= 0:
                raise ValidationError("Invalid payment amount")
            # Anything half a cent over the balance rounds above it
            if amount >= loan.balance + HALF_CENT:
                raise OverpaymentError(
                    "Payment amount exceeds remaining balance",
                    remaining_balance=loan.balance,
                )
            amount = to_money(amount)
            if amount <= 0:
                raise ValidationError("Invalid payment amount")

            balance = max(ZERO, loan.balance - amount)
            if payment_type == PaymentType.LUMP_SUM:
                # Same EMI size, fewer installments
                installments_left = max(0, math.ceil(balance / loan.monthly_installment))
            else:
                installments_left = max(0, loan.installments_left - 1)

            status = LoanStatus.PAID_OFF if balance == 0 else LoanStatus.ACTIVE
            if status == LoanStatus.PAID_OFF:
                installments_left = 0

            payment = Payment(
                payment_id=self._unique_id(PAYMENT_PREFIX, self._store.has_payment),
                loan_id=loan_id,
                amount=amount,
                payment_type=PaymentType(payment_type),
                paid_at=self._clock(),
            )
            self._store.add_payment(payment)

            loan.amount_paid = loan.amount_paid + amount
            loan.balance = balance
            loan.installments_left = installments_left
            loan.status = status

        logger.info(
            "Recorded %s payment: amount=%s balance=%s installments_left=%d",
            payment.payment_type.value,
            amount,
            balance,
            installments_left,
            extra={"loan_id": loan_id, "payment_id": payment.payment_id},
        )
        if status == LoanStatus.PAID_OFF:
            logger.info("Loan paid off", extra={"loan_id": loan_id})

        return PaymentReceipt(
            payment=payment,
            remaining_balance=balance,
            installments_left=installments_left,
            status=status,
        )

    def get_ledger(self, loan_id: str) -> LedgerView:
        """Return a copy of the loan and its payments in recorded order."""
        loan = self._get(loan_id)
        with self._lock_for(loan_id):
            snapshot = _snapshot(loan)
        logger.debug("Ledger read: %d payments", len(snapshot.payments), extra={"loan_id": loan_id})
        return LedgerView(loan=snapshot, payments=tuple(snapshot.payments))

    def customer_loans(self, customer_id: str) -> list[Loan]:
        """Snapshots of a customer's loans in issuance order."""
        return [self._locked_snapshot(loan) for loan in self._store.get_customer_loans(customer_id)]

    def list_loans(self) -> list[Loan]:
        """Snapshots of every loan in issuance order."""
        return [self._locked_snapshot(loan) for loan in list(self._store.loans.values())]

    def _get(self, loan_id: str) -> Loan:
        loan = self._store.get_loan(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan {loan_id} not found")
        return loan

    def _locked_snapshot(self, loan: Loan) -> Loan:
        with self._lock_for(loan.loan_id):
            return _snapshot(loan)

    def _lock_for(self, loan_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._loan_locks.get(loan_id)
            if lock is None:
                lock = self._loan_locks[loan_id] = threading.Lock()
            return lock

    def _unique_id(self, prefix: str, taken: Callable[[str], bool]) -> str:
        for _ in range(self._max_id_attempts):
            candidate = self._ids.new_id(prefix)
            if not taken(candidate):
                return candidate
            logger.warning("Generated %s id %s already in use, retrying", prefix, candidate)
        raise IdentifierCollisionError(
            f"Could not generate a unique {prefix} id after {self._max_id_attempts} attempts"
        )


def _snapshot(loan: Loan) -> Loan:
    return replace(loan, payments=list(loan.payments))
