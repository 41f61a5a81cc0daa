"""Loan operations: validation, orchestration and event publishing.

``LoanService`` is the entry point the external interface calls into.
It validates raw input, checks customers against the directory, and
delegates all state changes to the :class:`LoanLedger`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from bank_lending.config import EventConfig, LendingConfig
from bank_lending.directory import CustomerDirectory, default_customers
from bank_lending.exceptions import MissingFieldError, NotFoundError, SinkError, ValidationError
from bank_lending.generators import CustomerGenerator
from bank_lending.ids import EVENT_PREFIX, IdGenerator, RandomIdGenerator
from bank_lending.ledger import LedgerView, LoanLedger
from bank_lending.models import Customer, Event, Loan, LoanStatus, PaymentType
from bank_lending.sinks import EventSink, create_sink
from bank_lending.sinks.serialization import to_dict
from bank_lending.store import LendingDataStore

logger = logging.getLogger(__name__)

EVENT_SOURCE = "bank-lending"
LOAN_FIELDS = ["customer_id", "loan_amount", "loan_period_years", "interest_rate_yearly"]


@dataclass(frozen=True)
class LoanCreated:
    loan_id: str
    customer_id: str
    total_amount_payable: Decimal
    monthly_emi: Decimal


@dataclass(frozen=True)
class PaymentRecorded:
    payment_id: str
    loan_id: str
    remaining_balance: Decimal
    installments_left: int


@dataclass(frozen=True)
class LoanSummary:
    """One row of a customer overview."""

    loan_id: str
    principal: Decimal
    total_amount: Decimal
    total_interest: Decimal
    emi_amount: Decimal
    amount_paid: Decimal
    emis_left: int
    status: LoanStatus

    @classmethod
    def from_loan(cls, loan: Loan) -> "LoanSummary":
        return cls(
            loan_id=loan.loan_id,
            principal=loan.principal,
            total_amount=loan.total_amount,
            total_interest=loan.total_interest,
            emi_amount=loan.monthly_installment,
            amount_paid=loan.amount_paid,
            emis_left=loan.installments_left,
            status=loan.status,
        )


@dataclass(frozen=True)
class CustomerOverview:
    customer_id: str
    total_loans: int
    loans: tuple[LoanSummary, ...]


class LoanService:
    """Create loans, record payments, and report ledgers and overviews.

    Parameters
    ----------
    directory : CustomerDirectory
        Known customers.
    ledger : LoanLedger
        Owner of loan state.
    event_sink : EventSink | None
        Where ``loan.created`` / ``payment.recorded`` events go; nothing is
        published when omitted.
    events : EventConfig | None
        Topic naming for published events.
    id_generator : IdGenerator | None
        Source of event ids.
    """

    def __init__(
        self,
        directory: CustomerDirectory,
        ledger: LoanLedger,
        event_sink: EventSink | None = None,
        events: EventConfig | None = None,
        id_generator: IdGenerator | None = None,
    ) -> None:
        self.directory = directory
        self.ledger = ledger
        self.event_sink = event_sink
        self.events = events or EventConfig()
        self._ids = id_generator or RandomIdGenerator()

    def create_loan(
        self,
        customer_id: Any,
        principal: Any,
        term_years: Any,
        rate: Any,
    ) -> LoanCreated:
        """Issue a loan to a known customer.

        Raises
        ------
        MissingFieldError
            Any of the four inputs is absent.
        ValidationError
            An input is not numeric or out of range.
        NotFoundError
            The customer is unknown.
        """
        supplied = dict(zip(LOAN_FIELDS, (customer_id, principal, term_years, rate)))
        missing = [name for name, value in supplied.items() if _is_missing(value)]
        if missing:
            raise MissingFieldError(missing, required=LOAN_FIELDS)

        amount = _parse_decimal("loan_amount", principal)
        years = _parse_whole_number("loan_period_years", term_years)
        yearly_rate = _parse_decimal("interest_rate_yearly", rate)

        customer_id = str(customer_id)
        if not self.directory.exists(customer_id):
            raise NotFoundError(f"Customer {customer_id} not found")

        if amount <= 0 or years <= 0 or yearly_rate < 0:
            raise ValidationError("Invalid loan parameters")

        loan = self.ledger.issue(customer_id, amount, years, yearly_rate)
        self._publish(
            self.events.loans_topic,
            "loan.created",
            loan.loan_id,
            to_dict(loan, exclude=("payments",)),
        )

        return LoanCreated(
            loan_id=loan.loan_id,
            customer_id=loan.customer_id,
            total_amount_payable=loan.total_amount,
            monthly_emi=loan.monthly_installment,
        )

    def record_payment(
        self,
        loan_id: str,
        amount: Any,
        payment_type: Any = None,
    ) -> PaymentRecorded:
        """Apply an EMI (default) or lump-sum payment to a loan."""
        if _is_missing(amount):
            raise ValidationError("Invalid payment amount")
        value = _parse_decimal("amount", amount)
        if value <= 0:
            raise ValidationError("Invalid payment amount")

        kind = _parse_payment_type(payment_type)
        receipt = self.ledger.apply_payment(loan_id, value, kind)

        self._publish(
            self.events.payments_topic,
            "payment.recorded",
            loan_id,
            {
                **to_dict(receipt.payment),
                "remaining_balance": str(receipt.remaining_balance),
                "installments_left": receipt.installments_left,
                "status": receipt.status.value,
            },
        )

        return PaymentRecorded(
            payment_id=receipt.payment.payment_id,
            loan_id=loan_id,
            remaining_balance=receipt.remaining_balance,
            installments_left=receipt.installments_left,
        )

    def get_ledger(self, loan_id: str) -> LedgerView:
        return self.ledger.get_ledger(loan_id)

    def get_overview(self, customer_id: str) -> CustomerOverview:
        """Summaries of every loan a customer holds, whatever its status."""
        if not self.directory.exists(customer_id):
            raise NotFoundError(f"Customer {customer_id} not found")

        loans = self.ledger.customer_loans(customer_id)
        if not loans:
            raise NotFoundError(f"No loans found for customer {customer_id}")

        return CustomerOverview(
            customer_id=customer_id,
            total_loans=len(loans),
            loans=tuple(LoanSummary.from_loan(loan) for loan in loans),
        )

    def list_customers(self) -> list[Customer]:
        return self.directory.list()

    def list_loans(self) -> list[Loan]:
        return self.ledger.list_loans()

    def _publish(self, topic: str, event_type: str, subject: str, data: dict) -> None:
        """Send an event for a committed change; sink failures are only logged."""
        if self.event_sink is None:
            return

        event = Event(
            event_id=self._ids.new_id(EVENT_PREFIX),
            event_type=event_type,
            event_time=datetime.now(),
            source=EVENT_SOURCE,
            subject=subject,
            data=data,
        )
        try:
            self.event_sink.send(topic, event)
        except SinkError:
            logger.warning(
                "Could not publish %s for %s",
                event_type,
                subject,
                exc_info=True,
                extra={"event_type": event_type, "loan_id": subject},
            )


def create_service(
    config: LendingConfig | None = None,
    store: LendingDataStore | None = None,
    id_generator: IdGenerator | None = None,
    clock: Callable[[], datetime] | None = None,
    event_sink: EventSink | None = None,
) -> LoanService:
    """Wire a service from configuration.

    The directory is seeded with the default customers plus
    ``config.num_customers`` Faker-generated ones.
    """
    config = config or LendingConfig()
    store = store if store is not None else LendingDataStore()

    customers = default_customers()
    if config.num_customers:
        generator = CustomerGenerator(seed=config.seed, start=len(customers) + 1)
        customers.extend(generator.generate_batch(config.num_customers))

    directory = CustomerDirectory(store, customers)
    ledger = LoanLedger(
        store,
        id_generator=id_generator,
        clock=clock,
        max_id_attempts=config.id_max_attempts,
    )
    if event_sink is None:
        event_sink = create_sink(config)

    logger.info(
        "Lending service ready: %d customers, event sink=%s",
        len(directory),
        config.events.sink,
    )
    return LoanService(
        directory,
        ledger,
        event_sink=event_sink,
        events=config.events,
        id_generator=id_generator,
    )


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_decimal(name: str, value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise ValidationError(f"{name} must be numeric")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"{name} must be numeric") from exc
    if not result.is_finite():
        raise ValidationError(f"{name} must be a finite number")
    return result


def _parse_whole_number(name: str, value: Any) -> int:
    result = _parse_decimal(name, value)
    if result != result.to_integral_value():
        raise ValidationError(f"{name} must be a whole number")
    return int(result)


def _parse_payment_type(value: Any) -> PaymentType:
    if value is None:
        return PaymentType.EMI
    try:
        return PaymentType(value)
    except ValueError as exc:
        raise ValidationError("Invalid payment type. Must be EMI or LUMP_SUM") from exc

