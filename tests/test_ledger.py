"""Tests for LoanLedger issuance and payment application."""

import threading
from datetime import datetime
from decimal import Decimal

import pytest

from bank_lending.exceptions import (
    IdentifierCollisionError,
    InvalidStateError,
    NotFoundError,
    OverpaymentError,
    ReferentialIntegrityError,
    ValidationError,
)
from bank_lending.ledger import LoanLedger
from bank_lending.models import LoanStatus, PaymentType
from bank_lending.store import LendingDataStore


@pytest.fixture
def reference_loan_id(ledger: LoanLedger) -> str:
    """120000 over 1 year at 10%: EMI 11000."""
    return ledger.issue("CUST001", Decimal("120000"), 1, Decimal("10")).loan_id


@pytest.fixture
def flat_loan_id(ledger: LoanLedger) -> str:
    """1200 over 1 year at 0%: EMI 100."""
    return ledger.issue("CUST002", Decimal("1200"), 1, Decimal("0")).loan_id


class TestIssue:
    """Tests for loan issuance."""

    def test_issue_reference_loan(self, ledger: LoanLedger, store: LendingDataStore) -> None:
        loan = ledger.issue("CUST001", Decimal("120000"), 1, Decimal("10"))

        assert loan.loan_id == "LOAN_0001"
        assert loan.customer_id == "CUST001"
        assert loan.principal == Decimal("120000.00")
        assert loan.interest_rate == Decimal("10")
        assert loan.term_years == 1
        assert loan.total_interest == Decimal("12000.00")
        assert loan.total_amount == Decimal("132000.00")
        assert loan.monthly_installment == Decimal("11000.00")
        assert loan.amount_paid == Decimal("0")
        assert loan.balance == Decimal("132000.00")
        assert loan.installments_left == 12
        assert loan.status == LoanStatus.ACTIVE
        assert loan.created_at == datetime(2024, 1, 1, 9, 0, 0)
        assert loan.payments == []
        assert "LOAN_0001" in store.loans

    def test_issue_stores_cents(self, ledger: LoanLedger) -> None:
        loan = ledger.issue("CUST001", Decimal("1000"), 3, Decimal("0"))

        assert loan.monthly_installment == Decimal("27.78")
        assert loan.total_amount == Decimal("1000.00")

    def test_issue_rounds_principal(self, ledger: LoanLedger) -> None:
        loan = ledger.issue("CUST001", Decimal("1000.005"), 1, Decimal("10"))

        assert loan.principal == Decimal("1000.01")
        assert loan.total_amount == loan.principal + loan.total_interest

    def test_issue_unknown_customer(self, ledger: LoanLedger) -> None:
        with pytest.raises(ReferentialIntegrityError, match="Customer CUST999 not found"):
            ledger.issue("CUST999", Decimal("1000"), 1, Decimal("5"))

    def test_issue_too_small_for_term(self, ledger: LoanLedger, store: LendingDataStore) -> None:
        with pytest.raises(ValidationError, match="too small"):
            ledger.issue("CUST001", Decimal("0.01"), 40, Decimal("0"))

        assert store.loans == {}

    def test_issue_returns_snapshot(self, ledger: LoanLedger, store: LendingDataStore) -> None:
        loan = ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))
        loan.balance = Decimal("1")

        assert store.loans[loan.loan_id].balance == Decimal("1050.00")

    def test_issue_regenerates_colliding_id(self, store: LendingDataStore, directory) -> None:
        class ScriptedIds:
            def __init__(self) -> None:
                self.values = iter(["LOAN_A", "LOAN_A", "LOAN_B"])

            def new_id(self, prefix: str) -> str:
                return next(self.values)

        ledger = LoanLedger(store, id_generator=ScriptedIds())
        first = ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))
        second = ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))

        assert first.loan_id == "LOAN_A"
        assert second.loan_id == "LOAN_B"

    def test_issue_gives_up_after_max_attempts(self, store: LendingDataStore, directory) -> None:
        class ConstantIds:
            calls = 0

            def new_id(self, prefix: str) -> str:
                ConstantIds.calls += 1
                return "LOAN_SAME"

        ledger = LoanLedger(store, id_generator=ConstantIds(), max_id_attempts=3)
        ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))

        with pytest.raises(IdentifierCollisionError):
            ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))

        assert ConstantIds.calls == 4
        assert len(store.loans) == 1


class TestApplyPayment:
    """Tests for payment application."""

    def test_emi_payment(self, ledger: LoanLedger, reference_loan_id: str) -> None:
        receipt = ledger.apply_payment(reference_loan_id, Decimal("11000"), PaymentType.EMI)

        assert receipt.payment.payment_id == "PAY_0001"
        assert receipt.payment.loan_id == reference_loan_id
        assert receipt.payment.amount == Decimal("11000.00")
        assert receipt.payment.payment_type == PaymentType.EMI
        assert receipt.remaining_balance == Decimal("121000.00")
        assert receipt.installments_left == 11
        assert receipt.status == LoanStatus.ACTIVE

        loan = ledger.get_ledger(reference_loan_id).loan
        assert loan.amount_paid == Decimal("11000.00")
        assert loan.balance == Decimal("121000.00")
        assert loan.installments_left == 11
        assert loan.status == LoanStatus.ACTIVE

    def test_default_type_is_emi(self, ledger: LoanLedger, reference_loan_id: str) -> None:
        receipt = ledger.apply_payment(reference_loan_id, Decimal("11000"))

        assert receipt.payment.payment_type == PaymentType.EMI
        assert receipt.installments_left == 11

    def test_lump_sum_recomputes_installments(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        ledger.apply_payment(flat_loan_id, Decimal("250"), PaymentType.EMI)
        assert ledger.get_ledger(flat_loan_id).loan.balance == Decimal("950.00")

        receipt = ledger.apply_payment(flat_loan_id, Decimal("200"), PaymentType.LUMP_SUM)

        assert receipt.remaining_balance == Decimal("750.00")
        assert receipt.installments_left == 8  # ceil(750 / 100)

        loan = ledger.get_ledger(flat_loan_id).loan
        assert loan.monthly_installment == Decimal("100.00")

    def test_lump_sum_exact_multiple(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        receipt = ledger.apply_payment(flat_loan_id, Decimal("500"), PaymentType.LUMP_SUM)

        assert receipt.installments_left == 7

    def test_lump_sum_can_increase_installments_left(
        self, ledger: LoanLedger, flat_loan_id: str
    ) -> None:
        # Eleven tiny EMIs leave 1 installment but most of the balance.
        for _ in range(11):
            ledger.apply_payment(flat_loan_id, Decimal("1"), PaymentType.EMI)

        receipt = ledger.apply_payment(flat_loan_id, Decimal("89"), PaymentType.LUMP_SUM)

        assert receipt.remaining_balance == Decimal("1100.00")
        assert receipt.installments_left == 11

    def test_emi_installments_floor_at_zero(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        for _ in range(13):
            receipt = ledger.apply_payment(flat_loan_id, Decimal("1"), PaymentType.EMI)

        assert receipt.installments_left == 0
        assert receipt.remaining_balance == Decimal("1187.00")
        assert receipt.status == LoanStatus.ACTIVE

    def test_payoff_with_lump_sum(self, ledger: LoanLedger, reference_loan_id: str) -> None:
        receipt = ledger.apply_payment(reference_loan_id, Decimal("132000"), PaymentType.LUMP_SUM)

        assert receipt.remaining_balance == Decimal("0")
        assert receipt.installments_left == 0
        assert receipt.status == LoanStatus.PAID_OFF

    def test_payoff_with_emi_forces_zero_installments(
        self, ledger: LoanLedger, flat_loan_id: str
    ) -> None:
        receipt = ledger.apply_payment(flat_loan_id, Decimal("1200"), PaymentType.EMI)

        assert receipt.status == LoanStatus.PAID_OFF
        assert receipt.installments_left == 0

    def test_paid_off_is_terminal(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        ledger.apply_payment(flat_loan_id, Decimal("1200"), PaymentType.LUMP_SUM)

        with pytest.raises(InvalidStateError, match="not active"):
            ledger.apply_payment(flat_loan_id, Decimal("1"), PaymentType.EMI)

        assert len(ledger.get_ledger(flat_loan_id).payments) == 1

    def test_unknown_loan(self, ledger: LoanLedger) -> None:
        with pytest.raises(NotFoundError, match="Loan LOAN_9999 not found"):
            ledger.apply_payment("LOAN_9999", Decimal("10"), PaymentType.EMI)

    @pytest.mark.parametrize("amount", ["0", "-5", "0.004"])
    def test_non_positive_amount(self, ledger: LoanLedger, flat_loan_id: str, amount: str) -> None:
        with pytest.raises(ValidationError, match="Invalid payment amount"):
            ledger.apply_payment(flat_loan_id, Decimal(amount), PaymentType.EMI)

    def test_overpayment_rejected_without_side_effects(
        self, ledger: LoanLedger, store: LendingDataStore, reference_loan_id: str
    ) -> None:
        ledger.apply_payment(reference_loan_id, Decimal("11000"), PaymentType.EMI)
        before = ledger.get_ledger(reference_loan_id)

        with pytest.raises(OverpaymentError) as exc_info:
            ledger.apply_payment(reference_loan_id, Decimal("121000.01"), PaymentType.LUMP_SUM)

        assert exc_info.value.remaining_balance == Decimal("121000.00")
        assert ledger.get_ledger(reference_loan_id) == before
        assert len(store.payments) == 1

    def test_amount_rounded_to_cents(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        receipt = ledger.apply_payment(flat_loan_id, Decimal("10.005"), PaymentType.EMI)

        assert receipt.payment.amount == Decimal("10.01")
        assert receipt.remaining_balance == Decimal("1189.99")

    def test_emi_sequence_conserves_total(self, ledger: LoanLedger) -> None:
        loan = ledger.issue("CUST003", Decimal("1000"), 1, Decimal("5"))
        assert loan.monthly_installment == Decimal("87.50")

        previous_paid = loan.amount_paid
        previous_balance = loan.balance
        for _ in range(12):
            ledger.apply_payment(loan.loan_id, loan.monthly_installment, PaymentType.EMI)
            current = ledger.get_ledger(loan.loan_id).loan

            assert current.amount_paid >= previous_paid
            assert current.balance <= previous_balance
            assert current.amount_paid + current.balance == current.total_amount
            previous_paid, previous_balance = current.amount_paid, current.balance

        assert current.balance == 0
        assert current.installments_left == 0
        assert current.status == LoanStatus.PAID_OFF

    def test_concurrent_payments_are_serialized(
        self, ledger: LoanLedger, flat_loan_id: str
    ) -> None:
        def pay() -> None:
            for _ in range(5):
                ledger.apply_payment(flat_loan_id, Decimal("10"), PaymentType.EMI)

        threads = [threading.Thread(target=pay) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        view = ledger.get_ledger(flat_loan_id)
        assert view.loan.amount_paid == Decimal("500.00")
        assert view.loan.balance == Decimal("700.00")
        assert len(view.payments) == 50
        assert len({p.payment_id for p in view.payments}) == 50


class TestGetLedger:
    """Tests for ledger reads."""

    def test_payments_in_recorded_order(self, ledger: LoanLedger, flat_loan_id: str) -> None:
        ledger.apply_payment(flat_loan_id, Decimal("100"), PaymentType.EMI)
        ledger.apply_payment(flat_loan_id, Decimal("300"), PaymentType.LUMP_SUM)
        ledger.apply_payment(flat_loan_id, Decimal("100"), PaymentType.EMI)

        view = ledger.get_ledger(flat_loan_id)

        assert [p.payment_id for p in view.payments] == ["PAY_0001", "PAY_0002", "PAY_0003"]
        assert [p.amount for p in view.payments] == [Decimal("100"), Decimal("300"), Decimal("100")]
        paid_at = [p.paid_at for p in view.payments]
        assert paid_at == sorted(paid_at)

    def test_unknown_loan(self, ledger: LoanLedger) -> None:
        with pytest.raises(NotFoundError):
            ledger.get_ledger("missing")

    def test_snapshot_is_detached(
        self, ledger: LoanLedger, store: LendingDataStore, flat_loan_id: str
    ) -> None:
        view = ledger.get_ledger(flat_loan_id)
        view.loan.payments.append("bogus")
        view.loan.balance = Decimal("0")

        assert store.loans[flat_loan_id].payments == []
        assert store.loans[flat_loan_id].balance == Decimal("1200.00")

    def test_customer_and_all_loans(self, ledger: LoanLedger) -> None:
        a = ledger.issue("CUST001", Decimal("1000"), 1, Decimal("5"))
        b = ledger.issue("CUST002", Decimal("2000"), 2, Decimal("5"))
        c = ledger.issue("CUST001", Decimal("3000"), 3, Decimal("5"))

        assert [loan.loan_id for loan in ledger.customer_loans("CUST001")] == [a.loan_id, c.loan_id]
        assert [loan.loan_id for loan in ledger.list_loans()] == [a.loan_id, b.loan_id, c.loan_id]
        assert ledger.customer_loans("CUST003") == []
