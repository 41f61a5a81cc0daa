"""Simple-interest loan issuance, repayment and reporting."""

from bank_lending.calculator import LoanSchedule, compute_schedule
from bank_lending.directory import CustomerDirectory
from bank_lending.ledger import LedgerView, LoanLedger, PaymentReceipt
from bank_lending.service import LoanService, create_service
from bank_lending.store import LendingDataStore

__version__ = "0.1.0"

__all__ = [
    "CustomerDirectory",
    "LedgerView",
    "LendingDataStore",
    "LoanLedger",
    "LoanSchedule",
    "LoanService",
    "PaymentReceipt",
    "compute_schedule",
    "create_service",
]
