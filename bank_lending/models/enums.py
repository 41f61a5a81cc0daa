"""Enumeration types for lending entities."""

from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID_OFF = "PAID_OFF"


class PaymentType(str, Enum):
    EMI = "EMI"
    LUMP_SUM = "LUMP_SUM"
