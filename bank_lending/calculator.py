"""Simple-interest loan calculations.

Interest is flat over the full term and never compounds::

    I = P * N * (R / 100)
    A = P + I
    EMI = A / (N * 12)

Values are computed in full ``Decimal`` precision. Rounding to cents
happens only when a value is stored (see :func:`to_money`), so repeated
reads never accumulate rounding error.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from bank_lending.exceptions import ValidationError

CENTS = Decimal("0.01")
MONTHS_PER_YEAR = 12


def to_money(value: Decimal | int) -> Decimal:
    """Quantize a value to cents (half-up).

    Raises
    ------
    ValidationError
        The value has too many digits to be held in cents.
    """
    try:
        return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValidationError(f"Amount {value} is out of range") from exc


@dataclass(frozen=True)
class LoanSchedule:
    """Totals derived from principal, term and yearly rate."""

    total_interest: Decimal
    total_amount: Decimal
    monthly_installment: Decimal

    def rounded(self) -> "LoanSchedule":
        """Return a copy with every amount quantized to cents."""
        return LoanSchedule(
            total_interest=to_money(self.total_interest),
            total_amount=to_money(self.total_amount),
            monthly_installment=to_money(self.monthly_installment),
        )


def compute_schedule(
    principal: Decimal,
    term_years: int,
    annual_rate_percent: Decimal,
) -> LoanSchedule:
    """Compute interest, total payable and monthly installment.

    Parameters
    ----------
    principal : Decimal
        Amount borrowed, > 0.
    term_years : int
        Loan period in whole years, > 0.
    annual_rate_percent : Decimal
        Yearly interest rate in percent, >= 0.

    Returns
    -------
    LoanSchedule
        Unrounded totals.
    """
    principal = Decimal(principal)
    rate = Decimal(annual_rate_percent)

    total_interest = principal * term_years * (rate / 100)
    total_amount = principal + total_interest
    monthly_installment = total_amount / (term_years * MONTHS_PER_YEAR)

    return LoanSchedule(
        total_interest=total_interest,
        total_amount=total_amount,
        monthly_installment=monthly_installment,
    )
