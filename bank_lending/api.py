"""Request/response contract for the lending API.

The contract is the JSON-over-HTTP one (``/api/v1/...``) but it is not
tied to a web framework: ``LendingAPI.dispatch`` takes a method, a path
and a decoded JSON body, and returns a status code plus a JSON-ready
body. Any HTTP server (or the CLI replay command) can sit in front.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from bank_lending.exceptions import (
    InvalidStateError,
    MissingFieldError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from bank_lending.models import Customer, Loan
from bank_lending.service import LoanService

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Any

    def to_json(self) -> str:
        return json.dumps(self.body, ensure_ascii=False)


Handler = Callable[..., ApiResponse]


class LendingAPI:
    """Route table over a :class:`LoanService`."""

    def __init__(self, service: LoanService) -> None:
        self.service = service
        self._routes: list[tuple[str, re.Pattern[str], Handler]] = [
            ("GET", re.compile(r"^/health$"), self.health),
            ("GET", re.compile(r"^/customers$"), self.list_customers),
            ("GET", re.compile(r"^/customers/(?P<customer_id>[^/]+)/overview$"), self.overview),
            ("GET", re.compile(r"^/loans$"), self.list_loans),
            ("POST", re.compile(r"^/loans$"), self.create_loan),
            ("POST", re.compile(r"^/loans/(?P<loan_id>[^/]+)/payments$"), self.record_payment),
            ("GET", re.compile(r"^/loans/(?P<loan_id>[^/]+)/ledger$"), self.ledger),
        ]

    def dispatch(self, method: str, path: str, body: Any = None) -> ApiResponse:
        """Route a request and translate domain errors into status codes."""
        route = self._match(method.upper(), path)
        if route is None:
            return ApiResponse(404, {"error": "Route not found"})
        handler, params = route

        try:
            if method.upper() == "POST":
                if body is None:
                    body = {}
                if not isinstance(body, dict):
                    raise ValidationError("Request body must be a JSON object")
                return handler(body, **params)
            return handler(**params)
        except MissingFieldError as exc:
            return ApiResponse(400, {"error": "Missing required fields", "required": exc.required})
        except OverpaymentError as exc:
            return ApiResponse(
                400,
                {"error": str(exc), "remaining_balance": _json_value(exc.remaining_balance)},
            )
        except (ValidationError, InvalidStateError) as exc:
            return ApiResponse(400, {"error": str(exc)})
        except NotFoundError as exc:
            return ApiResponse(404, {"error": str(exc)})
        except Exception:
            logger.exception("Unhandled error for %s %s", method, path)
            return ApiResponse(500, {"error": "Internal server error"})

    # Handlers

    def health(self) -> ApiResponse:
        return ApiResponse(200, {"status": "OK", "message": "Bank Lending System API is running"})

    def list_customers(self) -> ApiResponse:
        return ApiResponse(200, [_customer_body(c) for c in self.service.list_customers()])

    def list_loans(self) -> ApiResponse:
        return ApiResponse(200, [_loan_body(loan) for loan in self.service.list_loans()])

    def create_loan(self, body: dict) -> ApiResponse:
        created = self.service.create_loan(
            body.get("customer_id"),
            body.get("loan_amount"),
            body.get("loan_period_years"),
            body.get("interest_rate_yearly"),
        )
        return ApiResponse(201, _json_value({
            "loan_id": created.loan_id,
            "customer_id": created.customer_id,
            "total_amount_payable": created.total_amount_payable,
            "monthly_emi": created.monthly_emi,
        }))

    def record_payment(self, body: dict, loan_id: str) -> ApiResponse:
        recorded = self.service.record_payment(
            loan_id,
            body.get("amount"),
            body.get("payment_type"),
        )
        return ApiResponse(200, _json_value({
            "payment_id": recorded.payment_id,
            "loan_id": recorded.loan_id,
            "message": "Payment recorded successfully",
            "remaining_balance": recorded.remaining_balance,
            "emis_left": recorded.installments_left,
        }))

    def ledger(self, loan_id: str) -> ApiResponse:
        view = self.service.get_ledger(loan_id)
        loan = view.loan
        return ApiResponse(200, _json_value({
            "loan_id": loan.loan_id,
            "customer_id": loan.customer_id,
            "principal": loan.principal,
            "total_amount": loan.total_amount,
            "monthly_emi": loan.monthly_installment,
            "amount_paid": loan.amount_paid,
            "balance_amount": loan.balance,
            "emis_left": loan.installments_left,
            "transactions": [
                {
                    "transaction_id": payment.payment_id,
                    "date": payment.paid_at,
                    "amount": payment.amount,
                    "type": payment.payment_type,
                }
                for payment in view.payments
            ],
        }))

    def overview(self, customer_id: str) -> ApiResponse:
        overview = self.service.get_overview(customer_id)
        return ApiResponse(200, _json_value({
            "customer_id": overview.customer_id,
            "total_loans": overview.total_loans,
            "loans": [
                {
                    "loan_id": summary.loan_id,
                    "principal": summary.principal,
                    "total_amount": summary.total_amount,
                    "total_interest": summary.total_interest,
                    "emi_amount": summary.emi_amount,
                    "amount_paid": summary.amount_paid,
                    "emis_left": summary.emis_left,
                    "status": summary.status,
                }
                for summary in overview.loans
            ],
        }))

    def _match(self, method: str, path: str) -> tuple[Handler, dict[str, str]] | None:
        if not path.startswith(API_PREFIX):
            return None
        local = path[len(API_PREFIX):].rstrip("/") or "/"
        for route_method, pattern, handler in self._routes:
            if route_method != method:
                continue
            match = pattern.match(local)
            if match:
                return handler, match.groupdict()
        return None


def _customer_body(customer: Customer) -> dict:
    return _json_value({
        "customer_id": customer.customer_id,
        "name": customer.name,
        "created_at": customer.created_at,
    })


def _loan_body(loan: Loan) -> dict:
    return _json_value({
        "loan_id": loan.loan_id,
        "customer_id": loan.customer_id,
        "principal_amount": loan.principal,
        "total_amount": loan.total_amount,
        "total_interest": loan.total_interest,
        "interest_rate": loan.interest_rate,
        "loan_period_years": loan.term_years,
        "monthly_emi": loan.monthly_installment,
        "amount_paid": loan.amount_paid,
        "balance_amount": loan.balance,
        "emis_left": loan.installments_left,
        "status": loan.status,
        "created_at": loan.created_at,
    })


def _json_value(value: Any) -> Any:
    """Render domain values as plain JSON types (Decimal becomes a number)."""
    if isinstance(value, Decimal):
        return float(value)
    elif isinstance(value, Enum):
        return value.value
    elif isinstance(value, (datetime, date)):
        return value.isoformat()
    elif isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value
