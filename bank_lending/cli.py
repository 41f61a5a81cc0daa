"""Command line entry point for bank-lending.

Examples::

    bank-lending customers
    bank-lending demo
    bank-lending run requests.jsonl     # one {"method", "path", "body"} per line
    cat requests.jsonl | bank-lending run -
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import Any, TextIO

from bank_lending.api import ApiResponse, LendingAPI
from bank_lending.config import EVENT_SINKS, LendingConfig
from bank_lending.exceptions import ConfigurationError
from bank_lending.logging import get_logger, setup_logging
from bank_lending.service import create_service
from bank_lending.sinks import create_sink

logger = get_logger(__name__)

DEMO_REQUESTS: list[dict[str, Any]] = [
    {
        "method": "POST",
        "path": "/api/v1/loans",
        "body": {
            "customer_id": "CUST001",
            "loan_amount": 120000,
            "loan_period_years": 1,
            "interest_rate_yearly": 10,
        },
    },
    {"method": "POST", "path": "/api/v1/loans/{loan_id}/payments", "body": {"amount": 11000}},
    {
        "method": "POST",
        "path": "/api/v1/loans/{loan_id}/payments",
        "body": {"amount": 30000, "payment_type": "LUMP_SUM"},
    },
    {"method": "GET", "path": "/api/v1/loans/{loan_id}/ledger"},
    {"method": "GET", "path": "/api/v1/customers/CUST001/overview"},
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bank-lending",
        description="Issue loans, record repayments and report ledgers",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL env or INFO)",
    )
    parser.add_argument(
        "--event-sink",
        choices=EVENT_SINKS,
        default=None,
        help="Where loan and payment events are published (default: EVENT_SINK env or none)",
    )
    parser.add_argument(
        "--customers",
        type=int,
        default=None,
        help="Extra generated customers to seed (default: NUM_CUSTOMERS env or 0)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for generated customers")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("customers", help="Print the customer directory")
    commands.add_parser("demo", help="Run a sample loan lifecycle")
    run = commands.add_parser("run", help="Replay JSON Lines requests through the API")
    run.add_argument("file", type=argparse.FileType("r", encoding="utf-8"), help="Request file or '-' for stdin")
    return parser


def load_config(args: argparse.Namespace) -> LendingConfig:
    """Environment configuration with command line overrides applied."""
    config = LendingConfig.from_env()
    if args.log_level:
        config = replace(config, log_level=args.log_level)
    if args.event_sink:
        config = replace(config, events=replace(config.events, sink=args.event_sink))
    if args.customers is not None:
        config = replace(config, num_customers=args.customers)
    if args.seed is not None:
        config = replace(config, seed=args.seed)
    return config


def replay(api: LendingAPI, lines: TextIO, out: TextIO) -> int:
    """Dispatch each request line and write one response line per request.

    Returns the number of requests that did not succeed.
    """
    failures = 0
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            request = json.loads(line)
            method, path = request["method"], request["path"]
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            logger.error("Skipping malformed request on line %d: %s", lineno, exc)
            response = ApiResponse(400, {"error": f"Malformed request on line {lineno}"})
        else:
            response = api.dispatch(method, path, request.get("body"))
        if response.status >= 400:
            failures += 1
        _write(out, response)
    return failures


def run_demo(api: LendingAPI, out: TextIO) -> int:
    """Create a loan for CUST001 and walk it through payments and reports."""
    loan_id = None
    for request in DEMO_REQUESTS:
        path = request["path"].format(loan_id=loan_id)
        response = api.dispatch(request["method"], path, request.get("body"))
        _write(out, response, request=f"{request['method']} {path}")
        if response.status >= 400:
            return 1
        if loan_id is None:
            loan_id = response.body["loan_id"]
    return 0


def _write(out: TextIO, response: ApiResponse, request: str | None = None) -> None:
    record: dict[str, Any] = {"status": response.status, "body": response.body}
    if request:
        record = {"request": request, **record}
    out.write(json.dumps(record, ensure_ascii=False) + "\n")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as exc:
        parser.error(str(exc))

    setup_logging(config.log_level, config.log_format)
    service = create_service(config, event_sink=create_sink(config, console_stream=sys.stderr))
    api = LendingAPI(service)

    try:
        if args.command == "customers":
            _write(sys.stdout, api.dispatch("GET", "/api/v1/customers"))
            return 0
        if args.command == "demo":
            return run_demo(api, sys.stdout)
        failures = replay(api, args.file, sys.stdout)
        logger.info("Replay finished with %d failed requests", failures)
        return 1 if failures else 0
    finally:
        if service.event_sink is not None:
            service.event_sink.close()
        if args.command == "run" and args.file is not sys.stdin:
            args.file.close()


if __name__ == "__main__":
    sys.exit(main())
