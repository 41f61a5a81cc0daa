"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest

from bank_lending.api import LendingAPI
from bank_lending.directory import CustomerDirectory, default_customers
from bank_lending.ids import SequentialIdGenerator
from bank_lending.ledger import LoanLedger
from bank_lending.service import LoanService
from bank_lending.store import LendingDataStore


class FakeClock:
    """Clock that advances one minute per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> SequentialIdGenerator:
    return SequentialIdGenerator()


@pytest.fixture
def store() -> LendingDataStore:
    """Create a fresh store for each test."""
    return LendingDataStore()


@pytest.fixture
def directory(store: LendingDataStore) -> CustomerDirectory:
    """Directory seeded with CUST001-CUST003."""
    return CustomerDirectory(store, default_customers(datetime(2023, 6, 1)))


@pytest.fixture
def ledger(
    store: LendingDataStore,
    directory: CustomerDirectory,
    ids: SequentialIdGenerator,
    clock: FakeClock,
) -> LoanLedger:
    return LoanLedger(store, id_generator=ids, clock=clock)


@pytest.fixture
def service(
    directory: CustomerDirectory,
    ledger: LoanLedger,
    ids: SequentialIdGenerator,
) -> LoanService:
    return LoanService(directory, ledger, id_generator=ids)


@pytest.fixture
def api(service: LoanService) -> LendingAPI:
    return LendingAPI(service)


@pytest.fixture
def sample_customer_id() -> str:
    """Sample customer ID."""
    return "CUST001"
