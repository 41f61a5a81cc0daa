"""Read-only customer lookups."""

from collections.abc import Iterable
from datetime import datetime

from bank_lending.exceptions import NotFoundError
from bank_lending.models import Customer
from bank_lending.store import LendingDataStore

DEFAULT_CUSTOMERS = (
    ("CUST001", "John Doe"),
    ("CUST002", "Jane Smith"),
    ("CUST003", "Bob Johnson"),
)


def default_customers(created_at: datetime | None = None) -> list[Customer]:
    """Return the three reference customers every fresh directory starts with."""
    created_at = created_at or datetime.now()
    return [
        Customer(customer_id=customer_id, name=name, created_at=created_at)
        for customer_id, name in DEFAULT_CUSTOMERS
    ]


class CustomerDirectory:
    """Lookup of known customers.

    Customers are loaded into the store once, at construction; onboarding
    new customers afterwards is not supported.
    """

    def __init__(
        self,
        store: LendingDataStore,
        customers: Iterable[Customer] = (),
    ) -> None:
        self._store = store
        for customer in customers:
            store.add_customer(customer)

    def exists(self, customer_id: str) -> bool:
        return customer_id in self._store.customers

    def get(self, customer_id: str) -> Customer:
        customer = self._store.get_customer(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    def list(self) -> list[Customer]:
        """All customers in the order they were seeded."""
        return list(self._store.customers.values())

    def __len__(self) -> int:
        return len(self._store.customers)
