"""Customer generator for seeding the directory."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator

from bank_lending.generators.base import BaseGenerator
from bank_lending.models import Customer


class CustomerGenerator(BaseGenerator):
    """Generate synthetic customers.

    Ids continue the ``CUST001`` numbering of the default customers, so
    a generator started at ``start=4`` never collides with them.
    """

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        start: int = 1,
        max_age_days: int = 5 * 365,
    ) -> None:
        super().__init__(seed, locale)
        self._next_number = start
        self.max_age_days = max_age_days

    def generate(self) -> Customer:
        """Generate a single customer.

        Returns
        -------
        Customer
            Generated customer.
        """
        return self._generate_one()

    def generate_batch(self, count: int) -> Iterator[Customer]:
        """Generate multiple customers.

        Parameters
        ----------
        count : int
            Number of customers to generate.

        Yields
        ------
        Customer
            Generated customers.
        """
        for _ in range(count):
            yield self._generate_one()

    def _generate_one(self) -> Customer:
        number = self._next_number
        self._next_number += 1

        days_ago = self._random.randint(0, self.max_age_days)
        created_at = datetime.now() - timedelta(days=days_ago)

        return Customer(
            customer_id=f"CUST{number:03d}",
            name=self.fake.name(),
            created_at=created_at,
        )
