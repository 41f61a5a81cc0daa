"""Customer model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Customer:
    """Bank customer entity."""

    customer_id: str
    name: str
    created_at: datetime
