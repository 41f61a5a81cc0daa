"""In-memory data store for lending entities."""

from bank_lending.store.lending import LendingDataStore

__all__ = ["LendingDataStore"]
