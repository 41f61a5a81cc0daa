"""Event sink interface."""

from typing import Any, Protocol


class EventSink(Protocol):
    """Destination for published ledger events."""

    def send(self, topic: str, record: Any) -> None:
        ...

    def close(self) -> None:
        ...
