"""Console sink for debugging and development."""

import sys
from typing import Any, TextIO

from bank_lending.sinks.serialization import to_json


class ConsoleSink:
    """Print each event as a ``{"topic", "record"}`` JSON document."""

    def __init__(self, pretty: bool = False, stream: TextIO | None = None) -> None:
        """Initialize console sink.

        Parameters
        ----------
        pretty : bool
            Pretty-print JSON output.
        stream : TextIO | None
            Destination stream; ``sys.stdout`` when omitted.
        """
        self.pretty = pretty
        self.stream = stream
        self._counts: dict[str, int] = {}

    def send(self, topic: str, record: Any) -> None:
        """Write a single record tagged with its topic."""
        print(to_json({"topic": topic, "record": record}, pretty=self.pretty), file=self._out)
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def close(self) -> None:
        """Print a per-topic summary."""
        for topic, count in self._counts.items():
            print(f"# {topic}: {count} records", file=self._out)

    @property
    def _out(self) -> TextIO:
        return self.stream or sys.stdout
