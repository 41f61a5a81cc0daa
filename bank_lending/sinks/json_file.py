"""JSON Lines file sink for exporting events."""

import logging
from pathlib import Path
from typing import Any

from bank_lending.exceptions import SinkError
from bank_lending.sinks.serialization import to_json

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Append events to one JSON Lines file per topic.

    ``dev.lending.loans`` is written to ``<output_dir>/dev_lending_loans.jsonl``.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._counts: dict[str, int] = {}

    def path_for(self, topic: str) -> Path:
        return self.output_dir / (topic.replace(".", "_") + ".jsonl")

    def send(self, topic: str, record: Any) -> None:
        """Append a single record to the topic's file."""
        path = self.path_for(topic)
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(to_json(record) + "\n")
        except OSError as exc:
            raise SinkError(f"Could not write to {path}: {exc}") from exc
        self._counts[topic] = self._counts.get(topic, 0) + 1

    def close(self) -> None:
        """Log summary."""
        logger.info("Event files written to: %s", self.output_dir)
        for topic, count in self._counts.items():
            logger.info("  %s: %d records", self.path_for(topic).name, count)
