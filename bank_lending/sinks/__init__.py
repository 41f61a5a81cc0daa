"""Output sinks for publishing ledger events."""

from typing import TextIO

from bank_lending.config import LendingConfig
from bank_lending.sinks.base import EventSink
from bank_lending.sinks.console import ConsoleSink
from bank_lending.sinks.json_file import JsonFileSink
from bank_lending.sinks.kafka import KafkaSink


def create_sink(config: LendingConfig, console_stream: TextIO | None = None) -> EventSink | None:
    """Build the event sink named by ``config.events.sink``.

    ``console_stream`` redirects the console sink (stdout by default).
    """
    kind = config.events.sink
    if kind == "console":
        return ConsoleSink(pretty=config.output.pretty_json, stream=console_stream)
    if kind == "jsonl":
        return JsonFileSink(config.output.output_dir)
    if kind == "kafka":
        return KafkaSink(config.kafka)
    return None


__all__ = ["ConsoleSink", "EventSink", "JsonFileSink", "KafkaSink", "create_sink"]
