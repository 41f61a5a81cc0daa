"""Configuration management for bank-lending."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bank_lending.exceptions import ConfigurationError

EVENT_SINKS = ("none", "console", "jsonl", "kafka")
LOG_FORMATS = ("standard", "json")


@dataclass
class KafkaConfig:
    """Kafka producer configuration."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class OutputConfig:
    """Output configuration for file-based sinks."""

    output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False  # console sink only


@dataclass
class EventConfig:
    """Where loan and payment events are published."""

    sink: str = "none"  # none, console, jsonl, kafka
    topic_prefix: str = "dev.lending"

    @property
    def loans_topic(self) -> str:
        return f"{self.topic_prefix}.loans"

    @property
    def payments_topic(self) -> str:
        return f"{self.topic_prefix}.payments"


@dataclass
class LendingConfig:
    """Main configuration for bank-lending."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    events: EventConfig = field(default_factory=EventConfig)
    seed: int | None = None
    num_customers: int = 0  # Faker customers added on top of the defaults
    id_max_attempts: int = 5
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.events.sink not in EVENT_SINKS:
            raise ConfigurationError(
                f"Unknown event sink {self.events.sink!r}; expected one of {', '.join(EVENT_SINKS)}"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format {self.log_format!r}")
        if self.num_customers < 0:
            raise ConfigurationError("num_customers must be >= 0")
        if self.id_max_attempts < 1:
            raise ConfigurationError("id_max_attempts must be >= 1")

    @classmethod
    def from_env(cls) -> "LendingConfig":
        """Create config from environment variables."""
        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        output = OutputConfig(
            output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        events = EventConfig(
            sink=os.getenv("EVENT_SINK", "none").lower(),
            topic_prefix=os.getenv("TOPIC_PREFIX", "dev.lending"),
        )

        seed = os.getenv("SEED")

        return cls(
            kafka=kafka,
            output=output,
            events=events,
            seed=_env_int("SEED", seed) if seed else None,
            num_customers=_env_int("NUM_CUSTOMERS", os.getenv("NUM_CUSTOMERS", "0")),
            id_max_attempts=_env_int("ID_MAX_ATTEMPTS", os.getenv("ID_MAX_ATTEMPTS", "5")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard").lower(),
        )


def _env_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
