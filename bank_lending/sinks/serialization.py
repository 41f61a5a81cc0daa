"""Event record serialization shared by the sinks.

Money stays exact on the wire: ``Decimal`` amounts are written as strings
(``"1050.00"``). Only the API layer renders them as JSON numbers.
"""

import json
from collections.abc import Iterable, Mapping
from dataclasses import fields, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from bank_lending.exceptions import SinkError


def to_dict(record: Any, exclude: Iterable[str] = ()) -> dict:
    """Flatten an event, loan or payment record into JSON-ready values.

    Parameters
    ----------
    record : Any
        A dataclass instance or a mapping.
    exclude : Iterable[str]
        Top-level keys to leave out (e.g. a loan's ``payments``).

    Raises
    ------
    SinkError
        The record is neither a dataclass nor a mapping.
    """
    skip = set(exclude)
    if is_dataclass(record) and not isinstance(record, type):
        items = ((f.name, getattr(record, f.name)) for f in fields(record))
    elif isinstance(record, Mapping):
        items = iter(record.items())
    else:
        raise SinkError(f"Cannot serialize {type(record).__name__} as an event record")
    return {key: serialize_value(value) for key, value in items if key not in skip}


def serialize_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        # datetime is a date subclass
        return value.isoformat()
    if (is_dataclass(value) and not isinstance(value, type)) or isinstance(value, Mapping):
        return to_dict(value)
    if isinstance(value, (list, tuple)):
        return [serialize_value(v) for v in value]
    return value


def to_json(record: Any, pretty: bool = False) -> str:
    """One record as a JSON document (single line unless ``pretty``)."""
    return json.dumps(to_dict(record), indent=2 if pretty else None, ensure_ascii=False)
