"""
Text serialization for property values.

PropertyScope.add_serialized() stores values as JSON text so sinks that only
understand scalars still get the full structure. Built on the standard
library ``json`` module with a conversion hook for the types that show up in
application code (dataclasses, pydantic models, datetimes, enums, paths,
sets).

Anything the hook does not recognize raises SerializationError.

Usage:
    serializer = JsonSerializer()
    serializer.serialize({"id": 1}, SerializationStyle.COMPACT)   # '{"id":1}'
    as_json_diagram(order)   # PlantUML @startjson block
"""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime, time
from enum import Enum
from pathlib import PurePath
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel

from logctx.core.errors import SerializationError

M = TypeVar("M", bound=BaseModel)


class SerializationStyle(str, Enum):
    """Output layout for serialized values."""

    COMPACT = "compact"
    PRETTY = "pretty"


def _to_jsonable(value: Any) -> Any:
    """``json.dumps`` default hook."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, PurePath)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonSerializer:
    """Serializer backed by the ``json`` module."""

    def __init__(self, indent: int = 2, ensure_ascii: bool = False):
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def serialize(self, value: Any, style: SerializationStyle = SerializationStyle.COMPACT) -> str:
        style = SerializationStyle(style)
        try:
            if style is SerializationStyle.PRETTY:
                text = json.dumps(
                    value,
                    default=_to_jsonable,
                    indent=self.indent,
                    ensure_ascii=self.ensure_ascii,
                )
                return f"{text}\n"
            return json.dumps(
                value,
                default=_to_jsonable,
                separators=(",", ":"),
                ensure_ascii=self.ensure_ascii,
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Cannot serialize value of type {type(value).__name__}: {e}",
                cause=e,
            ).with_context(value_type=type(value).__name__) from e


_default_serializer = JsonSerializer()


def as_json(value: Any, pretty: bool = False) -> str:
    """Serialize ``value`` compactly, or indented with a trailing newline."""
    style = SerializationStyle.PRETTY if pretty else SerializationStyle.COMPACT
    return _default_serializer.serialize(value, style)


def as_json_diagram(value: Any) -> str:
    """
    Render ``value`` as a standalone PlantUML JSON diagram.

    Do not embed the result inside another diagram; use as_json_embedded().
    """
    body = _default_serializer.serialize(value, SerializationStyle.PRETTY)
    return f"@startjson {type(value).__name__}\n{body}@endjson\n"


def as_json_embedded(value: Any) -> str:
    """Render ``value`` as a JSON object fragment inside a PlantUML diagram."""
    body = _default_serializer.serialize(value, SerializationStyle.PRETTY)
    return f'json "{type(value).__name__}" as J{{\n{body}}}\n'


def from_json(text: str, model: type[M] | None = None) -> Any:
    """
    Parse JSON text, optionally validating it into a pydantic model.

    Raises:
        SerializationError: text is not valid JSON or does not fit ``model``
    """
    try:
        if model is not None:
            return model.model_validate_json(text)
        return json.loads(text)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        raise SerializationError(f"Cannot parse JSON: {e}", cause=e) from e


__all__ = [
    "SerializationStyle",
    "JsonSerializer",
    "as_json",
    "as_json_diagram",
    "as_json_embedded",
    "from_json",
]
