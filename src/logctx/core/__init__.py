"""
logctx core primitives.

Backend-agnostic pieces shared by the scope machinery:
- errors: typed error hierarchy
- keys: reserved property keys
- protocols: Sink / SinkHandle / Serializer contracts
- serialization: JSON rendering of property values
- settings: environment-driven configuration
"""

from logctx.core import keys
from logctx.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    LogCtxError,
    SerializationError,
    SinkError,
    SinkUnavailableError,
)
from logctx.core.protocols import Serializer, Sink, SinkHandle
from logctx.core.serialization import (
    JsonSerializer,
    SerializationStyle,
    as_json,
    as_json_diagram,
    as_json_embedded,
    from_json,
)
from logctx.core.settings import LogCtxSettings

__all__ = [
    "keys",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "LogCtxError",
    "SinkError",
    "SinkUnavailableError",
    "SerializationError",
    "ConfigError",
    # Protocols
    "Sink",
    "SinkHandle",
    "Serializer",
    # Serialization
    "SerializationStyle",
    "JsonSerializer",
    "as_json",
    "as_json_diagram",
    "as_json_embedded",
    "from_json",
    # Settings
    "LogCtxSettings",
]
