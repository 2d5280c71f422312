"""
Structured error types for logctx.

Every error raised by logctx extends LogCtxError so callers can catch one
base class and still see what went wrong. Errors carry:
- **Category:** What kind of failure (sink, serialization, config, ...)
- **Context:** The property key, value type and sink involved
- **Cause:** Chained underlying exception for root cause analysis

Manifesto:
    - **Typed Error Hierarchy:** One class per failure domain
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Preserve original exceptions while adding context
    - **Environment vs caller:** Sink errors describe the environment and are
      absorbed by scopes; serialization errors describe a caller value and
      always surface

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                      LogCtxError                          │
        │               (category, context, cause)                  │
        ├──────────────────────────────────────────────────────────┤
        │  SinkError           SerializationError    ConfigError    │
        │  (SINK)              (SERIALIZATION)       (CONFIG)       │
        │     │                                                     │
        │  SinkUnavailableError                                     │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> error = SerializationError("cannot serialize value")
    >>> error.with_context(scope_key="payload", value_type="socket")
    SerializationError('cannot serialize value', category=SERIALIZATION)
    >>> error.context.scope_key
    'payload'

Guardrails:
    ❌ DON'T: Swallow SerializationError - the property would silently vanish
    ✅ DO: Let it reach the caller that supplied the value

    ❌ DON'T: Raise SinkUnavailableError out of a scope mutation
    ✅ DO: Degrade to an unbound scope and log at debug level
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Attributes:
        SINK: Logging backend not configured or refused a binding
        SERIALIZATION: A property value could not be rendered as text
        CONFIG: Invalid settings or failed logging configuration
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    SINK = "SINK"
    SERIALIZATION = "SERIALIZATION"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        scope_key: Property key being written when the error occurred
        value_type: Type name of the offending value
        sink: Name of the sink involved
        metadata: Additional key-value pairs
    """

    scope_key: str | None = None
    value_type: str | None = None
    sink: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["scope_key", "value_type", "sink"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class LogCtxError(Exception):
    """
    Base exception for all logctx errors.

    Subclasses set ``default_category`` to classify themselves.

    Examples:
        >>> error = LogCtxError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise TypeError("not JSON serializable")
        ... except TypeError as e:
        ...     error = SerializationError("bad value", cause=e)
        >>> error.cause
        TypeError('not JSON serializable')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> LogCtxError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SerializationError("Failed").with_context(scope_key="payload")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SINK ERRORS
# =============================================================================


class SinkError(LogCtxError):
    """Error raised by, or about, a logging sink."""

    default_category = ErrorCategory.SINK


class SinkUnavailableError(SinkError):
    """
    The logging backend is not configured or cannot accept bindings.

    Scopes absorb this error and keep working as plain property containers.
    """


# =============================================================================
# SERIALIZATION / CONFIG ERRORS
# =============================================================================


class SerializationError(LogCtxError):
    """A property value could not be converted to text."""

    default_category = ErrorCategory.SERIALIZATION


class ConfigError(LogCtxError):
    """Logging configuration failed or settings are inconsistent."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "LogCtxError",
    "SinkError",
    "SinkUnavailableError",
    "SerializationError",
    "ConfigError",
]
