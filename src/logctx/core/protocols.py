"""
Protocol definitions for the collaborators logctx talks to.

logctx never imports a concrete logging backend or serializer from its core
modules; it depends on these shapes instead. Anything matching the shape
works, which keeps scopes testable against an in-memory sink.

Architecture:
    ::

        protocols.py
        ├── SinkHandle : one live binding of properties into a backend
        ├── Sink       : produces SinkHandles from a property snapshot
        └── Serializer : renders a value as text (compact or pretty)

Guardrails:
    ❌ DON'T: Assume a Sink keeps a reference to the mapping it was given
    ✅ DO: Rebind after every mutation; the sink may have taken a snapshot

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in logctx.logging.sinks
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from logctx.core.serialization import SerializationStyle


@runtime_checkable
class SinkHandle(Protocol):
    """
    A live binding of properties into a logging backend.

    ``release()`` is called exactly once by the owning scope.
    """

    def release(self) -> None:
        """Tear down the binding."""
        ...


@runtime_checkable
class Sink(Protocol):
    """
    The logging backend's "active scope" primitive.

    ``bind_scope`` may raise SinkUnavailableError when the backend is not
    ready; scopes absorb it and carry on unbound.
    """

    def bind_scope(self, properties: Mapping[str, Any]) -> SinkHandle:
        """Bind ``properties`` and return the handle that undoes it."""
        ...


@runtime_checkable
class Serializer(Protocol):
    """Converts a property value to text."""

    def serialize(self, value: Any, style: SerializationStyle) -> str:
        """Render ``value``; raise SerializationError if it cannot be represented."""
        ...


__all__ = ["SinkHandle", "Sink", "Serializer"]
