"""
Sink implementations.

A sink is the logging backend's "active scope" primitive: it accepts a
property snapshot and hands back a handle that undoes the binding.

- StructlogContextSink: production sink. Live bindings sit on a per-context
  stack held in a ContextVar; merge_scope_properties() folds them into every
  structlog event and ScopePropertiesFilter onto every stdlib LogRecord.
- InMemorySink: records every bind and release. Used by tests and handy for
  checking what a scope actually published.
- NullSink: accepts everything, publishes nothing.

Design choice: stack of bindings instead of ContextVar.reset(token)
- Handles can be released in any order. A parent released right after its
  child was bound (ScopeBinder does exactly that) removes only its own entry
  and leaves the child visible.
- A handle released from a thread that never saw the binding still takes
  effect: the binding is flagged released, every context skips it from then
  on and prunes it from its own stack on the next read.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

from logctx.core.errors import SinkUnavailableError

logger = logging.getLogger(__name__)


class _Binding:
    """One live property snapshot on the context stack."""

    __slots__ = ("properties", "released")

    def __init__(self, properties: Mapping[str, Any]):
        self.properties = MappingProxyType(dict(properties))
        self.released = False


_scope_stack: ContextVar[tuple[_Binding, ...]] = ContextVar("logctx_scope_stack", default=())


def current_properties() -> dict[str, Any]:
    """Merged view of every live binding in the current context (newest wins)."""
    merged: dict[str, Any] = {}
    for binding in _live_bindings():
        merged.update(binding.properties)
    return merged


def _live_bindings() -> tuple[_Binding, ...]:
    """Current stack minus bindings released elsewhere (pruned in place)."""
    stack = _scope_stack.get()
    live = tuple(b for b in stack if not b.released)
    if len(live) != len(stack):
        _scope_stack.set(live)
    return live


def clear_bindings() -> None:
    """Drop every binding in the current context."""
    _scope_stack.set(())


class StructlogContextHandle:
    """Handle returned by StructlogContextSink.bind_scope()."""

    def __init__(self, binding: _Binding):
        self._binding = binding
        self._lock = threading.Lock()
        self._released = False

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            self._binding.released = True

        stack = _scope_stack.get()
        remaining = tuple(b for b in stack if b is not self._binding)
        if len(remaining) == len(stack):
            # Owning context drops it on its next read
            logger.debug("scope.release_outside_context")
            return
        _scope_stack.set(remaining)


class StructlogContextSink:
    """
    Binds scope properties into the current execution context.

    Pair with merge_scope_properties in the structlog processor chain (done
    by configure_logging()) so every event carries the live properties.
    """

    name = "structlog"

    def bind_scope(self, properties: Mapping[str, Any]) -> StructlogContextHandle:
        binding = _Binding(properties)
        _scope_stack.set((*_live_bindings(), binding))
        return StructlogContextHandle(binding)

    def current_properties(self) -> dict[str, Any]:
        return current_properties()


def merge_scope_properties(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds live scope properties to every event.

    Keys passed explicitly to the log call are never overridden.
    """
    for key, value in current_properties().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


class ScopePropertiesFilter(logging.Filter):
    """Copies live scope properties onto stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in current_properties().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


# =============================================================================
# In-memory and null sinks
# =============================================================================


class InMemoryHandle:
    def __init__(self, sink: InMemorySink, binding_id: int):
        self._sink = sink
        self.binding_id = binding_id

    def release(self) -> None:
        self._sink._release(self.binding_id)


class InMemorySink:
    """
    Thread-safe recording sink.

    Attributes:
        available: When False, bind_scope() raises SinkUnavailableError
        bind_count: Successful bind_scope() calls
        release_count: Handles released
        double_releases: Releases of an already-released handle (should stay 0)
        history: Every snapshot ever bound, in order
    """

    name = "memory"

    def __init__(self, available: bool = True):
        self.available = available
        self.bind_count = 0
        self.release_count = 0
        self.double_releases = 0
        self.history: list[dict[str, Any]] = []
        self._live: dict[int, dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def bind_scope(self, properties: Mapping[str, Any]) -> InMemoryHandle:
        if not self.available:
            raise SinkUnavailableError("In-memory sink is disabled").with_context(sink=self.name)
        snapshot = dict(properties)
        with self._lock:
            binding_id = next(self._ids)
            self._live[binding_id] = snapshot
            self.history.append(snapshot)
            self.bind_count += 1
        return InMemoryHandle(self, binding_id)

    def _release(self, binding_id: int) -> None:
        with self._lock:
            if self._live.pop(binding_id, None) is None:
                self.double_releases += 1
                return
            self.release_count += 1

    @property
    def live_bindings(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(p) for p in self._live.values()]

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._live)

    @property
    def active(self) -> dict[str, Any]:
        """Merged view of live bindings, newest wins."""
        merged: dict[str, Any] = {}
        for properties in self.live_bindings:
            merged.update(properties)
        return merged

    @property
    def last_bound(self) -> dict[str, Any]:
        with self._lock:
            return dict(self.history[-1]) if self.history else {}


class _NullHandle:
    def release(self) -> None:
        pass


class NullSink:
    """Accepts bindings and publishes nothing."""

    name = "null"
    _handle = _NullHandle()

    def bind_scope(self, properties: Mapping[str, Any]) -> _NullHandle:
        return self._handle


__all__ = [
    "StructlogContextSink",
    "StructlogContextHandle",
    "merge_scope_properties",
    "ScopePropertiesFilter",
    "current_properties",
    "clear_bindings",
    "InMemorySink",
    "InMemoryHandle",
    "NullSink",
]
