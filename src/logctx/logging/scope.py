"""
PropertyScope: a thread-safe property set kept bound into a sink.

A scope is one logical unit of logging context. Every mutation through
add(), add_serialized(), add_many(), remove() or clear() rebinds the scope:
the current sink handle is released and a fresh one is bound from a
snapshot of all properties. That costs one sink round-trip per mutation
and stays correct whether the backend keeps the mapping it was given by
reference or copies it.

Child scopes copy their parent's properties at construction. After that the
two share no mutable state, so the parent can be released (even from
another thread) without the child ever seeing a half-cleared source.

Usage:
    with binder.begin_scope() as scope:
        scope.add("user_id", 123).add("action", "login")
        log.info("user.login")          # carries user_id, action, CTX_STRACE
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from typing import Any

from logctx.core import keys as reserved
from logctx.core.errors import SerializationError, SinkUnavailableError
from logctx.core.protocols import Serializer, Sink, SinkHandle
from logctx.core.serialization import JsonSerializer, SerializationStyle
from logctx.logging.tracing import CallSite, CallSiteTracer

logger = logging.getLogger(__name__)

_default_tracer = CallSiteTracer()
_default_serializer = JsonSerializer()


class PropertyScope:
    """
    Mutable, thread-safe mapping of logging properties bound into a sink.

    Construct through ScopeBinder rather than directly.

    Args:
        sink: Backend to bind into; None means unbound (degraded) mode
        call_site: Where the scope was opened; seeds CTX_STRACE
        parent: Scope (or plain mapping) whose properties are copied
        tracer: Builds the correlation trace
        serializer: Used by add_serialized()
        fresh_trace: Recompute CTX_STRACE even if the parent carried one
        include_source_keys: Also seed CTX_FILE/CTX_METHOD/CTX_LINE/CTX_SRC
        null_placeholder: Stored by add() in place of None
    """

    def __init__(
        self,
        sink: Sink | None,
        call_site: CallSite,
        parent: PropertyScope | Mapping[str, Any] | None = None,
        *,
        tracer: CallSiteTracer | None = None,
        serializer: Serializer | None = None,
        fresh_trace: bool = False,
        include_source_keys: bool = False,
        null_placeholder: str = reserved.NULL_PLACEHOLDER,
    ):
        self._sink = sink
        self._tracer = tracer or _default_tracer
        self._serializer = serializer or _default_serializer
        self._null_placeholder = null_placeholder
        self._lock = threading.Lock()
        self._released = False
        self._handle: SinkHandle | None = None
        self._version = 0
        self._handle_version = 0
        self._properties: dict[str, Any] = {}

        if parent is not None:
            source = parent.snapshot() if isinstance(parent, PropertyScope) else dict(parent)
            for key, value in source.items():
                self._properties[key] = value

        if fresh_trace or reserved.STRACE not in self._properties:
            self._properties[reserved.STRACE] = self._tracer.trace_for(call_site)

        if include_source_keys:
            for key, value in (
                (reserved.FILE, call_site.file),
                (reserved.METHOD, call_site.member),
                (reserved.LINE, call_site.line),
                (reserved.SRC, call_site.tag),
            ):
                self._properties.setdefault(key, value)

        self._handle = self._bind(dict(self._properties))

    # ------------------------------------------------------------------
    # Mutation (rebinds)
    # ------------------------------------------------------------------

    def add(self, key: str, value: Any) -> PropertyScope:
        """Upsert ``key`` and rebind. None is stored as the null placeholder."""
        if value is None:
            value = self._null_placeholder
        with self._lock:
            self._properties.pop(key, None)
            self._properties[key] = value
        self._rebind()
        return self

    def add_serialized(
        self,
        key: str,
        value: Any,
        style: SerializationStyle = SerializationStyle.COMPACT,
    ) -> PropertyScope:
        """
        Upsert ``key`` with ``value`` rendered as text, then rebind.

        Raises:
            SerializationError: value cannot be serialized; nothing is stored
        """
        try:
            text = self._serializer.serialize(value, style)
        except SerializationError as e:
            e.with_context(scope_key=key)
            raise
        return self.add(key, text)

    def add_many(self, properties: Mapping[str, Any] | None = None, **kwargs: Any) -> PropertyScope:
        """Upsert several properties with a single rebind."""
        items = {**(properties or {}), **kwargs}
        with self._lock:
            for key, value in items.items():
                self._properties.pop(key, None)
                self._properties[key] = self._null_placeholder if value is None else value
        self._rebind()
        return self

    def remove(self, key: str) -> PropertyScope:
        with self._lock:
            self._properties.pop(key, None)
        self._rebind()
        return self

    def clear(self) -> PropertyScope:
        """Drop every property, CTX_STRACE included, and rebind empty."""
        with self._lock:
            self._properties.clear()
        self._rebind()
        return self

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def release(self) -> None:
        """Release the sink binding. Safe to call any number of times, from any thread."""
        with self._lock:
            if self._released:
                return
            self._released = True
            handle, self._handle = self._handle, None
        if handle is not None:
            handle.release()
        logger.debug("scope.released")

    @property
    def released(self) -> bool:
        return self._released

    @property
    def bound(self) -> bool:
        """True while a sink handle is held."""
        return self._handle is not None

    def __enter__(self) -> PropertyScope:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Read access and raw writes (no rebind)
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Consistent copy of all properties."""
        with self._lock:
            return dict(self._properties)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._properties.get(key, default)

    def keys(self) -> list[str]:
        return list(self.snapshot())

    def items(self) -> list[tuple[str, Any]]:
        return list(self.snapshot().items())

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return self._properties[key]

    def __setitem__(self, key: str, value: Any) -> None:
        # Not propagated to the sink until the next rebinding mutation
        with self._lock:
            self._properties[key] = value

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._properties

    def __len__(self) -> int:
        with self._lock:
            return len(self._properties)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"PropertyScope({len(self)} properties, {state})"

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def _bind(self, properties: dict[str, Any]) -> SinkHandle | None:
        if self._sink is None:
            return None
        try:
            return self._sink.bind_scope(properties)
        except SinkUnavailableError as e:
            logger.debug("scope.sink_unavailable: %s", e.message)
            return None

    def _rebind(self) -> None:
        """
        Swap the sink handle for one reflecting the current properties.

        The snapshot is taken under the scope lock; the sink is called
        outside it. Each rebind carries a version, and only the newest one
        installs its handle. A handle bound after release(), or older than
        the installed one, is released straight away.
        """
        with self._lock:
            if self._released:
                return
            self._version += 1
            version = self._version
            properties = dict(self._properties)
            previous, self._handle = self._handle, None

        if previous is not None:
            previous.release()
        handle = self._bind(properties)

        with self._lock:
            if self._released or version < self._handle_version:
                stale = handle
            else:
                stale, self._handle = self._handle, handle
                self._handle_version = version
        if stale is not None:
            stale.release()


__all__ = ["PropertyScope"]
