"""
ScopeBinder: the caller-facing entry point for logging scopes.

The binder owns the sink, the tracer and the settings; callers only ever see
PropertyScope objects coming back from it.

Usage:
    binder = ScopeBinder(StructlogContextSink())

    with binder.begin_scope() as scope:
        scope.add("user_id", 123)
        log.info("outer")

        scope = binder.begin_scope(scope).add("step", "validate")
        log.info("inner")               # user_id, step, original CTX_STRACE
        scope.release()

    with binder.begin_operation_scope("Import", ("BatchId", 7)):
        log.info("import.start")

    @binder.scoped("nightly_rollup")
    def rollup():
        ...

Nested scopes replace their parent: begin_scope(parent) copies the parent's
properties into the new scope and then releases the parent itself. Never
release the parent separately; a later release() on it is a harmless no-op.

A binder without a sink runs degraded: scopes accept every mutation and
publish nothing, so calling code never needs a None check.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from logctx.core import keys as reserved
from logctx.core.protocols import Serializer, Sink
from logctx.core.settings import LogCtxSettings
from logctx.logging.scope import PropertyScope
from logctx.logging.tracing import CallSite, CallSiteTracer, build_tag, capture_call_site

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class ScopeBinder:
    """
    Creates root, child and operation scopes bound into one sink.

    Args:
        sink: Logging backend; None selects degraded mode
        settings: Defaults to LogCtxSettings() (read from LOGCTX_* env vars)
        tracer: Defaults to a CallSiteTracer built from ``settings``
        serializer: Used by PropertyScope.add_serialized()
    """

    def __init__(
        self,
        sink: Sink | None = None,
        *,
        settings: LogCtxSettings | None = None,
        tracer: CallSiteTracer | None = None,
        serializer: Serializer | None = None,
    ):
        self.sink = sink
        self.settings = settings or LogCtxSettings()
        self.tracer = tracer or CallSiteTracer(
            extra_filters=self.settings.frame_filters,
            capture_stack=self.settings.capture_stack,
        )
        self.serializer = serializer
        if sink is None:
            logger.debug("binder.degraded: no sink configured, scopes will not be published")

    @property
    def degraded(self) -> bool:
        return self.sink is None

    def begin_scope(
        self,
        parent: PropertyScope | Mapping[str, Any] | None = None,
        *,
        call_site: CallSite | None = None,
        fresh_trace: bool = False,
    ) -> PropertyScope:
        """
        Open a root scope, or a child of ``parent``.

        The child is fully built (properties copied, binding in place) before
        ``parent`` is released. The binder performs that release.
        """
        call_site = call_site or capture_call_site(2)
        scope = PropertyScope(
            self.sink,
            call_site,
            parent,
            tracer=self.tracer,
            serializer=self.serializer,
            fresh_trace=fresh_trace,
            include_source_keys=self.settings.include_source_keys,
            null_placeholder=self.settings.null_placeholder,
        )
        if isinstance(parent, PropertyScope):
            parent.release()
        return scope

    def begin_operation_scope(
        self,
        operation: str,
        *pairs: tuple[str, Any],
        call_site: CallSite | None = None,
        **properties: Any,
    ) -> PropertyScope:
        """
        Open a root scope carrying ``Operation=operation`` plus extra properties.

        Properties come as ``(key, value)`` pairs, keyword arguments, or both.
        """
        scope = self.begin_scope(call_site=call_site or capture_call_site(2))
        scope.add(reserved.OPERATION, operation)
        for key, value in pairs:
            scope.add(key, value)
        for key, value in properties.items():
            scope.add(key, value)
        return scope

    def source(self, call_site: CallSite | None = None) -> str:
        """Compact ``File.member.line`` tag for the caller."""
        call_site = call_site or capture_call_site(2)
        return build_tag(call_site.file, call_site.member, call_site.line)

    def scoped(self, operation: str | None = None, **properties: Any) -> Callable[[F], F]:
        """
        Decorator that runs the function inside an operation scope.

        Usage:
            @binder.scoped("compute_summaries", tier="gold")
            def compute_summaries(records):
                ...

            # Or use the function name as the operation
            @binder.scoped()
            def compute_summaries(records):
                ...
        """

        def decorator(func: F) -> F:
            name = operation or func.__name__

            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                with self.begin_operation_scope(name, call_site=capture_call_site(2), **properties):
                    return func(*args, **kwargs)

            return wrapper  # type: ignore

        return decorator


def begin_scope(
    sink: Sink | None,
    parent: PropertyScope | Mapping[str, Any] | None = None,
    *,
    call_site: CallSite | None = None,
    settings: LogCtxSettings | None = None,
) -> PropertyScope:
    """One-shot form of ScopeBinder(sink).begin_scope(parent)."""
    binder = ScopeBinder(sink, settings=settings)
    return binder.begin_scope(parent, call_site=call_site or capture_call_site(2))


def begin_operation_scope(
    sink: Sink | None,
    operation: str,
    *pairs: tuple[str, Any],
    call_site: CallSite | None = None,
    settings: LogCtxSettings | None = None,
    **properties: Any,
) -> PropertyScope:
    """One-shot form of ScopeBinder(sink).begin_operation_scope(...)."""
    binder = ScopeBinder(sink, settings=settings)
    return binder.begin_operation_scope(
        operation,
        *pairs,
        call_site=call_site or capture_call_site(2),
        **properties,
    )


__all__ = ["ScopeBinder", "begin_scope", "begin_operation_scope"]
