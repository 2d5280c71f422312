"""
logctx logging - scoped, correlation-carrying logging context.

This module provides:
- PropertyScope: thread-safe property set kept bound into a sink
- ScopeBinder: root, child and operation scopes with automatic call-site capture
- CallSiteTracer: correlation traces with runtime/harness/backend frames filtered out
- Sinks: structlog context sink, in-memory recording sink, null sink
- configure_logging / initialize: structlog wiring

Usage:
    from logctx.logging import initialize, get_logger

    binder = initialize()
    log = get_logger(__name__)

    with binder.begin_operation_scope("Import", ("BatchId", 7)) as scope:
        scope.add("rows", 5000)
        log.info("import.done")   # Operation, BatchId, rows, CTX_STRACE
"""

from logctx.logging.binder import ScopeBinder, begin_operation_scope, begin_scope
from logctx.logging.config import (
    configure_logging,
    get_logger,
    initialize,
    is_configured,
    is_debug_enabled,
)
from logctx.logging.scope import PropertyScope
from logctx.logging.sinks import (
    InMemorySink,
    NullSink,
    ScopePropertiesFilter,
    StructlogContextSink,
    current_properties,
    merge_scope_properties,
)
from logctx.logging.tracing import (
    CallSite,
    CallSiteTracer,
    build_tag,
    capture_call_site,
)

__all__ = [
    # Scopes
    "PropertyScope",
    "ScopeBinder",
    "begin_scope",
    "begin_operation_scope",
    # Tracing
    "CallSite",
    "CallSiteTracer",
    "build_tag",
    "capture_call_site",
    # Sinks
    "StructlogContextSink",
    "InMemorySink",
    "NullSink",
    "ScopePropertiesFilter",
    "merge_scope_properties",
    "current_properties",
    # Configuration
    "configure_logging",
    "initialize",
    "get_logger",
    "is_configured",
    "is_debug_enabled",
]
