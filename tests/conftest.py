"""
Shared pytest fixtures and configuration for logctx tests.

This module provides:
- Environment isolation (no LOGCTX_* leakage between tests)
- Logging state reset (structlog defaults, scope stack, configured flag)
- In-memory sink and binder fixtures
"""

import logging
import os
import sys
from pathlib import Path

import pytest
import structlog

# Ensure logctx package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import logctx.logging.config as log_config
from logctx.core.settings import LogCtxSettings
from logctx.logging.binder import ScopeBinder
from logctx.logging.sinks import InMemorySink, clear_bindings


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their file name."""
    for item in items:
        if "integration" in Path(item.fspath).name:
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Strip LOGCTX_* variables so settings fall back to defaults."""
    for key in list(os.environ):
        if key.startswith("LOGCTX_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Reset structlog, root logging, the scope stack and the configured flag around each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    clear_bindings()
    log_config._configured = False
    yield
    clear_bindings()
    log_config._configured = False
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("logctx").setLevel(logging.NOTSET)


# =============================================================================
# Sinks and binders
# =============================================================================


@pytest.fixture
def settings() -> LogCtxSettings:
    return LogCtxSettings(_env_file=None)


@pytest.fixture
def sink() -> InMemorySink:
    return InMemorySink()


@pytest.fixture
def binder(sink, settings) -> ScopeBinder:
    return ScopeBinder(sink, settings=settings)


@pytest.fixture
def degraded_binder(settings) -> ScopeBinder:
    return ScopeBinder(None, settings=settings)
