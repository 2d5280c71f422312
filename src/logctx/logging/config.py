"""
Logging configuration.

Provides a single entry point for configuring structured logging so that
scope properties appear on every event:
- Log level (DEBUG, INFO, WARNING, ERROR)
- Output format (json, console)
- Scope property merge via merge_scope_properties

Configuration is read from LogCtxSettings (LOGCTX_* environment variables)
unless passed explicitly.

Usage:
    # Configure at application startup and get a binder
    from logctx.logging import initialize
    binder = initialize()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

from logctx.core.errors import ConfigError
from logctx.core.settings import LogCtxSettings
from logctx.logging.binder import ScopeBinder
from logctx.logging.sinks import ScopePropertiesFilter, StructlogContextSink, merge_scope_properties

logger = logging.getLogger(__name__)

# Track if logging has been configured
_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
    settings: LogCtxSettings | None = None,
) -> None:
    """
    Configure structlog and stdlib logging to publish scope properties.

    Should be called once at application startup. Subsequent calls are
    no-ops unless force=True.

    Args:
        level: Log level (overrides LOGCTX_LOG_LEVEL)
        format: Output format (overrides LOGCTX_LOG_FORMAT)
        force: Reconfigure even if already configured
        settings: Settings to read defaults from

    Raises:
        ConfigError: ``level`` or ``format`` is not recognized
    """
    global _configured

    if _configured and not force:
        return

    settings = settings or LogCtxSettings()
    log_level = (level or settings.log_level).upper()
    log_format = (format or settings.log_format).lower()

    level_num = logging.getLevelName(log_level)
    if not isinstance(level_num, int):
        raise ConfigError(f"Unknown log level: {log_level}").with_context(setting="log_level")
    if log_format not in ("json", "console"):
        raise ConfigError(f"Unknown log format: {log_format}").with_context(setting="log_format")

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        # Live scope properties from the current context
        merge_scope_properties,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level_num,
        force=True,
    )

    scope_filter = ScopePropertiesFilter()
    for handler in logging.getLogger().handlers:
        handler.addFilter(scope_filter)

    logging.getLogger("logctx").setLevel(level_num)

    _configured = True


def initialize(settings: LogCtxSettings | None = None) -> ScopeBinder:
    """
    Failsafe bootstrap: configure logging and return a ready binder.

    Never raises for configuration failures: invalid settings, an unreadable
    ``.env`` file or a rejected level/format. stdlib logging then falls back to
    a minimal stderr setup and the returned binder runs degraded (no sink).
    """
    try:
        settings = settings or LogCtxSettings()
        configure_logging(settings=settings, force=True)
    except (ConfigError, ValueError, OSError) as e:
        # pydantic.ValidationError subclasses ValueError
        logging.basicConfig(
            format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            stream=sys.stderr,
            level=logging.INFO,
            force=True,
        )
        logger.warning("logctx.initialize_failed: %s; scopes will not be published", e)
        return ScopeBinder(None, settings=_fallback_settings(settings))

    return ScopeBinder(StructlogContextSink(), settings=settings)


def _fallback_settings(settings: Any) -> LogCtxSettings:
    if isinstance(settings, LogCtxSettings):
        return settings
    return LogCtxSettings.model_construct()


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger; scope properties are merged into its events."""
    return structlog.get_logger(name)


def is_debug_enabled() -> bool:
    """Check if DEBUG level logging is enabled."""
    return logging.getLogger().isEnabledFor(logging.DEBUG)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


__all__ = [
    "configure_logging",
    "initialize",
    "get_logger",
    "is_debug_enabled",
    "is_configured",
]
