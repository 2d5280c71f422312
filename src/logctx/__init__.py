"""
logctx - scoped, correlation-carrying logging context.

- logctx.core: errors, reserved keys, protocols, serialization, settings
- logctx.logging: scopes, binder, tracer, sinks, structlog configuration
"""

__version__ = "0.1.0"

from logctx.core import *  # noqa
from logctx.logging import *  # noqa
