"""Settings for logctx.

Configuration is environment-driven so a deployed service can turn on source
keys or silence stack capture without a code change.

- **Pydantic validation:** Type-checked at startup
- **Environment-driven:** ``LOGCTX_*`` env vars and ``.env`` files
- **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from logctx.core.settings import LogCtxSettings
    >>> settings = LogCtxSettings(capture_stack=False)
    >>> settings.log_format
    'console'

Environment:
    LOGCTX_LOG_LEVEL            DEBUG | INFO | WARNING | ERROR (default: INFO)
    LOGCTX_LOG_FORMAT           json | console (default: console)
    LOGCTX_CAPTURE_STACK        include filtered frames in CTX_STRACE
    LOGCTX_INCLUDE_SOURCE_KEYS  seed CTX_FILE/CTX_METHOD/CTX_LINE/CTX_SRC
    LOGCTX_NULL_PLACEHOLDER     value stored for None
    LOGCTX_FRAME_FILTERS        JSON list of extra frame filter substrings
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logctx.core.keys import NULL_PLACEHOLDER


class LogCtxSettings(BaseSettings):
    """Runtime settings for scopes and logging configuration.

    Fields
    ──────
    log_level           : Level passed to configure_logging()
    log_format          : Renderer: ``json`` or ``console``
    capture_stack       : Append filtered stack frames to the correlation trace
    include_source_keys : Root scopes also carry CTX_FILE/METHOD/LINE/SRC
    null_placeholder    : Stored instead of None by PropertyScope.add()
    frame_filters       : Extra substrings; matching frames are left out of traces
    """

    model_config = SettingsConfigDict(
        env_prefix="LOGCTX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    # ── Scopes ───────────────────────────────────────────────────
    capture_stack: bool = True
    include_source_keys: bool = False
    null_placeholder: str = NULL_PLACEHOLDER
    frame_filters: list[str] = Field(
        default_factory=list,
        description="Extra substrings marking frames to drop from traces",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


__all__ = ["LogCtxSettings"]
