"""Tests for logctx.core.errors module."""

import pytest

from logctx.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    LogCtxError,
    SerializationError,
    SinkError,
    SinkUnavailableError,
)


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.scope_key is None
        assert ctx.metadata == {}
        assert ctx.to_dict() == {}

    def test_to_dict_includes_set_fields(self):
        ctx = ErrorContext(scope_key="payload", sink="memory", metadata={"attempt": 2})
        assert ctx.to_dict() == {"scope_key": "payload", "sink": "memory", "attempt": 2}


class TestLogCtxError:
    """Test the base error class."""

    def test_defaults(self):
        error = LogCtxError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.cause is None
        assert str(error) == "boom"

    def test_cause_is_chained(self):
        original = TypeError("not serializable")
        error = LogCtxError("wrapped", cause=original)
        assert error.cause is original
        assert error.__cause__ is original

    def test_with_context_sets_known_fields_and_metadata(self):
        error = LogCtxError("boom").with_context(scope_key="k", batch_id=7)
        assert error.context.scope_key == "k"
        assert error.context.metadata == {"batch_id": 7}

    def test_with_context_returns_self(self):
        error = SerializationError("boom")
        assert error.with_context(scope_key="k") is error

    def test_to_dict(self):
        error = SerializationError("bad", cause=ValueError("nan")).with_context(scope_key="k")
        d = error.to_dict()
        assert d["error_type"] == "SerializationError"
        assert d["category"] == "SERIALIZATION"
        assert d["context"] == {"scope_key": "k"}
        assert d["cause"] == "nan"

    def test_repr(self):
        assert repr(ConfigError("bad level")) == "ConfigError('bad level', category=CONFIG)"


class TestHierarchy:
    """Subclasses carry their own category."""

    @pytest.mark.parametrize(
        "cls, category",
        [
            (SinkError, ErrorCategory.SINK),
            (SinkUnavailableError, ErrorCategory.SINK),
            (SerializationError, ErrorCategory.SERIALIZATION),
            (ConfigError, ErrorCategory.CONFIG),
        ],
    )
    def test_default_category(self, cls, category):
        error = cls("x")
        assert isinstance(error, LogCtxError)
        assert error.category == category

    def test_sink_unavailable_is_sink_error(self):
        with pytest.raises(SinkError):
            raise SinkUnavailableError("not configured")

    def test_category_override(self):
        error = SinkError("x", category=ErrorCategory.UNKNOWN)
        assert error.category == ErrorCategory.UNKNOWN


    def test_public_api(self):
        from logctx.core import errors

        assert set(errors.__all__) == {
            "ErrorCategory",
            "ErrorContext",
            "LogCtxError",
            "SinkError",
            "SinkUnavailableError",
            "SerializationError",
            "ConfigError",
        }
