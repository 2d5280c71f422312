"""Tests for ScopeBinder and the module-level scope helpers."""

import inspect

import pytest

from logctx.core import keys
from logctx.core.settings import LogCtxSettings
from logctx.logging.binder import ScopeBinder, begin_operation_scope, begin_scope
from logctx.logging.sinks import InMemorySink, NullSink
from logctx.logging.tracing import FRAME_MARKER, RUNTIME_FILTERS, TEST_HARNESS_FILTERS, CallSite


class TestBeginScope:
    def test_root_scope_carries_only_trace(self, binder, sink):
        scope, line = binder.begin_scope(), inspect.currentframe().f_lineno

        assert scope.keys() == [keys.STRACE]
        assert scope[keys.STRACE].startswith(
            f"test_binder::test_root_scope_carries_only_trace::{line}\n"
        )
        assert sink.live_count == 1

    def test_trace_lists_application_frames_only(self, binder):
        scope = binder.begin_scope()
        frames = scope[keys.STRACE].splitlines()[1:]

        assert frames
        assert all(f.startswith(FRAME_MARKER) for f in frames)
        assert "in test_trace_lists_application_frames_only" in frames[0]
        for frame in frames:
            for marker in (*TEST_HARNESS_FILTERS, *RUNTIME_FILTERS):
                assert marker not in frame
            assert "in begin_scope" not in frame
            assert "in __init__" not in frame

    def test_explicit_call_site(self, binder):
        scope = binder.begin_scope(call_site=CallSite("jobs", "run", 3))
        assert scope[keys.STRACE].startswith("jobs::run::3\n")

    def test_child_inherits_and_parent_released(self, binder, sink):
        parent = binder.begin_scope().add("A", 1).add("B", 2)
        child = binder.begin_scope(parent)

        assert parent.released
        assert child.snapshot() == parent.snapshot()
        assert sink.live_count == 1
        assert sink.active == child.snapshot()

    def test_child_keeps_root_trace(self, binder):
        root = binder.begin_scope(call_site=CallSite("root", "open", 1))
        child = binder.begin_scope(root, call_site=CallSite("child", "open", 2))
        assert child[keys.STRACE].startswith("root::open::1\n")

    def test_child_fresh_trace(self, binder):
        root = binder.begin_scope(call_site=CallSite("root", "open", 1))
        child = binder.begin_scope(root, call_site=CallSite("child", "open", 2), fresh_trace=True)
        assert child[keys.STRACE].startswith("child::open::2\n")

    def test_parent_release_after_child_is_noop(self, binder, sink):
        parent = binder.begin_scope()
        child = binder.begin_scope(parent).add("C", 1)
        parent.release()
        assert sink.double_releases == 0
        assert sink.active["C"] == 1
        child.release()
        assert sink.live_count == 0

    def test_mapping_parent_is_not_released(self, binder):
        parent = {"A": 1}
        child = binder.begin_scope(parent)
        assert child["A"] == 1
        assert parent == {"A": 1}

    def test_nested_chain(self, binder, sink):
        scope = binder.begin_scope().add("level", 0)
        for level in range(1, 4):
            scope = binder.begin_scope(scope).add("level", level).add(f"k{level}", level)
        assert scope["level"] == 3
        assert {"k1", "k2", "k3"} <= set(scope)
        assert sink.live_count == 1
        scope.release()
        assert sink.live_count == 0


class TestBeginOperationScope:
    def test_operation_and_pairs(self, binder, sink):
        scope = binder.begin_operation_scope("Import", ("BatchId", 7))

        assert scope[keys.OPERATION] == "Import"
        assert scope["BatchId"] == 7
        assert keys.STRACE in scope
        assert sink.active["Operation"] == "Import"
        assert sink.active["BatchId"] == 7

    def test_keyword_properties(self, binder):
        scope = binder.begin_operation_scope("Export", ("Target", "s3"), rows=10, note=None)
        assert scope["Target"] == "s3"
        assert scope["rows"] == 10
        assert scope["note"] == keys.NULL_PLACEHOLDER

    def test_trace_points_at_caller(self, binder):
        scope, line = binder.begin_operation_scope("Sync"), inspect.currentframe().f_lineno
        assert scope[keys.STRACE].startswith(f"test_binder::test_trace_points_at_caller::{line}\n")


class TestSource:
    def test_source_tag(self, binder):
        tag, line = binder.source(), inspect.currentframe().f_lineno
        assert tag == f"test_binder.test_source_tag.{line}"

    def test_explicit_call_site(self, binder):
        assert binder.source(CallSite("a", "b", 1)) == "a.b.1"


class TestScopedDecorator:
    def test_operation_scope_around_call(self, binder, sink):
        seen = {}

        @binder.scoped("rollup", tier="gold")
        def rollup(x):
            seen.update(sink.active)
            return x * 2

        assert rollup(21) == 42
        assert seen["Operation"] == "rollup"
        assert seen["tier"] == "gold"
        assert sink.live_count == 0

    def test_function_name_default(self, binder, sink):
        seen = {}

        @binder.scoped()
        def compute_summaries():
            seen.update(sink.active)

        compute_summaries()
        assert seen["Operation"] == "compute_summaries"
        assert compute_summaries.__name__ == "compute_summaries"

    def test_trace_points_at_call(self, binder, sink):
        @binder.scoped("job")
        def job():
            return sink.active[keys.STRACE]

        trace, line = job(), inspect.currentframe().f_lineno
        assert trace.startswith(f"test_binder::test_trace_points_at_call::{line}\n")

    def test_released_on_exception(self, binder, sink):
        @binder.scoped("failing")
        def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            failing()
        assert sink.live_count == 0


class TestDegradedBinder:
    def test_degraded_flag(self, degraded_binder, binder):
        assert degraded_binder.degraded
        assert not binder.degraded

    def test_scopes_accept_everything(self, degraded_binder):
        scope = degraded_binder.begin_operation_scope("Import", ("BatchId", 7))
        child = degraded_binder.begin_scope(scope).add_serialized("payload", {"a": 1})

        assert child["Operation"] == "Import"
        assert child["payload"] == '{"a":1}'
        assert not child.bound
        child.release()

    def test_unavailable_sink(self, settings):
        binder = ScopeBinder(InMemorySink(available=False), settings=settings)
        scope = binder.begin_scope().add("a", 1)
        assert not scope.bound
        assert scope["a"] == 1


class TestSettings:
    def test_include_source_keys(self, sink):
        binder = ScopeBinder(sink, settings=LogCtxSettings(_env_file=None, include_source_keys=True))
        scope, line = binder.begin_scope(), inspect.currentframe().f_lineno

        assert scope[keys.FILE] == "test_binder"
        assert scope[keys.METHOD] == "test_include_source_keys"
        assert scope[keys.LINE] == line
        assert scope[keys.SRC] == f"test_binder.test_include_source_keys.{line}"

    def test_capture_stack_disabled(self, sink):
        binder = ScopeBinder(sink, settings=LogCtxSettings(_env_file=None, capture_stack=False))
        scope = binder.begin_scope(call_site=CallSite("f", "m", 1))
        assert scope[keys.STRACE] == "f::m::1\n"

    def test_frame_filters(self, sink):
        binder = ScopeBinder(sink, settings=LogCtxSettings(_env_file=None, frame_filters=["test_binder.py"]))
        scope = binder.begin_scope(call_site=CallSite("f", "m", 1))
        assert "test_binder.py" not in scope[keys.STRACE]

    def test_null_placeholder(self, sink):
        binder = ScopeBinder(sink, settings=LogCtxSettings(_env_file=None, null_placeholder="<none>"))
        assert binder.begin_scope().add("k", None)["k"] == "<none>"


class TestModuleLevelHelpers:
    def test_begin_scope(self, sink, settings):
        scope, line = begin_scope(sink, settings=settings), inspect.currentframe().f_lineno
        assert scope[keys.STRACE].startswith(f"test_binder::test_begin_scope::{line}\n")
        assert sink.live_count == 1

    def test_begin_scope_with_parent(self, sink, settings):
        parent = begin_scope(sink, settings=settings).add("A", 1)
        child = begin_scope(sink, parent, settings=settings)
        assert child["A"] == 1
        assert parent.released

    def test_begin_operation_scope(self, settings):
        sink = NullSink()
        scope = begin_operation_scope(sink, "Import", ("BatchId", 7), settings=settings, rows=3)
        assert scope["Operation"] == "Import"
        assert scope["BatchId"] == 7
        assert scope["rows"] == 3
        assert scope.bound

    def test_no_sink(self, settings):
        scope = begin_scope(None, settings=settings).add("a", 1)
        assert not scope.bound
