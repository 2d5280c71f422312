"""
Call-site capture and correlation trace formatting.

A correlation trace ties a log event back to the line that opened its scope:

    orders::submit::42
    --File "/app/orders/api.py", line 88, in handle_post
    --File "/app/orders/service.py", line 42, in submit

The header comes from an explicit CallSite. The frame lines come from the
live stack, minus frame zero (the tracer itself) and every frame that
belongs to the runtime library, the test harness, the logging backend or a
BDD step runner. Filtering is plain substring matching; an occasional noisy
frame slipping through is harmless.

Python has no compile-time caller info, so CallSite values are explicit
inputs. capture_call_site() is the thin convenience wrapper that reads them
from the calling frame for entry points that want automatic capture.
"""

from __future__ import annotations

import os
import sys
import sysconfig
import traceback
from collections.abc import Iterable
from dataclasses import dataclass

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + os.sep


def _install_dirs(*names: str) -> list[str]:
    paths = sysconfig.get_paths()
    dirs = {paths.get(name) for name in names}
    return sorted(os.path.join(d, "") for d in dirs if d)


# Runtime library
RUNTIME_FILTERS: tuple[str, ...] = (*_install_dirs("stdlib", "platstdlib"), "<frozen ")

# Installed packages, possibly under the stdlib dir; never treated as runtime
PACKAGE_DIRS: tuple[str, ...] = (
    *_install_dirs("purelib", "platlib"),
    f"{os.sep}site-packages{os.sep}",
    f"{os.sep}dist-packages{os.sep}",
)

# Unit-test harnesses
TEST_HARNESS_FILTERS: tuple[str, ...] = (
    f"{os.sep}_pytest{os.sep}",
    f"{os.sep}pytest{os.sep}",
    f'{os.sep}pytest"',
    f'{os.sep}py.test"',
    f"{os.sep}pluggy{os.sep}",
    f"{os.sep}unittest{os.sep}",
)

# Logging backend, logctx included
BACKEND_FILTERS: tuple[str, ...] = (
    f"{os.sep}structlog{os.sep}",
    f"{os.sep}logging{os.sep}__init__.py",
    _PACKAGE_DIR,
)

# BDD step runners
BDD_FILTERS: tuple[str, ...] = (
    f"{os.sep}behave{os.sep}",
    f"{os.sep}pytest_bdd{os.sep}",
)

DEFAULT_FRAME_FILTERS: tuple[str, ...] = (
    *RUNTIME_FILTERS,
    *TEST_HARNESS_FILTERS,
    *BACKEND_FILTERS,
    *BDD_FILTERS,
)

FRAME_MARKER = "--"


@dataclass(frozen=True)
class CallSite:
    """Where a scope was opened: file stem, member name, line number."""

    file: str
    member: str
    line: int

    @classmethod
    def from_path(cls, path: str, member: str, line: int) -> CallSite:
        """Build a CallSite from a full source path."""
        stem = os.path.splitext(os.path.basename(path))[0] if path else "N/A"
        return cls(file=stem or "N/A", member=member or "N/A", line=line or 0)

    @property
    def tag(self) -> str:
        return build_tag(self.file, self.member, self.line)


UNKNOWN_CALL_SITE = CallSite(file="N/A", member="N/A", line=0)


def capture_call_site(stacklevel: int = 1) -> CallSite:
    """
    Capture the call site ``stacklevel`` frames above this call.

    ``stacklevel=1`` is the function calling capture_call_site(), ``2`` its
    caller, and so on. Returns UNKNOWN_CALL_SITE when the stack is shallower
    than requested.
    """
    try:
        frame = sys._getframe(stacklevel)
    except ValueError:
        return UNKNOWN_CALL_SITE
    code = frame.f_code
    return CallSite.from_path(code.co_filename, code.co_name, frame.f_lineno)


def build_tag(file: str, member: str, line: int) -> str:
    """Compact source tag: ``File.member.line``."""
    return f"{file}.{member}.{line}"


def format_frame(frame: traceback.FrameSummary) -> str:
    return f'File "{frame.filename}", line {frame.lineno}, in {frame.name}'


class CallSiteTracer:
    """
    Builds correlation traces for a call site.

    Stateless between calls; one instance can be shared across threads.

    Args:
        frame_filters: Substrings marking frames to drop. Defaults to
            DEFAULT_FRAME_FILTERS.
        extra_filters: Appended to ``frame_filters``.
        capture_stack: When False, traces carry the header line only.
    """

    def __init__(
        self,
        frame_filters: Iterable[str] | None = None,
        extra_filters: Iterable[str] = (),
        capture_stack: bool = True,
    ):
        base = DEFAULT_FRAME_FILTERS if frame_filters is None else tuple(frame_filters)
        self.frame_filters: tuple[str, ...] = (*base, *extra_filters)
        self.capture_stack = capture_stack

    def build_tag(self, file: str, member: str, line: int) -> str:
        return build_tag(file, member, line)

    def should_filter_frame(self, frame_text: str) -> bool:
        """True if ``frame_text`` belongs to runtime, harness or backend code."""
        text = frame_text.strip()
        installed = any(d in text for d in PACKAGE_DIRS)
        for marker in self.frame_filters:
            if marker not in text:
                continue
            if installed and marker in RUNTIME_FILTERS:
                continue
            return True
        return False

    def build_trace(self, file: str, member: str, line: int) -> str:
        """
        Header ``file::member::line`` plus one ``--`` line per kept frame.

        Frames are listed innermost first.
        """
        trace = f"{file}::{member}::{line}\n"
        if not self.capture_stack:
            return trace

        frames = traceback.extract_stack()
        frames.reverse()
        # frames[0] is this method
        for frame in frames[1:]:
            text = format_frame(frame)
            if not self.should_filter_frame(text):
                trace += f"{FRAME_MARKER}{text}\n"
        return trace

    def trace_for(self, call_site: CallSite) -> str:
        return self.build_trace(call_site.file, call_site.member, call_site.line)


__all__ = [
    "CallSite",
    "CallSiteTracer",
    "UNKNOWN_CALL_SITE",
    "DEFAULT_FRAME_FILTERS",
    "RUNTIME_FILTERS",
    "PACKAGE_DIRS",
    "TEST_HARNESS_FILTERS",
    "BACKEND_FILTERS",
    "BDD_FILTERS",
    "FRAME_MARKER",
    "build_tag",
    "capture_call_site",
    "format_frame",
]
