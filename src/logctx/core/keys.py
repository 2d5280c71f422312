"""
Reserved property keys.

These keys reach log aggregators (Seq, ELK, Loki, ...) as queryable fields,
so renaming one breaks every saved query and dashboard built on it.
"""

from __future__ import annotations

FILE = "CTX_FILE"
"""Source file name (no directory, no extension)."""

LINE = "CTX_LINE"
"""Source line number."""

METHOD = "CTX_METHOD"
"""Function or method name."""

SRC = "CTX_SRC"
"""Compact source tag (File.member.line)."""

STRACE = "CTX_STRACE"
"""Correlation trace: call site header plus filtered stack frames."""

OPERATION = "Operation"
"""Operation name set by ScopeBinder.begin_operation_scope()."""

NULL_PLACEHOLDER = "null value"
"""Stored in place of None by PropertyScope.add()."""

SOURCE_KEYS = (FILE, METHOD, LINE, SRC)

__all__ = [
    "FILE",
    "LINE",
    "METHOD",
    "SRC",
    "STRACE",
    "OPERATION",
    "NULL_PLACEHOLDER",
    "SOURCE_KEYS",
]
