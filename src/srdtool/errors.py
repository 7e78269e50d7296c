"""Error and diagnostic definitions for SrdTool.

Fatal conditions are raised as :class:`SrdError` subclasses. Everything the
decoders can recover from is recorded as a :class:`Diagnostic` in a
:class:`Diagnostics` collector and logged, so decoding continues with
best-effort values.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .logging import get_logger

E_FORMAT = "E_FORMAT"
E_TRUNCATED = "E_TRUNCATED"
E_OUT_OF_RANGE = "E_OUT_OF_RANGE"
E_UNSUPPORTED = "E_UNSUPPORTED"
E_SPC = "E_SPC"

W_MAGIC_MISMATCH = "W_MAGIC_MISMATCH"
W_ALIGNMENT = "W_ALIGNMENT"
W_SHORT_PAYLOAD = "W_SHORT_PAYLOAD"
W_OFFSET_ORDER = "W_OFFSET_ORDER"
W_SELECTOR = "W_SELECTOR"
W_UNPAIRED = "W_UNPAIRED"
W_UNNAMED = "W_UNNAMED"
W_SUBBLOCK = "W_SUBBLOCK"


@dataclass
class SrdError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class FormatError(SrdError):
    """Structural error that desynchronises the cursor; fatal for the file."""


class TruncatedReadError(FormatError):
    pass


class OutOfRangeError(SrdError):
    """A resolved range exceeds its buffer; fatal to that resource only."""


class SpcError(SrdError):
    pass


def format_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> FormatError:
    return FormatError(code=E_FORMAT, message=message, context=context)


def out_of_range(
    message: str, context: Optional[Dict[str, Any]] = None
) -> OutOfRangeError:
    return OutOfRangeError(code=E_OUT_OF_RANGE, message=message, context=context)


class Diagnostic:
    def __init__(
        self, code: str, message: str, path: str = "", severity: str = "warning"
    ) -> None:
        self.code = code
        self.message = message
        self.path = path
        self.severity = severity

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "path": self.path,
            "severity": self.severity,
        }

    def __repr__(self) -> str:  # convenience for tests
        return f"Diagnostic(code={self.code}, path={self.path}, message={self.message})"


class Diagnostics:
    """Ordered collector of recoverable anomalies.

    ``scope`` pushes a location label (e.g. ``blocks[2].$VTX``) that is
    attached to every record made inside it.
    """

    def __init__(self) -> None:
        self.records: List[Diagnostic] = []
        self._scopes: List[str] = []

    @property
    def path(self) -> str:
        return ".".join(self._scopes)

    @contextmanager
    def scope(self, label: str) -> Iterator["Diagnostics"]:
        self._scopes.append(label)
        try:
            yield self
        finally:
            self._scopes.pop()

    def warn(self, code: str, message: str) -> Diagnostic:
        rec = Diagnostic(code, message, self.path)
        self.records.append(rec)
        where = f" ({rec.path})" if rec.path else ""
        get_logger().warning("%s: %s%s", code, message, where)
        return rec

    def fail(self, err: SrdError) -> Diagnostic:
        rec = Diagnostic(err.code, err.message, self.path, severity="error")
        self.records.append(rec)
        where = f" ({rec.path})" if rec.path else ""
        get_logger().error("%s: %s%s", err.code, err.message, where)
        return rec

    @property
    def warnings(self) -> List[Diagnostic]:
        return [r for r in self.records if r.severity == "warning"]

    @property
    def errors(self) -> List[Diagnostic]:
        return [r for r in self.records if r.severity == "error"]

    def codes(self) -> set[str]:
        return {r.code for r in self.records}

    def __len__(self) -> int:
        return len(self.records)


__all__ = [
    "SrdError",
    "FormatError",
    "TruncatedReadError",
    "OutOfRangeError",
    "SpcError",
    "Diagnostic",
    "Diagnostics",
    "format_error",
    "out_of_range",
    "E_FORMAT",
    "E_TRUNCATED",
    "E_OUT_OF_RANGE",
    "E_UNSUPPORTED",
    "E_SPC",
    "W_MAGIC_MISMATCH",
    "W_ALIGNMENT",
    "W_SHORT_PAYLOAD",
    "W_OFFSET_ORDER",
    "W_SELECTOR",
    "W_UNPAIRED",
    "W_UNNAMED",
    "W_SUBBLOCK",
]
