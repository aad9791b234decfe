"""Parse diagnostics shared by the SysEx and XML codecs.

A decode reports problems as :class:`ParseError` records to a listener (any
callable taking one ParseError).  :class:`DiagnosticLog` is the usual
listener: it keeps every diagnostic, forwards it to an optional delegate and
answers "did anything go wrong since this mark?" so a decoder can reject a
single operator or voice without unwinding the whole stream.
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from core.logger import AppLogger


class Severity(Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class ParseError:
    uri: str
    offset: int
    severity: Severity
    message: str
    cause: BaseException | None = None
    line: int | None = None
    column: int | None = None

    def show(self) -> str:
        if self.line is not None:
            where = f"{self.uri}:{self.line}:{self.column or 0}"
        else:
            where = f"{self.uri}:{self.offset}"
        return f"{self.severity.value} {where}: {self.message}"


Listener = Callable[[ParseError], None]


class DiagnosticLog:
    def __init__(self, delegate: Listener | None = None) -> None:
        self._delegate = delegate
        self._entries: list[ParseError] = []

    def __call__(self, error: ParseError) -> None:
        self.receive(error)

    def receive(self, error: ParseError) -> None:
        self._entries.append(error)
        if self._delegate is not None:
            self._delegate(error)

    @property
    def entries(self) -> list[ParseError]:
        return list(self._entries)

    @property
    def errors(self) -> list[ParseError]:
        return [e for e in self._entries if e.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ParseError]:
        return [e for e in self._entries if e.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(e.severity is Severity.ERROR for e in self._entries)

    def mark(self) -> int:
        return len(self._entries)

    def errors_since(self, mark: int) -> bool:
        return any(e.severity is Severity.ERROR for e in self._entries[mark:])


def logger_listener(logger: AppLogger) -> Listener:
    """Route diagnostics into an AppLogger under their severity."""
    return logger.diagnostic


def format_range_error(
    offset: int,
    voice_index: int,
    voice_name: str,
    op_index: int | None,
    param_name: str,
    minimum: int,
    maximum: int,
    received: int,
) -> str:
    lines = [
        "Value out of range.",
        f"  Byte offset: {offset}",
        f"  Voice:       {voice_index} ({voice_name})",
    ]
    if op_index is not None:
        lines.append(f"  Operator:    {op_index}")
    lines += [
        f"  Parameter:   {param_name}",
        f"  Valid range: [{minimum}, {maximum}]",
        f"  Received:    {received}",
    ]
    return "\n".join(lines)
