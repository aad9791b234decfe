from __future__ import annotations
from PyQt6.QtCore import QObject, pyqtSignal


class AppLogger(QObject):
    message_logged = pyqtSignal(str, str)  # category, message

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.counts: dict[str, int] = {}  # diagnostics seen, by severity

    def log(self, category: str, message: str) -> None:
        print(f"[{category}] {message}", flush=True)
        self.message_logged.emit(category, message)

    def diagnostic(self, error) -> None:
        """Log a decoder ParseError under its severity (WARNING or ERROR)."""
        severity = error.severity.value
        self.counts[severity] = self.counts.get(severity, 0) + 1
        self.log(severity, error.show())

    def sysex(self, message: str) -> None:
        self.log("SYSEX", message)

    def xml(self, message: str) -> None:
        self.log("XML", message)

    def transform(self, message: str) -> None:
        self.log("TRANSFORM", message)

    def general(self, message: str) -> None:
        self.log("GENERAL", message)
