"""
Bounded in-memory diagnostic log.
"""

import logging
from collections import deque

from kitewatch.core.logging import get_logger
from kitewatch.models import DiagnosticCode, DiagnosticEntry, DiagnosticLevel

logger = get_logger(__name__)

_LOGGING_LEVELS = {
    DiagnosticLevel.INFO: logging.INFO,
    DiagnosticLevel.WARNING: logging.WARNING,
    DiagnosticLevel.ERROR: logging.ERROR,
}


class DiagnosticLog:
    """Ring buffer of diagnostic events; the oldest entry is evicted first."""

    def __init__(self, max_entries: int = 50):
        self._entries: deque[DiagnosticEntry] = deque(maxlen=max_entries)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen

    @property
    def entries(self) -> list[DiagnosticEntry]:
        """All entries, oldest first."""
        return list(self._entries)

    @property
    def recent_entries(self) -> list[DiagnosticEntry]:
        """The last 10 entries, newest first."""
        return list(reversed(self._entries))[:10]

    @property
    def recent_errors(self) -> list[DiagnosticEntry]:
        return [e for e in reversed(self._entries) if e.level is DiagnosticLevel.ERROR][:10]

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._entries if e.level is DiagnosticLevel.ERROR)

    def log(
        self,
        code: DiagnosticCode,
        message: str,
        detail: str | None = None,
        level: DiagnosticLevel = DiagnosticLevel.ERROR,
    ) -> DiagnosticEntry:
        """Append an entry and mirror it to the application log."""
        entry = DiagnosticEntry(code=code, message=message, detail=detail, level=level)
        self._entries.append(entry)
        logger.log(_LOGGING_LEVELS[level], "[%s] %s", code.value, message)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
