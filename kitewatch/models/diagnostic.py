"""
Data models for diagnostic log entries.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class DiagnosticCode(str, Enum):
    """Stable short codes quoted in diagnostics and support requests."""

    # Buildkite API errors
    API_UNAUTHORIZED = "BK-401"
    API_NOT_FOUND = "BK-404"
    API_NETWORK = "BK-NET"
    API_INVALID_RESPONSE = "BK-RSP"
    API_DECODING = "BK-DEC"
    API_RATE_LIMITED = "BK-429"
    API_BUILD_NOT_FOUND = "BK-404B"

    # App-internal errors
    NOTIFICATION_FAILED = "BN-NTF"
    INVALID_URL = "BN-URL"
    DUPLICATE_BUILD = "BN-DUP"
    UNKNOWN = "BN-UNK"

    # Info-level events
    MONITORING_STARTED = "BN-MON"
    MONITORING_STOPPED = "BN-STP"


class DiagnosticLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class DiagnosticEntry:
    """One event in the diagnostic log."""

    code: DiagnosticCode
    message: str
    detail: str | None = None
    level: DiagnosticLevel = DiagnosticLevel.ERROR
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def format_line(self) -> str:
        line = f"[{self.timestamp:%H:%M:%S}] [{self.level.value.upper()}] [{self.code.value}] {self.message}"
        if self.detail:
            line += f" | {self.detail}"
        return line
