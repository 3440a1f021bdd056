"""
Build state variant with an explicit fallback for unrecognised values.

Buildkite adds states from time to time, so anything we do not know is kept
as ``StateKind.UNKNOWN`` together with the raw string it arrived as.
"""

from dataclasses import dataclass
from enum import Enum


class StateKind(str, Enum):
    """Known Buildkite build states."""

    SCHEDULED = "scheduled"
    RUNNING = "running"
    BLOCKED = "blocked"
    CANCELING = "canceling"
    WAITING = "waiting"
    PASSED = "passed"
    FAILED = "failed"
    CANCELED = "canceled"
    SKIPPED = "skipped"
    NOT_RUN = "not_run"
    WAITING_FAILED = "waiting_failed"
    UNKNOWN = "unknown"


ACTIVE_KINDS = frozenset({
    StateKind.SCHEDULED,
    StateKind.RUNNING,
    StateKind.BLOCKED,
    StateKind.CANCELING,
    StateKind.WAITING,
})

_SORT_ORDER = {
    StateKind.RUNNING: 0,
    StateKind.SCHEDULED: 1,
    StateKind.BLOCKED: 2,
    StateKind.WAITING: 3,
    StateKind.PASSED: 4,
    StateKind.CANCELING: 5,
    StateKind.FAILED: 6,
    StateKind.CANCELED: 7,
    StateKind.WAITING_FAILED: 8,
    StateKind.SKIPPED: 9,
    StateKind.NOT_RUN: 10,
    StateKind.UNKNOWN: 11,
}

_DISPLAY_NAMES = {
    StateKind.NOT_RUN: "Not Run",
    StateKind.WAITING_FAILED: "Waiting Failed",
}


@dataclass(frozen=True)
class BuildState:
    """A build state as reported by Buildkite."""

    kind: StateKind
    raw: str

    @classmethod
    def parse(cls, raw: str) -> "BuildState":
        """Map a raw API string to a state, keeping unknown values verbatim."""
        try:
            kind = StateKind(raw)
        except ValueError:
            kind = StateKind.UNKNOWN
        if kind is StateKind.UNKNOWN:
            return cls(StateKind.UNKNOWN, raw)
        return cls(kind, kind.value)

    @classmethod
    def of(cls, kind: StateKind) -> "BuildState":
        return cls(kind, kind.value)

    @property
    def sort_order(self) -> int:
        return sort_order(self)

    @property
    def is_active(self) -> bool:
        return is_active(self)

    @property
    def is_completed(self) -> bool:
        return not is_active(self)

    @property
    def display_name(self) -> str:
        return display_name(self)

    def __str__(self) -> str:
        return self.raw


def sort_order(state: BuildState) -> int:
    """Display rank of a state; lower sorts first."""
    return _SORT_ORDER[state.kind]


def is_active(state: BuildState) -> bool:
    """Whether the state is in progress. Every other state counts as completed."""
    return state.kind in ACTIVE_KINDS


def display_name(state: BuildState) -> str:
    if state.kind in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[state.kind]
    if state.kind is StateKind.UNKNOWN:
        return " ".join(part.capitalize() for part in state.raw.split("_") if part)
    return state.kind.value.capitalize()
