"""
Build steps (jobs) and their grouping by emoji prefix.
"""

import re
from dataclasses import dataclass

_EMOJI_PREFIX_RE = re.compile(r"^:([a-zA-Z0-9_+-]+):\s*")

_PENDING_STATES = {"pending", "scheduled", "waiting"}
_RUNNING_STATES = {"running", "assigned"}


@dataclass(frozen=True)
class BuildStep:
    """A single job within a build."""

    id: str
    name: str
    state: str
    order: int
    exit_status: int | None = None

    @property
    def is_pending(self) -> bool:
        return self.state in _PENDING_STATES

    @property
    def is_running(self) -> bool:
        return self.state in _RUNNING_STATES

    @property
    def is_passed(self) -> bool:
        return self.state == "passed"

    @property
    def is_failed(self) -> bool:
        return self.state == "failed"

    @property
    def emoji_prefix(self) -> str | None:
        """Prefix code from names like ``":docker: Build image"``."""
        match = _EMOJI_PREFIX_RE.match(self.name)
        return match.group(1) if match else None

    @property
    def display_name(self) -> str:
        match = _EMOJI_PREFIX_RE.match(self.name)
        if not match:
            return self.name
        stripped = self.name[match.end():]
        return stripped or "(Unnamed step)"

    @property
    def group_key(self) -> str:
        return self.emoji_prefix or "Other"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "state": self.state,
            "exit_status": self.exit_status,
            "order": self.order,
        }


@dataclass(frozen=True)
class BuildStepGroup:
    """Steps sharing an emoji prefix."""

    key: str
    emoji_prefix: str | None
    steps: tuple[BuildStep, ...]

    @property
    def title(self) -> str:
        if self.emoji_prefix is None:
            return "Other Steps"
        formatted = self.emoji_prefix.replace("_", " ").title()
        if len(formatted) > 20:
            return formatted[:17] + "..."
        return formatted

    @property
    def passed_count(self) -> int:
        return sum(1 for s in self.steps if s.is_passed)

    @property
    def failed_count(self) -> int:
        return sum(1 for s in self.steps if s.is_failed)

    @property
    def running_count(self) -> int:
        return sum(1 for s in self.steps if s.is_running)

    @property
    def pending_count(self) -> int:
        return sum(1 for s in self.steps if s.is_pending)

    @property
    def summary_text(self) -> str:
        parts = []
        if self.running_count:
            parts.append(f"{self.running_count} running")
        if self.failed_count:
            parts.append(f"{self.failed_count} failed")
        if self.passed_count:
            parts.append(f"{self.passed_count} passed")
        if self.pending_count:
            parts.append(f"{self.pending_count} pending")
        return ", ".join(parts) if parts else "No steps"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "summary": self.summary_text,
            "steps": [step.to_dict() for step in self.steps],
        }


def group_steps(steps: list[BuildStep] | tuple[BuildStep, ...]) -> list[BuildStepGroup]:
    """
    Group steps by emoji prefix.

    Groups keep the order in which their first step appears; the ungrouped
    "Other" bucket always comes last. Steps inside a group are ordered by
    their position in the build.
    """
    buckets: dict[str | None, list[BuildStep]] = {}
    for step in sorted(steps, key=lambda s: s.order):
        buckets.setdefault(step.emoji_prefix, []).append(step)

    ungrouped = buckets.pop(None, [])
    groups = [
        BuildStepGroup(key=prefix, emoji_prefix=prefix, steps=tuple(members))
        for prefix, members in buckets.items()
    ]
    if ungrouped:
        groups.append(BuildStepGroup(key="Other", emoji_prefix=None, steps=tuple(ungrouped)))
    return groups
