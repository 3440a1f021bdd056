"""
Data models for tracked Buildkite builds.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone

from .state import BuildState
from .steps import BuildStep, group_steps


@dataclass(frozen=True)
class BuildRef:
    """Coordinates of a build: organization, pipeline and build number."""

    org: str
    pipeline: str
    number: int

    def __str__(self) -> str:
        return f"{self.org}/{self.pipeline}#{self.number}"


@dataclass(frozen=True)
class User:
    """The user owning the API token."""

    id: str
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class Build:
    """Snapshot of a Buildkite build as of one poll."""

    id: str
    build_number: int
    pipeline_slug: str
    pipeline_name: str
    organization_slug: str
    branch: str
    commit_message: str
    commit_sha: str
    state: BuildState
    web_url: str
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    added_manually: bool = False
    steps: tuple[BuildStep, ...] | None = None

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def is_completed(self) -> bool:
        return self.state.is_completed

    @property
    def display_title(self) -> str:
        return f"{self.pipeline_name} #{self.build_number}"

    @property
    def short_commit_sha(self) -> str:
        return self.commit_sha[:7]

    @property
    def sort_date(self) -> datetime:
        return self.started_at or self.created_at

    @property
    def ref(self) -> BuildRef:
        return BuildRef(self.organization_slug, self.pipeline_slug, self.build_number)

    @property
    def duration(self) -> float | None:
        """Seconds between start and finish, if both are known."""
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def running_duration(self, now: datetime | None = None) -> float | None:
        """Seconds since start; for finished builds the final duration."""
        if self.started_at is None:
            return None
        if self.finished_at is not None:
            return self.duration
        now = now or datetime.now(timezone.utc)
        return (now - self.started_at).total_seconds()

    def mark_manual(self) -> "Build":
        if self.added_manually:
            return self
        return replace(self, added_manually=True)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        duration = self.running_duration()
        return {
            "id": self.id,
            "build_number": self.build_number,
            "title": self.display_title,
            "pipeline_slug": self.pipeline_slug,
            "pipeline_name": self.pipeline_name,
            "organization_slug": self.organization_slug,
            "branch": self.branch,
            "commit_message": self.commit_message,
            "commit_sha": self.commit_sha,
            "state": self.state.raw,
            "state_name": self.state.display_name,
            "active": self.is_active,
            "web_url": self.web_url,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration": format_duration(duration) if duration is not None else None,
            "added_manually": self.added_manually,
            "step_groups": [g.to_dict() for g in group_steps(self.steps)] if self.steps else [],
        }


def format_duration(seconds: float) -> str:
    """Format seconds as ``"3m 7s"`` or ``"42s"``."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
