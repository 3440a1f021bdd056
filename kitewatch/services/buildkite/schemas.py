"""
Response schemas for the Buildkite REST API v2.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from kitewatch.models import Build, BuildState, BuildStep, User


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserPayload(_Payload):
    id: str
    name: str | None = None
    email: str | None = None

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email)


class PipelinePayload(_Payload):
    slug: str
    name: str


class JobPayload(_Payload):
    id: str
    name: str | None = None
    # Wait and trigger jobs have no state
    state: str | None = None
    exit_status: int | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def to_step(self, order: int) -> BuildStep:
        return BuildStep(
            id=self.id,
            name=self.name or "Unnamed Step",
            state=self.state or "pending",
            exit_status=self.exit_status,
            order=order,
        )


class BuildPayload(_Payload):
    id: str
    number: int
    state: str
    message: str | None = None
    commit: str
    branch: str
    created_at: datetime
    started_at: datetime | None = None
    finished_at: datetime | None = None
    web_url: str
    pipeline: PipelinePayload
    jobs: list[JobPayload] | None = None

    def to_build(self, org_slug: str) -> Build:
        """Convert to a domain Build, dropping jobs that carry no state."""
        steps = None
        if self.jobs is not None:
            steps = tuple(
                job.to_step(order=index)
                for index, job in enumerate(self.jobs)
                if job.state is not None
            )

        return Build(
            id=self.id,
            build_number=self.number,
            pipeline_slug=self.pipeline.slug,
            pipeline_name=self.pipeline.name,
            organization_slug=org_slug,
            branch=self.branch,
            commit_message=self.message or "",
            commit_sha=self.commit,
            state=BuildState.parse(self.state),
            web_url=self.web_url,
            created_at=self.created_at,
            started_at=self.started_at,
            finished_at=self.finished_at,
            steps=steps,
        )
