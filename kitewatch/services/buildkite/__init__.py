# Buildkite services - Buildkite REST API integration
from .client import BuildkiteClient
from .schemas import BuildPayload, UserPayload

__all__ = ["BuildkiteClient", "BuildPayload", "UserPayload"]
