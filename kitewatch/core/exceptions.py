"""
Custom application exceptions.
"""


class KitewatchError(Exception):
    """Base exception for kitewatch errors."""
    pass


class BuildkiteAPIError(KitewatchError):
    """Buildkite API call failed."""
    pass


class UnauthorizedError(BuildkiteAPIError):
    """API token is missing, invalid or expired."""
    pass


class OrganizationNotFoundError(BuildkiteAPIError):
    """Organization slug does not exist or is not visible to the token."""
    pass


class BuildNotFoundError(BuildkiteAPIError):
    """Requested build does not exist."""
    pass


class RateLimitedError(BuildkiteAPIError):
    """Buildkite rejected the request with HTTP 429."""
    pass


class InvalidResponseError(BuildkiteAPIError):
    """Unexpected HTTP status or response shape."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DecodingError(BuildkiteAPIError):
    """Response payload did not match the expected schema."""
    pass


class NetworkError(BuildkiteAPIError):
    """Transport-level failure talking to Buildkite."""
    pass


class BuildReferenceError(KitewatchError):
    """A build reference supplied by the user was rejected."""
    pass


class InvalidBuildURLError(BuildReferenceError):
    """URL does not point at a Buildkite build."""
    pass


class DuplicateBuildError(BuildReferenceError):
    """Build reference is already being tracked."""
    pass
