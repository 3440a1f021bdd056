"""
Classification of failures into diagnostic codes and user-facing messages.
"""

from dataclasses import dataclass

from kitewatch.core.exceptions import (
    BuildNotFoundError,
    DecodingError,
    InvalidResponseError,
    NetworkError,
    OrganizationNotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from kitewatch.models import DiagnosticCode, DiagnosticLevel


@dataclass(frozen=True)
class ClassifiedError:
    """How a failure is reported and whether monitoring can continue."""

    code: DiagnosticCode
    message: str
    level: DiagnosticLevel
    detail: str | None = None
    stops_monitoring: bool = False

    @property
    def is_transient(self) -> bool:
        return not self.stops_monitoring

    @property
    def banner(self) -> str:
        """Error-state text shown to the user."""
        return f"[{self.code.value}] {self.message}"


def _cause(exc: BaseException) -> BaseException:
    return exc.__cause__ or exc


def classify_error(exc: BaseException) -> ClassifiedError:
    """Map any exception raised while talking to Buildkite to a ClassifiedError."""
    if isinstance(exc, UnauthorizedError):
        return ClassifiedError(
            code=DiagnosticCode.API_UNAUTHORIZED,
            message="API token is invalid or expired. Update the token in settings.",
            level=DiagnosticLevel.ERROR,
            stops_monitoring=True,
        )
    if isinstance(exc, OrganizationNotFoundError):
        return ClassifiedError(
            code=DiagnosticCode.API_NOT_FOUND,
            message="Organization not found. Check settings.",
            level=DiagnosticLevel.ERROR,
            stops_monitoring=True,
        )
    if isinstance(exc, BuildNotFoundError):
        return ClassifiedError(
            code=DiagnosticCode.API_BUILD_NOT_FOUND,
            message="Build not found. It may have been deleted.",
            level=DiagnosticLevel.WARNING,
        )
    if isinstance(exc, RateLimitedError):
        return ClassifiedError(
            code=DiagnosticCode.API_RATE_LIMITED,
            message="Buildkite API rate limit reached. Increase polling interval.",
            level=DiagnosticLevel.WARNING,
        )
    if isinstance(exc, InvalidResponseError):
        return ClassifiedError(
            code=DiagnosticCode.API_INVALID_RESPONSE,
            message="Invalid API response. Check your network connection.",
            level=DiagnosticLevel.ERROR,
            detail=f"HTTP {exc.status_code}" if exc.status_code is not None else None,
        )
    if isinstance(exc, DecodingError):
        cause = _cause(exc)
        return ClassifiedError(
            code=DiagnosticCode.API_DECODING,
            message=f"Failed to parse API response: {exc}",
            level=DiagnosticLevel.ERROR,
            detail=repr(cause),
        )
    if isinstance(exc, NetworkError):
        cause = _cause(exc)
        return ClassifiedError(
            code=DiagnosticCode.API_NETWORK,
            message=f"Network error: {cause}. Retrying...",
            level=DiagnosticLevel.WARNING,
            detail=repr(cause),
        )
    return ClassifiedError(
        code=DiagnosticCode.UNKNOWN,
        message=f"Unknown error: {exc}",
        level=DiagnosticLevel.ERROR,
        detail=repr(exc),
    )
