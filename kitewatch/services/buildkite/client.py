"""
Buildkite REST API v2 client.
"""

from typing import Any

import httpx
from pydantic import ValidationError

from kitewatch.core.exceptions import (
    BuildkiteAPIError,
    BuildNotFoundError,
    DecodingError,
    InvalidResponseError,
    NetworkError,
    OrganizationNotFoundError,
    RateLimitedError,
    UnauthorizedError,
)
from kitewatch.core.logging import get_logger
from kitewatch.models import Build, User
from .schemas import BuildPayload, UserPayload

logger = get_logger(__name__)


class BuildkiteClient:
    """Client for the Buildkite REST API."""

    BASE_URL = "https://api.buildkite.com/v2"

    def __init__(self, token: str | None = None, timeout: float = 10.0):
        self._token = token or None
        self._timeout = timeout

    def set_token(self, token: str | None) -> None:
        """Replace the API token used for subsequent requests."""
        self._token = token or None

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def _get(
        self,
        path: str,
        params: dict[str, str] | None = None,
        not_found: type[BuildkiteAPIError] = InvalidResponseError,
    ) -> Any:
        if not self._token:
            raise UnauthorizedError("Buildkite API token is not configured")

        url = f"{self.BASE_URL}{path}"
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, headers=headers, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Buildkite request to %s failed: %s", path, exc)
            raise NetworkError(f"Buildkite request failed: {exc}") from exc

        status = response.status_code
        if status == 401:
            raise UnauthorizedError("Buildkite rejected the API token")
        if status == 404:
            raise not_found(f"Buildkite returned 404 for {path}")
        if status == 429:
            raise RateLimitedError("Buildkite API rate limit reached")
        if not 200 <= status < 300:
            logger.error("Buildkite API error %s for %s", status, path)
            raise InvalidResponseError(f"Unexpected status {status} from Buildkite", status_code=status)

        try:
            return response.json()
        except ValueError as exc:
            raise DecodingError("Buildkite API returned invalid JSON") from exc

    async def fetch_current_user(self) -> User:
        """
        Fetch the user owning the API token.

        Raises:
            UnauthorizedError: If the token is missing or rejected
            BuildkiteAPIError: For any other failure
        """
        data = await self._get("/user")
        try:
            return UserPayload.model_validate(data).to_user()
        except ValidationError as exc:
            raise DecodingError(f"Unexpected user payload: {exc.error_count()} errors") from exc

    async def fetch_user_builds(self, org_slug: str, user_id: str, page_size: int = 10) -> list[Build]:
        """
        Fetch the most recent builds created by a user in an organization.

        Args:
            org_slug: Organization slug
            user_id: Buildkite user ID (``creator`` filter)
            page_size: Number of builds to request

        Returns:
            Builds in the order Buildkite returned them

        Raises:
            OrganizationNotFoundError: If the organization does not exist
            BuildkiteAPIError: For any other failure
        """
        params = {
            "creator": user_id,
            "per_page": str(page_size),
            "include_retried_jobs": "false",
        }
        data = await self._get(
            f"/organizations/{org_slug}/builds",
            params=params,
            not_found=OrganizationNotFoundError,
        )
        if not isinstance(data, list):
            raise DecodingError("Expected a list of builds")
        try:
            payloads = [BuildPayload.model_validate(item) for item in data]
        except ValidationError as exc:
            raise DecodingError(f"Unexpected build payload: {exc.error_count()} errors") from exc
        return [payload.to_build(org_slug) for payload in payloads]

    async def fetch_build(self, org: str, pipeline: str, number: int) -> Build:
        """
        Fetch a single build by its coordinates.

        Raises:
            BuildNotFoundError: If the build does not exist
            BuildkiteAPIError: For any other failure
        """
        data = await self._get(
            f"/organizations/{org}/pipelines/{pipeline}/builds/{number}",
            params={"include_retried_jobs": "false"},
            not_found=BuildNotFoundError,
        )
        try:
            payload = BuildPayload.model_validate(data)
        except ValidationError as exc:
            raise DecodingError(f"Unexpected build payload: {exc.error_count()} errors") from exc
        return payload.to_build(org)
