"""Ticketing API client."""

import json
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    API_ISSUE_SEARCH_ENDPOINT,
    API_USERS_ENDPOINT,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    PYLON_API_BASE_URL,
    ApiRequestKey,
    LogMessage,
)
from .exceptions import RateLimitedError, UpstreamError
from .models import Page, Ticket


class Pagination(BaseModel):
    """Pagination block of a search response."""

    has_next_page: bool = Field(default=False, description="More pages exist")
    cursor: str | None = Field(default=None, description="Cursor for the next page")


class SearchResponse(BaseModel):
    """Response body of the issue search endpoint."""

    data: list[dict[str, Any]] | None = Field(
        default=None, description="Issues on this page, newest first"
    )
    pagination: Pagination = Field(default_factory=Pagination)
    errors: list[Any] | None = Field(default=None, description="API-level errors")


class UserRecord(BaseModel):
    """A user from the users endpoint."""

    id: str | None = None
    name: str | None = None
    email: str | None = None

    def display_name(self) -> str | None:
        """Name, else email, else id."""
        for candidate in (self.name, self.email):
            if candidate and candidate.strip():
                return candidate.strip()
        return self.id


class UsersResponse(BaseModel):
    """Response body of the users endpoint."""

    data: list[UserRecord] | None = None
    errors: list[Any] | None = None


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds."""
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class PylonClient:
    """Async client for the ticketing API.

    Attributes:
        base_url: Base URL for the API.
    """

    def __init__(
        self,
        *,
        token: str,
        base_url: str = PYLON_API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            token: Bearer token.
            base_url: Base URL for the API.
            http_client: Pre-built httpx client (tests inject a mock transport).
            timeout: Request timeout in seconds when building our own client.
        """
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self) -> "PylonClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }

    async def search_issues(
        self, cursor: str | None = None, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page:
        """Fetch one page of issues.

        Args:
            cursor: Continuation cursor, None for the first page.
            limit: Page size.

        Returns:
            Page: Parsed tickets and pagination state.

        Raises:
            RateLimitedError: The API returned HTTP 429.
            UpstreamError: Any other non-success or malformed response.
        """
        payload: dict[str, Any] = {ApiRequestKey.LIMIT: limit}
        if cursor:
            payload[ApiRequestKey.CURSOR] = cursor

        url = f"{self.base_url}{API_ISSUE_SEARCH_ENDPOINT}"
        try:
            response = await self._http.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamError(f"{API_ISSUE_SEARCH_ENDPOINT} request failed: {e}") from e

        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimitedError(
                f"{API_ISSUE_SEARCH_ENDPOINT} rate limited: {response.text}",
                retry_after=parse_retry_after(response.headers.get("retry-after")),
            )

        body = self._decode(response, API_ISSUE_SEARCH_ENDPOINT)
        try:
            parsed = SearchResponse.model_validate(body)
        except ValidationError as e:
            raise UpstreamError(
                f"{API_ISSUE_SEARCH_ENDPOINT} returned an unexpected shape: {e}",
                status_code=response.status_code,
            ) from e

        if parsed.errors:
            raise UpstreamError(
                f"{API_ISSUE_SEARCH_ENDPOINT} error: {json.dumps(parsed.errors)}",
                status_code=response.status_code,
            )

        return Page(
            items=[Ticket.from_dict(data=issue) for issue in parsed.data or []],
            has_next_page=parsed.pagination.has_next_page,
            next_cursor=parsed.pagination.cursor,
        )

    async def fetch_users(self) -> dict[str, str]:
        """Fetch the user directory as an id -> display name map.

        Raises:
            UpstreamError: The request failed or returned an error.
        """
        url = f"{self.base_url}{API_USERS_ENDPOINT}"
        try:
            response = await self._http.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamError(f"{API_USERS_ENDPOINT} request failed: {e}") from e

        body = self._decode(response, API_USERS_ENDPOINT)
        try:
            parsed = UsersResponse.model_validate(body)
        except ValidationError as e:
            raise UpstreamError(
                f"{API_USERS_ENDPOINT} returned an unexpected shape: {e}"
            ) from e
        if parsed.errors:
            raise UpstreamError(f"{API_USERS_ENDPOINT} error: {json.dumps(parsed.errors)}")

        directory: dict[str, str] = {}
        for user in parsed.data or []:
            display = user.display_name()
            if user.id and display:
                directory[user.id] = display
        return directory

    async def fetch_user_directory(self) -> dict[str, str]:
        """Like ``fetch_users`` but never fails; an empty map means show raw ids."""
        try:
            directory = await self.fetch_users()
        except UpstreamError as e:
            logger.warning(LogMessage.USERS_UNAVAILABLE.format(e))
            return {}

        logger.info(LogMessage.USERS_LOADED.format(len(directory)))
        return directory

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> Any:
        """Decode a JSON body, raising UpstreamError on failure statuses."""
        try:
            body = response.json()
        except ValueError:
            raise UpstreamError(
                f"{endpoint} returned non-JSON ({response.status_code}): {response.text}",
                status_code=response.status_code,
            ) from None

        if not response.is_success:
            raise UpstreamError(
                f"{endpoint} failed ({response.status_code}): {json.dumps(body)}",
                status_code=response.status_code,
            )
        return body
