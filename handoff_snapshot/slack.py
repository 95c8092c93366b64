"""Slack publisher for the rendered report."""

import httpx
from loguru import logger

from .constants import (
    DEFAULT_HTTP_TIMEOUT,
    SLACK_API_BASE_URL,
    SLACK_POST_MESSAGE_ENDPOINT,
    LogMessage,
)
from .exceptions import PublishError


class SlackPublisher:
    """Posts a text message to one Slack channel."""

    def __init__(
        self,
        *,
        token: str,
        channel: str,
        base_url: str = SLACK_API_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.channel = channel
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._http = http_client

    async def publish(self, text: str) -> None:
        """Post ``text`` to the channel.

        Raises:
            PublishError: The request failed or Slack answered ``ok: false``.
        """
        payload = {
            "channel": self.channel,
            "text": text,
            "unfurl_links": False,
            "unfurl_media": False,
        }
        headers = {"Authorization": f"Bearer {self._token}"}
        url = f"{self.base_url}{SLACK_POST_MESSAGE_ENDPOINT}"

        try:
            if self._http is not None:
                response = await self._http.post(url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT)
                ) as client:
                    response = await client.post(url, json=payload, headers=headers)
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PublishError(f"Slack request failed: {e}") from e

        if not isinstance(data, dict):
            raise PublishError(f"Slack returned an unexpected body: {data!r}")
        if not data.get("ok"):
            raise PublishError(f"Slack error: {data.get('error', 'unknown_error')}")

        logger.debug(LogMessage.SLACK_ACCEPTED.format(self.channel))
