"""ntfy integration -- output-only transport for alert notifications.

Publishes JSON messages to an ntfy server (https://ntfy.sh or self-hosted).
Authentication is delegated entirely to ntfy: an access token is sent as a
bearer token, otherwise username/password as HTTP basic auth.
"""

from __future__ import annotations

import logging

import httpx

from core.config import NtfyConfig
from core.errors import NotificationSendFailed
from core.protocols import DeliveryResult

logger = logging.getLogger(__name__)


class NtfySender:
    """Sends alert notifications to an ntfy topic.

    Implements the NotificationSink protocol.
    """

    def __init__(
        self,
        config: NtfyConfig,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=timeout)
        if config.token.startswith("${"):
            logger.warning(
                "ntfy token %s looks like an unset environment variable; "
                "it will be sent as-is and override basic auth", config.token,
            )

    @property
    def name(self) -> str:
        return "ntfy"

    async def send(self, ticker: str, name: str, message: str, price: float) -> DeliveryResult:
        """Send one alert notification."""
        title = f"💰 {name or ticker} Alert"
        body = f"{message}\n\nCurrent price: ${price:.2f}"
        tags = ["chart_with_upwards_trend", ticker]

        try:
            await self.publish(ticker, title, body, tags)
        except NotificationSendFailed as exc:
            logger.error("%s", exc.message)
            return DeliveryResult(success=False, adapter=self.name, message=exc.message)

        logger.info("Sent ntfy alert for %s", ticker)
        return DeliveryResult(success=True, adapter=self.name, message="Delivered")

    async def publish(self, ticker: str, title: str, message: str, tags: list[str]) -> None:
        """POST a notification to the configured server."""
        payload = {
            "topic": self._config.topic,
            "message": message,
            "title": title,
            "priority": self._config.priority,
            "tags": tags,
        }

        try:
            response = await self._client.post(
                self._config.server,
                json=payload,
                headers=self._auth_headers(),
                auth=self._basic_auth(),
            )
        except httpx.HTTPError as exc:
            raise NotificationSendFailed(ticker, str(exc)) from exc

        if not response.is_success:
            raise NotificationSendFailed(ticker, f"ntfy returned status {response.status_code}")

    def _auth_headers(self) -> dict[str, str]:
        # Token auth takes precedence
        if self._config.token:
            return {"Authorization": f"Bearer {self._config.token}"}
        return {}

    def _basic_auth(self) -> httpx.BasicAuth | None:
        if self._config.token:
            return None
        if self._config.username and self._config.password:
            return httpx.BasicAuth(self._config.username, self._config.password)
        return None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
