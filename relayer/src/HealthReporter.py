"""HealthReporter: Best-effort heartbeat to an Uptime Kuma push monitor."""

from __future__ import annotations

import logging

import httpx

from .errors import HeartbeatError

logger = logging.getLogger(__name__)


class HealthReporter:
    """Fire-and-forget heartbeat sender.

    Delivery failures are logged and swallowed; a heartbeat never affects the
    relay loop and is never retried.

    :ivar base_url: Base URL of the monitoring service.
    :ivar key: Push monitor key. Heartbeats are disabled without it.
    :ivar environment: Label reported with each heartbeat.
    :ivar timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        key: str | None,
        environment: str = "unknown",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the reporter.

        :param base_url: Base URL of the monitoring service.
        :param key: Push monitor key, or None to disable heartbeats.
        :param environment: Label reported with each heartbeat.
        :param timeout: Request timeout in seconds (default: 10.0).
        :param client: Optional HTTP client. One is created if not provided.
        """
        self.base_url = base_url.rstrip("/")
        self.key = key
        self.environment = environment
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def enabled(self) -> bool:
        return bool(self.key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(follow_redirects=True)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this reporter created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(self, count: int) -> None:
        label = self.environment.replace(" ", "")
        try:
            response = await self._get_client().get(
                f"{self.base_url}/api/push/{self.key}",
                params={"status": "up", "msg": f"{label}FulfillingOK", "ping": count},
                timeout=self.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise HeartbeatError(f"Error sending heartbeat: {e}") from e
        if not response.is_success:
            raise HeartbeatError(f"Heartbeat rejected: HTTP {response.status_code}")

    async def report(self, count: int) -> bool:
        """Send one heartbeat.

        :param count: Counter reported as the monitor's ping value.
        :returns: True if the heartbeat was delivered.
        """
        if not self.enabled:
            return False
        try:
            await self._send(count)
        except Exception as e:
            logger.error(f"Failed to send heartbeat: {type(e).__name__}: {e}")
            return False
        logger.info("Heartbeat sent successfully")
        return True
