"""
Outbound notifications

Sessions hand each event to a Notifier and move on. Delivery happens in
background tasks; a slow or failing webhook never holds up a connection.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Set

import httpx
import structlog

from honeypot.config import Settings
from honeypot.exceptions import NotificationError
from honeypot.models import JoinEvent, PingEvent

logger = structlog.get_logger()


def format_ping_message(event: PingEvent) -> Dict[str, Any]:
    """Discord webhook body for a status query."""
    return {
        "content": (
            f"Ping from [{event.peer_address}](https://ipinfo.io/{event.ip}/json) "
            f"({event.server_address}:{event.server_port}) "
            f"v{event.protocol_version} #{event.sequence}"
        )
    }


def format_join_message(event: JoinEvent) -> Dict[str, Any]:
    """Discord webhook body for a login attempt."""
    return {
        "content": (
            f"Join from [{event.username}](<https://laby.net/@{event.username}>) "
            f"[{event.peer_address}](https://ipinfo.io/{event.ip}/json) "
            f"({event.server_address}:{event.server_port}) "
            f"v{event.protocol_version} #{event.sequence}"
        )
    }


class Notifier(ABC):
    """Capability handed to every session for reporting what it saw."""

    @abstractmethod
    def notify_ping(self, event: PingEvent) -> None:
        pass

    @abstractmethod
    def notify_join(self, event: JoinEvent) -> None:
        pass

    async def aclose(self) -> None:
        """Release resources and wait for pending deliveries."""
        pass


class NullNotifier(Notifier):
    """Used when no destination is configured."""

    def notify_ping(self, event: PingEvent) -> None:
        pass

    def notify_join(self, event: JoinEvent) -> None:
        pass


class WebhookNotifier(Notifier):
    """
    Posts events as JSON to per-event webhook URLs.

    A missing URL disables that event type. Each post runs as its own task;
    failures are logged and dropped.
    """

    def __init__(
        self,
        ping_url: Optional[str] = None,
        join_url: Optional[str] = None,
        timeout_sec: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.ping_url = ping_url or None
        self.join_url = join_url or None
        self.timeout_sec = timeout_sec
        self._client = client
        self._owns_client = client is None
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def notify_ping(self, event: PingEvent) -> None:
        self._dispatch("ping", self.ping_url, format_ping_message(event))

    def notify_join(self, event: JoinEvent) -> None:
        self._dispatch("join", self.join_url, format_join_message(event))

    def _dispatch(self, kind: str, url: Optional[str], body: Dict[str, Any]) -> None:
        if not url:
            return
        task = asyncio.create_task(self._deliver(kind, url, body))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_sec)
        return self._client

    async def _deliver(self, kind: str, url: str, body: Dict[str, Any]) -> None:
        try:
            await self.send(url, body)
            logger.debug("webhook_delivered", kind=kind)
        except NotificationError as e:
            logger.warning("webhook_delivery_failed", kind=kind, error=e.message, **e.details)

    async def send(self, url: str, body: Dict[str, Any]) -> None:
        """
        Post one message and wait for the response.

        Raises:
            NotificationError: transport failure or non-2xx status
        """
        try:
            response = await self._get_client().post(url, json=body, timeout=self.timeout_sec)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                "webhook rejected message",
                details={"status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NotificationError(
                f"webhook request failed: {e}",
                details={"error_type": type(e).__name__},
            ) from e

    async def aclose(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _url_or_none(url) -> Optional[str]:
    return str(url) if url else None


def build_notifier(settings: Settings) -> Notifier:
    """WebhookNotifier if any destination is configured, else NullNotifier."""
    if not settings.webhook_ping and not settings.webhook_kick:
        logger.info("notifications_disabled")
        return NullNotifier()

    logger.info(
        "notifications_enabled",
        ping=bool(settings.webhook_ping),
        join=bool(settings.webhook_kick),
    )
    return WebhookNotifier(
        ping_url=_url_or_none(settings.webhook_ping),
        join_url=_url_or_none(settings.webhook_kick),
        timeout_sec=settings.webhook_timeout_sec,
    )
