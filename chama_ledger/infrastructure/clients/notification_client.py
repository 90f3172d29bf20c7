"""HTTP implementation of NotificationClient."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

import httpx
import structlog

from chama_ledger.core.config import settings
from chama_ledger.core.metrics import (
    track_notification_latency,
    record_notification_retry,
    record_notification_success,
    record_notification_failure,
)
from chama_ledger.domain.interfaces import NotificationClient

logger = structlog.get_logger(__name__)


class HttpNotificationClient(NotificationClient):
    """
    HTTP client for the group notification webhook.

    Posts ledger events with retry logic and exponential backoff. Delivery
    failures are logged and counted; they never propagate to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        enabled: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url or settings.notification_webhook_url
        self._timeout = timeout or settings.notification_timeout
        self._max_retries = max_retries or settings.notification_max_retries
        self._enabled = settings.notifications_enabled if enabled is None else enabled
        self._transport = transport

    async def send_event(
        self,
        event_type: str,
        group_id: str,
        payload: Dict[str, Any],
    ) -> bool:
        """Send a ledger event to the notification webhook."""
        if not self._enabled:
            logger.debug("notification_skipped", event_type=event_type, group_id=group_id)
            return False

        body = {
            "event": event_type,
            "group_id": group_id,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            **payload,
        }

        return await self._send(body, event_type)

    async def _send(
        self,
        body: Dict[str, Any],
        event_type: str,
    ) -> bool:
        """
        Send a notification with retry logic.

        Uses exponential backoff: 0.1s, 0.2s, 0.4s, ...
        """
        url = self._base_url

        for attempt in range(self._max_retries):
            try:
                with track_notification_latency():
                    async with httpx.AsyncClient(
                        timeout=self._timeout,
                        transport=self._transport,
                    ) as client:
                        response = await client.post(
                            url,
                            json=body,
                            headers={"Content-Type": "application/json"},
                        )

                        if response.status_code < 400:
                            logger.info(
                                "notification_sent",
                                event_type=event_type,
                                status_code=response.status_code,
                            )
                            record_notification_success()
                            return True

                        logger.warning(
                            "notification_failed",
                            event_type=event_type,
                            status_code=response.status_code,
                            attempt=attempt + 1,
                            response=response.text[:200],
                        )

            except httpx.TimeoutException:
                logger.warning(
                    "notification_timeout",
                    event_type=event_type,
                    attempt=attempt + 1,
                )
            except httpx.HTTPError as e:
                logger.error(
                    "notification_error",
                    event_type=event_type,
                    attempt=attempt + 1,
                    error=str(e),
                )

            if attempt < self._max_retries - 1:
                record_notification_retry()
                delay = 2 ** attempt * 0.1
                await asyncio.sleep(delay)

        logger.error(
            "notification_exhausted_retries",
            event_type=event_type,
            max_retries=self._max_retries,
        )
        record_notification_failure()
        return False
