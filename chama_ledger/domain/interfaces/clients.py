"""External client interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class NotificationClient(ABC):
    """
    Abstract client for the group notification webhook.

    Sends ledger events (payment submitted, loan approved, ...) so that
    members and admins can be notified outside this service.
    """

    @abstractmethod
    async def send_event(
        self,
        event_type: str,
        group_id: str,
        payload: Dict[str, Any],
    ) -> bool:
        """
        Deliver a ledger event.

        Args:
            event_type: Event name, e.g. "payment_approved"
            group_id: Group the event belongs to
            payload: Event details (ids and amounts in cents)

        Returns:
            True if the event was delivered

        Note:
            Implementations should handle retries with backoff and never
            raise on delivery failure.
        """
        ...
