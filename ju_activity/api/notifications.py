"""
Low-level notification calls for the gateway.

Responsible for:
- Fetching notifications (all, or per recipient)
- Relaying new notifications
- Marking notifications as read, one at a time or per recipient
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ju_activity.api.common import clean_params, parse_item, parse_items, to_payload
from ju_activity.errors import GatewayFailure
from ju_activity.models import Notification

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


def _parse_notification(notification: Mapping[str, Any]) -> Notification | None:
    """Map a single raw API notification dict onto a Notification instance."""
    if notification.get("id") is None:
        _LOGGER.warning("Notification %r has no id, skipping", notification.get("title"))
        return None
    recipient_id = notification.get("recipientId")
    return Notification(
        id=str(notification["id"]),
        title=notification.get("title") or "",
        message=notification.get("message") or "",
        type=notification.get("type") or "",
        read=bool(notification.get("read")),
        created_at=notification.get("createdAt"),
        recipient_id=str(recipient_id) if recipient_id is not None else None,
        sender_role=notification.get("senderRole"),
    )


class NotificationsApi:
    """Notification endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        recipient_id: str | None = None,
        read: bool | None = None,
        type: str | None = None,
    ) -> list[Notification]:
        """
        Fetch notifications, newest first.

        Corresponding CURL command:
        curl -X 'GET' '<api>/notifications?recipientId=<id>&read=false'
        """
        params = clean_params({"recipient_id": recipient_id, "read": read, "type": type})
        raw_json = await self._gateway.request("GET", "/notifications", params=params)
        return parse_items(_parse_notification, raw_json, "notification")

    async def get_unread_count(self, recipient_id: str | None = None) -> int:
        """
        Count unread notifications, optionally for one recipient.

        Corresponding CURL command:
        curl -X 'GET' '<api>/notifications/unread/count?recipientId=<id>'
        """
        raw_json = await self._gateway.request(
            "GET", "/notifications/unread/count", params=clean_params({"recipient_id": recipient_id})
        )
        if isinstance(raw_json, bool) or not isinstance(raw_json, int):
            raise GatewayFailure(f"Unexpected unread count from backend: {raw_json!r}")
        return raw_json

    async def create(self, fields: Mapping[str, Any]) -> Notification:
        raw_json = await self._gateway.request("POST", "/notifications", payload=to_payload(fields))
        return parse_item(_parse_notification, raw_json, "notification")

    async def mark_as_read(self, notification_id: str) -> None:
        await self._gateway.request("PUT", f"/notifications/{notification_id}/read")

    async def mark_all_as_read(self, recipient_id: str | None = None) -> None:
        """
        Mark every notification of a recipient as read.

        Corresponding CURL command:
        curl -X 'PUT' '<api>/notifications/read/all?recipientId=<id>'
        """
        await self._gateway.request(
            "PUT", "/notifications/read/all", params=clean_params({"recipient_id": recipient_id})
        )
