"""
Low-level audit log calls for the gateway (admin only).

Responsible for:
- Searching the audit trail by text, action, actor, target and date range
- Mapping the JSON rows onto AuditLogEntry instances
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ju_activity.api.common import clean_params, parse_items
from ju_activity.models import AuditLogEntry

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


def _parse_audit_log(row: Mapping[str, Any]) -> AuditLogEntry | None:
    """Map a single raw audit log row onto an AuditLogEntry instance."""
    if row.get("id") is None or not row.get("action"):
        _LOGGER.warning("Audit log row %s has no id or action, skipping", row.get("id"))
        return None
    return AuditLogEntry(
        id=str(row["id"]),
        action=str(row["action"]),
        created_at=row.get("createdAt"),
        message=row.get("message"),
        entity=row.get("entity"),
        entity_id=row.get("entityId"),
        actor_id=row.get("actorId"),
        actor_email=row.get("actorEmail"),
        actor_role=row.get("actorRole"),
        target_id=row.get("targetId"),
        target_email=row.get("targetEmail"),
        target_role=row.get("targetRole"),
    )


class AuditLogsApi:
    """Audit log endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        q: str | None = None,
        action: str | None = None,
        actor_id: str | None = None,
        target_id: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[AuditLogEntry]:
        """
        Search the audit trail, newest first. The backend caps ``take`` at 200.

        Corresponding CURL command:
        curl -X 'GET' '<api>/audit-logs?action=USER_CREATED&from=2026-01-01&take=50'
        """
        params = clean_params(
            {
                "q": q,
                "action": action,
                "actor_id": actor_id,
                "target_id": target_id,
                "from": date_from,
                "to": date_to,
                "skip": skip,
                "take": take,
            }
        )
        raw_json = await self._gateway.request("GET", "/audit-logs", params=params)
        return parse_items(_parse_audit_log, raw_json, "audit log row")
