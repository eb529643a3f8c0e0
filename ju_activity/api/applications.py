"""
Low-level application calls for the gateway.

Responsible for:
- Fetching applications (optionally filtered by student, activity or status)
- Submitting new applications
- Requesting status transitions (approve / reject)
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ju_activity.api.common import clean_params, parse_item, parse_items, to_payload
from ju_activity.const import APPLICATION_PENDING
from ju_activity.models import Application

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


def _parse_application(application: Mapping[str, Any]) -> Application | None:
    """Map a single raw API application dict onto an Application instance."""
    if any(application.get(key) is None for key in ("id", "activityId", "studentId")):
        _LOGGER.warning("Application %s is missing id, activityId or studentId, skipping", application.get("id"))
        return None
    return Application(
        id=str(application["id"]),
        activity_id=str(application["activityId"]),
        student_id=str(application["studentId"]),
        student_name=application.get("studentName") or "",
        activity_title=application.get("activityTitle") or "",
        applied_at=application.get("appliedAt"),
        status=application.get("status") or APPLICATION_PENDING,
        notes=application.get("notes"),
    )


class ApplicationsApi:
    """Application endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        status: str | None = None,
        student_id: str | None = None,
        activity_id: str | None = None,
    ) -> list[Application]:
        """
        Fetch applications; the gateway restricts the result to what the caller may see.

        Corresponding CURL command:
        curl -X 'GET' '<api>/applications?studentId=<id>'
        """
        params = clean_params({"status": status, "student_id": student_id, "activity_id": activity_id})
        raw_json = await self._gateway.request("GET", "/applications", params=params)
        return parse_items(_parse_application, raw_json, "application")

    async def create(self, fields: Mapping[str, Any]) -> Application:
        raw_json = await self._gateway.request("POST", "/applications", payload=to_payload(fields))
        return parse_item(_parse_application, raw_json, "application")

    async def update_status(self, application_id: str, status: str, notes: str | None = None) -> None:
        """
        Move an application to a new status.

        Corresponding CURL command:
        curl -X 'PUT' '<api>/applications/<id>/status' -d '{"status": "approved", "notes": "..."}'
        """
        await self._gateway.request(
            "PUT",
            f"/applications/{application_id}/status",
            payload=to_payload({"status": status, "notes": notes}),
        )
