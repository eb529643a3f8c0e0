"""
Low-level activity calls for the gateway.

Responsible for:
- Fetching the activity list and single activities
- Creating, updating and deleting activities
- Mapping the JSON response fields onto Activity model instances
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from ju_activity.api.common import clean_params, parse_item, parse_items, to_payload
from ju_activity.models import Activity

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


def _parse_activity(activity: Mapping[str, Any]) -> Activity | None:
    """Map a single raw API activity dict onto an Activity instance."""
    if activity.get("id") is None:
        _LOGGER.warning("Activity %r has no id, skipping", activity.get("title"))
        return None
    coordinator_id = activity.get("coordinatorId")
    return Activity(
        id=str(activity["id"]),
        title=activity.get("title") or "",
        description=activity.get("description") or "",
        category=activity.get("category") or "",
        date=activity.get("date") or "",
        time=activity.get("time") or "",
        location=activity.get("location") or "",
        capacity=int(activity.get("capacity") or 0),
        enrolled=int(activity.get("enrolled") or 0),
        coordinator_id=str(coordinator_id) if coordinator_id is not None else None,
        coordinator_name=activity.get("coordinatorName"),
        status=activity.get("status"),
    )


class ActivitiesApi:
    """Activity endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        status: str | None = None,
        category: str | None = None,
        coordinator_id: str | None = None,
    ) -> list[Activity]:
        """
        Fetch all activities visible to the caller.

        Corresponding CURL command:
        curl -X 'GET' '<api>/activities?status=upcoming'
        """
        params = clean_params(
            {"status": status, "category": category, "coordinator_id": coordinator_id}
        )
        raw_json = await self._gateway.request("GET", "/activities", params=params)
        return parse_items(_parse_activity, raw_json, "activity")

    async def get_by_id(self, activity_id: str) -> Activity:
        raw_json = await self._gateway.request("GET", f"/activities/{activity_id}")
        return parse_item(_parse_activity, raw_json, "activity")

    async def create(self, fields: Mapping[str, Any]) -> Activity:
        """
        Create an activity; the gateway fills in coordinator and enrollment fields.

        Corresponding CURL command:
        curl -X 'POST' '<api>/activities' -d '{"title": "...", "capacity": 30, ...}'
        """
        raw_json = await self._gateway.request("POST", "/activities", payload=to_payload(fields))
        return parse_item(_parse_activity, raw_json, "activity")

    async def update(self, activity_id: str, patch: Mapping[str, Any]) -> Activity:
        raw_json = await self._gateway.request(
            "PUT", f"/activities/{activity_id}", payload=to_payload(patch)
        )
        return parse_item(_parse_activity, raw_json, "activity")

    async def delete(self, activity_id: str) -> None:
        await self._gateway.request("DELETE", f"/activities/{activity_id}")
