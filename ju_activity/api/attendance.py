"""
Low-level attendance calls for the gateway.

Responsible for:
- Fetching attendance records per activity or per student
- Marking a single student present/absent
- Submitting a whole activity's attendance sheet in one batch
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ju_activity.api.common import clean_params, parse_items, to_payload
from ju_activity.models import AttendanceRecord

if TYPE_CHECKING:
    from ju_activity.gateway import Gateway

_LOGGER = logging.getLogger(__name__)


def _parse_attendance(record: Mapping[str, Any]) -> AttendanceRecord | None:
    """Map a single raw API attendance dict onto an AttendanceRecord instance."""
    if any(record.get(key) is None for key in ("id", "activityId", "studentId")):
        _LOGGER.warning("Attendance record %s is missing id, activityId or studentId, skipping", record.get("id"))
        return None
    return AttendanceRecord(
        id=str(record["id"]),
        activity_id=str(record["activityId"]),
        student_id=str(record["studentId"]),
        student_name=record.get("studentName") or "",
        application_id=str(record.get("applicationId") or ""),
        status=record.get("status") or "",
        marked_by=str(record.get("markedBy") or ""),
        marked_at=record.get("markedAt"),
    )


class AttendanceApi:
    """Attendance endpoints."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def get_all(
        self,
        activity_id: str | None = None,
        student_id: str | None = None,
        status: str | None = None,
    ) -> list[AttendanceRecord]:
        """
        Fetch attendance records.

        Corresponding CURL command:
        curl -X 'GET' '<api>/attendance?activityId=<id>'
        """
        params = clean_params({"activity_id": activity_id, "student_id": student_id, "status": status})
        raw_json = await self._gateway.request("GET", "/attendance", params=params)
        return parse_items(_parse_attendance, raw_json, "attendance record")

    async def mark_attendance(self, fields: Mapping[str, Any]) -> None:
        """
        Mark one student.

        Corresponding CURL command:
        curl -X 'POST' '<api>/attendance' \
             -d '{"activityId": "...", "studentId": "...", "applicationId": "...", "status": "present", ...}'
        """
        await self._gateway.request("POST", "/attendance", payload=to_payload(fields))

    async def batch_mark_attendance(
        self,
        activity_id: str,
        entries: Iterable[Mapping[str, Any]],
        marked_by: str,
    ) -> None:
        """
        Submit attendance for many students of one activity.

        Each entry carries student_id, student_name, application_id and status.

        Corresponding CURL command:
        curl -X 'POST' '<api>/attendance/batch' \
             -d '{"activityId": "...", "attendanceData": [...], "markedBy": "..."}'
        """
        payload = {
            "activityId": activity_id,
            "attendanceData": [to_payload(entry) for entry in entries],
            "markedBy": marked_by,
        }
        await self._gateway.request("POST", "/attendance/batch", payload=payload)
