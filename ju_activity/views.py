"""
Derived views over an ActivityData snapshot.

Pure, synchronous lookups used by consumers; none of them talk to the gateway.
"""
from __future__ import annotations

from .const import APPLICATION_APPROVED
from .coordinator_data import ActivityData
from .models import Activity, Application, AttendanceRecord, Notification


def get_activity_by_id(data: ActivityData, activity_id: str) -> Activity | None:
    for activity in data.activities:
        if activity.id == activity_id:
            return activity
    return None


def get_applications_by_activity(data: ActivityData, activity_id: str) -> list[Application]:
    return [app for app in data.applications if app.activity_id == activity_id]


def get_applications_by_student(data: ActivityData, student_id: str) -> list[Application]:
    return [app for app in data.applications if app.student_id == student_id]


def get_approved_applications_by_activity(data: ActivityData, activity_id: str) -> list[Application]:
    return [
        app for app in data.applications
        if app.activity_id == activity_id and app.status == APPLICATION_APPROVED
    ]


def get_attendance_by_activity(data: ActivityData, activity_id: str) -> list[AttendanceRecord]:
    return [record for record in data.attendance if record.activity_id == activity_id]


def get_notifications_for_recipient(data: ActivityData, recipient_id: str | None) -> list[Notification]:
    """Notifications addressed to recipient_id; an anonymous caller sees none."""
    if recipient_id is None:
        return []
    return [notif for notif in data.notifications if notif.recipient_id == recipient_id]


def get_unread_notifications_count(data: ActivityData, recipient_id: str | None) -> int:
    return sum(1 for notif in get_notifications_for_recipient(data, recipient_id) if not notif.read)
