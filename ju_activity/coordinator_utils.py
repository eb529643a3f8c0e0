"""
Low-level utility functions for the activity coordinator.

Responsibilities:
- Replace / remove entities by id inside immutable collections.
- Merge a freshly fetched attendance sheet into the local attendance records.
- Resolve the approved application a student needs before being marked.
- Build attendance payloads for single and batch marking.

No network access; these functions are pure data primitives.
"""
from __future__ import annotations

import dataclasses
from typing import Iterable, Mapping, TypeVar

from .const import APPLICATION_APPROVED, UNKNOWN_STUDENT_NAME
from .errors import NotApproved, NotFound
from .models import Application, AttendanceRecord, Notification

T = TypeVar("T")


def replace_by_id(items: tuple[T, ...], item_id: str, new_item: T) -> tuple[T, ...]:
    """Return items with every element whose id equals item_id swapped for new_item."""
    return tuple(new_item if item.id == item_id else item for item in items)


def remove_by_id(items: tuple[T, ...], item_id: str) -> tuple[T, ...]:
    return tuple(item for item in items if item.id != item_id)


def merge_attendance(
    current: tuple[AttendanceRecord, ...],
    activity_id: str,
    fresh: Iterable[AttendanceRecord],
) -> tuple[AttendanceRecord, ...]:
    """
    Drop every local record of activity_id, then append the fresh sheet.

    Never merges by record id, so records deleted server-side disappear and no
    record can appear twice.
    """
    others = tuple(record for record in current if record.activity_id != activity_id)
    return others + tuple(fresh)


def find_approved_application(
    applications: Iterable[Application],
    activity_id: str,
    student_id: str,
) -> Application:
    """
    Return the approved application of student_id for activity_id.

    Raises NotFound when the student never applied, NotApproved when the
    application exists but has not been approved.
    """
    candidates = [
        app for app in applications
        if app.activity_id == activity_id and app.student_id == student_id
    ]
    for app in candidates:
        if app.status == APPLICATION_APPROVED:
            return app
    if candidates:
        raise NotApproved(
            f"Application of student {student_id} for activity {activity_id} is not approved"
        )
    raise NotFound(f"Application not found for student {student_id}")


def resolve_student_name(applications: Iterable[Application], student_id: str) -> str:
    """Denormalized display name taken from any application of the student."""
    for app in applications:
        if app.student_id == student_id and app.student_name:
            return app.student_name
    return UNKNOWN_STUDENT_NAME


def build_attendance_entries(
    applications: tuple[Application, ...],
    activity_id: str,
    status_by_student_id: Mapping[str, str],
) -> list[dict[str, str]]:
    """
    Build batch entries, validating every student first.

    Raises on the first student without an approved application, before any
    entry could be sent.
    """
    entries = []
    for student_id, status in status_by_student_id.items():
        application = find_approved_application(applications, activity_id, student_id)
        entries.append(
            {
                "student_id": student_id,
                "student_name": resolve_student_name(applications, student_id),
                "application_id": application.id,
                "status": status,
            }
        )
    return entries


def mark_read(notification: Notification) -> Notification:
    """Copy of a notification with its read flag set."""
    if notification.read:
        return notification
    return dataclasses.replace(notification, read=True)
