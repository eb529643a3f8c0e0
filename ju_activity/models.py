"""
Domain models for the JU activity client.

This module contains pure data classes representing the entities served by the
gateway. They have no dependencies on HTTP, API logic or the state stores.
Mapping from/to the gateway's camelCase JSON lives in the api package.
"""
from __future__ import annotations

import dataclasses

from .const import USER_ACTIVE


@dataclasses.dataclass(frozen=True)
class Identity:
    """Representation of a signed-in principal and its profile."""

    id: str
    name: str
    email: str
    role: str
    department: str | None = None
    student_id: str | None = None
    avatar: str | None = None
    status: str = USER_ACTIVE
    joined_at: str | None = None


@dataclasses.dataclass(frozen=True)
class Activity:
    """Representation of a single schedulable activity."""

    id: str
    title: str
    description: str = ""
    category: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    capacity: int = 0
    enrolled: int = 0
    coordinator_id: str | None = None
    coordinator_name: str | None = None
    status: str | None = None

    @property
    def is_full(self) -> bool:
        return self.enrolled >= self.capacity


@dataclasses.dataclass(frozen=True)
class Application:
    """A student's request to join an activity."""

    id: str
    activity_id: str
    student_id: str
    student_name: str = ""
    activity_title: str = ""
    applied_at: str | None = None
    status: str = "pending"
    notes: str | None = None


@dataclasses.dataclass(frozen=True)
class Notification:
    """A message addressed to one recipient."""

    id: str
    title: str
    message: str
    type: str
    read: bool = False
    created_at: str | None = None
    recipient_id: str | None = None
    sender_role: str | None = None


@dataclasses.dataclass(frozen=True)
class AttendanceRecord:
    """Presence/absence mark for an approved application."""

    id: str
    activity_id: str
    student_id: str
    student_name: str
    application_id: str
    status: str
    marked_by: str
    marked_at: str | None = None


@dataclasses.dataclass(frozen=True)
class AuditLogEntry:
    """One administrative action recorded by the backend."""

    id: str
    action: str
    created_at: str | None = None
    message: str | None = None
    entity: str | None = None
    entity_id: str | None = None
    actor_id: str | None = None
    actor_email: str | None = None
    actor_role: str | None = None
    target_id: str | None = None
    target_email: str | None = None
    target_role: str | None = None
