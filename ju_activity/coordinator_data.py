"""
ActivityData: immutable snapshot of the domain collections shared with consumers.

This is a pure data module with no network dependencies.
"""
from __future__ import annotations

import dataclasses

from .models import Activity, Application, AttendanceRecord, Notification


@dataclasses.dataclass(frozen=True)
class ActivityData:
    """
    Typed, copy-on-write snapshot of the current session's domain state.

    Always replace via dataclasses.replace(); never mutate in place.
    """

    activities: tuple[Activity, ...] = ()
    applications: tuple[Application, ...] = ()

    # Everything the gateway returned; admins receive every recipient's notifications
    notifications: tuple[Notification, ...] = ()

    # Students: their own records; other roles: records fetched per activity on demand
    attendance: tuple[AttendanceRecord, ...] = ()

    is_loading: bool = False
