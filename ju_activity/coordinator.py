"""
ActivityCoordinator: the domain state store of the JU activity client.

Responsibilities:
- Own the ActivityData snapshot (activities, applications, notifications,
  attendance) for the current identity and push every new snapshot to listeners.
- Full refresh keyed by identity and role: activities first, then
  applications / notifications / attendance concurrently.
- Background notification polling every NOTIFICATIONS_INTERVAL seconds and on
  demand when the client comes back to the foreground.
- Mutators that delegate to the gateway, then either patch the snapshot locally
  (side effects fully known) or refetch (status changes, attendance sheets).
- Derived views bound to the current snapshot (see views.py).
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Mapping

from .const import (
    ACTIVITY_MANAGER_ROLES,
    APPLICATION_PATCH_FIELDS,
    NOTIFICATIONS_INTERVAL,
    ROLE_ADMIN,
    ROLE_STUDENT,
)
from .coordinator_data import ActivityData
from .coordinator_utils import (
    build_attendance_entries,
    find_approved_application,
    mark_read,
    merge_attendance,
    remove_by_id,
    replace_by_id,
    resolve_student_name,
)
from .errors import Forbidden, NotFound, Unauthenticated, UnsupportedOperation
from .gateway import Gateway
from .models import Activity, Application, AttendanceRecord, Identity, Notification
from .session import SessionStore
from . import views

__all__ = ["ActivityCoordinator", "ActivityData"]

_LOGGER = logging.getLogger(__name__)

DataListener = Callable[[ActivityData], None]


async def _empty() -> list:
    """Placeholder result for fetches skipped without a token."""
    return []


class ActivityCoordinator:
    """
    Single writer of the domain collections for the current session.

    Consumers read `data` (an immutable snapshot) or the derived views and
    subscribe with add_listener(); they never modify collections directly.
    """

    def __init__(
        self,
        gateway: Gateway,
        session: SessionStore,
        notifications_interval: float = NOTIFICATIONS_INTERVAL,
    ) -> None:
        self.gateway = gateway
        self.session = session
        self.notifications_interval = notifications_interval

        # Snapshot starts empty; consumers must handle empty collections until first refresh
        self.data = ActivityData()
        self._listeners: list[DataListener] = []

        # Incremented by every refresh; a refresh whose number is outdated drops its results
        self._refresh_generation: int = 0

        # Notification polling
        self._poll_task: asyncio.Task | None = None
        self._poll_generation: int = 0
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Snapshot plumbing
    # ------------------------------------------------------------------

    @property
    def identity(self) -> Identity | None:
        return self.session.identity

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    def add_listener(self, listener: DataListener) -> Callable[[], None]:
        """Call listener(snapshot) after every snapshot change; returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def set_updated_data(self, data: ActivityData) -> None:
        """Publish a new snapshot."""
        self.data = data
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception as exc:  # noqa: BLE001
                _LOGGER.error("Activity data listener failed: %s", exc)

    def _patch(self, **changes: Any) -> None:
        self.set_updated_data(dataclasses.replace(self.data, **changes))

    def _require_identity(self, action: str) -> Identity:
        identity = self.session.identity
        if identity is None:
            raise Unauthenticated(f"You must be logged in to {action}.")
        return identity

    # ------------------------------------------------------------------
    # Full refresh
    # ------------------------------------------------------------------

    async def refresh_data(self) -> None:
        """
        Reload every collection for the current identity.

        Activities are fetched and published first; the other three collections
        are fetched concurrently afterwards. Without a token those three are
        replaced with empty placeholders. Any failure empties all collections.
        """
        self._refresh_generation += 1
        generation = self._refresh_generation

        identity = self.session.identity
        if identity is None:
            self.set_updated_data(ActivityData())
            return

        has_token = bool(self.session.token)
        self._patch(is_loading=True)
        try:
            activities = await self.gateway.activities.get_all()
            if generation != self._refresh_generation:
                _LOGGER.debug("Dropping activities of superseded refresh %s", generation)
                return
            self._patch(activities=tuple(activities))

            applications, notifications, attendance = await asyncio.gather(
                self._fetch_applications(identity) if has_token else _empty(),
                self._fetch_notifications(identity) if has_token else _empty(),
                self._fetch_own_attendance(identity) if has_token else _empty(),
            )
            if generation != self._refresh_generation:
                _LOGGER.debug("Dropping results of superseded refresh %s", generation)
                return
            self._patch(
                applications=tuple(applications),
                notifications=tuple(notifications),
                attendance=tuple(attendance),
            )
        except Exception as exc:  # noqa: BLE001
            if generation != self._refresh_generation:
                return
            _LOGGER.error("Failed to load data: %s", exc)
            # Never keep partial or stale collections for an authenticated session
            self.set_updated_data(ActivityData(is_loading=True))
        finally:
            if generation == self._refresh_generation and self.data.is_loading:
                self._patch(is_loading=False)

    async def _fetch_applications(self, identity: Identity) -> list[Application]:
        if identity.role == ROLE_STUDENT:
            return await self.gateway.applications.get_all(student_id=identity.id)
        return await self.gateway.applications.get_all()

    async def _fetch_notifications(self, identity: Identity) -> list[Notification]:
        if identity.role == ROLE_ADMIN:
            return await self.gateway.notifications.get_all()
        return await self.gateway.notifications.get_all(recipient_id=identity.id)

    async def _fetch_own_attendance(self, identity: Identity) -> list[AttendanceRecord]:
        # Coordinators and admins load attendance per activity on demand
        if identity.role == ROLE_STUDENT:
            return await self.gateway.attendance.get_all(student_id=identity.id)
        return []

    def clear_all_activity_data(self) -> None:
        """Drop every local collection without touching the gateway."""
        self._refresh_generation += 1
        self.set_updated_data(ActivityData())

    # ------------------------------------------------------------------
    # Identity changes
    # ------------------------------------------------------------------

    def handle_identity_changed(self, identity: Identity | None) -> None:
        """SessionStore listener: reload (or discard) data for the new identity."""
        self._create_task(self.async_identity_changed(identity))

    async def async_identity_changed(self, identity: Identity | None) -> None:
        self.stop_polling()
        if identity is None:
            self.clear_all_activity_data()
            return
        await self.refresh_data()
        self.start_polling()

    def _create_task(self, coro) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ------------------------------------------------------------------
    # Background notification polling
    # ------------------------------------------------------------------

    def start_polling(self) -> None:
        """Start polling notifications; needs an identity and a token."""
        if self.is_polling:
            return
        if self.session.identity is None or not self.session.token:
            _LOGGER.debug("Not polling notifications: no identity or token")
            return
        self._poll_generation += 1
        self._poll_task = asyncio.ensure_future(self._poll_loop(self._poll_generation))

    def stop_polling(self) -> None:
        """Stop polling; responses still in flight are discarded."""
        self._poll_generation += 1
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def notify_visible(self) -> None:
        """The client came back to the foreground: fetch notifications now."""
        if not self.is_polling:
            return
        self._create_task(self._refresh_notifications(self._poll_generation))

    async def refresh_notifications(self) -> None:
        """Best-effort notification refresh outside the polling schedule."""
        await self._refresh_notifications(self._poll_generation)

    async def _poll_loop(self, generation: int) -> None:
        while generation == self._poll_generation:
            await asyncio.sleep(self.notifications_interval)
            await self._refresh_notifications(generation)

    async def _refresh_notifications(self, generation: int) -> None:
        identity = self.session.identity
        if identity is None or not self.session.token:
            return
        try:
            latest = await self._fetch_notifications(identity)
        except Exception as exc:  # noqa: BLE001
            _LOGGER.debug("Notification poll failed: %s", exc)
            return
        if generation != self._poll_generation or self.session.identity != identity:
            _LOGGER.debug("Discarding notifications from a stopped poller")
            return
        self._patch(notifications=tuple(latest))

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    async def create_activity(self, fields: Mapping[str, Any]) -> Activity:
        """
        Create an activity as admin or coordinator.

        Only admins may assign the activity to another coordinator; the
        coordinator_id field is dropped for coordinators.
        """
        identity = self._require_identity("create an activity")
        if identity.role not in ACTIVITY_MANAGER_ROLES:
            raise Forbidden("You do not have permission to create activities")

        payload = dict(fields)
        coordinator_id = payload.pop("coordinator_id", None)
        if identity.role == ROLE_ADMIN and coordinator_id:
            payload["coordinator_id"] = coordinator_id

        activity = await self.gateway.activities.create(payload)
        self._patch(activities=remove_by_id(self.data.activities, activity.id) + (activity,))
        return activity

    async def update_activity(self, activity_id: str, patch: Mapping[str, Any]) -> Activity:
        activity = await self.gateway.activities.update(activity_id, patch)
        self._patch(activities=replace_by_id(self.data.activities, activity_id, activity))
        return activity

    async def delete_activity(self, activity_id: str) -> None:
        """Delete an activity; its applications are cascade-deleted server-side and mirrored here."""
        await self.gateway.activities.delete(activity_id)
        self._patch(
            activities=remove_by_id(self.data.activities, activity_id),
            applications=tuple(
                app for app in self.data.applications if app.activity_id != activity_id
            ),
        )

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    async def create_application(self, fields: Mapping[str, Any]) -> Application:
        """
        Apply the current identity to an activity.

        The student fields always come from the identity. After the application
        is stored the activity is re-fetched, since the gateway owns enrollment counts.
        """
        identity = self._require_identity("apply for an activity")
        activity_id = fields.get("activity_id")
        if activity_id is None or self.get_activity_by_id(activity_id) is None:
            raise NotFound("Activity not found")

        payload = {
            key: value for key, value in fields.items()
            if key not in ("student_id", "student_name")
        }
        payload["student_id"] = identity.id
        payload["student_name"] = identity.name

        application = await self.gateway.applications.create(payload)
        self._patch(applications=self.data.applications + (application,))

        activity = await self.gateway.activities.get_by_id(activity_id)
        self._patch(activities=replace_by_id(self.data.activities, activity_id, activity))
        return application

    async def update_application(self, application_id: str, patch: Mapping[str, Any]) -> None:
        """
        Change an application's status (with optional notes), then reload everything.

        Status transitions create notifications and move enrollment counts
        server-side, so the snapshot is rebuilt with refresh_data().
        """
        if not patch.get("status") or set(patch) - APPLICATION_PATCH_FIELDS:
            raise UnsupportedOperation("Only status updates are supported")
        if not any(app.id == application_id for app in self.data.applications):
            raise NotFound("Application not found")

        await self.gateway.applications.update_status(
            application_id, patch["status"], patch.get("notes")
        )
        await self.refresh_data()

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------

    async def mark_attendance(
        self,
        activity_id: str,
        student_id: str,
        status: str,
        marked_by: str,
    ) -> None:
        applications = self.data.applications
        application = find_approved_application(applications, activity_id, student_id)

        await self.gateway.attendance.mark_attendance(
            {
                "activity_id": activity_id,
                "student_id": student_id,
                "student_name": resolve_student_name(applications, student_id),
                "application_id": application.id,
                "status": status,
                "marked_by": marked_by,
            }
        )
        await self.refresh_attendance_for_activity(activity_id)

    async def save_attendance_batch(
        self,
        activity_id: str,
        status_by_student_id: Mapping[str, str],
        marked_by: str,
    ) -> None:
        """Submit a whole attendance sheet; nothing is sent unless every student is approved."""
        self._require_identity("mark attendance")
        entries = build_attendance_entries(self.data.applications, activity_id, status_by_student_id)

        await self.gateway.attendance.batch_mark_attendance(activity_id, entries, marked_by)
        await self.refresh_attendance_for_activity(activity_id)

    async def refresh_attendance_for_activity(self, activity_id: str) -> list[AttendanceRecord]:
        records = await self.gateway.attendance.get_all(activity_id=activity_id)
        self._patch(attendance=merge_attendance(self.data.attendance, activity_id, records))
        return records

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def create_notification(self, fields: Mapping[str, Any]) -> Notification:
        notification = await self.gateway.notifications.create(fields)
        self._patch(notifications=(notification,) + self.data.notifications)
        return notification

    async def mark_notification_as_read(self, notification_id: str) -> None:
        identity = self._require_identity("read notifications")
        await self.gateway.notifications.mark_as_read(notification_id)
        self._patch(
            notifications=tuple(
                mark_read(notif)
                if notif.id == notification_id and notif.recipient_id == identity.id
                else notif
                for notif in self.data.notifications
            )
        )

    async def mark_all_notifications_as_read(self) -> None:
        identity = self._require_identity("read notifications")
        await self.gateway.notifications.mark_all_as_read(identity.id)
        self._patch(
            notifications=tuple(
                mark_read(notif) if notif.recipient_id == identity.id else notif
                for notif in self.data.notifications
            )
        )

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def user_notifications(self) -> list[Notification]:
        """Notifications addressed to the current identity."""
        identity = self.session.identity
        return views.get_notifications_for_recipient(self.data, identity.id if identity else None)

    def get_activity_by_id(self, activity_id: str) -> Activity | None:
        return views.get_activity_by_id(self.data, activity_id)

    def get_applications_by_activity(self, activity_id: str) -> list[Application]:
        return views.get_applications_by_activity(self.data, activity_id)

    def get_applications_by_student(self, student_id: str) -> list[Application]:
        return views.get_applications_by_student(self.data, student_id)

    def get_approved_applications_by_activity(self, activity_id: str) -> list[Application]:
        return views.get_approved_applications_by_activity(self.data, activity_id)

    def get_attendance_by_activity(self, activity_id: str) -> list[AttendanceRecord]:
        return views.get_attendance_by_activity(self.data, activity_id)

    def get_unread_notifications_count(self) -> int:
        identity = self.session.identity
        return views.get_unread_notifications_count(self.data, identity.id if identity else None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def async_shutdown(self) -> None:
        """Stop polling and cancel every background task owned by this coordinator."""
        poll_task = self._poll_task
        self.stop_polling()
        tasks = list(self._tasks)
        if poll_task is not None:
            tasks.append(poll_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
