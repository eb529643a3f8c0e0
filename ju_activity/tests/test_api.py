"""
Tests for the resource API groups: request shapes and JSON mapping.
"""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock

import aiohttp

from ju_activity.api.auth import LoginResponse
from ju_activity.api.common import clean_params, to_payload
from ju_activity.api.users import identity_to_json, parse_identity, parse_identity_changes
from ju_activity.errors import GatewayFailure
from ju_activity.gateway import Gateway

USER_JSON = {
    "id": 7,
    "name": "Sara Ali",
    "email": "sara@ju.edu",
    "role": "student",
    "department": "CS",
    "studentId": "JU-7",
    "createdAt": "2026-01-01",
}


class TestHelpers(unittest.TestCase):

    def test_to_payload_camel_cases_and_drops_none(self):
        self.assertEqual(
            to_payload({"student_id": "s1", "activity_title": "Chess", "notes": None}),
            {"studentId": "s1", "activityTitle": "Chess"},
        )

    def test_clean_params(self):
        self.assertIsNone(clean_params({"recipient_id": None}))
        self.assertEqual(
            clean_params({"recipient_id": "s1", "read": False}),
            {"recipientId": "s1", "read": "false"},
        )

    def test_identity_json_roundtrip_keeps_camel_case_shape(self):
        identity = parse_identity(USER_JSON)
        self.assertEqual(identity.id, "7")
        self.assertEqual(identity.student_id, "JU-7")
        self.assertEqual(identity.joined_at, "2026-01-01")
        self.assertEqual(identity.status, "active")
        self.assertEqual(identity_to_json(identity)["studentId"], "JU-7")

    def test_identity_changes_only_carry_present_keys(self):
        changes = parse_identity_changes({"id": 7, "name": "Sara A.", "avatar": "", "department": None})

        self.assertEqual(changes, {"id": "7", "name": "Sara A."})
        self.assertNotIn("status", changes)

    def test_identity_changes_reject_non_object(self):
        with self.assertRaises(GatewayFailure):
            parse_identity_changes(None)

    def test_login_response(self):
        response = LoginResponse({"success": True, "token": "tok", "user": USER_JSON})
        self.assertTrue(response.success)
        self.assertEqual(response.token, "tok")
        self.assertEqual(response.identity.email, "sara@ju.edu")

        failed = LoginResponse({"success": False, "message": "Invalid"})
        self.assertFalse(failed.success)
        self.assertIsNone(failed.identity)


class TestResourceApis(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = Gateway("http://api")
        self.gateway.request = AsyncMock(return_value=None)

    def _call(self):
        return self.gateway.request.call_args

    async def test_auth_me(self):
        self.gateway.request.return_value = {"success": True, "user": USER_JSON}
        success, identity = await self.gateway.auth.me()

        self.assertTrue(success)
        self.assertEqual(identity.name, "Sara Ali")
        self.assertEqual(self._call().args, ("GET", "/auth/me"))

    async def test_auth_me_without_user_is_not_verified(self):
        self.gateway.request.return_value = {"success": True}
        success, identity = await self.gateway.auth.me()

        self.assertFalse(success)
        self.assertIsNone(identity)

    async def test_activities_get_all_parses_list(self):
        self.gateway.request.return_value = [
            {"id": "a1", "title": "Chess", "capacity": "20", "enrolled": 20, "coordinatorId": 3},
            "garbage",
        ]
        activities = await self.gateway.activities.get_all(status="upcoming")

        self.assertEqual(len(activities), 1)
        self.assertEqual(activities[0].capacity, 20)
        self.assertEqual(activities[0].coordinator_id, "3")
        self.assertTrue(activities[0].is_full)
        self.assertEqual(self._call().kwargs["params"], {"status": "upcoming"})

    async def test_activities_update_and_delete_paths(self):
        self.gateway.request.return_value = {"id": "a1", "title": "Chess club"}
        activity = await self.gateway.activities.update("a1", {"title": "Chess club"})
        self.assertEqual(activity.title, "Chess club")
        self.assertEqual(self._call().args, ("PUT", "/activities/a1"))

        await self.gateway.activities.delete("a1")
        self.assertEqual(self._call().args, ("DELETE", "/activities/a1"))

    async def test_applications_filtered_by_student(self):
        self.gateway.request.return_value = [
            {"id": "p1", "activityId": "a1", "studentId": "s1", "status": "approved"}
        ]
        applications = await self.gateway.applications.get_all(student_id="s1")

        self.assertEqual(applications[0].status, "approved")
        self.assertEqual(self._call().kwargs["params"], {"studentId": "s1"})

    async def test_application_status_update_payload(self):
        await self.gateway.applications.update_status("p1", "rejected", "Full")

        self.assertEqual(self._call().args, ("PUT", "/applications/p1/status"))
        self.assertEqual(self._call().kwargs["payload"], {"status": "rejected", "notes": "Full"})

    async def test_notifications_mark_all_as_read(self):
        await self.gateway.notifications.mark_all_as_read("s1")

        self.assertEqual(self._call().args, ("PUT", "/notifications/read/all"))
        self.assertEqual(self._call().kwargs["params"], {"recipientId": "s1"})

    async def test_notifications_parse_read_flag(self):
        self.gateway.request.return_value = [
            {"id": 1, "title": "t", "message": "m", "type": "info", "read": 1, "recipientId": 9}
        ]
        notifications = await self.gateway.notifications.get_all(recipient_id="9")

        self.assertTrue(notifications[0].read)
        self.assertEqual(notifications[0].recipient_id, "9")

    async def test_attendance_batch_payload(self):
        entries = [{"student_id": "s1", "student_name": "Sara", "application_id": "p1", "status": "present"}]
        await self.gateway.attendance.batch_mark_attendance("a1", entries, "c1")

        self.assertEqual(self._call().args, ("POST", "/attendance/batch"))
        self.assertEqual(
            self._call().kwargs["payload"],
            {
                "activityId": "a1",
                "attendanceData": [
                    {"studentId": "s1", "studentName": "Sara", "applicationId": "p1", "status": "present"}
                ],
                "markedBy": "c1",
            },
        )

    async def test_users_get_all_forwards_token(self):
        self.gateway.request.return_value = [USER_JSON]
        users = await self.gateway.users.get_all(token="tok")

        self.assertEqual(users[0].id, "7")
        self.assertEqual(self._call().kwargs["token"], "tok")

    async def test_create_coordinator_sets_role(self):
        self.gateway.request.return_value = dict(USER_JSON, role="coordinator")
        await self.gateway.users.create_coordinator("Omar", "omar@ju.edu", "pw", "Sports")

        payload = self._call().kwargs["payload"]
        self.assertEqual(payload["role"], "coordinator")
        self.assertEqual(payload["department"], "Sports")

    async def test_update_my_password_payload(self):
        await self.gateway.users.update_my_password("old", "new")

        self.assertEqual(self._call().args, ("PATCH", "/users/me/password"))
        self.assertEqual(self._call().kwargs["payload"], {"oldPassword": "old", "newPassword": "new"})

    async def test_upload_avatar_sends_form(self):
        self.gateway.request.return_value = dict(USER_JSON, avatar="/uploads/7.png")
        changes = await self.gateway.users.upload_my_avatar(b"\x89PNG")

        self.assertEqual(changes["avatar"], "/uploads/7.png")
        self.assertIsInstance(self._call().kwargs["data"], aiohttp.FormData)


class TestMalformedResponses(unittest.IsolatedAsyncioTestCase):
    """Well-formed HTTP answers whose bodies do not match the expected shape."""

    def setUp(self):
        self.gateway = Gateway("http://api")
        self.gateway.request = AsyncMock(return_value=None)

    async def test_single_object_call_with_empty_body(self):
        with self.assertRaises(GatewayFailure) as ctx:
            await self.gateway.activities.get_by_id("a1")
        self.assertEqual(ctx.exception.status, 0)

    async def test_single_object_call_without_id(self):
        self.gateway.request.return_value = {"title": "Chess"}
        with self.assertRaises(GatewayFailure):
            await self.gateway.activities.update("a1", {"title": "Chess"})

    async def test_single_object_call_with_bad_field_type(self):
        self.gateway.request.return_value = {"id": "a1", "capacity": "lots"}
        with self.assertRaises(GatewayFailure):
            await self.gateway.activities.get_by_id("a1")

    async def test_auth_me_with_list_body(self):
        self.gateway.request.return_value = []
        with self.assertRaises(GatewayFailure):
            await self.gateway.auth.me()

    async def test_auth_me_with_user_missing_id(self):
        self.gateway.request.return_value = {"success": True, "user": {"name": "x"}}
        with self.assertRaises(GatewayFailure):
            await self.gateway.auth.me()

    async def test_login_with_non_object_body(self):
        self.gateway.request.return_value = "ok"
        with self.assertRaises(GatewayFailure):
            await self.gateway.auth.login("sara@ju.edu", "pw")

    async def test_collections_skip_malformed_records(self):
        self.gateway.request.return_value = [
            {"id": "p1", "activityId": "a1", "studentId": "s1"},
            {"id": "p2", "activityId": "a1"},
            {"id": "p3", "activityId": "a1", "studentId": "s3", "status": None},
        ]
        with self.assertLogs("ju_activity.api.applications", level="WARNING"):
            applications = await self.gateway.applications.get_all()

        self.assertEqual([a.id for a in applications], ["p1", "p3"])
        self.assertEqual(applications[1].status, "pending")

    async def test_collections_skip_records_that_fail_to_map(self):
        self.gateway.request.return_value = [
            {"id": "a1", "capacity": "lots"},
            {"id": "a2", "capacity": 5},
        ]
        with self.assertLogs("ju_activity.api.common", level="WARNING"):
            activities = await self.gateway.activities.get_all()

        self.assertEqual([a.id for a in activities], ["a2"])

    async def test_collection_with_object_body_is_empty(self):
        self.gateway.request.return_value = {"error": "nope"}
        self.assertEqual(await self.gateway.notifications.get_all(), [])

    async def test_users_directory_skips_records_without_id(self):
        self.gateway.request.return_value = [USER_JSON, {"name": "Ghost", "email": "ghost@ju.edu"}]
        with self.assertLogs("ju_activity.api.users", level="WARNING"):
            users = await self.gateway.users.get_all()

        self.assertEqual([u.id for u in users], ["7"])


class TestAccountAndAdminApis(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = Gateway("http://api")
        self.gateway.request = AsyncMock(return_value={})

    def _call(self):
        return self.gateway.request.call_args

    async def test_register_payload(self):
        self.gateway.request.return_value = {"success": True, "token": "tok", "user": USER_JSON}
        response = await self.gateway.auth.register("Sara Ali", "sara@ju.edu", "pw", student_id="JU-7")

        self.assertTrue(response.success)
        self.assertEqual(response.token, "tok")
        self.assertEqual(response.identity.student_id, "JU-7")
        self.assertEqual(self._call().args, ("POST", "/auth/register"))
        self.assertEqual(
            self._call().kwargs["payload"],
            {"name": "Sara Ali", "email": "sara@ju.edu", "password": "pw", "studentId": "JU-7"},
        )

    async def test_register_rejected(self):
        self.gateway.request.return_value = {"success": False, "message": "Email already registered"}
        response = await self.gateway.auth.register("Sara Ali", "sara@ju.edu", "pw")

        self.assertFalse(response.success)
        self.assertIsNone(response.identity)

    async def test_verify_email(self):
        self.gateway.request.return_value = {"success": True, "user": USER_JSON}
        success, identity = await self.gateway.auth.verify_email("sara@ju.edu", "123456")

        self.assertTrue(success)
        self.assertEqual(identity.id, "7")
        self.assertEqual(self._call().args, ("POST", "/auth/verify-email"))
        self.assertEqual(self._call().kwargs["payload"], {"email": "sara@ju.edu", "code": "123456"})

    async def test_resend_verification(self):
        self.gateway.request.return_value = {"success": True}
        self.assertTrue(await self.gateway.auth.resend_verification("sara@ju.edu"))
        self.assertEqual(self._call().args, ("POST", "/auth/resend-verification"))
        self.assertEqual(self._call().kwargs["payload"], {"email": "sara@ju.edu"})

    async def test_unread_count(self):
        self.gateway.request.return_value = 4
        self.assertEqual(await self.gateway.notifications.get_unread_count("s1"), 4)
        self.assertEqual(self._call().args, ("GET", "/notifications/unread/count"))
        self.assertEqual(self._call().kwargs["params"], {"recipientId": "s1"})

    async def test_unread_count_rejects_non_number(self):
        self.gateway.request.return_value = {"count": 4}
        with self.assertRaises(GatewayFailure):
            await self.gateway.notifications.get_unread_count()

    async def test_audit_logs_filters(self):
        self.gateway.request.return_value = [
            {"id": 1, "action": "USER_CREATED", "actorId": "a1", "targetEmail": "omar@ju.edu"},
            {"id": 2},
        ]
        rows = await self.gateway.audit_logs.get_all(
            q="", action="USER_CREATED", actor_id="a1", date_from="2026-01-01", date_to="2026-02-01", take=50
        )

        self.assertEqual(self._call().args, ("GET", "/audit-logs"))
        self.assertEqual(
            self._call().kwargs["params"],
            {"action": "USER_CREATED", "actorId": "a1", "from": "2026-01-01", "to": "2026-02-01", "take": "50"},
        )
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].id, "1")
        self.assertEqual(rows[0].target_email, "omar@ju.edu")


if __name__ == "__main__":
    unittest.main()
