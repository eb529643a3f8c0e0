"""
Tests for the ActivityData snapshot and the pure coordinator utilities.
"""

from __future__ import annotations

import dataclasses
import unittest

from ju_activity.const import APPLICATION_PENDING, APPLICATION_REJECTED, ATTENDANCE_ABSENT, UNKNOWN_STUDENT_NAME
from ju_activity.coordinator_data import ActivityData
from ju_activity.coordinator_utils import (
    build_attendance_entries,
    find_approved_application,
    mark_read,
    merge_attendance,
    remove_by_id,
    replace_by_id,
    resolve_student_name,
)
from ju_activity.errors import NotApproved, NotFound

from .test_common import make_activity, make_application, make_attendance, make_notification


class TestActivityData(unittest.TestCase):

    def test_defaults_are_empty(self):
        data = ActivityData()
        self.assertEqual(data.activities, ())
        self.assertFalse(data.is_loading)

    def test_snapshot_is_immutable(self):
        data = ActivityData()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            data.activities = (make_activity(),)


class TestCollectionHelpers(unittest.TestCase):

    def test_replace_and_remove_by_id(self):
        items = (make_activity("a"), make_activity("b"))
        replaced = replace_by_id(items, "b", make_activity("b", title="B"))
        self.assertEqual([a.title for a in replaced], ["Activity a", "B"])
        self.assertEqual(replace_by_id(items, "missing", make_activity("x")), items)
        self.assertEqual([a.id for a in remove_by_id(items, "a")], ["b"])

    def test_merge_attendance_replaces_whole_activity_sheet(self):
        current = (
            make_attendance("r1", "act1", "s1"),
            make_attendance("r2", "act1", "s2"),
            make_attendance("r3", "act2", "s1"),
        )
        fresh = [make_attendance("r1", "act1", "s1", status=ATTENDANCE_ABSENT)]

        merged = merge_attendance(current, "act1", fresh)

        self.assertEqual([r.id for r in merged], ["r3", "r1"])
        self.assertEqual(merged[1].status, ATTENDANCE_ABSENT)

    def test_mark_read(self):
        unread = make_notification(read=False)
        self.assertTrue(mark_read(unread).read)
        already = make_notification(read=True)
        self.assertIs(mark_read(already), already)


class TestApprovedApplications(unittest.TestCase):

    def setUp(self):
        self.applications = (
            make_application("p1", "act1", "s1"),
            make_application("p2", "act1", "s2", status=APPLICATION_PENDING),
            make_application("p3", "act1", "s3", status=APPLICATION_REJECTED),
            make_application("p4", "act2", "s1", student_name=""),
        )

    def test_find_approved(self):
        self.assertEqual(find_approved_application(self.applications, "act1", "s1").id, "p1")

    def test_pending_or_rejected_is_not_approved(self):
        with self.assertRaises(NotApproved):
            find_approved_application(self.applications, "act1", "s2")
        with self.assertRaises(NotApproved):
            find_approved_application(self.applications, "act1", "s3")

    def test_missing_application(self):
        with self.assertRaises(NotFound):
            find_approved_application(self.applications, "act2", "s2")

    def test_student_name_resolution(self):
        self.assertEqual(resolve_student_name(self.applications, "s2"), "User s2")
        self.assertEqual(resolve_student_name(self.applications, "nobody"), UNKNOWN_STUDENT_NAME)

    def test_batch_entries_validate_every_student(self):
        entries = build_attendance_entries(self.applications, "act1", {"s1": "present"})
        self.assertEqual(entries[0]["application_id"], "p1")

        with self.assertRaises(NotApproved):
            build_attendance_entries(self.applications, "act1", {"s1": "present", "s2": "absent"})


if __name__ == "__main__":
    unittest.main()
