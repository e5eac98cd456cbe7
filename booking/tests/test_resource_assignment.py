from unittest import mock

from django.db import IntegrityError
from django.test import TestCase

from booking.exceptions import InvalidWindow, NotFound, ResourceConflict
from booking.models import Resource, ResourceAssignment
from booking.services.resource_assignment import AssignmentRequest, ResourceAssignmentWriter

from .helpers import at, make_booking, make_provider, make_resource


class ResourceAssignmentWriterTests(TestCase):
    def setUp(self):
        self.writer = ResourceAssignmentWriter()
        self.provider = make_provider()
        self.room = make_resource(self.provider)
        self.booking_a = make_booking(self.provider, at(14), at(15))
        self.booking_b = make_booking(self.provider, at(14, 30), at(15, 30))

    def test_assigns_free_resource(self):
        created = self.writer.assign([
            AssignmentRequest(self.booking_a, self.room, at(14), at(15), line_item_id=3),
        ])
        self.assertEqual(len(created), 1)
        row = ResourceAssignment.objects.get()
        self.assertEqual(row.booking, self.booking_a)
        self.assertEqual(row.line_item_id, 3)
        self.assertEqual((row.start_time, row.end_time), (at(14), at(15)))

    def test_overlap_with_other_booking_is_rejected(self):
        self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(14), at(15))])

        with self.assertRaises(ResourceConflict) as ctx:
            self.writer.assign([AssignmentRequest(self.booking_b, self.room, at(14, 30), at(15, 30))])

        self.assertEqual(len(ctx.exception.conflicts), 1)
        self.assertEqual(ctx.exception.conflicts[0].booking_id, self.booking_a.pk)
        self.assertEqual(ctx.exception.details[0]["booking_id"], self.booking_a.pk)
        self.assertEqual(ResourceAssignment.objects.count(), 1)

    def test_back_to_back_bookings_share_a_resource(self):
        booking_c = make_booking(self.provider, at(15), at(16))
        self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(14), at(15))])
        self.writer.assign([AssignmentRequest(booking_c, self.room, at(15), at(16))])
        self.assertEqual(ResourceAssignment.objects.count(), 2)

    def test_same_booking_may_overlap_itself(self):
        self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(14), at(15))])
        self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(14, 15), at(14, 45))])
        self.assertEqual(self.booking_a.resource_assignments.count(), 2)

    def test_batch_conflict_rejects_whole_batch(self):
        other_room = make_resource(self.provider, name="Room 2")
        with self.assertRaises(ResourceConflict) as ctx:
            self.writer.assign([
                AssignmentRequest(self.booking_a, other_room, at(14), at(15)),
                AssignmentRequest(self.booking_a, self.room, at(14), at(15)),
                AssignmentRequest(self.booking_b, self.room, at(14, 30), at(15, 30)),
            ])
        self.assertEqual(len(ctx.exception.conflicts), 1)
        self.assertEqual(ResourceAssignment.objects.count(), 0)

    def test_inactive_resource_is_a_conflict(self):
        idle = make_resource(self.provider, name="Old Chair", is_active=False)
        with self.assertRaises(ResourceConflict) as ctx:
            self.writer.assign([AssignmentRequest(self.booking_a, idle, at(14), at(15))])
        self.assertIn("inactive", ctx.exception.message)

    def test_deleted_resource_is_not_found(self):
        gone = make_resource(self.provider, name="Gone")
        Resource.objects.filter(pk=gone.pk).delete()
        with self.assertRaises(NotFound):
            self.writer.assign([AssignmentRequest(self.booking_a, gone, at(14), at(15))])

    def test_invalid_window_is_rejected_before_any_write(self):
        with self.assertRaises(InvalidWindow):
            self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(15), at(14))])
        self.assertEqual(ResourceAssignment.objects.count(), 0)

    def test_database_rejection_becomes_conflict(self):
        with mock.patch.object(
            ResourceAssignment.objects, "create", side_effect=IntegrityError("exclusion violation")
        ):
            with self.assertRaises(ResourceConflict) as ctx:
                self.writer.assign([AssignmentRequest(self.booking_a, self.room, at(14), at(15))])
        self.assertEqual(ctx.exception.message, "The resource became unavailable. Please try again.")

    def test_empty_batch_is_a_noop(self):
        self.assertEqual(self.writer.assign([]), [])
