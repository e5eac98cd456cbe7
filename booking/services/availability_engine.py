"""
availability_engine.py
----------------------
Answers "is this slot free?" for resources and staff. Read-only: nothing in
this module writes to the database.

Conflict rule (half-open windows):
    existing.start < candidate.end AND candidate.start < existing.end
so a candidate ending exactly when an existing assignment starts (or the
other way round) is not a conflict.
"""

from dataclasses import dataclass, field

from ..exceptions import NotFound
from ..models import Booking, ResourceAssignment
from .time_window import TimeWindow


@dataclass(frozen=True)
class Conflict:
    """An existing assignment that blocks a candidate window."""
    assignment_id: int
    booking_id: int
    resource_id: int
    start: object
    end: object
    reason: str

    def as_dict(self):
        return {
            "assignment_id": self.assignment_id,
            "booking_id": self.booking_id,
            "resource_id": self.resource_id,
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "reason": self.reason,
        }


@dataclass
class ConflictCheck:
    available: bool
    conflicts: list = field(default_factory=list)


def conflict_from_assignment(assignment) -> Conflict:
    window = TimeWindow(assignment.start_time, assignment.end_time)
    return Conflict(
        assignment_id=assignment.pk,
        booking_id=assignment.booking_id,
        resource_id=assignment.resource_id,
        start=assignment.start_time,
        end=assignment.end_time,
        reason=f"resource busy {window.describe()}",
    )


class AvailabilityEngine:
    def overlapping_assignments(self, resource_id, window: TimeWindow, exclude_booking_id=None):
        qs = ResourceAssignment.objects.filter(
            resource_id=resource_id,
            start_time__lt=window.end,
            end_time__gt=window.start,
        )
        if exclude_booking_id is not None:
            qs = qs.exclude(booking_id=exclude_booking_id)
        return qs.order_by("start_time", "id")

    def check_resource(self, resource_id, start, end, exclude_booking_id=None) -> ConflictCheck:
        """
        Check whether `resource_id` is free for [start, end).

        Args:
            resource_id: Resource primary key (required)
            start, end: aware datetimes, start < end
            exclude_booking_id: ignore assignments of this booking (re-checks
                while a booking edits its own slot)

        Raises:
            NotFound: if no resource id was given.
            InvalidWindow: if start >= end.
        """
        if resource_id in (None, ""):
            raise NotFound("A resource is required.")
        window = TimeWindow(start, end)

        conflicts = [
            conflict_from_assignment(a)
            for a in self.overlapping_assignments(resource_id, window, exclude_booking_id)
        ]
        return ConflictCheck(available=not conflicts, conflicts=conflicts)

    def has_staff_conflict(self, staff, window: TimeWindow, exclude_booking_id=None) -> bool:
        """
        True if `staff` already has a non-cancelled booking overlapping `window`.
        """
        qs = Booking.objects.filter(
            staff=staff,
            start_time__lt=window.end,
            end_time__gt=window.start,
        ).exclude(status=Booking.STATUS_CANCELLED)
        if exclude_booking_id is not None:
            qs = qs.exclude(pk=exclude_booking_id)
        return qs.exists()

    def is_slot_available_for_staff(self, staff, window: TimeWindow) -> bool:
        if staff is None:
            return True
        return not self.has_staff_conflict(staff, window)
