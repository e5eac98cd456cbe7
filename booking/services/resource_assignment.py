"""
resource_assignment.py
----------------------
Writes resource-to-booking assignments.

Check-then-insert runs inside one transaction with the target resource rows
locked (SELECT ... FOR UPDATE, in primary key order), so two requests for the
same resource are serialized. On PostgreSQL the exclusion constraint
`resource_assignment_no_overlap` is the final word: if it fires, the insert
is reported as a ResourceConflict and the caller should restart the flow.
"""

from dataclasses import dataclass
from datetime import datetime
import logging

from django.db import IntegrityError, transaction

from ..exceptions import NotFound, ResourceConflict
from ..models import Booking, Resource, ResourceAssignment
from .availability_engine import AvailabilityEngine, Conflict
from .time_window import TimeWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignmentRequest:
    booking: Booking
    resource: Resource
    start: datetime
    end: datetime
    line_item_id: int | None = None

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(self.start, self.end)


def _batch_conflicts(requests, windows):
    """
    Two requests in the same batch for one resource, different bookings,
    overlapping windows.
    """
    conflicts = []
    for i, (a, wa) in enumerate(zip(requests, windows)):
        for b, wb in zip(requests[i + 1:], windows[i + 1:]):
            if a.resource.pk != b.resource.pk or a.booking.pk == b.booking.pk:
                continue
            if wa.overlaps(wb):
                conflicts.append(Conflict(
                    assignment_id=None,
                    booking_id=b.booking.pk,
                    resource_id=b.resource.pk,
                    start=wb.start,
                    end=wb.end,
                    reason=f"resource requested twice {wa.describe()} and {wb.describe()}",
                ))
    return conflicts


class ResourceAssignmentWriter:
    def __init__(self, availability=None):
        self.availability = availability or AvailabilityEngine()

    @transaction.atomic
    def assign(self, requests):
        """
        Assign every request in the batch, or none of them.

        Args:
            requests: iterable of AssignmentRequest

        Returns:
            list of created ResourceAssignment rows, in request order.

        Raises:
            InvalidWindow: a request has start >= end.
            NotFound: a resource no longer exists.
            ResourceConflict: a resource is inactive, already taken by another
                booking, or the database rejected the insert.
        """
        requests = list(requests)
        if not requests:
            return []
        windows = [req.window for req in requests]

        resource_ids = sorted({req.resource.pk for req in requests})
        locked = {
            r.pk: r
            for r in Resource.objects.select_for_update().filter(pk__in=resource_ids).order_by("pk")
        }

        conflicts = []
        for req, window in zip(requests, windows):
            resource = locked.get(req.resource.pk)
            if resource is None:
                raise NotFound("Resource not found.")
            if not resource.is_active:
                raise ResourceConflict(f"{resource.name}: resource is inactive")
            check = self.availability.check_resource(
                resource.pk, window.start, window.end, exclude_booking_id=req.booking.pk
            )
            conflicts.extend(check.conflicts)
        conflicts.extend(_batch_conflicts(requests, windows))

        if conflicts:
            logger.info(
                "Assignment rejected: %d conflict(s) for resources %s",
                len(conflicts), resource_ids,
            )
            raise ResourceConflict(conflicts=conflicts)

        try:
            with transaction.atomic():
                created = [
                    ResourceAssignment.objects.create(
                        booking=req.booking,
                        line_item_id=req.line_item_id,
                        resource=locked[req.resource.pk],
                        start_time=window.start,
                        end_time=window.end,
                    )
                    for req, window in zip(requests, windows)
                ]
        except IntegrityError as exc:
            logger.warning("Assignment insert rejected by database for resources %s: %s", resource_ids, exc)
            raise ResourceConflict(
                "The resource became unavailable. Please try again."
            ) from exc

        for a in created:
            logger.info(
                "Assigned resource %s to booking %s for %s",
                a.resource_id, a.booking_id, TimeWindow(a.start_time, a.end_time).describe(),
            )
        return created
