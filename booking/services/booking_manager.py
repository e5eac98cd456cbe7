"""
booking_manager.py
------------------
Coordinates booking creation and cancellation.

Notes:
- Staff double-booking is checked with AvailabilityEngine before insert.
- Cancelling releases every resource the booking held (its assignments are
  deleted); the booking row itself stays with status CANCELLED.
"""

from datetime import timedelta
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ..exceptions import InvalidTransition, SlotUnavailable
from ..models import Booking
from .availability_engine import AvailabilityEngine
from .time_window import TimeWindow

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_CUTOFF_MINUTES = 120


class BookingManager:
    def __init__(self):
        self.availability = AvailabilityEngine()

    @transaction.atomic
    def create_booking(self, provider, client, service, staff, start_time, notes=""):
        """
        Create a booking after checking the staff member is free.

        Args:
            provider: Provider the booking belongs to
            client: ClientProfile instance
            service: Service instance (needs duration_minutes)
            staff: Staff instance (can be None if TBA)
            start_time: aware datetime
            notes: optional string

        Raises:
            InvalidWindow: if the service has no duration.
            SlotUnavailable: if the staff member is busy for that window.
        """
        window = TimeWindow.from_duration(start_time, service.duration_minutes)

        if staff is not None and not self.availability.is_slot_available_for_staff(staff, window):
            raise SlotUnavailable("Selected time overlaps with an existing booking for this staff.")

        booking = Booking.objects.create(
            provider=provider,
            client=client,
            service=service,
            staff=staff,
            start_time=window.start,
            end_time=window.end,
            notes=notes,
        )
        logger.info("Created booking %s for provider %s at %s", booking.pk, provider.pk, window.describe())
        return booking

    @transaction.atomic
    def cancel_booking(self, booking, cutoff_minutes=None, now=None):
        """
        Cancel a booking if outside the cutoff window and drop its resource
        assignments.

        Returns:
            number of resource assignments released.
        """
        if cutoff_minutes is None:
            cutoff_minutes = getattr(settings, "BOOKING_CANCEL_CUTOFF_MINUTES", DEFAULT_CANCEL_CUTOFF_MINUTES)
        now = now or timezone.now()

        if booking.is_cancelled:
            raise InvalidTransition("This booking is already cancelled.")
        if booking.start_time - now <= timedelta(minutes=cutoff_minutes):
            raise InvalidTransition(
                f"Cannot cancel within {cutoff_minutes} minutes of appointment start."
            )

        released, _ = booking.resource_assignments.all().delete()
        booking.status = Booking.STATUS_CANCELLED
        booking.cancellation_time = now
        booking.save(update_fields=["status", "cancellation_time"])
        logger.info("Cancelled booking %s, released %d resource assignment(s)", booking.pk, released)
        return released
