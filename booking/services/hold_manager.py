"""
hold_manager.py
---------------
Creates and reads temporary booking holds for the public booking flow.

A guest picks a slot, we lock it for BOOKING_HOLD_EXPIRY_MINUTES, and the
guest signs in to confirm. Confirming a hold into a booking is handled by the
checkout flow, not here.
"""

from datetime import timedelta
import logging
import uuid

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ..exceptions import (
    ActiveHoldExists,
    InvalidTransition,
    NotFound,
    ProviderInactive,
    ResourceConflict,
    SlotUnavailable,
)
from ..models import BookingHold, Provider, Staff
from .availability_engine import AvailabilityEngine
from .time_window import TimeWindow

logger = logging.getLogger(__name__)

DEFAULT_HOLD_EXPIRY_MINUTES = 7


def hold_expiry_minutes() -> int:
    return int(getattr(settings, "BOOKING_HOLD_EXPIRY_MINUTES", DEFAULT_HOLD_EXPIRY_MINUTES))


class HoldManager:
    def __init__(self):
        self.availability = AvailabilityEngine()

    def _overlapping_holds(self, window, now, provider, staff):
        qs = BookingHold.objects.filter(
            status=BookingHold.STATUS_ACTIVE,
            expires_at__gt=now,
            start_at__lt=window.end,
            end_at__gt=window.start,
        )
        if staff is not None:
            return qs.filter(staff=staff)
        return qs.filter(provider=provider)

    @transaction.atomic
    def create_hold(self, provider_id, start_at, end_at, staff_id=None,
                    guest_fingerprint_hash="", resource_ids=None):
        """
        Lock a slot for a guest.

        Raises:
            InvalidWindow, NotFound, ProviderInactive, ActiveHoldExists,
            SlotUnavailable, ResourceConflict
        """
        window = TimeWindow(start_at, end_at)
        now = timezone.now()

        provider = Provider.objects.select_for_update().filter(pk=provider_id).first()
        if provider is None:
            raise NotFound("Provider not found.")
        if not provider.is_active:
            raise ProviderInactive()

        if guest_fingerprint_hash:
            has_active = BookingHold.objects.filter(
                guest_fingerprint_hash=guest_fingerprint_hash,
                status=BookingHold.STATUS_ACTIVE,
                expires_at__gt=now,
            ).exists()
            if has_active:
                raise ActiveHoldExists()

        staff = None
        if staff_id is not None:
            staff = Staff.objects.filter(pk=staff_id, provider=provider).first()
            if staff is None:
                raise NotFound("Staff member not found.")
            if self.availability.has_staff_conflict(staff, window):
                raise SlotUnavailable()

        if self._overlapping_holds(window, now, provider, staff).exists():
            raise SlotUnavailable()

        resource_ids = list(resource_ids or [])
        owned = {r.pk: r for r in provider.resources.filter(pk__in=resource_ids)}
        if set(resource_ids) - set(owned):
            raise NotFound("Resource not found.")
        for resource_id in resource_ids:
            if not owned[resource_id].is_active:
                raise ResourceConflict(f"{owned[resource_id].name}: resource is inactive")
        conflicts = []
        for resource_id in resource_ids:
            conflicts.extend(self.availability.check_resource(resource_id, window.start, window.end).conflicts)
        if conflicts:
            raise ResourceConflict(conflicts=conflicts)

        metadata = {"resource_ids": resource_ids} if resource_ids else {}
        hold = BookingHold.objects.create(
            provider=provider,
            staff=staff,
            start_at=window.start,
            end_at=window.end,
            status=BookingHold.STATUS_ACTIVE,
            expires_at=now + timedelta(minutes=hold_expiry_minutes()),
            guest_fingerprint_hash=guest_fingerprint_hash or "",
            metadata=metadata,
        )
        logger.info("Created hold %s for provider %s (%s)", hold.pk, provider.pk, window.describe())
        return hold

    def transition(self, hold, new_status):
        if hold.status == new_status:
            return hold
        if not hold.can_transition_to(new_status):
            raise InvalidTransition(f"Hold cannot move from {hold.status} to {new_status}.")
        hold.status = new_status
        hold.save(update_fields=["status", "updated_at"])
        return hold

    def get_hold(self, hold_id, now=None):
        """
        Fetch a hold, expiring it on the spot if its time is up.
        """
        try:
            hold_id = uuid.UUID(str(hold_id))
        except ValueError:
            raise NotFound("Hold not found or expired.")
        hold = BookingHold.objects.filter(pk=hold_id).first()
        if hold is None:
            raise NotFound("Hold not found or expired.")
        if hold.status == BookingHold.STATUS_ACTIVE and hold.is_past_expiry(now):
            self.transition(hold, BookingHold.STATUS_EXPIRED)
            logger.info("Hold %s expired on read", hold.pk)
        return hold
