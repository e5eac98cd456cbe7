from datetime import timedelta
from io import StringIO
import uuid

from django.conf import settings
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from booking.exceptions import (
    ActiveHoldExists,
    InvalidTransition,
    InvalidWindow,
    NotFound,
    ProviderInactive,
    ResourceConflict,
    SlotUnavailable,
)
from booking.models import BookingHold, ResourceAssignment
from booking.services.hold_manager import HoldManager
from booking.services.hold_sweeper import HoldExpirySweeper

from .helpers import at, make_booking, make_provider, make_resource, make_service, make_staff


def make_hold(provider, expires_at, status=BookingHold.STATUS_ACTIVE, **extra):
    return BookingHold.objects.create(
        provider=provider,
        start_at=extra.pop("start_at", at(10)),
        end_at=extra.pop("end_at", at(11)),
        status=status,
        expires_at=expires_at,
        **extra,
    )


class HoldExpirySweeperTests(TestCase):
    def setUp(self):
        self.sweeper = HoldExpirySweeper()
        self.provider = make_provider()
        self.now = timezone.now()

    def test_expires_only_holds_past_expiry(self):
        stale = make_hold(self.provider, self.now - timedelta(minutes=5))
        fresh = make_hold(self.provider, self.now + timedelta(minutes=5))

        result = self.sweeper.sweep(now=self.now)

        self.assertEqual(result.expired_count, 1)
        self.assertEqual(result.hold_ids, [stale.pk])
        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, BookingHold.STATUS_EXPIRED)
        self.assertEqual(fresh.status, BookingHold.STATUS_ACTIVE)

    def test_second_run_is_a_noop(self):
        make_hold(self.provider, self.now - timedelta(minutes=5))
        self.sweeper.sweep(now=self.now)

        again = self.sweeper.sweep(now=self.now)
        self.assertEqual(again.expired_count, 0)
        self.assertEqual(again.as_dict(), {"expired_count": 0, "hold_ids": []})

    def test_already_expired_holds_are_left_alone(self):
        make_hold(self.provider, self.now - timedelta(hours=1), status=BookingHold.STATUS_EXPIRED)
        self.assertEqual(self.sweeper.sweep(now=self.now).expired_count, 0)

    def test_management_command(self):
        make_hold(self.provider, self.now - timedelta(minutes=5))
        out = StringIO()
        call_command("expire_holds", stdout=out)
        self.assertIn("Expired 1 hold(s).", out.getvalue())
        self.assertFalse(BookingHold.objects.filter(status=BookingHold.STATUS_ACTIVE).exists())

    def test_management_command_dry_run_writes_nothing(self):
        make_hold(self.provider, self.now - timedelta(minutes=5))
        out = StringIO()
        call_command("expire_holds", "--dry-run", stdout=out)
        self.assertIn("1 hold(s) would expire.", out.getvalue())
        self.assertTrue(BookingHold.objects.filter(status=BookingHold.STATUS_ACTIVE).exists())


class HoldManagerTests(TestCase):
    def setUp(self):
        self.manager = HoldManager()
        self.provider = make_provider()
        self.staff = make_staff(self.provider)

    def test_create_hold_sets_expiry(self):
        before = timezone.now()
        hold = self.manager.create_hold(self.provider.pk, at(10), at(11), staff_id=self.staff.pk)
        self.assertEqual(hold.status, BookingHold.STATUS_ACTIVE)
        self.assertGreaterEqual(hold.expires_at, before + timedelta(minutes=7))
        self.assertLess(hold.expires_at, before + timedelta(minutes=8))

    @override_settings(BOOKING_HOLD_EXPIRY_MINUTES=15)
    def test_expiry_is_configurable(self):
        before = timezone.now()
        hold = self.manager.create_hold(self.provider.pk, at(10), at(11))
        self.assertGreaterEqual(hold.expires_at, before + timedelta(minutes=15))

    def test_invalid_window(self):
        with self.assertRaises(InvalidWindow):
            self.manager.create_hold(self.provider.pk, at(11), at(10))

    def test_unknown_provider(self):
        with self.assertRaises(NotFound):
            self.manager.create_hold(999999, at(10), at(11))

    def test_inactive_provider(self):
        closed = make_provider(name="Closed", is_active=False)
        with self.assertRaises(ProviderInactive):
            self.manager.create_hold(closed.pk, at(10), at(11))

    def test_staff_from_other_provider(self):
        other = make_staff(make_provider(name="Other"), name="Esi")
        with self.assertRaises(NotFound):
            self.manager.create_hold(self.provider.pk, at(10), at(11), staff_id=other.pk)

    def test_one_active_hold_per_guest(self):
        self.manager.create_hold(self.provider.pk, at(10), at(11), guest_fingerprint_hash="abc")
        with self.assertRaises(ActiveHoldExists):
            self.manager.create_hold(self.provider.pk, at(13), at(14), guest_fingerprint_hash="abc")

    def test_overlapping_hold_for_same_staff(self):
        self.manager.create_hold(self.provider.pk, at(10), at(11), staff_id=self.staff.pk)
        with self.assertRaises(SlotUnavailable):
            self.manager.create_hold(self.provider.pk, at(10, 30), at(11, 30), staff_id=self.staff.pk)
        # Back-to-back is fine.
        self.manager.create_hold(self.provider.pk, at(11), at(12), staff_id=self.staff.pk)

    def test_expired_hold_does_not_block(self):
        make_hold(self.provider, timezone.now() - timedelta(minutes=1), staff=self.staff)
        hold = self.manager.create_hold(self.provider.pk, at(10), at(11), staff_id=self.staff.pk)
        self.assertEqual(hold.status, BookingHold.STATUS_ACTIVE)

    def test_staff_with_booking_is_unavailable(self):
        service = make_service(self.provider, minutes=60)
        make_booking(self.provider, at(10), service=service, staff=self.staff)
        with self.assertRaises(SlotUnavailable):
            self.manager.create_hold(self.provider.pk, at(10, 30), at(11), staff_id=self.staff.pk)

    def test_busy_resource_blocks_hold(self):
        room = make_resource(self.provider)
        booking = make_booking(self.provider, at(10), at(11))
        ResourceAssignment.objects.create(booking=booking, resource=room, start_time=at(10), end_time=at(11))
        with self.assertRaises(ResourceConflict):
            self.manager.create_hold(self.provider.pk, at(10), at(11), resource_ids=[room.pk])

    def test_inactive_resource_blocks_hold(self):
        idle = make_resource(self.provider, name="Old Chair", is_active=False)
        with self.assertRaises(ResourceConflict) as ctx:
            self.manager.create_hold(self.provider.pk, at(10), at(11), resource_ids=[idle.pk])
        self.assertIn("inactive", ctx.exception.message)
        self.assertFalse(BookingHold.objects.exists())

    def test_resource_must_belong_to_provider(self):
        foreign = make_resource(make_provider(name="Other"))
        with self.assertRaises(NotFound):
            self.manager.create_hold(self.provider.pk, at(10), at(11), resource_ids=[foreign.pk])

    def test_resource_ids_recorded_in_metadata(self):
        room = make_resource(self.provider)
        hold = self.manager.create_hold(self.provider.pk, at(10), at(11), resource_ids=[room.pk])
        self.assertEqual(hold.metadata, {"resource_ids": [room.pk]})

    def test_get_hold_expires_on_read(self):
        hold = make_hold(self.provider, timezone.now() - timedelta(minutes=1))
        fetched = self.manager.get_hold(hold.pk)
        self.assertEqual(fetched.status, BookingHold.STATUS_EXPIRED)

    def test_get_hold_bad_id(self):
        with self.assertRaises(NotFound):
            self.manager.get_hold("not-a-uuid")
        with self.assertRaises(NotFound):
            self.manager.get_hold(uuid.uuid4())

    def test_expired_hold_cannot_reactivate(self):
        hold = make_hold(self.provider, timezone.now() - timedelta(minutes=1), status=BookingHold.STATUS_EXPIRED)
        with self.assertRaises(InvalidTransition):
            self.manager.transition(hold, BookingHold.STATUS_ACTIVE)


class HoldApiTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.provider = make_provider()
        self.staff = make_staff(self.provider)

    def test_guest_can_create_and_read_hold(self):
        resp = self.client.post(
            "/api/holds/",
            data={
                "provider_id": self.provider.pk,
                "staff_id": self.staff.pk,
                "start_at": at(10).isoformat(),
                "end_at": at(11).isoformat(),
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertIsNone(resp.data["error"])
        hold_id = resp.data["data"]["hold_id"]
        self.assertIn("expires_at", resp.data["data"])

        detail = self.client.get(f"/api/holds/{hold_id}/")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["data"]["status"], "active")

    def test_conflicting_hold_returns_409_envelope(self):
        payload = {
            "provider_id": self.provider.pk,
            "staff_id": self.staff.pk,
            "start_at": at(10).isoformat(),
            "end_at": at(11).isoformat(),
        }
        self.client.post("/api/holds/", data=payload, format="json")
        resp = self.client.post("/api/holds/", data=payload, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertIsNone(resp.data["data"])
        self.assertEqual(resp.data["error"]["code"], "SLOT_UNAVAILABLE")

    def test_invalid_window_returns_400(self):
        resp = self.client.post(
            "/api/holds/",
            data={
                "provider_id": self.provider.pk,
                "start_at": at(11).isoformat(),
                "end_at": at(10).isoformat(),
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"]["code"], "INVALID_WINDOW")

    def test_missing_fields_are_validation_errors(self):
        resp = self.client.post("/api/holds/", data={}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["error"]["code"], "VALIDATION_ERROR")
        self.assertIn("provider_id", resp.data["error"]["details"])

    def test_unknown_hold_is_404(self):
        resp = self.client.get(f"/api/holds/{uuid.uuid4()}/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data["error"]["code"], "NOT_FOUND")

    def test_second_hold_for_same_guest_is_409(self):
        first = self.client.post(
            "/api/holds/",
            data={
                "provider_id": self.provider.pk,
                "start_at": at(10).isoformat(),
                "end_at": at(11).isoformat(),
                "guest_fingerprint_hash": "guest-1",
            },
            format="json",
        )
        self.assertEqual(first.status_code, 201)
        resp = self.client.post(
            "/api/holds/",
            data={
                "provider_id": self.provider.pk,
                "start_at": at(13).isoformat(),
                "end_at": at(14).isoformat(),
                "guest_fingerprint_hash": "guest-1",
            },
            format="json",
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data["error"]["code"], "ACTIVE_HOLD_EXISTS")

    @override_settings(
        REST_FRAMEWORK=dict(settings.REST_FRAMEWORK, DEFAULT_THROTTLE_RATES={"holds": "2/minute"})
    )
    def test_hold_creation_is_rate_limited(self):
        codes = []
        for day in (1, 2, 3):
            resp = self.client.post(
                "/api/holds/",
                data={
                    "provider_id": self.provider.pk,
                    "start_at": at(10, day=day).isoformat(),
                    "end_at": at(11, day=day).isoformat(),
                },
                format="json",
            )
            codes.append(resp.status_code)

        self.assertEqual(codes, [201, 201, 429])
        self.assertIsNone(resp.data["data"])
        self.assertEqual(resp.data["error"]["code"], "RATE_LIMITED")
        self.assertEqual(BookingHold.objects.count(), 2)

        # Reading a hold is not throttled.
        hold = BookingHold.objects.first()
        self.assertEqual(self.client.get(f"/api/holds/{hold.pk}/").status_code, 200)
