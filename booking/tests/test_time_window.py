from datetime import datetime

from django.test import SimpleTestCase, override_settings

from booking.exceptions import InvalidWindow
from booking.services.time_window import TimeWindow

from .helpers import at


class TimeWindowTests(SimpleTestCase):
    def test_touching_windows_do_not_overlap(self):
        first = TimeWindow(at(14), at(15))
        second = TimeWindow(at(15), at(16))
        self.assertFalse(first.overlaps(second))
        self.assertFalse(second.overlaps(first))

    def test_partial_overlap(self):
        first = TimeWindow(at(14), at(15))
        second = TimeWindow(at(14, 30), at(15, 30))
        self.assertTrue(first.overlaps(second))
        self.assertTrue(second.overlaps(first))

    def test_containment_overlaps(self):
        outer = TimeWindow(at(9), at(17))
        inner = TimeWindow(at(12), at(13))
        self.assertTrue(outer.overlaps(inner))
        self.assertTrue(inner.overlaps(outer))

    def test_start_equal_to_end_is_invalid(self):
        with self.assertRaises(InvalidWindow):
            TimeWindow(at(14), at(14))

    def test_start_after_end_is_invalid(self):
        with self.assertRaises(InvalidWindow) as ctx:
            TimeWindow(at(15), at(14))
        self.assertEqual(ctx.exception.code, "INVALID_WINDOW")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_missing_bound_is_invalid(self):
        with self.assertRaises(InvalidWindow):
            TimeWindow(None, at(14))

    def test_mixed_naive_and_aware_is_invalid(self):
        with self.assertRaises(InvalidWindow):
            TimeWindow(datetime(2031, 6, 1, 14), at(15))

    def test_from_duration_and_contains(self):
        window = TimeWindow.from_duration(at(14), 45)
        self.assertEqual(window.end, at(14, 45))
        self.assertTrue(window.contains(at(14)))
        self.assertFalse(window.contains(at(14, 45)))

    @override_settings(TIME_ZONE="UTC")
    def test_describe_uses_hours_and_minutes(self):
        self.assertEqual(TimeWindow(at(14), at(15)).describe(), "14:00–15:00")
