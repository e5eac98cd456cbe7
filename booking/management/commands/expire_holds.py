"""
expire_holds.py
---------------
Django management command that expires booking holds past their expiry.

Usage:
    python manage.py expire_holds
    python manage.py expire_holds --dry-run

Schedule it from cron every 1-2 minutes. Running it twice in a row is
harmless; the second run reports 0.
"""

from django.core.management.base import BaseCommand, CommandError
from django.db import DatabaseError
from django.utils import timezone

from booking.services.hold_sweeper import HoldExpirySweeper


class Command(BaseCommand):
    help = "Move active booking holds whose expires_at has passed to 'expired'."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Only report how many holds would expire.",
        )

    def handle(self, *args, **options):
        sweeper = HoldExpirySweeper()
        now = timezone.now()

        if options["dry_run"]:
            count = sweeper.expirable(now).count()
            self.stdout.write(f"{count} hold(s) would expire.")
            return

        try:
            result = sweeper.sweep(now=now)
        except DatabaseError as exc:
            # Nothing was written; the next scheduled run retries.
            raise CommandError(f"Hold sweep failed: {exc}") from exc

        self.stdout.write(self.style.SUCCESS(f"Expired {result.expired_count} hold(s)."))
