"""
hold_sweeper.py
---------------
Moves booking holds whose expiry has passed from "active" to "expired".

Run on a fixed schedule (every 1-2 minutes) by either:
    python manage.py expire_holds
    GET /api/cron/expire-holds/   (Authorization: Bearer <CRON_SECRET>)

Safe to run repeatedly: a second run right after the first updates nothing.
"""

from dataclasses import dataclass, field
import logging

from django.db import transaction
from django.utils import timezone

from ..models import BookingHold

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired_count: int
    hold_ids: list = field(default_factory=list)

    def as_dict(self):
        return {
            "expired_count": self.expired_count,
            "hold_ids": [str(pk) for pk in self.hold_ids],
        }


class HoldExpirySweeper:
    def expirable(self, now):
        return BookingHold.objects.filter(
            status=BookingHold.STATUS_ACTIVE,
            expires_at__lt=now,
        )

    def sweep(self, now=None) -> SweepResult:
        """
        Expire every active hold with expires_at < now in one transaction.
        The UPDATE keeps the status filter, so a hold touched concurrently is
        never moved backwards.
        """
        now = now or timezone.now()
        with transaction.atomic():
            hold_ids = list(
                self.expirable(now).select_for_update().values_list("id", flat=True)
            )
            if not hold_ids:
                logger.debug("Hold sweep at %s: nothing to expire", now.isoformat())
                return SweepResult(expired_count=0)

            count = BookingHold.objects.filter(
                pk__in=hold_ids,
                status=BookingHold.STATUS_ACTIVE,
            ).update(status=BookingHold.STATUS_EXPIRED, updated_at=now)

        logger.info("Hold sweep at %s: expired %d hold(s)", now.isoformat(), count)
        return SweepResult(expired_count=count, hold_ids=hold_ids)
