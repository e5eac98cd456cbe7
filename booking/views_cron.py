# booking/views_cron.py
#
# Purpose:
# - Cron-only endpoints. Called by an external scheduler, not by users.
#
# Auth:
# - No session. The caller must send "Authorization: Bearer <CRON_SECRET>".
# - With CRON_SECRET unset the endpoint refuses every call.
#
import hmac
import logging

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import Forbidden
from .responses import EnvelopeMixin
from .services.hold_sweeper import HoldExpirySweeper

logger = logging.getLogger(__name__)


def _has_cron_secret(request) -> bool:
    secret = getattr(settings, "CRON_SECRET", "") or ""
    if not secret:
        return False
    header = request.headers.get("Authorization", "")
    return hmac.compare_digest(header.encode(), f"Bearer {secret}".encode())


class ExpireHoldsView(EnvelopeMixin, APIView):
    """
    GET /api/cron/expire-holds/  ->  {"expired_count": N, "hold_ids": [...]}
    """
    authentication_classes = []
    permission_classes = [AllowAny]
    sweeper = HoldExpirySweeper()

    def get(self, request):
        if not _has_cron_secret(request):
            logger.warning("Rejected cron call to expire-holds from %s", request.META.get("REMOTE_ADDR"))
            raise Forbidden("Invalid cron secret.")
        result = self.sweeper.sweep()
        return Response(result.as_dict())
