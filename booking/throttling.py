from rest_framework.settings import api_settings
from rest_framework.throttling import ScopedRateThrottle


class HoldCreationThrottle(ScopedRateThrottle):
    """
    Caps how many holds one client (user, or IP for guests) can create.

    The rate comes from REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"][view.throttle_scope].
    It is looked up per request rather than at import, so settings overrides apply.
    """

    def get_rate(self):
        return api_settings.DEFAULT_THROTTLE_RATES.get(self.scope)
